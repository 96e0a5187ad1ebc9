"""テンプレート呼び出し一覧（CSV/Excel）の読み込みモジュール。"""

from typing import Dict, List, Optional, Tuple
from pathlib import Path
import logging

import pandas as pd

from ..models.callsite import CallSite
from ..models.declaration import SourceLocation
from ..models.finding import Rule, Violation
from ..models.report import AnalysisUnit
from .unit_loader import InputFormatError

logger = logging.getLogger(__name__)


class CallSiteReader:
    """呼び出し箇所の表を読み込み、CallSiteに変換する。

    1行が1呼び出し箇所に対応する。引数型は区切り文字で連結した1列で表す。
    """

    # 各種表形式用の列名マッピング
    COLUMN_MAPPINGS: Dict[str, List[str]] = {
        "template": ["Template", "テンプレート", "template", "TEMPLATE", "Function"],
        "arguments": [
            "Arguments", "引数型", "arguments", "ARGUMENTS",
            "Argument Types", "ArgumentTypes", "Signature"
        ],
        "file": ["File", "ファイル", "file", "FILE", "Source File", "SourceFile"],
        "line": ["Line", "行", "line", "LINE", "Line Number", "LineNumber"],
        "column": ["Column", "列", "column", "COLUMN"],
    }

    REQUIRED_COLUMNS = ("template", "arguments")

    def __init__(
        self,
        file_path: str,
        sheet_name: Optional[str] = None,
        separator: str = ";",
        encoding: str = "utf-8"
    ):
        """リーダーを初期化する。

        Args:
            file_path: CSVまたはExcelファイルのパス
            sheet_name: 読み込むシート名（Noneの場合は最初のシート）
            separator: 引数型の区切り文字
            encoding: CSVファイルの文字エンコーディング
        """
        self.file_path = Path(file_path)
        self.sheet_name = sheet_name
        self.separator = separator
        self.encoding = encoding
        self._df: Optional[pd.DataFrame] = None
        self._column_map: Dict[str, str] = {}

    def read(self) -> AnalysisUnit:
        """全行を読み込む。

        Returns:
            呼び出し箇所と読み込めなかった行の指摘を持つAnalysisUnit

        Raises:
            InputFormatError: ファイル形式や必須列が不正な場合
        """
        self._load_dataframe()
        self._resolve_column_names()

        unit = AnalysisUnit()
        for idx, row in self._df.iterrows():
            call_site, violation = self._row_to_call_site(row, idx)
            if call_site is not None:
                unit.call_sites.append(call_site)
            if violation is not None:
                unit.load_violations.append(violation)

        logger.info(
            f"Loaded {len(unit.call_sites)} call sites from {self.file_path}"
        )
        return unit

    def _load_dataframe(self) -> None:
        """ファイルからDataFrameを読み込む。"""
        if self._df is not None:
            return

        suffix = self.file_path.suffix.lower()

        try:
            if suffix in [".xlsx", ".xlsm"]:
                self._df = pd.read_excel(
                    self.file_path,
                    sheet_name=self.sheet_name or 0,
                    engine="openpyxl",
                    dtype=str
                )
            elif suffix == ".csv":
                self._df = pd.read_csv(
                    self.file_path,
                    encoding=self.encoding,
                    dtype=str,
                    keep_default_na=False,
                    na_values=[""]
                )
            else:
                raise InputFormatError(f"Unsupported file format: {suffix}")
        except (OSError, ValueError) as e:
            raise InputFormatError(f"Failed to read {self.file_path}: {e}") from e

        # 空行を削除
        self._df = self._df.dropna(how="all")

        logger.debug(f"Loaded DataFrame with {len(self._df)} rows")

    def _resolve_column_names(self) -> None:
        """列名マッピングを解決する。"""
        columns = self._df.columns.tolist()

        for standard_name, variants in self.COLUMN_MAPPINGS.items():
            for variant in variants:
                if variant in columns:
                    self._column_map[standard_name] = variant
                    break
            else:
                if standard_name in self.REQUIRED_COLUMNS:
                    raise InputFormatError(
                        f"必須列が見つかりません: {standard_name}。"
                        f"利用可能な列: {columns}"
                    )

        logger.debug(f"Resolved column mappings: {self._column_map}")

    def _cell(self, row: pd.Series, name: str) -> str:
        column = self._column_map.get(name)
        if column is None:
            return ""
        value = row[column]
        if pd.isna(value):
            return ""
        return str(value).strip()

    def _row_to_call_site(
        self,
        row: pd.Series,
        row_index: int
    ) -> Tuple[Optional[CallSite], Optional[Violation]]:
        """DataFrameの行をCallSiteに変換する。

        Args:
            row: DataFrameの行
            row_index: 行インデックス（0始まり）

        Returns:
            (CallSite, Violation) のタプル。どちらか一方のみが値を持つ
        """
        # ヘッダー行を含む1始まりの行番号
        table_row = row_index + 2
        template = self._cell(row, "template")
        arguments = self._cell(row, "arguments")
        file_path = self._cell(row, "file")

        try:
            line = int(float(self._cell(row, "line") or 0))
            column = int(float(self._cell(row, "column") or 0))
        except ValueError as e:
            return None, Violation(
                subject=template or f"row {table_row}",
                rule=Rule.MALFORMED_RECORD,
                message=f"{Rule.MALFORMED_RECORD.description}: row {table_row}: {e}",
                location=SourceLocation(str(self.file_path), table_row),
            )

        argument_types = tuple(
            a.strip() for a in arguments.split(self.separator)
        ) if arguments else ()

        return CallSite(
            template_name=template,
            argument_types=argument_types,
            location=SourceLocation(file_path or str(self.file_path),
                                    line if file_path else table_row,
                                    column),
        ), None
