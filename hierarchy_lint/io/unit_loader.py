"""解析単位ドキュメント（YAML/JSON）の読み込みモジュール。"""

from typing import Any, Dict, List, Optional
from pathlib import Path
import json
import logging

import yaml
from pydantic import BaseModel, ValidationError

from ..models.declaration import SourceLocation
from ..models.finding import Rule, Violation
from ..models.report import AnalysisUnit
from ..models.schema import CallSiteSchema, ClassSchema

logger = logging.getLogger(__name__)


class InputFormatError(Exception):
    """入力ファイル自体を読み込めない場合のエラー。"""
    pass


class UnitLoader:
    """解析単位ドキュメントを読み込み、AnalysisUnitに変換する。

    ドキュメントは ``classes`` と ``call_sites`` の2つのリストを持つ
    マッピングである。個々のレコードの不備は不正入力の指摘として
    記録し、残りのレコードの読み込みを続ける。
    """

    SUPPORTED_SUFFIXES = (".yaml", ".yml", ".json")

    def load(self, file_path: str) -> AnalysisUnit:
        """ファイルから解析単位を読み込む。

        Args:
            file_path: YAMLまたはJSONファイルのパス

        Returns:
            AnalysisUnit

        Raises:
            InputFormatError: ファイルを読めない、または形式が不正な場合
        """
        path = Path(file_path)
        suffix = path.suffix.lower()
        if suffix not in self.SUPPORTED_SUFFIXES:
            raise InputFormatError(f"Unsupported file format: {suffix}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                if suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise InputFormatError(f"Failed to read {file_path}: {e}") from e

        unit = self.load_data(data or {}, source=str(path))
        logger.info(
            f"Loaded {len(unit.classes)} classes and {len(unit.call_sites)} "
            f"call sites from {file_path}"
        )
        return unit

    def load_data(self, data: Any, source: str = "") -> AnalysisUnit:
        """読み込み済みのドキュメントを変換する。

        Args:
            data: ドキュメントのトップレベル値
            source: 位置情報に使うファイルパス

        Returns:
            AnalysisUnit

        Raises:
            InputFormatError: トップレベルの構造が不正な場合
        """
        if not isinstance(data, dict):
            raise InputFormatError(
                f"Top level must be a mapping with 'classes' and 'call_sites': "
                f"{source or type(data).__name__}"
            )

        unknown = set(data) - {"classes", "call_sites"}
        if unknown:
            logger.warning(f"Unknown top-level keys ignored: {sorted(unknown)}")

        unit = AnalysisUnit()

        for index, record in enumerate(self._records(data, "classes", source)):
            schema = self._validate(
                ClassSchema, record, "classes", index, source, unit.load_violations
            )
            if schema is not None:
                unit.classes.append(schema.to_declaration())

        for index, record in enumerate(self._records(data, "call_sites", source)):
            schema = self._validate(
                CallSiteSchema, record, "call_sites", index, source,
                unit.load_violations
            )
            if schema is not None:
                unit.call_sites.append(schema.to_call_site())

        if unit.load_violations:
            logger.warning(
                f"{len(unit.load_violations)} record(s) could not be read "
                f"from {source or 'document'}"
            )
        return unit

    @staticmethod
    def _records(data: Dict[str, Any], key: str, source: str) -> List[Any]:
        records = data.get(key) or []
        if not isinstance(records, list):
            raise InputFormatError(f"'{key}' must be a list: {source}")
        return records

    @staticmethod
    def _validate(
        schema: type,
        record: Any,
        section: str,
        index: int,
        source: str,
        violations: List[Violation]
    ) -> Optional[BaseModel]:
        """1レコードを検証する。失敗時は不正入力の指摘を追加してNoneを返す。"""
        try:
            return schema.model_validate(record)
        except ValidationError as e:
            subject = f"{section}[{index}]"
            if isinstance(record, dict):
                subject = str(record.get("name") or record.get("template") or subject)
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<record>'}: {err['msg']}"
                for err in e.errors()
            )
            line = 0
            if isinstance(record, dict) and isinstance(record.get("line"), int):
                line = max(record["line"], 0)
            violations.append(Violation(
                subject=subject,
                rule=Rule.MALFORMED_RECORD,
                message=f"{Rule.MALFORMED_RECORD.description}: {errors}",
                location=SourceLocation(
                    str(record.get("file") or source)
                    if isinstance(record, dict) else source,
                    line,
                ),
            ))
            logger.debug(f"Invalid record {section}[{index}]: {errors}")
            return None
