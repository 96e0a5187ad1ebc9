"""解析レポートのExcel/CSV出力モジュール。"""

from typing import Dict, List, Optional
from pathlib import Path
from datetime import datetime
import logging

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import PatternFill, Font, Alignment, Border, Side

from ..models.classification import Classification
from ..models.finding import InstantiationReport, Severity
from ..models.report import AnalysisReport, Finding

logger = logging.getLogger(__name__)


class ReportWriter:
    """解析レポートをファイルに書き出す。

    出力形式は拡張子で決まる。``.xlsx`` は指摘・分類・インスタンス化・
    サマリーの4シート、``.csv`` は指摘一覧のみを出力する。
    """

    # 重大度ごとの色（RGB hex、#なし）
    SEVERITY_COLORS: Dict[Severity, str] = {
        Severity.ERROR: "FFC7CE",    # 赤 - 修正必要
        Severity.WARNING: "FFEB9C",  # 黄 - レビュー必要
        Severity.INFO: "DDEBF7",     # 青 - 参考情報
    }

    # 分類ごとの色
    CLASSIFICATION_COLORS: Dict[Classification, str] = {
        Classification.INTERFACE: "C6EFCE",
        Classification.MIXIN: "C6EFCE",
        Classification.BASE_CLASS: "C6EFCE",
        Classification.CONCRETE: "C6EFCE",
        Classification.NON_CONFORMING: "FFC7CE",
        Classification.NOT_APPLICABLE: "D9D9D9",
    }

    FINDING_HEADERS = [
        "File", "Line", "Column", "Severity", "Kind", "Rule",
        "Subject", "Category", "Member", "Message", "Suggestion",
    ]

    CLASSIFICATION_HEADERS = [
        "Class", "Classification", "Checked Role", "Violations", "Bases",
    ]

    INSTANTIATION_HEADERS = [
        "Template", "Instantiations", "Threshold", "Exceeded",
        "Call Sites", "Signatures", "Suggestion",
    ]

    def __init__(self, output_file: str):
        """ライターを初期化する。

        Args:
            output_file: 出力ファイルのパス（.xlsx または .csv）
        """
        self.output_file = Path(output_file)

    def write(self, report: AnalysisReport) -> None:
        """レポートを書き出す。

        Args:
            report: 解析レポート

        Raises:
            ValueError: 未対応の拡張子の場合
        """
        suffix = self.output_file.suffix.lower()
        if suffix not in (".xlsx", ".csv"):
            raise ValueError(f"Unsupported output format: {suffix}")

        self.output_file.parent.mkdir(parents=True, exist_ok=True)

        if suffix == ".csv":
            self.write_csv(report)
        else:
            self.write_excel(report)

    @staticmethod
    def finding_row(finding: Finding) -> List:
        """1件の指摘を出力行に変換する。"""
        location = finding.location
        if isinstance(finding, InstantiationReport):
            signatures = "; ".join(
                "<" + ", ".join(s) + ">" for s in finding.sorted_signatures()
            )
            return [
                location.file_path, location.line, location.column,
                finding.severity.value, "InstantiationReport", "",
                finding.template_name, "", "",
                f"{finding.count} instantiations: {signatures}",
                finding.suggestion.value if finding.suggestion else "",
            ]

        return [
            location.file_path, location.line, location.column,
            finding.severity.value, finding.kind.value, finding.rule.code,
            finding.subject,
            finding.category.value if finding.category else "",
            finding.member.name if finding.member else "",
            finding.message,
            finding.suggestion.value if finding.suggestion else "",
        ]

    def write_csv(self, report: AnalysisReport) -> None:
        """指摘一覧をCSVで出力する。"""
        df = pd.DataFrame(
            [self.finding_row(f) for f in report.findings],
            columns=self.FINDING_HEADERS
        )
        df.to_csv(self.output_file, index=False, encoding="utf-8")
        logger.info(f"{len(df)} findings written to {self.output_file}")

    def write_excel(self, report: AnalysisReport) -> None:
        """全シートをExcelで出力する。"""
        wb = Workbook()

        ws = wb.active
        ws.title = "Findings"
        self._write_findings(ws, report.findings)

        self._write_classifications(wb.create_sheet("Classifications"), report)
        self._write_instantiations(
            wb.create_sheet("Instantiations"), report.instantiations
        )
        self._write_summary(wb.create_sheet("Summary"), report)

        wb.save(self.output_file)
        logger.info(f"Report written to {self.output_file}")

    def _thin_border(self) -> Border:
        return Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin")
        )

    def _fill(self, color: str) -> PatternFill:
        return PatternFill(start_color=color, end_color=color, fill_type="solid")

    def _add_headers(self, ws, headers: List[str]) -> None:
        """見出し行を書き込む。

        Args:
            ws: ワークシートオブジェクト
            headers: 見出しのリスト
        """
        white_font = Font(bold=True, color="FFFFFF")
        header_alignment = Alignment(horizontal="center", vertical="center")
        header_fill = self._fill("4472C4")
        thin_border = self._thin_border()

        for i, header in enumerate(headers, 1):
            cell = ws.cell(row=1, column=i)
            cell.value = header
            cell.font = white_font
            cell.alignment = header_alignment
            cell.fill = header_fill
            cell.border = thin_border

        ws.freeze_panes = "A2"

    def _adjust_column_widths(self, ws, widths: List[int]) -> None:
        for i, width in enumerate(widths, 1):
            col_letter = ws.cell(row=1, column=i).column_letter
            ws.column_dimensions[col_letter].width = width

    def _write_findings(self, ws, findings: List[Finding]) -> None:
        """指摘シートを書き込む。"""
        self._add_headers(ws, self.FINDING_HEADERS)
        thin_border = self._thin_border()
        severity_col = self.FINDING_HEADERS.index("Severity") + 1
        message_col = self.FINDING_HEADERS.index("Message") + 1

        for row_num, finding in enumerate(findings, 2):
            for col, value in enumerate(self.finding_row(finding), 1):
                cell = ws.cell(row=row_num, column=col)
                cell.value = value
                cell.border = thin_border

            cell_severity = ws.cell(row=row_num, column=severity_col)
            cell_severity.fill = self._fill(self.SEVERITY_COLORS[finding.severity])
            cell_severity.alignment = Alignment(horizontal="center")

            ws.cell(row=row_num, column=message_col).alignment = Alignment(
                wrap_text=True, vertical="top"
            )

        self._adjust_column_widths(ws, [30, 8, 8, 10, 20, 8, 25, 14, 20, 60, 30])

    def _write_classifications(self, ws, report: AnalysisReport) -> None:
        """分類シートを書き込む。"""
        self._add_headers(ws, self.CLASSIFICATION_HEADERS)
        thin_border = self._thin_border()

        for row_num, name in enumerate(sorted(report.classifications), 2):
            result = report.classifications[name]
            checked = result.checked_role
            bases = ", ".join(
                f"{base}={role.value if role else '?'}"
                for base, role in sorted(result.base_roles.items())
            )
            values = [
                name,
                result.classification.value,
                checked.value if checked else "",
                len(report.violations_for(name)),
                bases,
            ]
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row_num, column=col)
                cell.value = value
                cell.border = thin_border

            cell_classification = ws.cell(row=row_num, column=2)
            cell_classification.fill = self._fill(
                self.CLASSIFICATION_COLORS[result.classification]
            )
            cell_classification.alignment = Alignment(horizontal="center")

        self._adjust_column_widths(ws, [35, 16, 16, 12, 50])

    def _write_instantiations(
        self,
        ws,
        reports: List[InstantiationReport]
    ) -> None:
        """インスタンス化シートを書き込む。"""
        self._add_headers(ws, self.INSTANTIATION_HEADERS)
        thin_border = self._thin_border()

        for row_num, report in enumerate(reports, 2):
            values = [
                report.template_name,
                report.count,
                report.threshold,
                "yes" if report.exceeded else "no",
                report.call_site_count,
                "\n".join(
                    "<" + ", ".join(s) + ">" for s in report.sorted_signatures()
                ),
                report.suggestion.value if report.suggestion else "",
            ]
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row_num, column=col)
                cell.value = value
                cell.border = thin_border

            if report.exceeded:
                ws.cell(row=row_num, column=4).fill = self._fill(
                    self.SEVERITY_COLORS[Severity.ERROR]
                )
            ws.cell(row=row_num, column=6).alignment = Alignment(
                wrap_text=True, vertical="top"
            )

        self._adjust_column_widths(ws, [30, 14, 10, 10, 10, 50, 36])

    def _write_summary(
        self,
        ws,
        report: AnalysisReport,
        generated_at: Optional[datetime] = None
    ) -> None:
        """統計情報を含むサマリーシートを書き込む。

        Args:
            ws: ワークシートオブジェクト
            report: 解析レポート
            generated_at: 生成日時（省略時は現在時刻）
        """
        generated_at = generated_at or datetime.now()

        ws["A1"] = "解析結果サマリー"
        ws["A1"].font = Font(bold=True, size=14)
        ws.merge_cells("A1:C1")

        ws["A2"] = f"生成日時: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}"
        ws.merge_cells("A2:C2")

        header_font = Font(bold=True)
        thin_border = self._thin_border()

        counts = report.count_by_classification()
        total = len(report.classifications)

        row = 4
        for i, header in enumerate(["分類", "件数", "割合"], 1):
            cell = ws.cell(row=row, column=i)
            cell.value = header
            cell.font = header_font
            cell.border = thin_border
            cell.alignment = Alignment(horizontal="center")
        row += 1

        for classification, count in counts.items():
            cell_type = ws.cell(row=row, column=1)
            cell_type.value = classification.value
            cell_type.fill = self._fill(self.CLASSIFICATION_COLORS[classification])
            cell_type.border = thin_border

            cell_count = ws.cell(row=row, column=2)
            cell_count.value = count
            cell_count.alignment = Alignment(horizontal="right")
            cell_count.border = thin_border

            cell_pct = ws.cell(row=row, column=3)
            cell_pct.value = f"{count / total * 100:.1f}%" if total > 0 else "0%"
            cell_pct.alignment = Alignment(horizontal="right")
            cell_pct.border = thin_border
            row += 1

        cell_total_label = ws.cell(row=row, column=1)
        cell_total_label.value = "合計"
        cell_total_label.font = Font(bold=True)
        cell_total_label.border = thin_border

        cell_total_count = ws.cell(row=row, column=2)
        cell_total_count.value = total
        cell_total_count.font = Font(bold=True)
        cell_total_count.alignment = Alignment(horizontal="right")
        cell_total_count.border = thin_border
        row += 2

        # 重大度別の件数
        for i, header in enumerate(["重大度", "件数"], 1):
            cell = ws.cell(row=row, column=i)
            cell.value = header
            cell.font = header_font
            cell.border = thin_border
            cell.alignment = Alignment(horizontal="center")
        row += 1

        for severity in Severity:
            if severity == Severity.INFO:
                count = len(report.instantiations)
            else:
                count = report.count_by_severity(severity)
            cell_severity = ws.cell(row=row, column=1)
            cell_severity.value = severity.value
            cell_severity.fill = self._fill(self.SEVERITY_COLORS[severity])
            cell_severity.border = thin_border

            cell_count = ws.cell(row=row, column=2)
            cell_count.value = count
            cell_count.alignment = Alignment(horizontal="right")
            cell_count.border = thin_border
            row += 1

        ws.column_dimensions["A"].width = 18
        ws.column_dimensions["B"].width = 10
        ws.column_dimensions["C"].width = 10
