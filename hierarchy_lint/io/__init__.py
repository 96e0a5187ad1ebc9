"""入出力モジュール。"""

from .unit_loader import InputFormatError, UnitLoader
from .callsite_reader import CallSiteReader
from .report_writer import ReportWriter

__all__ = ["InputFormatError", "UnitLoader", "CallSiteReader", "ReportWriter"]
