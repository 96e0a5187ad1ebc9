"""解析結果の統合モジュール。"""

from .aggregator import ReportAggregator

__all__ = ["ReportAggregator"]
