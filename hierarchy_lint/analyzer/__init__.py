"""クラス階層の分類・適合性検査・インスタンス化解析モジュール。"""

from .classifier import Classifier, is_exempt
from .conformance import ConformanceChecker
from .instantiation import InstantiationAnalyzer, classify_bloat_shape, normalize_type
from .scheduler import ClassificationScheduler, find_cycle_members
from .engine import AnalysisEngine
from .validation import check_well_formed

__all__ = [
    "Classifier",
    "is_exempt",
    "ConformanceChecker",
    "InstantiationAnalyzer",
    "classify_bloat_shape",
    "normalize_type",
    "ClassificationScheduler",
    "find_cycle_members",
    "AnalysisEngine",
    "check_well_formed",
]
