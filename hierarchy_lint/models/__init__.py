"""宣言モデルと解析結果のデータモデル。"""

from .declaration import (
    BaseSpecifier,
    ClassDeclaration,
    MemberDeclaration,
    MemberKind,
    SourceLocation,
    Virtuality,
    Visibility,
)
from .callsite import CallSite
from .classification import Classification, ClassificationResult
from .finding import (
    FindingKind,
    InstantiationReport,
    Rule,
    Severity,
    Suggestion,
    Violation,
)
from .report import AnalysisReport, AnalysisUnit, Finding

__all__ = [
    "BaseSpecifier",
    "ClassDeclaration",
    "MemberDeclaration",
    "MemberKind",
    "SourceLocation",
    "Virtuality",
    "Visibility",
    "CallSite",
    "Classification",
    "ClassificationResult",
    "FindingKind",
    "InstantiationReport",
    "Rule",
    "Severity",
    "Suggestion",
    "Violation",
    "AnalysisReport",
    "AnalysisUnit",
    "Finding",
]
