"""解析パス全体の出力モデル。"""

from dataclasses import dataclass, field
from typing import Dict, List, Union

from .callsite import CallSite
from .classification import Classification, ClassificationResult
from .declaration import ClassDeclaration
from .finding import InstantiationReport, Severity, Violation

Finding = Union[Violation, InstantiationReport]


@dataclass
class AnalysisUnit:
    """1回の解析パスの入力。

    Attributes:
        classes: クラス宣言の完全な集合
        call_sites: テンプレート呼び出し箇所の完全な集合
        load_violations: 読み込み段階で検出した不正入力
    """
    classes: List[ClassDeclaration] = field(default_factory=list)
    call_sites: List[CallSite] = field(default_factory=list)
    load_violations: List[Violation] = field(default_factory=list)

    def extend(self, other: "AnalysisUnit") -> None:
        """別の解析単位を結合する。"""
        self.classes.extend(other.classes)
        self.call_sites.extend(other.call_sites)
        self.load_violations.extend(other.load_violations)

    def is_empty(self) -> bool:
        return not (self.classes or self.call_sites or self.load_violations)


@dataclass
class AnalysisReport:
    """解析パスの出力。

    Attributes:
        findings: 位置・重大度順に整列済みの全指摘
        classifications: クラス名から分類結果へのマッピング
        instantiations: テンプレートごとの集計
    """
    findings: List[Finding] = field(default_factory=list)
    classifications: Dict[str, ClassificationResult] = field(default_factory=dict)
    instantiations: List[InstantiationReport] = field(default_factory=list)

    @property
    def violations(self) -> List[Violation]:
        return [f for f in self.findings if isinstance(f, Violation)]

    def violations_for(self, subject: str) -> List[Violation]:
        """指定クラス/テンプレートに対する違反を取得する。"""
        return [v for v in self.violations if v.subject == subject]

    def count_by_severity(self, severity: Severity) -> int:
        return sum(1 for v in self.violations if v.severity == severity)

    def has_errors(self) -> bool:
        return self.count_by_severity(Severity.ERROR) > 0

    def count_by_classification(self) -> Dict[Classification, int]:
        """分類ごとの件数（全分類を0で初期化）。"""
        counts = {c: 0 for c in Classification}
        for result in self.classifications.values():
            counts[result.classification] += 1
        return counts
