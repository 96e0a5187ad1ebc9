"""解析結果の指摘情報モデル。"""

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple
from enum import Enum

from .classification import Classification
from .declaration import MemberDeclaration, SourceLocation


class Severity(Enum):
    """指摘の重大度。"""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """並べ替え用の順位（小さいほど重大）。"""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


class FindingKind(Enum):
    """指摘の分類体系。"""
    MALFORMED_INPUT = "MalformedInput"
    INHERITANCE_CYCLE = "InheritanceCycle"
    RULE_VIOLATION = "RuleViolation"
    INSTANTIATION_BLOAT = "InstantiationBloat"


class Rule(Enum):
    """ルールカタログ。

    値は (ルールコード, 指摘種別, 説明文)。
    """
    # Interface
    INTERFACE_NO_DATA = (
        "HL101", FindingKind.RULE_VIOLATION,
        "Interface must not declare data members")
    INTERFACE_DESTRUCTOR_PUBLIC = (
        "HL102", FindingKind.RULE_VIOLATION,
        "Interface destructor must be public")
    INTERFACE_DESTRUCTOR_VIRTUAL = (
        "HL103", FindingKind.RULE_VIOLATION,
        "Interface destructor must be virtual")
    INTERFACE_DESTRUCTOR_NOEXCEPT = (
        "HL104", FindingKind.RULE_VIOLATION,
        "Interface destructor must be noexcept")
    INTERFACE_DESTRUCTOR_DEFAULTED = (
        "HL105", FindingKind.RULE_VIOLATION,
        "Interface destructor must be defaulted")
    INTERFACE_SPECIAL_PROTECTED = (
        "HL106", FindingKind.RULE_VIOLATION,
        "Interface constructors and assignment operators must be protected")
    INTERFACE_SPECIAL_NOEXCEPT = (
        "HL107", FindingKind.RULE_VIOLATION,
        "Interface constructors and assignment operators must be noexcept")
    INTERFACE_SPECIAL_DEFAULTED = (
        "HL108", FindingKind.RULE_VIOLATION,
        "Interface constructors and assignment operators must be defaulted")
    INTERFACE_METHODS_PUBLIC = (
        "HL109", FindingKind.RULE_VIOLATION,
        "Interface methods must be public")
    INTERFACE_METHODS_PURE = (
        "HL110", FindingKind.RULE_VIOLATION,
        "Interface methods must be pure virtual")
    INTERFACE_BASES = (
        "HL111", FindingKind.RULE_VIOLATION,
        "Interface bases must be Interfaces")
    INTERFACE_PUBLIC_INHERITANCE = (
        "HL112", FindingKind.RULE_VIOLATION,
        "Interface bases must be inherited publicly")

    # Mixin
    MIXIN_NO_DATA = (
        "HL201", FindingKind.RULE_VIOLATION,
        "Mixin must not declare data members")
    MIXIN_DESTRUCTOR_PROTECTED = (
        "HL202", FindingKind.RULE_VIOLATION,
        "Mixin destructor must be protected")
    MIXIN_DESTRUCTOR_NON_VIRTUAL = (
        "HL203", FindingKind.RULE_VIOLATION,
        "Mixin destructor must not be virtual")
    MIXIN_DESTRUCTOR_NOEXCEPT = (
        "HL204", FindingKind.RULE_VIOLATION,
        "Mixin destructor must be noexcept")
    MIXIN_DESTRUCTOR_DEFAULTED = (
        "HL205", FindingKind.RULE_VIOLATION,
        "Mixin destructor must be defaulted")
    MIXIN_CONSTRUCTORS_NON_PUBLIC = (
        "HL206", FindingKind.RULE_VIOLATION,
        "Mixin constructors must be protected or private")
    MIXIN_CONSTRUCTORS_NOEXCEPT = (
        "HL207", FindingKind.RULE_VIOLATION,
        "Mixin constructors must be noexcept")
    MIXIN_ASSIGN_PROTECTED = (
        "HL208", FindingKind.RULE_VIOLATION,
        "Mixin assignment operators must be protected")
    MIXIN_ASSIGN_NOEXCEPT = (
        "HL209", FindingKind.RULE_VIOLATION,
        "Mixin assignment operators must be noexcept")
    MIXIN_NO_PURE_VIRTUAL = (
        "HL210", FindingKind.RULE_VIOLATION,
        "Mixin must not declare pure-virtual methods")
    MIXIN_BASES = (
        "HL211", FindingKind.RULE_VIOLATION,
        "Mixin bases must be Mixins")
    MIXIN_NO_VIRTUAL = (
        "HL212", FindingKind.RULE_VIOLATION,
        "Mixin must not declare virtual methods")

    # BaseClass
    BASE_CLASS_HAS_PURE_VIRTUAL = (
        "HL301", FindingKind.RULE_VIOLATION,
        "Base class must declare at least one pure-virtual method")
    BASE_CLASS_DESTRUCTOR_PUBLIC = (
        "HL302", FindingKind.RULE_VIOLATION,
        "Base class destructor must be public")
    BASE_CLASS_DESTRUCTOR_VIRTUAL = (
        "HL303", FindingKind.RULE_VIOLATION,
        "Base class destructor must be virtual")
    BASE_CLASS_CONSTRUCTORS_NON_PUBLIC = (
        "HL304", FindingKind.RULE_VIOLATION,
        "Base class constructors must be protected or private")
    BASE_CLASS_ASSIGN_PROTECTED = (
        "HL305", FindingKind.RULE_VIOLATION,
        "Base class assignment operators must be protected")
    BASE_CLASS_NO_PUBLIC_DATA = (
        "HL306", FindingKind.RULE_VIOLATION,
        "Base class data members must not be public")

    # Concrete
    CONCRETE_NO_PURE_VIRTUAL = (
        "HL401", FindingKind.RULE_VIOLATION,
        "Concrete class must not declare pure-virtual methods")
    CONCRETE_PUBLIC_SURFACE = (
        "HL402", FindingKind.RULE_VIOLATION,
        "Concrete class must expose a public user-provided special member "
        "or public data")

    # 構造上の問題
    MALFORMED_DELETED_AND_DEFAULTED = (
        "HL901", FindingKind.MALFORMED_INPUT,
        "Member cannot be both deleted and defaulted")
    MALFORMED_VIRTUAL_CONSTRUCTOR = (
        "HL902", FindingKind.MALFORMED_INPUT,
        "Constructor cannot be virtual")
    MALFORMED_DATA_MEMBER = (
        "HL903", FindingKind.MALFORMED_INPUT,
        "Data member cannot carry function attributes")
    MALFORMED_MULTIPLE_DESTRUCTORS = (
        "HL904", FindingKind.MALFORMED_INPUT,
        "Class declares more than one destructor")
    MALFORMED_DUPLICATE_BASE = (
        "HL905", FindingKind.MALFORMED_INPUT,
        "Direct base class is listed more than once")
    MALFORMED_DUPLICATE_CLASS = (
        "HL906", FindingKind.MALFORMED_INPUT,
        "Class is declared more than once in the analysis unit")
    MALFORMED_PURE_VIRTUAL_BODY = (
        "HL907", FindingKind.MALFORMED_INPUT,
        "Pure-virtual member cannot be defaulted or deleted")
    MALFORMED_EMPTY_NAME = (
        "HL908", FindingKind.MALFORMED_INPUT,
        "Declaration has an empty name")
    MALFORMED_CALL_SITE = (
        "HL909", FindingKind.MALFORMED_INPUT,
        "Call site has an empty template name or argument type")
    MALFORMED_RECORD = (
        "HL910", FindingKind.MALFORMED_INPUT,
        "Input record could not be read")

    INHERITANCE_CYCLE = (
        "HL950", FindingKind.INHERITANCE_CYCLE,
        "Class participates in an inheritance cycle")

    INSTANTIATION_BLOAT = (
        "HL960", FindingKind.INSTANTIATION_BLOAT,
        "Template has too many distinct instantiations")

    def __init__(self, code: str, kind: FindingKind, description: str):
        self.code = code
        self.kind = kind
        self.description = description


class Suggestion(Enum):
    """テンプレート肥大化に対する推奨対策。"""
    POINTER_DECAY_OR_THREE_OVERLOAD = "pointer-decay or three-overload pattern"
    MOVE_COPY_PAIR = "move/copy overload pair"
    EXTRACT_COMMON_CODE = "extract non-templated common code"


@dataclass(frozen=True)
class Violation:
    """ルール違反の指摘。

    Attributes:
        subject: 対象のクラス名またはテンプレート名
        rule: 違反したルール
        message: 詳細メッセージ
        location: 指摘位置
        category: 検査に用いた分類（分類前の構造エラーではNone）
        member: 問題のメンバー（クラス全体に対する指摘ではNone）
        severity: 重大度（構造ルールは常にERROR）
        suggestion: 推奨対策（肥大化指摘のみ）
    """
    subject: str
    rule: Rule
    message: str
    location: SourceLocation
    category: Optional[Classification] = None
    member: Optional[MemberDeclaration] = None
    severity: Severity = Severity.ERROR
    suggestion: Optional[Suggestion] = None

    @property
    def kind(self) -> FindingKind:
        return self.rule.kind

    def sort_key(self) -> Tuple:
        """位置、重大度の順で並べるためのキー。"""
        return (self.location, self.severity.rank)

    def __str__(self) -> str:
        return (
            f"{self.location}: {self.severity.value} [{self.rule.code}] "
            f"{self.subject}: {self.message}"
        )


@dataclass(frozen=True)
class InstantiationReport:
    """テンプレート1件分のインスタンス化集計。

    Attributes:
        template_name: テンプレート名
        signatures: 観測された相異なる型シグネチャ
        count: 相異なるシグネチャ数
        exceeded: 閾値を超えたかどうか
        threshold: 判定に使用した閾値
        call_site_count: 集計した呼び出し箇所の数
        location: 最も若い呼び出し位置
        suggestion: 推奨対策（閾値超過時のみ）
    """
    template_name: str
    signatures: FrozenSet[Tuple[str, ...]]
    count: int
    exceeded: bool
    threshold: int
    call_site_count: int
    location: SourceLocation
    suggestion: Optional[Suggestion] = None

    @property
    def severity(self) -> Severity:
        return Severity.INFO

    def sorted_signatures(self) -> Tuple[Tuple[str, ...], ...]:
        """シグネチャを決定的な順序で返す。"""
        return tuple(sorted(self.signatures))

    def sort_key(self) -> Tuple:
        return (self.location, self.severity.rank)

    def __str__(self) -> str:
        state = "exceeded" if self.exceeded else "ok"
        return (
            f"{self.template_name}: {self.count} instantiations "
            f"(threshold {self.threshold}, {state})"
        )
