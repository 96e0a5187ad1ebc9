"""役割ごとのルール述語テーブル。

分類器は ``bucketing=True`` の述語のみで役割を決定し、
適合性検査器は全述語を再評価する。
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..models.classification import Classification
from ..models.declaration import (
    ClassDeclaration,
    MemberDeclaration,
    MemberKind,
    Virtuality,
    Visibility,
)
from ..models.finding import Rule, Violation


@dataclass(frozen=True)
class ClassFacts:
    """判定対象クラスの実効的な構造情報。

    宣言されていないデストラクタ・コンストラクタは暗黙メンバーとして補う。

    Attributes:
        declaration: 元のクラス宣言
        destructor: 宣言済みまたは暗黙のデストラクタ
        constructors: 宣言済みまたは暗黙のデフォルトコンストラクタ
        base_roles: 直接基底クラス名から分類へのマッピング（未知の基底はNone）
    """
    declaration: ClassDeclaration
    destructor: MemberDeclaration
    constructors: Tuple[MemberDeclaration, ...]
    base_roles: Mapping[str, Optional[Classification]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        declaration: ClassDeclaration,
        base_roles: Mapping[str, Optional[Classification]],
        inherits_virtual_destructor: bool = False
    ) -> "ClassFacts":
        """宣言と基底クラス情報から構造情報を組み立てる。

        Args:
            declaration: クラス宣言
            base_roles: 直接基底クラスの分類
            inherits_virtual_destructor: 基底がvirtualデストラクタを持つか

        Returns:
            ClassFactsインスタンス
        """
        short_name = declaration.short_name()

        destructor = declaration.destructor
        if destructor is None:
            destructor = MemberDeclaration(
                name=f"~{short_name}",
                kind=MemberKind.DESTRUCTOR,
                visibility=Visibility.PUBLIC,
                virtuality=(
                    Virtuality.VIRTUAL if inherits_virtual_destructor
                    else Virtuality.NONE
                ),
                is_noexcept=True,
                is_implicit=True,
            )

        constructors = declaration.constructors
        if not constructors:
            constructors = (MemberDeclaration(
                name=short_name,
                kind=MemberKind.CONSTRUCTOR,
                visibility=Visibility.PUBLIC,
                is_noexcept=True,
                is_implicit=True,
            ),)

        return cls(
            declaration=declaration,
            destructor=destructor,
            constructors=constructors,
            base_roles=dict(base_roles),
        )

    @property
    def data_members(self) -> Tuple[MemberDeclaration, ...]:
        return self.declaration.data_members

    @property
    def assignments(self) -> Tuple[MemberDeclaration, ...]:
        return self.declaration.assignments

    @property
    def methods(self) -> Tuple[MemberDeclaration, ...]:
        return self.declaration.methods

    @property
    def special_members(self) -> Tuple[MemberDeclaration, ...]:
        """暗黙メンバーを含む特殊メンバー関数。"""
        return (self.destructor,) + self.constructors + self.assignments

    @property
    def all_members(self) -> Tuple[MemberDeclaration, ...]:
        return self.special_members + self.methods + self.data_members


@dataclass(frozen=True)
class RuleFailure:
    """述語1件分の失敗。"""
    rule: Rule
    offenders: Tuple[MemberDeclaration, ...] = ()
    detail: str = ""

    def to_violation(
        self,
        declaration: ClassDeclaration,
        category: Optional[Classification]
    ) -> Violation:
        """Violationに変換する。

        Args:
            declaration: 対象クラス
            category: 検査に用いた分類

        Returns:
            Violationインスタンス
        """
        member = self.offenders[0] if self.offenders else None
        location = declaration.location
        if member is not None and member.location is not None:
            location = member.location

        message = self.rule.description
        if self.offenders:
            message += ": " + ", ".join(m.describe() for m in self.offenders)
        if self.detail:
            message += f" ({self.detail})"

        return Violation(
            subject=declaration.name,
            rule=self.rule,
            message=message,
            location=location,
            category=category,
            member=member,
        )


Predicate = Callable[[MemberDeclaration], bool]
Evaluator = Callable[[ClassFacts], Optional[RuleFailure]]


@dataclass(frozen=True)
class RuleCheck:
    """ルールと評価関数の組。"""
    rule: Rule
    evaluate: Evaluator
    bucketing: bool = True


def _each(
    rule: Rule,
    members: Callable[[ClassFacts], Sequence[MemberDeclaration]],
    predicate: Predicate,
    bucketing: bool = True
) -> RuleCheck:
    """対象メンバーのすべてが述語を満たすことを要求するルール。"""
    def evaluate(facts: ClassFacts) -> Optional[RuleFailure]:
        offenders = tuple(m for m in members(facts) if not predicate(m))
        return RuleFailure(rule, offenders) if offenders else None

    return RuleCheck(rule, evaluate, bucketing)


def _bases_are(role: Classification, rule: Rule) -> RuleCheck:
    """直接基底がすべて指定の役割であることを要求するルール。"""
    def evaluate(facts: ClassFacts) -> Optional[RuleFailure]:
        wrong = []
        for name, base_role in facts.base_roles.items():
            if base_role != role:
                actual = base_role.value if base_role else "unresolved"
                wrong.append(f"{name} is {actual}")
        if wrong:
            return RuleFailure(rule, detail="; ".join(wrong))
        return None

    return RuleCheck(rule, evaluate)


def _public_inheritance(rule: Rule) -> RuleCheck:
    def evaluate(facts: ClassFacts) -> Optional[RuleFailure]:
        wrong = [
            f"{b.name} is {b.visibility.value}"
            for b in facts.declaration.bases
            if b.visibility != Visibility.PUBLIC
        ]
        if wrong:
            return RuleFailure(rule, detail="; ".join(wrong))
        return None

    return RuleCheck(rule, evaluate, bucketing=False)


def _destructor(facts: ClassFacts) -> Tuple[MemberDeclaration, ...]:
    return (facts.destructor,)


def _constructors(facts: ClassFacts) -> Tuple[MemberDeclaration, ...]:
    return facts.constructors


def _ctors_and_assignments(facts: ClassFacts) -> Tuple[MemberDeclaration, ...]:
    return facts.constructors + facts.assignments


def _assignments(facts: ClassFacts) -> Tuple[MemberDeclaration, ...]:
    return facts.assignments


def _methods(facts: ClassFacts) -> Tuple[MemberDeclaration, ...]:
    return facts.methods


def _data(facts: ClassFacts) -> Tuple[MemberDeclaration, ...]:
    return facts.data_members


def _all(facts: ClassFacts) -> Tuple[MemberDeclaration, ...]:
    return facts.all_members


def _is_protected(m: MemberDeclaration) -> bool:
    return m.visibility == Visibility.PROTECTED


def _has_pure_virtual(facts: ClassFacts) -> Optional[RuleFailure]:
    if any(m.is_pure_virtual for m in facts.all_members):
        return None
    return RuleFailure(Rule.BASE_CLASS_HAS_PURE_VIRTUAL)


def _has_public_surface(facts: ClassFacts) -> Optional[RuleFailure]:
    for member in facts.special_members:
        if member.is_public and not member.is_defaulted and not member.is_deleted:
            return None
    if any(m.is_public for m in facts.data_members):
        return None
    return RuleFailure(Rule.CONCRETE_PUBLIC_SURFACE)


RULE_SETS: Dict[Classification, Tuple[RuleCheck, ...]] = {
    Classification.INTERFACE: (
        _each(Rule.INTERFACE_NO_DATA, _data, lambda m: False),
        _each(Rule.INTERFACE_DESTRUCTOR_PUBLIC, _destructor, lambda m: m.is_public),
        _each(Rule.INTERFACE_DESTRUCTOR_VIRTUAL, _destructor, lambda m: m.is_virtual),
        _each(Rule.INTERFACE_DESTRUCTOR_NOEXCEPT, _destructor, lambda m: m.is_noexcept),
        _each(Rule.INTERFACE_DESTRUCTOR_DEFAULTED, _destructor, lambda m: m.is_defaulted),
        _each(Rule.INTERFACE_SPECIAL_PROTECTED, _ctors_and_assignments, _is_protected),
        _each(Rule.INTERFACE_SPECIAL_NOEXCEPT, _ctors_and_assignments,
              lambda m: m.is_noexcept),
        _each(Rule.INTERFACE_SPECIAL_DEFAULTED, _ctors_and_assignments,
              lambda m: m.is_defaulted),
        _each(Rule.INTERFACE_METHODS_PUBLIC, _methods, lambda m: m.is_public),
        _each(Rule.INTERFACE_METHODS_PURE, _methods, lambda m: m.is_pure_virtual),
        _bases_are(Classification.INTERFACE, Rule.INTERFACE_BASES),
        _public_inheritance(Rule.INTERFACE_PUBLIC_INHERITANCE),
    ),
    Classification.MIXIN: (
        _each(Rule.MIXIN_NO_DATA, _data, lambda m: False),
        _each(Rule.MIXIN_DESTRUCTOR_PROTECTED, _destructor, _is_protected),
        _each(Rule.MIXIN_DESTRUCTOR_NON_VIRTUAL, _destructor, lambda m: not m.is_virtual),
        _each(Rule.MIXIN_DESTRUCTOR_NOEXCEPT, _destructor, lambda m: m.is_noexcept),
        _each(Rule.MIXIN_DESTRUCTOR_DEFAULTED, _destructor, lambda m: m.is_defaulted),
        _each(Rule.MIXIN_CONSTRUCTORS_NON_PUBLIC, _constructors,
              lambda m: not m.is_public),
        _each(Rule.MIXIN_CONSTRUCTORS_NOEXCEPT, _constructors, lambda m: m.is_noexcept),
        _each(Rule.MIXIN_ASSIGN_PROTECTED, _assignments, _is_protected),
        _each(Rule.MIXIN_ASSIGN_NOEXCEPT, _assignments, lambda m: m.is_noexcept),
        _each(Rule.MIXIN_NO_PURE_VIRTUAL, _all, lambda m: not m.is_pure_virtual),
        _bases_are(Classification.MIXIN, Rule.MIXIN_BASES),
        _each(Rule.MIXIN_NO_VIRTUAL, _methods, lambda m: not m.is_virtual,
              bucketing=False),
    ),
    Classification.BASE_CLASS: (
        RuleCheck(Rule.BASE_CLASS_HAS_PURE_VIRTUAL, _has_pure_virtual),
        _each(Rule.BASE_CLASS_DESTRUCTOR_PUBLIC, _destructor, lambda m: m.is_public),
        _each(Rule.BASE_CLASS_DESTRUCTOR_VIRTUAL, _destructor, lambda m: m.is_virtual),
        _each(Rule.BASE_CLASS_CONSTRUCTORS_NON_PUBLIC, _constructors,
              lambda m: not m.is_public),
        _each(Rule.BASE_CLASS_ASSIGN_PROTECTED, _assignments, _is_protected),
        _each(Rule.BASE_CLASS_NO_PUBLIC_DATA, _data, lambda m: not m.is_public,
              bucketing=False),
    ),
    Classification.CONCRETE: (
        _each(Rule.CONCRETE_NO_PURE_VIRTUAL, _all, lambda m: not m.is_pure_virtual),
        RuleCheck(Rule.CONCRETE_PUBLIC_SURFACE, _has_public_surface),
    ),
}


def evaluate_rules(
    role: Classification,
    facts: ClassFacts,
    bucketing_only: bool = False
) -> List[RuleFailure]:
    """役割のルールセットを評価し、失敗した述語をすべて返す。

    Args:
        role: 評価する役割
        facts: 対象クラスの構造情報
        bucketing_only: 分類用の述語のみを評価するかどうか

    Returns:
        失敗した述語のリスト（テーブル順）
    """
    failures = []
    for check in RULE_SETS.get(role, ()):
        if bucketing_only and not check.bucketing:
            continue
        failure = check.evaluate(facts)
        if failure is not None:
            failures.append(failure)
    return failures
