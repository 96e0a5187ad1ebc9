"""宣言モデル自体の構造的な前提を検査する。"""

from typing import List, Optional, Set
import logging

from ..models.declaration import ClassDeclaration, MemberDeclaration, MemberKind
from ..models.finding import Rule, Violation

logger = logging.getLogger(__name__)


def _malformed(
    declaration: ClassDeclaration,
    rule: Rule,
    detail: str,
    member: Optional[MemberDeclaration] = None
) -> Violation:
    location = declaration.location
    if member is not None and member.location is not None:
        location = member.location
    return Violation(
        subject=declaration.name or "<anonymous>",
        rule=rule,
        message=f"{rule.description}: {detail}",
        location=location,
        member=member,
    )


def check_well_formed(declaration: ClassDeclaration) -> List[Violation]:
    """クラス宣言が宣言モデルの前提を満たすかを検査する。

    1件でも違反があれば、そのクラスの分類は打ち切られる。

    Args:
        declaration: 検査するクラス宣言

    Returns:
        MalformedInput違反のリスト（正常なら空）
    """
    violations: List[Violation] = []

    if not declaration.name.strip():
        violations.append(_malformed(declaration, Rule.MALFORMED_EMPTY_NAME, "class"))

    destructor_count = 0
    for member in declaration.members:
        if not member.name.strip():
            violations.append(_malformed(
                declaration, Rule.MALFORMED_EMPTY_NAME,
                f"{member.kind.value} member", member
            ))

        if member.is_deleted and member.is_defaulted:
            violations.append(_malformed(
                declaration, Rule.MALFORMED_DELETED_AND_DEFAULTED,
                member.describe(), member
            ))

        if member.kind == MemberKind.CONSTRUCTOR and member.is_virtual:
            violations.append(_malformed(
                declaration, Rule.MALFORMED_VIRTUAL_CONSTRUCTOR,
                member.describe(), member
            ))

        if member.kind == MemberKind.DATA and (
            member.is_virtual or member.is_noexcept
            or member.is_defaulted or member.is_deleted
        ):
            violations.append(_malformed(
                declaration, Rule.MALFORMED_DATA_MEMBER, str(member), member
            ))

        if member.is_pure_virtual and (member.is_defaulted or member.is_deleted):
            violations.append(_malformed(
                declaration, Rule.MALFORMED_PURE_VIRTUAL_BODY,
                member.describe(), member
            ))

        if member.kind == MemberKind.DESTRUCTOR:
            destructor_count += 1

    if destructor_count > 1:
        violations.append(_malformed(
            declaration, Rule.MALFORMED_MULTIPLE_DESTRUCTORS,
            f"{destructor_count} destructors"
        ))

    seen: Set[str] = set()
    for base in declaration.bases:
        if not base.name.strip():
            violations.append(_malformed(
                declaration, Rule.MALFORMED_EMPTY_NAME, "base class"
            ))
        elif base.name in seen:
            violations.append(_malformed(
                declaration, Rule.MALFORMED_DUPLICATE_BASE, base.name
            ))
        seen.add(base.name)

    if violations:
        logger.debug(
            f"Malformed declaration {declaration.name!r}: "
            f"{len(violations)} problem(s)"
        )

    return violations
