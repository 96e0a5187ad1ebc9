"""クラス宣言を構造上の役割に分類する。"""

from typing import Dict, List, Mapping, Optional
import logging

from ..models.classification import Classification, ClassificationResult
from ..models.declaration import ClassDeclaration, Visibility
from ..models.finding import Violation
from .rules import ClassFacts, RuleFailure, evaluate_rules
from .validation import check_well_formed

logger = logging.getLogger(__name__)


def is_exempt(declaration: ClassDeclaration) -> bool:
    """階層に参加しない値型かどうかを判定する。

    基底クラスも仮想メンバーも持たず、protectedメンバーがなく、
    データメンバーがすべてprivateのクラスは分類の対象外とする。

    Args:
        declaration: 判定するクラス宣言

    Returns:
        分類対象外の場合True
    """
    if declaration.bases or declaration.has_virtual():
        return False
    for member in declaration.members:
        if member.visibility == Visibility.PROTECTED:
            return False
    return all(
        m.visibility == Visibility.PRIVATE for m in declaration.data_members
    )


class Classifier:
    """Interface / Mixin / BaseClass / Concrete / NonConforming への分類器。

    基底クラスの分類が確定済みであることを前提とする（順序付けは
    スケジューラーの責務）。分類は宣言と基底の分類のみに依存する純粋関数。
    """

    # 先に一致したものを採用する
    ROLE_ORDER = (
        Classification.INTERFACE,
        Classification.MIXIN,
        Classification.BASE_CLASS,
    )

    def classify(
        self,
        declaration: ClassDeclaration,
        base_results: Optional[Mapping[str, Optional[ClassificationResult]]] = None
    ) -> ClassificationResult:
        """1クラスを分類する。

        Args:
            declaration: 分類するクラス宣言
            base_results: 直接基底クラス名から分類結果へのマッピング。
                解析単位に存在しない基底はNoneまたは未登録とする。

        Returns:
            ClassificationResult
        """
        base_results = base_results or {}
        base_roles: Dict[str, Optional[Classification]] = {}
        inherits_virtual = False
        for base in declaration.bases:
            base_result = base_results.get(base.name)
            if base_result is None:
                base_roles[base.name] = None
                continue
            base_roles[base.name] = base_result.classification
            inherits_virtual = inherits_virtual or base_result.virtual_destructor

        malformed = check_well_formed(declaration)
        if malformed:
            return ClassificationResult(
                class_name=declaration.name,
                classification=Classification.NON_CONFORMING,
                violations=malformed,
                base_roles=base_roles,
                inherits_virtual_destructor=inherits_virtual,
                structural_failure=True,
            )

        facts = ClassFacts.build(declaration, base_roles, inherits_virtual)

        def result(
            classification: Classification,
            violations: Optional[List[Violation]] = None,
            nearest: Optional[Classification] = None
        ) -> ClassificationResult:
            return ClassificationResult(
                class_name=declaration.name,
                classification=classification,
                violations=violations or [],
                nearest_role=nearest,
                base_roles=base_roles,
                virtual_destructor=facts.destructor.is_virtual,
                inherits_virtual_destructor=inherits_virtual,
            )

        if is_exempt(declaration):
            logger.debug(f"{declaration.name}: exempt value type")
            return result(Classification.NOT_APPLICABLE)

        failures_by_role: Dict[Classification, List[RuleFailure]] = {}
        for role in self.ROLE_ORDER:
            failures = evaluate_rules(role, facts, bucketing_only=True)
            if not failures:
                logger.debug(f"{declaration.name}: {role.value}")
                return result(role)
            failures_by_role[role] = failures

        if not evaluate_rules(Classification.CONCRETE, facts, bucketing_only=True):
            logger.debug(f"{declaration.name}: {Classification.CONCRETE.value}")
            return result(Classification.CONCRETE)

        # 失敗数が最少の役割を採用（同数ならROLE_ORDER順）
        nearest = min(self.ROLE_ORDER, key=lambda r: len(failures_by_role[r]))
        violations = [
            f.to_violation(declaration, nearest)
            for f in failures_by_role[nearest]
        ]
        logger.debug(
            f"{declaration.name}: NonConforming "
            f"(nearest {nearest.value}, {len(violations)} failed predicate(s))"
        )
        return result(Classification.NON_CONFORMING, violations, nearest)
