"""分類結果に対する適合性検査。"""

from typing import List
import logging

from ..models.classification import Classification, ClassificationResult
from ..models.declaration import ClassDeclaration
from ..models.finding import Violation
from .rules import ClassFacts, evaluate_rules

logger = logging.getLogger(__name__)


class ConformanceChecker:
    """分類された役割の全ルールを再評価する。

    分類に使った述語だけでなく役割の完全なルールセットを評価し、
    独立に失敗したルールごとにViolationを出力する。副作用はなく、
    同じ入力に対して常に同じ結果を返す。
    """

    def check(
        self,
        declaration: ClassDeclaration,
        result: ClassificationResult
    ) -> List[Violation]:
        """1クラスの適合性を検査する。

        Args:
            declaration: 対象クラス宣言
            result: 分類器による分類結果

        Returns:
            Violationのリスト（適合していれば空）
        """
        # 不正入力・循環継承は分類時の指摘をそのまま引き継ぐ
        if result.structural_failure:
            return list(result.violations)

        role = result.checked_role
        if role is None or role == Classification.NOT_APPLICABLE:
            return []

        facts = ClassFacts.build(
            declaration,
            result.base_roles,
            result.inherits_virtual_destructor,
        )
        violations = [
            failure.to_violation(declaration, role)
            for failure in evaluate_rules(role, facts)
        ]

        if violations:
            logger.debug(
                f"{declaration.name}: {len(violations)} violation(s) "
                f"against {role.value}"
            )
        return violations
