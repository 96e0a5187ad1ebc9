"""分類結果モデル。"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, TYPE_CHECKING
from enum import Enum

if TYPE_CHECKING:
    from .finding import Violation


class Classification(Enum):
    """クラス階層における構造上の役割。"""
    INTERFACE = "Interface"
    MIXIN = "Mixin"
    BASE_CLASS = "BaseClass"
    CONCRETE = "Concrete"
    NON_CONFORMING = "NonConforming"
    NOT_APPLICABLE = "NotApplicable"   # 階層に参加しない値型

    @property
    def is_role(self) -> bool:
        """Interface / Mixin / BaseClass のいずれかかどうか。"""
        return self in (
            Classification.INTERFACE,
            Classification.MIXIN,
            Classification.BASE_CLASS,
        )


@dataclass
class ClassificationResult:
    """1クラス分の分類結果。

    Attributes:
        class_name: 対象クラスの完全修飾名
        classification: 分類
        violations: 分類時に検出した予備的な違反
        nearest_role: NonConformingの場合に最も近かった役割
        base_roles: 直接基底クラス名から分類へのマッピング（未知の基底はNone）
        virtual_destructor: デストラクタが（暗黙を含め）virtualかどうか
        inherits_virtual_destructor: 直接基底のいずれかがvirtualデストラクタを持つかどうか
        structural_failure: 不正入力または循環継承で分類を打ち切ったかどうか
    """
    class_name: str
    classification: Classification
    violations: List["Violation"] = field(default_factory=list)
    nearest_role: Optional[Classification] = None
    base_roles: Dict[str, Optional[Classification]] = field(default_factory=dict)
    virtual_destructor: bool = False
    inherits_virtual_destructor: bool = False
    structural_failure: bool = False

    @property
    def checked_role(self) -> Optional[Classification]:
        """適合性検査で使用する役割を返す。

        NonConformingの場合は最も近い役割、それ以外は分類そのもの。
        """
        if self.classification == Classification.NON_CONFORMING:
            return self.nearest_role
        return self.classification

    def __str__(self) -> str:
        suffix = ""
        if self.nearest_role is not None:
            suffix = f" (nearest: {self.nearest_role.value})"
        return f"{self.class_name}: {self.classification.value}{suffix}"
