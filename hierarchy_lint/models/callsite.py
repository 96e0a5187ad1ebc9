"""テンプレート関数の呼び出し箇所モデル。"""

from dataclasses import dataclass, field
from typing import Tuple

from .declaration import SourceLocation


@dataclass(frozen=True)
class CallSite:
    """テンプレート関数の呼び出し箇所。

    Attributes:
        template_name: 関数テンプレート名（完全修飾名）
        argument_types: 実引数の型シグネチャ（宣言順）
        location: 呼び出し位置
    """
    template_name: str
    argument_types: Tuple[str, ...] = ()
    location: SourceLocation = field(default_factory=SourceLocation.unknown)

    def __post_init__(self):
        object.__setattr__(self, "argument_types", tuple(self.argument_types))

    def __str__(self) -> str:
        args = ", ".join(self.argument_types)
        return f"{self.template_name}<{args}> at {self.location}"
