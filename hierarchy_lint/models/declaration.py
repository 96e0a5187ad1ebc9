"""クラス宣言の構造モデル。

外部パーサーが解決済みの宣言情報を、言語非依存の形で保持する。
振る舞いは持たず、判定に必要な述語ヘルパーのみを提供する。
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple
from enum import Enum
import os


class Visibility(Enum):
    """メンバーおよび継承のアクセス指定子。"""
    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"


class Virtuality(Enum):
    """メンバー関数の仮想性。"""
    NONE = "none"
    VIRTUAL = "virtual"
    PURE_VIRTUAL = "pure_virtual"


class MemberKind(Enum):
    """メンバー宣言の種別。"""
    DATA = "data"
    CONSTRUCTOR = "constructor"
    DESTRUCTOR = "destructor"
    COPY_ASSIGN = "copy_assign"
    MOVE_ASSIGN = "move_assign"
    METHOD = "method"


# コンストラクタ・デストラクタ・代入演算子
SPECIAL_KINDS = frozenset({
    MemberKind.CONSTRUCTOR,
    MemberKind.DESTRUCTOR,
    MemberKind.COPY_ASSIGN,
    MemberKind.MOVE_ASSIGN,
})

ASSIGN_KINDS = frozenset({MemberKind.COPY_ASSIGN, MemberKind.MOVE_ASSIGN})


@dataclass(frozen=True, order=True)
class SourceLocation:
    """ソースコードの位置情報。"""
    file_path: str
    line: int
    column: int = 0

    def __post_init__(self):
        # frozenなのでobject.__setattr__でパスを正規化
        if self.file_path:
            object.__setattr__(self, "file_path", os.path.normpath(self.file_path))

    @classmethod
    def unknown(cls) -> "SourceLocation":
        """位置不明を表すロケーションを返す。"""
        return cls(file_path="", line=0)

    def __str__(self) -> str:
        if not self.file_path:
            return "<unknown>"
        if self.column:
            return f"{self.file_path}:{self.line}:{self.column}"
        return f"{self.file_path}:{self.line}"


@dataclass(frozen=True)
class MemberDeclaration:
    """クラスメンバーの宣言。

    Attributes:
        name: メンバー名（デストラクタは "~Name" 形式）
        kind: メンバー種別
        visibility: アクセス指定子
        virtuality: 仮想性（データメンバーは常にNONE）
        is_noexcept: noexcept指定の有無
        is_defaulted: ``= default`` 指定の有無
        is_deleted: ``= delete`` 指定の有無
        is_implicit: コンパイラが暗黙に宣言したメンバーかどうか
        location: 宣言位置（不明な場合はNone）
    """
    name: str
    kind: MemberKind
    visibility: Visibility = Visibility.PRIVATE
    virtuality: Virtuality = Virtuality.NONE
    is_noexcept: bool = False
    is_defaulted: bool = False
    is_deleted: bool = False
    is_implicit: bool = False
    location: Optional[SourceLocation] = None

    @property
    def is_special(self) -> bool:
        """特殊メンバー関数かどうか。"""
        return self.kind in SPECIAL_KINDS

    @property
    def is_virtual(self) -> bool:
        """virtualまたは純粋仮想かどうか。"""
        return self.virtuality != Virtuality.NONE

    @property
    def is_pure_virtual(self) -> bool:
        return self.virtuality == Virtuality.PURE_VIRTUAL

    @property
    def is_public(self) -> bool:
        return self.visibility == Visibility.PUBLIC

    def describe(self) -> str:
        """メッセージ用の短い説明文字列を返す。"""
        implicit = "implicit " if self.is_implicit else ""
        return f"{implicit}{self.kind.value} '{self.name}'"

    def __str__(self) -> str:
        flags = [self.visibility.value]
        if self.virtuality != Virtuality.NONE:
            flags.append(self.virtuality.value)
        if self.is_noexcept:
            flags.append("noexcept")
        if self.is_defaulted:
            flags.append("=default")
        if self.is_deleted:
            flags.append("=delete")
        return f"{self.kind.value} {self.name} [{', '.join(flags)}]"


@dataclass(frozen=True)
class BaseSpecifier:
    """直接基底クラスの指定。"""
    name: str
    visibility: Visibility = Visibility.PUBLIC
    is_virtual: bool = False


@dataclass(frozen=True)
class ClassDeclaration:
    """クラス宣言。解析パス中は不変。

    Attributes:
        name: 完全修飾名
        members: 宣言順のメンバー
        bases: 直接基底クラス
        location: 宣言位置
    """
    name: str
    members: Tuple[MemberDeclaration, ...] = ()
    bases: Tuple[BaseSpecifier, ...] = ()
    location: SourceLocation = field(default_factory=SourceLocation.unknown)

    def __post_init__(self):
        # リストで渡された場合もタプルに固定する
        object.__setattr__(self, "members", tuple(self.members))
        object.__setattr__(self, "bases", tuple(self.bases))

    def members_of(self, *kinds: MemberKind) -> Tuple[MemberDeclaration, ...]:
        """指定種別のメンバーを宣言順で取得する。

        Args:
            kinds: 取得するメンバー種別

        Returns:
            該当メンバーのタプル
        """
        return tuple(m for m in self.members if m.kind in kinds)

    @property
    def data_members(self) -> Tuple[MemberDeclaration, ...]:
        return self.members_of(MemberKind.DATA)

    @property
    def constructors(self) -> Tuple[MemberDeclaration, ...]:
        return self.members_of(MemberKind.CONSTRUCTOR)

    @property
    def assignments(self) -> Tuple[MemberDeclaration, ...]:
        return self.members_of(*ASSIGN_KINDS)

    @property
    def methods(self) -> Tuple[MemberDeclaration, ...]:
        """特殊メンバー以外のメンバー関数。"""
        return self.members_of(MemberKind.METHOD)

    @property
    def destructor(self) -> Optional[MemberDeclaration]:
        """宣言されたデストラクタ（未宣言ならNone）。"""
        destructors = self.members_of(MemberKind.DESTRUCTOR)
        return destructors[0] if destructors else None

    @property
    def base_names(self) -> Tuple[str, ...]:
        return tuple(b.name for b in self.bases)

    def has_virtual(self) -> bool:
        """virtualまたは純粋仮想のメンバーを持つかどうか。"""
        return any(m.is_virtual for m in self.members)

    def short_name(self) -> str:
        """名前空間を除いたクラス名を返す。"""
        return self.name.rsplit("::", 1)[-1]

    def __str__(self) -> str:
        return f"{self.name} ({self.location})"
