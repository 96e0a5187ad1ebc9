"""解析単位ドキュメントの入力スキーマ（pydantic）。

外部パーサーが出力するYAML/JSONの1レコードを検証し、
宣言モデルへ変換する。
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .callsite import CallSite
from .declaration import (
    BaseSpecifier,
    ClassDeclaration,
    MemberDeclaration,
    MemberKind,
    SourceLocation,
    Virtuality,
    Visibility,
)


def _normalize_token(value):
    """列挙値の表記ゆれ（大文字、ハイフン）を吸収する。"""
    if isinstance(value, str):
        return value.strip().lower().replace("-", "_")
    return value


class MemberSchema(BaseModel):
    """メンバー宣言レコード。"""

    model_config = ConfigDict(extra="forbid")

    name: str
    kind: MemberKind
    visibility: Visibility = Visibility.PRIVATE
    virtuality: Virtuality = Virtuality.NONE
    noexcept: bool = False
    defaulted: bool = False
    deleted: bool = False
    line: Optional[int] = Field(default=None, ge=1)
    column: int = Field(default=0, ge=0)

    @field_validator("kind", "visibility", "virtuality", mode="before")
    @classmethod
    def _normalize_enum(cls, value):
        return _normalize_token(value)

    def to_member(self, file_path: str) -> MemberDeclaration:
        """MemberDeclarationに変換する。

        Args:
            file_path: 所属クラスのファイルパス

        Returns:
            MemberDeclaration
        """
        location = None
        if self.line is not None:
            location = SourceLocation(file_path, self.line, self.column)

        return MemberDeclaration(
            name=self.name,
            kind=self.kind,
            visibility=self.visibility,
            virtuality=self.virtuality,
            is_noexcept=self.noexcept,
            is_defaulted=self.defaulted,
            is_deleted=self.deleted,
            location=location,
        )


class BaseSchema(BaseModel):
    """直接基底クラスレコード。"""

    model_config = ConfigDict(extra="forbid")

    name: str
    visibility: Visibility = Visibility.PUBLIC
    virtual: bool = False

    @field_validator("visibility", mode="before")
    @classmethod
    def _normalize_enum(cls, value):
        return _normalize_token(value)


class ClassSchema(BaseModel):
    """クラス宣言レコード。"""

    model_config = ConfigDict(extra="forbid")

    name: str
    file: str = ""
    line: int = Field(default=0, ge=0)
    column: int = Field(default=0, ge=0)
    members: List[MemberSchema] = Field(default_factory=list)
    bases: List[Union[BaseSchema, str]] = Field(default_factory=list)

    def to_declaration(self) -> ClassDeclaration:
        """ClassDeclarationに変換する。"""
        bases = []
        for base in self.bases:
            if isinstance(base, str):
                bases.append(BaseSpecifier(name=base))
            else:
                bases.append(BaseSpecifier(
                    name=base.name,
                    visibility=base.visibility,
                    is_virtual=base.virtual,
                ))

        return ClassDeclaration(
            name=self.name,
            members=tuple(m.to_member(self.file) for m in self.members),
            bases=tuple(bases),
            location=SourceLocation(self.file, self.line, self.column),
        )


class CallSiteSchema(BaseModel):
    """テンプレート呼び出しレコード。"""

    model_config = ConfigDict(extra="forbid")

    template: str
    arguments: List[str] = Field(default_factory=list)
    file: str = ""
    line: int = Field(default=0, ge=0)
    column: int = Field(default=0, ge=0)

    def to_call_site(self) -> CallSite:
        """CallSiteに変換する。"""
        return CallSite(
            template_name=self.template,
            argument_types=tuple(self.arguments),
            location=SourceLocation(self.file, self.line, self.column),
        )
