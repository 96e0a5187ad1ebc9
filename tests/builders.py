"""テスト用のクラス宣言ビルダー。"""

from hierarchy_lint.models.declaration import (
    BaseSpecifier,
    ClassDeclaration,
    MemberDeclaration,
    MemberKind,
    SourceLocation,
    Virtuality,
    Visibility,
)

PUBLIC = Visibility.PUBLIC
PROTECTED = Visibility.PROTECTED
PRIVATE = Visibility.PRIVATE


def destructor(
    class_name: str,
    visibility: Visibility = PUBLIC,
    virtual: bool = True,
    noexcept: bool = True,
    defaulted: bool = True
) -> MemberDeclaration:
    return MemberDeclaration(
        name=f"~{class_name}",
        kind=MemberKind.DESTRUCTOR,
        visibility=visibility,
        virtuality=Virtuality.VIRTUAL if virtual else Virtuality.NONE,
        is_noexcept=noexcept,
        is_defaulted=defaulted,
    )


def constructor(
    class_name: str,
    visibility: Visibility = PROTECTED,
    noexcept: bool = True,
    defaulted: bool = True
) -> MemberDeclaration:
    return MemberDeclaration(
        name=class_name,
        kind=MemberKind.CONSTRUCTOR,
        visibility=visibility,
        is_noexcept=noexcept,
        is_defaulted=defaulted,
    )


def assignment(
    kind: MemberKind = MemberKind.COPY_ASSIGN,
    visibility: Visibility = PROTECTED,
    noexcept: bool = True,
    defaulted: bool = True
) -> MemberDeclaration:
    return MemberDeclaration(
        name="operator=",
        kind=kind,
        visibility=visibility,
        is_noexcept=noexcept,
        is_defaulted=defaulted,
    )


def method(
    name: str,
    visibility: Visibility = PUBLIC,
    virtuality: Virtuality = Virtuality.PURE_VIRTUAL
) -> MemberDeclaration:
    return MemberDeclaration(
        name=name,
        kind=MemberKind.METHOD,
        visibility=visibility,
        virtuality=virtuality,
    )


def data(name: str, visibility: Visibility = PRIVATE) -> MemberDeclaration:
    return MemberDeclaration(name=name, kind=MemberKind.DATA, visibility=visibility)


def declaration(name: str, *members, bases=(), line: int = 1) -> ClassDeclaration:
    """クラス宣言を作成する。basesは名前またはBaseSpecifierのシーケンス。"""
    return ClassDeclaration(
        name=name,
        members=tuple(members),
        bases=tuple(
            b if isinstance(b, BaseSpecifier) else BaseSpecifier(name=b)
            for b in bases
        ),
        location=SourceLocation("include/shapes.h", line),
    )


def interface(name: str, bases=(), line: int = 1, **dtor_options) -> ClassDeclaration:
    """規約どおりのInterfaceを作成する。"""
    return declaration(
        name,
        destructor(name, **dtor_options),
        constructor(name),
        method("draw"),
        bases=bases,
        line=line,
    )


def mixin(name: str, bases=(), line: int = 1) -> ClassDeclaration:
    """規約どおりのMixinを作成する。"""
    return declaration(
        name,
        destructor(name, visibility=PROTECTED, virtual=False),
        constructor(name),
        assignment(MemberKind.COPY_ASSIGN),
        assignment(MemberKind.MOVE_ASSIGN),
        method("log", virtuality=Virtuality.NONE),
        bases=bases,
        line=line,
    )


def base_class(name: str, bases=(), line: int = 1) -> ClassDeclaration:
    """規約どおりのBaseClassを作成する。"""
    return declaration(
        name,
        destructor(name, defaulted=False),
        constructor(name, defaulted=False, noexcept=False),
        method("area"),
        method("name", virtuality=Virtuality.VIRTUAL),
        data("id_", visibility=PROTECTED),
        bases=bases,
        line=line,
    )


def concrete(name: str, bases=(), line: int = 1) -> ClassDeclaration:
    """規約どおりのConcreteクラスを作成する。"""
    return declaration(
        name,
        destructor(name, defaulted=False),
        constructor(name, visibility=PUBLIC, defaulted=False, noexcept=False),
        method("area", virtuality=Virtuality.VIRTUAL),
        data("radius_"),
        bases=bases,
        line=line,
    )
