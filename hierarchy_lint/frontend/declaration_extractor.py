"""libclangのASTから宣言モデルと呼び出し箇所を抽出する。"""

from typing import Iterable, List, Optional
import os
import logging

from ..models.callsite import CallSite
from ..models.declaration import (
    BaseSpecifier,
    ClassDeclaration,
    MemberDeclaration,
    MemberKind,
    SourceLocation,
    Virtuality,
    Visibility,
)
from ..models.report import AnalysisUnit
from .clang_analyzer import ClangAnalyzer

logger = logging.getLogger(__name__)


class DeclarationExtractor:
    """1ファイル分のTranslationUnitを走査して解析単位を構築する。

    対象はメインファイル内のクラス定義（前方宣言は除く）と、
    テンプレート引数を持つ関数呼び出し式のみ。インクルードされた
    ヘッダーの宣言は、そのヘッダー自体を入力に含めた場合に抽出される。
    """

    # クラス定義を表すカーソル種別
    CLASS_KINDS = {"CLASS_DECL", "STRUCT_DECL", "CLASS_TEMPLATE"}

    # 修飾名の構成要素になるスコープ
    SCOPE_KINDS = CLASS_KINDS | {"NAMESPACE"}

    # noexceptとみなす例外指定
    NOEXCEPT_SPECS = {"BASIC_NOEXCEPT", "COMPUTED_NOEXCEPT", "DYNAMIC_NONE", "NOTHROW"}

    def __init__(self, clang_analyzer: ClangAnalyzer):
        """抽出器を初期化する。

        Args:
            clang_analyzer: ClangAnalyzerインスタンス
        """
        self.analyzer = clang_analyzer
        self._ci = clang_analyzer.ci

    def extract_file(self, file_path: str) -> AnalysisUnit:
        """ソースファイルから解析単位を抽出する。

        Raises:
            ClangParseError: パースに失敗した場合
        """
        tu = self.analyzer.get_translation_unit(file_path)
        return self.extract_translation_unit(tu)

    def extract_files(self, file_paths: Iterable[str]) -> AnalysisUnit:
        """複数のソースファイルから解析単位を抽出して結合する。"""
        unit = AnalysisUnit()
        for file_path in file_paths:
            unit.extend(self.extract_file(file_path))
        logger.info(
            f"Extracted {len(unit.classes)} classes and "
            f"{len(unit.call_sites)} call sites"
        )
        return unit

    def extract_source(self, source_code: str, filename: str = "temp.cpp") -> AnalysisUnit:
        """文字列のソースコードから解析単位を抽出する。"""
        tu = self.analyzer.parse_string(source_code, filename)
        return self.extract_translation_unit(tu)

    def extract_translation_unit(self, tu) -> AnalysisUnit:
        """TranslationUnitを走査する。

        Args:
            tu: clang.cindex.TranslationUnit

        Returns:
            AnalysisUnit
        """
        unit = AnalysisUnit()
        main_file = os.path.normpath(tu.spelling)

        def traverse(node):
            # 他のファイルのノードをスキップ
            if node.location.file:
                if os.path.normpath(node.location.file.name) != main_file:
                    return

            kind = node.kind.name
            if kind in self.CLASS_KINDS and node.is_definition():
                unit.classes.append(self._to_class(node))
            elif kind == "CALL_EXPR":
                call_site = self._to_call_site(node)
                if call_site is not None:
                    unit.call_sites.append(call_site)

            for child in node.get_children():
                traverse(child)

        traverse(tu.cursor)

        logger.debug(
            f"{main_file}: {len(unit.classes)} classes, "
            f"{len(unit.call_sites)} call sites"
        )
        return unit

    def _qualified_name(self, cursor) -> str:
        """意味上の親をたどって修飾名を組み立てる。"""
        parts = []
        node = cursor
        while node is not None and node.kind.name in self.SCOPE_KINDS:
            if node.kind.name == "CLASS_TEMPLATE":
                name = node.spelling
            else:
                name = node.displayname or node.spelling
            # 無名名前空間は修飾名に含めない
            if name:
                parts.append(name)
            node = node.semantic_parent
        return "::".join(reversed(parts))

    @staticmethod
    def _location(cursor) -> SourceLocation:
        loc = cursor.location
        if loc.file is None:
            return SourceLocation.unknown()
        return SourceLocation(loc.file.name, loc.line, loc.column)

    @staticmethod
    def _visibility(cursor) -> Visibility:
        name = cursor.access_specifier.name
        if name == "PUBLIC":
            return Visibility.PUBLIC
        if name == "PROTECTED":
            return Visibility.PROTECTED
        return Visibility.PRIVATE

    def _to_class(self, cursor) -> ClassDeclaration:
        """クラス定義カーソルをClassDeclarationに変換する。"""
        members: List[MemberDeclaration] = []
        bases: List[BaseSpecifier] = []

        for child in cursor.get_children():
            kind = child.kind.name
            if kind == "CXX_BASE_SPECIFIER":
                bases.append(BaseSpecifier(
                    name=self._base_name(child),
                    visibility=self._visibility(child),
                    is_virtual=child.is_virtual_base(),
                ))
                continue

            member = self._to_member(child, cursor)
            if member is not None:
                members.append(member)

        return ClassDeclaration(
            name=self._qualified_name(cursor),
            members=tuple(members),
            bases=tuple(bases),
            location=self._location(cursor),
        )

    def _base_name(self, cursor) -> str:
        ref = cursor.referenced
        if ref is not None and ref.kind.name in self.CLASS_KINDS:
            return self._qualified_name(ref)
        spelling = cursor.type.spelling
        for prefix in ("class ", "struct "):
            if spelling.startswith(prefix):
                spelling = spelling[len(prefix):]
        return spelling

    def _to_member(self, cursor, owner) -> Optional[MemberDeclaration]:
        """メンバーカーソルをMemberDeclarationに変換する。

        対象外の子ノード（型エイリアス、入れ子クラス、アクセス指定など）
        ではNoneを返す。
        """
        kind = cursor.kind.name

        if kind == "FIELD_DECL":
            return MemberDeclaration(
                name=cursor.spelling,
                kind=MemberKind.DATA,
                visibility=self._visibility(cursor),
                location=self._location(cursor),
            )

        if kind == "CONSTRUCTOR":
            member_kind = MemberKind.CONSTRUCTOR
        elif kind == "DESTRUCTOR":
            member_kind = MemberKind.DESTRUCTOR
        elif kind == "CXX_METHOD":
            member_kind = self._method_kind(cursor, owner)
        elif kind == "FUNCTION_TEMPLATE":
            return MemberDeclaration(
                name=cursor.spelling,
                kind=MemberKind.METHOD,
                visibility=self._visibility(cursor),
                location=self._location(cursor),
            )
        else:
            return None

        if cursor.is_pure_virtual_method():
            virtuality = Virtuality.PURE_VIRTUAL
        elif kind != "CONSTRUCTOR" and cursor.is_virtual_method():
            virtuality = Virtuality.VIRTUAL
        else:
            virtuality = Virtuality.NONE

        is_defaulted = cursor.is_default_method()

        return MemberDeclaration(
            name=cursor.spelling,
            kind=member_kind,
            visibility=self._visibility(cursor),
            virtuality=virtuality,
            is_noexcept=self._is_noexcept(cursor, member_kind, is_defaulted),
            is_defaulted=is_defaulted,
            is_deleted=cursor.is_deleted_method(),
            location=self._location(cursor),
        )

    def _method_kind(self, cursor, owner) -> MemberKind:
        """代入演算子をコピー代入とムーブ代入に振り分ける。"""
        if cursor.spelling != "operator=":
            return MemberKind.METHOD

        arguments = list(cursor.get_arguments())
        if len(arguments) != 1:
            return MemberKind.METHOD

        param_type = arguments[0].type
        type_kind = param_type.kind.name
        owner_type = owner.type.get_canonical().spelling

        if type_kind == "RVALUEREFERENCE":
            target = param_type.get_pointee().get_canonical()
            if _unqualified(target.spelling) == owner_type:
                return MemberKind.MOVE_ASSIGN
            return MemberKind.METHOD

        if type_kind == "LVALUEREFERENCE":
            target = param_type.get_pointee().get_canonical()
        else:
            target = param_type.get_canonical()

        if _unqualified(target.spelling) == owner_type:
            return MemberKind.COPY_ASSIGN
        return MemberKind.METHOD

    def _is_noexcept(self, cursor, member_kind: MemberKind, is_defaulted: bool) -> bool:
        """例外指定からnoexceptかどうかを判定する。

        デストラクタは明示的な指定がなくても暗黙にnoexceptであり、
        defaultedメンバーの例外指定は使用されるまで評価されない。
        """
        spec = cursor.exception_specification_kind.name
        if spec in self.NOEXCEPT_SPECS:
            return True
        if member_kind == MemberKind.DESTRUCTOR and spec in ("NONE", "UNEVALUATED"):
            return True
        if is_defaulted and spec == "UNEVALUATED":
            return True
        return False

    def _to_call_site(self, cursor) -> Optional[CallSite]:
        """テンプレート関数の呼び出し式をCallSiteに変換する。"""
        ref = cursor.referenced
        if ref is None:
            return None

        count = ref.get_num_template_arguments()
        if count <= 0:
            return None

        arguments = []
        for i in range(count):
            if ref.get_template_argument_kind(i).name == "TYPE":
                arguments.append(ref.get_template_argument_type(i).spelling)
            else:
                arguments.append(str(ref.get_template_argument_value(i)))

        parent = ref.semantic_parent
        scope = self._qualified_name(parent) if parent is not None else ""
        name = f"{scope}::{ref.spelling}" if scope else ref.spelling

        return CallSite(
            template_name=name,
            argument_types=tuple(arguments),
            location=self._location(cursor),
        )


def _unqualified(spelling: str) -> str:
    """型綴りからconst/volatileを取り除く。"""
    words = [w for w in spelling.split(" ") if w not in ("const", "volatile")]
    return " ".join(words)
