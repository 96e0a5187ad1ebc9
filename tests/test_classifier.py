"""クラス分類器のテスト。"""

import pytest

from hierarchy_lint.analyzer.classifier import Classifier, is_exempt
from hierarchy_lint.analyzer.conformance import ConformanceChecker
from hierarchy_lint.models.classification import Classification
from hierarchy_lint.models.declaration import (
    BaseSpecifier,
    MemberDeclaration,
    MemberKind,
    Virtuality,
)
from hierarchy_lint.models.finding import FindingKind, Rule

from builders import (
    PRIVATE,
    PROTECTED,
    PUBLIC,
    base_class,
    concrete,
    constructor,
    data,
    declaration,
    destructor,
    interface,
    method,
    mixin,
)


def classify_chain(*declarations):
    """基底から順に分類し、最後のクラスの結果を返す。"""
    classifier = Classifier()
    results = {}
    for decl in declarations:
        base_results = {b: results.get(b) for b in decl.base_names}
        results[decl.name] = classifier.classify(decl, base_results)
    return results


class TestInterface:
    """Interface判定のテスト。"""

    def test_interface_with_interface_base(self):
        """Interfaceを継承した規約どおりのInterface。"""
        results = classify_chain(
            interface("IDrawable"),
            interface("IShape", bases=["IDrawable"]),
        )
        result = results["IShape"]

        assert result.classification == Classification.INTERFACE
        assert result.violations == []
        assert result.base_roles == {"IDrawable": Classification.INTERFACE}
        assert result.virtual_destructor is True

        decl = interface("IShape", bases=["IDrawable"])
        assert ConformanceChecker().check(decl, result) == []

    def test_non_virtual_destructor_breaks_interface(self):
        """デストラクタが非virtualならInterface規則違反1件のみ。"""
        base = interface("IDrawable")
        decl = interface("IShape", bases=["IDrawable"], virtual=False)
        results = classify_chain(base, decl)
        result = results["IShape"]

        assert result.classification == Classification.NON_CONFORMING
        assert result.nearest_role == Classification.INTERFACE

        violations = ConformanceChecker().check(decl, result)
        assert len(violations) == 1
        assert violations[0].rule == Rule.INTERFACE_DESTRUCTOR_VIRTUAL
        assert violations[0].message.startswith("Interface destructor must be virtual")
        assert violations[0].category == Classification.INTERFACE
        assert violations[0].member.kind == MemberKind.DESTRUCTOR

    def test_protected_inheritance_reported_by_checker(self):
        """非public継承は分類には影響せず、適合性検査で報告される。"""
        base = interface("IDrawable")
        decl = interface(
            "IShape",
            bases=[BaseSpecifier("IDrawable", visibility=PROTECTED)],
        )
        result = classify_chain(base, decl)["IShape"]

        assert result.classification == Classification.INTERFACE
        rules = [v.rule for v in ConformanceChecker().check(decl, result)]
        assert rules == [Rule.INTERFACE_PUBLIC_INHERITANCE]

    @pytest.mark.parametrize("dtor", [
        destructor("IShape", defaulted=False),
        destructor("IShape", defaulted=False, noexcept=False),
        destructor("IShape", virtual=False, defaulted=False),
    ])
    def test_public_user_destructor_never_interface(self, dtor):
        """publicで非defaultのデストラクタと純粋仮想関数を持つクラスはInterfaceにならない。"""
        decl = declaration(
            "IShape",
            dtor,
            constructor("IShape"),
            method("draw"),
        )
        result = Classifier().classify(decl)

        assert result.classification != Classification.INTERFACE


class TestMixin:
    """Mixin判定のテスト。"""

    def test_mixin(self):
        """規約どおりのMixin。"""
        result = Classifier().classify(mixin("Loggable"))

        assert result.classification == Classification.MIXIN
        assert result.virtual_destructor is False

    def test_mixin_with_mixin_base(self):
        """Mixinを継承したMixin。"""
        results = classify_chain(
            mixin("Loggable"),
            mixin("Traceable", bases=["Loggable"]),
        )
        assert results["Traceable"].classification == Classification.MIXIN

    def test_mixin_with_interface_base_is_nonconforming(self):
        """Interfaceを継承したMixinは最も近いMixinの基底規則のみ違反する。"""
        decl = mixin("Loggable", bases=["IDrawable"])
        result = classify_chain(interface("IDrawable"), decl)["Loggable"]

        assert result.classification == Classification.NON_CONFORMING
        assert result.nearest_role == Classification.MIXIN
        assert [v.rule for v in result.violations] == [Rule.MIXIN_BASES]

    def test_virtual_method_reported_by_checker(self):
        """virtualメソッドを持つMixinは適合性検査で報告される。"""
        decl = declaration(
            "Loggable",
            destructor("Loggable", visibility=PROTECTED, virtual=False),
            constructor("Loggable"),
            method("log", virtuality=Virtuality.VIRTUAL),
        )
        result = Classifier().classify(decl)

        assert result.classification == Classification.MIXIN
        violations = ConformanceChecker().check(decl, result)
        assert [v.rule for v in violations] == [Rule.MIXIN_NO_VIRTUAL]
        assert violations[0].member.name == "log"


class TestBaseClass:
    """BaseClass判定のテスト。"""

    def test_base_class(self):
        """規約どおりのBaseClass。"""
        decl = base_class("Shape")
        result = Classifier().classify(decl)

        assert result.classification == Classification.BASE_CLASS
        assert ConformanceChecker().check(decl, result) == []

    def test_public_data_reported_by_checker(self):
        """publicデータメンバーは分類後の適合性検査で報告される。"""
        decl = declaration(
            "Shape",
            destructor("Shape", defaulted=False),
            constructor("Shape"),
            method("area"),
            data("color", visibility=PUBLIC),
        )
        result = Classifier().classify(decl)

        assert result.classification == Classification.BASE_CLASS
        violations = ConformanceChecker().check(decl, result)
        assert [v.rule for v in violations] == [Rule.BASE_CLASS_NO_PUBLIC_DATA]
        assert violations[0].member.name == "color"


class TestConcrete:
    """Concrete判定のテスト。"""

    def test_concrete(self):
        """publicな特殊メンバーを持つ具象クラス。"""
        result = Classifier().classify(concrete("Circle"))
        assert result.classification == Classification.CONCRETE

    def test_implicit_destructor_inherits_virtual(self):
        """デストラクタ未宣言の派生クラスは暗黙のvirtualデストラクタを持つ。"""
        derived = declaration(
            "Circle",
            method("draw", virtuality=Virtuality.VIRTUAL),
            bases=["IShape"],
        )
        result = classify_chain(interface("IShape"), derived)["Circle"]

        assert result.classification == Classification.CONCRETE
        assert result.inherits_virtual_destructor is True
        assert result.virtual_destructor is True

    def test_public_data_struct_is_concrete(self):
        """publicデータを持つ構造体は対象外にならない。"""
        decl = declaration(
            "Point",
            data("x", visibility=PUBLIC),
            data("y", visibility=PUBLIC),
        )
        result = Classifier().classify(decl)

        assert is_exempt(decl) is False
        assert result.classification == Classification.CONCRETE


class TestNotApplicable:
    """階層に参加しない値型のテスト。"""

    def test_private_only_value_type(self):
        """基底も仮想メンバーもなく全メンバーがprivateなら対象外。"""
        decl = declaration(
            "Token",
            data("text_"),
            data("kind_"),
            method("normalize", visibility=PRIVATE, virtuality=Virtuality.NONE),
        )
        result = Classifier().classify(decl)

        assert result.classification == Classification.NOT_APPLICABLE
        assert result.violations == []
        assert ConformanceChecker().check(decl, result) == []

    def test_empty_class(self):
        """メンバーのないクラスも対象外。"""
        result = Classifier().classify(declaration("Tag"))
        assert result.classification == Classification.NOT_APPLICABLE

    def test_protected_member_is_not_exempt(self):
        """protectedメンバーを持つクラスは対象外にならない。"""
        decl = declaration("Token", data("text_", visibility=PROTECTED))
        assert is_exempt(decl) is False


class TestNonConforming:
    """NonConforming判定と最近接の役割のテスト。"""

    def test_tie_resolves_to_interface(self):
        """失敗数が同じ場合はInterfaceを優先する。"""
        decl = interface("IShape", virtual=False)
        result = Classifier().classify(decl)

        # Interface、BaseClassともに1件の失敗
        assert result.classification == Classification.NON_CONFORMING
        assert result.nearest_role == Classification.INTERFACE
        assert result.checked_role == Classification.INTERFACE

    def test_unknown_base_cannot_be_interface(self):
        """解析単位外の基底はInterfaceとして扱わない。"""
        decl = interface("IShape", bases=["External"])
        result = Classifier().classify(decl, {"External": None})

        assert result.classification != Classification.INTERFACE
        assert result.base_roles == {"External": None}


class TestMalformedInput:
    """不正入力のテスト。"""

    def _single_violation(self, decl):
        result = Classifier().classify(decl)
        assert result.classification == Classification.NON_CONFORMING
        assert result.structural_failure is True
        assert len(result.violations) == 1
        violation = result.violations[0]
        assert violation.kind == FindingKind.MALFORMED_INPUT
        return violation

    def test_deleted_and_defaulted(self):
        """deleteかつdefaultのメンバー。"""
        member = MemberDeclaration(
            name="Widget",
            kind=MemberKind.CONSTRUCTOR,
            visibility=PUBLIC,
            is_defaulted=True,
            is_deleted=True,
        )
        violation = self._single_violation(declaration("Widget", member))
        assert violation.rule == Rule.MALFORMED_DELETED_AND_DEFAULTED
        assert violation.member == member

    def test_virtual_constructor(self):
        """virtualコンストラクタ。"""
        member = MemberDeclaration(
            name="Widget",
            kind=MemberKind.CONSTRUCTOR,
            virtuality=Virtuality.VIRTUAL,
        )
        violation = self._single_violation(declaration("Widget", member))
        assert violation.rule == Rule.MALFORMED_VIRTUAL_CONSTRUCTOR

    def test_virtual_data_member(self):
        """virtual指定のデータメンバー。"""
        member = MemberDeclaration(
            name="value_",
            kind=MemberKind.DATA,
            virtuality=Virtuality.VIRTUAL,
        )
        violation = self._single_violation(declaration("Widget", member))
        assert violation.rule == Rule.MALFORMED_DATA_MEMBER

    def test_two_destructors(self):
        """デストラクタが2つある。"""
        violation = self._single_violation(declaration(
            "Widget",
            destructor("Widget"),
            destructor("Widget", virtual=False),
        ))
        assert violation.rule == Rule.MALFORMED_MULTIPLE_DESTRUCTORS

    def test_duplicate_base(self):
        """同じ基底が2回指定されている。"""
        violation = self._single_violation(
            interface("IShape", bases=["IDrawable", "IDrawable"])
        )
        assert violation.rule == Rule.MALFORMED_DUPLICATE_BASE

    def test_checker_passes_structural_violations_through(self):
        """適合性検査は不正入力の指摘をそのまま返す。"""
        decl = declaration("Widget", destructor("Widget"), destructor("Widget"))
        result = Classifier().classify(decl)

        assert ConformanceChecker().check(decl, result) == result.violations
