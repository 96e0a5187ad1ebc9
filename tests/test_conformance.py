"""適合性検査のテスト。"""

from hierarchy_lint.analyzer.classifier import Classifier
from hierarchy_lint.analyzer.conformance import ConformanceChecker
from hierarchy_lint.models.classification import Classification, ClassificationResult
from hierarchy_lint.models.declaration import MemberKind, Virtuality
from hierarchy_lint.models.finding import FindingKind, Rule, Severity

from builders import (
    PROTECTED,
    PUBLIC,
    assignment,
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


class TestIdempotence:
    """同じ入力に対して同じ結果を返すことのテスト。"""

    def test_repeated_runs_yield_identical_violations(self):
        """分類と検査を2回実行しても指摘は同一。"""
        declarations = [
            interface("IShape"),
            interface("IBroken", virtual=False),
            mixin("Loggable"),
            base_class("Shape"),
            concrete("Circle"),
            declaration("Odd", data("x", visibility=PROTECTED), method("f")),
        ]

        def run():
            classifier = Classifier()
            checker = ConformanceChecker()
            violations = []
            for decl in declarations:
                result = classifier.classify(decl)
                violations.extend(checker.check(decl, result))
            return violations

        first = run()
        second = run()

        assert first == second
        assert len(first) > 0

    def test_check_does_not_modify_result(self):
        """検査は分類結果を変更しない。"""
        decl = interface("IShape", virtual=False)
        result = Classifier().classify(decl)
        before = list(result.violations)

        checker = ConformanceChecker()
        checker.check(decl, result)
        checker.check(decl, result)

        assert result.violations == before


class TestFullRuleSet:
    """役割の完全なルールセットの再評価テスト。"""

    def test_one_violation_per_failing_rule(self):
        """独立に失敗したルールごとに1件ずつ報告する。"""
        decl = declaration(
            "IShape",
            destructor("IShape", virtual=False),
            constructor("IShape", visibility=PUBLIC),
            method("draw"),
        )
        result = Classifier().classify(decl)
        assert result.classification == Classification.NON_CONFORMING
        assert result.nearest_role == Classification.INTERFACE

        violations = ConformanceChecker().check(decl, result)
        rules = [v.rule for v in violations]

        assert rules == [
            Rule.INTERFACE_DESTRUCTOR_VIRTUAL,
            Rule.INTERFACE_SPECIAL_PROTECTED,
        ]
        assert all(v.kind == FindingKind.RULE_VIOLATION for v in violations)
        assert all(v.severity == Severity.ERROR for v in violations)
        assert all(v.category == Classification.INTERFACE for v in violations)

    def test_offending_members_named_in_message(self):
        """違反メンバーがメッセージに含まれる。"""
        decl = declaration(
            "Loggable",
            destructor("Loggable", visibility=PROTECTED, virtual=False),
            constructor("Loggable"),
            assignment(MemberKind.COPY_ASSIGN, visibility=PUBLIC),
            method("log", virtuality=Virtuality.NONE),
        )
        result = Classifier().classify(decl)
        assert result.nearest_role == Classification.MIXIN

        violations = ConformanceChecker().check(decl, result)
        assert [v.rule for v in violations] == [Rule.MIXIN_ASSIGN_PROTECTED]
        assert "copy_assign 'operator='" in violations[0].message

    def test_implicit_constructor_reported(self):
        """暗黙のデフォルトコンストラクタも検査対象。"""
        decl = declaration(
            "IShape",
            destructor("IShape"),
            method("draw"),
        )
        result = Classifier().classify(decl)
        assert result.nearest_role == Classification.BASE_CLASS

        violations = ConformanceChecker().check(decl, result)
        assert [v.rule for v in violations] == [
            Rule.BASE_CLASS_CONSTRUCTORS_NON_PUBLIC
        ]
        assert violations[0].member.is_implicit is True
        # 暗黙メンバーは位置を持たないためクラスの位置を使う
        assert violations[0].location == decl.location

    def test_result_without_role_yields_nothing(self):
        """役割を持たない結果には指摘を出さない。"""
        decl = declaration("Tag")
        result = ClassificationResult(
            class_name="Tag",
            classification=Classification.NOT_APPLICABLE,
        )
        assert ConformanceChecker().check(decl, result) == []
