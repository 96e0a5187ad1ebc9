"""分類・適合性検査・インスタンス化解析をまとめて実行する解析エンジン。"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple
import logging

from ..config import Config
from ..models.classification import Classification
from ..models.declaration import ClassDeclaration
from ..models.finding import Rule, Severity, Violation
from ..models.report import AnalysisReport, AnalysisUnit
from ..report.aggregator import ReportAggregator
from .classifier import Classifier
from .conformance import ConformanceChecker
from .instantiation import InstantiationAnalyzer
from .scheduler import ClassificationScheduler

logger = logging.getLogger(__name__)


@dataclass
class ProcessingStats:
    """処理統計情報。"""
    classes: int = 0
    call_sites: int = 0
    templates: int = 0
    flagged_templates: int = 0
    errors: int = 0
    warnings: int = 0
    by_classification: Dict[Classification, int] = field(default_factory=dict)


class AnalysisEngine:
    """1解析単位分の解析パスを実行する。

    設定の検証は解析開始前に行い、不正な場合はConfigurationErrorを送出する。
    それ以外の問題はすべて指摘として報告し、パスを中断しない。
    """

    def __init__(self, config: Config):
        """解析エンジンを初期化する。

        Args:
            config: アプリケーション設定

        Raises:
            ConfigurationError: 設定が不正な場合
        """
        config.ensure_valid()
        self.config = config
        self.stats = ProcessingStats()

        self._init_components()

    def _init_components(self) -> None:
        """すべてのコンポーネントを初期化する。"""
        self.classifier = Classifier()
        self.scheduler = ClassificationScheduler(
            classifier=self.classifier,
            max_workers=self.config.max_workers,
            treat_cycles_as_error=self.config.treat_cycles_as_error
        )
        self.checker = ConformanceChecker()
        self.instantiation_analyzer = InstantiationAnalyzer(
            bloat_threshold=self.config.bloat_threshold,
            max_workers=self.config.max_workers
        )
        self.aggregator = ReportAggregator()

        logger.debug("All components initialized")

    def run(self, unit: AnalysisUnit) -> AnalysisReport:
        """解析パスを実行する。

        Args:
            unit: 解析単位

        Returns:
            AnalysisReport
        """
        self.stats = ProcessingStats(
            classes=len(unit.classes),
            call_sites=len(unit.call_sites)
        )

        if unit.is_empty():
            logger.info("Analysis unit is empty; nothing to do")
            return AnalysisReport()

        logger.info(
            f"Analysis started: {len(unit.classes)} classes, "
            f"{len(unit.call_sites)} call sites"
        )

        declarations, duplicates = self._deduplicate(unit.classes)

        # 分類（基底クラス依存順）
        results = self.scheduler.run(declarations)

        # 適合性検査（入力順で決定的に並べる）
        conformance: List[Violation] = list(unit.load_violations) + duplicates
        for decl in declarations:
            conformance.extend(self.checker.check(decl, results[decl.name]))

        # テンプレートのインスタンス化解析
        reports, instantiation_violations = self.instantiation_analyzer.analyze(
            unit.call_sites
        )

        findings = self.aggregator.merge(
            conformance,
            list(instantiation_violations) + list(reports)
        )

        report = AnalysisReport(
            findings=findings,
            classifications=results,
            instantiations=reports
        )

        self.stats.templates = len(reports)
        self.stats.flagged_templates = sum(1 for r in reports if r.exceeded)
        self.stats.errors = report.count_by_severity(Severity.ERROR)
        self.stats.warnings = report.count_by_severity(Severity.WARNING)
        self.stats.by_classification = report.count_by_classification()
        self._log_statistics()

        return report

    def _deduplicate(
        self,
        classes: List[ClassDeclaration]
    ) -> Tuple[List[ClassDeclaration], List[Violation]]:
        """同名のクラス宣言を検出する。

        最初の宣言のみを解析し、以降の宣言は不正入力として報告する。

        Returns:
            (解析対象の宣言, 重複の指摘) のタプル
        """
        seen: Dict[str, ClassDeclaration] = {}
        duplicates: List[Violation] = []

        for decl in classes:
            first = seen.get(decl.name)
            if first is None:
                seen[decl.name] = decl
                continue
            duplicates.append(Violation(
                subject=decl.name,
                rule=Rule.MALFORMED_DUPLICATE_CLASS,
                message=(
                    f"{Rule.MALFORMED_DUPLICATE_CLASS.description}: "
                    f"first declared at {first.location}"
                ),
                location=decl.location,
            ))

        if duplicates:
            logger.warning(f"{len(duplicates)} duplicate class declaration(s)")

        return list(seen.values()), duplicates

    def _log_statistics(self) -> None:
        """処理統計をログ出力する。"""
        logger.info("=" * 50)
        logger.info("Analysis Statistics:")
        logger.info(f"  Classes: {self.stats.classes}")
        for classification, count in self.stats.by_classification.items():
            logger.info(f"    {classification.value}: {count}")
        logger.info(f"  Call sites: {self.stats.call_sites}")
        logger.info(
            f"  Templates: {self.stats.templates} "
            f"({self.stats.flagged_templates} flagged)"
        )
        logger.info(f"  Errors: {self.stats.errors}")
        logger.info(f"  Warnings: {self.stats.warnings}")
        logger.info("=" * 50)
