"""適合性検査とインスタンス化解析の指摘を1つの順序付き結果に統合する。"""

from typing import Iterable, List

from ..models.report import Finding


class ReportAggregator:
    """すべての指摘を位置・重大度の順に並べる。

    安定ソートのため、同じ位置・重大度の指摘は入力順を保つ。
    指摘を落とすことはない。
    """

    def merge(
        self,
        conformance: Iterable[Finding],
        instantiation: Iterable[Finding]
    ) -> List[Finding]:
        """2つの指摘列を統合する。

        Args:
            conformance: 適合性検査の指摘
            instantiation: インスタンス化解析の指摘とレポート

        Returns:
            整列済みの指摘リスト
        """
        findings = list(conformance) + list(instantiation)
        return sorted(findings, key=lambda f: f.sort_key())
