"""テンプレートのインスタンス化数の集計と肥大化パターンの判定。"""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple
import logging
import re

from ..config import ConfigurationError
from ..models.callsite import CallSite
from ..models.declaration import SourceLocation
from ..models.finding import InstantiationReport, Rule, Suggestion, Violation

logger = logging.getLogger(__name__)

Signature = Tuple[str, ...]

_CHAR = r"(?:char|wchar_t|char8_t|char16_t|char32_t)"

# cv修飾と参照を除いた後の文字列系の型表記
STRING_LIKE_PATTERNS = (
    re.compile(rf"^{_CHAR}\[\d*\]$"),
    re.compile(rf"^{_CHAR}\*$"),
    re.compile(r"^(?:std::)?(?:__cxx11::)?(?:w|u8|u16|u32)?string(?:_view)?$"),
    re.compile(r"^(?:std::)?(?:__cxx11::)?basic_string(?:_view)?<.*>$"),
)

SCALAR_WORDS = frozenset({
    "bool", "char", "wchar_t", "char8_t", "char16_t", "char32_t",
    "short", "int", "long", "signed", "unsigned", "float", "double",
    "void", "size_t", "std::size_t", "ptrdiff_t", "std::ptrdiff_t",
    "nullptr_t", "std::nullptr_t",
})

_FIXED_INT = re.compile(r"^(?:std::)?u?int(?:_least|_fast)?\d+_t$")


def normalize_type(spelling: str) -> str:
    """型表記の空白を正規化する。

    ``const char *`` と ``const char*`` は正規化後に一致する。

    Args:
        spelling: 型の表記

    Returns:
        正規化した表記
    """
    text = re.sub(r"\s+", " ", spelling.strip())
    return re.sub(r"\s*([*&,<>()\[\]])\s*", r"\1", text)


def strip_qualifiers(type_name: str) -> str:
    """型表記からcv修飾と参照を取り除く。

    ``const std::string&`` は ``std::string`` に、
    ``const char(&)[6]`` は ``char[6]`` になる。
    """
    text = normalize_type(re.sub(r"\b(?:const|volatile)\b", " ", type_name))
    text = text.replace("(&&)", "").replace("(&)", "")
    return text.rstrip("&")


def is_string_like(type_name: str) -> bool:
    """文字配列、文字ポインタ、文字列クラスならTrue。"""
    base = strip_qualifiers(type_name)
    return any(p.match(base) for p in STRING_LIKE_PATTERNS)


def is_owned_movable(type_name: str) -> bool:
    """状態を所有するクラス型ならTrue（スカラー、ポインタ、配列は除く）。"""
    base = strip_qualifiers(type_name)
    if not base or base.endswith("*") or "[" in base:
        return False
    words = base.split(" ")
    if all(w in SCALAR_WORDS or _FIXED_INT.match(w) for w in words):
        return False
    return True


def classify_bloat_shape(signatures: Sequence[Signature]) -> Suggestion:
    """肥大化したテンプレートの重複削減策を選ぶ。

    シグネチャ間で型が異なる位置だけを判定に使う。
    引数の数が揃っていない場合は特定の形状に当てはめない。
    ``std::string`` の値/参照違いのように、修飾を除いた型が1つに定まる
    場合は文字列系であってもムーブ/コピーの組として扱う。

    Args:
        signatures: 1テンプレートの正規化済みシグネチャ（重複なし）

    Returns:
        推奨対策
    """
    arities = {len(s) for s in signatures}
    if len(arities) != 1:
        return Suggestion.EXTRACT_COMMON_CODE

    arity = arities.pop()
    varying = [
        i for i in range(arity)
        if len({s[i] for s in signatures}) > 1
    ]
    if not varying:
        return Suggestion.EXTRACT_COMMON_CODE

    move_copy = True
    for i in varying:
        bases = {strip_qualifiers(s[i]) for s in signatures}
        if len(bases) != 1 or not is_owned_movable(next(iter(bases))):
            move_copy = False
            break
    if move_copy:
        return Suggestion.MOVE_COPY_PAIR

    if all(is_string_like(s[i]) for i in varying for s in signatures):
        return Suggestion.POINTER_DECAY_OR_THREE_OVERLOAD

    return Suggestion.EXTRACT_COMMON_CODE


class InstantiationAnalyzer:
    """関数テンプレートごとに異なるインスタンス化の数を数える。

    呼び出し箇所は正規化した引数型シグネチャの構造的な一致でまとめ、
    呼び出し位置はまとめ方に影響しない。テンプレートごとにスレッドプールで独立に解析する。
    """

    def __init__(self, bloat_threshold: int = 4, max_workers: Optional[int] = None):
        """
        Args:
            bloat_threshold: インスタンス化数がこの値を超えたテンプレートを指摘する
            max_workers: ワーカースレッド数（Noneで自動）

        Raises:
            ConfigurationError: 閾値が1以上の整数でない場合
        """
        if (not isinstance(bloat_threshold, int) or isinstance(bloat_threshold, bool)
                or bloat_threshold < 1):
            raise ConfigurationError(
                f"bloat_threshold must be an integer >= 1: {bloat_threshold!r}"
            )
        self.bloat_threshold = bloat_threshold
        self.max_workers = max_workers

    def analyze(
        self,
        call_sites: Sequence[CallSite]
    ) -> Tuple[List[InstantiationReport], List[Violation]]:
        """呼び出し箇所が参照するすべてのテンプレートを解析する。

        Args:
            call_sites: 解析単位内の全呼び出し箇所

        Returns:
            (テンプレート名順のレポート, 違反) のタプル。
            違反には不正な呼び出し箇所と閾値超過のテンプレートが含まれる。
        """
        groups: Dict[str, List[CallSite]] = {}
        violations: List[Violation] = []

        for site in call_sites:
            problem = self._malformed_reason(site)
            if problem:
                violations.append(Violation(
                    subject=site.template_name.strip() or "<anonymous>",
                    rule=Rule.MALFORMED_CALL_SITE,
                    message=f"{Rule.MALFORMED_CALL_SITE.description}: {problem}",
                    location=site.location,
                ))
                continue
            groups.setdefault(site.template_name.strip(), []).append(site)

        names = sorted(groups)
        if not names:
            return [], violations

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            reports = list(executor.map(
                lambda name: self.analyze_template(name, groups[name]), names
            ))

        for report in reports:
            if report.exceeded:
                violations.append(self.bloat_violation(report))

        flagged = sum(1 for r in reports if r.exceeded)
        logger.info(
            f"Analyzed {len(reports)} templates from {len(call_sites)} call sites, "
            f"{flagged} over threshold {self.bloat_threshold}"
        )
        return reports, violations

    def analyze_template(
        self,
        template_name: str,
        call_sites: Sequence[CallSite]
    ) -> InstantiationReport:
        """1テンプレート分のレポートを作成する。

        Args:
            template_name: テンプレート名
            call_sites: そのテンプレートの呼び出し箇所

        Returns:
            InstantiationReport
        """
        signatures = frozenset(
            tuple(normalize_type(t) for t in site.argument_types)
            for site in call_sites
        )
        count = len(signatures)
        exceeded = count > self.bloat_threshold

        suggestion = None
        if exceeded:
            suggestion = classify_bloat_shape(sorted(signatures))
            logger.debug(
                f"{template_name}: {count} instantiations, "
                f"suggesting {suggestion.value}"
            )

        location = min(
            (site.location for site in call_sites),
            default=SourceLocation.unknown(),
        )

        return InstantiationReport(
            template_name=template_name,
            signatures=signatures,
            count=count,
            exceeded=exceeded,
            threshold=self.bloat_threshold,
            call_site_count=len(call_sites),
            location=location,
            suggestion=suggestion,
        )

    def bloat_violation(self, report: InstantiationReport) -> Violation:
        """閾値超過のレポートを肥大化の違反に変換する。"""
        signatures = "; ".join(
            "<" + ", ".join(s) + ">" for s in report.sorted_signatures()
        )
        return Violation(
            subject=report.template_name,
            rule=Rule.INSTANTIATION_BLOAT,
            message=(
                f"{Rule.INSTANTIATION_BLOAT.description}: {report.count} > "
                f"{report.threshold} ({signatures}); consider "
                f"{report.suggestion.value}"
            ),
            location=report.location,
            suggestion=report.suggestion,
        )

    @staticmethod
    def _malformed_reason(site: CallSite) -> Optional[str]:
        if not site.template_name.strip():
            return "empty template name"
        for index, type_name in enumerate(site.argument_types):
            if not str(type_name).strip():
                return f"empty argument type at position {index}"
        return None
