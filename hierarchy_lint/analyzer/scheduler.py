"""基底クラス依存に従ったクラス分類のタスクグラフ実行。"""

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from collections import deque
from typing import Deque, Dict, Iterable, List, Mapping, Optional, Set
import logging

from ..models.classification import Classification, ClassificationResult
from ..models.declaration import ClassDeclaration
from ..models.finding import Rule, Severity, Violation
from ..utils.logger import ProgressLogger
from .classifier import Classifier

logger = logging.getLogger(__name__)


def find_cycle_members(graph: Mapping[str, Iterable[str]]) -> List[List[str]]:
    """有向グラフの循環を構成する強連結成分を求める（Tarjan法、非再帰）。

    Args:
        graph: ノードから依存先ノードへの隣接リスト。
            グラフ外のノードへの辺は無視する。

    Returns:
        循環成分ごとのノードリスト（要素数2以上、または自己ループ）
    """
    index_of: Dict[str, int] = {}
    lowlink: Dict[str, int] = {}
    on_stack: Set[str] = set()
    stack: List[str] = []
    components: List[List[str]] = []
    counter = 0

    for root in sorted(graph):
        if root in index_of:
            continue

        work = [(root, iter(sorted(graph[root])))]
        index_of[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)

        while work:
            node, successors = work[-1]
            advanced = False
            for succ in successors:
                if succ not in graph:
                    continue
                if succ not in index_of:
                    index_of[succ] = lowlink[succ] = counter
                    counter += 1
                    stack.append(succ)
                    on_stack.add(succ)
                    work.append((succ, iter(sorted(graph[succ]))))
                    advanced = True
                    break
                if succ in on_stack:
                    lowlink[node] = min(lowlink[node], index_of[succ])

            if advanced:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])

            if lowlink[node] == index_of[node]:
                component = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                if len(component) > 1 or node in graph[node]:
                    components.append(sorted(component))

    return components


class ClassificationScheduler:
    """基底クラスが確定したクラスから順にワーカープールで分類する。

    準備完了（全基底が分類済み）のノードはすべて同時に投入する。
    準備完了ノードも実行中ノードもないのに未分類が残る場合は循環継承とみなし、
    循環を構成するクラスをNonConformingに確定させてから処理を続ける。
    """

    def __init__(
        self,
        classifier: Optional[Classifier] = None,
        max_workers: Optional[int] = None,
        treat_cycles_as_error: bool = True
    ):
        """スケジューラーを初期化する。

        Args:
            classifier: 使用する分類器
            max_workers: ワーカースレッド数の上限（Noneで自動）
            treat_cycles_as_error: 循環継承をERRORとして報告するか
        """
        self.classifier = classifier or Classifier()
        self.max_workers = max_workers
        self.treat_cycles_as_error = treat_cycles_as_error

    def run(
        self,
        declarations: List[ClassDeclaration]
    ) -> Dict[str, ClassificationResult]:
        """すべてのクラスを分類する。

        Args:
            declarations: クラス宣言（名前は一意であること）

        Returns:
            クラス名から分類結果へのマッピング
        """
        by_name: Dict[str, ClassDeclaration] = {d.name: d for d in declarations}
        results: Dict[str, ClassificationResult] = {}
        if not by_name:
            return results

        # 解析単位内の基底のみを依存として扱う
        dependencies: Dict[str, Set[str]] = {
            name: {b for b in decl.base_names if b in by_name}
            for name, decl in by_name.items()
        }
        dependents: Dict[str, List[str]] = {name: [] for name in by_name}
        for name in by_name:
            for base in sorted(dependencies[name]):
                dependents[base].append(name)

        waiting: Dict[str, int] = {n: len(d) for n, d in dependencies.items()}
        scheduled: Set[str] = set()
        ready: Deque[str] = deque(n for n in by_name if waiting[n] == 0)
        scheduled.update(ready)

        progress = ProgressLogger(len(by_name), logger, label="Classification")

        def release(name: str) -> None:
            for dependent in dependents[name]:
                waiting[dependent] -= 1
                if waiting[dependent] == 0 and dependent not in scheduled:
                    scheduled.add(dependent)
                    ready.append(dependent)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            pending: Dict[Future, str] = {}

            while len(results) < len(by_name):
                while ready:
                    name = ready.popleft()
                    decl = by_name[name]
                    base_results = {
                        b: results[b] for b in decl.base_names if b in results
                    }
                    future = executor.submit(
                        self._classify_one, decl, base_results, progress
                    )
                    pending[future] = name

                if not pending:
                    unresolved = {
                        n: dependencies[n] for n in by_name if n not in scheduled
                    }
                    forced = self._break_cycles(unresolved, by_name, results)
                    scheduled.update(forced)
                    for name in forced:
                        progress.update(name)
                        release(name)
                    continue

                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    name = pending.pop(future)
                    results[name] = self._collect(future, by_name[name])
                    release(name)

        progress.complete("Classification finished")
        return results

    def _classify_one(
        self,
        declaration: ClassDeclaration,
        base_results: Dict[str, ClassificationResult],
        progress: ProgressLogger
    ) -> ClassificationResult:
        result = self.classifier.classify(declaration, base_results)
        progress.update(declaration.name)
        return result

    def _collect(
        self,
        future: Future,
        declaration: ClassDeclaration
    ) -> ClassificationResult:
        """ワーカーの結果を取得する。

        分類中の例外はそのクラスの不正入力として報告し、解析は継続する。
        """
        try:
            return future.result()
        except Exception as e:
            logger.error(f"Error classifying {declaration.name}: {e}")
            return ClassificationResult(
                class_name=declaration.name,
                classification=Classification.NON_CONFORMING,
                violations=[Violation(
                    subject=declaration.name,
                    rule=Rule.MALFORMED_RECORD,
                    message=f"{Rule.MALFORMED_RECORD.description}: {e}",
                    location=declaration.location,
                )],
                structural_failure=True,
            )

    def _break_cycles(
        self,
        unresolved: Dict[str, Set[str]],
        by_name: Dict[str, ClassDeclaration],
        results: Dict[str, ClassificationResult]
    ) -> List[str]:
        """循環継承のメンバーをNonConformingに確定させる。

        Args:
            unresolved: 未投入ノードの依存関係
            by_name: クラス名から宣言へのマッピング
            results: 確定済み結果（更新される）

        Returns:
            確定させたクラス名のリスト
        """
        cycles = find_cycle_members(unresolved)
        if not cycles:
            # 循環が特定できない場合は残りをまとめて確定させる
            logger.error(
                f"Scheduler stalled without a cycle: {sorted(unresolved)}"
            )
            cycles = [sorted(unresolved)]

        severity = Severity.ERROR if self.treat_cycles_as_error else Severity.WARNING
        forced = []
        for cycle in cycles:
            logger.warning(f"Inheritance cycle detected: {' -> '.join(cycle)}")
            for name in cycle:
                decl = by_name[name]
                results[name] = ClassificationResult(
                    class_name=name,
                    classification=Classification.NON_CONFORMING,
                    violations=[Violation(
                        subject=name,
                        rule=Rule.INHERITANCE_CYCLE,
                        message=(
                            f"{Rule.INHERITANCE_CYCLE.description}: "
                            f"{', '.join(cycle)}"
                        ),
                        location=decl.location,
                        severity=severity,
                    )],
                    base_roles={b: None for b in decl.base_names},
                    structural_failure=True,
                )
                forced.append(name)
        return forced
