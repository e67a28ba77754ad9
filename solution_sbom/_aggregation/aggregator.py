"""Solution Aggregator: resolves every project and folds the results into one graph."""

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Set

from .._graph import (
    CancellationToken,
    ComponentIdentity,
    ProjectGraph,
    ResolutionError,
    ResolutionErrorKind,
    SolutionGraph,
)
from .._resolution import ProjectResolver, ResolutionResult, normalize_project_path
from ..exceptions import AllProjectsFailedError, ConfigurationError, OperationCancelledError, VersionConflictError
from ..logging_config import logger

# Seconds between cancellation checks while waiting on resolutions
POLL_INTERVAL = 0.1


class ConflictPolicy(str, Enum):
    """What to do when one component resolves to several versions across projects."""

    KEEP = "keep"  # keep every version as its own node and flag them
    FAIL = "fail"  # keep and flag, then raise VersionConflictError


@dataclass
class AggregationOptions:
    """
    Options for solution aggregation.

    Attributes:
        framework: Target framework passed to each resolution
        runtime: Runtime identifier passed to each resolution
        max_workers: Maximum number of projects resolved concurrently
        conflict_policy: Version conflict handling
    """

    framework: Optional[str] = None
    runtime: Optional[str] = None
    max_workers: int = 4
    conflict_policy: ConflictPolicy = ConflictPolicy.KEEP

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")


def fold_project_graph(solution: SolutionGraph, project_graph: ProjectGraph) -> None:
    """
    Merge a project graph into the solution graph.

    New identities are inserted as copies; existing ones get the union of
    origins and dependency edges. Folding is commutative and idempotent, so
    the result does not depend on project order or repeated folds.
    """
    for record in project_graph.components:
        existing = solution.components.get(record.identity)
        if existing is None:
            solution.components[record.identity] = record.copy()
            continue
        existing.origins |= record.origins
        existing.dependencies |= record.dependencies

    if project_graph.project_path not in solution.projects:
        solution.projects.append(project_graph.project_path)


def mark_conflicts(solution: SolutionGraph) -> Set[ComponentIdentity]:
    """Flag every identity whose (ecosystem, name) is present at more than one version."""
    versions: Dict[tuple, Set[ComponentIdentity]] = {}
    for identity in solution.components:
        versions.setdefault(identity.conflict_key, set()).add(identity)

    conflicts: Set[ComponentIdentity] = set()
    for identities in versions.values():
        if len({identity.version for identity in identities}) > 1:
            conflicts |= identities

    solution.conflicts = conflicts
    return conflicts


def validate_edge_closure(solution: SolutionGraph) -> Set[ComponentIdentity]:
    """Record every dependency target that is not itself a component as unresolved."""
    unresolved: Set[ComponentIdentity] = set()
    for record in solution.components.values():
        for target in record.dependencies:
            if target not in solution.components:
                unresolved.add(target)
    solution.unresolved = unresolved
    return unresolved


class SolutionAggregator:
    """
    Runs the Project Resolver over a solution and merges the results.

    Resolutions run concurrently on a thread pool (fan-out); results are
    folded one at a time on the calling thread (fan-in), so the solution
    graph is only ever mutated from a single thread. Referenced projects
    discovered during resolution are queued once each, which also breaks
    reference cycles.

    Example:
        aggregator = SolutionAggregator(ProjectResolver(DotnetRestoreService()))
        graph = aggregator.aggregate(["src/App/App.csproj", "src/Lib/Lib.csproj"])
        print(len(graph), "components,", len(graph.conflicts), "conflicted")
    """

    def __init__(self, resolver: ProjectResolver, options: Optional[AggregationOptions] = None) -> None:
        self._resolver = resolver
        self._options = options or AggregationOptions()

    @property
    def options(self) -> AggregationOptions:
        return self._options

    def aggregate(
        self,
        project_paths: Iterable[str],
        cancel_token: Optional[CancellationToken] = None,
    ) -> SolutionGraph:
        """
        Resolve and merge a set of projects.

        Args:
            project_paths: Project files to resolve
            cancel_token: Optional run-level cancellation token

        Returns:
            The merged SolutionGraph, with failed projects in ``failures``

        Raises:
            ConfigurationError: If no project paths were given
            AllProjectsFailedError: If every project failed to resolve
            VersionConflictError: If conflicts exist under ConflictPolicy.FAIL
            OperationCancelledError: If the token was cancelled
        """
        paths = [normalize_project_path(p) for p in project_paths]
        if not paths:
            raise ConfigurationError("No project paths to aggregate")

        token = cancel_token or CancellationToken()
        solution = SolutionGraph()
        visited: Set[str] = set()
        pending: Dict[Future, str] = {}
        executor = ThreadPoolExecutor(max_workers=self._options.max_workers, thread_name_prefix="resolve")

        def submit(path: str) -> None:
            if path in visited:
                return
            visited.add(path)
            pending[executor.submit(self._resolve, path, token)] = path

        cancelled = False
        try:
            for path in paths:
                submit(path)

            while pending:
                done, _ = wait(pending, timeout=POLL_INTERVAL, return_when=FIRST_COMPLETED)
                token.raise_if_cancelled()
                for future in sorted(done, key=lambda f: pending[f]):
                    path = pending.pop(future)
                    result = self._result_of(future, path)
                    if not result.success:
                        solution.failures.append(result.error)
                        continue
                    fold_project_graph(solution, result.graph)
                    for reference in sorted(result.graph.referenced_projects):
                        submit(reference)
        except OperationCancelledError:
            cancelled = True
            logger.warning(f"Aggregation cancelled with {len(pending)} project(s) outstanding")
            raise
        finally:
            executor.shutdown(wait=not cancelled, cancel_futures=True)

        solution.failures.sort(key=lambda failure: failure.project_path)
        solution.projects.sort()

        if not solution.projects:
            raise AllProjectsFailedError(solution.failures)

        mark_conflicts(solution)
        validate_edge_closure(solution)

        logger.info(
            f"Aggregated {len(solution.projects)} project(s): {len(solution)} components, "
            f"{len(solution.conflicts)} conflicted, {len(solution.unresolved)} unresolved, "
            f"{len(solution.failures)} failed project(s)"
        )

        if solution.conflicts and self._options.conflict_policy == ConflictPolicy.FAIL:
            raise VersionConflictError(solution.conflict_groups(), graph=solution)

        return solution

    def _resolve(self, path: str, token: CancellationToken) -> ResolutionResult:
        token.raise_if_cancelled()
        return self._resolver.resolve(path, self._options.framework, self._options.runtime, token)

    def _result_of(self, future: Future, path: str) -> ResolutionResult:
        """Unwrap a resolution, isolating unexpected failures to the project that raised them."""
        try:
            return future.result()
        except OperationCancelledError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error resolving {path}: {e}")
            return ResolutionResult(
                success=False,
                project_path=path,
                error=ResolutionError(path, ResolutionErrorKind.RESOLUTION_FAILED, str(e)),
            )
