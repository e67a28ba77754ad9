"""Project Resolver: turns one project's restore output into a ProjectGraph."""

import os
from typing import Dict, Iterable, List, Optional, Set

from .._graph import CancellationToken, ComponentIdentity, ComponentRecord, ProjectGraph, ResolutionErrorKind
from ..exceptions import RestoreMissingError
from ..logging_config import logger
from .assets import lower_bound
from .models import AssetsFile, AssetsTarget, ResolutionResult
from .protocol import RestoreService


def normalize_project_path(path: str) -> str:
    """Normalize a project path so the same project is always spelled the same way."""
    return os.path.normpath(path)


class ProjectResolver:
    """
    Resolves a single project into a ProjectGraph.

    Restore itself is delegated to a RestoreService; the resolver only
    interprets the restored package list. Identical restore output always
    produces an identical graph.

    Example:
        resolver = ProjectResolver(DotnetRestoreService(), scan_project_references=True)
        result = resolver.resolve("src/App/App.csproj", framework="net8.0")
        if result.success:
            print(len(result.graph.components))
    """

    def __init__(
        self,
        restore_service: RestoreService,
        restore: bool = True,
        scan_project_references: bool = False,
        exclude_dev: bool = False,
    ) -> None:
        self._restore_service = restore_service
        self._restore = restore
        self._scan_project_references = scan_project_references
        self._exclude_dev = exclude_dev

    @property
    def ecosystem(self) -> str:
        return self._restore_service.ecosystem

    def resolve(
        self,
        project_path: str,
        framework: Optional[str] = None,
        runtime: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ResolutionResult:
        """
        Resolve a project.

        Args:
            project_path: Path to the project file
            framework: Optional target framework to select
            runtime: Optional runtime identifier to select
            cancel_token: Optional token that aborts a running restore

        Returns:
            ResolutionResult carrying either the ProjectGraph or a RestoreMissing error

        Raises:
            OperationCancelledError: If the token was cancelled during restore
        """
        project_path = normalize_project_path(project_path)
        try:
            if self._restore:
                logger.info(f"Restoring {project_path} with {self._restore_service.name}")
                assets_path = self._restore_service.restore(project_path, framework, runtime, cancel_token)
            else:
                assets_path = self._restore_service.get_assets_path(project_path)
            assets = self._restore_service.read_assets(assets_path)
            graph = self.build_graph(project_path, assets, framework, runtime)
        except RestoreMissingError as e:
            logger.warning(f"Could not resolve {project_path}: {e}")
            return ResolutionResult.failure_result(project_path, str(e), ResolutionErrorKind.RESTORE_MISSING)

        logger.debug(
            f"Resolved {project_path}: {len(graph.components)} components, "
            f"{len(graph.referenced_projects)} project references"
        )
        return ResolutionResult.success_result(graph)

    def build_graph(
        self,
        project_path: str,
        assets: AssetsFile,
        framework: Optional[str] = None,
        runtime: Optional[str] = None,
    ) -> ProjectGraph:
        """
        Interpret restore output into a ProjectGraph.

        Raises:
            RestoreMissingError: If no restore target matches the framework/runtime
        """
        targets = assets.select_targets(framework, runtime)
        if not targets:
            raise RestoreMissingError(
                f"No restore target in {assets.path} for framework={framework or '*'} runtime={runtime or '-'}"
            )

        nodes: Dict[ComponentIdentity, Set[ComponentIdentity]] = {}
        referenced: Set[str] = set()
        project_dir = os.path.dirname(project_path)

        for target in targets:
            self._collect_target(target, nodes, referenced, project_dir)

        if self._exclude_dev:
            nodes = self._without_development_packages(nodes, assets, framework)

        records = [
            ComponentRecord(identity=identity, origins={project_path}, dependencies=set(edges))
            for identity, edges in nodes.items()
        ]
        records.sort(key=lambda r: r.identity.sort_key)
        return ProjectGraph(
            project_path=project_path,
            components=tuple(records),
            referenced_projects=frozenset(referenced) if self._scan_project_references else frozenset(),
        )

    def _collect_target(
        self,
        target: AssetsTarget,
        nodes: Dict[ComponentIdentity, Set[ComponentIdentity]],
        referenced: Set[str],
        project_dir: str,
    ) -> None:
        by_name = {package.name.lower(): package for package in target.packages}
        for package in target.packages:
            if package.is_project:
                if package.path:
                    referenced.add(normalize_project_path(os.path.join(project_dir, package.path)))
                continue

            identity = ComponentIdentity(self.ecosystem, package.name, package.version)
            edges = nodes.setdefault(identity, set())
            for dependency_name, version_range in package.dependencies.items():
                resolved = by_name.get(dependency_name.lower())
                if resolved is not None and resolved.is_project:
                    continue
                if resolved is not None:
                    edges.add(ComponentIdentity(self.ecosystem, resolved.name, resolved.version))
                else:
                    # Not materialized by restore; the aggregator records it as unresolved
                    edges.add(ComponentIdentity(self.ecosystem, dependency_name, lower_bound(version_range)))

    def _without_development_packages(
        self,
        nodes: Dict[ComponentIdentity, Set[ComponentIdentity]],
        assets: AssetsFile,
        framework: Optional[str],
    ) -> Dict[ComponentIdentity, Set[ComponentIdentity]]:
        """Drop development-only direct references and everything reachable only through them."""
        references = assets.references_for(framework)
        dev_names = {name.lower() for name, ref in references.items() if ref.development}
        if not dev_names:
            return nodes

        by_name: Dict[str, List[ComponentIdentity]] = {}
        for identity in nodes:
            by_name.setdefault(identity.name.lower(), []).append(identity)

        dev_roots = [i for name in dev_names for i in by_name.get(name, [])]
        runtime_roots = [i for name in references if name.lower() not in dev_names for i in by_name.get(name.lower(), [])]

        # Packages no direct reference reaches are kept as runtime roots
        orphans = set(nodes) - _reachable(nodes, dev_roots + runtime_roots)
        keep = _reachable(nodes, runtime_roots + sorted(orphans, key=lambda i: i.sort_key))
        removed = set(nodes) - keep
        if removed:
            logger.debug(f"Excluding {len(removed)} development-only package(s)")
        return {identity: edges for identity, edges in nodes.items() if identity in keep}


def _reachable(
    nodes: Dict[ComponentIdentity, Set[ComponentIdentity]],
    roots: Iterable[ComponentIdentity],
) -> Set[ComponentIdentity]:
    seen: Set[ComponentIdentity] = set()
    stack = [root for root in roots if root in nodes]
    while stack:
        identity = stack.pop()
        if identity in seen:
            continue
        seen.add(identity)
        stack.extend(dep for dep in nodes.get(identity, ()) if dep in nodes and dep not in seen)
    return seen
