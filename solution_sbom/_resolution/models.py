"""Data models for project resolution."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .._graph import ProjectGraph, ResolutionError, ResolutionErrorKind

PACKAGE_TYPE = "package"
PROJECT_TYPE = "project"


@dataclass(frozen=True)
class RawPackage:
    """
    One resolved entry of a restore target, as read from the restore output.

    Attributes:
        name: Package or project name
        version: Resolved version
        type: "package" for a package, "project" for a project reference
        dependencies: Dependency name -> version range as written by restore
        path: Relative project path for project entries
    """

    name: str
    version: str
    type: str = PACKAGE_TYPE
    dependencies: Dict[str, str] = field(default_factory=dict)
    path: Optional[str] = None

    @property
    def is_project(self) -> bool:
        return self.type == PROJECT_TYPE


@dataclass(frozen=True)
class DirectReference:
    """A package referenced directly by the project file."""

    name: str
    version_range: str
    development: bool = False


@dataclass(frozen=True)
class AssetsTarget:
    """Resolved packages for one framework (and optional runtime identifier)."""

    framework: str
    runtime: Optional[str]
    packages: List[RawPackage]

    @property
    def key(self) -> str:
        return f"{self.framework}/{self.runtime}" if self.runtime else self.framework


@dataclass(frozen=True)
class AssetsFile:
    """
    Parsed restore output of a single project.

    Attributes:
        path: Location the restore output was read from
        targets: Resolved package sets, one per framework/runtime combination
        direct_references: Framework -> directly referenced packages by name
        project_path: Project path recorded by restore, when present
    """

    path: str
    targets: List[AssetsTarget]
    direct_references: Dict[str, Dict[str, DirectReference]] = field(default_factory=dict)
    project_path: Optional[str] = None

    def select_targets(self, framework: Optional[str] = None, runtime: Optional[str] = None) -> List[AssetsTarget]:
        """
        Pick the targets matching a framework and runtime.

        With a runtime only ``framework/runtime`` targets match; with only a
        framework, the runtime-less target of that framework; with neither,
        every runtime-less target.
        """
        if runtime:
            return [t for t in self.targets if t.runtime == runtime and (not framework or t.framework == framework)]
        if framework:
            return [t for t in self.targets if t.runtime is None and t.framework == framework]
        return [t for t in self.targets if t.runtime is None]

    def references_for(self, framework: Optional[str] = None) -> Dict[str, DirectReference]:
        """Direct references for a framework, or the union across frameworks."""
        if framework and framework in self.direct_references:
            return dict(self.direct_references[framework])
        merged: Dict[str, DirectReference] = {}
        for fw in sorted(self.direct_references):
            for name, reference in self.direct_references[fw].items():
                existing = merged.get(name)
                # A package is development-only when every framework marks it so
                if existing is None:
                    merged[name] = reference
                elif existing.development and not reference.development:
                    merged[name] = reference
        return merged


@dataclass
class ResolutionResult:
    """
    Result of resolving one project.

    Attributes:
        success: Whether the project resolved
        project_path: Project that was resolved
        graph: The project graph when successful
        error: The recorded failure when unsuccessful
    """

    success: bool
    project_path: str
    graph: Optional[ProjectGraph] = None
    error: Optional[ResolutionError] = None

    def __post_init__(self) -> None:
        """Validate result state."""
        if self.success and self.graph is None:
            raise ValueError("Successful result must have graph")
        if not self.success and self.error is None:
            raise ValueError("Failed result must have error")

    @classmethod
    def success_result(cls, graph: ProjectGraph) -> "ResolutionResult":
        """Create a successful resolution result."""
        return cls(success=True, project_path=graph.project_path, graph=graph)

    @classmethod
    def failure_result(
        cls,
        project_path: str,
        message: str,
        kind: ResolutionErrorKind = ResolutionErrorKind.RESTORE_MISSING,
    ) -> "ResolutionResult":
        """Create a failed resolution result."""
        return cls(
            success=False,
            project_path=project_path,
            error=ResolutionError(project_path=project_path, kind=kind, message=message),
        )
