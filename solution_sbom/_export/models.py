"""Read-only record shapes handed to the document serializer."""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .._graph import NO_PROVENANCE, ComponentIdentity


@dataclass(frozen=True)
class ExportedComponent:
    """
    One component of the exported graph.

    Attributes:
        identity: Component identity
        licenses: Sorted license identifiers/expressions, empty if unknown
        vendor: Publisher or author, empty string if unknown
        origin_count: Number of projects that pulled the component in
        conflicted: Whether another version of the same component is present
        provenance: Metadata source that answered, or "none"
    """

    identity: ComponentIdentity
    licenses: Tuple[str, ...] = ()
    vendor: str = ""
    origin_count: int = 0
    conflicted: bool = False
    provenance: str = NO_PROVENANCE

    @property
    def ecosystem(self) -> str:
        return self.identity.ecosystem

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def version(self) -> str:
        return self.identity.version

    @property
    def purl(self) -> str:
        return self.identity.purl


@dataclass(frozen=True)
class ExportedDependency:
    """
    A dependency edge. ``resolved`` is False when the target is not a component of the graph.
    """

    from_identity: ComponentIdentity
    to_identity: ComponentIdentity
    resolved: bool = True


@dataclass(frozen=True)
class ExportedGraph:
    """Immutable, deterministically ordered snapshot of a solution graph."""

    components: Tuple[ExportedComponent, ...] = ()
    dependencies: Tuple[ExportedDependency, ...] = ()
    unresolved: Tuple[ComponentIdentity, ...] = ()
    conflicts: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = ()

    def dependency_map(self) -> Dict[ComponentIdentity, List[ComponentIdentity]]:
        """Map each component to its resolved dependency targets, in export order."""
        result: Dict[ComponentIdentity, List[ComponentIdentity]] = {c.identity: [] for c in self.components}
        for dep in self.dependencies:
            if dep.resolved:
                result[dep.from_identity].append(dep.to_identity)
        return result
