"""Data model for project and solution dependency graphs."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterator, List, Optional, Set, Tuple

from packageurl import PackageURL

# Provenance value used when no metadata source answered
NO_PROVENANCE = "none"


@dataclass(frozen=True)
class ComponentIdentity:
    """
    Immutable identity of a component: ecosystem, name and resolved version.

    Two identities with the same ecosystem and name but different versions
    are distinct graph nodes.
    """

    ecosystem: str
    name: str
    version: str

    @property
    def sort_key(self) -> Tuple[str, str, str, str]:
        """Stable ordering key, case-insensitive on name with a case-sensitive tie-break."""
        return (self.ecosystem, self.name.lower(), self.name, self.version)

    @property
    def conflict_key(self) -> Tuple[str, str]:
        """Key grouping all versions of the same logical component."""
        return (self.ecosystem, self.name.lower())

    @property
    def key(self) -> str:
        return f"{self.ecosystem}/{self.name}@{self.version}"

    @property
    def purl(self) -> str:
        """Package URL for this identity (e.g. pkg:nuget/Newtonsoft.Json@13.0.1)."""
        return PackageURL(type=self.ecosystem, name=self.name, version=self.version).to_string()

    def __str__(self) -> str:
        return self.key


@dataclass
class ComponentRecord:
    """
    A component in a graph together with where it came from and what it needs.

    Attributes:
        identity: The component identity
        origins: Paths of the projects that pulled the component in
        dependencies: Identities this component directly depends on
        licenses: License identifiers or expressions, empty until enriched
        vendor: Publisher or author, None until enriched
        provenance: Name of the metadata source that answered, or "none"
    """

    identity: ComponentIdentity
    origins: Set[str] = field(default_factory=set)
    dependencies: Set[ComponentIdentity] = field(default_factory=set)
    licenses: Set[str] = field(default_factory=set)
    vendor: Optional[str] = None
    provenance: str = NO_PROVENANCE

    def copy(self) -> "ComponentRecord":
        """Return a record that shares no mutable state with this one."""
        return ComponentRecord(
            identity=self.identity,
            origins=set(self.origins),
            dependencies=set(self.dependencies),
            licenses=set(self.licenses),
            vendor=self.vendor,
            provenance=self.provenance,
        )


@dataclass(frozen=True)
class ProjectGraph:
    """
    Packages restored for a single project.

    Created once per resolution and never modified afterwards. Components
    are sorted by identity so equal restore output gives equal graphs.

    Attributes:
        project_path: Path of the project that was resolved
        components: Component records produced from the project's restore output
        referenced_projects: Paths of locally referenced projects (empty unless
            project reference scanning is enabled)
    """

    project_path: str
    components: Tuple[ComponentRecord, ...] = ()
    referenced_projects: FrozenSet[str] = frozenset()

    @property
    def identities(self) -> List[ComponentIdentity]:
        return [record.identity for record in self.components]


class ResolutionErrorKind(str, Enum):
    """Kinds of per-project resolution failure."""

    RESTORE_MISSING = "RestoreMissing"
    RESOLUTION_FAILED = "ResolutionFailed"


@dataclass(frozen=True)
class ResolutionError:
    """A project that could not be resolved, recorded instead of aborting the run."""

    project_path: str
    kind: ResolutionErrorKind
    message: str


@dataclass
class SolutionGraph:
    """
    Solution-wide graph built by folding project graphs together.

    Keys are full identities (ecosystem, name, version), so two versions of
    the same package are separate nodes listed in ``conflicts``. Every
    dependency identity of every record is either a key of ``components``
    or a member of ``unresolved``.
    """

    components: Dict[ComponentIdentity, ComponentRecord] = field(default_factory=dict)
    conflicts: Set[ComponentIdentity] = field(default_factory=set)
    unresolved: Set[ComponentIdentity] = field(default_factory=set)
    failures: List[ResolutionError] = field(default_factory=list)
    projects: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.components)

    def __contains__(self, identity: object) -> bool:
        return identity in self.components

    def get(self, identity: ComponentIdentity) -> Optional[ComponentRecord]:
        return self.components.get(identity)

    def records(self) -> List[ComponentRecord]:
        """Records sorted by identity."""
        return [self.components[identity] for identity in sorted(self.components, key=lambda i: i.sort_key)]

    def iter_edges(self) -> Iterator[Tuple[ComponentIdentity, ComponentIdentity]]:
        """Yield (from, to) pairs in identity order."""
        for record in self.records():
            for target in sorted(record.dependencies, key=lambda i: i.sort_key):
                yield record.identity, target

    def is_conflicted(self, identity: ComponentIdentity) -> bool:
        return identity in self.conflicts

    def conflict_groups(self) -> Dict[Tuple[str, str], List[str]]:
        """Map (ecosystem, name) to the sorted versions present for every conflicted component."""
        groups: Dict[Tuple[str, str], Set[str]] = {}
        names: Dict[Tuple[str, str], str] = {}
        for identity in sorted(self.conflicts, key=lambda i: i.sort_key):
            names.setdefault(identity.conflict_key, identity.name)
            groups.setdefault(identity.conflict_key, set()).add(identity.version)
        return {(key[0], names[key]): sorted(versions) for key, versions in groups.items()}

    def dangling_edges(self) -> List[Tuple[ComponentIdentity, ComponentIdentity]]:
        """Edges whose target is neither a component nor recorded as unresolved."""
        return [
            (source, target)
            for source, target in self.iter_edges()
            if target not in self.components and target not in self.unresolved
        ]
