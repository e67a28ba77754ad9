"""Metadata dataclasses for component enrichment."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .._graph import NO_PROVENANCE, ComponentIdentity


@dataclass(frozen=True)
class Credentials:
    """
    Credentials for one metadata source.

    Sourced by the CLI/config layer and passed in as an opaque value; an
    anonymous instance means unauthenticated calls.
    """

    username: Optional[str] = None
    token: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return not self.token

    def __repr__(self) -> str:
        # Never leak secrets into logs
        return f"Credentials(username={self.username!r}, token={'***' if self.token else None})"


ANONYMOUS = Credentials()


@dataclass
class SourceMetadata:
    """
    Normalized metadata returned by a single source.

    Link fields are carried so later sources in the chain can build on
    what earlier ones found (e.g. a repository URL from the registry
    lets the hosting platform look up the license).
    """

    licenses: List[str] = field(default_factory=list)
    vendor: Optional[str] = None
    repository_url: Optional[str] = None
    project_url: Optional[str] = None
    license_url: Optional[str] = None

    # Source tracking
    source: str = ""
    field_sources: Dict[str, str] = field(default_factory=dict)

    def merge(self, other: "SourceMetadata") -> "SourceMetadata":
        """
        Merge another metadata object, filling in missing fields.

        The current object's values take precedence. Per-field attribution
        is tracked in ``field_sources``.
        """
        merged_sources = dict(self.field_sources)

        def pick(field_name: str, self_val, other_val):
            if self_val:
                return self_val
            if other_val and other.source:
                merged_sources[field_name] = other.source
            return other_val

        return SourceMetadata(
            licenses=pick("licenses", self.licenses, other.licenses),
            vendor=pick("vendor", self.vendor, other.vendor),
            repository_url=pick("repository_url", self.repository_url, other.repository_url),
            project_url=pick("project_url", self.project_url, other.project_url),
            license_url=pick("license_url", self.license_url, other.license_url),
            source=self.source or other.source,
            field_sources=merged_sources,
        )

    def has_data(self) -> bool:
        """Check if this metadata has any meaningful data."""
        return bool(self.licenses or self.vendor or self.repository_url or self.project_url or self.license_url)


@dataclass(frozen=True)
class EnrichmentResult:
    """
    Outcome of enriching one component.

    Produced by the coordinator, folded into the owning ComponentRecord
    and then discarded.

    Attributes:
        identity: Component that was enriched
        licenses: License identifiers/expressions found, empty if none
        vendor: Publisher or author found, None if none
        provenance: Source that supplied the licenses (or vendor), or "none"
        errors: Per-source failure messages, for reporting only
    """

    identity: ComponentIdentity
    licenses: Tuple[str, ...] = ()
    vendor: Optional[str] = None
    provenance: str = NO_PROVENANCE
    errors: Tuple[str, ...] = ()

    @property
    def enriched(self) -> bool:
        return self.provenance != NO_PROVENANCE

    @classmethod
    def from_metadata(
        cls,
        identity: ComponentIdentity,
        metadata: Optional[SourceMetadata],
        errors: Tuple[str, ...] = (),
    ) -> "EnrichmentResult":
        if metadata is None or not (metadata.licenses or metadata.vendor):
            return cls(identity=identity, errors=errors)
        provenance = (
            metadata.field_sources.get("licenses")
            or metadata.field_sources.get("vendor")
            or metadata.source
            or NO_PROVENANCE
        )
        return cls(
            identity=identity,
            licenses=tuple(sorted(set(metadata.licenses))),
            vendor=metadata.vendor,
            provenance=provenance,
            errors=errors,
        )
