"""MetadataSource protocol for component enrichment plugins."""

from typing import Optional, Protocol

import requests

from .._graph import ComponentIdentity
from .metadata import Credentials, SourceMetadata


class MetadataSource(Protocol):
    """
    Protocol defining the interface for external metadata sources.

    Sources are tried in priority order (lower number first). Adding a
    registry means adding one implementation and registering it; the
    coordinator does not change.

    Example:
        class NuGetSource:
            name = "nuget.org"
            priority = 10

            def supports(self, identity: ComponentIdentity) -> bool:
                return identity.ecosystem == "nuget"

            def fetch(self, identity, session, credentials, known=None) -> Optional[SourceMetadata]:
                # Fetch the package manifest and normalize it
                ...
    """

    @property
    def name(self) -> str:
        """
        Human-readable name of this source.

        Recorded as provenance on components it enriched and used as the key
        for per-source credentials. Examples: "nuget.org", "github.com"
        """
        ...

    @property
    def priority(self) -> int:
        """
        Priority of this source (lower = tried first).

        Recommended ranges:
        - 1-20: Package registries (authoritative for the ecosystem)
        - 40-60: Source-hosting platforms (need a repository link)
        """
        ...

    def supports(self, identity: ComponentIdentity) -> bool:
        """Check if this source can answer for the given component."""
        ...

    def fetch(
        self,
        identity: ComponentIdentity,
        session: requests.Session,
        credentials: Credentials,
        known: Optional[SourceMetadata] = None,
    ) -> Optional[SourceMetadata]:
        """
        Fetch and normalize metadata for a component.

        Args:
            identity: Component to look up
            session: Shared session with User-Agent and retry configured
            credentials: Credentials for this source (may be anonymous)
            known: Metadata gathered so far from higher-priority sources

        Returns:
            SourceMetadata if the source has data, None if it does not know the component

        Raises:
            RateLimitedError: If the source rate-limited the request
            SourceAuthError: If the source rejected the credentials
            EnrichmentSourceError: For any other failed lookup
            requests.RequestException: For network failures
        """
        ...
