"""Plugin-based component enrichment with license and vendor metadata."""

from .coordinator import (
    EnrichmentCoordinator,
    EnrichmentOptions,
    EnrichmentReport,
    apply_enrichment,
    create_default_registry,
)
from .metadata import ANONYMOUS, Credentials, EnrichmentResult, SourceMetadata
from .protocol import MetadataSource
from .registry import SourceRegistry
from .sources import GitHubSource, NuGetSource

__all__ = [
    "ANONYMOUS",
    "Credentials",
    "EnrichmentCoordinator",
    "EnrichmentOptions",
    "EnrichmentReport",
    "EnrichmentResult",
    "GitHubSource",
    "MetadataSource",
    "NuGetSource",
    "SourceMetadata",
    "SourceRegistry",
    "apply_enrichment",
    "create_default_registry",
]
