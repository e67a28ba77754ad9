"""Source registry for managing metadata source plugins."""

from typing import Any, Dict, List

from solution_sbom._graph import ComponentIdentity
from solution_sbom.logging_config import logger

from .protocol import MetadataSource


class SourceRegistry:
    """
    Registry for managing and querying metadata sources.

    The registry keeps the ordered capability list the coordinator walks
    for each component.

    Example:
        registry = SourceRegistry()
        registry.register(NuGetSource())
        registry.register(GitHubSource())

        # Sources for a NuGet package, registry first
        sources = registry.get_sources_for(identity)
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._sources: List[MetadataSource] = []

    def __len__(self) -> int:
        return len(self._sources)

    def register(self, source: MetadataSource) -> None:
        """
        Register a metadata source.

        Args:
            source: MetadataSource implementation to register
        """
        self._sources.append(source)
        logger.debug(f"Registered metadata source: {source.name} (priority={source.priority})")

    def get_sources_for(self, identity: ComponentIdentity) -> List[MetadataSource]:
        """
        Get all applicable sources for a component, sorted by priority.

        Ties keep registration order.
        """
        applicable = [s for s in self._sources if s.supports(identity)]
        return sorted(applicable, key=lambda s: s.priority)

    def list_sources(self) -> List[Dict[str, Any]]:
        """List all registered sources with their priorities."""
        return [{"name": s.name, "priority": s.priority} for s in sorted(self._sources, key=lambda s: s.priority)]
