"""Custom exceptions for solution-sbom."""

from typing import Any, Dict, List, Optional, Sequence, Tuple


class SolutionSbomError(Exception):
    """Base exception for all solution-sbom operations."""


class ConfigurationError(SolutionSbomError):
    """Raised when configuration is fatally invalid (no projects, missing solution root)."""


class RestoreMissingError(SolutionSbomError):
    """Raised when a project's restore output cannot be produced, found or parsed."""


class AllProjectsFailedError(SolutionSbomError):
    """Raised when every project in a solution failed to resolve."""

    def __init__(self, failures: Sequence[object]) -> None:
        self.failures = list(failures)
        super().__init__(f"All {len(self.failures)} project(s) failed to resolve")


class VersionConflictError(SolutionSbomError):
    """Raised under the strict conflict policy when a component resolves to several versions."""

    def __init__(self, conflicts: Dict[Tuple[str, str], List[str]], graph: Optional[Any] = None) -> None:
        self.conflicts = conflicts
        self.graph = graph
        names = ", ".join(f"{name} ({', '.join(versions)})" for (_, name), versions in sorted(conflicts.items()))
        super().__init__(f"Version conflicts detected: {names}")


class OperationCancelledError(SolutionSbomError):
    """Raised when a run is cancelled by its caller."""


class EnrichmentSourceError(SolutionSbomError):
    """Raised by a metadata source when a lookup fails (network, HTTP error)."""


class RateLimitedError(EnrichmentSourceError):
    """Raised when a metadata source rejects a request because of rate limiting."""


class SourceAuthError(EnrichmentSourceError):
    """Raised when a metadata source rejects the supplied credentials."""


class OutputError(SolutionSbomError):
    """Raised when the SBOM document cannot be written."""
