"""Component graph data model shared by resolution, aggregation, enrichment and export."""

from .cancellation import CancellationToken
from .models import (
    NO_PROVENANCE,
    ComponentIdentity,
    ComponentRecord,
    ProjectGraph,
    ResolutionError,
    ResolutionErrorKind,
    SolutionGraph,
)

__all__ = [
    "CancellationToken",
    "ComponentIdentity",
    "ComponentRecord",
    "NO_PROVENANCE",
    "ProjectGraph",
    "ResolutionError",
    "ResolutionErrorKind",
    "SolutionGraph",
]
