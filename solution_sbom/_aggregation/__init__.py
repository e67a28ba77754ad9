"""Solution aggregation: merge per-project graphs into one deduplicated graph."""

from .aggregator import (
    AggregationOptions,
    ConflictPolicy,
    SolutionAggregator,
    fold_project_graph,
    mark_conflicts,
    validate_edge_closure,
)

__all__ = [
    "AggregationOptions",
    "ConflictPolicy",
    "SolutionAggregator",
    "fold_project_graph",
    "mark_conflicts",
    "validate_edge_closure",
]
