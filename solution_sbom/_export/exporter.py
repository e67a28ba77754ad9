"""Graph Exporter: converts a SolutionGraph into ordered, read-only records."""

from typing import List

from .._graph import SolutionGraph
from .models import ExportedComponent, ExportedDependency, ExportedGraph


def export_graph(graph: SolutionGraph) -> ExportedGraph:
    """
    Snapshot a solution graph for serialization.

    Components are sorted by identity and edges by (from, to), so the same
    graph always exports to the same sequence regardless of how it was
    built. Edges to identities that are not components are kept with
    ``resolved=False``. Performs no I/O and does not modify the graph.

    Args:
        graph: Merged (and optionally enriched) solution graph

    Returns:
        ExportedGraph snapshot
    """
    components: List[ExportedComponent] = []
    for record in graph.records():
        components.append(
            ExportedComponent(
                identity=record.identity,
                licenses=tuple(sorted(record.licenses)),
                vendor=record.vendor or "",
                origin_count=len(record.origins),
                conflicted=graph.is_conflicted(record.identity),
                provenance=record.provenance,
            )
        )

    dependencies = [
        ExportedDependency(from_identity=source, to_identity=target, resolved=target in graph.components)
        for source, target in graph.iter_edges()
    ]

    groups = sorted(graph.conflict_groups().items(), key=lambda item: (item[0][0], item[0][1].lower()))
    conflicts = [(ecosystem, name, tuple(versions)) for (ecosystem, name), versions in groups]

    return ExportedGraph(
        components=tuple(components),
        dependencies=tuple(dependencies),
        unresolved=tuple(sorted(graph.unresolved, key=lambda i: i.sort_key)),
        conflicts=tuple(conflicts),
    )
