"""Graph export to serializer-neutral records."""

from .exporter import export_graph
from .models import ExportedComponent, ExportedDependency, ExportedGraph

__all__ = ["ExportedComponent", "ExportedDependency", "ExportedGraph", "export_graph"]
