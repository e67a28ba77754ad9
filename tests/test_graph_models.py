"""Tests for the component graph data model."""

import pytest

from solution_sbom._graph import (
    CancellationToken,
    ComponentIdentity,
    ComponentRecord,
    SolutionGraph,
)
from solution_sbom.exceptions import OperationCancelledError


class TestComponentIdentity:
    """Tests for ComponentIdentity."""

    def test_versions_are_distinct_identities(self):
        """Same name at different versions are different graph keys."""
        a = ComponentIdentity("nuget", "Newtonsoft.Json", "12.0.1")
        b = ComponentIdentity("nuget", "Newtonsoft.Json", "13.0.1")
        assert a != b
        assert len({a, b}) == 2
        assert a.conflict_key == b.conflict_key

    def test_key_and_str(self):
        identity = ComponentIdentity("nuget", "Serilog", "3.1.1")
        assert identity.key == "nuget/Serilog@3.1.1"
        assert str(identity) == "nuget/Serilog@3.1.1"

    def test_purl(self):
        """Test the package URL is built with packageurl-python."""
        identity = ComponentIdentity("nuget", "Newtonsoft.Json", "13.0.1")
        assert identity.purl == "pkg:nuget/Newtonsoft.Json@13.0.1"

    def test_sort_key_is_case_insensitive_first(self):
        names = ["zeta", "Alpha", "beta"]
        identities = sorted((ComponentIdentity("nuget", n, "1.0") for n in names), key=lambda i: i.sort_key)
        assert [i.name for i in identities] == ["Alpha", "beta", "zeta"]

    def test_frozen(self):
        identity = ComponentIdentity("nuget", "A", "1.0")
        with pytest.raises(AttributeError):
            identity.version = "2.0"


class TestComponentRecord:
    """Tests for ComponentRecord."""

    def test_copy_shares_no_state(self, identity):
        record = ComponentRecord(identity=identity("A", "1.0"), origins={"p1"}, dependencies={identity("B", "1.0")})
        clone = record.copy()
        clone.origins.add("p2")
        clone.dependencies.add(identity("C", "1.0"))
        assert record.origins == {"p1"}
        assert record.dependencies == {identity("B", "1.0")}


class TestSolutionGraph:
    """Tests for SolutionGraph queries."""

    def _graph(self, identity):
        a, b, missing = identity("A", "1.0"), identity("b", "1.0"), identity("Missing", "2.0")
        graph = SolutionGraph()
        graph.components[b] = ComponentRecord(identity=b, origins={"p1"})
        graph.components[a] = ComponentRecord(identity=a, origins={"p1"}, dependencies={missing, b})
        return graph, a, b, missing

    def test_records_sorted(self, identity):
        graph, a, b, _ = self._graph(identity)
        assert [r.identity for r in graph.records()] == [a, b]

    def test_iter_edges_sorted(self, identity):
        graph, a, b, missing = self._graph(identity)
        assert list(graph.iter_edges()) == [(a, b), (a, missing)]

    def test_dangling_edges_until_recorded(self, identity):
        """An edge to a non-component is dangling until it is recorded as unresolved."""
        graph, a, _, missing = self._graph(identity)
        assert graph.dangling_edges() == [(a, missing)]
        graph.unresolved.add(missing)
        assert graph.dangling_edges() == []

    def test_contains_and_get(self, identity):
        graph, a, _, missing = self._graph(identity)
        assert a in graph
        assert missing not in graph
        assert graph.get(missing) is None
        assert len(graph) == 2

    def test_conflict_groups(self, identity):
        graph = SolutionGraph()
        graph.conflicts = {identity("X", "2.0"), identity("X", "1.0"), identity("Y", "3.0"), identity("y", "1.0")}
        assert graph.conflict_groups() == {
            ("nuget", "X"): ["1.0", "2.0"],
            ("nuget", "Y"): ["1.0", "3.0"],
        }


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_not_cancelled_by_default(self):
        token = CancellationToken()
        assert not token.cancelled
        token.raise_if_cancelled()

    def test_cancel_raises_with_reason(self):
        token = CancellationToken()
        token.cancel("stop")
        assert token.cancelled
        assert token.reason == "stop"
        with pytest.raises(OperationCancelledError, match="stop"):
            token.raise_if_cancelled()
