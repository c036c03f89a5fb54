"""Tests for import adjacency, cycle search and dependent traversal."""

from specter.graph.algorithms import (
    canonical_cycle,
    find_cycles,
    import_adjacency,
    reverse_adjacency,
    transitive_dependents,
)


class TestImportAdjacency:
    def test_isolated_files_present(self, make_graph):
        graph = make_graph({"a": {}, "b": {}, "c": {}}, imports=[("a", "b")])
        assert import_adjacency(graph) == {"a": ["b"], "b": [], "c": []}

    def test_self_imports_dropped(self, make_graph):
        graph = make_graph({"a": {}}, imports=[("a", "a")])
        assert import_adjacency(graph) == {"a": []}

    def test_symbol_endpoints_resolve_to_files(self, make_graph):
        graph = make_graph(
            {"a": {}, "b": {}},
            imports=[("a", "b::helper")],
            symbols=[{"file": "b", "name": "helper"}],
        )
        assert import_adjacency(graph)["a"] == ["b"]

    def test_reverse(self):
        assert reverse_adjacency({"a": ["b", "c"], "b": ["c"], "c": []}) == {
            "a": [],
            "b": ["a"],
            "c": ["a", "b"],
        }


class TestFindCycles:
    def test_acyclic(self):
        assert find_cycles({"a": ["b"], "b": ["c"], "c": []}) == []

    def test_two_cycle(self):
        assert find_cycles({"a": ["b"], "b": ["a"]}) == [["a", "b"]]

    def test_deep_chain_does_not_recurse(self):
        size = 5000
        adjacency = {f"n{i}": [f"n{i + 1}"] for i in range(size)}
        adjacency[f"n{size}"] = ["n0"]
        cycles = find_cycles(adjacency)
        assert len(cycles) == 1
        assert len(cycles[0]) == size + 1

    def test_canonical_rotation(self):
        assert canonical_cycle(["c", "a", "b"]) == ["a", "b", "c"]
        assert canonical_cycle([]) == []


class TestTransitiveDependents:
    def test_chain(self):
        # a imports b, b imports c
        reverse = reverse_adjacency({"a": ["b"], "b": ["c"], "c": []})
        assert transitive_dependents(reverse, ["c"]) == {"a", "b"}

    def test_starts_excluded(self):
        reverse = reverse_adjacency({"a": ["b"], "b": ["a"]})
        assert transitive_dependents(reverse, ["a", "b"]) == set()

    def test_unknown_start(self):
        assert transitive_dependents({}, ["missing"]) == set()
