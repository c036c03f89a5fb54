"""Tests for knowledge graph models and their JSON form."""

import pytest

from specter.exceptions import InvalidGraphError
from specter.graph.models import Edge, EdgeType, GraphNode, KnowledgeGraph, NodeType


class TestGraphNode:
    def test_line_start_after_end_rejected(self):
        with pytest.raises(InvalidGraphError, match="lineStart"):
            GraphNode(id="f", type=NodeType.FILE, name="f", file_path="f", line_start=5,
                      line_end=2)

    def test_negative_complexity_rejected(self):
        with pytest.raises(InvalidGraphError):
            GraphNode(id="f", type=NodeType.FUNCTION, name="f", file_path="f", complexity=-1)

    def test_empty_id_rejected(self):
        with pytest.raises(InvalidGraphError):
            GraphNode(id="", type=NodeType.FILE, name="f", file_path="f")

    def test_line_count_prefers_scanner_value_for_files(self):
        node = GraphNode(id="f", type=NodeType.FILE, name="f", file_path="f", line_end=10,
                         attributes={"lineCount": 250})
        assert node.line_count == 250

    def test_line_count_from_span(self):
        node = GraphNode(id="f", type=NodeType.FILE, name="f", file_path="f", line_start=1,
                         line_end=40)
        assert node.line_count == 40

    def test_unknown_keys_survive_round_trip(self):
        raw = {
            "id": "src/a.ts",
            "type": "file",
            "name": "a.ts",
            "filePath": "src/a.ts",
            "lineStart": 1,
            "lineEnd": 12,
            "exported": False,
            "hash": "abc",
        }
        node = GraphNode.from_dict(raw)
        assert node.attributes == {"hash": "abc"}
        assert node.to_dict() == raw

    def test_unknown_type_rejected(self):
        with pytest.raises(InvalidGraphError, match="unknown node type"):
            GraphNode.from_dict({"id": "x", "type": "module"})


class TestEdge:
    def test_default_id(self):
        edge = Edge(source="a", target="b", type=EdgeType.IMPORTS)
        assert edge.id == "a->b:imports"

    def test_missing_endpoint_rejected(self):
        with pytest.raises(InvalidGraphError):
            Edge.from_dict({"source": "a", "target": "", "type": "imports"})


class TestKnowledgeGraph:
    def test_file_paths_sorted(self, make_graph):
        graph = make_graph({"src/z.ts": {}, "src/a.ts": {}},
                           symbols=[{"file": "src/a.ts", "name": "run"}])
        assert graph.file_paths() == ["src/a.ts", "src/z.ts"]
        assert [n.name for n in graph.symbols_in("src/a.ts")] == ["run"]

    def test_find_file_node_by_suffix(self, make_graph):
        graph = make_graph({"src/lib/util.ts": {}})
        assert graph.find_file_node("lib/util.ts").file_path == "src/lib/util.ts"
        assert graph.find_file_node("other.ts") is None

    def test_find_file_node_respects_segment_boundaries(self, make_graph):
        graph = make_graph({"src/ab.ts": {}, "src/lib/util.ts": {}})
        assert graph.find_file_node("b.ts") is None
        assert graph.find_file_node("ib/util.ts") is None
        assert graph.find_file_node("/repo/src/lib/util.ts").file_path == "src/lib/util.ts"

    def test_file_complexity_falls_back_to_symbols(self, make_graph):
        graph = make_graph(
            {"src/a.ts": {}, "src/b.ts": {"complexity": 7}},
            symbols=[
                {"file": "src/a.ts", "name": "f", "complexity": 3},
                {"file": "src/a.ts", "name": "g", "complexity": 9},
            ],
        )
        assert graph.file_complexity("src/a.ts") == 9
        assert graph.file_complexity("src/b.ts") == 7
        assert graph.file_complexity("src/none.ts") is None

    def test_unique_edges_deduplicates(self, make_graph):
        graph = make_graph({"a": {}, "b": {}}, imports=[("a", "b"), ("a", "b")])
        assert len(list(graph.unique_edges(EdgeType.IMPORTS))) == 1

    def test_round_trip(self, make_graph):
        graph = make_graph(
            {"src/a.ts": {"complexity": 4, "contributors": ["alice"]}, "src/b.ts": {}},
            imports=[("src/a.ts", "src/b.ts")],
            symbols=[{"file": "src/a.ts", "name": "run", "complexity": 2}],
        )
        restored = KnowledgeGraph.from_dict(graph.to_dict())
        assert restored.to_dict() == graph.to_dict()

    def test_nodes_given_as_list(self):
        data = {
            "metadata": {"rootDir": "/repo", "scannedAt": "2024-01-01T00:00:00.000Z"},
            "nodes": [{"id": "a", "type": "file", "name": "a", "filePath": "a"}],
            "edges": [],
        }
        assert list(KnowledgeGraph.from_dict(data).nodes) == ["a"]

    def test_non_object_document_rejected(self):
        with pytest.raises(InvalidGraphError):
            KnowledgeGraph.from_dict([])
