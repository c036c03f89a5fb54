"""Tests for graph persistence under the state directory."""

import json
import os

from specter.exceptions import CorruptStateError
from specter.graph.store import GraphStore


class TestGraphStore:
    def test_missing_graph_is_empty(self, tmp_path):
        outcome = GraphStore().load(tmp_path)
        assert outcome.is_empty
        assert "specter scan" in outcome.reason

    def test_round_trip(self, tmp_path, make_graph):
        graph = make_graph({"src/a.ts": {"complexity": 3}}, imports=[("src/a.ts", "src/b.ts")])
        store = GraphStore()
        path = store.save(tmp_path, graph)

        assert path == tmp_path / ".specter" / "graph.json"
        loaded = store.load(tmp_path).value
        assert loaded.to_dict() == graph.to_dict()
        assert loaded.metadata.node_count == 1
        assert loaded.metadata.edge_count == 1

    def test_metadata_file_written(self, tmp_path, make_graph):
        store = GraphStore()
        store.save(tmp_path, make_graph({"a": {}, "b": {}}))
        metadata = store.load_metadata(tmp_path).value
        assert metadata.file_count == 2
        assert metadata.root_dir == "/repo"

    def test_persisted_keys_are_camel_case(self, tmp_path, make_graph):
        GraphStore().save(tmp_path, make_graph({"a": {}}))
        data = json.loads((tmp_path / ".specter" / "graph.json").read_text())
        assert "scannedAt" in data["metadata"]
        assert "filePath" in data["nodes"]["a"]

    def test_invalid_json_is_failed(self, tmp_path):
        state = tmp_path / ".specter"
        state.mkdir()
        (state / "graph.json").write_text("{")
        outcome = GraphStore().load(tmp_path)
        assert outcome.is_failed
        assert isinstance(outcome.error, CorruptStateError)

    def test_malformed_document_is_failed(self, tmp_path):
        state = tmp_path / ".specter"
        state.mkdir()
        (state / "graph.json").write_text(json.dumps({"nodes": {"a": {"type": "planet"}}}))
        outcome = GraphStore().load(tmp_path)
        assert outcome.is_failed
        assert isinstance(outcome.error, CorruptStateError)

    def test_custom_state_dir(self, tmp_path, make_graph):
        store = GraphStore(state_dir=".cache/specter")
        store.save(tmp_path, make_graph({"a": {}}))
        assert (tmp_path / ".cache" / "specter" / "graph.json").is_file()
        assert store.exists(tmp_path)

    def test_gitignore_entry_added_once(self, tmp_path, make_graph):
        (tmp_path / ".git").mkdir()
        store = GraphStore()
        store.save(tmp_path, make_graph({"a": {}}))
        store.save(tmp_path, make_graph({"a": {}}))
        assert (tmp_path / ".gitignore").read_text() == ".specter/\n"

    def test_gitignore_appended(self, tmp_path, make_graph):
        (tmp_path / ".gitignore").write_text("node_modules")
        GraphStore().save(tmp_path, make_graph({"a": {}}))
        assert (tmp_path / ".gitignore").read_text() == "node_modules\n.specter/\n"

    def test_no_gitignore_outside_repository(self, tmp_path, make_graph):
        GraphStore().save(tmp_path, make_graph({"a": {}}))
        assert not (tmp_path / ".gitignore").exists()

    def test_delete(self, tmp_path, make_graph):
        store = GraphStore()
        assert store.delete(tmp_path) is False
        store.save(tmp_path, make_graph({"a": {}}))
        assert store.delete(tmp_path) is True
        assert store.load(tmp_path).is_empty

    def test_is_stale(self, tmp_path, make_graph, now):
        graph = make_graph({"a.ts": {}})
        source = tmp_path / "a.ts"
        source.write_text("export const a = 1;\n")
        store = GraphStore()

        old = now.timestamp() - 3600
        os.utime(source, (old, old))
        assert store.is_stale(tmp_path, graph) is False

        new = now.timestamp() + 3600
        os.utime(source, (new, new))
        assert store.is_stale(tmp_path, graph) is True
