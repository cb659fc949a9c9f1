import pytest

from shakecheck.data_collector import collect_project_data
from shakecheck.dependency_graph import DependencyGraph, GraphBuilder, GraphFrozenError
from shakecheck.node_types import EXTERNAL, ExportKind, ExportRecord, FileFacts, ImportRecord
from shakecheck.resolver import canonical_path
from shakecheck.unused_exports import find_unused_exports


def _build(tmp_path, files):
    return collect_project_data([str(tmp_path / f) for f in files], root=str(tmp_path)).graph


def test_reexport_marks_source_used_and_extends_own_exports(tmp_path, w):
    w("a.ts", "export const X = 1;\n")
    w("b.ts", 'export { X } from "./a";\n')
    graph = _build(tmp_path, ["a.ts", "b.ts"])
    a, b = canonical_path(str(tmp_path / "a.ts")), canonical_path(str(tmp_path / "b.ts"))

    assert "X" in graph.exports[b]
    assert "X" in graph.consumed_names(a)
    assert graph.project_successors(b) == [a]

    unused = find_unused_exports(graph, lambda p: False, str(tmp_path))
    assert ("a.ts", "X") not in {(u.file, u.name) for u in unused}
    assert ("b.ts", "X") in {(u.file, u.name) for u in unused}


def test_renamed_reexport_consumes_local_name(tmp_path, w):
    w("a.ts", "export const inner = 1;\n")
    w("b.ts", 'export { inner as outer } from "./a";\n')
    graph = _build(tmp_path, ["a.ts", "b.ts"])
    a = canonical_path(str(tmp_path / "a.ts"))
    assert graph.consumed_names(a) == {"inner"}


def test_wildcard_reexport_consumes_whole_module(tmp_path, w):
    w("lib/a.ts", "export const one = 1;\nexport const two = 2;\n")
    w("lib/index.ts", 'export * from "./a";\n')
    graph = _build(tmp_path, ["lib/a.ts", "lib/index.ts"])
    a = canonical_path(str(tmp_path / "lib/a.ts"))
    assert graph.consumed_names(a) == {"*"}


def test_external_imports_are_edges_but_not_successors(tmp_path, w):
    w("a.ts", 'import React from "react";\nimport { b } from "./b";\nexport const a = b;\n')
    w("b.ts", "export const b = 1;\n")
    graph = _build(tmp_path, ["a.ts", "b.ts"])
    a, b = canonical_path(str(tmp_path / "a.ts")), canonical_path(str(tmp_path / "b.ts"))
    assert (a, EXTERNAL) in graph.edges
    assert graph.project_successors(a) == [b]
    assert graph.project_edges() == {(a, b)}


def test_edges_into_unreadable_file_point_at_missing_node(tmp_path, w):
    w("a.ts", 'import { x } from "./weird.ts";\nexport const a = x;\n')
    (tmp_path / "weird.ts").mkdir()
    project = collect_project_data(
        [str(tmp_path / "a.ts"), str(tmp_path / "weird.ts")], root=str(tmp_path)
    )
    weird = canonical_path(str(tmp_path / "weird.ts"))
    assert project.unreadable == [weird]
    assert weird not in project.graph
    a = canonical_path(str(tmp_path / "a.ts"))
    assert (a, weird) in project.graph.edges
    assert project.graph.project_successors(a) == []


def test_frozen_graph_rejects_additions():
    graph = DependencyGraph()
    graph.add_file("/p/a.ts", [], [])
    graph.freeze()
    assert graph.frozen
    with pytest.raises(GraphFrozenError):
        graph.add_file("/p/b.ts", [], [])
    assert len(graph) == 1


def test_read_side_requires_frozen_graph():
    graph = DependencyGraph()
    graph.add_file("/p/a.ts", [], [])
    with pytest.raises(RuntimeError):
        graph.project_successors("/p/a.ts")


def test_builder_resolves_each_import(tmp_path, w):
    w("a.ts", "")
    importer = canonical_path(str(tmp_path / "main.ts"))
    facts = FileFacts(
        path=importer,
        exports=[
            ExportRecord(name="ns", kind=ExportKind.NAMESPACE, file=importer, line=2, source="./a", imported="*")
        ],
        imports=[ImportRecord(name="default", source="./a", file=importer, line=1)],
    )
    builder = GraphBuilder()
    resolved = builder.resolve_facts(facts)
    target = canonical_path(str(tmp_path / "a.ts"))
    assert [(r.name, r.resolved) for r in resolved] == [("default", target), ("*", target)]
    builder.add_facts(facts)
    graph = builder.build()
    assert graph.exports[importer] == {"ns"}
    assert graph.consumed_names(target) == {"default", "*"}


def test_parallel_collection_matches_serial(tmp_path, w):
    for i in range(6):
        w(f"m{i}.ts", f'import {{ v }} from "./m{(i + 1) % 6}";\nexport const v = {i};\n')
    files = [str(tmp_path / f"m{i}.ts") for i in range(6)]
    serial = collect_project_data(files, root=str(tmp_path))
    parallel = collect_project_data(files, root=str(tmp_path), workers=4)
    assert serial.graph.files == parallel.graph.files
    assert serial.graph.project_edges() == parallel.graph.project_edges()


def test_nonexistent_root_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        collect_project_data([], root=str(tmp_path / "nope"))
