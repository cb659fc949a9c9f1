from __future__ import annotations

import os
from typing import Dict, Iterable, Optional, Set, Tuple

from graphviz import Digraph
from graphviz.backend import ExecutableNotFound

from .dependency_graph import DependencyGraph
from .node_types import CircularDependency, UnusedExport
from .resolver import relative_to_root


def _get_short_name(rel_path: str) -> str:
    """Display name for a file node - last two path segments."""
    if not rel_path:
        return "root"
    parts = rel_path.split("/")
    return "/".join(parts[-2:])


def _cycle_edges(cycles: Iterable[CircularDependency]) -> Set[Tuple[str, str]]:
    out: Set[Tuple[str, str]] = set()
    for cyc in cycles:
        members = list(cyc.members)
        for i, src in enumerate(members):
            out.add((src, members[(i + 1) % len(members)]))
    return out


def render_dependency_graph(
    graph: DependencyGraph,
    cycles: Iterable[CircularDependency],
    unused: Iterable[UnusedExport],
    root: Optional[str],
    output_base: str,
    fmt: str = "svg",
) -> Tuple[str, str]:
    """
    Render the project-internal import graph.

    Cycle edges are red and bold; files with unused exports are filled amber.
    Returns (dot_path, rendered_path); rendered_path is "" when the Graphviz
    executable is not installed.
    """
    dot = Digraph(
        "shakecheck",
        graph_attr={
            "rankdir": "LR",
            "splines": "spline",
            "label": "Module Dependency Graph",
            "labelloc": "t",
        },
        node_attr={"shape": "box", "style": "rounded,filled", "fontname": "Helvetica"},
        edge_attr={"arrowhead": "vee"},
    )

    unused_count: Dict[str, int] = {}
    for item in unused:
        unused_count[item.file] = unused_count.get(item.file, 0) + 1

    for path in graph.files:
        rel = relative_to_root(path, root)
        count = unused_count.get(rel, 0)
        label = _get_short_name(rel)
        if count:
            label += f"\nunused exports: {count}"
        dot.node(rel, label=label, fillcolor="#FFC107" if count else "#FFFFFF")

    in_cycle = _cycle_edges(cycles)
    for src, dst in sorted(graph.project_edges()):
        s, d = relative_to_root(src, root), relative_to_root(dst, root)
        if (s, d) in in_cycle:
            dot.edge(s, d, color="#F44336", style="solid", penwidth="3")
        else:
            dot.edge(s, d, color="#9E9E9E", style="solid", penwidth="1")

    parent = os.path.dirname(output_base)
    if parent:
        os.makedirs(parent, exist_ok=True)
    dot_path = f"{output_base}.dot"
    rendered_path = f"{output_base}.{fmt}"
    dot.save(dot_path)

    try:
        dot.render(output_base, format=fmt, cleanup=True)
    except ExecutableNotFound:
        # Only DOT written; caller should inform user
        rendered_path = ""
    return dot_path, rendered_path
