"""
Unused export detection over a frozen dependency graph.

An export is used when any import targeting its file consumes the same name,
imports the whole module as a namespace (``"*"``, which also covers wildcard
re-exports), or, for ``default``, imports the default binding. Entry points
are exempt: their exports are the program's public surface.
"""
from __future__ import annotations

import fnmatch
from typing import Callable, Iterable, List, Optional

from .dependency_graph import DependencyGraph
from .node_types import UnusedExport
from .resolver import relative_to_root


EntryPointPredicate = Callable[[str], bool]

DEFAULT_ENTRY_PATTERNS = [
    "src/index.*",
    "src/main.*",
    "src/app.*",
    "index.*",
    "main.*",
]


def make_entry_point_predicate(
    root: str, patterns: Optional[Iterable[str]] = None
) -> EntryPointPredicate:
    """Build a predicate matching root-relative, lower-cased paths against fnmatch patterns."""
    pats = [p.lower() for p in (DEFAULT_ENTRY_PATTERNS if patterns is None else patterns)]

    def is_entry_point(path: str) -> bool:
        rel = relative_to_root(path, root).lower()
        return any(fnmatch.fnmatch(rel, pat) for pat in pats)

    return is_entry_point


def find_unused_exports(
    graph: DependencyGraph,
    is_entry_point: Optional[EntryPointPredicate] = None,
    root: Optional[str] = None,
) -> List[UnusedExport]:
    if not graph.frozen:
        graph.freeze()
    findings: List[UnusedExport] = []
    for file in graph.files:
        if is_entry_point is not None and is_entry_point(file):
            continue
        used = graph.consumed_names(file)
        namespace_used = "*" in used
        for rec in graph.export_records.get(file, []):
            if rec.is_wildcard:
                continue
            if namespace_used or rec.name in used:
                continue
            findings.append(
                UnusedExport(file=relative_to_root(file, root), name=rec.name, line=rec.line)
            )
    return findings
