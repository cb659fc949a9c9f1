"""
Project-wide dependency graph assembled from per-file export/import facts.

The graph accumulates one atomic contribution per file and is then frozen;
detectors only ever read a frozen graph.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .node_types import (
    ExportKind,
    ExportRecord,
    FileFacts,
    ImportRecord,
    is_external,
)
from .resolver import ModuleResolver, canonical_path


class GraphFrozenError(RuntimeError):
    """Raised when a frozen graph is asked to accept more facts."""


class DependencyGraph:
    def __init__(self) -> None:
        # file -> exported names
        self.exports: Dict[str, Set[str]] = {}
        self.export_records: Dict[str, List[ExportRecord]] = {}
        # file -> resolved imports (including edges derived from re-exports)
        self.imports: Dict[str, List[ImportRecord]] = {}
        self.extractor: Dict[str, str] = {}
        self._frozen = False
        self._edges: Dict[Tuple[str, str], List[ImportRecord]] = {}
        self._consumed: Dict[str, Set[str]] = {}

    # ---- accumulation ----
    def add_file(
        self,
        path: str,
        exports: Iterable[ExportRecord],
        imports: Iterable[ImportRecord],
        extractor: str = "parser",
    ) -> None:
        if self._frozen:
            raise GraphFrozenError(f"graph is frozen, cannot add {path}")
        key = canonical_path(path)
        export_list = list(exports)
        import_list = list(imports)
        # single assignment per map: a file is either fully merged or absent
        self.export_records[key] = export_list
        self.exports[key] = {e.name for e in export_list}
        self.imports[key] = import_list
        self.extractor[key] = extractor

    def freeze(self) -> "DependencyGraph":
        if self._frozen:
            return self
        edges: Dict[Tuple[str, str], List[ImportRecord]] = defaultdict(list)
        consumed: Dict[str, Set[str]] = defaultdict(set)
        for importer, records in self.imports.items():
            for rec in records:
                edges[(importer, rec.resolved)].append(rec)
                if not is_external(rec.resolved):
                    consumed[rec.resolved].add(rec.name)
        self._edges = dict(edges)
        self._consumed = dict(consumed)
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ---- read side ----
    def _require_frozen(self) -> None:
        if not self._frozen:
            raise RuntimeError("dependency graph must be frozen before analysis")

    @property
    def files(self) -> List[str]:
        """Files that contributed facts, in merge order."""
        return list(self.exports.keys())

    def __contains__(self, path: str) -> bool:
        return path in self.exports

    def __len__(self) -> int:
        return len(self.exports)

    @property
    def edges(self) -> Dict[Tuple[str, str], List[ImportRecord]]:
        self._require_frozen()
        return self._edges

    def consumed_names(self, target: str) -> Set[str]:
        """Names imported from ``target`` anywhere in the project."""
        self._require_frozen()
        return self._consumed.get(target, set())

    def project_successors(self, node: str) -> List[str]:
        """Sorted project-file targets imported by ``node`` (no externals, no self-imports)."""
        self._require_frozen()
        targets = {
            rec.resolved
            for rec in self.imports.get(node, [])
            if not is_external(rec.resolved) and rec.resolved in self.exports and rec.resolved != node
        }
        return sorted(targets)

    def project_edges(self) -> Set[Tuple[str, str]]:
        self._require_frozen()
        return {
            (src, dst)
            for (src, dst) in self._edges
            if not is_external(dst) and dst in self.exports and src != dst
        }


class GraphBuilder:
    """Resolves each file's imports and merges the file into the graph."""

    def __init__(self, resolver: Optional[ModuleResolver] = None):
        self.resolver = resolver or ModuleResolver()
        self.graph = DependencyGraph()

    def resolve_facts(self, facts: FileFacts) -> List[ImportRecord]:
        """Resolved import records for ``facts`` including re-export edges.

        ``export { x } from "./y"`` consumes ``x`` from ``./y``; wildcard and
        namespace re-exports consume the whole module (``"*"``).
        """
        path = canonical_path(facts.path)
        out: List[ImportRecord] = []
        for rec in facts.imports:
            out.append(
                ImportRecord(
                    name=rec.name,
                    source=rec.source,
                    file=path,
                    line=rec.line,
                    resolved=self.resolver.resolve(path, rec.source),
                )
            )
        for exp in facts.exports:
            if exp.source is None:
                continue
            name = "*" if exp.kind in (ExportKind.WILDCARD, ExportKind.NAMESPACE) else (exp.imported or exp.name)
            out.append(
                ImportRecord(
                    name=name,
                    source=exp.source,
                    file=path,
                    line=exp.line,
                    resolved=self.resolver.resolve(path, exp.source),
                )
            )
        return out

    def add_facts(self, facts: FileFacts) -> None:
        imports = self.resolve_facts(facts)
        self.graph.add_file(facts.path, facts.exports, imports, extractor=facts.extractor)

    def build(self) -> DependencyGraph:
        return self.graph.freeze()
