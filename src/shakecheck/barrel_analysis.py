"""
Barrel file checks based on the re-export facts already in the graph.

Only ``index.*`` modules are considered barrels. Wildcard re-exports
(``export *`` and ``export * as ns``) are reported one by one; a barrel with
many explicit re-export statements and no wildcard is reported once.
"""
from __future__ import annotations

import os
import re
from typing import List, Optional, Union

from .dependency_graph import DependencyGraph
from .node_types import BarrelFile, ExportKind, WildcardReexport
from .resolver import relative_to_root


BARREL_NAME = re.compile(r"^index\.(js|ts|jsx|tsx|mjs|mts)$")
WILDCARD_CRITICAL_ABOVE = 3
BARREL_REEXPORTS_ABOVE = 5

BarrelFinding = Union[WildcardReexport, BarrelFile]


def is_barrel_candidate(path: str) -> bool:
    return bool(BARREL_NAME.match(os.path.basename(path)))


def analyze_barrels(graph: DependencyGraph, root: Optional[str] = None) -> List[BarrelFinding]:
    findings: List[BarrelFinding] = []
    for file in graph.files:
        if not is_barrel_candidate(file):
            continue
        records = graph.export_records.get(file, [])
        wildcards = [r for r in records if r.kind in (ExportKind.WILDCARD, ExportKind.NAMESPACE)]
        # one `export { a, b } from "x"` statement counts once
        statements = {(r.source, r.statement_line or r.line) for r in records if r.is_reexport}
        rel = relative_to_root(file, root)
        if wildcards:
            severity = "critical" if len(wildcards) > WILDCARD_CRITICAL_ABOVE else "high"
            for rec in wildcards:
                findings.append(
                    WildcardReexport(
                        file=rel,
                        source=rec.source or "unknown",
                        line=rec.line,
                        severity=severity,
                        alias=rec.name if rec.kind == ExportKind.NAMESPACE else None,
                    )
                )
        elif len(statements) > BARREL_REEXPORTS_ABOVE:
            findings.append(BarrelFile(file=rel, reexports=len(statements)))
    return findings
