"""
Project-level entry point: discovery, graph assembly and all detectors.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .barrel_analysis import analyze_barrels
from .config_loader import AnalysisConfig, load_config
from .cycles import find_cycles
from .data_collector import Log, collect_project_data, collect_source_files
from .graphviz_render import render_dependency_graph
from .node_types import SEVERITY_ORDER
from .resolver import ModuleResolver, ResolutionTables, canonical_path
from .side_effects import check_side_effects_config
from .unused_exports import EntryPointPredicate, find_unused_exports, make_entry_point_predicate


def _severity_counts(issues: List[Dict[str, Any]]) -> Dict[str, int]:
    counts = {sev: 0 for sev in SEVERITY_ORDER}
    for issue in issues:
        counts[issue["severity"]] = counts.get(issue["severity"], 0) + 1
    return counts


def analyze_project(
    project_root: Union[str, Path],
    output: Optional[str] = None,
    format: Optional[str] = None,
    config: Optional[AnalysisConfig] = None,
    files: Optional[Sequence[str]] = None,
    is_entry_point: Optional[EntryPointPredicate] = None,
    verbose: bool = False,
    log: Optional[Log] = None,
) -> Dict[str, Any]:
    """Analyze a JS/TS project for tree-shaking blockers.

    Args:
        project_root: project directory; must exist
        output: directory for the rendered dependency graph; defaults to
            ``config.output`` (relative to ``project_root``), no rendering if neither is set
        format: Graphviz output format; defaults to ``config.format``
        config: analysis config; looked up from ``project_root`` when omitted
        files: explicit file list; discovered with include/exclude when omitted
        is_entry_point: overrides the configured entry point patterns
        verbose: print progress messages
        log: custom progress sink (takes precedence over ``verbose``)

    Returns:
        dict with ``summary``, ``unused_exports``, ``cycles``, ``barrels``,
        ``side_effects``, ``module_types``, ``issues`` (sorted by severity)
        and ``artifacts``.
    """
    root = canonical_path(str(project_root))
    if not os.path.isdir(root):
        raise FileNotFoundError(f"project root does not exist: {project_root}")
    if log is None:
        log = print if verbose else (lambda x: None)
    if config is None:
        config = load_config(cwd=Path(root))

    output_dir = Path(output) if output else None
    if output_dir is None and config.output:
        output_dir = Path(config.output)
        if not output_dir.is_absolute():
            output_dir = Path(root) / output_dir
    fmt = format or config.format

    if files is None:
        files = collect_source_files(root, config.include, config.exclude)
    log(f"Analyzing {len(files)} files under {root}")

    resolver = ModuleResolver(ResolutionTables.from_config(config.resolve))
    project = collect_project_data(files, root=root, resolver=resolver, workers=config.workers, log=log)
    graph = project.graph

    if is_entry_point is None:
        is_entry_point = make_entry_point_predicate(root, config.entry_points)

    unused = find_unused_exports(graph, is_entry_point, root)
    cycles = find_cycles(graph, root)
    barrels = analyze_barrels(graph, root)
    side_effects = check_side_effects_config(root) + project.side_effects
    module_types = project.module_types
    log(
        f"Found {len(unused)} unused exports, {len(cycles)} cycles, {len(barrels)} barrel issues, "
        f"{len(side_effects)} side effects, {len(module_types)} CommonJS issues"
    )

    findings = [*cycles, *barrels, *side_effects, *module_types, *unused]
    issues = [f.to_issue() for f in findings]
    issues.sort(key=lambda i: SEVERITY_ORDER.get(i["severity"], len(SEVERITY_ORDER)))

    artifacts: Dict[str, str] = {}
    if output_dir is not None:
        dot_path, rendered = render_dependency_graph(
            graph, cycles, unused, root, str(output_dir / "dependency_graph"), fmt
        )
        artifacts["dot"] = dot_path
        if rendered:
            artifacts[fmt] = rendered
        else:
            log("Graphviz executable not found, wrote DOT only")

    summary = {
        "project_path": root,
        "analyzed_files": len(project.files),
        "parsed_files": len(project.parsed),
        "fallback_files": len(project.fallback),
        "unreadable_files": len(project.unreadable),
        "total_issues": len(issues),
        "by_severity": _severity_counts(issues),
    }
    return {
        "summary": summary,
        "unused_exports": unused,
        "cycles": cycles,
        "barrels": barrels,
        "side_effects": side_effects,
        "module_types": module_types,
        "issues": issues,
        "artifacts": artifacts,
    }
