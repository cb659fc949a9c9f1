"""
Source discovery and the per-file pipeline feeding the dependency graph:

    read -> mask -> parse (tree-sitter) | patterns -> resolve -> merge

Side-effect and module-type findings are collected from the same parse.
"""
from __future__ import annotations

import fnmatch
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Iterable, List, Optional, Sequence

from tree_sitter import Tree

from .dependency_graph import DependencyGraph, GraphBuilder
from .js_parse import parse_module_facts, parse_tree
from .module_type import analyze_module_type
from .node_types import CommonJSUsage, FileFacts, SideEffect, SourceFile
from .regex_extract import extract_with_patterns
from .resolver import ModuleResolver, canonical_path, relative_to_root
from .side_effects import analyze_side_effects


Log = Callable[[str], None]


@dataclass
class ProjectData:
    root: Optional[str]
    graph: DependencyGraph
    files: List[str] = field(default_factory=list)
    parsed: List[str] = field(default_factory=list)
    fallback: List[str] = field(default_factory=list)
    unreadable: List[str] = field(default_factory=list)
    side_effects: List[SideEffect] = field(default_factory=list)
    module_types: List[CommonJSUsage] = field(default_factory=list)


def _match(rel: str, pattern: str) -> bool:
    if fnmatch.fnmatch(rel, pattern):
        return True
    # "**/x" also matches "x" at the top level
    while pattern.startswith("**/"):
        pattern = pattern[3:]
        if fnmatch.fnmatch(rel, pattern):
            return True
    return False


def _match_any(rel: str, patterns: Iterable[str]) -> bool:
    return any(_match(rel, pat) for pat in patterns)


def collect_source_files(root: str, include: Sequence[str], exclude: Sequence[str]) -> List[str]:
    """Walk ``root`` and return sorted absolute paths matching include/exclude globs."""
    base = canonical_path(root)
    if not os.path.isdir(base):
        raise FileNotFoundError(f"project root does not exist: {root}")
    collected: List[str] = []
    for dirpath, dirnames, filenames in os.walk(base):
        # prune excluded dirs
        for d in list(dirnames):
            rel_dir = relative_to_root(os.path.join(dirpath, d), base)
            if _match_any(rel_dir, exclude) or _match_any(rel_dir + "/", exclude):
                dirnames.remove(d)
        for fn in filenames:
            f_path = os.path.join(dirpath, fn)
            rel = relative_to_root(f_path, base)
            if _match_any(rel, exclude):
                continue
            if include and not _match_any(rel, include):
                continue
            collected.append(f_path)
    return sorted(collected)


def read_source(path: str) -> Optional[SourceFile]:
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            text = f.read()
    except OSError:
        return None
    return SourceFile(path=canonical_path(path), text=text)


def extract_facts(source: SourceFile, tree: Optional[Tree] = None) -> FileFacts:
    """Full parse first; the pattern rules only run when the parse failed."""
    ok, facts = parse_module_facts(source, tree)
    if ok and facts is not None:
        return facts
    return extract_with_patterns(source)


@dataclass
class FileResult:
    facts: FileFacts
    side_effects: List[SideEffect] = field(default_factory=list)
    module_types: List[CommonJSUsage] = field(default_factory=list)


def analyze_file(source: SourceFile, rel: str) -> FileResult:
    """Facts and per-file findings, sharing one parse."""
    tree = parse_tree(source)
    facts = extract_facts(source, tree)
    clean = tree if facts.extractor == "parser" else None
    return FileResult(
        facts=facts,
        side_effects=analyze_side_effects(source, rel, clean),
        module_types=analyze_module_type(source, rel),
    )


def _process_file(path: str, root: Optional[str]) -> Optional[FileResult]:
    source = read_source(path)
    if source is None:
        return None
    return analyze_file(source, relative_to_root(path, root))


def collect_project_data(
    files: Sequence[str],
    root: Optional[str] = None,
    resolver: Optional[ModuleResolver] = None,
    workers: int = 1,
    log: Log = lambda x: None,
) -> ProjectData:
    """Extract every file, merge it into the graph and freeze the graph.

    Files are merged in input order, one contribution per file. A file that
    cannot be read contributes nothing and does not stop the run.
    """
    if root is not None and not os.path.isdir(root):
        raise FileNotFoundError(f"project root does not exist: {root}")

    builder = GraphBuilder(resolver)
    project = ProjectData(root=canonical_path(root) if root else None, graph=builder.graph)
    paths = [canonical_path(p) for p in files]
    project.files = paths

    process = partial(_process_file, root=project.root)
    if workers > 1 and len(paths) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(process, paths))
    else:
        results = [process(p) for p in paths]

    for path, result in zip(paths, results):
        rel = relative_to_root(path, project.root)
        if result is None:
            project.unreadable.append(path)
            log(f"Skipped unreadable file: {rel}")
            continue
        if result.facts.extractor == "fallback":
            project.fallback.append(path)
            log(f"Parse failed, pattern fallback: {rel}")
        else:
            project.parsed.append(path)
        builder.add_facts(result.facts)
        project.side_effects.extend(result.side_effects)
        project.module_types.extend(result.module_types)

    builder.build()
    log(
        f"Dependency graph: {len(project.graph)} files "
        f"({len(project.fallback)} via fallback, {len(project.unreadable)} unreadable)"
    )
    return project
