"""
Side-effect detection: code that runs as soon as a module is imported.

A bundler has to keep a module with top-level side effects even when none of
its exports are used. Checked per file:

  - top-level calls to effectful functions (timers, fetch, listeners, dialogs)
  - assignments to ``window`` / ``global`` / ``globalThis`` properties
  - other top-level statements on runtime globals (``console.log(...)``)
  - bare imports (``import "./setup"``); style sheets are expected and skipped

and once per project, the ``sideEffects`` field of ``package.json``.
"""
from __future__ import annotations

import json
import os
import re
from typing import Iterator, List, Optional, Set

from tree_sitter import Node, Tree

from .js_parse import node_line, node_text
from .literal_mask import brace_depth_by_line, is_code_at, line_of
from .node_types import SideEffect, SourceFile


SIDE_EFFECT_CALLS = frozenset(
    {
        "require",
        "fetch",
        "setTimeout",
        "setInterval",
        "addEventListener",
        "removeEventListener",
        "dispatchEvent",
        "alert",
        "confirm",
        "prompt",
    }
)
# `const x = require("y")` is module loading; module_type reports it
DECLARATION_CALLS = SIDE_EFFECT_CALLS - {"require"}
GLOBAL_OBJECTS = frozenset({"window", "global", "globalThis"})
SIDE_EFFECT_OBJECTS = frozenset(
    {"console", "window", "document", "globalThis", "global", "localStorage", "sessionStorage"}
)
STYLE_EXTENSIONS = re.compile(r"\.(css|scss|sass|less|styl|stylus)$")

BARE_IMPORT = re.compile(
    r"""^[ \t]*(?P<kw>import)\s*(?P<q>['"])(?P<spec>[^'"\n]+)(?P=q)[ \t]*;?[ \t]*$""", re.M
)

# Pattern rules for files that did not parse; they run over the mask.
_CALLS = "|".join(sorted(DECLARATION_CALLS))
FALLBACK_CALL = re.compile(
    r"^[ \t]*(?:(?:export\s+)?(?:const|let|var)\s+[A-Za-z_$][\w$]*\s*=\s*)?(?:await\s+)?"
    rf"(?:[A-Za-z_$][\w$]*\.)?(?P<name>{_CALLS})\s*\(",
    re.M,
)
FALLBACK_GLOBAL_ASSIGN = re.compile(
    r"^[ \t]*(?P<obj>window|global|globalThis)\.(?P<prop>[A-Za-z_$][\w$]*)\s*=(?!=)", re.M
)
FALLBACK_STATEMENT = re.compile(
    r"^[ \t]*(?P<obj>console|window|document|globalThis|global|localStorage|sessionStorage)\.", re.M
)

_PATTERN_WIDTH = 60


def _call(rel: str, line: int, name: str) -> SideEffect:
    return SideEffect(file=rel, line=line, kind="call", pattern=f"{name}()", severity="high")


def _global_assignment(rel: str, line: int, obj: str, prop: str) -> SideEffect:
    return SideEffect(
        file=rel,
        line=line,
        kind="global-assignment",
        pattern=f"Global assignment: {obj}.{prop}",
        severity="high",
    )


def _statement(rel: str, line: int, text: str) -> SideEffect:
    first = text.strip().splitlines()[0] if text.strip() else text
    return SideEffect(
        file=rel, line=line, kind="statement", pattern=first[:_PATTERN_WIDTH], severity="medium"
    )


# ---- parsed files ----


def _unwrap_await(node: Optional[Node]) -> Optional[Node]:
    if node is not None and node.type == "await_expression" and node.named_children:
        return node.named_children[0]
    return node


def _callee_name(call: Node) -> Optional[str]:
    fn = call.child_by_field_name("function")
    if fn is None:
        return None
    if fn.type == "identifier":
        return node_text(fn)
    if fn.type == "member_expression":
        prop = fn.child_by_field_name("property")
        return node_text(prop) if prop is not None else None
    return None


def _root_object(expr: Optional[Node]) -> Optional[Node]:
    node = expr
    while node is not None:
        if node.type == "identifier":
            return node
        if node.type == "call_expression":
            node = node.child_by_field_name("function")
        elif node.type == "member_expression":
            node = node.child_by_field_name("object")
        elif node.type in ("assignment_expression", "augmented_assignment_expression"):
            node = node.child_by_field_name("left")
        else:
            return None
    return None


def _expression_effects(stmt: Node, rel: str) -> Iterator[SideEffect]:
    expr = _unwrap_await(stmt.named_children[0] if stmt.named_children else None)
    if expr is None:
        return
    line = node_line(stmt)
    if expr.type == "call_expression":
        name = _callee_name(expr)
        if name in SIDE_EFFECT_CALLS:
            yield _call(rel, line, name)
            return
    if expr.type == "assignment_expression":
        left = expr.child_by_field_name("left")
        if left is not None and left.type == "member_expression":
            obj = left.child_by_field_name("object")
            if obj is not None and obj.type == "identifier" and node_text(obj) in GLOBAL_OBJECTS:
                prop = left.child_by_field_name("property")
                yield _global_assignment(
                    rel, line, node_text(obj), node_text(prop) if prop is not None else "..."
                )
                return
    obj = _root_object(expr)
    if obj is not None and node_text(obj) in SIDE_EFFECT_OBJECTS:
        yield _statement(rel, line, node_text(stmt))


def _declaration_effects(decl: Node, rel: str) -> Iterator[SideEffect]:
    for declarator in decl.named_children:
        if declarator.type != "variable_declarator":
            continue
        value = _unwrap_await(declarator.child_by_field_name("value"))
        if value is not None and value.type == "call_expression":
            name = _callee_name(value)
            if name in DECLARATION_CALLS:
                yield _call(rel, node_line(declarator), name)


def _tree_effects(tree: Tree, rel: str) -> Iterator[SideEffect]:
    for node in tree.root_node.children:
        if node.type == "expression_statement":
            yield from _expression_effects(node, rel)
        elif node.type in ("lexical_declaration", "variable_declaration"):
            yield from _declaration_effects(node, rel)
        elif node.type == "export_statement":
            decl = node.child_by_field_name("declaration")
            if decl is not None and decl.type in ("lexical_declaration", "variable_declaration"):
                yield from _declaration_effects(decl, rel)


# ---- files that did not parse ----


def _pattern_effects(source: SourceFile, rel: str) -> Iterator[SideEffect]:
    mask = source.mask
    depths = brace_depth_by_line(mask)
    reported: Set[int] = set()

    def top_level(offset: int) -> Optional[int]:
        line = line_of(mask, offset)
        return line if depths[line - 1] == 0 and line not in reported else None

    for m in FALLBACK_CALL.finditer(mask):
        line = top_level(m.start())
        if line is not None:
            reported.add(line)
            yield _call(rel, line, m.group("name"))
    for m in FALLBACK_GLOBAL_ASSIGN.finditer(mask):
        line = top_level(m.start())
        if line is not None:
            reported.add(line)
            yield _global_assignment(rel, line, m.group("obj"), m.group("prop"))
    for m in FALLBACK_STATEMENT.finditer(mask):
        line = top_level(m.start())
        if line is not None:
            reported.add(line)
            end = source.text.find("\n", m.start())
            yield _statement(rel, line, source.text[m.start(): end if end >= 0 else None])


def _bare_imports(source: SourceFile, rel: str) -> Iterator[SideEffect]:
    for m in BARE_IMPORT.finditer(source.text):
        if not is_code_at(source.text, source.mask, m.start("kw")):
            continue
        spec = m.group("spec")
        if STYLE_EXTENSIONS.search(spec):
            continue
        yield SideEffect(
            file=rel,
            line=line_of(source.text, m.start("kw")),
            kind="bare-import",
            pattern=f"import '{spec}'",
            severity="low",
        )


def analyze_side_effects(source: SourceFile, rel: str, tree: Optional[Tree] = None) -> List[SideEffect]:
    """Side effects of one file.

    ``tree`` is a clean parse of ``source``; without one the pattern rules run
    over the literal/comment mask instead.
    """
    found = list(_tree_effects(tree, rel) if tree is not None else _pattern_effects(source, rel))
    found.extend(_bare_imports(source, rel))
    found.sort(key=lambda s: s.line or 0)
    return found


def check_side_effects_config(project_root: str) -> List[SideEffect]:
    """Findings for the ``sideEffects`` field of ``<project_root>/package.json``."""
    path = os.path.join(project_root, "package.json")
    if not os.path.isfile(path):
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return []
    if not isinstance(data, dict):
        return []
    if "sideEffects" not in data:
        return [
            SideEffect(
                file="package.json",
                line=None,
                kind="config-missing",
                pattern="missing sideEffects field",
                severity="medium",
            )
        ]
    if data["sideEffects"] is True:
        return [
            SideEffect(
                file="package.json",
                line=None,
                kind="config-true",
                pattern="sideEffects: true",
                severity="high",
            )
        ]
    return []
