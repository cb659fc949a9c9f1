"""
Full-syntax export/import extraction backed by tree-sitter.

A file is parsed with the grammar matching its extension. Any syntax error in
the tree means the parse failed: nothing is emitted and the caller switches to
the pattern-based extractor (see ``regex_extract``).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Iterator, Optional, Tuple

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from .node_types import ExportKind, FactsBuilder, FileFacts, SourceFile


TS_EXTENSIONS = {".ts", ".mts", ".cts"}
TSX_EXTENSIONS = {".tsx"}

# Declarations carrying their binding in a ``name`` field
_NAMED_DECLARATIONS = {
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
    "class_declaration",
    "abstract_class_declaration",
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
    "module",
    "internal_module",
}
_VARIABLE_DECLARATIONS = {"lexical_declaration", "variable_declaration"}


@lru_cache(maxsize=None)
def _language(grammar: str) -> Language:
    if grammar == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    if grammar == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    return Language(tree_sitter_javascript.language())


def grammar_for(path: str) -> str:
    lowered = path.lower()
    for ext in TSX_EXTENSIONS:
        if lowered.endswith(ext):
            return "tsx"
    for ext in TS_EXTENSIONS:
        if lowered.endswith(ext):
            return "typescript"
    return "javascript"


def node_text(node: Node) -> str:
    return node.text.decode("utf-8", errors="replace") if node.text is not None else ""


def node_line(node: Node) -> int:
    return node.start_point[0] + 1


def _string_value(node: Optional[Node]) -> Optional[str]:
    if node is None:
        return None
    raw = node_text(node)
    if len(raw) >= 2 and raw[0] in "'\"" and raw[-1] == raw[0]:
        return raw[1:-1]
    return raw


def _export_name(node: Optional[Node]) -> Optional[str]:
    # export specifiers may use string names: export { x as "a-b" }
    if node is None:
        return None
    if node.type == "string":
        return _string_value(node)
    return node_text(node)


def _binding_names(node: Node) -> Iterator[str]:
    """Identifiers bound by a declarator target (plain name or destructuring pattern)."""
    kind = node.type
    if kind in ("identifier", "shorthand_property_identifier_pattern"):
        yield node_text(node)
    elif kind == "pair_pattern":
        value = node.child_by_field_name("value")
        if value is not None:
            yield from _binding_names(value)
    elif kind in ("assignment_pattern", "object_assignment_pattern"):
        left = node.child_by_field_name("left")
        if left is not None:
            yield from _binding_names(left)
    elif kind in ("object_pattern", "array_pattern", "rest_pattern"):
        for child in node.named_children:
            yield from _binding_names(child)


def _declared_names(decl: Node) -> Iterator[Tuple[str, Node]]:
    if decl.type in _VARIABLE_DECLARATIONS:
        for declarator in decl.named_children:
            if declarator.type != "variable_declarator":
                continue
            target = declarator.child_by_field_name("name")
            if target is None:
                continue
            for name in _binding_names(target):
                yield name, declarator
        return
    if decl.type == "ambient_declaration":
        # export declare const x / export declare function f()
        for child in decl.named_children:
            yield from _declared_names(child)
        return
    if decl.type in _NAMED_DECLARATIONS:
        name_node = decl.child_by_field_name("name")
        if name_node is not None:
            yield node_text(name_node), decl


class _FactCollector(FactsBuilder):
    def __init__(self, path: str):
        super().__init__(path, extractor="parser")

    def visit_export(self, node: Node) -> None:
        source = _string_value(node.child_by_field_name("source"))
        tokens = {child.type for child in node.children if not child.is_named}

        if "default" in tokens:
            self.export("default", node_line(node), ExportKind.DEFAULT)
            return

        for child in node.named_children:
            if child.type == "namespace_export" and source is not None:
                # export * as ns from "./x"
                name_node = child.named_children[-1] if child.named_children else None
                name = _export_name(name_node)
                if name:
                    self.export(
                        name,
                        node_line(child),
                        ExportKind.NAMESPACE,
                        source=source,
                        imported="*",
                        statement_line=node_line(node),
                    )
                return
            if child.type == "export_clause":
                for spec in child.named_children:
                    if spec.type != "export_specifier":
                        continue
                    local = _export_name(spec.child_by_field_name("name"))
                    if not local:
                        continue
                    exported = _export_name(spec.child_by_field_name("alias")) or local
                    if source is not None:
                        self.export(
                            exported,
                            node_line(spec),
                            source=source,
                            imported=local,
                            statement_line=node_line(node),
                        )
                    else:
                        self.export(exported, node_line(spec))
                return

        if "*" in tokens and source is not None:
            self.export(
                f"* from {source}",
                node_line(node),
                ExportKind.WILDCARD,
                source=source,
                imported="*",
                statement_line=node_line(node),
            )
            return

        decl = node.child_by_field_name("declaration")
        if decl is not None:
            for name, at in _declared_names(decl):
                self.export(name, node_line(at))

    def visit_import(self, node: Node) -> None:
        source = _string_value(node.child_by_field_name("source"))
        for child in node.named_children:
            if child.type == "import_require_clause":
                # TS: import x = require("./y") binds the whole module
                req = _string_value(child.child_by_field_name("source"))
                if req is not None:
                    self.import_("*", req, node_line(child))
                continue
            if child.type != "import_clause" or source is None:
                continue
            for part in child.named_children:
                if part.type == "identifier":
                    self.import_("default", source, node_line(part))
                elif part.type == "namespace_import":
                    self.import_("*", source, node_line(part))
                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type != "import_specifier":
                            continue
                        name = _export_name(spec.child_by_field_name("name"))
                        if name:
                            self.import_(name, source, node_line(spec))


def parse_tree(source: SourceFile) -> Tree:
    parser = Parser(_language(grammar_for(source.path)))
    return parser.parse(source.text.encode("utf-8"))


def parse_module_facts(source: SourceFile, tree: Optional[Tree] = None) -> Tuple[bool, Optional[FileFacts]]:
    """Parse ``source`` (unless ``tree`` is given) and collect its facts.

    Returns ``(True, facts)`` on a clean parse and ``(False, None)`` when the
    tree contains syntax errors; a failed parse never yields partial facts.
    """
    if tree is None:
        tree = parse_tree(source)
    root = tree.root_node
    if root.has_error:
        return False, None

    collector = _FactCollector(source.path)
    # import/export declarations are only legal at module top level
    for node in root.children:
        if node.type == "export_statement":
            collector.visit_export(node)
        elif node.type == "import_statement":
            collector.visit_import(node)
    return True, collector.facts
