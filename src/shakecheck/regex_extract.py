"""
Pattern-based export/import extraction for files tree-sitter cannot parse.

The rules run over the raw text (specifiers live inside string literals) and a
match only counts when its first character is real code according to the
literal/comment mask, so ``// export const x`` is never reported.
"""
from __future__ import annotations

import re
from typing import Callable, Iterator, List, Pattern, Tuple

from .literal_mask import is_code_at, line_of
from .node_types import ExportKind, FactsBuilder, FileFacts, SourceFile


_IDENT = r"[A-Za-z_$][\w$]*"
# each rule uses the specifier group at most once
_SOURCE = r"""(?P<q>['"])(?P<spec>[^'"\n]+)(?P=q)"""

EXPORT_DECL = re.compile(
    r"\bexport\s+(?:declare\s+)?(?:async\s+)?(?:abstract\s+)?"
    r"(?:function\s*\*\s*|(?:const\s+enum|function|class|interface|type|enum|namespace)\s+)"
    rf"(?P<name>{_IDENT})"
)
EXPORT_VAR = re.compile(r"\bexport\s+(?:declare\s+)?(?:const|let|var)\s+(?=[A-Za-z_$\[{])(?!enum\b)")
EXPORT_DEFAULT = re.compile(r"\bexport\s+default\b")
EXPORT_LIST = re.compile(rf"\bexport\s+(?:type\s+)?\{{(?P<body>[^}}]*)\}}(?:\s*from\s*{_SOURCE})?")
EXPORT_ALL = re.compile(rf"\bexport\s+\*\s*(?:as\s+(?P<alias>{_IDENT})\s+)?from\s*{_SOURCE}")
IMPORT_LIST = re.compile(
    rf"\bimport\s+(?:type\s+)?(?:{_IDENT}\s*,\s*)?\{{(?P<body>[^}}]*)\}}\s*from\s*{_SOURCE}"
)
IMPORT_DEFAULT = re.compile(
    rf"\bimport\s+(?:type\s+)?(?P<name>{_IDENT})\s*"
    rf"(?:,\s*(?:\{{[^}}]*\}}|\*\s*as\s+{_IDENT})\s*)?from\s*{_SOURCE}"
)
IMPORT_NAMESPACE = re.compile(
    rf"\bimport\s+(?:type\s+)?(?:{_IDENT}\s*,\s*)?\*\s*as\s+{_IDENT}\s+from\s*{_SOURCE}"
)

_LIST_ITEM = re.compile(r"[^,]+")
_AS = re.compile(r"\s+as\s+")
_IDENT_RE = re.compile(_IDENT)
_BINDING_START = re.compile(rf"\s*({_IDENT}|[{{\[])")
_OPENERS = "([{"
_CLOSERS = ")]}"
# a declarator continues past a newline when the line ends in one of these
_CONTINUATION = set(",=+-*/%&|^!?:<>.([{")


def _list_items(source: SourceFile, match: re.Match) -> Iterator[Tuple[str, str, int]]:
    """Yield ``(local, exported, line)`` for each entry of a brace list.

    The list body is read from the mask, so comments inside it are blank.
    """
    start, end = match.span("body")
    body = source.mask[start:end]
    for item in _LIST_ITEM.finditer(body):
        raw = item.group(0)
        entry = raw.strip()
        if not entry:
            continue
        if entry.startswith("type "):
            entry = entry[5:].strip()
        parts = _AS.split(entry, maxsplit=1)
        local = parts[0].strip()
        exported = parts[1].strip() if len(parts) > 1 else local
        if not local or not exported:
            continue
        offset = start + item.start() + (len(raw) - len(raw.lstrip()))
        yield local, exported, line_of(source.text, offset)


# ---- declarator scanning (export const/let/var) ----


def _split_top(text: str, sep: str, maxsplit: int = -1) -> List[str]:
    """Split on ``sep`` outside of brackets."""
    parts: List[str] = []
    depth = 0
    last = 0
    for i, ch in enumerate(text):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(0, depth - 1)
        elif ch == sep and depth == 0 and (maxsplit < 0 or len(parts) < maxsplit):
            parts.append(text[last:i])
            last = i + 1
    parts.append(text[last:])
    return parts


def _pattern_names(body: str) -> Iterator[str]:
    """Names bound by a destructuring pattern, given the text between its brackets."""
    for entry in _split_top(body, ","):
        entry = entry.strip()
        if entry.startswith("..."):
            entry = entry[3:].strip()
        entry = _split_top(entry, "=", 1)[0].strip()
        key_value = _split_top(entry, ":", 1)
        if len(key_value) == 2:
            entry = key_value[1].strip()
        if entry[:1] in ("{", "[") and len(entry) >= 2:
            yield from _pattern_names(entry[1:-1])
        elif _IDENT_RE.fullmatch(entry):
            yield entry


def _matching(mask: str, start: int) -> int:
    """Index just past the bracket closing the one at ``start``."""
    depth = 0
    for i in range(start, len(mask)):
        ch = mask[i]
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
            if depth == 0:
                return i + 1
    return len(mask)


def _continues(text: str, mask: str, newline: int) -> bool:
    k = newline - 1
    while k >= 0 and text[k].isspace():
        k -= 1
    # a literal or comment ending the line leaves text and mask different
    if k >= 0 and mask[k] == text[k] and mask[k] in _CONTINUATION:
        return True
    j = newline + 1
    while j < len(mask) and mask[j].isspace():
        j += 1
    return j < len(mask) and mask[j] == ","


def _declarator_end(text: str, mask: str, pos: int) -> int:
    """Offset of the ``,`` or ``;`` ending the declarator at ``pos`` (or where it stops)."""
    n = len(mask)
    depth = 0
    angle = 0
    i = pos
    while i < n and mask[i] in " \t":
        i += 1
    in_type = i < n and mask[i] == ":"
    while i < n:
        ch = mask[i]
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            if depth == 0:
                return i
            depth -= 1
        elif depth == 0:
            if in_type:
                if ch == "=" and i + 1 < n and mask[i + 1] == ">":
                    i += 2
                    continue
                if ch == "<":
                    angle += 1
                elif ch == ">" and angle:
                    angle -= 1
                elif ch == "=" and angle == 0:
                    in_type = False
            if angle == 0:
                if ch in ",;":
                    return i
                if ch == "\n" and not _continues(text, mask, i):
                    return i
        i += 1
    return n


def declared_bindings(source: SourceFile, pos: int) -> Iterator[Tuple[str, int]]:
    """Yield ``(name, offset)`` for each binding of the declarator list at ``pos``."""
    text, mask = source.text, source.mask
    while True:
        m = _BINDING_START.match(mask, pos)
        if m is None:
            return
        start = m.start(1)
        if m.group(1)[0] in "{[":
            end = _matching(mask, start)
            for name in _pattern_names(mask[start + 1:end - 1]):
                yield name, start
            pos = end
        else:
            yield m.group(1), start
            pos = m.end(1)
        pos = _declarator_end(text, mask, pos)
        if pos >= len(mask) or mask[pos] != ",":
            return
        pos += 1


# ---- rule emitters ----


def _export_decl(source: SourceFile, m: re.Match, out: FactsBuilder) -> None:
    out.export(m.group("name"), line_of(source.text, m.start()))


def _export_var(source: SourceFile, m: re.Match, out: FactsBuilder) -> None:
    for name, offset in declared_bindings(source, m.end()):
        out.export(name, line_of(source.text, offset))


def _export_default(source: SourceFile, m: re.Match, out: FactsBuilder) -> None:
    out.export("default", line_of(source.text, m.start()), ExportKind.DEFAULT)


def _export_list(source: SourceFile, m: re.Match, out: FactsBuilder) -> None:
    spec = m.group("spec")
    statement_line = line_of(source.text, m.start())
    for local, exported, line in _list_items(source, m):
        if spec is not None:
            out.export(exported, line, source=spec, imported=local, statement_line=statement_line)
        else:
            out.export(exported, line)


def _export_all(source: SourceFile, m: re.Match, out: FactsBuilder) -> None:
    line = line_of(source.text, m.start())
    alias, spec = m.group("alias"), m.group("spec")
    if alias:
        out.export(alias, line, ExportKind.NAMESPACE, source=spec, imported="*", statement_line=line)
    else:
        out.export(f"* from {spec}", line, ExportKind.WILDCARD, source=spec, imported="*", statement_line=line)


def _import_list(source: SourceFile, m: re.Match, out: FactsBuilder) -> None:
    spec = m.group("spec")
    for local, _alias, line in _list_items(source, m):
        out.import_(local, spec, line)


def _import_default(source: SourceFile, m: re.Match, out: FactsBuilder) -> None:
    out.import_("default", m.group("spec"), line_of(source.text, m.start()))


def _import_namespace(source: SourceFile, m: re.Match, out: FactsBuilder) -> None:
    out.import_("*", m.group("spec"), line_of(source.text, m.start()))


Rule = Tuple[str, Pattern[str], Callable[[SourceFile, re.Match, FactsBuilder], None]]

# Order matters only for record order within a file.
PATTERN_RULES: Tuple[Rule, ...] = (
    ("export-declaration", EXPORT_DECL, _export_decl),
    ("export-variable", EXPORT_VAR, _export_var),
    ("export-default", EXPORT_DEFAULT, _export_default),
    ("export-list", EXPORT_LIST, _export_list),
    ("export-all", EXPORT_ALL, _export_all),
    ("import-list", IMPORT_LIST, _import_list),
    ("import-default", IMPORT_DEFAULT, _import_default),
    ("import-namespace", IMPORT_NAMESPACE, _import_namespace),
)


def extract_with_patterns(source: SourceFile, rules: Tuple[Rule, ...] = PATTERN_RULES) -> FileFacts:
    out = FactsBuilder(source.path, extractor="fallback")
    text, mask = source.text, source.mask
    for _name, pattern, emit in rules:
        for m in pattern.finditer(text):
            if not is_code_at(text, mask, m.start()):
                continue
            emit(source, m, out)
    return out.facts
