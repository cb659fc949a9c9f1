"""
Literal/comment masking for JavaScript and TypeScript sources.

Replaces comment bodies, string literals and template-literal text with blanks
so that pattern-based scanners cannot match inside them. The output has the
same length as the input and keeps every newline, so offsets and line numbers
computed on the mask are valid for the raw text as well.

Template interpolation holes (``${ ... }``) are code: their contents are kept,
including nested strings and templates, which are masked in turn.
"""
from __future__ import annotations

from typing import List


def _blank(ch: str) -> str:
    return "\n" if ch == "\n" else " "


def mask_literals_and_comments(text: str) -> str:
    """Return ``text`` with comments, string and template contents blanked.

    Single linear pass, no grammar:
      - ``// ...`` up to (not including) the newline
      - ``/* ... */`` including the delimiters; unterminated runs to EOF
      - ``'...'`` / ``"..."`` including quotes; an unterminated string stops at
        the next newline, which is kept
      - ```...``` including backticks, except interpolation holes
      - a backslash escape is masked as one two-character unit
    """
    out = list(text)
    n = len(text)
    # brace depth per open interpolation hole, innermost last
    holes: List[int] = []
    in_template = False
    i = 0
    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if in_template:
            if ch == "\\" and i + 1 < n:
                out[i] = " "
                out[i + 1] = _blank(nxt)
                i += 2
                continue
            if ch == "$" and nxt == "{":
                out[i] = out[i + 1] = " "
                holes.append(0)
                in_template = False
                i += 2
                continue
            out[i] = _blank(ch)
            if ch == "`":
                in_template = False
            i += 1
            continue

        if ch == "/" and nxt == "/":
            while i < n and text[i] != "\n":
                out[i] = " "
                i += 1
            continue

        if ch == "/" and nxt == "*":
            end = text.find("*/", i + 2)
            stop = n if end < 0 else end + 2
            for j in range(i, stop):
                out[j] = _blank(text[j])
            i = stop
            continue

        if ch == "`":
            out[i] = " "
            in_template = True
            i += 1
            continue

        if ch == "'" or ch == '"':
            out[i] = " "
            i += 1
            while i < n:
                c = text[i]
                if c == "\\" and i + 1 < n:
                    out[i] = " "
                    out[i + 1] = _blank(text[i + 1])
                    i += 2
                    continue
                if c == "\n":
                    i += 1
                    break
                out[i] = " "
                i += 1
                if c == ch:
                    break
            continue

        if holes:
            if ch == "{":
                holes[-1] += 1
            elif ch == "}":
                if holes[-1] == 0:
                    holes.pop()
                    out[i] = " "
                    in_template = True
                    i += 1
                    continue
                holes[-1] -= 1
        i += 1

    return "".join(out)


def is_code_at(text: str, mask: str, offset: int) -> bool:
    """True when ``offset`` falls on a non-blank character that survived masking."""
    if offset < 0 or offset >= len(mask):
        return False
    ch = mask[offset]
    return ch == text[offset] and not ch.isspace()


def line_of(text: str, offset: int) -> int:
    """1-based line number of ``offset``."""
    return text.count("\n", 0, offset) + 1


def brace_depth_by_line(mask: str) -> List[int]:
    """Brace nesting depth at the start of each line (index 0 is line 1)."""
    depths = [0]
    depth = 0
    for ch in mask:
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth = max(0, depth - 1)
        elif ch == "\n":
            depths.append(depth)
    return depths
