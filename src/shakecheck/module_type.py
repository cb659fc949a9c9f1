"""CommonJS usage: ``require`` mixed into ES modules and ``module.exports`` files."""
from __future__ import annotations

import re
from typing import List

from .literal_mask import is_code_at, line_of
from .node_types import CommonJSUsage, SourceFile


REQUIRE = re.compile(r"""\brequire\s*\(\s*(?P<q>['"])(?P<spec>[^'"$\n]+)(?P=q)\s*\)""")
MODULE_EXPORTS_ASSIGN = re.compile(r"\bmodule\.exports\s*=(?!=)")

CJS_PATTERNS = (
    REQUIRE,
    re.compile(r"\bmodule\.exports\b"),
    re.compile(r"\bexports\.[A-Za-z_$][\w$]*\s*=(?!=)"),
    re.compile(r"\b__dirname\b"),
    re.compile(r"\b__filename\b"),
)
ESM_PATTERNS = (
    re.compile(
        r"\bimport\s+(?:type\s+)?(?:[A-Za-z_$][\w$]*\s*,?\s*)?(?:\{[^}]*\}|\*\s*as\s+[A-Za-z_$][\w$]*)?\s*from\s*['\"]"
    ),
    re.compile(r"\bexport\s+(?:default|const|let|var|function|class|async|interface|type|enum|\{|\*)"),
    re.compile(r"\bimport\s*\("),
)


def _code_matches(source: SourceFile, pattern: re.Pattern) -> List[re.Match]:
    return [m for m in pattern.finditer(source.text) if is_code_at(source.text, source.mask, m.start())]


def _uses_any(source: SourceFile, patterns) -> bool:
    return any(_code_matches(source, p) for p in patterns)


def analyze_module_type(source: SourceFile, rel: str) -> List[CommonJSUsage]:
    """CommonJS findings for one file.

    A file with both systems gets one finding per ``require`` of a literal
    specifier. A CommonJS-only file that assigns ``module.exports`` gets one
    finding for the assignment.
    """
    if rel.endswith(".d.ts"):
        return []
    cjs = _uses_any(source, CJS_PATTERNS)
    if not cjs:
        return []
    if _uses_any(source, ESM_PATTERNS):
        return [
            CommonJSUsage(
                file=rel,
                line=line_of(source.text, m.start()),
                severity="high",
                module=m.group("spec"),
            )
            for m in _code_matches(source, REQUIRE)
        ]
    assigns = _code_matches(source, MODULE_EXPORTS_ASSIGN)
    if assigns:
        return [CommonJSUsage(file=rel, line=line_of(source.text, assigns[0].start()), severity="medium")]
    return []
