"""
Core data types shared by the extractors, the graph builder and the detectors.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple


# Resolution result for bare/package specifiers and unresolvable relative ones.
EXTERNAL = "<external>"


def is_external(target: Optional[str]) -> bool:
    return target is None or target == EXTERNAL


class ExportKind(Enum):
    NAMED = "named"
    DEFAULT = "default"
    NAMESPACE = "namespace-target"
    WILDCARD = "wildcard-reexport"


@dataclass
class SourceFile:
    """One analyzed file: path, raw text and (lazily) its literal/comment mask."""

    path: str
    text: str
    _mask: Optional[str] = field(default=None, repr=False, compare=False)

    @property
    def mask(self) -> str:
        if self._mask is None:
            from .literal_mask import mask_literals_and_comments

            self._mask = mask_literals_and_comments(self.text)
        return self._mask


@dataclass(frozen=True)
class ExportRecord:
    name: str
    kind: ExportKind
    file: str
    line: int
    source: Optional[str] = None  # specifier for re-export forms
    imported: Optional[str] = None  # name consumed from `source`
    statement_line: Optional[int] = None  # first line of the export statement

    @property
    def is_wildcard(self) -> bool:
        return self.kind == ExportKind.WILDCARD

    @property
    def is_reexport(self) -> bool:
        return self.source is not None


@dataclass(frozen=True)
class ImportRecord:
    name: str  # "default" | "*" | identifier
    source: str
    file: str
    line: int
    resolved: str = EXTERNAL


@dataclass
class FileFacts:
    """Export/import facts of one file as produced by a single extractor."""

    path: str
    exports: List[ExportRecord] = field(default_factory=list)
    imports: List[ImportRecord] = field(default_factory=list)
    extractor: str = "parser"  # parser | fallback


class FactsBuilder:
    """Accumulates one file's records; both extractors emit through it."""

    def __init__(self, path: str, extractor: str):
        self.facts = FileFacts(path=path, extractor=extractor)
        self._seen: Set[str] = set()

    def export(
        self,
        name: str,
        line: int,
        kind: Optional[ExportKind] = None,
        source: Optional[str] = None,
        imported: Optional[str] = None,
        statement_line: Optional[int] = None,
    ) -> None:
        if kind is None:
            kind = ExportKind.DEFAULT if name == "default" else ExportKind.NAMED
        if kind != ExportKind.WILDCARD:
            # TS overload signatures repeat the same binding
            if name in self._seen:
                return
            self._seen.add(name)
        self.facts.exports.append(
            ExportRecord(
                name=name,
                kind=kind,
                file=self.facts.path,
                line=line,
                source=source,
                imported=imported,
                statement_line=statement_line,
            )
        )

    def import_(self, name: str, source: str, line: int) -> None:
        self.facts.imports.append(
            ImportRecord(name=name, source=source, file=self.facts.path, line=line)
        )


# ---- findings ----


@dataclass(frozen=True)
class Suggestion:
    title: str
    description: str
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"title": self.title, "description": self.description}
        if self.code:
            out["code"] = self.code
        return out


SEVERITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}


@dataclass(frozen=True)
class UnusedExport:
    file: str
    name: str
    line: int
    severity: str = "low"

    def to_issue(self) -> Dict[str, Any]:
        return {
            "type": "unused-export",
            "severity": self.severity,
            "file": self.file,
            "line": self.line,
            "pattern": f"export {self.name}",
            "description": f"'{self.name}' is exported but never imported in the analyzed codebase.",
            "suggestion": Suggestion(
                title="Remove unused export",
                description=(
                    f"If '{self.name}' is not used externally, consider removing it "
                    "or marking it as internal."
                ),
            ).to_dict(),
        }


@dataclass(frozen=True)
class CircularDependency:
    members: Tuple[str, ...]
    severity: str

    @property
    def length(self) -> int:
        return len(self.members)

    def to_issue(self) -> Dict[str, Any]:
        chain = " -> ".join(list(self.members) + [self.members[0]])
        return {
            "type": "circular-dependency",
            "severity": self.severity,
            "file": self.members[0],
            "line": None,
            "members": list(self.members),
            "length": self.length,
            "pattern": chain,
            "description": (
                f"Circular dependency between {self.length} modules. Bundlers must keep "
                "every module of the cycle together, which blocks tree-shaking."
            ),
            "suggestion": Suggestion(
                title="Break the import cycle",
                description=(
                    "Move the shared code into a separate module that both sides import, "
                    "or invert one of the dependencies."
                ),
            ).to_dict(),
        }


@dataclass(frozen=True)
class WildcardReexport:
    file: str
    source: str
    line: int
    severity: str
    alias: Optional[str] = None  # export * as <alias>

    def to_issue(self) -> Dict[str, Any]:
        star = f"* as {self.alias}" if self.alias else "*"
        return {
            "type": "wildcard-reexport",
            "severity": self.severity,
            "file": self.file,
            "line": self.line,
            "pattern": f"export {star} from '{self.source}'",
            "description": (
                f"Wildcard re-export prevents tree-shaking. All exports from '{self.source}' "
                "will be included even if unused."
            ),
            "suggestion": Suggestion(
                title="Use explicit named exports",
                description="Replace wildcard re-exports with explicit named exports to enable tree-shaking.",
                code=f"export {{ SpecificExport }} from '{self.source}'",
            ).to_dict(),
        }


@dataclass(frozen=True)
class BarrelFile:
    file: str
    reexports: int
    severity: str = "medium"

    def to_issue(self) -> Dict[str, Any]:
        return {
            "type": "barrel-file",
            "severity": self.severity,
            "file": self.file,
            "line": None,
            "pattern": f"{self.reexports} re-exports in barrel file",
            "description": (
                f"Large barrel file with {self.reexports} re-exports. Some bundlers may include "
                "all modules when importing from this barrel."
            ),
            "suggestion": Suggestion(
                title="Consider direct imports",
                description="Import directly from source modules instead of through the barrel file.",
                code="import { Component } from './components/Component' // instead of './components'",
            ).to_dict(),
        }


# (description, suggestion title, suggestion description) per side-effect kind
_SIDE_EFFECT_TEXT = {
    "call": (
        "Top-level call to {pattern} is a side effect that prevents tree-shaking.",
        "Move to an initialization function",
        "Wrap the call in an exported function that callers invoke explicitly.",
    ),
    "global-assignment": (
        "Global variable assignment is a side effect that prevents tree-shaking.",
        "Avoid global assignments",
        "Use module-scoped variables or dependency injection instead.",
    ),
    "statement": (
        "Top-level side effect detected. This code runs when the module is imported, "
        "preventing tree-shaking.",
        "Move side effect into a function",
        "Wrap side effects in functions that are called explicitly.",
    ),
    "bare-import": (
        "{pattern} is a side-effect import. The entire module is executed on import, "
        "which prevents tree-shaking of this dependency.",
        "Review if side-effect import is necessary",
        "If this import has exports you use, import them explicitly. "
        "If it's only for side effects, document why.",
    ),
    "config-true": (
        "sideEffects is set to true, which prevents all tree-shaking.",
        "Optimize sideEffects configuration",
        "Set sideEffects to false or list only the files that have side effects.",
    ),
    "config-missing": (
        "No sideEffects field in package.json. Bundlers cannot optimize tree-shaking "
        "without this hint.",
        "Add sideEffects field",
        "Add sideEffects: false if your code has no side effects, or list files with side effects.",
    ),
}


@dataclass(frozen=True)
class SideEffect:
    file: str
    line: Optional[int]
    kind: str  # key of _SIDE_EFFECT_TEXT
    pattern: str
    severity: str

    def to_issue(self) -> Dict[str, Any]:
        description, title, hint = _SIDE_EFFECT_TEXT[self.kind]
        code = None
        if self.kind in ("config-true", "config-missing"):
            code = '"sideEffects": false // or ["*.css", "./src/polyfills.js"]'
        return {
            "type": "missing-sideeffects-config" if self.kind == "config-missing" else "side-effect",
            "severity": self.severity,
            "file": self.file,
            "line": self.line,
            "pattern": self.pattern,
            "description": description.format(pattern=self.pattern),
            "suggestion": Suggestion(title=title, description=hint, code=code).to_dict(),
        }


@dataclass(frozen=True)
class CommonJSUsage:
    file: str
    line: int
    severity: str
    module: Optional[str] = None  # required specifier; None for a module.exports file

    def to_issue(self) -> Dict[str, Any]:
        if self.module is not None:
            binding = re.sub(r"[^A-Za-z0-9]", "", self.module.split("/")[-1]) or "module"
            return {
                "type": "commonjs-module",
                "severity": self.severity,
                "file": self.file,
                "line": self.line,
                "pattern": f"require('{self.module}')",
                "description": (
                    f"Mixed ESM/CJS: require() in an ESM file prevents optimal tree-shaking "
                    f"for '{self.module}'."
                ),
                "suggestion": Suggestion(
                    title="Convert to ESM import",
                    description="Replace require() with an ESM import statement.",
                    code=f"import {binding} from '{self.module}'",
                ).to_dict(),
            }
        return {
            "type": "commonjs-module",
            "severity": self.severity,
            "file": self.file,
            "line": self.line,
            "pattern": "module.exports = ...",
            "description": (
                "CommonJS module.exports prevents tree-shaking. The entire module will be "
                "included when imported."
            ),
            "suggestion": Suggestion(
                title="Convert to ESM exports",
                description="Replace module.exports with named exports.",
                code="export { functionName }; // or export default value",
            ).to_dict(),
        }
