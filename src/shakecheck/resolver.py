"""
Relative import specifier resolution.

Mirrors what bundlers and Node-style runtimes do for relative specifiers so
that graph edges point at the files that are actually loaded:

  1. the literal path is a file
  2. the literal path is a directory -> its index file (or the directory itself)
  3. literal path + each known extension
  4. compiled-output extension mapped back to source (``./a.js`` -> ``a.ts``)
  5. otherwise external
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from .node_types import EXTERNAL


DEFAULT_EXTENSIONS: Tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".mts")
DEFAULT_INDEX_NAMES: Tuple[str, ...] = ("index",)
DEFAULT_COMPILED_EXTENSIONS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        ".js": (".ts", ".tsx", ".js"),
        ".jsx": (".tsx", ".jsx"),
        ".mjs": (".mts", ".mjs"),
        ".cjs": (".cts", ".cjs"),
    }
)


def canonical_path(path: str) -> str:
    """Absolute, normalized form used as graph node key."""
    return os.path.normpath(os.path.abspath(path))


def relative_to_root(path: str, root: Optional[str]) -> str:
    """POSIX-style root-relative identifier for findings."""
    if not root:
        return path
    try:
        rel = os.path.relpath(path, root)
    except ValueError:
        # different drive on Windows
        return path
    return rel.replace(os.sep, "/")


def is_relative_specifier(specifier: str) -> bool:
    return specifier.startswith(".")


@dataclass(frozen=True)
class ResolutionTables:
    """Immutable lookup tables driving resolution."""

    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    index_names: Tuple[str, ...] = DEFAULT_INDEX_NAMES
    compiled_extensions: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: DEFAULT_COMPILED_EXTENSIONS
    )

    @classmethod
    def from_config(cls, resolve_cfg) -> "ResolutionTables":
        compiled = {
            str(k): tuple(str(x) for x in v)
            for k, v in (getattr(resolve_cfg, "compiled_extensions", None) or {}).items()
        }
        return cls(
            extensions=tuple(getattr(resolve_cfg, "extensions", None) or DEFAULT_EXTENSIONS),
            index_names=tuple(getattr(resolve_cfg, "index_names", None) or DEFAULT_INDEX_NAMES),
            compiled_extensions=MappingProxyType(compiled) if compiled else DEFAULT_COMPILED_EXTENSIONS,
        )


class ModuleResolver:
    """Resolve ``(importing file, specifier)`` to a project file or ``EXTERNAL``.

    Results are memoized per (importer directory, specifier); the filesystem is
    assumed not to change during one analysis run.
    """

    def __init__(self, tables: Optional[ResolutionTables] = None):
        self.tables = tables or ResolutionTables()
        self._cache: Dict[Tuple[str, str], str] = {}

    def resolve(self, importer: str, specifier: str) -> str:
        if not is_relative_specifier(specifier):
            return EXTERNAL
        base_dir = os.path.dirname(canonical_path(importer))
        key = (base_dir, specifier)
        hit = self._cache.get(key)
        if hit is not None:
            return hit
        resolved = self._resolve_path(canonical_path(os.path.join(base_dir, specifier)))
        self._cache[key] = resolved
        return resolved

    def _resolve_path(self, literal: str) -> str:
        if os.path.isfile(literal):
            return literal
        if os.path.isdir(literal):
            index = self._index_file(literal)
            # degraded: directory without index stays a (missing) node
            return index or literal
        for ext in self.tables.extensions:
            candidate = literal + ext
            if os.path.isfile(candidate):
                return candidate
        stem, ext = os.path.splitext(literal)
        for source_ext in self.tables.compiled_extensions.get(ext.lower(), ()):
            candidate = stem + source_ext
            if os.path.isfile(candidate):
                return candidate
        return EXTERNAL

    def _index_file(self, directory: str) -> Optional[str]:
        for name in self.tables.index_names:
            for ext in self.tables.extensions:
                candidate = os.path.join(directory, name + ext)
                if os.path.isfile(candidate):
                    return candidate
        return None
