"""
Circular dependency detection on the project-internal part of the graph.
"""
from __future__ import annotations

from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from .dependency_graph import DependencyGraph
from .node_types import CircularDependency
from .resolver import relative_to_root


def cycle_severity(size: int) -> str:
    # coarse calibration: mutual imports are bad, longer rings are worse
    return "critical" if size >= 3 else "high"


class CycleCollector:
    """Keeps the first occurrence of each cycle, keyed by its sorted member set."""

    def __init__(self) -> None:
        self._keys: Set[Tuple[str, ...]] = set()
        self.cycles: List[List[str]] = []

    def add(self, members: Sequence[str]) -> bool:
        key = tuple(sorted(members))
        if not members or key in self._keys:
            return False
        self._keys.add(key)
        self.cycles.append(list(members))
        return True


def walk_cycles(
    roots: Iterable[str],
    successors: Callable[[str], Sequence[str]],
    collector: Optional[CycleCollector] = None,
) -> CycleCollector:
    """Depth-first search with an explicit stack, one traversal per root.

    Within a traversal every node is expanded once. Reaching a node that is on
    the current path records the path slice from that node to the top as one
    cycle; rings found again from another root are dropped by the collector.
    """
    collector = collector or CycleCollector()
    for root in roots:
        visited: Set[str] = {root}
        path: List[str] = [root]
        position = {root: 0}
        stack: List[Iterator[str]] = [iter(successors(root))]
        while stack:
            nxt = next(stack[-1], None)
            if nxt is None:
                stack.pop()
                del position[path.pop()]
                continue
            if nxt in position:
                collector.add(path[position[nxt]:])
                continue
            if nxt in visited:
                continue
            visited.add(nxt)
            position[nxt] = len(path)
            path.append(nxt)
            stack.append(iter(successors(nxt)))
    return collector


def find_cycles(graph: DependencyGraph, root: Optional[str] = None) -> List[CircularDependency]:
    if not graph.frozen:
        graph.freeze()
    successors = {f: graph.project_successors(f) for f in graph.files}
    collector = walk_cycles(graph.files, lambda n: successors.get(n, []))
    return [
        CircularDependency(
            members=tuple(relative_to_root(m, root) for m in members),
            severity=cycle_severity(len(members)),
        )
        for members in collector.cycles
    ]
