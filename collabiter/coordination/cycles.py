"""Cycle detection over the component import graph."""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple

from ..models import DependencyGraph

_WHITE = 0
_GRAY = 1
_BLACK = 2


def find_cycle(graph: DependencyGraph, start: str) -> Optional[List[str]]:
    """Return a cycle reachable from ``start`` as ``[a, b, ..., a]``, or None.

    Depth-first search with three-colour marking on an explicit stack, so
    deep graphs never hit the interpreter recursion limit. Each node and edge
    is visited at most once.
    """
    colour: Dict[str, int] = {}
    path: List[str] = []
    position: Dict[str, int] = {}
    stack: List[Tuple[str, Iterator[str]]] = []

    def enter(node: str) -> None:
        colour[node] = _GRAY
        position[node] = len(path)
        path.append(node)
        stack.append((node, iter(sorted(graph.imports_of(node)))))

    enter(start)
    while stack:
        node, children = stack[-1]
        for child in children:
            state = colour.get(child, _WHITE)
            if state == _GRAY:
                return path[position[child]:] + [child]
            if state == _WHITE:
                enter(child)
                break
        else:
            stack.pop()
            path.pop()
            del position[node]
            colour[node] = _BLACK
    return None


def has_cycle_from(graph: DependencyGraph, start: str) -> bool:
    return find_cycle(graph, start) is not None


__all__ = ["find_cycle", "has_cycle_from"]
