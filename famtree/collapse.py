from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Container, Iterable, Iterator

try:
    from .tree import TreeNode
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from tree import TreeNode

log = logging.getLogger(__name__)

_MAX_VISUAL_NODES_ENV = "FAMTREE_MAX_VISUAL_NODES"
_DEFAULT_MAX_VISUAL_NODES = 5000


def _max_visual_nodes() -> int:
    raw = os.environ.get(_MAX_VISUAL_NODES_ENV, "")
    try:
        n = int(raw) if raw else _DEFAULT_MAX_VISUAL_NODES
    except ValueError:
        n = _DEFAULT_MAX_VISUAL_NODES
    return max(1, n)


class CollapseState:
    """Person ids whose descendants are hidden in the drawing."""

    def __init__(self, ids: Iterable[int] = ()) -> None:
        self._ids: set[int] = set(ids)

    def is_collapsed(self, person_id: int) -> bool:
        return person_id in self._ids

    def toggle(self, person_id: int) -> bool:
        """Flip membership and return the new collapsed flag."""
        if person_id in self._ids:
            self._ids.discard(person_id)
            return False
        self._ids.add(person_id)
        return True

    def snapshot(self) -> frozenset[int]:
        return frozenset(self._ids)

    def __contains__(self, person_id: object) -> bool:
        return person_id in self._ids

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"CollapseState({sorted(self._ids)})"


@dataclass(eq=False)
class PrunedNode:
    """One visual occurrence of a TreeNode after collapse pruning."""

    source: TreeNode
    path: tuple[int, ...]
    collapsed: bool = False
    truncated: bool = False
    children: list["PrunedNode"] = field(default_factory=list)

    @property
    def person_id(self) -> int:
        return self.source.person_id

    @property
    def has_children(self) -> bool:
        # Real children, regardless of collapse.
        return self.source.has_children

    @property
    def key(self) -> str:
        return "/".join(str(pid) for pid in self.path)

    def iter_preorder(self) -> Iterator["PrunedNode"]:
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def height(self) -> int:
        best = 0
        stack = [(self, 0)]
        while stack:
            node, depth = stack.pop()
            if depth > best:
                best = depth
            for child in node.children:
                stack.append((child, depth + 1))
        return best

    def signature(self) -> tuple:
        """Hashable shape of the pruned tree (ids, flags, child order)."""
        return tuple(
            (n.key, n.collapsed, n.truncated, tuple(c.person_id for c in n.children))
            for n in self.iter_preorder()
        )


def prune(
    root: TreeNode,
    collapsed: Container[int],
    *,
    max_nodes: int | None = None,
) -> PrunedNode:
    """Return the layout view of ``root`` with collapsed subtrees emptied.

    The TreeNodes themselves are never modified. A child whose person already
    occurs on the path from the root (cyclic parentage) is cut, as is anything
    past ``max_nodes`` occurrences.
    """

    limit = max_nodes if max_nodes is not None else _max_visual_nodes()

    top = PrunedNode(source=root, path=(root.person_id,))
    count = 1
    cut_cycles = 0
    cut_cap = 0

    stack = [top]
    while stack:
        node = stack.pop()
        if node.source.person_id in collapsed and node.source.has_children:
            node.collapsed = True
            continue

        on_path = set(node.path)
        for child in node.source.children:
            if child.person_id in on_path:
                node.truncated = True
                cut_cycles += 1
                continue
            if count >= limit:
                node.truncated = True
                cut_cap += 1
                continue
            pruned_child = PrunedNode(source=child, path=node.path + (child.person_id,))
            node.children.append(pruned_child)
            count += 1
        stack.extend(reversed(node.children))

    if cut_cycles:
        log.warning("Dropped %d cyclic parent/child links while pruning", cut_cycles)
    if cut_cap:
        log.warning("Visual node cap (%d) reached; dropped %d occurrences", limit, cut_cap)
    return top
