"""Tidy-tree layout for pruned family trees.

Positions follow the Buchheim/Jünger/Leipert refinement of Reingold-Tilford
with a fixed node size: every node gets a preliminary x in "node units",
subtrees are pushed apart by contour comparison, then x is scaled by the
node spacing and y is ``depth * node_spacing``. Siblings sharing a parent
occurrence sit one unit apart, cousins one and a half.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Container, Mapping

try:
    from .collapse import PrunedNode, prune
    from .models import Person
    from .tree import TreeNode
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from collapse import PrunedNode, prune
    from models import Person
    from tree import TreeNode

log = logging.getLogger(__name__)

COMPACT_DEPTH_THRESHOLD = 5
DEEP_TREE_SCALE = 0.6
SIBLING_SEPARATION = 1.0
COUSIN_SEPARATION = 1.5
MARGIN_TOP = 100.0
SPOUSE_RADIUS_FACTOR = 0.85

DEFAULT_WIDTH = 1200.0
DEFAULT_HEIGHT = 800.0

EDGE_PARENT_CHILD = "parent-child"
EDGE_MARRIAGE = "marriage"


@dataclass(frozen=True)
class Spacing:
    name: str
    node_spacing: float
    node_radius: float
    spouse_offset: float
    name_font_px: int
    label_font_px: int
    badge_font_px: int
    spouse_font_px: int

    @property
    def spouse_radius(self) -> float:
        return self.node_radius * SPOUSE_RADIUS_FACTOR


STANDARD_SPACING = Spacing(
    name="standard",
    node_spacing=180.0,
    node_radius=35.0,
    spouse_offset=100.0,
    name_font_px=14,
    label_font_px=13,
    badge_font_px=10,
    spouse_font_px=12,
)

COMPACT_SPACING = Spacing(
    name="compact",
    node_spacing=120.0,
    node_radius=28.0,
    spouse_offset=80.0,
    name_font_px=11,
    label_font_px=11,
    badge_font_px=9,
    spouse_font_px=10,
)


def is_deep(depth: int) -> bool:
    return depth > COMPACT_DEPTH_THRESHOLD


def choose_spacing(depth: int) -> Spacing:
    return COMPACT_SPACING if is_deep(depth) else STANDARD_SPACING


def initial_scale(depth: int) -> float:
    return DEEP_TREE_SCALE if is_deep(depth) else 1.0


@dataclass(frozen=True)
class PositionedNode:
    key: str
    person: Person
    x: float
    y: float
    depth: int
    collapsed: bool
    has_children: bool
    canonical: bool
    synthetic: bool
    truncated: bool
    parent_key: str | None
    sibling_label: str | None

    @property
    def person_id(self) -> int:
        return self.person.id

    @property
    def generation(self) -> int:
        return self.depth + 1


@dataclass(frozen=True)
class SpouseNode:
    key: str
    person: Person
    partner_key: str
    index: int
    x: float
    y: float

    @property
    def person_id(self) -> int:
        return self.person.id


@dataclass(frozen=True)
class Edge:
    source_key: str
    target_key: str
    source_x: float
    source_y: float
    target_x: float
    target_y: float
    category: str


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


@dataclass(frozen=True)
class ViewTransform:
    """Initial viewport transform: screen = (x, y) + k * point."""

    x: float
    y: float
    k: float


@dataclass(frozen=True)
class TreeLayout:
    nodes: tuple[PositionedNode, ...]
    spouses: tuple[SpouseNode, ...]
    edges: tuple[Edge, ...]
    depth: int
    spacing: Spacing
    transform: ViewTransform
    bounds: Bounds
    width: float
    height: float
    offset_x: float
    offset_y: float

    @property
    def compact(self) -> bool:
        return self.spacing is COMPACT_SPACING

    def node(self, key: str) -> PositionedNode | None:
        for n in self.nodes:
            if n.key == key:
                return n
        return None

    def nodes_for(self, person_id: int) -> list[PositionedNode]:
        return [n for n in self.nodes if n.person_id == person_id]


# ---------------------------------------------------------------------------
# Tidy tree
# ---------------------------------------------------------------------------


class _Walker:
    __slots__ = (
        "node",
        "parent",
        "children",
        "number",
        "depth",
        "ancestor",
        "default_ancestor",
        "thread",
        "prelim",
        "mod",
        "change",
        "shift",
        "x",
    )

    def __init__(self, node: PrunedNode | None, parent: "_Walker | None", number: int, depth: int) -> None:
        self.node = node
        self.parent = parent
        self.children: list[_Walker] = []
        self.number = number
        self.depth = depth
        self.ancestor: _Walker = self
        self.default_ancestor: _Walker | None = None
        self.thread: _Walker | None = None
        self.prelim = 0.0
        self.mod = 0.0
        self.change = 0.0
        self.shift = 0.0
        self.x = 0.0


Separation = Callable[[_Walker, _Walker], float]


def _separation(a: _Walker, b: _Walker) -> float:
    return SIBLING_SEPARATION if a.parent is b.parent else COUSIN_SEPARATION


def _next_left(v: _Walker) -> _Walker | None:
    return v.children[0] if v.children else v.thread


def _next_right(v: _Walker) -> _Walker | None:
    return v.children[-1] if v.children else v.thread


def _move_subtree(wm: _Walker, wp: _Walker, shift: float) -> None:
    change = shift / (wp.number - wm.number)
    wp.change -= change
    wp.shift += shift
    wm.change += change
    wp.prelim += shift
    wp.mod += shift


def _execute_shifts(v: _Walker) -> None:
    shift = 0.0
    change = 0.0
    for w in reversed(v.children):
        w.prelim += shift
        w.mod += shift
        change += w.change
        shift += w.shift + change


def _next_ancestor(vim: _Walker, v: _Walker, ancestor: _Walker) -> _Walker:
    return vim.ancestor if vim.ancestor.parent is v.parent else ancestor


def _apportion(v: _Walker, w: _Walker | None, ancestor: _Walker, separation: Separation) -> _Walker:
    if w is None:
        return ancestor

    vip = vop = v
    vim = w
    vom = v.parent.children[0]
    sip = vip.mod
    sop = vop.mod
    sim = vim.mod
    som = vom.mod

    vim = _next_right(vim)
    vip = _next_left(vip)
    while vim is not None and vip is not None:
        vom = _next_left(vom)
        vop = _next_right(vop)
        vop.ancestor = v
        shift = vim.prelim + sim - vip.prelim - sip + separation(vim, vip)
        if shift > 0:
            _move_subtree(_next_ancestor(vim, v, ancestor), v, shift)
            sip += shift
            sop += shift
        sim += vim.mod
        sip += vip.mod
        som += vom.mod
        sop += vop.mod
        vim = _next_right(vim)
        vip = _next_left(vip)

    if vim is not None and _next_right(vop) is None:
        vop.thread = vim
        vop.mod += sim - sop
    if vip is not None and _next_left(vom) is None:
        vom.thread = vip
        vom.mod += sip - som
        ancestor = v
    return ancestor


def _first_walk(v: _Walker, separation: Separation) -> None:
    siblings = v.parent.children
    w = siblings[v.number - 1] if v.number else None
    if v.children:
        _execute_shifts(v)
        midpoint = (v.children[0].prelim + v.children[-1].prelim) / 2
        if w is not None:
            v.prelim = w.prelim + separation(v, w)
            v.mod = v.prelim - midpoint
        else:
            v.prelim = midpoint
    elif w is not None:
        v.prelim = w.prelim + separation(v, w)
    v.parent.default_ancestor = _apportion(v, w, v.parent.default_ancestor or siblings[0], separation)


def _tidy_walkers(root: PrunedNode, separation: Separation = _separation) -> list[_Walker]:
    """Run both walks and return walkers in pre-order (parents before children)."""

    sentinel = _Walker(None, None, 0, -1)
    top = _Walker(root, sentinel, 0, 0)
    sentinel.children = [top]

    # Children pushed left to right, so pops visit right to left; reversing
    # that order yields a true post-order (left subtrees first).
    preorder: list[_Walker] = []
    stack = [top]
    while stack:
        w = stack.pop()
        preorder.append(w)
        w.children = [_Walker(child, w, i, w.depth + 1) for i, child in enumerate(w.node.children)]
        stack.extend(w.children)

    for w in reversed(preorder):
        _first_walk(w, separation)

    sentinel.mod = -top.prelim
    for w in preorder:
        w.x = w.prelim + w.parent.mod
        w.mod += w.parent.mod

    return preorder


def _sibling_label(index: int, count: int, depth: int) -> str | None:
    # Root's children are not labelled.
    if depth <= 1 or count <= 1:
        return None
    if index == 0:
        return "Eldest"
    if index == count - 1:
        return "Youngest"
    return f"Child {index + 1}"


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def layout_pruned(
    root: PrunedNode,
    *,
    width: float = DEFAULT_WIDTH,
    height: float = DEFAULT_HEIGHT,
    spouse_lookup: Mapping[int, Person] | None = None,
) -> TreeLayout:
    """Position an already-pruned tree inside a ``width`` x ``height`` canvas."""

    depth = root.height()
    spacing = choose_spacing(depth)
    scale = initial_scale(depth)

    walkers = _tidy_walkers(root)

    min_x = min(w.x for w in walkers) * spacing.node_spacing
    max_x = max(w.x for w in walkers) * spacing.node_spacing
    offset_x = width / 2 - min_x - (max_x - min_x) / 2
    offset_y = MARGIN_TOP

    nodes: list[PositionedNode] = []
    edges: list[Edge] = []
    spouses: list[SpouseNode] = []
    by_walker: dict[int, PositionedNode] = {}

    for w in walkers:
        pn = w.node
        parent_pos = by_walker.get(id(w.parent))
        x = w.x * spacing.node_spacing + offset_x
        y = w.depth * spacing.node_spacing + offset_y
        node = PositionedNode(
            key=pn.key,
            person=pn.source.person,
            x=x,
            y=y,
            depth=w.depth,
            collapsed=pn.collapsed,
            has_children=pn.has_children,
            canonical=pn.source.canonical,
            synthetic=pn.source.synthetic,
            truncated=pn.truncated,
            parent_key=parent_pos.key if parent_pos is not None else None,
            sibling_label=_sibling_label(w.number, len(w.parent.children), w.depth),
        )
        by_walker[id(w)] = node
        nodes.append(node)

        if parent_pos is not None:
            edges.append(
                Edge(
                    source_key=parent_pos.key,
                    target_key=node.key,
                    source_x=parent_pos.x,
                    source_y=parent_pos.y,
                    target_x=node.x,
                    target_y=node.y,
                    category=EDGE_PARENT_CHILD,
                )
            )

        if node.synthetic or spouse_lookup is None:
            continue
        index = 0
        for spouse_id in node.person.spouse_ids:
            spouse = spouse_lookup.get(spouse_id)
            if spouse is None:
                continue
            sx = node.x + (index + 1) * spacing.spouse_offset
            sp = SpouseNode(
                key=f"{node.key}~{spouse_id}",
                person=spouse,
                partner_key=node.key,
                index=index,
                x=sx,
                y=node.y,
            )
            spouses.append(sp)
            edges.append(
                Edge(
                    source_key=node.key,
                    target_key=sp.key,
                    source_x=node.x,
                    source_y=node.y,
                    target_x=sp.x,
                    target_y=sp.y,
                    category=EDGE_MARRIAGE,
                )
            )
            index += 1

    r = spacing.node_radius
    xs = [n.x for n in nodes] + [s.x for s in spouses]
    ys = [n.y for n in nodes] + [s.y for s in spouses]
    bounds = Bounds(min_x=min(xs) - r, min_y=min(ys) - r, max_x=max(xs) + r, max_y=max(ys) + r)

    # Keeps the translate-then-scale order of the viewport: with coordinates
    # already offset, scaling about (offset_x, offset_y) is x' = T(1 - k) + k * x.
    transform = ViewTransform(x=offset_x * (1 - scale), y=offset_y * (1 - scale), k=scale)

    log.debug(
        "Laid out %d nodes, %d spouses (depth %d, %s spacing)",
        len(nodes),
        len(spouses),
        depth,
        spacing.name,
    )
    return TreeLayout(
        nodes=tuple(nodes),
        spouses=tuple(spouses),
        edges=tuple(edges),
        depth=depth,
        spacing=spacing,
        transform=transform,
        bounds=bounds,
        width=width,
        height=height,
        offset_x=offset_x,
        offset_y=offset_y,
    )


def layout_tree(
    root: TreeNode,
    collapsed: Container[int] = frozenset(),
    *,
    width: float = DEFAULT_WIDTH,
    height: float = DEFAULT_HEIGHT,
    spouse_lookup: Mapping[int, Person] | None = None,
) -> TreeLayout:
    """Prune ``root`` by ``collapsed`` and lay it out."""
    return layout_pruned(
        prune(root, collapsed),
        width=width,
        height=height,
        spouse_lookup=spouse_lookup,
    )
