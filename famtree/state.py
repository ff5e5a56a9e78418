"""Interaction state and the filter -> build -> prune -> layout pipeline.

``render_view`` is the stateless pipeline. ``TreeView`` owns one session's
state (focus, collapse set, selection, viewport) and re-runs only the stages
an event invalidates: focus and data changes rebuild the tree, collapse
toggles and resizes only lay it out again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Container, Iterable

try:
    from .collapse import CollapseState
    from .layout import DEFAULT_HEIGHT, DEFAULT_WIDTH, TreeLayout, layout_tree
    from .lineage import filter_to_lineage
    from .models import Person
    from .tree import FamilyForest, build_forest
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from collapse import CollapseState
    from layout import DEFAULT_HEIGHT, DEFAULT_WIDTH, TreeLayout, layout_tree
    from lineage import filter_to_lineage
    from models import Person
    from tree import FamilyForest, build_forest

log = logging.getLogger(__name__)


class ViewMode(str, Enum):
    BROWSING = "browsing"
    FOCUSED = "focused"


class EventKind(str, Enum):
    NODE_CLICK = "node-click"
    NODE_DOUBLE_CLICK = "node-double-click"
    MARRIAGE_BADGE_CLICK = "marriage-badge-click"
    VIEWPORT_RESIZE = "viewport-resize"
    BACKGROUND_CLICK = "background-click"
    SELECT_FOCUS = "select-focus"
    CLEAR_FOCUS = "clear-focus"
    CLEAR_SELECTION = "clear-selection"


@dataclass(frozen=True)
class ViewEvent:
    kind: EventKind
    person_id: int | None = None
    width: float | None = None
    height: float | None = None


@dataclass
class ViewState:
    focus_id: int | None = None
    collapsed: CollapseState = field(default_factory=CollapseState)
    selected_id: int | None = None
    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT

    @property
    def mode(self) -> ViewMode:
        return ViewMode.BROWSING if self.focus_id is None else ViewMode.FOCUSED


def _index_people(people: Iterable[Person]) -> dict[int, Person]:
    out: dict[int, Person] = {}
    for p in people:
        out.setdefault(p.id, p)
    return out


def render_view(
    people: list[Person],
    *,
    focus_id: int | None = None,
    collapsed: Container[int] = frozenset(),
    width: float = DEFAULT_WIDTH,
    height: float = DEFAULT_HEIGHT,
) -> TreeLayout | None:
    """Run the whole pipeline once; ``None`` means there is nothing to draw."""

    working = filter_to_lineage(people, focus_id)
    root = build_forest(working).root
    if root is None:
        return None
    return layout_tree(
        root,
        collapsed,
        width=width,
        height=height,
        spouse_lookup=_index_people(people),
    )


class TreeView:
    """One interactive tree session over a person snapshot."""

    def __init__(self, people: list[Person] | None = None, *, state: ViewState | None = None) -> None:
        self.state = state or ViewState()
        self._people: list[Person] = []
        self._by_id: dict[int, Person] = {}
        self._forest: FamilyForest | None = None
        self._layout: TreeLayout | None = None
        self.set_people(people or [])

    # -- data -----------------------------------------------------------------

    @property
    def people(self) -> list[Person]:
        return list(self._people)

    @property
    def forest(self) -> FamilyForest:
        if self._forest is None:
            self._rebuild()
        assert self._forest is not None
        return self._forest

    @property
    def selected(self) -> Person | None:
        if self.state.selected_id is None:
            return None
        return self._by_id.get(self.state.selected_id)

    @property
    def focus(self) -> Person | None:
        if self.state.focus_id is None:
            return None
        return self._by_id.get(self.state.focus_id)

    def set_people(self, people: list[Person]) -> None:
        self._people = list(people)
        self._by_id = _index_people(self._people)
        self._rebuild()

    def _rebuild(self) -> None:
        working = filter_to_lineage(self._people, self.state.focus_id)
        self._forest = build_forest(working)
        self._layout = None
        log.debug(
            "Rebuilt tree: %d of %d people (focus=%s)",
            len(working),
            len(self._people),
            self.state.focus_id,
        )

    def layout(self) -> TreeLayout | None:
        if self._layout is None:
            root = self.forest.root
            if root is None:
                return None
            self._layout = layout_tree(
                root,
                self.state.collapsed,
                width=self.state.width,
                height=self.state.height,
                spouse_lookup=self._by_id,
            )
        return self._layout

    # -- transitions ----------------------------------------------------------

    def select_focus(self, person_id: int) -> None:
        self.state.focus_id = person_id
        self._rebuild()

    def clear_focus(self) -> None:
        if self.state.focus_id is None:
            return
        self.state.focus_id = None
        self._rebuild()

    def focus_spouse(self, person_id: int) -> bool:
        """Focus on the first recorded spouse of ``person_id``, if that spouse exists."""
        person = self._by_id.get(person_id)
        if person is None or not person.spouse_ids:
            return False
        spouse = self._by_id.get(person.spouse_ids[0])
        if spouse is None:
            return False
        self.select_focus(spouse.id)
        return True

    def toggle_collapse(self, person_id: int) -> bool:
        """Toggle collapse for a node with children; childless nodes are ignored."""
        if not self.forest.has_children(person_id):
            return False
        self.state.collapsed.toggle(person_id)
        self._layout = None
        return True

    def select(self, person_id: int) -> None:
        self.state.selected_id = person_id

    def clear_selection(self) -> None:
        self.state.selected_id = None

    def resize(self, width: float, height: float) -> None:
        if width == self.state.width and height == self.state.height:
            return
        self.state.width = width
        self.state.height = height
        self._layout = None

    def handle(self, event: ViewEvent) -> bool:
        """Apply a render-surface event; return True when anything changed."""

        kind = EventKind(event.kind)
        before = (
            self.state.focus_id,
            self.state.collapsed.snapshot(),
            self.state.selected_id,
            self.state.width,
            self.state.height,
        )

        if kind is EventKind.NODE_CLICK and event.person_id is not None:
            self.select(event.person_id)
        elif kind is EventKind.NODE_DOUBLE_CLICK and event.person_id is not None:
            self.toggle_collapse(event.person_id)
        elif kind is EventKind.MARRIAGE_BADGE_CLICK and event.person_id is not None:
            self.focus_spouse(event.person_id)
        elif kind is EventKind.VIEWPORT_RESIZE and event.width and event.height:
            self.resize(event.width, event.height)
        elif kind is EventKind.SELECT_FOCUS and event.person_id is not None:
            self.select_focus(event.person_id)
        elif kind is EventKind.CLEAR_FOCUS:
            self.clear_focus()
        elif kind is EventKind.CLEAR_SELECTION:
            self.clear_selection()
        # BACKGROUND_CLICK: neither selection nor focus is cleared implicitly.

        after = (
            self.state.focus_id,
            self.state.collapsed.snapshot(),
            self.state.selected_id,
            self.state.width,
            self.state.height,
        )
        return before != after
