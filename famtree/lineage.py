from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Mapping

try:
    from .models import Person
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from models import Person

log = logging.getLogger(__name__)


def _preferred_parent_id(person: Person) -> int | None:
    # parent1 wins when both are recorded.
    return person.parent_id1 if person.parent_id1 is not None else person.parent_id2


def _ancestor_chain(people_by_id: Mapping[int, Person], start: Person) -> list[Person]:
    """Return [start, parent, grandparent, ...] following the preferred parent.

    Stops when no parent id is recorded, the referenced parent is not in
    ``people_by_id``, or a person repeats (corrupt, cyclic parentage).
    """

    chain = [start]
    seen = {start.id}
    current = start
    while True:
        parent_id = _preferred_parent_id(current)
        if parent_id is None:
            break
        parent = people_by_id.get(parent_id)
        if parent is None:
            break
        if parent.id in seen:
            log.warning("Parentage cycle at person %s; stopping ancestor walk", parent.id)
            break
        seen.add(parent.id)
        chain.append(parent)
        current = parent
    return chain


def find_lineage_root(people: Iterable[Person], focus_id: int | None) -> Person | None:
    """Walk up from ``focus_id`` to the topmost reachable ancestor."""

    if focus_id is None:
        return None
    people_by_id: dict[int, Person] = {}
    for p in people:
        people_by_id.setdefault(p.id, p)
    focus = people_by_id.get(focus_id)
    if focus is None:
        return None
    return _ancestor_chain(people_by_id, focus)[-1]


def _children_index(people: Iterable[Person]) -> dict[int, list[int]]:
    out: dict[int, list[int]] = {}
    for p in people:
        for parent_id in p.parent_ids:
            out.setdefault(parent_id, []).append(p.id)
    return out


def filter_to_lineage(people: list[Person], focus_id: int | None) -> list[Person]:
    """Restrict ``people`` to the lineage of ``focus_id``.

    The lineage is the walked-up root plus everyone reachable from it through
    recorded parent1/parent2 links in the forward (parent -> child) direction.
    An unknown focus id leaves the input unfiltered.
    """

    root = find_lineage_root(people, focus_id)
    if root is None:
        return list(people)

    children_of = _children_index(people)
    included: set[int] = {root.id}
    queue: deque[int] = deque([root.id])
    while queue:
        current = queue.popleft()
        for child_id in children_of.get(current, []):
            if child_id in included:
                continue
            included.add(child_id)
            queue.append(child_id)

    out = [p for p in people if p.id in included]
    log.debug("Lineage of %s (root %s): %d of %d people", focus_id, root.id, len(out), len(people))
    return out
