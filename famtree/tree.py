"""Graph-to-tree builder.

A person may have two recorded parents, so the family graph is not a tree.
The builder attaches such a person under *both* parents: the second
attachment is a separate ``TreeNode`` record that points at the same
``ChildSequence`` as the first, so descendants (and their collapse state)
look identical from either parental path. Duplication never cascades: every
person has at most two attachment records, and deeper descendants are reached
through the shared sequence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator

try:
    from .models import Gender, Person
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from models import Gender, Person

log = logging.getLogger(__name__)

SYNTHETIC_ROOT_ID = 0
SYNTHETIC_ROOT_NAME = "Family"

# Sorts after any real ISO date.
_MISSING_BIRTH_DATE = "\uffff"


class ChildSequence:
    """Ordered children of one person, shared by all of that person's attachments."""

    __slots__ = ("owner_id", "_items")

    def __init__(self, owner_id: int) -> None:
        self.owner_id = owner_id
        self._items: list[TreeNode] = []

    def append(self, node: "TreeNode") -> None:
        self._items.append(node)

    def sort(self) -> None:
        self._items.sort(key=_sibling_sort_key)

    def __iter__(self) -> Iterator["TreeNode"]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, i: int) -> "TreeNode":
        return self._items[i]

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"ChildSequence(owner={self.owner_id}, ids={[n.person_id for n in self._items]})"


@dataclass(eq=False)
class TreeNode:
    person: Person
    children: ChildSequence
    parent_id: int | None = None  # parent this record hangs under; None for roots
    canonical: bool = True
    synthetic: bool = False

    @property
    def person_id(self) -> int:
        return self.person.id

    @property
    def has_children(self) -> bool:
        return len(self.children) > 0

    def __repr__(self) -> str:
        return f"TreeNode(id={self.person.id}, parent={self.parent_id}, canonical={self.canonical})"


@dataclass
class FamilyForest:
    """Result of a build: the root plus the per-person attachment index."""

    root: TreeNode | None
    primary: dict[int, TreeNode] = field(default_factory=dict)
    attachments: dict[int, list[TreeNode]] = field(default_factory=dict)

    def has_children(self, person_id: int) -> bool:
        if self.root is not None and self.root.synthetic and person_id == SYNTHETIC_ROOT_ID:
            return self.root.has_children
        node = self.primary.get(person_id)
        return node is not None and node.has_children

    def canonical_node(self, person_id: int) -> TreeNode | None:
        for node in self.attachments.get(person_id, []):
            if node.canonical:
                return node
        return self.primary.get(person_id)


def _sibling_sort_key(node: TreeNode) -> tuple:
    p = node.person
    if p.birth_order is not None:
        return (0, p.birth_order, "")
    return (1, 0, p.birth_date or _MISSING_BIRTH_DATE)


def synthetic_root_person() -> Person:
    return Person(id=SYNTHETIC_ROOT_ID, full_name=SYNTHETIC_ROOT_NAME, gender=Gender.MALE)


def build_forest(people: list[Person]) -> FamilyForest:
    primary: dict[int, TreeNode] = {}
    order: list[Person] = []
    for p in people:
        if p.id in primary:
            log.warning("Duplicate person id %s in snapshot; keeping the first record", p.id)
            continue
        primary[p.id] = TreeNode(person=p, children=ChildSequence(p.id))
        order.append(p)

    attachments: dict[int, list[TreeNode]] = {}
    roots: list[TreeNode] = []

    for p in order:
        node = primary[p.id]
        attached: list[TreeNode] = []
        for parent_id in p.parent_ids:
            parent = primary.get(parent_id)
            if parent is None:
                continue
            if not attached:
                node.parent_id = parent_id
                record = node
            else:
                record = TreeNode(
                    person=p,
                    children=node.children,
                    parent_id=parent_id,
                    canonical=False,
                )
            parent.children.append(record)
            attached.append(record)

        if attached:
            attachments[p.id] = attached
        else:
            roots.append(node)
            attachments[p.id] = [node]

    for node in primary.values():
        if len(node.children) > 1:
            node.children.sort()

    if not roots:
        return FamilyForest(root=None, primary=primary, attachments=attachments)
    if len(roots) == 1:
        return FamilyForest(root=roots[0], primary=primary, attachments=attachments)

    wrapper = TreeNode(
        person=synthetic_root_person(),
        children=ChildSequence(SYNTHETIC_ROOT_ID),
        synthetic=True,
    )
    for r in roots:
        wrapper.children.append(r)
    return FamilyForest(root=wrapper, primary=primary, attachments=attachments)


def build_tree(people: list[Person]) -> TreeNode | None:
    """Return the rooted hierarchy for ``people`` (``None`` for an empty family)."""
    return build_forest(people).root
