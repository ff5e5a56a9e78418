from __future__ import annotations

import pytest

from famtree.collapse import CollapseState
from famtree.layout import (
    COMPACT_SPACING,
    EDGE_MARRIAGE,
    EDGE_PARENT_CHILD,
    STANDARD_SPACING,
    choose_spacing,
    initial_scale,
    layout_tree,
)
from famtree.models import Person
from famtree.tree import build_tree


def _chain(n: int) -> list[Person]:
    people = [Person(id=1, full_name="P1")]
    people += [Person(id=i, full_name=f"P{i}", parent_id1=i - 1) for i in range(2, n + 1)]
    return people


def _xy(layout, key: str) -> tuple[float, float]:
    node = layout.node(key)
    assert node is not None, key
    return node.x, node.y


def test_siblings_are_one_spacing_apart_and_centered() -> None:
    root = build_tree(
        [
            Person(id=1, full_name="A"),
            Person(id=2, full_name="B", parent_id1=1, birth_order=1),
            Person(id=3, full_name="C", parent_id1=1, birth_order=2),
        ]
    )
    assert root is not None
    layout = layout_tree(root, width=1200, height=800)

    assert _xy(layout, "1") == (600.0, 100.0)
    assert _xy(layout, "1/2") == (510.0, 280.0)
    assert _xy(layout, "1/3") == (690.0, 280.0)
    assert layout.spacing is STANDARD_SPACING
    assert layout.depth == 1


def test_cousins_are_separated_more_than_siblings() -> None:
    root = build_tree(
        [
            Person(id=1, full_name="A"),
            Person(id=2, full_name="B", parent_id1=1, birth_order=1),
            Person(id=3, full_name="C", parent_id1=1, birth_order=2),
            Person(id=4, full_name="D", parent_id1=2),
            Person(id=5, full_name="E", parent_id1=3),
        ]
    )
    assert root is not None
    layout = layout_tree(root, width=1000, height=800)

    dx, _ = _xy(layout, "1/2/4")
    ex, _ = _xy(layout, "1/3/5")
    assert ex - dx == pytest.approx(1.5 * 180)

    ax, _ = _xy(layout, "1")
    bx, _ = _xy(layout, "1/2")
    cx, _ = _xy(layout, "1/3")
    assert ax == pytest.approx((bx + cx) / 2)
    assert ax == pytest.approx(500.0)


def test_subtrees_never_overlap() -> None:
    people = [Person(id=1, full_name="Root")]
    next_id = 2
    for branch in range(3):
        parent = next_id
        people.append(Person(id=parent, full_name=f"B{branch}", parent_id1=1, birth_order=branch))
        next_id += 1
        for leaf in range(branch + 2):
            people.append(Person(id=next_id, full_name=f"L{branch}{leaf}", parent_id1=parent, birth_order=leaf))
            next_id += 1
    root = build_tree(people)
    assert root is not None
    layout = layout_tree(root)

    by_depth: dict[int, list[float]] = {}
    for n in layout.nodes:
        by_depth.setdefault(n.depth, []).append(n.x)
    for xs in by_depth.values():
        xs.sort()
        for left, right in zip(xs, xs[1:]):
            assert right - left >= 180 - 1e-9


def test_layout_is_deterministic() -> None:
    root = build_tree(
        [
            Person(id=1, full_name="Father"),
            Person(id=2, full_name="Mother"),
            Person(id=3, full_name="Child", parent_id1=1, parent_id2=2, spouse_ids=(9,)),
            Person(id=4, full_name="Grandchild", parent_id1=3),
        ]
    )
    assert root is not None
    collapsed = CollapseState([4])
    first = layout_tree(root, collapsed, width=900, height=700)
    second = layout_tree(root, collapsed, width=900, height=700)
    assert first == second


def test_dual_parent_child_is_drawn_under_both_parents() -> None:
    root = build_tree(
        [
            Person(id=1, full_name="Father"),
            Person(id=2, full_name="Mother"),
            Person(id=3, full_name="Child", parent_id1=1, parent_id2=2),
        ]
    )
    assert root is not None
    layout = layout_tree(root)

    occurrences = layout.nodes_for(3)
    assert sorted(n.key for n in occurrences) == ["0/1/3", "0/2/3"]
    assert sorted(n.canonical for n in occurrences) == [False, True]
    assert layout.node("0").synthetic


def test_collapsed_subtree_is_hidden() -> None:
    root = build_tree(_chain(3))
    assert root is not None
    layout = layout_tree(root, {2})

    assert [n.key for n in layout.nodes] == ["1", "1/2"]
    node = layout.node("1/2")
    assert node.collapsed and node.has_children
    assert layout.depth == 1


def test_depth_threshold_selects_compact_spacing_and_zoom() -> None:
    shallow = layout_tree(build_tree(_chain(6)), width=1200)
    deep = layout_tree(build_tree(_chain(7)), width=1200)

    assert shallow.depth == 5
    assert shallow.spacing is STANDARD_SPACING
    assert shallow.transform.k == 1.0
    assert (shallow.transform.x, shallow.transform.y) == (0.0, 0.0)

    assert deep.depth == 6
    assert deep.spacing is COMPACT_SPACING
    assert deep.compact
    assert deep.transform.k == pytest.approx(0.6)
    assert deep.transform.x == pytest.approx(600 * 0.4)
    assert deep.transform.y == pytest.approx(100 * 0.4)
    assert _xy(deep, "1/2/3/4/5/6/7") == (600.0, pytest.approx(100 + 6 * 120))


def test_threshold_helpers() -> None:
    assert choose_spacing(5) is STANDARD_SPACING
    assert choose_spacing(6) is COMPACT_SPACING
    assert initial_scale(5) == 1.0
    assert initial_scale(6) == 0.6


def test_spouses_are_satellites_with_marriage_edges() -> None:
    a = Person(id=1, full_name="A", spouse_ids=(99, 2, 3))
    s1 = Person(id=2, full_name="S1", spouse_ids=(1,))
    s2 = Person(id=3, full_name="S2")
    root = build_tree([a])
    assert root is not None

    layout = layout_tree(root, width=1200, spouse_lookup={1: a, 2: s1, 3: s2})

    assert [(s.person_id, s.index, s.x, s.y) for s in layout.spouses] == [
        (2, 0, 700.0, 100.0),
        (3, 1, 800.0, 100.0),
    ]
    marriages = [e for e in layout.edges if e.category == EDGE_MARRIAGE]
    assert [(e.source_key, e.target_key) for e in marriages] == [("1", "1~2"), ("1", "1~3")]
    assert not [e for e in layout.edges if e.category == EDGE_PARENT_CHILD]

    assert layout.bounds.min_x == 600 - 35
    assert layout.bounds.max_x == 800 + 35
    assert layout.bounds.width == 270


def test_parent_child_edges_connect_occurrences() -> None:
    root = build_tree(_chain(3))
    assert root is not None
    layout = layout_tree(root)

    edges = [(e.source_key, e.target_key, e.category) for e in layout.edges]
    assert edges == [("1", "1/2", EDGE_PARENT_CHILD), ("1/2", "1/2/3", EDGE_PARENT_CHILD)]
    assert layout.node("1/2").parent_key == "1"


def test_sibling_labels_and_generations() -> None:
    people = [
        Person(id=1, full_name="Root"),
        Person(id=2, full_name="Parent", parent_id1=1),
    ]
    people += [Person(id=10 + i, full_name=f"K{i}", parent_id1=2, birth_order=i) for i in range(3)]
    root = build_tree(people)
    assert root is not None
    layout = layout_tree(root)

    labels = [layout.node(f"1/2/{10 + i}").sibling_label for i in range(3)]
    assert labels == ["Eldest", "Child 2", "Youngest"]
    assert layout.node("1/2").sibling_label is None
    assert layout.node("1/2/10").generation == 3
