from __future__ import annotations

from famtree.collapse import CollapseState, prune
from famtree.models import Person
from famtree.tree import build_forest, build_tree


def _family() -> list[Person]:
    return [
        Person(id=1, full_name="Father"),
        Person(id=2, full_name="Mother"),
        Person(id=3, full_name="Child", parent_id1=1, parent_id2=2),
        Person(id=4, full_name="Grandchild", parent_id1=3),
    ]


def test_toggle_flips_membership() -> None:
    state = CollapseState()
    assert state.toggle(3) is True
    assert state.is_collapsed(3)
    assert 3 in state
    assert state.toggle(3) is False
    assert not state.is_collapsed(3)
    assert len(state) == 0


def test_collapse_round_trip_restores_pruned_tree() -> None:
    root = build_tree(_family())
    assert root is not None
    state = CollapseState()
    before = prune(root, state).signature()

    state.toggle(3)
    collapsed = prune(root, state).signature()
    state.toggle(3)
    after = prune(root, state).signature()

    assert collapsed != before
    assert after == before


def test_collapse_applies_to_both_parental_paths() -> None:
    forest = build_forest(_family())
    root = forest.root
    assert root is not None

    via_father = forest.primary[1].children[0]
    via_mother = forest.primary[2].children[0]

    a = CollapseState()
    a.toggle(via_father.person_id)
    b = CollapseState()
    b.toggle(via_mother.person_id)

    pruned = prune(root, a)
    assert pruned.signature() == prune(root, b).signature()

    occurrences = [n for n in pruned.iter_preorder() if n.person_id == 3]
    assert len(occurrences) == 2
    assert all(n.collapsed and n.children == [] and n.has_children for n in occurrences)


def test_prune_leaves_tree_nodes_untouched() -> None:
    forest = build_forest(_family())
    assert forest.root is not None
    prune(forest.root, {3})
    assert [c.person_id for c in forest.primary[3].children] == [4]


def test_childless_node_is_not_marked_collapsed() -> None:
    root = build_tree(_family())
    assert root is not None
    pruned = prune(root, {4})
    leaf = [n for n in pruned.iter_preorder() if n.person_id == 4]
    assert leaf and not any(n.collapsed for n in leaf)


def test_cycle_reachable_from_root_is_truncated() -> None:
    # B hangs under A and under C, while C hangs under B.
    root = build_tree(
        [
            Person(id=1, full_name="A"),
            Person(id=2, full_name="B", parent_id1=1, parent_id2=3),
            Person(id=3, full_name="C", parent_id1=2),
        ]
    )
    assert root is not None
    pruned = prune(root, set())

    keys = [n.key for n in pruned.iter_preorder()]
    assert keys == ["1", "1/2", "1/2/3"]
    last = list(pruned.iter_preorder())[-1]
    assert last.truncated
    assert pruned.height() == 2


def test_visual_node_cap() -> None:
    people = [Person(id=1, full_name="P1")]
    people += [Person(id=i, full_name=f"P{i}", parent_id1=i - 1) for i in range(2, 11)]
    root = build_tree(people)
    assert root is not None

    pruned = prune(root, set(), max_nodes=4)
    assert len(list(pruned.iter_preorder())) == 4


def test_visual_node_cap_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("FAMTREE_MAX_VISUAL_NODES", "2")
    root = build_tree(_family())
    assert root is not None
    assert len(list(prune(root, set()).iter_preorder())) == 2
