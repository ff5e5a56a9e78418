from __future__ import annotations

from typing import Any

try:
    from .layout import Edge, PositionedNode, SpouseNode, TreeLayout
    from .models import Person
    from .state import TreeView
    from .util import _compact_json
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from layout import Edge, PositionedNode, SpouseNode, TreeLayout
    from models import Person
    from state import TreeView
    from util import _compact_json


def _person_to_public(p: Person) -> dict[str, Any]:
    """Person payload with empty fields dropped (``id`` and ``full_name`` always kept)."""

    out = _compact_json(
        {
            "nickname": p.nickname,
            "gender": p.gender,
            "birth_date": p.birth_date,
            "birth_place": p.birth_place,
            "death_date": p.death_date,
            "birth_order": p.birth_order,
            "occupation": p.occupation,
            "education": p.education,
            "parent_id1": p.parent_id1,
            "parent_id2": p.parent_id2,
            "spouse_ids": list(p.spouse_ids),
        }
    ) or {}
    return {"id": p.id, "full_name": p.full_name, **out}


def _node_to_payload(n: PositionedNode) -> dict[str, Any]:
    return {
        "key": n.key,
        "id": n.person_id,
        "parent_key": n.parent_key,
        "x": n.x,
        "y": n.y,
        "depth": n.depth,
        "generation": n.generation,
        "collapsed": n.collapsed,
        "has_children": n.has_children,
        "canonical": n.canonical,
        "synthetic": n.synthetic,
        "truncated": n.truncated,
        "sibling_label": n.sibling_label,
        "label": n.person.label,
        "person": None if n.synthetic else _person_to_public(n.person),
    }


def _spouse_to_payload(s: SpouseNode) -> dict[str, Any]:
    return {
        "key": s.key,
        "id": s.person_id,
        "partner_key": s.partner_key,
        "index": s.index,
        "x": s.x,
        "y": s.y,
        "label": s.person.full_name,
        "person": _person_to_public(s.person),
    }


def _edge_to_payload(e: Edge) -> dict[str, Any]:
    return {
        "source": e.source_key,
        "target": e.target_key,
        "source_x": e.source_x,
        "source_y": e.source_y,
        "target_x": e.target_x,
        "target_y": e.target_y,
        "category": e.category,
    }


def _layout_to_payload(layout: TreeLayout | None, *, width: float, height: float) -> dict[str, Any]:
    """Node/edge list a render surface can draw without further computation."""

    if layout is None:
        return {
            "empty": True,
            "width": width,
            "height": height,
            "depth": 0,
            "nodes": [],
            "spouses": [],
            "edges": [],
        }

    sp = layout.spacing
    return {
        "empty": False,
        "width": layout.width,
        "height": layout.height,
        "depth": layout.depth,
        "compact": layout.compact,
        "spacing": {
            "name": sp.name,
            "node_spacing": sp.node_spacing,
            "node_radius": sp.node_radius,
            "spouse_radius": sp.spouse_radius,
            "spouse_offset": sp.spouse_offset,
            "name_font_px": sp.name_font_px,
            "label_font_px": sp.label_font_px,
            "badge_font_px": sp.badge_font_px,
            "spouse_font_px": sp.spouse_font_px,
        },
        "transform": {"x": layout.transform.x, "y": layout.transform.y, "k": layout.transform.k},
        "bounds": {
            "min_x": layout.bounds.min_x,
            "min_y": layout.bounds.min_y,
            "max_x": layout.bounds.max_x,
            "max_y": layout.bounds.max_y,
        },
        "nodes": [_node_to_payload(n) for n in layout.nodes],
        "spouses": [_spouse_to_payload(s) for s in layout.spouses],
        "edges": [_edge_to_payload(e) for e in layout.edges],
    }


def _view_to_payload(view_id: str, view: TreeView) -> dict[str, Any]:
    st = view.state
    selected = view.selected
    focus = view.focus
    return {
        "view_id": view_id,
        "mode": st.mode.value,
        "focus_id": st.focus_id,
        "focus_name": focus.full_name if focus is not None else None,
        "selected_id": st.selected_id,
        "selected": _person_to_public(selected) if selected is not None else None,
        "collapsed_ids": list(st.collapsed),
        "tree": _layout_to_payload(view.layout(), width=st.width, height=st.height),
    }
