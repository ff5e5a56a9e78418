from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Query
from pydantic import BaseModel, ConfigDict, Field

try:
    from ..db import db_conn
    from ..layout import DEFAULT_HEIGHT, DEFAULT_WIDTH
    from ..models import Person
    from ..queries import _fetch_people
    from ..serialize import _layout_to_payload
    from ..state import render_view
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from db import db_conn
    from layout import DEFAULT_HEIGHT, DEFAULT_WIDTH
    from models import Person
    from queries import _fetch_people
    from serialize import _layout_to_payload
    from state import render_view

log = logging.getLogger(__name__)

router = APIRouter()

# Hard guardrail for caller-supplied snapshots.
_MAX_RENDER_PEOPLE = 5000


class PersonIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(gt=0)
    full_name: str = Field(default="", alias="fullName")
    nickname: Optional[str] = None
    gender: str = "Male"
    birth_date: Optional[str] = Field(default=None, alias="birthDate")
    birth_order: Optional[int] = Field(default=None, alias="birthOrder")
    parent_id1: Optional[int] = Field(default=None, alias="parentId1")
    parent_id2: Optional[int] = Field(default=None, alias="parentId2")
    spouse_ids: list[int] = Field(default_factory=list, alias="spouseIds")
    birth_place: Optional[str] = Field(default=None, alias="birthPlace")
    death_date: Optional[str] = Field(default=None, alias="deathDate")
    occupation: Optional[str] = None
    education: Optional[str] = None

    def to_person(self) -> Person:
        return Person.from_dict(self.model_dump())


class RenderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    people: list[PersonIn] = Field(default_factory=list, max_length=_MAX_RENDER_PEOPLE)
    focus_id: Optional[int] = Field(default=None, alias="focusId")
    collapsed_ids: list[int] = Field(default_factory=list, alias="collapsedIds")
    width: float = Field(default=DEFAULT_WIDTH, gt=0, le=20_000)
    height: float = Field(default=DEFAULT_HEIGHT, gt=0, le=20_000)


@router.get("/tree")
def get_tree(
    focus: Optional[int] = Query(default=None, ge=1),
    collapsed: list[int] = Query(default=[]),
    width: float = Query(default=DEFAULT_WIDTH, gt=0, le=20_000),
    height: float = Query(default=DEFAULT_HEIGHT, gt=0, le=20_000),
) -> dict[str, Any]:
    """Lay out the stored family as a positioned node/edge list.

    - focus: restrict to the lineage of one person (unknown ids are ignored)
    - collapsed: person ids whose descendants are hidden
    """

    with db_conn() as conn:
        people = _fetch_people(conn)

    layout = render_view(
        people,
        focus_id=focus,
        collapsed=frozenset(collapsed),
        width=width,
        height=height,
    )
    out = _layout_to_payload(layout, width=width, height=height)
    out["focus_id"] = focus
    out["collapsed_ids"] = sorted(set(collapsed))
    return out


@router.post("/tree/render")
def render_tree(payload: RenderRequest = Body(...)) -> dict[str, Any]:
    """Lay out a caller-supplied person list without touching the database."""

    people = [p.to_person() for p in payload.people]
    log.debug("Rendering %d supplied people (focus=%s)", len(people), payload.focus_id)

    layout = render_view(
        people,
        focus_id=payload.focus_id,
        collapsed=frozenset(payload.collapsed_ids),
        width=payload.width,
        height=payload.height,
    )
    out = _layout_to_payload(layout, width=payload.width, height=payload.height)
    out["focus_id"] = payload.focus_id
    out["collapsed_ids"] = sorted(set(payload.collapsed_ids))
    return out
