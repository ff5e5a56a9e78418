"""Server-held interaction sessions.

A view keeps focus, collapse set, selection and viewport between requests so a
thin render surface only has to forward gestures. Every request re-reads the
person snapshot, so edits made elsewhere show up on the next event.
"""

from __future__ import annotations

import logging
import os
import threading
import uuid
from collections import OrderedDict
from typing import Any, Literal, Optional

from fastapi import APIRouter, Body, HTTPException
from pydantic import BaseModel, Field

try:
    from ..db import db_conn
    from ..layout import DEFAULT_HEIGHT, DEFAULT_WIDTH
    from ..queries import _fetch_people
    from ..serialize import _view_to_payload
    from ..state import EventKind, TreeView, ViewEvent, ViewState
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from db import db_conn
    from layout import DEFAULT_HEIGHT, DEFAULT_WIDTH
    from queries import _fetch_people
    from serialize import _view_to_payload
    from state import EventKind, TreeView, ViewEvent, ViewState

log = logging.getLogger(__name__)

router = APIRouter()

_MAX_VIEWS_ENV = "FAMTREE_MAX_VIEWS"
_DEFAULT_MAX_VIEWS = 256

_views: "OrderedDict[str, TreeView]" = OrderedDict()
_lock = threading.Lock()

# Events that name a person.
_PERSON_EVENTS = frozenset(
    {
        EventKind.NODE_CLICK,
        EventKind.NODE_DOUBLE_CLICK,
        EventKind.MARRIAGE_BADGE_CLICK,
        EventKind.SELECT_FOCUS,
    }
)


def _max_views() -> int:
    raw = os.environ.get(_MAX_VIEWS_ENV, "")
    try:
        n = int(raw) if raw else _DEFAULT_MAX_VIEWS
    except ValueError:
        n = _DEFAULT_MAX_VIEWS
    return max(1, n)


class ViewCreate(BaseModel):
    focus_id: Optional[int] = Field(default=None, ge=1)
    width: float = Field(default=DEFAULT_WIDTH, gt=0, le=20_000)
    height: float = Field(default=DEFAULT_HEIGHT, gt=0, le=20_000)


class ViewEventIn(BaseModel):
    type: Literal[
        "node-click",
        "node-double-click",
        "marriage-badge-click",
        "viewport-resize",
        "background-click",
        "select-focus",
        "clear-focus",
        "clear-selection",
    ]
    person_id: Optional[int] = None
    width: Optional[float] = Field(default=None, gt=0, le=20_000)
    height: Optional[float] = Field(default=None, gt=0, le=20_000)


def _get_view(view_id: str) -> TreeView:
    with _lock:
        view = _views.get(view_id)
        if view is None:
            raise HTTPException(status_code=404, detail=f"view not found: {view_id}")
        _views.move_to_end(view_id)
        return view


def _register(view: TreeView) -> str:
    view_id = uuid.uuid4().hex
    limit = _max_views()
    with _lock:
        _views[view_id] = view
        while len(_views) > limit:
            evicted, _ = _views.popitem(last=False)
            log.info("Evicted tree view %s (limit %d)", evicted, limit)
    return view_id


def _refresh(view: TreeView) -> None:
    with db_conn() as conn:
        people = _fetch_people(conn)
    view.set_people(people)


@router.post("/views")
def create_view(body: ViewCreate = Body(default_factory=ViewCreate)) -> dict[str, Any]:
    """Open an interaction session over the stored family."""

    with db_conn() as conn:
        people = _fetch_people(conn)

    state = ViewState(focus_id=body.focus_id, width=body.width, height=body.height)
    view = TreeView(people, state=state)
    view_id = _register(view)
    log.info("Opened tree view %s (%d people, focus=%s)", view_id, len(people), body.focus_id)
    return _view_to_payload(view_id, view)


@router.get("/views/{view_id}")
def get_view(view_id: str) -> dict[str, Any]:
    view = _get_view(view_id)
    _refresh(view)
    return _view_to_payload(view_id, view)


@router.post("/views/{view_id}/events")
def post_view_event(view_id: str, body: ViewEventIn) -> dict[str, Any]:
    """Apply one render-surface gesture and return the updated drawing."""

    kind = EventKind(body.type)
    if kind in _PERSON_EVENTS and body.person_id is None:
        raise HTTPException(status_code=400, detail=f"{kind.value} requires person_id")
    if kind is EventKind.VIEWPORT_RESIZE and (body.width is None or body.height is None):
        raise HTTPException(status_code=400, detail="viewport-resize requires width and height")

    view = _get_view(view_id)
    _refresh(view)
    changed = view.handle(
        ViewEvent(kind=kind, person_id=body.person_id, width=body.width, height=body.height)
    )

    out = _view_to_payload(view_id, view)
    out["changed"] = changed
    return out


@router.delete("/views/{view_id}")
def delete_view(view_id: str) -> dict[str, Any]:
    with _lock:
        if _views.pop(view_id, None) is None:
            raise HTTPException(status_code=404, detail=f"view not found: {view_id}")
    log.info("Closed tree view %s", view_id)
    return {"ok": True, "view_id": view_id}
