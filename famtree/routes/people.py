from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

try:
    from ..db import db_conn
    from ..queries import _fetch_people
    from ..resolve import _resolve_person
    from ..serialize import _person_to_public
    from ..timeline import build_timeline
    from ..validation import validate_people
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from db import db_conn
    from queries import _fetch_people
    from resolve import _resolve_person
    from serialize import _person_to_public
    from timeline import build_timeline
    from validation import validate_people

router = APIRouter()


@router.get("/people")
def list_people(
    limit: int = Query(default=5000, ge=1, le=50_000),
    offset: int = Query(default=0, ge=0, le=5_000_000),
) -> dict[str, Any]:
    """List people in id order.

    Intended for pickers (focus person, relationship targets) in the UI.
    """

    with db_conn() as conn:
        people = _fetch_people(conn)

    page = people[offset : offset + limit]
    return {
        "offset": offset,
        "limit": limit,
        "total": len(people),
        "results": [_person_to_public(p) for p in page],
    }


@router.get("/people/timeline")
def people_timeline() -> dict[str, Any]:
    """All members in birth order, each with generation number and age."""

    with db_conn() as conn:
        people = _fetch_people(conn)

    results = build_timeline(people)
    return {"results": results, "total": len(results)}


@router.get("/people/warnings")
def people_warnings() -> dict[str, Any]:
    """Data-quality warnings the tree silently tolerates (missing links, cycles)."""

    with db_conn() as conn:
        people = _fetch_people(conn)

    warnings = validate_people(people)
    return {"warnings": warnings, "total": len(warnings)}


@router.get("/people/{person_id}")
def get_person(person_id: int) -> dict[str, Any]:
    with db_conn() as conn:
        person = _resolve_person(conn, person_id)
    return _person_to_public(person)
