from __future__ import annotations

import psycopg
from fastapi import HTTPException

try:
    from .models import Person
    from .queries import _fetch_person
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from models import Person
    from queries import _fetch_person


def _resolve_person(conn: psycopg.Connection, person_id: int) -> Person:
    """Load one person or fail the request with a 404."""

    person = _fetch_person(conn, person_id)
    if person is None:
        raise HTTPException(status_code=404, detail=f"person not found: {person_id}")
    return person
