from __future__ import annotations

import psycopg

try:
    from .models import Person
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from models import Person

_PERSON_COLUMNS = """
    id, full_name, nickname, gender, birth_date, birth_order,
    parent_id1, parent_id2, birth_place, death_date, occupation, education
""".strip()


def _fetch_spouse_map(conn: psycopg.Connection, person_ids: list[int] | None = None) -> dict[int, list[int]]:
    """Return person->list(spouse ids) in recorded order.

    Links are returned as stored; a one-sided link stays one-sided.
    """

    if person_ids is None:
        rows = conn.execute(
            """
            SELECT person_id, spouse_id
            FROM person_spouse
            ORDER BY person_id, position, spouse_id
            """.strip(),
            (),
        ).fetchall()
    else:
        if not person_ids:
            return {}
        rows = conn.execute(
            """
            SELECT person_id, spouse_id
            FROM person_spouse
            WHERE person_id = ANY(%s)
            ORDER BY person_id, position, spouse_id
            """.strip(),
            (person_ids,),
        ).fetchall()

    out: dict[int, list[int]] = {}
    for person_id, spouse_id in rows:
        lst = out.setdefault(int(person_id), [])
        if int(spouse_id) not in lst:
            lst.append(int(spouse_id))
    return out


def _fetch_people(conn: psycopg.Connection) -> list[Person]:
    """Read the full person snapshot (ordered by id) the tree is built from."""

    rows = conn.execute(
        f"""
        SELECT {_PERSON_COLUMNS}
        FROM person
        ORDER BY id
        """.strip(),
        (),
    ).fetchall()

    spouses = _fetch_spouse_map(conn)
    return [Person.from_row(tuple(r), tuple(spouses.get(int(r[0]), []))) for r in rows]


def _fetch_person(conn: psycopg.Connection, person_id: int) -> Person | None:
    row = conn.execute(
        f"""
        SELECT {_PERSON_COLUMNS}
        FROM person
        WHERE id = %s
        """.strip(),
        (person_id,),
    ).fetchone()
    if not row:
        return None

    spouses = _fetch_spouse_map(conn, [person_id])
    return Person.from_row(tuple(row), tuple(spouses.get(person_id, [])))
