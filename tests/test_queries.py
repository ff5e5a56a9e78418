from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

import pytest

from famtree.queries import _fetch_people, _fetch_person, _fetch_spouse_map


@dataclass
class _FakeResult:
    rows: list[tuple[Any, ...]]

    def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self.rows)

    def fetchone(self) -> tuple[Any, ...] | None:
        return self.rows[0] if self.rows else None


class _FakeConn:
    def __init__(self, *, people_rows: list[tuple[Any, ...]], spouse_rows: list[tuple[int, int]]):
        # people_rows follow the person column order used by the queries.
        self._people_rows = list(people_rows)
        # spouse rows are (person_id, spouse_id), already in position order
        self._spouse_rows = list(spouse_rows)

    def execute(self, query: str, params: tuple) -> _FakeResult:
        q = " ".join((query or "").split()).lower()
        if q.startswith("select id, full_name, nickname") and "where id = %s" in q:
            return _FakeResult([r for r in self._people_rows if r[0] == params[0]])

        if q.startswith("select id, full_name, nickname"):
            return _FakeResult(sorted(self._people_rows, key=lambda r: r[0]))

        if q.startswith("select person_id, spouse_id from person_spouse where person_id = any"):
            ids = set(params[0] or [])
            return _FakeResult([r for r in self._spouse_rows if r[0] in ids])

        if q.startswith("select person_id, spouse_id from person_spouse"):
            return _FakeResult(self._spouse_rows)

        raise AssertionError(f"Unexpected query: {query}")


def _row(pid: int, name: str, *, p1: int | None = None, p2: int | None = None, born: date | None = None):
    return (pid, name, None, "Male", born, None, p1, p2, None, None, None, None)


def test_fetch_people_attaches_spouses() -> None:
    conn = _FakeConn(
        people_rows=[_row(2, "Wife"), _row(1, "Husband"), _row(3, "Kid", p1=1, p2=2, born=date(1999, 9, 9))],
        spouse_rows=[(1, 2), (2, 1), (2, 1)],
    )

    people = _fetch_people(conn)
    assert [p.id for p in people] == [1, 2, 3]
    assert people[0].spouse_ids == (2,)
    assert people[1].spouse_ids == (1,)
    assert people[2].parent_ids == (1, 2)
    assert people[2].birth_date == "1999-09-09"


def test_fetch_person_and_missing_person() -> None:
    conn = _FakeConn(people_rows=[_row(1, "Solo")], spouse_rows=[(1, 5)])

    p = _fetch_person(conn, 1)
    assert p is not None and p.spouse_ids == (5,)
    assert _fetch_person(conn, 2) is None


def test_fetch_spouse_map_with_empty_id_list() -> None:
    conn = _FakeConn(people_rows=[], spouse_rows=[(1, 2)])
    assert _fetch_spouse_map(conn, []) == {}
    assert _fetch_spouse_map(conn, [1]) == {1: [2]}


def test_database_url_is_required(monkeypatch) -> None:
    from famtree.db import get_database_url

    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(RuntimeError):
        get_database_url()

    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/famtree")
    assert get_database_url() == "postgresql://localhost/famtree"
