from __future__ import annotations

from datetime import date
import re
from typing import Any

try:
    from .lineage import _ancestor_chain
    from .models import Person
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from lineage import _ancestor_chain
    from models import Person

_UNDATED = "9999-12-31"


def _year_from_text(s: str | None) -> int | None:
    if not s:
        return None
    m = re.search(r"\b(\d{4})\b", str(s))
    if not m:
        return None
    y = int(m.group(1))
    if y < 1:
        return None
    return y


def _age_years(birth_date: str | None, death_date: str | None, *, today: date | None = None) -> int | None:
    """Whole-year difference between birth and death (or today)."""

    birth_year = _year_from_text(birth_date)
    if birth_year is None:
        return None
    if death_date:
        end_year = _year_from_text(death_date)
        if end_year is None:
            return None
    else:
        end_year = (today or date.today()).year
    return end_year - birth_year


def build_timeline(people: list[Person], *, today: date | None = None) -> list[dict[str, Any]]:
    """Members in birth order (undated last) with generation and age."""

    by_id: dict[int, Person] = {}
    for p in people:
        by_id.setdefault(p.id, p)

    ordered = sorted(by_id.values(), key=lambda p: p.birth_date or _UNDATED)

    out: list[dict[str, Any]] = []
    for p in ordered:
        out.append(
            {
                "id": p.id,
                "full_name": p.full_name,
                "nickname": p.nickname,
                "gender": p.gender.value,
                "birth_date": p.birth_date,
                "birth_place": p.birth_place,
                "death_date": p.death_date,
                "generation": len(_ancestor_chain(by_id, p)),
                "age": _age_years(p.birth_date, p.death_date, today=today),
                "is_alive": not p.death_date,
            }
        )
    return out
