"""Person records as the tree pipeline sees them."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Mapping


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"

    @classmethod
    def parse(cls, value: Any) -> "Gender":
        s = str(value or "").strip().lower()
        if s in ("female", "f", "woman"):
            return cls.FEMALE
        return cls.MALE


def _opt_id(value: Any) -> int | None:
    # 0 is the synthetic root id; imported data uses it (and "") for "no parent".
    if value is None or value == "":
        return None
    try:
        n = int(value)
    except (TypeError, ValueError):
        return None
    return n if n > 0 else None


def _opt_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _opt_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    s = str(value).strip()
    return s or None


def _pick(d: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in d:
            return d[k]
    return None


@dataclass(frozen=True)
class Person:
    id: int
    full_name: str
    gender: Gender = Gender.MALE
    nickname: str | None = None
    birth_date: str | None = None  # ISO YYYY-MM-DD, compared lexically
    birth_order: int | None = None
    parent_id1: int | None = None
    parent_id2: int | None = None
    spouse_ids: tuple[int, ...] = ()
    birth_place: str | None = None
    death_date: str | None = None
    occupation: str | None = None
    education: str | None = None

    @property
    def label(self) -> str:
        return self.nickname or self.full_name

    @property
    def parent_ids(self) -> tuple[int, ...]:
        """Distinct recorded parent ids, parent1 first."""
        out: list[int] = []
        for pid in (self.parent_id1, self.parent_id2):
            if pid is not None and pid not in out:
                out.append(pid)
        return tuple(out)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Person":
        """Build a Person from a JSON-like mapping (camelCase or snake_case keys)."""

        spouses_raw = _pick(d, "spouse_ids", "spouseIds") or []
        spouse_ids: list[int] = []
        for x in spouses_raw:
            sid = _opt_id(x)
            if sid is not None and sid not in spouse_ids:
                spouse_ids.append(sid)

        return cls(
            id=int(d["id"]),
            full_name=_opt_text(_pick(d, "full_name", "fullName")) or "",
            gender=Gender.parse(d.get("gender")),
            nickname=_opt_text(d.get("nickname")),
            birth_date=_opt_text(_pick(d, "birth_date", "birthDate")),
            birth_order=_opt_int(_pick(d, "birth_order", "birthOrder")),
            parent_id1=_opt_id(_pick(d, "parent_id1", "parentId1")),
            parent_id2=_opt_id(_pick(d, "parent_id2", "parentId2")),
            spouse_ids=tuple(spouse_ids),
            birth_place=_opt_text(_pick(d, "birth_place", "birthPlace")),
            death_date=_opt_text(_pick(d, "death_date", "deathDate")),
            occupation=_opt_text(d.get("occupation")),
            education=_opt_text(d.get("education")),
        )

    @classmethod
    def from_row(cls, r: tuple[Any, ...], spouse_ids: tuple[int, ...] = ()) -> "Person":
        # r = (
        #   id, full_name, nickname, gender, birth_date, birth_order,
        #   parent_id1, parent_id2, birth_place, death_date, occupation, education
        # )
        (
            pid,
            full_name,
            nickname,
            gender,
            birth_date,
            birth_order,
            parent_id1,
            parent_id2,
            birth_place,
            death_date,
            occupation,
            education,
        ) = r

        return cls(
            id=int(pid),
            full_name=_opt_text(full_name) or "",
            gender=Gender.parse(gender),
            nickname=_opt_text(nickname),
            birth_date=_opt_text(birth_date),
            birth_order=_opt_int(birth_order),
            parent_id1=_opt_id(parent_id1),
            parent_id2=_opt_id(parent_id2),
            spouse_ids=tuple(spouse_ids),
            birth_place=_opt_text(birth_place),
            death_date=_opt_text(death_date),
            occupation=_opt_text(occupation),
            education=_opt_text(education),
        )
