"""Data-quality checks for person snapshots.

The tree pipeline tolerates all of these; the warnings exist so that editors
can find and repair the records.
"""

from __future__ import annotations

try:
    from .models import Person
except ImportError:  # pragma: no cover
    # Support running with CWD=famtree (e.g., `python -m uvicorn main:app`).
    from models import Person


def _find_parent_cycles(by_id: dict[int, Person]) -> list[list[int]]:
    """Return one id list per cycle found in the child -> parent relation."""

    white, grey, black = 0, 1, 2
    color: dict[int, int] = {pid: white for pid in by_id}
    cycles: list[list[int]] = []

    for start in by_id:
        if color[start] != white:
            continue
        # Iterative DFS; path mirrors the grey nodes on the stack.
        path: list[int] = []
        stack: list[tuple[int, int]] = [(start, 0)]
        while stack:
            pid, i = stack.pop()
            if i == 0:
                color[pid] = grey
                path.append(pid)
            parents = [x for x in by_id[pid].parent_ids if x in by_id]
            if i < len(parents):
                stack.append((pid, i + 1))
                nxt = parents[i]
                if color[nxt] == grey:
                    cycles.append(path[path.index(nxt):])
                elif color[nxt] == white:
                    stack.append((nxt, 0))
                continue
            color[pid] = black
            path.pop()

    return cycles


def validate_people(people: list[Person]) -> list[str]:
    """Return human-readable warnings for a person snapshot."""

    warnings: list[str] = []
    by_id: dict[int, Person] = {}
    for p in people:
        if p.id in by_id:
            warnings.append(f"Duplicate person id {p.id}: {p.full_name!r} ignored")
            continue
        by_id[p.id] = p

    for p in by_id.values():
        for parent_id in p.parent_ids:
            if parent_id == p.id:
                warnings.append(f"{p.full_name} (id {p.id}) is recorded as their own parent")
            elif parent_id not in by_id:
                warnings.append(f"{p.full_name} (id {p.id}) references missing parent {parent_id}")

        for spouse_id in p.spouse_ids:
            spouse = by_id.get(spouse_id)
            if spouse is None:
                warnings.append(f"{p.full_name} (id {p.id}) references missing spouse {spouse_id}")
            elif p.id not in spouse.spouse_ids:
                warnings.append(
                    f"Spouse link {p.id} -> {spouse_id} is one-sided: "
                    f"{spouse.full_name} does not list {p.full_name}"
                )

    for cycle in _find_parent_cycles(by_id):
        if len(cycle) == 1:
            # Already reported as self-parenting.
            continue
        warnings.append(f"Cycle detected in parent-child relationships: {cycle}")

    return warnings
