from __future__ import annotations

from enum import Enum
from typing import Any


def _compact_json(value: Any) -> Any:
    """Recursively drop empty fields from a JSON-like payload.

    Rules:
    - Drop keys with None
    - Drop keys with empty string (after strip)
    - Drop keys with empty list/tuple/dict
    - Keep 0/False
    - Enums collapse to their value
    """

    if value is None:
        return None

    if isinstance(value, Enum):
        return _compact_json(value.value)

    if isinstance(value, str):
        s = value.strip()
        return s if s else None

    if isinstance(value, (list, tuple)):
        items = [_compact_json(item) for item in value]
        out_list = [v for v in items if v is not None]
        return out_list if out_list else None

    if isinstance(value, dict):
        out_dict: dict[str, Any] = {}
        for k, v in value.items():
            vv = _compact_json(v)
            if vv is None:
                continue
            out_dict[k] = vv
        return out_dict if out_dict else None

    return value
