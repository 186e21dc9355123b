"""Storage representation of metadata values.

Scalars are stored as their string form; lists and dicts are stored as
compact JSON. Reading back only decodes values that look like JSON
containers, so plain strings are never reinterpreted.
"""

import json
from typing import Any


def serialize_meta_value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, int | float):
        return str(value)
    return json.dumps(value, separators=(",", ":"), sort_keys=False)


def is_serialized(raw: Any) -> bool:
    if not isinstance(raw, str):
        return False
    s = raw.strip()
    if len(s) < 2:
        return False
    return (s[0], s[-1]) in {("{", "}"), ("[", "]")}


def maybe_deserialize(raw: Any) -> Any:
    """Decode a stored meta value if it is a serialized container."""
    if not is_serialized(raw):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw
