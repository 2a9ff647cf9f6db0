"""
Dictionary helpers for merging loosely-shaped scan payloads.
"""

import copy
from typing import Any, Dict, cast


def deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """
    Overlay ``source`` onto a copy of ``target``.

    Nested dicts merge key by key; any other value in ``source`` replaces the
    target's (lists included). Empty source values (None or "") are ignored,
    so a sparse client payload never blanks out what the server echoed.

    Neither argument is modified.
    """
    result = copy.deepcopy(target)
    for key, value in source.items():
        if value is None or value == "":
            continue
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(cast(Dict[str, Any], result[key]), cast(Dict[str, Any], value))
        else:
            result[key] = copy.deepcopy(value)
    return result


def first_non_empty(*values: Any) -> Any:
    """Return the first value that is neither None nor an empty string/list."""
    for value in values:
        if value is None:
            continue
        if isinstance(value, (str, list, tuple, dict)) and len(value) == 0:
            continue
        return value
    return None
