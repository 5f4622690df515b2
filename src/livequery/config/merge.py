"""Deep merge for configuration cascading.

Later configs override earlier ones. Named lists (such as ``commands``) are
merged entry by entry on their ``name`` key so a user config can tweak one
built-in command without restating the others.
"""

from __future__ import annotations

from typing import Any

# Lists whose entries are dicts identified by this key
_KEYED_LISTS = {"commands": "name"}


def _merge_keyed_list(base: list[Any], override: list[Any], key: str) -> list[Any]:
    merged: list[Any] = list(base)
    positions = {
        entry.get(key): i for i, entry in enumerate(merged) if isinstance(entry, dict)
    }
    for entry in override:
        if isinstance(entry, dict) and entry.get(key) in positions:
            i = positions[entry[key]]
            merged[i] = deep_merge(merged[i], entry)
        else:
            merged.append(entry)
            if isinstance(entry, dict):
                positions[entry.get(key)] = len(merged) - 1
    return merged


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Rules:
    - Nested dicts are recursively merged
    - Keyed lists (see _KEYED_LISTS) are merged by entry name
    - Other lists are replaced entirely
    - None values in override never replace base values

    Args:
        base: The base dictionary.
        override: The dictionary with overriding values.

    Returns:
        A new dictionary with merged values.
    """
    result = base.copy()

    for key, override_value in override.items():
        if override_value is None:
            continue

        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(override_value, dict):
            result[key] = deep_merge(base_value, override_value)
        elif (
            key in _KEYED_LISTS
            and isinstance(base_value, list)
            and isinstance(override_value, list)
        ):
            result[key] = _merge_keyed_list(base_value, override_value, _KEYED_LISTS[key])
        else:
            result[key] = override_value

    return result


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge multiple configs in order (later overrides earlier)."""
    result: dict[str, Any] = {}
    for config in configs:
        if config:
            result = deep_merge(result, config)
    return result
