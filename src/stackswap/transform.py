"""Key rewriting for nested template values."""

from collections.abc import Callable, Mapping
from typing import Any, Union

# Marks keys whose values are copied without rewriting their own keys.
# A nested mapping applies the same rule one level further down.
Exclude = Mapping[str, Union["Exclude", bool]]


def transform_object_keys(
    val: Any,
    transform: Callable[[str], str],
    exclude: Exclude | None = None,
) -> Any:
    """Return a copy of ``val`` with every mapping key passed through ``transform``.

    Sequences are rewritten element by element using the same ``exclude``
    as their parent, since per-element exclusions make no sense. A key
    mapped to ``True`` in ``exclude`` still has its own name transformed,
    but its value is copied as-is.
    """
    exclude = exclude or {}
    if isinstance(val, Mapping):
        ret = {}
        for key, value in val.items():
            child_exclude = exclude.get(key)
            if child_exclude is True:
                ret[transform(key)] = value
            else:
                ret[transform(key)] = transform_object_keys(
                    value,
                    transform,
                    child_exclude if isinstance(child_exclude, Mapping) else None,
                )
        return ret
    if isinstance(val, list | tuple):
        return [transform_object_keys(item, transform, exclude) for item in val]
    return val


def lower_case_first_character(value: str) -> str:
    """Lower-case the first character, e.g. ``ContainerDefinitions`` -> ``containerDefinitions``."""
    return value[:1].lower() + value[1:]
