"""
Common utility functions for xschema.
"""

from typing import Any, Hashable, Mapping, Tuple

from xschema.schema import Symbol

MISSING = object()


class MixedMapError(Exception):
    """Raised by get_value when a map holds a key in both forms."""

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"Key {key!r} is present as string and as symbol")


def toggle_key(key: Any) -> Any:
    """Returns the other encoding of a key, or None for non-textual keys."""
    if isinstance(key, str):
        return Symbol(key)
    if isinstance(key, Symbol):
        return key.name
    return None


def get_value(mapping: Mapping, key: Any) -> Any:
    """
    Looks up a key in either of its encodings.

    Args:
        mapping: The data map
        key: The declared key, in string form

    Returns:
        The value, or MISSING if the key is absent in both forms.

    Raises:
        MixedMapError: If the key is present in both forms.
    """
    value = mapping.get(key, MISSING)
    alternate = toggle_key(key)
    alternate_value = MISSING if alternate is None else mapping.get(alternate, MISSING)
    if value is MISSING:
        return alternate_value
    if alternate_value is not MISSING:
        raise MixedMapError(key)
    return value


def get_key(mapping: Mapping, key: Any) -> Any:
    """Returns the encoding of key actually used by the mapping."""
    if key in mapping:
        return key
    alternate = toggle_key(key)
    if alternate is not None and alternate in mapping:
        return alternate
    return key


def has_key(mapping: Mapping, key: Any) -> bool:
    """Checks for a key in either of its encodings."""
    if key in mapping:
        return True
    alternate = toggle_key(key)
    return alternate is not None and alternate in mapping


def freeze(value: Any) -> Hashable:
    """
    Converts a JSON-like value into a hashable form with JSON equality.

    Booleans stay apart from numbers, 1 and 1.0 compare equal, and lists and
    maps compare structurally.
    """
    if isinstance(value, bool):
        return ('bool', value)
    if isinstance(value, (int, float)):
        return ('number', value)
    if isinstance(value, Mapping):
        return ('map', frozenset((freeze(k), freeze(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple)):
        return ('list', tuple(freeze(item) for item in value))
    if isinstance(value, (set, frozenset)):
        return ('set', frozenset(freeze(item) for item in value))
    try:
        hash(value)
    except TypeError:
        return ('object', id(value))
    return ('value', value)


def values_equal(a: Any, b: Any) -> bool:
    """Deep equality following JSON rules."""
    return freeze(a) == freeze(b)


def first_duplicate(values) -> int:
    """Returns the index of the first element equal to an earlier one, or -1."""
    seen = set()
    for index, value in enumerate(values):
        frozen = freeze(value)
        if frozen in seen:
            return index
        seen.add(frozen)
    return -1


def error_path(reason: Any) -> Tuple[str, Any]:
    """
    Follows an error tree down to its leaf.

    Args:
        reason: The error tree returned by the validator

    Returns:
        A tuple of the JSON pointer of the failing location (e.g. '#/foo/0')
        and the leaf error.
    """
    path = '#'
    while isinstance(reason, Mapping):
        if 'property' in reason:
            token = str(reason['property']).replace('~', '~0').replace('/', '~1')
            path = f"{path}/{token}"
        elif 'at' in reason and reason.get('reason') in ('invalid_item', 'additional_item', 'not_unique'):
            path = f"{path}/{reason['at']}"
        child = reason.get('error')
        if not isinstance(child, Mapping):
            break
        reason = child
    return path, reason
