"""
Some basic dicts and field-in-a-dict manipulation helpers.
"""
import collections.abc
import enum
from collections.abc import Mapping
from typing import Any, TypeVar

FieldPath = tuple[str, ...]
FieldSpec = None | str | FieldPath | list[str]

_T = TypeVar('_T')


class _UNSET(enum.Enum):
    token = enum.auto()


def parse_field(
        field: FieldSpec,
) -> FieldPath:
    """
    Convert any field into a tuple of nested sub-fields.

    Supported notations:

    * ``None`` (for root of a dict).
    * ``"field.subfield"``
    * ``("field", "subfield")``
    * ``["field", "subfield"]``
    """
    if field is None:
        return tuple()
    elif isinstance(field, str):
        return tuple(field.split('.'))
    elif isinstance(field, (list, tuple)):
        return tuple(field)
    else:
        raise ValueError(f"Field must be either a str, or a list/tuple. Got {field!r}")


def resolve(
        d: Mapping[Any, Any] | None,
        field: FieldSpec,
        default: _T | _UNSET = _UNSET.token,
) -> Any | _T:
    """
    Retrieve a nested sub-field from a dict.

    If ``default`` is provided, then all non-existent and non-mapping values
    are assumed to be empty dictionaries, and ``default`` is returned.

    Otherwise (with no default), attempts to get the inexistent keys will
    raise either a ``TypeError`` or ``KeyError``.

    The "safe" mode is needed for K8s: if the resources are corrupted externally
    (e.g. by editing manually), we treat that corrupted data as absent data.
    """
    path = parse_field(field)
    try:
        result = d
        for key in path:
            if isinstance(result, collections.abc.Mapping):
                result = result[key]
            elif not isinstance(default, _UNSET):
                return default
            else:
                raise TypeError(f"The structure is not a dict with field {key!r}: {result!r}")
        return result
    except KeyError:
        if not isinstance(default, _UNSET):
            return default
        raise


def deep_equal(a: Any, b: Any) -> bool:
    """
    Compare two JSON-like structures strictly and recursively.

    Unlike the native ``==``, the booleans are not equal to the integers
    (``True != 1``), the integers are equal to the same-valued floats only
    if both are numbers but not booleans, and a key with a ``None`` value
    is not the same as an absent key. Lists and tuples are both sequences
    and are compared item by item in order.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    elif isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    elif isinstance(a, str) or isinstance(b, str):
        return isinstance(a, str) and isinstance(b, str) and a == b
    elif a is None or b is None:
        return a is None and b is None
    elif isinstance(a, Mapping) and isinstance(b, Mapping):
        return (set(a.keys()) == set(b.keys()) and
                all(deep_equal(a[key], b[key]) for key in a))
    elif _is_sequence(a) and _is_sequence(b):
        return (len(a) == len(b) and
                all(deep_equal(item_a, item_b) for item_a, item_b in zip(a, b)))
    else:
        return bool(type(a) is type(b) and a == b)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))

