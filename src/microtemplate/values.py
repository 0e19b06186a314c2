"""Core value types for template authoring.

This module defines the plain values that may appear in argument sets,
situation parameters, and engine configuration, together with a helper
that recursively converts runtime objects received from template code
into those values.

Symbolic values (`Symbol` instances and enum members) never survive
normalization: they are replaced by their string form, so the engine
only ever receives plain data.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from microtemplate.names import is_symbolic, symbol_string

#: Scalars are atomic values consumed by the engine as they are.
type Scalar = str | int | float | bool

#: A plain value contains no symbolic or deferred parts.
type Value = Scalar | Sequence[Value] | Mapping[str, Value] | None

#: Any object received from template code before normalization.
type RuntimeValue = Any

MAPPINGS = (dict,)
SCALARS = (str, int, float, bool)
SEQUENCES = (list, tuple)


def _normalize_key(value: RuntimeValue) -> str:
    """Validate and normalize a mapping key.

    Args:
        value: Candidate mapping key.

    Returns:
        The key as a string.

    Raises:
        TypeError: If the key is neither a string nor symbolic.
    """
    if is_symbolic(value):
        return symbol_string(value)

    if not isinstance(value, str):
        raise TypeError(f'Can not use {value!r} as mapping key')

    return value


def normalize(value: RuntimeValue) -> Value:
    """Recursively normalize a runtime value into a plain `Value`.

    Args:
        value: Runtime value to normalize.

    Returns:
        A plain value with every symbolic part converted to a string.

    Raises:
        TypeError: If the value type is unsupported.
    """
    if value is None:
        return None

    if is_symbolic(value):
        return symbol_string(value)

    if isinstance(value, SCALARS):
        return value

    if isinstance(value, MAPPINGS):
        return {
            _normalize_key(key): normalize(item)
            for key, item in value.items()
        }

    if isinstance(value, SEQUENCES):
        return [
            normalize(item)
            for item in value
        ]

    raise TypeError(f'{value!r} has unsupported type')
