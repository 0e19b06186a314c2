"""Authoring surface names and collision-safe name resolution.

This module defines the identifier rules used for entry point names and
symbolic template values, and the pure resolution function that decides
under which name a catalog entry is installed on the authoring surface.

The resolution rules form part of the public template contract: catalog
order decides which descriptor keeps a bare name, and the fallback name
is always prefixed with the entry kind (`mode_` or `op_`).
"""

from enum import Enum
from re import ASCII
from re import compile as regexp
from typing import TYPE_CHECKING, Annotated, Literal

from pydantic import Field

if TYPE_CHECKING:
    from collections.abc import Collection

#: Base pattern for all template identifiers.
#: Identifiers must start with a letter and may contain letters, digits, or underscores
_NAME_PATTERN = r'[a-zA-Z][\w]*'

#: Compiled pattern for entry point names.
ENTRY_POINT_PATTERN = regexp(
    rf'^(?P<name>{_NAME_PATTERN})$',
    flags=ASCII,
)

#: Kind tag of a bound entry point.
type EntryKind = Literal['mode', 'op']

#: Kinds in the order they share the authoring namespace.
ENTRY_KINDS: tuple[EntryKind, ...] = ('mode', 'op')

Identifier = Annotated[
    str, Field(
        pattern=rf'^[#]?{_NAME_PATTERN}$',
        title='Catalog identifier',
        description=(
            'Name of an operation, addressing mode or argument as reported '
            'by the metamodel provider. Names are case-sensitive in the '
            'catalog and lower-cased on the authoring surface.'
        ),
        examples=[
            'ADD',
            'REG',
            'rs',
        ],
    ),
]


class Symbol:
    """Symbolic template value.

    Symbols stand for names that are meaningful only to the engine, such
    as jump targets or engine identifiers. They are converted to their
    string form whenever they reach an argument set or a situation.
    """

    __slots__ = ('name',)

    def __init__(self, name: str) -> None:
        """Initialize a symbol.

        Args:
            name: Symbolic name.

        Raises:
            ValueError: If the name is not a valid identifier.
        """
        if not ENTRY_POINT_PATTERN.match(name):
            raise ValueError(f'Invalid symbol name {name!r}')

        self.name = name

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f'Symbol({self.name!r})'

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Symbol):
            return self.name == other.name
        return NotImplemented

    def __hash__(self) -> int:
        return hash((Symbol, self.name))


def is_symbolic(value: object) -> bool:
    """Check whether a value is symbolic."""
    return isinstance(value, (Symbol, Enum))


def symbol_string(value: Symbol | Enum) -> str:
    """Convert a symbolic value to its string form.

    Enum members use their value when it is a string and their member
    name otherwise.
    """
    if isinstance(value, Enum):
        return value.value if isinstance(value.value, str) else value.name

    return str(value)


def canonical_name(name: str) -> str:
    """Return the canonical (lower-case) authoring name of an entry."""
    return name.lower()


def resolve_name(taken: 'Collection[str]', base_name: str, kind: EntryKind) -> str | None:
    """Resolve the installation name of a catalog entry.

    The bare canonical name is used when it is free. Otherwise the name
    prefixed with the entry kind is tried. When both are taken the entry
    can not be installed.

    Args:
        taken: Names already present on the authoring surface.
        base_name: Catalog name of the entry.
        kind: Kind tag of the entry.

    Returns:
        The name to install the entry under, or `None` on collision.
    """
    name = canonical_name(base_name)
    if name not in taken:
        return name

    prefixed = f'{kind}_{name}'
    if prefixed not in taken:
        return prefixed

    return None
