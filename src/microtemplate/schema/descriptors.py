"""Catalog descriptors of operations and addressing modes.

Descriptors are the read-only description of the instruction set that
the metamodel provider reports. They carry just enough information to
bind entry points and validate argument sets: names, ordered argument
names with accepted value types, and the root placement flags.
"""

from collections.abc import Iterator
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator

from microtemplate.models import DescribedMixin, SchemaModel
from microtemplate.names import Identifier  # noqa: TC001

#: Type name accepted by arguments that take immediate values.
IMMEDIATE_TYPE = '#IMM'


class ArgumentDescriptor(SchemaModel):
    """Single named argument of an operation or addressing mode."""

    name: Identifier = Field(
        title='Argument name',
        description='Name used by the named-argument call form.',
    )

    types: tuple[Identifier, ...] = Field(
        default=(),
        title='Accepted types',
        description=(
            'Type names of accepted values: `#IMM` for immediate values, '
            'or names of addressing modes and operations. '
            'An empty list accepts any value.'
        ),
    )

    def accepts(self, type_name: str) -> bool:
        """Check whether a value of the given type can be assigned."""
        return not self.types or type_name in self.types


class BaseDescriptor(DescribedMixin, SchemaModel):
    """Fields shared by all catalog entries."""

    name: Identifier = Field(
        title='Entry name',
        description='Catalog name of the entry.',
    )

    arguments: tuple[ArgumentDescriptor, ...] = Field(
        default=(),
        validation_alias=AliasChoices('arguments', 'args', 'argument_names'),
        title='Arguments',
        description=(
            'Ordered argument descriptors; plain strings name untyped arguments. '
            'Providers reporting only argument names may use `argument_names`.'
        ),
    )

    @field_validator('arguments', mode='before')
    @classmethod
    def promote_argument_names(cls, value: Any) -> Any:  # noqa: ANN401
        """Accept bare argument names in place of descriptors."""
        if isinstance(value, (list, tuple)):
            return tuple(
                {'name': item} if isinstance(item, str) else item
                for item in value
            )
        return value

    @property
    def argument_names(self) -> tuple[str, ...]:
        """Ordered argument names."""
        return tuple(argument.name for argument in self.arguments)

    def get_argument(self, name: str) -> ArgumentDescriptor | None:
        """Return the argument descriptor with the given name."""
        return next((arg for arg in self.arguments if arg.name == name), None)


class AddressingModeDescriptor(BaseDescriptor):
    """Catalog entry describing an addressing mode."""

    kind: Literal['mode'] = Field(default='mode', exclude=True)


class OperationDescriptor(BaseDescriptor):
    """Catalog entry describing an operation."""

    kind: Literal['op'] = Field(default='op', exclude=True)

    is_root: bool = Field(
        default=False,
        validation_alias=AliasChoices('is_root', 'isRoot'),
        title='Root operation',
        description='The operation stands alone as a full instruction.',
    )

    has_root_shortcut: bool = Field(
        default=False,
        validation_alias=AliasChoices('has_root_shortcut', 'hasRootShortcuts'),
        title='Root shortcut',
        description='The operation behaves as a root operation even in a nested position.',
    )


#: Any catalog entry.
type Descriptor = AddressingModeDescriptor | OperationDescriptor


class Catalog(SchemaModel):
    """Ordered descriptor sets queried once from a metamodel provider."""

    modes: tuple[AddressingModeDescriptor, ...] = ()
    operations: tuple[OperationDescriptor, ...] = ()

    def entries(self) -> Iterator[Descriptor]:
        """Iterate over all entries in catalog order, modes first."""
        yield from self.modes
        yield from self.operations

    def get_mode(self, name: str) -> AddressingModeDescriptor | None:
        """Find an addressing mode by catalog name."""
        return next((mode for mode in self.modes if mode.name == name), None)

    def get_operation(self, name: str) -> OperationDescriptor | None:
        """Find an operation by catalog name."""
        return next((op for op in self.operations if op.name == name), None)

    @property
    def names(self) -> tuple[str, ...]:
        """Catalog names in catalog order."""
        return tuple(entry.name for entry in self.entries())
