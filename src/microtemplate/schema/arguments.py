"""Argument sets of entry point calls.

Template code may pass arguments either positionally or by name, and a
named call may be written either with keywords or with a single mapping.
The normalizer turns every call into an `ArgumentSet` holding exactly
one of the two forms; binding then resolves the set against the ordered
argument names of a descriptor.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, Self, runtime_checkable

from pydantic import Field, model_validator

from microtemplate.errors import InvalidArgumentShape, TemplateArgumentError
from microtemplate.models import SchemaModel
from microtemplate.names import is_symbolic, symbol_string

from .descriptors import IMMEDIATE_TYPE, OperationDescriptor
from .nodes import AddressingModeInstance, OperationInstance, RandomValue

if TYPE_CHECKING:
    from .descriptors import Descriptor
    from .nodes import Argument

ERR_MIXED_FORMS = (
    'Illegal use: arguments can be passed either positionally '
    'or by name, but not both'
)
ERR_NO_MORE_ARGUMENTS = 'Too many arguments: {entry} has only {count} arguments'
ERR_UNDEFINED_ARGUMENT = 'The {name} argument is not defined for {entry}'
ERR_UNASSIGNED_ARGUMENT = 'The {name} argument of {entry} is not assigned'
ERR_TYPE_NOT_ACCEPTED = 'The {type} type is not accepted for the {name} argument of {entry}'
ERR_VALUE_NOT_ACCEPTED = 'The {name} argument of {entry} can not be {value!r}'
ERR_ROOT_NOT_ACCEPTED = (
    'The {name} argument of {entry} can not take the {operation} root operation: '
    'it is already placed in its scope'
)


@runtime_checkable
class NestedBuilder(Protocol):
    """Open operation builder passed as an argument of another entry."""

    def build(self, context: str | None = None) -> OperationInstance:
        """Finish the builder within the given context."""
        ...  # pragma: no cover


def _convert(value: Any) -> Any:  # noqa: ANN401
    """Convert a symbolic value to its string form."""
    if is_symbolic(value):
        return symbol_string(value)

    return value


class ArgumentSet(SchemaModel):
    """Canonical arguments of a single entry point call."""

    positional: tuple[Any, ...] = Field(default=(), title='Positional arguments')
    named: dict[str, Any] = Field(default_factory=dict, title='Named arguments')

    @model_validator(mode='after')
    def check_single_form(self) -> Self:
        """Check that only one argument form is populated.

        Raises:
            ValueError: If both forms are populated.
        """
        if self.positional and self.named:
            raise ValueError(ERR_MIXED_FORMS)

        return self

    @property
    def is_named(self) -> bool:
        """Whether the set uses the named form."""
        return bool(self.named)

    def pairs(self, descriptor: 'Descriptor') -> list[tuple[str, Any]]:
        """Pair values with argument names of a descriptor.

        Args:
            descriptor: Descriptor the set is bound to.

        Returns:
            `(name, value)` pairs in call order.

        Raises:
            TemplateArgumentError: If there are more positional values than
                arguments, or a name is not defined by the descriptor.
        """
        entry = describe(descriptor)

        if self.named:
            for name in self.named:
                if descriptor.get_argument(name) is None:
                    raise TemplateArgumentError(ERR_UNDEFINED_ARGUMENT.format(name=name, entry=entry))
            return list(self.named.items())

        names = descriptor.argument_names
        if len(self.positional) > len(names):
            raise TemplateArgumentError(ERR_NO_MORE_ARGUMENTS.format(entry=entry, count=len(names)))

        return list(zip(names, self.positional, strict=False))

    def bind(self, descriptor: 'Descriptor') -> dict[str, 'Argument']:
        """Resolve the set into argument bindings of a descriptor.

        Open operation builders are finished here, within the context of
        the descriptor they are passed to.

        Args:
            descriptor: Descriptor the set is bound to.

        Returns:
            Argument values keyed by name, in descriptor order.

        Raises:
            TemplateArgumentError: If the set does not fit the descriptor.
        """
        entry = describe(descriptor)
        assigned = {
            name: self._bind_value(descriptor, name, value)
            for name, value in self.pairs(descriptor)
        }

        bindings: dict[str, Argument] = {}
        for argument in descriptor.arguments:
            if argument.name not in assigned:
                raise TemplateArgumentError(ERR_UNASSIGNED_ARGUMENT.format(name=argument.name, entry=entry))
            bindings[argument.name] = assigned[argument.name]

        return bindings

    @staticmethod
    def _bind_value(descriptor: 'Descriptor', name: str, value: Any) -> 'Argument':  # noqa: ANN401
        """Finish and type-check a single argument value."""
        entry = describe(descriptor)

        if isinstance(value, NestedBuilder):
            value = value.build(context=descriptor.name)

        if isinstance(value, bool) or not isinstance(value, (
            int, str, RandomValue, AddressingModeInstance, OperationInstance,
        )):
            raise TemplateArgumentError(ERR_VALUE_NOT_ACCEPTED.format(name=name, entry=entry, value=value))

        if isinstance(value, OperationInstance) and value.is_root:
            raise TemplateArgumentError(ERR_ROOT_NOT_ACCEPTED.format(name=name, entry=entry, operation=value.name))

        type_name = (
            value.type_name
            if isinstance(value, (AddressingModeInstance, OperationInstance))
            else IMMEDIATE_TYPE
        )

        argument = descriptor.get_argument(name)
        if argument is not None and not argument.accepts(type_name):
            raise TemplateArgumentError(ERR_TYPE_NOT_ACCEPTED.format(type=type_name, name=name, entry=entry))

        return value


def describe(descriptor: 'Descriptor') -> str:
    """Human-readable name of a descriptor for messages."""
    if isinstance(descriptor, OperationDescriptor):
        return f'the {descriptor.name} operation'

    return f'the {descriptor.name} addressing mode'


def normalize_arguments(args: tuple[Any, ...],
                        named: Mapping[str, Any] | None = None) -> ArgumentSet:
    """Normalize call-site arguments into an `ArgumentSet`.

    A single mapping argument, or keyword arguments, produce the named
    form. Any other positional arguments produce the positional form.
    Symbolic values are converted to their string form.

    Args:
        args: Positional call arguments.
        named: Keyword call arguments.

    Returns:
        The canonical argument set.

    Raises:
        InvalidArgumentShape: If the call mixes positional and named forms,
            or a mapping key is not a name.
    """
    if args and named:
        raise InvalidArgumentShape(ERR_MIXED_FORMS)

    if named:
        return ArgumentSet(named={
            key: _convert(value)
            for key, value in named.items()
        })

    if len(args) == 1 and isinstance(args[0], Mapping):
        mapping: dict[str, Any] = {}
        for key, value in args[0].items():
            key = _convert(key)  # noqa: PLW2901
            if not isinstance(key, str):
                raise InvalidArgumentShape(f'Can not use {key!r} as argument name')
            mapping[key] = _convert(value)
        return ArgumentSet(named=mapping)

    if any(isinstance(value, Mapping) for value in args):
        raise InvalidArgumentShape(ERR_MIXED_FORMS)

    return ArgumentSet(positional=tuple(_convert(value) for value in args))
