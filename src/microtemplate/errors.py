"""Core exception hierarchy.

This module defines base error and warning types used across the library
to report catalog loading issues, binding collisions, argument shape and
binding failures, and misuse of the composition model in a structured
and extensible way.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump

from microtemplate.values import MAPPINGS, SCALARS, SEQUENCES

if TYPE_CHECKING:
    from typing import Self

if TYPE_CHECKING:
    from pydantic import BaseModel, ValidationError
    from pydantic_core import ErrorDetails

if TYPE_CHECKING:
    from microtemplate.names import EntryKind

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2

FORMAT_REPLACER = '<runtime object>'
FORMAT_INDENT = 4


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Name of the template class being evaluated.
    template: str | None
    #: Name of the entry point being called.
    entry: str | None
    #: Kind tag of the entry point.
    kind: 'EntryKind | None'

    #: Underlying exception that triggered formatting.
    error: Exception | None

    #: Element associated with the error.
    element: Any


class ErrorFormatter:
    """Utility class for formatting template errors.

    Produces human-readable messages with an optional location line and
    a YAML snippet describing the offending element.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        location = cls.get_location_string(context, indent=FORMAT_INDENT)
        snippet = cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)
        if not location and not snippet:
            return message

        return f'{message}{linesep}{location}{snippet}'.rstrip()

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format template and entry point location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location line, or an empty string.
        """
        indent = cls._ensure_indent(indent)

        parts = []
        if template := context.get('template'):
            parts.append(f'in template "{template}"')
        if entry := context.get('entry'):
            if kind := context.get('kind'):
                parts.append(f'calling {kind} "{entry}"')
            else:
                parts.append(f'calling "{entry}"')

        if not parts:
            return ''

        return f'{indent}{", ".join(parts)}{linesep}'

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a formatted snippet illustrating the error context.

        Args:
            context: Error context containing element data.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        if (element := context.get('element')) is None:
            return ''

        snippet = f'{indent}{SNIPPET_ELLIPSIS}'
        snippet += cls._make_yaml(element, indent)
        snippet += linesep

        return snippet

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Recursively sanitize values for safe YAML serialization.

        Args:
            value: Arbitrary value to sanitize.

        Returns:
            A YAML-safe representation of the value.
        """
        if value is None or isinstance(value, SCALARS):
            return value

        if isinstance(value, MAPPINGS):
            return {
                str(key): cls._filter_unsafe(item)
                for key, item in value.items()
            }

        if isinstance(value, SEQUENCES):
            return [
                cls._filter_unsafe(item)
                for item in value
            ]

        if hasattr(value, 'model_dump'):
            return cls._filter_unsafe(value.model_dump(exclude_none=True))

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a sanitized value to a YAML-formatted string."""
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string, dropping blank lines."""
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class BindingWarning(UserWarning):
    """Warning emitted for non-fatal binding issues.

    Used when an entry point can not be installed on the authoring
    surface, but the load continues (non-strict mode).
    """


class TemplateError(Exception, ErrorFormatter):
    """Base exception for all microtemplate errors.

    All custom exceptions raised by the library inherit from this
    class to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional location and element.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)


class CatalogUnavailable(TemplateError):
    """Error raised when the metamodel provider can not enumerate its entries.

    This error is fatal: binding never starts from a partial catalog.
    """

    def __init__(self, message: str, *, provider: object = None) -> None:
        """Initialize a catalog error.

        Args:
            message: Human-readable error description.
            provider: Metamodel provider that failed.
        """
        self.provider = provider

        super().__init__(message)


class BindingCollision(TemplateError):
    """Error describing an entry point that could not be installed.

    Both the bare name and the kind-prefixed name were already taken.
    Reported as a `BindingWarning` unless binding runs in strict mode.
    """

    def __init__(self, name: str, kind: 'EntryKind') -> None:
        """Initialize a collision error.

        Args:
            name: Canonical name of the skipped entry.
            kind: Kind tag of the skipped entry.
        """
        self.name = name
        self.kind = kind

        super().__init__(
            f'Failed to define the {name!r} method ({kind})',
            context=ErrorContext(entry=name, kind=kind),
        )


class InvalidArgumentShape(TemplateError):
    """Error raised when a call mixes positional and named argument forms."""


class TemplateArgumentError(TemplateError):
    """Error raised when an argument set can not be bound to a descriptor.

    Covers surplus positional arguments, undefined argument names,
    values of unaccepted types, and unassigned arguments.
    """


class SequenceAlreadyConsumed(TemplateError):
    """Error raised on any use of a region after it has been run."""


class TemplateBuildError(TemplateError):
    """Error raised when the composition model is used inconsistently.

    This exception indicates structural misuse such as running an open
    region, installing entry points on a frozen surface, or a deferred
    situation producing something other than a constraint.
    """


class UnknownEntryPoint(TemplateBuildError, AttributeError):
    """Error raised when a template calls a name missing from the surface."""


class TemplateSchemaError(TemplateError):
    """Error raised when template data fails model validation."""

    @classmethod
    def from_pydantic_error(cls, error: 'ValidationError', *,
                            data: Any = None,  # noqa: ANN401
                            message: str = 'Validation error') -> 'Self':
        """Create a schema error from a Pydantic validation failure.

        The most specific failing fragment of `data` is attached as the
        snippet element when it can be located.

        Args:
            error: ValidationError raised by Pydantic.
            data: Validated data.
            message: Fallback message.

        Returns:
            TemplateSchemaError representing the validation failure.
        """
        error_context = ErrorContext(error=error, element=data)

        if not data or not isinstance(data, dict):
            return cls(message, context=error_context)

        for item in error.errors(include_url=False, include_input=False):
            if located := cls._locate_pydantic_context(data, item):
                detail, value = located
                return cls(detail, context=ErrorContext({**error_context, 'element': value}))

        return cls(message, context=error_context)

    @classmethod
    def _locate_pydantic_context(cls, value: Any,  # noqa: ANN401
                                 error: 'ErrorDetails') -> tuple[str, Any] | None:
        """Locate the most specific failing element in validated data.

        Args:
            value: Root data structure being validated.
            error: Pydantic error details including location path.

        Returns:
            A tuple of (error message, extracted element) if a relevant
            context can be located, otherwise None.
        """
        container = last_item = value
        last_key: int | str | None = None

        for key in error['loc']:
            if isinstance(last_item, (list, tuple)):
                if isinstance(key, int) and 0 <= key < len(last_item):
                    container = last_item
                    last_item = last_item[key]
                    last_key = key
            elif isinstance(last_item, dict):
                if key in last_item:
                    container = last_item
                    last_item = last_item[key]
                    last_key = key
            else:
                return None

        if last_key is None:
            return None

        message = next((
            line.strip()
            for line in (error.get('msg') or '').splitlines()
            if line.strip()
        ), None)
        if not message:
            return None

        if isinstance(container, (list, tuple)):
            return message, [last_item]

        return message, {last_key: last_item}


def model_error_context(model: 'BaseModel', **context: Any) -> ErrorContext:  # noqa: ANN401
    """Build an error context whose snippet is a dumped model."""
    return ErrorContext(
        element=model.model_dump(exclude_none=True),
        **context,
    )
