"""Tests for error formatting."""

from os import linesep

import pydantic
import pytest

from microtemplate.errors import (
    BindingCollision,
    ErrorContext,
    TemplateBuildError,
    TemplateError,
    TemplateSchemaError,
    UnknownEntryPoint,
    model_error_context,
)
from microtemplate.schema import Label, OperationDescriptor


def test_message_without_context() -> None:
    """Verify that errors without context are plain messages."""
    assert str(TemplateError('Something failed')) == 'Something failed'


def test_message_with_location_and_snippet() -> None:
    """Verify the location line and YAML snippet of formatted errors."""
    error = TemplateError('Something failed', context=ErrorContext(
        template='Overflow',
        entry='add',
        kind='op',
        element={'rd': 1, 'callback': object()},
    ))

    assert str(error).splitlines() == [
        'Something failed',
        '    in template "Overflow", calling op "add"',
        '         ...',
        '        rd: 1',
        '        callback: <runtime object>',
    ]


def test_model_snippet() -> None:
    """Verify that models are dumped into snippets."""
    error = TemplateBuildError('Failed', context=model_error_context(Label(name='loop'), template='Loop'))

    assert f'in template "Loop"{linesep}' in str(error)
    assert 'name: loop' in str(error)


def test_binding_collision_message() -> None:
    """Verify the collision report."""
    error = BindingCollision('add', 'op')

    assert str(error).splitlines() == [
        "Failed to define the 'add' method (op)",
        '    calling op "add"',
    ]


def test_unknown_entry_point_is_attribute_error() -> None:
    """Verify that unknown entry points behave as missing attributes."""
    error = UnknownEntryPoint('missing')

    assert isinstance(error, AttributeError)
    assert isinstance(error, TemplateBuildError)


def test_schema_error_locates_fragment() -> None:
    """Verify that the failing fragment is attached to schema errors."""
    data = {'name': 'ADD', 'args': [{'name': 'rd'}, {'name': 2}]}

    with pytest.raises(pydantic.ValidationError) as validation:
        OperationDescriptor.model_validate(data)

    error = TemplateSchemaError.from_pydantic_error(validation.value, data=data)

    assert error.message == 'Input should be a valid string'
    assert error.context is not None
    assert error.context['element'] == {'name': 2}


def test_schema_error_fallback() -> None:
    """Verify the fallback message when the fragment can not be located."""
    with pytest.raises(pydantic.ValidationError) as validation:
        OperationDescriptor.model_validate({})

    error = TemplateSchemaError.from_pydantic_error(validation.value, data={}, message='Invalid descriptor')

    assert error.message == 'Invalid descriptor'
