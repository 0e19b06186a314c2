"""Tests for argument normalization and binding."""

from enum import Enum

import pytest

from microtemplate.errors import InvalidArgumentShape, TemplateArgumentError
from microtemplate.names import Symbol
from microtemplate.schema import (
    AddressingModeDescriptor,
    AddressingModeInstance,
    ArgumentSet,
    OperationBuilder,
    OperationDescriptor,
    OperationInstance,
    Placement,
    RandomValue,
    normalize_arguments,
)

PAIR = OperationDescriptor(name='PAIR', arguments=('a', 'b'))

REG = AddressingModeDescriptor.model_validate({'name': 'REG', 'args': [{'name': 'i', 'types': ['#IMM']}]})

MOVE = OperationDescriptor.model_validate({
    'name': 'MOVE',
    'isRoot': True,
    'args': [
        {'name': 'dst', 'types': ['REG']},
        {'name': 'src', 'types': ['REG', '#IMM']},
    ],
})


class Condition(Enum):
    EQ = 'eq'


def test_named_and_positional_forms_bind_equally() -> None:
    """Verify that named and positional calls resolve to the same bindings."""
    named = normalize_arguments((), {'a': 1, 'b': 2})
    mapping = normalize_arguments(({'a': 1, 'b': 2},))
    positional = normalize_arguments((1, 2))

    assert named.is_named
    assert mapping == named
    assert not positional.is_named

    assert named.bind(PAIR) == positional.bind(PAIR) == {'a': 1, 'b': 2}


def test_named_bindings_follow_descriptor_order() -> None:
    """Verify that bindings are ordered by the descriptor, not the call."""
    bindings = normalize_arguments((), {'b': 2, 'a': 1}).bind(PAIR)

    assert list(bindings) == ['a', 'b']


def test_empty_call() -> None:
    """Verify that a call without arguments is an empty positional set."""
    arguments = normalize_arguments(())

    assert arguments == ArgumentSet()
    assert not arguments.is_named


@pytest.mark.parametrize('args, named', (
    pytest.param((1,), {'b': 2}, id='positional and keywords'),
    pytest.param(({'a': 1}, 2), None, id='mapping and positional'),
    pytest.param(({'a': 1},), {'b': 2}, id='mapping and keywords'),
))
def test_fail_on_mixed_forms(args: tuple, named: dict | None) -> None:
    """Verify that mixing argument forms is rejected at the call site."""
    with pytest.raises(InvalidArgumentShape, match=r'^Illegal use'):
        normalize_arguments(args, named)


def test_fail_on_non_name_key() -> None:
    """Verify that mapping keys must be names."""
    with pytest.raises(InvalidArgumentShape, match=r'as argument name'):
        normalize_arguments(({1: 'a'},))


def test_argument_set_rejects_both_forms() -> None:
    """Verify the single-form invariant of the model itself."""
    with pytest.raises(ValueError, match=r'Illegal use'):
        ArgumentSet(positional=(1,), named={'a': 1})


def test_symbolic_values_become_strings() -> None:
    """Verify conversion of symbols and enum members."""
    arguments = normalize_arguments((Symbol('loop'), Condition.EQ))
    assert arguments.positional == ('loop', 'eq')

    arguments = normalize_arguments(({Symbol('a'): Symbol('loop'), 'b': 2},))
    assert arguments.named == {'a': 'loop', 'b': 2}


@pytest.mark.parametrize('args, named, message', (
    pytest.param((1, 2, 3), None, r'^Too many arguments: the PAIR operation has only 2 arguments', id='too many'),
    pytest.param((), {'c': 1}, r'^The c argument is not defined for the PAIR operation', id='undefined'),
    pytest.param((1,), None, r'^The b argument of the PAIR operation is not assigned', id='unassigned'),
    pytest.param((1, True), None, r'^The b argument of the PAIR operation can not be True', id='boolean'),
    pytest.param((1, 2.5), None, r'can not be 2.5', id='float'),
))
def test_fail_on_binding(args: tuple, named: dict | None, message: str) -> None:
    """Verify binding validation messages."""
    with pytest.raises(TemplateArgumentError, match=message):
        normalize_arguments(args, named).bind(PAIR)


def test_type_checked_binding() -> None:
    """Verify that values must match the accepted argument types."""
    reg = AddressingModeInstance(name='REG', arguments={'i': 1})

    assert normalize_arguments((reg, 5)).bind(MOVE) == {'dst': reg, 'src': 5}
    assert normalize_arguments((reg, reg)).bind(MOVE) == {'dst': reg, 'src': reg}

    with pytest.raises(TemplateArgumentError, match=r'^The #IMM type is not accepted for the dst argument'):
        normalize_arguments((5, reg)).bind(MOVE)

    with pytest.raises(TemplateArgumentError, match=r'^The REG type is not accepted for the i argument of the REG addressing mode'):  # noqa: E501
        normalize_arguments((reg,)).bind(REG)


def test_random_values_are_immediates() -> None:
    """Verify that random values are accepted where immediates are."""
    value = RandomValue(min=0, max=31)

    assert normalize_arguments((value,)).bind(REG) == {'i': value}


def test_nested_builder_is_finished_in_callee_context() -> None:
    """Verify that an open builder passed as an argument is built in the callee context."""
    inner = OperationBuilder(PAIR, normalize_arguments((1, 2)))

    bindings = normalize_arguments(('x', inner)).bind(PAIR)

    assert inner.is_built
    assert bindings['b'].context == 'PAIR'  # type: ignore[union-attr]
    assert bindings['b'].arguments == {'a': 1, 'b': 2}  # type: ignore[union-attr]
    assert inner.build() is bindings['b']


@pytest.mark.parametrize('placement', (Placement.ROOT, Placement.ROOT_SHORTCUT))
def test_fail_on_placed_root_operation(placement: Placement) -> None:
    """Verify that root operations are not accepted as argument values."""
    instance = OperationInstance(name='ADD', placement=placement)

    with pytest.raises(TemplateArgumentError, match=r'^The b argument of the PAIR operation can not take the ADD root operation'):  # noqa: E501
        normalize_arguments((1, instance)).bind(PAIR)
