"""Tests for entry point binding and collision handling."""

import warnings

import pytest

from microtemplate.core import (
    AuthoringSurface,
    BindingGenerator,
    BoundEntryPoint,
    ModeEntryPoint,
    OperationEntryPoint,
    StaticMetamodel,
    Template,
    default_surface,
    install,
    load_catalog,
)
from microtemplate.errors import BindingCollision, BindingWarning, TemplateBuildError
from microtemplate.schema import Catalog


def bind(modes: tuple = (), operations: tuple = (), *, strict: bool = False,
         reserved: tuple[str, ...] = ()) -> AuthoringSurface:
    """Bind an in-memory catalog onto a fresh surface."""
    catalog = load_catalog(StaticMetamodel(modes, operations))
    return BindingGenerator(AuthoringSurface(reserved), strict=strict).bind(catalog)


def test_every_entry_bound_under_bare_name(surface: AuthoringSurface) -> None:
    """Verify that distinct names are all reachable under their bare names."""
    assert [entry.name for entry in surface] == ['reg', 'mem', 'add', 'lw', 'offset', 'nop', 'b']
    assert not surface.collisions

    reg = surface.lookup('reg')
    assert isinstance(reg, ModeEntryPoint)
    assert reg.descriptor.name == 'REG'

    add = surface.lookup('add')
    assert isinstance(add, OperationEntryPoint)
    assert add.descriptor.name == 'ADD'


def test_first_loaded_keeps_bare_name() -> None:
    """Verify that the second of two same-named entries gets the prefixed name."""
    surface = bind(modes=({'name': 'ADDR'},), operations=({'name': 'ADDR'},))

    assert surface.lookup('addr').kind == 'mode'  # type: ignore[union-attr]
    assert surface.lookup('op_addr').kind == 'op'  # type: ignore[union-attr]
    assert 'mode_addr' not in surface
    assert len(surface) == 2


def test_modes_are_bound_before_operations() -> None:
    """Verify catalog order: modes first, then operations."""
    catalog = Catalog.model_validate({
        'operations': [{'name': 'X'}],
        'modes': [{'name': 'X'}],
    })
    surface = BindingGenerator(AuthoringSurface()).bind(catalog)

    assert isinstance(surface.lookup('x'), ModeEntryPoint)
    assert isinstance(surface.lookup('op_x'), OperationEntryPoint)


def test_third_same_named_entry_is_skipped() -> None:
    """Verify that an entry colliding on both names is reported and unreachable."""
    with pytest.warns(BindingWarning, match=r"^Failed to define the 'add' method \(op\)"):
        surface = bind(
            modes=({'name': 'ADD'},),
            operations=({'name': 'ADD', 'isRoot': True}, {'name': 'add'}, {'name': 'SUB'}),
        )

    assert [entry.name for entry in surface] == ['add', 'op_add', 'sub']
    assert surface.lookup('op_add').descriptor.name == 'ADD'  # type: ignore[union-attr]

    assert len(surface.collisions) == 1
    assert surface.collisions[0].name == 'add'
    assert surface.collisions[0].kind == 'op'


def test_skipped_name_stays_taken() -> None:
    """Verify that later entries keep colliding with names already installed."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter('always', BindingWarning)
        surface = bind(modes=({'name': 'R'}, {'name': 'R'}, {'name': 'R'}, {'name': 'R'}))

    assert [entry.name for entry in surface] == ['r', 'mode_r']
    assert len(caught) == 2
    assert len(surface.collisions) == 2


def test_strict_binding_fails_on_collision() -> None:
    """Verify that strict mode raises on the first collision."""
    with pytest.raises(BindingCollision, match=r"^Failed to define the 'r' method \(mode\)"):
        bind(modes=({'name': 'R'}, {'name': 'R'}, {'name': 'R'}), strict=True)


def test_reserved_names_fall_back_to_prefix() -> None:
    """Verify that template helpers are never shadowed by catalog entries."""
    surface = bind(
        operations=({'name': 'LABEL'}, {'name': 'sequence'}, {'name': 'ADD'}),
        reserved=tuple(Template.reserved_names()),
    )

    assert 'label' not in surface
    assert 'op_label' in surface
    assert 'op_sequence' in surface
    assert 'add' in surface


def test_template_reserved_names() -> None:
    """Verify the public helpers reserved by the template."""
    reserved = Template.reserved_names()

    assert {'block', 'atomic', 'sequence', 'label', 'situation', 'rand'} <= reserved
    assert {'pre', 'run', 'post', 'generate'} <= reserved
    assert not any(name.startswith('_') for name in reserved)


def test_frozen_surface_rejects_install(surface: AuthoringSurface) -> None:
    """Verify that a frozen surface is read-only."""
    entry = surface.lookup('add')
    assert entry is not None

    with pytest.raises(TemplateBuildError, match=r'surface is frozen'):
        surface.install(entry.model_copy(update={'name': 'another'}))


def test_install_default_surface(provider: StaticMetamodel) -> None:
    """Verify that `install` binds, freezes and publishes the surface."""
    with pytest.raises(TemplateBuildError, match=r'^No authoring surface installed'):
        default_surface()

    surface = install(provider)

    assert surface.frozen
    assert default_surface() is surface
    assert Template().surface is surface
    assert 'run' in surface.reserved


def test_surface_holds_concrete_entry_points(surface: AuthoringSurface) -> None:
    """Verify that every installed entry point is a callable mode or operation."""
    assert surface
    for entry in surface:
        assert isinstance(entry, (ModeEntryPoint, OperationEntryPoint))
        assert callable(entry)

    assert not callable(BoundEntryPoint(name='base'))
