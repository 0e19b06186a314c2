"""Tests configurations and fixtures."""

from importlib.metadata import EntryPoint, EntryPoints
from typing import TYPE_CHECKING

import pytest

from microtemplate.core import (
    AuthoringSurface,
    BindingGenerator,
    StaticMetamodel,
    Template,
    load_catalog,
    uninstall,
)
from microtemplate.engine import CollectingEngine
from tests.examples.catalogs import MODES, OPERATIONS

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

if TYPE_CHECKING:
    from pytest_mock import MockerFixture, MockType

if TYPE_CHECKING:
    from microtemplate.core import MetamodelProvider


@pytest.fixture(autouse=True)
def isolated_surface() -> 'Iterator[None]':
    """Forget the process-wide surface installed by a test."""
    yield
    uninstall()


@pytest.fixture
def provider() -> StaticMetamodel:
    """Provide an in-memory provider of the example catalog."""
    return StaticMetamodel(MODES, OPERATIONS)


@pytest.fixture
def surface(provider: StaticMetamodel) -> AuthoringSurface:
    """Provide a frozen surface bound from the example catalog."""
    surface = BindingGenerator(AuthoringSurface(Template.reserved_names())).bind(load_catalog(provider))
    surface.freeze()

    return surface


@pytest.fixture
def engine() -> CollectingEngine:
    """Provide an engine keeping runs in memory."""
    return CollectingEngine()


@pytest.fixture
def template(surface: AuthoringSurface, engine: CollectingEngine) -> Template:
    """Provide a template bound to the example surface."""
    return Template(surface=surface, engine=engine)


@pytest.fixture
def patch_entrypoints(mocker: 'MockerFixture') -> 'Callable[..., MockType]':
    """Provide a factory for mocking `importlib.metadata.entry_points`.

    Returns a callable that patches `entry_points()` to simulate
    discovery of providers in the `microtemplate_models` entry point
    group.

    This fixture is intended for testing provider discovery and error
    handling logic without relying on real installed entry points.
    """
    def patch(*providers: 'MetamodelProvider | object', name: str = 'tests',
              raises: Exception | None = None) -> 'MockType':
        """Patch `entry_points` with a controlled provider configuration.

        Args:
            providers: Objects to be returned by `EntryPoint.load()`.
                If empty, no entry points are registered.
            name: Name of every registered entry point.
            raises: Exception to raise when `EntryPoint.load()` is called.

        Returns:
            A mock patch object produced by `mocker.patch` that replaces
            `importlib.metadata.entry_points` for the duration of the test.
        """
        entrypoints = []
        for provider in providers:
            ep = mocker.Mock(spec=EntryPoint)
            ep.group = 'microtemplate_models'
            ep.name = name
            ep.value = 'tests.models:provider'
            ep.load.return_value = provider
            if raises is not None:
                ep.load.side_effect = raises
            entrypoints.append(ep)

        return mocker.patch(
            'importlib.metadata.entry_points',
            return_value=EntryPoints(entrypoints),
        )

    return patch
