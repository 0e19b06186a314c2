"""Metamodel providers and catalog loading.

A metamodel provider reports the addressing modes and operations of the
modelled processor. The loader queries it once and turns every reported
entry into an immutable descriptor. Loading is all-or-nothing: a
provider that can not enumerate or describe its entries makes the whole
catalog unavailable.

Providers may also be discovered via the `microtemplate_models` entry
point group, which lets processor models ship as separate packages.
"""

from collections.abc import Iterable, Mapping
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import ValidationError
from yaml import safe_load

from microtemplate.errors import CatalogUnavailable
from microtemplate.schema import AddressingModeDescriptor, Catalog, OperationDescriptor

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint
    from io import TextIOBase

#: Entry point group of installable metamodel providers.
PROVIDERS_GROUP = 'microtemplate_models'


class MetamodelProvider(Protocol):
    """Read-only source of catalog entries.

    Providers bridged from the modelling toolchain may expose the same
    queries as `getAddressingModes()` and `getOperations()` instead.
    """

    def get_addressing_modes(self) -> Iterable[Any]:
        """Return addressing mode entries in catalog order."""
        ...  # pragma: no cover

    def get_operations(self) -> Iterable[Any]:
        """Return operation entries in catalog order."""
        ...  # pragma: no cover


class StaticMetamodel:
    """Provider serving entries from memory."""

    def __init__(self, modes: Iterable[Any] = (), operations: Iterable[Any] = ()) -> None:
        self.modes = tuple(modes)
        self.operations = tuple(operations)

    def get_addressing_modes(self) -> Iterable[Any]:
        return self.modes

    def get_operations(self) -> Iterable[Any]:
        return self.operations


class YamlMetamodel:
    """Provider reading entries from a YAML catalog document.

    The document is a mapping with optional `modes` and `operations`
    lists; every item is a mapping accepted by the matching descriptor.
    A `Path` is read from disk, a string is parsed as YAML text, and a
    text stream is read as it is. The source is parsed on first use.
    """

    def __init__(self, source: 'Path | TextIOBase | str') -> None:
        self.source = source

    @cached_property
    def document(self) -> dict[str, Any]:
        """Parsed catalog document.

        Raises:
            ValueError: If the document is not a mapping.
        """
        if isinstance(self.source, Path):
            content = safe_load(self.source.read_text(encoding='utf-8'))
        else:
            content = safe_load(self.source)

        if content is None:
            return {}

        if not isinstance(content, dict):
            raise ValueError('Catalog document must be a mapping')

        return content

    def get_addressing_modes(self) -> Iterable[Any]:
        return self.document.get('modes') or ()

    def get_operations(self) -> Iterable[Any]:
        return self.document.get('operations') or ()


#: Query methods of a provider, snake case first.
MODES_QUERIES = ('get_addressing_modes', 'getAddressingModes')
OPERATIONS_QUERIES = ('get_operations', 'getOperations')


def is_provider(value: object) -> bool:
    """Check whether an object answers both catalog queries."""
    return all(
        any(callable(getattr(value, name, None)) for name in queries)
        for queries in (MODES_QUERIES, OPERATIONS_QUERIES)
    )


def _query(provider: object, queries: tuple[str, ...]) -> Iterable[Any]:
    """Call the first query method the provider defines.

    Raises:
        AttributeError: If the provider defines none of the methods.
    """
    for name in queries:
        if callable(method := getattr(provider, name, None)):
            return method()

    raise AttributeError(f'Provider {provider!r} has no {queries[0]}() method')


def _to_descriptor[T: (AddressingModeDescriptor, OperationDescriptor)](model: type[T], item: Any) -> T:  # noqa: ANN401
    """Validate a reported entry into a descriptor.

    Mappings are validated by key; any other object is read by attribute.
    """
    if isinstance(item, Mapping):
        return model.model_validate(dict(item))

    return model.model_validate(item, from_attributes=True)


def load_catalog(provider: MetamodelProvider) -> Catalog:
    """Query a metamodel provider and build an immutable catalog.

    Each provider method is called exactly once. Loading the same
    unchanged provider again yields an equal catalog.

    Args:
        provider: Metamodel provider to query.

    Returns:
        Catalog with modes and operations in provider order.

    Raises:
        CatalogUnavailable: If the provider fails to enumerate its entries
            or reports an entry that is not a valid descriptor.
    """
    try:
        modes = tuple(
            _to_descriptor(AddressingModeDescriptor, item)
            for item in _query(provider, MODES_QUERIES)
        )
        operations = tuple(
            _to_descriptor(OperationDescriptor, item)
            for item in _query(provider, OPERATIONS_QUERIES)
        )

    except ValidationError as base:
        raise CatalogUnavailable(
            f'Provider {provider!r} reported an invalid entry',
            provider=provider,
        ) from base

    except Exception as base:
        raise CatalogUnavailable(
            f'Failed to enumerate entries of {provider!r}',
            provider=provider,
        ) from base

    return Catalog(modes=modes, operations=operations)


def _load_entrypoint(entrypoint: 'EntryPoint') -> MetamodelProvider:
    """Load a provider object or call a provider factory."""
    try:
        target = entrypoint.load()
        provider = target
        if isinstance(target, type) or not is_provider(target):
            provider = target()

    except Exception as base:
        raise CatalogUnavailable(f'Failed to load entrypoint {entrypoint.name!r}') from base

    if not is_provider(provider):
        raise CatalogUnavailable(
            f'Loaded from entrypoint {entrypoint.name!r} object is not a metamodel provider',
            provider=provider,
        )

    return provider


def load_provider(name: str) -> MetamodelProvider:
    """Discover a metamodel provider by entry point name.

    Args:
        name: Entry point name within the `microtemplate_models` group.

    Returns:
        The provider exposed (or produced) by the entry point.

    Raises:
        CatalogUnavailable: If no such entry point exists or it does not
            yield a provider.
    """
    from importlib.metadata import entry_points  # noqa: PLC0415

    for entrypoint in entry_points().select(group=PROVIDERS_GROUP):
        if entrypoint.name == name:
            return _load_entrypoint(entrypoint)

    raise CatalogUnavailable(f'No metamodel provider named {name!r}')
