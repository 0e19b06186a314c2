"""Entry point binding onto the authoring surface.

This module turns catalog descriptors into callable entry points and
installs them into the shared authoring namespace. Entries are installed
in catalog order, modes first; a name that is already taken falls back
to the kind-prefixed name, and an entry for which both names are taken
is reported and skipped without interrupting the load, unless strict
mode is enabled.
"""

from typing import TYPE_CHECKING, Any, ClassVar
from warnings import warn

from pydantic import Field

from microtemplate.errors import (
    BindingCollision,
    BindingWarning,
    InvalidArgumentShape,
    TemplateBuildError,
)
from microtemplate.models import SchemaModel
from microtemplate.names import EntryKind, canonical_name, resolve_name
from microtemplate.schema import (
    AddressingModeDescriptor,
    OperationDescriptor,
    OperationBuilder,
    build_mode,
    capture,
    finalize,
    normalize_arguments,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator

if TYPE_CHECKING:
    from microtemplate.core.template import Template
    from microtemplate.schema import AddressingModeInstance, Catalog, DeferredSituation, OperationInstance

    from .catalog import MetamodelProvider


class BoundEntryPoint(SchemaModel):
    """Descriptor bound under a resolved name.

    Concrete entry points are callable with the template that makes the
    call as their first argument, followed by the call-site arguments.
    """

    kind: ClassVar[EntryKind]

    name: str = Field(
        title='Installed name',
        description='Name the entry point is reachable under on the authoring surface.',
    )


class ModeEntryPoint(BoundEntryPoint):
    """Entry point producing finished addressing mode instances."""

    kind: ClassVar[EntryKind] = 'mode'

    descriptor: AddressingModeDescriptor

    def __call__(self, template: 'Template', *args: Any,  # noqa: ARG002
                 situation: 'DeferredSituation | None' = None,
                 **named: Any) -> 'AddressingModeInstance':  # noqa: ANN401
        """Build an addressing mode instance.

        An argument named `situation` is passed with the positional or the
        mapping form; the keyword is reserved for deferred situations.

        Raises:
            InvalidArgumentShape: If the arguments mix forms or a situation is given.
            TemplateArgumentError: If the arguments do not fit the descriptor.
        """
        if situation is not None:
            raise InvalidArgumentShape(f'Addressing mode {self.descriptor.name} takes no situation')

        return build_mode(self.descriptor, normalize_arguments(args, named))


class OperationEntryPoint(BoundEntryPoint):
    """Entry point producing operation builders or finished root operations."""

    kind: ClassVar[EntryKind] = 'op'

    descriptor: OperationDescriptor

    def __call__(self, template: 'Template', *args: Any,
                 situation: 'DeferredSituation | None' = None,
                 **named: Any) -> 'OperationBuilder | OperationInstance':  # noqa: ANN401
        """Call the operation.

        The situation, when given, is captured with the template as its
        authoring context. Root and root-shortcut operations are finished
        and placed into the current scope, closing the build call; other
        operations are returned open for nesting.

        The `situation` keyword always names the deferred situation. A
        catalog argument that is itself named `situation` is passed with
        the positional or the mapping form, for example
        `template.cmp({'situation': 1})`.

        Raises:
            InvalidArgumentShape: If the arguments mix forms.
            TemplateArgumentError: If a finished operation does not fit the descriptor.
        """
        builder = OperationBuilder(self.descriptor, normalize_arguments(args, named))

        if situation is not None:
            builder.set_situation(capture(template, situation))

        if (instance := finalize(builder)) is None:
            return builder

        template.place(instance)

        return instance


#: Entry point installed on the authoring surface.
type AnyEntryPoint = ModeEntryPoint | OperationEntryPoint


class AuthoringSurface:
    """Namespace of bound entry points.

    The surface is populated once and then frozen; templates only read
    from it. Reserved names belong to the template helpers and are never
    available to catalog entries.
    """

    def __init__(self, reserved: 'Collection[str]' = ()) -> None:
        self.reserved = frozenset(reserved)

        self.entries: dict[str, AnyEntryPoint] = {}
        self.collisions: list[BindingCollision] = []
        self.frozen = False

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __iter__(self) -> 'Iterator[AnyEntryPoint]':
        return iter(self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def taken(self) -> frozenset[str]:
        """Names unavailable for new entries."""
        return self.reserved | self.entries.keys()

    def lookup(self, name: str) -> 'AnyEntryPoint | None':
        """Find an entry point by installed name."""
        return self.entries.get(name)

    def install(self, entry: AnyEntryPoint) -> None:
        """Install an entry point under its resolved name.

        Raises:
            TemplateBuildError: If the surface is frozen or the name is taken.
        """
        if self.frozen:
            raise TemplateBuildError(f'Can not install {entry.name!r}: surface is frozen')

        if entry.name in self.taken:
            raise TemplateBuildError(f'Name {entry.name!r} is already taken')

        self.entries[entry.name] = entry

    def freeze(self) -> None:
        """Make the surface read-only."""
        self.frozen = True


class BindingGenerator:
    """Installs one entry point per catalog descriptor.

    Attributes:
        strict_mode: If True, a collision raises `BindingCollision`.
            If False, it is emitted as a `BindingWarning` and the entry
            is skipped.
    """

    strict_mode: bool = False

    def __init__(self, surface: AuthoringSurface, *, strict: bool = False) -> None:
        self.surface = surface
        self.strict_mode = strict

    def emit_binding_issue(self, error: BindingCollision) -> BindingCollision | None:
        """Record a collision and emit a warning or return the exception.

        Args:
            error: Collision to report.

        Returns:
            The collision on strict mode, otherwise `None` with
                producing a BindingWarning.
        """
        self.surface.collisions.append(error)

        if self.strict_mode:
            return error

        warn(str(error), category=BindingWarning, stacklevel=3)

        return None

    def define(self, entry_type: type[ModeEntryPoint | OperationEntryPoint],
               descriptor: AddressingModeDescriptor | OperationDescriptor) -> 'AnyEntryPoint | None':
        """Resolve a name for a descriptor and install its entry point.

        Args:
            entry_type: Entry point class matching the descriptor kind.
            descriptor: Catalog descriptor.

        Returns:
            The installed entry point, or `None` if it was skipped.

        Raises:
            BindingCollision: If no name is available on strict mode.
        """
        name = resolve_name(self.surface.taken, descriptor.name, entry_type.kind)
        if name is None:
            if error := self.emit_binding_issue(BindingCollision(canonical_name(descriptor.name), entry_type.kind)):
                raise error
            return None

        entry = entry_type(name=name, descriptor=descriptor)
        self.surface.install(entry)

        return entry

    def add_mode(self, descriptor: AddressingModeDescriptor) -> 'AnyEntryPoint | None':
        """Install an addressing mode entry point."""
        return self.define(ModeEntryPoint, descriptor)

    def add_operation(self, descriptor: OperationDescriptor) -> 'AnyEntryPoint | None':
        """Install an operation entry point."""
        return self.define(OperationEntryPoint, descriptor)

    def bind(self, catalog: 'Catalog') -> AuthoringSurface:
        """Install entry points for every catalog entry in catalog order.

        Args:
            catalog: Loaded catalog.

        Returns:
            The populated surface.

        Raises:
            BindingCollision: On the first collision in strict mode.
        """
        for descriptor in catalog.entries():
            if isinstance(descriptor, AddressingModeDescriptor):
                self.add_mode(descriptor)
            else:
                self.add_operation(descriptor)

        return self.surface


_default_surface: AuthoringSurface | None = None


def install(provider: 'MetamodelProvider', *, strict: bool = False,
            reserved: 'Collection[str] | None' = None) -> AuthoringSurface:
    """Load a catalog, bind it, and make it the process-wide surface.

    Args:
        provider: Metamodel provider to load the catalog from.
        strict: Raise on binding collisions instead of warning.
        reserved: Names unavailable to entries; defaults to the public
            attributes of `Template`.

    Returns:
        The frozen surface.

    Raises:
        CatalogUnavailable: If the catalog can not be loaded.
        BindingCollision: On collisions in strict mode.
    """
    global _default_surface  # noqa: PLW0603

    from .catalog import load_catalog  # noqa: PLC0415
    from .template import Template  # noqa: PLC0415

    if reserved is None:
        reserved = Template.reserved_names()

    surface = BindingGenerator(AuthoringSurface(reserved), strict=strict).bind(load_catalog(provider))
    surface.freeze()

    _default_surface = surface

    return surface


def default_surface() -> AuthoringSurface:
    """Return the process-wide surface.

    Raises:
        TemplateBuildError: If no surface has been installed.
    """
    if _default_surface is None:
        raise TemplateBuildError('No authoring surface installed')

    return _default_surface


def uninstall() -> None:
    """Forget the process-wide surface."""
    global _default_surface  # noqa: PLW0603

    _default_surface = None


__all__ = (
    'AnyEntryPoint',
    'AuthoringSurface',
    'BindingGenerator',
    'BoundEntryPoint',
    'ModeEntryPoint',
    'OperationEntryPoint',
    'default_surface',
    'install',
    'uninstall',
)
