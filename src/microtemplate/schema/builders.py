"""Open builders of the template tree.

Builders are the mutable counterparts of nodes. An operation builder
collects the arguments and situation of one operation call until it is
finished, either because its descriptor places it at the root of the
current build call or because it is passed as an argument to another
entry. Scope builders collect the children of an open block, atomic
region or sequence.
"""

from typing import TYPE_CHECKING, Literal

from microtemplate.errors import TemplateBuildError

from .engines import EngineConfiguration
from .nodes import (
    ROOT_CONTEXT,
    AddressingModeInstance,
    AtomicRegion,
    Block,
    OperationInstance,
    Placement,
    Sequence,
)

if TYPE_CHECKING:
    from .arguments import ArgumentSet
    from .descriptors import AddressingModeDescriptor, OperationDescriptor
    from .nodes import Node
    from .situations import SituationConstraint

#: Kind of a scope builder.
type ScopeKind = Literal['block', 'atomic', 'sequence']


class OperationBuilder:
    """Open operation call.

    The builder is returned to template code for operations that are
    not placed at the root, so that it can be nested as an argument of
    another operation. It is finished at most once; later requests
    return the same instance.
    """

    def __init__(self, descriptor: 'OperationDescriptor', arguments: 'ArgumentSet') -> None:
        self.descriptor = descriptor
        self.arguments = arguments

        self.situation: SituationConstraint | None = None
        self.context: str | None = None

        self._instance: OperationInstance | None = None

    def __repr__(self) -> str:
        return f'<OperationBuilder {self.descriptor.name}>'

    @property
    def name(self) -> str:
        """Catalog name of the operation."""
        return self.descriptor.name

    @property
    def placement(self) -> Placement:
        """Placement selected by the descriptor flags."""
        return Placement.of(self.descriptor)

    @property
    def is_built(self) -> bool:
        """Whether the builder has been finished."""
        return self._instance is not None

    def set_context(self, context: str) -> None:
        """Assign the context the operation is built in.

        Raises:
            TemplateBuildError: If a context is already assigned.
        """
        if self.context is not None:
            raise TemplateBuildError(f'Context of {self.name} is already assigned')

        self.context = context

    def set_situation(self, situation: 'SituationConstraint') -> None:
        """Attach a situation constraint.

        Raises:
            TemplateBuildError: If the builder is already finished.
        """
        if self._instance is not None:
            raise TemplateBuildError(f'Operation {self.name} is already built')

        self.situation = situation

    def build(self, context: str | None = None) -> OperationInstance:
        """Finish the builder.

        Args:
            context: Context to assign if none is assigned yet, usually
                the name of the entry the operation is passed to.

        Returns:
            The finished operation instance.

        Raises:
            TemplateArgumentError: If the arguments do not fit the descriptor.
        """
        if self._instance is not None:
            return self._instance

        if context is not None and self.context is None:
            self.context = context

        self._instance = OperationInstance(
            name=self.descriptor.name,
            arguments=self.arguments.bind(self.descriptor),
            situation=self.situation,
            placement=self.placement,
            context=self.context,
        )

        return self._instance


def build_mode(descriptor: 'AddressingModeDescriptor', arguments: 'ArgumentSet') -> AddressingModeInstance:
    """Finish an addressing mode call."""
    return AddressingModeInstance(
        name=descriptor.name,
        arguments=arguments.bind(descriptor),
    )


def finalize(builder: OperationBuilder) -> OperationInstance | None:
    """Close the build call of a root operation.

    Root operations are finished immediately. Root shortcuts are first
    moved into the root context. Plain operations stay open.

    Args:
        builder: Builder of the called operation.

    Returns:
        The finished root operation, or `None` for plain operations.
    """
    placement = builder.placement
    if placement is Placement.PLAIN:
        return None

    if placement is Placement.ROOT_SHORTCUT:
        builder.set_context(ROOT_CONTEXT)

    return builder.build()


class ScopeBuilder:
    """Open block, atomic region or sequence."""

    def __init__(self, kind: ScopeKind = 'block',
                 engines: EngineConfiguration | None = None) -> None:
        self.kind = kind
        self.engines = engines or EngineConfiguration()

        self.children: list[Node] = []
        self.closed = False

    def __repr__(self) -> str:
        state = 'closed' if self.closed else 'open'
        return f'<ScopeBuilder {self.kind} ({state}, {len(self.children)} children)>'

    def add(self, node: 'Node') -> None:
        """Append a finished node.

        Raises:
            TemplateBuildError: If the scope is closed.
        """
        if self.closed:
            raise TemplateBuildError(f'Can not add to a closed {self.kind}')

        self.children.append(node)

    def remove(self, node: 'Node') -> None:
        """Detach a previously added node.

        Raises:
            TemplateBuildError: If the scope is closed or does not own the node.
        """
        if self.closed:
            raise TemplateBuildError(f'Can not detach from a closed {self.kind}')

        for position, child in enumerate(self.children):
            if child is node:
                del self.children[position]
                return

        raise TemplateBuildError(f'Node is not owned by this {self.kind}')

    def build(self) -> Block:
        """Close the scope and return its finished node."""
        self.closed = True

        children = tuple(self.children)
        if self.kind == 'atomic':
            return AtomicRegion(children=children, engines=self.engines)
        if self.kind == 'sequence':
            return Sequence(children=children, engines=self.engines)

        return Block(children=children)
