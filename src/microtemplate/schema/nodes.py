"""Finished nodes of the template tree.

Nodes are immutable: a node is created when the builder or scope that
produced it is finished, and from then on it can only be placed into an
enclosing scope or handed to the engine. The tree is discriminated on
the `kind` field so that a dumped tree validates back into the same
node types.
"""

from enum import StrEnum
from typing import TYPE_CHECKING, Annotated, Literal, Self

from pydantic import Field, model_validator

from microtemplate.models import SchemaModel
from microtemplate.names import Identifier  # noqa: TC001

from .engines import EngineConfiguration
from .situations import SituationConstraint  # noqa: TC001

if TYPE_CHECKING:
    from .descriptors import OperationDescriptor

#: Context name that selects the root shortcut of an operation.
ROOT_CONTEXT = '#root'


class Placement(StrEnum):
    """Where a finished operation goes."""

    #: The operation is a full instruction.
    ROOT = 'root'
    #: The operation is used through its root shortcut.
    ROOT_SHORTCUT = 'root-shortcut'
    #: The operation produces an operand of another operation.
    PLAIN = 'plain'

    @classmethod
    def of(cls, descriptor: 'OperationDescriptor') -> 'Placement':
        """Select the placement of an operation from its descriptor flags."""
        if descriptor.is_root:
            return cls.ROOT

        if descriptor.has_root_shortcut:
            return cls.ROOT_SHORTCUT

        return cls.PLAIN


class RandomValue(SchemaModel):
    """Immediate value chosen by the engine from an inclusive range."""

    kind: Literal['random'] = 'random'

    min: int
    max: int

    @model_validator(mode='after')
    def check_range(self) -> Self:
        """Check that the range is not empty.

        Raises:
            ValueError: If `min` is greater than `max`.
        """
        if self.min > self.max:
            raise ValueError(f'empty range [{self.min}, {self.max}]')

        return self


class AddressingModeInstance(SchemaModel):
    """Addressing mode with all of its arguments bound."""

    kind: Literal['mode'] = 'mode'

    name: Identifier
    arguments: dict[str, 'Argument'] = Field(default_factory=dict)

    @property
    def type_name(self) -> str:
        """Type name matched against argument descriptors."""
        return self.name


class OperationInstance(SchemaModel):
    """Operation with all of its arguments bound."""

    kind: Literal['op'] = 'op'

    name: Identifier
    arguments: dict[str, 'Argument'] = Field(default_factory=dict)

    situation: SituationConstraint | None = None
    placement: Placement = Placement.PLAIN

    context: str | None = Field(
        default=None,
        description='Name of the context the operation was built in (`#root` for shortcuts).',
    )

    @property
    def type_name(self) -> str:
        """Type name matched against argument descriptors."""
        return self.name

    @property
    def is_root(self) -> bool:
        """Whether the operation completed a build call."""
        return self.placement is not Placement.PLAIN

    @property
    def references(self) -> tuple[str, ...]:
        """Label names referenced by string arguments, including nested ones."""
        names: list[str] = []
        for value in self.arguments.values():
            if isinstance(value, str):
                names.append(value)
            elif isinstance(value, OperationInstance):
                names.extend(value.references)

        return tuple(names)


class Label(SchemaModel):
    """Symbolic jump target; resolved by the engine."""

    kind: Literal['label'] = 'label'

    name: str


class Block(SchemaModel):
    """Ordered group of nodes."""

    kind: Literal['block'] = 'block'

    children: tuple['Node', ...] = ()

    @property
    def operations(self) -> tuple[OperationInstance, ...]:
        """Direct operation children in call order."""
        return tuple(
            child
            for child in self.children
            if isinstance(child, OperationInstance)
        )

    @property
    def labels(self) -> tuple[str, ...]:
        """Names of direct label children."""
        return tuple(
            child.name
            for child in self.children
            if isinstance(child, Label)
        )


class AtomicRegion(Block):
    """Block generated as a single unit by the configured engine."""

    kind: Literal['atomic'] = 'atomic'  # type: ignore[assignment]

    engines: EngineConfiguration = Field(default_factory=EngineConfiguration)


class Sequence(Block):
    """Block whose test cases combine several engines."""

    kind: Literal['sequence'] = 'sequence'  # type: ignore[assignment]

    engines: EngineConfiguration = Field(default_factory=EngineConfiguration)


#: Value bound to an argument of an operation or addressing mode.
Argument = int | str | RandomValue | AddressingModeInstance | OperationInstance

#: Any element of the template tree.
Node = Annotated[
    AddressingModeInstance | OperationInstance | Label | Block | AtomicRegion | Sequence,
    Field(discriminator='kind'),
]

#: Regions that can be handed to the engine.
type Region = AtomicRegion | Sequence

for _model in (AddressingModeInstance, OperationInstance, Block, AtomicRegion, Sequence):
    _model.model_rebuild()
