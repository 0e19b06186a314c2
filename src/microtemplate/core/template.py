"""Template authoring context.

A template is evaluated by calling entry points of the authoring surface
as if they were its own methods. Every call is dispatched by name through
the surface lookup table; finished nodes are appended to the innermost
open scope. Blocks, atomic regions and sequences are opened as context
managers and placed into their enclosing scope when they are closed.

Example:
    ```python
    class Overflow(Template):

        def run(self):
            with self.sequence(combinator='product') as seq:
                self.add(
                    self.reg(1), self.reg(2), self.reg(3),
                    situation=lambda t: t.situation('IntegerOverflow'),
                )
            seq.run()
    ```
"""

from typing import TYPE_CHECKING, Any, Literal

from pydantic import ValidationError

from microtemplate.engine import CollectingEngine
from microtemplate.errors import (
    ErrorContext,
    SequenceAlreadyConsumed,
    TemplateBuildError,
    TemplateError,
    TemplateSchemaError,
    UnknownEntryPoint,
    model_error_context,
)
from microtemplate.names import is_symbolic, symbol_string
from microtemplate.schema import (
    Block,
    EngineConfiguration,
    Label,
    RandomValue,
    ScopeBuilder,
    SituationConstraint,
)

from .binder import default_surface

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType
    from typing import Self

if TYPE_CHECKING:
    from microtemplate.engine import ExecutionEngine
    from microtemplate.names import Symbol
    from microtemplate.schema import Node

    from .binder import AnyEntryPoint, AuthoringSurface


class BlockHandle:
    """Context manager of an open scope.

    Nodes built while the handle is entered go to its scope in call
    order. On a clean exit the scope is finished and its node is placed
    into the enclosing scope.
    """

    def __init__(self, template: 'Template', scope: ScopeBuilder) -> None:
        self.template = template
        self.scope = scope

        self.parent: ScopeBuilder | None = None
        self._node: Block | None = None

    def __repr__(self) -> str:
        return f'<{type(self).__name__} {self.scope.kind}>'

    def __enter__(self) -> 'Self':
        if self.parent is not None:
            raise TemplateBuildError(f'The {self.scope.kind} is already entered')

        self.parent = self.template.push_scope(self.scope)

        return self

    def __exit__(self, exc_type: type[BaseException] | None,
                 exc_value: BaseException | None,
                 traceback: 'TracebackType | None') -> Literal[False]:
        self.template.pop_scope(self.scope)

        if exc_type is None and self.parent is not None:
            self._node = self.scope.build()
            self.parent.add(self._node)

        return False

    @property
    def node(self) -> Block:
        """Finished node of the scope.

        Raises:
            TemplateBuildError: If the scope is still open.
        """
        if self._node is None:
            raise TemplateBuildError(f'The {self.scope.kind} is not closed')

        return self._node


class RegionHandle(BlockHandle):
    """Context manager of an atomic region or a sequence.

    After the region is closed it can be handed to the engine exactly
    once; the handle is consumed by the run.
    """

    def __init__(self, template: 'Template', scope: ScopeBuilder) -> None:
        super().__init__(template, scope)

        self.consumed = False

    def _check_consumed(self) -> None:
        if self.consumed:
            raise SequenceAlreadyConsumed(f'The {self.scope.kind} has already been run')

    def __enter__(self) -> 'Self':
        self._check_consumed()
        return super().__enter__()

    @property
    def node(self) -> Block:
        """Finished node of the region.

        Raises:
            SequenceAlreadyConsumed: If the region has been run.
            TemplateBuildError: If the region is still open.
        """
        self._check_consumed()
        return super().node

    @property
    def engines(self) -> EngineConfiguration:
        """Engine configuration of the region."""
        self._check_consumed()
        return self.scope.engines

    def run(self) -> None:
        """Hand the region to the engine.

        The node is detached from its enclosing scope, so the engine
        becomes its only owner.

        Raises:
            SequenceAlreadyConsumed: If the region has already been run.
            TemplateBuildError: If the region or its enclosing scope is not
                in a state that allows the handover.
        """
        node = self.node

        if self.parent is None or self.parent.closed:
            raise TemplateBuildError(
                f'Can not run the {self.scope.kind}: enclosing scope is closed',
                context=model_error_context(node, template=type(self.template).__name__),
            )

        self.template.engine.run(node, self.scope.engines)
        self.parent.remove(node)

        self.consumed = True


class Template:
    """Authoring context of a test template.

    Subclasses describe test programs in `pre`, `run` and `post`. Any
    attribute that is not defined on the template is looked up on the
    authoring surface and dispatched to the bound entry point.

    Attributes:
        surface: Authoring surface used for dispatch; the process-wide
            surface if not given.
        engine: Consumer of regions that are run.
    """

    def __init__(self, surface: 'AuthoringSurface | None' = None,
                 engine: 'ExecutionEngine | None' = None) -> None:
        self._surface = surface
        self._engine = engine if engine is not None else CollectingEngine()

        self._scopes: list[ScopeBuilder] = [ScopeBuilder()]

    def __getattr__(self, name: str) -> 'Callable[..., Any]':
        if name.startswith('_'):
            raise AttributeError(name)

        entry = self.surface.lookup(name)
        if entry is None:
            raise UnknownEntryPoint(
                f'Entry point {name!r} is not defined',
                context=ErrorContext(template=type(self).__name__, entry=name),
            )

        def call(*args: Any, **named: Any) -> Any:  # noqa: ANN401
            return self.call_entry(entry, *args, **named)

        call.__name__ = name

        return call

    @classmethod
    def reserved_names(cls) -> frozenset[str]:
        """Names owned by the template and unavailable to entry points."""
        return frozenset(
            name
            for name in dir(cls)
            if not name.startswith('_')
        )

    @property
    def surface(self) -> 'AuthoringSurface':
        """Authoring surface the template dispatches to."""
        if self._surface is None:
            self._surface = default_surface()

        return self._surface

    @property
    def engine(self) -> 'ExecutionEngine':
        """Consumer of regions."""
        return self._engine

    def call_entry(self, entry: 'AnyEntryPoint', *args: Any, **named: Any) -> Any:  # noqa: ANN401
        """Call a bound entry point within this template.

        Errors without a location are annotated with the template and
        the entry point being called.
        """
        try:
            return entry(self, *args, **named)

        except TemplateError as error:
            if error.context is None:
                error.context = ErrorContext(
                    template=type(self).__name__,
                    entry=entry.name,
                    kind=entry.kind,
                )
            raise

    def push_scope(self, scope: ScopeBuilder) -> ScopeBuilder:
        """Open a scope and return the one enclosing it."""
        parent = self._scopes[-1]
        self._scopes.append(scope)

        return parent

    def pop_scope(self, scope: ScopeBuilder) -> None:
        """Close the innermost scope.

        Raises:
            TemplateBuildError: If the scope is not the innermost one.
        """
        if len(self._scopes) < 2 or self._scopes[-1] is not scope:  # noqa: PLR2004
            raise TemplateBuildError(f'The {scope.kind} is not the innermost open scope')

        self._scopes.pop()

    def place(self, node: 'Node') -> None:
        """Append a finished node to the innermost open scope."""
        self._scopes[-1].add(node)

    def block(self) -> BlockHandle:
        """Open a block."""
        return BlockHandle(self, ScopeBuilder('block'))

    def atomic(self, **options: Any) -> RegionHandle:  # noqa: ANN401
        """Open an atomic region.

        Options are given in the flat form: the `engine` name followed by
        its settings, for example `engine='memory', align=4`.

        Raises:
            TemplateSchemaError: If the options are not a valid configuration.
        """
        return RegionHandle(self, ScopeBuilder('atomic', EngineConfiguration.from_options(options)))

    def sequence(self, **options: Any) -> RegionHandle:  # noqa: ANN401
        """Open a sequence.

        Options are a `combinator` name and one mapping of settings per
        engine, for example `combinator='product', branch={...}`.

        Raises:
            TemplateSchemaError: If the options are not a valid configuration.
        """
        return RegionHandle(self, ScopeBuilder('sequence', EngineConfiguration.from_options(options)))

    def label(self, name: 'str | Symbol') -> Label:
        """Place a label into the innermost open scope."""
        if is_symbolic(name):
            name = symbol_string(name)  # type: ignore[arg-type]

        label = Label(name=name)  # type: ignore[arg-type]
        self.place(label)

        return label

    def situation(self, kind: 'str | Symbol', **params: Any) -> SituationConstraint:  # noqa: ANN401
        """Describe a situation constraint."""
        return SituationConstraint.create(kind, **params)

    def rand(self, lo: int, hi: int) -> RandomValue:
        """Describe an immediate value drawn from `[lo, hi]`.

        Raises:
            TemplateSchemaError: If the range is empty.
        """
        data = {'min': lo, 'max': hi}
        try:
            return RandomValue.model_validate(data)

        except ValidationError as error:
            raise TemplateSchemaError.from_pydantic_error(
                error,
                data=data,
                message='Invalid random range',
            ) from error

    def pre(self) -> None:
        """Describe the preparation part of the test program."""

    def run(self) -> None:
        """Describe the main part of the test program."""

    def post(self) -> None:
        """Describe the finalization part of the test program."""

    def generate(self) -> Block:
        """Evaluate the template.

        Runs `pre`, `run` and `post` in order and collects the root nodes
        that were not handed to the engine.

        Returns:
            Block of the remaining root nodes.

        Raises:
            TemplateBuildError: If a scope is left open.
        """
        self.pre()
        self.run()
        self.post()

        if len(self._scopes) > 1:
            raise TemplateBuildError(f'The {self._scopes[-1].kind} is left open')

        root = self._scopes[0].build()
        self._scopes = [ScopeBuilder()]

        return root


__all__ = (
    'BlockHandle',
    'RegionHandle',
    'Template',
)
