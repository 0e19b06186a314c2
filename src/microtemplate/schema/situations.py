"""Situation constraints and their deferred capture.

A situation names a semantic execution constraint (an overflow, a branch
outcome, a memory access class) that the engine must satisfy when it
chooses concrete operand values. Template code describes situations
lazily: the operation call receives a callable that is evaluated with
the authoring context only when the call is made.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pydantic import Field

from microtemplate.errors import TemplateBuildError
from microtemplate.models import SchemaModel
from microtemplate.names import is_symbolic, symbol_string
from microtemplate.values import Value, normalize

if TYPE_CHECKING:
    from microtemplate.names import Symbol

#: A deferred situation receives the authoring context and returns a
#: constraint (or the bare name of a parameterless constraint).
type DeferredSituation = Callable[[Any], 'SituationConstraint | str']


class SituationConstraint(SchemaModel):
    """Named execution constraint with keyed parameters."""

    kind: str = Field(
        title='Situation name',
        description='Identifier of the constraint, for example `IntegerOverflow`.',
    )

    params: dict[str, Value] = Field(
        default_factory=dict,
        title='Situation parameters',
        description=(
            'Keyed parameters of the constraint, such as the engine in charge '
            '(`engine`) or the test data stream (`stream`).'
        ),
    )

    @classmethod
    def create(cls, kind: 'str | Symbol', **params: Any) -> 'SituationConstraint':  # noqa: ANN401
        """Create a constraint, converting symbolic values to strings."""
        if is_symbolic(kind):
            kind = symbol_string(kind)  # type: ignore[arg-type]

        return cls(kind=kind, params=normalize(params))  # type: ignore[arg-type]


def capture(context: object, deferred: DeferredSituation) -> SituationConstraint:
    """Evaluate a deferred situation within the authoring context.

    The callable is invoked exactly once, with the context as its only
    argument, so that helpers such as `situation(...)` resolve against
    the same template that makes the operation call.

    Args:
        context: Authoring context (the template being evaluated).
        deferred: Callable describing the situation.

    Returns:
        The captured constraint.

    Raises:
        TemplateBuildError: If the callable does not produce a constraint.
    """
    if not callable(deferred):
        raise TemplateBuildError(f'Situation must be callable, got {deferred!r}')

    result = deferred(context)

    if isinstance(result, SituationConstraint):
        return result

    if isinstance(result, str) or is_symbolic(result):
        return SituationConstraint.create(result)

    raise TemplateBuildError(f'Situation produced {result!r} instead of a constraint')
