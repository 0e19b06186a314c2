"""Engine configuration attached to sequences and atomic regions.

The configuration tells the external engine how to search and combine
the instructions of a region: which combinator joins the per-engine
test cases, and the tunable limits of every participating engine.
The core never interprets these values; it only validates their shape
and forwards them with the region.
"""

from typing import Any, Self

from pydantic import ConfigDict, Field, ValidationError

from microtemplate.errors import TemplateSchemaError
from microtemplate.models import SchemaModel
from microtemplate.names import Identifier  # noqa: TC001
from microtemplate.values import Value, normalize

#: Option selecting the engine of an atomic region in the flat form.
ENGINE_OPTION = 'engine'
#: Option selecting the combinator of a sequence.
COMBINATOR_OPTION = 'combinator'
#: Option wrapping the whole configuration in a single mapping.
ENGINES_OPTION = 'engines'


class EngineSettings(SchemaModel):
    """Tunable limits of a single engine.

    Well-known keys are validated; any other key is kept as is and
    forwarded to the engine.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='allow',
    )

    branch_exec_limit: int = Field(
        default=1,
        title='Branch execution limit',
        description='Bounds the number of executions of a single branch.',
    )

    trace_count_limit: int = Field(
        default=-1,
        title='Trace count limit',
        description='Bounds the number of execution traces; -1 means no limit.',
    )

    classifier: str | None = Field(
        default=None,
        title='Classifier',
        description='Memory access classifier, for example `event-based`.',
    )

    page_mask: int | None = Field(
        default=None,
        title='Page mask',
        description='Mask selecting the in-page part of an address.',
    )

    align: int | None = Field(
        default=None,
        title='Alignment',
        description='Alignment of generated addresses in bytes.',
    )

    count: int | None = Field(
        default=None,
        title='Count',
        description='Number of test cases to produce.',
    )


class EngineConfiguration(SchemaModel):
    """Per-region configuration forwarded to the external engine."""

    combinator: str | None = Field(
        default=None,
        title='Combinator',
        description='How per-engine test cases are combined, for example `product`.',
    )

    engines: dict[Identifier, EngineSettings] = Field(
        default_factory=dict,
        title='Engines',
        description='Settings of every engine participating in the region.',
    )

    @classmethod
    def from_options(cls, options: dict[str, Any]) -> Self:
        """Build a configuration from template call options.

        The following forms are accepted and may be combined:
        - `engines={...}` wrapping either form in a single mapping;
        - `combinator='product', branch={...}, memory={...}` where every
          mapping value configures the engine named by its key;
        - `engine='memory', classifier=..., align=...` where the scalar
          options configure the single engine named by `engine`.

        Args:
            options: Keyword options of `sequence` or `atomic`.

        Returns:
            The validated configuration.

        Raises:
            TemplateSchemaError: If the options do not form a valid configuration.
        """
        data: dict[str, Value] = normalize(options)  # type: ignore[assignment]

        wrapped = data.pop(ENGINES_OPTION, None)
        if isinstance(wrapped, dict):
            data = {**wrapped, **data}
        elif wrapped is not None:
            raise TemplateSchemaError(
                f'Option `engines` must be a mapping, got {wrapped!r}',
                context={'element': options},
            )

        combinator = data.pop(COMBINATOR_OPTION, None)
        engine = data.pop(ENGINE_OPTION, None)

        engines = {
            name: value
            for name, value in data.items()
            if isinstance(value, dict)
        }
        flat = {
            name: value
            for name, value in data.items()
            if name not in engines
        }

        if engine is not None:
            engines[engine] = {**engines.get(engine, {}), **flat}  # type: ignore[index, dict-item]
        elif flat:
            raise TemplateSchemaError(
                f'Options {sorted(flat)!r} require an `engine` name',
                context={'element': options},
            )

        payload = {'combinator': combinator, 'engines': engines}

        try:
            return cls.model_validate(payload)
        except ValidationError as base:
            raise TemplateSchemaError.from_pydantic_error(base, data=payload) from base
