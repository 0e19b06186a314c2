"""Runtime settings resolved from the environment."""

from pathlib import Path  # noqa: TC003

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from microtemplate.models import SettingsModel


class TemplateSettings(SettingsModel):
    """Settings shared by the command line and embedding applications.

    Values are read from `MICROTEMPLATE_*` environment variables;
    explicit command line options take precedence.
    """

    model_config = SettingsConfigDict(
        env_prefix='MICROTEMPLATE_',
        frozen=True,
        extra='ignore',
    )

    strict: bool = Field(
        default=False,
        title='Strict binding',
        description='Raise binding collisions instead of reporting them as warnings.',
    )

    catalog: Path | None = Field(
        default=None,
        title='Catalog file',
        description='YAML catalog describing addressing modes and operations.',
    )

    model: str | None = Field(
        default=None,
        title='Metamodel entry point',
        description='Name of a provider registered in the `microtemplate_models` group.',
    )

    output: Path | None = Field(
        default=None,
        title='Output file',
        description='Destination of generated YAML documents; standard output if unset.',
    )
