"""CLI utilities for microtemplate catalogs and templates.

Catalogs are read from a YAML file or from a provider registered in the
`microtemplate_models` entry point group. Options fall back to
`MICROTEMPLATE_*` environment variables.
"""

from importlib.util import module_from_spec, spec_from_file_location
from pathlib import Path
from typing import TYPE_CHECKING, Any
from warnings import catch_warnings, simplefilter

from click import ClickException, UsageError, argument, echo, group, open_file, option
from click import Path as PathParam

from microtemplate.config import TemplateSettings
from microtemplate.core import Template, YamlMetamodel, install, load_provider
from microtemplate.engine import YamlEngine
from microtemplate.errors import BindingWarning, TemplateError

if TYPE_CHECKING:
    from types import ModuleType

    from microtemplate.core import AuthoringSurface, MetamodelProvider

InputFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)

OutputFilepath = PathParam(
    dir_okay=False,
    writable=True,
    path_type=Path,
)

catalog_option = option(
    '-c', '--catalog',
    type=InputFilepath,
    help='YAML catalog of addressing modes and operations.',
)

model_option = option(
    '-m', '--model',
    help='Name of a metamodel provider entry point.',
)

strict_option = option(
    '--strict/--no-strict',
    default=None,
    help='Fail on binding collisions instead of reporting them.',
)


def _settings(**overrides: Any) -> TemplateSettings:  # noqa: ANN401
    """Resolve settings with command line values taking precedence."""
    return TemplateSettings(**{
        key: value
        for key, value in overrides.items()
        if value is not None
    })


def _provider(settings: TemplateSettings) -> 'MetamodelProvider':
    """Select the metamodel provider configured by the settings.

    Raises:
        UsageError: If neither a catalog nor a model is configured.
    """
    if settings.catalog is not None:
        return YamlMetamodel(settings.catalog)

    if settings.model is not None:
        return load_provider(settings.model)

    raise UsageError('Either a catalog file or a model name is required')


def _install(settings: TemplateSettings) -> 'AuthoringSurface':
    """Bind the configured catalog, echoing collisions to standard error.

    Raises:
        ClickException: If the catalog can not be loaded or bound.
    """
    with catch_warnings(record=True) as caught:
        simplefilter('always', BindingWarning)
        try:
            surface = install(_provider(settings), strict=settings.strict)
        except TemplateError as error:
            raise ClickException(str(error)) from error

    for warning in caught:
        if issubclass(warning.category, BindingWarning):
            echo(f'warning: {warning.message}', err=True)

    return surface


def _import_templates(path: Path) -> list[type[Template]]:
    """Import a template file and collect the templates it defines.

    Raises:
        ClickException: If the file can not be imported.
    """
    spec = spec_from_file_location(path.stem, path)
    if spec is None or spec.loader is None:
        raise ClickException(f'Can not import {path}')

    module: ModuleType = module_from_spec(spec)
    spec.loader.exec_module(module)

    return [
        value
        for value in vars(module).values()
        if isinstance(value, type)
        and issubclass(value, Template)
        and value.__module__ == module.__name__
    ]


@group(help='Command-line utilities for microtemplate.')
def cli() -> None:
    """Root CLI group for microtemplate tools."""
    return None


@cli.command(
    name='surface',
    help='Bind a catalog and print the entry points of the authoring surface.',
)
@catalog_option
@model_option
@strict_option
def print_surface(catalog: Path | None, model: str | None, strict: bool | None) -> None:
    """Print one `name kind descriptor` row per entry point."""
    surface = _install(_settings(catalog=catalog, model=model, strict=strict))

    for entry in surface:
        echo(f'{entry.name}\t{entry.kind}\t{entry.descriptor.name}')  # type: ignore[attr-defined]


@cli.command(
    name='generate',
    help='Evaluate the templates defined in a Python file and dump them as YAML.',
)
@catalog_option
@model_option
@strict_option
@option(
    '-o', '--output',
    type=OutputFilepath,
    help='Destination file; standard output by default.',
)
@argument(
    'template_file',
    type=InputFilepath,
)
def generate(template_file: Path, catalog: Path | None, model: str | None,
             strict: bool | None, output: Path | None) -> None:
    """Generate every template of a file.

    Each run region becomes one YAML document, followed by a document
    with the root nodes left in the template.
    """
    settings = _settings(catalog=catalog, model=model, strict=strict, output=output)
    _install(settings)

    templates = _import_templates(template_file)
    if not templates:
        raise ClickException(f'No templates defined in {template_file}')

    target = str(settings.output) if settings.output is not None else '-'
    with open_file(target, 'w', encoding='utf-8') as stream:
        engine = YamlEngine(stream)
        for template_type in templates:
            try:
                engine.write_remainder(template_type(engine=engine).generate())
            except TemplateError as error:
                raise ClickException(str(error)) from error


if __name__ == '__main__':
    cli()
