"""Catalog loading, entry point binding and template evaluation.

This module ties the composition model to a processor model.

It provides:
- metamodel providers and the all-or-nothing catalog loader;
- collision-safe binding of catalog entries onto an authoring surface;
- the `Template` authoring context dispatching calls through the surface.

The primary public entry points are `install`, which loads and binds a
catalog into the process-wide surface, and `Template`, which evaluates
template code against it.
"""

from .binder import (
    AnyEntryPoint,
    AuthoringSurface,
    BindingGenerator,
    BoundEntryPoint,
    ModeEntryPoint,
    OperationEntryPoint,
    default_surface,
    install,
    uninstall,
)
from .catalog import (
    PROVIDERS_GROUP,
    MetamodelProvider,
    StaticMetamodel,
    YamlMetamodel,
    load_catalog,
    load_provider,
)
from .template import BlockHandle, RegionHandle, Template

__all__ = (
    'PROVIDERS_GROUP',
    'AnyEntryPoint',
    'AuthoringSurface',
    'BindingGenerator',
    'BlockHandle',
    'BoundEntryPoint',
    'MetamodelProvider',
    'ModeEntryPoint',
    'OperationEntryPoint',
    'RegionHandle',
    'StaticMetamodel',
    'Template',
    'YamlMetamodel',
    'default_surface',
    'install',
    'load_catalog',
    'load_provider',
    'uninstall',
)
