"""Catalog descriptors and the template composition model.

Defines immutable Pydantic models for catalog entries and finished tree
nodes, the mutable builders that produce them, argument normalization
and binding, situation capture, and engine configuration. The module
specifies the structural contract of a composed template as consumed
by external engines and tooling.
"""

from .arguments import ArgumentSet, normalize_arguments
from .builders import OperationBuilder, ScopeBuilder, build_mode, finalize
from .descriptors import (
    IMMEDIATE_TYPE,
    AddressingModeDescriptor,
    ArgumentDescriptor,
    Catalog,
    Descriptor,
    OperationDescriptor,
)
from .engines import EngineConfiguration, EngineSettings
from .nodes import (
    ROOT_CONTEXT,
    AddressingModeInstance,
    Argument,
    AtomicRegion,
    Block,
    Label,
    Node,
    OperationInstance,
    Placement,
    RandomValue,
    Region,
    Sequence,
)
from .situations import DeferredSituation, SituationConstraint, capture

__all__ = (
    'IMMEDIATE_TYPE',
    'ROOT_CONTEXT',
    'AddressingModeDescriptor',
    'AddressingModeInstance',
    'Argument',
    'ArgumentDescriptor',
    'ArgumentSet',
    'AtomicRegion',
    'Block',
    'Catalog',
    'DeferredSituation',
    'Descriptor',
    'EngineConfiguration',
    'EngineSettings',
    'Label',
    'Node',
    'OperationBuilder',
    'OperationDescriptor',
    'OperationInstance',
    'Placement',
    'RandomValue',
    'Region',
    'ScopeBuilder',
    'Sequence',
    'SituationConstraint',
    'build_mode',
    'capture',
    'finalize',
    'normalize_arguments',
)
