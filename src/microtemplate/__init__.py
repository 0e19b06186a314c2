"""Test template authoring for processor models.

The `microtemplate` package lets test programs for a modelled processor
be described as Python templates. The operations and addressing modes of
the model are read from a metamodel catalog and bound as methods of the
authoring context.

Key features:
- catalog loading from in-memory, YAML or entry point providers;
- collision-safe binding with kind-prefixed fallback names;
- positional and named arguments with nested operation builders;
- blocks, atomic regions and sequences handed to a generation engine;
- deferred situation constraints evaluated at the operation call.
"""

from .core import Template, install
from .names import Symbol

__all__ = (
    'Symbol',
    'Template',
    'install',
)
