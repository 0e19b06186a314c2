"""Generation engine sinks.

The generation engine is external: it receives a finished region and its
configuration and produces concrete test programs. This module defines
the protocol the composition model hands regions to, and two sinks that
ship with the library: one keeping runs in memory and one serializing
every run as a YAML document.
"""

from typing import TYPE_CHECKING, Any, Protocol

from yaml import safe_dump

if TYPE_CHECKING:
    from typing import TextIO

if TYPE_CHECKING:
    from microtemplate.schema import Block, EngineConfiguration, Node


class ExecutionEngine(Protocol):
    """Consumer of finished regions."""

    def run(self, tree: 'Node', config: 'EngineConfiguration') -> None:
        """Generate and execute test cases for a region."""
        ...  # pragma: no cover


def dump_node(node: 'Node') -> dict[str, Any]:
    """Serialize a node into plain data."""
    return node.model_dump(mode='json', exclude_none=True)


class CollectingEngine:
    """Engine keeping every received run in memory."""

    def __init__(self) -> None:
        self.runs: list[tuple[Node, EngineConfiguration]] = []

    def run(self, tree: 'Node', config: 'EngineConfiguration') -> None:
        """Record a run."""
        self.runs.append((tree, config))


class YamlEngine:
    """Engine writing every run to a stream as a YAML document."""

    def __init__(self, stream: 'TextIO') -> None:
        self.stream = stream
        self.count = 0

    def write(self, document: dict[str, Any]) -> None:
        """Append a YAML document to the stream."""
        safe_dump(
            document,
            self.stream,
            explicit_start=True,
            sort_keys=False,
        )

    def run(self, tree: 'Node', config: 'EngineConfiguration') -> None:
        """Serialize a run."""
        self.count += 1
        self.write({
            'run': self.count,
            'engines': config.model_dump(mode='json', exclude_none=True),
            'tree': dump_node(tree),
        })

    def write_remainder(self, block: 'Block') -> None:
        """Serialize root nodes that were not handed over by any run."""
        if not block.children:
            return

        self.write({'remainder': dump_node(block)})
