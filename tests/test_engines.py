"""Tests for engine configuration and engine sinks."""

from io import StringIO
from typing import TYPE_CHECKING

import pytest
import yaml

from microtemplate.engine import YamlEngine
from microtemplate.errors import TemplateSchemaError
from microtemplate.names import Symbol
from microtemplate.schema import EngineConfiguration, EngineSettings

if TYPE_CHECKING:
    from microtemplate.core import Template


def test_sequence_form() -> None:
    """Verify a combinator with one settings mapping per engine."""
    config = EngineConfiguration.from_options({
        'combinator': 'product',
        'branch': {'branch_exec_limit': 3, 'trace_count_limit': -1},
        'memory': {'classifier': 'event-based', 'page_mask': 0x0fff, 'align': 4, 'count': 5},
    })

    assert config.combinator == 'product'
    assert config.engines['branch'] == EngineSettings(branch_exec_limit=3)
    assert config.engines['memory'].count == 5
    assert list(config.engines) == ['branch', 'memory']


def test_flat_form() -> None:
    """Verify the single engine form of atomic regions."""
    config = EngineConfiguration.from_options({
        'engine': Symbol('memory'),
        'classifier': 'event-based',
        'align': 4,
    })

    assert config.combinator is None
    assert config.engines == {'memory': EngineSettings(classifier='event-based', align=4)}


def test_unknown_settings_are_forwarded() -> None:
    """Verify that engine specific keys are kept as they are."""
    config = EngineConfiguration.from_options({'branch': {'depth': 2}})

    assert config.engines['branch'].model_dump()['depth'] == 2


def test_default_configuration() -> None:
    """Verify that a region without options has an empty configuration."""
    assert EngineConfiguration.from_options({}) == EngineConfiguration()


def test_fail_on_flat_options_without_engine() -> None:
    """Verify that flat options need an engine name."""
    with pytest.raises(TemplateSchemaError, match=r"^Options \['align'\] require an `engine` name"):
        EngineConfiguration.from_options({'combinator': 'product', 'align': 4})


def test_fail_on_invalid_settings() -> None:
    """Verify that invalid settings are reported with their location."""
    with pytest.raises(TemplateSchemaError, match=r'^Input should be a valid integer') as error:
        EngineConfiguration.from_options({'branch': {'branch_exec_limit': 'many'}})

    assert error.value.context is not None
    assert error.value.context['element'] == {'branch_exec_limit': 'many'}


def test_yaml_engine(template: 'Template') -> None:
    """Verify that every run is written as a YAML document."""
    stream = StringIO()
    engine = YamlEngine(stream)

    with template.sequence(combinator='product', branch={'branch_exec_limit': 3}) as seq:
        template.add(template.reg(1), template.reg(2), template.reg(3))
    engine.run(seq.node, seq.engines)

    template.label('end')
    engine.write_remainder(template.generate())

    documents = list(yaml.safe_load_all(stream.getvalue()))

    assert documents[0]['run'] == 1
    assert documents[0]['engines'] == {
        'combinator': 'product',
        'engines': {'branch': {'branch_exec_limit': 3, 'trace_count_limit': -1}},
    }
    assert documents[0]['tree']['kind'] == 'sequence'
    assert documents[0]['tree']['children'][0]['name'] == 'ADD'
    assert documents[1]['remainder']['children'][-1] == {'kind': 'label', 'name': 'end'}


def test_wrapped_form() -> None:
    """Verify a configuration given as a single `engines` mapping."""
    config = EngineConfiguration.from_options({
        'engines': {
            'combinator': 'product',
            'branch': {'branch_exec_limit': 3, 'trace_count_limit': -1},
            'memory': {'classifier': 'event-based', 'page_mask': 0x0fff, 'align': 4, 'count': 5},
        },
    })

    assert config.combinator == 'product'
    assert list(config.engines) == ['branch', 'memory']
    assert config.engines['branch'] == EngineSettings(branch_exec_limit=3)
    assert 'engines' not in config.engines


def test_fail_on_wrapped_scalar() -> None:
    """Verify that the wrapping option must be a mapping."""
    with pytest.raises(TemplateSchemaError, match=r'^Option `engines` must be a mapping'):
        EngineConfiguration.from_options({'engines': 'branch'})
