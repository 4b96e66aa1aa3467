"""Tests for configuration system."""

import json
import tempfile
from pathlib import Path

import pytest
import yaml

from breed_sim.config import (
    DifficultySettings, GeneMatchingTuning, IncubationTuning, build_config, default_config,
    default_minigame_tuning, load_config, validate_config
)
from breed_sim.exceptions import ConfigurationError, ConfigurationMissingError
from breed_sim.inheritance import Difficulty
from breed_sim.models.minigame import MiniGameType


@pytest.fixture
def sample_config():
    """Create a sample configuration."""
    return {
        'seed': 42,
        'mutation_rate': 0.05,
        'personality_mutation_rate': 0.1,
        'tutorial_enabled': True,
        'difficulty': {
            'EASY': {'time_limit': 80},
            'hard': {'time_limit': 50.0},
        },
        'mini_games': {
            'gene_matching': {
                'EASY': {'grid_size': 4, 'matches_required': 5},
            },
            'incubation': {
                'EASY': {'target_min': 35.0, 'target_max': 39.0, 'hold_time': 5.0, 'drift_rate': 0.4},
            },
        },
        'creatures': [
            {'creature_id': 'ember', 'species_id': 'drake', 'phenotype': {'strength': 80}},
            {'creature_id': 'frost', 'species_id': 'drake'},
        ]
    }


def _write(config, suffix='.yaml'):
    with tempfile.NamedTemporaryFile(mode='w', suffix=suffix, delete=False) as f:
        if suffix == '.json':
            json.dump(config, f)
        else:
            yaml.dump(config, f)
        return f.name


def test_load_config_yaml(sample_config):
    """Test loading YAML configuration."""
    config_path = _write(sample_config)

    try:
        config = load_config(config_path)
        assert config.seed == 42
        assert config.mutation_rate == 0.05
        assert config.personality_mutation_rate == 0.1
        assert config.tutorial_enabled
        assert config.difficulty['EASY'] == DifficultySettings(time_limit=80.0)
        assert config.difficulty_settings('HARD').time_limit == 50.0
        assert len(config.creatures) == 2
        assert config.raw_config['seed'] == 42
    finally:
        Path(config_path).unlink()


def test_load_config_json(sample_config):
    """Test loading JSON configuration."""
    config_path = _write(sample_config, suffix='.json')

    try:
        config = load_config(config_path)
        tuning = config.minigame_tuning(MiniGameType.GENE_MATCHING, Difficulty.EASY)
        assert tuning == GeneMatchingTuning(grid_size=4, matches_required=5)
    finally:
        Path(config_path).unlink()


def test_load_config_missing_file():
    """Test that a missing file raises ConfigurationError."""
    with pytest.raises(ConfigurationError):
        load_config('/nonexistent/breeding.yaml')


def test_load_config_unparsable():
    """Test that malformed YAML raises ConfigurationError."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        f.write("seed: [1, 2\n")
        config_path = f.name

    try:
        with pytest.raises(ConfigurationError):
            load_config(config_path)
    finally:
        Path(config_path).unlink()


def test_load_config_non_mapping_root():
    """Test that a list root is rejected."""
    config_path = _write([1, 2, 3])

    try:
        with pytest.raises(ConfigurationError):
            load_config(config_path)
    finally:
        Path(config_path).unlink()


def test_load_config_missing_field(sample_config):
    """Test that missing required fields raise errors."""
    del sample_config['seed']
    config_path = _write(sample_config)

    try:
        with pytest.raises(ConfigurationError):
            load_config(config_path)
    finally:
        Path(config_path).unlink()


@pytest.mark.parametrize('mutate', [
    lambda c: c.update(seed=-1),
    lambda c: c.update(seed=True),
    lambda c: c.update(mutation_rate=1.5),
    lambda c: c.update(tutorial_enabled='yes'),
    lambda c: c['difficulty'].update(LEGENDARY={'time_limit': 10}),
    lambda c: c['difficulty']['EASY'].update(time_limit=0),
    lambda c: c['mini_games'].update(chess={}),
    lambda c: c['mini_games']['gene_matching']['EASY'].update(matches_required=9),
    lambda c: c['mini_games']['gene_matching']['EASY'].pop('grid_size'),
    lambda c: c['mini_games']['gene_matching']['EASY'].update(colour='red'),
    lambda c: c['mini_games']['gene_matching']['EASY'].update(combo_decay_rate=-0.5),
    lambda c: c['mini_games']['incubation']['EASY'].update(target_min=40.0),
    lambda c: c['mini_games']['incubation']['EASY'].update(drift_rate=-1.0),
    lambda c: c['creatures'].append({'creature_id': 'ember', 'species_id': 'drake'}),
    lambda c: c['creatures'].append({'creature_id': 'nameless'}),
])
def test_validate_config_rejects(sample_config, mutate):
    """Test invalid values raise ConfigurationError."""
    mutate(sample_config)
    with pytest.raises(ConfigurationError):
        validate_config(sample_config)


def test_missing_lookup_raises(sample_config):
    """Test missing tables raise ConfigurationMissingError."""
    config = build_config(sample_config)
    with pytest.raises(ConfigurationMissingError):
        config.difficulty_settings('EXPERT')
    with pytest.raises(ConfigurationMissingError):
        config.minigame_tuning('gene_matching', 'HARD')
    with pytest.raises(ConfigurationMissingError):
        config.minigame_tuning('dna_sequencing', 'EASY')


def test_missing_is_configuration_error():
    """Test ConfigurationMissingError can be caught as ConfigurationError."""
    with pytest.raises(ConfigurationError):
        build_config({'seed': 0}).difficulty_settings('EASY')


def test_minimal_config_defaults():
    """Test optional fields take their defaults."""
    config = build_config({'seed': 7})
    assert config.mutation_rate == 0.02
    assert config.personality_mutation_rate == 0.05
    assert not config.tutorial_enabled
    assert config.difficulty == {}
    assert config.creatures == []


def test_default_config_complete():
    """Test the built-in config covers every game and difficulty."""
    config = default_config(seed=3)
    assert config.seed == 3
    for difficulty in Difficulty:
        assert config.difficulty_settings(difficulty).time_limit > 0
        for game in ('gene_matching', 'dna_sequencing', 'trait_balancing', 'incubation'):
            assert config.minigame_tuning(game, difficulty) is not None
    assert config.difficulty_settings(Difficulty.EXPERT).time_limit == 45.0


def test_default_minigame_tuning():
    """Test built-in tuning lookups."""
    assert default_minigame_tuning('gene_matching', 'EXPERT') == GeneMatchingTuning(6, 16)
    incubation = default_minigame_tuning(MiniGameType.INCUBATION, Difficulty.BEGINNER)
    assert isinstance(incubation, IncubationTuning)
    assert incubation.start_temperature == 30.0


def test_gene_matching_combo_decay_configurable(sample_config):
    """Test the combo decay rate is optional and read when given."""
    sample_config['mini_games']['gene_matching']['EASY']['combo_decay_rate'] = 0.25
    config = build_config(sample_config)
    assert config.minigame_tuning('gene_matching', 'EASY').combo_decay_rate == 0.25
    assert default_minigame_tuning('gene_matching', 'EASY').combo_decay_rate == 1.0
