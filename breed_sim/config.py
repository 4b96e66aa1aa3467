"""Configuration loading and validation for breed_sim."""

import copy
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from .exceptions import ConfigurationError, ConfigurationMissingError


DIFFICULTY_NAMES = ['BEGINNER', 'EASY', 'MEDIUM', 'HARD', 'EXPERT']
MINI_GAME_NAMES = ['gene_matching', 'dna_sequencing', 'trait_balancing', 'incubation']


@dataclass
class DifficultySettings:
    """Session parameters selected by difficulty."""
    time_limit: float  # Seconds


@dataclass
class GeneMatchingTuning:
    """Memory-style grid of gene cards; find matching pairs."""
    grid_size: int
    matches_required: int
    combo_decay_rate: float = 1.0  # Combo multiplier lost per second, down to 1.0


@dataclass
class DNASequencingTuning:
    """Reproduce base sequences derived from the parents."""
    sequence_length: int
    total_sequences: int
    accuracy_bonus: float = 1.0


@dataclass
class TraitBalancingTuning:
    """Hold an allocation of the six stats close to the predicted offspring."""
    balance_threshold: float  # Max mean absolute error (fraction of 100)
    hold_time: float  # Seconds balanced required to complete


@dataclass
class IncubationTuning:
    """Keep a drifting incubator temperature inside the target range."""
    target_min: float
    target_max: float
    hold_time: float
    drift_rate: float  # Std-dev of temperature drift per second
    start_temperature: float = 30.0


TUNING_TYPES = {
    'gene_matching': GeneMatchingTuning,
    'dna_sequencing': DNASequencingTuning,
    'trait_balancing': TraitBalancingTuning,
    'incubation': IncubationTuning,
}

TuningConfig = Union[GeneMatchingTuning, DNASequencingTuning, TraitBalancingTuning, IncubationTuning]


DEFAULT_DIFFICULTY: Dict[str, Dict[str, Any]] = {
    'BEGINNER': {'time_limit': 120.0},
    'EASY': {'time_limit': 90.0},
    'MEDIUM': {'time_limit': 75.0},
    'HARD': {'time_limit': 60.0},
    'EXPERT': {'time_limit': 45.0},
}

DEFAULT_MINI_GAMES: Dict[str, Dict[str, Dict[str, Any]]] = {
    'gene_matching': {
        'BEGINNER': {'grid_size': 4, 'matches_required': 4},
        'EASY': {'grid_size': 4, 'matches_required': 6},
        'MEDIUM': {'grid_size': 5, 'matches_required': 8},
        'HARD': {'grid_size': 6, 'matches_required': 12},
        'EXPERT': {'grid_size': 6, 'matches_required': 16},
    },
    'dna_sequencing': {
        'BEGINNER': {'sequence_length': 4, 'total_sequences': 2, 'accuracy_bonus': 1.0},
        'EASY': {'sequence_length': 6, 'total_sequences': 3, 'accuracy_bonus': 1.2},
        'MEDIUM': {'sequence_length': 8, 'total_sequences': 4, 'accuracy_bonus': 1.5},
        'HARD': {'sequence_length': 10, 'total_sequences': 5, 'accuracy_bonus': 2.0},
        'EXPERT': {'sequence_length': 12, 'total_sequences': 6, 'accuracy_bonus': 2.5},
    },
    'trait_balancing': {
        'BEGINNER': {'balance_threshold': 0.20, 'hold_time': 3.0},
        'EASY': {'balance_threshold': 0.15, 'hold_time': 4.0},
        'MEDIUM': {'balance_threshold': 0.10, 'hold_time': 5.0},
        'HARD': {'balance_threshold': 0.07, 'hold_time': 6.0},
        'EXPERT': {'balance_threshold': 0.05, 'hold_time': 8.0},
    },
    'incubation': {
        'BEGINNER': {'target_min': 34.0, 'target_max': 40.0, 'hold_time': 5.0, 'drift_rate': 0.3},
        'EASY': {'target_min': 35.0, 'target_max': 39.0, 'hold_time': 6.0, 'drift_rate': 0.5},
        'MEDIUM': {'target_min': 36.0, 'target_max': 38.5, 'hold_time': 8.0, 'drift_rate': 0.7},
        'HARD': {'target_min': 36.5, 'target_max': 38.0, 'hold_time': 10.0, 'drift_rate': 0.9},
        'EXPERT': {'target_min': 37.0, 'target_max': 37.8, 'hold_time': 12.0, 'drift_rate': 1.2},
    },
}

DEFAULT_SEED = 0
DEFAULT_MUTATION_RATE = 0.02
DEFAULT_PERSONALITY_MUTATION_RATE = 0.05


def _key(value: Union[str, Enum]) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def _difficulty_key(difficulty: Union[str, Enum]) -> str:
    return (difficulty.name if isinstance(difficulty, Enum) else str(difficulty)).upper()


@dataclass
class BreedingConfig:
    """Complete breeding engine configuration."""
    seed: int
    mutation_rate: float
    personality_mutation_rate: float
    tutorial_enabled: bool
    difficulty: Dict[str, DifficultySettings]
    mini_games: Dict[str, Dict[str, TuningConfig]]
    creatures: List[Dict[str, Any]] = field(default_factory=list)
    raw_config: Dict[str, Any] = field(default_factory=dict)  # Stored alongside history records

    def difficulty_settings(self, difficulty: Union[str, Enum]) -> DifficultySettings:
        """
        Look up the settings for a difficulty tier.

        Raises:
            ConfigurationMissingError: If the tier has no entry
        """
        key = _difficulty_key(difficulty)
        try:
            return self.difficulty[key]
        except KeyError:
            raise ConfigurationMissingError(f"No difficulty settings for {key}") from None

    def minigame_tuning(self, game_type: Union[str, Enum], difficulty: Union[str, Enum]) -> TuningConfig:
        """
        Look up mini-game tuning for a game type and difficulty tier.

        Raises:
            ConfigurationMissingError: If the game or tier has no entry
        """
        game_key = _key(game_type)
        difficulty_key = _difficulty_key(difficulty)
        table = self.mini_games.get(game_key)
        if table is None:
            raise ConfigurationMissingError(f"No tuning table for mini-game {game_key}")
        try:
            return table[difficulty_key]
        except KeyError:
            raise ConfigurationMissingError(
                f"No {game_key} tuning for difficulty {difficulty_key}"
            ) from None


def default_difficulty_settings(difficulty: Union[str, Enum]) -> DifficultySettings:
    """Built-in settings for a difficulty tier."""
    return DifficultySettings(**DEFAULT_DIFFICULTY[_difficulty_key(difficulty)])


def default_minigame_tuning(game_type: Union[str, Enum], difficulty: Union[str, Enum]) -> TuningConfig:
    """Built-in tuning for a mini-game and difficulty tier."""
    game_key = _key(game_type)
    return TUNING_TYPES[game_key](**DEFAULT_MINI_GAMES[game_key][_difficulty_key(difficulty)])


def default_config(seed: int = DEFAULT_SEED) -> BreedingConfig:
    """Configuration with every built-in table filled in."""
    raw_config = {
        'seed': seed,
        'difficulty': copy.deepcopy(DEFAULT_DIFFICULTY),
        'mini_games': copy.deepcopy(DEFAULT_MINI_GAMES),
    }
    validate_config(raw_config)
    return build_config(raw_config)


def load_config(config_path: str) -> BreedingConfig:
    """
    Load and validate configuration from YAML or JSON file.

    Args:
        config_path: Path to configuration file

    Returns:
        Validated BreedingConfig object

    Raises:
        ConfigurationError: If file doesn't exist or configuration is invalid
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(path, 'r') as f:
            if path.suffix.lower() == '.json':
                raw_config = json.load(f)
            else:
                raw_config = yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to parse configuration file: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read configuration file: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigurationError("Configuration root must be a mapping")

    validate_config(raw_config)
    return build_config(raw_config)


def _require_number(value: Any, name: str, positive: bool = True) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number")
    if positive and value <= 0:
        raise ConfigurationError(f"{name} must be positive")


def _require_int(value: Any, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(f"{name} must be a positive integer")


def _validate_tuning(game: str, difficulty: str, tuning: Any) -> None:
    name = f"mini_games.{game}.{difficulty}"
    if not isinstance(tuning, dict):
        raise ConfigurationError(f"{name} must be a dictionary")

    tuning_type = TUNING_TYPES[game]
    required = [
        name for name, fdef in tuning_type.__dataclass_fields__.items()
        if fdef.default is fdef.default_factory  # both MISSING
    ]
    for key in required:
        if key not in tuning:
            raise ConfigurationError(f"{name} missing required field: {key}")
    for key in tuning:
        if key not in tuning_type.__dataclass_fields__:
            raise ConfigurationError(f"{name} has unknown field: {key}")

    if game == 'gene_matching':
        _require_int(tuning['grid_size'], f"{name}.grid_size")
        _require_int(tuning['matches_required'], f"{name}.matches_required")
        if tuning['matches_required'] > (tuning['grid_size'] ** 2) // 2:
            raise ConfigurationError(f"{name}.matches_required exceeds the pairs a {tuning['grid_size']}x{tuning['grid_size']} grid holds")
        if 'combo_decay_rate' in tuning:
            _require_number(tuning['combo_decay_rate'], f"{name}.combo_decay_rate", positive=False)
            if tuning['combo_decay_rate'] < 0:
                raise ConfigurationError(f"{name}.combo_decay_rate must be non-negative")
    elif game == 'dna_sequencing':
        _require_int(tuning['sequence_length'], f"{name}.sequence_length")
        _require_int(tuning['total_sequences'], f"{name}.total_sequences")
        if 'accuracy_bonus' in tuning:
            _require_number(tuning['accuracy_bonus'], f"{name}.accuracy_bonus")
    elif game == 'trait_balancing':
        _require_number(tuning['balance_threshold'], f"{name}.balance_threshold")
        if tuning['balance_threshold'] > 1.0:
            raise ConfigurationError(f"{name}.balance_threshold must be <= 1.0")
        _require_number(tuning['hold_time'], f"{name}.hold_time")
    elif game == 'incubation':
        _require_number(tuning['target_min'], f"{name}.target_min", positive=False)
        _require_number(tuning['target_max'], f"{name}.target_max", positive=False)
        if tuning['target_min'] >= tuning['target_max']:
            raise ConfigurationError(f"{name}.target_min must be < target_max")
        _require_number(tuning['hold_time'], f"{name}.hold_time")
        _require_number(tuning['drift_rate'], f"{name}.drift_rate", positive=False)
        if tuning['drift_rate'] < 0:
            raise ConfigurationError(f"{name}.drift_rate must be non-negative")
        if 'start_temperature' in tuning:
            _require_number(tuning['start_temperature'], f"{name}.start_temperature", positive=False)


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Difficulty and mini-game tables are optional; entries that are present
    must be complete.

    Args:
        config: Raw configuration dictionary

    Raises:
        ConfigurationError: If validation fails
    """
    if 'seed' not in config:
        raise ConfigurationError("Missing required field: seed")
    if isinstance(config['seed'], bool) or not isinstance(config['seed'], int) or config['seed'] < 0:
        raise ConfigurationError("seed must be a non-negative integer")

    for rate_field in ('mutation_rate', 'personality_mutation_rate'):
        if rate_field in config:
            rate = config[rate_field]
            if isinstance(rate, bool) or not isinstance(rate, (int, float)) or not (0.0 <= rate <= 1.0):
                raise ConfigurationError(f"{rate_field} must be a number between 0.0 and 1.0")

    if 'tutorial_enabled' in config and not isinstance(config['tutorial_enabled'], bool):
        raise ConfigurationError("tutorial_enabled must be a boolean")

    difficulty = config.get('difficulty', {})
    if not isinstance(difficulty, dict):
        raise ConfigurationError("difficulty must be a dictionary")
    for name, settings in difficulty.items():
        if str(name).upper() not in DIFFICULTY_NAMES:
            raise ConfigurationError(f"Unknown difficulty: {name}")
        if not isinstance(settings, dict) or 'time_limit' not in settings:
            raise ConfigurationError(f"difficulty.{name} must contain time_limit")
        _require_number(settings['time_limit'], f"difficulty.{name}.time_limit")

    mini_games = config.get('mini_games', {})
    if not isinstance(mini_games, dict):
        raise ConfigurationError("mini_games must be a dictionary")
    for game, table in mini_games.items():
        if game not in MINI_GAME_NAMES:
            raise ConfigurationError(f"Unknown mini-game: {game}")
        if not isinstance(table, dict):
            raise ConfigurationError(f"mini_games.{game} must be a dictionary")
        for name, tuning in table.items():
            if str(name).upper() not in DIFFICULTY_NAMES:
                raise ConfigurationError(f"Unknown difficulty in mini_games.{game}: {name}")
            _validate_tuning(game, name, tuning)

    creatures = config.get('creatures', [])
    if not isinstance(creatures, list):
        raise ConfigurationError("creatures must be a list")
    creature_ids = set()
    for creature in creatures:
        if not isinstance(creature, dict) or 'creature_id' not in creature or 'species_id' not in creature:
            raise ConfigurationError("creatures entries must have 'creature_id' and 'species_id'")
        if creature['creature_id'] in creature_ids:
            raise ConfigurationError(f"Duplicate creature_id: {creature['creature_id']}")
        creature_ids.add(creature['creature_id'])


def build_config(raw_config: Dict[str, Any]) -> BreedingConfig:
    """
    Build BreedingConfig object from validated raw config.

    Args:
        raw_config: Validated configuration dictionary

    Returns:
        BreedingConfig object
    """
    difficulty = {
        str(name).upper(): DifficultySettings(time_limit=float(settings['time_limit']))
        for name, settings in raw_config.get('difficulty', {}).items()
    }

    mini_games = {
        game: {
            str(name).upper(): TUNING_TYPES[game](**tuning)
            for name, tuning in table.items()
        }
        for game, table in raw_config.get('mini_games', {}).items()
    }

    return BreedingConfig(
        seed=raw_config['seed'],
        mutation_rate=raw_config.get('mutation_rate', DEFAULT_MUTATION_RATE),
        personality_mutation_rate=raw_config.get(
            'personality_mutation_rate', DEFAULT_PERSONALITY_MUTATION_RATE
        ),
        tutorial_enabled=raw_config.get('tutorial_enabled', False),
        difficulty=difficulty,
        mini_games=mini_games,
        creatures=raw_config.get('creatures', []),
        raw_config=raw_config
    )
