"""Core breeding algorithm: combines two parent phenotypes into an offspring prediction.

Five steps, all pure given the same random draws:

1. difficulty classification from the parents' stat totals
2. genetic harmony from complementary stat pairs and special markers
3. offspring phenotype by per-stat blending with noise
4. base success chance from combined parent quality
5. offspring count from vitality and social sums
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

import numpy as np

from .models.phenotype import (
    MAX_STAT_TOTAL, STAT_MAX, STAT_MIN, STAT_ORDER,
    GeneticMarkerFlags, StatType, VisualGeneticData, popcount
)

logger = logging.getLogger(__name__)


STAT_NOISE = 10
HARMONY_BASE = 0.5
COMPLEMENT_BONUS = 0.2
MARKER_HARMONY_BONUS = 0.1
MIN_SUCCESS_CHANCE = 0.3
MAX_SUCCESS_CHANCE = 0.95

# (parent 1 stat, parent 2 stat): the check is directional and not symmetrized
COMPLEMENTARY_PAIRS = (
    (StatType.STRENGTH, StatType.INTELLIGENCE),
    (StatType.AGILITY, StatType.VITALITY),
    (StatType.SOCIAL, StatType.ADAPTABILITY),
)
COMPLEMENT_THRESHOLD = 70


class Difficulty(Enum):
    """Breeding difficulty tier, selects time limits and mini-game parameters."""
    BEGINNER = 0
    EASY = 1
    MEDIUM = 2
    HARD = 3
    EXPERT = 4


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def classify_difficulty(parent1: VisualGeneticData, parent2: VisualGeneticData) -> Difficulty:
    """
    Classify a pairing by the parents' average and difference of stat totals.

    Thresholds are checked in order; the first match wins.

    Args:
        parent1: First parent phenotype
        parent2: Second parent phenotype

    Returns:
        Difficulty tier
    """
    total1, total2 = parent1.total(), parent2.total()
    avg = (total1 + total2) / 2
    diff = abs(total1 - total2)

    if avg < 300:
        return Difficulty.BEGINNER
    if avg < 400 and diff < 100:
        return Difficulty.EASY
    if avg < 500 and diff < 150:
        return Difficulty.MEDIUM
    if avg < 550 or diff > 200:
        return Difficulty.HARD
    return Difficulty.EXPERT


def calculate_genetic_harmony(parent1: VisualGeneticData, parent2: VisualGeneticData) -> float:
    """
    Complementarity score between two parents.

    Starts at 0.5, adds 0.2 for each complementary pair where parent 1's first
    stat and parent 2's second stat are both above 70, and 0.1 per special
    marker carried by either parent.

    Returns:
        Harmony (0.0 to 1.0)
    """
    harmony = HARMONY_BASE
    for stat1, stat2 in COMPLEMENTARY_PAIRS:
        if parent1.get_stat(stat1) > COMPLEMENT_THRESHOLD and parent2.get_stat(stat2) > COMPLEMENT_THRESHOLD:
            harmony += COMPLEMENT_BONUS
    harmony += MARKER_HARMONY_BONUS * popcount(parent1.special_markers | parent2.special_markers)
    return _clamp(harmony, 0.0, 1.0)


def blend_stat(value1: int, value2: int, rng: np.random.Generator) -> int:
    """Parent average plus uniform noise in [-10, 10], clamped to [0, 100]."""
    blended = (value1 + value2) // 2 + int(rng.integers(-STAT_NOISE, STAT_NOISE + 1))
    return int(_clamp(blended, STAT_MIN, STAT_MAX))


def blend_offspring(
    parent1: VisualGeneticData,
    parent2: VisualGeneticData,
    rng: np.random.Generator
) -> VisualGeneticData:
    """
    Blend two parent phenotypes into an offspring phenotype.

    Stats are drawn independently in priority order. Markers are the union of
    both parents' markers. Colours are the parents' average.

    Args:
        parent1: First parent phenotype
        parent2: Second parent phenotype
        rng: Session-owned random number generator

    Returns:
        Offspring VisualGeneticData
    """
    stats = {
        stat: blend_stat(parent1.get_stat(stat), parent2.get_stat(stat), rng)
        for stat in STAT_ORDER
    }
    return VisualGeneticData.from_stats(
        stats,
        special_markers=GeneticMarkerFlags(parent1.special_markers | parent2.special_markers),
        primary_color=parent1.primary_color.blend(parent2.primary_color),
        secondary_color=parent1.secondary_color.blend(parent2.secondary_color),
    )


def calculate_base_success_chance(parent1: VisualGeneticData, parent2: VisualGeneticData) -> float:
    """
    Baseline chance that breeding succeeds, before skill and time modifiers.

    Scales linearly with the combined stat total against the maximum for two
    parents, from a floor of 0.3 to a ceiling of 0.95.
    """
    combined = parent1.total() + parent2.total()
    chance = MIN_SUCCESS_CHANCE + combined / (2 * MAX_STAT_TOTAL) * 0.5
    return _clamp(chance, MIN_SUCCESS_CHANCE, MAX_SUCCESS_CHANCE)


def calculate_offspring_count(parent1: VisualGeneticData, parent2: VisualGeneticData) -> int:
    vitality_sum = parent1.vitality + parent2.vitality
    social_sum = parent1.social + parent2.social
    if vitality_sum > 160 and social_sum > 140:
        return 3
    if vitality_sum > 120 or social_sum > 120:
        return 2
    return 1


@dataclass(frozen=True)
class BreedingPrediction:
    """Baseline outcome of pairing two parents."""
    difficulty: Difficulty
    harmony: float
    offspring: VisualGeneticData
    success_chance: float
    offspring_count: int


def make_rng(rng_or_seed: Union[int, np.random.Generator, None]) -> np.random.Generator:
    """Return the generator as is, or build a PCG64 generator from a seed."""
    if isinstance(rng_or_seed, np.random.Generator):
        return rng_or_seed
    return np.random.Generator(np.random.PCG64(rng_or_seed))


def compute_offspring(
    parent1: VisualGeneticData,
    parent2: VisualGeneticData,
    rng_or_seed: Union[int, np.random.Generator]
) -> BreedingPrediction:
    """
    Run all five inheritance steps for a pair of parents.

    The same seed always yields an identical prediction.

    Args:
        parent1: First parent phenotype
        parent2: Second parent phenotype
        rng_or_seed: Session generator, or a seed to build one from

    Returns:
        BreedingPrediction
    """
    rng = make_rng(rng_or_seed)
    prediction = BreedingPrediction(
        difficulty=classify_difficulty(parent1, parent2),
        harmony=calculate_genetic_harmony(parent1, parent2),
        offspring=blend_offspring(parent1, parent2, rng),
        success_chance=calculate_base_success_chance(parent1, parent2),
        offspring_count=calculate_offspring_count(parent1, parent2),
    )
    logger.debug(
        "Prediction: difficulty=%s harmony=%.2f chance=%.2f count=%d",
        prediction.difficulty.name, prediction.harmony,
        prediction.success_chance, prediction.offspring_count
    )
    return prediction
