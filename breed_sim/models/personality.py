"""Personality genetics and personality inheritance for breed_sim.

Each personality trait is a 0-100 score. Offspring take the average of both
parents with a small random variation, and each trait can mutate. Parents with
compatible (similar but not identical) personalities breed more easily.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Tuple

import numpy as np

from ..exceptions import ValidationError

logger = logging.getLogger(__name__)


BLEND_VARIATION = 15
MUTATION_SHIFT = 30
DEFAULT_PERSONALITY_MUTATION_RATE = 0.05
MIN_BREEDING_COMPATIBILITY = 0.3
FOUNDER_INFLUENCE = 500
FOUNDER_STABILITY = 0.8


class PersonalityTrait(Enum):
    CURIOSITY = "curiosity"
    PLAYFULNESS = "playfulness"
    AGGRESSION = "aggression"
    AFFECTION = "affection"
    INDEPENDENCE = "independence"
    NERVOUSNESS = "nervousness"
    STUBBORNNESS = "stubbornness"
    LOYALTY = "loyalty"


TRAIT_ORDER = tuple(PersonalityTrait)

TRAIT_ADJECTIVES = {
    PersonalityTrait.CURIOSITY: "Curious",
    PersonalityTrait.PLAYFULNESS: "Playful",
    PersonalityTrait.AGGRESSION: "Aggressive",
    PersonalityTrait.AFFECTION: "Affectionate",
    PersonalityTrait.INDEPENDENCE: "Independent",
    PersonalityTrait.NERVOUSNESS: "Nervous",
    PersonalityTrait.STUBBORNNESS: "Stubborn",
    PersonalityTrait.LOYALTY: "Loyal",
}


class InheritanceSource(Enum):
    BLEND = "BLEND"
    MUTATION = "MUTATION"


@dataclass(frozen=True)
class InheritanceRecord:
    """How one personality trait was passed to an offspring."""
    trait: PersonalityTrait
    parent_average: int
    offspring_value: int
    source: InheritanceSource
    mutation_delta: int = 0

    @property
    def was_inherited(self) -> bool:
        return self.source == InheritanceSource.BLEND


@dataclass(frozen=True)
class PersonalityGenetics:
    """Inheritable personality baseline of a creature."""
    curiosity: int = 50
    playfulness: int = 50
    aggression: int = 50
    affection: int = 50
    independence: int = 50
    nervousness: int = 50
    stubbornness: int = 50
    loyalty: int = 50
    parent1_influence: int = FOUNDER_INFLUENCE  # per-mille
    parent2_influence: int = FOUNDER_INFLUENCE  # per-mille
    mutation_count: int = 0
    has_personality_mutation: bool = False
    fitness: float = 0.7
    temperament_stability: float = FOUNDER_STABILITY

    def __post_init__(self):
        """Validate personality data."""
        for trait in TRAIT_ORDER:
            value = getattr(self, trait.value)
            if not (0 <= value <= 100):
                raise ValidationError(f"{trait.value} must be between 0 and 100, got {value}")
            object.__setattr__(self, trait.value, int(value))
        if self.parent1_influence < 0 or self.parent2_influence < 0:
            raise ValidationError("parent influence must be non-negative")
        if self.parent1_influence + self.parent2_influence != 1000:
            raise ValidationError(
                f"parent influences must sum to 1000, got "
                f"{self.parent1_influence + self.parent2_influence}"
            )
        if not (0.0 <= self.fitness <= 1.0):
            raise ValidationError(f"fitness must be between 0.0 and 1.0, got {self.fitness}")
        if not (0.0 <= self.temperament_stability <= 1.0):
            raise ValidationError(
                f"temperament_stability must be between 0.0 and 1.0, got {self.temperament_stability}"
            )

    def get_trait(self, trait: PersonalityTrait) -> int:
        return getattr(self, trait.value)

    def traits(self) -> Dict[PersonalityTrait, int]:
        return {trait: self.get_trait(trait) for trait in TRAIT_ORDER}

    @classmethod
    def from_expressed(cls, expressed: Dict[str, int]) -> 'PersonalityGenetics':
        """
        Synthesize founder genetics from a non-bred creature's expressed personality.

        Args:
            expressed: Trait name (e.g. ``'curiosity'``) to 0-100 score;
                missing traits default to 50

        Returns:
            PersonalityGenetics with a 50/50 parent split and computed fitness
        """
        values = {trait.value: int(expressed.get(trait.value, 50)) for trait in TRAIT_ORDER}
        founder = cls(**values)
        return replace(founder, fitness=calculate_personality_fitness(founder))


def calculate_trait_compatibility(value1: int, value2: int) -> float:
    """Similarity of two trait scores (1.0 identical, 0.0 opposite extremes)."""
    return max(0.0, min(1.0, 1.0 - abs(int(value1) - int(value2)) / 100.0))


def calculate_personality_fitness(personality: PersonalityGenetics) -> float:
    """
    Personality balance: extreme traits lower fitness.

    Returns:
        ``1 - mean(|trait - 50|) / 100``, in [0.5, 1.0]
    """
    deviations = [abs(personality.get_trait(t) - 50) for t in TRAIT_ORDER]
    return float(1.0 - np.mean(deviations) / 100.0)


def calculate_diversity_bonus(p1: PersonalityGenetics, p2: PersonalityGenetics) -> float:
    """+0.1 when the parents differ by 20-40 points on average (exclusive)."""
    average_difference = np.mean([abs(p1.get_trait(t) - p2.get_trait(t)) for t in TRAIT_ORDER])
    if 20.0 < average_difference < 40.0:
        return 0.1
    return 0.0


def calculate_extremes_penalty(p1: PersonalityGenetics, p2: PersonalityGenetics) -> float:
    """Penalty for problematic combinations, capped at 0.3."""
    penalty = 0.0
    if p1.aggression > 80 and p2.nervousness > 80:
        penalty += 0.15
    if p1.independence > 85 and p2.affection > 85:
        penalty += 0.1
    return min(penalty, 0.3)


def calculate_compatibility(p1: PersonalityGenetics, p2: PersonalityGenetics) -> float:
    """
    Full personality compatibility between two parents.

    Average per-trait compatibility, plus the diversity bonus, minus the
    extremes penalty, clamped to [0, 1].
    """
    overall = np.mean([
        calculate_trait_compatibility(p1.get_trait(t), p2.get_trait(t)) for t in TRAIT_ORDER
    ])
    final = overall + calculate_diversity_bonus(p1, p2) - calculate_extremes_penalty(p1, p2)
    return float(max(0.0, min(1.0, final)))


def calculate_quick_compatibility(p1: PersonalityGenetics, p2: PersonalityGenetics) -> float:
    """Compatibility over the four core traits only."""
    core = TRAIT_ORDER[:4]
    return float(np.mean([
        calculate_trait_compatibility(p1.get_trait(t), p2.get_trait(t)) for t in core
    ]))


def is_viable_match(p1: PersonalityGenetics, p2: PersonalityGenetics) -> bool:
    return calculate_compatibility(p1, p2) >= MIN_BREEDING_COMPATIBILITY


def blend_trait(value1: int, value2: int, rng: np.random.Generator) -> int:
    """Average of both parents with +/- BLEND_VARIATION noise, clamped to 0-100."""
    blended = (int(value1) + int(value2)) // 2 + int(rng.integers(-BLEND_VARIATION, BLEND_VARIATION + 1))
    return max(0, min(100, blended))


def mutate_trait(value: int, rng: np.random.Generator) -> Tuple[int, int]:
    """
    Shift a trait by up to +/- MUTATION_SHIFT.

    Returns:
        (new value clamped to 0-100, applied delta)
    """
    delta = int(rng.integers(-MUTATION_SHIFT, MUTATION_SHIFT + 1))
    mutated = max(0, min(100, int(value) + delta))
    return mutated, mutated - int(value)


def _parent_influence(
    offspring: Dict[PersonalityTrait, int],
    p1: PersonalityGenetics,
    p2: PersonalityGenetics
) -> Tuple[int, int]:
    """Per-mille share of the offspring's traits attributable to each parent."""
    weight1 = 0.0
    for trait, value in offspring.items():
        d1 = abs(value - p1.get_trait(trait))
        d2 = abs(value - p2.get_trait(trait))
        weight1 += 0.5 if d1 + d2 == 0 else d2 / (d1 + d2)
    influence1 = int(round(1000 * weight1 / len(offspring)))
    return influence1, 1000 - influence1


def create_offspring_personality(
    parent1: PersonalityGenetics,
    parent2: PersonalityGenetics,
    rng: np.random.Generator,
    allow_mutations: bool = True,
    mutation_rate: float = DEFAULT_PERSONALITY_MUTATION_RATE
) -> Tuple[PersonalityGenetics, List[InheritanceRecord]]:
    """
    Blend two parents' personality genetics into an offspring.

    Args:
        parent1: First parent
        parent2: Second parent
        rng: Session-owned random number generator
        allow_mutations: Whether traits may mutate
        mutation_rate: Per-trait mutation probability

    Returns:
        (offspring genetics, one InheritanceRecord per trait)
    """
    values: Dict[PersonalityTrait, int] = {}
    records: List[InheritanceRecord] = []
    mutation_count = 0

    for trait in TRAIT_ORDER:
        v1, v2 = parent1.get_trait(trait), parent2.get_trait(trait)
        value = blend_trait(v1, v2, rng)
        source = InheritanceSource.BLEND
        delta = 0
        if allow_mutations and rng.random() < mutation_rate:
            value, delta = mutate_trait(value, rng)
            source = InheritanceSource.MUTATION
            mutation_count += 1

        values[trait] = value
        records.append(InheritanceRecord(
            trait=trait,
            parent_average=(v1 + v2) // 2,
            offspring_value=value,
            source=source,
            mutation_delta=delta
        ))

    influence1, influence2 = _parent_influence(values, parent1, parent2)
    stability = (parent1.temperament_stability + parent2.temperament_stability) / 2
    stability = max(0.0, min(1.0, stability - 0.05 * mutation_count))

    offspring = PersonalityGenetics(
        **{trait.value: value for trait, value in values.items()},
        parent1_influence=influence1,
        parent2_influence=influence2,
        mutation_count=mutation_count,
        has_personality_mutation=mutation_count > 0,
        temperament_stability=stability
    )
    offspring = replace(offspring, fitness=calculate_personality_fitness(offspring))

    logger.debug(
        "Personality offspring: curiosity=%d playfulness=%d mutations=%d",
        offspring.curiosity, offspring.playfulness, mutation_count
    )
    return offspring, records


def describe_personality(personality: PersonalityGenetics, max_traits: int = 2) -> str:
    """Short description from the highest traits, e.g. ``'Curious and Loyal'``."""
    ranked = sorted(TRAIT_ORDER, key=lambda t: personality.get_trait(t), reverse=True)
    strong = [TRAIT_ADJECTIVES[t] for t in ranked[:max_traits] if personality.get_trait(t) > 60]
    if not strong:
        return "Balanced"
    return " and ".join(strong)
