"""Breeding mini-games that measure player skill during a session."""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from ..config import (
    DNASequencingTuning, GeneMatchingTuning, IncubationTuning, TraitBalancingTuning, TuningConfig
)
from ..exceptions import ValidationError
from .phenotype import STAT_ORDER, StatType, VisualGeneticData


class MiniGameType(Enum):
    GENE_MATCHING = "gene_matching"
    DNA_SEQUENCING = "dna_sequencing"
    TRAIT_BALANCING = "trait_balancing"
    INCUBATION = "incubation"
    RANDOM = "random"  # Resolved to one of the others by the session generator


PLAYABLE_GAMES = (
    MiniGameType.GENE_MATCHING,
    MiniGameType.DNA_SEQUENCING,
    MiniGameType.TRAIT_BALANCING,
    MiniGameType.INCUBATION,
)


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


class BreedingMiniGame(ABC):
    """Abstract base class for mini-games; the session only talks to this contract."""

    game_type: MiniGameType

    def __init__(self, rng: np.random.Generator):
        """
        Initialize mini-game.

        Args:
            rng: Generator owned by the session running this game
        """
        self.rng = rng
        self.elapsed = 0.0

    def update(self, delta_time: float) -> None:
        """Advance game time by one tick."""
        self.elapsed += delta_time

    @abstractmethod
    def current_score(self) -> float:
        """Points earned so far."""
        pass

    @abstractmethod
    def skill_performance(self) -> float:
        """
        Current skill sample.

        Returns:
            Skill performance (0.0 to 1.0)
        """
        pass

    @abstractmethod
    def perfect_matches(self) -> int:
        pass

    @property
    @abstractmethod
    def total_targets(self) -> int:
        pass

    @abstractmethod
    def is_complete(self) -> bool:
        pass

    @abstractmethod
    def auto_play(self, proficiency: float) -> None:
        """
        Perform one simulated player action.

        Args:
            proficiency: How well the simulated player plays (0.0 to 1.0)
        """
        pass

    def all_targets_found(self) -> bool:
        return self.perfect_matches() >= self.total_targets


@dataclass(frozen=True)
class GeneCard:
    """One card of the gene matching grid."""
    stat: StatType
    value: int


class GeneMatchingGame(BreedingMiniGame):
    """Memory game: reveal pairs of cards carrying the same stat."""

    game_type = MiniGameType.GENE_MATCHING

    def __init__(
        self,
        tuning: GeneMatchingTuning,
        parent1: VisualGeneticData,
        parent2: VisualGeneticData,
        rng: np.random.Generator
    ):
        super().__init__(rng)
        pairs_available = (tuning.grid_size ** 2) // 2
        if tuning.matches_required > pairs_available:
            raise ValidationError(
                f"A {tuning.grid_size}x{tuning.grid_size} grid holds {pairs_available} pairs, "
                f"{tuning.matches_required} required"
            )
        self.tuning = tuning
        self.pairs = self._generate_pairs(parent1, parent2, pairs_available)
        self.matched: List[int] = []
        self.attempts = 0
        self.consecutive_matches = 0
        self.combo_multiplier = 1.0
        self.score = 0.0

    def _generate_pairs(self, parent1, parent2, count):
        # Parent stats first, then random complementary pairs
        pairs = [
            (GeneCard(stat, parent1.get_stat(stat)), GeneCard(stat, parent2.get_stat(stat)))
            for stat in STAT_ORDER[:count]
        ]
        while len(pairs) < count:
            stat = STAT_ORDER[int(self.rng.integers(len(STAT_ORDER)))]
            pairs.append((
                GeneCard(stat, int(self.rng.integers(40, 80))),
                GeneCard(stat, int(self.rng.integers(80, 100)))
            ))
        order = self.rng.permutation(len(pairs))
        return [pairs[i] for i in order]

    @property
    def matches_found(self) -> int:
        return len(self.matched)

    def attempt_match(self, correct: bool) -> None:
        """
        Resolve one pair of revealed cards.

        A correct match scores the pair's average value times the combo
        multiplier; a miss resets the streak and decays the combo.
        """
        if self.is_complete():
            return
        self.attempts += 1
        if correct:
            index = next(i for i in range(len(self.pairs)) if i not in self.matched)
            self.matched.append(index)
            self.consecutive_matches += 1
            self.combo_multiplier += 0.2 * self.consecutive_matches
            card1, card2 = self.pairs[index]
            self.score += (card1.value + card2.value) // 2 * self.combo_multiplier
        else:
            self.consecutive_matches = 0
            self.combo_multiplier = max(1.0, self.combo_multiplier - 0.1)

    def update(self, delta_time: float) -> None:
        """Advance time; an idle combo bleeds back toward 1.0 at the tuned rate."""
        super().update(delta_time)
        if self.combo_multiplier > 1.0:
            decayed = self.combo_multiplier - self.tuning.combo_decay_rate * delta_time
            self.combo_multiplier = max(1.0, decayed)

    def current_score(self) -> float:
        return self.score

    def skill_performance(self) -> float:
        return _clamp01(self.matches_found / self.tuning.matches_required)

    def perfect_matches(self) -> int:
        return self.matches_found

    @property
    def total_targets(self) -> int:
        return self.tuning.matches_required

    def is_complete(self) -> bool:
        return self.matches_found >= self.tuning.matches_required

    def auto_play(self, proficiency: float) -> None:
        self.attempt_match(bool(self.rng.random() < proficiency))


DNA_BASES = "ATGC"
COMPLEMENTARY_BASES = {'A': 'T', 'T': 'A', 'G': 'C', 'C': 'G'}
BASE_POINTS = 10.0
SEQUENCE_POINTS = 100.0
MISPLACEMENT_PENALTY = 0.95


class DNASequencingGame(BreedingMiniGame):
    """Build the complementary strand for base sequences derived from the parents."""

    game_type = MiniGameType.DNA_SEQUENCING

    def __init__(
        self,
        tuning: DNASequencingTuning,
        parent1: VisualGeneticData,
        parent2: VisualGeneticData,
        rng: np.random.Generator
    ):
        super().__init__(rng)
        self.tuning = tuning
        self.sequences = [
            self._sequence_from_parents(parent1, parent2, index)
            for index in range(tuning.total_sequences)
        ]
        self.current_index = 0
        self.correct_sequences = 0
        self.accuracy = 1.0
        self.score = 0.0

    def _sequence_from_parents(self, parent1, parent2, sequence_index: int) -> str:
        bases = []
        for position in range(self.tuning.sequence_length):
            stat = STAT_ORDER[(position + sequence_index) % len(STAT_ORDER)]
            combined = parent1.get_stat(stat) + parent2.get_stat(stat)
            bases.append(DNA_BASES[combined % 4])
        return "".join(bases)

    @property
    def current_sequence(self) -> Optional[str]:
        if self.current_index >= len(self.sequences):
            return None
        return self.sequences[self.current_index]

    @staticmethod
    def complement(sequence: str) -> str:
        return "".join(COMPLEMENTARY_BASES[base] for base in sequence)

    def submit_sequence(self, strand: str) -> bool:
        """
        Submit a complementary strand for the current sequence.

        Each correctly paired base scores points; each misplaced base lowers
        accuracy. A fully correct strand completes the sequence, otherwise the
        same sequence stays current.

        Args:
            strand: Bases (``A``, ``T``, ``G``, ``C``) in target order

        Returns:
            True if the sequence was completed
        """
        target = self.current_sequence
        if target is None:
            return False
        strand = strand.upper()
        if len(strand) != len(target) or any(base not in COMPLEMENTARY_BASES for base in strand):
            raise ValidationError(f"Strand must be {len(target)} bases of A, T, G, C, got {strand!r}")

        expected = self.complement(target)
        for placed, wanted in zip(strand, expected):
            if placed == wanted:
                self.score += BASE_POINTS * self.tuning.accuracy_bonus
            else:
                self.accuracy *= MISPLACEMENT_PENALTY

        if strand != expected:
            return False
        self.correct_sequences += 1
        self.current_index += 1
        self.score += SEQUENCE_POINTS * self.accuracy
        return True

    def current_score(self) -> float:
        return self.score

    def skill_performance(self) -> float:
        return _clamp01(self.accuracy * self.correct_sequences / self.tuning.total_sequences)

    def perfect_matches(self) -> int:
        return self.correct_sequences

    @property
    def total_targets(self) -> int:
        return self.tuning.total_sequences

    def is_complete(self) -> bool:
        return self.correct_sequences >= self.tuning.total_sequences

    def auto_play(self, proficiency: float) -> None:
        target = self.current_sequence
        if target is None:
            return
        strand = []
        for wanted in self.complement(target):
            if self.rng.random() < proficiency:
                strand.append(wanted)
            else:
                wrong = [b for b in DNA_BASES if b != wanted]
                strand.append(wrong[int(self.rng.integers(len(wrong)))])
        self.submit_sequence("".join(strand))


class TraitBalancingGame(BreedingMiniGame):
    """Hold a stat allocation close to the predicted offspring for a while."""

    game_type = MiniGameType.TRAIT_BALANCING

    def __init__(self, tuning: TraitBalancingTuning, target: VisualGeneticData, rng: np.random.Generator):
        super().__init__(rng)
        self.tuning = tuning
        self.target = target.stats()
        self.allocation: Dict[StatType, int] = {stat: 50 for stat in STAT_ORDER}
        self.balanced_time = 0.0

    def set_allocation(self, values: Union[Dict[StatType, int], Sequence[int]]) -> None:
        """
        Set the player's stat allocation.

        Args:
            values: Mapping of StatType to 0-100, or six values in stat order
        """
        if not isinstance(values, dict):
            if len(values) != len(STAT_ORDER):
                raise ValidationError(f"Expected {len(STAT_ORDER)} values, got {len(values)}")
            values = dict(zip(STAT_ORDER, values))
        for stat, value in values.items():
            if not (0 <= value <= 100):
                raise ValidationError(f"{stat.value} allocation must be between 0 and 100, got {value}")
            self.allocation[stat] = int(value)

    def balance_error(self) -> float:
        """Mean absolute distance from the target, as a fraction of 100."""
        return float(np.mean([abs(self.allocation[s] - self.target[s]) for s in STAT_ORDER])) / 100.0

    def is_balanced(self) -> bool:
        return self.balance_error() <= self.tuning.balance_threshold

    def update(self, delta_time: float) -> None:
        super().update(delta_time)
        if self.is_balanced():
            self.balanced_time += delta_time

    def current_score(self) -> float:
        return round(self.skill_performance() * 1000)

    def skill_performance(self) -> float:
        return _clamp01(1.0 - self.balance_error())

    def perfect_matches(self) -> int:
        return sum(
            1 for s in STAT_ORDER
            if abs(self.allocation[s] - self.target[s]) / 100.0 <= self.tuning.balance_threshold
        )

    @property
    def total_targets(self) -> int:
        return len(STAT_ORDER)

    def is_complete(self) -> bool:
        return self.balanced_time >= self.tuning.hold_time

    def auto_play(self, proficiency: float) -> None:
        noise = (1.0 - proficiency) * 10.0
        adjusted = {}
        for stat in STAT_ORDER:
            current = self.allocation[stat]
            moved = current + (self.target[stat] - current) * proficiency + self.rng.normal(0.0, noise)
            adjusted[stat] = int(round(max(0.0, min(100.0, moved))))
        self.set_allocation(adjusted)


class IncubationGame(BreedingMiniGame):
    """Keep a drifting incubator temperature inside the target range."""

    game_type = MiniGameType.INCUBATION

    def __init__(self, tuning: IncubationTuning, rng: np.random.Generator):
        super().__init__(rng)
        self.tuning = tuning
        self.temperature = tuning.start_temperature
        self.time_in_range = 0.0

    def adjust_temperature(self, delta: float) -> None:
        self.temperature += delta

    def in_range(self) -> bool:
        return self.tuning.target_min <= self.temperature <= self.tuning.target_max

    def update(self, delta_time: float) -> None:
        super().update(delta_time)
        self.temperature += float(self.rng.normal(0.0, self.tuning.drift_rate)) * delta_time
        if self.in_range():
            self.time_in_range += delta_time

    def current_score(self) -> float:
        return round(self.time_in_range * 100)

    def skill_performance(self) -> float:
        if self.elapsed <= 0:
            return 0.0
        return _clamp01(self.time_in_range / self.elapsed)

    def perfect_matches(self) -> int:
        return int(self.time_in_range)

    @property
    def total_targets(self) -> int:
        return math.ceil(self.tuning.hold_time)

    def is_complete(self) -> bool:
        return self.time_in_range >= self.tuning.hold_time

    def auto_play(self, proficiency: float) -> None:
        midpoint = (self.tuning.target_min + self.tuning.target_max) / 2
        self.adjust_temperature((midpoint - self.temperature) * proficiency)


def create_minigame(
    game_type: MiniGameType,
    tuning: TuningConfig,
    parent1: VisualGeneticData,
    parent2: VisualGeneticData,
    predicted_offspring: VisualGeneticData,
    rng: np.random.Generator
) -> BreedingMiniGame:
    """
    Create the mini-game for a resolved game type.

    Args:
        game_type: Any playable type (RANDOM must be resolved by the caller)
        tuning: Tuning matching the game type
        parent1: First parent phenotype
        parent2: Second parent phenotype
        predicted_offspring: Target for trait balancing
        rng: Session-owned random number generator

    Returns:
        BreedingMiniGame instance

    Raises:
        ValidationError: If the type is unresolved or the tuning does not match
    """
    if game_type == MiniGameType.GENE_MATCHING and isinstance(tuning, GeneMatchingTuning):
        return GeneMatchingGame(tuning, parent1, parent2, rng)
    if game_type == MiniGameType.DNA_SEQUENCING and isinstance(tuning, DNASequencingTuning):
        return DNASequencingGame(tuning, parent1, parent2, rng)
    if game_type == MiniGameType.TRAIT_BALANCING and isinstance(tuning, TraitBalancingTuning):
        return TraitBalancingGame(tuning, predicted_offspring, rng)
    if game_type == MiniGameType.INCUBATION and isinstance(tuning, IncubationTuning):
        return IncubationGame(tuning, rng)
    raise ValidationError(f"Cannot create {game_type.value} game from {type(tuning).__name__}")
