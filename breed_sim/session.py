"""Breeding session: a time-boxed, skill-modulated breeding attempt."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from .config import (
    BreedingConfig, default_config, default_difficulty_settings, default_minigame_tuning
)
from .exceptions import ConfigurationMissingError, InvalidStateError, ValidationError
from .inheritance import BreedingPrediction, compute_offspring
from .models.minigame import PLAYABLE_GAMES, BreedingMiniGame, MiniGameType, create_minigame
from .models.phenotype import VisualGeneticData

logger = logging.getLogger(__name__)


SKILL_BONUS_THRESHOLD = 0.9
PERFECTION_BONUS = 1.5
PERFECT_BREEDING_CHANCE = 0.9
EXPERIENCE_PER_POINT = 0.1


class SessionState(Enum):
    SETUP = "SETUP"
    TUTORIAL = "TUTORIAL"
    PLAYING = "PLAYING"
    PAUSED = "PAUSED"
    COMPLETING = "COMPLETING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STATES = (SessionState.COMPLETED, SessionState.FAILED)


def skill_bonus_for(skill_performance: float) -> float:
    """Skill multiplier, 0.5 (no skill) to 2.0 (perfect play)."""
    return 0.5 + skill_performance * 1.5


def time_bonus_for(elapsed: float, time_limit: float) -> float:
    """Decays from 1.0 toward 0.5 as time runs out, never below 0.5."""
    return max(0.5, 1.0 - (elapsed / time_limit) * 0.3)


@dataclass(frozen=True)
class BreedingResult:
    """Finalized outcome of a breeding attempt, consumed by progression systems."""
    session_id: str
    request_id: Optional[str]
    game_type: str
    success: bool
    final_score: float
    skill_multiplier: float
    time_bonus: float
    perfection_bonus: float
    offspring_count: int
    bonus_traits_earned: bool
    perfect_breeding: bool
    genetic_quality_bonus: float
    experience_gained: int
    level_up: bool = False
    new_ability_unlocked: bool = False
    offspring_ids: Tuple[str, ...] = ()


class BreedingSession:
    """
    Stateful breeding attempt wrapping one inheritance computation.

    States: SETUP -> TUTORIAL -> PLAYING <-> PAUSED -> COMPLETING -> COMPLETED | FAILED.
    Every random draw comes from the session's own generator, so a session is
    fully reproducible from its seed and inputs.
    """

    def __init__(
        self,
        session_id: str,
        parent1: VisualGeneticData,
        parent2: VisualGeneticData,
        game_type: MiniGameType,
        seed: int,
        config: Optional[BreedingConfig] = None,
        request_id: Optional[str] = None
    ):
        """
        Initialize session in SETUP.

        Args:
            session_id: Unique session id
            parent1: First parent phenotype snapshot
            parent2: Second parent phenotype snapshot
            game_type: Mini-game to play; RANDOM picks one with the session generator
            seed: Seed of the session generator
            config: Breeding configuration; built-in defaults if None
            request_id: Id of the engine request that created this session
        """
        self.session_id = session_id
        self.request_id = request_id
        self.seed = seed
        self.config = config or default_config()
        self.rng = np.random.Generator(np.random.PCG64(seed))
        self.parent1: Optional[VisualGeneticData] = parent1
        self.parent2: Optional[VisualGeneticData] = parent2
        self.state = SessionState.SETUP

        self.prediction: BreedingPrediction = compute_offspring(parent1, parent2, self.rng)
        self.difficulty = self.prediction.difficulty
        self.harmony = self.prediction.harmony
        self.base_success_chance = self.prediction.success_chance
        self.potential_offspring_count = self.prediction.offspring_count

        if game_type == MiniGameType.RANDOM:
            game_type = PLAYABLE_GAMES[int(self.rng.integers(len(PLAYABLE_GAMES)))]
        self.game_type = game_type

        self.time_limit = self._resolve_time_limit()
        self.minigame: BreedingMiniGame = create_minigame(
            game_type, self._resolve_tuning(), parent1, parent2, self.prediction.offspring, self.rng
        )

        self.elapsed = 0.0
        self.skill_performance = 0.0
        self.skill_bonus = 1.0
        self.time_bonus = 1.0
        self.success_multiplier = self.harmony
        self.final_success_chance = self.base_success_chance
        self.bonus_unlocked = False
        self.result: Optional[BreedingResult] = None
        self.cancelled = False

        logger.info(
            "Session %s created: game=%s difficulty=%s harmony=%.2f base_chance=%.2f",
            session_id, game_type.value, self.difficulty.name, self.harmony, self.base_success_chance
        )

    def _resolve_time_limit(self) -> float:
        try:
            return self.config.difficulty_settings(self.difficulty).time_limit
        except ConfigurationMissingError as e:
            logger.warning("%s; using default time limit", e)
            return default_difficulty_settings(self.difficulty).time_limit

    def _resolve_tuning(self):
        try:
            return self.config.minigame_tuning(self.game_type, self.difficulty)
        except ConfigurationMissingError as e:
            logger.warning("%s; using default tuning", e)
            return default_minigame_tuning(self.game_type, self.difficulty)

    @property
    def predicted_offspring(self) -> VisualGeneticData:
        return self.prediction.offspring

    @property
    def matches_found(self) -> int:
        return self.minigame.perfect_matches()

    @property
    def total_targets(self) -> int:
        return self.minigame.total_targets

    @property
    def is_finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            expected = ", ".join(s.value for s in states)
            raise InvalidStateError(
                f"Session {self.session_id} is {self.state.value}, expected {expected}"
            )

    def begin_tutorial(self) -> None:
        self._require(SessionState.SETUP)
        self.state = SessionState.TUTORIAL

    def start(self) -> None:
        self._require(SessionState.SETUP, SessionState.TUTORIAL)
        self.state = SessionState.PLAYING
        logger.debug("Session %s playing", self.session_id)

    def pause(self) -> None:
        self._require(SessionState.PLAYING)
        self.state = SessionState.PAUSED

    def resume(self) -> None:
        self._require(SessionState.PAUSED)
        self.state = SessionState.PLAYING

    def _unlock_bonus(self) -> None:
        self.bonus_unlocked = True
        self.potential_offspring_count += 1
        logger.info(
            "Session %s unlocked skill bonus: %d potential offspring",
            self.session_id, self.potential_offspring_count
        )

    def claim_skill_bonus(self) -> None:
        """
        Claim the one-time skill bonus (+1 potential offspring).

        Raises:
            InvalidStateError: If the bonus was already claimed or the session is over
        """
        if self.is_finished:
            raise InvalidStateError(f"Session {self.session_id} is already {self.state.value}")
        if self.bonus_unlocked:
            raise InvalidStateError(f"Skill bonus already claimed for session {self.session_id}")
        self._unlock_bonus()

    def tick(self, delta_time: float, skill_performance: Optional[float] = None) -> None:
        """
        Advance the session by one frame.

        Args:
            delta_time: Seconds since the last tick
            skill_performance: Skill sample (0.0 to 1.0); read from the
                mini-game when None

        Raises:
            InvalidStateError: If the session is not PLAYING
            ValidationError: If delta_time is negative or the skill sample is out of range
        """
        self._require(SessionState.PLAYING)
        if delta_time < 0:
            raise ValidationError(f"delta_time must be non-negative, got {delta_time}")

        self.elapsed += delta_time
        self.minigame.update(delta_time)

        if skill_performance is None:
            skill_performance = self.minigame.skill_performance()
        elif not (0.0 <= skill_performance <= 1.0):
            raise ValidationError(f"skill_performance must be between 0.0 and 1.0, got {skill_performance}")

        self.skill_performance = skill_performance
        self.skill_bonus = skill_bonus_for(skill_performance)
        self.time_bonus = time_bonus_for(self.elapsed, self.time_limit)
        self.success_multiplier = self.skill_bonus * self.time_bonus * self.harmony
        self.final_success_chance = max(0.0, min(1.0, self.base_success_chance * self.success_multiplier))

        if skill_performance > SKILL_BONUS_THRESHOLD and not self.bonus_unlocked:
            self._unlock_bonus()

        logger.debug(
            "Session %s tick: elapsed=%.2f skill=%.2f chance=%.3f",
            self.session_id, self.elapsed, skill_performance, self.final_success_chance
        )

        if self.minigame.is_complete() or self.elapsed >= self.time_limit:
            self.state = SessionState.COMPLETING

    def auto_tick(self, delta_time: float, proficiency: float) -> None:
        """Simulate one player action at the given proficiency, then tick."""
        self._require(SessionState.PLAYING)
        if not (0.0 <= proficiency <= 1.0):
            raise ValidationError(f"proficiency must be between 0.0 and 1.0, got {proficiency}")
        self.minigame.auto_play(proficiency)
        self.tick(delta_time)

    def finalize(self) -> BreedingResult:
        """
        Roll the final success chance and close the session.

        Returns:
            BreedingResult for this session

        Raises:
            InvalidStateError: If the session is not COMPLETING
        """
        self._require(SessionState.COMPLETING)
        success = bool(self.rng.random() < self.final_success_chance)
        self.state = SessionState.COMPLETED if success else SessionState.FAILED
        self.result = self._build_result(success)
        logger.info(
            "Session %s %s: chance=%.3f offspring=%d",
            self.session_id, self.state.value.lower(),
            self.final_success_chance, self.result.offspring_count
        )
        return self.result

    def cancel(self) -> BreedingResult:
        """
        Abort the session before it completes.

        Parent phenotype references are released.

        Returns:
            Failed BreedingResult
        """
        self._require(
            SessionState.SETUP, SessionState.TUTORIAL, SessionState.PLAYING, SessionState.PAUSED
        )
        self.state = SessionState.FAILED
        self.cancelled = True
        self.parent1 = None
        self.parent2 = None
        self.result = self._build_result(False)
        logger.info("Session %s cancelled", self.session_id)
        return self.result

    def _build_result(self, success: bool) -> BreedingResult:
        score = self.minigame.current_score()
        perfect_breeding = success and self.final_success_chance > PERFECT_BREEDING_CHANCE
        return BreedingResult(
            session_id=self.session_id,
            request_id=self.request_id,
            game_type=self.game_type.value,
            success=success,
            final_score=score,
            skill_multiplier=self.skill_bonus,
            time_bonus=time_bonus_for(self.elapsed, self.time_limit),
            perfection_bonus=PERFECTION_BONUS if self.minigame.all_targets_found() else 1.0,
            offspring_count=self.potential_offspring_count if success else 0,
            bonus_traits_earned=self.bonus_unlocked,
            perfect_breeding=perfect_breeding,
            genetic_quality_bonus=self.success_multiplier,
            experience_gained=int(round(score * EXPERIENCE_PER_POINT)),
            level_up=False,
            new_ability_unlocked=perfect_breeding
        )
