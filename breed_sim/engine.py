"""Breeding engine: request queue, per-frame session ticking and offspring registration."""

import json
import logging
import sqlite3
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from .config import BreedingConfig, default_config, load_config
from .database import create_database
from .exceptions import DatabaseError, InvalidStateError, NotFoundError, ValidationError
from .forecast import CompatibilityAnalysis, OffspringForecast, analyze_compatibility, forecast_offspring
from .inheritance import blend_offspring
from .models.genome import Genome
from .models.minigame import MiniGameType
from .models.phenotype import GeneticMarkerFlags
from .models.personality import (
    calculate_compatibility, create_offspring_personality, is_viable_match
)
from .models.registry import CreatureRecord, CreatureRegistry
from .projector import project_genome
from .session import BreedingResult, BreedingSession, SessionState

logger = logging.getLogger(__name__)


@dataclass
class BreedingRequest:
    """A submitted (parent, parent, game type) request and its progress."""
    request_id: str
    parent1_id: str
    parent2_id: str
    game_type: MiniGameType
    seed: int
    session: Optional[BreedingSession] = None
    result: Optional[BreedingResult] = None


class BreedingEngine:
    """Owns the creature registry and advances every active breeding session once per tick."""

    def __init__(
        self,
        config: Optional[BreedingConfig] = None,
        registry: Optional[CreatureRegistry] = None,
        db_path: Optional[str] = None
    ):
        """
        Initialize breeding engine.

        Args:
            config: Breeding configuration; built-in defaults if None
            registry: Creature lookup; an empty registry if None
            db_path: Optional SQLite path; breeding history is only recorded when given
        """
        self.config = config or default_config()
        self.registry = registry if registry is not None else CreatureRegistry()
        self.db_path = db_path
        self.db_conn: Optional[sqlite3.Connection] = None
        self.requests: Dict[str, BreedingRequest] = {}
        self._seed_sequence = np.random.SeedSequence(self.config.seed)
        self._request_counter = 0

    @classmethod
    def from_config(cls, config_path: str, db_path: Optional[str] = None) -> 'BreedingEngine':
        """
        Create an engine from a YAML/JSON configuration file.

        Args:
            config_path: Path to configuration file
            db_path: Optional path for the breeding-history database

        Returns:
            BreedingEngine (call ``initialize()`` before submitting requests)
        """
        return cls(load_config(config_path), db_path=db_path)

    def initialize(self) -> None:
        """Open the history database and register the configured creatures."""
        if self.db_path is not None and self.db_conn is None:
            self.db_conn = create_database(self.db_path)

        for creature_config in self.config.creatures:
            record = CreatureRecord.from_config(creature_config)
            if record.creature_id not in self.registry:
                self.registry.add(record)

        logger.info(
            "Breeding engine ready: %d creatures, history=%s",
            len(self.registry), self.db_path or "off"
        )

    def close(self) -> None:
        if self.db_conn is not None:
            self.db_conn.close()
            self.db_conn = None

    def _next_seed(self) -> int:
        child = self._seed_sequence.spawn(1)[0]
        return int(child.generate_state(1)[0])

    def check_compatibility(self, parent1_id: str, parent2_id: str) -> float:
        """
        Genetic compatibility of two registered creatures.

        Mismatched species score 0.0. Creatures with genomes use genome
        compatibility; phenotype-only creatures of the same species score 1.0.

        Raises:
            NotFoundError: If either creature is unknown
        """
        record1 = self.registry.get(parent1_id)
        record2 = self.registry.get(parent2_id)
        if record1.species_id != record2.species_id:
            return 0.0
        if record1.genome is not None and record2.genome is not None:
            return Genome.compatibility(record1.genome, record2.genome)
        return 1.0

    def _genome_pair(self, parent1_id: str, parent2_id: str) -> Tuple[Genome, Genome]:
        genomes = []
        for creature_id in (parent1_id, parent2_id):
            genome = self.registry.genome(creature_id)
            if genome is None:
                raise ValidationError(f"Creature {creature_id} has no genome to analyze")
            genomes.append(genome)
        return genomes[0], genomes[1]

    def forecast(self, parent1_id: str, parent2_id: str) -> OffspringForecast:
        """
        Forecast the offspring of two genome-carrying creatures without breeding them.

        Raises:
            NotFoundError: If either creature is unknown
            ValidationError: If either creature has no genome, or the species differ
        """
        genome1, genome2 = self._genome_pair(parent1_id, parent2_id)
        return forecast_offspring(genome1, genome2, mutation_rate=self.config.mutation_rate)

    def compatibility_report(self, parent1_id: str, parent2_id: str) -> CompatibilityAnalysis:
        """Compatibility breakdown of two genome-carrying creatures (see ``forecast``)."""
        return analyze_compatibility(*self._genome_pair(parent1_id, parent2_id))

    def submit_request(
        self,
        parent1_id: str,
        parent2_id: str,
        game_type: Union[MiniGameType, str] = MiniGameType.RANDOM
    ) -> str:
        """
        Queue a breeding attempt.

        Incompatible pairs (zero genetic compatibility, or personalities below
        the minimum breeding compatibility) get an immediate failed result
        instead of a session.

        Args:
            parent1_id: First parent creature id
            parent2_id: Second parent creature id
            game_type: Mini-game to play, or RANDOM

        Returns:
            Request id to poll

        Raises:
            NotFoundError: If either parent is unknown
            ValidationError: If the parents are the same creature or the game type is unknown
        """
        if parent1_id == parent2_id:
            raise ValidationError(f"Creature {parent1_id} cannot breed with itself")
        if not isinstance(game_type, MiniGameType):
            try:
                game_type = MiniGameType(game_type)
            except ValueError:
                raise ValidationError(f"Unknown mini-game type: {game_type}") from None

        parent1 = self.registry.phenotype(parent1_id)
        parent2 = self.registry.phenotype(parent2_id)

        self._request_counter += 1
        request_id = f"req-{self._request_counter:04d}"
        request = BreedingRequest(
            request_id=request_id,
            parent1_id=parent1_id,
            parent2_id=parent2_id,
            game_type=game_type,
            seed=self._next_seed()
        )
        self.requests[request_id] = request

        compatibility = self.check_compatibility(parent1_id, parent2_id)
        personality1 = self.registry.personality(parent1_id)
        personality2 = self.registry.personality(parent2_id)
        if compatibility == 0.0 or not is_viable_match(personality1, personality2):
            logger.warning(
                "Request %s rejected: %s x %s (genetic=%.2f, personality=%.2f)",
                request_id, parent1_id, parent2_id, compatibility,
                calculate_compatibility(personality1, personality2)
            )
            request.result = BreedingResult(
                session_id=f"rejected-{self._request_counter:04d}",
                request_id=request_id,
                game_type=game_type.value,
                success=False,
                final_score=0.0,
                skill_multiplier=0.0,
                time_bonus=0.0,
                perfection_bonus=1.0,
                offspring_count=0,
                bonus_traits_earned=False,
                perfect_breeding=False,
                genetic_quality_bonus=0.0,
                experience_gained=0
            )
            self._persist_result(request, 'rejected')
            return request_id

        request.session = BreedingSession(
            session_id=f"session-{self._request_counter:04d}",
            parent1=parent1,
            parent2=parent2,
            game_type=game_type,
            seed=request.seed,
            config=self.config,
            request_id=request_id
        )
        logger.info("Request %s queued: %s x %s", request_id, parent1_id, parent2_id)
        return request_id

    def _get_request(self, request_id: str) -> BreedingRequest:
        try:
            return self.requests[request_id]
        except KeyError:
            raise NotFoundError(f"Breeding request {request_id} not found") from None

    def get_session(self, request_id: str) -> Optional[BreedingSession]:
        """Session of a request (None for rejected requests)."""
        return self._get_request(request_id).session

    def poll_result(self, request_id: str) -> Optional[BreedingResult]:
        """Finalized result of a request, or None while it is still running."""
        return self._get_request(request_id).result

    @property
    def active_requests(self) -> List[BreedingRequest]:
        return [r for r in self.requests.values() if r.result is None]

    def tick(self, delta_time: float, proficiency: Optional[float] = None) -> List[BreedingResult]:
        """
        Advance every active session once.

        Sessions in SETUP move to TUTORIAL (when enabled) or PLAYING; tutorial
        sessions start playing on the next tick. Playing sessions are ticked
        with their mini-game's skill sample, or with a simulated player of the
        given proficiency. Paused sessions are left alone.

        Sessions that were finished or cancelled directly, outside the engine,
        have their result adopted and recorded.

        Args:
            delta_time: Seconds since the last tick
            proficiency: Simulated player proficiency (0.0 to 1.0), or None

        Returns:
            Results finalized during this tick
        """
        finalized = []
        for request in self.active_requests:
            session = request.session
            if session.is_finished:
                finalized.append(self._adopt(request, session))
                continue
            if session.state == SessionState.SETUP:
                if self.config.tutorial_enabled:
                    session.begin_tutorial()
                else:
                    session.start()
            elif session.state == SessionState.TUTORIAL:
                session.start()
            elif session.state == SessionState.PLAYING:
                if proficiency is None:
                    session.tick(delta_time)
                else:
                    session.auto_tick(delta_time, proficiency)

            if session.state == SessionState.COMPLETING:
                finalized.append(self._complete(request, session.finalize()))
        return finalized

    def pause(self, request_id: str) -> None:
        self._running_session(request_id).pause()

    def resume(self, request_id: str) -> None:
        self._running_session(request_id).resume()

    def cancel(self, request_id: str) -> BreedingResult:
        """
        Cancel a running request.

        Returns:
            Failed BreedingResult

        Raises:
            NotFoundError: If the request is unknown
            InvalidStateError: If the request already has a result
        """
        request = self._get_request(request_id)
        session = self._running_session(request_id)
        session.cancel()
        return self._adopt(request, session)

    def _running_session(self, request_id: str) -> BreedingSession:
        request = self._get_request(request_id)
        if request.session is None:
            raise InvalidStateError(f"Request {request_id} was rejected and has no session")
        return request.session

    def _adopt(self, request: BreedingRequest, session: BreedingSession) -> BreedingResult:
        if session.cancelled:
            request.result = session.result
            self._persist_result(request, 'cancelled')
            return request.result
        return self._complete(request, session.result)

    def _complete(self, request: BreedingRequest, result: BreedingResult) -> BreedingResult:
        if result.success:
            offspring_ids = self._register_offspring(request, result.offspring_count)
            result = replace(result, offspring_ids=tuple(offspring_ids))
        request.result = result
        self._persist_result(request, 'completed' if result.success else 'failed')
        return result

    def _register_offspring(self, request: BreedingRequest, count: int) -> List[str]:
        """
        Create and register offspring records for a successful session.

        With parent genomes the offspring genome is bred and its phenotype is
        projected from it, keeping every special marker either parent carries
        even when the bred marker genes fall below the expression threshold.
        Otherwise the first offspring is the session's predicted phenotype
        and siblings are fresh blends.
        """
        session = request.session
        species_id = self.registry.species(request.parent1_id)
        genome1 = self.registry.genome(request.parent1_id)
        genome2 = self.registry.genome(request.parent2_id)
        personality1 = self.registry.personality(request.parent1_id)
        personality2 = self.registry.personality(request.parent2_id)

        markers = GeneticMarkerFlags(session.parent1.special_markers | session.parent2.special_markers)
        offspring_ids = []
        for index in range(count):
            creature_id = f"{session.session_id}-o{index + 1}"
            genome = None
            phenotype = None
            if genome1 is not None and genome2 is not None:
                genome = Genome.create_offspring(
                    genome1, genome2, session.rng,
                    mutation_rate=self.config.mutation_rate,
                    genome_id=creature_id
                )
                phenotype = project_genome(genome).with_changes(special_markers=markers)
            elif index == 0:
                phenotype = session.predicted_offspring
            else:
                phenotype = blend_offspring(session.parent1, session.parent2, session.rng)

            personality, _ = create_offspring_personality(
                personality1, personality2, session.rng,
                mutation_rate=self.config.personality_mutation_rate
            )
            self.registry.add(CreatureRecord(
                creature_id=creature_id,
                species_id=species_id,
                phenotype=phenotype,
                personality=personality,
                genome=genome
            ))
            offspring_ids.append(creature_id)

        logger.info("Registered %d offspring for %s", len(offspring_ids), request.request_id)
        return offspring_ids

    def _persist_result(self, request: BreedingRequest, status: str) -> None:
        """Record a finished request in the history database, when one is open."""
        if self.db_conn is None:
            return

        result = request.result
        session = request.session
        try:
            cursor = self.db_conn.cursor()
            cursor.execute("""
                INSERT INTO breeding_sessions (
                    session_id, request_id, parent1_id, parent2_id, game_type, difficulty,
                    seed, status, success, final_score, final_success_chance, offspring_count,
                    bonus_traits_earned, perfect_breeding, experience_gained, config
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                result.session_id,
                request.request_id,
                request.parent1_id,
                request.parent2_id,
                result.game_type,
                session.difficulty.name if session else None,
                request.seed,
                status,
                int(result.success),
                float(result.final_score),
                float(session.final_success_chance) if session else 0.0,
                result.offspring_count,
                int(result.bonus_traits_earned),
                int(result.perfect_breeding),
                result.experience_gained,
                json.dumps(self.config.raw_config)
            ))

            rows = []
            for creature_id in result.offspring_ids:
                record = self.registry.get(creature_id)
                phenotype = self.registry.phenotype(creature_id)
                rows.append((
                    creature_id, result.session_id, record.species_id,
                    phenotype.strength, phenotype.vitality, phenotype.agility,
                    phenotype.intelligence, phenotype.adaptability, phenotype.social,
                    int(phenotype.special_markers),
                    record.genome.genome_id if record.genome else None,
                    record.genome.generation if record.genome else None
                ))
            cursor.executemany("""
                INSERT INTO offspring (
                    creature_id, session_id, species_id,
                    strength, vitality, agility, intelligence, adaptability, social,
                    special_markers, genome_id, generation
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, rows)
            self.db_conn.commit()
        except sqlite3.Error as e:
            self.db_conn.rollback()
            raise DatabaseError(f"Failed to record breeding session {result.session_id}: {e}") from e
