"""Creature record lookup used by the breeding engine."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from ..exceptions import NotFoundError, ValidationError
from .genome import Genome
from .personality import PersonalityGenetics
from .phenotype import VisualGeneticData

logger = logging.getLogger(__name__)


@dataclass
class CreatureRecord:
    """
    What the breeding engine knows about one creature.

    Either a phenotype or a genome must be present; when only the genome is
    known the phenotype is projected from it on lookup.
    """
    creature_id: str
    species_id: str
    phenotype: Optional[VisualGeneticData] = None
    personality: Optional[PersonalityGenetics] = None
    expressed_personality: Dict[str, int] = field(default_factory=dict)
    genome: Optional[Genome] = None

    def __post_init__(self):
        """Validate creature record."""
        if not self.creature_id:
            raise ValidationError("creature_id must be a non-empty string")
        if self.phenotype is None and self.genome is None:
            raise ValidationError(f"Creature {self.creature_id} needs a phenotype or a genome")
        if self.genome is not None and self.genome.species_id != self.species_id:
            raise ValidationError(
                f"Creature {self.creature_id} is {self.species_id} but its genome is "
                f"{self.genome.species_id}"
            )

    @classmethod
    def from_config(cls, config: Dict) -> 'CreatureRecord':
        """
        Create a founder record from a configuration dictionary.

        Args:
            config: Dictionary with ``creature_id``, ``species_id`` and optional
                ``phenotype``, ``personality`` (expressed trait scores) and
                ``genome`` entries

        Returns:
            CreatureRecord instance
        """
        genome = None
        if 'genome' in config:
            genome = Genome.from_config({'species_id': config['species_id'], **config['genome']})
        phenotype = None
        if 'phenotype' in config:
            phenotype = VisualGeneticData.from_config(config['phenotype'])
        return cls(
            creature_id=str(config['creature_id']),
            species_id=str(config['species_id']),
            phenotype=phenotype,
            expressed_personality=dict(config.get('personality', {})),
            genome=genome
        )


class CreatureRegistry:
    """In-memory id -> CreatureRecord lookup."""

    def __init__(self):
        self._records: Dict[str, CreatureRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, creature_id: str) -> bool:
        return creature_id in self._records

    def __iter__(self) -> Iterator[CreatureRecord]:
        return iter(self._records.values())

    def add(self, record: CreatureRecord) -> None:
        if record.creature_id in self._records:
            raise ValidationError(f"Creature {record.creature_id} is already registered")
        self._records[record.creature_id] = record

    def get(self, creature_id: str) -> CreatureRecord:
        """
        Look up a creature record.

        Raises:
            NotFoundError: If the id is not registered
        """
        try:
            return self._records[creature_id]
        except KeyError:
            raise NotFoundError(f"Creature {creature_id} not found") from None

    def phenotype(self, creature_id: str) -> VisualGeneticData:
        """Phenotype of a creature, projected from its genome when not stored."""
        from ..projector import project_genome

        record = self.get(creature_id)
        if record.phenotype is None:
            record.phenotype = project_genome(record.genome)
            logger.debug("Projected phenotype for %s from genome %s", creature_id, record.genome.genome_id)
        return record.phenotype

    def personality(self, creature_id: str) -> PersonalityGenetics:
        """
        Personality genetics of a creature.

        Founders without stored genetics get them synthesized 50/50 from their
        expressed personality, or from their genome's personality genes.
        """
        from ..projector import project_personality

        record = self.get(creature_id)
        if record.personality is None:
            if record.expressed_personality or record.genome is None:
                record.personality = PersonalityGenetics.from_expressed(record.expressed_personality)
            else:
                record.personality = project_personality(record.genome)
        return record.personality

    def genome(self, creature_id: str) -> Optional[Genome]:
        return self.get(creature_id).genome

    def species(self, creature_id: str) -> str:
        return self.get(creature_id).species_id

