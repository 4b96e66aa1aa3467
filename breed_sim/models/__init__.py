"""Domain models for breed_sim."""

from .phenotype import VisualGeneticData, GeneticMarkerFlags, StatType, Color
from .trait import Allele, Gene, Chromosome, Mutation, TraitExpression, TraitType
from .genome import Genome
from .personality import PersonalityGenetics, PersonalityTrait
from .minigame import (
    BreedingMiniGame, MiniGameType, GeneMatchingGame, DNASequencingGame,
    TraitBalancingGame, IncubationGame, create_minigame
)
from .registry import CreatureRecord, CreatureRegistry

__all__ = [
    'VisualGeneticData', 'GeneticMarkerFlags', 'StatType', 'Color',
    'Allele', 'Gene', 'Chromosome', 'Mutation', 'TraitExpression', 'TraitType',
    'Genome',
    'PersonalityGenetics', 'PersonalityTrait',
    'BreedingMiniGame', 'MiniGameType', 'GeneMatchingGame', 'DNASequencingGame',
    'TraitBalancingGame', 'IncubationGame', 'create_minigame',
    'CreatureRecord', 'CreatureRegistry',
]
