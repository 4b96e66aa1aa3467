"""Derive compact gameplay-facing phenotypes from genomes and parent phenotypes.

Pure functions only; a Genome stays the single source of truth and these
structures are recomputed on demand.
"""

from dataclasses import replace
from typing import List

import numpy as np

from .inheritance import blend_offspring
from .models.genome import Genome
from .models.personality import PersonalityGenetics, TRAIT_ORDER, calculate_personality_fitness
from .models.phenotype import (
    DEFAULT_PRIMARY_COLOR, DEFAULT_SECONDARY_COLOR, MAX_STAT_TOTAL, STAT_ORDER,
    GeneticMarkerFlags, StatType, VisualGeneticData, popcount
)
from .models.trait import TraitExpression, TraitType


MARKER_EXPRESSION_THRESHOLD = 0.5
MARKER_APPEAL = 0.1

DESCRIPTOR_LABELS = {
    StatType.STRENGTH: "Powerful",
    StatType.VITALITY: "Hardy",
    StatType.AGILITY: "Swift",
    StatType.INTELLIGENCE: "Brilliant",
    StatType.ADAPTABILITY: "Adaptive",
    StatType.SOCIAL: "Charismatic",
}


def _to_stat(value: float) -> int:
    return int(round(max(0.0, min(1.0, value)) * 100))


def project_genome(genome: Genome) -> VisualGeneticData:
    """
    Project a genome onto the compact phenotype.

    Stat genes are matched by name (``strength`` ... ``social``) and scaled to
    0-100; stats without a gene default to 50. A gene named after a special
    marker sets that marker when it expresses at least 0.5. The primary and
    secondary colours come from the two strongest expressions.

    Args:
        genome: Source genome

    Returns:
        VisualGeneticData derived from the genome's active genes
    """
    expressions = genome.expression_map()
    stats = {
        stat: _to_stat(expressions[stat.value]) if stat.value in expressions else 50
        for stat in STAT_ORDER
    }

    markers = GeneticMarkerFlags.NONE
    for flag in GeneticMarkerFlags:
        if flag == GeneticMarkerFlags.NONE:
            continue
        if expressions.get(flag.name.lower(), 0.0) >= MARKER_EXPRESSION_THRESHOLD:
            markers |= flag

    ranked: List[TraitExpression] = sorted(
        genome.trait_expressions, key=lambda e: e.value, reverse=True
    )
    primary = ranked[0].color if ranked else DEFAULT_PRIMARY_COLOR
    secondary = ranked[1].color if len(ranked) > 1 else DEFAULT_SECONDARY_COLOR

    return VisualGeneticData.from_stats(
        stats, special_markers=markers, primary_color=primary, secondary_color=secondary
    )


def project_personality(genome: Genome) -> PersonalityGenetics:
    """
    Founder personality genetics from a genome's personality genes.

    Genes of type PERSONALITY named after a trait (e.g. ``curiosity``) set that
    trait; the rest stay at 50. Parent influence is the founder 500/500 split.
    """
    values = {}
    for gene in genome.genes:
        if gene.trait_type != TraitType.PERSONALITY or not gene.is_active:
            continue
        values[gene.gene_id.lower()] = _to_stat(gene.expressed_value())

    founder = PersonalityGenetics(
        **{trait.value: values.get(trait.value, 50) for trait in TRAIT_ORDER}
    )
    return replace(founder, fitness=calculate_personality_fitness(founder))


def blend_phenotypes(
    parent1: VisualGeneticData,
    parent2: VisualGeneticData,
    rng: np.random.Generator
) -> VisualGeneticData:
    """Offspring phenotype straight from two parent phenotypes (no genome modelled)."""
    return blend_offspring(parent1, parent2, rng)


def genetic_descriptor(phenotype: VisualGeneticData) -> str:
    """
    Label for the creature's highest stat.

    Ties go to the stat declared first (Strength, Vitality, Agility,
    Intelligence, Adaptability, Social).
    """
    best = STAT_ORDER[0]
    for stat in STAT_ORDER[1:]:
        if phenotype.get_stat(stat) > phenotype.get_stat(best):
            best = stat
    return DESCRIPTOR_LABELS[best]


def rarity_score(phenotype: VisualGeneticData) -> float:
    """How far the stat total sits above average: 0.0 at 300 or below, 1.0 at 600."""
    return max(0.0, min(1.0, (phenotype.total() - 300) / (MAX_STAT_TOTAL - 300)))


def visual_appeal(phenotype: VisualGeneticData) -> float:
    return rarity_score(phenotype) + popcount(phenotype.special_markers) * MARKER_APPEAL
