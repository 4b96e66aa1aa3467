"""Genome-level breeding forecasts and compatibility breakdowns.

Both analyses read two parent genomes without breeding them, so they consume
no randomness and the same pair always gets the same answer. Gene values
are expressed values (0.0 to 1.0); dominance is the dominant allele's.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

import numpy as np

from .exceptions import ValidationError
from .inheritance import COMPLEMENTARY_PAIRS
from .models.genome import Genome
from .models.phenotype import STAT_ORDER
from .models.trait import Gene

logger = logging.getLogger(__name__)


DEFAULT_ACCURACY = 0.85
DEFAULT_GENE_VALUE = 0.5
DEFAULT_GENE_DOMINANCE = 0.5
CLEAR_DOMINANCE_GAP = 0.3
DOMINANT_SHARE = 0.75
DOMINANCE_CONFIDENCE_BONUS = 0.2

BASE_RARE_TRAIT_CHANCE = 0.1
PARENT_RARITY_WEIGHT = 0.3
MUTATION_RARITY_WEIGHT = 0.25
HYBRID_VIGOR_WEIGHT = 0.8

COMPATIBILITY_WEIGHTS = {
    'genetic_diversity': 0.3,
    'trait_synergy': 0.25,
    'health_compatibility': 0.2,
    'environmental_suitability': 0.15,
    'lineage_compatibility': 0.1,
}
HEALTHY_VITALITY = 0.7


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def _mean(values: List[float]) -> float:
    return float(np.mean(values)) if values else 0.0


@dataclass(frozen=True)
class TraitForecast:
    """Expected value of one gene in the offspring."""
    gene_id: str
    predicted_value: float
    parent1_value: float
    parent2_value: float
    parent1_dominance: float
    parent2_dominance: float
    parent1_contribution: float
    parent2_contribution: float
    dominant_parent: int  # 0 = co-dominant, 1 or 2 = the clearly dominant parent
    mutation_chance: float
    confidence: float

    @property
    def is_dominant(self) -> bool:
        return self.dominant_parent != 0


@dataclass(frozen=True)
class OffspringForecast:
    """Per-gene forecasts plus outcome probabilities for a genome pair."""
    traits: Tuple[TraitForecast, ...]
    rare_trait_probability: float
    superior_stats_probability: float
    mutation_probability: float
    hybrid_vigor_probability: float
    confidence: float

    def trait(self, gene_id: str) -> Optional[TraitForecast]:
        for forecast in self.traits:
            if forecast.gene_id == gene_id:
                return forecast
        return None

    def probability_distribution(self) -> Dict[str, float]:
        return {
            'rare_traits': self.rare_trait_probability,
            'superior_stats': self.superior_stats_probability,
            'mutations': self.mutation_probability,
            'hybrid_vigor': self.hybrid_vigor_probability,
        }


@dataclass(frozen=True)
class CompatibilityAnalysis:
    """Weighted compatibility factors for a genome pair, with a readable summary."""
    genetic_diversity: float
    trait_synergy: float
    health_compatibility: float
    environmental_suitability: float
    lineage_compatibility: float
    mutation_potential: float
    overall: float
    explanation: str


def _gene_profile(gene: Optional[Gene]) -> Tuple[float, float]:
    if gene is None:
        return DEFAULT_GENE_VALUE, DEFAULT_GENE_DOMINANCE
    return gene.expressed_value(), gene.dominant.dominance


def forecast_trait(
    gene_id: str,
    gene1: Optional[Gene],
    gene2: Optional[Gene],
    mutation_rate: float,
    accuracy: float = DEFAULT_ACCURACY
) -> TraitForecast:
    """
    Forecast one gene from the two parent copies.

    A parent missing the gene counts as an average 0.5 value at 0.5
    dominance. When the dominance gap exceeds 0.3 the dominant parent
    contributes three quarters of the value; otherwise the parents are
    averaged. Confidence starts at ``accuracy`` and rises with the gap.

    Args:
        gene_id: Gene being forecast
        gene1: First parent's copy, or None
        gene2: Second parent's copy, or None
        mutation_rate: Per-gene mutation chance used when breeding
        accuracy: Baseline confidence (0.0 to 1.0)

    Returns:
        TraitForecast
    """
    value1, dominance1 = _gene_profile(gene1)
    value2, dominance2 = _gene_profile(gene2)
    gap = abs(dominance1 - dominance2)

    if gap > CLEAR_DOMINANCE_GAP and dominance1 > dominance2:
        predicted = value1 * DOMINANT_SHARE + value2 * (1 - DOMINANT_SHARE)
        dominant_parent = 1
    elif gap > CLEAR_DOMINANCE_GAP:
        predicted = value2 * DOMINANT_SHARE + value1 * (1 - DOMINANT_SHARE)
        dominant_parent = 2
    else:
        predicted = (value1 + value2) / 2
        dominant_parent = 0

    total = dominance1 + dominance2
    share1 = dominance1 / total if total > 0 else 0.5
    return TraitForecast(
        gene_id=gene_id,
        predicted_value=_clamp01(predicted),
        parent1_value=value1,
        parent2_value=value2,
        parent1_dominance=dominance1,
        parent2_dominance=dominance2,
        parent1_contribution=share1,
        parent2_contribution=1.0 - share1,
        dominant_parent=dominant_parent,
        mutation_chance=_clamp01(mutation_rate),
        confidence=_clamp01(accuracy + gap * DOMINANCE_CONFIDENCE_BONUS),
    )


def _union_gene_ids(genome1: Genome, genome2: Genome) -> List[str]:
    gene_ids = [gene.gene_id for gene in genome1.genes]
    seen = set(gene_ids)
    gene_ids.extend(gene.gene_id for gene in genome2.genes if gene.gene_id not in seen)
    return gene_ids


def _common_genes(genome1: Genome, genome2: Genome) -> List[Tuple[Gene, Gene]]:
    pairs = []
    for gene in genome1.genes:
        other = genome2.get_gene(gene.gene_id)
        if other is not None:
            pairs.append((gene, other))
    return pairs


def genetic_rarity(genome: Genome) -> float:
    """Rarity carried by a genome's mutations: a quarter of each mutation's rarity, capped at 1.0."""
    return _clamp01(sum(m.rarity * MUTATION_RARITY_WEIGHT for m in genome.mutations))


def value_divergence(genome1: Genome, genome2: Genome) -> float:
    """Mean expressed-value gap over shared genes (0.0 with none shared)."""
    return _mean([
        abs(gene1.expressed_value() - gene2.expressed_value())
        for gene1, gene2 in _common_genes(genome1, genome2)
    ])


def _stat_average(values: Dict[str, float]) -> float:
    return _mean([values.get(stat.value, 0.0) for stat in STAT_ORDER])


def forecast_offspring(
    genome1: Genome,
    genome2: Genome,
    mutation_rate: float = 0.02,
    accuracy: float = DEFAULT_ACCURACY
) -> OffspringForecast:
    """
    Forecast the offspring of two genomes.

    Every gene present in either parent is forecast. Outcome probabilities:

    - rare traits: 0.1 plus 0.3 times the parents' combined mutation rarity
    - superior stats: twice the gain of the forecast stat average over the
      parents' stat average (missing stat genes count as 0.0)
    - mutations: mean per-gene mutation chance
    - hybrid vigor: 0.8 times the mean value gap over shared genes

    Args:
        genome1: First parent genome
        genome2: Second parent genome
        mutation_rate: Per-gene mutation chance used when breeding
        accuracy: Baseline per-trait confidence

    Returns:
        OffspringForecast

    Raises:
        ValidationError: If the genomes belong to different species
    """
    if genome1.species_id != genome2.species_id:
        raise ValidationError(
            f"Cannot forecast across species: {genome1.species_id} x {genome2.species_id}"
        )

    traits = tuple(
        forecast_trait(gene_id, genome1.get_gene(gene_id), genome2.get_gene(gene_id), mutation_rate, accuracy)
        for gene_id in _union_gene_ids(genome1, genome2)
    )

    predicted = {t.gene_id.lower(): t.predicted_value for t in traits}
    parent_average = (_stat_average(genome1.expression_map()) + _stat_average(genome2.expression_map())) / 2
    rarity = genetic_rarity(genome1) + genetic_rarity(genome2)

    return OffspringForecast(
        traits=traits,
        rare_trait_probability=_clamp01(BASE_RARE_TRAIT_CHANCE + rarity * PARENT_RARITY_WEIGHT),
        superior_stats_probability=_clamp01((_stat_average(predicted) - parent_average) * 2),
        mutation_probability=_mean([t.mutation_chance for t in traits]),
        hybrid_vigor_probability=_clamp01(value_divergence(genome1, genome2) * HYBRID_VIGOR_WEIGHT),
        confidence=_mean([t.confidence for t in traits]),
    )


def _genetic_diversity(genome1: Genome, genome2: Genome) -> float:
    pairs = _common_genes(genome1, genome2)
    if not pairs:
        return 0.5
    return _mean([
        (abs(g1.expressed_value() - g2.expressed_value()) + abs(g1.dominant.dominance - g2.dominant.dominance)) / 2
        for g1, g2 in pairs
    ])


def _trait_synergy(values1: Dict[str, float], values2: Dict[str, float]) -> float:
    synergies = []
    for stat1, stat2 in COMPLEMENTARY_PAIRS:
        a1, b1 = values1.get(stat1.value, 0.0), values1.get(stat2.value, 0.0)
        a2, b2 = values2.get(stat1.value, 0.0), values2.get(stat2.value, 0.0)
        if min(a1, b1, a2, b2) > 0:
            synergies.append((a1 * b1 + a2 * b2) / 2)
    return _mean(synergies) if synergies else 0.5


def _health_compatibility(genome1: Genome, genome2: Genome, values1, values2) -> float:
    vitality1 = values1.get('vitality', 0.0)
    vitality2 = values2.get('vitality', 0.0)
    bonus = 0.2 if vitality1 > HEALTHY_VITALITY and vitality2 > HEALTHY_VITALITY else 0.0
    return _clamp01(
        (vitality1 + vitality2) / 2 * 0.6 + (genome1.fitness + genome2.fitness) / 2 * 0.4 + bonus
    )


def _lineage_compatibility(genome1: Genome, genome2: Genome) -> float:
    # One or two generations apart mixes lines best
    gap = abs(genome1.generation - genome2.generation)
    if 1 <= gap <= 2:
        return 1.0
    if gap == 0:
        return 0.7
    return _clamp01(1.0 - (gap - 2) * 0.1)


def _mutation_potential(genome1: Genome, genome2: Genome) -> float:
    count = len(genome1.mutations) + len(genome2.mutations)
    bonus = 0.1 + count * 0.05 if count else 0.0
    return _clamp01(0.5 + bonus)


def explain_compatibility(analysis: CompatibilityAnalysis) -> str:
    """Short comma-separated summary of the notable factors."""
    notes = []
    if analysis.genetic_diversity > 0.8:
        notes.append("Excellent genetic diversity")
    elif analysis.genetic_diversity < 0.3:
        notes.append("Low genetic diversity")
    if analysis.trait_synergy > 0.7:
        notes.append("Strong trait synergy")
    if analysis.health_compatibility > 0.8:
        notes.append("Excellent health compatibility")
    elif analysis.health_compatibility < 0.4:
        notes.append("Health concerns")
    if analysis.mutation_potential > 0.7:
        notes.append("High mutation potential")
    return ", ".join(notes) if notes else "Standard compatibility"


def analyze_compatibility(genome1: Genome, genome2: Genome) -> CompatibilityAnalysis:
    """
    Break down how well two genomes would breed.

    Factors (each 0.0 to 1.0):

    - genetic_diversity: mean of value and dominance gaps over shared genes
    - trait_synergy: how strongly each parent pairs its complementary stats
    - health_compatibility: vitality and overall fitness of both parents
    - environmental_suitability: mean adaptability
    - lineage_compatibility: best at one or two generations apart
    - mutation_potential: 0.5, raised by mutations either parent carries

    ``overall`` weights the first five factors 0.3/0.25/0.2/0.15/0.1.
    Mismatched species get all-zero factors.

    Args:
        genome1: First parent genome
        genome2: Second parent genome

    Returns:
        CompatibilityAnalysis
    """
    if genome1.species_id != genome2.species_id:
        return CompatibilityAnalysis(
            genetic_diversity=0.0,
            trait_synergy=0.0,
            health_compatibility=0.0,
            environmental_suitability=0.0,
            lineage_compatibility=0.0,
            mutation_potential=0.0,
            overall=0.0,
            explanation="Different species cannot breed",
        )

    values1 = genome1.expression_map()
    values2 = genome2.expression_map()
    factors = {
        'genetic_diversity': _genetic_diversity(genome1, genome2),
        'trait_synergy': _trait_synergy(values1, values2),
        'health_compatibility': _health_compatibility(genome1, genome2, values1, values2),
        'environmental_suitability': (values1.get('adaptability', 0.0) + values2.get('adaptability', 0.0)) / 2,
        'lineage_compatibility': _lineage_compatibility(genome1, genome2),
    }
    overall = sum(factors[name] * weight for name, weight in COMPATIBILITY_WEIGHTS.items())

    analysis = CompatibilityAnalysis(
        mutation_potential=_mutation_potential(genome1, genome2),
        overall=_clamp01(overall),
        explanation="",
        **factors
    )
    analysis = replace(analysis, explanation=explain_compatibility(analysis))
    logger.debug(
        "Compatibility %s x %s: overall=%.3f (%s)",
        genome1.genome_id, genome2.genome_id, analysis.overall, analysis.explanation
    )
    return analysis
