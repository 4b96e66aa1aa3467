"""Tests for genome-level breeding forecasts and compatibility analysis."""

import pytest

from breed_sim.exceptions import ValidationError
from breed_sim.forecast import (
    CompatibilityAnalysis, analyze_compatibility, explain_compatibility, forecast_offspring, forecast_trait,
    genetic_rarity
)
from breed_sim.models.genome import Genome, make_gene
from breed_sim.models.phenotype import STAT_ORDER
from breed_sim.models.trait import Chromosome, Mutation


def _mutation(n, rarity=0.4):
    return Mutation(
        mutation_id=f'm{n}', name='Spiked', target_gene_id='strength',
        effect_strength=0.1, is_beneficial=True, rarity=rarity, generation=1
    )


def _genome(value, dominance=0.5, species='drake', extra=(), **kwargs):
    genes = [make_gene(stat.value, value, dominance=dominance) for stat in STAT_ORDER]
    genes.extend(extra)
    return Genome(species, [Chromosome(genes=genes)], **kwargs)


def test_forecast_trait_clear_dominance():
    """Test a clearly dominant parent contributes three quarters of the value."""
    forecast = forecast_trait(
        'strength', make_gene('strength', 0.8, dominance=0.9), make_gene('strength', 0.4, dominance=0.3), 0.02
    )
    assert forecast.predicted_value == pytest.approx(0.7)
    assert forecast.dominant_parent == 1
    assert forecast.is_dominant
    assert forecast.parent1_contribution == pytest.approx(0.75)
    assert forecast.parent2_contribution == pytest.approx(0.25)
    assert forecast.confidence == pytest.approx(0.85 + 0.6 * 0.2)
    assert forecast.mutation_chance == 0.02

    reverse = forecast_trait(
        'strength', make_gene('strength', 0.8, dominance=0.2), make_gene('strength', 0.4, dominance=0.9), 0.02
    )
    assert reverse.predicted_value == pytest.approx(0.5)
    assert reverse.dominant_parent == 2


def test_forecast_trait_codominant():
    """Test close dominance averages the parents with baseline confidence."""
    forecast = forecast_trait(
        'agility', make_gene('agility', 0.8, dominance=0.5), make_gene('agility', 0.4, dominance=0.6), 0.0
    )
    assert forecast.predicted_value == pytest.approx(0.6)
    assert forecast.dominant_parent == 0
    assert not forecast.is_dominant
    assert forecast.confidence == pytest.approx(0.87)


def test_forecast_trait_missing_parent_gene():
    """Test a parent without the gene counts as an average copy."""
    forecast = forecast_trait('glow', None, make_gene('glow', 1.0), 0.02)
    assert forecast.parent1_value == 0.5
    assert forecast.predicted_value == pytest.approx(0.75)


def test_forecast_confidence_capped():
    """Test accuracy plus the dominance bonus never exceeds 1.0."""
    forecast = forecast_trait(
        'strength', make_gene('strength', 1.0, dominance=1.0), make_gene('strength', 0.0, dominance=0.0),
        0.02, accuracy=0.95
    )
    assert forecast.confidence == 1.0


def test_forecast_offspring_similar_parents():
    """Test matching parents give no vigor, no stat gain and baseline odds."""
    glow = make_gene('bioluminescent', 1.0)
    forecast = forecast_offspring(_genome(0.6), _genome(0.6, extra=[glow]), mutation_rate=0.05)
    assert len(forecast.traits) == 7
    assert forecast.trait('bioluminescent').predicted_value == pytest.approx(0.75)
    assert forecast.trait('missing') is None
    assert forecast.superior_stats_probability == pytest.approx(0.0)
    assert forecast.hybrid_vigor_probability == pytest.approx(0.0)
    assert forecast.rare_trait_probability == pytest.approx(0.1)
    assert forecast.mutation_probability == pytest.approx(0.05)
    assert forecast.confidence == pytest.approx(0.85)
    assert forecast.probability_distribution() == {
        'rare_traits': forecast.rare_trait_probability,
        'superior_stats': forecast.superior_stats_probability,
        'mutations': forecast.mutation_probability,
        'hybrid_vigor': forecast.hybrid_vigor_probability,
    }


def test_forecast_offspring_dominant_parent():
    """Test a strong dominant parent lifts the forecast above the parents' average."""
    forecast = forecast_offspring(_genome(0.8, dominance=0.9), _genome(0.4, dominance=0.2))
    assert all(t.dominant_parent == 1 for t in forecast.traits)
    assert forecast.superior_stats_probability == pytest.approx(0.2)
    assert forecast.hybrid_vigor_probability == pytest.approx(0.4 * 0.8)
    assert forecast.confidence == pytest.approx(0.85 + 0.7 * 0.2)


def test_forecast_rare_traits_from_mutations():
    """Test parent mutation rarity raises the rare-trait probability."""
    carrier = _genome(0.6, mutations=[_mutation(n) for n in range(3)])
    assert genetic_rarity(carrier) == pytest.approx(0.3)
    assert genetic_rarity(_genome(0.6, mutations=[_mutation(n, rarity=1.0) for n in range(5)])) == 1.0
    forecast = forecast_offspring(carrier, _genome(0.6))
    assert forecast.rare_trait_probability == pytest.approx(0.1 + 0.3 * 0.3)


def test_forecast_species_mismatch():
    """Test forecasts across species are refused."""
    with pytest.raises(ValidationError):
        forecast_offspring(_genome(0.6), _genome(0.6, species='wyvern'))


def test_forecast_is_deterministic():
    """Test the same pair always gets the same forecast."""
    p1 = _genome(0.8, dominance=0.9)
    p2 = _genome(0.3, dominance=0.6)
    assert forecast_offspring(p1, p2) == forecast_offspring(p1, p2)


def test_compatibility_similar_healthy_parents():
    """Test near-identical healthy parents: strong synergy and health, low diversity."""
    analysis = analyze_compatibility(
        _genome(0.9), _genome(0.9, generation=2, parent_ids=('a', 'b'))
    )
    assert analysis.genetic_diversity == pytest.approx(0.0)
    assert analysis.trait_synergy == pytest.approx(0.81)
    assert analysis.health_compatibility == 1.0
    assert analysis.environmental_suitability == pytest.approx(0.9)
    assert analysis.lineage_compatibility == 1.0
    assert analysis.mutation_potential == 0.5
    assert analysis.overall == pytest.approx(0.81 * 0.25 + 0.2 + 0.9 * 0.15 + 0.1)
    assert analysis.explanation == (
        "Low genetic diversity, Strong trait synergy, Excellent health compatibility"
    )


def test_compatibility_diverse_parents():
    """Test opposite parents with mutations: high diversity and mutation potential."""
    analysis = analyze_compatibility(
        _genome(1.0, dominance=0.9, mutations=[_mutation(n) for n in range(3)]),
        _genome(0.0, dominance=0.1)
    )
    assert analysis.genetic_diversity == pytest.approx(0.9)
    assert analysis.trait_synergy == 0.5
    assert analysis.health_compatibility == pytest.approx(0.7)
    assert analysis.lineage_compatibility == 0.7
    assert analysis.mutation_potential == pytest.approx(0.75)
    assert analysis.overall == pytest.approx(0.27 + 0.125 + 0.14 + 0.075 + 0.07)
    assert analysis.explanation == "Excellent genetic diversity, High mutation potential"


@pytest.mark.parametrize('generations,expected', [
    ((1, 1), 0.7),
    ((1, 3), 1.0),
    ((1, 4), 0.9),
    ((1, 20), 0.0),
])
def test_lineage_compatibility(generations, expected):
    """Test lineage mixing is best one or two generations apart."""
    genomes = [
        _genome(0.5, generation=g, parent_ids=('a', 'b') if g > 1 else ())
        for g in generations
    ]
    assert analyze_compatibility(*genomes).lineage_compatibility == pytest.approx(expected)


def test_compatibility_species_mismatch():
    """Test mismatched species get a zeroed analysis."""
    analysis = analyze_compatibility(_genome(0.9), _genome(0.9, species='wyvern'))
    assert analysis.overall == 0.0
    assert analysis.genetic_diversity == 0.0
    assert analysis.explanation == "Different species cannot breed"


@pytest.mark.parametrize('changes,expected', [
    ({}, "Standard compatibility"),
    ({'health_compatibility': 0.3}, "Health concerns"),
    ({'genetic_diversity': 0.85, 'trait_synergy': 0.75}, "Excellent genetic diversity, Strong trait synergy"),
])
def test_explain_compatibility(changes, expected):
    """Test the summary names only the notable factors."""
    factors = dict(
        genetic_diversity=0.5, trait_synergy=0.5, health_compatibility=0.6,
        environmental_suitability=0.5, lineage_compatibility=0.7, mutation_potential=0.5,
        overall=0.5, explanation=''
    )
    factors.update(changes)
    assert explain_compatibility(CompatibilityAnalysis(**factors)) == expected
