"""Tests for the compact phenotype model and the phenotype projector."""

import numpy as np
import pytest

from breed_sim.exceptions import ValidationError
from breed_sim.inheritance import blend_offspring
from breed_sim.models.genome import Genome, make_gene
from breed_sim.models.phenotype import (
    Color, GeneticMarkerFlags, StatType, VisualGeneticData, popcount
)
from breed_sim.models.trait import Chromosome, TraitExpression, TraitType
from breed_sim.projector import (
    blend_phenotypes, genetic_descriptor, project_genome, project_personality,
    rarity_score, visual_appeal
)


def _uniform(value, **kwargs):
    return VisualGeneticData(
        strength=value, vitality=value, agility=value,
        intelligence=value, adaptability=value, social=value, **kwargs
    )


@pytest.mark.parametrize('value', [-1, 101])
def test_stat_out_of_range(value):
    """Test stats must be between 0 and 100."""
    with pytest.raises(ValidationError):
        VisualGeneticData(strength=value)


def test_stat_must_be_integer():
    """Test fractional stats are rejected."""
    with pytest.raises(ValidationError):
        VisualGeneticData(agility=50.5)


def test_numpy_integers_accepted():
    """Test numpy integer stats are coerced to int."""
    phenotype = VisualGeneticData(vitality=np.int64(70))
    assert phenotype.vitality == 70
    assert type(phenotype.vitality) is int


def test_phenotype_is_immutable():
    """Test phenotypes are frozen snapshots."""
    phenotype = VisualGeneticData()
    with pytest.raises(AttributeError):
        phenotype.strength = 90


def test_total_and_markers():
    """Test stat total and marker helpers."""
    markers = GeneticMarkerFlags.BIOLUMINESCENT | GeneticMarkerFlags.REGENERATION
    phenotype = VisualGeneticData(strength=80, social=70, special_markers=markers)
    assert phenotype.total() == 80 + 70 + 4 * 50
    assert phenotype.marker_count() == 2
    assert phenotype.has_marker(GeneticMarkerFlags.REGENERATION)
    assert not phenotype.has_marker(GeneticMarkerFlags.NIGHT_VISION)
    assert popcount(GeneticMarkerFlags(255)) == 8


def test_color_validation():
    """Test colour components must be in [0, 1]."""
    with pytest.raises(ValidationError):
        VisualGeneticData(primary_color=(1.2, 0.0, 0.0, 1.0))


def test_phenotype_from_config():
    """Test building a phenotype from plain configuration."""
    phenotype = VisualGeneticData.from_config({
        'strength': 90,
        'special_markers': ['bioluminescent', 'PACK_LEADER'],
        'primary_color': [0.1, 0.2, 0.3, 1.0]
    })
    assert phenotype.strength == 90
    assert phenotype.intelligence == 50
    assert phenotype.special_markers == GeneticMarkerFlags.BIOLUMINESCENT | GeneticMarkerFlags.PACK_LEADER
    assert phenotype.primary_color == Color(0.1, 0.2, 0.3, 1.0)


def test_phenotype_from_config_unknown_marker():
    """Test unknown marker names are rejected."""
    with pytest.raises(ValidationError):
        VisualGeneticData.from_config({'special_markers': ['LASER_EYES']})


def test_project_genome_stats_and_markers():
    """Test stat genes scale to 0-100 and marker genes set flags."""
    genome = Genome('drake', [Chromosome(genes=[
        make_gene('strength', 0.8),
        make_gene('agility', 0.35),
        make_gene('bioluminescent', 0.9, trait_type=TraitType.MARKER),
        make_gene('night_vision', 0.3, trait_type=TraitType.MARKER),
    ])])
    phenotype = project_genome(genome)
    assert phenotype.strength == 80
    assert phenotype.agility == 35
    assert phenotype.vitality == 50
    assert phenotype.special_markers == GeneticMarkerFlags.BIOLUMINESCENT


def test_project_genome_colours_from_strongest_traits():
    """Test primary/secondary colours come from the two strongest expressions."""
    strongest = make_gene('bioluminescent', 0.9, trait_type=TraitType.MARKER)
    second = make_gene('strength', 0.8)
    genome = Genome('drake', [Chromosome(genes=[make_gene('social', 0.2), second, strongest])])
    phenotype = project_genome(genome)
    assert phenotype.primary_color == TraitExpression.from_gene(strongest).color
    assert phenotype.secondary_color == TraitExpression.from_gene(second).color


def test_project_genome_ignores_inactive_genes():
    """Test inactive stat genes leave the default stat."""
    genome = Genome('drake', [Chromosome(genes=[make_gene('strength', 0.9, is_active=False)])])
    phenotype = project_genome(genome)
    assert phenotype.strength == 50


def test_project_personality():
    """Test personality genes set founder personality traits."""
    genome = Genome('drake', [Chromosome(genes=[
        make_gene('curiosity', 0.8, trait_type=TraitType.PERSONALITY),
        make_gene('loyalty', 0.9, trait_type=TraitType.PHYSICAL),
    ])])
    personality = project_personality(genome)
    assert personality.curiosity == 80
    assert personality.loyalty == 50
    assert personality.parent1_influence == 500
    assert personality.parent2_influence == 500
    assert personality.fitness == pytest.approx(1.0 - (30 / 8) / 100)


def test_blend_phenotypes_matches_inheritance():
    """Test direct blending is the inheritance engine's blend."""
    p1 = _uniform(60, special_markers=GeneticMarkerFlags.CAMOUFLAGE_GENE)
    p2 = _uniform(80)
    a = blend_phenotypes(p1, p2, np.random.Generator(np.random.PCG64(3)))
    b = blend_offspring(p1, p2, np.random.Generator(np.random.PCG64(3)))
    assert a == b


@pytest.mark.parametrize('stats, expected', [
    ({}, 'Powerful'),
    ({'vitality': 90, 'intelligence': 90}, 'Hardy'),
    ({'agility': 70}, 'Swift'),
    ({'intelligence': 99}, 'Brilliant'),
    ({'adaptability': 51, 'social': 51}, 'Adaptive'),
    ({'social': 100}, 'Charismatic'),
])
def test_genetic_descriptor(stats, expected):
    """Test the descriptor follows the highest stat with priority tie-breaks."""
    assert genetic_descriptor(VisualGeneticData(**stats)) == expected


@pytest.mark.parametrize('value, expected', [(0, 0.0), (50, 0.0), (75, 0.5), (100, 1.0)])
def test_rarity_score(value, expected):
    """Test rarity rises linearly from a total of 300 to 600."""
    assert rarity_score(_uniform(value)) == pytest.approx(expected)


def test_visual_appeal():
    """Test appeal adds 0.1 per special marker."""
    markers = GeneticMarkerFlags.HYBRID_VIGOR | GeneticMarkerFlags.RARE_LINEAGE
    assert visual_appeal(_uniform(75, special_markers=markers)) == pytest.approx(0.7)
    assert visual_appeal(_uniform(50)) == 0.0


def test_stat_type_order():
    """Test stat priority order."""
    assert [s.value for s in StatType] == [
        'strength', 'vitality', 'agility', 'intelligence', 'adaptability', 'social'
    ]
