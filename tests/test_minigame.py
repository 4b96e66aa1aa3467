"""Tests for the breeding mini-games."""

import numpy as np
import pytest

from breed_sim.config import (
    DNASequencingTuning, GeneMatchingTuning, IncubationTuning, TraitBalancingTuning,
    default_minigame_tuning
)
from breed_sim.exceptions import ValidationError
from breed_sim.models.minigame import (
    PLAYABLE_GAMES, DNASequencingGame, GeneMatchingGame, IncubationGame, MiniGameType,
    TraitBalancingGame, create_minigame
)
from breed_sim.models.phenotype import STAT_ORDER, StatType, VisualGeneticData


def _rng(seed=3):
    return np.random.Generator(np.random.PCG64(seed))


AVERAGE = VisualGeneticData()


def test_gene_matching_grid_too_small():
    """Test a grid must hold enough pairs."""
    with pytest.raises(ValidationError):
        GeneMatchingGame(GeneMatchingTuning(grid_size=2, matches_required=3), AVERAGE, AVERAGE, _rng())


def test_gene_matching_pairs_from_parents():
    """Test the first pairs carry the parents' stats."""
    p1 = VisualGeneticData(strength=90)
    p2 = VisualGeneticData(strength=20)
    game = GeneMatchingGame(GeneMatchingTuning(grid_size=3, matches_required=2), p1, p2, _rng())
    assert len(game.pairs) == 4
    stats = {card1.stat for card1, _ in game.pairs}
    assert stats == set(STAT_ORDER[:4])
    strength = next(pair for pair in game.pairs if pair[0].stat == StatType.STRENGTH)
    assert (strength[0].value, strength[1].value) == (90, 20)


def test_gene_matching_random_fill():
    """Test pairs beyond the six stats are random complementary pairs."""
    game = GeneMatchingGame(GeneMatchingTuning(grid_size=4, matches_required=6), AVERAGE, AVERAGE, _rng())
    assert len(game.pairs) == 8
    extra = [pair for pair in game.pairs if pair[0].value != 50 or pair[1].value != 50]
    assert len(extra) == 2
    for card1, card2 in extra:
        assert card1.stat == card2.stat
        assert 40 <= card1.value < 80
        assert 80 <= card2.value < 100


def test_gene_matching_combo_scoring():
    """Test streaks raise the combo and misses decay it."""
    game = GeneMatchingGame(GeneMatchingTuning(grid_size=3, matches_required=3), AVERAGE, AVERAGE, _rng())
    game.attempt_match(True)
    assert game.combo_multiplier == pytest.approx(1.2)
    assert game.current_score() == pytest.approx(60.0)
    game.attempt_match(False)
    assert game.consecutive_matches == 0
    assert game.combo_multiplier == pytest.approx(1.1)
    game.attempt_match(True)
    assert game.current_score() == pytest.approx(60.0 + 50 * 1.3)
    assert game.attempts == 3
    assert game.skill_performance() == pytest.approx(2 / 3)
    assert not game.is_complete()


def test_gene_matching_combo_decays_over_time():
    """Test the combo bleeds off while the player idles, but never below 1.0."""
    tuning = GeneMatchingTuning(grid_size=3, matches_required=3, combo_decay_rate=0.5)
    game = GeneMatchingGame(tuning, AVERAGE, AVERAGE, _rng())
    game.attempt_match(True)
    game.attempt_match(True)
    assert game.combo_multiplier == pytest.approx(1.6)
    game.update(0.4)
    assert game.combo_multiplier == pytest.approx(1.4)
    assert game.elapsed == pytest.approx(0.4)
    game.update(5.0)
    assert game.combo_multiplier == 1.0
    game.attempt_match(True)
    assert game.combo_multiplier == pytest.approx(1.6)


def test_gene_matching_combo_decay_disabled():
    """Test a zero decay rate keeps the combo between matches."""
    tuning = GeneMatchingTuning(grid_size=3, matches_required=3, combo_decay_rate=0.0)
    game = GeneMatchingGame(tuning, AVERAGE, AVERAGE, _rng())
    game.attempt_match(True)
    game.update(10.0)
    assert game.combo_multiplier == pytest.approx(1.2)


def test_gene_matching_completion():
    """Test the game completes once the required matches are found."""
    game = GeneMatchingGame(GeneMatchingTuning(grid_size=3, matches_required=2), AVERAGE, AVERAGE, _rng())
    game.auto_play(1.0)
    game.auto_play(1.0)
    assert game.is_complete()
    assert game.all_targets_found()
    assert game.skill_performance() == 1.0
    score = game.current_score()
    game.attempt_match(True)
    assert game.current_score() == score


def test_dna_sequences_derived_from_parents():
    """Test bases come from the parents' combined stats."""
    tuning = DNASequencingTuning(sequence_length=4, total_sequences=2)
    game = DNASequencingGame(tuning, AVERAGE, AVERAGE, _rng())
    assert game.sequences == ['AAAA', 'AAAA']
    skewed = DNASequencingGame(tuning, VisualGeneticData(strength=51), AVERAGE, _rng())
    assert skewed.sequences[0] == 'TAAA'
    assert skewed.sequences[1] == 'AAAA'


def test_dna_complement():
    """Test base pairing."""
    assert DNASequencingGame.complement('ATGC') == 'TACG'


def test_dna_submit_scoring():
    """Test correct strands score per base plus a sequence bonus."""
    game = DNASequencingGame(DNASequencingTuning(4, 2, accuracy_bonus=1.0), AVERAGE, AVERAGE, _rng())
    assert not game.submit_sequence('TTTA')
    assert game.accuracy == pytest.approx(0.95)
    assert game.current_score() == pytest.approx(30.0)
    assert game.current_index == 0
    assert game.submit_sequence('tttt')
    assert game.current_score() == pytest.approx(30.0 + 40.0 + 95.0)
    assert game.submit_sequence('TTTT')
    assert game.is_complete()
    assert game.current_sequence is None
    assert game.skill_performance() == pytest.approx(0.95)
    assert not game.submit_sequence('TTTT')


@pytest.mark.parametrize('strand', ['TTT', 'TTTX'])
def test_dna_invalid_strand(strand):
    """Test strands must be the right length and only contain bases."""
    game = DNASequencingGame(DNASequencingTuning(4, 1), AVERAGE, AVERAGE, _rng())
    with pytest.raises(ValidationError):
        game.submit_sequence(strand)


def test_dna_auto_play_perfect():
    """Test a perfect player completes one sequence per action."""
    game = DNASequencingGame(DNASequencingTuning(6, 3), VisualGeneticData(agility=83), AVERAGE, _rng())
    for _ in range(3):
        game.auto_play(1.0)
    assert game.is_complete()
    assert game.accuracy == 1.0


def test_trait_balancing_allocation():
    """Test the balance error and perfect-stat counting."""
    game = TraitBalancingGame(TraitBalancingTuning(balance_threshold=0.1, hold_time=2.0), AVERAGE, _rng())
    assert game.balance_error() == 0.0
    assert game.is_balanced()
    game.set_allocation([70, 70, 70, 70, 70, 70])
    assert game.balance_error() == pytest.approx(0.2)
    assert not game.is_balanced()
    assert game.perfect_matches() == 0
    assert game.current_score() == 800
    game.set_allocation({StatType.STRENGTH: 50, StatType.VITALITY: 55})
    assert game.perfect_matches() == 2
    assert game.total_targets == 6


def test_trait_balancing_hold_time():
    """Test the game completes after staying balanced long enough."""
    game = TraitBalancingGame(TraitBalancingTuning(0.1, 2.0), AVERAGE, _rng())
    game.update(1.5)
    assert not game.is_complete()
    game.set_allocation([100] * 6)
    game.update(1.0)
    assert game.balanced_time == pytest.approx(1.5)
    game.set_allocation([50] * 6)
    game.update(0.5)
    assert game.is_complete()


@pytest.mark.parametrize('values', [[50] * 5, [50, 50, 50, 50, 50, 101]])
def test_trait_balancing_invalid_allocation(values):
    """Test allocations need six values within 0-100."""
    game = TraitBalancingGame(TraitBalancingTuning(0.1, 2.0), AVERAGE, _rng())
    with pytest.raises(ValidationError):
        game.set_allocation(values)


def test_trait_balancing_auto_play_converges():
    """Test a perfect player lands on the target."""
    target = VisualGeneticData(strength=90, social=10)
    game = TraitBalancingGame(TraitBalancingTuning(0.05, 1.0), target, _rng())
    game.auto_play(1.0)
    assert game.allocation == target.stats()
    assert game.skill_performance() == 1.0


def test_incubation_range_tracking():
    """Test time only counts while the temperature is in range."""
    tuning = IncubationTuning(target_min=36.0, target_max=38.0, hold_time=2.0, drift_rate=0.0)
    game = IncubationGame(tuning, _rng())
    assert game.temperature == 30.0
    assert game.skill_performance() == 0.0
    game.update(1.0)
    assert game.time_in_range == 0.0
    game.adjust_temperature(7.0)
    game.update(1.0)
    assert game.time_in_range == 1.0
    assert game.skill_performance() == pytest.approx(0.5)
    assert game.current_score() == 100
    assert game.total_targets == 2
    assert not game.is_complete()
    game.update(1.0)
    assert game.is_complete()
    assert game.all_targets_found()


def test_incubation_auto_play():
    """Test a perfect player moves straight to the midpoint."""
    game = IncubationGame(IncubationTuning(36.0, 38.0, 2.0, 0.5), _rng())
    game.auto_play(1.0)
    assert game.temperature == pytest.approx(37.0)


@pytest.mark.parametrize('game_type', PLAYABLE_GAMES)
def test_create_minigame(game_type):
    """Test the factory builds each playable game from its default tuning."""
    tuning = default_minigame_tuning(game_type, 'MEDIUM')
    game = create_minigame(game_type, tuning, AVERAGE, AVERAGE, AVERAGE, _rng())
    assert game.game_type == game_type
    assert game.elapsed == 0.0
    assert 0.0 <= game.skill_performance() <= 1.0


def test_create_minigame_mismatched_tuning():
    """Test a tuning for another game is rejected."""
    tuning = default_minigame_tuning(MiniGameType.INCUBATION, 'EASY')
    with pytest.raises(ValidationError):
        create_minigame(MiniGameType.GENE_MATCHING, tuning, AVERAGE, AVERAGE, AVERAGE, _rng())


def test_create_minigame_random_unresolved():
    """Test RANDOM must be resolved before creating a game."""
    tuning = default_minigame_tuning(MiniGameType.GENE_MATCHING, 'EASY')
    with pytest.raises(ValidationError):
        create_minigame(MiniGameType.RANDOM, tuning, AVERAGE, AVERAGE, AVERAGE, _rng())
