"""
Creature Breeding Engine

Main API:
    BreedingEngine - Request queue and per-frame session ticking
    BreedingSession - One skill-modulated breeding attempt
    BreedingResult - Finalized outcome of a breeding attempt
    compute_offspring - Pure inheritance computation for two phenotypes
    forecast_offspring - Deterministic offspring forecast for two genomes
    analyze_compatibility - Weighted compatibility breakdown for two genomes
    load_config - Configuration loading helper
"""

from .engine import BreedingEngine
from .session import BreedingSession, BreedingResult, SessionState
from .inheritance import BreedingPrediction, Difficulty, compute_offspring
from .forecast import analyze_compatibility, forecast_offspring
from .config import load_config, default_config

__all__ = [
    'BreedingEngine',
    'BreedingSession', 'BreedingResult', 'SessionState',
    'BreedingPrediction', 'Difficulty', 'compute_offspring',
    'forecast_offspring', 'analyze_compatibility',
    'load_config', 'default_config',
]
__version__ = '0.1.0'
