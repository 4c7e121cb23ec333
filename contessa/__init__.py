"""
Contessa - Coup Engine
"""

from .trainer import Trainer, TrainingConfig, GenerationStats, play_lineage_game
from .engine import (
    Card, Action, ActionType, Deck, GameState, GameLogger,
    PerceivedHand, Player, Agent, ActionUtilities, StrategyProfile, CoupEngine
)

__version__ = "1.0.0"

__all__ = [
    'Trainer', 'TrainingConfig', 'GenerationStats', 'play_lineage_game',
    'Card', 'Action', 'ActionType', 'Deck', 'GameState', 'GameLogger',
    'PerceivedHand', 'Player', 'Agent', 'ActionUtilities', 'StrategyProfile', 'CoupEngine'
]
