"""
Contessa - Game Engine
"""

from .game_state import Card, ActionType, Action, Deck, GameState, TurnResult, GameLogger
from .belief import PerceivedHand, compute_perceived_hands, probability_at_least_one
from .player import Player
from .agent import Agent, ActionUtilities, StrategyProfile
from .game_engine import CoupEngine, MAX_TURNS, MIN_PLAYERS, MAX_PLAYERS

__all__ = [
    'Card', 'ActionType', 'Action', 'Deck', 'GameState', 'TurnResult', 'GameLogger',
    'PerceivedHand', 'compute_perceived_hands', 'probability_at_least_one',
    'Player', 'Agent', 'ActionUtilities', 'StrategyProfile',
    'CoupEngine', 'MAX_TURNS', 'MIN_PLAYERS', 'MAX_PLAYERS'
]
