"""Pytest fixtures e test double per il motore di Coup."""
import random
from collections import Counter

import pytest

from contessa.engine import Agent, ActionUtilities, Card, CoupEngine, Deck, StrategyProfile
from contessa.engine.game_state import Action, STARTING_COINS


class ScriptedPlayer:
    """Giocatore con risposte predefinite che registra ogni domanda del motore."""

    def __init__(self, player_id, action=None, challenge=False, block=(False, Card.NONE),
                 coins=STARTING_COINS, exchange_result=None):
        self.player_id = player_id
        self.action = action or Action.pass_turn()
        self.challenge = challenge
        self.block = block
        self.coins = coins
        self.exchange_result = exchange_result
        self.hand = [Card.NONE, Card.NONE]

        self.deal_calls = 0
        self.challenge_calls = []
        self.block_calls = []
        self.exchange_calls = []

    def get_metadata(self):
        return {"type": "scripted", "player_id": self.player_id}

    def check(self, card):
        return card in self.hand

    def replace(self, current, new):
        self.hand[self.hand.index(current)] = new

    def exchange(self, cards):
        self.exchange_calls.append(list(cards))
        if self.exchange_result is not None:
            return list(self.exchange_result)
        return list(cards)

    def get_coins(self):
        return self.coins

    def gain_coins(self, coins):
        self.coins += coins

    def lose_coins(self, coins):
        lost = min(self.coins, coins)
        self.coins -= lost
        return lost

    def lose_influence(self):
        for i, card in enumerate(self.hand):
            if card is not Card.NONE:
                self.hand[i] = Card.NONE
                return card
        return Card.NONE

    def compute_hands(self, killed):
        pass

    def deal(self, hand):
        self.deal_calls += 1
        self.hand = list(hand)

    def check_challenge(self, active_player, card):
        self.challenge_calls.append((active_player, card))
        return self.challenge

    def check_block(self, action):
        self.block_calls.append(action)
        return self.block

    def is_eliminated(self):
        return all(card is Card.NONE for card in self.hand)

    def select_action(self, eliminated_players):
        if self.is_eliminated():
            return Action.pass_turn()
        return self.action


def make_profile(liar_cutoff=0.0, lying_cutoff=1.0, **utilities):
    """Profilo prevedibile: di default non contesta, non bluffa e non blocca."""
    return StrategyProfile(
        liar_cutoff=liar_cutoff,
        lying_cutoff=lying_cutoff,
        utilities=ActionUtilities(**utilities)
    )


def rig_game(engine, hands, deck_top=()):
    """Impone mani e cima del mazzo, mantenendo l'universo di 15 carte."""
    for player, hand in zip(engine.players, hands):
        player.deal(list(hand))

    used = Counter(c for hand in hands for c in hand if c is not Card.NONE)
    used.update(deck_top)
    remaining = Counter(Deck.create_deck()) - used
    rest = sorted(remaining.elements(), key=lambda c: c.value)
    engine.state.deck.cards = list(deck_top) + rest
    engine.state.killed.clear()


def card_census(engine):
    """Conteggio di mazzo + mani (sentinella esclusa) + cimitero."""
    census = Counter(engine.state.deck.cards)
    for player in engine.players:
        census.update(c for c in player.hand if c is not Card.NONE)
    census.update(engine.state.killed)
    return census


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def full_deck_census():
    return Counter(Deck.create_deck())


@pytest.fixture
def make_agent():
    """Factory di agenti con generatore dedicato."""
    def _make(player_id=0, num_players=4, profile=None, seed=0):
        return Agent(player_id, num_players, profile or make_profile(), random.Random(seed))
    return _make


@pytest.fixture
def make_engine():
    """Factory di motori con generatore dedicato."""
    def _make(players, seed=0, max_turns=1000):
        return CoupEngine(players, rng=random.Random(seed), max_turns=max_turns)
    return _make
