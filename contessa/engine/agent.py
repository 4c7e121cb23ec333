"""
Agent System
============
Implementa l'agente automatico: stime sulle mani, scelta dell'azione per utilità,
risposta a contestazioni e blocchi tramite due soglie di rischio.
"""

from dataclasses import dataclass, field, fields, replace as dc_replace
from typing import List, Dict, Optional, Any, Sequence, Tuple
import random

from .game_state import Card, Action, ActionType, HAND_SIZE, STARTING_COINS
from .belief import PerceivedHand, compute_perceived_hands


# Chiavi del formato persistito (checkpoint di addestramento)
UTILITY_KEYS = {
    "income": "income",
    "foreign_aid": "foreignAid",
    "coup": "coup",
    "tax": "tax",
    "assassinate": "assassinate",
    "exchange": "exchange",
    "steal": "steal",
}

CUTOFF_NOISE = 0.01
UTILITY_NOISE = 0.1


@dataclass
class ActionUtilities:
    """Pesi di utilità, uno per tipo di azione (indipendenti dal bersaglio)."""
    income: float = 0.0
    foreign_aid: float = 0.0
    coup: float = 0.0
    tax: float = 0.0
    assassinate: float = 0.0
    exchange: float = 0.0
    steal: float = 0.0

    @classmethod
    def randomized(cls, rng: random.Random) -> 'ActionUtilities':
        """Pesi casuali in [0, 1)."""
        return cls(**{f.name: rng.random() for f in fields(cls)})

    def get(self, kind: ActionType) -> float:
        if kind is ActionType.PASS:
            return 0.0
        return getattr(self, kind.value)

    def mutate(self, rng: random.Random) -> 'ActionUtilities':
        """
        Ogni peso riceve un rumore uniforme in [0, 0.1).

        Il rumore è solo positivo: i pesi crescono di generazione in generazione.
        """
        return ActionUtilities(**{
            f.name: getattr(self, f.name) + UTILITY_NOISE * rng.random()
            for f in fields(self)
        })

    def to_dict(self) -> Dict[str, float]:
        return {key: getattr(self, name) for name, key in UTILITY_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ActionUtilities':
        missing = [key for key in UTILITY_KEYS.values() if key not in data]
        if missing:
            raise ValueError(f"Utilità mancanti: {missing}")
        return cls(**{name: float(data[key]) for name, key in UTILITY_KEYS.items()})


@dataclass
class StrategyProfile:
    """
    Parametri di strategia dell'agente.

    - liar_cutoff: sotto questa probabilità si considera bugiardo chi dichiara una carta
    - lying_cutoff: sopra questa probabilità (percepita dagli altri) si osa bluffare o bloccare
    """
    liar_cutoff: float = 0.5
    lying_cutoff: float = 0.5
    utilities: ActionUtilities = field(default_factory=ActionUtilities)

    @classmethod
    def randomized(cls, rng: random.Random) -> 'StrategyProfile':
        return cls(
            liar_cutoff=rng.random(),
            lying_cutoff=rng.random(),
            utilities=ActionUtilities.randomized(rng)
        )

    def copy(self) -> 'StrategyProfile':
        return dc_replace(self, utilities=dc_replace(self.utilities))

    def mutate(self, rng: random.Random) -> 'StrategyProfile':
        """Soglie perturbate in [-0.01, +0.01], senza limiti; utilità perturbate in [0, 0.1)."""
        return StrategyProfile(
            liar_cutoff=self.liar_cutoff + CUTOFF_NOISE * (2.0 * rng.random() - 1.0),
            lying_cutoff=self.lying_cutoff + CUTOFF_NOISE * (2.0 * rng.random() - 1.0),
            utilities=self.utilities.mutate(rng)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "liarCutoff": self.liar_cutoff,
            "lyingCutoff": self.lying_cutoff,
            "utilities": self.utilities.to_dict()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StrategyProfile':
        """Crea un profilo dal formato persistito."""
        try:
            return cls(
                liar_cutoff=float(data["liarCutoff"]),
                lying_cutoff=float(data["lyingCutoff"]),
                utilities=ActionUtilities.from_dict(data["utilities"])
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Profilo di strategia non valido: {e}") from e


class Agent:
    """Agente automatico che gioca a Coup."""

    def __init__(
        self,
        player_id: int,
        num_players: int,
        profile: Optional[StrategyProfile] = None,
        rng: Optional[random.Random] = None
    ):
        self.player_id = player_id
        self.num_players = num_players
        self.rng = rng if rng is not None else random.Random()
        self.profile = profile if profile is not None else StrategyProfile.randomized(self.rng)

        self.hand: List[Card] = [Card.NONE] * HAND_SIZE
        self.coins = STARTING_COINS
        self.perceived_hands: List[PerceivedHand] = []

    def __repr__(self):
        return (f"Agent(player_id={self.player_id}, hand={self.hand}, coins={self.coins}, "
                f"liar_cutoff={self.liar_cutoff:.3f}, lying_cutoff={self.lying_cutoff:.3f})")

    @property
    def liar_cutoff(self) -> float:
        return self.profile.liar_cutoff

    @property
    def lying_cutoff(self) -> float:
        return self.profile.lying_cutoff

    # ============================================
    # CONTRATTO DEL GIOCATORE
    # ============================================

    def get_metadata(self) -> Dict[str, Any]:
        return {
            "type": "computer",
            "player_id": self.player_id,
            **self.profile.to_dict()
        }

    def check(self, card: Card) -> bool:
        return card in self.hand

    def replace(self, current: Card, new: Card):
        if self.hand[0] == current:
            self.hand[0] = new
        else:
            self.hand[1] = new

    def exchange(self, cards: List[Card]) -> List[Card]:
        """
        Scambio dell'Ambasciatore.

        Per ora tiene la mano attuale e restituisce le carte pescate così come sono.
        Punto di estensione per una politica di scambio strategica.
        """
        return list(cards)

    def get_coins(self) -> int:
        return self.coins

    def gain_coins(self, coins: int):
        self.coins += coins

    def lose_coins(self, coins: int) -> int:
        lost = min(self.coins, coins)
        self.coins -= lost
        return lost

    def lose_influence(self) -> Card:
        """Scarta un'influenza: obbligata se ne resta una, casuale se sono due."""
        alive = [i for i, card in enumerate(self.hand) if card is not Card.NONE]
        if not alive:
            return Card.NONE

        lost = alive[0] if len(alive) == 1 else self.rng.choice(alive)
        card = self.hand[lost]
        self.hand[lost] = Card.NONE
        return card

    def compute_hands(self, killed: Sequence[Card]):
        self.perceived_hands = compute_perceived_hands(
            self.player_id, self.num_players, self.hand, killed
        )

    def deal(self, hand: List[Card]):
        if len(hand) != HAND_SIZE:
            raise ValueError(f"Una mano deve avere {HAND_SIZE} carte, ricevute {len(hand)}")
        self.hand = list(hand)

    def check_challenge(self, active_player: int, card: Card) -> bool:
        """Contesta se la probabilità che l'attivo abbia la carta è sotto liar_cutoff."""
        # Income, ForeignAid e Coup non si contestano
        if card is Card.NONE:
            return False

        if self.is_eliminated():
            return False

        return self._belief(active_player, card) < self.liar_cutoff

    def check_block(self, action: Action) -> Tuple[bool, Card]:
        """
        Blocca se la propria mano appare credibile oltre lying_cutoff.

        Giocatore "egoista": Assassinio e Furto si bloccano solo se rivolti a sé stessi.
        """
        if self.is_eliminated():
            return False, Card.NONE

        if action.kind is ActionType.FOREIGN_AID:
            return self._self_belief(Card.DUKE) > self.lying_cutoff, Card.DUKE

        if action.kind is ActionType.ASSASSINATE:
            if action.target != self.player_id:
                return False, Card.NONE
            return self._self_belief(Card.CONTESSA) > self.lying_cutoff, Card.CONTESSA

        if action.kind is ActionType.STEAL:
            if action.target != self.player_id:
                return False, Card.NONE

            captain = self._self_belief(Card.CAPTAIN)
            ambassador = self._self_belief(Card.AMBASSADOR)
            if captain > ambassador:
                return captain > self.lying_cutoff, Card.CAPTAIN
            return ambassador > self.lying_cutoff, Card.AMBASSADOR

        return False, Card.NONE

    def is_eliminated(self) -> bool:
        return all(card is Card.NONE for card in self.hand)

    def select_action(self, eliminated_players: Sequence[int]) -> Action:
        """Sceglie l'azione di utilità massima; a parità vince la prima elencata."""
        actions = self.get_available_actions(eliminated_players)
        if not actions:
            return Action.pass_turn()
        return max(actions, key=self.compute_utility)

    # ============================================
    # POLITICA DI DECISIONE
    # ============================================

    def get_available_actions(self, eliminated_players: Sequence[int]) -> List[Action]:
        """Azioni legali, seguite dai bluff ritenuti sostenibili."""
        if self.is_eliminated():
            return [Action.pass_turn()]

        targets = [
            i for i in range(self.num_players)
            if i != self.player_id and i not in eliminated_players
        ]

        # Con 10 monete o più il colpo di stato è obbligatorio
        if self.coins >= 10:
            return [Action.coup(i) for i in targets]

        actions = [Action.income(), Action.foreign_aid()]

        if self.coins >= 7:
            actions.extend(Action.coup(i) for i in targets)

        # Azioni "sicure": carte realmente in mano
        if self.check(Card.DUKE):
            actions.append(Action.tax())
        if self.check(Card.CAPTAIN):
            actions.extend(Action.steal(i) for i in targets)
        if self.check(Card.AMBASSADOR):
            actions.append(Action.exchange())
        if self.check(Card.ASSASSIN) and self.coins >= 3:
            actions.extend(Action.assassinate(i) for i in targets)

        # Bluff: azioni senza la carta, se la mano appare credibile
        if not self.check(Card.DUKE) and self._can_bluff(Card.DUKE):
            actions.append(Action.tax())
        if not self.check(Card.CAPTAIN) and self._can_bluff(Card.CAPTAIN):
            actions.extend(Action.steal(i) for i in targets)
        if not self.check(Card.AMBASSADOR) and self._can_bluff(Card.AMBASSADOR):
            actions.append(Action.exchange())
        if not self.check(Card.ASSASSIN) and self._can_bluff(Card.ASSASSIN) and self.coins >= 3:
            actions.extend(Action.assassinate(i) for i in targets)

        return actions

    def compute_utility(self, action: Action) -> float:
        utility = self.profile.utilities.get(action.kind)

        if action.kind is ActionType.FOREIGN_AID:
            # Qualcuno probabilmente ha un Duca
            for i, hand in enumerate(self.perceived_hands):
                if i != self.player_id and hand.get(Card.DUKE) > self.liar_cutoff:
                    utility = 0.0
        elif action.kind is ActionType.STEAL:
            if (self._belief(action.target, Card.CAPTAIN) > self.liar_cutoff
                    or self._belief(action.target, Card.AMBASSADOR) > self.liar_cutoff):
                utility = 0.0

        return utility

    def _can_bluff(self, card: Card) -> bool:
        return self._self_belief(card) > self.lying_cutoff

    def _self_belief(self, card: Card) -> float:
        return self._belief(self.player_id, card)

    def _belief(self, player: int, card: Card) -> float:
        if not self.perceived_hands:
            raise RuntimeError("Stime non calcolate: chiamare compute_hands prima di decidere")
        return self.perceived_hands[player].get(card)

    # ============================================
    # CICLO DI VITA TRA PARTITE
    # ============================================

    def clear(self):
        """Resetta l'agente per una nuova partita."""
        self.hand = [Card.NONE] * HAND_SIZE
        self.coins = STARTING_COINS
        self.perceived_hands = []

    def set_id(self, player_id: int):
        self.player_id = player_id

    def clone(self, player_id: Optional[int] = None, rng: Optional[random.Random] = None) -> 'Agent':
        """Copia esatta dei parametri, con stato di partita azzerato."""
        return Agent(
            self.player_id if player_id is None else player_id,
            self.num_players,
            self.profile.copy(),
            rng
        )

    def mutate(self, rng: random.Random, player_id: Optional[int] = None) -> 'Agent':
        """Copia con parametri perturbati e stato di partita azzerato."""
        return Agent(
            self.player_id if player_id is None else player_id,
            self.num_players,
            self.profile.mutate(rng),
            random.Random(rng.getrandbits(64))
        )
