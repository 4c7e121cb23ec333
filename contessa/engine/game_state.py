"""
Game State Manager
==================
Gestisce lo stato completo della partita: carte, mazzo, azioni, cimitero e cronologia.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any
from enum import Enum
import random
from datetime import datetime


class Card(Enum):
    """Personaggi del gioco. NONE indica un'influenza persa."""
    DUKE = "duke"
    CAPTAIN = "captain"
    AMBASSADOR = "ambassador"
    ASSASSIN = "assassin"
    CONTESSA = "contessa"
    NONE = "none"

    def __repr__(self):
        return self.value.capitalize()

    def __str__(self):
        return self.value.capitalize()

    @classmethod
    def characters(cls) -> List['Card']:
        """I cinque personaggi reali (senza la sentinella)."""
        return [c for c in cls if c is not cls.NONE]


COPIES_PER_CHARACTER = 3
HAND_SIZE = 2
STARTING_COINS = 2


class ActionType(Enum):
    """Tipi di azione disponibili nel turno."""
    INCOME = "income"
    FOREIGN_AID = "foreign_aid"
    COUP = "coup"
    TAX = "tax"
    ASSASSINATE = "assassinate"
    EXCHANGE = "exchange"
    STEAL = "steal"
    PASS = "pass"

    @property
    def claimed_card(self) -> Card:
        """Carta dichiarata per eseguire l'azione (NONE se non contestabile)."""
        return CLAIMED_CARDS.get(self, Card.NONE)

    @property
    def is_targeted(self) -> bool:
        return self in (ActionType.COUP, ActionType.ASSASSINATE, ActionType.STEAL)

    @property
    def is_blockable(self) -> bool:
        return self in (ActionType.FOREIGN_AID, ActionType.ASSASSINATE, ActionType.STEAL)


CLAIMED_CARDS = {
    ActionType.TAX: Card.DUKE,
    ActionType.ASSASSINATE: Card.ASSASSIN,
    ActionType.EXCHANGE: Card.AMBASSADOR,
    ActionType.STEAL: Card.CAPTAIN,
}


@dataclass(frozen=True)
class Action:
    """Azione scelta dal giocatore attivo, con bersaglio opzionale."""
    kind: ActionType
    target: Optional[int] = None

    def __post_init__(self):
        if self.kind.is_targeted and self.target is None:
            raise ValueError(f"L'azione {self.kind.value} richiede un bersaglio")
        if not self.kind.is_targeted and self.target is not None:
            raise ValueError(f"L'azione {self.kind.value} non ammette bersaglio")

    def __repr__(self):
        if self.target is None:
            return self.kind.value
        return f"{self.kind.value} -> giocatore {self.target}"

    @property
    def claimed_card(self) -> Card:
        return self.kind.claimed_card

    @classmethod
    def income(cls) -> 'Action':
        return cls(ActionType.INCOME)

    @classmethod
    def foreign_aid(cls) -> 'Action':
        return cls(ActionType.FOREIGN_AID)

    @classmethod
    def coup(cls, target: int) -> 'Action':
        return cls(ActionType.COUP, target)

    @classmethod
    def tax(cls) -> 'Action':
        return cls(ActionType.TAX)

    @classmethod
    def assassinate(cls, target: int) -> 'Action':
        return cls(ActionType.ASSASSINATE, target)

    @classmethod
    def exchange(cls) -> 'Action':
        return cls(ActionType.EXCHANGE)

    @classmethod
    def steal(cls, target: int) -> 'Action':
        return cls(ActionType.STEAL, target)

    @classmethod
    def pass_turn(cls) -> 'Action':
        return cls(ActionType.PASS)


class Deck:
    """Mazzo di pesca: la cima è l'indice 0, il fondo è l'ultimo elemento."""

    def __init__(self, cards: Optional[List[Card]] = None):
        self.cards: List[Card] = list(cards) if cards is not None else self.create_deck()

    @classmethod
    def create_deck(cls) -> List[Card]:
        """Crea il mazzo completo di 15 carte (3 copie per personaggio)."""
        deck = []
        for card in Card.characters():
            deck.extend([card] * COPIES_PER_CHARACTER)
        return deck

    @classmethod
    def total_cards(cls) -> int:
        return len(Card.characters()) * COPIES_PER_CHARACTER

    def shuffle(self, rng: random.Random):
        """Mescola il mazzo con il generatore fornito."""
        rng.shuffle(self.cards)

    def draw(self) -> Card:
        """Pesca la carta in cima."""
        if not self.cards:
            raise RuntimeError("Mazzo vuoto, impossibile pescare")
        return self.cards.pop(0)

    def put_bottom(self, card: Card):
        """Rimette una carta in fondo al mazzo."""
        if card is Card.NONE:
            raise ValueError("Non si può rimettere nel mazzo un'influenza persa")
        self.cards.append(card)

    def __len__(self):
        return len(self.cards)

    def __iter__(self):
        return iter(self.cards)


@dataclass
class TurnResult:
    """Risultato di un singolo turno."""
    turn_number: int
    active_player: int
    action: Action
    challenger: Optional[int] = None
    claim_upheld: Optional[bool] = None
    blocker: Optional[int] = None
    block_card: Card = Card.NONE
    block_challenger: Optional[int] = None
    block_upheld: Optional[bool] = None
    prevented: bool = False


@dataclass
class GameState:
    """Stato completo della partita."""

    game_id: str
    num_players: int

    # Mazzo e cimitero (carte rivelate, informazione pubblica)
    deck: Deck = field(default_factory=Deck)
    killed: List[Card] = field(default_factory=list)

    # Stato gioco
    active_player: int = 0
    turn_number: int = 0
    is_game_over: bool = False
    winner: Optional[int] = None
    turn_limit_reached: bool = False

    # Cronologia
    turns_history: List[TurnResult] = field(default_factory=list)

    # Metadati
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def rotate_active_player(self):
        """Passa il turno al giocatore successivo."""
        self.active_player = (self.active_player + 1) % self.num_players

    def kill(self, card: Card):
        """Aggiunge una carta rivelata al cimitero (la sentinella viene ignorata)."""
        if card is not Card.NONE:
            self.killed.append(card)

    def to_dict(self) -> Dict[str, Any]:
        """Converte lo stato in dizionario per logging/serializzazione."""
        return {
            "game_id": self.game_id,
            "num_players": self.num_players,
            "turn_number": self.turn_number,
            "is_game_over": self.is_game_over,
            "winner": self.winner,
            "turn_limit_reached": self.turn_limit_reached,
            "cards_in_deck": len(self.deck),
            "killed": [c.value for c in self.killed],
            "turns_history": [
                {
                    "turn": t.turn_number,
                    "player": t.active_player,
                    "action": t.action.kind.value,
                    "target": t.action.target,
                    "challenger": t.challenger,
                    "blocker": t.blocker,
                    "prevented": t.prevented
                }
                for t in self.turns_history
            ]
        }


class GameLogger:
    """Logger per la cronologia della partita."""

    def __init__(self, game_id: str):
        self.game_id = game_id
        self.events: List[Dict[str, Any]] = []

    def log_event(self, event_type: str, data: Dict[str, Any]):
        """Registra un evento."""
        self.events.append({
            "timestamp": datetime.now().isoformat(),
            "type": event_type,
            "data": data
        })

    def log_action_selected(self, turn_number: int, player: int, action: Action):
        self.log_event("action_selected", {
            "turn": turn_number,
            "player": player,
            "action": action.kind.value,
            "target": action.target,
            "claim": action.claimed_card.value
        })

    def log_challenge(self, challenger: int, claimant: int, card: Card, upheld: bool):
        self.log_event("challenge", {
            "challenger": challenger,
            "claimant": claimant,
            "card": card.value,
            "claim_upheld": upheld
        })

    def log_block(self, blocker: int, action: Action, card: Card):
        self.log_event("block", {
            "blocker": blocker,
            "action": action.kind.value,
            "card": card.value
        })

    def log_influence_lost(self, player: int, card: Card):
        self.log_event("influence_lost", {
            "player": player,
            "card": card.value
        })

    def log_turn_result(self, result: TurnResult):
        self.log_event("turn_result", {
            "turn": result.turn_number,
            "player": result.active_player,
            "action": result.action.kind.value,
            "prevented": result.prevented
        })

    def log_game_end(self, state: GameState):
        self.log_event("game_end", {
            "winner": state.winner,
            "total_turns": state.turn_number,
            "turn_limit_reached": state.turn_limit_reached,
            "state": state.to_dict()
        })

    def events_of_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e["type"] == event_type]

    def get_summary(self) -> Dict[str, Any]:
        """Restituisce un riepilogo della partita."""
        return {
            "game_id": self.game_id,
            "total_events": len(self.events),
            "events": self.events
        }
