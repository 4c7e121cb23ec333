"""
Player Contract
===============
Interfaccia che ogni partecipante (agente automatico o giocatore umano) deve rispettare.

Il motore usa solo questi metodi: qualsiasi oggetto che li implementa può sedersi al tavolo.
"""

from typing import Any, Dict, List, Sequence, Tuple, Protocol, runtime_checkable

from .game_state import Card, Action


@runtime_checkable
class Player(Protocol):
    """Contratto del giocatore."""

    def get_metadata(self) -> Dict[str, Any]:
        """Esporta identità e parametri del giocatore."""
        ...

    def check(self, card: Card) -> bool:
        """True se la mano contiene la carta."""
        ...

    def replace(self, current: Card, new: Card):
        """
        Sostituisce una carta della mano.

        Il chiamante garantisce che `current` sia presente nella mano.
        """
        ...

    def exchange(self, cards: List[Card]) -> List[Card]:
        """
        Scambio dell'Ambasciatore: riceve le carte pescate, tiene tante carte
        quante sono le proprie influenze vive e restituisce le altre.
        """
        ...

    def get_coins(self) -> int:
        ...

    def gain_coins(self, coins: int):
        ...

    def lose_coins(self, coins: int) -> int:
        """Perde fino a `coins` monete; restituisce quante ne ha perse davvero."""
        ...

    def lose_influence(self) -> Card:
        """Rivela e scarta un'influenza (NONE se già eliminato)."""
        ...

    def compute_hands(self, killed: Sequence[Card]):
        """Aggiorna le stime sulle mani a partire dal cimitero."""
        ...

    def deal(self, hand: List[Card]):
        ...

    def check_challenge(self, active_player: int, card: Card) -> bool:
        """True se il giocatore contesta la dichiarazione di `card`."""
        ...

    def check_block(self, action: Action) -> Tuple[bool, Card]:
        """Restituisce (blocca, carta dichiarata per il blocco)."""
        ...

    def is_eliminated(self) -> bool:
        ...

    def select_action(self, eliminated_players: Sequence[int]) -> Action:
        ...
