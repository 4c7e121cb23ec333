"""
Belief Estimator
================
Stima a priori della probabilità che un giocatore abbia almeno una copia di ogni personaggio.

Ogni osservatore mantiene due conteggi distinti:

- pool privato: mazzo completo meno cimitero e meno le due carte della propria
  mano, usato per stimare le mani degli avversari;
- pool pubblico: mazzo completo meno il solo cimitero, usato per valutare
  quanto risulta credibile la propria mano agli occhi degli altri.
"""

from typing import Dict, Iterable, List, Optional, Tuple
from collections import Counter

from .game_state import Card, COPIES_PER_CHARACTER, HAND_SIZE


class PerceivedHand:
    """Probabilità marginale (non normalizzata) che un giocatore abbia ogni personaggio."""

    def __init__(self, probabilities: Dict[Card, float]):
        self._probabilities: Dict[Card, float] = {}
        for card in Card.characters():
            value = probabilities.get(card, 0.0)
            self._probabilities[card] = min(1.0, max(0.0, value))

    def get(self, card: Card) -> float:
        """Probabilità per un personaggio; fuori dall'universo è un errore di programmazione."""
        if card not in self._probabilities:
            raise ValueError(f"Carta fuori dall'universo di gioco: {card!r}")
        return self._probabilities[card]

    def __getitem__(self, card: Card) -> float:
        return self.get(card)

    def items(self):
        return self._probabilities.items()

    def __repr__(self):
        inner = ", ".join(f"{c}: {p:.3f}" for c, p in self._probabilities.items())
        return f"PerceivedHand({inner})"


def probability_at_least_one(available: int, copies: int, hand_size: int = HAND_SIZE) -> float:
    """
    Probabilità che una mano di `hand_size` carte, pescata senza reinserimento
    da `available` carte di cui `copies` del tipo cercato, ne contenga almeno una.

    Con hand_size=2: 1 - ((N-k)/N) * ((N-1-k)/(N-1)).
    """
    draws = min(hand_size, available)
    p_none = 1.0
    for i in range(draws):
        p_none *= max(0.0, (available - copies - i) / (available - i))
    return min(1.0, max(0.0, 1.0 - p_none))


def count_pool(
    killed: Iterable[Card],
    own_hand: Optional[Iterable[Card]] = None
) -> Tuple[int, Dict[Card, int]]:
    """
    Conta le carte non viste dopo aver rimosso il cimitero e, se indicata, la propria mano.

    La propria mano toglie sempre HAND_SIZE carte dal totale, anche con influenze
    perse; i conteggi per personaggio scendono solo per le carte reali.
    """
    counts = {card: COPIES_PER_CHARACTER for card in Card.characters()}
    removed = Counter(c for c in killed if c is not Card.NONE)
    available = len(Card.characters()) * COPIES_PER_CHARACTER - sum(removed.values())

    if own_hand is not None:
        removed.update(c for c in own_hand if c is not Card.NONE)
        available -= HAND_SIZE

    for card, n in removed.items():
        counts[card] -= n

    return available, counts


def estimate_hand(available: int, counts: Dict[Card, int]) -> PerceivedHand:
    return PerceivedHand({
        card: probability_at_least_one(available, max(0, copies))
        for card, copies in counts.items()
    })


def compute_perceived_hands(
    player_id: int,
    num_players: int,
    hand: Iterable[Card],
    killed: Iterable[Card]
) -> List[PerceivedHand]:
    """
    Calcola una PerceivedHand per ogni posto al tavolo.

    Args:
        player_id: Posto dell'osservatore
        num_players: Numero totale di giocatori
        hand: Mano dell'osservatore (informazione privata)
        killed: Cimitero (informazione pubblica)

    Returns:
        Lista indicizzata per posto: stima pubblica per l'osservatore,
        stima privata per tutti gli altri
    """
    killed = list(killed)

    # Conteggio privato
    available, counts = count_pool(killed, hand)
    a_priori = estimate_hand(available, counts)

    # Conteggio pubblico
    public_available, public_counts = count_pool(killed)
    my_hand = estimate_hand(public_available, public_counts)

    return [my_hand if i == player_id else a_priori for i in range(num_players)]
