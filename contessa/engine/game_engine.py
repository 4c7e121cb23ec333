"""
Game Engine
===========
Motore di gioco che gestisce lo svolgimento di una partita di Coup:
dichiarazione, contestazione, blocco, contro-contestazione ed esecuzione.
"""

from typing import List, Optional, Tuple, Sequence
from datetime import datetime
import random
import uuid

from .game_state import (
    Card, Action, ActionType, Deck, GameState, GameLogger, TurnResult, HAND_SIZE
)
from .player import Player


MAX_TURNS = 1000
MIN_PLAYERS = 2
# Dopo la distribuzione il mazzo deve contenere almeno le 2 carte pescate dall'Ambasciatore
EXCHANGE_DRAW = 2
MAX_PLAYERS = (Deck.total_cards() - EXCHANGE_DRAW) // HAND_SIZE


class CoupEngine:
    """Motore di gioco per Coup da 2 a 6 giocatori."""

    def __init__(
        self,
        players: Sequence[Player],
        rng: Optional[random.Random] = None,
        max_turns: int = MAX_TURNS
    ):
        """
        Inizializza il motore e distribuisce le carte.

        Args:
            players: Giocatori seduti al tavolo, indicizzati per posto
            rng: Generatore per il mescolamento (riproducibilità)
            max_turns: Limite di turni oltre il quale vince il giocatore 0
        """
        if not MIN_PLAYERS <= len(players) <= MAX_PLAYERS:
            raise ValueError(
                f"Numero di giocatori non supportato: {len(players)} "
                f"(ammessi da {MIN_PLAYERS} a {MAX_PLAYERS})"
            )
        if max_turns < 1:
            raise ValueError(f"max_turns deve essere positivo, ricevuto {max_turns}")

        self.players: List[Player] = list(players)
        self.rng = rng if rng is not None else random.Random()
        self.max_turns = max_turns

        self.state = self.create_game()
        self.logger = GameLogger(self.state.game_id)
        self.logger.log_event("game_start", {
            "game_id": self.state.game_id,
            "num_players": len(self.players),
            "players": [p.get_metadata() for p in self.players],
            "cards_in_deck": len(self.state.deck)
        })

    def create_game(self) -> GameState:
        """Crea il mazzo, lo mescola e distribuisce due carte a testa."""
        deck = Deck()
        deck.shuffle(self.rng)

        for player in self.players:
            player.deal([deck.draw() for _ in range(HAND_SIZE)])
            player.compute_hands(())

        return GameState(
            game_id=str(uuid.UUID(int=self.rng.getrandbits(128)))[:8],
            num_players=len(self.players),
            deck=deck,
            start_time=datetime.now()
        )

    def get_killed_cards(self) -> Tuple[Card, ...]:
        """Vista in sola lettura del cimitero."""
        return tuple(self.state.killed)

    def eliminated_players(self) -> List[int]:
        return [i for i, p in enumerate(self.players) if p.is_eliminated()]

    # ============================================
    # FASI DEL TURNO
    # ============================================

    def _check_challenges(self, claimant: int, card: Card) -> Optional[int]:
        """Primo giocatore (in ordine di posto) che contesta la dichiarazione, se c'è."""
        if card is Card.NONE:
            return None

        for i, player in enumerate(self.players):
            if i == claimant or player.is_eliminated():
                continue
            if player.check_challenge(claimant, card):
                return i
        return None

    def _check_blocks(self, action: Action) -> Optional[Tuple[int, Card]]:
        """Primo giocatore (in ordine di posto) che blocca l'azione, con la carta dichiarata."""
        if not action.kind.is_blockable:
            return None

        for i, player in enumerate(self.players):
            if i == self.state.active_player or player.is_eliminated():
                continue
            blocks, card = player.check_block(action)
            if blocks:
                return i, card
        return None

    def _lose_influence(self, player_id: int):
        """Il giocatore rivela un'influenza, che finisce nel cimitero."""
        card = self.players[player_id].lose_influence()
        self.state.kill(card)
        if card is not Card.NONE:
            self.logger.log_influence_lost(player_id, card)

    def _resolve_challenge(self, claimant: int, challenger: int, card: Card, verbose: bool) -> bool:
        """
        Risolve una contestazione.

        Returns:
            True se la dichiarazione era vera (perde il contestatore e il
            dichiarante cambia la carta), False se era un bluff (perde il dichiarante)
        """
        upheld = self.players[claimant].check(card)
        self.logger.log_challenge(challenger, claimant, card, upheld)

        if upheld:
            if verbose:
                print(f"   Giocatore {claimant} mostra {card}: giocatore {challenger} perde un'influenza")
            self._lose_influence(challenger)

            # La carta mostrata torna in fondo al mazzo e se ne pesca una nuova
            self.state.deck.put_bottom(card)
            self.players[claimant].replace(card, self.state.deck.draw())
        else:
            if verbose:
                print(f"   Giocatore {claimant} bluffava: perde un'influenza")
            self._lose_influence(claimant)

        return upheld

    def complete_action(self, action: Action):
        """Esegue l'azione del giocatore attivo."""
        active = self.players[self.state.active_player]

        if action.kind is ActionType.INCOME:
            active.gain_coins(1)

        elif action.kind is ActionType.FOREIGN_AID:
            active.gain_coins(2)

        elif action.kind is ActionType.COUP:
            active.lose_coins(7)
            self._lose_influence(action.target)

        elif action.kind is ActionType.TAX:
            active.gain_coins(3)

        elif action.kind is ActionType.ASSASSINATE:
            active.lose_coins(3)
            self._lose_influence(action.target)

        elif action.kind is ActionType.EXCHANGE:
            drawn = [self.state.deck.draw() for _ in range(EXCHANGE_DRAW)]
            returned = active.exchange(drawn)
            if len(returned) != len(drawn):
                raise RuntimeError(
                    f"Scambio non valido: ricevute {len(drawn)} carte, restituite {len(returned)}"
                )
            for card in returned:
                self.state.deck.put_bottom(card)

        elif action.kind is ActionType.STEAL:
            stolen = self.players[action.target].lose_coins(2)
            active.gain_coins(stolen)

    def turn(self, verbose: bool = False) -> Optional[int]:
        """
        Gioca un turno completo del giocatore attivo.

        Returns:
            Il posto del vincitore se la partita è finita, altrimenti None
        """
        state = self.state
        state.turn_number += 1
        active_id = state.active_player

        # Aggiorna le stime di tutti i giocatori
        killed = self.get_killed_cards()
        for player in self.players:
            player.compute_hands(killed)
        eliminated = self.eliminated_players()

        action = self.players[active_id].select_action(eliminated)
        result = TurnResult(turn_number=state.turn_number, active_player=active_id, action=action)
        self.logger.log_action_selected(state.turn_number, active_id, action)

        if verbose:
            print(f"Turno {state.turn_number}: giocatore {active_id} sceglie {action}")

        # CONTESTAZIONE della dichiarazione
        card = action.claimed_card
        challenger = self._check_challenges(active_id, card)
        if challenger is not None:
            if verbose:
                print(f"   Giocatore {challenger} contesta {action}")
            result.challenger = challenger
            result.claim_upheld = self._resolve_challenge(active_id, challenger, card, verbose)
            result.prevented = not result.claim_upheld

        # BLOCCO (saltato se l'azione è già stata impedita)
        if not result.prevented:
            block = self._check_blocks(action)
            if block is not None:
                blocker, block_card = block
                result.blocker = blocker
                result.block_card = block_card
                self.logger.log_block(blocker, action, block_card)
                if verbose:
                    print(f"   Giocatore {blocker} blocca {action} con {block_card}")

                # Contro-contestazione del blocco
                block_challenger = self._check_challenges(blocker, block_card)
                if block_challenger is None:
                    result.prevented = True
                else:
                    if verbose:
                        print(f"   Giocatore {block_challenger} contesta il blocco")
                    result.block_challenger = block_challenger
                    result.block_upheld = self._resolve_challenge(
                        blocker, block_challenger, block_card, verbose
                    )
                    result.prevented = result.block_upheld

        # ESECUZIONE
        if not result.prevented:
            if verbose:
                print(f"   Giocatore {active_id} esegue {action}")
            self.complete_action(action)

        state.turns_history.append(result)
        self.logger.log_turn_result(result)
        state.rotate_active_player()

        if verbose:
            for i, player in enumerate(self.players):
                status = "eliminato" if player.is_eliminated() else "in gioco"
                print(f"   Giocatore {i}: {player.get_coins()} monete, {status}")

        return self._check_winner()

    def _check_winner(self) -> Optional[int]:
        """Il vincitore è l'unico giocatore non eliminato."""
        alive = [i for i, p in enumerate(self.players) if not p.is_eliminated()]
        if len(alive) == 1:
            return alive[0]
        return None

    def play(self, verbose: bool = False) -> Player:
        """
        Gioca un'intera partita e restituisce il giocatore vincitore.

        La partita è limitata a max_turns turni: raggiunto il limite vince il giocatore 0.
        """
        state = self.state

        if verbose:
            print(f"\n{'='*50}")
            print(f"PARTITA {state.game_id} ({len(self.players)} giocatori)")
            print(f"{'='*50}\n")

        winner = None
        while winner is None and state.turn_number < self.max_turns:
            winner = self.turn(verbose)

        if winner is None:
            winner = 0
            state.turn_limit_reached = True

        state.winner = winner
        state.is_game_over = True
        state.end_time = datetime.now()
        self.logger.log_game_end(state)

        if verbose:
            print(f"\n{'='*50}")
            print(f"FINE PARTITA dopo {state.turn_number} turni")
            if state.turn_limit_reached:
                print("Limite di turni raggiunto: vince il giocatore 0 d'ufficio")
            print(f"Vincitore: giocatore {winner}")
            print(f"{'='*50}\n")

        return self.players[winner]
