"""Cheating strategy: an upper-bound baseline, not a fair player.

Every cheater writes the hands it can see into a ledger shared by the whole
table, then reads its own hand back from it. The views themselves stay
restricted; the ledger is the side channel. Never mix these players into
comparisons of fair strategies.
"""

from __future__ import annotations

from typing import Sequence

from ..errors import InvariantViolationError
from ..models import Action, Card, DiscardAction, HintAction, PlayAction, TurnLog
from ..visibility import PlayerView
from .base import Strategy, StrategyFactory


class HandLedger:
    """Shared, mutable record of every hand as seen by the other players."""

    def __init__(self, num_players: int):
        self.num_players = num_players
        self._hands: dict[int, list[Card]] = {}

    def publish(self, view: PlayerView) -> None:
        for player in view.other_players():
            self._hands[player] = list(view.hand(player))

    def hand_of(self, player: int) -> list[Card]:
        return list(self._hands.get(player, []))

    def all_cards(self) -> list[Card]:
        return [card for hand in self._hands.values() for card in hand]


class CheatingStrategy(Strategy):
    """Plays with knowledge of its own hand obtained through the ledger."""

    name = "cheat"

    def __init__(self, player: int, num_players: int, ledger: HandLedger):
        super().__init__(player, num_players)
        self.ledger = ledger

    def start(self, view: PlayerView) -> None:
        self.ledger.publish(view)

    def observe(self, turn: TurnLog, view: PlayerView) -> None:
        self.ledger.publish(view)

    def decide(self, view: PlayerView, history: Sequence[TurnLog]) -> Action:
        self.ledger.publish(view)
        hand = self.ledger.hand_of(self.player)
        if len(hand) != view.hand_size(self.player):
            raise InvariantViolationError(f"Ledger for player {self.player} is out of date")

        playable = [i for i, card in enumerate(hand) if view.is_playable(card)]
        if playable:
            return PlayAction(card_position=self._best_play(hand, playable))

        discard_index, cost = self._best_discard(view, hand)
        hint = self._stall_hint(view)
        # Near the end every draw shortens the final round
        if hint is not None and view.deck_size < self.num_players:
            return hint
        if cost == 0 and view.hint_tokens < view.max_hints:
            return DiscardAction(card_position=discard_index)
        if hint is not None:
            return hint
        if view.can_discard():
            return DiscardAction(card_position=discard_index)
        return PlayAction(card_position=discard_index)

    def _best_play(self, hand: list[Card], playable: list[int]) -> int:
        held = set(self.ledger.all_cards())

        def key(i: int) -> tuple[bool, int, int]:
            card = hand[i]
            unlocks = Card(color=card.color, number=card.number + 1) in held if card.number < 5 else False
            return (not unlocks, card.number, i)

        return min(playable, key=key)

    def _best_discard(self, view: PlayerView, hand: list[Card]) -> tuple[int, int]:
        """Pick the cheapest slot to lose: 0 useless, 1 ordinary, 2 critical."""
        others = [card for p in view.other_players() for card in view.hand(p)]
        best: tuple[int, int, int] | None = None
        for i, card in enumerate(hand):
            duplicated = card in others or hand.count(card) > 1
            if view.is_dead(card) or duplicated:
                cost = 0
            elif view.is_critical(card):
                cost = 2
            else:
                cost = 1
            key = (cost, -card.number, i)
            if best is None or key < best:
                best = key
        if best is None:
            raise InvariantViolationError(f"Player {self.player} has no cards to discard")
        return best[2], best[0]

    def _stall_hint(self, view: PlayerView) -> HintAction | None:
        if view.hint_tokens <= 0:
            return None
        for target in view.other_players():
            hand = view.hand(target)
            if hand:
                return HintAction(target_player=target, hint_type="number", hint_value=hand[0].number)
        return None


class CheatingStrategyFactory(StrategyFactory):
    name = "cheat"

    def create_players(self, num_players: int, seed: int) -> list[Strategy]:
        ledger = HandLedger(num_players)
        return [CheatingStrategy(player, num_players, ledger) for player in range(num_players)]
