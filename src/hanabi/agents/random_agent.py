"""Random example strategy."""

from __future__ import annotations

import random
from typing import Sequence

from ..models import Action, DiscardAction, HintAction, PlayAction, TurnLog
from ..visibility import PlayerView
from .base import Strategy, StrategyFactory


class RandomStrategy(Strategy):
    """Hints with some probability, otherwise plays or discards a random slot."""

    name = "random"

    def __init__(
        self,
        player: int,
        num_players: int,
        rng: random.Random,
        hint_probability: float = 0.4,
        play_probability: float = 0.2,
    ):
        super().__init__(player, num_players)
        self.rng = rng
        self.hint_probability = hint_probability
        self.play_probability = play_probability

    def decide(self, view: PlayerView, history: Sequence[TurnLog]) -> Action:
        legal = view.legal_actions()
        hints = [a for a in legal if isinstance(a, HintAction)]
        plays = [a for a in legal if isinstance(a, PlayAction)]
        discards = [a for a in legal if isinstance(a, DiscardAction)]

        roll = self.rng.random()
        if hints and roll < self.hint_probability:
            return self.rng.choice(hints)
        if plays and (roll < self.hint_probability + self.play_probability or not discards):
            return self.rng.choice(plays)
        if discards:
            return self.rng.choice(discards)
        return self.rng.choice(legal)


class RandomStrategyFactory(StrategyFactory):
    name = "random"

    def __init__(self, hint_probability: float = 0.4, play_probability: float = 0.2):
        if not 0 <= hint_probability + play_probability <= 1:
            raise ValueError("hint_probability + play_probability must be within [0, 1]")
        self.hint_probability = hint_probability
        self.play_probability = play_probability

    def create_players(self, num_players: int, seed: int) -> list[Strategy]:
        # Seeded per game and seat so replays are deterministic
        return [
            RandomStrategy(
                player,
                num_players,
                random.Random(seed * 7919 + player),
                hint_probability=self.hint_probability,
                play_probability=self.play_probability,
            )
            for player in range(num_players)
        ]
