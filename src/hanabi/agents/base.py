"""Strategy interface for Hanabi players."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ..models import Action, TurnLog
from ..visibility import PlayerView


class Strategy(ABC):
    """
    One player's decision procedure for a single game.

    A strategy only ever receives restricted views. It may keep state
    between calls, but that state is built from views and the public
    history, so it cannot contain the player's own cards.
    """

    name: str = "strategy"

    def __init__(self, player: int, num_players: int):
        self.player = player
        self.num_players = num_players

    def start(self, view: PlayerView) -> None:
        """Called once for every seat after the deal, before the first turn."""

    @abstractmethod
    def decide(self, view: PlayerView, history: Sequence[TurnLog]) -> Action:
        """Return a legal action for the acting player."""

    def observe(self, turn: TurnLog, view: PlayerView) -> None:
        """Called for every seat after every turn, with that seat's fresh view."""


class StrategyFactory(ABC):
    """Builds a fresh set of players for each game."""

    name: str = "strategy"

    @abstractmethod
    def create_players(self, num_players: int, seed: int) -> list[Strategy]:
        """One strategy instance per seat, sharing nothing with other games."""
