"""Data models for the Hanabi game engine."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


# Card colors and numbers
Color = Literal["red", "yellow", "green", "blue", "white"]
Number = Literal[1, 2, 3, 4, 5]
HintType = Literal["color", "number"]

COLORS: list[Color] = ["red", "yellow", "green", "blue", "white"]
NUMBERS: list[Number] = [1, 2, 3, 4, 5]

# Card distribution: 1s x3, 2s x2, 3s x2, 4s x2, 5s x1 per color = 10 per color, 50 total
CARD_COUNTS: dict[int, int] = {1: 3, 2: 2, 3: 2, 4: 2, 5: 1}
DECK_SIZE = len(COLORS) * sum(CARD_COUNTS.values())
MAX_SCORE = len(COLORS) * len(NUMBERS)

# 5 cards for 2-3 players, 4 for 4-5 players
HAND_SIZES: dict[int, int] = {2: 5, 3: 5, 4: 4, 5: 4}

GameOverReason = Literal["fuse_out", "perfect_score", "final_round_complete"]


class Card(BaseModel):
    """A Hanabi card with color and number."""

    model_config = ConfigDict(frozen=True)

    color: Color
    number: Number

    def __str__(self) -> str:
        return f"{self.color[0].upper()}{self.number}"

    def __hash__(self) -> int:
        return hash((self.color, self.number))


# Every distinct card identity, in canonical order
ALL_CARDS: list[Card] = [Card(color=c, number=n) for c in COLORS for n in NUMBERS]


class CardKnowledge(BaseModel):
    """What the table publicly knows about one slot from hints received."""

    known_color: Color | None = None
    known_number: Number | None = None
    possible_colors: set[Color] = Field(default_factory=lambda: set(COLORS))
    possible_numbers: set[Number] = Field(default_factory=lambda: set(NUMBERS))
    times_hinted: int = 0

    def apply_hint(self, hint_type: HintType, hint_value: str | int, matched: bool) -> None:
        """Fold one hint (positive or negative) into this slot."""
        if hint_type == "color":
            if matched:
                self.known_color = hint_value  # type: ignore[assignment]
                self.possible_colors = {hint_value}  # type: ignore[assignment]
            else:
                self.possible_colors.discard(hint_value)  # type: ignore[arg-type]
        else:
            if matched:
                self.known_number = hint_value  # type: ignore[assignment]
                self.possible_numbers = {hint_value}  # type: ignore[assignment]
            else:
                self.possible_numbers.discard(hint_value)  # type: ignore[arg-type]
        if matched:
            self.times_hinted += 1

    def is_possible(self, card: Card) -> bool:
        return card.color in self.possible_colors and card.number in self.possible_numbers

    def possibilities(self) -> list[Card]:
        return [card for card in ALL_CARDS if self.is_possible(card)]

    def model_dump(self, **kwargs) -> dict[str, Any]:
        """Custom serialization for sets."""
        data = super().model_dump(**kwargs)
        data["possible_colors"] = [c for c in COLORS if c in self.possible_colors]
        data["possible_numbers"] = sorted(self.possible_numbers)
        return data


# Action types
class PlayAction(BaseModel):
    """Play a card from hand by position (0-indexed, oldest first)."""

    model_config = ConfigDict(frozen=True)

    action_type: Literal["play"] = "play"
    card_position: int


class DiscardAction(BaseModel):
    """Discard a card from hand by position (0-indexed, oldest first)."""

    model_config = ConfigDict(frozen=True)

    action_type: Literal["discard"] = "discard"
    card_position: int


class HintAction(BaseModel):
    """Tell another player which of their cards share one attribute."""

    model_config = ConfigDict(frozen=True)

    action_type: Literal["hint"] = "hint"
    target_player: int
    hint_type: HintType
    hint_value: str | int  # Color string or Number int

    def matches(self, card: Card) -> bool:
        if self.hint_type == "color":
            return card.color == self.hint_value
        return card.number == self.hint_value


Action = PlayAction | DiscardAction | HintAction


class ActionResult(BaseModel):
    """Structured outcome of an applied action."""

    action_type: Literal["play", "discard", "hint"]
    card: Card | None = None  # Played or discarded card, revealed to everyone
    was_playable: bool | None = None  # For play actions
    positions_touched: list[int] | None = None  # For hint actions
    drew_card: bool = False
    hint_tokens_delta: int = 0
    fuse_tokens_delta: int = 0


class TurnLog(BaseModel):
    """One entry of the public history."""

    turn_number: int
    player: int
    action: PlayAction | DiscardAction | HintAction
    result: ActionResult

    # Public counters after the action
    hint_tokens_after: int
    fuse_tokens_after: int
    score_after: int
    deck_size_after: int


class HanabiConfig(BaseModel):
    """Configuration for a Hanabi game."""

    num_players: int = 3
    hand_size: int | None = None  # Defaults from HAND_SIZES
    max_hints: int = 8
    max_fuses: int = 3
    seed: int | None = None

    # Rule variants
    zero_score_on_fuse_out: bool = False
    discard_at_max_hints: bool = True
    allow_empty_hints: bool = False

    @model_validator(mode="after")
    def _check_ranges(self) -> "HanabiConfig":
        if self.num_players not in HAND_SIZES:
            raise ValueError(f"num_players must be 2-5, got {self.num_players}")
        if self.hand_size is None:
            self.hand_size = HAND_SIZES[self.num_players]
        if self.hand_size < 1 or self.hand_size * self.num_players >= DECK_SIZE:
            raise ValueError(f"Invalid hand_size {self.hand_size} for {self.num_players} players")
        if self.max_hints < 1 or self.max_fuses < 1:
            raise ValueError("max_hints and max_fuses must be positive")
        return self


class PublicBoard(BaseModel):
    """Everything on the table that every player may look at."""

    num_players: int
    max_hints: int
    max_fuses: int

    # Fireworks: color -> highest successfully played number (0 if none)
    fireworks: dict[Color, int]
    discard_pile: list[Card] = Field(default_factory=list)

    hint_tokens: int
    fuse_tokens: int
    deck_size: int

    current_player: int = 0
    turn_number: int = 1

    # Set to num_players when the deck runs out; the game ends at zero
    endgame_turns_remaining: int | None = None
    game_over: bool = False
    game_over_reason: GameOverReason | None = None

    # Bumped on every mutation so borrowed views can detect staleness
    version: int = 0

    @property
    def score(self) -> int:
        """Current score (sum of highest played cards per color)."""
        return sum(self.fireworks.values())


class HanabiState(BaseModel):
    """Authoritative state of a Hanabi game."""

    config: HanabiConfig

    # Deck (hidden from all players); cards are drawn from the end
    deck: list[Card]

    # Hands by seat (each hidden from its owner)
    hands: list[list[Card]]

    # Knowledge by seat: what the table knows about each slot
    knowledge: list[list[CardKnowledge]]

    board: PublicBoard

    history: list[TurnLog] = Field(default_factory=list)

    @property
    def current_player(self) -> int:
        return self.board.current_player

    @property
    def num_players(self) -> int:
        return self.board.num_players

    @property
    def score(self) -> int:
        return self.board.score

    @property
    def deck_size(self) -> int:
        return len(self.deck)

    @property
    def game_over(self) -> bool:
        return self.board.game_over


class HanabiGameRecord(BaseModel):
    """Complete record of one simulated game."""

    game_id: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    config: HanabiConfig
    seed: int
    strategy: str = ""

    # Initial hands (for replay)
    initial_hands: list[list[Card]]

    # Public history
    turns: list[TurnLog]

    # Final state
    final_score: int
    final_fireworks: dict[Color, int]
    fuse_tokens_left: int
    game_over_reason: GameOverReason

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_perfect(self) -> bool:
        return self.final_score == MAX_SCORE

    def action_signature(self) -> list[tuple[int, str]]:
        """Compact (player, action json) sequence for replay comparison."""
        return [(t.player, t.action.model_dump_json()) for t in self.turns]

    def to_filename(self) -> str:
        ts = self.timestamp.strftime("%Y%m%d_%H%M%S")
        return f"hanabi_game_{self.game_id}_{ts}.json"

    def save(self, directory: str | Path) -> str:
        """Save the record as JSON in a directory. Returns the written filepath."""
        d = Path(directory)
        d.mkdir(parents=True, exist_ok=True)
        fp = d / self.to_filename()
        data = self.model_dump(mode="json")
        with open(fp, "w") as f:
            json.dump(data, f, indent=2)
        return str(fp)
