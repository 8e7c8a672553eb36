"""Visibility and view generation for Hanabi.

Core principle: A player can see ALL other players' hands but NOT their own cards.
They only know about their own cards through hints received.

Views are projections, not redacted copies: a view is built from the public
board, the knowledge lists and the *other* players' hand lists only. The
viewer's own hand list and the deck are never handed to the view, so there is
no attribute or method through which they could be read back.
"""

from __future__ import annotations

from collections import Counter
from types import MappingProxyType
from typing import Any, Mapping

from .errors import HiddenInformationError, StaleViewError
from .game import count_discarded, is_critical, is_dead, is_playable, played_cards
from .models import (
    Action,
    ALL_CARDS,
    CARD_COUNTS,
    Card,
    CardKnowledge,
    Color,
    COLORS,
    DiscardAction,
    HanabiConfig,
    HanabiState,
    HintAction,
    NUMBERS,
    PlayAction,
    PublicBoard,
)


# Keys that must NEVER appear in any player view payload
FORBIDDEN_KEYS = {
    "deck",
    "deck_order",
    "rng",
    "seed",
    "random",
    "debug",
    "_internal",
}


class PlayerView:
    """Read access shared by borrowed and owned views."""

    __slots__ = ("player", "config", "_board", "_hands", "_knowledge")

    def __init__(
        self,
        player: int,
        config: HanabiConfig,
        board: PublicBoard,
        hands: dict[int, list[Card]],
        knowledge: list[list[CardKnowledge]],
    ):
        if player in hands:
            raise HiddenInformationError(f"Refusing to build a view holding player {player}'s own hand")
        self.player = player
        self.config = config
        self._board = board
        self._hands = hands
        self._knowledge = knowledge

    def _check_live(self) -> None:
        """Hook for borrowed views; owned views are always usable."""

    # -- hands -----------------------------------------------------------

    @property
    def num_players(self) -> int:
        return self._board.num_players

    def other_players(self) -> list[int]:
        """Other seats in turn order, starting after the viewer."""
        n = self.num_players
        return [(self.player + offset) % n for offset in range(1, n)]

    def hand(self, player: int) -> tuple[Card, ...]:
        """Cards held by another player. The viewer's own hand is not available."""
        self._check_live()
        if player == self.player:
            raise HiddenInformationError("A player cannot look at their own hand")
        return tuple(self._hands[player])

    def hand_size(self, player: int) -> int:
        self._check_live()
        return len(self._knowledge[player])

    def knowledge(self, player: int) -> tuple[CardKnowledge, ...]:
        """Public hint knowledge for any player's slots (own slots included)."""
        self._check_live()
        return tuple(self._knowledge[player])

    def own_slots(self) -> tuple[CardKnowledge, ...]:
        return self.knowledge(self.player)

    # -- public board ----------------------------------------------------

    @property
    def fireworks(self) -> Mapping[Color, int]:
        self._check_live()
        return MappingProxyType(self._board.fireworks)

    @property
    def discard_pile(self) -> tuple[Card, ...]:
        self._check_live()
        return tuple(self._board.discard_pile)

    @property
    def hint_tokens(self) -> int:
        self._check_live()
        return self._board.hint_tokens

    @property
    def max_hints(self) -> int:
        return self._board.max_hints

    @property
    def fuse_tokens(self) -> int:
        self._check_live()
        return self._board.fuse_tokens

    @property
    def deck_size(self) -> int:
        self._check_live()
        return self._board.deck_size

    @property
    def turn_number(self) -> int:
        self._check_live()
        return self._board.turn_number

    @property
    def current_player(self) -> int:
        self._check_live()
        return self._board.current_player

    @property
    def score(self) -> int:
        self._check_live()
        return self._board.score

    @property
    def endgame_turns_remaining(self) -> int | None:
        self._check_live()
        return self._board.endgame_turns_remaining

    @property
    def game_over(self) -> bool:
        self._check_live()
        return self._board.game_over

    # -- derived queries -------------------------------------------------

    def discarded_counts(self) -> Counter[Card]:
        self._check_live()
        return count_discarded(self._board.discard_pile)

    def is_playable(self, card: Card) -> bool:
        self._check_live()
        return is_playable(card, self._board.fireworks)

    def is_dead(self, card: Card) -> bool:
        return is_dead(card, self.fireworks, self.discarded_counts())

    def is_critical(self, card: Card) -> bool:
        return is_critical(card, self.fireworks, self.discarded_counts())

    def remaining_counts(self) -> Counter[Card]:
        """
        Copies of each identity the viewer cannot see anywhere.

        Full deck minus fireworks, discards and other players' hands. The
        viewer's own hand and the deck share this pool.
        """
        self._check_live()
        counts: Counter[Card] = Counter(
            {card: CARD_COUNTS[card.number] for card in ALL_CARDS}
        )
        counts.subtract(played_cards(self._board.fireworks))
        counts.subtract(self._board.discard_pile)
        for hand in self._hands.values():
            counts.subtract(hand)
        return counts

    def unseen_count(self, card: Card) -> int:
        return self.remaining_counts()[card]

    def hint_touches(self, hint: HintAction) -> list[int]:
        """Positions in another player's hand that a hint would touch."""
        return [i for i, card in enumerate(self.hand(hint.target_player)) if hint.matches(card)]

    def can_discard(self) -> bool:
        return self.config.discard_at_max_hints or self.hint_tokens < self.max_hints

    def legal_actions(self) -> list[Action]:
        """Every action the engine would accept from the viewer now."""
        self._check_live()
        if self._board.game_over or self._board.current_player != self.player:
            return []

        actions: list[Action] = []
        own = self.hand_size(self.player)
        actions.extend(PlayAction(card_position=i) for i in range(own))
        if self.can_discard():
            actions.extend(DiscardAction(card_position=i) for i in range(own))

        if self._board.hint_tokens > 0:
            for target in self.other_players():
                hand = self._hands[target]
                for color in COLORS:
                    if self.config.allow_empty_hints or any(c.color == color for c in hand):
                        actions.append(HintAction(target_player=target, hint_type="color", hint_value=color))
                for number in NUMBERS:
                    if self.config.allow_empty_hints or any(c.number == number for c in hand):
                        actions.append(HintAction(target_player=target, hint_type="number", hint_value=number))
        return actions

    def to_dict(self) -> dict[str, Any]:
        """Summary payload for transcripts. Carries no hidden information."""
        self._check_live()
        board = self._board
        return {
            "role": "player",
            "player": self.player,
            "turn_number": board.turn_number,
            "visible_hands": {
                str(pid): [{"color": c.color, "number": c.number} for c in hand]
                for pid, hand in sorted(self._hands.items())
            },
            "my_hand_knowledge": [k.model_dump() for k in self._knowledge[self.player]],
            "my_hand_size": len(self._knowledge[self.player]),
            "fireworks": dict(board.fireworks),
            "discard_pile": [{"color": c.color, "number": c.number} for c in board.discard_pile],
            "deck_remaining": board.deck_size,
            "hint_tokens": board.hint_tokens,
            "fuse_tokens": board.fuse_tokens,
            "score": board.score,
            "current_player": board.current_player,
            "is_my_turn": board.current_player == self.player,
            "final_round_started": board.endgame_turns_remaining is not None,
            "game_over": board.game_over,
        }

    def clone_to_owned(self) -> "OwnedView":
        """Detached copy a strategy may keep and mutate across turns."""
        self._check_live()
        return OwnedView(
            player=self.player,
            config=self.config,
            board=self._board.model_copy(deep=True),
            hands={pid: list(hand) for pid, hand in self._hands.items()},
            knowledge=[[k.model_copy(deep=True) for k in slots] for slots in self._knowledge],
        )


class BorrowedView(PlayerView):
    """
    View into a live game for the duration of one decision.

    Holds references into the state; any use after the state is mutated
    raises StaleViewError.
    """

    __slots__ = ("_version",)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._version = self._board.version

    def _check_live(self) -> None:
        if self._board.version != self._version:
            raise StaleViewError(
                f"View for player {self.player} was borrowed at version {self._version}, "
                f"state is now at {self._board.version}"
            )

    def knowledge(self, player: int) -> tuple[CardKnowledge, ...]:
        """Copies of the public slot knowledge; the live records belong to the state."""
        return tuple(k.model_copy(deep=True) for k in super().knowledge(player))


class OwnedView(PlayerView):
    """Detached, independently mutable snapshot for scratch reasoning."""

    __slots__ = ()

    def note_hint(self, hint: HintAction) -> list[int]:
        """Apply a hint to this snapshot's knowledge. Returns touched positions."""
        touched = self.hint_touches(hint)
        for i, slot in enumerate(self._knowledge[hint.target_player]):
            slot.apply_hint(hint.hint_type, hint.hint_value, i in touched)
        return touched


def borrow(state: HanabiState, player: int) -> BorrowedView:
    """
    Build the restricted view of a live game for one player.

    The viewer's own hand list is never passed to the view; only the other
    seats' lists are referenced. O(player count), no card data is copied.
    """
    if not 0 <= player < state.num_players:
        raise ValueError(f"Unknown player: {player}")
    hands = {pid: hand for pid, hand in enumerate(state.hands) if pid != player}
    return BorrowedView(
        player=player,
        # The seed would let a strategy rebuild the deck order
        config=state.config.model_copy(update={"seed": None}),
        board=state.board,
        hands=hands,
        knowledge=state.knowledge,
    )


def view_for_player(state: HanabiState, player: int) -> dict[str, Any]:
    """Serialized view summary for one player."""
    return borrow(state, player).to_dict()


def assert_no_leaks(payload: Any, path: str = "") -> None:
    """
    Recursively assert that no forbidden keys appear in a payload.

    Raises AssertionError if any leak is detected.
    """
    if isinstance(payload, dict):
        for key, value in payload.items():
            key_str = str(key).lower()
            current_path = f"{path}.{key}" if path else key

            if key_str in FORBIDDEN_KEYS:
                raise AssertionError(f"Forbidden key '{key}' found at {current_path}")

            if key_str == "my_hand" or key_str == "own_hand":
                raise AssertionError(f"Direct hand access found at {current_path}")

            assert_no_leaks(value, current_path)

    elif isinstance(payload, list):
        for i, item in enumerate(payload):
            assert_no_leaks(item, f"{path}[{i}]")


def assert_view_safe(view: dict[str, Any]) -> None:
    """
    Validate that a serialized player view is safe (no information leaks).

    Checks:
    1. No forbidden keys anywhere in the payload
    2. Player's own cards are not directly visible
    3. Only CardKnowledge is present for own hand
    """
    if not isinstance(view, dict):
        raise AssertionError("View must be a dictionary")

    if view.get("role") != "player":
        raise AssertionError(f"Unknown role in view: {view.get('role')}")

    player = view.get("player")
    if player is None:
        raise AssertionError("View missing player")

    visible_hands = view.get("visible_hands", {})
    if str(player) in visible_hands:
        raise AssertionError(f"Player {player}'s own hand found in visible_hands - LEAK!")

    allowed_keys = {"known_color", "known_number", "possible_colors", "possible_numbers", "times_hinted"}
    for i, k in enumerate(view.get("my_hand_knowledge", [])):
        extra_keys = set(k.keys()) - allowed_keys
        if "color" in extra_keys or "number" in extra_keys:
            raise AssertionError(f"Actual card data found in my_hand_knowledge[{i}] - LEAK!")

    assert_no_leaks(view)
