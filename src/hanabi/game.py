"""Core game logic for Hanabi."""

from __future__ import annotations

import random
from collections import Counter
from typing import Mapping

from .errors import IllegalActionError, InvariantViolationError
from .models import (
    Action,
    ActionResult,
    Card,
    CardKnowledge,
    Color,
    COLORS,
    CARD_COUNTS,
    DiscardAction,
    GameOverReason,
    HanabiConfig,
    HanabiState,
    HintAction,
    MAX_SCORE,
    NUMBERS,
    PlayAction,
    PublicBoard,
    TurnLog,
)


def create_deck(seed: int) -> list[Card]:
    """Create and shuffle a standard Hanabi deck."""
    rng = random.Random(seed)
    deck: list[Card] = []

    for color in COLORS:
        for number, count in CARD_COUNTS.items():
            for _ in range(count):
                deck.append(Card(color=color, number=number))  # type: ignore[arg-type]

    rng.shuffle(deck)
    return deck


def full_deck_counts() -> Counter[Card]:
    """Multiset of the canonical deck."""
    return Counter(create_deck(0))


def create_game(config: HanabiConfig) -> HanabiState:
    """
    Create a new Hanabi game.

    Args:
        config: Game configuration. A missing seed is drawn at random and
            stored back into the returned state's config.

    Returns:
        Initial game state with dealt hands
    """
    seed = config.seed if config.seed is not None else random.randint(0, 2**31 - 1)
    config = config.model_copy(update={"seed": seed})

    deck = create_deck(seed)
    num_players = config.num_players

    hands: list[list[Card]] = [[] for _ in range(num_players)]
    knowledge: list[list[CardKnowledge]] = [[] for _ in range(num_players)]

    for _ in range(config.hand_size):
        for player in range(num_players):
            hands[player].append(deck.pop())
            knowledge[player].append(CardKnowledge())

    board = PublicBoard(
        num_players=num_players,
        max_hints=config.max_hints,
        max_fuses=config.max_fuses,
        fireworks={color: 0 for color in COLORS},
        hint_tokens=config.max_hints,
        fuse_tokens=config.max_fuses,
        deck_size=len(deck),
    )

    return HanabiState(
        config=config,
        deck=deck,
        hands=hands,
        knowledge=knowledge,
        board=board,
    )


def deal_card(state: HanabiState, player: int) -> bool:
    """Draw the top card into the back of a player's hand. Returns False once the deck is empty."""
    if not state.deck:
        return False
    state.hands[player].append(state.deck.pop())
    state.knowledge[player].append(CardKnowledge())
    state.board.deck_size = len(state.deck)
    return True


def is_playable(card: Card, fireworks: Mapping[Color, int]) -> bool:
    """Check if a card can be legally played."""
    return card.number == fireworks[card.color] + 1


def count_discarded(discard_pile: list[Card]) -> Counter[Card]:
    return Counter(discard_pile)


def is_dead(card: Card, fireworks: Mapping[Color, int], discarded: Mapping[Card, int]) -> bool:
    """A card is dead when it was already played or a lower card of its color is gone for good."""
    if card.number <= fireworks[card.color]:
        return True
    for number in range(fireworks[card.color] + 1, card.number):
        lower = Card(color=card.color, number=number)  # type: ignore[arg-type]
        if discarded.get(lower, 0) >= CARD_COUNTS[number]:
            return True
    return False


def count_remaining(discarded: Mapping[Card, int], card: Card) -> int:
    """Count how many copies of a card are not in the discard pile."""
    return CARD_COUNTS[card.number] - discarded.get(card, 0)


def is_critical(card: Card, fireworks: Mapping[Color, int], discarded: Mapping[Card, int]) -> bool:
    """Check if a card is critical (last live copy of a card still needed)."""
    if is_dead(card, fireworks, discarded):
        return False
    return count_remaining(discarded, card) == 1


def played_cards(fireworks: Mapping[Color, int]) -> list[Card]:
    """Cards sitting on the fireworks."""
    return [
        Card(color=color, number=number)  # type: ignore[arg-type]
        for color, height in fireworks.items()
        for number in range(1, height + 1)
    ]


def check_legal(state: HanabiState, player: int, action: Action) -> None:
    """Raise IllegalActionError unless `action` is legal for `player` right now."""
    board = state.board
    if board.game_over:
        raise IllegalActionError(player, action, "game is already over")
    if player != board.current_player:
        raise IllegalActionError(player, action, f"not player {player}'s turn (current: {board.current_player})")

    hand = state.hands[player]
    if isinstance(action, (PlayAction, DiscardAction)):
        if action.card_position < 0 or action.card_position >= len(hand):
            raise IllegalActionError(player, action, f"invalid card position {action.card_position}")
        if (
            isinstance(action, DiscardAction)
            and not state.config.discard_at_max_hints
            and board.hint_tokens >= board.max_hints
        ):
            raise IllegalActionError(player, action, "cannot discard at maximum hint tokens")
    elif isinstance(action, HintAction):
        if board.hint_tokens <= 0:
            raise IllegalActionError(player, action, "no hint tokens available")
        if action.target_player == player:
            raise IllegalActionError(player, action, "cannot give a hint to yourself")
        if not 0 <= action.target_player < board.num_players:
            raise IllegalActionError(player, action, f"unknown player {action.target_player}")
        valid_values = COLORS if action.hint_type == "color" else NUMBERS
        if action.hint_value not in valid_values:
            raise IllegalActionError(player, action, f"invalid {action.hint_type} {action.hint_value!r}")
        if not state.config.allow_empty_hints and not any(
            action.matches(card) for card in state.hands[action.target_player]
        ):
            raise IllegalActionError(
                player, action, f"hint {action.hint_type}={action.hint_value} touches no card"
            )
    else:
        raise IllegalActionError(player, action, f"unknown action type {type(action).__name__}")


def apply_play(state: HanabiState, player: int, action: PlayAction) -> ActionResult:
    """Apply a play action."""
    board = state.board
    card = state.hands[player].pop(action.card_position)
    state.knowledge[player].pop(action.card_position)

    hint_delta = 0
    fuse_delta = 0
    playable = is_playable(card, board.fireworks)
    if playable:
        board.fireworks[card.color] = card.number
        # Bonus hint token for completing a stack
        if card.number == 5 and board.hint_tokens < board.max_hints:
            board.hint_tokens += 1
            hint_delta = 1
    else:
        board.fuse_tokens -= 1
        fuse_delta = -1
        board.discard_pile.append(card)

    drew = deal_card(state, player)
    return ActionResult(
        action_type="play",
        card=card,
        was_playable=playable,
        drew_card=drew,
        hint_tokens_delta=hint_delta,
        fuse_tokens_delta=fuse_delta,
    )


def apply_discard(state: HanabiState, player: int, action: DiscardAction) -> ActionResult:
    """Apply a discard action."""
    board = state.board
    card = state.hands[player].pop(action.card_position)
    state.knowledge[player].pop(action.card_position)
    board.discard_pile.append(card)

    hint_delta = 0
    if board.hint_tokens < board.max_hints:
        board.hint_tokens += 1
        hint_delta = 1

    drew = deal_card(state, player)
    return ActionResult(
        action_type="discard",
        card=card,
        drew_card=drew,
        hint_tokens_delta=hint_delta,
    )


def apply_hint(state: HanabiState, player: int, action: HintAction) -> ActionResult:
    """Apply a hint action, updating positive and negative knowledge."""
    target_hand = state.hands[action.target_player]
    target_knowledge = state.knowledge[action.target_player]

    positions_touched: list[int] = []
    for i, card in enumerate(target_hand):
        matched = action.matches(card)
        if matched:
            positions_touched.append(i)
        target_knowledge[i].apply_hint(action.hint_type, action.hint_value, matched)

    state.board.hint_tokens -= 1
    return ActionResult(
        action_type="hint",
        positions_touched=positions_touched,
        hint_tokens_delta=-1,
    )


def apply_action(state: HanabiState, player: int, action: Action) -> tuple[ActionResult, TurnLog]:
    """
    Apply an action to the game state in place.

    Raises:
        IllegalActionError: the action is not legal for `player` right now

    Returns:
        (result, turn_log)
    """
    check_legal(state, player, action)
    board = state.board

    if isinstance(action, PlayAction):
        result = apply_play(state, player, action)
    elif isinstance(action, DiscardAction):
        result = apply_discard(state, player, action)
    else:
        result = apply_hint(state, player, action)

    # Endgame countdown: starts the turn the deck runs out, counts the next N turns
    if board.endgame_turns_remaining is not None:
        board.endgame_turns_remaining -= 1
    elif not state.deck:
        board.endgame_turns_remaining = board.num_players

    turn_log = TurnLog(
        turn_number=board.turn_number,
        player=player,
        action=action,
        result=result,
        hint_tokens_after=board.hint_tokens,
        fuse_tokens_after=board.fuse_tokens,
        score_after=board.score,
        deck_size_after=len(state.deck),
    )
    state.history.append(turn_log)

    game_over, reason = check_terminal(state)
    if game_over:
        board.game_over = True
        board.game_over_reason = reason
    else:
        board.current_player = (board.current_player + 1) % board.num_players
        board.turn_number += 1
    board.version += 1

    return result, turn_log


def check_terminal(state: HanabiState) -> tuple[bool, GameOverReason | None]:
    """
    Check if the game has ended.

    Returns:
        (is_game_over, reason)
        Reasons, in priority order: "fuse_out", "perfect_score", "final_round_complete"
    """
    board = state.board
    if board.fuse_tokens <= 0:
        return True, "fuse_out"
    if board.score == MAX_SCORE:
        return True, "perfect_score"
    if board.endgame_turns_remaining is not None and board.endgame_turns_remaining <= 0:
        return True, "final_round_complete"
    return False, None


def final_score(state: HanabiState) -> int:
    """Score under the configured rule variant."""
    if state.board.game_over_reason == "fuse_out" and state.config.zero_score_on_fuse_out:
        return 0
    return state.board.score


def check_invariants(state: HanabiState) -> None:
    """
    Verify card conservation and counter bounds.

    Raises:
        InvariantViolationError: on any broken invariant
    """
    board = state.board
    seen: Counter[Card] = Counter(state.deck)
    for hand in state.hands:
        seen.update(hand)
    seen.update(board.discard_pile)
    seen.update(played_cards(board.fireworks))
    if seen != full_deck_counts():
        raise InvariantViolationError(f"Card conservation broken: {sum(seen.values())} cards accounted for")

    for player, hand in enumerate(state.hands):
        if len(hand) != len(state.knowledge[player]):
            raise InvariantViolationError(f"Hand and knowledge of player {player} are misaligned")
    if board.deck_size != len(state.deck):
        raise InvariantViolationError("Public deck size disagrees with the deck")
    if not 0 <= board.hint_tokens <= board.max_hints:
        raise InvariantViolationError(f"Hint tokens out of range: {board.hint_tokens}")
    if not 0 <= board.fuse_tokens <= board.max_fuses:
        raise InvariantViolationError(f"Fuse tokens out of range: {board.fuse_tokens}")
    for color, height in board.fireworks.items():
        if not 0 <= height <= 5:
            raise InvariantViolationError(f"Firework {color} out of range: {height}")
    if board.game_over and board.game_over_reason is None:
        raise InvariantViolationError("Game ended without a reason")
