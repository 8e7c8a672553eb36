"""Orchestrator for running Hanabi games."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Sequence

from .agents.base import Strategy, StrategyFactory
from .errors import ConfigurationError, InvariantViolationError
from .game import apply_action, check_invariants, create_game, final_score
from .models import HanabiConfig, HanabiGameRecord, HanabiState, TurnLog
from .visibility import borrow


logger = logging.getLogger(__name__)

# No legal line of play comes close; hitting this means a strategy is looping
MAX_TURNS = 500

EmitFn = Callable[[str, dict[str, Any]], None]


def run_turn(
    state: HanabiState,
    strategies: Sequence[Strategy],
    emit_fn: EmitFn | None = None,
    verify: bool = True,
) -> TurnLog:
    """
    Execute a single turn.

    The acting strategy decides on a borrowed view, the action is applied,
    and then every seat observes the public result through a fresh view.

    Raises:
        IllegalActionError: the strategy returned an illegal action
        InvariantViolationError: the state broke an invariant
    """
    player = state.current_player
    view = borrow(state, player)
    action = strategies[player].decide(view, tuple(state.history))

    result, turn_log = apply_action(state, player, action)
    if verify:
        check_invariants(state)

    logger.debug(
        f"Turn {turn_log.turn_number}: player {player} {action.action_type} -> "
        f"score={turn_log.score_after} hints={turn_log.hint_tokens_after} "
        f"fuses={turn_log.fuse_tokens_after} deck={turn_log.deck_size_after}"
    )

    for seat, strategy in enumerate(strategies):
        strategy.observe(turn_log, borrow(state, seat))

    if emit_fn is not None:
        # Observer events carry the full state; they never reach strategies
        emit_fn("turn", {
            "turn": turn_log.model_dump(mode="json"),
            "hands": [[{"color": c.color, "number": c.number} for c in hand] for hand in state.hands],
            "knowledge": [[k.model_dump() for k in slots] for slots in state.knowledge],
            "view": borrow(state, player).to_dict(),
            "fireworks": dict(state.board.fireworks),
            "discard_pile": [{"color": c.color, "number": c.number} for c in state.board.discard_pile],
            "deck_remaining": len(state.deck),
        })

    return turn_log


def run_game(
    seed: int,
    strategies: StrategyFactory | Sequence[Strategy],
    config: HanabiConfig | None = None,
    emit_fn: EmitFn | None = None,
    game_id: str | None = None,
    verify: bool = True,
    metadata: dict[str, Any] | None = None,
) -> HanabiGameRecord:
    """
    Run a complete Hanabi game.

    Args:
        seed: Deck seed
        strategies: A factory (fresh players are built for this game) or one
            strategy instance per seat
        config: Game configuration; its seed is replaced by `seed`
        emit_fn: Optional callback for transcript/observer events
        game_id: Optional record ID (derived from the seed if not provided)
        verify: Check state invariants after every turn
        metadata: Optional metadata to include in the record

    Returns:
        Complete game record
    """
    config = (config or HanabiConfig()).model_copy(update={"seed": seed})

    if isinstance(strategies, StrategyFactory):
        players = strategies.create_players(config.num_players, seed)
        strategy_name = strategies.name
    else:
        players = list(strategies)
        strategy_name = "+".join(sorted({p.name for p in players}))
    if len(players) != config.num_players:
        raise ConfigurationError(f"Expected {config.num_players} players, got {len(players)}")

    if game_id is None:
        game_id = f"{strategy_name}-{config.num_players}p-{seed}"

    state = create_game(config)
    initial_hands = [list(hand) for hand in state.hands]

    for seat, player in enumerate(players):
        player.start(borrow(state, seat))

    if emit_fn is not None:
        emit_fn("init", {
            "game_id": game_id,
            "config": config.model_dump(),
            "strategy": strategy_name,
            "hands": [[{"color": c.color, "number": c.number} for c in hand] for hand in state.hands],
            "hint_tokens": state.board.hint_tokens,
            "fuse_tokens": state.board.fuse_tokens,
            "deck_remaining": len(state.deck),
        })

    while not state.game_over:
        if len(state.history) >= MAX_TURNS:
            raise InvariantViolationError(f"Game {game_id} exceeded {MAX_TURNS} turns")
        run_turn(state, players, emit_fn, verify)

    if state.board.game_over_reason is None:
        raise InvariantViolationError(f"Game {game_id} ended without a reason")
    record = HanabiGameRecord(
        game_id=game_id,
        timestamp=datetime.utcnow(),
        config=config,
        seed=seed,
        strategy=strategy_name,
        initial_hands=initial_hands,
        turns=list(state.history),
        final_score=final_score(state),
        final_fireworks=dict(state.board.fireworks),
        fuse_tokens_left=state.board.fuse_tokens,
        game_over_reason=state.board.game_over_reason,
        metadata=metadata or {},
    )

    logger.debug(
        f"Game {game_id} over after {len(record.turns)} turns: "
        f"score={record.final_score} ({record.game_over_reason})"
    )

    if emit_fn is not None:
        emit_fn("done", {
            "game_id": game_id,
            "final_score": record.final_score,
            "game_over_reason": record.game_over_reason,
            "total_turns": len(record.turns),
        })

    return record
