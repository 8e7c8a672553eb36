"""Metrics calculation for Hanabi games."""

from __future__ import annotations

from typing import Any

from .models import (
    DiscardAction,
    HanabiGameRecord,
    HintAction,
    MAX_SCORE,
    PlayAction,
)


def compute_episode_metrics(record: HanabiGameRecord) -> dict[str, Any]:
    """
    Compute metrics for a completed game.

    Returns dict with:
    - score: Final score (0-25)
    - score_percentage: Score as percentage of max (25)
    - total_turns: Number of turns played
    - hints_given / plays_attempted / plays_successful / plays_failed / discards
    - hint_efficiency: Successful plays per hint given
    - per_player: Per-player breakdown
    """
    hints_given = 0
    plays_attempted = 0
    plays_successful = 0
    plays_failed = 0
    discards = 0

    per_player: dict[int, dict[str, int]] = {
        p: {"hints": 0, "plays": 0, "plays_successful": 0, "plays_failed": 0, "discards": 0}
        for p in range(record.config.num_players)
    }

    for turn in record.turns:
        stats = per_player[turn.player]
        action = turn.action
        if isinstance(action, HintAction):
            hints_given += 1
            stats["hints"] += 1
        elif isinstance(action, PlayAction):
            plays_attempted += 1
            stats["plays"] += 1
            if turn.result.was_playable:
                plays_successful += 1
                stats["plays_successful"] += 1
            else:
                plays_failed += 1
                stats["plays_failed"] += 1
        elif isinstance(action, DiscardAction):
            discards += 1
            stats["discards"] += 1

    hint_efficiency = plays_successful / hints_given if hints_given > 0 else 0.0
    play_success_rate = plays_successful / plays_attempted if plays_attempted > 0 else 0.0

    return {
        "score": record.final_score,
        "score_percentage": round(record.final_score / MAX_SCORE * 100, 1),
        "max_possible_score": MAX_SCORE,
        "total_turns": len(record.turns),
        "game_over_reason": record.game_over_reason,

        # Action counts
        "hints_given": hints_given,
        "plays_attempted": plays_attempted,
        "plays_successful": plays_successful,
        "plays_failed": plays_failed,
        "discards": discards,

        # Derived metrics
        "hint_efficiency": round(hint_efficiency, 3),
        "play_success_rate": round(play_success_rate, 3),
        "fuses_lost": plays_failed,

        # Per-color breakdown
        "stacks_completed": sum(1 for v in record.final_fireworks.values() if v == 5),
        "per_color": dict(record.final_fireworks),

        "per_player": per_player,
    }


def compute_hint_utilization(record: HanabiGameRecord) -> dict[str, Any]:
    """
    What each hint's target did on its next turn.

    A hand only shifts when its owner plays or discards, so the positions a
    hint touched still name the same cards on the target's next turn.
    """
    details: list[dict[str, Any]] = []
    for i, turn in enumerate(record.turns):
        if not isinstance(turn.action, HintAction):
            continue
        target = turn.action.target_player
        touched = turn.result.positions_touched or []
        reply = next((t for t in record.turns[i + 1:] if t.player == target), None)

        response = reply.action.action_type if reply is not None else None
        on_touched = (
            reply is not None
            and not isinstance(reply.action, HintAction)
            and reply.action.card_position in touched
        )
        details.append({
            "turn": turn.turn_number,
            "hinter": turn.player,
            "target": target,
            "hint": f"{turn.action.hint_type}={turn.action.hint_value}",
            "touched": touched,
            "response": response,
            "acted_on_touched": on_touched,
            "play_succeeded": bool(on_touched and response == "play" and reply.result.was_playable),
        })

    total = len(details)
    touched_plays = sum(1 for d in details if d["acted_on_touched"] and d["response"] == "play")
    return {
        "total_hints": total,
        "hints_to_plays": sum(1 for d in details if d["response"] == "play"),
        "hints_to_touched_plays": touched_plays,
        "hints_to_touched_discards": sum(
            1 for d in details if d["acted_on_touched"] and d["response"] == "discard"
        ),
        "touched_play_rate": round(touched_plays / total, 3) if total else 0.0,
        "details": details,
    }


def score_category(score: int) -> str:
    """Categorize a Hanabi score."""
    if score == MAX_SCORE:
        return "perfect"
    elif score >= 21:
        return "excellent"
    elif score >= 16:
        return "good"
    elif score >= 11:
        return "mediocre"
    elif score >= 6:
        return "poor"
    else:
        return "terrible"
