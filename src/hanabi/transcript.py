"""Human-readable transcripts built from structured game data."""

from __future__ import annotations

from typing import Any, Mapping

from .models import Card, COLORS, HanabiGameRecord, HintAction, TurnLog


def format_card(card: Card | Mapping[str, Any]) -> str:
    if isinstance(card, Card):
        return str(card)
    return f"{card['color'][0].upper()}{card['number']}"


def format_fireworks(fireworks: Mapping[str, int]) -> str:
    parts = []
    for color in COLORS:
        height = fireworks.get(color, 0)
        parts.append(f"{color[0].upper()}:{height if height else '-'}")
    return " | ".join(parts)


def format_knowledge(knowledge: Mapping[str, Any]) -> str:
    """One slot's public knowledge, e.g. ``RG 12`` (possible colors, then numbers)."""
    colors = "".join(c[0].upper() for c in knowledge.get("possible_colors", []))
    numbers = "".join(str(n) for n in knowledge.get("possible_numbers", []))
    return f"{colors} {numbers}"


def format_turn(turn: TurnLog) -> str:
    action = turn.action
    result = turn.result
    head = f"[{turn.turn_number:3d}] P{turn.player}"
    if isinstance(action, HintAction):
        positions = ", ".join(str(p) for p in result.positions_touched or []) or "none"
        body = f"hints P{action.target_player} {action.hint_type}={action.hint_value} (slots {positions})"
    elif action.action_type == "play":
        outcome = "ok" if result.was_playable else "MISPLAY"
        body = f"plays slot {action.card_position}: {result.card} {outcome}"
    else:
        body = f"discards slot {action.card_position}: {result.card}"
    tail = f"score={turn.score_after} hints={turn.hint_tokens_after} fuses={turn.fuse_tokens_after} deck={turn.deck_size_after}"
    return f"{head} {body} | {tail}"


def format_view(view: Mapping[str, Any]) -> str:
    """Render a view summary (as produced by ``PlayerView.to_dict``)."""
    lines = [f"Player {view['player']} view, turn {view['turn_number']}"]
    for pid, cards in view["visible_hands"].items():
        lines.append(f"  P{pid}: " + " ".join(format_card(c) for c in cards))
    own = [format_knowledge(k) for k in view["my_hand_knowledge"]]
    lines.append("  me: " + " | ".join(own))
    lines.append(f"  fireworks: {format_fireworks(view['fireworks'])}")
    lines.append(
        f"  hints={view['hint_tokens']} fuses={view['fuse_tokens']} deck={view['deck_remaining']}"
    )
    return "\n".join(lines)


def format_transcript(record: HanabiGameRecord) -> str:
    lines = [
        f"Game {record.game_id} ({record.strategy}, {record.config.num_players} players, seed {record.seed})",
    ]
    for player, hand in enumerate(record.initial_hands):
        lines.append(f"  P{player} dealt: " + " ".join(format_card(c) for c in hand))
    lines.extend(format_turn(turn) for turn in record.turns)
    lines.append(
        f"Final score {record.final_score} ({record.game_over_reason}), "
        f"fireworks {format_fireworks(record.final_fireworks)}"
    )
    return "\n".join(lines)
