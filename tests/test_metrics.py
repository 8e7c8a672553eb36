"""Tests for game metrics and transcripts."""

import pytest

from src.hanabi.agents import InformationStrategyFactory, RandomStrategyFactory
from src.hanabi.metrics import compute_episode_metrics, compute_hint_utilization, score_category
from src.hanabi.models import (
    ActionResult,
    Card,
    DiscardAction,
    HanabiConfig,
    HanabiGameRecord,
    HintAction,
    PlayAction,
    TurnLog,
)
from src.hanabi.orchestrator import run_game
from src.hanabi.transcript import (
    format_card,
    format_fireworks,
    format_knowledge,
    format_transcript,
    format_turn,
    format_view,
)
from src.hanabi.visibility import borrow
from src.hanabi.game import create_game


def make_turn(number, player, action, result, score=0, hints=8, fuses=3, deck=40):
    return TurnLog(
        turn_number=number,
        player=player,
        action=action,
        result=result,
        hint_tokens_after=hints,
        fuse_tokens_after=fuses,
        score_after=score,
        deck_size_after=deck,
    )


@pytest.fixture
def small_record():
    """Five turns of a two player game: hint, play, misplay, discard, hint."""
    turns = [
        make_turn(
            1, 0, HintAction(target_player=1, hint_type="color", hint_value="red"),
            ActionResult(action_type="hint", positions_touched=[0, 2], hint_tokens_delta=-1),
            hints=7,
        ),
        make_turn(
            2, 1, PlayAction(card_position=0),
            ActionResult(action_type="play", card=Card(color="red", number=1), was_playable=True, drew_card=True),
            score=1, hints=7, deck=39,
        ),
        make_turn(
            3, 0, PlayAction(card_position=4),
            ActionResult(
                action_type="play", card=Card(color="blue", number=3), was_playable=False,
                drew_card=True, fuse_tokens_delta=-1,
            ),
            score=1, hints=7, fuses=2, deck=38,
        ),
        make_turn(
            4, 1, DiscardAction(card_position=1),
            ActionResult(action_type="discard", card=Card(color="white", number=4), drew_card=True, hint_tokens_delta=1),
            score=1, hints=8, fuses=2, deck=37,
        ),
        make_turn(
            5, 0, HintAction(target_player=1, hint_type="number", hint_value=5),
            ActionResult(action_type="hint", positions_touched=[3], hint_tokens_delta=-1),
            score=1, hints=7, fuses=2, deck=37,
        ),
    ]
    return HanabiGameRecord(
        game_id="test-2p-0",
        config=HanabiConfig(num_players=2, seed=0),
        seed=0,
        strategy="test",
        initial_hands=[
            [Card(color="green", number=2)] * 5,
            [Card(color="red", number=1)] * 5,
        ],
        turns=turns,
        final_score=1,
        final_fireworks={"red": 1, "yellow": 0, "green": 0, "blue": 0, "white": 0},
        fuse_tokens_left=2,
        game_over_reason="final_round_complete",
    )


# ============================================================================
# Episode Metrics Tests
# ============================================================================

class TestEpisodeMetrics:
    """Tests for episode metrics computation."""

    def test_action_counts(self, small_record):
        metrics = compute_episode_metrics(small_record)

        assert metrics["score"] == 1
        assert metrics["score_percentage"] == 4.0
        assert metrics["total_turns"] == 5
        assert metrics["hints_given"] == 2
        assert metrics["plays_attempted"] == 2
        assert metrics["plays_successful"] == 1
        assert metrics["plays_failed"] == 1
        assert metrics["discards"] == 1
        assert metrics["fuses_lost"] == 1

    def test_derived_rates(self, small_record):
        metrics = compute_episode_metrics(small_record)
        assert metrics["hint_efficiency"] == 0.5
        assert metrics["play_success_rate"] == 0.5
        assert metrics["stacks_completed"] == 0
        assert metrics["per_color"]["red"] == 1

    def test_per_player(self, small_record):
        per_player = compute_episode_metrics(small_record)["per_player"]
        assert per_player[0] == {"hints": 2, "plays": 1, "plays_successful": 0, "plays_failed": 1, "discards": 0}
        assert per_player[1] == {"hints": 0, "plays": 1, "plays_successful": 1, "plays_failed": 0, "discards": 1}

    def test_real_game_totals(self):
        record = run_game(4, RandomStrategyFactory(), HanabiConfig(num_players=3))
        metrics = compute_episode_metrics(record)

        assert metrics["hints_given"] + metrics["plays_attempted"] + metrics["discards"] == len(record.turns)
        assert metrics["plays_successful"] == record.final_score
        assert sum(p["hints"] for p in metrics["per_player"].values()) == metrics["hints_given"]


class TestHintUtilization:
    """What hint targets did on their next turn."""

    def test_follow_ups(self, small_record):
        usage = compute_hint_utilization(small_record)

        assert usage["total_hints"] == 2
        assert usage["hints_to_plays"] == 1
        assert usage["hints_to_touched_plays"] == 1
        assert usage["hints_to_touched_discards"] == 0
        assert usage["touched_play_rate"] == 0.5

        first, last = usage["details"]
        assert first["hint"] == "color=red"
        assert first["touched"] == [0, 2]
        assert first["response"] == "play"
        assert first["play_succeeded"]
        assert last["response"] is None
        assert not last["acted_on_touched"]

    def test_untouched_discard_is_not_credited(self, small_record):
        turns = list(small_record.turns)
        # Target answers the first hint by discarding slot 1, which the hint did not touch
        turns[1] = make_turn(
            2, 1, DiscardAction(card_position=1),
            ActionResult(action_type="discard", card=Card(color="white", number=4), drew_card=True),
            hints=8, deck=39,
        )
        usage = compute_hint_utilization(small_record.model_copy(update={"turns": turns}))

        assert usage["details"][0]["response"] == "discard"
        assert not usage["details"][0]["acted_on_touched"]
        assert usage["hints_to_touched_discards"] == 0
        assert usage["touched_play_rate"] == 0.0

    def test_real_game(self):
        record = run_game(2, InformationStrategyFactory(), HanabiConfig(num_players=3))
        usage = compute_hint_utilization(record)
        assert usage["total_hints"] == compute_episode_metrics(record)["hints_given"]
        assert usage["hints_to_touched_plays"] <= usage["hints_to_plays"]


class TestScoreCategory:

    @pytest.mark.parametrize("score,category", [
        (25, "perfect"), (23, "excellent"), (16, "good"), (11, "mediocre"), (6, "poor"), (0, "terrible"),
    ])
    def test_bands(self, score, category):
        assert score_category(score) == category


# ============================================================================
# Transcript Tests
# ============================================================================

class TestTranscript:
    """Text rendering of records and views."""

    def test_format_card(self):
        assert format_card(Card(color="red", number=3)) == "R3"
        assert format_card({"color": "white", "number": 5}) == "W5"

    def test_format_fireworks(self):
        fireworks = {"red": 1, "yellow": 0, "green": 0, "blue": 0, "white": 0}
        assert format_fireworks(fireworks) == "R:1 | Y:- | G:- | B:- | W:-"

    def test_format_knowledge(self):
        knowledge = {"possible_colors": ["red", "green"], "possible_numbers": [1, 2]}
        assert format_knowledge(knowledge) == "RG 12"

    def test_format_turns(self, small_record):
        hint, play, misplay, discard, _ = [format_turn(t) for t in small_record.turns]

        assert hint == "[  1] P0 hints P1 color=red (slots 0, 2) | score=0 hints=7 fuses=3 deck=40"
        assert "plays slot 0: R1 ok" in play
        assert "plays slot 4: B3 MISPLAY" in misplay
        assert "discards slot 1: W4" in discard

    def test_format_transcript(self, small_record):
        text = format_transcript(small_record)
        lines = text.splitlines()

        assert lines[0] == "Game test-2p-0 (test, 2 players, seed 0)"
        assert lines[2] == "  P1 dealt: R1 R1 R1 R1 R1"
        assert lines[-1] == "Final score 1 (final_round_complete), fireworks R:1 | Y:- | G:- | B:- | W:-"
        assert len(lines) == 1 + 2 + 5 + 1

    def test_format_view_hides_own_cards(self):
        state = create_game(HanabiConfig(num_players=3, seed=2))
        text = format_view(borrow(state, 0).to_dict())

        assert text.startswith("Player 0 view, turn")
        assert "  P1: " + " ".join(str(c) for c in state.hands[1]) in text
        assert "  P0: " not in text
        assert "RYGBW 12345" in text

    def test_transcript_of_real_game(self):
        record = run_game(0, InformationStrategyFactory(), HanabiConfig(num_players=2))
        text = format_transcript(record)
        assert text.count("\n[") == len(record.turns)
        assert f"Final score {record.final_score}" in text
