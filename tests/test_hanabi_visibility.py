"""Tests for Hanabi visibility and information leak prevention."""

from collections.abc import Mapping

import pytest
from pydantic import BaseModel

from src.hanabi.errors import HiddenInformationError, StaleViewError
from src.hanabi.models import (
    Card,
    HanabiConfig,
    HanabiState,
    HintAction,
    PlayAction,
    DiscardAction,
)
from src.hanabi.game import create_game, apply_action, check_legal
from src.hanabi.visibility import (
    BorrowedView,
    OwnedView,
    PlayerView,
    borrow,
    view_for_player,
    assert_no_leaks,
    assert_view_safe,
    FORBIDDEN_KEYS,
)


def create_test_state() -> HanabiState:
    """Create a test game state."""
    config = HanabiConfig(num_players=3, seed=42)
    return create_game(config)


def reachable_objects(root) -> dict[int, object]:
    """Every object reachable from `root` through attributes and containers."""
    found: dict[int, object] = {}
    stack = [root]
    while stack:
        obj = stack.pop()
        if id(obj) in found or isinstance(obj, (str, int, float, bool, type(None))):
            continue
        found[id(obj)] = obj
        if isinstance(obj, BaseModel):
            stack.extend(vars(obj).values())
        elif isinstance(obj, Mapping):
            stack.extend(obj.keys())
            stack.extend(obj.values())
        elif isinstance(obj, (list, tuple, set, frozenset)):
            stack.extend(obj)
        else:
            for cls in type(obj).__mro__:
                for slot in getattr(cls, "__slots__", ()):
                    if hasattr(obj, slot):
                        stack.append(getattr(obj, slot))
    return found


class TestViewForPlayer:
    """Tests for the view_for_player function."""

    def test_player_cannot_see_own_hand(self):
        """Critical: player must not see their own cards."""
        state = create_test_state()

        for player in range(state.num_players):
            view = view_for_player(state, player)

            assert str(player) not in view["visible_hands"], \
                f"Player {player} can see their own hand - INFORMATION LEAK!"
            assert len(view["my_hand_knowledge"]) == len(state.hands[player])

    def test_player_sees_all_other_hands(self):
        state = create_test_state()

        for player in range(state.num_players):
            view = view_for_player(state, player)
            expected = {str(p) for p in range(state.num_players)} - {str(player)}
            assert set(view["visible_hands"].keys()) == expected

    def test_other_hands_contain_actual_cards(self):
        state = create_test_state()
        view = view_for_player(state, 0)

        for pid, visible_hand in view["visible_hands"].items():
            actual_hand = state.hands[int(pid)]
            assert [Card(**c) for c in visible_hand] == actual_hand

    def test_deck_not_visible(self):
        state = create_test_state()
        view = view_for_player(state, 0)

        assert "deck" not in view
        assert view["deck_remaining"] == len(state.deck)


class TestBorrowedView:
    """Tests for the live restricted view."""

    def test_own_hand_raises(self):
        state = create_test_state()
        view = borrow(state, 1)
        with pytest.raises(HiddenInformationError):
            view.hand(1)

    def test_other_hands_match_state(self):
        state = create_test_state()
        view = borrow(state, 1)
        assert view.other_players() == [2, 0]
        assert list(view.hand(2)) == state.hands[2]
        assert list(view.hand(0)) == state.hands[0]

    def test_own_slots_are_knowledge_only(self):
        state = create_test_state()
        view = borrow(state, 0)
        assert view.hand_size(0) == 5
        assert len(view.own_slots()) == 5
        assert all(not hasattr(k, "color") for k in view.own_slots())

    def test_viewer_hand_unreachable_from_view(self):
        """No path of attributes or containers leads from a view to the viewer's cards or the deck."""
        state = create_test_state()
        for player in range(state.num_players):
            view = borrow(state, player)
            reachable = reachable_objects(view)

            assert id(state.hands[player]) not in reachable
            assert id(state.deck) not in reachable
            for card in state.hands[player]:
                assert id(card) not in reachable, f"Player {player} can reach own card {card}"
            for card in state.deck:
                assert id(card) not in reachable, f"Player {player} can reach deck card {card}"

    def test_owned_view_unreachable_too(self):
        state = create_test_state()
        owned = borrow(state, 2).clone_to_owned()
        reachable = reachable_objects(owned)
        for card in state.hands[2] + state.deck:
            assert id(card) not in reachable

    def test_seed_is_stripped(self):
        """The config seen by strategies carries no seed."""
        state = create_test_state()
        view = borrow(state, 0)
        assert state.config.seed == 42
        assert view.config.seed is None
        assert view.config.num_players == 3

    def test_cannot_build_view_with_own_hand(self):
        state = create_test_state()
        with pytest.raises(HiddenInformationError):
            PlayerView(0, state.config, state.board, {0: state.hands[0]}, state.knowledge)

    def test_unknown_player(self):
        state = create_test_state()
        with pytest.raises(ValueError):
            borrow(state, 3)

    def test_view_goes_stale_after_mutation(self):
        state = create_test_state()
        view = borrow(state, 1)
        assert view.hint_tokens == 8

        apply_action(state, 0, DiscardAction(card_position=0))

        with pytest.raises(StaleViewError):
            view.hint_tokens
        with pytest.raises(StaleViewError):
            view.hand(2)

    def test_fireworks_are_read_only(self):
        state = create_test_state()
        view = borrow(state, 1)
        with pytest.raises(TypeError):
            view.fireworks["red"] = 5  # type: ignore[index]

    def test_knowledge_edits_do_not_reach_state(self):
        """Changing returned slot knowledge leaves the game and other seats untouched."""
        state = create_test_state()
        before = [[k.model_dump() for k in slots] for slots in state.knowledge]

        view = borrow(state, 0)
        view.own_slots()[0].possible_colors.clear()
        view.knowledge(1)[0].known_number = 5

        assert [[k.model_dump() for k in slots] for slots in state.knowledge] == before
        assert borrow(state, 0).own_slots()[0].possible_colors
        assert borrow(state, 2).knowledge(1)[0].known_number is None

    def test_remaining_counts_cover_own_hand_and_deck(self):
        """Unseen cards are exactly the viewer's hand plus the deck."""
        state = create_test_state()
        apply_action(state, 0, PlayAction(card_position=0))
        apply_action(state, 1, DiscardAction(card_position=1))

        for player in range(state.num_players):
            view = borrow(state, player)
            counts = view.remaining_counts()
            assert all(v >= 0 for v in counts.values())
            assert sum(counts.values()) == len(state.deck) + len(state.hands[player])
            for card in state.hands[player]:
                assert view.unseen_count(card) >= 1

    def test_legal_actions_are_accepted(self):
        state = create_test_state()
        view = borrow(state, 0)
        actions = view.legal_actions()

        assert len([a for a in actions if isinstance(a, PlayAction)]) == 5
        assert len([a for a in actions if isinstance(a, DiscardAction)]) == 5
        assert any(isinstance(a, HintAction) for a in actions)
        for action in actions:
            check_legal(state, 0, action)

    def test_legal_actions_empty_off_turn(self):
        state = create_test_state()
        assert borrow(state, 1).legal_actions() == []

    def test_no_hints_without_tokens(self):
        state = create_test_state()
        state.board.hint_tokens = 0
        actions = borrow(state, 0).legal_actions()
        assert not any(isinstance(a, HintAction) for a in actions)


class TestOwnedView:
    """Tests for detached snapshots."""

    def test_owned_view_survives_mutation(self):
        state = create_test_state()
        owned = borrow(state, 1).clone_to_owned()
        other_hand = list(state.hands[0])

        apply_action(state, 0, PlayAction(card_position=0))

        assert isinstance(owned, OwnedView)
        assert owned.deck_size == 35
        assert list(owned.hand(0)) == other_hand
        assert state.board.deck_size == 34

    def test_note_hint_is_independent(self):
        state = create_test_state()
        owned = borrow(state, 0).clone_to_owned()
        hint = HintAction(target_player=1, hint_type="color", hint_value=state.hands[1][0].color)

        touched = owned.note_hint(hint)

        assert 0 in touched
        assert owned.knowledge(1)[0].known_color == state.hands[1][0].color
        assert state.knowledge[1][0].known_color is None

    def test_note_hint_matches_engine(self):
        state = create_test_state()
        owned = borrow(state, 0).clone_to_owned()
        hint = HintAction(target_player=2, hint_type="number", hint_value=state.hands[2][-1].number)

        owned.note_hint(hint)
        apply_action(state, 0, hint)

        assert [k.model_dump() for k in owned.knowledge(2)] == [
            k.model_dump() for k in borrow(state, 0).knowledge(2)
        ]

    def test_borrowed_is_not_owned(self):
        state = create_test_state()
        assert isinstance(borrow(state, 0), BorrowedView)
        assert not isinstance(borrow(state, 0), OwnedView)


class TestAssertNoLeaks:
    """Tests for the leak detection function."""

    def test_detects_forbidden_keys(self):
        for key in FORBIDDEN_KEYS:
            payload = {key: "some_value"}
            with pytest.raises(AssertionError, match="Forbidden key"):
                assert_no_leaks(payload)

    def test_detects_nested_forbidden_keys(self):
        payload = {
            "safe_key": {
                "nested": {
                    "deck": [1, 2, 3]
                }
            }
        }
        with pytest.raises(AssertionError, match="deck"):
            assert_no_leaks(payload)

    def test_detects_forbidden_keys_in_lists(self):
        payload = {
            "items": [
                {"safe": True},
                {"seed": 42},
            ]
        }
        with pytest.raises(AssertionError, match="seed"):
            assert_no_leaks(payload)

    def test_passes_clean_payload(self):
        payload = {
            "player": 0,
            "visible_hands": {"1": [{"color": "red", "number": 1}]},
            "score": 10,
        }
        assert_no_leaks(payload)


class TestAssertViewSafe:
    """Tests for view safety validation."""

    def test_rejects_own_hand_in_visible_hands(self):
        view = {
            "role": "player",
            "player": 0,
            "visible_hands": {
                "0": [{"color": "red", "number": 1}],
                "1": [{"color": "blue", "number": 2}],
            },
            "my_hand_knowledge": [],
        }
        with pytest.raises(AssertionError, match="LEAK"):
            assert_view_safe(view)

    def test_all_views_are_safe(self):
        state = create_test_state()
        for player in range(state.num_players):
            assert_view_safe(view_for_player(state, player))


class TestHintKnowledgeUpdate:
    """Tests that hints properly update knowledge without leaking."""

    def test_hint_updates_knowledge(self):
        state = create_test_state()
        color = state.hands[1][0].color

        apply_action(state, 0, HintAction(target_player=1, hint_type="color", hint_value=color))

        view = view_for_player(state, 1)
        for i, k in enumerate(view["my_hand_knowledge"]):
            if state.hands[1][i].color == color:
                assert k["known_color"] == color
            else:
                assert color not in k["possible_colors"]
        assert_view_safe(view)


class TestStateConsistency:
    """Tests for state consistency across views."""

    def test_public_state_consistent_across_views(self):
        state = create_test_state()
        apply_action(state, 0, PlayAction(card_position=0))

        views = [view_for_player(state, p) for p in range(state.num_players)]
        public_keys = [
            "fireworks",
            "discard_pile",
            "deck_remaining",
            "hint_tokens",
            "fuse_tokens",
            "score",
            "turn_number",
            "current_player",
        ]
        for view in views:
            for key in public_keys:
                assert view[key] == views[0][key], f"Public key {key} differs for player {view['player']}"
