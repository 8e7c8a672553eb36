"""Hanabi simulator with restricted player views and pluggable strategies."""

from .models import (
    Card,
    CardKnowledge,
    PlayAction,
    DiscardAction,
    HintAction,
    Action,
    ActionResult,
    TurnLog,
    PublicBoard,
    HanabiState,
    HanabiConfig,
    HanabiGameRecord,
)
from .errors import (
    HanabiError,
    ConfigurationError,
    IllegalActionError,
    HiddenInformationError,
    StaleViewError,
    InvariantViolationError,
    ConventionInvariantError,
)
from .game import (
    create_game,
    apply_action,
    check_legal,
    check_terminal,
    check_invariants,
    deal_card,
    final_score,
)
from .knowledge import CardPossibilityTable
from .visibility import (
    PlayerView,
    BorrowedView,
    OwnedView,
    borrow,
    view_for_player,
    assert_no_leaks,
)
from .orchestrator import run_game, run_turn
from .metrics import compute_episode_metrics, compute_hint_utilization, score_category
from .transcript import format_transcript, format_turn, format_view

__all__ = [
    # Models
    "Card",
    "CardKnowledge",
    "PlayAction",
    "DiscardAction",
    "HintAction",
    "Action",
    "ActionResult",
    "TurnLog",
    "PublicBoard",
    "HanabiState",
    "HanabiConfig",
    "HanabiGameRecord",
    # Errors
    "HanabiError",
    "ConfigurationError",
    "IllegalActionError",
    "HiddenInformationError",
    "StaleViewError",
    "InvariantViolationError",
    "ConventionInvariantError",
    # Game
    "create_game",
    "apply_action",
    "check_legal",
    "check_terminal",
    "check_invariants",
    "deal_card",
    "final_score",
    "CardPossibilityTable",
    # Visibility
    "PlayerView",
    "BorrowedView",
    "OwnedView",
    "borrow",
    "view_for_player",
    "assert_no_leaks",
    # Running games
    "run_game",
    "run_turn",
    "compute_episode_metrics",
    "compute_hint_utilization",
    "score_category",
    "format_transcript",
    "format_turn",
    "format_view",
]
