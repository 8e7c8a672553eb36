"""Structured exceptions for the Hanabi engine and strategies."""

from __future__ import annotations

from typing import Any


class HanabiError(Exception):
    """Base class for engine-level exceptions."""

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {"type": self.__class__.__name__, "message": str(self)}


class ConfigurationError(HanabiError, ValueError):
    """Raised when a game or batch is configured incorrectly."""


class IllegalActionError(HanabiError):
    """Raised when a strategy returns an action that is not legal right now."""

    def __init__(self, player: int, action: Any, reason: str | None = None):
        self.player = player
        self.action = action
        self.reason = reason
        message = f"Illegal action by player {player}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        dump = getattr(self.action, "model_dump", None)
        payload.update({
            "player": self.player,
            "action": dump() if dump else repr(self.action),
        })
        if self.reason is not None:
            payload["reason"] = self.reason
        return payload


class HiddenInformationError(HanabiError, LookupError):
    """Raised when a view is asked for the viewer's own cards."""


class StaleViewError(HanabiError):
    """Raised when a borrowed view is used after the game state moved on."""


class InvariantViolationError(HanabiError):
    """Raised when an internal invariant breaks. Never retried."""


class ConventionInvariantError(InvariantViolationError):
    """Raised when convention beliefs contradict a revealed card."""
