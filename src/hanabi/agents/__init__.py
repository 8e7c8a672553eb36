"""Hanabi strategies and the factory registry."""

from __future__ import annotations

from typing import Any

from .base import Strategy, StrategyFactory
from .cheating import CheatingStrategy, CheatingStrategyFactory, HandLedger
from .conventions import (
    HintInterpretation,
    PublicBeliefs,
    encode_candidates,
    hint_ordering,
    hint_ordinal,
    interpret_hint,
)
from .information import InformationStrategy, InformationStrategyFactory
from .random_agent import RandomStrategy, RandomStrategyFactory


STRATEGIES: dict[str, type[StrategyFactory]] = {
    "cheat": CheatingStrategyFactory,
    "random": RandomStrategyFactory,
    "info": InformationStrategyFactory,
}


def create_strategy_factory(name: str = "info", **kwargs: Any) -> StrategyFactory:
    """Factory function to create strategy factories by name."""
    if name not in STRATEGIES:
        raise ValueError(f"Unknown strategy: {name}. Options: {list(STRATEGIES.keys())}")
    return STRATEGIES[name](**kwargs)


__all__ = [
    "Strategy",
    "StrategyFactory",
    "CheatingStrategy",
    "CheatingStrategyFactory",
    "HandLedger",
    "InformationStrategy",
    "InformationStrategyFactory",
    "RandomStrategy",
    "RandomStrategyFactory",
    "HintInterpretation",
    "PublicBeliefs",
    "encode_candidates",
    "hint_ordering",
    "hint_ordinal",
    "interpret_hint",
    "STRATEGIES",
    "create_strategy_factory",
]
