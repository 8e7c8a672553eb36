"""Batch configuration for simulation runs."""

from __future__ import annotations

from pydantic import BaseModel, model_validator

from src.hanabi.agents import STRATEGIES
from src.hanabi.models import HanabiConfig, MAX_SCORE


class BatchConfig(BaseModel):
    """Configuration for a batch of seeded games."""

    strategy: str = "info"
    num_players: int = 3
    seed_start: int = 0
    seed_count: int | None = 100  # None means run until the time budget
    threads: int = 1
    time_budget_seconds: float | None = None
    win_threshold: int = MAX_SCORE  # A game counts as a win at or above this score

    # Rule variants passed through to every game
    max_hints: int = 8
    max_fuses: int = 3
    zero_score_on_fuse_out: bool = False
    discard_at_max_hints: bool = True
    allow_empty_hints: bool = False

    @model_validator(mode="after")
    def _check_budget(self) -> "BatchConfig":
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown strategy {self.strategy!r}; choose from {sorted(STRATEGIES)}"
            )
        if self.seed_count is None and self.time_budget_seconds is None:
            raise ValueError("A batch needs a seed count, a time budget, or both")
        if self.seed_count is not None and self.seed_count < 0:
            raise ValueError("seed_count cannot be negative")
        if self.time_budget_seconds is not None and self.time_budget_seconds <= 0:
            raise ValueError("time_budget_seconds must be positive")
        if self.threads < 1:
            raise ValueError("threads must be at least 1")
        if not 0 <= self.win_threshold <= MAX_SCORE:
            raise ValueError(f"win_threshold must be between 0 and {MAX_SCORE}")
        # Surface bad rule combinations now rather than on the first worker
        self.game_config()
        return self

    def game_config(self, seed: int | None = None) -> HanabiConfig:
        return HanabiConfig(
            num_players=self.num_players,
            max_hints=self.max_hints,
            max_fuses=self.max_fuses,
            seed=seed,
            zero_score_on_fuse_out=self.zero_score_on_fuse_out,
            discard_at_max_hints=self.discard_at_max_hints,
            allow_empty_hints=self.allow_empty_hints,
        )
