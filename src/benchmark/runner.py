"""Batch runner: many seeded games across a worker pool."""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from pydantic import BaseModel, Field

from src.hanabi.agents import StrategyFactory, create_strategy_factory
from src.hanabi.errors import (
    HiddenInformationError,
    IllegalActionError,
    StaleViewError,
)
from src.hanabi.models import MAX_SCORE
from src.hanabi.orchestrator import run_game

from .config import BatchConfig
from .stats import RunningStats


logger = logging.getLogger(__name__)

# Strategy contract breaches: fatal for the game, not for the batch
GAME_FAILURES = (IllegalActionError, HiddenInformationError, StaleViewError)


class GameResult(BaseModel):
    """Outcome of one seeded game."""
    seed: int
    score: int
    won: bool
    game_over_reason: str
    turns: int
    duration_seconds: float


class GameFailure(BaseModel):
    """A seed whose game was aborted by a strategy error."""
    seed: int
    error: dict[str, Any]


class BatchResult(BaseModel):
    """Aggregated statistics for a batch."""
    config: BatchConfig
    strategy: str
    scores: RunningStats = Field(default_factory=RunningStats)
    wins: RunningStats = Field(default_factory=RunningStats)
    histogram: list[int] = Field(default_factory=lambda: [0] * (MAX_SCORE + 1))
    failures: list[GameFailure] = Field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def games(self) -> int:
        """Games that count towards the statistics."""
        return self.scores.count

    @property
    def mean_score(self) -> float:
        return self.scores.mean

    @property
    def score_stderr(self) -> float:
        return self.scores.standard_error

    @property
    def win_rate(self) -> float:
        return self.wins.mean

    @property
    def win_rate_stderr(self) -> float:
        return self.wins.standard_error

    def summary(self) -> str:
        return (
            f"{self.strategy} {self.config.num_players}p: "
            f"{self.games} games, score {self.mean_score:.3f} +/- {self.score_stderr:.3f}, "
            f"win rate {self.win_rate:.1%} +/- {self.win_rate_stderr:.1%}"
            + (f", {len(self.failures)} failed" if self.failures else "")
        )


ResultCallback = Callable[[int, "GameResult | GameFailure"], None]


class _WorkerTotals:
    """Per-worker accumulators, merged once the pool drains."""

    def __init__(self):
        self.scores = RunningStats()
        self.wins = RunningStats()
        self.histogram: Counter[int] = Counter()
        self.failures: list[GameFailure] = []


class _SeedQueue:
    """Hands out seeds until the game count or time budget runs out."""

    def __init__(self, config: BatchConfig, started: float):
        self._lock = threading.Lock()
        self._next = config.seed_start
        self._stop = None if config.seed_count is None else config.seed_start + config.seed_count
        self._deadline = (
            None if config.time_budget_seconds is None else started + config.time_budget_seconds
        )
        self._aborted = False
        self.finished = 0
        self.total = config.seed_count

    def claim(self) -> int | None:
        with self._lock:
            if self._aborted:
                return None
            if self._stop is not None and self._next >= self._stop:
                return None
            if self._deadline is not None and time.monotonic() >= self._deadline:
                return None
            seed = self._next
            self._next += 1
            return seed

    def abort(self) -> None:
        with self._lock:
            self._aborted = True

    def report(self, outcome: GameResult | GameFailure, callback: ResultCallback | None) -> None:
        with self._lock:
            self.finished += 1
            if callback is not None:
                callback(self.finished, outcome)
            step = max(1, (self.total or 100) // 10)
            if self.finished % step == 0:
                of = f"/{self.total}" if self.total else ""
                logger.info(f"Progress: {self.finished}{of} games")


def play_seed(config: BatchConfig, factory: StrategyFactory, seed: int) -> GameResult:
    """Run one game of the batch."""
    start = time.monotonic()
    record = run_game(seed, factory, config.game_config(seed))
    return GameResult(
        seed=seed,
        score=record.final_score,
        won=record.final_score >= config.win_threshold,
        game_over_reason=record.game_over_reason,
        turns=len(record.turns),
        duration_seconds=time.monotonic() - start,
    )


def _worker(
    config: BatchConfig,
    factory: StrategyFactory,
    queue: _SeedQueue,
    callback: ResultCallback | None,
) -> _WorkerTotals:
    totals = _WorkerTotals()
    while True:
        seed = queue.claim()
        if seed is None:
            break
        try:
            result = play_seed(config, factory, seed)
        except GAME_FAILURES as e:
            logger.warning(f"Seed {seed} failed: {e}")
            failure = GameFailure(seed=seed, error=e.to_dict())
            totals.failures.append(failure)
            queue.report(failure, callback)
            continue
        except Exception:
            # Invariant violations and anything unexpected end the whole batch
            queue.abort()
            logger.error(f"Batch aborted at seed {seed}")
            raise
        totals.scores.add(result.score)
        totals.wins.add(1.0 if result.won else 0.0)
        totals.histogram[result.score] += 1
        queue.report(result, callback)
    return totals


def run_batch(
    config: BatchConfig,
    factory: StrategyFactory | None = None,
    callback: ResultCallback | None = None,
) -> BatchResult:
    """
    Run a batch of seeded games and aggregate their scores.

    Args:
        config: Batch configuration
        factory: Strategy factory; built from `config.strategy` if omitted
        callback: Optional callback(finished, outcome), called once per game

    Returns:
        BatchResult with merged score and win statistics. Seeds whose game
        hit a strategy error are listed in `failures` and left out of the
        statistics.

    Raises:
        InvariantViolationError: the engine or a convention broke; in-flight
            games finish and the batch stops
    """
    if factory is None:
        factory = create_strategy_factory(config.strategy)

    started = time.monotonic()
    queue = _SeedQueue(config, started)
    logger.info(
        f"Starting batch: {factory.name}, {config.num_players} players, "
        f"seeds from {config.seed_start}, {config.threads} thread(s)"
    )

    with ThreadPoolExecutor(max_workers=config.threads) as pool:
        futures = [
            pool.submit(_worker, config, factory, queue, callback) for _ in range(config.threads)
        ]
        partials = [future.result() for future in futures]

    result = BatchResult(config=config, strategy=factory.name)
    failures: list[GameFailure] = []
    for totals in partials:
        result.scores.merge(totals.scores)
        result.wins.merge(totals.wins)
        for score, count in totals.histogram.items():
            result.histogram[score] += count
        failures.extend(totals.failures)
    result.failures = sorted(failures, key=lambda f: f.seed)
    result.elapsed_seconds = time.monotonic() - started

    logger.info(f"Batch complete in {result.elapsed_seconds:.1f}s: {result.summary()}")
    return result

