"""Results table: one batch per (strategy, player count) cell."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Callable

from pydantic import BaseModel, Field, model_validator

from src.hanabi.agents import STRATEGIES
from src.hanabi.models import HAND_SIZES, MAX_SCORE

from .config import BatchConfig
from .runner import BatchResult, run_batch


class ConfidenceInterval(BaseModel):
    """95% confidence interval."""
    lower: float
    upper: float


class ResultsCell(BaseModel):
    """Aggregated outcome of one batch."""
    strategy: str
    num_players: int
    games: int
    failures: int
    mean_score: float
    score_stderr: float
    win_rate: float
    win_rate_stderr: float
    win_rate_ci: ConfidenceInterval

    @classmethod
    def from_batch(cls, result: BatchResult) -> "ResultsCell":
        wins = round(result.wins.mean * result.wins.count)
        return cls(
            strategy=result.strategy,
            num_players=result.config.num_players,
            games=result.games,
            failures=len(result.failures),
            mean_score=result.mean_score,
            score_stderr=result.score_stderr,
            win_rate=result.win_rate,
            win_rate_stderr=result.win_rate_stderr,
            win_rate_ci=wilson_score_interval(wins, result.games),
        )


class ResultsTableConfig(BaseModel):
    """Which cells to fill and how many seeds each gets."""
    strategies: list[str] = Field(default_factory=lambda: ["cheat", "info"])
    player_counts: list[int] = Field(default_factory=lambda: sorted(HAND_SIZES))
    seed_start: int = 0
    seed_count: int = 1000
    threads: int = 1
    win_threshold: int = MAX_SCORE

    @model_validator(mode="after")
    def _check_cells(self) -> "ResultsTableConfig":
        unknown = [s for s in self.strategies if s not in STRATEGIES]
        if unknown:
            raise ValueError(f"Unknown strategies: {unknown}")
        bad_counts = [n for n in self.player_counts if n not in HAND_SIZES]
        if bad_counts:
            raise ValueError(f"Unsupported player counts: {bad_counts}")
        if not self.strategies or not self.player_counts:
            raise ValueError("A results table needs at least one strategy and one player count")
        return self

    def batch_config(self, strategy: str, num_players: int) -> BatchConfig:
        return BatchConfig(
            strategy=strategy,
            num_players=num_players,
            seed_start=self.seed_start,
            seed_count=self.seed_count,
            threads=self.threads,
            win_threshold=self.win_threshold,
        )


class ResultsTable(BaseModel):
    """Every cell of a results run."""
    config: ResultsTableConfig
    cells: list[ResultsCell] = Field(default_factory=list)

    def cell(self, strategy: str, num_players: int) -> ResultsCell | None:
        for cell in self.cells:
            if cell.strategy == strategy and cell.num_players == num_players:
                return cell
        return None


def wilson_score_interval(successes: int, total: int, confidence: float = 0.95) -> ConfidenceInterval:
    """
    Calculate Wilson score confidence interval for a proportion.

    This is more accurate than the normal approximation for small samples
    and proportions near 0 or 1.

    Args:
        successes: Number of successes
        total: Total trials
        confidence: Confidence level (default 0.95)

    Returns:
        ConfidenceInterval with lower and upper bounds
    """
    if total == 0:
        return ConfidenceInterval(lower=0.0, upper=1.0)

    z = 1.96 if confidence == 0.95 else 1.645 if confidence == 0.90 else 2.576

    p = successes / total
    n = total

    denominator = 1 + z**2 / n
    center = (p + z**2 / (2 * n)) / denominator
    spread = z * math.sqrt((p * (1 - p) + z**2 / (4 * n)) / n) / denominator

    lower = max(0.0, center - spread)
    upper = min(1.0, center + spread)

    return ConfidenceInterval(lower=lower, upper=upper)


def build_results_table(
    config: ResultsTableConfig,
    run: Callable[[BatchConfig], BatchResult] = run_batch,
) -> ResultsTable:
    """Run one batch per cell, strategies outermost."""
    table = ResultsTable(config=config)
    for strategy in config.strategies:
        for num_players in config.player_counts:
            result = run(config.batch_config(strategy, num_players))
            table.cells.append(ResultsCell.from_batch(result))
    return table


def _format_cell(cell: ResultsCell | None) -> str:
    if cell is None:
        return "N/A"
    return (
        f"{cell.mean_score:.3f} ± {cell.score_stderr:.3f} "
        f"({cell.win_rate:.1%} ± {cell.win_rate_stderr:.1%})"
    )


def export_results_markdown(table: ResultsTable) -> str:
    """Export a results table to Markdown format."""
    config = table.config
    lines = ["# Simulation Results", ""]
    lines.append(
        f"Seeds {config.seed_start}-{config.seed_start + config.seed_count - 1}, "
        f"win at score >= {config.win_threshold}. "
        "Cells show mean score ± standard error (win rate ± standard error)."
    )
    lines.append("")

    header = "| Players | " + " | ".join(config.strategies) + " |"
    lines.append(header)
    lines.append("|" + "---------|" * (len(config.strategies) + 1))
    for num_players in config.player_counts:
        row = [_format_cell(table.cell(s, num_players)) for s in config.strategies]
        lines.append(f"| {num_players} | " + " | ".join(row) + " |")
    lines.append("")

    failed = [c for c in table.cells if c.failures]
    if failed:
        lines.append("## Failed Seeds")
        lines.append("")
        for cell in failed:
            lines.append(f"- {cell.strategy} {cell.num_players}p: {cell.failures} game(s) aborted")
        lines.append("")

    return "\n".join(lines)


def write_results_table(table: ResultsTable, path: str | Path) -> Path:
    """Write the markdown table, with the raw cells as JSON beside it."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export_results_markdown(table))
    path.with_suffix(".json").write_text(table.model_dump_json(indent=2))
    return path
