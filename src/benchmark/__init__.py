"""Batch simulation and results tables."""

from .stats import RunningStats
from .config import BatchConfig
from .runner import (
    GameResult,
    GameFailure,
    BatchResult,
    play_seed,
    run_batch,
)
from .results_table import (
    ConfidenceInterval,
    ResultsCell,
    ResultsTable,
    ResultsTableConfig,
    wilson_score_interval,
    build_results_table,
    export_results_markdown,
    write_results_table,
)

__all__ = [
    # Stats
    "RunningStats",
    # Config
    "BatchConfig",
    # Runner
    "GameResult",
    "GameFailure",
    "BatchResult",
    "play_seed",
    "run_batch",
    # Results table
    "ConfidenceInterval",
    "ResultsCell",
    "ResultsTable",
    "ResultsTableConfig",
    "wilson_score_interval",
    "build_results_table",
    "export_results_markdown",
    "write_results_table",
]
