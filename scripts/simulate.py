#!/usr/bin/env python3
"""Simulate seeded Hanabi games and report score statistics."""

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")

from src.benchmark import (
    BatchConfig,
    GameFailure,
    ResultsTableConfig,
    build_results_table,
    export_results_markdown,
    run_batch,
    write_results_table,
)
from src.hanabi import HanabiConfig, run_game
from src.hanabi.agents import STRATEGIES, create_strategy_factory
from src.hanabi.metrics import compute_episode_metrics, compute_hint_utilization, score_category
from src.hanabi.transcript import format_transcript


# ANSI colors
class Colors:
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run seeded Hanabi simulations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 1000 games of the information strategy with 4 players on 4 threads
  python scripts/simulate.py --ntrials 1000 --nplayers 4 --nthreads 4

  # One game with a full transcript
  python scripts/simulate.py --ntrials 1 --seed 7 --transcript

  # Refresh the results table for every strategy and player count
  python scripts/simulate.py --write-results-table --ntrials 200
        """
    )
    parser.add_argument("--ntrials", "-n", type=int, default=100, help="Number of seeds to simulate")
    parser.add_argument("--seed", "-s", type=int, default=0, help="First seed")
    parser.add_argument("--nplayers", "-p", type=int, default=3, help="Number of players (2-5)")
    parser.add_argument("--strategy", "-g", choices=sorted(STRATEGIES), default="info", help="Strategy for every seat")
    parser.add_argument(
        "--nthreads", "-t", type=int,
        default=int(os.environ.get("HANABI_THREADS", "1")),
        help="Worker threads (default: $HANABI_THREADS or 1)",
    )
    parser.add_argument(
        "--loglevel", "-l", default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level",
    )
    parser.add_argument("--transcript", action="store_true", help="Print the transcript of the first seed")
    parser.add_argument("--time-budget", type=float, default=None, help="Stop claiming new seeds after this many seconds")
    parser.add_argument(
        "--write-results-table", action="store_true",
        help="Run every strategy at every player count and write a markdown table",
    )
    parser.add_argument(
        "--results-path",
        default=os.environ.get("HANABI_RESULTS_PATH", "results/results.md"),
        help="Where to write the results table (default: $HANABI_RESULTS_PATH or results/results.md)",
    )
    return parser


def print_transcript(args: argparse.Namespace) -> None:
    record = run_game(
        args.seed,
        create_strategy_factory(args.strategy),
        HanabiConfig(num_players=args.nplayers),
    )
    print(format_transcript(record))
    metrics = compute_episode_metrics(record)
    usage = compute_hint_utilization(record)
    print(
        f"{Colors.BOLD}{score_category(record.final_score)}{Colors.RESET}: "
        f"{metrics['plays_successful']} plays, {metrics['hints_given']} hints, "
        f"{metrics['discards']} discards, {metrics['fuses_lost']} fuses lost"
    )
    print(
        f"Hints answered on the touched cards: {usage['hints_to_touched_plays']} plays, "
        f"{usage['hints_to_touched_discards']} discards of {usage['total_hints']} hints\n"
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.loglevel.upper()), format="%(message)s")

    if args.write_results_table:
        table_config = ResultsTableConfig(
            strategies=sorted(STRATEGIES),
            seed_start=args.seed,
            seed_count=args.ntrials,
            threads=args.nthreads,
        )
        table = build_results_table(table_config)
        print(export_results_markdown(table))
        path = write_results_table(table, args.results_path)
        print(f"\nResults table saved to: {path}")
        return 0

    config = BatchConfig(
        strategy=args.strategy,
        num_players=args.nplayers,
        seed_start=args.seed,
        seed_count=args.ntrials,
        threads=args.nthreads,
        time_budget_seconds=args.time_budget,
    )

    if args.transcript:
        print_transcript(args)

    def on_result(finished, outcome):
        if isinstance(outcome, GameFailure):
            print(f"{Colors.YELLOW}Seed {outcome.seed} failed: {outcome.error['message']}{Colors.RESET}")

    result = run_batch(config, callback=on_result)

    print(f"\n{Colors.BOLD}{'=' * 60}{Colors.RESET}")
    print(f"{Colors.GREEN}{result.summary()}{Colors.RESET}")
    print(f"Time elapsed: {result.elapsed_seconds:.1f}s")
    histogram = ", ".join(f"{score}: {count}" for score, count in enumerate(result.histogram) if count)
    print(f"Scores: {histogram}")
    return 1 if result.failures else 0


if __name__ == "__main__":
    sys.exit(main())
