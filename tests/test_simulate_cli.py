"""Tests for the simulate command line entry point."""

import pytest

from scripts.simulate import build_parser, main


class TestParser:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("HANABI_THREADS", raising=False)
        args = build_parser().parse_args([])
        assert args.ntrials == 100
        assert args.seed == 0
        assert args.nplayers == 3
        assert args.strategy == "info"
        assert args.nthreads == 1
        assert not args.transcript

    def test_thread_default_from_environment(self, monkeypatch):
        monkeypatch.setenv("HANABI_THREADS", "6")
        assert build_parser().parse_args([]).nthreads == 6

    def test_unknown_strategy_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--strategy", "oracle"])


class TestMain:

    def test_batch_summary(self, capsys):
        code = main(["-n", "4", "-p", "2", "-g", "cheat", "-t", "2", "-l", "warning"])
        out = capsys.readouterr().out
        assert code == 0
        assert "cheat 2p: 4 games" in out
        assert "Scores: " in out

    def test_transcript(self, capsys):
        main(["-n", "1", "-s", "5", "-g", "info", "--transcript", "-l", "warning"])
        out = capsys.readouterr().out
        assert "Game info-3p-5 (info, 3 players, seed 5)" in out
        assert "Hints answered on the touched cards:" in out
        assert "Final score" in out

    def test_results_table(self, tmp_path, capsys):
        path = tmp_path / "results.md"
        code = main(["-n", "2", "--write-results-table", "--results-path", str(path), "-l", "warning"])
        assert code == 0
        assert path.exists()
        assert path.with_suffix(".json").exists()
        assert "| Players | cheat | info | random |" in capsys.readouterr().out
