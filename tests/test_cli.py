"""Tests for the modgraph command line."""

import pytest

from modgraph.cli import build_parser, main


class TestArguments:

    @pytest.mark.parametrize("value", ["1", "0", "-5", "abc", "2.5"])
    def test_bad_modulus_is_usage_error(self, value, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main([value])
        assert excinfo.value.code == 2
        assert "modulus" in capsys.readouterr().err.lower()

    def test_missing_modulus(self):
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["--version"])
        assert excinfo.value.code == 0
        assert "modgraph 0.1.0" in capsys.readouterr().out

    def test_parser_defaults(self):
        args = build_parser().parse_args(["12"])
        assert args.modulus == 12
        assert args.seed is None
        assert args.strategy is None
        assert not args.dry_run


class TestRun:

    def test_writes_scene(self, tmp_path, capsys):
        output = tmp_path / "two.asy"
        code = main(["2", "--seed", "1", "-o", str(output)])
        assert code in (0, 1)
        assert output.exists()
        assert "unitsphere" in output.read_text()
        out = capsys.readouterr().out
        assert "Modulus 2: 2 components" in out

    def test_default_output_name(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        main(["5", "--seed", "3", "--profile", "quick"])
        assert (tmp_path / "5.asy").exists()

    def test_dry_run(self, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        main(["6", "--seed", "3", "--profile", "quick", "--dry-run"])
        assert not (tmp_path / "6.asy").exists()
        assert "Dry run" in capsys.readouterr().out

    def test_neato(self, tmp_path):
        main(["8", "--seed", "0", "--profile", "quick", "--dry-run",
              "--neato", str(tmp_path / "graphs")])
        assert sorted(p.name for p in (tmp_path / "graphs").iterdir()) == ["8.0.neato", "8.1.neato"]

    def test_iteration_cap_returns_one(self, tmp_path, capsys):
        code = main(["12", "--seed", "4", "--iterations", "1", "--dry-run"])
        assert code == 1
        assert "best positions" in capsys.readouterr().out

    def test_strategy_override(self, capsys):
        main(["4", "--seed", "1", "--strategy", "relax", "--iterations", "2", "--dry-run"])
        assert "relax" in capsys.readouterr().out

    def test_verbose_progress(self, capsys):
        main(["10", "--seed", "1", "--strategy", "simplex", "--iterations", "60", "-v", "--dry-run"])
        assert "Iteration 50:" in capsys.readouterr().out

    def test_config_file(self, tmp_path, capsys):
        config = tmp_path / "tuned.yaml"
        config.write_text("base: quick\nstrategy: relax\nmax_iterations: 2\n")
        main(["4", "--seed", "1", "--config", str(config), "--dry-run"])
        assert "profile 'tuned'" in capsys.readouterr().out

    @pytest.mark.parametrize("seed", ["-1", "x"])
    def test_bad_seed_is_usage_error(self, seed, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["4", "--seed", seed, "--dry-run"])
        assert excinfo.value.code == 2
        assert "seed" in capsys.readouterr().err.lower()

    def test_bad_config_value(self, tmp_path, capsys):
        config = tmp_path / "bad.yaml"
        config.write_text("initial_spread: abc\n")
        code = main(["4", "--config", str(config), "--dry-run"])
        assert code == 2
        assert "initial_spread" in capsys.readouterr().out

    def test_missing_config(self, tmp_path, capsys):
        code = main(["4", "--config", str(tmp_path / "missing.yaml"), "--dry-run"])
        assert code == 2
        assert "Error" in capsys.readouterr().out

    def test_unknown_profile(self, capsys):
        code = main(["4", "--profile", "nope", "--dry-run"])
        assert code == 2
        assert "Unknown layout profile" in capsys.readouterr().out
