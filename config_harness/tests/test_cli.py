"""
Tests for the command line runner
"""

import logging

import pytest

from config_harness import __main__ as cli
from config_harness.config import get_config

from .conftest import AUTOFILL_SANITY, MODEL_CONFIG_SANITY


@pytest.fixture(autouse=True)
def harness_env(source_root, monkeypatch):
    """Point the runner at the scratch fixtures."""
    monkeypatch.setenv("TEST_SRCDIR", str(source_root))
    monkeypatch.setenv("MODEL_CONFIG_SANITY_RPATH", MODEL_CONFIG_SANITY)
    monkeypatch.setenv("AUTOFILL_SANITY_RPATH", AUTOFILL_SANITY)
    monkeypatch.setenv("METRICS_ENABLED", "true")
    get_config.cache_clear()

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    get_config.cache_clear()


class TestMain:
    @pytest.mark.parametrize("fmt", ["graphdef", "savedmodel", "netdef", "plan", "custom"])
    def test_all_passes(self, fmt, capsys):
        assert cli.main(["--format", fmt, "--all"]) == cli.EXIT_OK

        out = capsys.readouterr().out
        assert "MODEL CONFIG VALIDATION SUMMARY" in out
        assert "Failed: 0" in out

    def test_single_repository(self, capsys):
        code = cli.main(["--format", "plan", "--repository", AUTOFILL_SANITY, "--autofill"])

        assert code == cli.EXIT_OK
        assert "(autofill)" in capsys.readouterr().out

    def test_failures_exit_nonzero(self, source_root, capsys):
        golden = source_root / AUTOFILL_SANITY / "graphdef_autofill" / "expected_autofill"
        golden.write_text("name: renamed\n")

        code = cli.main(["--format", "graphdef", "--repository", AUTOFILL_SANITY, "--autofill"])

        assert code == cli.EXIT_FAILED
        assert "[FAIL] graphdef_autofill" in capsys.readouterr().out

    def test_fixture_error_exit(self):
        assert cli.main(["--format", "graphdef", "--repository", "missing"]) == cli.EXIT_FIXTURE_ERROR

    def test_copy_fixtures_flag(self, source_root):
        config_path = source_root / MODEL_CONFIG_SANITY / "basic_float32" / "config.yaml"
        before = config_path.read_text()

        assert cli.main(["--format", "custom", "--all", "--copy-fixtures"]) == cli.EXIT_OK
        assert config_path.read_text() == before

    def test_all_forces_format_platform(self, source_root):
        config_path = source_root / MODEL_CONFIG_SANITY / "basic_float32" / "config.yaml"

        cli.main(["--format", "custom", "--all"])

        assert "platform: custom\n" in config_path.read_text()

    def test_metrics_file(self, tmp_path):
        path = tmp_path / "run.prom"

        cli.main(["--format", "graphdef", "--all", "--metrics-file", str(path), "--log-format", "json"])

        assert "model_validations_total" in path.read_text()

    def test_format_is_required(self):
        with pytest.raises(SystemExit):
            cli.main(["--all"])

    def test_target_is_required(self):
        with pytest.raises(SystemExit):
            cli.main(["--format", "graphdef"])

    def test_all_and_repository_are_exclusive(self):
        with pytest.raises(SystemExit):
            cli.main(["--format", "graphdef", "--all", "--repository", "x"])
