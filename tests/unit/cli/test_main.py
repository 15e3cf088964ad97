"""Unit tests for CLI command handling."""

from __future__ import annotations

import pytest

import pipeline.app
from cli.main import main
from tests import record_factory as factory


class _EmptyExport:
    def __init__(self, base_url: str, timeout: float) -> None:
        self.closed = False

    def get_pulses(self, after: int, count: int):
        return iter([])

    def get_records(self, pulse: int, after_sequence: int, count: int):
        return iter([])

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def database_env(tmp_path, monkeypatch: pytest.MonkeyPatch) -> str:
    url = f"sqlite:///{tmp_path / 'observer.db'}"
    monkeypatch.setenv("OBSERVER_DATABASE_URL", url)
    monkeypatch.setattr(pipeline.app, "HttpExportClient", _EmptyExport)
    return url


def test_cli_cursor_prints_genesis_for_empty_store(database_env, capsys) -> None:
    """CLI cursor should report the genesis cursor for a fresh database."""
    exit_code = main(["cursor"])
    output = capsys.readouterr().out.split()

    assert exit_code == 0
    assert output == ["pulse=0", "sequence=0"]


def test_cli_run_once_exits_cleanly(database_env) -> None:
    """CLI run --once should finish after one idle cycle."""
    exit_code = main(["run", "--once"])

    assert exit_code == 0


def test_cli_reports_config_errors(tmp_path, capsys) -> None:
    """CLI should print config errors and exit non-zero."""
    exit_code = main(["--config", str(tmp_path / "missing.yaml"), "cursor"])
    output = capsys.readouterr().out

    assert exit_code == 1 and output.startswith("error=")


def test_cli_uses_prototypes_from_config(database_env, tmp_path) -> None:
    """A config file with prototypes should be accepted."""
    config_file = tmp_path / "observer.yaml"
    config_file.write_text(
        f"prototypes:\n  account: {factory.PROTOTYPES.account}\n", encoding="utf-8"
    )

    assert main(["--config", str(config_file), "run", "--once"]) == 0
