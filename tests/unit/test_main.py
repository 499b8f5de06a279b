"""
Unit tests for the handbook CLI.

Tests:
- Argument parsing
- Config loading (missing file, invalid values)
- check command output and exit codes
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from handbook.__main__ import DEFAULT_CONFIG, _load_config, main, parse_args, run_check
from handbook.core.exceptions import ConnectionLostError
from handbook.core.repository import RepositoryHealth
from handbook.repositories import SkillRepository


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Leave the root logger alone while the CLI runs."""
    with patch("handbook.__main__.setup_logging") as setup:
        yield setup


class TestParseArgs:
    """parse_args()."""

    def test_defaults(self):
        args = parse_args(["check"])
        assert args.command == "check"
        assert args.config == DEFAULT_CONFIG
        assert args.log_level == "INFO"
        assert args.json_logs is False

    def test_options(self, tmp_path):
        args = parse_args(
            ["watch", "--config", str(tmp_path / "h.yaml"), "--log-level", "DEBUG", "--json-logs"]
        )
        assert args.command == "watch"
        assert args.config == tmp_path / "h.yaml"
        assert args.json_logs is True

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            parse_args(["migrate"])


class TestLoadConfig:
    """_load_config()."""

    def test_missing_file(self, tmp_path):
        assert _load_config(tmp_path / "absent.yaml") == {}

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "handbook.yaml"
        path.write_text("executor:\n  query_timeout: 3\n")
        assert _load_config(path) == {"executor": {"query_timeout": 3}}


class TestRunCheck:
    """run_check() report and exit code."""

    @pytest.mark.asyncio
    async def test_healthy(self, database, capsys):
        assert await run_check(database) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["healthy"] is True
        assert len(report["tables"]) == 13
        assert report["status"]["state"] == "connected"

    @pytest.mark.asyncio
    async def test_unhealthy_table(self, database, capsys):
        skills = database.repository(SkillRepository)
        skills.health_check = AsyncMock(
            return_value=RepositoryHealth(healthy=False, table="skills", error="missing")
        )
        assert await run_check(database) == 1
        report = json.loads(capsys.readouterr().out)
        assert report["healthy"] is False


class TestMain:
    """main() exit codes."""

    @pytest.mark.asyncio
    async def test_check_passes_through(self, tmp_path, no_logging_setup):
        with patch("handbook.__main__.run_check", AsyncMock(return_value=0)) as run:
            code = await main(["check", "--config", str(tmp_path / "absent.yaml"), "--json-logs"])
        assert code == 0
        run.assert_awaited_once()
        no_logging_setup.assert_called_once_with("INFO", json_output=True)

    @pytest.mark.asyncio
    async def test_invalid_config(self, tmp_path):
        path = tmp_path / "handbook.yaml"
        path.write_text("pool:\n  limits:\n    max_size: 0\n")
        assert await main(["check", "--config", str(path)]) == 2

    @pytest.mark.asyncio
    async def test_command_failure(self, tmp_path):
        failing = AsyncMock(side_effect=ConnectionLostError("gone"))
        with patch("handbook.__main__.run_check", failing):
            code = await main(["check", "--config", str(tmp_path / "absent.yaml")])
        assert code == 1
