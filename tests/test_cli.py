"""Tests for CLI interface.

Test Coverage:
    - Argument parsing
    - Command routing
    - Help text generation
    - Error handling
    - Commands with mocked pipeline
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from zdravniki.cli import cmd_doctors, cmd_file, cmd_search, cmd_version, create_parser, main
from zdravniki.clients import Timestamps
from zdravniki.pipeline.orchestrator import MergedDataset
from zdravniki.results import Failure, FailureKind, Ok


def make_dataset() -> MergedDataset:
    return MergedDataset(
        data=[],
        timestamps=Timestamps(doctors_ts=1, institutions_ts=2),
        doctors_count=0,
        institutions_count=0,
        execution_time_ms=1.5,
    )


class TestParserCreation:
    """Test CLI parser creation."""

    def test_parser_has_commands(self):
        """Parser exits after printing help."""
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["--help"])

    def test_parser_prog_name(self):
        """Parser has correct program name."""
        parser = create_parser()
        assert parser.prog == "zdravniki"


class TestArgumentParsing:
    """Test command argument parsing."""

    def test_doctors_defaults(self):
        args = create_parser().parse_args(["doctors"])
        assert args.command == "doctors"
        assert args.format == "json"

    def test_doctors_invalid_format(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["doctors", "--format", "xml"])

    def test_search_requires_query(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["search"])

    def test_search_options(self):
        args = create_parser().parse_args(["search", "novak", "--type", "gp", "--limit", "5"])
        assert args.query == "novak"
        assert args.type == "gp"
        assert args.limit == 5

    def test_file_options(self, tmp_path):
        args = create_parser().parse_args(["file", "users", "--data-dir", str(tmp_path)])
        assert args.file_id == "users"
        assert args.data_dir == tmp_path


class TestCommands:
    """Test command handlers with a mocked orchestrator."""

    @patch("zdravniki.cli.Orchestrator")
    def test_doctors_json(self, mock_orch_cls, capsys):
        mock_orch_cls.return_value.get_merged = AsyncMock(return_value=Ok(make_dataset()))

        exit_code = cmd_doctors(create_parser().parse_args(["doctors"]))

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["data"] == []
        assert output["meta"]["timestamps"] == {"doctorsTs": 1, "institutionsTs": 2}

    @patch("zdravniki.cli.Orchestrator")
    def test_doctors_summary(self, mock_orch_cls, capsys):
        mock_orch_cls.return_value.get_merged = AsyncMock(return_value=Ok(make_dataset()))

        exit_code = cmd_doctors(create_parser().parse_args(["doctors", "--format", "summary"]))

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["mergedCount"] == 0
        assert "data" not in output

    @patch("zdravniki.cli.Orchestrator")
    def test_doctors_failure(self, mock_orch_cls, capsys):
        """A pipeline failure is printed to stderr with exit code 1."""
        failure = Failure(
            FailureKind.TIMESTAMP,
            "Failed to fetch timestamps",
            {"cause": "both"},
            {"executionTimeMs": 3.0},
        )
        mock_orch_cls.return_value.get_merged = AsyncMock(return_value=failure)

        exit_code = cmd_doctors(create_parser().parse_args(["doctors"]))

        assert exit_code == 1
        error = json.loads(capsys.readouterr().err)
        assert error["kind"] == "timestamp"
        assert error["cause"] == "both"

    def test_search(self, mocker, capsys):
        mock_orch_cls = mocker.patch("zdravniki.cli.Orchestrator")
        response = MagicMock()
        response.to_dict.return_value = {"data": [], "meta": {"query": "novak"}}
        mock_orch = mock_orch_cls.return_value
        mock_orch.search = AsyncMock(return_value=Ok(response))

        exit_code = cmd_search(create_parser().parse_args(["search", "novak", "--type", "gp"]))

        assert exit_code == 0
        mock_orch.search.assert_called_once_with("novak", practice_type="gp", limit=None)
        assert json.loads(capsys.readouterr().out)["meta"]["query"] == "novak"

    def test_file_not_found(self, mocker, capsys):
        mock_orch_cls = mocker.patch("zdravniki.cli.Orchestrator")
        mock_orch_cls.return_value.get_data_file = AsyncMock(
            return_value=Failure(FailureKind.NOT_FOUND, "File not found", {"fileId": "x"})
        )

        exit_code = cmd_file(create_parser().parse_args(["file", "x"]))

        assert exit_code == 1
        assert json.loads(capsys.readouterr().err)["message"] == "File not found"

    def test_version(self, capsys):
        exit_code = cmd_version(create_parser().parse_args(["version"]))

        assert exit_code == 0
        assert "zdravniki v" in capsys.readouterr().out


class TestMain:
    """Test main entry point routing."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage: zdravniki" in capsys.readouterr().out

    def test_routes_version(self, capsys):
        assert main(["version"]) == 0

    @patch("zdravniki.cli.Orchestrator")
    def test_unexpected_error_returns_1(self, mock_orch_cls, capsys):
        mock_orch_cls.return_value.get_merged = AsyncMock(side_effect=RuntimeError("boom"))

        assert main(["doctors"]) == 1
        assert "Error: boom" in capsys.readouterr().err

    @patch.dict("zdravniki.cli._COMMANDS", {"version": MagicMock(side_effect=KeyboardInterrupt)})
    def test_keyboard_interrupt(self):
        """Interrupted commands exit with 130."""
        assert main(["version"]) == 130
