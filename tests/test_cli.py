"""Tests for the livequery command line."""

from __future__ import annotations

import io
import sys
import threading
from collections.abc import Iterator
from pathlib import Path

import pytest
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.input.base import PipeInput
from prompt_toolkit.output import DummyOutput

from livequery import cli
from livequery.config.schema import DisplayMethod, ResizeStyle
from livequery.session.state import InputKind


@pytest.fixture
def pipe_input(monkeypatch: pytest.MonkeyPatch) -> Iterator[PipeInput]:
    """Route the UI to a pipe instead of the terminal."""
    with create_pipe_input() as inp:
        monkeypatch.setattr(cli, "create_input", lambda **kw: inp)
        monkeypatch.setattr(cli, "create_output", lambda **kw: DummyOutput())
        yield inp


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    config_dir = tmp_path / ".livequery"
    config_dir.mkdir()
    (config_dir / "config.yaml").write_text(
        """
session:
  default_command: cat
  delay: 0.01
commands:
  - name: cat
    command: "cat {input}"
"""
    )
    (tmp_path / "data.txt").write_text("hello\n")
    return tmp_path


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self) -> None:
        parsed = cli.create_parser().parse_args([])
        assert parsed.file is None
        assert parsed.command is None
        assert parsed.query == ""
        assert parsed.ansi is None
        assert parsed.verbose == 0

    def test_options(self) -> None:
        parsed = cli.create_parser().parse_args(
            ["data.json", "-c", "yq", "-q", ".a", "-w", "json", "--style", "grow", "-vv"]
        )
        assert parsed.file == Path("data.json")
        assert parsed.command == "yq"
        assert parsed.query == ".a"
        assert parsed.write_format == "json"
        assert parsed.style == "grow"
        assert parsed.verbose == 2

    def test_bad_style(self) -> None:
        with pytest.raises(SystemExit):
            cli.create_parser().parse_args(["--style", "huge"])

    def test_option_overrides(self) -> None:
        parsed = cli.create_parser().parse_args(
            ["--style", "fixed", "--display", "overlay", "--delay", "0.1", "--no-ansi"]
        )
        assert cli.option_overrides(parsed) == {
            "delay": 0.1,
            "resize_style": ResizeStyle.FIXED,
            "display": DisplayMethod.OVERLAY,
            "min_height": None,
            "max_height": None,
            "ansi": False,
        }

    def test_no_overrides(self) -> None:
        parsed = cli.create_parser().parse_args([])
        assert all(v is None for v in cli.option_overrides(parsed).values())


class TestReadInput:
    """Tests for choosing the input source."""

    def test_no_input(self) -> None:
        parsed = cli.create_parser().parse_args(["--no-input"])
        assert cli.read_input(parsed).kind is InputKind.NO_FILE

    def test_file(self, tmp_path: Path) -> None:
        data = tmp_path / "x.json"
        data.write_text("{}")
        source = cli.read_input(cli.create_parser().parse_args([str(data)]))
        assert source.kind is InputKind.FILE
        assert source.path == data.resolve()
        assert not source.owned

    def test_missing_file(self, tmp_path: Path) -> None:
        parsed = cli.create_parser().parse_args([str(tmp_path / "nope.json")])
        with pytest.raises(FileNotFoundError):
            cli.read_input(parsed)

    def test_stdin_snapshot(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b'{"a": 1}')))
        source = cli.read_input(cli.create_parser().parse_args([]))
        try:
            assert source.owned
            assert source.path is not None
            assert source.path.read_bytes() == b'{"a": 1}'
        finally:
            source.release()


class TestRunCli:
    """Tests for run_cli."""

    def test_list(self, capsys: pytest.CaptureFixture[str], tmp_path: Path) -> None:
        assert cli.run_cli(["--list", "--config", str(tmp_path / "none.yaml")]) == 0
        out = capsys.readouterr().out
        assert "jq *" in out
        assert "jq-color" in out

    def test_unknown_command(
        self, pipe_input: PipeInput, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert cli.run_cli(["--no-input", "-c", "nope"]) == 2
        assert "Unknown command: nope" in capsys.readouterr().err

    def test_missing_file(
        self, pipe_input: PipeInput, capsys: pytest.CaptureFixture[str], tmp_path: Path
    ) -> None:
        assert cli.run_cli([str(tmp_path / "missing.json")]) == 2
        assert "No such file" in capsys.readouterr().err

    def test_accept_prints_result(
        self, pipe_input: PipeInput, project: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        timer = threading.Timer(0.5, pipe_input.send_text, ("\r",))
        timer.start()
        try:
            code = cli.run_cli(["data.txt", "-q", "x"])
        finally:
            timer.cancel()

        assert code == 0
        assert capsys.readouterr().out == "hello\n"

    def test_abort(
        self, pipe_input: PipeInput, project: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        pipe_input.send_text("\x03")
        assert cli.run_cli(["data.txt"]) == 1
        assert capsys.readouterr().out == ""

    def test_bad_command_override_does_not_crash(
        self, pipe_input: PipeInput, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config_file = tmp_path / "bad.yaml"
        config_file.write_text(
            "commands:\n  - name: sh\n    command: 'sh -c {query}'\n    delay: fast\n"
        )
        pipe_input.send_text("\x03")

        assert cli.run_cli(["--no-input", "-c", "sh", "--config", str(config_file)]) == 1
        assert "Traceback" not in capsys.readouterr().err
