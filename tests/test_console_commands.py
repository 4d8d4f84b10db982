"""Tests for the console command surface."""

from __future__ import annotations

import io

from interaction.commands import ConsoleCommandReader, parse_command
from interaction.toggles import ToggleCommand


def test_parse_command_keys() -> None:
    assert parse_command("f") is ToggleCommand.TOGGLE_ILLUMINATION
    assert parse_command(" FLASH \n") is ToggleCommand.TOGGLE_ILLUMINATION
    assert parse_command("c") is ToggleCommand.TOGGLE_ACCUMULATION
    assert parse_command("x") is None


def test_handle_line_submits_toggles_and_quits() -> None:
    submitted: list[ToggleCommand] = []
    reader = ConsoleCommandReader(submitted.append, stream=io.StringIO())

    assert reader.handle_line("c\n") is True
    assert reader.handle_line("unknown") is True
    assert reader.handle_line("") is True
    assert reader.handle_line("q") is False

    assert submitted == [ToggleCommand.TOGGLE_ACCUMULATION]
    assert reader.quit_requested.is_set()


def test_status_key_queries_status() -> None:
    calls: list[int] = []

    def status() -> dict[str, object]:
        calls.append(1)
        return {"total": 0}

    reader = ConsoleCommandReader(lambda command: None, status=status, stream=io.StringIO())

    reader.handle_line("s")

    assert calls == [1]


def test_reader_thread_stops_at_end_of_stream() -> None:
    submitted: list[ToggleCommand] = []
    reader = ConsoleCommandReader(submitted.append, stream=io.StringIO("f\nc\n"))

    reader.start()

    assert reader.quit_requested.wait(timeout=2.0)
    assert submitted == [
        ToggleCommand.TOGGLE_ILLUMINATION,
        ToggleCommand.TOGGLE_ACCUMULATION,
    ]
