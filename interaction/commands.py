"""Console command surface for the toggle commands."""

from __future__ import annotations

import sys
import threading
from typing import Callable, TextIO

from core.logging import log_info, logger
from interaction.toggles import ToggleCommand

COMMAND_KEYS: dict[str, ToggleCommand] = {
    "f": ToggleCommand.TOGGLE_ILLUMINATION,
    "flash": ToggleCommand.TOGGLE_ILLUMINATION,
    "c": ToggleCommand.TOGGLE_ACCUMULATION,
    "counter": ToggleCommand.TOGGLE_ACCUMULATION,
}
QUIT_KEYS = {"q", "quit", "exit"}
STATUS_KEYS = {"s", "status"}

HELP_TEXT = "Commands: [f]lash, [c]ounter, [s]tatus, [q]uit"


def parse_command(line: str) -> ToggleCommand | None:
    return COMMAND_KEYS.get(line.strip().lower())


class ConsoleCommandReader:
    """Reads one command per line and forwards toggles to ``submit``."""

    def __init__(
        self,
        submit: Callable[[ToggleCommand], None],
        status: Callable[[], dict[str, object]] | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self._submit = submit
        self._status = status
        self._stream = stream or sys.stdin
        self.quit_requested = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        log_info(HELP_TEXT, style="bold cyan")
        self._thread = threading.Thread(target=self._read_loop, name="console-commands", daemon=True)
        self._thread.start()

    def handle_line(self, line: str) -> bool:
        """Handle one input line; return False once quit was requested."""

        key = line.strip().lower()
        if not key:
            return True
        if key in QUIT_KEYS:
            self.quit_requested.set()
            return False
        if key in STATUS_KEYS:
            if self._status is not None:
                log_info(f"Status: {self._status()}")
            return True
        command = parse_command(key)
        if command is None:
            logger.warning("Unknown command %r. %s", key, HELP_TEXT)
            return True
        self._submit(command)
        return True

    def _read_loop(self) -> None:
        try:
            for line in self._stream:
                if not self.handle_line(line):
                    return
        except Exception:
            logger.exception("Console command reader failed")
        # EOF on the command stream ends the session.
        self.quit_requested.set()
