"""
Session log for GIT ASSIST.

One SessionLog is created at startup and handed to every step. Each line
is printed on the console in its style and appended, without styling, to
the plain-text session log through a loguru file sink. The log is
append-only and never read back.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.text import Text

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<7} | {message}"


class SessionLog:
    """Console + append-only file log, bound to a single session id."""

    def __init__(self, log_file: Path, console: Console | None = None):
        self.log_file = Path(log_file)
        self.console = console or Console()
        self.session_id = uuid.uuid4().hex[:12]
        self._log = logger.bind(session=self.session_id)

        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        self._sink_id = logger.add(
            self.log_file,
            format=_LOG_FORMAT,
            level="DEBUG",
            mode="a",
            encoding="utf-8",
            filter=lambda record: record["extra"].get("session") == self.session_id,
        )

    # ------------------------------------------------------------------
    # Styled output
    # ------------------------------------------------------------------

    def log(self, message: str) -> None:
        self._emit(message, style=None, level="INFO")

    def highlight(self, message: str) -> None:
        self._emit(message, style="bold blue", level="INFO")

    def success(self, message: str) -> None:
        self._emit(message, style="green", level="SUCCESS")

    def warn(self, message: str) -> None:
        self._emit(message, style="yellow", level="WARNING")

    def error(self, message: str) -> None:
        self._emit(message, style="red", level="ERROR")

    def record(self, message: str) -> None:
        """Write to the session log only, not the console."""
        self._log.debug(message)

    def output(self, text: str) -> None:
        """Echo captured tool output to console and log, line by line."""
        for line in text.splitlines():
            self.console.print(Text(line, style="dim"))
            self._log.info(line)

    def banner(self, label: str) -> None:
        rule = "-" * 44
        self.highlight(rule)
        self.highlight(f"🕒 {label} at {datetime.now().strftime('%a %b %d %H:%M:%S %Y')}")
        self.highlight(rule)

    def close(self) -> None:
        if self._sink_id is not None:
            logger.remove(self._sink_id)
            self._sink_id = None

    def _emit(self, message: str, style: str | None, level: str) -> None:
        self.console.print(Text(message, style=style or ""))
        self._log.log(level, message)

    def __enter__(self) -> "SessionLog":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
