"""
Subprocess-backed Builder, Scanner, Editor and AppRunner.

Captured tools (build, scan) return their output for the caller to log.
Interactive tools (editor, java) inherit the terminal and return only an
exit status.
"""

from __future__ import annotations

import shlex
import shutil
import subprocess
from pathlib import Path

from loguru import logger

from gitassist.collaborators import CommandResult
from gitassist.errors import ConfigurationError


def _execute(cmd: list[str], cwd: Path, capture: bool) -> CommandResult:
    logger.debug(f"[TOOLS] $ {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, cwd=cwd, capture_output=capture, text=True)
    except FileNotFoundError as e:
        raise ConfigurationError(f"'{cmd[0]}' is required but was not found on PATH.") from e
    if capture:
        return CommandResult(result.returncode, result.stdout, result.stderr)
    return CommandResult(result.returncode)


class BuildTool:
    def __init__(self, command: list[str], cwd: Path):
        self.command = list(command)
        self.cwd = cwd

    def build(self) -> CommandResult:
        return _execute(self.command, self.cwd, capture=True)


class ScanTool:
    """Runs the vulnerability scanner. Its stdout is the JSON report."""

    def __init__(self, command: list[str], cwd: Path):
        self.command = list(command)
        self.cwd = cwd

    def available(self) -> bool:
        return shutil.which(self.command[0]) is not None

    def scan(self) -> CommandResult:
        return _execute(self.command, self.cwd, capture=True)


class LineEditor:
    def __init__(self, editor: str):
        self.command = shlex.split(editor)

    def edit(self, path: Path) -> CommandResult:
        return _execute([*self.command, str(path)], path.parent, capture=False)


class JavaRunner:
    def __init__(self, command: list[str], cwd: Path):
        self.command = list(command)
        self.cwd = cwd

    def run(self, options: list[str], jar: Path) -> CommandResult:
        return _execute([*self.command, *options, "-jar", str(jar)], self.cwd, capture=False)
