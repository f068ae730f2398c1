"""
Capability interfaces for everything GIT ASSIST shells out to.

Steps depend only on these Protocols. The subprocess-backed
implementations live in gitassist.workspace; tests substitute fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class CommandResult:
    """Exit status plus captured text of one external invocation."""
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def text(self) -> str:
        return (self.stderr or self.stdout).strip()


class Builder(Protocol):
    def build(self) -> CommandResult: ...


class Scanner(Protocol):
    def available(self) -> bool: ...

    def scan(self) -> CommandResult: ...


class Editor(Protocol):
    def edit(self, path: Path) -> CommandResult: ...


class AppRunner(Protocol):
    def run(self, options: list[str], jar: Path) -> CommandResult: ...


class VersionControl(Protocol):
    # -- queries --
    def status_text(self) -> str: ...

    def status_porcelain(self) -> str: ...

    def untracked_files(self, directory: str) -> list[str]: ...

    def current_branch(self) -> str: ...

    def rev_parse(self, ref: str) -> str | None: ...

    def merge_base(self, a: str, b: str) -> str | None: ...

    def upstream(self, branch: str) -> str | None: ...

    def remote_branches(self, remote: str) -> list[str]: ...

    def merged_remote_branches(self, remote: str, base: str) -> list[str]: ...

    # -- mutations --
    def add(self, paths: list[str]) -> CommandResult: ...

    def commit(self, message: str) -> CommandResult: ...

    def push(self, remote: str, branch: str, set_upstream: bool) -> CommandResult: ...

    def reset_soft(self, ref: str) -> CommandResult: ...

    def checkout_new_branch(self, name: str) -> CommandResult: ...

    def fetch_prune(self, remote: str) -> CommandResult: ...

    def update_local_branch(self, remote: str, branch: str) -> CommandResult: ...

    def delete_remote_branch(self, remote: str, branch: str) -> CommandResult: ...


class Prompter(Protocol):
    def ask(self, question: str) -> str: ...

    def confirm(self, question: str) -> bool: ...
