from __future__ import annotations

import io
import json
from pathlib import Path

import pytest
from rich.console import Console

from gitassist.audit_logger import SessionLog
from gitassist.collaborators import CommandResult
from gitassist.config_loader import GitAssistConfig
from gitassist.prompts import is_affirmative
from gitassist.steps import StepContext

OK = CommandResult(0)


class ScriptedPrompter:
    """Feeds canned answers in order and fails loudly on an unexpected prompt."""

    def __init__(self, answers: list[str] | None = None):
        self.answers = list(answers or [])
        self.questions: list[str] = []

    def ask(self, question: str) -> str:
        self.questions.append(question)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {question!r}")
        return self.answers.pop(0)

    def confirm(self, question: str) -> bool:
        return is_affirmative(self.ask(f"{question} (y/n)"))


class FakeVCS:
    def __init__(self):
        self.branch = "feature/FINDATA-42-x"
        self.porcelain = ""
        self.untracked: dict[str, list[str]] = {}
        self.status = "On branch feature/FINDATA-42-x"
        self.refs: dict[str, str] = {"HEAD": "aaa111"}
        self.merge_bases: dict[tuple[str, str], str] = {}
        self.upstreams: dict[str, str] = {}
        self.remote_refs: list[str] = []
        self.merged: list[str] = []
        self.results: dict[str, CommandResult] = {}
        self.delete_results: dict[str, CommandResult] = {}
        self.calls: list[tuple] = []
        self._commit_counter = 0

    # queries
    def status_text(self) -> str:
        return self.status

    def status_porcelain(self) -> str:
        return self.porcelain

    def untracked_files(self, directory: str) -> list[str]:
        return list(self.untracked.get(directory, []))

    def current_branch(self) -> str:
        return self.branch

    def rev_parse(self, ref: str) -> str | None:
        return self.refs.get(ref)

    def merge_base(self, a: str, b: str) -> str | None:
        return self.merge_bases.get((a, b))

    def upstream(self, branch: str) -> str | None:
        return self.upstreams.get(branch)

    def remote_branches(self, remote: str) -> list[str]:
        return list(self.remote_refs)

    def merged_remote_branches(self, remote: str, base: str) -> list[str]:
        self.calls.append(("merged", remote, base))
        return list(self.merged)

    # mutations
    def _result(self, name: str) -> CommandResult:
        return self.results.get(name, OK)

    def add(self, paths: list[str]) -> CommandResult:
        self.calls.append(("add", list(paths)))
        return self._result("add")

    def commit(self, message: str) -> CommandResult:
        self.calls.append(("commit", message))
        result = self._result("commit")
        if result.ok:
            self._commit_counter += 1
            self.refs["HEAD"] = f"commit{self._commit_counter}"
        return result

    def push(self, remote: str, branch: str, set_upstream: bool) -> CommandResult:
        self.calls.append(("push", remote, branch, set_upstream))
        return self._result("push")

    def reset_soft(self, ref: str) -> CommandResult:
        self.calls.append(("reset_soft", ref))
        return self._result("reset_soft")

    def checkout_new_branch(self, name: str) -> CommandResult:
        self.calls.append(("checkout_new_branch", name))
        return self._result("checkout_new_branch")

    def fetch_prune(self, remote: str) -> CommandResult:
        self.calls.append(("fetch_prune", remote))
        return self._result("fetch_prune")

    def update_local_branch(self, remote: str, branch: str) -> CommandResult:
        self.calls.append(("update_local_branch", remote, branch))
        return self._result("update_local_branch")

    def delete_remote_branch(self, remote: str, branch: str) -> CommandResult:
        self.calls.append(("delete", remote, branch))
        return self.delete_results.get(branch, OK)

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]


class FakeBuilder:
    def __init__(self, returncode: int = 0, stdout: str = "BUILD SUCCESS"):
        self.returncode = returncode
        self.stdout = stdout
        self.runs = 0

    def build(self) -> CommandResult:
        self.runs += 1
        return CommandResult(self.returncode, self.stdout, "" if self.returncode == 0 else "BUILD FAILURE")


class FakeScanner:
    def __init__(self, payload: object = None, returncode: int = 0, available: bool = True, raw: str | None = None):
        self.stdout = raw if raw is not None else json.dumps(payload if payload is not None else {"vulnerabilities": []})
        self.returncode = returncode
        self._available = available
        self.runs = 0

    def available(self) -> bool:
        return self._available

    def scan(self) -> CommandResult:
        self.runs += 1
        return CommandResult(self.returncode, self.stdout)


class FakeEditor:
    """Writes a fixed body into whatever file it is handed."""

    def __init__(self, text: str = "fix bug", returncode: int = 0):
        self.text = text
        self.returncode = returncode
        self.paths: list[Path] = []

    def edit(self, path: Path) -> CommandResult:
        assert path.exists(), "editor must receive an existing file"
        self.paths.append(path)
        path.write_text(self.text, encoding="utf-8")
        return CommandResult(self.returncode)


class FakeAppRunner:
    def __init__(self, returncode: int = 0):
        self.returncode = returncode
        self.runs: list[tuple[list[str], Path]] = []

    def run(self, options: list[str], jar: Path) -> CommandResult:
        self.runs.append((list(options), jar))
        return CommandResult(self.returncode)


def vuln(severity: str, package: str = "lib", title: str = "Bad thing") -> dict:
    return {
        "severity": severity,
        "packageName": package,
        "version": "1.0.0",
        "vulnerableVersions": "<1.2.0",
        "title": title,
    }


@pytest.fixture
def make_ctx(tmp_path):
    logs: list[SessionLog] = []

    def _make(**overrides) -> StepContext:
        console = Console(file=io.StringIO(), width=200, color_system=None)
        log = SessionLog(tmp_path / "git-assist.log", console=console)
        logs.append(log)
        fields = dict(
            repo_path=tmp_path,
            config=GitAssistConfig(),
            log=log,
            prompter=ScriptedPrompter(),
            vcs=FakeVCS(),
            builder=FakeBuilder(),
            scanner=FakeScanner(),
            editor=FakeEditor(),
            app_runner=FakeAppRunner(),
        )
        fields.update(overrides)
        return StepContext(**fields)

    yield _make

    for log in logs:
        log.close()


def console_text(ctx: StepContext) -> str:
    return ctx.log.console.file.getvalue()
