"""
GIT ASSIST Workspace

Thin git adapter. Queries return parsed text and raise WorkspaceError
when git itself fails; mutations return a CommandResult so the calling
step decides what a failure means.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from loguru import logger

from gitassist.collaborators import CommandResult
from gitassist.errors import ConfigurationError, ToolFailure

GIT_TIMEOUT = 120


class WorkspaceError(ToolFailure):
    pass


class GitWorkspace:
    """
    Runs git against a single repository checkout.
    """

    def __init__(self, repo_path: Path):
        self.repo_path = repo_path.resolve()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def status_text(self) -> str:
        return self._git("status", capture=True)

    def status_porcelain(self) -> str:
        """NUL-separated records; paths are never quoted or escaped."""
        return self._git("status", "--porcelain", "-z", capture=True)

    def untracked_files(self, directory: str) -> list[str]:
        """Untracked files under a directory, honouring .gitignore."""
        out = self._git("ls-files", "--others", "--exclude-standard", "-z", "--", directory, capture=True)
        return [path for path in out.split("\0") if path]

    def current_branch(self) -> str:
        return self._git("rev-parse", "--abbrev-ref", "HEAD", capture=True).strip()

    def rev_parse(self, ref: str) -> str | None:
        out = self._git("rev-parse", "--verify", "--quiet", ref, check=False, capture=True).strip()
        return out or None

    def merge_base(self, a: str, b: str) -> str | None:
        out = self._git("merge-base", a, b, check=False, capture=True).strip()
        return out or None

    def upstream(self, branch: str) -> str | None:
        out = self._git(
            "rev-parse", "--abbrev-ref", "--symbolic-full-name", f"{branch}@{{u}}",
            check=False, capture=True,
        ).strip()
        return out or None

    def remote_branches(self, remote: str) -> list[str]:
        """Branch names under refs/remotes/<remote>, including the symbolic HEAD."""
        prefix = f"refs/remotes/{remote}/"
        out = self._git("for-each-ref", "--format=%(refname)", prefix, capture=True)
        return [line[len(prefix):] for line in out.splitlines() if line.startswith(prefix)]

    def merged_remote_branches(self, remote: str, base: str) -> list[str]:
        out = self._git("branch", "-r", "--merged", f"{remote}/{base}", capture=True)
        return parse_remote_branch_list(out, remote)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, paths: list[str]) -> CommandResult:
        return self._run(["git", "add", "--", *paths])

    def commit(self, message: str) -> CommandResult:
        return self._run(["git", "commit", "-m", message])

    def push(self, remote: str, branch: str, set_upstream: bool) -> CommandResult:
        cmd = ["git", "push", remote, branch]
        if set_upstream:
            cmd.insert(2, "-u")
        return self._run(cmd)

    def reset_soft(self, ref: str) -> CommandResult:
        return self._run(["git", "reset", "--soft", ref])

    def checkout_new_branch(self, name: str) -> CommandResult:
        return self._run(["git", "checkout", "-b", name])

    def fetch_prune(self, remote: str) -> CommandResult:
        return self._run(["git", "fetch", remote, "--prune"])

    def update_local_branch(self, remote: str, branch: str) -> CommandResult:
        """Fast-forward the local branch to its remote, checked out or not."""
        if self.current_branch() == branch:
            return self._run(["git", "merge", "--ff-only", f"{remote}/{branch}"])
        return self._run(["git", "fetch", remote, f"{branch}:{branch}"])

    def delete_remote_branch(self, remote: str, branch: str) -> CommandResult:
        return self._run(["git", "push", remote, "--delete", branch])

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _git(self, *args: str, check: bool = True, capture: bool = False) -> str:
        result = self._run(["git", *args])
        if check and not result.ok:
            raise WorkspaceError(f"Git failed: {' '.join(['git', *args])}\n{result.stderr}", result.stderr)
        return result.stdout if capture else ""

    def _run(self, cmd: list[str]) -> CommandResult:
        return _run_cmd(cmd, cwd=self.repo_path, timeout=GIT_TIMEOUT)


def parse_remote_branch_list(text: str, remote: str) -> list[str]:
    """
    Parse `git branch -r` output into bare branch names.

    The symbolic head line (`origin/HEAD -> origin/main`) becomes "HEAD".
    """
    prefix = f"{remote}/"
    names = []
    for line in text.splitlines():
        entry = line.strip()
        if not entry:
            continue
        if "->" in entry:
            entry = entry.split("->", 1)[0].strip()
        if not entry.startswith(prefix):
            continue
        names.append(entry[len(prefix):])
    return names


def _run_cmd(cmd: list[str], cwd: Path, timeout: int | None = None) -> CommandResult:
    logger.debug(f"[WORKSPACE] $ {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd, cwd=cwd, capture_output=True, text=True,
            encoding="utf-8", errors="surrogateescape", timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ConfigurationError(f"Command not found: {cmd[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise WorkspaceError(f"Timed out after {timeout}s: {' '.join(cmd)}") from e
    return CommandResult(result.returncode, result.stdout, result.stderr)
