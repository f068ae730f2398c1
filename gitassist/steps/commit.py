"""
🧾 Commit Composer: ticket + editor-written body + final confirmation.

A commit is issued only when all of these hold:
  - at least one file was staged this session
  - the ticket matches PREFIX-digits exactly
  - the edited body is non-empty after trimming
  - the operator confirms the rendered message
"""

from __future__ import annotations

import re
import tempfile
from dataclasses import dataclass
from pathlib import Path

from gitassist.audit_logger import SessionLog
from gitassist.collaborators import Editor, Prompter
from gitassist.errors import ToolFailure, ValidationError
from gitassist.state import StepResult
from gitassist.steps import BaseStep, StepContext


# ---------------------------------------------------------------------------
# Ticket
# ---------------------------------------------------------------------------

def ticket_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(prefix)}-[0-9]+")


def extract_ticket(branch: str, prefix: str) -> str | None:
    """First PREFIX-digits substring of the branch name, if any."""
    match = ticket_pattern(prefix).search(branch)
    return match.group(0) if match else None


def is_valid_ticket(candidate: str, prefix: str) -> bool:
    return ticket_pattern(prefix).fullmatch(candidate) is not None


def resolve_ticket(branch: str, prefix: str, prompter: Prompter, log: SessionLog) -> str:
    """Ticket from the branch name, otherwise ask until an exact match is typed."""
    ticket = extract_ticket(branch, prefix)
    if ticket:
        log.success(f"📌 Detected ticket from branch: {ticket}")
        return ticket

    log.warn(f"⚠️ Ticket pattern '{prefix}-###' not found in branch name.")
    candidate = prompter.ask(f"🎫 Enter ticket (must match {prefix}-###):").strip()
    while not is_valid_ticket(candidate, prefix):
        log.error(f"❌ Invalid format. Must be like {prefix}-123")
        candidate = prompter.ask("Try again:").strip()
    return candidate


# ---------------------------------------------------------------------------
# Message
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CommitMessage:
    ticket: str
    body: str

    def render(self) -> str:
        return f"{self.ticket}: {self.body}"


def capture_body(editor: Editor) -> str:
    """
    Hand a fresh temp file to the editor and return what was saved.

    The temp file is removed on every exit path.
    """
    path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", prefix="gitmsg.", suffix=".txt", delete=False, encoding="utf-8"
        ) as f:
            path = Path(f.name)

        result = editor.edit(path)
        if not result.ok:
            raise ToolFailure(f"❌ Editor exited with status {result.returncode}.")
        return path.read_text(encoding="utf-8")
    finally:
        if path is not None:
            path.unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# Step
# ---------------------------------------------------------------------------

class CommitComposer(BaseStep):
    name = "commit"
    title = "🧾 Compose commit"

    def run(self, ctx: StepContext) -> StepResult:
        if not ctx.session.staged_paths:
            raise ValidationError("🚫 Nothing staged in this session. Aborting commit.")

        branch = ctx.vcs.current_branch()
        ctx.log.highlight(f"🌿 Current branch: {branch}")
        ticket = resolve_ticket(branch, ctx.config.ticket.prefix, ctx.prompter, ctx.log)

        ctx.log.highlight("📝 Enter your commit message. Save and close the editor when done...")
        body = capture_body(ctx.editor).strip()
        if not body:
            raise ValidationError("❌ Empty commit message. Aborting.")

        message = CommitMessage(ticket=ticket, body=body).render()
        ctx.log.highlight("🧾 Final commit message:")
        ctx.log.log(message)

        if not ctx.prompter.confirm("Proceed with commit?"):
            ctx.log.error("❌ Commit aborted. Staged files left in place.")
            return self._result("aborted", "commit declined")

        result = ctx.vcs.commit(message)
        if not result.ok:
            raise ToolFailure(f"❌ git commit failed: {result.text}", result.text)

        ctx.session.last_commit = ctx.vcs.rev_parse("HEAD")
        ctx.session.staged_paths = []
        ctx.log.success("✅ Commit created.")
        return self._result(message=message)
