"""
📝 Staging Selector: one yes/no per changed file, then a single `git add`.

Untracked directories reported by `git status` are expanded into the
files git would actually add; each file is asked about exactly once.
"""

from __future__ import annotations

from gitassist.collaborators import VersionControl
from gitassist.errors import ToolFailure, ValidationError
from gitassist.state import ChangeEntry, ChangeSet, StepResult
from gitassist.steps import BaseStep, StepContext

RENAME_CODES = ("R", "C")


def parse_porcelain(text: str) -> ChangeSet:
    """
    Parse `git status --porcelain -z` into a ChangeSet, in output order.

    Records are NUL-terminated `XY path`. Renames and copies are followed
    by one extra record holding the source path, which is dropped.
    """
    entries = []
    records = iter(text.split("\0"))
    for record in records:
        if len(record) < 4:
            continue
        status, path = record[:2].strip(), record[3:]
        if any(code in record[:2] for code in RENAME_CODES):
            next(records, None)
        entries.append(ChangeEntry(status=status, path=path))
    return ChangeSet(entries=tuple(entries))


def expand_changeset(changeset: ChangeSet, vcs: VersionControl) -> list[str]:
    """
    Flatten a ChangeSet into the files to ask about.

    Directory entries (trailing slash) become the untracked, non-ignored
    files git lists under them. A file reachable from more than one entry
    appears once, at its first position.
    """
    candidates: list[str] = []
    seen: set[str] = set()

    for entry in changeset.entries:
        if entry.path.endswith("/"):
            files = sorted(vcs.untracked_files(entry.path))
        else:
            files = [entry.path]

        for f in files:
            if f not in seen:
                seen.add(f)
                candidates.append(f)

    return candidates


class StagingSelector(BaseStep):
    name = "stage"
    title = "📝 Stage changes"

    def run(self, ctx: StepContext) -> StepResult:
        ctx.session.staged_paths = []

        ctx.log.highlight("📁 Checking for changes...")
        ctx.log.output(ctx.vcs.status_text())

        changeset = parse_porcelain(ctx.vcs.status_porcelain())
        if changeset.is_empty:
            ctx.log.success("✅ No changes to commit. Working tree clean.")
            return self._result("finished", "nothing to commit")

        ctx.log.highlight("🔍 Found changed files. Let's pick what to add:")
        decisions: dict[str, bool] = {}
        for path in expand_changeset(changeset, ctx.vcs):
            decisions[path] = ctx.prompter.confirm(f"Add '{path}'?")
            if decisions[path]:
                ctx.log.success(f"✅ Selected: {path}")
            else:
                ctx.log.error(f"❌ Skipped: {path}")

        included = [path for path, keep in decisions.items() if keep]
        if not included:
            raise ValidationError("🚫 No files selected. Aborting commit.")

        ctx.log.highlight("➕ Staging files...")
        result = ctx.vcs.add(included)
        if not result.ok:
            raise ToolFailure(f"❌ git add failed: {result.text}", result.text)

        ctx.session.staged_paths = included
        ctx.log.success(f"✅ {len(included)} file(s) staged.")
        return self._result(message=f"{len(included)} staged")
