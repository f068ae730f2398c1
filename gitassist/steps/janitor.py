"""
🧹 Branch Janitor: delete remote branches already merged into the base.

One confirmation covers the whole batch. The base branch, the symbolic
remote HEAD and protected names never enter the batch.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from gitassist.errors import ConfigurationError, ToolFailure
from gitassist.state import StepResult
from gitassist.steps import BaseStep, StepContext

SYMBOLIC_HEAD = "HEAD"


@dataclass
class PrunePlan:
    base: str
    merged: list[str] = field(default_factory=list)
    batch: list[str] = field(default_factory=list)
    protected: list[str] = field(default_factory=list)


@dataclass
class PruneReport:
    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)


def select_base(remote_branches: list[str], preference: list[str]) -> str | None:
    """First preferred name that exists on the remote."""
    available = set(remote_branches)
    for candidate in preference:
        if candidate in available:
            return candidate
    return None


def plan_pruning(merged: list[str], base: str, protected: list[str]) -> PrunePlan:
    plan = PrunePlan(base=base)
    for name in merged:
        if name in (base, SYMBOLIC_HEAD) or name in plan.merged:
            continue
        plan.merged.append(name)
        if name in protected:
            plan.protected.append(name)
        else:
            plan.batch.append(name)
    return plan


class BranchJanitor(BaseStep):
    name = "prune"
    title = "🧹 Delete remote branches merged into base"

    def run(self, ctx: StepContext) -> StepResult:
        remote = ctx.config.branches.remote

        ctx.log.highlight(f"🧹 Fetching and pruning {remote}...")
        fetched = ctx.vcs.fetch_prune(remote)
        if not fetched.ok:
            raise ToolFailure(f"❌ git fetch --prune failed: {fetched.text}", fetched.text)

        preference = ctx.config.branches.base_preference
        base = select_base(ctx.vcs.remote_branches(remote), preference)
        if base is None:
            raise ConfigurationError(
                f"❌ No base branch on {remote} (looked for {', '.join(preference)})."
            )
        ctx.log.highlight(f"🌳 Base branch: {remote}/{base}")

        updated = ctx.vcs.update_local_branch(remote, base)
        if not updated.ok:
            raise ToolFailure(f"❌ Could not update local {base}: {updated.text}", updated.text)

        plan = plan_pruning(
            ctx.vcs.merged_remote_branches(remote, base), base, ctx.config.branches.protected
        )
        if not plan.merged:
            ctx.log.success(f"✅ No branches merged into {base}. Nothing to prune.")
            return self._result(message="nothing to prune")

        ctx.log.highlight(f"🔀 Branches fully merged into {remote}/{base}:")
        for i, branch in enumerate(plan.merged, start=1):
            suffix = "  (protected, will be skipped)" if branch in plan.protected else ""
            ctx.log.log(f"  {i}) {remote}/{branch}{suffix}")

        if not plan.batch:
            ctx.log.warn("⚠️ Only protected branches are merged. Nothing to delete.")
            return self._result(message="only protected branches merged")

        if not ctx.prompter.confirm(f"Delete {len(plan.batch)} branch(es) from {remote}?"):
            ctx.log.warn("⏭️ Pruning skipped.")
            return self._result(message="pruning declined")

        report = self._delete(ctx, plan)

        if report.failed:
            ctx.log.error(f"❌ {len(report.failed)} deletion(s) failed: {', '.join(report.failed)}")
            return self._result("aborted", f"{len(report.deleted)} deleted, {len(report.failed)} failed")

        ctx.log.success(f"✅ Deleted {len(report.deleted)} merged branch(es).")
        return self._result(message=f"{len(report.deleted)} deleted")

    @staticmethod
    def _delete(ctx: StepContext, plan: PrunePlan) -> PruneReport:
        remote = ctx.config.branches.remote
        report = PruneReport()

        for branch in plan.protected:
            ctx.log.warn(f"⚠️ Skipping protected branch: {branch}")
            report.skipped.append(branch)

        for branch in plan.batch:
            result = ctx.vcs.delete_remote_branch(remote, branch)
            if result.ok:
                ctx.log.success(f"🗑️ Deleted {remote}/{branch}")
                report.deleted.append(branch)
            else:
                ctx.log.error(f"❌ Failed to delete {remote}/{branch}: {result.text}")
                report.failed[branch] = result.text

        return report
