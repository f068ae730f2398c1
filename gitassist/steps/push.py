"""
🚀 Push Guard: protected-branch confirmation with rollback on refusal.

    Idle → BranchChecked
      ├─ not protected ──────────────────────────────→ PushDone
      └─ protected → AwaitConfirm
           ├─ confirmed ─────────────────────────────→ PushDone
           └─ refused → RolledBack
                ├─ no new branch ────────────────────→ Terminated
                └─ new branch → BranchCreated ───────→ Terminated

The divergence check (remote strictly ahead of local) also lives here;
the dispatcher runs it before staging.
"""

from __future__ import annotations

from gitassist.errors import ToolFailure
from gitassist.state import DETACHED_HEAD, BranchState, StepResult
from gitassist.steps import BaseStep, StepContext


def is_protected(branch: str, protected: list[str]) -> bool:
    """Exact, case-sensitive membership."""
    return branch in protected


def capture_branch_state(ctx: StepContext) -> BranchState:
    name = ctx.vcs.current_branch()
    remote = ctx.config.branches.remote

    local_tip = ctx.vcs.rev_parse("HEAD")
    remote_tip = None if name == DETACHED_HEAD else ctx.vcs.rev_parse(f"{remote}/{name}")
    merge_base = ctx.vcs.merge_base("HEAD", f"{remote}/{name}") if (local_tip and remote_tip) else None

    return BranchState(
        name=name,
        protected=is_protected(name, ctx.config.branches.protected),
        local_tip=local_tip,
        remote_tip=remote_tip,
        merge_base=merge_base,
    )


class DivergenceCheck(BaseStep):
    name = "divergence"
    title = "🧭 Check remote divergence"

    def run(self, ctx: StepContext) -> StepResult:
        state = capture_branch_state(ctx)
        remote = ctx.config.branches.remote

        if state.relationship is None:
            ctx.log.record(f"No remote counterpart for {state.name}; divergence check skipped.")
            return self._result(message="no remote counterpart")

        if state.remote_leads:
            ctx.log.warn(f"⚠️ {remote}/{state.name} has commits your local branch does not.")
            if not ctx.prompter.confirm("Continue staging and committing anyway?"):
                ctx.log.error("⛔ Stopped. Pull or rebase before committing.")
                return self._result("aborted", "remote ahead")
        elif state.relationship == "diverged":
            ctx.log.warn(f"⚠️ {state.name} and {remote}/{state.name} have diverged.")

        return self._result(message=state.relationship)


class PushGuard(BaseStep):
    name = "push"
    title = "🚀 Push to remote with branch protection"

    def run(self, ctx: StepContext) -> StepResult:
        state = capture_branch_state(ctx)

        if state.detached:
            ctx.log.error("❌ HEAD is detached. Check out a branch before pushing.")
            return self._result("aborted", "detached HEAD")

        if state.protected:
            ctx.log.warn(f"⚠️ You're on a protected branch: {state.name}")
            if not ctx.prompter.confirm(f"Do you REALLY want to push to '{state.name}'?"):
                ctx.log.error("🚫 Push cancelled.")
                self._rollback(ctx, state)
                self._offer_new_branch(ctx)
                return self._result("aborted", "push to protected branch declined")

        return self._push(ctx, state)

    def _push(self, ctx: StepContext, state: BranchState) -> StepResult:
        remote = ctx.config.branches.remote
        set_upstream = ctx.vcs.upstream(state.name) is None

        ctx.log.highlight(f"🚀 Pushing to {remote}/{state.name}...")
        result = ctx.vcs.push(remote, state.name, set_upstream=set_upstream)
        if not result.ok:
            raise ToolFailure(f"❌ Push failed: {result.text}", result.text)

        ctx.log.success("✅ Pushed successfully.")
        return self._result(message=f"{remote}/{state.name}")

    @staticmethod
    def _rollback(ctx: StepContext, state: BranchState) -> bool:
        """Soft-reset HEAD~1, but only over the commit this session made."""
        if ctx.config.push.verify_rollback_commit:
            if ctx.session.last_commit is None:
                ctx.log.warn("⚠️ No commit was created in this session. History left untouched.")
                return False
            if state.local_tip != ctx.session.last_commit:
                ctx.log.warn("⚠️ HEAD is not the commit created in this session. History left untouched.")
                return False

        ctx.log.warn("🕳️ Reverting the last commit...")
        result = ctx.vcs.reset_soft("HEAD~1")
        if not result.ok:
            raise ToolFailure(f"❌ Rollback failed: {result.text}", result.text)

        ctx.session.last_commit = None
        ctx.log.success("✅ Commit reverted. Changes remain staged.")
        return True

    @staticmethod
    def _offer_new_branch(ctx: StepContext) -> str | None:
        if not ctx.prompter.confirm("✨ Create and switch to a new feature branch?"):
            return None

        prefix = ctx.config.ticket.prefix
        name = ctx.prompter.ask(f"Enter new branch name (e.g. feature/{prefix}-123):").strip()
        while not name:
            ctx.log.error("❌ Branch name cannot be empty.")
            name = ctx.prompter.ask("Try again:").strip()

        result = ctx.vcs.checkout_new_branch(name)
        if not result.ok:
            raise ToolFailure(f"❌ Could not create branch '{name}': {result.text}", result.text)

        ctx.log.success(f"🌱 Switched to new branch: {name}")
        return name
