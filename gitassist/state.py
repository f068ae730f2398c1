from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

StepStatus = Literal["success", "aborted", "fatal", "finished"]

DETACHED_HEAD = "HEAD"


class StepResult(BaseModel):
    """Outcome of one step, consumed only by the dispatcher."""
    step: str
    status: StepStatus = "success"
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "success"


class ChangeEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str
    path: str


class ChangeSet(BaseModel):
    """Point-in-time snapshot of `git status`. Never mutated after capture."""
    model_config = ConfigDict(frozen=True)

    entries: tuple[ChangeEntry, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def paths(self) -> list[str]:
        return [e.path for e in self.entries]


class BranchState(BaseModel):
    """
    Snapshot of the current branch, captured once per Push Guard run.

    Remote fields stay None when the branch has no remote counterpart.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    protected: bool = False
    local_tip: str | None = None
    remote_tip: str | None = None
    merge_base: str | None = None

    @property
    def detached(self) -> bool:
        return self.name == DETACHED_HEAD

    @property
    def relationship(self) -> Literal["equal", "ahead", "behind", "diverged"] | None:
        if not (self.local_tip and self.remote_tip and self.merge_base):
            return None
        if self.local_tip == self.remote_tip:
            return "equal"
        if self.local_tip == self.merge_base:
            return "behind"
        if self.remote_tip == self.merge_base:
            return "ahead"
        return "diverged"

    @property
    def remote_leads(self) -> bool:
        return self.relationship == "behind"


class SessionState(BaseModel):
    """Per-process memory shared between steps of one session."""
    staged_paths: list[str] = Field(default_factory=list)
    last_commit: str | None = None
    completed_steps: list[str] = Field(default_factory=list)

    def mark_step(self, step: str) -> None:
        if step not in self.completed_steps:
            self.completed_steps.append(step)
