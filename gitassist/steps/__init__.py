"""
GIT ASSIST Step Roster

Each step is:
  - A name shown in the menu
  - A run() that consumes a StepContext
  - A StepResult (or a raised GitAssistError) handed back to the dispatcher

Steps never call each other. Only the dispatcher sequences them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from gitassist.audit_logger import SessionLog
from gitassist.collaborators import AppRunner, Builder, Editor, Prompter, Scanner, VersionControl
from gitassist.config_loader import GitAssistConfig
from gitassist.state import SessionState, StepResult, StepStatus


@dataclass
class StepContext:
    """Everything a step may touch, injected once per session."""
    repo_path: Path
    config: GitAssistConfig
    log: SessionLog
    prompter: Prompter
    vcs: VersionControl
    builder: Builder
    scanner: Scanner
    editor: Editor
    app_runner: AppRunner | None = None
    session: SessionState = field(default_factory=SessionState)

    def resolve(self, relative: str) -> Path:
        return self.repo_path / relative


class BaseStep(ABC):
    """
    Base class for all GIT ASSIST steps.

    Subclasses define:
      - name: str: identifier used in results and the log
      - title: str: menu label
      - run(): the step itself
    """

    name: str = "unknown"
    title: str = "Unknown step"

    @abstractmethod
    def run(self, ctx: StepContext) -> StepResult:
        ...

    def _result(self, status: StepStatus = "success", message: str = "") -> StepResult:
        return StepResult(step=self.name, status=status, message=message)
