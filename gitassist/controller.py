"""
GIT ASSIST Controller: the menu dispatcher.

It is NOT smart. It is deterministic.

Responsibilities:
  - Show the numbered menu
  - Parse the operator's selection line
  - Run the selected operations in canonical order, never input order
  - Map step results and errors onto session outcomes
  - Loop back to the menu, or stop, depending on mode

It never touches git itself. It only coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from gitassist.errors import ConfigurationError, ToolFailure, ValidationError
from gitassist.state import StepResult, StepStatus
from gitassist.steps import BaseStep, StepContext
from gitassist.steps.build import BuildStep
from gitassist.steps.commit import CommitComposer
from gitassist.steps.janitor import BranchJanitor
from gitassist.steps.push import DivergenceCheck, PushGuard
from gitassist.steps.security import SecurityGate
from gitassist.steps.staging import StagingSelector

RUN_ALL_TOKENS = frozenset({"a", "all"})
QUIT_TOKENS = frozenset({"q", "quit", "exit"})


@dataclass
class MenuItem:
    key: str
    title: str
    steps: list[BaseStep] = field(default_factory=list)


@dataclass
class Selection:
    keys: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)


def build_menu(ctx: StepContext) -> list[MenuItem]:
    """The fixed menu, in canonical execution order."""
    commit_steps: list[BaseStep] = [StagingSelector(), CommitComposer()]
    if ctx.config.push.check_divergence:
        commit_steps.insert(0, DivergenceCheck())

    return [
        MenuItem("1", f"🔧 Run '{' '.join(ctx.config.tools.build_command)}'", [BuildStep()]),
        MenuItem("2", "🔎 Run vulnerability scan and generate report", [SecurityGate()]),
        MenuItem("3", "📝 Stage and commit git changes", commit_steps),
        MenuItem("4", "🚀 Push to remote with branch protection", [PushGuard()]),
        MenuItem("5", "🧹 Delete remote branches merged into base", [BranchJanitor()]),
    ]


def parse_selection(line: str, menu: list[MenuItem]) -> Selection:
    """
    Turn a selection line into menu keys in canonical order.

    "a"/"all" selects everything. Unknown tokens are collected, not fatal.
    """
    order = [item.key for item in menu]
    chosen: set[str] = set()
    selection = Selection()

    for token in line.split():
        lowered = token.lower()
        if lowered in RUN_ALL_TOKENS:
            chosen.update(order)
        elif token in order:
            chosen.add(token)
        else:
            selection.unknown.append(token)

    selection.keys = [key for key in order if key in chosen]
    return selection


class Controller:
    """
    Runs one session: a single round (one-shot) or rounds until quit (loop).

    One-shot: the first non-success outcome ends the session.
    Loop: step aborts and tool failures return to the menu; configuration
    errors and "nothing to commit" end the session.
    """

    def __init__(self, ctx: StepContext, loop: bool = False):
        self.ctx = ctx
        self.loop = loop
        self.menu = build_menu(ctx)

    def run(self, selection: str | None = None) -> StepResult:
        log = self.ctx.log
        log.banner("Git Assistant started")

        try:
            outcome = self._loop() if self.loop else self._one_shot(selection)
        except KeyboardInterrupt:
            log.warn("⚡ Interrupted by operator.")
            outcome = StepResult(step="session", status="aborted", message="interrupted")

        log.banner(f"Git Assistant finished ({outcome.status})")
        return outcome

    # -----------------------------------------------------------------------
    # Modes
    # -----------------------------------------------------------------------

    def _one_shot(self, selection: str | None) -> StepResult:
        line = selection if selection is not None else self._ask_selection()
        keys = self._parse(line)
        if not keys:
            self.ctx.log.warn("⚠️ Nothing selected.")
            return StepResult(step="session", status="aborted", message="nothing selected")
        return self.run_round(keys)

    def _loop(self) -> StepResult:
        while True:
            line = self._ask_selection(allow_quit=True)
            if line.strip().lower() in QUIT_TOKENS:
                return StepResult(step="session", message="quit")

            keys = self._parse(line)
            if not keys:
                self.ctx.log.warn("⚠️ Nothing selected.")
                continue

            outcome = self.run_round(keys)
            if outcome.status in ("fatal", "finished"):
                return outcome

    # -----------------------------------------------------------------------
    # Rounds
    # -----------------------------------------------------------------------

    def run_round(self, keys: list[str]) -> StepResult:
        """Run the chosen menu items in canonical order, stopping at the first non-success."""
        items = {item.key: item for item in self.menu}
        steps = [step for key in keys for step in items[key].steps]
        return self.run_steps(steps, label=", ".join(keys))

    def run_steps(self, steps: list[BaseStep], label: str = "") -> StepResult:
        for step in steps:
            result = self._run_step(step)
            if not result.ok:
                return result
            self.ctx.session.mark_step(step.name)
        return StepResult(step="session", message=label)

    def _run_step(self, step: BaseStep) -> StepResult:
        log = self.ctx.log
        log.record(f"[{step.name}] start")
        try:
            result = step.run(self.ctx)
        except ConfigurationError as e:
            log.error(str(e))
            result = self._failed(step, "fatal", e)
        except ToolFailure as e:
            log.error(str(e))
            if e.output:
                log.record(e.output)
            result = self._failed(step, "aborted" if self.loop else "fatal", e)
        except ValidationError as e:
            log.error(str(e))
            result = self._failed(step, "aborted", e)
        except Exception as e:
            logger.exception("Controller error")
            log.error(f"💥 Error in {step.name}: {e}")
            result = self._failed(step, "fatal", e)

        log.record(f"[{step.name}] {result.status} {result.message}".rstrip())
        return result

    @staticmethod
    def _failed(step: BaseStep, status: StepStatus, error: Exception) -> StepResult:
        return StepResult(step=step.name, status=status, message=str(error))

    # -----------------------------------------------------------------------
    # Menu
    # -----------------------------------------------------------------------

    def _ask_selection(self, allow_quit: bool = False) -> str:
        log = self.ctx.log
        log.highlight("🎛️  Git Assistant Menu")
        log.log("Choose steps to run (e.g. 1 2 4), 'a' for all:")
        for item in self.menu:
            log.log(f"  {item.key}) {item.title}")
        if allow_quit:
            log.log("  q) Quit")
        line = self.ctx.prompter.ask("Enter your selection:")
        log.record(f"Selection: {line}")
        return line

    def _parse(self, line: str) -> list[str]:
        selection = parse_selection(line, self.menu)
        for token in selection.unknown:
            self.ctx.log.warn(f"⚠️ Unknown option: {token}")
        return selection.keys
