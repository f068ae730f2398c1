"""Operator input. Every decision point blocks on exactly one line."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

AFFIRMATIVE = frozenset({"y", "yes"})


def is_affirmative(answer: str | None) -> bool:
    """Only an explicit yes counts. Blank, 'n' and anything else do not."""
    return (answer or "").strip().lower() in AFFIRMATIVE


class ConsolePrompter:
    """Reads answers from the terminal via rich."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def ask(self, question: str) -> str:
        return Prompt.ask(f"[yellow]{escape(question)}[/]", console=self.console, default="", show_default=False)

    def confirm(self, question: str) -> bool:
        # Any answer but yes declines. rich's Confirm would re-ask instead.
        return is_affirmative(self.ask(f"{question} (y/n)"))
