"""
🏃 App Launcher: JVM options → build → newest jar → run.

Every stage asks first. Declining any of them ends the launch, since
each later stage depends on the one before it.
"""

from __future__ import annotations

import shlex
from pathlib import Path

from gitassist.errors import ConfigurationError, ToolFailure
from gitassist.state import StepResult
from gitassist.steps import BaseStep, StepContext
from gitassist.steps.build import BuildStep


def load_jvm_options(path: Path) -> list[str]:
    """Options file lines joined by spaces, shell-split. '#' starts a comment."""
    try:
        return shlex.split(path.read_text(encoding="utf-8"), comments=True)
    except ValueError as e:
        raise ConfigurationError(f"❌ Cannot parse {path.name}: {e}") from e


def find_latest_jar(target_dir: Path) -> Path | None:
    if not target_dir.is_dir():
        return None
    jars = [p for p in target_dir.rglob("*.jar") if p.is_file()]
    if not jars:
        return None
    return max(jars, key=lambda p: p.stat().st_mtime)


class AppLauncher(BaseStep):
    name = "run-app"
    title = "🏃 Build and run the application"

    def run(self, ctx: StepContext) -> StepResult:
        options_file = ctx.config.launcher.options_file

        ctx.log.highlight(f"🚀 Step 1: Load JAVA_OPTS from {options_file}?")
        if not ctx.prompter.confirm("Do you want to load JAVA_OPTS?"):
            return self._skipped(ctx, "JAVA_OPTS not loaded")

        options_path = ctx.resolve(options_file)
        if not options_path.exists() and not self._create_options_file(ctx, options_path):
            return self._skipped(ctx, f"{options_file} not created")

        options = load_jvm_options(options_path)
        ctx.log.success(f"✅ JAVA_OPTS loaded: {' '.join(options)}")

        ctx.log.highlight("🛠️ Step 2: Build the project?")
        if not ctx.prompter.confirm("Do you want to build the project?"):
            return self._skipped(ctx, "build not run")
        BuildStep().run(ctx)

        target_dir = ctx.resolve(ctx.config.launcher.target_dir)
        ctx.log.highlight(f"🔍 Step 3: Searching for the latest JAR in {target_dir.name}/...")
        jar = find_latest_jar(target_dir)
        if jar is None:
            raise ToolFailure(f"❌ No JAR file found in {target_dir.name}/.")
        ctx.log.success(f"✅ Found JAR: {jar.relative_to(ctx.repo_path)}")

        ctx.log.highlight("🏃 Step 4: Run the application?")
        if not ctx.prompter.confirm("Do you want to run the application?"):
            return self._skipped(ctx, "application not run")

        if ctx.app_runner is None:
            raise ToolFailure("❌ No application runner configured.")
        result = ctx.app_runner.run(options, jar)
        if not result.ok:
            raise ToolFailure(f"❌ Application exited with status {result.returncode}.")

        ctx.log.success("✅ Application exited cleanly.")
        return self._result(message=jar.name)

    @staticmethod
    def _create_options_file(ctx: StepContext, path: Path) -> bool:
        ctx.log.error(f"❌ Config file not found: {path.name}")
        if not ctx.prompter.confirm(f"Do you want to create the {path.name} file?"):
            return False

        ctx.log.log(f"Opening editor to create {path.name}...")
        path.touch()
        result = ctx.editor.edit(path)
        if not result.ok:
            raise ToolFailure(f"❌ Editor exited with status {result.returncode}.")
        ctx.log.success("✅ File created and saved.")
        return True

    def _skipped(self, ctx: StepContext, what: str) -> StepResult:
        ctx.log.error(f"❌ Required step skipped: {what}. Exiting.")
        return self._result("aborted", what)
