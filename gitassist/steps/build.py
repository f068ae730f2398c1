"""🔧 Build: runs the project's fixed build invocation."""

from __future__ import annotations

from gitassist.errors import ToolFailure
from gitassist.state import StepResult
from gitassist.steps import BaseStep, StepContext


class BuildStep(BaseStep):
    name = "build"
    title = "🔧 Run build"

    def run(self, ctx: StepContext) -> StepResult:
        command = " ".join(ctx.config.tools.build_command)
        ctx.log.highlight(f"🔧 Running {command}...")

        result = ctx.builder.build()
        ctx.log.output(result.stdout)

        if not result.ok:
            ctx.log.output(result.stderr)
            raise ToolFailure(f"❌ Build failed (exit {result.returncode}).", result.text)

        ctx.log.success("✅ Build successful")
        return self._result()
