"""
🔒 Security Gate: vulnerability scan before anything leaves the machine.

Both report files are written before the gate decides anything:
  - critical findings → chain ends, no prompt
  - high findings     → one "proceed anyway?" prompt
  - anything else     → proceed silently (medium/low are report-only)
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gitassist.errors import ConfigurationError, ToolFailure
from gitassist.state import StepResult
from gitassist.steps import BaseStep, StepContext

MARKDOWN_HEADER = "| Severity | Package | Current Version | Affected Versions | Title |"
MARKDOWN_RULE = "|----------|---------|------------------|--------------------|-------|"

SEVERITY_ORDER = ("critical", "high", "medium", "low")


class SecurityBlocked(ToolFailure):
    """The scan found something the gate will not let through."""


# ---------------------------------------------------------------------------
# Report Types
# ---------------------------------------------------------------------------

@dataclass
class Finding:
    """A single vulnerability, in the order the scanner emitted it."""
    severity: str
    package: str
    current_version: str
    affected_versions: str
    title: str

    @classmethod
    def from_scanner(cls, raw: dict[str, Any]) -> "Finding":
        affected = raw.get("vulnerableVersions")
        if affected is None:
            affected = (raw.get("semver") or {}).get("vulnerable", "")
        if isinstance(affected, list):
            affected = ", ".join(str(v) for v in affected)
        return cls(
            severity=str(raw.get("severity", "unknown")).lower(),
            package=str(raw.get("packageName", "")),
            current_version=str(raw.get("version", "")),
            affected_versions=str(affected),
            title=str(raw.get("title", "")),
        )

    def to_row(self) -> str:
        cells = [
            self.severity.upper(),
            self.package,
            self.current_version,
            self.affected_versions,
            self.title,
        ]
        return "| " + " | ".join(c.replace("|", "\\|") for c in cells) + " |"


@dataclass
class ScanReport:
    findings: list[Finding] = field(default_factory=list)

    @property
    def counts(self) -> Counter:
        return Counter(f.severity for f in self.findings)

    @property
    def critical_count(self) -> int:
        return self.counts["critical"]

    @property
    def high_count(self) -> int:
        return self.counts["high"]

    def to_markdown(self, title: str) -> str:
        lines = [f"# {title}", MARKDOWN_HEADER, MARKDOWN_RULE]
        lines.extend(f.to_row() for f in self.findings)
        return "\n".join(lines) + "\n"


def parse_scan_output(data: Any) -> ScanReport:
    """
    Build a ScanReport from decoded scanner JSON.

    Accepts a single document or, for multi-project scans, a list of them.
    """
    documents = data if isinstance(data, list) else [data]
    report = ScanReport()

    for doc in documents:
        if not isinstance(doc, dict):
            raise ToolFailure(f"Unexpected scanner document: {type(doc).__name__}")
        if "vulnerabilities" not in doc and doc.get("error"):
            raise ToolFailure(f"Scanner reported an error: {doc['error']}")
        for raw in doc.get("vulnerabilities") or []:
            report.findings.append(Finding.from_scanner(raw))

    return report


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------

class SecurityGate(BaseStep):
    name = "security"
    title = "🔎 Run vulnerability scan and generate report"

    def run(self, ctx: StepContext) -> StepResult:
        scan_tool = ctx.config.tools.scan_command[0]
        if not ctx.scanner.available():
            raise ConfigurationError(
                f"❌ '{scan_tool}' is required for the vulnerability scan. Install it and retry."
            )

        ctx.log.highlight(f"🔍 Running {' '.join(ctx.config.tools.scan_command)}...")
        result = ctx.scanner.scan()
        if result.ok:
            ctx.log.success("✅ Scan completed")
        else:
            # Non-zero only means findings exist; the report decides.
            ctx.log.warn("⚠️ Scanner reported vulnerabilities. Parsing report...")

        json_path = ctx.resolve(ctx.config.reports.json_report)
        markdown_path = ctx.resolve(ctx.config.reports.markdown_report)

        json_path.write_text(result.stdout, encoding="utf-8")

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ToolFailure(f"❌ Scanner output is not valid JSON: {e}", result.text) from e

        report = parse_scan_output(data)
        self._write_markdown(report, markdown_path, ctx.config.reports.title)
        self._print_summary(ctx, report)

        return self._decide(ctx, report, markdown_path)

    def _decide(self, ctx: StepContext, report: ScanReport, markdown_path: Path) -> StepResult:
        if report.critical_count > 0:
            raise SecurityBlocked("🚨 Critical vulnerabilities found. Aborting process.")

        if report.high_count > 0:
            ctx.log.warn("⚠️ High severity vulnerabilities found.")
            allowed = ctx.prompter.confirm("Proceed anyway?")
            ctx.log.record(f"Proceed with high severity findings: {'yes' if allowed else 'no'}")
            if not allowed:
                raise SecurityBlocked("⛔ Aborted due to high severity vulnerabilities.")

        ctx.log.success(f"✅ Vulnerability report saved to {markdown_path.name}")
        return self._result(message=f"{len(report.findings)} findings")

    @staticmethod
    def _write_markdown(report: ScanReport, path: Path, title: str) -> None:
        path.write_text(report.to_markdown(title), encoding="utf-8")

    @staticmethod
    def _print_summary(ctx: StepContext, report: ScanReport) -> None:
        counts = report.counts
        ctx.log.highlight("🛡️ Vulnerability Summary:")
        for severity in SEVERITY_ORDER:
            ctx.log.log(f"{severity.capitalize()}: {counts[severity]}")
        ctx.log.output("\n".join(f.to_row() for f in report.findings))
