import json

import pytest

from conftest import FakeScanner, ScriptedPrompter, vuln
from gitassist.errors import ConfigurationError, ToolFailure
from gitassist.steps.security import (
    MARKDOWN_HEADER,
    Finding,
    SecurityBlocked,
    SecurityGate,
    parse_scan_output,
)


def _gate_ctx(make_ctx, vulns, answers=None, returncode=1, **scanner_kwargs):
    return make_ctx(
        scanner=FakeScanner({"vulnerabilities": vulns}, returncode=returncode, **scanner_kwargs),
        prompter=ScriptedPrompter(answers),
    )


def test_clean_scan_proceeds_silently(make_ctx, tmp_path):
    ctx = _gate_ctx(make_ctx, [], returncode=0)

    result = SecurityGate().run(ctx)

    assert result.ok
    assert ctx.prompter.questions == []
    assert (tmp_path / "snyk-report.md").read_text().splitlines()[1] == MARKDOWN_HEADER


def test_critical_aborts_without_prompt_even_with_highs(make_ctx):
    ctx = _gate_ctx(make_ctx, [vuln("high"), vuln("critical"), vuln("high")])

    with pytest.raises(SecurityBlocked):
        SecurityGate().run(ctx)

    assert ctx.prompter.questions == []


def test_high_only_prompts_once_and_accepts(make_ctx):
    ctx = _gate_ctx(make_ctx, [vuln("high"), vuln("high")], answers=["y"])

    result = SecurityGate().run(ctx)

    assert result.ok
    assert len(ctx.prompter.questions) == 1


@pytest.mark.parametrize("answer", ["n", "", "maybe", "no"])
def test_high_declined_aborts_like_critical(make_ctx, answer):
    ctx = _gate_ctx(make_ctx, [vuln("high")], answers=[answer])

    with pytest.raises(SecurityBlocked):
        SecurityGate().run(ctx)

    assert len(ctx.prompter.questions) == 1


def test_reports_written_before_decision(make_ctx, tmp_path):
    vulns = [
        vuln("high", package="jackson-databind", title="Deserialization"),
        vuln("high", package="log4j-core", title="RCE"),
    ]
    ctx = _gate_ctx(make_ctx, vulns, answers=["n"])

    with pytest.raises(SecurityBlocked):
        SecurityGate().run(ctx)

    markdown = (tmp_path / "snyk-report.md").read_text()
    rows = [line for line in markdown.splitlines() if line.startswith("| HIGH")]
    assert rows == [
        "| HIGH | jackson-databind | 1.0.0 | <1.2.0 | Deserialization |",
        "| HIGH | log4j-core | 1.0.0 | <1.2.0 | RCE |",
    ]
    raw = json.loads((tmp_path / "snyk-vuln-report.json").read_text())
    assert len(raw["vulnerabilities"]) == 2


def test_raw_report_is_written_verbatim(make_ctx, tmp_path):
    raw = '{"vulnerabilities": [],   "ok": true}'
    ctx = make_ctx(scanner=FakeScanner(raw=raw, returncode=0))

    SecurityGate().run(ctx)

    assert (tmp_path / "snyk-vuln-report.json").read_text() == raw


def test_medium_and_low_never_gate(make_ctx):
    ctx = _gate_ctx(make_ctx, [vuln("medium"), vuln("low"), vuln("low")])

    result = SecurityGate().run(ctx)

    assert result.ok
    assert ctx.prompter.questions == []


def test_missing_scanner_is_configuration_error(make_ctx):
    ctx = _gate_ctx(make_ctx, [], available=False)

    with pytest.raises(ConfigurationError):
        SecurityGate().run(ctx)

    assert ctx.scanner.runs == 0


def test_unparseable_output_is_tool_failure(make_ctx):
    ctx = make_ctx(scanner=FakeScanner(raw="Authentication error", returncode=2))

    with pytest.raises(ToolFailure):
        SecurityGate().run(ctx)


def test_rows_keep_scanner_order_and_upper_case_severity():
    report = parse_scan_output({"vulnerabilities": [vuln("low", "a"), vuln("critical", "b"), vuln("high", "c")]})

    markdown = report.to_markdown("Report").splitlines()

    assert markdown[0] == "# Report"
    assert [row.split(" | ")[0] for row in markdown[3:]] == ["| LOW", "| CRITICAL", "| HIGH"]
    assert report.critical_count == 1
    assert report.high_count == 1


def test_multi_project_output_is_flattened():
    report = parse_scan_output([
        {"vulnerabilities": [vuln("high", "a")]},
        {"vulnerabilities": [vuln("critical", "b")]},
    ])

    assert [f.package for f in report.findings] == ["a", "b"]


def test_scanner_error_document_raises():
    with pytest.raises(ToolFailure):
        parse_scan_output({"ok": False, "error": "Could not detect supported target files"})


def test_affected_versions_from_semver_list():
    finding = Finding.from_scanner({
        "severity": "HIGH",
        "packageName": "lodash",
        "version": "4.17.15",
        "semver": {"vulnerable": ["<4.17.19", ">=5.0.0 <5.0.1"]},
        "title": "Prototype Pollution",
    })

    assert finding.severity == "high"
    assert finding.affected_versions == "<4.17.19, >=5.0.0 <5.0.1"


def test_pipe_characters_are_escaped_in_rows():
    finding = Finding("low", "pkg", "1", ">=1 || <0", "a|b")

    assert finding.to_row() == "| LOW | pkg | 1 | >=1 \\|\\| <0 | a\\|b |"
