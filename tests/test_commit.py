import pytest

from conftest import FakeEditor, FakeVCS, ScriptedPrompter
from gitassist.collaborators import CommandResult
from gitassist.errors import ToolFailure, ValidationError
from gitassist.steps.commit import (
    CommitComposer,
    CommitMessage,
    capture_body,
    extract_ticket,
    is_valid_ticket,
    resolve_ticket,
)


@pytest.mark.parametrize("candidate", ["FINDATA-123", "FINDATA-1", "FINDATA-0042"])
def test_valid_tickets(candidate):
    assert is_valid_ticket(candidate, "FINDATA")


@pytest.mark.parametrize("candidate", [
    "findata-123", "FINDATA-", "FINDATA-12a", "XFINDATA-12", "FINDATA-12 ", "FINDATA-١٢", "",
])
def test_invalid_tickets(candidate):
    assert not is_valid_ticket(candidate, "FINDATA")


@pytest.mark.parametrize("branch, ticket", [
    ("feature/FINDATA-42-x", "FINDATA-42"),
    ("FINDATA-7", "FINDATA-7"),
    ("bugfix/FINDATA-12-and-FINDATA-13", "FINDATA-12"),
    ("feature/findata-42", None),
    ("main", None),
])
def test_extract_ticket_from_branch(branch, ticket):
    assert extract_ticket(branch, "FINDATA") == ticket


def test_resolve_ticket_reprompts_until_exact_match(make_ctx):
    ctx = make_ctx(prompter=ScriptedPrompter(["findata-1", "FINDATA-", "FINDATA-12a", "FINDATA-99"]))

    ticket = resolve_ticket("main", "FINDATA", ctx.prompter, ctx.log)

    assert ticket == "FINDATA-99"
    assert len(ctx.prompter.questions) == 4


def test_resolve_ticket_never_accepts_bad_input(make_ctx):
    ctx = make_ctx(prompter=ScriptedPrompter(["nope", "FINDATA-x"]))

    # The loop only ends on a match, so running out of answers surfaces as an assertion.
    with pytest.raises(AssertionError, match="Unexpected prompt"):
        resolve_ticket("main", "FINDATA", ctx.prompter, ctx.log)


def test_resolve_ticket_uses_custom_prefix(make_ctx):
    ctx = make_ctx()

    assert resolve_ticket("feature/OPS-5-deploy", "OPS", ctx.prompter, ctx.log) == "OPS-5"
    assert ctx.prompter.questions == []


def test_capture_body_removes_temp_file():
    editor = FakeEditor("line one\nline two\n")

    body = capture_body(editor)

    assert body == "line one\nline two\n"
    assert editor.paths[0].name.startswith("gitmsg.")
    assert not editor.paths[0].exists()


def test_capture_body_removes_temp_file_on_editor_failure():
    editor = FakeEditor("partial", returncode=1)

    with pytest.raises(ToolFailure):
        capture_body(editor)

    assert not editor.paths[0].exists()


def test_commit_message_render():
    assert CommitMessage("FINDATA-42", "fix bug").render() == "FINDATA-42: fix bug"


def _commit_ctx(make_ctx, answers, body="fix bug", staged=("a.txt",), branch="feature/FINDATA-42-x"):
    vcs = FakeVCS()
    vcs.branch = branch
    ctx = make_ctx(vcs=vcs, prompter=ScriptedPrompter(answers), editor=FakeEditor(body))
    ctx.session.staged_paths = list(staged)
    return ctx


def test_commit_happens_when_every_condition_holds(make_ctx):
    ctx = _commit_ctx(make_ctx, ["y"])

    result = CommitComposer().run(ctx)

    assert result.ok
    assert ctx.vcs.calls == [("commit", "FINDATA-42: fix bug")]
    assert ctx.session.last_commit == "commit1"
    assert ctx.session.staged_paths == []


def test_no_commit_without_staged_files(make_ctx):
    ctx = _commit_ctx(make_ctx, [], staged=())

    with pytest.raises(ValidationError):
        CommitComposer().run(ctx)

    assert "commit" not in ctx.vcs.call_names()


@pytest.mark.parametrize("body", ["", "   \n\t\n"])
def test_no_commit_with_empty_body(make_ctx, body):
    ctx = _commit_ctx(make_ctx, [], body=body)

    with pytest.raises(ValidationError):
        CommitComposer().run(ctx)

    assert "commit" not in ctx.vcs.call_names()
    assert ctx.session.staged_paths == ["a.txt"]


def test_no_commit_when_final_confirmation_declined(make_ctx):
    ctx = _commit_ctx(make_ctx, ["n"])

    result = CommitComposer().run(ctx)

    assert result.status == "aborted"
    assert "commit" not in ctx.vcs.call_names()
    assert ctx.session.staged_paths == ["a.txt"]


def test_ticket_prompt_precedes_commit_on_plain_branch(make_ctx):
    ctx = _commit_ctx(make_ctx, ["bad", "FINDATA-7", "y"], branch="main")

    CommitComposer().run(ctx)

    assert ctx.vcs.calls == [("commit", "FINDATA-7: fix bug")]


def test_body_is_trimmed(make_ctx):
    ctx = _commit_ctx(make_ctx, ["y"], body="\n  fix bug\n\nmore detail  \n")

    CommitComposer().run(ctx)

    assert ctx.vcs.calls == [("commit", "FINDATA-42: fix bug\n\nmore detail")]


def test_commit_failure_is_tool_failure(make_ctx):
    ctx = _commit_ctx(make_ctx, ["y"])
    ctx.vcs.results["commit"] = CommandResult(1, "", "nothing to commit")

    with pytest.raises(ToolFailure):
        CommitComposer().run(ctx)

    assert ctx.session.last_commit is None
