import os
import shutil

import pytest

from stagecoder.core.models import ChangeRecord
from stagecoder.core.publisher import (
    NO_CHANGES_MESSAGE,
    StagingPublisher,
    build_commit_message,
    is_force_pushable,
)
from stagecoder.services.git_service import GitService

from conftest import (
    AUTH_FAILED_STDERR,
    MISSING_BRANCH_STDERR,
    NO_REMOTE_REF_STDERR,
    PUSH_FETCH_FIRST_STDERR,
    PUSH_REJECTED_STDERR,
    ScriptedGit,
)


def test_clean_tree_is_a_no_op(tmp_path):
    git = ScriptedGit(status="")
    result = StagingPublisher(git=git).publish(tmp_path, "Add footer")

    assert result.success is False
    assert result.message == NO_CHANGES_MESSAGE
    assert result.error is None
    assert git.commands == ["status --porcelain"]


def test_whitespace_only_status_counts_as_clean(tmp_path):
    git = ScriptedGit(status="\n  \n")
    result = StagingPublisher(git=git).publish(tmp_path, "x")
    assert result.message == NO_CHANGES_MESSAGE


def test_pipeline_runs_in_order(tmp_path):
    git = ScriptedGit()
    changes = [ChangeRecord(path="index.html")]
    result = StagingPublisher(git=git).publish(tmp_path, "Add a footer", changes)

    assert git.commands == [
        "status --porcelain",
        "checkout staging",
        "pull origin staging",
        "add .",
        "commit -m AI: Add a footer",
        "push origin staging",
    ]
    assert result.success is True
    assert result.message == "Pushed to staging"
    assert result.branch == "staging"
    assert result.commit_message == "AI: Add a footer"
    assert result.force_push is False
    assert result.changes == changes


def test_every_call_gets_the_workspace_and_cwd_is_untouched(tmp_path):
    before = os.getcwd()
    git = ScriptedGit(failures={"push": PUSH_REJECTED_STDERR})
    StagingPublisher(git=git).publish(tmp_path, "x")

    assert os.getcwd() == before
    assert git.calls
    assert all(cwd == tmp_path for _, cwd in git.calls)


def test_missing_staging_branch_is_created(tmp_path):
    git = ScriptedGit(failures={"checkout staging": MISSING_BRANCH_STDERR})
    result = StagingPublisher(git=git).publish(tmp_path, "x")

    assert result.success is True
    assert git.commands[1:3] == ["checkout staging", "checkout -b staging"]


def test_pull_failure_is_ignored(tmp_path):
    git = ScriptedGit(failures={"pull": NO_REMOTE_REF_STDERR})
    result = StagingPublisher(git=git).publish(tmp_path, "x")

    assert result.success is True
    assert git.commands[-1] == "push origin staging"


def test_force_skips_pull_and_force_pushes(tmp_path):
    git = ScriptedGit()
    result = StagingPublisher(git=git).publish(tmp_path, "x", force=True)

    assert result.success is True
    assert result.force_push is True
    assert not any(c.startswith("pull") for c in git.commands)
    assert git.commands[-1] == "push --force origin staging"


@pytest.mark.parametrize("stderr", [PUSH_REJECTED_STDERR, PUSH_FETCH_FIRST_STDERR])
def test_rejected_push_offers_force(tmp_path, stderr):
    git = ScriptedGit(failures={"push": stderr})
    result = StagingPublisher(git=git).publish(tmp_path, "x")

    assert result.success is False
    assert result.message == "Failed to publish to staging"
    assert result.can_force_push is True
    assert "Command failed: git push origin staging" in result.error


def test_auth_failure_does_not_offer_force(tmp_path):
    git = ScriptedGit(failures={"push": AUTH_FAILED_STDERR})
    result = StagingPublisher(git=git).publish(tmp_path, "x")

    assert result.success is False
    assert result.can_force_push is False
    assert "Authentication failed" in result.error


def test_commit_failure_stops_before_push(tmp_path):
    git = ScriptedGit(failures={"commit": "error: gpg failed to sign the data\n"})
    result = StagingPublisher(git=git).publish(tmp_path, "x")

    assert result.success is False
    assert not any(c.startswith("push") for c in git.commands)


def test_status_failure_is_reported(tmp_path):
    git = ScriptedGit(failures={"status": "fatal: not a git repository (or any of the parent directories): .git\n"})
    result = StagingPublisher(git=git).publish(tmp_path, "x")

    assert result.success is False
    assert "not a git repository" in result.error
    assert result.can_force_push is False
    assert git.commands == ["status --porcelain"]


def test_commit_message_is_truncated_and_keeps_quotes():
    request = 'Rename the "Sign up" button to "Join" and ' + "x" * 100
    message = build_commit_message(request)

    assert message.startswith('AI: Rename the "Sign up" button')
    assert len(message) == len("AI: ") + 72
    assert build_commit_message("  padded  ") == "AI: padded"


def test_commit_message_is_passed_as_a_single_argument(tmp_path):
    git = ScriptedGit()
    StagingPublisher(git=git).publish(tmp_path, 'Say "hi" & $(whoami)')
    assert 'commit -m AI: Say "hi" & $(whoami)' in git.commands


def test_result_dict_shapes(tmp_path):
    ok = StagingPublisher(git=ScriptedGit()).publish(tmp_path, "x", [ChangeRecord(path="a.txt")])
    assert ok.to_dict() == {
        "success": True,
        "message": "Pushed to staging",
        "branch": "staging",
        "commit_message": "AI: x",
        "force_push": False,
        "changes": [{"file": "a.txt", "action": "modified"}],
    }

    failed = StagingPublisher(git=ScriptedGit(failures={"push": PUSH_REJECTED_STDERR})).publish(tmp_path, "x")
    data = failed.to_dict()
    assert data["can_force_push"] is True
    assert "force_push" not in data


# ---------------------------------------------------------------------------
# retry_force_push
# ---------------------------------------------------------------------------

def test_retry_force_push(tmp_path):
    git = ScriptedGit()
    result = StagingPublisher(git=git).retry_force_push(tmp_path)

    assert git.commands == ["checkout staging", "push --force origin staging"]
    assert result.success is True
    assert result.message == "Force pushed to staging"
    assert result.force_push is True


def test_retry_force_push_failure_is_classified(tmp_path):
    git = ScriptedGit(failures={"push --force": PUSH_REJECTED_STDERR})
    result = StagingPublisher(git=git).retry_force_push(tmp_path)

    assert result.success is False
    assert result.can_force_push is True


def test_retry_without_local_branch_fails(tmp_path):
    git = ScriptedGit(failures={"checkout": MISSING_BRANCH_STDERR})
    result = StagingPublisher(git=git).retry_force_push(tmp_path)

    assert result.success is False
    assert git.commands == ["checkout staging"]


@pytest.mark.parametrize("text,expected", [
    (PUSH_REJECTED_STDERR, True),
    (PUSH_FETCH_FIRST_STDERR, True),
    ("hint: Updates were rejected because the tip of your current branch is BEHIND", True),
    (AUTH_FAILED_STDERR, False),
    ("fatal: unable to access 'https://github.com/acme/site.git/': Could not resolve host", False),
    ("", False),
    (None, False),
])
def test_is_force_pushable(text, expected):
    assert is_force_pushable(text) is expected


# ---------------------------------------------------------------------------
# Against a real repository
# ---------------------------------------------------------------------------

@pytest.fixture
def isolated_git(tmp_path, monkeypatch):
    empty_config = tmp_path / "gitconfig"
    empty_config.write_text("", encoding="utf-8")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(empty_config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for role in ("AUTHOR", "COMMITTER"):
        monkeypatch.setenv(f"GIT_{role}_NAME", "StageCoder Tests")
        monkeypatch.setenv(f"GIT_{role}_EMAIL", "tests@example.com")
    return GitService()


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_publish_to_a_real_remote(tmp_path, isolated_git):
    remote = tmp_path / "remote.git"
    work = tmp_path / "work"
    isolated_git.run(["init", "--bare", str(remote)])
    isolated_git.run(["clone", str(remote), str(work)])
    (work / "index.html").write_text("<h1>Hello</h1>\n", encoding="utf-8")

    before = os.getcwd()
    result = StagingPublisher(git=isolated_git).publish(work, 'Add "hello" page')

    assert os.getcwd() == before
    assert result.success is True, result.error
    subject = isolated_git.run(["--git-dir", str(remote), "log", "-1", "--format=%s", "staging"])
    assert subject.strip() == 'AI: Add "hello" page'

    again = StagingPublisher(git=isolated_git).publish(work, "nothing new")
    assert again.message == NO_CHANGES_MESSAGE
