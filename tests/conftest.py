"""
Shared fakes for the StageCoder test-suite.

- FakeAgent replays scripted replies and records every history it was shown.
- ScriptedGit is a GitService whose run() replays recorded git output instead
  of spawning processes, so the publisher's error classification can be
  exercised against real rejection messages.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from stagecoder.services.git_service import GitCommandError, GitService


# Recorded from `git push origin staging` against a remote that moved on.
PUSH_REJECTED_STDERR = """To github.com:acme/site.git
 ! [rejected]        staging -> staging (non-fast-forward)
error: failed to push some refs to 'github.com:acme/site.git'
hint: Updates were rejected because the tip of your current branch is behind
hint: its remote counterpart. Integrate the remote changes (e.g.
hint: 'git pull ...') before pushing again.
"""

PUSH_FETCH_FIRST_STDERR = """To github.com:acme/site.git
 ! [rejected]        staging -> staging (fetch first)
error: failed to push some refs to 'github.com:acme/site.git'
"""

AUTH_FAILED_STDERR = "fatal: Authentication failed for 'https://github.com/acme/site.git/'\n"

MISSING_BRANCH_STDERR = "error: pathspec 'staging' did not match any file(s) known to git\n"

NO_REMOTE_REF_STDERR = "fatal: couldn't find remote ref staging\n"


class FakeAgent:
    """Async agent stub: returns scripted replies, then a default one."""

    def __init__(self, replies: Optional[List[Any]] = None, default: str = "Let me think about that."):
        self.replies = list(replies or [])
        self.default = default
        self.calls: List[Tuple[Any, ...]] = []

    async def converse(self, turns) -> str:
        self.calls.append(tuple(turns))
        if not self.replies:
            return self.default
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class ScriptedGit(GitService):
    """
    GitService double.

    failures maps a command prefix ("push", "checkout staging") to the
    stderr git printed when it failed.
    """

    def __init__(self, status: str = " M index.html\n", failures: Optional[Dict[str, str]] = None):
        super().__init__(git_bin="git")
        self.status_output = status
        self.failures = dict(failures or {})
        self.calls: List[Tuple[str, Any]] = []

    def run(self, args, cwd=None) -> str:
        command = " ".join(args)
        self.calls.append((command, cwd))
        for prefix, stderr in self.failures.items():
            if command.startswith(prefix):
                raise GitCommandError(list(args), stderr=stderr, returncode=1)
        if args and args[0] == "status":
            return self.status_output
        return ""

    @property
    def commands(self) -> List[str]:
        return [command for command, _ in self.calls]


def run_async(coro):
    """Helper to run async coroutines inside plain pytest tests."""
    return asyncio.run(coro)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "index.html").write_text("<h1>Hello</h1>\n", encoding="utf-8")
    (root / "src" / "app.js").write_text("console.log('hi');\n", encoding="utf-8")
    return root
