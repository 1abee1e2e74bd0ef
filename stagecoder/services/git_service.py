"""
Git Service

The single boundary between StageCoder and the git CLI.
Every command receives an explicit working directory; the process-wide
current directory is never touched.
"""

import shutil
import subprocess
import logging
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger("StageCoder.GitService")

PathLike = Union[str, Path]


class GitCommandError(Exception):
    """Raised when a git command exits non-zero or cannot be started."""

    def __init__(
        self,
        args: List[str],
        stderr: str = "",
        stdout: str = "",
        returncode: Optional[int] = None,
    ):
        self.command = list(args)
        self.stderr = stderr or ""
        self.stdout = stdout or ""
        self.returncode = returncode
        detail = self.stderr.strip() or self.stdout.strip() or "unknown error"
        super().__init__(f"Command failed: git {' '.join(self.command)}\n{detail}")


class GitService:
    """
    Thin wrapper over the git CLI.

    The named helpers (status, checkout, pull, commit, push, ...) all funnel
    through run(), so tests can subclass GitService and replay recorded
    outputs without a real repository.
    """

    def __init__(
        self,
        remote: str = "origin",
        timeout: int = 120,
        git_bin: Optional[str] = None,
    ):
        """
        Initialize Git service.

        Args:
            remote: Remote name used for pull/push
            timeout: Per-command timeout in seconds
            git_bin: Explicit git executable (defaults to the one on PATH)
        """
        self.remote = remote
        self.timeout = timeout
        self.git_bin = git_bin or shutil.which("git") or "git"
        logger.debug(f"GitService initialized (remote: {remote}, bin: {self.git_bin})")

    def run(self, args: List[str], cwd: Optional[PathLike] = None) -> str:
        """
        Run a git command and return its stdout.

        Raises:
            GitCommandError: On non-zero exit, timeout, or a missing binary
        """
        cmd = [self.git_bin] + list(args)
        logger.debug(f"git {' '.join(args)} (cwd: {cwd})")
        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                encoding="utf-8",
            )
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(args, stderr=f"Timed out after {self.timeout}s") from e
        except OSError as e:
            raise GitCommandError(args, stderr=f"Git execution error: {e}") from e

        if result.returncode != 0:
            raise GitCommandError(
                args,
                stderr=result.stderr,
                stdout=result.stdout,
                returncode=result.returncode,
            )
        return result.stdout

    # ------------------------------------------------------------------
    # Repository operations
    # ------------------------------------------------------------------
    def status(self, cwd: PathLike) -> str:
        """Porcelain working-tree status; empty string means clean."""
        return self.run(["status", "--porcelain"], cwd=cwd)

    def checkout(self, cwd: PathLike, branch: str) -> str:
        return self.run(["checkout", branch], cwd=cwd)

    def create_branch(self, cwd: PathLike, branch: str) -> str:
        """Create branch from the current HEAD and switch to it."""
        return self.run(["checkout", "-b", branch], cwd=cwd)

    def pull(self, cwd: PathLike, branch: str) -> str:
        return self.run(["pull", self.remote, branch], cwd=cwd)

    def add_all(self, cwd: PathLike) -> str:
        return self.run(["add", "."], cwd=cwd)

    def commit(self, cwd: PathLike, message: str) -> str:
        return self.run(["commit", "-m", message], cwd=cwd)

    def push(
        self,
        cwd: PathLike,
        branch: str,
        force: bool = False,
        set_upstream: bool = False,
    ) -> str:
        args = ["push"]
        if force:
            args.append("--force")
        if set_upstream:
            args.append("-u")
        args.extend([self.remote, branch])
        return self.run(args, cwd=cwd)

    def clone(self, url: str, dest: PathLike) -> str:
        return self.run(["clone", url, str(dest)])

    # ------------------------------------------------------------------
    # Detection helpers
    # ------------------------------------------------------------------
    @staticmethod
    def is_git_repo(path: PathLike) -> bool:
        """Check if path is the root of a git repository."""
        return (Path(path) / ".git").exists()

    def current_branch(self, cwd: PathLike) -> Optional[str]:
        """Get current branch name, or None outside a repository."""
        try:
            return self.run(["rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd).strip()
        except GitCommandError as e:
            logger.debug(f"Could not determine branch: {e}")
            return None

    def git_installed(self) -> bool:
        """Check if the git binary can be executed."""
        try:
            self.run(["--version"])
            return True
        except GitCommandError:
            return False
