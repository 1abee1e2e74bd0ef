"""
Staging publisher.

Commits the working tree of a project and pushes it to the shared
`staging` branch:

    status -> checkout staging (create if missing) -> pull (best effort)
           -> add -> commit -> push

Every git call runs with an explicit cwd, so the process working directory
is identical before and after a publish whatever the outcome.

The pipeline never merges or rebases. When the remote rejects the push
because history diverged, the result says so (can_force_push=True) and the
caller may retry with force=True, which skips the pull and overwrites the
remote tip.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from stagecoder.core.models import ChangeRecord, PublishResult
from stagecoder.services.git_service import GitCommandError, GitService

logger = logging.getLogger(__name__)

STAGING_BRANCH = "staging"
COMMIT_PREFIX = "AI: "
COMMIT_SUBJECT_LIMIT = 72
NO_CHANGES_MESSAGE = "No changes detected"

# Lower-cased fragments of git's rejection messages for a diverged remote.
FORCE_PUSH_HINTS = (
    "non-fast-forward",
    "rejected",
    "failed to push some refs",
    "behind",
    "updates were rejected because the tip",
)


def build_commit_message(seed: str) -> str:
    """Fixed prefix plus the first 72 characters of the request."""
    return f"{COMMIT_PREFIX}{(seed or '').strip()[:COMMIT_SUBJECT_LIMIT]}"


def is_force_pushable(error_text: str) -> bool:
    """True if a git failure looks like a diverged-remote rejection."""
    lowered = (error_text or "").lower()
    return any(hint in lowered for hint in FORCE_PUSH_HINTS)


class StagingPublisher:
    """Commit-and-push pipeline targeting a single fixed branch."""

    def __init__(self, git: Optional[GitService] = None, branch: str = STAGING_BRANCH):
        self.git = git or GitService()
        self.branch = branch

    def publish(
        self,
        workspace: Union[str, Path],
        seed: str,
        changes: Iterable[ChangeRecord] = (),
        force: bool = False,
    ) -> PublishResult:
        """
        Commit everything in the working tree and push it to the branch.

        Args:
            workspace: Repository working directory
            seed: Originating request text; becomes the commit subject
            changes: Change set echoed back on success
            force: Skip the pull and force-push

        Returns:
            PublishResult; never raises for git failures
        """
        cwd = Path(workspace)
        changes = list(changes)

        try:
            status = self.git.status(cwd)
        except GitCommandError as e:
            return self._failure(e, force)

        if not status.strip():
            logger.warning("No changes to commit")
            return PublishResult(success=False, message=NO_CHANGES_MESSAGE)
        logger.info(f"Git status:\n{status.rstrip()}")

        commit_message = build_commit_message(seed)
        try:
            self._checkout_branch(cwd)

            if not force:
                try:
                    self.git.pull(cwd, self.branch)
                    logger.info(f"Pulled latest from {self.branch}")
                except GitCommandError as e:
                    logger.info(f"No remote {self.branch} yet or conflicts (continuing): {e.stderr.strip()}")

            self.git.add_all(cwd)
            logger.info("Staged changes")

            self.git.commit(cwd, commit_message)
            logger.info(f"Committed: {commit_message}")

            self.git.push(cwd, self.branch, force=force)
            logger.info(f"{'Force pushed' if force else 'Pushed'} to {self.branch}")
        except GitCommandError as e:
            return self._failure(e, force)

        return PublishResult(
            success=True,
            message=f"Pushed to {self.branch}",
            branch=self.branch,
            commit_message=commit_message,
            force_push=force,
            changes=changes,
        )

    def retry_force_push(self, workspace: Union[str, Path]) -> PublishResult:
        """
        Force-push whatever is already committed on the branch.

        Used after a publish committed locally but was rejected remotely.
        """
        cwd = Path(workspace)
        try:
            self.git.checkout(cwd, self.branch)
            self.git.push(cwd, self.branch, force=True)
        except GitCommandError as e:
            return self._failure(e, force=True)

        logger.info(f"Force pushed to {self.branch}")
        return PublishResult(
            success=True,
            message=f"Force pushed to {self.branch}",
            branch=self.branch,
            force_push=True,
        )

    def _checkout_branch(self, cwd: Path) -> None:
        try:
            self.git.checkout(cwd, self.branch)
            logger.info(f"Switched to {self.branch} branch")
        except GitCommandError:
            self.git.create_branch(cwd, self.branch)
            logger.info(f"Created {self.branch} branch")

    def _failure(self, error: GitCommandError, force: bool) -> PublishResult:
        text = f"{error.stderr}\n{error.stdout}"
        can_force = is_force_pushable(text)
        logger.error(f"Git error: {error}")
        return PublishResult(
            success=False,
            message="Failed to publish to staging",
            branch=self.branch,
            force_push=force,
            error=str(error),
            can_force_push=can_force,
        )
