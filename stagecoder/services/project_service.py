"""
Project Service

Create, list and delete project working copies under the workspace root.
A project has no metadata of its own; its identity is its directory.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from stagecoder.services.git_service import GitCommandError, GitService
from stagecoder.utils.path_utils import is_safe_path

logger = logging.getLogger("StageCoder.ProjectService")

STAGING_BRANCH = "staging"


class ProjectError(Exception):
    """Raised for invalid project names or failed project creation."""
    pass


class ProjectNotFoundError(ProjectError):
    """Raised when a named project directory does not exist."""
    pass


@dataclass
class Project:
    directory_name: str
    path: Path
    cloned: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "directory_name": self.directory_name,
            "path": str(self.path),
            "cloned": self.cloned,
        }


class ProjectService:
    """Directory-level registry of projects inside one workspace root."""

    def __init__(self, workspace_root: Path, git: Optional[GitService] = None):
        self.workspace_root = Path(workspace_root).resolve()
        self.git = git or GitService()

    def path_for(self, directory_name: str) -> Path:
        """
        Map a directory name to its path under the workspace root.

        Raises:
            ProjectError: If the name is empty or would escape the root
        """
        name = (directory_name or "").strip()
        if not name or name in (".", ".."):
            raise ProjectError(f"Invalid project directory name: {directory_name!r}")
        candidate = self.workspace_root / name
        if not is_safe_path(self.workspace_root, candidate) or candidate.resolve() == self.workspace_root:
            raise ProjectError(f"Project directory escapes workspace: {directory_name!r}")
        return candidate.resolve()

    def resolve(self, directory_name: Optional[str]) -> Path:
        """
        Return the working directory for a session.

        No name means the workspace root itself.

        Raises:
            ProjectNotFoundError: If the named directory does not exist
        """
        if not directory_name:
            return self.workspace_root
        path = self.path_for(directory_name)
        if not path.is_dir():
            raise ProjectNotFoundError(
                f"Project directory '{directory_name}' not found. "
                "Please ensure the project is properly created."
            )
        return path

    def create(self, directory_name: str, clone_url: str) -> Project:
        """
        Clone a repository into the workspace unless the directory exists.

        A fresh clone is switched to the staging branch, creating it (and
        trying to publish it upstream) when the remote has none.
        """
        if not clone_url:
            raise ProjectError("Clone URL is required")
        path = self.path_for(directory_name)

        if path.exists():
            logger.info(f"Directory already exists, skipping clone: {path}")
            return Project(directory_name=directory_name, path=path, cloned=False)

        self.workspace_root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Cloning {clone_url} into {path}")
        try:
            self.git.clone(clone_url, path)
        except GitCommandError as e:
            raise ProjectError(str(e)) from e

        try:
            self.git.checkout(path, STAGING_BRANCH)
            logger.info("Switched to staging branch")
        except GitCommandError:
            try:
                self.git.create_branch(path, STAGING_BRANCH)
            except GitCommandError as e:
                raise ProjectError(str(e)) from e
            logger.info("Created staging branch")
            try:
                self.git.push(path, STAGING_BRANCH, set_upstream=True)
                logger.info("Pushed staging branch to remote")
            except GitCommandError as e:
                logger.warning(f"Could not push staging branch: {e}")

        return Project(directory_name=directory_name, path=path, cloned=True)

    def list(self) -> List[Project]:
        """Every non-hidden directory under the workspace root."""
        if not self.workspace_root.is_dir():
            return []
        return [
            Project(directory_name=entry.name, path=entry)
            for entry in sorted(self.workspace_root.iterdir(), key=lambda p: p.name)
            if entry.is_dir() and not entry.name.startswith(".")
        ]

    def delete(self, directory_name: str) -> bool:
        """
        Recursively remove a project directory.

        Returns:
            True if something was removed, False if it did not exist
        """
        path = self.path_for(directory_name)
        if not path.exists():
            return False
        shutil.rmtree(path)
        logger.info(f"Deleted project directory: {directory_name}")
        return True
