"""
Service Layer

Service classes for filesystem, git, configuration and project access.
"""

from stagecoder.services.file_service import FileService, WorkspaceError
from stagecoder.services.git_service import GitCommandError, GitService
from stagecoder.services.config_service import ConfigService
from stagecoder.services.project_service import (
    Project,
    ProjectError,
    ProjectNotFoundError,
    ProjectService,
)

__all__ = [
    "FileService",
    "WorkspaceError",
    "GitService",
    "GitCommandError",
    "ConfigService",
    "Project",
    "ProjectError",
    "ProjectNotFoundError",
    "ProjectService",
]
