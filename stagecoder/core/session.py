"""
Coding session entry points.

CodingSession wires the project registry, repository snapshot, action
loop and staging publisher together behind the three operations callers
use: run a request, push the staging branch by hand, and retry a
rejected push with force.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from stagecoder.core.action_loop import MAX_ITERATIONS, MAX_READ_CHARS, ActionLoop
from stagecoder.core.ai.base import BaseAIProvider, ProviderNotConfiguredError
from stagecoder.core.models import PublishResult, SessionResult
from stagecoder.core.publisher import StagingPublisher
from stagecoder.services.file_service import FileService
from stagecoder.services.project_service import ProjectService
from stagecoder.workspace.tree import RepositorySnapshot

logger = logging.getLogger(__name__)

MANUAL_PUSH_MESSAGE = "Manual changes"


class CodingSession:
    """
    Runs natural-language change requests against projects in one
    workspace root.
    """

    def __init__(
        self,
        agent: Optional[BaseAIProvider],
        projects: ProjectService,
        publisher: Optional[StagingPublisher] = None,
        deployment_url: Optional[str] = None,
        max_iterations: int = MAX_ITERATIONS,
        max_read_chars: int = MAX_READ_CHARS,
    ):
        self.agent = agent
        self.projects = projects
        self.publisher = publisher or StagingPublisher(git=projects.git)
        self.deployment_url = deployment_url
        self.max_iterations = max_iterations
        self.max_read_chars = max_read_chars

    @classmethod
    def from_config(cls, config: Dict[str, Any], agent: Optional[BaseAIProvider], projects: ProjectService) -> "CodingSession":
        loop_cfg = config.get("loop") or {}
        return cls(
            agent=agent,
            projects=projects,
            deployment_url=config.get("deployment_url"),
            max_iterations=loop_cfg.get("max_iterations", MAX_ITERATIONS),
            max_read_chars=loop_cfg.get("max_read_chars", MAX_READ_CHARS),
        )

    async def run(
        self,
        request: str,
        project: Optional[str] = None,
        skip_publish: bool = False,
        force_publish: bool = False,
    ) -> SessionResult:
        """
        Apply a change request to a project and publish it.

        Raises:
            ValueError: If the request text is empty
            ProviderNotConfiguredError: If no agent provider is configured
            ProjectNotFoundError: If the named project does not exist
        """
        if not request or not request.strip():
            raise ValueError("Prompt is required")
        if self.agent is None:
            raise ProviderNotConfiguredError("No AI provider configured")

        workspace = self.projects.resolve(project)
        logger.info(f"Received prompt: {request}")
        logger.info(f"Working directory: {workspace}")
        logger.info(f"Skip publish: {skip_publish}, force: {force_publish}")

        tree = RepositorySnapshot(workspace).render()
        loop = ActionLoop(
            agent=self.agent,
            files=FileService(workspace),
            publisher=self.publisher,
            max_iterations=self.max_iterations,
            max_read_chars=self.max_read_chars,
        )
        result = await loop.run(
            request,
            tree,
            skip_publish=skip_publish,
            force_publish=force_publish,
        )

        if result.publish is not None and result.publish.success:
            result.deployment_url = self.deployment_url
        return result

    def push_staging(self, message: str = MANUAL_PUSH_MESSAGE, project: Optional[str] = None) -> PublishResult:
        """Commit and push whatever is in the working tree, without the agent."""
        workspace = self.projects.resolve(project)
        return self.publisher.publish(workspace, message or MANUAL_PUSH_MESSAGE)

    def retry_force_push(self, project: Optional[str] = None) -> PublishResult:
        """Force-push the local staging branch after a rejected publish."""
        workspace: Path = self.projects.resolve(project)
        return self.publisher.retry_force_push(workspace)
