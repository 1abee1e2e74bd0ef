"""
Action loop.

Drives one coding session: the agent is shown the repository tree and the
request, answers with one JSON action per turn, and sees the outcome of each
action as the next observation. The loop stops when the agent completes,
when the iteration budget runs out, or on a fatal error.

Malformed replies and unknown actions are answered inline with a corrective
observation; they cost the iteration they arrived in and nothing more.
Nothing raised by the agent, the workspace or git escapes run(): every
failure ends up in the returned SessionResult.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from stagecoder.core.action_parser import (
    ACTION_NAMES,
    Action,
    Complete,
    ParseError,
    ReadFile,
    Unrecognized,
    WriteFile,
    parse_action,
)
from stagecoder.core.ai.base import BaseAIProvider
from stagecoder.core.conversation import Conversation, Turn
from stagecoder.core.models import ChangeRecord, LoopState, SessionResult
from stagecoder.core.publisher import StagingPublisher
from stagecoder.services.file_service import FileService

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 15
MAX_READ_CHARS = 100_000

INVALID_RESPONSE_PROMPT = "Please provide a valid JSON response with an action."
UNKNOWN_ACTION_PROMPT = f"Unknown action. Use: {', '.join(ACTION_NAMES[:-1])}, or {ACTION_NAMES[-1]}."
EXHAUSTED_MESSAGE = "Max iterations reached"

FRAMING_TEMPLATE = """You are an expert software engineer with access to a codebase. You can read and modify files.

CURRENT REPOSITORY STRUCTURE:
{tree}

INSTRUCTIONS:
1. Analyze the user's request
2. Determine which files need to be read or modified
3. Respond with JSON actions in this format:

For reading a file:
{{
  "action": "read_file",
  "file": "path/to/file.js",
  "reason": "why you need to read it"
}}

For modifying a file:
{{
  "action": "write_file",
  "file": "path/to/file.js",
  "content": "FULL NEW FILE CONTENT HERE"
}}

For completion:
{{
  "action": "complete",
  "summary": "Brief summary of changes made"
}}

RESPOND WITH ONE JSON OBJECT PER MESSAGE. Start by reading any files you need, then make modifications."""


def build_framing_prompt(tree: str, request: str) -> str:
    """First observation of every session: tree, instructions, request."""
    framing = FRAMING_TEMPLATE.format(tree=tree.rstrip() or "(empty)")
    return f"{framing}\n\nUSER REQUEST: {request}"


@dataclass
class SessionState:
    request: str
    workspace: Path
    conversation: Conversation
    force_publish: bool = False
    skip_publish: bool = False
    changes: List[ChangeRecord] = field(default_factory=list)
    iterations: int = 0
    state: LoopState = LoopState.ITERATING

    def record(self, reply: str, observation: str) -> None:
        self.conversation = self.conversation.append(
            Turn.agent(reply),
            Turn.observation(observation),
        )


class ActionLoop:
    """Bounded agent <-> workspace conversation for a single request."""

    def __init__(
        self,
        agent: BaseAIProvider,
        files: FileService,
        publisher: StagingPublisher,
        max_iterations: int = MAX_ITERATIONS,
        max_read_chars: int = MAX_READ_CHARS,
    ):
        self.agent = agent
        self.files = files
        self.publisher = publisher
        self.max_iterations = max_iterations
        self.max_read_chars = max_read_chars

    async def run(
        self,
        request: str,
        tree: str,
        skip_publish: bool = False,
        force_publish: bool = False,
    ) -> SessionResult:
        session = SessionState(
            request=request,
            workspace=self.files.base_dir,
            conversation=Conversation().append(
                Turn.observation(build_framing_prompt(tree, request))
            ),
            force_publish=force_publish,
            skip_publish=skip_publish,
        )

        while True:
            session.iterations += 1
            if session.iterations > self.max_iterations:
                session.iterations = self.max_iterations
                session.state = LoopState.EXHAUSTED
                logger.warning(f"Max iterations reached ({self.max_iterations})")
                return self._result(session, success=True, message=EXHAUSTED_MESSAGE)

            logger.info(f"Iteration {session.iterations}...")
            session.state = LoopState.ITERATING
            try:
                reply = await self.agent.converse(session.conversation.turns)
            except Exception as e:
                logger.error(f"Agent call failed: {e}", exc_info=True)
                return self._fail(session, e)
            reply = reply or ""
            logger.debug(f"Agent response: {reply[:200]}")

            session.state = LoopState.AWAITING_PARSE
            action = parse_action(reply)
            if isinstance(action, ParseError):
                logger.warning(f"Could not parse action: {action.reason}")
                session.record(reply, INVALID_RESPONSE_PROMPT)
                continue

            session.state = LoopState.EXECUTING
            logger.info(f"Parsed action: {action}")
            try:
                result = await self._execute(session, reply, action)
            except Exception as e:
                logger.error(f"Action failed: {e}", exc_info=True)
                return self._fail(session, e)
            if result is not None:
                return result

    async def _execute(self, session: SessionState, reply: str, action: Action) -> Optional[SessionResult]:
        """Run one action; a returned result ends the session."""
        if isinstance(action, ReadFile):
            session.record(reply, self._read_observation(action.path))
            return None

        if isinstance(action, WriteFile):
            self.files.write(action.path, action.content)
            session.changes.append(ChangeRecord(path=action.path))
            logger.info(f"Wrote file: {action.path}")
            session.record(
                reply,
                f"✓ File {action.path} has been written successfully. "
                "Continue with next action or complete.",
            )
            return None

        if isinstance(action, Complete):
            session.conversation = session.conversation.append(Turn.agent(reply))
            session.state = LoopState.COMPLETED
            logger.info("Complete!")
            publish = None
            if session.changes and not session.skip_publish:
                logger.info("Publishing to staging...")
                publish = await asyncio.to_thread(
                    self.publisher.publish,
                    session.workspace,
                    session.request,
                    list(session.changes),
                    session.force_publish,
                )
            return self._result(session, success=True, summary=action.summary, publish=publish)

        if isinstance(action, Unrecognized):
            logger.warning(f"Unrecognized action: {action.name!r}")
            session.record(reply, self._unrecognized_observation(action))
            return None

        raise TypeError(f"Unsupported action type: {type(action).__name__}")

    def _read_observation(self, path: str) -> str:
        content = self.files.read(path)
        if content is None:
            return f"Error: File {path} not found. Try another approach."

        size = len(content)
        if size > self.max_read_chars:
            content = (
                content[:self.max_read_chars]
                + f"\n... [truncated: showing first {self.max_read_chars} of {size} characters]"
            )
        return f"File {path} content:\n\n```\n{content}\n```"

    @staticmethod
    def _unrecognized_observation(action: Unrecognized) -> str:
        if action.name.strip().lower() in ACTION_NAMES:
            required = "file and content" if action.name.strip().lower() == "write_file" else "file"
            return f"Action {action.name} is missing required fields ({required}). {UNKNOWN_ACTION_PROMPT}"
        return UNKNOWN_ACTION_PROMPT

    def _fail(self, session: SessionState, error: Exception) -> SessionResult:
        session.state = LoopState.FAILED
        return self._result(session, success=False, error=str(error) or type(error).__name__)

    @staticmethod
    def _result(session: SessionState, success: bool, **kwargs) -> SessionResult:
        return SessionResult(
            success=success,
            state=session.state,
            iterations=session.iterations,
            changes=list(session.changes),
            conversation=session.conversation,
            **kwargs,
        )
