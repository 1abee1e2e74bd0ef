"""
Result types shared by the action loop, the publish pipeline and callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from stagecoder.core.conversation import Conversation


class LoopState(Enum):
    ITERATING = "iterating"
    AWAITING_PARSE = "awaiting_parse"
    EXECUTING = "executing"
    COMPLETED = "completed"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass(frozen=True)
class ChangeRecord:
    path: str
    operation: str = "modified"

    def to_dict(self) -> Dict[str, str]:
        return {"file": self.path, "action": self.operation}


@dataclass
class PublishResult:
    """Outcome of a commit-and-push to the staging branch."""
    success: bool
    message: str
    branch: Optional[str] = None
    commit_message: Optional[str] = None
    force_push: bool = False
    error: Optional[str] = None
    can_force_push: bool = False
    changes: List[ChangeRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "success": self.success,
            "message": self.message,
        }
        if self.branch is not None:
            result["branch"] = self.branch
        if self.commit_message is not None:
            result["commit_message"] = self.commit_message
        if self.success:
            result["force_push"] = self.force_push
        if self.error is not None:
            result["error"] = self.error
            result["can_force_push"] = self.can_force_push
        if self.changes:
            result["changes"] = [c.to_dict() for c in self.changes]
        return result


@dataclass
class SessionResult:
    """
    What a finished session reports back.

    EXHAUSTED is still a success; callers look at `changes` to tell whether
    anything happened.
    """
    success: bool
    state: LoopState
    iterations: int
    summary: Optional[str] = None
    message: Optional[str] = None
    changes: List[ChangeRecord] = field(default_factory=list)
    publish: Optional[PublishResult] = None
    deployment_url: Optional[str] = None
    error: Optional[str] = None
    conversation: Conversation = field(default_factory=Conversation, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "success": self.success,
            "state": self.state.value,
            "iterations": self.iterations,
            "changes": [c.to_dict() for c in self.changes],
            "git": self.publish.to_dict() if self.publish else None,
            "deployment_url": self.deployment_url,
        }
        if self.summary is not None:
            result["summary"] = self.summary
        if self.message is not None:
            result["message"] = self.message
        if self.error is not None:
            result["error"] = self.error
        return result
