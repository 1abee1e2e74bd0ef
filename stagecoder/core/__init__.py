# Core modules
from .action_parser import (
    Complete,
    ParseError,
    ReadFile,
    Unrecognized,
    WriteFile,
    parse_action,
)
from .action_loop import ActionLoop
from .conversation import Conversation, Role, Turn
from .models import ChangeRecord, LoopState, PublishResult, SessionResult
from .publisher import StagingPublisher
from .session import CodingSession

__all__ = [
    "Complete",
    "ParseError",
    "ReadFile",
    "Unrecognized",
    "WriteFile",
    "parse_action",
    "ActionLoop",
    "Conversation",
    "Role",
    "Turn",
    "ChangeRecord",
    "LoopState",
    "PublishResult",
    "SessionResult",
    "StagingPublisher",
    "CodingSession",
]
