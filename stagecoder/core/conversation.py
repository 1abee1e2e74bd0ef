"""
Conversation history for one coding session.

A Conversation is an immutable, append-only tuple of Turns. Appending
returns a new Conversation, so a history handed to the agent can never be
reordered or edited behind the loop's back.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Tuple


class Role(Enum):
    AGENT = "agent"
    OBSERVATION = "observation"


# chat-completion role names understood by every provider
_MESSAGE_ROLES = {
    Role.AGENT: "assistant",
    Role.OBSERVATION: "user",
}


@dataclass(frozen=True)
class Turn:
    role: Role
    text: str

    @classmethod
    def agent(cls, text: str) -> "Turn":
        return cls(Role.AGENT, text)

    @classmethod
    def observation(cls, text: str) -> "Turn":
        return cls(Role.OBSERVATION, text)

    def to_message(self) -> Dict[str, str]:
        return {"role": _MESSAGE_ROLES[self.role], "content": self.text}


@dataclass(frozen=True)
class Conversation:
    turns: Tuple[Turn, ...] = ()

    def append(self, *turns: Turn) -> Conversation:
        return Conversation(self.turns + tuple(turns))

    def to_messages(self) -> List[Dict[str, str]]:
        return [turn.to_message() for turn in self.turns]

    @property
    def last(self) -> Turn:
        return self.turns[-1]

    def __len__(self) -> int:
        return len(self.turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self.turns)
