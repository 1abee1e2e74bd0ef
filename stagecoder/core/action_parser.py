"""
Action parser for agent replies.

Turns free-form assistant text into exactly one typed action. The agent is
asked to answer with a single JSON object such as

    {"action": "read_file", "file": "src/app.js", "reason": "..."}
    {"action": "write_file", "file": "src/app.js", "content": "..."}
    {"action": "complete", "summary": "..."}

but in practice wraps it in prose, fences it, or emits several candidates.
parse_action() never raises: anything it cannot use comes back as a
ParseError, and a well-formed object with an unknown or incomplete action
comes back as Unrecognized.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

READ_FILE = "read_file"
WRITE_FILE = "write_file"
COMPLETE = "complete"
ACTION_NAMES = (READ_FILE, WRITE_FILE, COMPLETE)

DISCRIMINATOR = "action"

_FENCE_RE = re.compile(r"```jsonc?[ \t]*\r?\n(.*?)```", re.DOTALL | re.IGNORECASE)
_DISCRIMINATOR_TOKEN = f'"{DISCRIMINATOR}"'

# Upper bound on brace positions examined; keeps pathological replies linear-ish.
MAX_BRACE_CANDIDATES = 256


@dataclass(frozen=True)
class ReadFile:
    path: str
    reason: str = ""


@dataclass(frozen=True)
class WriteFile:
    path: str
    content: str


@dataclass(frozen=True)
class Complete:
    summary: str = ""


@dataclass(frozen=True)
class Unrecognized:
    name: str
    payload: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ParseError:
    reason: str


Action = Union[ReadFile, WriteFile, Complete, Unrecognized]
ParseResult = Union[ReadFile, WriteFile, Complete, Unrecognized, ParseError]


# ----------------------------------------------------------------------
# Extraction strategies
# ----------------------------------------------------------------------
def fenced_candidates(text: str) -> Iterator[str]:
    """Bodies of ```json fenced blocks, in order of appearance."""
    for m in _FENCE_RE.finditer(text):
        body = m.group(1).strip()
        if body:
            yield body


def _matching_brace(text: str, start: int) -> Optional[int]:
    """
    Index of the '}' closing the '{' at start, or None if unbalanced.

    Braces inside JSON string literals are skipped.
    """
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def _brace_spans(text: str) -> List[Tuple[int, int]]:
    """(start, end) of balanced {...} spans that mention the discriminator."""
    spans = []
    starts = [i for i, ch in enumerate(text) if ch == "{"][:MAX_BRACE_CANDIDATES]
    for start in starts:
        end = _matching_brace(text, start)
        if end is None:
            continue
        if _DISCRIMINATOR_TOKEN in text[start:end + 1]:
            spans.append((start, end))
    return spans


def _is_known_action(raw: str) -> bool:
    obj = _decode_object(raw)
    if obj is None:
        return False
    action = action_from_object(obj)
    return action is not None and not isinstance(action, Unrecognized)


def brace_candidates(text: str) -> List[str]:
    """
    Balanced {...} substrings that mention the discriminator, smallest first.

    Ties keep their left-to-right order. A span nested inside a larger span
    that is itself a complete known action is dropped: it is that action's
    payload (e.g. object-valued write_file content), not a separate reply.
    """
    spans = _brace_spans(text)
    known = [(s, e) for s, e in spans if _is_known_action(text[s:e + 1])]
    kept = [
        (s, e) for s, e in spans
        if not any(outer_s < s and e < outer_e for outer_s, outer_e in known)
    ]
    kept.sort(key=lambda span: (span[1] - span[0], span[0]))
    return [text[s:e + 1] for s, e in kept]


def _decode_object(raw: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, RecursionError):
        return None
    return data if isinstance(data, dict) else None


# ----------------------------------------------------------------------
# Object -> Action
# ----------------------------------------------------------------------
def _text_field(obj: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = obj.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def action_from_object(obj: Dict[str, Any]) -> Optional[Action]:
    """
    Build an Action from a decoded object.

    Returns None when the object has no string discriminator at all.
    """
    raw_name = obj.get(DISCRIMINATOR)
    if not isinstance(raw_name, str):
        return None
    name = raw_name.strip().lower()

    if name == READ_FILE:
        path = _text_field(obj, "file", "path")
        if path:
            return ReadFile(path=path, reason=str(obj.get("reason") or ""))

    elif name == WRITE_FILE:
        path = _text_field(obj, "file", "path")
        content = obj.get("content")
        if isinstance(content, (dict, list)):
            content = json.dumps(content, indent=2) + "\n"
        if path and isinstance(content, str):
            return WriteFile(path=path, content=content)

    elif name == COMPLETE:
        summary = obj.get("summary")
        return Complete(summary=summary if isinstance(summary, str) else "")

    return Unrecognized(name=raw_name, payload=obj)


def _candidates(text: str) -> Iterator[str]:
    yield from fenced_candidates(text)
    yield from brace_candidates(text)


def parse_action(text: Optional[str]) -> ParseResult:
    """
    Extract one action from an agent reply.

    Fenced ```json blocks are tried before bare objects. The first candidate
    that yields a complete, known action wins; failing that, the first
    object carrying any discriminator is returned as Unrecognized.
    """
    if not text or not text.strip():
        return ParseError("Empty response")

    fallback: Optional[Unrecognized] = None
    saw_json = False
    for raw in _candidates(text):
        obj = _decode_object(raw)
        if obj is None:
            continue
        saw_json = True
        action = action_from_object(obj)
        if action is None:
            continue
        if not isinstance(action, Unrecognized):
            return action
        if fallback is None:
            fallback = action

    if fallback is not None:
        return fallback
    if saw_json:
        return ParseError(f"JSON found but no '{DISCRIMINATOR}' field")
    return ParseError("No JSON found")
