"""Conversation turns supplied by the caller on every request.

There is no server-side memory. The frontend sends the whole call so far
with each message and the resolver only reads it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping


class Speaker(str, Enum):
    CALLER = "caller"
    AGENT = "agent"


@dataclass(frozen=True)
class Turn:
    speaker: Speaker
    text: str


_COMPLETION_ROLES: Dict[Speaker, str] = {
    Speaker.CALLER: "user",
    Speaker.AGENT: "assistant",
}


def turn_from_wire(item: Mapping[str, str]) -> Turn:
    """Build a Turn from a ``{"role": ..., "content": ...}`` item.

    Only ``user`` turns come from the caller; any other role is the agent.
    """
    role = (item.get("role") or "").lower()
    speaker = Speaker.CALLER if role == "user" else Speaker.AGENT
    return Turn(speaker=speaker, text=item.get("content") or "")


def to_completion_messages(history: Iterable[Turn]) -> List[Dict[str, str]]:
    return [
        {"role": _COMPLETION_ROLES[turn.speaker], "content": turn.text}
        for turn in history
    ]
