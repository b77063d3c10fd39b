# haven/threader.py
from __future__ import annotations
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from haven import config
from haven.models import Conversation, Message

SESSION_GAP = timedelta(minutes=config.SESSION_GAP_MINUTES)


def new_session_id() -> str:
    return str(uuid.uuid4())


def make_title(text: str, limit: int | None = None) -> str:
    limit = limit or config.TITLE_MAX_CHARS
    return (text or "")[:limit] + "..."


def _conversation(messages: List[Message], session_id: Optional[str] = None) -> Conversation:
    first = messages[0]
    return Conversation(
        session_id=session_id,
        title=make_title(first.text),
        start_timestamp=first.timestamp,
        dominant_mood=first.mood,
        messages=list(messages),
    )


def _by_session_id(messages: Sequence[Message]) -> List[Conversation]:
    groups: Dict[str, List[Message]] = {}
    for m in messages:
        groups.setdefault(m.session_id, []).append(m)
    return [_conversation(msgs, sid) for sid, msgs in groups.items()]


def _by_inactivity(messages: Sequence[Message], gap: timedelta) -> List[Conversation]:
    conversations: List[Conversation] = []
    current: List[Message] = []
    last: Optional[datetime] = None
    for m in messages:
        ts = m.created_at
        # abs(): a log re-concatenated newest-session-first must split the same way
        if last is not None and abs(ts - last) > gap:
            conversations.append(_conversation(current))
            current = []
        current.append(m)
        last = ts
    if current:
        conversations.append(_conversation(current))
    return conversations


def group_into_sessions(messages: Sequence[Message], gap: timedelta | None = None) -> List[Conversation]:
    """Partition a flat message log into conversations, most recent first.

    Messages that all carry a session id are grouped by that id. Otherwise the
    legacy rule applies: a new conversation starts whenever two consecutive
    messages are further apart than `gap` (30 minutes by default).
    """
    if not messages:
        return []
    if all(m.session_id for m in messages):
        conversations = _by_session_id(messages)
    else:
        conversations = _by_inactivity(messages, gap or SESSION_GAP)
    return sorted(conversations, key=lambda c: datetime.fromisoformat(c.start_timestamp), reverse=True)
