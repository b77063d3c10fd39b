# haven/chat.py
from __future__ import annotations
import logging
from datetime import timedelta
from typing import List, Optional

from haven.errors import InvalidRequest, SubmissionPending
from haven.gateway import ResponseGateway
from haven.models import Conversation, Message, Turn
from haven.signals import classify
from haven.state import Observable
from haven.store import MessageLog
from haven.threader import group_into_sessions, new_session_id

logger = logging.getLogger(__name__)


class ChatController(Observable):
    """Runs one conversation turn: classify, persist, ask the gateway, persist the reply."""

    def __init__(self, log: MessageLog, gateway: ResponseGateway, session_id: Optional[str] = None):
        super().__init__()
        self.log = log
        self.gateway = gateway
        self.awaiting = False
        if session_id is None:
            history = self.log.list()
            # Resume the most recent thread if the log already has one.
            session_id = history[-1].session_id if history and history[-1].session_id else new_session_id()
        self.session_id = session_id

    def history(self) -> List[Message]:
        return self.log.list()

    def _turns(self, messages: List[Message]) -> List[Turn]:
        # Fallback apologies are not part of what the model should see.
        return [Turn(role=m.role, content=m.text) for m in messages if not m.is_error]

    async def submit(self, text: str) -> Message:
        text = (text or "").strip()
        if not text:
            raise InvalidRequest("Message text is empty")
        if self.awaiting:
            raise SubmissionPending("A reply is still on its way")

        signal = classify(text)
        self.awaiting = True
        self.notify()
        try:
            self.log.append("user", text, mood=signal.mood, is_crisis=signal.is_crisis,
                            session_id=self.session_id)
            reply = await self.gateway.reply(self._turns(self.log.list()), signal)
            assistant = self.log.append("assistant", reply.text, mood=signal.mood,
                                        is_crisis=reply.is_crisis, is_error=reply.is_error,
                                        session_id=self.session_id)
        finally:
            self.awaiting = False
            self.notify()
        if reply.is_error:
            logger.warning("Stored fallback reply for session=%s", self.session_id)
        return assistant

    def new_session(self) -> str:
        self.session_id = new_session_id()
        self.notify()
        return self.session_id

    def conversations(self, gap: timedelta | None = None) -> List[Conversation]:
        return group_into_sessions(self.history(), gap)

    def conversation_for(self, message_id: str) -> Optional[Conversation]:
        for convo in self.conversations():
            if any(m.id == message_id for m in convo.messages):
                return convo
        return None

    def clear_history(self) -> None:
        self.log.clear()
        self.session_id = new_session_id()
        self.notify()
