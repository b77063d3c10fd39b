from __future__ import annotations
from typing import Optional

from sqlalchemy.engine import Engine

from haven.chat import ChatController
from haven.db import engine as default_engine, init_db
from haven.gateway import CompletionProvider, RelayProvider, ResponseGateway
from haven.journal import JournalManager
from haven.store import DraftStore, JournalStore, MessageLog


class Companion:
    """Application state owned by one device: chat log, journal and draft, wired to one gateway.

    Build it once on load with `Companion.load()` and pass it to whatever needs it.
    """

    def __init__(self, chat: ChatController, journal: JournalManager, gateway: ResponseGateway):
        self.chat = chat
        self.journal = journal
        self.gateway = gateway

    @classmethod
    def load(cls, bind: Optional[Engine] = None, provider: Optional[CompletionProvider] = None,
             undo_window: float | None = None) -> "Companion":
        bind = bind or default_engine
        init_db(bind)
        gateway = ResponseGateway(provider or RelayProvider())
        chat = ChatController(MessageLog(bind), gateway)
        journal = JournalManager(JournalStore(bind), DraftStore(bind), gateway, undo_window=undo_window)
        return cls(chat, journal, gateway)

    def reset(self) -> None:
        """Forget everything stored on this device."""
        self.chat.clear_history()
        self.journal.reset()
