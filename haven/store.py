# haven/store.py
"""Local per-device persistence for the message log, journal entries and the draft slot.

Every loader treats unreadable rows the same way: log, reset that one
collection to empty, and carry on, so a damaged file never blocks startup.
"""
from __future__ import annotations
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from haven.errors import StorageError
from haven.models import DraftRow, DraftState, JournalEntry, JournalEntryRow, Message

logger = logging.getLogger(__name__)

ROLES = ("user", "assistant")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MessageLog:
    """Append-only, time-ordered message log."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._last: Optional[datetime] = None

    def _next_id(self, session: Session) -> str:
        if self._last is None:
            newest = session.exec(select(Message).order_by(Message.id.desc())).first()
            if newest is not None:
                self._last = datetime.fromisoformat(newest.id)
        now = utc_now()
        if self._last is not None and now <= self._last:
            now = self._last + timedelta(microseconds=1)
        self._last = now
        return now.isoformat()

    def append(self, role: str, text: str, mood: Optional[str] = None, is_crisis: bool = False,
               is_error: bool = False, session_id: Optional[str] = None) -> Message:
        with Session(self.engine) as session:
            row = Message(id=self._next_id(session), role=role, text=text, mood=mood,
                          is_crisis=is_crisis, is_error=is_error, session_id=session_id)
            session.add(row)
            session.commit()
            session.refresh(row)
            return row

    def _load(self) -> List[Message]:
        with Session(self.engine) as session:
            rows = session.exec(select(Message).order_by(Message.id)).all()
        for r in rows:
            try:
                datetime.fromisoformat(r.id)
            except (TypeError, ValueError) as e:
                raise StorageError("messages", f"bad timestamp {r.id!r}") from e
            if r.role not in ROLES:
                raise StorageError("messages", f"bad role {r.role!r}")
        return list(rows)

    def list(self) -> List[Message]:
        try:
            return self._load()
        except StorageError as e:
            logger.warning("Message log unreadable (%s); resetting to empty", e.reason)
            self.clear()
            return []

    def clear(self) -> None:
        with Session(self.engine) as session:
            for row in session.exec(select(Message)).all():
                session.delete(row)
            session.commit()
        self._last = None


def _entry_from_row(row: JournalEntryRow) -> JournalEntry:
    try:
        responses = json.loads(row.responses or "{}")
        if not isinstance(responses, dict):
            raise ValueError("responses is not an object")
        return JournalEntry(id=row.id, date=row.date, timestamp=row.timestamp, mood=row.mood or "Unknown",
                            responses=responses, summary=row.summary or "")
    except ValueError as e:
        raise StorageError("journal entries", f"entry {row.id}: {e}") from e


def _sort_key(entry: JournalEntry):
    return (entry.date, entry.timestamp)


class JournalStore:
    """Journal entries, kept in descending date order.

    A soft-deleted entry stays on disk flagged `pending_delete` until it is
    either restored or purged.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def _rows(self, session: Session, pending: bool = False) -> List[JournalEntryRow]:
        return list(session.exec(select(JournalEntryRow).where(JournalEntryRow.pending_delete == pending)).all())

    def list(self) -> List[JournalEntry]:
        try:
            with Session(self.engine) as session:
                entries = [_entry_from_row(r) for r in self._rows(session)]
        except StorageError as e:
            logger.warning("Journal entries unreadable (%s); resetting to empty", e.reason)
            self.clear()
            return []
        return sorted(entries, key=_sort_key, reverse=True)

    def get(self, entry_id: str) -> Optional[JournalEntry]:
        with Session(self.engine) as session:
            row = session.get(JournalEntryRow, entry_id)
            if row is None or row.pending_delete:
                return None
            return _entry_from_row(row)

    def upsert(self, entry: JournalEntry) -> None:
        with Session(self.engine) as session:
            row = session.get(JournalEntryRow, entry.id) or JournalEntryRow(id=entry.id, date=entry.date,
                                                                           timestamp=entry.timestamp)
            row.date = entry.date
            row.timestamp = entry.timestamp
            row.mood = entry.mood
            row.responses = json.dumps(entry.responses)
            row.summary = entry.summary
            row.pending_delete = False
            session.add(row)
            session.commit()

    def mark_pending(self, entry_id: str) -> Optional[JournalEntry]:
        with Session(self.engine) as session:
            row = session.get(JournalEntryRow, entry_id)
            if row is None or row.pending_delete:
                return None
            entry = _entry_from_row(row)
            row.pending_delete = True
            session.add(row)
            session.commit()
            return entry

    def restore(self, entry_id: str) -> bool:
        with Session(self.engine) as session:
            row = session.get(JournalEntryRow, entry_id)
            if row is None or not row.pending_delete:
                return False
            row.pending_delete = False
            session.add(row)
            session.commit()
            return True

    def purge(self, entry_id: str) -> None:
        with Session(self.engine) as session:
            row = session.get(JournalEntryRow, entry_id)
            if row is not None and row.pending_delete:
                session.delete(row)
                session.commit()

    def purge_pending(self) -> int:
        with Session(self.engine) as session:
            rows = self._rows(session, pending=True)
            for r in rows:
                session.delete(r)
            session.commit()
        if rows:
            logger.info("Purged %d journal entries left pending deletion", len(rows))
        return len(rows)

    def clear(self) -> None:
        with Session(self.engine) as session:
            for row in session.exec(select(JournalEntryRow)).all():
                session.delete(row)
            session.commit()


class DraftStore:
    """The single draft slot."""

    SLOT = 1

    def __init__(self, engine: Engine):
        self.engine = engine

    def load(self) -> Optional[DraftState]:
        with Session(self.engine) as session:
            row = session.get(DraftRow, self.SLOT)
            payload = row.payload if row else None
        if payload is None:
            return None
        try:
            return DraftState.model_validate_json(payload)
        except ValueError:
            logger.warning("Draft slot unreadable; discarding it")
            self.clear()
            return None

    def save(self, draft: DraftState) -> None:
        payload = draft.model_dump_json(by_alias=True)
        with Session(self.engine) as session:
            row = session.get(DraftRow, self.SLOT) or DraftRow(slot=self.SLOT, payload=payload)
            row.payload = payload
            session.add(row)
            session.commit()

    def clear(self) -> None:
        with Session(self.engine) as session:
            row = session.get(DraftRow, self.SLOT)
            if row is not None:
                session.delete(row)
                session.commit()
