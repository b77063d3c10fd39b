from datetime import datetime

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from haven.db import init_db
from haven.models import DraftRow, DraftState, JournalEntry, JournalEntryRow, Message
from haven.store import DraftStore, JournalStore, MessageLog


def entry(entry_id, day, summary="summary", **responses):
    return JournalEntry(id=entry_id, date=day, timestamp=f"{day}T20:00:00+00:00", mood="Calm",
                        responses=responses or {"dayReflection": "fine"}, summary=summary)


class TestMessageLog:
    def test_append_assigns_increasing_timestamps(self, message_log):
        ids = [message_log.append("user", f"hi {i}").id for i in range(5)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 5
        assert all(datetime.fromisoformat(i) for i in ids)

    def test_list_returns_arrival_order(self, message_log):
        message_log.append("user", "first", mood="neutral", session_id="s1")
        message_log.append("assistant", "second", session_id="s1")
        rows = message_log.list()
        assert [r.text for r in rows] == ["first", "second"]
        assert rows[0].to_record()["sessionId"] == "s1"
        assert rows[0].to_record()["timestamp"] == rows[0].id

    def test_new_log_continues_after_existing_rows(self, engine, message_log):
        last = message_log.append("user", "before restart")
        again = MessageLog(engine).append("user", "after restart")
        assert again.id > last.id

    def test_corrupt_log_resets_to_empty(self, engine, message_log):
        message_log.append("user", "ok")
        with Session(engine) as s:
            s.add(Message(id="not-a-timestamp", role="user", text="bad"))
            s.commit()
        assert message_log.list() == []
        assert message_log.list() == []

    def test_clear(self, message_log):
        message_log.append("user", "x")
        message_log.clear()
        assert message_log.list() == []


class TestJournalStore:
    def test_list_sorted_by_date_descending(self, journal_store):
        journal_store.upsert(entry("a", "2024-03-01"))
        journal_store.upsert(entry("b", "2024-03-05"))
        journal_store.upsert(entry("c", "2024-03-03"))
        assert [e.id for e in journal_store.list()] == ["b", "c", "a"]

    def test_upsert_replaces_by_id(self, journal_store):
        journal_store.upsert(entry("a", "2024-03-01", summary="old"))
        journal_store.upsert(entry("a", "2024-03-01", summary="new"))
        entries = journal_store.list()
        assert len(entries) == 1
        assert entries[0].summary == "new"

    def test_pending_entries_are_hidden_until_restored(self, journal_store):
        original = entry("a", "2024-03-01", dayReflection="It was hard", selfCare=["Took breaks"])
        journal_store.upsert(original)
        assert journal_store.mark_pending("a") == original
        assert journal_store.list() == []
        assert journal_store.get("a") is None
        assert journal_store.mark_pending("a") is None
        assert journal_store.restore("a") is True
        assert journal_store.list() == [original]

    def test_purge_only_removes_pending(self, journal_store):
        journal_store.upsert(entry("a", "2024-03-01"))
        journal_store.purge("a")
        assert journal_store.get("a") is not None
        journal_store.mark_pending("a")
        journal_store.purge("a")
        assert journal_store.restore("a") is False

    def test_purge_pending_on_startup(self, journal_store):
        journal_store.upsert(entry("a", "2024-03-01"))
        journal_store.upsert(entry("b", "2024-03-02"))
        journal_store.mark_pending("b")
        assert journal_store.purge_pending() == 1
        assert [e.id for e in journal_store.list()] == ["a"]

    def test_corrupt_responses_reset_collection(self, engine, journal_store):
        journal_store.upsert(entry("a", "2024-03-01"))
        with Session(engine) as s:
            s.add(JournalEntryRow(id="bad", date="2024-03-02", timestamp="t", responses="{not json"))
            s.commit()
        assert journal_store.list() == []
        assert journal_store.get("a") is None


class TestDraftStore:
    def test_single_slot_round_trip(self, draft_store):
        assert draft_store.load() is None
        draft_store.save(DraftState(responses={"dayReflection": "a"}, selected_mood="Sad", current_step=2))
        draft_store.save(DraftState(responses={"dayReflection": "b"}, selected_mood="Calm", current_step=3))
        loaded = draft_store.load()
        assert loaded.responses == {"dayReflection": "b"}
        assert loaded.selected_mood == "Calm"
        assert loaded.current_step == 3

    def test_payload_uses_camel_case(self, engine, draft_store):
        draft_store.save(DraftState(selected_mood="Sad", current_step=1))
        with Session(engine) as s:
            payload = s.get(DraftRow, 1).payload
        assert '"selectedMood":"Sad"' in payload
        assert '"currentStep":1' in payload

    def test_corrupt_draft_is_discarded(self, engine, draft_store):
        with Session(engine) as s:
            s.add(DraftRow(slot=1, payload="{]"))
            s.commit()
        assert draft_store.load() is None
        with Session(engine) as s:
            assert s.get(DraftRow, 1) is None

    def test_clear(self, draft_store):
        draft_store.save(DraftState())
        draft_store.clear()
        assert draft_store.load() is None


def test_init_db_adds_missing_columns():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    with eng.begin() as conn:
        conn.exec_driver_sql("CREATE TABLE message (id VARCHAR PRIMARY KEY, role VARCHAR, text VARCHAR)")
        conn.exec_driver_sql("INSERT INTO message VALUES ('2024-01-01T00:00:00+00:00', 'user', 'legacy')")
    init_db(eng)
    rows = MessageLog(eng).list()
    assert rows[0].text == "legacy"
    assert rows[0].is_crisis is False
    assert rows[0].session_id is None


def test_backfill_fills_user_moods_only(engine):
    from scripts.backfill_mood import backfill

    with Session(engine) as s:
        s.add(Message(id="2024-01-01T00:00:00+00:00", role="user", text="I am so worried"))
        s.add(Message(id="2024-01-01T00:00:01+00:00", role="assistant", text="I hear you"))
        s.add(Message(id="2024-01-01T00:00:02+00:00", role="user", text="no reason to live", mood="neutral"))
        s.commit()
    assert backfill(engine) == 1
    rows = MessageLog(engine).list()
    assert rows[0].mood == "anxious"
    assert rows[1].mood is None
    assert rows[2].is_crisis is False
