# haven/journal.py
from __future__ import annotations
import asyncio
import logging
import uuid
from collections import Counter
from datetime import date as Date
from enum import Enum
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from haven import config
from haven.deferred import DeferredTask
from haven.errors import StorageError, SubmissionPending, TransitionRejected
from haven.gateway import ResponseGateway
from haven.models import Answer, DraftState, JournalEntry
from haven.state import Observable
from haven.store import DraftStore, JournalStore, utc_now

logger = logging.getLogger(__name__)

MOOD_SELECTOR_ID = "emotionalState"


class JournalPrompt(BaseModel):
    id: str
    question: str
    type: str = "text"
    options: List[str] = []
    sub_question: Optional[str] = None
    follow_up: Optional[str] = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None


BASE_PROMPTS = [
    JournalPrompt(
        id=MOOD_SELECTOR_ID,
        question="How are you feeling emotionally right now?",
        type="mood-selector",
        options=["Calm", "Anxious", "Happy", "Sad", "Angry", "Overwhelmed", "Content", "Frustrated", "Hopeful"],
        sub_question="What do you think triggered these feelings?",
    ),
    JournalPrompt(
        id="dayReflection",
        question="Let's reflect on your day. What moment or situation had the strongest emotional impact on you?",
        placeholder="Describe the situation and how it made you feel...",
    ),
    JournalPrompt(
        id="copingStrategies",
        question="How did you handle difficult moments today?",
        type="multiSelect",
        options=["Talked to someone", "Took deep breaths", "Went for a walk", "Listened to music",
                 "Practiced mindfulness", "Took a break", "Journaled", "Exercise", "Other"],
        follow_up="Which strategy worked best for you?",
    ),
    JournalPrompt(
        id="thoughtPatterns",
        question="Did you notice any recurring thoughts today?",
        placeholder="What thoughts kept coming back to your mind?",
        help_text="Understanding our thought patterns helps us manage them better",
    ),
    JournalPrompt(
        id="selfCare",
        question="How did you take care of yourself today?",
        type="checklist",
        options=["Got enough sleep", "Ate regular meals", "Moved my body", "Took breaks",
                 "Connected with others", "Made time for things I enjoy", "Set boundaries"],
    ),
    JournalPrompt(
        id="support",
        question="Do you feel you have the support you need right now?",
        type="scale",
        options=["Not at all", "Somewhat", "Mostly", "Yes, definitely"],
        follow_up="What kind of support would be most helpful?",
    ),
    JournalPrompt(
        id="tomorrow",
        question="Looking ahead to tomorrow, what's one small thing you can do to support your emotional wellbeing?",
        placeholder="It could be as simple as taking a 5-minute break or sending a message to a friend",
    ),
    JournalPrompt(
        id="gratitude",
        question="Even on difficult days, can you identify something positive, no matter how small?",
        placeholder="This helps train our brain to notice positive aspects alongside challenges",
    ),
]

ANXIETY_PROMPTS = [
    JournalPrompt(
        id="anxietyTriggers",
        question="Were there specific situations that triggered anxiety today?",
        follow_up="How intense was the anxiety on a scale of 1-10?",
    ),
    JournalPrompt(
        id="bodilySensations",
        question="What physical sensations did you notice during anxious moments?",
        type="multiSelect",
        options=["Racing heart", "Tight chest", "Sweating", "Nausea", "Muscle tension", "Shallow breathing", "Other"],
    ),
]

MOOD_SUPPORT_PROMPTS = [
    JournalPrompt(
        id="energyLevels",
        question="How were your energy levels today?",
        type="scale",
        options=["Very low", "Low", "Moderate", "Good", "High"],
    ),
    JournalPrompt(
        id="activities",
        question="Were you able to engage in any activities you usually enjoy?",
        follow_up="How did these activities make you feel?",
    ),
]

# selected mood -> extra prompt block appended after the base sequence
FOLLOW_UP_BLOCKS: Dict[str, List[JournalPrompt]] = {
    "Anxious": ANXIETY_PROMPTS,
    "Sad": MOOD_SUPPORT_PROMPTS,
    "Overwhelmed": MOOD_SUPPORT_PROMPTS,
}


def prompts_for(mood: Optional[str]) -> List[JournalPrompt]:
    return [*BASE_PROMPTS, *FOLLOW_UP_BLOCKS.get(mood or "", [])]


class JournalState(str, Enum):
    IDLE = "idle"
    ANSWERING = "answering"
    SAVING = "saving"


class PendingDeletion(NamedTuple):
    entry: JournalEntry
    task: DeferredTask


class JournalManager(Observable):
    """Owns the prompted journal form, its draft slot, saved entries and soft deletion."""

    def __init__(self, entries: JournalStore, drafts: DraftStore, gateway: ResponseGateway,
                 undo_window: float | None = None, today: Callable[[], Date] = Date.today):
        super().__init__()
        self.store = entries
        self.drafts = drafts
        self.gateway = gateway
        self.undo_window = config.UNDO_WINDOW_SECONDS if undo_window is None else undo_window
        self._today = today
        self.pending: Optional[PendingDeletion] = None

        self.store.purge_pending()
        self.entries: List[JournalEntry] = self.store.list()
        self._reset_form()
        self.state = JournalState.IDLE
        draft = self.drafts.load()
        if draft is not None:
            self.responses = dict(draft.responses)
            self.selected_mood = draft.selected_mood
            self.editing_id = draft.editing_id
            self.date = draft.date or self.date
            self.current_step = min(max(draft.current_step, 0), len(self.prompts) - 1)
            self.state = JournalState.ANSWERING

    # --- form state ---
    def _reset_form(self) -> None:
        self.responses: Dict[str, Answer] = {}
        self.selected_mood: Optional[str] = None
        self.current_step = 0
        self.editing_id: Optional[str] = None
        self.date = self._today().isoformat()

    @property
    def prompts(self) -> List[JournalPrompt]:
        return prompts_for(self.selected_mood)

    @property
    def current_prompt(self) -> JournalPrompt:
        return self.prompts[self.current_step]

    @property
    def is_last_step(self) -> bool:
        return self.current_step == len(self.prompts) - 1

    def progress(self) -> Tuple[int, int]:
        return self.current_step + 1, len(self.prompts)

    def _ensure_editable(self) -> None:
        if self.state is JournalState.SAVING:
            raise SubmissionPending("The entry is being saved")
        self.state = JournalState.ANSWERING

    def _autosave(self) -> None:
        # Nothing is worth keeping until at least one answer exists.
        if self.state is not JournalState.ANSWERING or not self.responses:
            return
        self.drafts.save(DraftState(
            responses=self.responses,
            selected_mood=self.selected_mood,
            current_step=self.current_step,
            editing_id=self.editing_id,
            date=self.date,
        ))

    def _changed(self) -> None:
        self._autosave()
        self.notify()

    def set_response(self, prompt_id: str, value: Answer, kind: str = "main") -> None:
        self._ensure_editable()
        key = prompt_id if kind == "main" else f"{prompt_id}_{kind}"
        self.responses = {**self.responses, key: value}
        if prompt_id == MOOD_SELECTOR_ID and kind == "main":
            self.selected_mood = value if isinstance(value, str) and value else None
            self.current_step = min(self.current_step, len(self.prompts) - 1)
        self._changed()

    def next(self) -> None:
        self._ensure_editable()
        if self.current_step < len(self.prompts) - 1:
            self.current_step += 1
        self._changed()

    def previous(self) -> None:
        self._ensure_editable()
        if self.current_step > 0:
            self.current_step -= 1
        self._changed()

    def set_date(self, day: Date) -> None:
        self._ensure_editable()
        self.date = day.isoformat()
        self._changed()

    def start_new(self) -> None:
        """Begin a blank entry; any unsaved draft is dropped without merging."""
        if self.state is JournalState.SAVING:
            raise SubmissionPending("The entry is being saved")
        self.drafts.clear()
        self._reset_form()
        self.state = JournalState.ANSWERING
        self.notify()

    def load_for_edit(self, entry_id: str) -> JournalEntry:
        if self.state is JournalState.SAVING:
            raise SubmissionPending("The entry is being saved")
        entry = next((e for e in self.entries if e.id == entry_id), None)
        if entry is None:
            raise TransitionRejected("That journal entry no longer exists")
        self.drafts.clear()
        self._reset_form()
        self.responses = dict(entry.responses)
        self.selected_mood = entry.mood if entry.mood != "Unknown" else None
        self.editing_id = entry.id
        self.date = entry.date
        self.state = JournalState.ANSWERING
        self._changed()
        return entry

    # --- saving ---
    async def save(self) -> JournalEntry:
        if self.state is JournalState.SAVING:
            raise SubmissionPending("The entry is already being saved")
        if self.state is not JournalState.ANSWERING:
            raise TransitionRejected("There is no entry in progress to save")
        if not self.is_last_step:
            raise TransitionRejected("Please answer the remaining questions before saving")
        if not self.selected_mood:
            raise TransitionRejected("Please select your mood before saving")

        responses = dict(self.responses)
        mood = self.selected_mood
        day = self.date
        editing_id = self.editing_id
        self.state = JournalState.SAVING
        self.notify()
        try:
            summary = await self.gateway.summarize(responses, mood)
            entry = JournalEntry(
                id=editing_id or str(uuid.uuid4()),
                date=day,
                timestamp=utc_now().isoformat(),
                mood=mood,
                responses=responses,
                summary=summary,
            )
            self.store.upsert(entry)
        except SQLAlchemyError as e:
            logger.exception("Failed to persist journal entry %s", editing_id or "(new)")
            self._abort_save()
            raise StorageError("journal entries", "save failed") from e
        except BaseException:
            self._abort_save()
            raise

        logger.info("Saved journal entry %s (%s)", entry.id, "edit" if editing_id else "new")
        self.entries = self.store.list()
        self.drafts.clear()
        self._reset_form()
        self.state = JournalState.IDLE
        self.notify()
        return entry

    def _abort_save(self) -> None:
        # Form state is left as the user had it; only the lock is released.
        self.state = JournalState.ANSWERING
        self.notify()

    # --- soft delete ---
    def delete(self, entry_id: str) -> JournalEntry:
        """Hide an entry and schedule its removal. Needs a running event loop for the undo timer."""
        if self.state is JournalState.SAVING:
            raise SubmissionPending("The entry is being saved")
        loop = asyncio.get_running_loop()
        if self.pending is not None:
            self.pending.task.fire_now()
        entry = self.store.mark_pending(entry_id)
        if entry is None:
            raise TransitionRejected("That journal entry no longer exists")
        self.entries = self.store.list()
        if self.editing_id == entry_id:
            self.drafts.clear()
            self._reset_form()
            self.state = JournalState.IDLE
        task = DeferredTask(self.undo_window, lambda: self._finalize(entry_id), loop=loop)
        self.pending = PendingDeletion(entry, task)
        self.notify()
        return entry

    def _finalize(self, entry_id: str) -> None:
        self.store.purge(entry_id)
        if self.pending is not None and self.pending.entry.id == entry_id:
            self.pending = None
        self.notify()

    def undo(self) -> Optional[JournalEntry]:
        pending = self.pending
        if pending is None or not pending.task.cancel():
            return None
        self.store.restore(pending.entry.id)
        self.pending = None
        self.entries = self.store.list()
        self.notify()
        return pending.entry

    def reset(self) -> None:
        """Drop every entry, the draft and any pending deletion."""
        if self.state is JournalState.SAVING:
            raise SubmissionPending("The entry is being saved")
        if self.pending is not None:
            self.pending.task.cancel()
            self.pending = None
        self.store.clear()
        self.drafts.clear()
        self._reset_form()
        self.entries = []
        self.state = JournalState.IDLE
        self.notify()

    # --- views ---
    def mood_counts(self) -> Dict[str, int]:
        return dict(Counter(e.mood for e in self.entries if e.mood))

    def entries_on(self, day: Date) -> List[JournalEntry]:
        iso = day.isoformat()
        return [e for e in self.entries if e.date == iso]

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "step": self.current_step,
            "total": len(self.prompts),
            "mood": self.selected_mood,
            "editing": self.editing_id,
            "undoAvailable": self.pending is not None,
        }
