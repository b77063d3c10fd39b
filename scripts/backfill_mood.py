#!/usr/bin/env python3
"""
Backfill script: scan user messages in the haven database and populate `mood` / `is_crisis`
where the mood is empty (rows written before the signal columns existed).
"""
import logging

from sqlmodel import Session, select

from haven.db import engine, init_db
from haven.models import Message
from haven.signals import classify

logger = logging.getLogger("backfill_mood")


def backfill(bind=None) -> int:
    bind = bind or engine
    init_db(bind)
    updated = 0
    with Session(bind) as db:
        rows = db.exec(select(Message).where(Message.role == 'user')).all()
        for r in rows:
            if r.mood:
                continue
            text = (r.text or '').strip()
            if not text:
                continue
            signal = classify(text)
            r.mood = signal.mood
            r.is_crisis = signal.is_crisis
            db.add(r)
            updated += 1
        db.commit()
    return updated


def main():
    logging.basicConfig(level=logging.INFO)
    updated = backfill()
    print(f"Updated {updated} user messages with mood.")


if __name__ == '__main__':
    main()
