from __future__ import annotations
import logging
from typing import Optional
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine

from haven import config
from haven import models  # noqa: F401  (registers the tables on SQLModel.metadata)

logger = logging.getLogger(__name__)

# Columns added after the first release; older database files get them via ALTER TABLE.
LATE_COLUMNS = {
    "message": {
        "mood": "TEXT",
        "is_crisis": "BOOLEAN NOT NULL DEFAULT 0",
        "is_error": "BOOLEAN NOT NULL DEFAULT 0",
        "session_id": "TEXT",
    },
    "journal_entry": {
        "summary": "TEXT NOT NULL DEFAULT ''",
        "pending_delete": "BOOLEAN NOT NULL DEFAULT 0",
    },
}


def make_engine(path: Optional[str] = None) -> Engine:
    return create_engine(f"sqlite:///{path or config.DB_PATH}", echo=False,
                         connect_args={"check_same_thread": False})


engine = make_engine()


def init_db(bind: Optional[Engine] = None) -> None:
    bind = bind or engine
    SQLModel.metadata.create_all(bind)
    # SQLite doesn't add columns to existing tables via create_all, so back-fill them here.
    try:
        with bind.begin() as conn:
            for table, columns in LATE_COLUMNS.items():
                res = conn.exec_driver_sql(f"PRAGMA table_info('{table}')")
                existing = {r[1] for r in res.fetchall()}
                for name, ddl in columns.items():
                    if name not in existing:
                        logger.info("Adding missing column %s.%s", table, name)
                        conn.exec_driver_sql(f"ALTER TABLE {table} ADD COLUMN {name} {ddl}")
    except SQLAlchemyError:
        logger.exception("Column back-fill failed; continuing with the existing schema")
