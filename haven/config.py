# haven/config.py
import os

from dotenv import load_dotenv

# Prefer values from a local .env during development so stale system envs do not win.
load_dotenv(override=True)

DB_PATH = os.getenv("HAVEN_DB", "haven.db")

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "1024"))

RELAY_URL = os.getenv("RELAY_URL", "http://127.0.0.1:8000")
RELAY_TIMEOUT_SECONDS = float(os.getenv("RELAY_TIMEOUT_SECONDS", "30"))

SESSION_GAP_MINUTES = int(os.getenv("SESSION_GAP_MINUTES", "30"))
UNDO_WINDOW_SECONDS = float(os.getenv("UNDO_WINDOW_SECONDS", "5"))
TITLE_MAX_CHARS = int(os.getenv("TITLE_MAX_CHARS", "50"))
