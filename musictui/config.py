"""Module 1 — Config & Constants"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (one level up from musictui/)
_ROOT = Path(__file__).parent.parent
load_dotenv(_ROOT / ".env")

# ─── Paths ────────────────────────────────────────────────────────────────────
ROOT_DIR = _ROOT
OUTPUT_DIR = ROOT_DIR / os.getenv("OUTPUT_DIR", "output")
ERRORS_LOG = OUTPUT_DIR / "errors.log"
LOG_FILE = OUTPUT_DIR / "music-tui.log"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_MAX_BYTES = 1024 * 1024
LOG_BACKUP_COUNT = 3

# ─── Controlled player ────────────────────────────────────────────────────────
MUSIC_APP = os.getenv("MUSIC_APP", "Music")
REFRESH_SECONDS = int(os.getenv("REFRESH_MS", "1000")) / 1000
LAUNCH_SETTLE_SECONDS = int(os.getenv("LAUNCH_SETTLE_MS", "500")) / 1000

VOLUME_STEP = int(os.getenv("VOLUME_STEP", "5"))
SEEK_STEP = int(os.getenv("SEEK_STEP", "10"))
VOLUME_MIN = 0
VOLUME_MAX = 100

# ─── Trivia backends ──────────────────────────────────────────────────────────
# auto = openai when OPENAI_API_KEY is set, else ollama if reachable, else none
TRIVIA_BACKEND = os.getenv("TRIVIA_BACKEND", "auto").strip().lower()
TRIVIA_TIMEOUT = int(os.getenv("TRIVIA_TIMEOUT", "60"))

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
TRIVIA_MODEL = os.getenv("TRIVIA_MODEL", "gpt-4.1-mini")

OLLAMA_HOST = os.getenv("OLLAMA_HOST", "http://localhost:11434").rstrip("/")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2:3b")

APP_VERSION = "0.1.0"

# ─── Dev mode ─────────────────────────────────────────────────────────────────
DEV_MODE = os.getenv("DEV_MODE", "0").strip() in ("1", "true", "yes")
