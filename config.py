"""
tmsim Configuration
Loads environment variables and defines project-wide constants.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# ── Machine Defaults ─────────────────────────────────────────────────
DEFAULT_BLANK_SYMBOL: str = os.getenv("TM_BLANK_SYMBOL", "λ")
DEFAULT_INITIAL_STATE: str = os.getenv("TM_INITIAL_STATE", "q0")
DEFAULT_FINAL_STATE: str = os.getenv("TM_FINAL_STATE", "!")
DEFAULT_MAX_STEPS: int = int(os.getenv("TM_MAX_STEPS", "1000"))

# ── Paths ────────────────────────────────────────────────────────────
PROJECT_ROOT: Path = Path(__file__).resolve().parent
SESSION_STATE_FILE: Path = Path(
    os.getenv("TM_SESSION_FILE", str(PROJECT_ROOT / "machine_state.json"))
)

# ── Logging ──────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("TM_LOG_LEVEL", "INFO").upper()

# ── Session Actions ──────────────────────────────────────────────────
VALID_ACTIONS: frozenset = frozenset({"run", "step"})
