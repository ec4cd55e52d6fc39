import os
from dotenv import load_dotenv

load_dotenv()

GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
PLANNER_TEMPERATURE = float(os.getenv("PLANNER_TEMPERATURE", "0.2"))
EXECUTOR_TEMPERATURE = float(os.getenv("EXECUTOR_TEMPERATURE", "0.4"))

# Search steps are always grounded; this extends grounding to every step.
GROUND_ALL_STEPS = os.getenv("GROUND_ALL_STEPS", "true").lower() == "true"

LEDGER_PATH = os.getenv("LEDGER_PATH", "data/seen_companies.json")
LEDGER_CAPACITY = int(os.getenv("LEDGER_CAPACITY", "200"))

API_BASE = os.getenv("API_BASE", "http://localhost:8000")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def require_google_api_key() -> str:
    if not GOOGLE_API_KEY or GOOGLE_API_KEY == "your-google-api-key-here":
        raise EnvironmentError("GOOGLE_API_KEY is not set. Add it to .env")
    return GOOGLE_API_KEY
