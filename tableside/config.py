# tableside/config.py
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

# Load .env locally (safe in prod too)
load_dotenv()


_CURRENCY_SYMBOLS = {"USD": "$", "GBP": "£", "EUR": "€"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


# -------------------
# Config (env-driven)
# -------------------
class Settings(BaseModel):
    api_base_url: str = os.getenv("TABLESIDE_API_URL", "http://localhost:8080/api").rstrip("/")
    session_file: Path = Path(
        os.getenv("TABLESIDE_SESSION_FILE", str(Path.home() / ".tableside" / "session.json"))
    ).expanduser()
    request_timeout: float = _env_float("TABLESIDE_TIMEOUT", 10.0)

    currency: str = os.getenv("CURRENCY", "USD").strip().upper()
    log_level: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()

    @property
    def currency_symbol(self) -> str:
        return _CURRENCY_SYMBOLS.get(self.currency, "")


settings = Settings()
