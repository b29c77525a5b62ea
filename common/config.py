import os
from dataclasses import dataclass, field
from pathlib import Path
import json
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv


BACKENDS = {"sql", "demo"}
ORDER_NUMBER_STRATEGIES = {"counter", "random"}


@dataclass
class AppConfig:
    database_url: str
    backend: str
    order_number_strategy: str
    log_level: str
    currency: str
    opening_hour: int = 9
    closing_hour: int = 18
    lunch_hours: Tuple[int, ...] = field(default_factory=lambda: (13,))

    @property
    def demo_mode(self) -> bool:
        return self.backend == "demo"


def validate_currency(value: Optional[str]) -> str:
    v = (value or "INR").strip().upper()
    if len(v) != 3:
        raise ValueError("Invalid currency code: expected ISO4217 length 3")
    return v


def validate_backend(value: Optional[str]) -> str:
    v = (value or "sql").strip().lower()
    if v not in BACKENDS:
        raise ValueError(f"Invalid STORE_BACKEND: {value!r}")
    return v


def validate_strategy(value: Optional[str]) -> str:
    v = (value or "counter").strip().lower()
    if v not in ORDER_NUMBER_STRATEGIES:
        raise ValueError(f"Invalid ORDER_NUMBER_STRATEGY: {value!r}")
    return v


def parse_hours(value: Optional[str], default: Tuple[int, ...]) -> Tuple[int, ...]:
    if value is None or str(value).strip() == "":
        return default
    hours = []
    for part in str(value).split(","):
        part = part.strip()
        if not part:
            continue
        h = int(part)
        if not 0 <= h <= 23:
            raise ValueError(f"Hour out of range: {h}")
        hours.append(h)
    return tuple(hours)


def _load_settings_file() -> dict:
    try:
        path = Path(__file__).resolve().parents[1] / "data" / "settings.json"
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        pass
    return {}


def load_env(overrides: Optional[Dict[str, str]] = None) -> AppConfig:
    # data/settings.json wins over the environment; explicit overrides win over both
    load_dotenv()
    s = _load_settings_file()
    s.update(overrides or {})

    def pick(key: str, default: Optional[str] = None) -> Optional[str]:
        value = s.get(key)
        if value is None or value == "":
            value = os.getenv(key, default)
        return value

    opening_hour = int(pick("OPENING_HOUR", "9"))
    closing_hour = int(pick("CLOSING_HOUR", "18"))
    if not 0 <= opening_hour < closing_hour <= 24:
        raise ValueError("OPENING_HOUR must be before CLOSING_HOUR")
    return AppConfig(
        database_url=pick("DATABASE_URL", "sqlite:///data/store.db"),
        backend=validate_backend(pick("STORE_BACKEND")),
        order_number_strategy=validate_strategy(pick("ORDER_NUMBER_STRATEGY")),
        log_level=(pick("LOG_LEVEL", "INFO") or "INFO").upper(),
        currency=validate_currency(pick("CURRENCY")),
        opening_hour=opening_hour,
        closing_hour=closing_hour,
        lunch_hours=parse_hours(pick("LUNCH_HOURS"), (13,)),
    )
