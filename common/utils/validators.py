from datetime import date, datetime
from typing import Optional


def ensure_positive_int(value: int, field: str) -> int:
    if value is None or int(value) < 0:
        raise ValueError(f"{field} must be >= 0")
    return int(value)


def parse_iso_date(value: Optional[str], field: str = "date") -> date:
    if not value:
        raise ValueError(f"{field} required")
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValueError(f"{field} must be YYYY-MM-DD") from exc
