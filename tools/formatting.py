from datetime import datetime, timezone, timedelta
from typing import Dict, Optional

HUMAN_DATETIME = "%A, %B %d, %Y at %I:%M %p"


def format_hms(total_seconds: float) -> str:
    """Render a duration as HH:MM:SS."""
    seconds = max(0, int(total_seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def parse_timestamp(value: Optional[str]) -> datetime:
    """Parse an ISO-8601 / RFC 3339 timestamp; naive values are taken as UTC."""
    if not value:
        raise ValueError("empty timestamp")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def from_epoch_ms(value: Optional[int]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def due_fields(when: datetime, offset: timedelta = timedelta(0)) -> Dict[str, str]:
    """Pipedrive due_date / due_time pair for an activity."""
    return {
        "due_date": when.strftime("%Y-%m-%d"),
        "due_time": (when + offset).strftime("%H:%M:%S"),
    }
