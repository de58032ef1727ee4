from typing import Any, Dict, List, Optional

_SEPARATORS = (" ", "-", "(", ")")


def normalize_phone(raw: Optional[str]) -> str:
    """
    Normalize a North American phone number to E.164.

    "(555) 123-4567" -> "+15551234567"
    "15551234567"    -> "+15551234567"
    "+15551234567"   -> "+15551234567"
    """
    if not raw:
        return ""

    number = raw.strip()
    for sep in _SEPARATORS:
        number = number.replace(sep, "")

    if not number:
        return ""
    if number.startswith("+"):
        return number
    if number.startswith("1"):
        return "+" + number
    return "+1" + number


def pick_phone(phones: Optional[List[Any]]) -> str:
    """Return the raw value of the primary phone entry, else the first non-empty one."""
    values = []
    for entry in phones or []:
        if isinstance(entry, dict):
            value = (entry.get("value") or "").strip()
            if value and entry.get("primary"):
                return value
        else:
            value = str(entry or "").strip()
        if value:
            values.append(value)
    return values[0] if values else ""


def phone_from_person(person: Dict[str, Any]) -> str:
    """Extract and normalize the dialable number of a Pipedrive person."""
    return normalize_phone(pick_phone(person.get("phone")))
