"""Form validation for the CV editor.

Field validators return booleans; section validators return a
``{field: message}`` dict that is empty when the entry is valid.
"""

import re
from datetime import date

from ..rendering.dates import parse_date

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str | None) -> bool:
    return bool(email) and bool(_EMAIL_RE.match(email))


def validate_password(password: str | None) -> tuple[bool, str]:
    if not password:
        return False, "Password is required"
    if len(password) < 8:
        return False, "Password must be at least 8 characters long"
    if not re.search(r"\d", password):
        return False, "Password must contain at least one number"
    if not re.search(r"[A-Z]", password):
        return False, "Password must contain at least one uppercase letter"
    return True, "Password is valid"


def is_not_empty(value) -> bool:
    return value is not None and str(value).strip() != ""


def is_not_future_date(value, today: date | None = None) -> bool:
    """Empty dates pass."""
    if not value:
        return True
    parsed = parse_date(value)
    if parsed is None:
        return False
    return parsed <= (today or date.today())


def is_end_date_after_start_date(start, end) -> bool:
    """An empty end date (ongoing) passes; a missing start does not."""
    if not end:
        return True
    if not start:
        return False
    start_date, end_date = parse_date(start), parse_date(end)
    if start_date is None or end_date is None:
        return False
    return end_date >= start_date


def _dated_entry_errors(entry: dict, errors: dict, past_label: str) -> dict:
    if not entry.get("startDate"):
        errors["startDate"] = "Start date is required"
    elif not is_not_future_date(entry["startDate"]):
        errors["startDate"] = "Start date cannot be in the future"
    if not entry.get("current") and not entry.get("endDate"):
        errors["endDate"] = f"End date is required for {past_label}"
    elif entry.get("startDate") and not is_end_date_after_start_date(entry["startDate"], entry.get("endDate")):
        errors["endDate"] = "End date must be after start date"
    return errors


def validate_work_experience(entry: dict) -> dict:
    errors = {}
    if not is_not_empty(entry.get("company")):
        errors["company"] = "Company name is required"
    if not is_not_empty(entry.get("position")):
        errors["position"] = "Position is required"
    return _dated_entry_errors(entry, errors, "past positions")


def validate_education(entry: dict) -> dict:
    errors = {}
    if not is_not_empty(entry.get("institution")):
        errors["institution"] = "Institution name is required"
    if not is_not_empty(entry.get("degree")):
        errors["degree"] = "Degree is required"
    return _dated_entry_errors(entry, errors, "completed education")


def _named_entry_errors(entry: dict, existing: list[dict], skip_index: int, kind: str) -> dict:
    name = (entry.get("name") or "").strip()
    if not name:
        return {"name": f"{kind.capitalize()} name is required"}
    for i, other in enumerate(existing):
        if i != skip_index and (other.get("name") or "").strip().lower() == name.lower():
            return {"name": f"This {kind} already exists in your list"}
    return {}


def validate_skill(entry: dict, existing: list[dict] = (), skip_index: int = -1) -> dict:
    errors = _named_entry_errors(entry, list(existing), skip_index, "skill")
    level = entry.get("level")
    if level is not None and not (isinstance(level, int) and 1 <= level <= 5):
        errors["level"] = "Skill level must be between 1 and 5"
    return errors


def validate_language(entry: dict, existing: list[dict] = (), skip_index: int = -1) -> dict:
    return _named_entry_errors(entry, list(existing), skip_index, "language")


def validate_personal_info(info: dict) -> dict:
    errors = {}
    if not is_not_empty(info.get("fullName")):
        errors["fullName"] = "Full name is required"
    if not is_not_empty(info.get("email")):
        errors["email"] = "Email is required"
    elif not is_valid_email(info["email"]):
        errors["email"] = "Please enter a valid email address"
    return errors
