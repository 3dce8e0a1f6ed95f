"""Date formatting helpers shared by the CV renderers."""

from datetime import date, datetime


def parse_date(value) -> date | None:
    """Accept date/datetime objects or ISO strings ("2021-05-01", "2021-05-01T00:00:00Z")."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        # month inputs ("2021-05")
        return datetime.strptime(text, "%Y-%m").date()
    except ValueError:
        return None


def format_month_year(value) -> str:
    """'2021-05-01' -> 'May 2021'; empty -> 'Present'."""
    if value is None or value == "":
        return "Present"
    parsed = parse_date(value)
    if parsed is None:
        return str(value)
    return parsed.strftime("%b %Y")


def format_full_date(value) -> str:
    """'2021-05-01' -> 'May 1, 2021'; empty -> ''."""
    parsed = parse_date(value)
    if parsed is None:
        return "" if value in (None, "") else str(value)
    return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"


def date_range(start, end, current: bool = False) -> str:
    end_label = "Present" if current or not end else format_month_year(end)
    if not start:
        return "" if end_label == "Present" and not current else end_label
    return f"{format_month_year(start)} - {end_label}"
