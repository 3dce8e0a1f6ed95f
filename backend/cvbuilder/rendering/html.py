"""HTML rendering of CVs with Jinja2.

CV payloads reach the renderers in several shapes: straight from the
database (camelCase API documents), wrapped in ``{"data": ...}`` or
``{"cv": ...}`` envelopes, or hand-built with alternate field names.
``normalize_cv`` folds all of them into one canonical dict before
rendering.
"""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .dates import date_range, format_full_date, format_month_year

_TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["month_year"] = format_month_year
_env.filters["full_date"] = format_full_date
_env.globals["date_range"] = date_range


def _pick(source: dict, *keys, default=None):
    """First non-empty value among ``keys``."""
    for key in keys:
        value = source.get(key)
        if value not in (None, "", [], {}):
            return value
    return default


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, list | tuple):
        return list(value)
    return [value]


def _unwrap(cv: dict) -> dict:
    for envelope in ("data", "cv"):
        inner = cv.get(envelope)
        if isinstance(inner, dict) and ("title" in inner or "personalInfo" in inner or "id" in inner):
            return inner
    return cv


def _personal(cv: dict) -> dict:
    info = _pick(cv, "personalInfo", "personal_info", "personal", default={}) or {}
    name = _pick(info, "fullName", "full_name", "name")
    if not name and (info.get("firstName") or info.get("lastName")):
        name = " ".join(p for p in (info.get("firstName"), info.get("lastName")) if p)
    return {
        "name": name or "",
        "job_title": _pick(info, "jobTitle", "job_title", "title", "headline", default=""),
        "email": _pick(info, "email", default=""),
        "phone": _pick(info, "phone", "phoneNumber", default=""),
        "location": _pick(info, "location", "address", "city", default=""),
        "website": _pick(info, "website", "portfolio", default=""),
        "linkedin": _pick(info, "linkedin", "linkedIn", default=""),
        "github": _pick(info, "github", "gitHub", default=""),
    }


def _work(entry: dict) -> dict:
    return {
        "position": _pick(entry, "position", "title", "jobTitle", "role", default=""),
        "company": _pick(entry, "company", "employer", "organization", default=""),
        "location": _pick(entry, "location", default=""),
        "start": _pick(entry, "startDate", "start_date", "from"),
        "end": _pick(entry, "endDate", "end_date", "to"),
        "current": bool(entry.get("current")),
        "description": _pick(entry, "description", default=""),
        "achievements": _as_list(_pick(entry, "achievements", "highlights", "bullets")),
    }


def _education(entry: dict) -> dict:
    return {
        "degree": _pick(entry, "degree", "qualification", default=""),
        "field": _pick(entry, "field", "fieldOfStudy", "field_of_study", "major", default=""),
        "institution": _pick(entry, "institution", "school", "university", default=""),
        "location": _pick(entry, "location", default=""),
        "start": _pick(entry, "startDate", "start_date", "from"),
        "end": _pick(entry, "endDate", "end_date", "to"),
        "current": bool(entry.get("current")),
        "description": _pick(entry, "description", default=""),
    }


def _skill(entry) -> dict:
    if isinstance(entry, str):
        return {"name": entry, "level": None, "category": None}
    return {
        "name": _pick(entry, "name", "skill", "title", default=""),
        "level": _pick(entry, "level", "proficiency"),
        "category": _pick(entry, "category"),
    }


def _language(entry) -> dict:
    if isinstance(entry, str):
        return {"name": entry, "proficiency": ""}
    return {
        "name": _pick(entry, "name", "language", default=""),
        "proficiency": _pick(entry, "proficiency", "level", default=""),
    }


def _certification(entry: dict) -> dict:
    return {
        "name": _pick(entry, "name", "title", default=""),
        "issuer": _pick(entry, "issuer", "organization", "authority", default=""),
        "date": _pick(entry, "date", "issueDate", "issue_date"),
    }


def _project(entry: dict) -> dict:
    return {
        "title": _pick(entry, "title", "name", default=""),
        "description": _pick(entry, "description", default=""),
        "technologies": _as_list(_pick(entry, "technologies", "techStack", "tech_stack")),
        "link": _pick(entry, "link", "url", default=""),
    }


def normalize_cv(cv: dict) -> dict:
    """Canonical, render-ready view of a CV document."""
    cv = _unwrap(cv or {})
    custom = []
    for section in _as_list(_pick(cv, "customSections", "custom_sections")):
        items = [i if isinstance(i, dict) else {"description": str(i)} for i in _as_list(section.get("items"))]
        custom.append({"title": section.get("title", ""), "items": items})
    return {
        "title": cv.get("title") or "CV",
        "template": cv.get("template") or "modern",
        "personal": _personal(cv),
        "summary": _pick(cv, "summary", "profile", "objective", "about", default=""),
        "work": [_work(e) for e in _as_list(_pick(cv, "workExperience", "work_experience", "experience", "jobs"))],
        "education": [_education(e) for e in _as_list(_pick(cv, "education", "educations"))],
        "skills": [s for s in (_skill(e) for e in _as_list(cv.get("skills"))) if s["name"]],
        "languages": [_language(e) for e in _as_list(cv.get("languages"))],
        "certifications": [_certification(e) for e in _as_list(cv.get("certifications"))],
        "projects": [_project(e) for e in _as_list(cv.get("projects"))],
        "custom_sections": custom,
        "references": _as_list(cv.get("references")),
    }


def template_for(name: str | None) -> str:
    """Only 'modern' has its own layout; every other template renders classic."""
    return "cv/modern.html" if name == "modern" else "cv/classic.html"


def render_cv_html(cv: dict, template: str | None = None) -> str:
    data = normalize_cv(cv)
    return _env.get_template(template_for(template or data["template"])).render(cv=data)
