"""CV editor wizard: step navigation, draft state and section editors.

The draft lives in memory only. Completing a step merges its form values
into the draft; nothing reaches the server until ``save()``.
"""

import copy
import logging
from collections.abc import Callable

from .services import CVService
from .validators import (
    validate_education,
    validate_language,
    validate_skill,
    validate_work_experience,
)

logger = logging.getLogger(__name__)

STEPS = (
    "Choose Template",
    "Personal Info",
    "Summary",
    "Work Experience",
    "Education",
    "Skills",
    "Additional Sections",
)

LIST_FIELDS = (
    "workExperience",
    "education",
    "skills",
    "languages",
    "projects",
    "certifications",
    "customSections",
    "references",
)

# Owned by the server: timestamps, owner, and the ATS results written by analyze
_SERVER_FIELDS = ("id", "user", "createdAt", "updatedAt", "metadata")


def new_draft(template: str = "modern") -> dict:
    draft = {"title": "Untitled CV", "template": template, "personalInfo": {}, "summary": ""}
    for field in LIST_FIELDS:
        draft[field] = []
    return draft


def merge_into(draft: dict, values: dict) -> dict:
    """Shallow merge, except nested dicts (personalInfo, metadata...) merge one level down."""
    for key, value in values.items():
        if isinstance(value, dict) and isinstance(draft.get(key), dict):
            draft[key] = {**draft[key], **value}
        else:
            draft[key] = copy.deepcopy(value)
    return draft


class SectionEditor:
    """Ordered list editing with validation, used by the list steps."""

    def __init__(self, entries: list[dict] | None = None,
                 validator: Callable[..., dict] | None = None, unique_names: bool = False):
        self.entries = [dict(e) for e in entries or []]
        self._validator = validator
        self._unique_names = unique_names

    def _validate(self, entry: dict, skip_index: int = -1) -> dict:
        if self._validator is None:
            return {}
        if self._unique_names:
            return self._validator(entry, self.entries, skip_index)
        return self._validator(entry)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.entries):
            raise IndexError(f"No entry at position {index}")

    def add(self, entry: dict) -> dict:
        """Append ``entry``; returns validation errors (empty on success)."""
        errors = self._validate(entry)
        if not errors:
            self.entries.append(dict(entry))
        return errors

    def update(self, index: int, entry: dict) -> dict:
        self._check_index(index)
        errors = self._validate(entry, skip_index=index)
        if not errors:
            self.entries[index] = dict(entry)
        return errors

    def remove(self, index: int) -> dict:
        self._check_index(index)
        return self.entries.pop(index)

    def move_up(self, index: int) -> None:
        self._check_index(index)
        if index > 0:
            self.entries[index - 1], self.entries[index] = self.entries[index], self.entries[index - 1]

    def move_down(self, index: int) -> None:
        self._check_index(index)
        if index < len(self.entries) - 1:
            self.entries[index + 1], self.entries[index] = self.entries[index], self.entries[index + 1]


def work_experience_editor(entries=None) -> SectionEditor:
    return SectionEditor(entries, validate_work_experience)


def education_editor(entries=None) -> SectionEditor:
    return SectionEditor(entries, validate_education)


def skills_editor(entries=None) -> SectionEditor:
    return SectionEditor(entries, validate_skill, unique_names=True)


def languages_editor(entries=None) -> SectionEditor:
    return SectionEditor(entries, validate_language, unique_names=True)


class CVWizard:
    def __init__(self, cv_service: CVService, cv: dict | None = None):
        self.cv_service = cv_service
        self.cv_id: str | None = (cv or {}).get("id")
        self.draft = merge_into(new_draft(), cv) if cv else new_draft()
        self.step = 0
        cv_service.api.add_unauthorized_handler(self.reset)

    def close(self) -> None:
        """Detach from the API client; call when the editor is left."""
        self.cv_service.api.remove_unauthorized_handler(self.reset)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    @property
    def is_new(self) -> bool:
        return self.cv_id is None

    @property
    def step_name(self) -> str:
        return STEPS[self.step]

    @property
    def is_first_step(self) -> bool:
        return self.step == 0

    @property
    def is_last_step(self) -> bool:
        return self.step == len(STEPS) - 1

    def next(self) -> int:
        self.step = min(self.step + 1, len(STEPS) - 1)
        return self.step

    def prev(self) -> int:
        self.step = max(0, self.step - 1)
        return self.step

    def go_to(self, index: int) -> int:
        if not 0 <= index < len(STEPS):
            raise ValueError(f"Step must be between 0 and {len(STEPS) - 1}, got {index}")
        self.step = index
        return self.step

    def save_step(self, values: dict) -> int:
        """Save & Continue: merge the step's form values, then advance."""
        merge_into(self.draft, values)
        return self.next()

    def save(self) -> dict:
        """Persist the draft: create when new, update otherwise."""
        payload = {k: v for k, v in self.draft.items() if k not in _SERVER_FIELDS}
        if self.is_new:
            saved = self.cv_service.create(payload)
            self.cv_id = saved["id"]
            logger.info("Created CV %s", self.cv_id)
        else:
            saved = self.cv_service.update(self.cv_id, payload)
        self.draft = merge_into(new_draft(), saved)
        return saved

    def reset(self) -> None:
        """Discard in-progress state (used on logout / 401)."""
        self.draft = new_draft()
        self.cv_id = None
        self.step = 0
