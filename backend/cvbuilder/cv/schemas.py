"""CV request/response schemas.

The JSON API speaks camelCase (``personalInfo``, ``workExperience`` ...);
snake_case keys are accepted as well.
"""

import datetime as dt
import enum
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, StringConstraints
from pydantic.alias_generators import to_camel

from .models import CVTemplate

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class LanguageProficiency(enum.StrEnum):
    NATIVE = "Native"
    FLUENT = "Fluent"
    ADVANCED = "Advanced"
    INTERMEDIATE = "Intermediate"
    BASIC = "Basic"


class PersonalInfo(CamelModel):
    full_name: NonEmptyStr
    job_title: str | None = None
    email: EmailStr
    phone: str | None = None
    location: str | None = None
    website: str | None = None
    linkedin: str | None = None
    github: str | None = None


class WorkExperienceEntry(CamelModel):
    company: NonEmptyStr
    position: NonEmptyStr
    location: str | None = None
    start_date: dt.date
    end_date: dt.date | None = None
    current: bool = False
    description: str | None = None
    achievements: list[str] = Field(default_factory=list)


class EducationEntry(CamelModel):
    institution: NonEmptyStr
    degree: NonEmptyStr
    field: str | None = None
    location: str | None = None
    start_date: dt.date
    end_date: dt.date | None = None
    current: bool = False
    description: str | None = None
    achievements: list[str] = Field(default_factory=list)


class SkillEntry(CamelModel):
    name: NonEmptyStr
    level: int | None = Field(None, ge=1, le=5)
    category: str | None = None


class LanguageEntry(CamelModel):
    name: NonEmptyStr
    proficiency: LanguageProficiency | None = None


class ProjectEntry(CamelModel):
    title: NonEmptyStr
    description: str | None = None
    technologies: list[str] = Field(default_factory=list)
    link: str | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    current: bool = False


class CertificationEntry(CamelModel):
    name: NonEmptyStr
    issuer: str | None = None
    date: dt.date | None = None
    expiry_date: dt.date | None = None
    credential_id: str | None = Field(None, alias="credentialID")
    url: str | None = None


class CustomSectionItem(CamelModel):
    title: str | None = None
    subtitle: str | None = None
    date: dt.date | None = None
    description: str | None = None
    bullets: list[str] = Field(default_factory=list)


class CustomSection(CamelModel):
    title: NonEmptyStr
    items: list[CustomSectionItem] = Field(default_factory=list)


class ReferenceEntry(CamelModel):
    name: str | None = None
    company: str | None = None
    position: str | None = None
    email: str | None = None
    phone: str | None = None
    reference: str | None = None


class KeywordMatch(CamelModel):
    keyword: str
    count: int = 0
    important: bool = False


class CVMetadata(CamelModel):
    ats_score: int = Field(0, ge=0, le=100)
    keyword_matches: list[KeywordMatch] = Field(default_factory=list)
    last_generated_pdf: dt.datetime | None = Field(None, alias="lastGeneratedPDF")
    target_job_title: str | None = None
    target_company: str | None = None
    last_optimized: dt.datetime | None = None


class CVPrivacy(CamelModel):
    is_public: bool = False
    shareable_link: str | None = None
    shareable_until: dt.datetime | None = None


class CVContent(CamelModel):
    """Fields shared by create and update payloads (all optional here)."""

    summary: str | None = None
    work_experience: list[WorkExperienceEntry] | None = None
    education: list[EducationEntry] | None = None
    skills: list[SkillEntry] | None = None
    languages: list[LanguageEntry] | None = None
    projects: list[ProjectEntry] | None = None
    certifications: list[CertificationEntry] | None = None
    custom_sections: list[CustomSection] | None = None
    references: list[ReferenceEntry] | None = None
    metadata: CVMetadata | None = None
    privacy: CVPrivacy | None = None


class CVCreateRequest(CVContent):
    title: NonEmptyStr
    template: CVTemplate
    personal_info: PersonalInfo


class CVUpdateRequest(CVContent):
    title: NonEmptyStr | None = None
    template: CVTemplate | None = None
    personal_info: PersonalInfo | None = None


class AnalyzeRequest(CamelModel):
    job_description: str | None = Field(None, max_length=50_000)
    target_job_title: str | None = Field(None, max_length=255)
    target_company: str | None = Field(None, max_length=255)
