"""CV document model."""

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from ..database.base import Base


class CVTemplate(enum.StrEnum):
    MODERN = "modern"
    CLASSIC = "classic"
    MINIMAL = "minimal"
    PROFESSIONAL = "professional"
    CREATIVE = "creative"
    EXECUTIVE = "executive"
    TECHNICAL = "technical"


# Sections stored as ordered JSON lists, keyed by their API name.
LIST_SECTIONS = {
    "workExperience": "work_experience",
    "education": "education",
    "skills": "skills",
    "languages": "languages",
    "projects": "projects",
    "certifications": "certifications",
    "customSections": "custom_sections",
    "references": "references",
}


def default_metadata() -> dict:
    return {
        "atsScore": 0,
        "keywordMatches": [],
        "lastGeneratedPDF": None,
        "targetJobTitle": None,
        "targetCompany": None,
        "lastOptimized": None,
    }


def default_privacy() -> dict:
    return {"isPublic": False, "shareableLink": None, "shareableUntil": None}


class CV(Base):
    __tablename__ = "cvs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    template = Column(
        SQLEnum(CVTemplate, values_callable=lambda e: [t.value for t in e]),
        default=CVTemplate.MODERN,
        nullable=False,
    )
    personal_info = Column(JSON, default=dict)
    summary = Column(Text, default="")
    work_experience = Column(JSON, default=list)
    education = Column(JSON, default=list)
    skills = Column(JSON, default=list)
    languages = Column(JSON, default=list)
    projects = Column(JSON, default=list)
    certifications = Column(JSON, default=list)
    custom_sections = Column(JSON, default=list)
    references = Column(JSON, default=list)
    # "metadata" is reserved on declarative classes
    cv_metadata = Column("metadata", JSON, default=default_metadata)
    privacy = Column(JSON, default=default_privacy)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    user = relationship("User", back_populates="cvs")

    __table_args__ = (Index("idx_cvs_user_created", "user_id", "created_at"),)

    def to_dict(self) -> dict:
        data = {
            "id": str(self.id),
            "user": str(self.user_id),
            "title": self.title,
            "template": str(self.template or CVTemplate.MODERN),
            "personalInfo": self.personal_info or {},
            "summary": self.summary or "",
            "metadata": {**default_metadata(), **(self.cv_metadata or {})},
            "privacy": {**default_privacy(), **(self.privacy or {})},
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        for api_name, attr in LIST_SECTIONS.items():
            data[api_name] = getattr(self, attr) or []
        return data
