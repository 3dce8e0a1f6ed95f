"""Keyword-overlap ATS scoring.

A plain matcher: keywords are pulled out of the job
description, then looked up as lower-cased substrings of the CV text.
No stemming, ranking or weighting; a fixed vocabulary only decides which
keywords are flagged as important.
"""

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .models import CV, default_metadata

IMPORTANT_KEYWORDS = (
    # soft skills / practices
    "teamwork", "leadership", "communication", "problem-solving", "project management",
    "agile", "scrum", "analytical", "detail-oriented", "web development",
    # languages and frameworks
    "python", "java", "javascript", "typescript", "c++", "c#", "go", "rust", "ruby", "php",
    "sql", "react", "angular", "vue", "node.js", "django", "flask", "fastapi", "spring",
    # data and infrastructure
    "mongodb", "postgresql", "mysql", "redis", "aws", "azure", "gcp", "docker", "kubernetes",
    "terraform", "linux", "git", "ci/cd", "rest", "graphql", "machine learning",
)

_MULTI_WORD = tuple(k for k in IMPORTANT_KEYWORDS if " " in k or "-" in k)

STOPWORDS = frozenset(
    """
    a about above across after again against all also am an and any are as at be because been
    being below between both but by can could did do does doing down during each either etc
    few for from further had has have having he her here hers him his how i if in into is it
    its itself just me more most must my no nor not of off on once only or other our ours out
    over own per plus same she should so some such than that the their theirs them then there
    these they this those through to too under until up very via was we were what when where
    which while who whom why will with within without would you your yours
    ability able candidate candidates company experience job looking opportunity position
    required requirements responsibilities role skills strong team work working years year
    including knowledge understanding good great excellent new join us
    """.split()
)

_TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9+#./-]*")


@dataclass
class Keyword:
    keyword: str
    important: bool


@dataclass
class AtsReport:
    ats_score: int
    keyword_matches: list[dict] = field(default_factory=list)
    matching_keywords: list[str] = field(default_factory=list)
    missing_keywords: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def to_response(self) -> dict:
        return {
            "atsScore": self.ats_score,
            "matchingKeywords": self.matching_keywords,
            "missingKeywords": self.missing_keywords,
            "suggestions": self.suggestions,
        }


def extract_keywords(job_description: str) -> list[Keyword]:
    """Distinct keywords of a job description, in order of appearance."""
    text = job_description.lower()
    found: dict[str, Keyword] = {}

    for phrase in _MULTI_WORD:
        if phrase in text:
            found[phrase] = Keyword(phrase, True)

    for raw in _TOKEN_RE.findall(text):
        token = raw.rstrip(".,/-")
        if len(token) < 2 or token.isdigit() or token in STOPWORDS or token in found:
            continue
        if any(token in phrase.split() for phrase in found if " " in phrase):
            continue
        found[token] = Keyword(token, token in IMPORTANT_KEYWORDS)

    return list(found.values())


def cv_text(cv: CV) -> str:
    """Flatten the searchable CV content into one lower-cased string."""
    parts: list[str] = [cv.summary or "", (cv.personal_info or {}).get("jobTitle") or ""]
    for job in cv.work_experience or []:
        parts.append(job.get("position") or "")
        parts.append(job.get("description") or "")
        parts.extend(job.get("achievements") or [])
    for edu in cv.education or []:
        parts.extend([edu.get("degree") or "", edu.get("field") or ""])
    parts.extend(skill.get("name") or "" for skill in cv.skills or [])
    for project in cv.projects or []:
        parts.append(project.get("description") or "")
        parts.extend(project.get("technologies") or [])
    parts.extend(cert.get("name") or "" for cert in cv.certifications or [])
    return " ".join(p for p in parts if p).lower()


def _suggestions(cv: CV, missing: list[str]) -> list[str]:
    suggestions = []
    if missing:
        suggestions.append(f"Add these missing keywords to your CV: {', '.join(missing)}")
    if cv.summary and len(cv.summary) < 100:
        suggestions.append(
            "Your professional summary is too short. Aim for at least 100 characters "
            "to highlight your key qualifications."
        )
    jobs = cv.work_experience or []
    if not jobs:
        suggestions.append("Add work experience to improve your CV.")
    elif any(not job.get("achievements") for job in jobs):
        suggestions.append("Add achievements to your work experience to showcase results and impact.")
    return suggestions


def analyze_cv(cv: CV, job_description: str) -> AtsReport:
    keywords = extract_keywords(job_description)
    content = cv_text(cv)

    matches = []
    missing = []
    for kw in keywords:
        count = content.count(kw.keyword)
        if count:
            matches.append({"keyword": kw.keyword, "count": count, "important": kw.important})
        else:
            missing.append(kw.keyword)

    score = min(100, round(len(matches) / len(keywords) * 100)) if keywords else 0
    return AtsReport(
        ats_score=score,
        keyword_matches=matches,
        matching_keywords=[m["keyword"] for m in matches],
        missing_keywords=missing,
        suggestions=_suggestions(cv, missing),
    )


def apply_report(cv: CV, report: AtsReport, target_job_title: str | None = None,
                 target_company: str | None = None) -> None:
    """Store the score and matches in the CV metadata."""
    meta = {**default_metadata(), **(cv.cv_metadata or {})}
    meta["atsScore"] = report.ats_score
    meta["keywordMatches"] = report.keyword_matches
    meta["lastOptimized"] = datetime.now(UTC).isoformat()
    if target_job_title:
        meta["targetJobTitle"] = target_job_title
    if target_company:
        meta["targetCompany"] = target_company
    cv.cv_metadata = meta
