"""Server-side PDF generation with reportlab.

Two layouts: ``modern`` (Helvetica, coloured headings, skills in a
three-column grid) and ``classic`` (Times, centred header, skills as a
paragraph). Any other template name is rendered with the classic layout.
"""

import io
import logging
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    HRFlowable,
    KeepTogether,
    ListFlowable,
    ListItem,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from .dates import date_range, format_month_year
from .html import normalize_cv

logger = logging.getLogger(__name__)

ACCENT = colors.HexColor("#2563eb")
MUTED = colors.HexColor("#666666")
CONTENT_WIDTH = A4[0] - 32 * mm


class PDFRenderError(Exception):
    """Raised when reportlab fails to build the document."""


def _styles(modern: bool) -> dict[str, ParagraphStyle]:
    regular = "Helvetica" if modern else "Times-Roman"
    bold = "Helvetica-Bold" if modern else "Times-Bold"
    heading_color = ACCENT if modern else colors.black
    align = 0 if modern else TA_CENTER
    return {
        "name": ParagraphStyle("name", fontName=bold, fontSize=22, leading=26, alignment=align,
                               textColor=colors.HexColor("#1e3a8a") if modern else colors.black),
        "job_title": ParagraphStyle("job_title", fontName=regular, fontSize=12, leading=16,
                                    alignment=align, textColor=heading_color),
        "contact": ParagraphStyle("contact", fontName=regular, fontSize=9, leading=12,
                                  alignment=align, textColor=MUTED),
        "section": ParagraphStyle("section", fontName=bold, fontSize=12, leading=15,
                                  spaceBefore=10, spaceAfter=3, textColor=heading_color),
        "entry_title": ParagraphStyle("entry_title", fontName=bold, fontSize=10.5, leading=13),
        "dates": ParagraphStyle("dates", fontName=regular, fontSize=9, leading=13,
                                alignment=2, textColor=MUTED),
        "muted": ParagraphStyle("muted", fontName=regular, fontSize=9, leading=12, textColor=MUTED),
        "body": ParagraphStyle("body", fontName=regular, fontSize=10, leading=13.5, spaceAfter=2),
    }


def _p(text, style) -> Paragraph:
    return Paragraph(escape(str(text or "")), style)


def _entry_head(title: str, dates: str, styles: dict) -> Table:
    table = Table(
        [[_p(title, styles["entry_title"]), _p(dates, styles["dates"])]],
        colWidths=[CONTENT_WIDTH * 0.7, CONTENT_WIDTH * 0.3],
    )
    table.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "BOTTOM"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("RIGHTPADDING", (0, 0), (-1, -1), 0),
        ("TOPPADDING", (0, 0), (-1, -1), 0),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 1),
    ]))
    return table


def _bullets(items: list, styles: dict) -> ListFlowable:
    return ListFlowable(
        [ListItem(_p(item, styles["body"]), leftIndent=10) for item in items if item],
        bulletType="bullet",
        start="•",
        leftIndent=10,
    )


def _section(story: list, title: str, styles: dict, modern: bool) -> None:
    story.append(Paragraph(escape(title.upper() if modern else title), styles["section"]))
    story.append(HRFlowable(width="100%", thickness=1.2 if modern else 0.6,
                            color=ACCENT if modern else colors.black, spaceAfter=4))


def _skills_grid(skills: list[dict], styles: dict) -> Table:
    cells = [_p(s["name"] + (f" ({s['level']})" if s["level"] else ""), styles["body"]) for s in skills]
    while len(cells) % 3:
        cells.append("")
    rows = [cells[i:i + 3] for i in range(0, len(cells), 3)]
    table = Table(rows, colWidths=[CONTENT_WIDTH / 3] * 3)
    table.setStyle(TableStyle([
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("TOPPADDING", (0, 0), (-1, -1), 1),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 1),
    ]))
    return table


def _build_story(cv: dict, modern: bool) -> list:
    styles = _styles(modern)
    personal = cv["personal"]
    story: list = [_p(personal["name"], styles["name"])]
    if personal["job_title"]:
        story.append(_p(personal["job_title"], styles["job_title"]))
    contact = [personal[k] for k in ("email", "phone", "location", "website", "linkedin", "github") if personal[k]]
    if contact:
        story.append(_p("  |  ".join(contact), styles["contact"]))
    story.append(Spacer(1, 4 * mm))

    if cv["summary"]:
        _section(story, "Professional Summary", styles, modern)
        story.append(_p(cv["summary"], styles["body"]))

    if cv["work"]:
        _section(story, "Work Experience", styles, modern)
        for job in cv["work"]:
            title = ", ".join(p for p in (job["position"], job["company"]) if p)
            block = [_entry_head(title, date_range(job["start"], job["end"], job["current"]), styles)]
            if job["location"]:
                block.append(_p(job["location"], styles["muted"]))
            if job["description"]:
                block.append(_p(job["description"], styles["body"]))
            if job["achievements"]:
                block.append(_bullets(job["achievements"], styles))
            block.append(Spacer(1, 2 * mm))
            story.append(KeepTogether(block))

    if cv["education"]:
        _section(story, "Education", styles, modern)
        for edu in cv["education"]:
            title = edu["degree"] + (f" in {edu['field']}" if edu["field"] else "")
            block = [
                _entry_head(title, date_range(edu["start"], edu["end"], edu["current"]), styles),
                _p(", ".join(p for p in (edu["institution"], edu["location"]) if p), styles["muted"]),
            ]
            if edu["description"]:
                block.append(_p(edu["description"], styles["body"]))
            block.append(Spacer(1, 2 * mm))
            story.append(KeepTogether(block))

    if cv["skills"]:
        _section(story, "Skills", styles, modern)
        if modern:
            story.append(_skills_grid(cv["skills"], styles))
        else:
            story.append(_p(", ".join(s["name"] for s in cv["skills"]), styles["body"]))

    if cv["languages"]:
        _section(story, "Languages", styles, modern)
        langs = [lang["name"] + (f" ({lang['proficiency']})" if lang["proficiency"] else "")
                 for lang in cv["languages"]]
        story.append(_p(", ".join(langs), styles["body"]))

    if cv["projects"]:
        _section(story, "Projects", styles, modern)
        for project in cv["projects"]:
            story.append(_p(project["title"], styles["entry_title"]))
            if project["description"]:
                story.append(_p(project["description"], styles["body"]))
            if project["technologies"]:
                story.append(_p(", ".join(map(str, project["technologies"])), styles["muted"]))

    if cv["certifications"]:
        _section(story, "Certifications", styles, modern)
        for cert in cv["certifications"]:
            issued = format_month_year(cert["date"]) if cert["date"] else ""
            title = ", ".join(p for p in (cert["name"], cert["issuer"]) if p)
            story.append(_entry_head(title, issued, styles))

    for section in cv["custom_sections"]:
        _section(story, section["title"] or "Additional", styles, modern)
        for item in section["items"]:
            if item.get("title"):
                story.append(_p(item["title"], styles["entry_title"]))
            if item.get("description"):
                story.append(_p(item["description"], styles["body"]))
            if item.get("bullets"):
                story.append(_bullets(item["bullets"], styles))

    return story


def render_cv_pdf(cv: dict, template: str | None = None) -> bytes:
    """Render a CV document to PDF bytes."""
    data = normalize_cv(cv)
    modern = (template or data["template"]) == "modern"

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=16 * mm,
        rightMargin=16 * mm,
        topMargin=16 * mm,
        bottomMargin=16 * mm,
        title=data["personal"]["name"] or data["title"],
    )
    try:
        doc.build(_build_story(data, modern))
    except Exception as e:
        logger.error("PDF build failed for '%s': %s", data["title"], e)
        raise PDFRenderError(str(e)) from e
    return buffer.getvalue()
