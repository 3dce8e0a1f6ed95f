"""PDF export with a server-first, local-fallback strategy.

The server endpoint is tried once. On any ApiError (wrong content type,
network failure, 403/404, ...) the CV is rendered to HTML locally and
converted with WeasyPrint. No retries.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..rendering.html import render_cv_html
from .api import ApiError
from .services import CVService

logger = logging.getLogger(__name__)

HtmlToPdf = Callable[[str], bytes]


class PDFGenerationError(Exception):
    """User-facing PDF export failure."""


@dataclass
class PDFResult:
    content: bytes
    source: str  # "server" or "client"
    filename: str

    def save(self, directory: str | Path = ".") -> Path:
        path = Path(directory) / self.filename
        path.write_bytes(self.content)
        return path


def load_weasyprint() -> HtmlToPdf:
    """HTML-to-PDF converter backed by WeasyPrint, imported on first use."""
    try:
        from weasyprint import HTML
    except (ImportError, OSError) as e:
        # OSError: WeasyPrint installed but its native libraries (pango) are missing
        logger.error("Could not load WeasyPrint: %s", e)
        raise PDFGenerationError("PDF export is unavailable: the PDF rendering library could not be loaded") from e

    def convert(html: str) -> bytes:
        return HTML(string=html).write_pdf()

    return convert


def pdf_filename(cv: dict) -> str:
    title = cv.get("title") or "resume"
    safe = re.sub(r"[^A-Za-z0-9._ -]", "_", title).strip() or "resume"
    return f"cv-{safe}.pdf"


class PDFExporter:
    def __init__(self, cv_service: CVService | None, html_to_pdf_loader: Callable[[], HtmlToPdf] = load_weasyprint):
        self.cv_service = cv_service
        self._loader = html_to_pdf_loader

    def _from_server(self, cv_id: str) -> bytes | None:
        if self.cv_service is None or not cv_id:
            return None
        try:
            return self.cv_service.download_pdf(cv_id)
        except ApiError as e:
            logger.warning("Server PDF generation failed (%s), falling back to local rendering", e.message)
            return None

    def _from_html(self, cv: dict, template: str | None) -> bytes:
        convert = self._loader()
        html = render_cv_html(cv, template)
        try:
            return convert(html)
        except Exception as e:
            logger.exception("Local PDF rendering failed")
            raise PDFGenerationError("Failed to generate PDF. Please try again.") from e

    def export(self, cv: dict, template: str | None = None) -> PDFResult:
        filename = pdf_filename(cv)
        content = self._from_server(cv.get("id") or cv.get("_id"))
        if content is not None:
            return PDFResult(content, "server", filename)
        return PDFResult(self._from_html(cv, template), "client", filename)
