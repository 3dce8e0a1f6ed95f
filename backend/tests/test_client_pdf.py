"""Tests for the client PDF exporter (server first, local fallback)."""

import builtins
from unittest.mock import MagicMock

import pytest

from cvbuilder.client.api import ApiError
from cvbuilder.client.pdf import PDFExporter, PDFGenerationError, load_weasyprint, pdf_filename

CV = {"id": "cv-1", "title": "Backend CV", "template": "modern", "personalInfo": {"fullName": "Jane Doe"}}


def _loader(converted: list):
    def convert(html: str) -> bytes:
        converted.append(html)
        return b"%PDF-local"

    return lambda: convert


class TestPdfFilename:
    def test_safe_title(self):
        assert pdf_filename({"title": "My CV: 2024/v2"}) == "cv-My CV_ 2024_v2.pdf"

    def test_default_title(self):
        assert pdf_filename({}) == "cv-resume.pdf"


class TestPDFExporter:
    def test_uses_server_pdf(self):
        service = MagicMock()
        service.download_pdf.return_value = b"%PDF-server"
        converted = []

        result = PDFExporter(service, _loader(converted)).export(CV)

        assert result.source == "server"
        assert result.content == b"%PDF-server"
        assert result.filename == "cv-Backend CV.pdf"
        assert converted == []
        service.download_pdf.assert_called_once_with("cv-1")

    def test_falls_back_on_api_error(self):
        service = MagicMock()
        service.download_pdf.side_effect = ApiError("Expected a PDF but got 'text/html'", status=200)
        converted = []

        result = PDFExporter(service, _loader(converted)).export(CV)

        assert result.source == "client"
        assert result.content == b"%PDF-local"
        assert "Jane Doe" in converted[0]
        service.download_pdf.assert_called_once()

    def test_unsaved_cv_renders_locally(self):
        service = MagicMock()
        converted = []
        result = PDFExporter(service, _loader(converted)).export({"title": "Draft"}, template="classic")
        assert result.source == "client"
        assert 'class="classic"' in converted[0]
        service.download_pdf.assert_not_called()

    def test_conversion_failure(self):
        def broken():
            def convert(html):
                raise RuntimeError("pango exploded")

            return convert

        with pytest.raises(PDFGenerationError, match="Failed to generate PDF"):
            PDFExporter(None, broken).export(CV)

    def test_missing_library(self):
        def unavailable():
            raise PDFGenerationError("PDF export is unavailable")

        service = MagicMock()
        service.download_pdf.side_effect = ApiError("No response from server")
        with pytest.raises(PDFGenerationError, match="unavailable"):
            PDFExporter(service, unavailable).export(CV)

    def test_save(self, tmp_path):
        service = MagicMock()
        service.download_pdf.return_value = b"%PDF-server"
        path = PDFExporter(service, _loader([])).export(CV).save(tmp_path)
        assert path.name == "cv-Backend CV.pdf"
        assert path.read_bytes() == b"%PDF-server"


class TestLoadWeasyprint:
    def test_import_failure_is_user_facing(self, monkeypatch):
        real_import = builtins.__import__

        def fake_import(name, *args, **kwargs):
            if name == "weasyprint":
                raise ImportError("no weasyprint")
            return real_import(name, *args, **kwargs)

        monkeypatch.setattr(builtins, "__import__", fake_import)
        with pytest.raises(PDFGenerationError, match="could not be loaded"):
            load_weasyprint()
