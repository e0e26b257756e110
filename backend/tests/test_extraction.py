"""Resume text extraction from uploaded Word documents."""

import pytest

from core import config
from core.errors import ExtractionError
from resume.parser import extract_text


def test_paragraphs_are_extracted(make_docx):
    data = make_docx("Ada Lovelace", "", "Mathematics tutor, six years")

    assert extract_text(data, "resume.docx") == "Ada Lovelace\nMathematics tutor, six years"


def test_table_cells_are_extracted(make_docx):
    data = make_docx("Experience", table=[["2019-2024", "Tutor"], ["2015-2019", "Teaching assistant"]])

    text = extract_text(data, "resume.docx")

    assert "Experience" in text
    assert "2019-2024 | Tutor" in text
    assert "2015-2019 | Teaching assistant" in text


def test_extension_check_is_case_insensitive(make_docx):
    assert extract_text(make_docx("Hello"), "RESUME.DOCX") == "Hello"


@pytest.mark.parametrize("filename", ["resume.pdf", "resume.doc", "resume", ""])
def test_only_docx_is_accepted(make_docx, filename):
    with pytest.raises(ExtractionError):
        extract_text(make_docx("Hello"), filename)


def test_empty_upload():
    with pytest.raises(ExtractionError):
        extract_text(b"", "resume.docx")


def test_oversized_upload(make_docx, monkeypatch):
    data = make_docx("Hello")
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", len(data) - 1)

    with pytest.raises(ExtractionError) as exc_info:
        extract_text(data, "resume.docx")
    assert "too large" in exc_info.value.message


def test_corrupt_document():
    with pytest.raises(ExtractionError):
        extract_text(b"this is not a zip archive", "resume.docx")


def test_document_without_text(make_docx):
    with pytest.raises(ExtractionError):
        extract_text(make_docx("   "), "resume.docx")
