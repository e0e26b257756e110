import logging
import zipfile
from io import BytesIO

from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from core import config
from core.errors import ExtractionError

logger = logging.getLogger(__name__)

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def check_upload(file_bytes: bytes, filename: str) -> None:
    if not filename or not filename.lower().endswith(".docx"):
        raise ExtractionError(
            f"Unsupported file type: {filename or 'unnamed file'}. Please upload a Word (.docx) document."
        )
    if not file_bytes:
        raise ExtractionError("Resume file is empty")
    if len(file_bytes) > config.MAX_UPLOAD_BYTES:
        limit_mb = config.MAX_UPLOAD_BYTES // (1024 * 1024)
        raise ExtractionError(f"File size too large. Maximum size is {limit_mb}MB.")


def extract_text(file_bytes: bytes, filename: str) -> str:
    """Plain text of a .docx resume: body paragraphs, then table cells."""
    check_upload(file_bytes, filename)

    try:
        doc = Document(BytesIO(file_bytes))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        logger.warning("Could not open %s as a Word document: %s", filename, e)
        raise ExtractionError("Error processing resume file") from e

    parts = [p.text.strip() for p in doc.paragraphs if p.text and p.text.strip()]

    for table in doc.tables:
        for row in table.rows:
            cells = []
            for cell in row.cells:
                text = cell.text.strip()
                # merged cells repeat across the row
                if text and (not cells or cells[-1] != text):
                    cells.append(text)
            if cells:
                parts.append(" | ".join(cells))

    text = "\n".join(parts)
    if not text.strip():
        raise ExtractionError("Could not extract any text from the resume")

    logger.info("Extracted %d characters from %s", len(text), filename)
    return text
