import io
import zipfile

import pytest
from PyPDF2 import PdfWriter

from core.errors import BadRequest, EmptyInput
from models.document import STATUS_COMPLETED, STATUS_ERROR
from services import documents
from services.documents import create_document, update_text
from services.extraction import ExtractionError, decode_text, extract_text, extract_text_from_docx


def make_docx(*paragraphs):
    runs = "".join(f"<w:p><w:r><w:t>{text}</w:t></w:r></w:p>" for text in paragraphs)
    xml = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
        f"<w:body>{runs}<w:p/></w:body></w:document>"
    )
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("word/document.xml", xml)
    return buffer.getvalue()


def make_blank_pdf():
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def test_docx_paragraphs_are_extracted():
    content = make_docx("Cells need energy.", "Mitochondria provide it.")
    assert extract_text_from_docx(content) == "Cells need energy.\n\nMitochondria provide it."


def test_broken_docx_is_an_extraction_error():
    with pytest.raises(ExtractionError):
        extract_text_from_docx(b"PK not really a zip")


def test_unreadable_pdf_is_an_extraction_error():
    with pytest.raises(ExtractionError):
        extract_text(b"this is not a pdf at all", "scan.pdf")


def test_blank_pdf_has_no_text():
    assert extract_text(make_blank_pdf(), "blank.pdf") == ""


def test_text_falls_back_to_latin1():
    assert decode_text("Café notes".encode("latin-1")) == "Café notes"


def test_empty_file_is_empty_input():
    with pytest.raises(EmptyInput):
        extract_text(b"   ", "notes.txt")


async def test_unsupported_extension_is_rejected(session):
    with pytest.raises(BadRequest):
        await create_document(session, "alice", "photo.png", b"\x89PNG")


async def test_oversized_file_is_rejected(session, monkeypatch):
    monkeypatch.setattr(documents, "MAX_FILE_SIZE_MB", 0)

    with pytest.raises(BadRequest):
        await create_document(session, "alice", "notes.txt", b"some text")


async def test_pdf_without_text_ends_in_error(session):
    doc = await create_document(session, "alice", "blank.pdf", make_blank_pdf())

    assert doc.status == STATUS_ERROR
    assert doc.error_message == "No text could be extracted"
    assert doc.processed_at is not None


async def test_reupload_retries_failed_extraction(session, monkeypatch):
    content = b"Photosynthesis turns light into sugar."
    attempts = []

    def flaky_extract(data, filename):
        attempts.append(filename)
        if len(attempts) == 1:
            raise ExtractionError("decoder crashed")
        return data.decode()

    monkeypatch.setattr(documents, "extract_text", flaky_extract)

    failed = await create_document(session, "alice", "bio.txt", content)
    assert failed.status == STATUS_ERROR
    assert failed.error_message == "decoder crashed"

    retried = await create_document(session, "alice", "bio.txt", content)

    assert retried.id == failed.id
    assert retried.status == STATUS_COMPLETED
    assert retried.error_message is None
    assert retried.extracted_text == "Photosynthesis turns light into sugar."
    assert await documents.count_documents(session, "alice") == 1


async def test_completed_upload_is_not_extracted_again(session, monkeypatch):
    content = b"Algebra basics."
    first = await create_document(session, "alice", "math.txt", content)

    def fail(data, filename):
        raise AssertionError("extraction should not run")

    monkeypatch.setattr(documents, "extract_text", fail)
    second = await create_document(session, "alice", "math.txt", content)

    assert second.id == first.id


async def test_text_edit_repairs_errored_document(session, add_document):
    doc = await add_document(text="", status=STATUS_ERROR)

    updated = await update_text(session, "alice", doc.id, "Typed-in notes on the revolution.")

    assert updated.status == STATUS_COMPLETED
    assert updated.error_message is None
