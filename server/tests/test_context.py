from types import SimpleNamespace

from services.context import (
    CONTEXT_SEPARATOR, assemble_chunk_context, assemble_document_context, truncate
)
from services.ranking import RankedChunk


def _ranked(document_id, content, score=0.5):
    return RankedChunk(chunk=SimpleNamespace(document_id=document_id, content=content), score=score)


def _doc(name, text):
    return SimpleNamespace(name=name, extracted_text=text)


def test_truncate_marks_cut_text():
    assert truncate("abcdef", 10) == "abcdef"
    assert truncate("abcdef", 3) == "abc... [truncated]"


def test_chunk_context_numbers_and_attributes_chunks():
    ranked = [_ranked("d1", "Cells make energy."), _ranked("d2", "Wars change borders.")]

    context = assemble_chunk_context(ranked, {"d1": "Biology", "d2": "History"})

    blocks = context.split(CONTEXT_SEPARATOR)
    assert blocks == [
        "Chunk 1 (doc: Biology):\nCells make energy.",
        "Chunk 2 (doc: History):\nWars change borders.",
    ]


def test_chunk_context_falls_back_to_document_id():
    context = assemble_chunk_context([_ranked("d9", "text")], {})
    assert context == "Chunk 1 (doc: d9):\ntext"


def test_document_context_skips_empty_and_caps_documents():
    docs = [_doc("empty", "   ")] + [_doc(f"doc{i}", f"text {i}") for i in range(7)]

    context, names = assemble_document_context(docs, max_documents=5, max_chars=100)

    assert names == ["doc0", "doc1", "doc2", "doc3", "doc4"]
    assert context.startswith("Document 1: doc0\ntext 0")
    assert "empty" not in context
    assert len(context.split(CONTEXT_SEPARATOR)) == 5


def test_document_context_truncates_long_text():
    context, _ = assemble_document_context([_doc("long", "x" * 50)], max_chars=20)
    assert context == "Document 1: long\n" + "x" * 20 + "... [truncated]"


def test_document_context_empty_when_no_text():
    assert assemble_document_context([_doc("a", None)]) == ("", [])
