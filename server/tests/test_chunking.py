import pytest

from utils.chunking import chunk_text, normalize_text


def _sentences(count):
    return " ".join(f"Sentence number {i} is about topic {i % 7}." for i in range(count))


def test_empty_and_blank_text_yield_no_chunks():
    assert chunk_text("") == []
    assert chunk_text("   \n\t  ") == []
    assert chunk_text(None) == []


def test_whitespace_is_collapsed():
    assert normalize_text("  a\n\n b\t\tc  ") == "a b c"
    assert chunk_text("one\n\ntwo   three") == ["one two three"]


def test_short_text_is_a_single_chunk():
    text = "A short note about mitochondria."
    assert chunk_text(text, max_chars=1200, overlap=150) == [text]


def test_three_thousand_characters_make_three_chunks():
    text = "abcdefghij" * 300

    chunks = chunk_text(text, max_chars=1200, overlap=150)

    assert len(chunks) == 3
    assert chunks[0] == text[:1200]
    assert chunks[1] == text[1050:2250]
    assert chunks[2] == text[2100:]


def test_cut_snaps_back_to_a_period():
    text = "A" * 900 + "." + "B" * 600

    chunks = chunk_text(text, max_chars=1200, overlap=150)

    assert chunks[0] == "A" * 900 + "."
    assert chunks[1] == text[751:]


def test_period_too_early_in_window_is_ignored():
    text = "A" * 500 + "." + "B" * 1000

    chunks = chunk_text(text, max_chars=1200, overlap=150)

    assert chunks[0] == text[:1200]


def test_chunks_never_exceed_max_chars():
    for chunk in chunk_text(_sentences(400), max_chars=300, overlap=40):
        assert len(chunk) <= 300


def test_chunks_cover_the_whole_text():
    text = normalize_text(_sentences(300))
    chunks = chunk_text(text, max_chars=500, overlap=60)

    position = 0
    covered_to = 0
    for chunk in chunks:
        start = text.find(chunk, position)
        assert start != -1
        assert start <= covered_to
        covered_to = start + len(chunk)
        position = start + 1

    assert covered_to == len(text)


def test_chunking_is_deterministic():
    text = _sentences(200)
    assert chunk_text(text, 400, 50) == chunk_text(text, 400, 50)


def test_overlap_not_smaller_than_max_chars_still_terminates():
    text = "".join(str(i % 10) for i in range(100))

    chunks = chunk_text(text, max_chars=10, overlap=50)

    assert all(len(c) <= 10 for c in chunks)
    assert chunks[-1] == text[-10:]
    assert len(chunks) <= 100


def test_max_chars_must_be_positive():
    with pytest.raises(ValueError):
        chunk_text("text", max_chars=0)
