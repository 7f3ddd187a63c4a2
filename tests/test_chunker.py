"""Tests for the boundary-aware text chunker."""

import pytest

from content_intelligence.chunker import TextChunker


def sentences(count: int) -> str:
    return " ".join(f"This is sentence number {i}." for i in range(count))


def test_short_text_single_chunk():
    """Test that text under the chunk size yields one chunk covering it."""
    chunker = TextChunker(chunk_size=100, overlap=20)
    text = "Dentist appointment Tuesday at 3pm."

    chunks = chunker.chunk("item-1", text)

    assert len(chunks) == 1
    assert chunks[0].text == text
    assert chunks[0].id == "item-1:0"
    assert (chunks[0].start, chunks[0].end) == (0, len(text))


def test_blank_text_has_no_chunks():
    chunker = TextChunker()
    assert chunker.chunk("item-1", "") == []
    assert chunker.chunk("item-1", "   \n ") == []


def test_offsets_match_text():
    chunker = TextChunker(chunk_size=100, overlap=20)
    text = sentences(30)

    for chunk in chunker.chunk("item-1", text):
        assert text[chunk.start : chunk.end] == chunk.text


def test_prefers_sentence_boundaries():
    """Test that chunks end at sentence ends when one is in reach."""
    chunker = TextChunker(chunk_size=100, overlap=20)
    chunks = chunker.chunk("item-1", sentences(30))

    assert len(chunks) > 1
    for chunk in chunks[:-1]:
        assert chunk.text.endswith(".")


def test_consecutive_chunks_overlap():
    """Test that the overlap carries whole sentences into the next chunk."""
    chunker = TextChunker(chunk_size=100, overlap=40)
    chunks = chunker.chunk("item-1", sentences(30))

    for previous, current in zip(chunks, chunks[1:]):
        assert current.start < previous.end
        assert current.start > previous.start


def test_never_splits_words():
    chunker = TextChunker(chunk_size=50, overlap=10)
    text = " ".join(["alpha", "bravo", "charlie", "delta", "echo"] * 20)

    for chunk in chunker.chunk("item-1", text):
        assert chunk.start == 0 or text[chunk.start - 1].isspace()
        assert chunk.end == len(text) or text[chunk.end].isspace()


def test_chunk_cap_keeps_remaining_text():
    """Test that the last permitted chunk absorbs the rest of the text."""
    chunker = TextChunker(chunk_size=100, overlap=0, max_chunks=3)
    text = sentences(200)

    chunks = chunker.chunk("item-1", text)

    assert len(chunks) == 3
    assert chunks[-1].end == len(text)
    assert [chunk.index for chunk in chunks] == [0, 1, 2]


def test_chunking_is_deterministic():
    chunker = TextChunker(chunk_size=80, overlap=15)
    text = sentences(25)
    assert chunker.chunk("a", text) == chunker.chunk("a", text)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"chunk_size": 0},
        {"chunk_size": 100, "overlap": 100},
        {"chunk_size": 100, "overlap": -1},
        {"max_chunks": 0},
    ],
)
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        TextChunker(**kwargs)


def test_prefers_paragraph_boundaries():
    chunker = TextChunker(chunk_size=50, overlap=0)
    text = "First paragraph about the dentist.\n\nSecond paragraph about milk and eggs."

    chunks = chunker.chunk("item-1", text)

    assert [chunk.text for chunk in chunks] == [
        "First paragraph about the dentist.",
        "Second paragraph about milk and eggs.",
    ]
    assert chunks[1].start == text.index("Second")
