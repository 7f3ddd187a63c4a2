"""Tests for the sentence-transformers embedding adapter (model loading mocked)."""

from unittest.mock import Mock

import pytest


@pytest.fixture
def fake_model(monkeypatch):
    sentence_transformers = pytest.importorskip("sentence_transformers")

    model = Mock()
    model.get_sentence_embedding_dimension.return_value = 4
    model.encode.side_effect = lambda texts, **kwargs: Mock(
        tolist=Mock(return_value=[[0.5] * 4 for _ in texts])
    )
    monkeypatch.setattr(sentence_transformers, "SentenceTransformer", Mock(return_value=model))
    return model


@pytest.fixture
def embedder(fake_model):
    from content_intelligence.embeddings import SentenceTransformerEmbedding

    return SentenceTransformerEmbedding(
        model_name="intfloat/e5-small-v2",
        device="cpu",
        document_prefix="passage: ",
        query_prefix="query: ",
    )


def test_model_loading(embedder):
    assert embedder.model_name == "intfloat/e5-small-v2"
    assert embedder.dimension == 4


@pytest.mark.asyncio
async def test_prefixes_applied(embedder, fake_model):
    """Test that documents and queries get their own prefixes."""
    await embedder.embed_document("I live in London")
    assert fake_model.encode.call_args.args[0] == ["passage: I live in London"]

    vector = await embedder.embed_query("Where do I live?")
    assert fake_model.encode.call_args.args[0] == ["query: Where do I live?"]
    assert vector == [0.5] * 4


@pytest.mark.asyncio
async def test_embed_documents(embedder, fake_model):
    vectors = await embedder.embed_documents(["one", "two"], batch_size=8)

    assert len(vectors) == 2
    assert fake_model.encode.call_args.kwargs["batch_size"] == 8
    assert fake_model.encode.call_args.kwargs["normalize_embeddings"] is True


@pytest.mark.asyncio
async def test_empty_text_validation(embedder):
    with pytest.raises(ValueError):
        await embedder.embed_document("")
    with pytest.raises(ValueError):
        await embedder.embed_documents(["ok", " "])
