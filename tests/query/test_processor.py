"""Tests for the RAG query state machine."""

import asyncio

import pytest

from content_intelligence import ContentPipeline, PipelineSettings, QueryOptions, ValidationError
from content_intelligence.completion.protocol import PromptContext
from content_intelligence.query.prompts import EMPTY_CORPUS_RESPONSE, NO_RESULTS_RESPONSE

ANSWERED_STATES = [
    "ReceivedQuery",
    "IntentDetected",
    "Retrieved",
    "ContextAssembled",
    "AnswerSynthesized",
    "Done",
]


async def seed(pipeline, now):
    dentist = await pipeline.ingest("Dentist appointment Tuesday at 3pm", now=now)
    milk = await pipeline.ingest("Buy milk and eggs on the way home", now=now)
    return dentist, milk


@pytest.mark.asyncio
async def test_empty_corpus_falls_back_without_provider_calls(pipeline, embedder, completion):
    """Test that an empty corpus never reaches the providers."""
    result = await pipeline.query("what am I thinking about lately?")

    assert result.used_fallback
    assert not result.degraded
    assert result.answer == EMPTY_CORPUS_RESPONSE
    assert result.states == ["ReceivedQuery", "IntentDetected", "Fallback"]
    assert result.sources == []
    assert result.suggestions
    assert embedder.embed_query_calls == 0
    completion.complete.assert_not_awaited()


@pytest.mark.asyncio
async def test_answered_query(pipeline, completion, now):
    dentist, _ = await seed(pipeline, now)

    result = await pipeline.query("when is the dentist appointment?", now=now)

    assert not result.used_fallback
    assert result.states == ANSWERED_STATES
    assert result.answer == "You saved a note about the dentist."
    assert result.sources[0].id == dentist.id
    assert result.ranked[0].item.id == dentist.id
    assert result.intent == "semantic"

    completion.complete.assert_awaited_once()
    prompt_context = completion.complete.await_args.args[0]
    assert isinstance(prompt_context, PromptContext)
    assert prompt_context.query == "when is the dentist appointment?"
    assert f"id={dentist.id}" in prompt_context.context
    assert prompt_context.source_ids[0] == dentist.id


@pytest.mark.asyncio
async def test_no_relevant_result(embedder, completion, now):
    """Test that nothing above the threshold ends in Fallback, not a weak answer."""
    settings = PipelineSettings(provider_backoff_seconds=0, small_corpus_size=0)
    pipeline = ContentPipeline(embedder=embedder, completion=completion, settings=settings)
    await seed(pipeline, now)

    result = await pipeline.query(
        "pasta recipe with basil", QueryOptions(threshold=0.99), now=now
    )

    assert result.used_fallback
    assert not result.degraded
    assert result.answer == NO_RESULTS_RESPONSE
    assert result.states[-1] == "Fallback"
    assert "Retrieved" not in result.states
    assert result.suggestions
    completion.complete.assert_not_awaited()


@pytest.mark.asyncio
async def test_kind_filter_without_matches_falls_back(pipeline, completion, now):
    await seed(pipeline, now)

    result = await pipeline.query("links about the dentist appointment", now=now)

    assert result.used_fallback
    assert result.answer == NO_RESULTS_RESPONSE
    completion.complete.assert_not_awaited()


@pytest.mark.asyncio
async def test_query_embedding_failure_degrades_to_keywords(
    pipeline, failing_embedder, completion, settings, now
):
    dentist, _ = await seed(pipeline, now)
    pipeline.processor.embedder = failing_embedder

    result = await pipeline.query("dentist appointment", now=now)

    assert result.used_fallback
    assert result.degraded
    assert [item.id for item in result.sources] == [dentist.id]
    assert result.answer.startswith("Answer generation is temporarily degraded")
    assert "Dentist appointment" in result.answer
    assert failing_embedder.embed_query_calls == settings.provider_max_attempts
    completion.complete.assert_not_awaited()


@pytest.mark.asyncio
async def test_completion_failure_degrades(pipeline, completion, settings, now):
    dentist, _ = await seed(pipeline, now)
    completion.complete.side_effect = RuntimeError("model overloaded")

    result = await pipeline.query("when is the dentist appointment?", now=now)

    assert result.used_fallback
    assert result.degraded
    assert result.states == [
        "ReceivedQuery",
        "IntentDetected",
        "Retrieved",
        "ContextAssembled",
        "Fallback",
    ]
    assert result.sources[0].id == dentist.id
    assert result.suggestions == []
    assert completion.complete.await_count == settings.provider_max_attempts


@pytest.mark.asyncio
@pytest.mark.parametrize("empty", ["", "   \n"])
async def test_empty_completion_degrades(pipeline, completion, now, empty):
    dentist, _ = await seed(pipeline, now)
    completion.complete.return_value = empty

    result = await pipeline.query("when is the dentist appointment?", now=now)

    assert result.used_fallback
    assert result.degraded
    assert result.states[-1] == "Fallback"
    assert result.answer.strip()
    assert result.sources[0].id == dentist.id


@pytest.mark.asyncio
async def test_completion_timeout_is_bounded(embedder, completion, now):
    """Test that a hanging completion provider ends in Fallback."""

    async def hang(prompt_context):
        await asyncio.sleep(5)
        return "too late"

    settings = PipelineSettings(
        provider_backoff_seconds=0, completion_timeout_seconds=0.05, provider_max_attempts=2
    )
    completion.complete.side_effect = hang
    pipeline = ContentPipeline(embedder=embedder, completion=completion, settings=settings)
    await seed(pipeline, now)

    result = await pipeline.query("when is the dentist appointment?", now=now)

    assert result.used_fallback
    assert result.degraded
    assert completion.complete.await_count == 2


@pytest.mark.asyncio
async def test_intent_hint(pipeline, now):
    await seed(pipeline, now)

    result = await pipeline.query(
        "dentist appointment", QueryOptions(intent_hint="recency"), now=now
    )

    assert result.intent == "recency"


@pytest.mark.asyncio
async def test_limit(pipeline, now):
    await seed(pipeline, now)

    result = await pipeline.query("dentist appointment", QueryOptions(limit=1), now=now)

    assert len(result.sources) == 1


@pytest.mark.asyncio
async def test_threshold_calibration(pipeline, settings, now):
    processor = pipeline.processor
    await seed(pipeline, now)
    assert processor.calibrate_threshold(None) == settings.small_corpus_threshold
    assert processor.calibrate_threshold(0.01) == 0.01

    for n in range(settings.small_corpus_size):
        await pipeline.ingest(f"extra note number {n} about gardening", now=now)
    assert processor.calibrate_threshold(None) == settings.similarity_threshold
    assert processor.calibrate_threshold(0.8) == 0.8


@pytest.mark.asyncio
async def test_invalid_queries(pipeline, settings):
    with pytest.raises(ValidationError):
        await pipeline.query("   ")
    with pytest.raises(ValidationError):
        await pipeline.query("x" * (settings.max_content_chars + 1))
