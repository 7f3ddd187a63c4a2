"""
Content Pipeline Demo

Saves a few notes (one of them several times), then asks questions over
them. Repeated submissions raise importance; the answer cites its sources.

Requires OPENAI_API_KEY for embeddings and a local Ollama for answers.
"""

import asyncio
import logging

from casual_llm import ModelConfig, Provider, create_provider

from content_intelligence import ContentPipeline, QueryOptions
from content_intelligence.completion import LLMCompletionProvider
from content_intelligence.embeddings import OpenAIEmbedding


async def main():
    logging.basicConfig(level=logging.INFO)
    print("=== Content Pipeline Demo ===\n")

    llm_provider = create_provider(
        ModelConfig(
            name="qwen2.5:7b-instruct",
            provider=Provider.OLLAMA,
            base_url="http://localhost:11434",
            temperature=0.3,
        )
    )
    pipeline = ContentPipeline(
        embedder=OpenAIEmbedding(model="text-embedding-3-small"),
        completion=LLMCompletionProvider(llm_provider, model_name="qwen2.5:7b-instruct"),
    )

    notes = [
        ("Dentist appointment Tuesday at 3pm", "text"),
        ("Buy milk, eggs and bread", "text"),
        ("Dentist appointment Tuesday at 3pm", "text"),
        ("https://example.com/sourdough-guide", "url"),
        ("dentist appointment tuesday at 3pm!", "text"),
    ]
    for text, kind in notes:
        item = await pipeline.ingest(text, kind=kind, channel="demo")
        print(
            f"Saved {item.id[:8]}: count={item.submission_count}, "
            f"importance={item.importance_score:.2f}, tags={item.tags}"
        )

    print()
    for query in ("what's important right now?", "what did I save about bread?"):
        result = await pipeline.query(query, QueryOptions(limit=3))
        print(f"Q: {query}")
        print(f"   intent={result.intent}, fallback={result.used_fallback}")
        print(f"A: {result.answer}")
        for source in result.sources:
            print(f"   - {source.text[:60]}")
        print()


if __name__ == "__main__":
    asyncio.run(main())
