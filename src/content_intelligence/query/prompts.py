"""
Templated responses for the RAG query processor.

Used whenever the completion provider is not (or cannot be) called.
"""

NO_RESULTS_RESPONSE = (
    "I couldn't find any content matching your query. "
    "Try rephrasing or using different keywords."
)

EMPTY_CORPUS_RESPONSE = (
    "There is no saved content yet. Add some notes, files or links and ask again."
)

DEGRADED_RESPONSE = (
    "Answer generation is temporarily degraded. "
    "Here are the {count} most relevant saved items:\n{listing}"
)

DEGRADED_LISTING_LINE = "- [{position}] {preview}"
