"""
Keyword-based query analysis.

Classifies a query as recency-seeking, importance-seeking or general
semantic, and extracts the content kinds and time window it asks about.
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

from content_intelligence.models import ContentKind, QueryAnalysis, QueryIntent

logger = logging.getLogger(__name__)


def _phrases(*words: str) -> re.Pattern:
    return re.compile(r"\b(" + "|".join(re.escape(word) for word in words) + r")\b", re.IGNORECASE)


URGENCY_PATTERN = _phrases(
    "urgent", "important", "priority", "critical", "asap", "immediately",
    "deadline", "due", "reminder", "alert",
)
TEMPORAL_PATTERN = _phrases(
    "lately", "recently", "recent", "latest", "today", "yesterday", "this week",
    "last week", "this month", "last month", "current", "currently",
)
TREND_PATTERN = _phrases(
    "thinking about", "focused on", "working on", "interested in", "trending",
    "popular", "frequent", "frequently", "repeated", "multiple times", "keep coming back",
)

KIND_PATTERNS: Sequence[Tuple[ContentKind, re.Pattern]] = (
    ("file", _phrases("file", "files", "document", "documents", "pdf", "pdfs", "image", "images", "photo", "photos")),
    ("url", _phrases("link", "links", "website", "websites", "url", "urls", "article", "articles", "page", "pages")),
    ("text", _phrases("note", "notes", "thought", "thoughts", "idea", "ideas", "memo", "memos")),
)

# First matching phrase wins
TIME_WINDOWS: Sequence[Tuple[re.Pattern, float]] = (
    (_phrases("today", "this day"), 24.0),
    (_phrases("yesterday"), 48.0),
    (_phrases("last week"), 24.0 * 14),
    (_phrases("this week", "past week", "recently", "lately", "recent"), 24.0 * 7),
    (_phrases("this month", "past month"), 24.0 * 30),
)

QUESTION_WORDS = ("what", "how", "when", "where", "why", "which", "who")


class QueryIntentDetector:
    """Rule-based query analyzer (no provider calls)."""

    def analyze(self, query: str, intent_hint: Optional[QueryIntent] = None) -> QueryAnalysis:
        """
        Analyze a query.

        Args:
            query: Query text
            intent_hint: Caller-supplied intent, overrides detection

        Returns:
            QueryAnalysis with intent, requested kinds and time window
        """
        intent = intent_hint or self.detect_intent(query)
        analysis = QueryAnalysis(
            original_query=query,
            intent=intent,
            kinds=self.extract_kinds(query),
            time_window_hours=self.extract_time_window(query),
            is_question=self.is_question(query),
        )
        logger.debug(
            f"Query analysis: intent={analysis.intent} (hint={intent_hint}), "
            f"kinds={analysis.kinds}, window={analysis.time_window_hours}"
        )
        return analysis

    def detect_intent(self, query: str) -> QueryIntent:
        if URGENCY_PATTERN.search(query):
            return "importance"
        if TEMPORAL_PATTERN.search(query):
            return "recency"
        if TREND_PATTERN.search(query):
            return "importance"
        return "semantic"

    def extract_kinds(self, query: str) -> List[ContentKind]:
        return [kind for kind, pattern in KIND_PATTERNS if pattern.search(query)]

    def extract_time_window(self, query: str) -> Optional[float]:
        for pattern, hours in TIME_WINDOWS:
            if pattern.search(query):
                return hours
        return None

    def is_question(self, query: str) -> bool:
        lowered = query.strip().lower()
        return "?" in lowered or lowered.startswith(QUESTION_WORDS)


def generate_suggestions(analysis: QueryAnalysis) -> List[str]:
    """Alternative queries to offer when nothing relevant was found."""
    suggestions: List[str] = []

    if analysis.time_window_hours is not None:
        suggestions.append('Try a wider time range, e.g. "what did I save this month?"')
    elif analysis.intent == "recency":
        suggestions.append('Try: "what did I work on this week?"')

    if analysis.intent == "importance":
        suggestions.append('Try: "show me important items"')

    if analysis.kinds:
        suggestions.append("Try searching across all content types")

    suggestions.append('Try: "what am I thinking about lately?"')
    suggestions.append('Try: "show me trending topics"')
    return suggestions
