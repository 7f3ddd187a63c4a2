"""
Scoring components: importance, urgency and submission patterns.
"""

from content_intelligence.intelligence.importance import (
    ImportanceEngine,
    calculate_importance,
    decayed_importance,
    recency_signal,
    resubmission_multiplier,
)
from content_intelligence.intelligence.patterns import (
    analyze_submission_patterns,
    assess_urgency,
    generate_contextual_tags,
    urgency_score,
)

__all__ = [
    "ImportanceEngine",
    "calculate_importance",
    "decayed_importance",
    "recency_signal",
    "resubmission_multiplier",
    "analyze_submission_patterns",
    "assess_urgency",
    "generate_contextual_tags",
    "urgency_score",
]
