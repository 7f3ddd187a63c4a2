"""
Submission pattern analysis.

Derives velocity, trend, urgency and contextual tags from an item's
submission history.
"""

import logging
import math
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from content_intelligence.models import (
    Submission,
    SubmissionPatterns,
    UrgencyAssessment,
    UrgencyLevel,
)

logger = logging.getLogger(__name__)

HIGH_VELOCITY_DAILY_SUBMISSIONS = 3
MEDIUM_VELOCITY_DAILY_SUBMISSIONS = 2
MEDIUM_VELOCITY_WEEKLY_SUBMISSIONS = 5

TREND_INCREASING_RATIO = 0.7
TREND_DECREASING_RATIO = 1.3

HIGH_URGENCY_IMPORTANCE = 7.0
MEDIUM_URGENCY_IMPORTANCE = 4.0
NOTABLE_IMPORTANCE = 2.0

URGENCY_LEVEL_SCORES: Dict[str, float] = {
    "normal": 0.5,
    "medium": 0.7,
    "high": 1.0,
}


def hours_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / 3600


def _average_interval_hours(submissions: Sequence[Submission]) -> float:
    """Mean gap in hours between consecutive submissions (sorted oldest first)."""
    if len(submissions) < 2:
        return math.inf

    gaps = [
        hours_between(previous.timestamp, current.timestamp)
        for previous, current in zip(submissions, submissions[1:])
    ]
    return sum(gaps) / len(gaps)


def analyze_submission_patterns(
    submissions: Sequence[Submission], now: Optional[datetime] = None
) -> SubmissionPatterns:
    """
    Analyze how an item has been submitted over time.

    Args:
        submissions: Submission history in any order
        now: Reference time (default: latest submission)

    Returns:
        SubmissionPatterns with velocity, trend, source counts and span
    """
    if not submissions:
        return SubmissionPatterns()

    ordered = sorted(submissions, key=lambda s: s.timestamp)
    reference = now or ordered[-1].timestamp

    last_day = sum(1 for s in ordered if 0 <= hours_between(s.timestamp, reference) <= 24)
    last_week = sum(1 for s in ordered if 0 <= hours_between(s.timestamp, reference) <= 24 * 7)

    velocity = "low"
    if last_day >= HIGH_VELOCITY_DAILY_SUBMISSIONS:
        velocity = "high"
    elif last_day >= MEDIUM_VELOCITY_DAILY_SUBMISSIONS or last_week >= MEDIUM_VELOCITY_WEEKLY_SUBMISSIONS:
        velocity = "medium"

    # Compare the pace of the newer half of the history with the older half
    trend = "stable"
    midpoint = len(ordered) // 2
    older_half, recent_half = ordered[:midpoint], ordered[midpoint:]
    if len(older_half) >= 2 and len(recent_half) >= 2:
        recent_interval = _average_interval_hours(recent_half)
        older_interval = _average_interval_hours(older_half)
        if recent_interval < older_interval * TREND_INCREASING_RATIO:
            trend = "increasing"
        elif recent_interval > older_interval * TREND_DECREASING_RATIO:
            trend = "decreasing"

    sources: Dict[str, int] = {}
    for submission in ordered:
        sources[submission.source] = sources.get(submission.source, 0) + 1

    return SubmissionPatterns(
        velocity=velocity,
        trend=trend,
        submission_sources=sources,
        total_submissions=len(ordered),
        span_hours=round(hours_between(ordered[0].timestamp, ordered[-1].timestamp), 2),
    )


def assess_urgency(importance_score: float, patterns: SubmissionPatterns) -> UrgencyAssessment:
    """Classify how time-sensitive an item looks from its importance and velocity."""
    level: UrgencyLevel = "normal"
    reasons: List[str] = []

    if importance_score >= HIGH_URGENCY_IMPORTANCE:
        level = "high"
        reasons.append("high_importance_score")
    elif importance_score >= MEDIUM_URGENCY_IMPORTANCE:
        level = "medium"
        reasons.append("elevated_importance")

    if patterns.velocity == "high":
        level = "medium" if level == "normal" else "high"
        reasons.append("high_submission_velocity")

    if patterns.trend == "increasing":
        reasons.append("increasing_attention")

    return UrgencyAssessment(level=level, reasons=reasons, should_prioritize=level != "normal")


def urgency_score(assessment: UrgencyAssessment, hint: Optional[float] = None) -> float:
    """Combine the assessed level with a precomputed urgency hint (0-1)."""
    score = URGENCY_LEVEL_SCORES[assessment.level]
    if hint is not None:
        score = max(score, hint)
    return min(1.0, score)


def generate_contextual_tags(patterns: SubmissionPatterns, importance_score: float) -> List[str]:
    """Derive contextual tags from importance and submission patterns."""
    tags: List[str] = []

    if importance_score >= HIGH_URGENCY_IMPORTANCE:
        tags.append("critical")
    elif importance_score >= MEDIUM_URGENCY_IMPORTANCE:
        tags.append("important")
    elif importance_score >= NOTABLE_IMPORTANCE:
        tags.append("notable")

    if patterns.velocity == "high":
        tags.extend(["trending", "urgent"])
    elif patterns.velocity == "medium":
        tags.append("active")

    if patterns.trend == "increasing":
        tags.append("growing_interest")
    elif patterns.trend == "decreasing":
        tags.append("declining_interest")

    source_count = len(patterns.submission_sources)
    if source_count >= 3:
        tags.append("multi_source")
    elif source_count == 1:
        tags.append("single_source")

    if patterns.span_hours <= 1:
        tags.append("rapid_fire")
    elif patterns.span_hours <= 24:
        tags.append("same_day")
    elif patterns.span_hours <= 24 * 7:
        tags.append("this_week")

    return tags
