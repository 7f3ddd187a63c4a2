"""
Importance scoring for content items.

Importance grows with repeated submission of the same content: each
resubmission adds compounding weight, a quick resubmission boosts it, and
bursts of activity add a velocity bonus. The stored score never decreases;
time decay is applied when the score is read.
"""

import logging
import math
from datetime import datetime
from typing import Optional, Sequence

from content_intelligence.intelligence.patterns import (
    analyze_submission_patterns,
    assess_urgency,
    generate_contextual_tags,
    hours_between,
    urgency_score,
)
from content_intelligence.models import ContentItem, Submission, utcnow

logger = logging.getLogger(__name__)

BASE_IMPORTANCE = 1.0
MAX_IMPORTANCE_SCORE = 10.0
RESUBMISSION_GROWTH = 1.2

RECENCY_BOOST_WINDOW_HOURS = 24.0
RECENCY_BOOST = 1.5

VELOCITY_WINDOW_HOURS = 24.0
VELOCITY_BONUS_PER_SUBMISSION = 0.42
MAX_VELOCITY_BONUS = 2.0

DECAY_HALF_LIFE_HOURS = 72.0
RECENCY_SIGNAL_HOURS = 168.0


def resubmission_multiplier(submission_count: int) -> float:
    """
    Compounding weight for repeated submissions.

    1 submission -> 1.0, 2 -> 2.0, 3 -> 3.2, 4 -> 4.64, each extra
    submission adding 1.2x the previous increment.
    """
    if submission_count <= 1:
        return BASE_IMPORTANCE
    return BASE_IMPORTANCE + sum(RESUBMISSION_GROWTH**k for k in range(submission_count - 1))


def recency_boost(ordered: Sequence[Submission]) -> float:
    """1.5 when the latest submission came within 24h of the one before it."""
    if len(ordered) < 2:
        return 1.0
    gap = hours_between(ordered[-2].timestamp, ordered[-1].timestamp)
    if gap <= RECENCY_BOOST_WINDOW_HOURS:
        return RECENCY_BOOST
    return 1.0


def velocity_bonus(ordered: Sequence[Submission]) -> float:
    """Bonus for submissions clustered in the 24h ending at the latest one."""
    if len(ordered) < 2:
        return 0.0
    latest = ordered[-1].timestamp
    in_window = sum(
        1 for s in ordered if hours_between(s.timestamp, latest) <= VELOCITY_WINDOW_HOURS
    )
    return min(MAX_VELOCITY_BONUS, VELOCITY_BONUS_PER_SUBMISSION * (in_window - 1))


def calculate_importance(submissions: Sequence[Submission]) -> float:
    """
    Calculate importance from a submission history.

    Args:
        submissions: Submission history in any order

    Returns:
        Importance between BASE_IMPORTANCE and MAX_IMPORTANCE_SCORE
    """
    if not submissions:
        return BASE_IMPORTANCE

    ordered = sorted(submissions, key=lambda s: s.timestamp)
    multiplier = resubmission_multiplier(len(ordered))
    boost = recency_boost(ordered)
    bonus = velocity_bonus(ordered)
    score = min(MAX_IMPORTANCE_SCORE, multiplier * boost + bonus)

    logger.debug(
        f"Importance calculation: submissions={len(ordered)}, "
        f"multiplier={multiplier:.2f}, boost={boost:.2f}, "
        f"velocity={bonus:.2f}, final={score:.2f}"
    )
    return score


def decayed_importance(
    stored_score: float,
    last_submitted: datetime,
    now: Optional[datetime] = None,
    half_life_hours: float = DECAY_HALF_LIFE_HOURS,
) -> float:
    """Apply exponential half-life decay to a stored importance score."""
    now = now or utcnow()
    hours = max(0.0, hours_between(last_submitted, now))
    return stored_score * math.pow(0.5, hours / half_life_hours)


def recency_signal(last_submitted: datetime, now: Optional[datetime] = None) -> float:
    """Recency in [0, 1]: exp(-hours/168) since the last submission."""
    now = now or utcnow()
    hours = max(0.0, hours_between(last_submitted, now))
    return math.exp(-hours / RECENCY_SIGNAL_HOURS)


class ImportanceEngine:
    """Applies submissions to content items and reads decayed importance."""

    def __init__(self, decay_half_life_hours: float = DECAY_HALF_LIFE_HOURS):
        self.decay_half_life_hours = decay_half_life_hours

    def initialize(self, item: ContentItem, submission: Submission) -> ContentItem:
        """Return item set up for its first submission."""
        return self._apply(item, [submission], previous_score=BASE_IMPORTANCE)

    def record_submission(self, item: ContentItem, submission: Submission) -> ContentItem:
        """
        Return a copy of item with a new submission applied.

        The stored importance is max(previous, recomputed) so it never goes
        down on resubmission.
        """
        updated = self._apply(
            item,
            [*item.submissions, submission],
            previous_score=item.importance_score,
        )
        logger.info(
            f"Resubmission recorded for {item.id}: count={updated.submission_count}, "
            f"importance {item.importance_score:.2f} -> {updated.importance_score:.2f}"
        )
        return updated

    def current_importance(self, item: ContentItem, now: Optional[datetime] = None) -> float:
        return decayed_importance(
            item.importance_score, item.last_submitted, now, self.decay_half_life_hours
        )

    def _apply(
        self, item: ContentItem, submissions: Sequence[Submission], previous_score: float
    ) -> ContentItem:
        ordered = sorted(submissions, key=lambda s: s.timestamp)
        score = max(previous_score, calculate_importance(ordered))

        patterns = analyze_submission_patterns(ordered)
        urgency = assess_urgency(score, patterns)

        return item.model_copy(
            update={
                "submissions": list(ordered),
                "submission_count": len(ordered),
                "importance_score": score,
                "first_seen": min(item.first_seen, ordered[0].timestamp),
                "last_submitted": ordered[-1].timestamp,
                "patterns": patterns,
                "urgency": urgency,
                "urgency_score": urgency_score(urgency, item.urgency_hint),
                "tags": generate_contextual_tags(patterns, score),
            }
        )
