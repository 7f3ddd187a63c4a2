import uuid
from datetime import datetime, timezone
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ContentKind = Literal["text", "file", "url"]
VelocityLevel = Literal["none", "low", "medium", "high"]
TrendDirection = Literal["stable", "increasing", "decreasing"]
UrgencyLevel = Literal["normal", "medium", "high"]
EmbeddingStatus = Literal["indexed", "pending"]
QueryIntent = Literal["recency", "importance", "semantic"]
QueryState = Literal[
    "ReceivedQuery",
    "IntentDetected",
    "Retrieved",
    "ContextAssembled",
    "AnswerSynthesized",
    "Done",
    "Fallback",
]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TextSource(BaseModel):
    kind: Literal["text"] = "text"


class FileSource(BaseModel):
    kind: Literal["file"] = "file"
    file_name: Optional[str] = None
    file_type: Optional[str] = None


class UrlSource(BaseModel):
    kind: Literal["url"] = "url"
    url: Optional[str] = None
    domain: Optional[str] = None


ContentSource = Annotated[Union[TextSource, FileSource, UrlSource], Field(discriminator="kind")]


class Chunk(BaseModel):
    """A bounded segment of an item's text, the unit of embedding and retrieval."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    index: int = Field(..., ge=0)
    text: str
    start: int = Field(..., ge=0, description="Offset of the segment in the cleaned text")
    end: int = Field(..., ge=0)
    embedding: Optional[List[float]] = None

    @property
    def id(self) -> str:
        return f"{self.item_id}:{self.index}"


class Submission(BaseModel):
    timestamp: datetime
    source: str = "unknown"


class SubmissionPatterns(BaseModel):
    velocity: VelocityLevel = "none"
    trend: TrendDirection = "stable"
    submission_sources: Dict[str, int] = Field(default_factory=dict)
    total_submissions: int = 0
    span_hours: float = 0.0


class UrgencyAssessment(BaseModel):
    level: UrgencyLevel = "normal"
    reasons: List[str] = Field(default_factory=list)
    should_prioritize: bool = False


class ContentItem(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source: ContentSource = Field(default_factory=TextSource)
    text: str
    chunks: List[Chunk] = Field(default_factory=list)
    fingerprint: str

    submission_count: int = Field(default=1, ge=1)
    importance_score: float = Field(
        default=1.0, description="Importance as of the last submission (decay applied at read time)"
    )
    urgency_score: float = Field(default=0.5, ge=0.0, le=1.0)
    urgency_hint: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    urgency: UrgencyAssessment = Field(default_factory=UrgencyAssessment)

    first_seen: datetime = Field(default_factory=utcnow)
    last_submitted: datetime = Field(default_factory=utcnow)
    submissions: List[Submission] = Field(default_factory=list)
    patterns: SubmissionPatterns = Field(default_factory=SubmissionPatterns)
    tags: List[str] = Field(default_factory=list, description="Contextual tags")
    embedding_status: EmbeddingStatus = "pending"

    @property
    def kind(self) -> ContentKind:
        return self.source.kind


class QueryOptions(BaseModel):
    limit: int = Field(default=5, ge=1, le=50)
    threshold: Optional[float] = Field(
        default=None, ge=-1.0, le=1.0, description="Minimum cosine similarity; None uses settings"
    )
    intent_hint: Optional[QueryIntent] = None


class QueryAnalysis(BaseModel):
    original_query: str
    intent: QueryIntent = "semantic"
    kinds: List[ContentKind] = Field(default_factory=list)
    time_window_hours: Optional[float] = None
    is_question: bool = False


class RankingSignals(BaseModel):
    semantic: float
    importance: float
    urgency: float
    recency: float


class RankedItem(BaseModel):
    item: ContentItem
    composite_score: float
    best_chunk: Chunk
    signals: RankingSignals


class QueryResult(BaseModel):
    answer: str
    sources: List[ContentItem] = Field(default_factory=list)
    used_fallback: bool = False
    degraded: bool = False
    intent: QueryIntent = "semantic"
    states: List[QueryState] = Field(default_factory=list)
    ranked: List[RankedItem] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
