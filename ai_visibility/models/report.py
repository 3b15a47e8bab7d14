"""
Report data model for AI visibility analysis.

Inputs (business profile, generated queries) and per-call outputs (provider
responses, analyses) are frozen; the Report itself is the only object whose
state changes during a run.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class ReportStatus(str, Enum):
    """Report lifecycle status"""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ActionStatus(str, Enum):
    """Priority action lifecycle status"""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DISMISSED = "dismissed"


class ActionPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ImpactLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EffortLevel(str, Enum):
    QUICK = "quick"
    MODERATE = "moderate"
    EXTENSIVE = "extensive"


class SeverityLevel(str, Enum):
    MODERATE = "moderate"
    SIGNIFICANT = "significant"
    CRITICAL = "critical"


class GapType(str, Enum):
    STRUCTURAL = "structural"
    THEMATIC = "thematic"
    CRITICAL_TOPIC = "critical_topic"
    SIGNIFICANT_TOPIC = "significant_topic"


class QueryIntent(str, Enum):
    DISCOVERY = "discovery"
    COMPARISON = "comparison"
    SPECIFIC = "specific"
    REVIEWS = "reviews"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


# === Inputs ===


class BusinessProfile(BaseModel):
    """The business whose AI visibility is being measured."""

    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    location: str
    custom_queries: Tuple[str, ...] = ()

    @field_validator("name", "category", "location")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    def as_context(self) -> Dict[str, str]:
        """Business context handed to platform adapters for prompt building."""
        return {
            "business_name": self.name,
            "business_type": self.category,
            "location": self.location,
        }


class GeneratedQuery(BaseModel):
    """A natural-language discovery query sent to every platform."""

    model_config = ConfigDict(frozen=True)

    query: str
    intent: QueryIntent
    description: str


# === Per-call outputs ===


class ProviderResponse(BaseModel):
    """Normalized envelope for one (query, platform) call."""

    model_config = ConfigDict(frozen=True)

    platform: str
    query: str
    response: str = ""
    response_time_ms: int = 0
    tokens_used: Optional[int] = None
    cost: float = 0.0
    error: Optional[str] = None
    error_type: Optional[str] = None
    retryable: bool = False
    status_code: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.error is None


class Analysis(BaseModel):
    """Structured signals parsed out of one answer text."""

    model_config = ConfigDict(frozen=True)

    business_mentioned: bool = False
    business_ranking: Optional[int] = None
    competitors_mentioned: Tuple[str, ...] = ()
    sentiment: Optional[Sentiment] = None
    strengths: Tuple[str, ...] = ()
    weaknesses: Tuple[str, ...] = ()
    content_gaps: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()


class QueryResult(BaseModel):
    """All platform responses for one generated query."""

    query: GeneratedQuery
    responses: Dict[str, ProviderResponse] = Field(default_factory=dict)
    analyses: Dict[str, Analysis] = Field(default_factory=dict)

    def successful_platforms(self) -> List[str]:
        return [name for name, resp in self.responses.items() if resp.success]


# === Scoring ===


class ScoreParams(BaseModel):
    """Aggregated signals for one platform across every query of a report."""

    business_mentioned: bool
    ranking: Optional[float] = None
    sentiment: Optional[Sentiment] = None
    competitor_count: int = 0


class ScoreComponents(BaseModel):
    mention: int = Field(ge=0, le=40)
    ranking: int = Field(ge=0, le=40)
    sentiment: int = Field(ge=0, le=20)

    @property
    def total(self) -> int:
        return self.mention + self.ranking + self.sentiment


class ProviderScoreBreakdown(BaseModel):
    """Score for one platform; components always sum to ``score``."""

    platform: str
    score: int = Field(ge=0, le=100)
    components: ScoreComponents
    details: ScoreParams
    mention_count: int = 0
    query_count: int = 0
    error_count: int = 0
    total_cost: float = 0.0
    total_response_time_ms: int = 0

    @property
    def has_data(self) -> bool:
        """False when the platform errored on every query."""
        return self.query_count > self.error_count


class ScoreChange(BaseModel):
    change: int
    percent_change: Optional[float] = None
    trend: str  # up | down | stable | new


# === Aggregates ===


class Competitor(BaseModel):
    competitor_name: str
    competitor_website: Optional[str] = None
    detected_in_platforms: List[str] = Field(default_factory=list)
    detection_count: int = 0
    is_user_disabled: bool = False
    disabled_at: Optional[datetime] = None
    first_detected_at: datetime = Field(default_factory=_utcnow)


class ContentGap(BaseModel):
    id: str = Field(default_factory=_new_id)
    gap_type: GapType
    gap_title: str
    gap_description: str
    severity: SeverityLevel
    competitors_have_this: List[str] = Field(default_factory=list)
    recommended_action: Optional[str] = None
    content_type: Optional[str] = None


_ACTION_TRANSITIONS = {
    ActionStatus.PENDING: {ActionStatus.IN_PROGRESS, ActionStatus.DISMISSED},
    ActionStatus.IN_PROGRESS: {ActionStatus.COMPLETED, ActionStatus.DISMISSED},
    ActionStatus.COMPLETED: set(),
    ActionStatus.DISMISSED: set(),
}


class PriorityAction(BaseModel):
    id: str = Field(default_factory=_new_id)
    action_title: str
    action_description: str
    priority: ActionPriority
    category: Optional[str] = None
    fix_instructions: Optional[str] = None
    estimated_impact: Optional[ImpactLevel] = None
    estimated_effort: Optional[EffortLevel] = None
    status: ActionStatus = ActionStatus.PENDING
    completed_at: Optional[datetime] = None
    dismissed_at: Optional[datetime] = None

    def transition_to(self, status: ActionStatus) -> None:
        """Move the action through its lifecycle, rejecting illegal moves."""
        status = ActionStatus(status)
        if status not in _ACTION_TRANSITIONS[self.status]:
            raise ValueError(
                f"Cannot move action from {self.status.value} to {status.value}"
            )
        self.status = status
        if status is ActionStatus.COMPLETED:
            self.completed_at = _utcnow()
        elif status is ActionStatus.DISMISSED:
            self.dismissed_at = _utcnow()


class Achievement(BaseModel):
    id: str = Field(default_factory=_new_id)
    achievement_text: str
    category: Optional[str] = None
    impact_level: ImpactLevel = ImpactLevel.MEDIUM
    previous_value: Optional[str] = None
    current_value: Optional[str] = None
    improvement_percentage: Optional[float] = None


# === Report ===


_REPORT_TRANSITIONS = {
    ReportStatus.PENDING: {ReportStatus.PROCESSING, ReportStatus.FAILED},
    ReportStatus.PROCESSING: {ReportStatus.COMPLETED, ReportStatus.FAILED},
    ReportStatus.COMPLETED: set(),
    ReportStatus.FAILED: set(),
}


def current_report_month() -> date:
    """First day of the current month (UTC)."""
    today = _utcnow().date()
    return today.replace(day=1)


class Report(BaseModel):
    """
    One AI visibility report per business per reporting period.

    Lifecycle: pending -> processing -> completed | failed. Terminal states
    cannot be left.
    """

    id: str = Field(default_factory=_new_id)
    organization_id: str = ""
    business: BusinessProfile
    report_month: date = Field(default_factory=current_report_month)
    status: ReportStatus = ReportStatus.PENDING

    overall_score: Optional[int] = None
    grade: Optional[str] = None
    is_initial_report: bool = True
    score_change: Optional[ScoreChange] = None

    queries: List[GeneratedQuery] = Field(default_factory=list)
    query_results: List[QueryResult] = Field(default_factory=list)
    platform_scores: List[ProviderScoreBreakdown] = Field(default_factory=list)
    competitors: List[Competitor] = Field(default_factory=list)
    content_gaps: List[ContentGap] = Field(default_factory=list)
    priority_actions: List[PriorityAction] = Field(default_factory=list)
    achievements: List[Achievement] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)
    total_cost: float = 0.0

    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    processing_started_at: Optional[datetime] = None
    processing_completed_at: Optional[datetime] = None
    generated_at: Optional[datetime] = None

    def _transition(self, status: ReportStatus) -> None:
        if status not in _REPORT_TRANSITIONS[self.status]:
            raise ValueError(
                f"Report {self.id} cannot move from {self.status.value} to {status.value}"
            )
        self.status = status

    def mark_processing(self) -> None:
        self._transition(ReportStatus.PROCESSING)
        self.processing_started_at = _utcnow()

    def mark_completed(self) -> None:
        self._transition(ReportStatus.COMPLETED)
        now = _utcnow()
        self.processing_completed_at = now
        self.generated_at = now

    def mark_failed(self, error_message: str) -> None:
        self._transition(ReportStatus.FAILED)
        self.error_message = error_message
        self.processing_completed_at = _utcnow()

    def score_for(self, platform: str) -> Optional[ProviderScoreBreakdown]:
        for breakdown in self.platform_scores:
            if breakdown.platform == platform:
                return breakdown
        return None
