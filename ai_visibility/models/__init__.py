from .report import (
    Achievement,
    ActionPriority,
    ActionStatus,
    Analysis,
    BusinessProfile,
    Competitor,
    ContentGap,
    EffortLevel,
    GapType,
    GeneratedQuery,
    ImpactLevel,
    PriorityAction,
    ProviderResponse,
    ProviderScoreBreakdown,
    QueryIntent,
    QueryResult,
    Report,
    ReportStatus,
    ScoreChange,
    ScoreComponents,
    ScoreParams,
    Sentiment,
    SeverityLevel,
)

__all__ = [
    "Achievement",
    "ActionPriority",
    "ActionStatus",
    "Analysis",
    "BusinessProfile",
    "Competitor",
    "ContentGap",
    "EffortLevel",
    "GapType",
    "GeneratedQuery",
    "ImpactLevel",
    "PriorityAction",
    "ProviderResponse",
    "ProviderScoreBreakdown",
    "QueryIntent",
    "QueryResult",
    "Report",
    "ReportStatus",
    "ScoreChange",
    "ScoreComponents",
    "ScoreParams",
    "Sentiment",
    "SeverityLevel",
]
