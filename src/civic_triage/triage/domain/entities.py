"""
Triage Domain Entities
======================

Domain entities for the complaint triage module.

Contains pure Python business objects produced by the scorers, the AI
classifier and the orchestrator.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from civic_triage.config import (
    AbstentionReason, Authority, CategorySource, ComplaintCategory,
    Sentiment, TrustClass, UrgencyLevel
)


def _check_unit_interval(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be between 0 and 1")


@dataclass(frozen=True)
class TriageInput:
    """
    One complaint submission to triage.

    Request-scoped and immutable.
    """
    text: str
    trust_class: str = TrustClass.ANONYMOUS.value
    category_override: Optional[ComplaintCategory] = None


@dataclass(frozen=True)
class SentimentResult:
    """Sentiment label and the score of that label."""
    sentiment: Sentiment
    score: float
    fallback: bool = False

    def __post_init__(self):
        _check_unit_interval("Sentiment score", self.score)

    @classmethod
    def neutral(cls) -> "SentimentResult":
        """Deterministic result used when the sentiment call fails."""
        return cls(sentiment=Sentiment.NEUTRAL, score=0.5, fallback=True)


@dataclass(frozen=True)
class CategoryPrediction:
    """
    Category guess from the keyword matcher or the AI classifier.

    ``category`` is None when the classifier abstained or failed; in that case
    ``error`` is set and ``reason`` tells the two apart.
    """
    category: Optional[ComplaintCategory]
    confidence: float
    error: bool = False
    reason: Optional[AbstentionReason] = None
    message: Optional[str] = None

    def __post_init__(self):
        _check_unit_interval("Confidence", self.confidence)

    @property
    def found(self) -> bool:
        return self.category is not None

    @classmethod
    def no_match(cls) -> "CategoryPrediction":
        return cls(category=None, confidence=0.0)

    @classmethod
    def abstain(cls, reason: AbstentionReason, message: str) -> "CategoryPrediction":
        return cls(
            category=None,
            confidence=0.0,
            error=True,
            reason=reason,
            message=message,
        )


@dataclass(frozen=True)
class AIAnalysis:
    """Combined output of the two AI calls for one complaint."""
    sentiment: SentimentResult
    category: CategoryPrediction


@dataclass(frozen=True)
class TriageResult:
    """
    Outcome of triaging one complaint.

    Produced once per submission and never mutated; the caller persists it
    alongside the complaint record.

    category_confidence is the confidence that went into the urgency score,
    not a confidence in `category`. It is the keyword matcher's confidence
    when the matcher found a category, else the classifier's. This holds
    under a manual override too, so an override may report the confidence
    of a category it replaced (or 0.0 when nothing was detected).
    """
    category: Optional[ComplaintCategory]
    category_confidence: float
    category_source: Optional[CategorySource]
    sentiment: Sentiment
    sentiment_score: float
    hazard_keyword_score: float
    urgency_score: float
    urgency_level: UrgencyLevel
    trust_score: float
    assigned_authority: Authority
    summary: str = ""
    key_phrases: Tuple[str, ...] = ()
    error: bool = False
    message: Optional[str] = None
    abstention_reason: Optional[AbstentionReason] = None
    triaged_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        """Validate score ranges."""
        _check_unit_interval("Category confidence", self.category_confidence)
        _check_unit_interval("Sentiment score", self.sentiment_score)
        _check_unit_interval("Hazard keyword score", self.hazard_keyword_score)
        _check_unit_interval("Urgency score", self.urgency_score)
        _check_unit_interval("Trust score", self.trust_score)

    @property
    def requires_category_selection(self) -> bool:
        """True when the caller must ask the citizen to pick a category."""
        return self.category is None

    def to_dict(self) -> dict:
        """Convert to a plain dictionary for persistence."""
        data = asdict(self)
        for key, value in data.items():
            if hasattr(value, "value"):
                data[key] = value.value
        data["key_phrases"] = list(self.key_phrases)
        data["triaged_at"] = self.triaged_at.isoformat()
        return data


@dataclass(frozen=True)
class BatchRowError:
    """A row of a bulk import that could not be triaged."""
    row: int
    error: str


@dataclass
class BatchTriageSummary:
    """
    Aggregate of a bulk triage run.

    Results keep the order of the rows that were triaged successfully.
    """
    processed_count: int = 0
    urgent_count: int = 0
    category_summary: Dict[str, int] = field(default_factory=dict)
    results: List[TriageResult] = field(default_factory=list)
    errors: List[BatchRowError] = field(default_factory=list)

    UNCATEGORIZED = "uncategorized"

    def add_result(self, result: TriageResult, urgent_threshold: float) -> None:
        """Count one triaged row."""
        self.results.append(result)
        self.processed_count += 1
        key = result.category.value if result.category else self.UNCATEGORIZED
        self.category_summary[key] = self.category_summary.get(key, 0) + 1
        if result.urgency_score >= urgent_threshold:
            self.urgent_count += 1

    def add_error(self, row: int, error: str) -> None:
        self.errors.append(BatchRowError(row=row, error=error))
