"""
Triage Application DTOs
========================

Data Transfer Objects for the triage boundary.

Pydantic models for request/response validation.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from civic_triage.config import COMPLAINT_CATEGORIES, ComplaintCategory, TrustClass
from civic_triage.triage.domain import BatchTriageSummary, TriageInput, TriageResult


# ========== Type Aliases for Literals ==========
CategoryStr = Literal[
    "water issue", "electricity issue", "road issue",
    "garbage issue", "safety hazard", "environmental issue"
]
AuthorityStr = Literal[
    "municipal_council", "water_board", "ceb",
    "rda", "police_safety", "disaster_management"
]
SentimentStr = Literal["positive", "negative", "neutral"]
UrgencyLevelStr = Literal["critical", "urgent", "normal"]


# ========== Request DTOs ==========

class TriageRequest(BaseModel):
    """Request model for triaging one complaint."""
    text: str = Field(..., min_length=1, description="Complaint text")
    trust_class: str = Field(
        default=TrustClass.ANONYMOUS.value,
        description="Submitter trust class"
    )
    category: Optional[str] = Field(None, description="Category chosen by the citizen")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Ensure text is present and not too long for the classifier."""
        v = v.strip()
        if not v:
            raise ValueError("Complaint text is required")
        if len(v) > 10000:
            raise ValueError("Complaint text too long (max 10000 characters)")
        return v

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: Optional[str]) -> Optional[str]:
        """Only the fixed category set may be chosen manually."""
        if v is None or not v.strip():
            return None
        v = v.strip().lower()
        if v not in COMPLAINT_CATEGORIES:
            raise ValueError(f"category must be one of {COMPLAINT_CATEGORIES}")
        return v

    def to_domain(self) -> TriageInput:
        """Convert to domain input."""
        return TriageInput(
            text=self.text,
            trust_class=self.trust_class,
            category_override=ComplaintCategory(self.category) if self.category else None,
        )


# ========== Response DTOs ==========

class TriageResponse(BaseModel):
    """Response model for one triaged complaint."""
    category: Optional[CategoryStr]
    category_confidence: float = Field(
        ..., ge=0.0, le=1.0,
        description="Confidence fed into the urgency score: keyword matcher when it matched, else classifier"
    )
    category_source: Optional[Literal["override", "keyword", "ai"]]
    sentiment: SentimentStr
    sentiment_score: float = Field(..., ge=0.0, le=1.0)
    hazard_keyword_score: float = Field(..., ge=0.0, le=1.0)
    urgency_score: float = Field(..., ge=0.0, le=1.0)
    urgency_level: UrgencyLevelStr
    trust_score: float = Field(..., ge=0.0, le=1.0)
    assigned_authority: AuthorityStr
    summary: str
    key_phrases: List[str]
    error: bool
    message: Optional[str] = None
    abstention_reason: Optional[Literal["low_confidence", "service_unavailable"]] = None
    requires_category_selection: bool
    triaged_at: datetime

    @classmethod
    def from_domain(cls, result: TriageResult) -> "TriageResponse":
        """Create from domain result."""
        data = result.to_dict()
        data["requires_category_selection"] = result.requires_category_selection
        data["triaged_at"] = result.triaged_at
        return cls(**data)


class BatchRowErrorInfo(BaseModel):
    """A row that could not be triaged."""
    row: int
    error: str


class BatchTriageResponse(BaseModel):
    """Response model for a bulk triage run."""
    processed_count: int
    urgent_count: int
    category_summary: Dict[str, int]
    errors: List[BatchRowErrorInfo]

    @classmethod
    def from_domain(cls, summary: BatchTriageSummary) -> "BatchTriageResponse":
        return cls(
            processed_count=summary.processed_count,
            urgent_count=summary.urgent_count,
            category_summary=dict(summary.category_summary),
            errors=[BatchRowErrorInfo(row=e.row, error=e.error) for e in summary.errors],
        )
