"""
Triage Domain Layer
===================

Domain layer for complaint triage.

Contains:
- Entities: TriageInput, TriageResult, SentimentResult, CategoryPrediction
- Rules: immutable keyword tables and lookup data
- Scoring: HazardScorer, CategoryKeywordMatcher, UrgencyCalculator, AuthorityRouter
- Policy: intake identity rules
- Text: summary and key-phrase helpers

This layer is framework-agnostic and contains pure business logic.
"""

from civic_triage.triage.domain.entities import (
    TriageInput,
    TriageResult,
    SentimentResult,
    CategoryPrediction,
    AIAnalysis,
    BatchTriageSummary,
    BatchRowError,
)
from civic_triage.triage.domain.rules import (
    TriageRules,
    HazardTiers,
    CategoryKeywords,
    AuthorityRoute,
    TrustTier,
    TrustPolicy,
)
from civic_triage.triage.domain.scoring import (
    HazardScorer,
    CategoryKeywordMatcher,
    UrgencyCalculator,
    AuthorityRouter,
)
from civic_triage.triage.domain.policy import IntakePolicy, IntakeDecision
from civic_triage.triage.domain.text import generate_summary, extract_key_phrases

__all__ = [
    "TriageInput",
    "TriageResult",
    "SentimentResult",
    "CategoryPrediction",
    "AIAnalysis",
    "BatchTriageSummary",
    "BatchRowError",
    "TriageRules",
    "HazardTiers",
    "CategoryKeywords",
    "AuthorityRoute",
    "TrustTier",
    "TrustPolicy",
    "HazardScorer",
    "CategoryKeywordMatcher",
    "UrgencyCalculator",
    "AuthorityRouter",
    "IntakePolicy",
    "IntakeDecision",
    "generate_summary",
    "extract_key_phrases",
]
