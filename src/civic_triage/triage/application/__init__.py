"""
Triage Application Layer
=========================

Application layer for complaint triage.

Contains:
- Services: AI classification, triage orchestration, bulk triage
- DTOs: Data transfer objects for the caller boundary
"""

from civic_triage.triage.application.dto import (
    TriageRequest,
    TriageResponse,
    BatchTriageResponse,
    BatchRowErrorInfo,
)
from civic_triage.triage.application.services import (
    LabelScore,
    IClassifierClient,
    AIClassificationService,
    TriageService,
    BatchTriageService,
    coerce_category,
)

__all__ = [
    # DTOs
    "TriageRequest",
    "TriageResponse",
    "BatchTriageResponse",
    "BatchRowErrorInfo",
    # Services
    "AIClassificationService",
    "TriageService",
    "BatchTriageService",
    "coerce_category",
    # Classifier Interface
    "LabelScore",
    "IClassifierClient",
]
