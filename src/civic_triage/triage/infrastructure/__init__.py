"""
Triage Infrastructure Layer
============================

Infrastructure implementations for complaint triage.

Contains:
- External: classifier service adapters and the rule file loader
"""

from civic_triage.triage.infrastructure.external import (
    HuggingFaceClassifierClient,
    MockClassifierClient,
    TriageRulesLoader,
)

__all__ = [
    "HuggingFaceClassifierClient",
    "MockClassifierClient",
    "TriageRulesLoader",
]
