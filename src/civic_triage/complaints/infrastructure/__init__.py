"""
Complaint Infrastructure Layer
===============================

In-memory repository implementations.
"""

from civic_triage.complaints.infrastructure.repositories import (
    InMemoryComplaintRepository,
    InMemoryCitizenDirectory,
)

__all__ = [
    "InMemoryComplaintRepository",
    "InMemoryCitizenDirectory",
]
