"""
Complaint Domain Layer
======================

Domain layer for complaint tracking.

Contains:
- Entities: Complaint, IdentityConsent, CitizenIdentity
- Lifecycle: ComplaintLifecycle state machine
- Value Objects: ConsentTicket, IdentityApproved, IdentityDeclined

This layer is framework-agnostic and contains pure business logic.
"""

from civic_triage.complaints.domain.entities import (
    CitizenIdentity,
    Complaint,
    ComplaintLifecycle,
    IdentityConsent,
)
from civic_triage.complaints.domain.value_objects import (
    ConsentTicket,
    IdentityApproved,
    IdentityDeclined,
)

__all__ = [
    "CitizenIdentity",
    "Complaint",
    "ComplaintLifecycle",
    "IdentityConsent",
    "ConsentTicket",
    "IdentityApproved",
    "IdentityDeclined",
]
