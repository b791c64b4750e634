"""
Complaint Value Objects
========================

Immutable results handed back by the identity consent workflow.
"""

from dataclasses import dataclass
from datetime import datetime

from civic_triage.complaints.domain.entities import CitizenIdentity


@dataclass(frozen=True)
class ConsentTicket:
    """Token issued to the citizen when an authority asks for their identity."""
    complaint_id: str
    token: str
    expires_at: datetime


@dataclass(frozen=True)
class IdentityApproved:
    """The citizen agreed; ``identity`` goes to the requesting authority."""
    complaint_id: str
    authority_id: str
    identity: CitizenIdentity

    approved = True


@dataclass(frozen=True)
class IdentityDeclined:
    """The citizen refused; identity stays hidden."""
    complaint_id: str
    authority_id: str

    approved = False
