"""
Complaint Application Layer
============================

Application services for complaint tracking.

Contains:
- Services: ComplaintStatusService, IdentityConsentWorkflow
- Interfaces: IComplaintRepository, ICitizenDirectory
"""

from civic_triage.complaints.application.services import (
    ComplaintStatusService,
    IdentityConsentWorkflow,
    IComplaintRepository,
    ICitizenDirectory,
    generate_consent_token,
    utc_now,
)

__all__ = [
    "ComplaintStatusService",
    "IdentityConsentWorkflow",
    "IComplaintRepository",
    "ICitizenDirectory",
    "generate_consent_token",
    "utc_now",
]
