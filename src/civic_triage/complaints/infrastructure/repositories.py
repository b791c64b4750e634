"""
Complaint Infrastructure Repositories
======================================

In-memory implementations of the complaint repository interfaces.

Entities are copied on the way in and out, so callers only change stored
state through ``save``.
"""

import copy
from typing import Dict, Iterable, Optional

from civic_triage.complaints.application.services import (
    ICitizenDirectory, IComplaintRepository
)
from civic_triage.complaints.domain import CitizenIdentity, Complaint


class InMemoryComplaintRepository(IComplaintRepository):
    """Dictionary-backed complaint store with a permanent token registry."""

    def __init__(self, complaints: Optional[Iterable[Complaint]] = None):
        self._complaints: Dict[str, Complaint] = {}
        self._tokens: Dict[str, str] = {}
        for complaint in complaints or ():
            self._complaints[complaint.id] = copy.deepcopy(complaint)

    async def get_by_id(self, complaint_id: str) -> Optional[Complaint]:
        complaint = self._complaints.get(complaint_id)
        return copy.deepcopy(complaint) if complaint else None

    async def save(self, complaint: Complaint) -> Complaint:
        self._complaints[complaint.id] = copy.deepcopy(complaint)
        return complaint

    async def register_token(self, token: str, complaint_id: str) -> None:
        self._tokens[token] = complaint_id

    async def get_by_token(self, token: str) -> Optional[Complaint]:
        complaint_id = self._tokens.get(token)
        if complaint_id is None:
            return None
        return await self.get_by_id(complaint_id)

    async def token_exists(self, token: str) -> bool:
        return token in self._tokens


class InMemoryCitizenDirectory(ICitizenDirectory):
    """Citizen contact details keyed by citizen id."""

    def __init__(self, identities: Optional[Dict[str, CitizenIdentity]] = None):
        self._identities = dict(identities or {})

    def add(self, citizen_id: str, identity: CitizenIdentity) -> None:
        self._identities[citizen_id] = identity

    async def get_identity(self, citizen_id: str) -> Optional[CitizenIdentity]:
        return self._identities.get(citizen_id)
