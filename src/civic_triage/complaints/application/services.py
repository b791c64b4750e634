"""
Complaint Application Services
===============================

Application services for the complaint lifecycle and identity consent.

Orchestrates domain entities and repository interfaces.
"""

import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

from civic_triage.complaints.domain import (
    CitizenIdentity, Complaint, ConsentTicket, IdentityApproved, IdentityDeclined
)
from civic_triage.config import ComplaintStatus, ConsentDecision, ConsentStatus
from civic_triage.core import (
    ConsentForbiddenException, DomainException, InvalidConsentTokenException,
    ResourceNotFoundException, ValidationException
)
from civic_triage.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces ==========

class IComplaintRepository(ABC):
    """Interface for complaint persistence."""

    @abstractmethod
    async def get_by_id(self, complaint_id: str) -> Optional[Complaint]:
        pass

    @abstractmethod
    async def save(self, complaint: Complaint) -> Complaint:
        pass

    @abstractmethod
    async def register_token(self, token: str, complaint_id: str) -> None:
        """Remember which complaint a consent token was issued for."""
        pass

    @abstractmethod
    async def get_by_token(self, token: str) -> Optional[Complaint]:
        pass

    @abstractmethod
    async def token_exists(self, token: str) -> bool:
        """True if the token was ever issued, consumed or not."""
        pass


class ICitizenDirectory(ABC):
    """Interface for looking up stored citizen contact details."""

    @abstractmethod
    async def get_identity(self, citizen_id: str) -> Optional[CitizenIdentity]:
        pass


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_consent_token() -> str:
    """URL-safe token with 256 bits of randomness."""
    return secrets.token_urlsafe(32)


# ========== Application Services ==========

class ComplaintStatusService:
    """Applies lifecycle transitions to stored complaints."""

    def __init__(
        self,
        repository: IComplaintRepository,
        clock: Callable[[], datetime] = utc_now
    ):
        self._repository = repository
        self._clock = clock

    async def update_status(
        self,
        complaint_id: str,
        requested: Union[ComplaintStatus, str]
    ) -> Complaint:
        """
        Move a complaint to ``requested``.

        Raises:
            ResourceNotFoundException: Unknown complaint
            InvalidTransitionException: Transition not allowed
        """
        complaint = await self._repository.get_by_id(complaint_id)
        if complaint is None:
            raise ResourceNotFoundException("Complaint", complaint_id)

        previous = complaint.status
        if not complaint.change_status(requested, self._clock()):
            return complaint

        complaint = await self._repository.save(complaint)
        logger.info(
            "Complaint status changed",
            extra={
                "complaint_id": complaint_id,
                "from_status": previous.value,
                "to_status": complaint.status.value,
            }
        )
        return complaint


class IdentityConsentWorkflow:
    """
    Token-based workflow for revealing the citizen behind an anonymous
    complaint.

    An authority opens a request, which mints a single-use token valid for
    ``ttl_hours``. The owning citizen answers with that token. Expiry is
    checked when the token is presented; nothing sweeps in the background.
    """

    MAX_TOKEN_ATTEMPTS = 5

    def __init__(
        self,
        repository: IComplaintRepository,
        directory: ICitizenDirectory,
        ttl_hours: int = 24,
        clock: Callable[[], datetime] = utc_now,
        token_factory: Callable[[], str] = generate_consent_token
    ):
        if ttl_hours <= 0:
            raise ValueError("ttl_hours must be positive")
        self._repository = repository
        self._directory = directory
        self._ttl = timedelta(hours=ttl_hours)
        self._clock = clock
        self._token_factory = token_factory

    async def request_identity(self, complaint_id: str, authority_id: str) -> ConsentTicket:
        """
        Ask the citizen behind an anonymous complaint to reveal themselves.

        Args:
            complaint_id: Complaint to act on
            authority_id: Requesting authority

        Returns:
            ConsentTicket with the token to deliver to the citizen

        Raises:
            ResourceNotFoundException: Unknown complaint
            ConsentNotApplicableException: Complaint not anonymous, or identity already approved
            ConsentAlreadyRequestedException: An unexpired request is pending
        """
        if not authority_id or not authority_id.strip():
            raise ValidationException("authority_id is required")

        complaint = await self._get_complaint(complaint_id)
        now = self._clock()
        token = await self._mint_token()

        complaint.request_identity(authority_id, token, now, self._ttl)
        await self._repository.save(complaint)
        await self._repository.register_token(token, complaint.id)

        logger.info(
            "Identity requested",
            extra={
                "complaint_id": complaint.id,
                "authority_id": authority_id,
                "expires_at": complaint.consent.token_expires.isoformat(),
            }
        )
        return ConsentTicket(
            complaint_id=complaint.id,
            token=token,
            expires_at=complaint.consent.token_expires,
        )

    async def respond_to_identity(
        self,
        token: str,
        citizen_id: str,
        decision: Union[ConsentDecision, str]
    ) -> Union[IdentityApproved, IdentityDeclined]:
        """
        Record the citizen's answer to an identity request.

        Args:
            token: Token from the ConsentTicket
            citizen_id: Citizen answering
            decision: approve or decline

        Returns:
            IdentityApproved carrying the identity, or IdentityDeclined

        Raises:
            InvalidConsentTokenException: Unknown, superseded or used token
            ConsentForbiddenException: Citizen does not own the complaint
            ConsentTokenExpiredException: Token past its expiry
        """
        decision = self._coerce_decision(decision)

        complaint = await self._repository.get_by_token(token) if token else None
        if complaint is None:
            raise InvalidConsentTokenException("Invalid consent token")

        if complaint.citizen_id is None or complaint.citizen_id != citizen_id:
            raise ConsentForbiddenException(
                "Only the complaint owner can respond to this request",
                {"complaint_id": complaint.id}
            )

        now = self._clock()
        status = complaint.respond_to_identity(token, decision, now)
        authority_id = complaint.consent.requested_by

        if status == ConsentStatus.APPROVED:
            identity = await self._directory.get_identity(citizen_id)
            if identity is None:
                raise ResourceNotFoundException("Citizen", citizen_id)
            await self._repository.save(complaint)
            logger.info(
                "Identity approved",
                extra={"complaint_id": complaint.id, "authority_id": authority_id}
            )
            return IdentityApproved(
                complaint_id=complaint.id,
                authority_id=authority_id,
                identity=identity,
            )

        await self._repository.save(complaint)
        logger.info(
            "Identity declined",
            extra={"complaint_id": complaint.id, "authority_id": authority_id}
        )
        return IdentityDeclined(complaint_id=complaint.id, authority_id=authority_id)

    async def disclosed_identity(
        self,
        complaint_id: str,
        authority_id: str
    ) -> Optional[CitizenIdentity]:
        """
        Identity visible to ``authority_id`` for this complaint.

        Returns:
            The identity once approved for this authority, otherwise None
        """
        complaint = await self._get_complaint(complaint_id)
        consent = complaint.consent
        if consent.status != ConsentStatus.APPROVED or consent.requested_by != authority_id:
            return None
        return await self._directory.get_identity(complaint.citizen_id)

    async def consent_status(self, complaint_id: str) -> ConsentStatus:
        """Current consent status, reporting lapsed requests as expired."""
        complaint = await self._get_complaint(complaint_id)
        return complaint.consent.effective_status(self._clock())

    async def _get_complaint(self, complaint_id: str) -> Complaint:
        complaint = await self._repository.get_by_id(complaint_id)
        if complaint is None:
            raise ResourceNotFoundException("Complaint", complaint_id)
        return complaint

    async def _mint_token(self) -> str:
        for _ in range(self.MAX_TOKEN_ATTEMPTS):
            token = self._token_factory()
            if not await self._repository.token_exists(token):
                return token
        raise DomainException("Could not generate a unique consent token")

    @staticmethod
    def _coerce_decision(decision: Union[ConsentDecision, str]) -> ConsentDecision:
        if isinstance(decision, ConsentDecision):
            return decision
        try:
            return ConsentDecision(str(decision).strip().lower())
        except ValueError:
            raise ValidationException(
                f"Unknown decision '{decision}'",
                {"allowed": [d.value for d in ConsentDecision]}
            )
