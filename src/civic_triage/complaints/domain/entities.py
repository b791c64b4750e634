"""
Complaint Domain Entities
==========================

Pure Python domain entities for the complaint lifecycle and the identity
consent workflow.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, FrozenSet, Optional, Union

from civic_triage.config import ComplaintStatus, ConsentDecision, ConsentStatus
from civic_triage.core import (
    ConsentAlreadyRequestedException, ConsentNotApplicableException,
    ConsentTokenExpiredException, InvalidConsentTokenException,
    InvalidTransitionException, ValidationException
)


class ComplaintLifecycle:
    """
    Finite-state machine for complaint status.

    pending -> seen -> in_progress -> resolved, with in_progress -> seen
    allowed. Resolved is terminal. Requesting the current status is a no-op.
    """

    TRANSITIONS: Dict[ComplaintStatus, FrozenSet[ComplaintStatus]] = {
        ComplaintStatus.PENDING: frozenset({ComplaintStatus.SEEN}),
        ComplaintStatus.SEEN: frozenset({ComplaintStatus.IN_PROGRESS}),
        ComplaintStatus.IN_PROGRESS: frozenset({ComplaintStatus.RESOLVED, ComplaintStatus.SEEN}),
        ComplaintStatus.RESOLVED: frozenset(),
    }

    @classmethod
    def allowed_next(cls, current: Union[ComplaintStatus, str]) -> list:
        """Statuses reachable from ``current`` in one step, in lifecycle order."""
        current = cls.coerce(current)
        return [s for s in ComplaintStatus if s in cls.TRANSITIONS[current]]

    @classmethod
    def transition(
        cls,
        current: Union[ComplaintStatus, str],
        requested: Union[ComplaintStatus, str]
    ) -> ComplaintStatus:
        """
        Validate a status change.

        Args:
            current: Status the complaint is in
            requested: Status the caller wants

        Returns:
            The new status

        Raises:
            InvalidTransitionException: If the change is not allowed
            ValidationException: If either value is not a known status
        """
        current = cls.coerce(current)
        requested = cls.coerce(requested)

        if requested == current:
            return current

        if requested not in cls.TRANSITIONS[current]:
            raise InvalidTransitionException(current, requested, cls.allowed_next(current))

        return requested

    @staticmethod
    def coerce(value: Union[ComplaintStatus, str]) -> ComplaintStatus:
        if isinstance(value, ComplaintStatus):
            return value
        try:
            return ComplaintStatus(str(value).strip().lower())
        except ValueError:
            raise ValidationException(
                f"Unknown status '{value}'",
                {"allowed": [s.value for s in ComplaintStatus]}
            )


@dataclass(frozen=True)
class CitizenIdentity:
    """Contact details revealed only after the citizen approves."""
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None


@dataclass
class IdentityConsent:
    """
    Identity reveal state for one anonymous complaint.

    ``status`` never stores ``expired``: an open request past its expiry is
    reported as expired by ``effective_status``. ``token`` keeps the last
    issued value so a consumed token can be told apart from a stale one.
    """

    status: ConsentStatus = ConsentStatus.NONE
    token: Optional[str] = None
    token_expires: Optional[datetime] = None
    requested_by: Optional[str] = None
    requested_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None

    def effective_status(self, now: datetime) -> ConsentStatus:
        """Status as seen at ``now``."""
        if self.status == ConsentStatus.REQUESTED and self.is_expired(now):
            return ConsentStatus.EXPIRED
        return self.status

    def is_expired(self, now: datetime) -> bool:
        return self.token_expires is not None and now > self.token_expires

    def is_active(self, now: datetime) -> bool:
        """True while a request awaits an answer and has not expired."""
        return self.effective_status(now) == ConsentStatus.REQUESTED

    def open_request(self, authority_id: str, token: str, now: datetime, ttl: timedelta) -> None:
        """Move to requested with a fresh token."""
        status = self.effective_status(now)
        if status == ConsentStatus.APPROVED:
            raise ConsentNotApplicableException(
                "Identity already approved",
                {"requested_by": self.requested_by}
            )
        if status == ConsentStatus.REQUESTED:
            raise ConsentAlreadyRequestedException(
                "Identity request already pending",
                {"expires_at": self.token_expires.isoformat()}
            )

        self.status = ConsentStatus.REQUESTED
        self.token = token
        self.token_expires = now + ttl
        self.requested_by = authority_id
        self.requested_at = now
        self.responded_at = None

    def respond(self, token: str, decision: ConsentDecision, now: datetime) -> ConsentStatus:
        """
        Consume the token with the citizen's decision.

        Raises:
            InvalidConsentTokenException: Token superseded or already used
            ConsentTokenExpiredException: Token presented after expiry
        """
        if token != self.token or self.status != ConsentStatus.REQUESTED:
            raise InvalidConsentTokenException("Consent token is no longer valid")
        if self.is_expired(now):
            raise ConsentTokenExpiredException(
                "Consent token has expired",
                {"expires_at": self.token_expires.isoformat()}
            )

        self.status = (
            ConsentStatus.APPROVED if decision == ConsentDecision.APPROVE
            else ConsentStatus.DECLINED
        )
        self.responded_at = now
        return self.status


@dataclass
class Complaint:
    """
    Complaint record as seen by the lifecycle and consent workflow.

    ``citizen_id`` is None for guest submissions. Status changes go through
    ``change_status`` only.
    """

    id: str
    citizen_id: Optional[str]
    anonymous: bool = False
    status: ComplaintStatus = ComplaintStatus.PENDING
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    consent: IdentityConsent = field(default_factory=IdentityConsent)

    def __post_init__(self):
        self.status = ComplaintLifecycle.coerce(self.status)
        if self.updated_at is None:
            self.updated_at = self.submitted_at

    @property
    def is_resolved(self) -> bool:
        return self.status == ComplaintStatus.RESOLVED

    def change_status(
        self,
        requested: Union[ComplaintStatus, str],
        timestamp: Optional[datetime] = None
    ) -> bool:
        """
        Apply a lifecycle transition.

        Returns:
            True if the status changed, False for a same-state request

        Raises:
            InvalidTransitionException: If the change is not allowed
        """
        new_status = ComplaintLifecycle.transition(self.status, requested)
        if new_status == self.status:
            return False

        timestamp = timestamp or datetime.now(timezone.utc)
        self.status = new_status
        self.updated_at = timestamp
        if new_status == ComplaintStatus.RESOLVED and self.resolved_at is None:
            self.resolved_at = timestamp
        return True

    def request_identity(self, authority_id: str, token: str, now: datetime, ttl: timedelta) -> None:
        """Open an identity request on an anonymous complaint."""
        if not self.anonymous or self.citizen_id is None:
            raise ConsentNotApplicableException(
                "Identity requests apply only to anonymous complaints",
                {"complaint_id": self.id}
            )
        self.consent.open_request(authority_id, token, now, ttl)
        self.updated_at = now

    def respond_to_identity(self, token: str, decision: ConsentDecision, now: datetime) -> ConsentStatus:
        status = self.consent.respond(token, decision, now)
        self.updated_at = now
        return status
