"""Tests for the complaint status lifecycle."""

from datetime import datetime, timedelta, timezone

import pytest

from civic_triage.complaints.application import ComplaintStatusService
from civic_triage.complaints.domain import Complaint, ComplaintLifecycle
from civic_triage.config import ComplaintStatus
from civic_triage.core import (
    InvalidTransitionException, ResourceNotFoundException, ValidationException
)

PENDING = ComplaintStatus.PENDING
SEEN = ComplaintStatus.SEEN
IN_PROGRESS = ComplaintStatus.IN_PROGRESS
RESOLVED = ComplaintStatus.RESOLVED


class TestComplaintLifecycle:

    @pytest.mark.parametrize("current, requested", [
        (PENDING, SEEN),
        (SEEN, IN_PROGRESS),
        (IN_PROGRESS, RESOLVED),
        (IN_PROGRESS, SEEN),
    ])
    def test_allowed_transitions(self, current, requested):
        assert ComplaintLifecycle.transition(current, requested) == requested

    @pytest.mark.parametrize("status", list(ComplaintStatus))
    def test_same_state_is_noop(self, status):
        assert ComplaintLifecycle.transition(status, status) == status

    @pytest.mark.parametrize("current, requested", [
        (PENDING, IN_PROGRESS),
        (PENDING, RESOLVED),
        (SEEN, RESOLVED),
        (SEEN, PENDING),
        (IN_PROGRESS, PENDING),
        (RESOLVED, SEEN),
        (RESOLVED, PENDING),
        (RESOLVED, IN_PROGRESS),
    ])
    def test_rejected_transitions(self, current, requested):
        with pytest.raises(InvalidTransitionException):
            ComplaintLifecycle.transition(current, requested)

    def test_error_names_current_and_allowed(self):
        with pytest.raises(InvalidTransitionException) as exc_info:
            ComplaintLifecycle.transition(PENDING, RESOLVED)
        error = exc_info.value
        assert error.current_status == PENDING
        assert error.allowed == [SEEN]
        assert "pending" in error.message
        assert "seen" in error.message

    def test_resolved_has_no_next_status(self):
        assert ComplaintLifecycle.allowed_next(RESOLVED) == []

    def test_in_progress_can_step_back(self):
        assert ComplaintLifecycle.allowed_next(IN_PROGRESS) == [SEEN, RESOLVED]

    def test_accepts_strings(self):
        assert ComplaintLifecycle.transition("pending", "SEEN") == SEEN

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationException):
            ComplaintLifecycle.transition(PENDING, "closed")


class TestComplaintEntity:

    def test_resolved_at_stamped_once(self):
        start = datetime(2024, 3, 1, tzinfo=timezone.utc)
        complaint = Complaint(id="c1", citizen_id="u1", submitted_at=start)

        complaint.change_status(SEEN, start + timedelta(hours=1))
        complaint.change_status(IN_PROGRESS, start + timedelta(hours=2))
        assert complaint.change_status(RESOLVED, start + timedelta(hours=3))
        assert complaint.resolved_at == start + timedelta(hours=3)

        assert not complaint.change_status(RESOLVED, start + timedelta(hours=4))
        assert complaint.resolved_at == start + timedelta(hours=3)
        assert complaint.updated_at == start + timedelta(hours=3)

    def test_rejected_change_leaves_state(self):
        complaint = Complaint(id="c1", citizen_id="u1")
        with pytest.raises(InvalidTransitionException):
            complaint.change_status(RESOLVED)
        assert complaint.status == PENDING
        assert complaint.resolved_at is None


class TestComplaintStatusService:

    @pytest.mark.asyncio
    async def test_update_persists(self, repository, clock):
        service = ComplaintStatusService(repository, clock=clock)
        await service.update_status("c-anon", "seen")

        stored = await repository.get_by_id("c-anon")
        assert stored.status == SEEN
        assert stored.updated_at == clock.now

    @pytest.mark.asyncio
    async def test_unknown_complaint(self, repository):
        with pytest.raises(ResourceNotFoundException):
            await ComplaintStatusService(repository).update_status("missing", SEEN)

    @pytest.mark.asyncio
    async def test_invalid_transition_not_persisted(self, repository):
        service = ComplaintStatusService(repository)
        with pytest.raises(InvalidTransitionException):
            await service.update_status("c-anon", RESOLVED)
        assert (await repository.get_by_id("c-anon")).status == PENDING
