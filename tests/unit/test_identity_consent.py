"""Tests for the identity consent workflow."""

import json
import logging
from datetime import timedelta

import pytest

from civic_triage.complaints.application import (
    IdentityConsentWorkflow, generate_consent_token
)
from civic_triage.complaints.domain import IdentityApproved, IdentityDeclined
from civic_triage.config import ConsentDecision, ConsentStatus
from civic_triage.core import (
    ConsentAlreadyRequestedException, ConsentForbiddenException,
    ConsentNotApplicableException, ConsentTokenExpiredException,
    InvalidConsentTokenException, ResourceNotFoundException, ValidationException
)
from civic_triage.shared.infrastructure.logging import CustomJsonFormatter


class TestRequestIdentity:

    @pytest.mark.asyncio
    async def test_request_issues_ticket(self, consent_workflow, clock):
        ticket = await consent_workflow.request_identity("c-anon", "water_board")

        assert ticket.complaint_id == "c-anon"
        assert ticket.token
        assert ticket.expires_at == clock.now + timedelta(hours=24)
        assert await consent_workflow.consent_status("c-anon") == ConsentStatus.REQUESTED

    @pytest.mark.asyncio
    async def test_request_log_keeps_expiry_readable(self, consent_workflow, caplog):
        caplog.set_level(logging.INFO, logger="civic_triage.complaints.application.services")
        ticket = await consent_workflow.request_identity("c-anon", "water_board")

        record = next(r for r in caplog.records if r.getMessage() == "Identity requested")
        payload = json.loads(CustomJsonFormatter("%(message)s").format(record))
        assert payload["expires_at"] == ticket.expires_at.isoformat()
        assert ticket.token not in json.dumps(payload)

    @pytest.mark.asyncio
    async def test_named_complaint_not_applicable(self, consent_workflow):
        with pytest.raises(ConsentNotApplicableException):
            await consent_workflow.request_identity("c-named", "water_board")

    @pytest.mark.asyncio
    async def test_unknown_complaint(self, consent_workflow):
        with pytest.raises(ResourceNotFoundException):
            await consent_workflow.request_identity("missing", "water_board")

    @pytest.mark.asyncio
    async def test_authority_required(self, consent_workflow):
        with pytest.raises(ValidationException):
            await consent_workflow.request_identity("c-anon", " ")

    @pytest.mark.asyncio
    async def test_only_one_active_request(self, consent_workflow):
        await consent_workflow.request_identity("c-anon", "water_board")
        with pytest.raises(ConsentAlreadyRequestedException):
            await consent_workflow.request_identity("c-anon", "police_safety")

    @pytest.mark.asyncio
    async def test_new_request_after_expiry_gets_fresh_token(self, consent_workflow, clock):
        first = await consent_workflow.request_identity("c-anon", "water_board")
        clock.now += timedelta(hours=25)
        assert await consent_workflow.consent_status("c-anon") == ConsentStatus.EXPIRED

        second = await consent_workflow.request_identity("c-anon", "water_board")
        assert second.token != first.token
        with pytest.raises(InvalidConsentTokenException):
            await consent_workflow.respond_to_identity(first.token, "citizen-1", "approve")

    @pytest.mark.asyncio
    async def test_new_request_after_decline(self, consent_workflow):
        first = await consent_workflow.request_identity("c-anon", "water_board")
        await consent_workflow.respond_to_identity(first.token, "citizen-1", ConsentDecision.DECLINE)

        second = await consent_workflow.request_identity("c-anon", "water_board")
        assert second.token != first.token
        assert await consent_workflow.consent_status("c-anon") == ConsentStatus.REQUESTED

    @pytest.mark.asyncio
    async def test_request_after_approval_not_applicable(self, consent_workflow):
        ticket = await consent_workflow.request_identity("c-anon", "water_board")
        await consent_workflow.respond_to_identity(ticket.token, "citizen-1", "approve")
        with pytest.raises(ConsentNotApplicableException):
            await consent_workflow.request_identity("c-anon", "water_board")

    @pytest.mark.asyncio
    async def test_token_collision_is_reminted(self, repository, directory, clock):
        tokens = iter(["dup", "dup", "fresh"])
        workflow = IdentityConsentWorkflow(
            repository, directory, clock=clock, token_factory=lambda: next(tokens)
        )
        first = await workflow.request_identity("c-anon", "water_board")
        second = await workflow.request_identity("c-anon-2", "water_board")
        assert first.token == "dup"
        assert second.token == "fresh"


class TestRespondToIdentity:

    @pytest.mark.asyncio
    async def test_approval_reveals_identity_to_requester(self, consent_workflow):
        ticket = await consent_workflow.request_identity("c-anon", "water_board")
        outcome = await consent_workflow.respond_to_identity(ticket.token, "citizen-1", "approve")

        assert isinstance(outcome, IdentityApproved)
        assert outcome.authority_id == "water_board"
        assert outcome.identity.name == "Nimal Perera"
        assert outcome.identity.phone == "0771234567"
        assert await consent_workflow.disclosed_identity("c-anon", "water_board") == outcome.identity
        assert await consent_workflow.disclosed_identity("c-anon", "ceb") is None

    @pytest.mark.asyncio
    async def test_decline_keeps_identity_hidden(self, consent_workflow):
        ticket = await consent_workflow.request_identity("c-anon", "water_board")
        outcome = await consent_workflow.respond_to_identity(ticket.token, "citizen-1", "decline")

        assert isinstance(outcome, IdentityDeclined)
        assert not outcome.approved
        assert await consent_workflow.disclosed_identity("c-anon", "water_board") is None
        assert await consent_workflow.consent_status("c-anon") == ConsentStatus.DECLINED

    @pytest.mark.asyncio
    async def test_expired_token_rejected(self, consent_workflow, clock):
        ticket = await consent_workflow.request_identity("c-anon", "water_board")
        clock.now += timedelta(hours=24, seconds=1)

        with pytest.raises(ConsentTokenExpiredException):
            await consent_workflow.respond_to_identity(ticket.token, "citizen-1", "approve")
        assert await consent_workflow.disclosed_identity("c-anon", "water_board") is None

    @pytest.mark.asyncio
    async def test_token_valid_until_expiry_instant(self, consent_workflow, clock):
        ticket = await consent_workflow.request_identity("c-anon", "water_board")
        clock.now = ticket.expires_at
        outcome = await consent_workflow.respond_to_identity(ticket.token, "citizen-1", "approve")
        assert isinstance(outcome, IdentityApproved)

    @pytest.mark.asyncio
    async def test_reused_token_rejected(self, consent_workflow):
        ticket = await consent_workflow.request_identity("c-anon", "water_board")
        await consent_workflow.respond_to_identity(ticket.token, "citizen-1", "decline")
        with pytest.raises(InvalidConsentTokenException):
            await consent_workflow.respond_to_identity(ticket.token, "citizen-1", "approve")

    @pytest.mark.asyncio
    async def test_unknown_token_rejected(self, consent_workflow):
        with pytest.raises(InvalidConsentTokenException):
            await consent_workflow.respond_to_identity("not-a-token", "citizen-1", "approve")

    @pytest.mark.asyncio
    async def test_only_owner_may_respond(self, consent_workflow):
        ticket = await consent_workflow.request_identity("c-anon", "water_board")
        with pytest.raises(ConsentForbiddenException):
            await consent_workflow.respond_to_identity(ticket.token, "citizen-2", "approve")
        assert await consent_workflow.consent_status("c-anon") == ConsentStatus.REQUESTED

    @pytest.mark.asyncio
    async def test_unknown_decision_rejected(self, consent_workflow):
        ticket = await consent_workflow.request_identity("c-anon", "water_board")
        with pytest.raises(ValidationException):
            await consent_workflow.respond_to_identity(ticket.token, "citizen-1", "maybe")

    @pytest.mark.asyncio
    async def test_missing_identity_leaves_request_open(self, consent_workflow):
        ticket = await consent_workflow.request_identity("c-anon-2", "water_board")
        with pytest.raises(ResourceNotFoundException):
            await consent_workflow.respond_to_identity(ticket.token, "citizen-2", "approve")
        assert await consent_workflow.consent_status("c-anon-2") == ConsentStatus.REQUESTED


def test_generated_tokens_are_long_and_distinct():
    tokens = {generate_consent_token() for _ in range(50)}
    assert len(tokens) == 50
    assert all(len(token) >= 43 for token in tokens)


def test_ttl_must_be_positive(repository, directory):
    with pytest.raises(ValueError):
        IdentityConsentWorkflow(repository, directory, ttl_hours=0)
