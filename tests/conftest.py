"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from typing import List, Sequence

import pytest

from civic_triage.complaints.application import IdentityConsentWorkflow
from civic_triage.complaints.domain import CitizenIdentity, Complaint
from civic_triage.complaints.infrastructure import (
    InMemoryCitizenDirectory, InMemoryComplaintRepository
)
from civic_triage.config import Settings
from civic_triage.triage.application import (
    AIClassificationService, IClassifierClient, LabelScore, TriageService
)
from civic_triage.triage.domain import TriageRules

NEGATIVE_COMPLAINT = [LabelScore("NEGATIVE", 0.9), LabelScore("POSITIVE", 0.1)]


class FakeClassifierClient(IClassifierClient):
    """
    Scripted classifier. Queued items are returned (or raised, for
    exceptions) in order; once a queue is empty the default answer is used.
    """

    def __init__(self):
        self.sentiment_queue: List = []
        self.zero_shot_queue: List = []
        self.default_sentiment = NEGATIVE_COMPLAINT
        self.default_zero_shot = None
        self.sentiment_calls = 0
        self.zero_shot_calls = 0
        self.close_calls = 0

    async def sentiment(self, text: str) -> List[LabelScore]:
        self.sentiment_calls += 1
        return self._next(self.sentiment_queue, self.default_sentiment)

    async def zero_shot(self, text: str, candidate_labels: Sequence[str]) -> List[LabelScore]:
        self.zero_shot_calls += 1
        default = self.default_zero_shot
        if default is None:
            share = 1.0 / len(candidate_labels)
            default = [LabelScore(label, share) for label in candidate_labels]
        return self._next(self.zero_shot_queue, default)

    async def close(self) -> None:
        self.close_calls += 1

    @staticmethod
    def _next(queue, default):
        item = queue.pop(0) if queue else default
        if isinstance(item, Exception):
            raise item
        return item


class Clock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def settings():
    """Provide settings fixture."""
    return Settings(huggingface_api_key="test-key", ai_timeout_seconds=5)


@pytest.fixture
def rules():
    return TriageRules()


@pytest.fixture
def fake_client():
    return FakeClassifierClient()


@pytest.fixture
def sleeps():
    """Records requested back-off delays instead of sleeping."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)
    return _sleep


@pytest.fixture
def ai_service(fake_client, rules, fake_sleep):
    return AIClassificationService(fake_client, rules, retry_delay_seconds=10.0, sleep=fake_sleep)


@pytest.fixture
def triage_service(ai_service, rules):
    return TriageService(ai_service, rules)


@pytest.fixture
def clock():
    return Clock(datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def repository():
    return InMemoryComplaintRepository([
        Complaint(id="c-anon", citizen_id="citizen-1", anonymous=True),
        Complaint(id="c-named", citizen_id="citizen-1", anonymous=False),
        Complaint(id="c-anon-2", citizen_id="citizen-2", anonymous=True),
    ])


@pytest.fixture
def directory():
    return InMemoryCitizenDirectory({
        "citizen-1": CitizenIdentity(name="Nimal Perera", phone="0771234567", email="nimal@example.com"),
    })


@pytest.fixture
def consent_workflow(repository, directory, clock):
    return IdentityConsentWorkflow(repository, directory, ttl_hours=24, clock=clock)
