"""Tests for the triage orchestrator and bulk triage."""

import logging

import pytest

from civic_triage.config import (
    AbstentionReason, Authority, CategorySource, ComplaintCategory,
    Sentiment, UrgencyLevel
)
from civic_triage.core import ClassifierServiceException, ValidationException
from civic_triage.triage.application import BatchTriageService, LabelScore
from civic_triage.triage.domain import TriageInput

PIPE_BURST = "Main water pipe burst, street flooding fast, urgent!"
VAGUE = "hello there, please help"


class TestTriage:

    @pytest.mark.asyncio
    async def test_pipe_burst_end_to_end(self, triage_service):
        result = await triage_service.triage(TriageInput(text=PIPE_BURST, trust_class="anonymous"))

        assert result.category == ComplaintCategory.WATER
        assert result.category_source == CategorySource.KEYWORD
        assert result.category_confidence == pytest.approx(0.7)
        assert result.hazard_keyword_score == pytest.approx(8 / 18 * 1.3)
        assert result.hazard_keyword_score > 8 / 18
        assert result.trust_score == pytest.approx(0.3)
        assert result.sentiment == Sentiment.NEGATIVE
        assert result.urgency_score >= 0.7
        assert result.urgency_level == UrgencyLevel.URGENT
        assert result.assigned_authority == Authority.WATER_BOARD
        assert not result.error
        assert result.message is None

    @pytest.mark.asyncio
    async def test_registered_submitter_gets_higher_trust(self, triage_service):
        anonymous = await triage_service.triage(TriageInput(text=PIPE_BURST))
        registered = await triage_service.triage(TriageInput(text=PIPE_BURST, trust_class="registered"))
        assert registered.trust_score == pytest.approx(0.8)
        assert registered.urgency_score == pytest.approx(anonymous.urgency_score + 0.05)

    @pytest.mark.asyncio
    async def test_override_wins_but_keyword_confidence_feeds_urgency(self, triage_service):
        result = await triage_service.triage(
            TriageInput(text=PIPE_BURST, category_override=ComplaintCategory.ROAD)
        )
        assert result.category == ComplaintCategory.ROAD
        assert result.category_source == CategorySource.OVERRIDE
        assert result.category_confidence == pytest.approx(0.7)
        assert result.assigned_authority == Authority.RDA

    @pytest.mark.asyncio
    async def test_override_reports_classifier_confidence_without_keywords(self, triage_service, fake_client):
        fake_client.default_zero_shot = [LabelScore("road issue", 0.8), LabelScore("water issue", 0.1)]
        result = await triage_service.triage(
            TriageInput(text=VAGUE, category_override=ComplaintCategory.GARBAGE)
        )
        assert result.category == ComplaintCategory.GARBAGE
        assert result.category_source == CategorySource.OVERRIDE
        assert result.category_confidence == pytest.approx(0.8)
        assert not result.error

    @pytest.mark.asyncio
    async def test_override_with_nothing_detected_reports_zero_confidence(self, triage_service):
        result = await triage_service.triage(
            TriageInput(text=VAGUE, category_override=ComplaintCategory.GARBAGE)
        )
        assert result.category == ComplaintCategory.GARBAGE
        assert result.category_confidence == 0.0
        assert result.abstention_reason is None

    @pytest.mark.asyncio
    async def test_override_accepts_plain_string(self, triage_service):
        result = await triage_service.triage(TriageInput(text=PIPE_BURST, category_override="Garbage Issue"))
        assert result.category == ComplaintCategory.GARBAGE

    @pytest.mark.asyncio
    async def test_unknown_override_rejected(self, triage_service):
        with pytest.raises(ValidationException):
            await triage_service.triage(TriageInput(text=PIPE_BURST, category_override="weather"))

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, triage_service, fake_client):
        with pytest.raises(ValidationException):
            await triage_service.triage(TriageInput(text="   "))
        assert fake_client.sentiment_calls == 0

    @pytest.mark.asyncio
    async def test_unknown_trust_class_rejected(self, triage_service):
        with pytest.raises(ValidationException):
            await triage_service.triage(TriageInput(text=PIPE_BURST, trust_class="vip"))

    @pytest.mark.asyncio
    async def test_ai_category_used_without_keywords(self, triage_service, fake_client):
        fake_client.default_zero_shot = [LabelScore("road issue", 0.8), LabelScore("water issue", 0.1)]
        result = await triage_service.triage(TriageInput(text=VAGUE))
        assert result.category == ComplaintCategory.ROAD
        assert result.category_source == CategorySource.AI
        assert result.category_confidence == pytest.approx(0.8)
        assert result.assigned_authority == Authority.RDA

    @pytest.mark.asyncio
    async def test_abstention_asks_for_category(self, triage_service):
        result = await triage_service.triage(TriageInput(text=VAGUE))
        assert result.category is None
        assert result.category_source is None
        assert result.error
        assert result.message
        assert result.abstention_reason == AbstentionReason.LOW_CONFIDENCE
        assert result.requires_category_selection
        assert result.assigned_authority == Authority.MUNICIPAL_COUNCIL
        assert result.category_confidence == 0.0

    @pytest.mark.asyncio
    async def test_service_outage_degrades(self, triage_service, fake_client):
        fake_client.sentiment_queue = [ClassifierServiceException("down")]
        fake_client.zero_shot_queue = [ClassifierServiceException("down")]
        result = await triage_service.triage(TriageInput(text=VAGUE))
        assert result.sentiment == Sentiment.NEUTRAL
        assert result.sentiment_score == 0.5
        assert result.abstention_reason == AbstentionReason.SERVICE_UNAVAILABLE
        assert result.error

    @pytest.mark.asyncio
    async def test_outage_with_keywords_still_categorizes(self, triage_service, fake_client):
        fake_client.sentiment_queue = [ClassifierServiceException("down")]
        fake_client.zero_shot_queue = [ClassifierServiceException("down")]
        result = await triage_service.triage(TriageInput(text=PIPE_BURST))
        assert result.category == ComplaintCategory.WATER
        assert not result.error
        assert result.abstention_reason is None

    @pytest.mark.asyncio
    async def test_insights_attached(self, triage_service):
        result = await triage_service.triage(TriageInput(text=PIPE_BURST))
        assert result.summary == PIPE_BURST
        assert "flooding" in result.key_phrases

    def test_triage_sync_closes_client(self, triage_service, fake_client):
        result = triage_service.triage_sync(TriageInput(text=PIPE_BURST))
        assert result.category == ComplaintCategory.WATER
        assert fake_client.close_calls == 1


class TestBatchTriage:

    @pytest.mark.asyncio
    async def test_rows_are_aggregated(self, triage_service):
        rows = [
            {"text": PIPE_BURST},
            {"description": VAGUE},
            {"title": "no text here"},
            {"complaint": "Garbage not collected for weeks"},
        ]
        summary = await BatchTriageService(triage_service).triage_rows(rows)

        assert summary.processed_count == 3
        assert summary.urgent_count == 1
        assert summary.category_summary == {
            "water issue": 1,
            "uncategorized": 1,
            "garbage issue": 1,
        }
        assert len(summary.errors) == 1
        assert summary.errors[0].row == 3
        assert [r.category for r in summary.results] == [
            ComplaintCategory.WATER, None, ComplaintCategory.GARBAGE,
        ]

    @pytest.mark.asyncio
    async def test_rows_are_anonymous(self, triage_service):
        summary = await BatchTriageService(triage_service).triage_rows([{"text": PIPE_BURST}])
        assert summary.results[0].trust_score == pytest.approx(0.3)

    def test_concurrency_must_be_positive(self, triage_service):
        with pytest.raises(ValueError):
            BatchTriageService(triage_service, max_concurrency=0)

    @pytest.mark.asyncio
    async def test_completion_logged_with_correlation_id(self, triage_service, caplog):
        caplog.set_level(logging.INFO, logger="civic_triage.triage.application.services")
        await BatchTriageService(triage_service).triage_rows(
            [{"text": PIPE_BURST}], correlation_id="import-42"
        )
        record = next(r for r in caplog.records if r.getMessage() == "Batch triage completed")
        assert record.correlation_id == "import-42"
        assert record.processed_count == 1
