"""
Triage Application Services
============================

Application services for complaint triage.

Orchestrates the deterministic scorers and the external AI classifier.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional, Sequence

from civic_triage.config import (
    AbstentionReason, CategorySource, ComplaintCategory, Sentiment
)
from civic_triage.core import (
    ClassifierServiceException, ModelLoadingException, ValidationException
)
from civic_triage.shared.infrastructure.logging import get_context_logger, get_logger
from civic_triage.triage.domain import (
    AIAnalysis, AuthorityRouter, BatchTriageSummary, CategoryKeywordMatcher,
    CategoryPrediction, HazardScorer, SentimentResult, TriageInput,
    TriageResult, TriageRules, UrgencyCalculator, extract_key_phrases,
    generate_summary
)

logger = get_logger(__name__)

ABSTAIN_MESSAGE = (
    "Could not determine category. Please re-enter your problem with more "
    "details or select a category manually."
)
UNAVAILABLE_MESSAGE = (
    "Category classification is currently unavailable. Please select a "
    "category manually."
)


# ========== Classifier Interface ==========

@dataclass(frozen=True)
class LabelScore:
    """One label/score pair returned by the classification service."""
    label: str
    score: float


class IClassifierClient(ABC):
    """
    Interface for the external text-classification service.

    Implementations raise ModelLoadingException while the model is warming
    up and ClassifierServiceException for every other failure.
    """

    @abstractmethod
    async def sentiment(self, text: str) -> List[LabelScore]:
        """Classify sentiment; returns graded label/score pairs."""

    @abstractmethod
    async def zero_shot(self, text: str, candidate_labels: Sequence[str]) -> List[LabelScore]:
        """Score the text against caller-supplied candidate labels."""

    async def close(self) -> None:
        """Release any held connections."""


# ========== Application Services ==========

class AIClassificationService:
    """
    Sentiment and category classification through the external service.

    Both calls share one retry rule: a "model loading" answer is retried
    once after ``retry_delay_seconds``; any other failure, or a second
    failure, degrades to a deterministic fallback. Sentiment falls back to
    neutral 0.5, category classification abstains.
    """

    ACCEPT_SCORE = 0.5
    PLURALITY_SCORE = 0.3

    def __init__(
        self,
        client: IClassifierClient,
        rules: TriageRules,
        retry_delay_seconds: float = 10.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self._client = client
        self._labels = rules.label_values
        self._retry_delay = retry_delay_seconds
        self._sleep = sleep

    async def analyze(self, text: str) -> AIAnalysis:
        """Run sentiment and category classification concurrently."""
        sentiment, category = await asyncio.gather(
            self.analyze_sentiment(text),
            self.classify_category(text),
        )
        return AIAnalysis(sentiment=sentiment, category=category)

    async def analyze_sentiment(self, text: str) -> SentimentResult:
        """
        Classify sentiment.

        Returns:
            SentimentResult; neutral 0.5 when the service fails
        """
        try:
            scores = await self._call_with_retry(
                "sentiment", lambda: self._client.sentiment(text)
            )
        except ClassifierServiceException as e:
            logger.warning(
                "Sentiment analysis failed, using neutral fallback",
                extra={"error": e.message}
            )
            return SentimentResult.neutral()

        return self.interpret_sentiment(scores)

    async def classify_category(self, text: str) -> CategoryPrediction:
        """
        Zero-shot classify the complaint against the category label set.

        Returns:
            CategoryPrediction; an abstention when confidence is too low or
            the service failed
        """
        try:
            scores = await self._call_with_retry(
                "classification", lambda: self._client.zero_shot(text, self._labels)
            )
        except ClassifierServiceException as e:
            logger.warning(
                "Category classification failed, abstaining",
                extra={"error": e.message}
            )
            return CategoryPrediction.abstain(
                AbstentionReason.SERVICE_UNAVAILABLE, UNAVAILABLE_MESSAGE
            )

        prediction = self.interpret_classification(scores, self._labels)
        if not prediction.found:
            ranked = sorted(scores, key=lambda s: s.score, reverse=True)
            logger.warning(
                "Classifier abstained",
                extra={"top_scores": [(s.label, round(s.score, 3)) for s in ranked[:2]]}
            )
        return prediction

    async def close(self) -> None:
        await self._client.close()

    async def _call_with_retry(self, operation: str, call: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await call()
        except ModelLoadingException as e:
            logger.warning(
                "Model loading, retrying once",
                extra={
                    "operation": operation,
                    "model": e.model,
                    "retry_delay_seconds": self._retry_delay
                }
            )
            await self._sleep(self._retry_delay)
            return await call()

    @staticmethod
    def interpret_sentiment(scores: Iterable[LabelScore]) -> SentimentResult:
        """Pick the highest-scoring known sentiment label."""
        known = {s.value: s for s in Sentiment}
        best: Optional[LabelScore] = None
        for item in scores:
            if item.label.strip().lower() not in known:
                continue
            if best is None or item.score > best.score:
                best = item

        if best is None:
            return SentimentResult.neutral()

        return SentimentResult(
            sentiment=known[best.label.strip().lower()],
            score=min(max(best.score, 0.0), 1.0),
        )

    @classmethod
    def interpret_classification(
        cls,
        scores: Iterable[LabelScore],
        labels: Sequence[str]
    ) -> CategoryPrediction:
        """
        Accept the top label if it scores at least ACCEPT_SCORE, or at least
        PLURALITY_SCORE while strictly beating the runner-up.
        """
        ranked = sorted(scores, key=lambda s: s.score, reverse=True)
        if not ranked:
            return CategoryPrediction.abstain(AbstentionReason.LOW_CONFIDENCE, ABSTAIN_MESSAGE)

        top = ranked[0]
        runner_up = ranked[1].score if len(ranked) > 1 else 0.0
        label = top.label.strip().lower()

        accepted = top.score >= cls.ACCEPT_SCORE or (
            top.score >= cls.PLURALITY_SCORE and top.score > runner_up
        )
        if not accepted or label not in labels:
            return CategoryPrediction.abstain(AbstentionReason.LOW_CONFIDENCE, ABSTAIN_MESSAGE)

        return CategoryPrediction(
            category=ComplaintCategory(label),
            confidence=min(max(top.score, 0.0), 1.0),
        )


class TriageService:
    """
    Triage orchestrator for one complaint.

    Sequences hazard scoring, keyword matching and AI classification, then
    urgency and routing. Stateless between calls; persists nothing.
    """

    def __init__(self, ai_service: AIClassificationService, rules: TriageRules):
        self._ai = ai_service
        self._rules = rules
        self._hazard = HazardScorer(rules)
        self._matcher = CategoryKeywordMatcher(rules)
        self._router = AuthorityRouter(rules)

    async def triage(self, triage_input: TriageInput) -> TriageResult:
        """
        Triage a complaint.

        Args:
            triage_input: Complaint text, trust class and optional category override

        Returns:
            TriageResult; ``error`` is set when no category could be determined

        Raises:
            ValidationException: Empty text, unknown trust class or override
        """
        text = (triage_input.text or "").strip()
        if not text:
            raise ValidationException("Complaint text is required")

        override = coerce_category(triage_input.category_override)
        trust_score = self._rules.trust_policy.score_for(triage_input.trust_class)

        hazard_score = self._hazard.score(text)
        keyword = self._matcher.match(text)
        analysis = await self._ai.analyze(text)

        category, source = self._choose_category(override, keyword, analysis.category)
        # Detected confidence feeds urgency even when an override names the category
        confidence = keyword.confidence if keyword.found else analysis.category.confidence

        urgency = UrgencyCalculator.calculate(
            sentiment_score=analysis.sentiment.score,
            category_confidence=confidence,
            hazard_keyword_score=hazard_score,
            trust_score=trust_score,
        )
        authority = self._router.route(category)

        error = category is None
        reason = None
        message = None
        if error:
            reason = analysis.category.reason or AbstentionReason.LOW_CONFIDENCE
            message = analysis.category.message or ABSTAIN_MESSAGE

        result = TriageResult(
            category=category,
            category_confidence=confidence,
            category_source=source,
            sentiment=analysis.sentiment.sentiment,
            sentiment_score=analysis.sentiment.score,
            hazard_keyword_score=hazard_score,
            urgency_score=urgency,
            urgency_level=UrgencyCalculator.level(urgency),
            trust_score=trust_score,
            assigned_authority=authority,
            summary=generate_summary(text),
            key_phrases=tuple(extract_key_phrases(text)),
            error=error,
            message=message,
            abstention_reason=reason,
        )

        logger.info(
            "Complaint triaged",
            extra={
                "category": category.value if category else None,
                "category_source": source.value if source else None,
                "urgency_score": round(urgency, 4),
                "urgency_level": result.urgency_level.value,
                "assigned_authority": authority.value,
            }
        )
        return result

    def triage_sync(self, triage_input: TriageInput) -> TriageResult:
        """Run one triage from synchronous code on a fresh event loop."""
        return asyncio.run(self._triage_once(triage_input))

    async def _triage_once(self, triage_input: TriageInput) -> TriageResult:
        try:
            return await self.triage(triage_input)
        finally:
            # The HTTP client is bound to this loop
            await self._ai.close()

    @staticmethod
    def _choose_category(
        override: Optional[ComplaintCategory],
        keyword: CategoryPrediction,
        ai: CategoryPrediction
    ):
        if override is not None:
            return override, CategorySource.OVERRIDE
        if keyword.found:
            return keyword.category, CategorySource.KEYWORD
        if ai.found:
            return ai.category, CategorySource.AI
        return None, None


class BatchTriageService:
    """
    Feeds already-parsed bulk-import rows through the triage orchestrator.

    Rows are submitted anonymously. File parsing is the caller's job.
    """

    TEXT_COLUMNS = ("text", "description", "complaint")

    def __init__(self, triage_service: TriageService, max_concurrency: int = 4):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._triage = triage_service
        self._semaphore_size = max_concurrency

    async def triage_rows(
        self,
        rows: Iterable[Mapping[str, Any]],
        correlation_id: Optional[str] = None
    ) -> BatchTriageSummary:
        """
        Triage every row and aggregate the outcome.

        Args:
            rows: Mappings with the complaint under text/description/complaint
            correlation_id: Import run identifier attached to the log lines

        Returns:
            BatchTriageSummary with per-row results and errors
        """
        semaphore = asyncio.Semaphore(self._semaphore_size)
        summary = BatchTriageSummary()

        async def run(row_number: int, row: Mapping[str, Any]):
            text = self._extract_text(row)
            if not text:
                return row_number, None, "Missing required field: text/description/complaint"
            async with semaphore:
                try:
                    result = await self._triage.triage(TriageInput(text=text))
                except ValidationException as e:
                    return row_number, None, e.message
            return row_number, result, None

        outcomes = await asyncio.gather(
            *(run(number, row) for number, row in enumerate(rows, start=1))
        )

        for row_number, result, error in outcomes:
            if error is not None:
                summary.add_error(row_number, error)
            else:
                summary.add_result(result, UrgencyCalculator.URGENT_THRESHOLD)

        batch_logger = get_context_logger(__name__, correlation_id)
        batch_logger.info(
            "Batch triage completed",
            extra={
                "processed_count": summary.processed_count,
                "urgent_count": summary.urgent_count,
                "error_count": len(summary.errors),
            }
        )
        return summary

    @classmethod
    def _extract_text(cls, row: Mapping[str, Any]) -> str:
        for column in cls.TEXT_COLUMNS:
            value = row.get(column)
            if value is not None and str(value).strip():
                return str(value).strip()
        return ""


def coerce_category(value: Any) -> Optional[ComplaintCategory]:
    """
    Normalize a caller-supplied category.

    Raises:
        ValidationException: If the value is not one of the known categories
    """
    if value is None:
        return None
    if isinstance(value, ComplaintCategory):
        return value
    normalized = str(value).strip().lower()
    if not normalized:
        return None
    try:
        return ComplaintCategory(normalized)
    except ValueError:
        raise ValidationException(
            f"Unknown category '{value}'",
            {"allowed": [c.value for c in ComplaintCategory]}
        )
