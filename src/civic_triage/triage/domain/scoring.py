"""
Triage Scoring
==============

Deterministic scorers of the triage pipeline.

- HazardScorer: tier-weighted lexical danger signal
- CategoryKeywordMatcher: tiered keyword category guess with precedence rules
- UrgencyCalculator: fixed linear urgency formula
- AuthorityRouter: category -> authority lookup

None of these call out to external services and none of them keep state
between calls; they read the immutable ``TriageRules`` they were built with.
"""

from typing import Iterable, Optional, Tuple

from civic_triage.config import Authority, FALLBACK_AUTHORITY, UrgencyLevel
from civic_triage.triage.domain.entities import CategoryPrediction
from civic_triage.triage.domain.rules import CategoryKeywords, TriageRules


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return min(max(value, low), high)


class HazardScorer:
    """
    Scores physical danger signalled by the complaint text.

    Matched keyword weights are summed and normalized by the weight of the
    whole table. Any critical hit boosts the result by 30%.
    """

    CRITICAL_BOOST = 1.3

    def __init__(self, rules: TriageRules):
        self._tiers = rules.hazard_keywords
        self._max_possible = self._tiers.max_possible_score

    def score(self, text: str) -> float:
        """
        Calculate the hazard keyword score.

        Args:
            text: Raw complaint text

        Returns:
            Score in [0, 1]; 0.0 when nothing matched
        """
        if self._max_possible <= 0:
            return 0.0

        lowered = (text or "").lower()
        total = 0
        for weight, keywords in self._tiers.weighted():
            total += weight * sum(1 for kw in keywords if kw in lowered)

        normalized = _clamp(total / self._max_possible)

        if any(kw in lowered for kw in self._tiers.critical):
            return min(normalized * self.CRITICAL_BOOST, 1.0)
        return normalized


class CategoryKeywordMatcher:
    """
    Guesses the complaint category from tiered keyword tables.

    Precedence between domains:
    - a specific domain (water, electricity, road, garbage) scoring at
      least SPECIFIC_PRECEDENCE_SCORE wins, whatever generic domains scored
    - below that, a generic domain (safety, environmental) that scored
      strictly higher takes over with a lower confidence floor
    - otherwise the best specific domain wins
    """

    HIGH_WEIGHT = 3
    MEDIUM_WEIGHT = 2
    LOW_WEIGHT = 1
    SPECIFIC_PRECEDENCE_SCORE = 2
    MIN_CONFIDENCE_DENOMINATOR = 10
    KEYWORD_CONFIDENCE_FLOOR = 0.7
    GENERIC_CONFIDENCE_FLOOR = 0.6

    def __init__(self, rules: TriageRules):
        self._tables = rules.category_keywords

    def match(self, text: str) -> CategoryPrediction:
        """
        Match complaint text against every category table.

        Args:
            text: Raw complaint text

        Returns:
            CategoryPrediction, or a no-match prediction (None, 0.0)
        """
        lowered = (text or "").lower()

        scored = []
        for table in self._tables:
            score = self.score_category(table, lowered)
            if score > 0:
                scored.append((table, score))

        if not scored:
            return CategoryPrediction.no_match()

        best_specific = self._best(pair for pair in scored if not pair[0].generic)
        best_generic = self._best(pair for pair in scored if pair[0].generic)

        if best_specific and best_specific[1] >= self.SPECIFIC_PRECEDENCE_SCORE:
            return self._win(best_specific, self.KEYWORD_CONFIDENCE_FLOOR)

        if best_generic and (best_specific is None or best_generic[1] > best_specific[1]):
            return self._win(best_generic, self.GENERIC_CONFIDENCE_FLOOR)

        return self._win(best_specific, self.KEYWORD_CONFIDENCE_FLOOR)

    @classmethod
    def score_category(cls, table: CategoryKeywords, lowered: str) -> int:
        """
        Weighted keyword score of one category.

        Low-tier keywords are a last resort: they only count when no high or
        medium keyword of the same category matched.
        """
        score = cls.HIGH_WEIGHT * sum(1 for kw in table.high if kw in lowered)
        score += cls.MEDIUM_WEIGHT * sum(1 for kw in table.medium if kw in lowered)
        if score == 0:
            score = cls.LOW_WEIGHT * sum(1 for kw in table.low if kw in lowered)
        return score

    @staticmethod
    def _best(
        pairs: Iterable[Tuple[CategoryKeywords, int]]
    ) -> Optional[Tuple[CategoryKeywords, int]]:
        # Earlier tables win ties
        best = None
        for pair in pairs:
            if best is None or pair[1] > best[1]:
                best = pair
        return best

    def _win(self, pair: Tuple[CategoryKeywords, int], floor: float) -> CategoryPrediction:
        table, score = pair
        denominator = max(table.max_possible_score, self.MIN_CONFIDENCE_DENOMINATOR)
        confidence = min(score / denominator, 1.0)
        return CategoryPrediction(category=table.category, confidence=max(confidence, floor))


class UrgencyCalculator:
    """
    Pure functions for urgency calculations.

    Formula (fixed weights):
        urgency = 0.4 * sentiment + 0.3 * category confidence
                + 0.2 * hazard + 0.1 * trust
    """

    SENTIMENT_WEIGHT = 0.4
    CATEGORY_WEIGHT = 0.3
    HAZARD_WEIGHT = 0.2
    TRUST_WEIGHT = 0.1

    CRITICAL_THRESHOLD = 0.9
    URGENT_THRESHOLD = 0.7

    @staticmethod
    def calculate(
        sentiment_score: float,
        category_confidence: float,
        hazard_keyword_score: float,
        trust_score: float
    ) -> float:
        """
        Calculate the urgency score.

        Args:
            sentiment_score: Score of the detected sentiment label
            category_confidence: Confidence of the chosen category
            hazard_keyword_score: Output of HazardScorer
            trust_score: Score of the submitter trust class

        Returns:
            Urgency in [0, 1]
        """
        urgency = (
            UrgencyCalculator.SENTIMENT_WEIGHT * sentiment_score
            + UrgencyCalculator.CATEGORY_WEIGHT * category_confidence
            + UrgencyCalculator.HAZARD_WEIGHT * hazard_keyword_score
            + UrgencyCalculator.TRUST_WEIGHT * trust_score
        )
        return _clamp(urgency)

    @staticmethod
    def level(urgency_score: float) -> UrgencyLevel:
        """Map an urgency score to its band."""
        if urgency_score >= UrgencyCalculator.CRITICAL_THRESHOLD:
            return UrgencyLevel.CRITICAL
        elif urgency_score >= UrgencyCalculator.URGENT_THRESHOLD:
            return UrgencyLevel.URGENT
        else:
            return UrgencyLevel.NORMAL


class AuthorityRouter:
    """Assigns exactly one handling authority to a category. Never raises."""

    def __init__(self, rules: TriageRules):
        self._routes = rules.authority_routes

    def route(self, category: Optional[str]) -> Authority:
        """
        Find the authority for a category.

        Exact key match first, then the first key contained in the category
        string, then the fallback authority.
        """
        normalized = str(getattr(category, "value", category) or "").strip().lower()

        for route in self._routes:
            if route.key == normalized:
                return route.authority

        if normalized:
            for route in self._routes:
                if route.key and route.key in normalized:
                    return route.authority

        return FALLBACK_AUTHORITY
