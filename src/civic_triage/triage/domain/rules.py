"""
Triage Rules
============

Declarative keyword tables and lookup data consumed by the scorers.

Every table is an immutable value object. Defaults live here; a YAML file can
override any section (see ``TriageRulesLoader``). Rules are loaded once at
startup and passed by reference into the stateless scoring functions.
"""

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from civic_triage.config import Authority, ComplaintCategory, TrustClass
from civic_triage.core import ValidationException


def _normalize_keywords(values: Tuple[str, ...]) -> Tuple[str, ...]:
    return tuple(v.strip().lower() for v in values if v and v.strip())


class HazardTiers(BaseModel):
    """Hazard keywords grouped by severity (critical=3, high=2, medium=1)."""
    model_config = ConfigDict(frozen=True)

    critical: Tuple[str, ...] = ()
    high: Tuple[str, ...] = ()
    medium: Tuple[str, ...] = ()

    @field_validator("critical", "high", "medium")
    @classmethod
    def normalize_keywords(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return _normalize_keywords(v)

    def weighted(self) -> Tuple[Tuple[int, Tuple[str, ...]], ...]:
        return ((3, self.critical), (2, self.high), (1, self.medium))

    @property
    def max_possible_score(self) -> int:
        return sum(weight * len(words) for weight, words in self.weighted())


class CategoryKeywords(BaseModel):
    """
    Keyword table for one complaint category.

    High-tier hits weigh 3, medium 2, low 1. Generic categories only win
    when specific evidence is weak.
    """
    model_config = ConfigDict(frozen=True)

    category: ComplaintCategory
    generic: bool = False
    high: Tuple[str, ...] = ()
    medium: Tuple[str, ...] = ()
    low: Tuple[str, ...] = ()

    @field_validator("high", "medium", "low")
    @classmethod
    def normalize_keywords(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return _normalize_keywords(v)

    @property
    def max_possible_score(self) -> int:
        return 3 * len(self.high) + 2 * len(self.medium) + len(self.low)


class AuthorityRoute(BaseModel):
    """One entry of the ordered category -> authority table."""
    model_config = ConfigDict(frozen=True)

    key: str
    authority: Authority

    @field_validator("key")
    @classmethod
    def normalize_key(cls, v: str) -> str:
        return v.strip().lower()


class TrustTier(BaseModel):
    """Trust score granted to one submitter trust class."""
    model_config = ConfigDict(frozen=True)

    trust_class: str
    score: float = Field(ge=0.0, le=1.0)


class TrustPolicy(BaseModel):
    """
    Maps a submitter trust class to a trust score.

    New tiers (verified phone, repeat reporter...) are added as data; the
    urgency formula only ever sees the resulting score.
    """
    model_config = ConfigDict(frozen=True)

    tiers: Tuple[TrustTier, ...] = (
        TrustTier(trust_class=TrustClass.ANONYMOUS.value, score=0.3),
        TrustTier(trust_class=TrustClass.REGISTERED.value, score=0.8),
    )

    def score_for(self, trust_class: str) -> float:
        """
        Look up the trust score for a trust class.

        Raises:
            ValidationException: If the trust class is not configured
        """
        key = str(getattr(trust_class, "value", trust_class)).strip().lower()
        for tier in self.tiers:
            if tier.trust_class.lower() == key:
                return tier.score
        raise ValidationException(
            f"Unknown trust class '{key}'",
            {"known": [t.trust_class for t in self.tiers]}
        )

    @property
    def trust_classes(self) -> Tuple[str, ...]:
        return tuple(t.trust_class for t in self.tiers)


# ========== Default tables ==========

DEFAULT_HAZARD_TIERS = HazardTiers(
    critical=("burst", "collapse", "fire", "flood"),
    high=("sparking", "urgent"),
    medium=("leak", "blocked"),
)

DEFAULT_CATEGORY_KEYWORDS = (
    CategoryKeywords(
        category=ComplaintCategory.WATER,
        high=(
            "water pipe", "pipe burst", "burst pipe", "water main",
            "water supply", "no water", "water leak", "sewage",
        ),
        medium=(
            "pipe", "tap", "drinking water", "water pressure",
            "sewer", "drain", "flooding", "leak",
        ),
        low=("water", "wet", "drip"),
    ),
    CategoryKeywords(
        category=ComplaintCategory.ELECTRICITY,
        high=(
            "power outage", "power cut", "no electricity", "electric shock",
            "live wire", "transformer", "power line",
        ),
        medium=(
            "electricity", "electric", "sparking", "voltage",
            "street light", "streetlight", "wire", "blackout",
        ),
        low=("power", "light", "meter"),
    ),
    CategoryKeywords(
        category=ComplaintCategory.ROAD,
        high=(
            "pothole", "road damage", "damaged road", "road collapse",
            "traffic signal", "broken road", "road blocked",
        ),
        medium=(
            "road", "pavement", "sidewalk", "bridge", "traffic",
            "speed bump", "crack",
        ),
        low=("street", "lane", "highway"),
    ),
    CategoryKeywords(
        category=ComplaintCategory.GARBAGE,
        high=(
            "garbage", "trash", "rubbish", "waste collection",
            "dumping", "overflowing bin",
        ),
        medium=("waste", "litter", "dustbin", "bin", "smell", "stink"),
        low=("dirty", "bag", "rats"),
    ),
    CategoryKeywords(
        category=ComplaintCategory.SAFETY,
        generic=True,
        high=(
            "unsafe", "danger", "dangerous", "crime", "assault",
            "robbery", "harassment",
        ),
        medium=(
            "threat", "fight", "suspicious", "stray dog",
            "broken fence", "hazard",
        ),
        low=("safety", "scared", "risk"),
    ),
    CategoryKeywords(
        category=ComplaintCategory.ENVIRONMENTAL,
        generic=True,
        high=(
            "pollution", "toxic", "chemical spill", "deforestation",
            "smoke", "air quality",
        ),
        medium=(
            "flood", "noise", "mosquito", "stagnant water",
            "fallen tree", "tree fell", "burning",
        ),
        low=("environment", "dust", "odour", "odor"),
    ),
)

DEFAULT_AUTHORITY_ROUTES = (
    AuthorityRoute(key="water issue", authority=Authority.WATER_BOARD),
    AuthorityRoute(key="electricity issue", authority=Authority.CEB),
    AuthorityRoute(key="road issue", authority=Authority.RDA),
    AuthorityRoute(key="garbage issue", authority=Authority.MUNICIPAL_COUNCIL),
    AuthorityRoute(key="safety hazard", authority=Authority.POLICE_SAFETY),
    AuthorityRoute(key="environmental issue", authority=Authority.MUNICIPAL_COUNCIL),
    AuthorityRoute(key="disaster", authority=Authority.DISASTER_MANAGEMENT),
    AuthorityRoute(key="flood", authority=Authority.DISASTER_MANAGEMENT),
    AuthorityRoute(key="storm", authority=Authority.DISASTER_MANAGEMENT),
)

DEFAULT_PERSONAL_PREMISES_KEYWORDS = (
    "bathroom",
    "inside house",
    "my house",
    "my home",
    "inside my",
    "personal",
)

DEFAULT_IDENTIFICATION_CATEGORIES = (
    ComplaintCategory.WATER,
    ComplaintCategory.ELECTRICITY,
)


class TriageRules(BaseModel):
    """
    Complete rule set for the triage pipeline.

    This is a value object - immutable and defined by its attributes.
    """
    model_config = ConfigDict(frozen=True)

    hazard_keywords: HazardTiers = DEFAULT_HAZARD_TIERS
    category_keywords: Tuple[CategoryKeywords, ...] = DEFAULT_CATEGORY_KEYWORDS
    classification_labels: Tuple[ComplaintCategory, ...] = tuple(ComplaintCategory)
    authority_routes: Tuple[AuthorityRoute, ...] = DEFAULT_AUTHORITY_ROUTES
    trust_policy: TrustPolicy = TrustPolicy()
    personal_premises_keywords: Tuple[str, ...] = DEFAULT_PERSONAL_PREMISES_KEYWORDS
    identification_categories: Tuple[ComplaintCategory, ...] = DEFAULT_IDENTIFICATION_CATEGORIES

    @field_validator("personal_premises_keywords")
    @classmethod
    def normalize_premises(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return _normalize_keywords(v)

    @field_validator("category_keywords")
    @classmethod
    def validate_unique_categories(
        cls, v: Tuple[CategoryKeywords, ...]
    ) -> Tuple[CategoryKeywords, ...]:
        """Each category may appear only once."""
        seen = [table.category for table in v]
        if len(seen) != len(set(seen)):
            raise ValueError("category_keywords lists a category more than once")
        return v

    @property
    def label_values(self) -> Tuple[str, ...]:
        """Candidate labels sent to the zero-shot classifier."""
        return tuple(label.value for label in self.classification_labels)
