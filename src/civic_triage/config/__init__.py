"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="civic-triage", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Root logging level")

    # ========== HuggingFace Inference API ==========
    huggingface_api_key: Optional[str] = Field(
        default=None,
        description="HuggingFace API token for the inference endpoints"
    )
    huggingface_base_url: str = Field(
        default="https://api-inference.huggingface.co/models",
        description="Base URL of the inference API"
    )
    sentiment_model: str = Field(
        default="distilbert-base-uncased-finetuned-sst-2-english",
        description="Model used for sentiment classification"
    )
    classification_model: str = Field(
        default="facebook/bart-large-mnli",
        description="Model used for zero-shot category classification"
    )
    ai_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for a single inference call",
        ge=0.1,
        le=120
    )
    ai_retry_delay_seconds: float = Field(
        default=10.0,
        description="Wait before the single retry when the model is loading",
        ge=0.0
    )
    mock_classifier: bool = Field(
        default=False,
        description="Use canned classifier responses (no API calls)"
    )

    # ========== Triage Rules ==========
    triage_rules_path: Path = Field(
        default=Path("triage_rules.yaml"),
        description="Path to optional YAML file overriding keyword tables"
    )

    # ========== Identity Consent ==========
    consent_token_ttl_hours: int = Field(
        default=24,
        description="Lifetime of an identity consent token",
        ge=1
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class ComplaintCategory(str, Enum):
    """Handling categories a complaint can be triaged into."""
    WATER = "water issue"
    ELECTRICITY = "electricity issue"
    ROAD = "road issue"
    GARBAGE = "garbage issue"
    SAFETY = "safety hazard"                # generic domain
    ENVIRONMENTAL = "environmental issue"   # generic domain


class Authority(str, Enum):
    """Authorities a complaint can be assigned to."""
    MUNICIPAL_COUNCIL = "municipal_council"
    WATER_BOARD = "water_board"
    CEB = "ceb"                             # Ceylon Electricity Board
    RDA = "rda"                             # Road Development Authority
    POLICE_SAFETY = "police_safety"
    DISASTER_MANAGEMENT = "disaster_management"


class Sentiment(str, Enum):
    """Sentiment labels."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class UrgencyLevel(str, Enum):
    """Urgency bands derived from the urgency score."""
    CRITICAL = "critical"
    URGENT = "urgent"
    NORMAL = "normal"


class TrustClass(str, Enum):
    """Submitter trust classes."""
    ANONYMOUS = "anonymous"
    REGISTERED = "registered"


class CategorySource(str, Enum):
    """Where the final category of a triage came from."""
    OVERRIDE = "override"
    KEYWORD = "keyword"
    AI = "ai"


class AbstentionReason(str, Enum):
    """Why a category could not be determined."""
    LOW_CONFIDENCE = "low_confidence"
    SERVICE_UNAVAILABLE = "service_unavailable"


class ComplaintStatus(str, Enum):
    """Complaint lifecycle statuses."""
    PENDING = "pending"
    SEEN = "seen"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class ConsentStatus(str, Enum):
    """Identity consent states."""
    NONE = "none"
    REQUESTED = "requested"
    APPROVED = "approved"
    DECLINED = "declined"
    EXPIRED = "expired"                     # derived, never stored


class ConsentDecision(str, Enum):
    """Citizen answers to an identity request."""
    APPROVE = "approve"
    DECLINE = "decline"


# ========== Lists for validation ==========

COMPLAINT_CATEGORIES = [c.value for c in ComplaintCategory]
FALLBACK_AUTHORITY = Authority.MUNICIPAL_COUNCIL
