"""
Triage External Service Adapters
==================================

Adapters for external services used by the triage module:
- HuggingFace inference API (sentiment + zero-shot classification)
- YAML rule file loader

Implements the interfaces defined in the application layer.
"""

from pathlib import Path
from typing import Any, List, Optional, Sequence

import httpx
import yaml
from pydantic import ValidationError

from civic_triage.config import Settings, get_settings
from civic_triage.core import (
    ClassifierServiceException, ConfigurationException, ModelLoadingException
)
from civic_triage.shared.infrastructure.logging import get_logger, log_latency
from civic_triage.triage.application.services import IClassifierClient, LabelScore
from civic_triage.triage.domain import TriageRules

logger = get_logger(__name__)


class HuggingFaceClassifierClient(IClassifierClient):
    """
    Client for the HuggingFace hosted inference API.

    A 503 answer whose error mentions loading is reported as
    ModelLoadingException; every other failure as ClassifierServiceException.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        settings = settings or get_settings()
        self._api_key = api_key or settings.huggingface_api_key
        if not self._api_key:
            raise ConfigurationException("HuggingFace API key not configured")

        self._base_url = settings.huggingface_base_url.rstrip("/")
        self._sentiment_model = settings.sentiment_model
        self._classification_model = settings.classification_model
        self._timeout = settings.ai_timeout_seconds
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._http_client

    async def sentiment(self, text: str) -> List[LabelScore]:
        """
        Classify sentiment with the configured sentiment model.

        Raises:
            ModelLoadingException: Model is warming up
            ClassifierServiceException: Any other failure
        """
        data = await self._post(self._sentiment_model, {"inputs": text})

        # Single inputs come back wrapped in an outer list
        if isinstance(data, list) and data and isinstance(data[0], list):
            data = data[0]

        return self._parse_label_list(data, self._sentiment_model)

    async def zero_shot(self, text: str, candidate_labels: Sequence[str]) -> List[LabelScore]:
        """
        Zero-shot classify against candidate labels.

        Raises:
            ModelLoadingException: Model is warming up
            ClassifierServiceException: Any other failure
        """
        payload = {
            "inputs": text,
            "parameters": {"candidate_labels": list(candidate_labels)},
        }
        data = await self._post(self._classification_model, payload)

        if isinstance(data, list) and data and isinstance(data[0], dict) and "labels" in data[0]:
            data = data[0]

        if isinstance(data, dict) and "labels" in data and "scores" in data:
            labels, scores = data["labels"], data["scores"]
            if not isinstance(labels, list) or not isinstance(scores, list) or len(labels) != len(scores):
                raise ClassifierServiceException(
                    "Zero-shot response has mismatched labels and scores",
                    {"model": self._classification_model}
                )
            try:
                return [LabelScore(label=str(l), score=float(s)) for l, s in zip(labels, scores)]
            except (TypeError, ValueError):
                raise ClassifierServiceException(
                    "Unexpected response shape", {"model": self._classification_model}
                )

        return self._parse_label_list(data, self._classification_model)

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _post(self, model: str, payload: dict) -> Any:
        client = await self._get_client()
        url = f"{self._base_url}/{model}"

        try:
            with log_latency(logger, "inference_call", model=model):
                response = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise ClassifierServiceException(
                f"Request to '{model}' failed: {e}", {"model": model}
            )

        if response.status_code == 503:
            estimated_time = self._loading_estimate(response)
            if estimated_time is not False:
                raise ModelLoadingException(model, estimated_time)

        if response.status_code != 200:
            raise ClassifierServiceException(
                f"'{model}' returned HTTP {response.status_code}",
                {"model": model, "status_code": response.status_code, "body": response.text[:200]}
            )

        try:
            return response.json()
        except ValueError as e:
            raise ClassifierServiceException(
                f"'{model}' returned invalid JSON: {e}", {"model": model}
            )

    @staticmethod
    def _loading_estimate(response: httpx.Response):
        """
        Estimated load time if the response is a model-loading signal.

        Returns False when the 503 is some other outage.
        """
        try:
            body = response.json()
        except ValueError:
            return False
        if not isinstance(body, dict):
            return False
        if "loading" not in str(body.get("error", "")).lower():
            return False
        estimated = body.get("estimated_time")
        return float(estimated) if isinstance(estimated, (int, float)) else None

    @staticmethod
    def _parse_label_list(data: Any, model: str) -> List[LabelScore]:
        if not isinstance(data, list):
            raise ClassifierServiceException(
                "Unexpected response shape", {"model": model}
            )
        try:
            return [LabelScore(label=str(item["label"]), score=float(item["score"])) for item in data]
        except (KeyError, TypeError, ValueError):
            raise ClassifierServiceException(
                "Unexpected response shape", {"model": model}
            )


class MockClassifierClient(IClassifierClient):
    """
    Mock classifier client for testing and offline runs.

    Returns predictable responses without calling external APIs.
    """

    async def sentiment(self, text: str) -> List[LabelScore]:
        """Complaints read as negative unless they say thanks."""
        if "thank" in text.lower():
            return [LabelScore("POSITIVE", 0.9), LabelScore("NEGATIVE", 0.1)]
        return [LabelScore("NEGATIVE", 0.9), LabelScore("POSITIVE", 0.1)]

    async def zero_shot(self, text: str, candidate_labels: Sequence[str]) -> List[LabelScore]:
        """Favour the first label whose leading word appears in the text."""
        lowered = text.lower()
        hit = next(
            (label for label in candidate_labels if label.split()[0] in lowered),
            None
        )
        if hit is None:
            share = 1.0 / max(len(candidate_labels), 1)
            return [LabelScore(label, share) for label in candidate_labels]

        rest = (1.0 - 0.6) / max(len(candidate_labels) - 1, 1)
        return [
            LabelScore(label, 0.6 if label == hit else rest)
            for label in candidate_labels
        ]


class TriageRulesLoader:
    """Loads triage rules from YAML, falling back to built-in defaults."""

    @staticmethod
    def load(path: Path) -> TriageRules:
        """
        Load and validate the rule file.

        Args:
            path: YAML file; any top-level section may be omitted

        Returns:
            TriageRules (defaults when the file does not exist)

        Raises:
            ConfigurationException: If the file is unreadable or invalid
        """
        if not path.exists():
            logger.info(f"Triage rules file not found: {path}, using defaults")
            return TriageRules()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationException(f"Failed to read triage rules: {e}", {"path": str(path)})

        if not isinstance(data, dict):
            raise ConfigurationException(
                "Triage rules file must contain a mapping", {"path": str(path)}
            )

        try:
            rules = TriageRules(**data)
        except ValidationError as e:
            raise ConfigurationException(
                f"Invalid triage rules: {e.error_count()} error(s)",
                {"path": str(path), "errors": e.errors()}
            )

        logger.info("Triage rules loaded", extra={"path": str(path)})
        return rules
