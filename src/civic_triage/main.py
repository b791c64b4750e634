"""
Civic Triage - Composition Root
================================

Wires settings, logging, rules and services together.

Modules:
- Triage: classify complaints, score urgency, route to an authority
- Complaints: status lifecycle and identity consent workflow

Clean Architecture Layers:
- Application: Services and DTOs
- Domain: Entities, rules and scorers
- Infrastructure: Inference API client, rule loader, repositories
"""

import argparse
import json
import sys
from dataclasses import dataclass
from typing import List, Optional

from pydantic import ValidationError

from civic_triage.complaints.application import (
    ComplaintStatusService, ICitizenDirectory, IComplaintRepository,
    IdentityConsentWorkflow
)
from civic_triage.complaints.infrastructure import (
    InMemoryCitizenDirectory, InMemoryComplaintRepository
)
from civic_triage.config import Settings, get_settings
from civic_triage.core import ApplicationException
from civic_triage.shared.infrastructure.logging import get_logger, setup_logging
from civic_triage.triage.application import (
    AIClassificationService, BatchTriageService, IClassifierClient,
    TriageRequest, TriageResponse, TriageService
)
from civic_triage.triage.domain import IntakePolicy, TriageRules
from civic_triage.triage.infrastructure import (
    HuggingFaceClassifierClient, MockClassifierClient, TriageRulesLoader
)

logger = get_logger(__name__)


@dataclass
class Container:
    """Service instances sharing one rule set and one classifier client."""
    settings: Settings
    rules: TriageRules
    classifier: IClassifierClient
    triage_service: TriageService
    batch_service: BatchTriageService
    intake_policy: IntakePolicy
    status_service: ComplaintStatusService
    consent_workflow: IdentityConsentWorkflow

    async def close(self) -> None:
        await self.classifier.close()


def build_classifier(settings: Settings) -> IClassifierClient:
    """Pick the inference client for the configured mode."""
    if settings.mock_classifier:
        logger.info("Using mock classifier client")
        return MockClassifierClient()
    return HuggingFaceClassifierClient(settings=settings)


def build_container(
    settings: Optional[Settings] = None,
    classifier: Optional[IClassifierClient] = None,
    repository: Optional[IComplaintRepository] = None,
    directory: Optional[ICitizenDirectory] = None,
    configure_logging: bool = True
) -> Container:
    """
    Build every service from settings.

    STARTUP:
    1. Setup structured logging
    2. Load triage rules (defaults when no file)
    3. Create the classifier client
    4. Wire triage and complaint services

    Raises:
        ConfigurationException: Unreadable rules file or missing API key
    """
    settings = settings or get_settings()

    if configure_logging:
        setup_logging(level=settings.log_level, environment=settings.environment)

    rules = TriageRulesLoader.load(settings.triage_rules_path)
    classifier = classifier or build_classifier(settings)
    repository = repository or InMemoryComplaintRepository()
    directory = directory or InMemoryCitizenDirectory()

    ai_service = AIClassificationService(
        client=classifier,
        rules=rules,
        retry_delay_seconds=settings.ai_retry_delay_seconds,
    )
    triage_service = TriageService(ai_service, rules)

    logger.info(
        "Services initialized",
        extra={
            "app_version": settings.app_version,
            "classifier": type(classifier).__name__,
        }
    )

    return Container(
        settings=settings,
        rules=rules,
        classifier=classifier,
        triage_service=triage_service,
        batch_service=BatchTriageService(triage_service),
        intake_policy=IntakePolicy(rules),
        status_service=ComplaintStatusService(repository),
        consent_workflow=IdentityConsentWorkflow(
            repository,
            directory,
            ttl_hours=settings.consent_token_ttl_hours,
        ),
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Triage one complaint from the command line and print the result as JSON."""
    parser = argparse.ArgumentParser(prog="civic-triage", description="Triage a civic complaint")
    parser.add_argument("text", help="Complaint text")
    parser.add_argument(
        "--trust-class", default="anonymous", help="Submitter trust class"
    )
    parser.add_argument("--category", default=None, help="Category chosen by the citizen")
    args = parser.parse_args(argv)

    try:
        request = TriageRequest(text=args.text, trust_class=args.trust_class, category=args.category)
    except ValidationError as e:
        print(json.dumps({"error": "Invalid request", "details": e.errors()}, default=str), file=sys.stderr)
        return 2

    try:
        container = build_container()
        result = container.triage_service.triage_sync(request.to_domain())
    except ApplicationException as e:
        print(json.dumps({"error": e.message, "details": e.details}, default=str), file=sys.stderr)
        return 1

    print(TriageResponse.from_domain(result).model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
