"""
Intake Policy
=============

Identity rules applied when a complaint is submitted.

Anonymity is a privilege of logged-in citizens, and some complaints need a
known submitter before an authority can act on them.
"""

from dataclasses import dataclass
from typing import Optional

from civic_triage.config import ComplaintCategory, TrustClass
from civic_triage.triage.domain.rules import TriageRules
from civic_triage.triage.domain.text import contains_any

LOGIN_FOR_ANONYMITY = "Please log in to submit anonymously."
LOGIN_FOR_CATEGORY = "Please log in to submit this category of complaint."
ANONYMITY_DISABLED = "Category requires identification. Anonymous mode disabled."


@dataclass(frozen=True)
class IntakeDecision:
    """Whether a submission may proceed and under which identity."""
    allowed: bool
    anonymous: bool
    message: Optional[str] = None

    @property
    def trust_class(self) -> str:
        """Trust class the triage should be run with."""
        if self.anonymous:
            return TrustClass.ANONYMOUS.value
        return TrustClass.REGISTERED.value


class IntakePolicy:
    """Evaluates the submission identity rules."""

    def __init__(self, rules: TriageRules):
        self._premises_keywords = rules.personal_premises_keywords
        self._identification_categories = frozenset(rules.identification_categories)

    def requires_identification(self, category: Optional[ComplaintCategory]) -> bool:
        return category is not None and category in self._identification_categories

    def mentions_personal_premises(self, text: str) -> bool:
        return contains_any(text, self._premises_keywords)

    def evaluate(
        self,
        text: str,
        category: Optional[ComplaintCategory],
        logged_in: bool,
        anonymous_requested: bool
    ) -> IntakeDecision:
        """
        Apply the intake rules in order.

        Args:
            text: Complaint text
            category: Final category (override or triaged)
            logged_in: Whether the submitter is an authenticated citizen
            anonymous_requested: Whether the citizen asked to stay anonymous

        Returns:
            IntakeDecision; rejected decisions carry the message to show
        """
        if not logged_in and anonymous_requested:
            return IntakeDecision(allowed=False, anonymous=False, message=LOGIN_FOR_ANONYMITY)

        if not logged_in and self.requires_identification(category):
            return IntakeDecision(allowed=False, anonymous=False, message=LOGIN_FOR_CATEGORY)

        if not logged_in and self.mentions_personal_premises(text):
            return IntakeDecision(allowed=False, anonymous=False, message=LOGIN_FOR_CATEGORY)

        if anonymous_requested and self.requires_identification(category):
            return IntakeDecision(allowed=True, anonymous=False, message=ANONYMITY_DISABLED)

        # Guests submit under their own (unverified) contact details
        return IntakeDecision(allowed=True, anonymous=logged_in and anonymous_requested)
