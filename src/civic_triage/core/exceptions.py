"""
Core Exceptions
================

Custom exceptions for the triage core following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional, Any, Iterable


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class ClassifierServiceException(ExternalServiceException):
    """Exception for text-classification API failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Classifier Service", message, details)


class ModelLoadingException(ClassifierServiceException):
    """The inference service reports the model is still loading."""

    def __init__(
        self,
        model: str,
        estimated_time: Optional[float] = None,
        details: Optional[dict] = None
    ):
        self.model = model
        self.estimated_time = estimated_time
        super().__init__(
            f"model '{model}' is currently loading",
            details or {"model": model, "estimated_time": estimated_time}
        )


class InvalidTransitionException(DomainException):
    """Exception raised when a complaint status change is not allowed."""

    def __init__(
        self,
        current_status: Any,
        requested_status: Any,
        allowed: Iterable[Any],
    ):
        self.current_status = current_status
        self.requested_status = requested_status
        self.allowed = list(allowed)
        allowed_text = ", ".join(_plain(s) for s in self.allowed) or "none"
        super().__init__(
            f"Invalid transition from '{_plain(current_status)}' to "
            f"'{_plain(requested_status)}'. Allowed next statuses: {allowed_text}",
            {
                "current_status": _plain(current_status),
                "requested_status": _plain(requested_status),
                "allowed": [_plain(s) for s in self.allowed],
            }
        )


# ========== Identity Consent ==========

class ConsentException(DomainException):
    """Base exception for identity consent workflow errors."""


class ConsentNotApplicableException(ConsentException):
    """Identity reveal cannot be requested for this complaint."""


class ConsentAlreadyRequestedException(ConsentException):
    """A consent request is already active for this complaint."""


class ConsentTokenExpiredException(ConsentException):
    """The consent token was presented after its expiry."""


class InvalidConsentTokenException(ConsentException):
    """The consent token is unknown or has already been used."""


class ConsentForbiddenException(ConsentException):
    """The responding citizen does not own the complaint."""


def _plain(value: Any) -> str:
    return str(getattr(value, "value", value))
