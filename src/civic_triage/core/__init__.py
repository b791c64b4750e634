"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from civic_triage.core.exceptions import (
    ApplicationException,
    DomainException,
    ValidationException,
    ResourceNotFoundException,
    ConfigurationException,
    ExternalServiceException,
    ClassifierServiceException,
    ModelLoadingException,
    InvalidTransitionException,
    ConsentException,
    ConsentNotApplicableException,
    ConsentAlreadyRequestedException,
    ConsentTokenExpiredException,
    InvalidConsentTokenException,
    ConsentForbiddenException,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "ValidationException",
    "ResourceNotFoundException",
    "ConfigurationException",
    "ExternalServiceException",
    "ClassifierServiceException",
    "ModelLoadingException",
    "InvalidTransitionException",
    "ConsentException",
    "ConsentNotApplicableException",
    "ConsentAlreadyRequestedException",
    "ConsentTokenExpiredException",
    "InvalidConsentTokenException",
    "ConsentForbiddenException",
]
