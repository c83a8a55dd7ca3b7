"""Errors raised while turning preferences into a plan."""
from __future__ import annotations


class PlanGenerationError(RuntimeError):
    """Base class for every failure surfaced to the user as a banner."""


class ConfigurationError(PlanGenerationError):
    """No API credential is configured; raised before any network call."""


class ServiceError(PlanGenerationError):
    """The provider or the network failed. Carries the provider message."""


class EmptyResponseError(PlanGenerationError):
    """The provider answered without any text."""


class PlanParseError(PlanGenerationError):
    """The provider text is not JSON or does not match the plan schema."""


class PlanRequestInProgress(PlanGenerationError):
    """A second generation was attempted while one is still outstanding."""


class FormValidationError(ValueError):
    pass
