"""Failure taxonomy for template override verification."""
from __future__ import annotations


class VerificationError(Exception):
    """Base class for failures recorded against a single check."""


class MissingDefaultTemplate(VerificationError):
    """The listing has no usable default entry for the scenario title."""


class UnexpectedFallbackContent(VerificationError):
    """The default template does not hold exactly the expected legacy block."""


class ActionAffordanceNotSet(VerificationError):
    """A customized template is still listed without an actions menu."""


class CustomizationNotVisible(VerificationError):
    """The customization marker never rendered on one or both surfaces."""

    def __init__(self, surface: str, message: str | None = None) -> None:
        self.surface = surface
        super().__init__(message or f"customization not visible on {surface} surface")


class TimeoutWaitingForReadiness(VerificationError):
    """A readiness barrier was not reached within its bound."""


class SuiteSetupError(RuntimeError):
    """Raised when the suite baseline cannot be established."""


__all__ = [
    "VerificationError",
    "MissingDefaultTemplate",
    "UnexpectedFallbackContent",
    "ActionAffordanceNotSet",
    "CustomizationNotVisible",
    "TimeoutWaitingForReadiness",
    "SuiteSetupError",
]
