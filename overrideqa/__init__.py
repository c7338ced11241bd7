"""Template override verification for block-theme site editors."""
from .config import SuiteConfig
from .errors import (
    ActionAffordanceNotSet,
    CustomizationNotVisible,
    MissingDefaultTemplate,
    SuiteSetupError,
    TimeoutWaitingForReadiness,
    UnexpectedFallbackContent,
    VerificationError,
)
from .models import Contributor, TemplateListingEntry, TemplateScenario, ValidationError
from .scenarios import DEFAULT_SCENARIOS, load_scenarios
from .suite import SuiteReport, SuiteRunner
from .verifier import Baseline, TemplateOverrideVerifier, VerificationResult

__all__ = [
    "ActionAffordanceNotSet",
    "Baseline",
    "Contributor",
    "CustomizationNotVisible",
    "DEFAULT_SCENARIOS",
    "MissingDefaultTemplate",
    "SuiteConfig",
    "SuiteReport",
    "SuiteRunner",
    "SuiteSetupError",
    "TemplateListingEntry",
    "TemplateOverrideVerifier",
    "TemplateScenario",
    "TimeoutWaitingForReadiness",
    "UnexpectedFallbackContent",
    "ValidationError",
    "VerificationError",
    "VerificationResult",
    "load_scenarios",
]
