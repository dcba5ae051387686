"""Data models for the HomeYield calculation engine."""

from .assumptions import (
    Assumptions,
    ConfigurationError,
    FORM_KEY_ALIASES,
    validate_assumptions,
    years_to_months,
)
from .defaults import (
    LoanType,
    BASIC_DEFAULTS,
    ADVANCED_DEFAULTS,
    default_assumptions,
)

__all__ = [
    "Assumptions",
    "ConfigurationError",
    "FORM_KEY_ALIASES",
    "validate_assumptions",
    "years_to_months",
    "LoanType",
    "BASIC_DEFAULTS",
    "ADVANCED_DEFAULTS",
    "default_assumptions",
]
