"""Assumptions record consumed by every calculation stage."""

import logging
import math
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when assumptions cannot drive the debt engine (e.g. a zero loan term)."""


# Calculator form keys -> Assumptions field names
FORM_KEY_ALIASES: Dict[str, str] = {
    "purchase-price": "purchase_price",
    "closing-costs": "closing_costs",
    "investment-years": "hold_years",
    "home-growth-rate": "home_growth_rate",
    "down-payment-percent": "down_payment_percent",
    "im-rate": "initial_loan_rate",
    "im-term": "initial_loan_term_years",
    "im-closing-fee": "initial_loan_fee",
    "im-extra-payments": "initial_loan_extra_payments",
    "im-extra-payment-times": "initial_loan_extra_payment_times",
    "im-extra-payment-amount": "initial_loan_extra_payment_amount",
    "monthly-rent": "monthly_rent",
    "annual-rent-increase": "annual_rent_increase",
    "occupancy-rate": "occupancy_rate",
    "annual-insurance": "annual_insurance",
    "annual-insurance-growth": "annual_insurance_growth",
    "annual-hoa": "annual_hoa",
    "annual-hoa-growth": "annual_hoa_growth",
    "annual-property-tax": "annual_property_tax",
    "annual-maintenance": "annual_maintenance",
    "maintenance-growth": "maintenance_growth",
    "cpi-assumption": "cpi_assumption",
    "management-fee": "management_fee",
    "use-hel": "use_second_lien",
    "hel-amount": "second_lien_amount",
    "hel-rate": "second_lien_rate",
    "hel-term": "second_lien_term_years",
    "hel-closing-fee": "second_lien_fee",
    "hel-extra-payments": "second_lien_extra_payments",
    "hel-extra-payment-times": "second_lien_extra_payment_times",
    "hel-extra-payment-amount": "second_lien_extra_payment_amount",
    "refinance-mortgage": "refinance_enabled",
    "refinance-years": "refinance_years",
    "rm-rate": "refinanced_loan_rate",
    "rm-term": "refinanced_loan_term_years",
    "rm-closing-fee": "refinanced_loan_fee",
    "rm-extra-payments": "refinanced_loan_extra_payments",
    "rm-extra-payment-times": "refinanced_loan_extra_payment_times",
    "rm-extra-payment-amount": "refinanced_loan_extra_payment_amount",
    "toggle-switch": "advanced_mode",
}


def _to_number(value: Any) -> float:
    """Coerce a raw input to float; missing, non-numeric and non-finite become 0."""
    if value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace("$", "").replace(",", "")
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def years_to_months(years: float) -> int:
    """Convert a year count to whole months."""
    return int(round(years * 12))


@dataclass(frozen=True)
class Assumptions:
    """Validated user inputs for one calculation pass.

    Percentages are fractions (6% -> 0.06), currency is plain numbers and
    flags are 0/1. Every field defaults to 0 so a partial record is valid.
    """

    # === Acquisition ===
    purchase_price: float = 0.0
    closing_costs: float = 0.0
    hold_years: float = 0.0
    home_growth_rate: float = 0.0  # Annual, compounded monthly
    down_payment_percent: float = 0.0

    # === Initial Loan ===
    initial_loan_rate: float = 0.0
    initial_loan_term_years: float = 0.0
    initial_loan_fee: float = 0.0  # As fraction of loan amount
    initial_loan_extra_payments: float = 0.0  # Flag
    initial_loan_extra_payment_times: float = 0.0  # Payments per year
    initial_loan_extra_payment_amount: float = 0.0  # Annual total

    # === Revenue ===
    monthly_rent: float = 0.0
    annual_rent_increase: float = 0.0
    occupancy_rate: float = 0.0  # Only applied in advanced mode

    # === Operating Expenses (annual) ===
    annual_insurance: float = 0.0
    annual_insurance_growth: float = 0.0
    annual_hoa: float = 0.0
    annual_hoa_growth: float = 0.0
    annual_property_tax: float = 0.0  # Rate on current property value
    annual_maintenance: float = 0.0
    maintenance_growth: float = 0.0
    cpi_assumption: float = 0.0  # Single expense growth rate in basic mode
    management_fee: float = 0.0  # As fraction of effective revenue

    # === Second Lien ===
    use_second_lien: float = 0.0
    second_lien_amount: float = 0.0
    second_lien_rate: float = 0.0
    second_lien_term_years: float = 0.0
    second_lien_fee: float = 0.0
    second_lien_extra_payments: float = 0.0
    second_lien_extra_payment_times: float = 0.0
    second_lien_extra_payment_amount: float = 0.0

    # === Refinance ===
    refinance_enabled: float = 0.0
    refinance_years: float = 0.0
    refinanced_loan_rate: float = 0.0
    refinanced_loan_term_years: float = 0.0
    refinanced_loan_fee: float = 0.0
    refinanced_loan_extra_payments: float = 0.0
    refinanced_loan_extra_payment_times: float = 0.0
    refinanced_loan_extra_payment_amount: float = 0.0

    # === Model Mode ===
    advanced_mode: float = 0.0

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "Assumptions":
        """Build assumptions from snake_case names or calculator form keys.

        Keys ending in "-advanced" are treated like their basic counterparts.
        Unrecognized keys are ignored and missing keys default to 0.

        Args:
            mapping: Raw name -> value pairs.

        Returns:
            Assumptions with every value coerced to a finite float.
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, float] = {}
        for raw_key, raw_value in mapping.items():
            key = str(raw_key)
            if key.endswith("-advanced"):
                key = key[: -len("-advanced")]
            name = FORM_KEY_ALIASES.get(key, key)
            if name in known:
                values[name] = _to_number(raw_value)
            else:
                logger.debug("Ignoring unrecognized assumption key %r", raw_key)
        return cls(**values)

    def to_dict(self) -> Dict[str, float]:
        """Convert to a plain name -> value dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    # === Derived values ===

    @property
    def hold_months(self) -> int:
        """Operating months between acquisition and disposition."""
        return years_to_months(self.hold_years)

    @property
    def is_advanced(self) -> bool:
        return self.advanced_mode != 0

    @property
    def has_second_lien(self) -> bool:
        return self.use_second_lien != 0

    @property
    def refinance_month(self) -> int:
        """Cutover month, or 0 when no refinance occurs."""
        if self.refinance_enabled == 0:
            return 0
        return max(0, years_to_months(self.refinance_years))


def validate_assumptions(assumptions: Assumptions) -> None:
    """Reject assumptions that would make the debt engine divide by zero.

    Args:
        assumptions: Assumptions to check.

    Raises:
        ConfigurationError: If the hold has no operating months or an
            enabled loan has a non-positive amortization term.
    """
    if assumptions.hold_months <= 0:
        raise ConfigurationError(
            f"Hold period must contain at least one month (hold_years={assumptions.hold_years})"
        )

    initial_principal = assumptions.purchase_price * (1 - assumptions.down_payment_percent)
    if initial_principal > 0 and years_to_months(assumptions.initial_loan_term_years) <= 0:
        raise ConfigurationError(
            f"Initial loan term must be positive (got {assumptions.initial_loan_term_years} years)"
        )

    if assumptions.has_second_lien and years_to_months(assumptions.second_lien_term_years) <= 0:
        raise ConfigurationError(
            f"Second lien term must be positive (got {assumptions.second_lien_term_years} years)"
        )

    if assumptions.refinance_month > 0 and years_to_months(assumptions.refinanced_loan_term_years) <= 0:
        raise ConfigurationError(
            f"Refinanced loan term must be positive (got {assumptions.refinanced_loan_term_years} years)"
        )
