"""Loan types and preset assumption sets from the calculator's default form."""

from enum import Enum
from typing import Dict

from .assumptions import Assumptions


class LoanType(Enum):
    """Loans the debt engine tracks, in ledger order."""

    INITIAL = "Initial Mortgage"
    SECOND_LIEN = "Home Equity Loan"
    REFINANCED = "Refinanced Mortgage"


# Basic form: single CPI expense growth, no occupancy, no second lien or refinance
BASIC_DEFAULTS: Dict[str, float] = {
    "purchase_price": 500_000,
    "closing_costs": 5_000,
    "hold_years": 20,
    "home_growth_rate": 0.04,
    "down_payment_percent": 0.25,
    "initial_loan_rate": 0.06,
    "initial_loan_term_years": 30,
    "monthly_rent": 4_500,
    "annual_rent_increase": 0.02,
    "annual_insurance": 2_000,
    "annual_hoa": 1_500,
    "annual_property_tax": 0.0225,
    "annual_maintenance": 1_000,
    "cpi_assumption": 0.02,
    "management_fee": 0.10,
}

# Advanced form: per-line expense growth, occupancy, loan fees and extra payments.
# Second lien and refinance values are pre-filled but stay off until flagged.
ADVANCED_DEFAULTS: Dict[str, float] = {
    "purchase_price": 500_000,
    "closing_costs": 2_000,
    "hold_years": 20,
    "home_growth_rate": 0.04,
    "down_payment_percent": 0.25,
    "initial_loan_rate": 0.06,
    "initial_loan_term_years": 30,
    "initial_loan_fee": 0.01,
    "initial_loan_extra_payment_times": 2,
    "initial_loan_extra_payment_amount": 10_000,
    "monthly_rent": 4_500,
    "annual_rent_increase": 0.02,
    "occupancy_rate": 0.90,
    "annual_insurance": 2_000,
    "annual_insurance_growth": 0.08,
    "annual_hoa": 1_500,
    "annual_hoa_growth": 0.02,
    "annual_property_tax": 0.0225,
    "annual_maintenance": 1_000,
    "maintenance_growth": 0.02,
    "management_fee": 0.10,
    "second_lien_amount": 50_000,
    "second_lien_rate": 0.06,
    "second_lien_fee": 0.01,
    "second_lien_extra_payment_times": 2,
    "second_lien_extra_payment_amount": 2_500,
    "refinance_years": 5,
    "refinanced_loan_rate": 0.04,
    "refinanced_loan_fee": 0.01,
    "refinanced_loan_extra_payment_times": 2,
    "refinanced_loan_extra_payment_amount": 2_500,
    "advanced_mode": 1,
}


def default_assumptions(advanced: bool = False) -> Assumptions:
    """Get the calculator's default assumptions.

    Args:
        advanced: Use the advanced form defaults instead of the basic ones.

    Returns:
        Assumptions populated from the preset.
    """
    preset = ADVANCED_DEFAULTS if advanced else BASIC_DEFAULTS
    return Assumptions.from_mapping(preset)
