"""Annual roll-ups and tabular views of a deal's monthly series."""

from typing import Dict, List

import pandas as pd

from .cashflow import CashFlowSeries
from .debt import LOAN_FIELD_PREFIX, DebtService, LoanLedger

# Spreadsheet row label -> CashFlowSeries attribute
CASH_FLOW_ROWS: Dict[str, str] = {
    "Rental Income": "revenue",
    "Insurance": "insurance",
    "Property Tax": "property_tax",
    "HOA": "hoa",
    "Maintenance": "maintenance",
    "Management Fee": "management_fee",
    "Operating Cash Flow": "operating_cf",
    "Debt Service": "total_debt_service",
    "Net Cash Flow": "levered_cf",
    "Property Value": "property_value",
}

LEDGER_COLUMNS: Dict[str, str] = {
    "BOP": "bop",
    "Issuance": "issuance",
    "Extra Payments": "extra_payment",
    "Refinance": "refinance_transfer",
    "Scheduled Payments": "scheduled_payment",
    "EOP": "eop",
    "Interest Expense": "interest_expense",
}

_ANNUAL_CASH_FLOW_FIELDS = (
    "revenue", "insurance", "property_tax", "hoa", "maintenance", "management_fee",
)


def aggregate_cash_flows_to_annual(cash_flows: CashFlowSeries, years: int) -> Dict[str, List[float]]:
    """Sum revenue and expense lines into yearly buckets.

    Month i falls in year i // 12; buckets at or beyond ``years`` are dropped.

    Args:
        cash_flows: Monthly cash flows.
        years: Number of yearly buckets.

    Returns:
        Dict of line name -> list of yearly totals.
    """
    annual = {name: [0.0] * years for name in _ANNUAL_CASH_FLOW_FIELDS}
    for name in _ANNUAL_CASH_FLOW_FIELDS:
        for month, value in enumerate(getattr(cash_flows, name)):
            year = month // 12
            if year < years:
                annual[name][year] += value
    return annual


def aggregate_debt_to_annual(debt_service: DebtService, years: int) -> Dict[str, List[float]]:
    """Sum principal and interest per loan into yearly buckets.

    Principal is the absolute scheduled payment; extra payments are excluded.

    Args:
        debt_service: Loan ledgers.
        years: Number of yearly buckets.

    Returns:
        Dict with "<loan>_principal" and "<loan>_interest" yearly totals.
    """
    annual: Dict[str, List[float]] = {}
    for ledger in debt_service:
        prefix = LOAN_FIELD_PREFIX[ledger.loan_type]
        principal = [0.0] * years
        interest = [0.0] * years
        for month in range(len(ledger.eop)):
            year = month // 12
            if year < years:
                principal[year] += abs(ledger.scheduled_payment[month])
                interest[year] += ledger.interest_expense[month]
        annual[f"{prefix}_principal"] = principal
        annual[f"{prefix}_interest"] = interest
    return annual


def cash_flow_frame(cash_flows: CashFlowSeries) -> pd.DataFrame:
    """Monthly cash flow spreadsheet as a DataFrame (one row per month)."""
    data = {label: list(getattr(cash_flows, attr)) for label, attr in CASH_FLOW_ROWS.items()}
    frame = pd.DataFrame(data)
    frame.index.name = "Month"
    return frame


def ledger_frame(ledger: LoanLedger) -> pd.DataFrame:
    """One loan's amortization ledger as a DataFrame (one row per month)."""
    data = {label: list(getattr(ledger, attr)) for label, attr in LEDGER_COLUMNS.items()}
    frame = pd.DataFrame(data)
    frame.index.name = "Month"
    return frame


def annual_summary_frame(cash_flows: CashFlowSeries, debt_service: DebtService, years: int) -> pd.DataFrame:
    """Yearly revenue, expense and debt roll-ups side by side."""
    columns = aggregate_cash_flows_to_annual(cash_flows, years)
    columns.update(aggregate_debt_to_annual(debt_service, years))
    frame = pd.DataFrame(columns)
    frame.index.name = "Year"
    return frame
