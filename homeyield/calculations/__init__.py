"""Calculation modules for the HomeYield rental property model."""

from .financial_math import (
    pmt,
    xirr,
    remaining_balance,
    XIRRConvergenceError,
)
from .sources_uses import calculate_sources_uses, SourcesUses
from .schedule import build_schedule, Schedule, CutoverEvent
from .debt import (
    amortize_loan,
    calculate_debt_service,
    DebtService,
    LoanLedger,
    LoanTerms,
    LOAN_FIELD_PREFIX,
)
from .cashflow import project_cash_flows, CashFlowSeries
from .metrics import calculate_metrics, equity_cash_flows, Metrics

# Unified entry point
from .deal import calculate_deal, DealResult

# Annual roll-ups and tables
from .aggregation import (
    aggregate_cash_flows_to_annual,
    aggregate_debt_to_annual,
    cash_flow_frame,
    ledger_frame,
    annual_summary_frame,
)

# Monte Carlo simulation module
from .monte_carlo import (
    DistributionType,
    InputDistribution,
    MonteCarloConfig,
    IterationResult,
    SensitivityResult,
    MonteCarloResult,
    run_monte_carlo,
    create_market_uncertainty_distributions,
    create_financing_uncertainty_distributions,
    create_expense_uncertainty_distributions,
    create_full_uncertainty_suite,
)

__all__ = [
    # Financial math
    "pmt",
    "xirr",
    "remaining_balance",
    "XIRRConvergenceError",
    # Stages
    "calculate_sources_uses",
    "SourcesUses",
    "build_schedule",
    "Schedule",
    "CutoverEvent",
    "amortize_loan",
    "calculate_debt_service",
    "DebtService",
    "LoanLedger",
    "LoanTerms",
    "LOAN_FIELD_PREFIX",
    "project_cash_flows",
    "CashFlowSeries",
    "calculate_metrics",
    "equity_cash_flows",
    "Metrics",
    "calculate_deal",
    "DealResult",
    # Aggregation
    "aggregate_cash_flows_to_annual",
    "aggregate_debt_to_annual",
    "cash_flow_frame",
    "ledger_frame",
    "annual_summary_frame",
    # Monte Carlo
    "DistributionType",
    "InputDistribution",
    "MonteCarloConfig",
    "IterationResult",
    "SensitivityResult",
    "MonteCarloResult",
    "run_monte_carlo",
    "create_market_uncertainty_distributions",
    "create_financing_uncertainty_distributions",
    "create_expense_uncertainty_distributions",
    "create_full_uncertainty_suite",
]
