"""Disposition proceeds and equity return metrics."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from .cashflow import CashFlowSeries
from .debt import DebtService
from .financial_math import XIRRConvergenceError, xirr
from .sources_uses import SourcesUses

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Metrics:
    """Summary return metrics for one calculation pass."""

    internal_rate_of_return: float  # Annual; 0.0 when XIRR did not converge
    multiple_on_invested_capital: Optional[float]  # None when nothing was contributed
    total_contributions: float
    total_distributions: float
    sale_proceeds: float  # Final property value less final debt balance
    final_property_value: float
    final_debt_balance: float
    irr_converged: bool = True

    @property
    def net_profit(self) -> float:
        return self.total_distributions - self.total_contributions


def equity_cash_flows(
    cash_flows: CashFlowSeries,
    sources_uses: SourcesUses,
    sale_proceeds: float,
) -> List[float]:
    """Levered cash flows as seen by equity.

    Month 0 is replaced by the equity contribution and the sale proceeds are
    added to the final month.
    """
    flows = list(cash_flows.levered_cf)
    flows[0] = -sources_uses.equity
    flows[-1] += sale_proceeds
    return flows


def calculate_metrics(
    cash_flows: CashFlowSeries,
    sources_uses: SourcesUses,
    debt_service: DebtService,
) -> Metrics:
    """Calculate disposition proceeds, IRR and MOIC.

    Total distributions are the sale proceeds plus every positive levered
    cash flow; total contributions are the equity plus every negative levered
    cash flow (as a positive amount). A non-converging XIRR is reported as a
    0.0 IRR with ``irr_converged=False`` rather than raised.

    Args:
        cash_flows: Completed cash flow projection.
        sources_uses: Capital stack (for the equity contribution).
        debt_service: Loan ledgers (for the final debt balance).

    Returns:
        Metrics for the deal.
    """
    last_month = cash_flows.month_count - 1

    final_property_value = cash_flows.property_value[last_month]
    final_debt_balance = debt_service.balance_at(last_month)
    sale_proceeds = final_property_value - final_debt_balance

    flows = equity_cash_flows(cash_flows, sources_uses, sale_proceeds)
    month_indices = list(range(len(flows)))

    try:
        irr = xirr(flows, month_indices)
        irr_converged = True
    except XIRRConvergenceError as e:
        logger.warning("IRR reported as 0: %s", e)
        irr = 0.0
        irr_converged = False

    levered = cash_flows.levered_cf
    total_distributions = sum(cf for cf in levered if cf > 0) + sale_proceeds
    total_contributions = sources_uses.equity + sum(-cf for cf in levered if cf < 0)

    if total_contributions == 0:
        logger.warning("MOIC is undefined: total contributions are zero")
        moic = None
    else:
        moic = total_distributions / total_contributions

    return Metrics(
        internal_rate_of_return=irr,
        multiple_on_invested_capital=moic,
        total_contributions=total_contributions,
        total_distributions=total_distributions,
        sale_proceeds=sale_proceeds,
        final_property_value=final_property_value,
        final_debt_balance=final_debt_balance,
        irr_converged=irr_converged,
    )
