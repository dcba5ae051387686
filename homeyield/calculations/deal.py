"""Unified calculation entry point: assumptions -> metrics."""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from ..models.assumptions import Assumptions, validate_assumptions
from .cashflow import CashFlowSeries, project_cash_flows
from .debt import DebtService, calculate_debt_service
from .metrics import Metrics, calculate_metrics
from .schedule import Schedule, build_schedule
from .sources_uses import SourcesUses, calculate_sources_uses

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DealResult:
    """Every stage's output for one calculation pass."""

    assumptions: Assumptions
    sources_uses: SourcesUses
    schedule: Schedule
    debt_service: DebtService
    cash_flows: CashFlowSeries
    metrics: Metrics

    @property
    def levered_irr(self) -> float:
        return self.metrics.internal_rate_of_return

    @property
    def equity_multiple(self) -> Optional[float]:
        return self.metrics.multiple_on_invested_capital


def calculate_deal(assumptions: Union[Assumptions, Mapping[str, Any]]) -> DealResult:
    """Run the full calculation pipeline.

    Sources & Uses -> Schedule -> Debt Service -> Cash Flows -> Metrics.
    Each stage is a pure function of the previous stages' records, so the
    same assumptions always give an identical result.

    Args:
        assumptions: Assumptions, or a raw mapping of input names to values.

    Returns:
        DealResult with all intermediate records and the metrics.

    Raises:
        ConfigurationError: If an enabled loan has no amortization term or
            the hold has no operating months.
    """
    if not isinstance(assumptions, Assumptions):
        assumptions = Assumptions.from_mapping(assumptions)

    validate_assumptions(assumptions)

    sources_uses = calculate_sources_uses(assumptions)
    schedule = build_schedule(assumptions)
    debt_service = calculate_debt_service(schedule, sources_uses, assumptions)
    cash_flows = project_cash_flows(schedule, assumptions, debt_service)
    metrics = calculate_metrics(cash_flows, sources_uses, debt_service)

    logger.debug(
        "Deal over %d months: IRR %.4f, sale proceeds %.2f",
        schedule.last_month,
        metrics.internal_rate_of_return,
        metrics.sale_proceeds,
    )

    return DealResult(
        assumptions=assumptions,
        sources_uses=sources_uses,
        schedule=schedule,
        debt_service=debt_service,
        cash_flows=cash_flows,
        metrics=metrics,
    )
