"""Batch scenario runner and refinance grid search.

Each scenario is a named set of field overrides applied to a base
Assumptions record and run through calculate_deal.
"""

import concurrent.futures
import logging
from dataclasses import dataclass, replace
from itertools import product
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .calculations.deal import DealResult, calculate_deal
from .models.assumptions import Assumptions

logger = logging.getLogger(__name__)


@dataclass
class ScenarioResult:
    """One named scenario and its calculation result."""

    name: str
    assumptions: Assumptions
    result: DealResult

    @property
    def levered_irr(self) -> float:
        return self.result.metrics.internal_rate_of_return

    @property
    def equity_multiple(self) -> Optional[float]:
        return self.result.metrics.multiple_on_invested_capital


@dataclass
class ScenarioComparison:
    """A scenario's returns relative to the base case."""

    name: str
    base_irr: float
    scenario_irr: float
    irr_difference_bps: int
    base_moic: Optional[float]
    scenario_moic: Optional[float]
    meets_target: bool


@dataclass
class RefinancePoint:
    """One (timing, rate) cell of a refinance grid."""

    refinance_years: float
    refinanced_rate: float
    levered_irr: float
    equity_multiple: Optional[float]
    irr_converged: bool


@dataclass
class RefinanceGridResult:
    """Every evaluated grid cell plus the cell with the highest IRR."""

    points: List[RefinancePoint]
    best: RefinancePoint
    no_refinance_irr: float

    def irr_lift_bps(self) -> int:
        """Best refinance IRR over holding the initial loan, in basis points."""
        return int(round((self.best.levered_irr - self.no_refinance_irr) * 10000))


def run_scenarios(
    base: Assumptions,
    overrides: Mapping[str, Mapping[str, Any]],
    parallel: bool = True,
    max_workers: Optional[int] = None,
) -> List[ScenarioResult]:
    """Run named override sets against a base case.

    Args:
        base: Base assumptions.
        overrides: Scenario name -> {field name: value}.
        parallel: Evaluate scenarios on a thread pool.
        max_workers: Max parallel workers (None = executor default).

    Returns:
        One ScenarioResult per scenario, in the order given.

    Raises:
        ValueError: If an override names an unknown field.
        ConfigurationError: If a scenario's assumptions fail validation.
    """
    scenario_inputs = []
    for name, changes in overrides.items():
        try:
            scenario_inputs.append((name, replace(base, **dict(changes))))
        except TypeError as e:
            raise ValueError(f"Scenario {name!r} has an invalid override: {e}") from e

    if parallel and len(scenario_inputs) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(calculate_deal, [a for _, a in scenario_inputs]))
    else:
        results = [calculate_deal(a) for _, a in scenario_inputs]

    logger.debug("Ran %d scenarios", len(results))
    return [
        ScenarioResult(name=name, assumptions=assumptions, result=result)
        for (name, assumptions), result in zip(scenario_inputs, results)
    ]


def compare_to_base(
    base: ScenarioResult,
    scenario: ScenarioResult,
    target_irr_improvement_bps: int = 0,
) -> ScenarioComparison:
    """Compare a scenario against the base case.

    Args:
        base: Base case result.
        scenario: Scenario to compare.
        target_irr_improvement_bps: Minimum IRR lift for ``meets_target``.

    Returns:
        ScenarioComparison with the IRR difference in basis points.
    """
    difference_bps = int(round((scenario.levered_irr - base.levered_irr) * 10000))
    return ScenarioComparison(
        name=scenario.name,
        base_irr=base.levered_irr,
        scenario_irr=scenario.levered_irr,
        irr_difference_bps=difference_bps,
        base_moic=base.equity_multiple,
        scenario_moic=scenario.equity_multiple,
        meets_target=difference_bps >= target_irr_improvement_bps,
    )


def run_refinance_grid(
    base: Assumptions,
    refinance_years: Sequence[float],
    refinanced_rates: Sequence[float],
) -> RefinanceGridResult:
    """Evaluate every refinance timing and rate pair.

    Refinance is switched on for every cell; the refinanced loan's term,
    fee and extra payments come from the base case.

    Args:
        base: Base assumptions (must carry a refinanced loan term).
        refinance_years: Candidate cutover times in years.
        refinanced_rates: Candidate refinanced loan rates.

    Returns:
        RefinanceGridResult with the best cell by IRR.

    Raises:
        ValueError: If either candidate list is empty.
    """
    if not refinance_years or not refinanced_rates:
        raise ValueError("Refinance grid needs at least one timing and one rate")

    no_refinance = calculate_deal(replace(base, refinance_enabled=0.0))

    points = []
    for years, rate in product(refinance_years, refinanced_rates):
        result = calculate_deal(replace(
            base,
            refinance_enabled=1.0,
            refinance_years=years,
            refinanced_loan_rate=rate,
        ))
        points.append(RefinancePoint(
            refinance_years=years,
            refinanced_rate=rate,
            levered_irr=result.metrics.internal_rate_of_return,
            equity_multiple=result.metrics.multiple_on_invested_capital,
            irr_converged=result.metrics.irr_converged,
        ))

    converged = [p for p in points if p.irr_converged] or points
    best = max(converged, key=lambda p: p.levered_irr)

    return RefinanceGridResult(
        points=points,
        best=best,
        no_refinance_irr=no_refinance.metrics.internal_rate_of_return,
    )


def format_scenario_results(
    results: List[ScenarioResult],
    base_name: Optional[str] = None,
) -> str:
    """Format scenario results as a text table.

    Args:
        results: Scenario results.
        base_name: Scenario to measure IRR differences against. Defaults to the first.

    Returns:
        Formatted string table.
    """
    if not results:
        return "No scenarios"

    by_name: Dict[str, ScenarioResult] = {r.name: r for r in results}
    base = by_name[base_name] if base_name else results[0]

    lines = [
        "=" * 70,
        f"SCENARIO RESULTS (vs {base.name})",
        "=" * 70,
        f"{'Scenario':<28} {'IRR':>9} {'MOIC':>8} {'Diff (bps)':>12} {'Profit':>10}",
        "-" * 70,
    ]
    for result in results:
        comparison = compare_to_base(base, result)
        moic = f"{result.equity_multiple:.2f}x" if result.equity_multiple is not None else "n/a"
        profit = result.result.metrics.net_profit
        lines.append(
            f"{result.name:<28} {result.levered_irr:>9.2%} {moic:>8} "
            f"{comparison.irr_difference_bps:>+12d} {profit / 1000:>9.0f}K"
        )
    lines.append("=" * 70)
    return "\n".join(lines)
