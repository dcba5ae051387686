#!/usr/bin/env python3
"""Example script to run the HomeYield model on the calculator's default inputs."""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from homeyield.models import default_assumptions
from homeyield.calculations.deal import calculate_deal
from homeyield.calculations.aggregation import aggregate_cash_flows_to_annual
from homeyield.calculations.monte_carlo import (
    MonteCarloConfig,
    run_monte_carlo,
    create_full_uncertainty_suite,
)
from homeyield.scenarios import (
    run_scenarios,
    run_refinance_grid,
    format_scenario_results,
)


def print_deal(assumptions) -> None:
    """Run one deal and print its capital stack and returns."""
    result = calculate_deal(assumptions)
    su = result.sources_uses
    m = result.metrics

    print("\n" + "=" * 60)
    print("HOMEYIELD RENTAL PROPERTY MODEL")
    print("Advanced mode" if assumptions.is_advanced else "Basic mode")
    print("=" * 60)

    print(f"\n{'SOURCES':<30} {'':>15}")
    print("-" * 46)
    print(f"{'Equity':<30} ${su.equity:>14,.0f}")
    print(f"{'Second Lien':<30} ${su.second_lien_amount:>14,.0f}")
    print(f"{'Initial Loan':<30} ${su.initial_loan_amount:>14,.0f}")
    print(f"{'Total Sources':<30} ${su.total_sources:>14,.0f}")

    print(f"\n{'USES':<30} {'':>15}")
    print("-" * 46)
    print(f"{'Purchase Price':<30} ${su.purchase_price:>14,.0f}")
    print(f"{'Closing Costs':<30} ${su.closing_costs:>14,.0f}")
    print(f"{'Financing Fees':<30} ${su.financing_fees:>14,.0f}")
    print(f"{'Total Uses':<30} ${su.total_uses:>14,.0f}")

    if result.debt_service.cutover is not None:
        cutover = result.debt_service.cutover
        print(f"\nRefinance at month {cutover.month}: ${cutover.transferred_balance:,.0f} transferred")

    print(f"\n{'Year':<6} {'Revenue':>12} {'Prop Tax':>12} {'Insurance':>12}")
    print("-" * 46)
    annual = aggregate_cash_flows_to_annual(result.cash_flows, int(assumptions.hold_years))
    for year, revenue in enumerate(annual["revenue"][:5]):
        print(
            f"{year:<6} {revenue:>12,.0f} {annual['property_tax'][year]:>12,.0f} "
            f"{annual['insurance'][year]:>12,.0f}"
        )

    print("\n" + "=" * 60)
    print("RETURNS")
    print("=" * 60)
    moic = f"{m.multiple_on_invested_capital:.2f}x" if m.multiple_on_invested_capital is not None else "n/a"
    print(f"{'Levered IRR':<30} {m.internal_rate_of_return:>14.2%}")
    print(f"{'Equity Multiple':<30} {moic:>14}")
    print(f"{'Total Contributions':<30} ${m.total_contributions:>13,.0f}")
    print(f"{'Total Distributions':<30} ${m.total_distributions:>13,.0f}")
    print(f"{'Net Profit':<30} ${m.net_profit:>13,.0f}")
    print(f"{'Final Property Value':<30} ${m.final_property_value:>13,.0f}")
    print(f"{'Final Debt Balance':<30} ${m.final_debt_balance:>13,.0f}")
    print(f"{'Sale Proceeds':<30} ${m.sale_proceeds:>13,.0f}")


def run_rate_scenarios(assumptions) -> None:
    """Compare a few financing scenarios against the base case."""
    overrides = {
        "Base": {},
        "Rate +100 bps": {"initial_loan_rate": assumptions.initial_loan_rate + 0.01},
        "Rate -100 bps": {"initial_loan_rate": assumptions.initial_loan_rate - 0.01},
        "35% down": {"down_payment_percent": 0.35},
        "Flat rent": {"annual_rent_increase": 0.0},
    }
    print("\n" + format_scenario_results(run_scenarios(assumptions, overrides)))


def run_grid(assumptions) -> None:
    """Search refinance timing and rate."""
    base = replace(assumptions, refinanced_loan_term_years=assumptions.refinanced_loan_term_years or 30)
    grid = run_refinance_grid(base, [2, 3, 5, 7, 10], [0.035, 0.04, 0.045, 0.05])

    print("\n" + "=" * 60)
    print("REFINANCE GRID SEARCH")
    print("=" * 60)
    print(f"{'Years':>6} {'Rate':>8} {'IRR':>10}")
    print("-" * 26)
    for point in grid.points:
        print(f"{point.refinance_years:>6.0f} {point.refinanced_rate:>8.2%} {point.levered_irr:>10.2%}")
    print("-" * 26)
    print(
        f"Best: refinance at year {grid.best.refinance_years:.0f} "
        f"at {grid.best.refinanced_rate:.2%} ({grid.irr_lift_bps():+d} bps vs no refinance)"
    )


def run_simulation(assumptions, iterations: int, seed: int) -> None:
    """Run a Monte Carlo simulation over market, financing and expense inputs."""
    config = MonteCarloConfig(
        base_assumptions=assumptions,
        distributions=create_full_uncertainty_suite(assumptions),
        n_iterations=iterations,
        seed=seed,
    )
    print("\n" + run_monte_carlo(config).summary())


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="HomeYield Rental Property Model")
    parser.add_argument("--advanced", action="store_true", help="Use the advanced defaults")
    parser.add_argument("--scenarios", action="store_true", help="Compare financing scenarios")
    parser.add_argument("--refi-grid", action="store_true", help="Search refinance timing and rate")
    parser.add_argument("--monte-carlo", type=int, metavar="N", default=0,
                        help="Run a Monte Carlo simulation with N iterations")
    parser.add_argument("--seed", type=int, default=42, help="Monte Carlo random seed")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    assumptions = default_assumptions(advanced=args.advanced)
    print_deal(assumptions)

    if args.scenarios:
        run_rate_scenarios(assumptions)
    if args.refi_grid:
        run_grid(assumptions)
    if args.monte_carlo:
        run_simulation(assumptions, args.monte_carlo, args.seed)

    print("\nDone.")


if __name__ == "__main__":
    main()
