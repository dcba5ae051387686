#!/usr/bin/env python3
"""Example Monte Carlo simulation over the advanced calculator defaults.

Usage:
    python examples/run_monte_carlo.py

The simulation varies appreciation, rent growth, occupancy, the loan rate
and the operating expenses, and reports:
- Mean, median, std dev of IRRs
- 95% confidence interval
- Probability of exceeding a target return
- Sensitivity showing which inputs drive IRR variation
"""

import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from homeyield.models import default_assumptions
from homeyield.calculations.deal import calculate_deal
from homeyield.calculations.monte_carlo import (
    DistributionType,
    InputDistribution,
    MonteCarloConfig,
    run_monte_carlo,
    create_expense_uncertainty_distributions,
)


def main():
    """Run a Monte Carlo simulation on the advanced defaults."""
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 70)
    print("HOMEYIELD - MONTE CARLO SIMULATION")
    print("=" * 70)
    print()

    base = default_assumptions(advanced=True)
    deterministic = calculate_deal(base)
    print(f"Deterministic IRR: {deterministic.levered_irr:.2%}")
    print()

    distributions = [
        # Appreciation (1%-6%, most likely the base 4%)
        InputDistribution(
            parameter="home_growth_rate",
            distribution=DistributionType.TRIANGULAR,
            min_value=0.01,
            mode=base.home_growth_rate,
            max_value=0.06,
        ),

        # Rent growth (0%-4%)
        InputDistribution(
            parameter="annual_rent_increase",
            distribution=DistributionType.TRIANGULAR,
            min_value=0.0,
            mode=base.annual_rent_increase,
            max_value=0.04,
        ),

        # Occupancy (80%-100%)
        InputDistribution(
            parameter="occupancy_rate",
            distribution=DistributionType.PERT,
            min_value=0.80,
            mode=base.occupancy_rate,
            max_value=1.0,
        ),

        # Mortgage rate (50 bps std dev, never negative)
        InputDistribution(
            parameter="initial_loan_rate",
            distribution=DistributionType.NORMAL,
            mean=base.initial_loan_rate,
            std=0.005,
            clip_min=0.0,
        ),
    ] + create_expense_uncertainty_distributions(base)

    config = MonteCarloConfig(
        base_assumptions=base,
        distributions=distributions,
        n_iterations=1000,
        seed=42,  # For reproducibility
        confidence_level=0.95,
        parallel=True,
    )

    print("Running Monte Carlo simulation...")
    print(f"  Iterations: {config.n_iterations:,}")
    print(f"  Parameters varied: {len(distributions)}")
    print(f"  Confidence level: {config.confidence_level:.0%}")
    print()

    def progress(completed, total):
        if completed % 100 == 0 or completed == total:
            pct = completed / total * 100
            print(f"  Progress: {completed:,}/{total:,} ({pct:.0f}%)", end="\r")

    result = run_monte_carlo(config, target_irr=0.12, progress_callback=progress)
    print()
    print()
    print(result.summary())

    print()
    print("IRR percentiles:")
    for level, value in result.irr_percentiles.items():
        print(f"  P{level:<3} {value:>8.2%}")


if __name__ == "__main__":
    main()
