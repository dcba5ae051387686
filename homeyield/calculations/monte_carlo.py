"""Monte Carlo simulation over the deal calculation.

Samples selected Assumptions fields from probability distributions, runs the
full pipeline for each draw, and summarizes the resulting IRR and MOIC
distributions along with each input's influence on IRR.

Typical usage:
    from homeyield.calculations.monte_carlo import (
        MonteCarloConfig,
        InputDistribution,
        DistributionType,
        run_monte_carlo,
    )

    config = MonteCarloConfig(
        base_assumptions=default_assumptions(),
        distributions=[
            InputDistribution("home_growth_rate", DistributionType.TRIANGULAR,
                              min_value=0.0, mode=0.04, max_value=0.06),
        ],
        n_iterations=500,
        seed=7,
    )
    result = run_monte_carlo(config)
    print(f"Median IRR: {result.irr_median:.2%}")
"""

import concurrent.futures
import logging
import multiprocessing
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Callable, Dict, List, Optional

import numpy as np

from ..models.assumptions import Assumptions, ConfigurationError
from .deal import calculate_deal

logger = logging.getLogger(__name__)

PERCENTILE_LEVELS = (5, 10, 25, 50, 75, 90, 95)


class DistributionType(str, Enum):
    """Supported probability distributions for inputs."""
    UNIFORM = "uniform"
    NORMAL = "normal"
    TRIANGULAR = "triangular"
    LOGNORMAL = "lognormal"  # Positive, right-skewed; parameterized by mean/std
    PERT = "pert"  # Beta distribution weighted toward the mode


@dataclass
class InputDistribution:
    """Probability distribution for one Assumptions field.

    Attributes:
        parameter: Assumptions field name to vary
        distribution: Type of probability distribution
        min_value, max_value: Bounds (uniform, triangular, PERT)
        mean, std: Moments (normal, lognormal)
        mode: Most likely value (triangular, PERT)
        clip_min, clip_max: Optional hard bounds on sampled values
    """
    parameter: str
    distribution: DistributionType

    min_value: Optional[float] = None
    max_value: Optional[float] = None
    mean: Optional[float] = None
    std: Optional[float] = None
    mode: Optional[float] = None

    clip_min: Optional[float] = None
    clip_max: Optional[float] = None

    def sample(self, rng: np.random.Generator) -> float:
        """Draw one value from this distribution.

        Args:
            rng: NumPy random number generator

        Returns:
            Sampled value, clipped to the optional bounds
        """
        kind = self.distribution
        if kind == DistributionType.UNIFORM:
            value = rng.uniform(self.min_value, self.max_value)
        elif kind == DistributionType.NORMAL:
            value = rng.normal(self.mean, self.std)
        elif kind == DistributionType.TRIANGULAR:
            value = rng.triangular(self.min_value, self.mode, self.max_value)
        elif kind == DistributionType.LOGNORMAL:
            # Moments of the underlying normal from the target mean/std
            variance_ratio = 1 + (self.std / self.mean) ** 2
            sigma = np.sqrt(np.log(variance_ratio))
            mu = np.log(self.mean) - sigma ** 2 / 2
            value = rng.lognormal(mu, sigma)
        elif kind == DistributionType.PERT:
            low, likely, high = self.min_value, self.mode, self.max_value
            if high == low:
                value = likely
            else:
                alpha = 1 + 4 * (likely - low) / (high - low)
                beta = 1 + 4 * (high - likely) / (high - low)
                value = low + rng.beta(alpha, beta) * (high - low)
        else:
            raise ValueError(f"Unknown distribution type: {self.distribution}")

        if self.clip_min is not None:
            value = max(value, self.clip_min)
        if self.clip_max is not None:
            value = min(value, self.clip_max)
        return float(value)


@dataclass
class MonteCarloConfig:
    """Configuration for a Monte Carlo run.

    Attributes:
        base_assumptions: Values for every field not being varied
        distributions: Distributions for the fields to vary
        n_iterations: Number of simulation iterations
        seed: Random seed for reproducibility
        confidence_level: Confidence level for the IRR interval
        parallel: Run iterations on a thread pool
        max_workers: Max parallel workers (None = CPU count, capped at 8)
    """
    base_assumptions: Assumptions
    distributions: List[InputDistribution]
    n_iterations: int = 500
    seed: Optional[int] = None
    confidence_level: float = 0.95
    parallel: bool = True
    max_workers: Optional[int] = None


@dataclass
class IterationResult:
    """Result from a single Monte Carlo iteration."""
    iteration: int
    inputs: Dict[str, float]  # Sampled input values
    irr: float  # NaN when the sampled assumptions were rejected
    moic: float  # NaN when undefined
    sale_proceeds: float
    equity: float

    @property
    def failed(self) -> bool:
        return bool(np.isnan(self.irr))


@dataclass
class SensitivityResult:
    """Influence of one sampled input on IRR."""
    parameter: str
    correlation: float  # Pearson correlation with IRR
    elasticity: float  # % change in IRR per 1% change in input, at the means


@dataclass
class MonteCarloResult:
    """Summary statistics over all successful iterations."""
    n_iterations: int
    n_failed: int
    confidence_level: float
    iterations: List[IterationResult]

    irr_mean: float
    irr_std: float
    irr_median: float
    irr_min: float
    irr_max: float
    irr_ci_lower: float
    irr_ci_upper: float
    irr_percentiles: Dict[int, float]

    moic_mean: float
    moic_median: float

    prob_irr_positive: float
    prob_irr_above_target: float
    target_irr: float

    sensitivities: List[SensitivityResult] = field(default_factory=list)

    def get_irr_distribution(self) -> np.ndarray:
        """IRR of every successful iteration."""
        return np.array([r.irr for r in self.iterations if not r.failed])

    def summary(self) -> str:
        """Return a formatted text summary."""
        lines = [
            "=" * 60,
            "MONTE CARLO SIMULATION RESULTS",
            "=" * 60,
            f"Iterations: {self.n_iterations:,} ({self.n_failed:,} rejected)",
            "",
            "IRR",
            "-" * 40,
            f"  Mean:   {self.irr_mean:>8.2%}",
            f"  Median: {self.irr_median:>8.2%}",
            f"  Std:    {self.irr_std:>8.2%}",
            f"  Range:  [{self.irr_min:.2%}, {self.irr_max:.2%}]",
            f"  {self.confidence_level:.0%} CI: [{self.irr_ci_lower:.2%}, {self.irr_ci_upper:.2%}]",
            "",
            f"MOIC mean {self.moic_mean:.2f}x, median {self.moic_median:.2f}x",
            f"P(IRR > 0%): {self.prob_irr_positive:.1%}",
            f"P(IRR > {self.target_irr:.0%}): {self.prob_irr_above_target:.1%}",
            "",
            "SENSITIVITY (correlation with IRR)",
            "-" * 40,
        ]
        for s in sorted(self.sensitivities, key=lambda s: abs(s.correlation), reverse=True):
            lines.append(f"  {s.parameter:<36} {s.correlation:>+6.3f}")
        lines.append("=" * 60)
        return "\n".join(lines)


def _run_single_iteration(
    iteration: int,
    base: Assumptions,
    distributions: List[InputDistribution],
    seed: int,
) -> IterationResult:
    """Sample inputs and run one deal calculation."""
    rng = np.random.default_rng(seed)
    sampled = {dist.parameter: dist.sample(rng) for dist in distributions}

    try:
        result = calculate_deal(replace(base, **sampled))
    except ConfigurationError as e:
        logger.debug("Iteration %d rejected: %s", iteration, e)
        return IterationResult(
            iteration=iteration,
            inputs=sampled,
            irr=float("nan"),
            moic=float("nan"),
            sale_proceeds=0.0,
            equity=0.0,
        )

    moic = result.metrics.multiple_on_invested_capital
    return IterationResult(
        iteration=iteration,
        inputs=sampled,
        irr=result.metrics.internal_rate_of_return,
        moic=float("nan") if moic is None else moic,
        sale_proceeds=result.metrics.sale_proceeds,
        equity=result.sources_uses.equity,
    )


def _sensitivity(parameter: str, values: np.ndarray, irrs: np.ndarray) -> SensitivityResult:
    """Correlation and elasticity of IRR with respect to one input."""
    if np.std(values) == 0:
        return SensitivityResult(parameter, 0.0, 0.0)

    correlation = float(np.corrcoef(values, irrs)[0, 1])
    slope = np.cov(values, irrs)[0, 1] / np.var(values, ddof=1)
    irr_mean = np.mean(irrs)
    elasticity = float(slope * np.mean(values) / irr_mean) if irr_mean != 0 else 0.0
    return SensitivityResult(parameter, correlation, elasticity)


def run_monte_carlo(
    config: MonteCarloConfig,
    target_irr: float = 0.10,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> MonteCarloResult:
    """Run a Monte Carlo simulation.

    Args:
        config: Simulation configuration
        target_irr: Target IRR for the probability metric
        progress_callback: Optional callback(completed, total)

    Returns:
        MonteCarloResult with statistics and per-iteration data

    Raises:
        ValueError: If a distribution names an unknown field or every
            iteration was rejected.
    """
    known = {f.name for f in fields(Assumptions)}
    unknown = [d.parameter for d in config.distributions if d.parameter not in known]
    if unknown:
        raise ValueError(f"Unknown assumption fields: {unknown}")

    master_rng = np.random.default_rng(config.seed)
    seeds = master_rng.integers(0, 2**31, size=config.n_iterations)

    results: List[IterationResult] = []
    total = config.n_iterations

    if config.parallel and total > 10:
        max_workers = config.max_workers or min(multiprocessing.cpu_count(), 8)
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(
                    _run_single_iteration, i, config.base_assumptions,
                    config.distributions, int(seeds[i]),
                )
                for i in range(total)
            ]
            for done, future in enumerate(concurrent.futures.as_completed(futures), start=1):
                results.append(future.result())
                if progress_callback:
                    progress_callback(done, total)
    else:
        for i in range(total):
            results.append(_run_single_iteration(
                i, config.base_assumptions, config.distributions, int(seeds[i]),
            ))
            if progress_callback:
                progress_callback(i + 1, total)

    results.sort(key=lambda r: r.iteration)
    valid = [r for r in results if not r.failed]
    if not valid:
        raise ValueError("All iterations failed - check input distributions")
    if len(valid) < len(results):
        logger.warning("%d of %d iterations rejected", len(results) - len(valid), len(results))

    irrs = np.array([r.irr for r in valid])
    moics = np.array([r.moic for r in valid])

    alpha = 1 - config.confidence_level
    sensitivities = [
        _sensitivity(dist.parameter, np.array([r.inputs[dist.parameter] for r in valid]), irrs)
        for dist in config.distributions
    ]

    return MonteCarloResult(
        n_iterations=len(valid),
        n_failed=len(results) - len(valid),
        confidence_level=config.confidence_level,
        iterations=results,
        irr_mean=float(np.mean(irrs)),
        irr_std=float(np.std(irrs)),
        irr_median=float(np.median(irrs)),
        irr_min=float(np.min(irrs)),
        irr_max=float(np.max(irrs)),
        irr_ci_lower=float(np.percentile(irrs, alpha / 2 * 100)),
        irr_ci_upper=float(np.percentile(irrs, (1 - alpha / 2) * 100)),
        irr_percentiles={p: float(np.percentile(irrs, p)) for p in PERCENTILE_LEVELS},
        moic_mean=float(np.nanmean(moics)) if np.any(~np.isnan(moics)) else float("nan"),
        moic_median=float(np.nanmedian(moics)) if np.any(~np.isnan(moics)) else float("nan"),
        prob_irr_positive=float(np.mean(irrs > 0)),
        prob_irr_above_target=float(np.mean(irrs > target_irr)),
        target_irr=target_irr,
        sensitivities=sensitivities,
    )


# Convenience builders for common uncertainty sets

def create_market_uncertainty_distributions(base: Assumptions) -> List[InputDistribution]:
    """Appreciation, rent growth and occupancy uncertainty around the base case."""
    return [
        InputDistribution(
            parameter="home_growth_rate",
            distribution=DistributionType.TRIANGULAR,
            min_value=base.home_growth_rate - 0.03,
            mode=base.home_growth_rate,
            max_value=base.home_growth_rate + 0.02,
        ),
        InputDistribution(
            parameter="annual_rent_increase",
            distribution=DistributionType.TRIANGULAR,
            min_value=max(0.0, base.annual_rent_increase - 0.02),
            mode=base.annual_rent_increase,
            max_value=base.annual_rent_increase + 0.02,
        ),
        InputDistribution(
            parameter="occupancy_rate",
            distribution=DistributionType.PERT,
            min_value=0.80,
            mode=0.92,
            max_value=1.0,
        ),
    ]


def create_financing_uncertainty_distributions(base: Assumptions) -> List[InputDistribution]:
    """Initial and refinanced loan rate uncertainty."""
    distributions = [
        InputDistribution(
            parameter="initial_loan_rate",
            distribution=DistributionType.NORMAL,
            mean=base.initial_loan_rate,
            std=0.005,
            clip_min=0.0,
        ),
    ]
    if base.refinance_enabled:
        distributions.append(InputDistribution(
            parameter="refinanced_loan_rate",
            distribution=DistributionType.TRIANGULAR,
            min_value=max(0.0, base.refinanced_loan_rate - 0.015),
            mode=base.refinanced_loan_rate,
            max_value=base.refinanced_loan_rate + 0.025,
        ))
    return distributions


def create_expense_uncertainty_distributions(base: Assumptions) -> List[InputDistribution]:
    """Insurance, property tax and maintenance cost uncertainty."""
    return [
        InputDistribution(
            parameter="annual_insurance",
            distribution=DistributionType.LOGNORMAL,
            mean=max(base.annual_insurance, 1.0),
            std=max(base.annual_insurance, 1.0) * 0.25,
        ),
        InputDistribution(
            parameter="annual_property_tax",
            distribution=DistributionType.UNIFORM,
            min_value=base.annual_property_tax * 0.9,
            max_value=base.annual_property_tax * 1.1,
        ),
        InputDistribution(
            parameter="annual_maintenance",
            distribution=DistributionType.LOGNORMAL,
            mean=max(base.annual_maintenance, 1.0),
            std=max(base.annual_maintenance, 1.0) * 0.40,
        ),
    ]


def create_full_uncertainty_suite(base: Assumptions) -> List[InputDistribution]:
    """Market, financing and expense distributions combined."""
    return (
        create_market_uncertainty_distributions(base)
        + create_financing_uncertainty_distributions(base)
        + create_expense_uncertainty_distributions(base)
    )
