"""Financial math primitives: level payments, XIRR, closed-form balances."""

import math
from typing import Sequence

import numpy as np
import numpy_financial as npf

MAX_ITERATIONS = 100
TOLERANCE = 1e-7
DEFAULT_GUESS = 0.10


class XIRRConvergenceError(ValueError):
    """Raised when the XIRR solver cannot find a rate within its iteration limit."""


def pmt(rate: float, periods: int, present_value: float, future_value: float = 0.0) -> float:
    """Level payment per period for an annuity (Excel PMT sign convention).

    A zero rate degenerates to straight-line repayment of -(pv + fv) / periods.

    Args:
        rate: Periodic interest rate.
        periods: Number of payment periods.
        present_value: Present value (pass a negative principal for a positive payment).
        future_value: Balance remaining after the last payment.

    Returns:
        Payment per period.

    Raises:
        ValueError: If periods is not positive.
    """
    if periods <= 0:
        raise ValueError(f"Number of payment periods must be positive (got {periods})")
    return float(npf.pmt(rate, periods, present_value, future_value))


def xirr(
    cash_flows: Sequence[float],
    month_indices: Sequence[float],
    guess: float = DEFAULT_GUESS,
) -> float:
    """Annual money-weighted return for monthly-timed cash flows.

    Solves f(r) = sum(cf_i / (1 + r) ** (m_i / 12)) = 0 with Newton-Raphson,
    using the analytic derivative
    f'(r) = -sum((m_i / 12) * cf_i / (1 + r) ** (m_i / 12 + 1)).

    Args:
        cash_flows: Cash flows (negative = contribution, positive = distribution).
        month_indices: Month offset of each cash flow from month 0.
        guess: Starting rate.

    Returns:
        Annual rate r at which the discounted cash flows sum to zero.

    Raises:
        ValueError: If the two sequences differ in length.
        XIRRConvergenceError: If the flows do not change sign, or the solver
            does not converge in MAX_ITERATIONS, hits a zero derivative, or
            steps to a rate at or below -100%.
    """
    if len(cash_flows) != len(month_indices):
        raise ValueError("Cash flows and month indices must have same length")

    values = np.asarray(cash_flows, dtype=float)
    if not (np.any(values > 0) and np.any(values < 0)):
        raise XIRRConvergenceError("XIRR needs at least one positive and one negative cash flow")

    exponents = np.asarray(month_indices, dtype=float) / 12
    rate = guess

    for _ in range(MAX_ITERATIONS):
        if rate <= -1 or not math.isfinite(rate):
            raise XIRRConvergenceError(f"XIRR diverged to rate {rate}")

        factors = (1 + rate) ** exponents
        npv = float(np.sum(values / factors))
        dnpv = float(-np.sum(exponents * values / (factors * (1 + rate))))

        if abs(npv) < TOLERANCE:
            return rate

        if dnpv == 0:
            raise XIRRConvergenceError("XIRR calculation failed: derivative is zero")

        new_rate = rate - npv / dnpv
        if abs(new_rate - rate) < TOLERANCE:
            return new_rate

        rate = new_rate

    raise XIRRConvergenceError(f"XIRR did not converge after {MAX_ITERATIONS} iterations")


def remaining_balance(
    original_principal: float,
    monthly_rate: float,
    monthly_payment: float,
    months_elapsed: int,
) -> float:
    """Calculate remaining loan balance after a number of level payments.

    Uses the loan balance formula:
    Balance = P x (1 + r)^n - PMT x [((1 + r)^n - 1) / r]

    Args:
        original_principal: Original loan amount.
        monthly_rate: Monthly interest rate.
        monthly_payment: Monthly P&I payment (positive).
        months_elapsed: Number of payments made.

    Returns:
        Remaining loan balance, floored at zero.
    """
    if monthly_rate == 0:
        return max(0.0, original_principal - monthly_payment * months_elapsed)

    growth_factor = (1 + monthly_rate) ** months_elapsed
    balance = (
        original_principal * growth_factor
        - monthly_payment * ((growth_factor - 1) / monthly_rate)
    )

    return max(0.0, balance)
