"""Monthly timeline flags and per-loan payment period indices."""

from dataclasses import dataclass
from typing import Optional, Tuple

from ..models.assumptions import Assumptions, years_to_months
from ..models.defaults import LoanType


@dataclass(frozen=True)
class CutoverEvent:
    """Refinance event: the initial loan is retired into the refinanced loan."""

    month: int
    transferred_balance: float
    financing_fee: float = 0.0  # Refinanced loan fee on the transferred balance (reported only)


@dataclass(frozen=True)
class Schedule:
    """Month 0..N timeline.

    Month 0 is the acquisition instant and months 1..N are operating months.
    A payment period index of 0 means the loan does not amortize that month;
    otherwise it is the payment's ordinal within that loan's own timeline.
    """
    months: Tuple[int, ...]
    hold_flag: Tuple[int, ...]
    annual_flag: Tuple[int, ...]
    initial_loan_period: Tuple[int, ...]
    second_lien_period: Tuple[int, ...]
    refinanced_loan_period: Tuple[int, ...]
    refinance_month: Optional[int] = None  # Cutover month R, None without refinance

    @property
    def month_count(self) -> int:
        """Number of months including month 0."""
        return len(self.months)

    @property
    def last_month(self) -> int:
        return self.months[-1]

    def payment_periods(self, loan_type: LoanType) -> Tuple[int, ...]:
        """Get the payment period index series for a loan."""
        if loan_type == LoanType.INITIAL:
            return self.initial_loan_period
        if loan_type == LoanType.SECOND_LIEN:
            return self.second_lien_period
        return self.refinanced_loan_period


def build_schedule(assumptions: Assumptions) -> Schedule:
    """Build hold/annual flags and payment periods for every loan.

    With a refinance at month R the initial loan amortizes in months 1..R and
    the refinanced loan in months R+1.. with indices 1, 2, ...; month R is
    the initial loan's last period and the month the balance transfers. The
    second lien amortizes over its own term regardless of any refinance.

    Args:
        assumptions: Deal assumptions.

    Returns:
        Schedule covering months 0..hold_months.
    """
    month_count = assumptions.hold_months + 1
    months = range(month_count)

    hold_flag = tuple(0 if t == 0 else 1 for t in months)
    annual_flag = tuple(1 if t > 0 and t % 12 == 0 else 0 for t in months)

    # A refinance scheduled after the sale never happens
    refinance_month: Optional[int] = assumptions.refinance_month
    if not 0 < refinance_month < month_count:
        refinance_month = None

    if refinance_month is not None:
        initial_period = tuple(t if 1 <= t <= refinance_month else 0 for t in months)
        refinanced_period = tuple(t - refinance_month if t > refinance_month else 0 for t in months)
    else:
        initial_period = hold_flag
        refinanced_period = tuple(0 for _ in months)

    if assumptions.has_second_lien:
        lien_term = years_to_months(assumptions.second_lien_term_years)
        second_lien_period = tuple(t if 1 <= t <= lien_term else 0 for t in months)
    else:
        second_lien_period = tuple(0 for _ in months)

    return Schedule(
        months=tuple(months),
        hold_flag=hold_flag,
        annual_flag=annual_flag,
        initial_loan_period=initial_period,
        second_lien_period=second_lien_period,
        refinanced_loan_period=refinanced_period,
        refinance_month=refinance_month,
    )
