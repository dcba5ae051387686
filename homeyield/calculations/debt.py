"""Monthly amortization ledgers for the initial loan, second lien and refinanced loan."""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..models.assumptions import Assumptions, years_to_months
from ..models.defaults import LoanType
from .financial_math import pmt
from .schedule import CutoverEvent, Schedule
from .sources_uses import SourcesUses

logger = logging.getLogger(__name__)

# Assumptions field prefix for each loan's rate/term/fee/extra-payment inputs
LOAN_FIELD_PREFIX: Dict[LoanType, str] = {
    LoanType.INITIAL: "initial_loan",
    LoanType.SECOND_LIEN: "second_lien",
    LoanType.REFINANCED: "refinanced_loan",
}


@dataclass(frozen=True)
class LoanTerms:
    """Terms of a single amortizing loan."""

    loan_type: LoanType
    principal: float  # Original principal the level payment is sized on
    annual_rate: float
    term_months: int
    extra_payments_enabled: bool = False
    extra_payments_per_year: float = 0.0
    extra_payment_amount: float = 0.0  # Annual total, split evenly per payment

    @classmethod
    def from_assumptions(
        cls,
        loan_type: LoanType,
        assumptions: Assumptions,
        principal: float,
    ) -> "LoanTerms":
        """Read a loan's terms from the assumptions.

        Args:
            loan_type: Which loan to read.
            assumptions: Deal assumptions.
            principal: Principal to size the loan on.

        Returns:
            LoanTerms for the loan.
        """
        prefix = LOAN_FIELD_PREFIX[loan_type]
        return cls(
            loan_type=loan_type,
            principal=principal,
            annual_rate=getattr(assumptions, f"{prefix}_rate"),
            term_months=years_to_months(getattr(assumptions, f"{prefix}_term_years")),
            extra_payments_enabled=getattr(assumptions, f"{prefix}_extra_payments") != 0,
            extra_payments_per_year=getattr(assumptions, f"{prefix}_extra_payment_times"),
            extra_payment_amount=getattr(assumptions, f"{prefix}_extra_payment_amount"),
        )

    @property
    def monthly_rate(self) -> float:
        return self.annual_rate / 12

    @property
    def level_payment(self) -> float:
        """Monthly principal + interest payment over the full term."""
        if self.principal == 0:
            return 0.0
        return pmt(self.monthly_rate, self.term_months, -self.principal)

    @property
    def extra_payment_interval(self) -> Optional[int]:
        """Months between extra payments, or None when there are none.

        The cadence is floor(12 / payments per year) on the absolute month
        index, so a count outside 1..12 cannot be scheduled.
        """
        if not self.extra_payments_enabled:
            return None
        if not 0 < self.extra_payments_per_year <= 12:
            logger.warning(
                "%s: %s extra payments per year cannot be scheduled; extra payments disabled",
                self.loan_type.value,
                self.extra_payments_per_year,
            )
            return None
        return math.floor(12 / self.extra_payments_per_year)

    @property
    def extra_payment(self) -> float:
        """Size of each extra principal payment (positive)."""
        return self.extra_payment_amount / self.extra_payments_per_year


def _closing_balance(
    bop: float,
    issuance: float,
    extra_payment: float,
    refinance_transfer: float,
    scheduled_payment: float,
) -> float:
    """EOP = max(0, BOP + Issuance + Extra + Refinance + Scheduled)."""
    return max(0.0, bop + issuance + extra_payment + refinance_transfer + scheduled_payment)


@dataclass(frozen=True)
class LoanLedger:
    """Month-by-month ledger for one loan.

    Payments and transfers out of the loan are negative; issuance is positive.
    All seven series have one entry per month of the schedule.
    """
    loan_type: LoanType
    bop: Tuple[float, ...]
    issuance: Tuple[float, ...]
    extra_payment: Tuple[float, ...]
    refinance_transfer: Tuple[float, ...]
    scheduled_payment: Tuple[float, ...]
    eop: Tuple[float, ...]
    interest_expense: Tuple[float, ...]

    def __post_init__(self):
        """Validate series lengths and the closing-balance identity."""
        lengths = {
            len(self.bop), len(self.issuance), len(self.extra_payment),
            len(self.refinance_transfer), len(self.scheduled_payment),
            len(self.eop), len(self.interest_expense),
        }
        if len(lengths) != 1:
            raise ValueError(f"{self.loan_type.value} ledger series differ in length: {sorted(lengths)}")

        violations = self.closure_violations()
        if violations:
            raise ValueError(
                f"{self.loan_type.value} ledger does not close in months {violations[:5]}"
            )

    @classmethod
    def zeros(cls, loan_type: LoanType, month_count: int) -> "LoanLedger":
        """Ledger for a loan that is not used."""
        empty = tuple(0.0 for _ in range(month_count))
        return cls(loan_type, empty, empty, empty, empty, empty, empty, empty)

    def closure_violations(self) -> List[int]:
        """Months where EOP or BOP break the roll-forward identities."""
        bad = []
        for t in range(len(self.eop)):
            expected_bop = self.eop[t - 1] if t > 0 else 0.0
            expected_eop = _closing_balance(
                self.bop[t], self.issuance[t], self.extra_payment[t],
                self.refinance_transfer[t], self.scheduled_payment[t],
            )
            if self.bop[t] != expected_bop or self.eop[t] != expected_eop:
                bad.append(t)
        return bad

    @property
    def debt_service(self) -> Tuple[float, ...]:
        """Net cash paid each month: extra + scheduled - interest (negative = outflow)."""
        return tuple(
            extra + scheduled - interest
            for extra, scheduled, interest in zip(
                self.extra_payment, self.scheduled_payment, self.interest_expense
            )
        )

    @property
    def final_balance(self) -> float:
        return self.eop[-1]

    @property
    def total_interest(self) -> float:
        return sum(self.interest_expense)

    @property
    def payoff_month(self) -> Optional[int]:
        """First month the balance is amortized to zero.

        None when no such month exists, including for a loan retired by refinance.
        """
        issued = False
        for t, balance in enumerate(self.eop):
            if self.refinance_transfer[t] != 0:
                return None
            if balance > 0:
                issued = True
            elif issued:
                return t
        return None

    def is_zero(self) -> bool:
        """True when every field is zero in every month."""
        return not any(
            any(series)
            for series in (
                self.bop, self.issuance, self.extra_payment, self.refinance_transfer,
                self.scheduled_payment, self.eop, self.interest_expense,
            )
        )


@dataclass(frozen=True)
class DebtService:
    """Ledgers for all loans plus the refinance cutover, if any."""

    initial_loan: LoanLedger
    second_lien: LoanLedger
    refinanced_loan: LoanLedger
    cutover: Optional[CutoverEvent] = None

    def __iter__(self) -> Iterator[LoanLedger]:
        return iter((self.initial_loan, self.second_lien, self.refinanced_loan))

    def get(self, loan_type: LoanType) -> LoanLedger:
        """Get the ledger for a loan type."""
        for ledger in self:
            if ledger.loan_type == loan_type:
                return ledger
        raise KeyError(loan_type)

    def balance_at(self, month: int) -> float:
        """Sum of all loans' EOP balance at a month."""
        return sum(ledger.eop[month] for ledger in self)

    @property
    def total_debt_service(self) -> Tuple[float, ...]:
        """Net debt service summed across loans for each month."""
        return tuple(
            sum(month_values)
            for month_values in zip(*(ledger.debt_service for ledger in self))
        )


def amortize_loan(
    terms: LoanTerms,
    payment_periods: Sequence[int],
    issue_month: int = 0,
    retirement: Optional[CutoverEvent] = None,
) -> LoanLedger:
    """Roll a loan forward month by month.

    Each month depends only on the previous month's EOP:
    - The principal is issued at ``issue_month``; month 0 accrues interest on it.
    - In active months (period index > 0) an extra payment may fall due,
      interest is charged on BOP and the scheduled principal is the level
      payment less interest, clipped to the balance available that month.
    - From ``retirement.month`` on the loan is retired: its balance transfers
      out at the cutover month and no further payments or interest occur.

    Args:
        terms: Loan terms.
        payment_periods: Period index per month (0 = not amortizing).
        issue_month: Month the principal is funded.
        retirement: Cutover that retires this loan, if any.

    Returns:
        LoanLedger for the loan.
    """
    n = len(payment_periods)
    bop = [0.0] * n
    issuance = [0.0] * n
    extra = [0.0] * n
    transfer = [0.0] * n
    scheduled = [0.0] * n
    eop = [0.0] * n
    interest = [0.0] * n

    rate = terms.monthly_rate
    level_payment = terms.level_payment
    interval = terms.extra_payment_interval

    for t in range(n):
        if t > 0:
            bop[t] = eop[t - 1]

        if retirement is not None and t >= retirement.month:
            if t == retirement.month:
                transfer[t] = -retirement.transferred_balance
            eop[t] = _closing_balance(bop[t], issuance[t], extra[t], transfer[t], scheduled[t])
            continue

        if t == issue_month:
            issuance[t] = terms.principal
        if t == 0:
            interest[t] = issuance[t] * rate

        if payment_periods[t] > 0:
            if interval is not None and t > 0 and t % interval == 0:
                extra[t] = -terms.extra_payment

            principal_portion = level_payment - bop[t] * rate
            scheduled[t] = -min(principal_portion, bop[t] + issuance[t] + extra[t])
            interest[t] = bop[t] * rate

        eop[t] = _closing_balance(bop[t], issuance[t], extra[t], transfer[t], scheduled[t])

    return LoanLedger(
        loan_type=terms.loan_type,
        bop=tuple(bop),
        issuance=tuple(issuance),
        extra_payment=tuple(extra),
        refinance_transfer=tuple(transfer),
        scheduled_payment=tuple(scheduled),
        eop=tuple(eop),
        interest_expense=tuple(interest),
    )


def calculate_debt_service(
    schedule: Schedule,
    sources_uses: SourcesUses,
    assumptions: Assumptions,
) -> DebtService:
    """Build the ledgers for every loan over the hold.

    The initial loan and second lien fund at month 0. With a refinance at
    month R, the initial loan's EOP[R-1] becomes a CutoverEvent: the initial
    loan transfers it out at R and is zero from then on, and the refinanced
    loan is issued for the same amount at R and amortizes from R+1 over its
    own term. Disabled loans get all-zero ledgers.

    Args:
        schedule: Timeline and payment periods.
        sources_uses: Capital stack with loan amounts.
        assumptions: Deal assumptions with rates, terms and extra payments.

    Returns:
        DebtService with one ledger per loan.
    """
    month_count = schedule.month_count

    initial_terms = LoanTerms.from_assumptions(
        LoanType.INITIAL, assumptions, sources_uses.initial_loan_amount,
    )

    if assumptions.has_second_lien:
        second_lien = amortize_loan(
            LoanTerms.from_assumptions(
                LoanType.SECOND_LIEN, assumptions, sources_uses.second_lien_amount,
            ),
            schedule.second_lien_period,
        )
    else:
        second_lien = LoanLedger.zeros(LoanType.SECOND_LIEN, month_count)

    if schedule.refinance_month is None:
        initial_loan = amortize_loan(initial_terms, schedule.initial_loan_period)
        refinanced_loan = LoanLedger.zeros(LoanType.REFINANCED, month_count)
        return DebtService(initial_loan, second_lien, refinanced_loan)

    refinance_month = schedule.refinance_month
    pre_refinance = amortize_loan(initial_terms, schedule.initial_loan_period)
    transferred = pre_refinance.eop[refinance_month - 1]
    cutover = CutoverEvent(
        month=refinance_month,
        transferred_balance=transferred,
        financing_fee=transferred * assumptions.refinanced_loan_fee,
    )
    logger.debug(
        "Refinance cutover at month %d transfers %.2f", cutover.month, cutover.transferred_balance,
    )

    initial_loan = amortize_loan(
        initial_terms, schedule.initial_loan_period, retirement=cutover,
    )
    refinanced_loan = amortize_loan(
        LoanTerms.from_assumptions(LoanType.REFINANCED, assumptions, transferred),
        schedule.refinanced_loan_period,
        issue_month=cutover.month,
    )

    return DebtService(initial_loan, second_lien, refinanced_loan, cutover)
