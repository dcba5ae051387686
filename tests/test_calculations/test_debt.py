"""Tests for loan ledgers, refinance cutover and extra payments."""

import logging
from dataclasses import replace

import pytest

from homeyield.calculations.debt import (
    LoanLedger,
    LoanTerms,
    amortize_loan,
    calculate_debt_service,
)
from homeyield.calculations.financial_math import pmt, remaining_balance
from homeyield.calculations.schedule import build_schedule
from homeyield.calculations.sources_uses import calculate_sources_uses
from homeyield.models.defaults import LoanType


def _debt_service(assumptions):
    schedule = build_schedule(assumptions)
    return calculate_debt_service(schedule, calculate_sources_uses(assumptions), assumptions)


class TestLoanTerms:
    """Tests for loan term derivation."""

    def test_from_assumptions(self, flat_rent_inputs):
        terms = LoanTerms.from_assumptions(LoanType.INITIAL, flat_rent_inputs, 375_000)

        assert terms.term_months == 360
        assert terms.monthly_rate == pytest.approx(0.005)
        assert terms.level_payment == pytest.approx(pmt(0.005, 360, -375_000))

    def test_zero_principal_has_no_payment(self):
        terms = LoanTerms(LoanType.INITIAL, principal=0, annual_rate=0.06, term_months=0)
        assert terms.level_payment == 0.0

    def test_extra_payment_interval(self):
        terms = LoanTerms(
            LoanType.INITIAL, 100_000, 0.06, 360,
            extra_payments_enabled=True, extra_payments_per_year=2, extra_payment_amount=10_000,
        )
        assert terms.extra_payment_interval == 6
        assert terms.extra_payment == 5_000

    def test_disabled_extra_payments_have_no_interval(self):
        terms = LoanTerms(LoanType.INITIAL, 100_000, 0.06, 360, extra_payments_per_year=2)
        assert terms.extra_payment_interval is None

    @pytest.mark.parametrize("times", [0, -1, 13])
    def test_unschedulable_extra_payments_disabled(self, times, caplog):
        terms = LoanTerms(
            LoanType.INITIAL, 100_000, 0.06, 360,
            extra_payments_enabled=True, extra_payments_per_year=times, extra_payment_amount=1_000,
        )
        with caplog.at_level(logging.WARNING):
            assert terms.extra_payment_interval is None
        assert "extra payments disabled" in caplog.text


class TestLedgerClosure:
    """Every ledger must satisfy the BOP/EOP roll-forward identities."""

    def test_all_scenarios_close(
        self, flat_rent_inputs, refinance_inputs, second_lien_inputs, zero_rate_inputs, advanced_inputs
    ):
        for assumptions in (
            flat_rent_inputs, refinance_inputs, second_lien_inputs, zero_rate_inputs, advanced_inputs
        ):
            for ledger in _debt_service(assumptions):
                assert ledger.closure_violations() == []
                for t in range(1, len(ledger.eop)):
                    assert ledger.bop[t] == ledger.eop[t - 1]
                    assert ledger.eop[t] == max(
                        0.0,
                        ledger.bop[t] + ledger.issuance[t] + ledger.extra_payment[t]
                        + ledger.refinance_transfer[t] + ledger.scheduled_payment[t],
                    )

    def test_balances_never_negative(self, advanced_inputs):
        a = replace(advanced_inputs, initial_loan_extra_payments=1, initial_loan_extra_payment_amount=60_000)
        for ledger in _debt_service(a):
            assert min(ledger.eop) >= 0.0

    def test_broken_ledger_rejected(self):
        with pytest.raises(ValueError):
            LoanLedger(
                LoanType.INITIAL,
                bop=(0.0, 100.0), issuance=(100.0, 0.0), extra_payment=(0.0, 0.0),
                refinance_transfer=(0.0, 0.0), scheduled_payment=(0.0, -10.0),
                eop=(100.0, 95.0), interest_expense=(0.0, 0.0),
            )

    def test_mismatched_lengths_rejected(self):
        with pytest.raises(ValueError):
            LoanLedger(
                LoanType.INITIAL,
                bop=(0.0,), issuance=(0.0, 0.0), extra_payment=(0.0,),
                refinance_transfer=(0.0,), scheduled_payment=(0.0,),
                eop=(0.0,), interest_expense=(0.0,),
            )


class TestInitialLoan:
    """Tests for standard amortization of the initial loan."""

    def test_issued_at_month_zero(self, flat_rent_inputs):
        loan = _debt_service(flat_rent_inputs).initial_loan

        assert loan.issuance[0] == 375_000
        assert loan.eop[0] == 375_000
        assert loan.scheduled_payment[0] == 0.0

    def test_month_zero_accrues_interest_on_issuance(self, flat_rent_inputs):
        loan = _debt_service(flat_rent_inputs).initial_loan
        assert loan.interest_expense[0] == pytest.approx(375_000 * 0.005)

    def test_first_payment_split(self, flat_rent_inputs):
        loan = _debt_service(flat_rent_inputs).initial_loan
        payment = pmt(0.005, 360, -375_000)

        assert loan.interest_expense[1] == pytest.approx(1_875)
        assert loan.scheduled_payment[1] == pytest.approx(-(payment - 1_875))

    def test_balance_matches_closed_form(self, flat_rent_inputs):
        loan = _debt_service(flat_rent_inputs).initial_loan
        payment = pmt(0.005, 360, -375_000)

        for month in (1, 12, 120, 240):
            expected = remaining_balance(375_000, 0.005, payment, month)
            assert loan.eop[month] == pytest.approx(expected, rel=1e-9)

    def test_net_debt_service_is_level_payment(self, flat_rent_inputs):
        """Extra + scheduled - interest should equal minus the level payment."""
        debt = _debt_service(flat_rent_inputs)
        payment = pmt(0.005, 360, -375_000)

        assert debt.total_debt_service[1] == pytest.approx(-payment)
        assert debt.total_debt_service[240] == pytest.approx(-payment)

    def test_all_cash_purchase_has_zero_ledger(self, flat_rent_inputs):
        debt = _debt_service(replace(flat_rent_inputs, down_payment_percent=1.0))
        assert debt.initial_loan.is_zero()


class TestZeroRate:
    """Zero-rate loans amortize straight-line."""

    def test_pays_off_at_term(self, zero_rate_inputs):
        loan = _debt_service(zero_rate_inputs).initial_loan

        assert loan.eop[23] == 50.0
        assert loan.eop[24] == 0.0
        assert loan.payoff_month == 24
        assert all(balance == 0.0 for balance in loan.eop[24:])

    def test_every_payment_is_fifty(self, zero_rate_inputs):
        loan = _debt_service(zero_rate_inputs).initial_loan

        assert all(payment == -50.0 for payment in loan.scheduled_payment[1:25])
        assert loan.total_interest == 0.0


class TestNoLoanInvariant:
    """Disabled loans carry all-zero ledgers."""

    def test_unused_loans_are_zero(self, flat_rent_inputs):
        debt = _debt_service(flat_rent_inputs)

        assert debt.second_lien.is_zero()
        assert debt.refinanced_loan.is_zero()
        assert debt.cutover is None

    def test_get_by_loan_type(self, flat_rent_inputs):
        debt = _debt_service(flat_rent_inputs)

        assert debt.get(LoanType.INITIAL) is debt.initial_loan
        assert debt.get(LoanType.REFINANCED) is debt.refinanced_loan


class TestRefinanceCutover:
    """Tests for the refinance transition."""

    def test_transfer_conserves_balance(self, refinance_inputs):
        debt = _debt_service(refinance_inputs)
        initial, refinanced = debt.initial_loan, debt.refinanced_loan

        assert initial.refinance_transfer[60] == -refinanced.issuance[60]
        assert debt.cutover.transferred_balance == initial.eop[59]
        assert refinanced.issuance[60] == initial.eop[59]

    def test_initial_loan_zero_from_cutover(self, refinance_inputs):
        initial = _debt_service(refinance_inputs).initial_loan

        assert all(balance == 0.0 for balance in initial.eop[60:])
        assert initial.scheduled_payment[60] == 0.0
        assert initial.interest_expense[60] == 0.0
        assert initial.payoff_month is None

    def test_transferred_balance_matches_closed_form(self, refinance_inputs):
        debt = _debt_service(refinance_inputs)
        payment = pmt(0.005, 360, -375_000)

        expected = remaining_balance(375_000, 0.005, payment, 59)
        assert debt.cutover.transferred_balance == pytest.approx(expected, rel=1e-9)
        assert debt.cutover.financing_fee == pytest.approx(expected * 0.01)

    def test_refinanced_loan_amortizes_from_next_month(self, refinance_inputs):
        refinanced = _debt_service(refinance_inputs).refinanced_loan
        balance = refinanced.issuance[60]
        payment = pmt(0.04 / 12, 360, -balance)

        assert refinanced.eop[60] == balance
        assert refinanced.interest_expense[60] == 0.0
        assert refinanced.interest_expense[61] == pytest.approx(balance * 0.04 / 12)
        assert refinanced.scheduled_payment[61] == pytest.approx(-(payment - balance * 0.04 / 12))
        assert refinanced.eop[240] == pytest.approx(
            remaining_balance(balance, 0.04 / 12, payment, 180), rel=1e-9
        )

    def test_refinance_lowers_payment(self, refinance_inputs):
        debt = _debt_service(refinance_inputs)
        assert debt.total_debt_service[61] > debt.total_debt_service[59]

    def test_balance_at_sums_loans(self, refinance_inputs):
        debt = _debt_service(refinance_inputs)
        assert debt.balance_at(60) == debt.refinanced_loan.eop[60]
        assert debt.balance_at(59) == debt.initial_loan.eop[59]


class TestSecondLien:
    """Tests for the second lien ledger."""

    def test_pays_off_over_its_term(self, second_lien_inputs):
        lien = _debt_service(second_lien_inputs).second_lien

        assert lien.issuance[0] == 50_000
        assert lien.eop[120] == pytest.approx(0.0, abs=1e-6)
        assert all(payment == 0.0 for payment in lien.scheduled_payment[121:])

    def test_adds_to_debt_service(self, second_lien_inputs, flat_rent_inputs):
        with_lien = _debt_service(second_lien_inputs).total_debt_service
        without = _debt_service(flat_rent_inputs).total_debt_service
        lien_payment = pmt(0.005, 120, -50_000)

        assert with_lien[1] - without[1] == pytest.approx(-lien_payment)


class TestExtraPayments:
    """Tests for periodic extra principal payments."""

    def _with_extra(self, flat_rent_inputs, times=2, amount=10_000):
        return replace(
            flat_rent_inputs,
            initial_loan_extra_payments=1,
            initial_loan_extra_payment_times=times,
            initial_loan_extra_payment_amount=amount,
        )

    def test_cadence(self, flat_rent_inputs):
        loan = _debt_service(self._with_extra(flat_rent_inputs)).initial_loan
        paid = [t for t, extra in enumerate(loan.extra_payment) if extra]

        assert paid[:4] == [6, 12, 18, 24]
        assert loan.extra_payment[6] == -5_000

    def test_shortens_payoff(self, flat_rent_inputs):
        a = replace(self._with_extra(flat_rent_inputs), hold_years=30)
        base = _debt_service(replace(flat_rent_inputs, hold_years=30)).initial_loan
        loan = _debt_service(a).initial_loan

        assert loan.payoff_month is not None
        assert base.payoff_month is None or loan.payoff_month < base.payoff_month
        assert loan.total_interest < base.total_interest

    def test_final_payment_clipped_to_balance(self, flat_rent_inputs):
        a = replace(self._with_extra(flat_rent_inputs, times=12, amount=120_000), hold_years=30)
        loan = _debt_service(a).initial_loan
        payoff = loan.payoff_month

        assert payoff is not None
        assert loan.eop[payoff] == 0.0
        # Scheduled principal never exceeds what is left after the extra payment
        for t in range(1, len(loan.eop)):
            assert -loan.scheduled_payment[t] <= loan.bop[t] + loan.extra_payment[t] + 1e-9

    def test_no_cash_after_payoff(self, flat_rent_inputs):
        """Extra payments keep their cadence but are fully offset once the balance is gone."""
        a = replace(self._with_extra(flat_rent_inputs, times=12, amount=120_000), hold_years=30)
        loan = _debt_service(a).initial_loan
        after = slice(loan.payoff_month + 1, None)

        assert not any(loan.eop[after])
        assert not any(loan.interest_expense[after])
        assert not any(loan.debt_service[after])


class TestAmortizeLoan:
    """Direct tests for the forward pass."""

    def test_inactive_periods_do_not_amortize(self):
        terms = LoanTerms(LoanType.INITIAL, 1_200, 0.0, 24)
        ledger = amortize_loan(terms, (0, 0, 1, 2))

        assert ledger.eop[1] == 1_200
        assert ledger.scheduled_payment[1] == 0.0
        assert ledger.eop[3] == 1_100
