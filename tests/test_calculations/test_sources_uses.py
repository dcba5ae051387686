"""Tests for the Sources and Uses calculation."""

from dataclasses import replace

import pytest

from homeyield.calculations.sources_uses import SourcesUses, calculate_sources_uses


class TestCalculateSourcesUses:
    """Tests for the acquisition capital stack."""

    def test_flat_rent_case(self, flat_rent_inputs):
        su = calculate_sources_uses(flat_rent_inputs)

        assert su.initial_loan_amount == 375_000
        assert su.second_lien_amount == 0.0
        assert su.financing_fees == 0.0
        assert su.total_uses == 500_000
        assert su.equity == 125_000
        assert su.down_payment == 125_000

    def test_sources_equal_uses_exactly(self, advanced_inputs, second_lien_inputs, basic_inputs):
        """Totals should be identical, not merely close."""
        for assumptions in (advanced_inputs, second_lien_inputs, basic_inputs):
            su = calculate_sources_uses(assumptions)
            assert su.total_sources == su.total_uses

    def test_fees_and_closing_costs_add_to_uses(self, flat_rent_inputs):
        a = replace(flat_rent_inputs, closing_costs=5_000, initial_loan_fee=0.01)
        su = calculate_sources_uses(a)

        assert su.financing_fees == pytest.approx(3_750)
        assert su.total_uses == pytest.approx(508_750)
        assert su.equity == pytest.approx(133_750)

    def test_second_lien_reduces_equity(self, second_lien_inputs):
        su = calculate_sources_uses(second_lien_inputs)

        # 50k lien with a 1% fee
        assert su.second_lien_amount == 50_000
        assert su.financing_fees == pytest.approx(500)
        assert su.equity == pytest.approx(125_000 + 500 - 50_000)
        assert su.total_financing == 425_000

    def test_disabled_second_lien_ignores_amount(self, flat_rent_inputs):
        su = calculate_sources_uses(replace(flat_rent_inputs, second_lien_amount=50_000))
        assert su.second_lien_amount == 0.0

    def test_equity_can_be_negative(self, flat_rent_inputs):
        """A large second lien can over-finance the deal."""
        a = replace(
            flat_rent_inputs,
            use_second_lien=1,
            second_lien_amount=200_000,
            second_lien_term_years=10,
        )
        assert calculate_sources_uses(a).equity == pytest.approx(-75_000)

    def test_unbalanced_record_rejected(self):
        with pytest.raises(ValueError):
            SourcesUses(
                equity=1, second_lien_amount=0, initial_loan_amount=0, total_sources=1,
                purchase_price=2, closing_costs=0, financing_fees=0, total_uses=2,
            )
