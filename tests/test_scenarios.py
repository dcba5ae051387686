"""Tests for batch scenarios and the refinance grid search."""

from dataclasses import replace

import pytest

from homeyield.calculations.deal import calculate_deal
from homeyield.models.assumptions import ConfigurationError
from homeyield.scenarios import (
    compare_to_base,
    format_scenario_results,
    run_refinance_grid,
    run_scenarios,
)


class TestRunScenarios:
    """Tests for named override batches."""

    def test_results_follow_override_order(self, basic_inputs):
        overrides = {
            "Base": {},
            "High rate": {"initial_loan_rate": 0.08},
            "Low rate": {"initial_loan_rate": 0.04},
        }

        results = run_scenarios(basic_inputs, overrides)

        assert [r.name for r in results] == ["Base", "High rate", "Low rate"]
        assert results[1].assumptions.initial_loan_rate == 0.08
        assert results[2].levered_irr > results[0].levered_irr > results[1].levered_irr

    def test_matches_direct_calculation(self, basic_inputs):
        results = run_scenarios(basic_inputs, {"Flat rent": {"annual_rent_increase": 0.0}})
        direct = calculate_deal(replace(basic_inputs, annual_rent_increase=0.0))

        assert results[0].result == direct

    def test_parallel_and_serial_agree(self, basic_inputs):
        overrides = {f"Down {pct:.0%}": {"down_payment_percent": pct} for pct in (0.2, 0.25, 0.3, 0.4)}

        parallel = run_scenarios(basic_inputs, overrides, parallel=True)
        serial = run_scenarios(basic_inputs, overrides, parallel=False)

        assert [r.result for r in parallel] == [r.result for r in serial]

    def test_unknown_field_raises(self, basic_inputs):
        with pytest.raises(ValueError, match="Bad"):
            run_scenarios(basic_inputs, {"Bad": {"exit_cap_rate": 0.05}})

    def test_invalid_scenario_propagates(self, basic_inputs):
        with pytest.raises(ConfigurationError):
            run_scenarios(basic_inputs, {"No term": {"initial_loan_term_years": 0}}, parallel=False)


class TestCompareToBase:
    """Tests for scenario comparison."""

    def test_irr_difference_in_bps(self, basic_inputs):
        base, cheaper = run_scenarios(
            basic_inputs, {"Base": {}, "Cheaper": {"initial_loan_rate": 0.05}}
        )

        comparison = compare_to_base(base, cheaper, target_irr_improvement_bps=10)

        expected = int(round((cheaper.levered_irr - base.levered_irr) * 10000))
        assert comparison.irr_difference_bps == expected
        assert comparison.irr_difference_bps > 0
        assert comparison.meets_target == (expected >= 10)

    def test_base_against_itself(self, basic_inputs):
        (base,) = run_scenarios(basic_inputs, {"Base": {}})
        comparison = compare_to_base(base, base)

        assert comparison.irr_difference_bps == 0
        assert comparison.meets_target


class TestRefinanceGrid:
    """Tests for the refinance timing and rate search."""

    def test_grid_covers_every_pair(self, refinance_inputs):
        grid = run_refinance_grid(refinance_inputs, [3, 5, 7], [0.035, 0.045])

        assert len(grid.points) == 6
        pairs = {(p.refinance_years, p.refinanced_rate) for p in grid.points}
        assert pairs == {(y, r) for y in (3, 5, 7) for r in (0.035, 0.045)}

    def test_best_point_has_highest_irr(self, refinance_inputs):
        grid = run_refinance_grid(refinance_inputs, [3, 5, 7], [0.035, 0.045])

        assert grid.best.levered_irr == max(p.levered_irr for p in grid.points)
        # The lowest rate should win at any timing
        assert grid.best.refinanced_rate == 0.035

    def test_lift_over_no_refinance(self, refinance_inputs, flat_rent_inputs):
        grid = run_refinance_grid(refinance_inputs, [5], [0.04])

        assert grid.no_refinance_irr == calculate_deal(flat_rent_inputs).levered_irr
        assert grid.irr_lift_bps() > 0

    def test_empty_grid_raises(self, refinance_inputs):
        with pytest.raises(ValueError):
            run_refinance_grid(refinance_inputs, [], [0.04])


class TestFormatting:
    """Tests for the text table."""

    def test_format_scenario_results(self, basic_inputs):
        results = run_scenarios(basic_inputs, {"Base": {}, "High rate": {"initial_loan_rate": 0.08}})
        table = format_scenario_results(results)

        assert "SCENARIO RESULTS (vs Base)" in table
        assert "High rate" in table

    def test_empty(self):
        assert format_scenario_results([]) == "No scenarios"
