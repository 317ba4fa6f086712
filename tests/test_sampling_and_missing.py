import unittest

import numpy as np
import pandas as pd

from mockdata.engine.missing import inject_missing, missing_code_pool
from mockdata.engine.sampling import (
    from_day_numbers,
    gompertz_unit,
    sample_anchored_days,
    sample_categories,
    sample_continuous,
    sample_dates,
    to_day_number,
    valid_count,
)
from mockdata.runtime.rng import RNG
from mockdata.schema.notation import parse_range_notation


class PopulationSamplerTests(unittest.TestCase):
    def test_categorical_frequency_matches_weights(self):
        draws = sample_categories(["A", "B"], [0.7, 0.3], 100_000, RNG(11))
        share = float(np.mean(draws == "A"))
        self.assertLess(abs(share - 0.7), 0.01)

    def test_valid_count_floors(self):
        self.assertEqual(valid_count(1000, 0.9), 900)
        self.assertEqual(valid_count(100, 0.29), 29)
        self.assertEqual(valid_count(10, 0.55), 5)
        self.assertEqual(valid_count(10, 1.0), 10)

    def test_uniform_continuous_stays_in_bounds(self):
        token = parse_range_notation("[18,100]")
        draws = sample_continuous([token], [1.0], 5000, RNG(3))
        self.assertEqual(draws.size, 5000)
        self.assertTrue(np.all((draws >= 18) & (draws <= 100)))

    def test_normal_draws_are_clipped_to_bounds(self):
        token = parse_range_notation("[15.0,50.0)")
        draws = sample_continuous(
            [token], [1.0], 5000, RNG(5), distribution="normal", mean=20.0, sd=30.0
        )
        self.assertTrue(np.all(draws >= 15.0))
        self.assertTrue(np.all(draws < 50.0))

    def test_exponential_draws_clip_only_upper_bound(self):
        token = parse_range_notation("[0,10]")
        draws = sample_continuous(
            [token], [1.0], 5000, RNG(8), distribution="exponential", rate=0.2
        )
        self.assertTrue(np.all(draws <= 10))
        self.assertTrue(np.all(draws >= 0))
        self.assertTrue(np.any(draws == 10))

    def test_exponential_with_open_upper_bound_is_not_clipped(self):
        token = parse_range_notation("[0,inf)")
        draws = sample_continuous(
            [token], [1.0], 5000, RNG(8), distribution="exponential", rate=0.001
        )
        self.assertTrue(np.all(draws >= 0))
        self.assertGreater(float(np.mean(draws)), 500.0)

    def test_multiple_ranges_are_chosen_by_weight(self):
        tokens = [parse_range_notation("[0,1]"), parse_range_notation("[100,101]")]
        draws = sample_continuous(tokens, [0.8, 0.2], 10_000, RNG(1))
        share_low = float(np.mean(draws <= 1))
        self.assertLess(abs(share_low - 0.8), 0.02)

    def test_no_ranges_use_default_window(self):
        draws = sample_continuous([], [], 200, RNG(2))
        self.assertTrue(np.all((draws >= 0) & (draws <= 100)))

    def test_dates_stay_in_window(self):
        token = parse_range_notation("[2001-01-01,2001-12-31]", hint="date")
        for distribution in (None, "normal", "exponential", "gompertz"):
            days = sample_dates([token], [1.0], 1000, RNG(4), distribution=distribution)
            stamps = from_day_numbers(days)
            self.assertTrue((stamps >= pd.Timestamp("2001-01-01")).all(), distribution)
            self.assertTrue((stamps <= pd.Timestamp("2001-12-31")).all(), distribution)

    def test_fixed_date_repeats(self):
        token = parse_range_notation("[2010-05-05,inf]", hint="date")
        days = sample_dates([token], [1.0], 10, RNG(4))
        self.assertTrue(np.all(days == to_day_number("2010-05-05")))

    def test_gompertz_unit_window(self):
        values = gompertz_unit(1000, RNG(9))
        self.assertTrue(np.all((values >= 0) & (values <= 1)))

    def test_anchored_days_follow_anchor(self):
        anchor = np.array([100.0, np.nan, 200.0, 300.0])
        values = sample_anchored_days(anchor, 10, 20, RNG(6))
        self.assertTrue(np.isnan(values[1]))
        offsets = values[[0, 2, 3]] - anchor[[0, 2, 3]]
        self.assertTrue(np.all((offsets >= 10) & (offsets <= 20)))

    def test_anchored_days_without_event_are_missing(self):
        anchor = np.zeros(5000)
        values = sample_anchored_days(anchor, 1, 5, RNG(6), event_prop=0.25)
        share = float(np.mean(~np.isnan(values)))
        self.assertLess(abs(share - 0.25), 0.03)


class MissingInjectorTests(unittest.TestCase):
    def test_missing_code_count_is_exact(self):
        n = 1000
        n_valid = valid_count(n, 0.9)
        draws = RNG(1).uniform(18, 100, size=n_valid)
        column, mask = inject_missing(
            draws, n, {"999": 1.0}, {"999": missing_code_pool("999")}, RNG(2)
        )
        self.assertEqual(int(np.sum(column == 999)), 100)
        self.assertEqual(int(mask.sum()), 100)
        valid = column[~mask]
        self.assertEqual(valid.size, 900)
        self.assertTrue(np.all((valid >= 18) & (valid <= 100)))

    def test_valid_draws_keep_their_order(self):
        draws = np.arange(8, dtype=float)
        column, mask = inject_missing(
            draws, 10, {"-1": 1.0}, {"-1": missing_code_pool("-1")}, RNG(3)
        )
        np.testing.assert_array_equal(column[~mask], draws)

    def test_enumerable_codes_are_sampled_per_slot(self):
        draws = np.zeros(500)
        column, mask = inject_missing(
            draws,
            2000,
            {"[997,999]": 1.0},
            {"[997,999]": missing_code_pool("[997,999]")},
            RNG(4),
        )
        self.assertEqual(set(np.unique(column[mask])), {997.0, 998.0, 999.0})

    def test_codes_split_by_weight(self):
        draws = np.array([], dtype=object)
        column, mask = inject_missing(
            draws,
            10_000,
            {"7": 0.75, "8": 0.25},
            {"7": ("7",), "8": ("8",)},
            RNG(5),
        )
        self.assertTrue(mask.all())
        share = float(np.mean(column == "7"))
        self.assertLess(abs(share - 0.75), 0.02)

    def test_aligned_values_are_overwritten(self):
        values = np.arange(20, dtype=float)
        column, mask = inject_missing(
            values, 20, {"0": 1.0}, {"0": (-9.0,)}, RNG(7), n_missing=5
        )
        self.assertEqual(int(mask.sum()), 5)
        self.assertTrue(np.all(column[mask] == -9.0))
        np.testing.assert_array_equal(column[~mask], values[~mask])

    def test_code_pool_parsing(self):
        self.assertEqual(missing_code_pool("[7,9]"), (7.0, 8.0, 9.0))
        self.assertEqual(missing_code_pool("7", numeric=False), ("7",))
        self.assertEqual(missing_code_pool("NA::a"), ("NA::a",))


if __name__ == "__main__":
    unittest.main()
