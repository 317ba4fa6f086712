import unittest

import pandas as pd

from mockdata.engine.assembly import build_dataset, create_mock_data
from mockdata.schema.samples import get_sample_metadata, load_metadata


class _FakeLogger:
    def __init__(self):
        self.messages = []

    def warning(self, message):
        self.messages.append(str(message))

    def info(self, message):
        self.messages.append(str(message))

    def debug(self, message):
        self.messages.append(str(message))


def _tables(name):
    return load_metadata(get_sample_metadata(name))


class CreateMockDataTests(unittest.TestCase):
    def test_minimal_sample_end_to_end(self):
        variables, details = _tables("minimal")
        frame = create_mock_data(variables, details, n=5, seed=1, logger=_FakeLogger())
        self.assertEqual(list(frame.columns), ["age", "smoking", "bmi"])
        self.assertEqual(len(frame), 5)
        self.assertTrue(((frame["age"] >= 18) & (frame["age"] <= 100)).all())

    def test_same_seed_same_dataset(self):
        variables, details = _tables("minimal")
        first = create_mock_data(variables, details, n=50, seed=7, logger=_FakeLogger())
        second = create_mock_data(variables, details, n=50, seed=7, logger=_FakeLogger())
        pd.testing.assert_frame_equal(first, second)

    def test_position_orders_columns(self):
        variables = [
            {"variable": "b", "variableType": "continuous", "role": "enabled", "position": 2},
            {"variable": "c", "variableType": "continuous", "role": "enabled"},
            {"variable": "a", "variableType": "continuous", "role": "enabled", "position": 1},
            {"variable": "off", "variableType": "continuous", "role": "other"},
        ]
        frame = create_mock_data(variables, [], n=3, seed=1, logger=_FakeLogger())
        self.assertEqual(list(frame.columns), ["a", "b", "c"])

    def test_without_enabled_role_every_variable_is_built(self):
        variables = [
            {"variable": "x", "variableType": "continuous"},
            {"variable": "y", "variableType": "categorical"},
        ]
        frame = create_mock_data(variables, [], n=4, seed=1, logger=_FakeLogger())
        self.assertEqual(list(frame.columns), ["x", "y"])


class BuildDatasetTests(unittest.TestCase):
    def test_scope_and_derived_handling(self):
        variables, details = _tables("survey")
        frame, skipped = build_dataset(
            variables, details, n=100, seed=3, scope="cycle1", logger=_FakeLogger()
        )
        self.assertEqual(list(frame.columns), ["age", "sex", "interview_date"])
        self.assertEqual(skipped.get("bmi_cat"), "derived")
        self.assertNotIn("income", skipped)

        frame, _ = build_dataset(
            variables,
            details,
            n=10,
            seed=3,
            scope="cycle2",
            include_derived=True,
            logger=_FakeLogger(),
        )
        self.assertIn("income", frame.columns)
        self.assertTrue(frame["bmi_cat"].isna().all())

    def test_scoped_detail_rows_pick_the_cycle_window(self):
        variables, details = _tables("survey")
        frame, _ = build_dataset(
            variables, details, n=300, seed=4, scope="cycle2", logger=_FakeLogger()
        )
        dates = frame["interview_date"]
        in_window = (dates >= pd.Timestamp("2003-01-01")) & (dates <= pd.Timestamp("2003-12-31"))
        self.assertGreaterEqual(int(in_window.sum()), 290)

    def test_anchored_dates_follow_entry(self):
        variables, details = _tables("survival")
        frame, skipped = build_dataset(variables, details, n=500, seed=2, logger=_FakeLogger())
        self.assertEqual(skipped, {})
        for name in ("event_date", "death_date", "ltfu_date"):
            column = frame[name]
            ok = column.isna() | (column >= frame["entry_date"])
            self.assertTrue(ok.all(), name)

    def test_survival_sample_events_never_follow_death(self):
        variables, details = _tables("survival")
        frame = create_mock_data(variables, details, n=5000, seed=7, logger=_FakeLogger())
        both = frame["event_date"].notna() & frame["death_date"].notna()
        self.assertTrue(both.any())
        self.assertTrue((frame.loc[both, "event_date"] <= frame.loc[both, "death_date"]).all())
        for name in ("event_date", "death_date", "ltfu_date"):
            column = frame[name]
            self.assertTrue((column.isna() | (column >= frame["entry_date"])).all(), name)

    def test_events_after_death_are_censored(self):
        variables = [
            {"variable": "entry", "variableType": "date", "position": 1},
            {
                "variable": "event",
                "variableType": "date",
                "role": "event",
                "position": 2,
                "anchor": "entry",
                "followup_min": 100,
                "followup_max": 100,
            },
            {
                "variable": "death",
                "variableType": "date",
                "role": "death",
                "position": 3,
                "anchor": "entry",
                "followup_min": 10,
                "followup_max": 10,
            },
        ]
        logger = _FakeLogger()
        frame, skipped = build_dataset(variables, [], n=20, seed=1, logger=logger)
        self.assertEqual(skipped, {})
        self.assertTrue(frame["event"].isna().all())
        self.assertTrue(frame["death"].notna().all())
        self.assertTrue(any("dates after death" in m for m in logger.messages))

    def test_anchor_built_later_is_reported(self):
        variables = [
            {"variable": "event", "variableType": "date", "position": 1, "anchor": "entry"},
            {"variable": "entry", "variableType": "date", "position": 2},
        ]
        logger = _FakeLogger()
        frame, _ = build_dataset(variables, [], n=10, seed=1, logger=logger)
        self.assertEqual(list(frame.columns), ["event", "entry"])
        self.assertTrue(any("has not been generated" in m for m in logger.messages))

    def test_failures_are_isolated_per_variable(self):
        variables = [
            {"variable": "entry", "variableType": "date", "position": 1},
            {
                "variable": "bad",
                "variableType": "date",
                "position": 2,
                "anchor": "entry",
                "followup_min": 10,
                "followup_max": 1,
            },
            {"variable": "note", "variableType": "text", "position": 3},
            {"variable": "score", "variableType": "continuous", "position": 4},
        ]
        logger = _FakeLogger()
        frame, skipped = build_dataset(variables, [], n=10, seed=1, logger=logger)
        self.assertEqual(list(frame.columns), ["entry", "score"])
        self.assertTrue(skipped["bad"].startswith("error:"))
        self.assertIn("unsupported", skipped["note"])

    def test_invalid_arguments(self):
        variables, details = _tables("minimal")
        with self.assertRaises(ValueError):
            build_dataset(variables, details, n=0)
        with self.assertRaises(ValueError):
            build_dataset(pd.DataFrame(), details, n=5)
        with self.assertRaises(TypeError):
            build_dataset("not a table", details, n=5)


if __name__ == "__main__":
    unittest.main()
