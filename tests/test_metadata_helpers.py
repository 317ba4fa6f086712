import unittest

import pandas as pd

from mockdata.schema.metadata import (
    CONTAMINATION,
    EXCLUDED,
    MISSING,
    PARAMETER,
    VALID,
    DerivedVariableSpec,
    DetailRow,
    add_contamination,
    as_frame,
    build_variable_specs,
    find_variable_spec,
    get_cycle_variables,
    get_raw_var_dependencies,
    get_raw_variables,
    get_variable_categories,
    get_variable_details,
    identify_derived_vars,
    split_list,
)
from mockdata.schema.samples import get_sample_metadata, load_metadata


def _survey():
    return load_metadata(get_sample_metadata("survey"))


class DetailRowTests(unittest.TestCase):
    def test_sections(self):
        self.assertEqual(DetailRow("[18,100]", "copy").section, VALID)
        self.assertEqual(DetailRow("7", "NA::a").section, MISSING)
        self.assertEqual(DetailRow("[-5,-1]", "corrupt_low").section, CONTAMINATION)
        self.assertEqual(DetailRow("[-5,-1]", "garbage_low").section, CONTAMINATION)
        self.assertEqual(DetailRow(None, "mean", value="3").section, PARAMETER)
        self.assertEqual(DetailRow("else", "NA::b").section, EXCLUDED)
        self.assertEqual(DetailRow("DerivedVar::[a]", "Func::f").section, EXCLUDED)

    def test_code_text_prefers_value(self):
        self.assertEqual(DetailRow("7", "NA::a").code_text, "7")
        self.assertEqual(DetailRow("7", "NA::a", value="99").code_text, "99")


class TableHelpersTests(unittest.TestCase):
    def test_split_list_and_as_frame(self):
        self.assertEqual(split_list("cycle1, cycle2"), ["cycle1", "cycle2"])
        self.assertEqual(split_list(None), [])
        self.assertEqual(len(as_frame([{"variable": "x"}], "variables")), 1)
        self.assertTrue(as_frame(None, "variables").empty)
        with self.assertRaises(TypeError):
            as_frame(42, "variables")

    def test_variable_details_respect_scope_and_order(self):
        details = pd.DataFrame(
            [
                {"variable": "v", "recStart": "2", "uid_detail": 2},
                {"variable": "v", "recStart": "1", "uid_detail": 1},
                {"variable": "v", "recStart": "3", "uid_detail": 3, "databaseStart": "c2"},
                {"variable": "w", "recStart": "9", "uid_detail": 4},
            ]
        )
        rows = get_variable_details(details, "v")
        self.assertEqual(list(rows["recStart"]), ["1", "2", "3"])
        rows = get_variable_details(details, "v", scope="c1")
        self.assertEqual(list(rows["recStart"]), ["1", "2"])
        self.assertTrue(get_variable_details(details, "missing").empty)


class DerivedVariableTests(unittest.TestCase):
    def test_dependencies_parse(self):
        self.assertEqual(
            get_raw_var_dependencies("DerivedVar::[height, weight]"), ["height", "weight"]
        )
        self.assertEqual(get_raw_var_dependencies("[AGE]"), [])
        self.assertEqual(get_raw_var_dependencies(None), [])

    def test_identify_derived_vars(self):
        variables, details = _survey()
        self.assertEqual(identify_derived_vars(variables, details), ["bmi_cat"])

    def test_func_recend_marks_derived(self):
        variables = [{"variable": "score", "variableType": "continuous"}]
        details = [{"variable": "score", "recStart": "else", "recEnd": "Func::score_fun"}]
        self.assertEqual(identify_derived_vars(variables, details), ["score"])
        spec = find_variable_spec("score", variables, details)
        self.assertIsInstance(spec, DerivedVariableSpec)
        self.assertEqual(spec.dependencies, ())


class VariableSpecTests(unittest.TestCase):
    def test_specs_from_survey_sample(self):
        variables, details = _survey()
        specs = build_variable_specs(variables, details)
        self.assertEqual(
            list(specs), ["age", "sex", "income", "interview_date", "bmi_cat"]
        )
        age = specs["age"]
        self.assertEqual(age.output_type, "integer")
        self.assertEqual([rule.kind for rule in age.contamination], ["low", "high"])
        self.assertEqual(age.scopes, ("cycle1", "cycle2"))
        self.assertEqual(age.raw_name("cycle1"), "AGE_01")
        self.assertEqual(age.raw_name("cycle2"), "AGE")
        self.assertEqual(specs["sex"].output_type, "factor")
        self.assertEqual(specs["interview_date"].generator_kind, "date")
        self.assertTrue(specs["bmi_cat"].is_derived)
        self.assertEqual(specs["bmi_cat"].dependencies, ("height", "weight"))

    def test_detail_parameter_rows_fill_gaps(self):
        variables = [{"variable": "x", "variableType": "continuous", "sd": 4.0}]
        details = [
            {"variable": "x", "recEnd": "mean", "value": "10"},
            {"variable": "x", "recEnd": "sd", "value": "1"},
            {"variable": "x", "recEnd": "distribution", "value": "Normal"},
        ]
        spec = find_variable_spec("x", variables, details)
        self.assertEqual(spec.mean, 10.0)
        self.assertEqual(spec.sd, 4.0)
        self.assertEqual(spec.distribution, "normal")

    def test_unknown_variable(self):
        variables, details = _survey()
        self.assertIsNone(find_variable_spec("nope", variables, details))


class CycleHelpersTests(unittest.TestCase):
    def test_cycle_variables(self):
        variables, _ = _survey()
        cycle1 = get_cycle_variables(variables, "cycle1")
        self.assertEqual(
            list(cycle1["variable"]), ["age", "sex", "interview_date", "bmi_cat"]
        )
        cycle2 = get_cycle_variables(variables, "cycle2")
        self.assertIn("income", list(cycle2["variable"]))

    def test_raw_variables(self):
        variables, details = _survey()
        raw = get_raw_variables(variables, details, "cycle1")
        self.assertEqual(list(raw["variable_raw"]), ["AGE_01", "SEX", "INTDATE"])
        self.assertEqual(list(raw["n_harmonized"]), [1, 1, 1])

    def test_raw_variables_group_harmonized_names(self):
        variables = [
            {"variable": "sbp", "variableType": "continuous", "databaseStart": "c1", "variableStart": "[BP]"},
            {"variable": "sbp_alt", "variableType": "continuous", "databaseStart": "c1", "variableStart": "c1::BP"},
        ]
        raw = get_raw_variables(variables, [], "c1")
        self.assertEqual(list(raw["variable_raw"]), ["BP"])
        self.assertEqual(raw.loc[0, "harmonized_vars"], "sbp, sbp_alt")
        self.assertEqual(raw.loc[0, "n_harmonized"], 2)


class ContaminationHelperTests(unittest.TestCase):
    def test_add_contamination_returns_copy(self):
        variables, _ = _survey()
        updated = add_contamination(variables, "sex", high_prop=0.05, high_range="[5,9]")
        row = updated[updated["variable"] == "sex"].iloc[0]
        self.assertEqual(row["corrupt_high_prop"], 0.05)
        self.assertEqual(row["corrupt_high_range"], "[5,9]")
        original = variables[variables["variable"] == "sex"].iloc[0]
        self.assertTrue(pd.isna(original["corrupt_high_prop"]))

    def test_add_contamination_rejects_bad_input(self):
        variables, _ = _survey()
        with self.assertRaises(ValueError):
            add_contamination(variables, "nope", low_prop=0.1)
        with self.assertRaises(ValueError):
            add_contamination(variables, "age", low_prop=1.5)
        with self.assertRaises(ValueError):
            add_contamination(variables, "age", low_prop=0.1, low_range="[oops")


class CategoryTests(unittest.TestCase):
    def test_integer_ranges_expand_and_codes_keep_text(self):
        rows = [
            DetailRow("[1,3]", "copy"),
            DetailRow("01", "01"),
            DetailRow("7", "NA::a"),
            DetailRow("[-1,-1]", "corrupt_low"),
        ]
        self.assertEqual(get_variable_categories(rows), ["1", "2", "3", "01"])
        self.assertEqual(
            get_variable_categories(rows, include_missing=True), ["1", "2", "3", "01", "7"]
        )


if __name__ == "__main__":
    unittest.main()
