import contextlib
import io
import os
import tempfile
import unittest

import numpy as np
import pandas as pd

from special4eco.survey import load_survey, read_plots, read_observations, read_traits, filter_observations, \
    community_matrix, validate_community_matrix, to_incidence, group_matrix, normalize_species_name

DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "data")
PLOTS = os.path.join(DATA_DIR, "plots.csv")
COVER = os.path.join(DATA_DIR, "cover.csv")
TRAITS = os.path.join(DATA_DIR, "traits.csv")


class TestSpeciesNames(unittest.TestCase):

    def test_normalize(self):
        self.assertEqual(normalize_species_name("festuca  Rubra"), "Festuca_rubra")
        self.assertEqual(normalize_species_name("Festuca_rubra"), "Festuca_rubra")
        self.assertEqual(normalize_species_name(" poa annua "), "Poa_annua")
        self.assertIsNone(normalize_species_name(np.nan))
        self.assertIsNone(normalize_species_name("   "))


class TestReading(unittest.TestCase):

    def test_read_plots(self):
        plots = read_plots(PLOTS)
        self.assertEqual(plots.index.name, "plot_code")
        self.assertEqual(len(plots), 8)
        self.assertEqual(plots.loc["F01", "habitat"], "forest")

    def test_duplicate_plot_codes(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "plots.csv")
            with open(path, "w") as f:
                f.write("plot_code,habitat\nG01,grassland\nG01,forest\n")
            with self.assertRaises(ValueError):
                read_plots(path)

    def test_missing_column(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "observations.csv")
            with open(path, "w") as f:
                f.write("plot_code,genus_species\nG01,Poa_annua\n")
            with self.assertRaises(ValueError):
                read_observations(path)

    def test_semicolon_separated(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "observations.csv")
            with open(path, "w") as f:
                f.write("plot_code;genus_species;cover\nG01;poa annua;0.3\nG01;Carex pendula;n/a\n")
            observations = read_observations(path, sep=";")
            self.assertEqual(list(observations["genus_species"]), ["Poa_annua", "Carex_pendula"])
            self.assertTrue(np.isnan(observations["cover"].iloc[1]))

    def test_read_traits(self):
        traits = read_traits(TRAITS)
        self.assertEqual(len(traits), 15)
        self.assertAlmostEqual(traits.loc["Festuca_rubra", "height_cm"], 50)
        self.assertAlmostEqual(traits.loc["Festuca_rubra", "sla"], 19.5)
        self.assertAlmostEqual(traits.loc["Fagus_sylvatica", "seed_mass_mg"], 230)
        self.assertEqual(traits.loc["Fagus_sylvatica", "family"], "Fagaceae")
        self.assertEqual(traits.loc["Carex_pendula", "growth_form"], "graminoid")


class TestFiltering(unittest.TestCase):
    def setUp(self):
        self.plots = pd.DataFrame({"habitat": ["grassland", "forest"]},
                                  index=pd.Index(["G01", "F01"], name="plot_code"))
        self.observations = pd.DataFrame({"plot_code": ["G01", "G01", "F01", "X99", "F01", "F01"],
                                          "genus_species": ["Poa_annua", "Festuca_rubra", "Fagus_sylvatica",
                                                            "Poa_annua", "Oxalis_acetosella", None],
                                          "cover": [0.2, 1.5, 0.6, 0.1, -0.1, 0.3]})

    def test_filter(self):
        with contextlib.redirect_stdout(io.StringIO()) as out:
            filtered = filter_observations(self.observations, self.plots)
        self.assertEqual(list(filtered["genus_species"]), ["Poa_annua", "Fagus_sylvatica"])
        self.assertIn("unknown plot code", out.getvalue())
        self.assertIn("cover above 1", out.getvalue())

    def test_filter_counts(self):
        filtered = filter_observations(self.observations, self.plots, cover=False, verbose=False)
        self.assertEqual(len(filtered), 3, "Counts above 1 are valid")

    def test_filter_without_plots(self):
        filtered = filter_observations(self.observations, cover=False, verbose=False)
        self.assertIn("X99", list(filtered["plot_code"]))


class TestCommunityMatrix(unittest.TestCase):
    def setUp(self):
        self.observations = pd.DataFrame({"plot_code": ["G02", "G01", "G01", "G01"],
                                          "genus_species": ["Poa_annua", "Poa_annua", "Festuca_rubra", "Poa_annua"],
                                          "cover": [0.2, 0.1, 0.3, 0.25]})

    def test_shape_and_order(self):
        matrix = community_matrix(self.observations)
        self.assertEqual(list(matrix.index), ["G01", "G02"])
        self.assertEqual(list(matrix.columns), ["Festuca_rubra", "Poa_annua"])
        self.assertEqual(matrix.loc["G02", "Festuca_rubra"], 0)

    def test_repeated_records(self):
        self.assertAlmostEqual(community_matrix(self.observations).loc["G01", "Poa_annua"], 0.25)
        self.assertAlmostEqual(community_matrix(self.observations, aggfunc="sum").loc["G01", "Poa_annua"], 0.35)

    def test_validate(self):
        matrix = community_matrix(self.observations)
        self.assertIs(validate_community_matrix(matrix, cover=True), matrix)
        with self.assertRaises(ValueError):
            validate_community_matrix(matrix * 5, cover=True)
        with self.assertRaises(ValueError):
            validate_community_matrix(-matrix)
        with self.assertRaises(ValueError):
            validate_community_matrix(matrix.replace(0, np.nan))

    def test_incidence(self):
        incidence = to_incidence(community_matrix(self.observations))
        self.assertEqual(incidence.to_numpy().tolist(), [[1, 1], [0, 1]])


class TestLoadSurvey(unittest.TestCase):
    def setUp(self):
        with contextlib.redirect_stdout(io.StringIO()) as out:
            self.survey = load_survey(PLOTS, COVER, TRAITS)
        self.output = out.getvalue()

    def test_dimensions(self):
        self.assertEqual(self.survey.no_plots, 8)
        self.assertEqual(self.survey.no_species, 15)
        self.assertEqual(len(self.survey.observations), 36)
        self.assertIn("Loaded 8 plots with 15 species from 36 observations", self.output)

    def test_malformed_rows_dropped(self):
        for reason in ["missing values", "unknown plot code", "negative value", "cover above 1"]:
            self.assertIn("Dropping 1 observation(s): " + reason, self.output)
        self.assertNotIn("X99", self.survey.matrix.index)
        self.assertEqual(self.survey.matrix.loc["G02", "Poa_annua"], 0)
        self.assertEqual(self.survey.matrix.loc["F02", "Oxalis_acetosella"], 0)

    def test_names_normalized(self):
        self.assertAlmostEqual(self.survey.matrix.loc["G03", "Trifolium_repens"], 0.05)

    def test_richness(self):
        richness = (self.survey.matrix > 0).sum(axis=1)
        self.assertEqual(richness.to_dict(), {"F01": 4, "F02": 4, "F03": 3, "F04": 5,
                                              "G01": 5, "G02": 5, "G03": 5, "G04": 5})

    def test_group_matrix(self):
        groups = group_matrix(self.survey, "habitat")
        self.assertEqual(list(groups.keys()), ["forest", "grassland"])
        self.assertEqual(list(groups["forest"].index), ["F01", "F02", "F03", "F04"])
        self.assertEqual(groups["forest"].shape[1], 7)
        self.assertTrue((groups["grassland"] > 0).any(axis=0).all())

    def test_group_matrix_unknown_column(self):
        with self.assertRaises(ValueError):
            group_matrix(self.survey, "soil_type")

    def test_quiet(self):
        with contextlib.redirect_stdout(io.StringIO()) as out:
            load_survey(PLOTS, COVER, verbose=False)
        self.assertEqual(out.getvalue(), "")


if __name__ == '__main__':
    unittest.main()
