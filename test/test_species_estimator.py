import contextlib
import io
import math
import unittest
from functools import partial

import pandas as pd

from special4eco.estimation import SpeciesEstimator
from special4eco.species import retrieve_species_abundance, retrieve_species_occurrence, \
    retrieve_species_cover_units, retrieve_genus, genus_of


class TestSpeciesRetrieval(unittest.TestCase):
    def setUp(self):
        self.plot = pd.Series({"Poa_annua": 2, "Poa_pratensis": 1, "Carex_pendula": 0})
        self.cover = {"Fagus_sylvatica": 0.6, "Oxalis_acetosella": 0.002, "Carex_sylvatica": float("nan")}

    def test_abundance(self):
        self.assertEqual(retrieve_species_abundance(self.plot), ["Poa_annua", "Poa_annua", "Poa_pratensis"])

    def test_occurrence(self):
        self.assertEqual(retrieve_species_occurrence(self.plot), ["Poa_annua", "Poa_pratensis"])
        self.assertEqual(retrieve_species_occurrence(self.cover), ["Fagus_sylvatica", "Oxalis_acetosella"])

    def test_cover_units(self):
        species = retrieve_species_cover_units(self.cover)
        self.assertEqual(species.count("Fagus_sylvatica"), 60)
        self.assertEqual(species.count("Oxalis_acetosella"), 1, "Present species are retrieved at least once")
        self.assertEqual(retrieve_species_cover_units(self.cover, unit=0.1).count("Fagus_sylvatica"), 6)
        with self.assertRaises(ValueError):
            retrieve_species_cover_units(self.cover, unit=0)

    def test_genus(self):
        self.assertEqual(genus_of("Poa_annua"), "Poa")
        self.assertEqual(retrieve_genus(self.plot), ["Poa", "Poa", "Poa"])
        self.assertEqual(retrieve_genus(self.plot, retrieval=retrieve_species_occurrence), ["Poa", "Poa"])


class TestSpeciesEstimator(unittest.TestCase):
    def setUp(self):
        self.matrix = pd.DataFrame({"Poa_annua": [2, 1, 0], "Poa_pratensis": [1, 0, 1], "Carex_pendula": [0, 0, 1]},
                                   index=pd.Index(["P1", "P2", "P3"], name="plot_code"))

    def _estimator(self, **kwargs) -> SpeciesEstimator:
        estimator = SpeciesEstimator(**kwargs)
        estimator.register("species", retrieve_species_abundance)
        return estimator

    def test_reference_sample(self):
        estimator = self._estimator()
        estimator.apply(self.matrix, verbose=False)
        metrics = estimator.metrics["species"]
        self.assertEqual(metrics.reference_sample_abundance, {"Poa_annua": 3, "Poa_pratensis": 2, "Carex_pendula": 1})
        self.assertEqual(metrics.reference_sample_incidence, {"Poa_annua": 2, "Poa_pratensis": 2, "Carex_pendula": 1})
        self.assertEqual(metrics["abundance_no_observations"][-1], 6)
        self.assertEqual(metrics["incidence_no_observations"][-1], 3)
        self.assertEqual(metrics["incidence_sum_species_counts"][-1], 5)
        self.assertAlmostEqual(metrics["degree_of_co_occurrence"][-1], 1 / 6)
        self.assertEqual(len(metrics.sampling_units), 3)

    def test_estimates(self):
        estimator = self._estimator()
        estimator.apply(self.matrix, verbose=False)
        metrics = estimator.metrics["species"]
        self.assertEqual(metrics["abundance_sample_d0"][-1], 3)
        self.assertAlmostEqual(metrics["abundance_estimate_d0"][-1], 3.5)
        self.assertAlmostEqual(metrics["incidence_estimate_d0"][-1], 3.25)
        self.assertAlmostEqual(metrics["chao1"][-1], 3.5)
        self.assertAlmostEqual(metrics["chao2"][-1], 3.25)
        self.assertAlmostEqual(metrics["ace"][-1], 3.6)
        self.assertAlmostEqual(metrics["jackknife1_abundance"][-1], 4)
        self.assertAlmostEqual(metrics["jackknife1_incidence"][-1], 3 + 2 / 3)
        self.assertEqual(metrics["abundance_singletons"][-1], 1)
        self.assertEqual(metrics["incidence_doubletons"][-1], 2)
        self.assertAlmostEqual(metrics["abundance_c0"][-1], 3 / 3.5)
        for l in estimator.l_n:
            self.assertGreaterEqual(metrics["incidence_l_" + str(l)][-1], 0)

    def test_complete_inventory_target(self):
        estimator = self._estimator(l_n=[.9, 1])
        estimator.apply(self.matrix, verbose=False)
        metrics = estimator.metrics["species"]
        self.assertEqual(metrics["abundance_l_1"][-1], math.inf)
        self.assertGreater(metrics["abundance_l_0.9"][-1], 0)

    def test_update_once_without_step_size(self):
        estimator = self._estimator()
        estimator.apply(self.matrix, verbose=False)
        for values in estimator.metrics["species"].values():
            self.assertEqual(len(values), 2)

    def test_step_size(self):
        estimator = self._estimator(step_size=1)
        estimator.apply(self.matrix, verbose=False)
        self.assertEqual(estimator.metrics["species"]["incidence_no_observations"], [0, 1, 2, 3])
        self.assertEqual(estimator.metrics["species"]["abundance_sample_d0"], [0, 2, 2, 3])

        estimator = self._estimator(step_size=2)
        estimator.apply(self.matrix, verbose=False)
        self.assertEqual(estimator.metrics["species"]["incidence_no_observations"], [0, 2, 3],
                         "A final update follows an incomplete step")

    def test_single_plots(self):
        estimator = self._estimator(step_size=1)
        for _, row in self.matrix.iterrows():
            estimator.apply(row)
        estimator.apply({"Poa_annua": 1})
        self.assertEqual(estimator.metrics["species"]["incidence_no_observations"], [0, 1, 2, 3, 4])

    def test_list_of_plots(self):
        estimator = self._estimator()
        estimator.apply([{"Poa_annua": 1}, {"Poa_annua": 2, "Carex_pendula": 1}], verbose=False)
        self.assertEqual(estimator.metrics["species"].reference_sample_abundance, {"Poa_annua": 3, "Carex_pendula": 1})

    def test_empty_plot(self):
        matrix = pd.concat([self.matrix, pd.DataFrame({"Poa_annua": [0], "Poa_pratensis": [0], "Carex_pendula": [0]},
                                                      index=["P4"])])
        estimator = self._estimator()
        estimator.apply(matrix, verbose=False)
        metrics = estimator.metrics["species"]
        self.assertEqual(metrics.empty_plots, 1)
        self.assertEqual(metrics["incidence_no_observations"][-1], 4)
        self.assertEqual(len(metrics.sampling_units), 3)

    def test_no_observations(self):
        estimator = self._estimator(step_size=1)
        estimator.apply({"Poa_annua": 0})
        metrics = estimator.metrics["species"]
        self.assertEqual(metrics["ace"][-1], 0)
        self.assertEqual(metrics["ice"][-1], 0)
        self.assertEqual(metrics["abundance_estimate_d1"][-1], 0)

    def test_invalid_data(self):
        estimator = self._estimator()
        with self.assertRaises(RuntimeError):
            estimator.apply("Poa_annua")

    def test_several_species_definitions(self):
        estimator = self._estimator()
        estimator.register("genus", retrieve_genus)
        estimator.register("presence", retrieve_species_occurrence)
        estimator.apply(self.matrix, verbose=False)
        self.assertEqual(estimator.metrics["genus"].reference_sample_abundance, {"Poa": 5, "Carex": 1})
        self.assertEqual(estimator.metrics["presence"]["abundance_no_observations"][-1], 5)

    def test_cover_units(self):
        estimator = SpeciesEstimator()
        estimator.register("species", partial(retrieve_species_cover_units, unit=0.05))
        estimator.apply(self.matrix / 10, verbose=False)
        self.assertEqual(estimator.metrics["species"].reference_sample_abundance["Poa_annua"], 6)

    def test_disabled_metrics(self):
        estimator = self._estimator(d1=False, c1=False, ace=False, l_n=[])
        estimator.apply(self.matrix, verbose=False)
        metrics = estimator.metrics["species"]
        self.assertNotIn("abundance_sample_d1", metrics)
        self.assertNotIn("incidence_c1", metrics)
        self.assertNotIn("ace", metrics)
        self.assertIn("jackknife1_incidence", metrics)

    def test_bootstrap(self):
        estimator = self._estimator(no_bootstrap_samples=20, seed=3)
        estimator.apply(self.matrix, verbose=False)
        metrics = estimator.metrics["species"]
        for key in ["abundance_estimate_d0_ci", "incidence_estimate_d2_ci", "abundance_c1_ci"]:
            self.assertGreaterEqual(metrics[key][-1], 0)

    def test_no_bootstrap(self):
        estimator = self._estimator()
        estimator.apply(self.matrix, verbose=False)
        self.assertEqual(estimator.metrics["species"]["abundance_estimate_d0_ci"][-1], -1)

    def test_to_dataFrame(self):
        estimator = self._estimator()
        estimator.apply(self.matrix, verbose=False)
        df = estimator.to_dataFrame()
        self.assertEqual(list(df.columns), ["species", "metric", "observation", "value"])
        self.assertEqual(len(df), 2 * len(estimator.metrics["species"]))
        df = estimator.to_dataFrame(include_all=False)
        self.assertEqual(list(df.columns), ["species", "metric", "value"])
        self.assertEqual(df[df["metric"] == "chao1"]["value"].iloc[0], 3.5)

    def test_summarize(self):
        estimator = self._estimator()
        estimator.apply(self.matrix, verbose=False)
        with contextlib.redirect_stdout(io.StringIO()) as out:
            estimator.summarize()
        text = out.getvalue()
        self.assertIn("### species ###", text)
        self.assertIn("Singletons", text)
        self.assertIn("Richness Estimators", text)

    def test_print_metrics_deprecated(self):
        estimator = self._estimator()
        with contextlib.redirect_stdout(io.StringIO()):
            with self.assertWarns(DeprecationWarning):
                estimator.print_metrics()


if __name__ == '__main__':
    unittest.main()
