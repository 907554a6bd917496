import os
import tempfile
import unittest

import matplotlib

matplotlib.use("Agg")

import pandas as pd

from special4eco import visualization
from special4eco.beta import partition_profile
from special4eco.estimation import SpeciesEstimator
from special4eco.estimation.alpha import hill_numbers
from special4eco.estimation.rarefaction import rarefaction_curve, accumulation_curve
from special4eco.phylogeny import taxonomic_tree
from special4eco.simulation import lognormal_abundances, simulate_survey
from special4eco.species import retrieve_species_abundance
from special4eco.traits import community_pca


class TestVisualization(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.matrix = simulate_survey(lognormal_abundances(20, seed=1), 6, 30, seed=2)
        self.estimator = SpeciesEstimator(step_size=2, no_bootstrap_samples=10, seed=0)
        self.estimator.register("species", retrieve_species_abundance)
        self.estimator.apply(self.matrix, verbose=False)

    def tearDown(self):
        self.tmp.cleanup()

    def _path(self, name):
        return os.path.join(self.tmp.name, name)

    def test_estimator_plots(self):
        visualization.plot_rank_abundance(self.estimator, "species", save_to=self._path("rank.pdf"))
        visualization.plot_diversity_profile(self.estimator, "species", save_to=self._path("diversity.pdf"))
        visualization.plot_completeness_profile(self.estimator, "species", abundance=True,
                                                save_to=self._path("completeness.png"))
        visualization.plot_expected_sampling_effort(self.estimator, "species", save_to=self._path("effort.pdf"))
        for name in ["rank.pdf", "diversity.pdf", "completeness.png", "effort.pdf"]:
            self.assertTrue(os.path.exists(self._path(name)), name + " should have been written")

    def test_unknown_species_definition(self):
        with self.assertRaises(ValueError):
            visualization.plot_rank_abundance(self.estimator, "genus", save_to=self._path("rank.pdf"))

    def test_curves(self):
        metrics = self.estimator.metrics["species"]
        visualization.plot_rarefaction(rarefaction_curve(metrics.reference_sample_abundance, knots=10),
                                       title="Individual-based", save_to=self._path("rarefaction.pdf"))
        visualization.plot_rarefaction(accumulation_curve(metrics.reference_sample_incidence,
                                                          metrics.incidence_sample_size),
                                       save_to=self._path("accumulation.pdf"))
        visualization.plot_hill_profile(hill_numbers(self.matrix), save_to=self._path("hill.pdf"))
        visualization.plot_partition_profile(partition_profile(self.matrix), save_to=self._path("partition.pdf"))
        for name in ["rarefaction.pdf", "accumulation.pdf", "hill.pdf", "partition.pdf"]:
            self.assertTrue(os.path.exists(self._path(name)))

    def test_dendrogram_and_ordination(self):
        tree = taxonomic_tree(["Poa_annua", "Poa_pratensis", "Carex_pendula"])
        visualization.plot_dendrogram(tree, title="Taxonomic tree", save_to=self._path("tree.pdf"))
        groups = pd.Series(["a", "a", "a", "b", "b", "b"], index=self.matrix.index)
        visualization.plot_ordination(community_pca(self.matrix), groups=groups, loadings=True,
                                      save_to=self._path("pca.pdf"))
        self.assertTrue(os.path.exists(self._path("tree.pdf")))
        self.assertTrue(os.path.exists(self._path("pca.pdf")))

    def test_ordination_needs_two_axes(self):
        with self.assertRaises(ValueError):
            visualization.plot_ordination(community_pca(self.matrix, n_components=1), save_to=self._path("pca.pdf"))


if __name__ == '__main__':
    unittest.main()
