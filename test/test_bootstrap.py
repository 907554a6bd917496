import unittest

import numpy as np

from special4eco.bootstrap.bootstrap import bootstrap_assemblage_abundance, bootstrap_assemblage_incidence, \
    get_bootstrap_ci_abundance, get_bootstrap_ci_incidence


class TestBootstrapAssemblage(unittest.TestCase):
    def setUp(self):
        self.abundance = {"A": 4, "B": 2, "C": 1, "D": 1}
        self.incidence = {"A": 4, "B": 2, "C": 1, "D": 1}

    def test_abundance_assemblage(self):
        p = bootstrap_assemblage_abundance(self.abundance, 8)
        self.assertAlmostEqual(p.sum(), 1)
        self.assertTrue((p >= 0).all())
        # ceil(7/8 * 2^2 / 2) undetected species are added
        self.assertEqual(len(p), 6)
        self.assertGreater(p[0], p[1])

    def test_complete_abundance_sample(self):
        p = bootstrap_assemblage_abundance({"A": 5, "B": 3}, 8)
        self.assertEqual(len(p), 2, "Without singletons no undetected species are added")
        np.testing.assert_allclose(p, [5 / 8, 3 / 8])

    def test_incidence_assemblage(self):
        p = bootstrap_assemblage_incidence(self.incidence, 5)
        self.assertTrue(((p >= 0) & (p <= 1)).all())
        self.assertGreater(len(p), 4)


class TestBootstrapCI(unittest.TestCase):
    def setUp(self):
        self.abundance = {"A": 12, "B": 7, "C": 4, "D": 2, "E": 1, "F": 1}
        self.incidence = {"A": 5, "B": 4, "C": 2, "D": 2, "E": 1, "F": 1}

    def test_abundance(self):
        ci = get_bootstrap_ci_abundance(self.abundance, 27, 50, seed=1)
        self.assertEqual(len(ci), 5)
        self.assertTrue(all(x >= 0 for x in ci))
        self.assertGreater(ci[0], 0, "Richness estimates vary between replicates")

    def test_incidence(self):
        ci = get_bootstrap_ci_incidence(self.incidence, 6, 50, seed=1)
        self.assertEqual(len(ci), 5)
        self.assertTrue(all(x >= 0 for x in ci))

    def test_reproducible(self):
        self.assertEqual(get_bootstrap_ci_abundance(self.abundance, 27, 30, seed=42),
                         get_bootstrap_ci_abundance(self.abundance, 27, 30, seed=42))
        self.assertEqual(get_bootstrap_ci_incidence(self.incidence, 6, 30, seed=42),
                         get_bootstrap_ci_incidence(self.incidence, 6, 30, seed=42))

    def test_degenerate_samples(self):
        self.assertEqual(get_bootstrap_ci_abundance({}, 0, 50), (0, 0, 0, 0, 0))
        self.assertEqual(get_bootstrap_ci_abundance({"A": 1}, 1, 50), (0, 0, 0, 0, 0))
        self.assertEqual(get_bootstrap_ci_incidence(self.incidence, 6, 1), (0, 0, 0, 0, 0))


if __name__ == '__main__':
    unittest.main()
