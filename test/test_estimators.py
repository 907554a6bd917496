import unittest

from special4eco.estimation.metrics import (
    ace, ace_modified, ice, ice_modified, jackknife1_abundance, jackknife1_incidence, jackknife2_abundance,
    jackknife2_incidence, iChao1, iChao2, chao1, chao2, calculate_C_ace, calculate_C_ice, calculate_gamma_sq_ice,
    calculate_gamma_sq_ice_modified, estimate_species_richness_ace,
    estimate_species_richness_ice, estimate_species_richness_jackknife, estimate_species_richness_ichao)


class TestAceEstimators(unittest.TestCase):

    def test_ace_normal(self):
        """ACE calculation with normal data"""
        S_abund, S_rare_abund, F1_abund, N_rare_abund, Fi_abund = (
            1, 4, 2, 10, [2, 2, 1, 1, 0, 0, 0, 0, 0, 0]
        )
        result, gamma_sq = ace(S_abund, S_rare_abund, F1_abund, N_rare_abund, Fi_abund)
        self.assertGreater(result, S_abund + S_rare_abund, "ACE should exceed the observed richness with singletons")
        self.assertGreaterEqual(gamma_sq, 0, "Gamma² should be non-negative")

    def test_ace_empty(self):
        """ACE with empty data"""
        result, gamma_sq = ace(0, 0, 0, 0, [])
        self.assertEqual(result, 0, "ACE result for empty data should be 0")
        self.assertEqual(gamma_sq, 0, "Gamma² for empty data should be 0")

    def test_ace_all_abundant(self):
        """ACE with all species being abundant ( >10 )"""
        result, gamma_sq = ace(3, 0, 0, 0, [])
        self.assertEqual(result, 3, "ACE should equal the number of abundant species")
        self.assertEqual(gamma_sq, 0, "Gamma² should be 0 when no rare species exist")

    def test_ace_singletons_only(self):
        """ACE with only singletons in the dataset"""
        result, gamma_sq = ace(0, 3, 3, 3, [3, 0, 0, 0, 0, 0, 0, 0, 0, 0])
        self.assertEqual(result, 3, "ACE should fall back to the observed richness without coverage")
        self.assertEqual(gamma_sq, 0, "Gamma² should be 0 when all species are singletons")

    def test_ace_from_counts(self):
        """ACE computed directly from a cover-unit sample"""
        counts = {"Festuca_rubra": 20, "Poa_annua": 15, "Carex_pendula": 1, "Oxalis_acetosella": 2,
                  "Anemone_nemorosa": 2}
        # C_ace = 1 - 1/5, gamma² clipped to 0
        self.assertAlmostEqual(estimate_species_richness_ace(counts), 5.75)

    def test_C_ace(self):
        self.assertAlmostEqual(calculate_C_ace(2, 10), 0.8)
        self.assertEqual(calculate_C_ace(0, 0), 0)


class TestAceModified(unittest.TestCase):
    def test_ace_modified_empty(self):
        result, gamma_sq = ace_modified(0, 0, 0, 0, [])
        self.assertEqual(result, 0, "ACE-modified should be 0 for empty data")
        self.assertEqual(gamma_sq, 0, "Gamma² should be 0 for empty data")

    def test_ace_modified_high_diversity(self):
        Fi_abund = [10, 5, 3] + [0] * 7
        result, gamma_sq = ace_modified(1, 18, 10, 29, Fi_abund)
        self.assertGreater(result, 19, "ACE-modified should account for the many singletons")
        self.assertGreaterEqual(gamma_sq, 0, "Gamma² should be non-negative")


class TestIceEstimators(unittest.TestCase):
    def setUp(self):
        self.species_counts = {"A": 2, "B": 2, "C": 2, "D": 2, "E": 1, "F": 1}
        self.plots = [
            ["A", "B"],
            ["A", "C"],
            ["B", "D"],
            ["C", "E"],
            ["D", "F"],
        ]

    def test_ice(self):
        # C_ice = 0.8, gamma² clipped to 0, so ICE = S_inf / C_ice
        self.assertAlmostEqual(estimate_species_richness_ice(self.species_counts, self.plots), 7.5)

    def test_ice_modified_at_least_ice(self):
        self.assertGreaterEqual(estimate_species_richness_ice(self.species_counts, self.plots, modified=True),
                                estimate_species_richness_ice(self.species_counts, self.plots))

    def test_ice_empty_data(self):
        self.assertEqual(estimate_species_richness_ice({}, []), 0, "ICE should be 0 for an empty sample")
        self.assertEqual(estimate_species_richness_ace({}), 0)

    def test_individual_component_C_ice(self):
        """C_ice calculation"""
        self.assertAlmostEqual(calculate_C_ice(1, 10), 0.9, msg="C_ice should be correctly calculated")
        self.assertEqual(calculate_C_ice(0, 0), 0, "C_ice should be 0 when N_inf = 0")

    def test_individual_component_gamma_sq_ice(self):
        """γ²_ice calculation"""
        Qj = [1, 2, 1, 0, 0, 0, 0, 0, 0, 0]
        gamma_sq = calculate_gamma_sq_ice(5, 0.8, 3, 15, Qj)
        self.assertGreaterEqual(gamma_sq, 0, "γ²_ice should be non-negative")
        self.assertEqual(calculate_gamma_sq_ice(5, 0.8, 1, 15, Qj), 0, "γ²_ice should be 0 for a single plot")

    def test_individual_component_gamma_sq_ice_modified(self):
        """γ²_ice_modified calculation"""
        Qj = [1, 2, 1, 0, 0, 0, 0, 0, 0, 0]
        gamma_sq_mod = calculate_gamma_sq_ice_modified(15, 3, 15, Qj)
        self.assertGreaterEqual(gamma_sq_mod, 0, "γ²_ice_modified should be non-negative")

    def test_edge_case_zero_coverage(self):
        """ICE when C_ice = 0"""
        result, gamma_sq = ice(3, 5, 10, 10, [1, 1, 2, 1, 0, 0, 0, 0, 0, 0], 5)
        self.assertEqual(result, 8, "ICE should fall back to S_freq + S_inf when C_ice = 0")
        result, gamma_sq = ice_modified(3, 5, 10, 10, [1, 1, 2, 1, 0, 0, 0, 0, 0, 0], 5)
        self.assertEqual(result, 8, "ICE-modified should fall back to S_freq + S_inf when C_ice = 0")
        self.assertEqual(gamma_sq, 0, "Gamma²-modified should be 0 when C_ice = 0")


class TestJackknife(unittest.TestCase):

    def test_jackknife1_abundance(self):
        self.assertEqual(jackknife1_abundance(5, 2), 7)
        self.assertEqual(jackknife1_abundance(0, 0), 0, "Jackknife-1 should return 0 for empty data")

    def test_jackknife2_abundance(self):
        self.assertEqual(jackknife2_abundance(5, 2, 1), 8)

    def test_jackknife1_incidence(self):
        self.assertAlmostEqual(jackknife1_incidence(5, 2, 4), 6.5)
        self.assertEqual(jackknife1_incidence(5, 0, 4), 5, "Jackknife-1 should equal S_obs without uniques")
        self.assertEqual(jackknife1_incidence(5, 2, 0), 5)

    def test_jackknife2_incidence(self):
        self.assertAlmostEqual(jackknife2_incidence(5, 2, 1, 4), 5 + 2.5 - 1 / 3)
        self.assertEqual(jackknife2_incidence(3, 3, 0, 1), 3, "Jackknife-2 needs at least two plots")

    def test_jackknife_from_counts(self):
        counts = {"A": 1, "B": 1, "C": 2, "D": 5, "E": 7}
        self.assertEqual(estimate_species_richness_jackknife(counts, order=1), 7)
        self.assertEqual(estimate_species_richness_jackknife(counts, order=2), 8)
        self.assertAlmostEqual(estimate_species_richness_jackknife(counts, order=1, sample_size=4), 6.5)

    def test_jackknife_invalid_order(self):
        with self.assertRaises(ValueError):
            estimate_species_richness_jackknife({"A": 1}, order=3)


class TestChao(unittest.TestCase):

    def test_chao1(self):
        self.assertEqual(chao1(5, 2, 1), 7)
        self.assertEqual(chao1(5, 2, 0), 6, "Chao1 should use the bias-corrected form without doubletons")
        self.assertEqual(chao1(0, 0, 0), 0)

    def test_chao2(self):
        self.assertEqual(chao2(5, 2, 2), 6)
        self.assertEqual(chao2(5, 3, 0), 8)

    def test_ichao1(self):
        # f4 = 0 is replaced by 1
        self.assertAlmostEqual(iChao1(7, 2, 1, 1, 0), 7.375)
        self.assertEqual(iChao1(7, 2, 1, 0, 0), 7, "iChao1 should equal Chao1 without tripletons")

    def test_ichao2(self):
        self.assertAlmostEqual(iChao2(7, 2, 1, 1, 1, 5), 7.175)
        self.assertEqual(iChao2(7, 2, 1, 0, 1, 5), 7, "iChao2 should equal Chao2 without triplicates")
        self.assertEqual(iChao2(7, 2, 1, 1, 1, 3), 7, "iChao2 needs more than three plots")

    def test_ichao_from_counts(self):
        counts = {"A": 1, "B": 1, "C": 2, "D": 3, "E": 8}
        self.assertAlmostEqual(estimate_species_richness_ichao(counts), chao1(5, 2, 1) + 0.25 * 1.5)


if __name__ == '__main__':
    unittest.main()
