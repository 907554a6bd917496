from typing import Callable

import pandas as pd

from deprecation import deprecated
from pandas import DataFrame
from tqdm import tqdm

from special4eco import __version__
from special4eco.bootstrap import bootstrap
from special4eco.estimation.metrics import get_singletons, get_doubletons, get_incidence_count, \
    get_number_observed_species, completeness, coverage, sampling_effort_abundance, sampling_effort_incidence, \
    hill_number_asymptotic, entropy_exp, simpson_diversity, chao1, chao2, iChao1, iChao2, \
    estimate_species_richness_ace, estimate_species_richness_ice, jackknife1_abundance, jackknife1_incidence, \
    jackknife2_abundance, jackknife2_incidence


# TODO convert to dataclass once the history lists are replaced by a long-format table
class MetricManager(dict):
    """
    Manages the metric histories of one species definition for abundance and incidence data. Every key maps to
    the list of values recorded at each metric update, starting with an initial 0 (or -1 for confidence intervals)
    """

    def __init__(self, d0: bool, d1: bool, d2: bool, c0: bool, c1: bool, l_n: list, ace: bool = True,
                 ace_modified: bool = True, ice: bool = True, ice_modified: bool = True,
                 jackknife1_abundance: bool = True, jackknife1_incidence: bool = True, jackknife2_abundance: bool = True,
                 jackknife2_incidence: bool = True, chao1: bool = True, chao2: bool = True, iChao1: bool = True,
                 iChao2: bool = True) -> None:
        super().__init__()

        # reference sample stats
        self.reference_sample_abundance = {}
        self.reference_sample_incidence = {}
        self.sampling_units = []

        self.incidence_current_total_species_count = 0
        self.abundance_current_total_species_count = 0
        self.incidence_sample_size = 0
        self.abundance_sample_size = 0
        self.current_co_occurrence = 0
        self.empty_plots = 0

        self["abundance_no_observations"] = [0]
        self["incidence_no_observations"] = [0]
        self["abundance_sum_species_counts"] = [0]
        self["incidence_sum_species_counts"] = [0]
        self["degree_of_co_occurrence"] = [0]
        self["abundance_singletons"] = [0]
        self["incidence_singletons"] = [0]
        self["abundance_doubletons"] = [0]
        self["incidence_doubletons"] = [0]

        for d, include in enumerate([d0, d1, d2]):
            if include:
                self["abundance_sample_d" + str(d)] = [0]
                self["incidence_sample_d" + str(d)] = [0]
                self["abundance_estimate_d" + str(d)] = [0]
                self["incidence_estimate_d" + str(d)] = [0]
                self["abundance_estimate_d" + str(d) + "_ci"] = [-1]
                self["incidence_estimate_d" + str(d) + "_ci"] = [-1]

        for c, include in enumerate([c0, c1]):
            if include:
                self["abundance_c" + str(c)] = [0]
                self["incidence_c" + str(c)] = [0]
                self["abundance_c" + str(c) + "_ci"] = [-1]
                self["incidence_c" + str(c) + "_ci"] = [-1]

        for l in l_n:
            self["abundance_l_" + str(l)] = [0]
            self["incidence_l_" + str(l)] = [0]

        estimators = {"ace": ace, "ace_modified": ace_modified, "ice": ice, "ice_modified": ice_modified,
                      "jackknife1_abundance": jackknife1_abundance, "jackknife1_incidence": jackknife1_incidence,
                      "jackknife2_abundance": jackknife2_abundance, "jackknife2_incidence": jackknife2_incidence,
                      "chao1": chao1, "chao2": chao2, "iChao1": iChao1, "iChao2": iChao2}
        for name, include in estimators.items():
            if include:
                self[name] = [0]


class SpeciesEstimator:
    """
    A class for the estimation of diversity and completeness profiles of plot-based species definitions
    """

    def __init__(self, d0: bool = True, d1: bool = True, d2: bool = True, c0: bool = True,
                 c1: bool = True, ace: bool = True, ace_modified: bool = True, ice: bool = True,
                 ice_modified: bool = True, jackknife1_abundance: bool = True, jackknife1_incidence: bool = True,
                 jackknife2_abundance: bool = True, jackknife2_incidence: bool = True, chao1: bool = True,
                 chao2: bool = True, iChao1: bool = True, iChao2: bool = True, l_n: list = [.9, .95, .99],
                 no_bootstrap_samples: int = 0, step_size: int | None = None, rare_threshold: int = 10,
                 seed: int | None = None):
        """
        :param d0: flag indicating if D0(=species richness) should be included
        :param d1: flag indicating if D1(=exponential Shannon entropy) should be included
        :param d2: flag indicating if D2(=Simpson diversity index) should be included
        :param c0: flag indicating if C0(=completeness) should be included
        :param c1: flag indicating if C1(=coverage) should be included
        :param l_n: list of desired completeness values for estimation additional sampling effort
        :param no_bootstrap_samples: number of bootstrap replicates for the confidence intervals of the estimates,
        0 disables bootstrapping
        :param step_size: the number of added plots after which the profiles are updated. Use None if profiles
        should only be updated once all plots have been added
        :param rare_threshold: the count up to which species are treated as rare by ACE and ICE
        :param seed: seed of the bootstrap random number generator
        """
        self.include_d0 = d0
        self.include_d1 = d1
        self.include_d2 = d2

        self.include_c0 = c0
        self.include_c1 = c1

        self.include_ace = ace
        self.include_ace_modified = ace_modified
        self.include_ice = ice
        self.include_ice_modified = ice_modified
        self.include_jackknife1_abundance = jackknife1_abundance
        self.include_jackknife1_incidence = jackknife1_incidence
        self.include_jackknife2_abundance = jackknife2_abundance
        self.include_jackknife2_incidence = jackknife2_incidence
        self.include_chao1 = chao1
        self.include_chao2 = chao2
        self.include_iChao1 = iChao1
        self.include_iChao2 = iChao2

        self.no_bootstrap_samples = no_bootstrap_samples
        self.seed = seed

        self.l_n = l_n
        self.step_size = step_size
        self.rare_threshold = rare_threshold

        self.metrics = {}
        self.species_retrieval = {}

        self.current_obs_empty = False

    def register(self, species_id: str, function: Callable) -> None:
        """
        registers a species definition
        :param species_id: the name of the species definition
        :param function: function retrieving the list of species occurrences from a plot
        """
        self.species_retrieval[species_id] = function
        self.metrics[species_id] = MetricManager(self.include_d0, self.include_d1, self.include_d2, self.include_c0,
                                                 self.include_c1, self.l_n, self.include_ace, self.include_ace_modified,
                                                 self.include_ice, self.include_ice_modified,
                                                 self.include_jackknife1_abundance, self.include_jackknife1_incidence,
                                                 self.include_jackknife2_abundance, self.include_jackknife2_incidence,
                                                 self.include_chao1, self.include_chao2,
                                                 self.include_iChao1, self.include_iChao2)

    def add_bootstrap_ci(self, no_bootstrap_samples: int) -> None:
        """
        replaces the confidence intervals of the most recent update with bootstrap half-widths of the 95% interval
        :param no_bootstrap_samples: the number of bootstrap replicates
        """
        for species_id in self.metrics.keys():
            metrics = self.metrics[species_id]
            ci_incidence = bootstrap.get_bootstrap_ci_incidence(metrics.reference_sample_incidence,
                                                                metrics.incidence_sample_size - metrics.empty_plots,
                                                                no_bootstrap_samples, seed=self.seed)
            ci_abundance = bootstrap.get_bootstrap_ci_abundance(metrics.reference_sample_abundance,
                                                                metrics.abundance_sample_size,
                                                                no_bootstrap_samples, seed=self.seed)

            for data_type, ci in (("incidence", ci_incidence), ("abundance", ci_abundance)):
                for key, value in zip(["estimate_d0", "estimate_d1", "estimate_d2", "c0", "c1"], ci):
                    if data_type + "_" + key + "_ci" in metrics:
                        metrics[data_type + "_" + key + "_ci"][-1] = value

    def apply(self, data: pd.DataFrame | pd.Series | dict | list, verbose=True) -> None:
        """
        add all plots of a community matrix and update diversity and completeness profiles once afterward.
        If parameter step_size is set to an int, profiles are additionally updated along the way according to
        the step size
        :param data: a plot-by-species community matrix, a list of plots or a single plot (series or dict)
        :param verbose: show a progress bar per species definition
        """
        if isinstance(data, pd.DataFrame):
            return self.apply([row for _, row in data.iterrows()], verbose=verbose)

        elif isinstance(data, list):
            for species_id in self.species_retrieval.keys():
                for plot in tqdm(data, "Profiling survey for " + species_id, disable=not verbose):
                    self.add_observation(plot, species_id)
                    # if step size is set, update metrics after <step_size> many plots
                    if self.step_size is None:
                        continue
                    elif self.metrics[species_id].incidence_sample_size % self.step_size == 0:
                        self.update_metrics(species_id)
                if self.step_size is None or self.metrics[species_id].incidence_sample_size % self.step_size != 0:
                    self.update_metrics(species_id)
            if self.no_bootstrap_samples > 0:
                self.add_bootstrap_ci(self.no_bootstrap_samples)

        elif isinstance(data, (pd.Series, dict)):
            for species_id in self.species_retrieval.keys():
                self.add_observation(data, species_id)
                if self.step_size is None:
                    continue
                elif self.metrics[species_id].incidence_sample_size % self.step_size == 0:
                    self.update_metrics(species_id)

        else:
            raise RuntimeError('Cannot apply data of type ' + str(type(data)))

    def add_observation(self, observation: pd.Series | dict, species_id: str) -> None:
        """
        adds a single plot
        :param species_id: the species definition for which observation shall be added
        :param observation: the plot, mapping species to counts or cover values
        """
        metrics = self.metrics[species_id]
        # retrieve species from current plot
        species_abundance = self.species_retrieval[species_id](observation)
        species_incidence = set(species_abundance)
        if len(species_abundance) == 0:
            metrics.empty_plots = metrics.empty_plots + 1
            self.current_obs_empty = True
        else:
            self.current_obs_empty = False
            metrics.sampling_units.append(species_incidence)

        # update species abundances/incidences
        for s in species_abundance:
            metrics.reference_sample_abundance[s] = metrics.reference_sample_abundance.get(s, 0) + 1
        for s in species_incidence:
            metrics.reference_sample_incidence[s] = metrics.reference_sample_incidence.get(s, 0) + 1

        # update current number of observations for each model
        metrics.abundance_sample_size = metrics.abundance_sample_size + len(species_abundance)
        metrics.incidence_sample_size = metrics.incidence_sample_size + 1

        # update current sum of all observed species for each model
        metrics.abundance_current_total_species_count = \
            metrics.abundance_current_total_species_count + len(species_abundance)
        metrics.incidence_current_total_species_count = \
            metrics.incidence_current_total_species_count + len(species_incidence)

        # update current degree of co-occurrence
        if metrics.abundance_current_total_species_count == 0:
            metrics.current_co_occurrence = 0
        else:
            metrics.current_co_occurrence = 1 - (metrics.incidence_current_total_species_count /
                                                 metrics.abundance_current_total_species_count)

    def update_metrics(self, species_id: str) -> None:
        """
        updates the diversity and completeness profiles based on the current observations
        """
        metrics = self.metrics[species_id]

        # update number of observations so far
        metrics["abundance_no_observations"].append(metrics.abundance_sample_size)
        metrics["incidence_no_observations"].append(metrics.incidence_sample_size)

        # update number of species seen so far
        metrics["abundance_sum_species_counts"].append(metrics.abundance_current_total_species_count)
        metrics["incidence_sum_species_counts"].append(metrics.incidence_current_total_species_count)

        metrics["degree_of_co_occurrence"].append(metrics.current_co_occurrence)

        # update singleton and doubleton counts
        metrics["abundance_singletons"].append(get_singletons(metrics.reference_sample_abundance))
        metrics["incidence_singletons"].append(get_singletons(metrics.reference_sample_incidence))
        metrics["abundance_doubletons"].append(get_doubletons(metrics.reference_sample_abundance))
        metrics["incidence_doubletons"].append(get_doubletons(metrics.reference_sample_incidence))

        # update diversity profile
        if self.include_d0:
            self.__update_d0(species_id)
        if self.include_d1:
            self.__update_d1(species_id)
        if self.include_d2:
            self.__update_d2(species_id)

        # update completeness profile
        if self.include_c0:
            self.__update_c0(species_id)
        if self.include_c1:
            self.__update_c1(species_id)

        # update richness estimators
        self.__update_abundance_estimators(species_id)
        self.__update_incidence_estimators(species_id)

        # update estimated sampling effort for target completeness
        for l in self.l_n:
            self.__update_l(l, species_id)

    def __update_d0(self, species_id: str) -> None:
        """
        updates D0 (=species richness) based on the current observations
        """
        metrics = self.metrics[species_id]
        # update sample metrics
        metrics["abundance_sample_d0"].append(len(metrics.reference_sample_abundance))
        metrics["incidence_sample_d0"].append(len(metrics.reference_sample_incidence))

        # update estimated metrics
        metrics["abundance_estimate_d0"].append(
            hill_number_asymptotic(0, metrics.reference_sample_abundance, metrics.abundance_sample_size))
        metrics["incidence_estimate_d0"].append(
            hill_number_asymptotic(0, metrics.reference_sample_incidence, metrics.incidence_sample_size,
                                   abundance=False))

        metrics["abundance_estimate_d0_ci"].append(-1)
        metrics["incidence_estimate_d0_ci"].append(-1)

    def __update_d1(self, species_id: str) -> None:
        """
        updates D1 (=exponential of Shannon entropy) based on the current observations
        """
        metrics = self.metrics[species_id]
        metrics["abundance_sample_d1"].append(entropy_exp(metrics.reference_sample_abundance))
        metrics["incidence_sample_d1"].append(entropy_exp(metrics.reference_sample_incidence))

        metrics["abundance_estimate_d1"].append(
            hill_number_asymptotic(1, metrics.reference_sample_abundance, metrics.abundance_sample_size))
        metrics["incidence_estimate_d1"].append(
            hill_number_asymptotic(1, metrics.reference_sample_incidence, metrics.incidence_sample_size,
                                   abundance=False))

        metrics["abundance_estimate_d1_ci"].append(-1)
        metrics["incidence_estimate_d1_ci"].append(-1)

    def __update_d2(self, species_id: str) -> None:
        """
        updates D2 (=Simpson diversity index) based on the current observations
        """
        metrics = self.metrics[species_id]
        metrics["abundance_sample_d2"].append(simpson_diversity(metrics.reference_sample_abundance))
        metrics["incidence_sample_d2"].append(simpson_diversity(metrics.reference_sample_incidence))

        metrics["abundance_estimate_d2"].append(
            hill_number_asymptotic(2, metrics.reference_sample_abundance, metrics.abundance_sample_size))
        metrics["incidence_estimate_d2"].append(
            hill_number_asymptotic(2, metrics.reference_sample_incidence, metrics.incidence_sample_size,
                                   abundance=False))

        metrics["abundance_estimate_d2_ci"].append(-1)
        metrics["incidence_estimate_d2_ci"].append(-1)

    def __update_c0(self, species_id: str) -> None:
        """
        updates C0 (=completeness) based on the current observations
        """
        metrics = self.metrics[species_id]
        metrics["abundance_c0"].append(completeness(metrics.reference_sample_abundance))
        metrics["incidence_c0"].append(completeness(metrics.reference_sample_incidence))

        metrics["abundance_c0_ci"].append(-1)
        metrics["incidence_c0_ci"].append(-1)

    def __update_c1(self, species_id: str) -> None:
        """
        updates C1 (=coverage) based on the current observations
        """
        metrics = self.metrics[species_id]
        metrics["abundance_c1"].append(coverage(metrics.reference_sample_abundance, metrics.abundance_sample_size))
        metrics["incidence_c1"].append(coverage(metrics.reference_sample_incidence, metrics.incidence_sample_size))

        metrics["abundance_c1_ci"].append(-1)
        metrics["incidence_c1_ci"].append(-1)

    def __update_abundance_estimators(self, species_id: str) -> None:
        """
        updates the abundance-based richness estimators ACE, Chao1, iChao1 and the jackknifes
        """
        metrics = self.metrics[species_id]
        data = metrics.reference_sample_abundance
        s_obs = get_number_observed_species(data)
        f1, f2, f3, f4 = [get_incidence_count(data, k) for k in range(1, 5)]

        if self.include_ace:
            metrics["ace"].append(estimate_species_richness_ace(data, self.rare_threshold) if s_obs > 0 else 0)
        if self.include_ace_modified:
            metrics["ace_modified"].append(
                estimate_species_richness_ace(data, self.rare_threshold, modified=True) if s_obs > 0 else 0)
        if self.include_chao1:
            metrics["chao1"].append(chao1(s_obs, f1, f2))
        if self.include_iChao1:
            metrics["iChao1"].append(iChao1(chao1(s_obs, f1, f2), f1, f2, f3, f4))
        if self.include_jackknife1_abundance:
            metrics["jackknife1_abundance"].append(jackknife1_abundance(s_obs, f1))
        if self.include_jackknife2_abundance:
            metrics["jackknife2_abundance"].append(jackknife2_abundance(s_obs, f1, f2))

    def __update_incidence_estimators(self, species_id: str) -> None:
        """
        updates the incidence-based richness estimators ICE, Chao2, iChao2 and the jackknifes, using the number
        of plots as the number of sampling units
        """
        metrics = self.metrics[species_id]
        data = metrics.reference_sample_incidence
        m = metrics.incidence_sample_size
        s_obs = get_number_observed_species(data)
        q1, q2, q3, q4 = [get_incidence_count(data, k) for k in range(1, 5)]

        if self.include_ice:
            metrics["ice"].append(
                estimate_species_richness_ice(data, metrics.sampling_units, self.rare_threshold) if s_obs > 0 else 0)
        if self.include_ice_modified:
            metrics["ice_modified"].append(
                estimate_species_richness_ice(data, metrics.sampling_units, self.rare_threshold, modified=True)
                if s_obs > 0 else 0)
        if self.include_chao2:
            metrics["chao2"].append(chao2(s_obs, q1, q2))
        if self.include_iChao2:
            metrics["iChao2"].append(iChao2(chao2(s_obs, q1, q2), q1, q2, q3, q4, m))
        if self.include_jackknife1_incidence:
            metrics["jackknife1_incidence"].append(jackknife1_incidence(s_obs, q1, m))
        if self.include_jackknife2_incidence:
            metrics["jackknife2_incidence"].append(jackknife2_incidence(s_obs, q1, q2, m))

    def __update_l(self, g: float, species_id: str) -> None:
        """
        updates l_g (=expected number additional observations for reaching completeness g) based on the current
        observations
        :param g: desired  completeness
        """
        metrics = self.metrics[species_id]
        metrics["abundance_l_" + str(g)].append(
            sampling_effort_abundance(g, metrics.reference_sample_abundance, metrics.abundance_sample_size))
        metrics["incidence_l_" + str(g)].append(
            sampling_effort_incidence(g, metrics.reference_sample_incidence, metrics.incidence_sample_size))

    def __ci(self, metrics: MetricManager, key: str) -> str:
        if self.no_bootstrap_samples > 0 and key + "_ci" in metrics:
            return str(metrics[key + "_ci"][-1])
        return "-"

    def summarize(self, species_id: str = None) -> None:
        """
        prints a summary of the species profiles of the current reference sample.
        """
        species_ids = self.metrics.keys() if species_id is None else [species_id]

        for species_id in species_ids:
            metrics = self.metrics[species_id]
            print("### " + species_id + " ###")
            print("%-25s %-20s %s" % ("Sample Stats", "Abundance", "Incidence"))
            print("%-25s %-20s %s" % ("", "---------", "---------"))
            print("%-25s %-20s %s" % ("No Observations", str(metrics["abundance_no_observations"][-1]),
                                      str(metrics["incidence_no_observations"][-1])))
            print("%-25s %-20s %s" % ("No Species", str(metrics["abundance_sum_species_counts"][-1]),
                                      str(metrics["incidence_sum_species_counts"][-1])))
            print("%-25s %-20s %s" % ("Singletons", str(metrics["abundance_singletons"][-1]),
                                      str(metrics["incidence_singletons"][-1])))
            print("%-25s %-20s %s" % ("Doubletons", str(metrics["abundance_doubletons"][-1]),
                                      str(metrics["incidence_doubletons"][-1])))
            print("%-25s %s" % ("Empty Plots", str(metrics.empty_plots)))
            print("%-25s %s" % ("Degree of Co-Occurrence", str(metrics["degree_of_co_occurrence"][-1])))
            print()
            for data_type in ["abundance", "incidence"]:
                print("%-25s %-20s %-20s %s" % (data_type.capitalize() + ":", "Observed", "Estimate", "CI"))
                print("%-25s %-20s %-20s %s" % ("", "--------", "--------", "--"))
                for d in range(3):
                    if data_type + "_sample_d" + str(d) in metrics:
                        print("%-25s %-20s %-20s %s" % ("D" + str(d),
                                                        str(metrics[data_type + "_sample_d" + str(d)][-1]),
                                                        str(metrics[data_type + "_estimate_d" + str(d)][-1]),
                                                        self.__ci(metrics, data_type + "_estimate_d" + str(d))))
                for c in range(2):
                    if data_type + "_c" + str(c) in metrics:
                        print("%-25s %-20s %-20s %s" % ("C" + str(c), "-",
                                                        str(metrics[data_type + "_c" + str(c)][-1]),
                                                        self.__ci(metrics, data_type + "_c" + str(c))))
                for l in self.l_n:
                    print("%-25s %-20s %-20s %s" % ("l_" + str(l), "-", str(metrics[data_type + "_l_" + str(l)][-1]),
                                                    "-"))
                print()

            estimators = [key for key in ["chao1", "iChao1", "ace", "ace_modified", "jackknife1_abundance",
                                          "jackknife2_abundance", "chao2", "iChao2", "ice", "ice_modified",
                                          "jackknife1_incidence", "jackknife2_incidence"] if key in metrics]
            if estimators:
                print("%-25s %s" % ("Richness Estimators", "Estimate"))
                print("%-25s %s" % ("", "--------"))
                for key in estimators:
                    print("%-25s %s" % (key, str(metrics[key][-1])))
            print("")
            print("")

    @deprecated(deprecated_in="0.2.0", current_version=__version__,
                details="Use summarize() or to_dataFrame() instead")
    def print_metrics(self) -> None:
        """
        prints the full history of the diversity and completeness profile of the current observations
        """
        for species_id in self.species_retrieval:
            print("### " + species_id + " ###")
            for key, values in self.metrics[species_id].items():
                print("%-30s %s" % ("     " + key + ":", str(values)))
            print("%-30s %s" % ("     empty_plots:", str(self.metrics[species_id].empty_plots)))
            print()

    def to_dataFrame(self, include_all=True) -> DataFrame:
        """
        returns the diversity and completeness profile of the current observations as a data frame
        :param include_all: include the full history of every metric, otherwise only the most recent values
        :returns: a data frame view of the Diversity and Completeness Profile
        """
        return pd.DataFrame([[i, j, ix, v]
                             for i in self.metrics.keys()
                             for j in self.metrics[i].keys()
                             for ix, v in enumerate(self.metrics[i][j])
                             ], columns=["species", "metric", "observation", "value"]
                            ) if include_all else pd.DataFrame([[i, j, self.metrics[i][j][-1]]
                                                                for i in self.metrics.keys()
                                                                for j in self.metrics[i].keys()
                                                                ], columns=["species", "metric", "value"])
