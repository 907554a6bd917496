import math
from collections import Counter
from typing import Iterable

import mpmath
from cachetools import cached, LRUCache
from numpy import euler_gamma
from scipy.special import digamma
from scipy.stats import entropy


def get_incidence_count(obs_species_counts: dict, i: int) -> int:
    """
    returns the number of species, that have an incidence count of i
    :param obs_species_counts: the species with corresponding incidence counts
    :param i: the incidence count
    :return: the number of species with incidence count i
    """
    return list(obs_species_counts.values()).count(i)


def get_singletons(obs_species_counts: dict) -> int:
    """
    returns the number of singletons species, i.e. those species that have an incidence count of 1
    :param obs_species_counts: the species with corresponding incidence counts
    :return: the number of species with incidence count 1
    """
    return list(obs_species_counts.values()).count(1)


def get_doubletons(obs_species_counts: dict) -> int:
    """
    returns the number of doubleton species, i.e. those species that have an incidence count of 2
    :param obs_species_counts: the species with corresponding incidence counts
    :return: the number of species with incidence count 2
    """
    return list(obs_species_counts.values()).count(2)


def get_frequency_counts(obs_species_counts: dict, k_max: int = 10) -> list:
    """
    returns the frequency counts F_1,...,F_k_max, i.e. the number of species observed exactly k times
    :param obs_species_counts: the species with corresponding counts
    :param k_max: the largest count that is tallied
    :return: list of length k_max, entry k-1 holding F_k
    """
    frequencies = Counter(obs_species_counts.values())
    return [frequencies.get(k, 0) for k in range(1, k_max + 1)]


def get_number_observed_species(obs_species_counts: dict) -> int:
    """
    returns the number of observed species
    :param obs_species_counts: the species with corresponding incidence counts
    :return: the number of observed species
    """
    return len([x for x in obs_species_counts.values() if x > 0])


def get_total_species_count(obs_species_counts: dict):
    """
    returns the total number of species incidences, i.e. the sum of all species incidences in the reference sample
    :param obs_species_counts: the species with corresponding incidence counts
    :return: the sum of species incidences
    """
    return sum(obs_species_counts.values())


def _relative_abundances(obs_species_counts: dict) -> list:
    total = get_total_species_count(obs_species_counts)
    if total <= 0:
        return []
    return [x / total for x in obs_species_counts.values() if x > 0]


def hill_number(q: float, obs_species_counts: dict) -> float:
    """
    computes sample-based Hill number of order q for the reference sample. Counts may be integer abundances or
    incidences as well as cover values, as only relative abundances enter the computation.
    q=0 - species richness
    q=1 - Exponential of Shannon entropy
    q=2 - Simpson Diversity Index
    :param q: the order of the Hill number, any non-negative value
    :param obs_species_counts: the species with corresponding counts
    :return: the sample-based Hill number of order q
    """
    if q < 0:
        raise ValueError("Hill numbers are defined for non-negative orders only, got " + str(q))
    p = _relative_abundances(obs_species_counts)
    if len(p) == 0:
        return 0
    # sample-based species richness
    if q == 0:
        return len(p)
    # sample-based exponential Shannon diversity
    if q == 1:
        return entropy_exp(obs_species_counts)
    # sample-based Simpson diversity
    if q == 2:
        return simpson_diversity(obs_species_counts)
    return sum([x ** q for x in p]) ** (1 / (1 - q))


def hill_profile(obs_species_counts: dict, q_values: Iterable[float]) -> dict:
    """
    computes the diversity profile, i.e. sample-based Hill numbers for a range of orders
    :param obs_species_counts: the species with corresponding counts
    :param q_values: the orders to evaluate
    :return: mapping of order to Hill number
    """
    return {q: hill_number(q, obs_species_counts) for q in q_values}


def shannon_entropy(obs_species_counts: dict, base: float = math.e) -> float:
    """
    computes the Shannon entropy of the reference sample
    :param obs_species_counts: the species with corresponding counts
    :param base: the logarithm base, natural logarithm by default
    :return: the Shannon entropy
    """
    p = _relative_abundances(obs_species_counts)
    if len(p) == 0:
        return 0.0
    return float(entropy(p, base=base))


def entropy_exp(obs_species_counts: dict) -> float:
    """
    computes the exponential of Shannon entropy
    :param obs_species_counts: the species with corresponding incidence counts
    :return: the exponential of Shannon entropy
    """
    if len(_relative_abundances(obs_species_counts)) == 0:
        return 0
    return math.exp(shannon_entropy(obs_species_counts))


def simpson_index(obs_species_counts: dict) -> float:
    """
    computes the Gini-Simpson index, i.e. the probability that two randomly drawn individuals belong to different
    species
    :param obs_species_counts: the species with corresponding counts
    :return: the Gini-Simpson index
    """
    p = _relative_abundances(obs_species_counts)
    if len(p) == 0:
        return 0.0
    return 1 - sum([x ** 2 for x in p])


def simpson_diversity(obs_species_counts: dict) -> float:
    """
    computes the Simpson diversity index
    :param obs_species_counts: the species with corresponding incidence counts
    :return: the Simpson diversity index
    """
    a = sum([x ** 2 for x in _relative_abundances(obs_species_counts)])
    return a ** (1 / (1 - 2)) if a > 0 else 0


def pielou_evenness(obs_species_counts: dict) -> float:
    """
    computes Pielou's evenness J = H / ln(S)
    :param obs_species_counts: the species with corresponding counts
    :return: the evenness, 0 for samples with less than two species
    """
    s = get_number_observed_species(obs_species_counts)
    if s <= 1:
        return 0.0
    return shannon_entropy(obs_species_counts) / math.log(s)


'''
Calculate asymptotic Hill number of order d for a reference sample
d=0 Species Richness
d=1 Exponential of Shannon Entropy
d=2 Simpson Diversity Index
'''


def hill_number_asymptotic(d: int, obs_species_counts: dict, sample_size: int, abundance: bool = True) -> float:
    """
    computes asymptotic Hill number of order d for the reference sample, for either abundance data or incidence data.
    D=0 - asymptotic species richness
    D=1 - asymptotic exponential of Shannon entropy
    D=2 - asymptotic Simpson diversity index
    :param d: the order of the Hill number
    :param obs_species_counts: the species with corresponding incidence counts
    :param sample_size: the sample size associated with the species incidence counts
    :param abundance: flag indicating the data type. Setting this 'True' indicates abundance-based data,
    setting this 'False' indicates incidence-based data
    :return: the asymptotic Hill number of order d
    """
    # asymptotic species richness
    # for species richness, there is no differentiation between abundance and incidence
    if d == 0:
        return estimate_species_richness_chao(obs_species_counts)
    # asymptotic Shannon entropy
    if d == 1:
        if abundance:
            return estimate_exp_shannon_entropy_abundance(obs_species_counts, sample_size)
        return estimate_exp_shannon_entropy_incidence(obs_species_counts, sample_size)
    # asymptotic Simpson diversity
    if d == 2:
        if abundance:
            return estimate_simpson_diversity_abundance(obs_species_counts, sample_size)
        return estimate_simpson_diversity_incidence(obs_species_counts, sample_size)
    raise ValueError("Asymptotic Hill numbers are available for orders 0, 1 and 2, got " + str(d))


def estimate_species_richness_chao(obs_species_counts: dict) -> float:
    """
    computes the asymptotic(=estimated) species richness using the Chao1 estimator(for abundance data)
    or Chao2 estimator (for incidence data)
    :param obs_species_counts: the species with corresponding incidence counts
    :return: the estimated species richness
    """
    obs_species_count = get_number_observed_species(obs_species_counts)
    f_1 = get_singletons(obs_species_counts)
    f_2 = get_doubletons(obs_species_counts)

    if f_2 != 0:
        return obs_species_count + f_1 ** 2 / (2 * f_2)
    else:
        return obs_species_count + f_1 * (f_1 - 1) / 2


def estimate_species_richness_chao_corrected(obs_species_counts: dict, sample_size: int) -> float:
    """
    computes the bias-corrected Chao1 estimator, which stays finite for f_2 = 0 and includes the
    small-sample factor (n-1)/n
    :param obs_species_counts: the species with corresponding counts
    :param sample_size: the sample size associated with the species counts
    :return: the estimated species richness
    """
    obs_species_count = get_number_observed_species(obs_species_counts)
    if sample_size == 0:
        return obs_species_count
    f_1 = get_singletons(obs_species_counts)
    f_2 = get_doubletons(obs_species_counts)
    return obs_species_count + ((sample_size - 1) / sample_size) * f_1 * (f_1 - 1) / (2 * (f_2 + 1))


# ACE Estimator

def calculate_C_ace(F1_abund, N_rare_abund):
    """
    Calculates sample coverage of the rare species (C_ace).
    """
    if N_rare_abund == 0:
        return 0
    return 1 - (F1_abund / N_rare_abund)


def calculate_gamma_sq_ace(S_rare_abund, C_ace, Fi_abund, N_rare_abund):
    """
    Calculates gamma² (coefficient of variation of the rare species) for the standard ACE estimator.
    """
    if C_ace == 0 or N_rare_abund <= 1:
        return 0

    sum_term = sum(i * (i - 1) * Fi_abund[i - 1] for i in range(1, len(Fi_abund) + 1))
    return max(0, (S_rare_abund / C_ace) * (sum_term / (N_rare_abund * (N_rare_abund - 1))) - 1)


def calculate_gamma_sq_ace_modified(S_ace, Fi_abund, N_rare_abund):
    """
    Calculates gamma² for the modified ACE estimator, using the ACE estimate in place of S_rare / C_ace.
    """
    if N_rare_abund <= 1:
        return 0

    sum_term = sum(i * (i - 1) * Fi_abund[i - 1] for i in range(1, len(Fi_abund) + 1))
    return max(0, S_ace * (sum_term / (N_rare_abund * (N_rare_abund - 1))) - 1)


def ace(S_abund, S_rare_abund, F1_abund, N_rare_abund, Fi_abund):
    """
    Calculates ACE (Abundance-based Coverage Estimator) for species richness.

    Parameters:
    - S_abund: Count of abundant species (>10 individuals)
    - S_rare_abund: Count of rare species (≤10 individuals)
    - F1_abund: Number of singletons (species observed once)
    - N_rare_abund: Total count of individuals for rare species
    - Fi_abund: List of counts for species with exactly i individuals (i = 1 to 10)

    Returns:
    - S_ace: Estimated species richness (ACE result)
    - gamma_sq_ace: Variability of rare species
    """
    C_ace = calculate_C_ace(F1_abund, N_rare_abund)
    gamma_sq_ace = calculate_gamma_sq_ace(S_rare_abund, C_ace, Fi_abund, N_rare_abund)

    if C_ace == 0:
        return S_abund + S_rare_abund, gamma_sq_ace

    S_ace = S_abund + (S_rare_abund / C_ace) + (F1_abund / C_ace) * gamma_sq_ace
    return S_ace, gamma_sq_ace


def ace_modified(S_abund, S_rare_abund, F1_abund, N_rare_abund, Fi_abund):
    """
    Calculates the ACE-modified estimator.
    """
    C_ace = calculate_C_ace(F1_abund, N_rare_abund)
    if C_ace == 0:
        return S_abund + S_rare_abund, 0

    # first: the regular ACE estimator
    gamma_sq_ace = calculate_gamma_sq_ace(S_rare_abund, C_ace, Fi_abund, N_rare_abund)
    S_ace = S_abund + (S_rare_abund / C_ace) + (F1_abund / C_ace) * gamma_sq_ace

    # second: use S_ace for the modified gamma²
    gamma_sq_ace_modified = calculate_gamma_sq_ace_modified(S_ace, Fi_abund, N_rare_abund)

    S_ace_modified = S_abund + (S_rare_abund / C_ace) + (F1_abund / C_ace) * gamma_sq_ace_modified
    return S_ace_modified, gamma_sq_ace_modified


def estimate_species_richness_ace(obs_species_counts: dict, rare_threshold: int = 10,
                                  modified: bool = False) -> float:
    """
    computes the ACE (or ACE-modified) richness estimate directly from the abundance counts
    :param obs_species_counts: the species with corresponding abundance counts
    :param rare_threshold: species with at most this many individuals count as rare
    :param modified: use the modified gamma² of the ACE-1 variant
    :return: the estimated species richness
    """
    counts = [x for x in obs_species_counts.values() if x > 0]
    S_abund = sum(1 for x in counts if x > rare_threshold)
    S_rare_abund = sum(1 for x in counts if x <= rare_threshold)
    N_rare_abund = sum(x for x in counts if x <= rare_threshold)
    F1_abund = sum(1 for x in counts if x == 1)
    Fi_abund = get_frequency_counts(obs_species_counts, rare_threshold)

    if modified:
        return ace_modified(S_abund, S_rare_abund, F1_abund, N_rare_abund, Fi_abund)[0]
    return ace(S_abund, S_rare_abund, F1_abund, N_rare_abund, Fi_abund)[0]


# ICE Estimator

def calculate_C_ice(Q1, N_inf):
    """
    Calculates the sample incidence coverage estimator (C_ice).
    Args:
        Q1: Number of uniques (species observed in exactly one sample).
        N_inf: Total number of incidences of infrequent species.
    Returns:
        Coverage estimate for infrequent species.
    """
    return 1 - (Q1 / N_inf) if N_inf > 0 else 0


def calculate_gamma_sq_ice(S_inf, C_ice, m_inf, N_inf, Qj):
    """
    Calculates the squared coefficient of variation (γ²_ice).

    Args:
        S_inf: Number of infrequent species.
        C_ice: Sample incidence coverage estimator.
        m_inf: Number of samples containing infrequent species.
        N_inf: Total count of infrequent species.
        Qj: List of frequencies for species occurring j times.
    Returns:
        Squared coefficient of variation (γ²_ice).
    """
    if C_ice == 0 or N_inf <= 1 or m_inf <= 1:
        return 0

    sum_term = sum(j * (j - 1) * Qj[j - 1] for j in range(1, len(Qj) + 1))
    return max(0, (S_inf / C_ice) * (m_inf / (m_inf - 1)) * (sum_term / (N_inf * N_inf)) - 1)


def calculate_gamma_sq_ice_modified(S_ice, m_inf, N_inf, Qj):
    if N_inf <= 1 or m_inf <= 1:
        return 0

    sum_term = sum(j * (j - 1) * Qj[j - 1] for j in range(1, len(Qj) + 1))
    # uses S_ice directly instead of S_inf/C_ice
    return max(S_ice * (m_inf / (m_inf - 1)) * (sum_term / (N_inf * N_inf)) - 1, 0)


def ice(S_freq, S_inf, Q1, N_inf, Qj, m_inf):
    """
    Calculates the ICE estimator for species richness.

    Args:
        S_freq: Number of frequent species.
        S_inf: Number of infrequent species.
        Q1: Number of uniques (species observed in exactly one sample).
        N_inf: Total count of infrequent species.
        Qj: List of frequencies for species occurring j times.
        m_inf: Number of samples containing infrequent species.
    Returns:
        Estimated species richness (S_ice) and γ²_ice.
    """
    C_ice = calculate_C_ice(Q1, N_inf)
    gamma_sq_ice = calculate_gamma_sq_ice(S_inf, C_ice, m_inf, N_inf, Qj)

    if C_ice == 0:
        return S_freq + S_inf, gamma_sq_ice

    S_ice = S_freq + (S_inf / C_ice) + (Q1 / C_ice) * gamma_sq_ice
    return S_ice, gamma_sq_ice


def ice_modified(S_freq, S_inf, Q1, N_inf, Qj, m_inf):
    C_ice = calculate_C_ice(Q1, N_inf)
    if C_ice == 0:
        return S_freq + S_inf, 0

    gamma_sq_ice = calculate_gamma_sq_ice(S_inf, C_ice, m_inf, N_inf, Qj)
    S_ice = S_freq + (S_inf / C_ice) + (Q1 / C_ice) * gamma_sq_ice

    gamma_sq_ice_modified = calculate_gamma_sq_ice_modified(S_ice, m_inf, N_inf, Qj)

    S_ice_modified = S_freq + (S_inf / C_ice) + (Q1 / C_ice) * gamma_sq_ice_modified
    return S_ice_modified, gamma_sq_ice_modified


def estimate_species_richness_ice(obs_species_counts: dict, sampling_units: Iterable, rare_threshold: int = 10,
                                  modified: bool = False) -> float:
    """
    computes the ICE (or ICE-modified) richness estimate from incidence counts
    :param obs_species_counts: the species with corresponding incidence counts
    :param sampling_units: the species sets of the individual sampling units (plots), needed for the number of
    units that contain at least one infrequent species
    :param rare_threshold: species in at most this many units count as infrequent
    :param modified: use the modified gamma²
    :return: the estimated species richness
    """
    counts = [x for x in obs_species_counts.values() if x > 0]
    if len(counts) == 0:
        return 0
    infrequent = {s for s, x in obs_species_counts.items() if 0 < x <= rare_threshold}

    S_freq = sum(1 for x in counts if x > rare_threshold)
    S_inf = len(infrequent)
    N_inf = sum(x for x in counts if x <= rare_threshold)
    Q1 = sum(1 for x in counts if x == 1)
    Qj = get_frequency_counts(obs_species_counts, rare_threshold)
    m_inf = sum(1 for unit in sampling_units if any(s in infrequent for s in unit))

    if modified:
        return ice_modified(S_freq, S_inf, Q1, N_inf, Qj, m_inf)[0]
    return ice(S_freq, S_inf, Q1, N_inf, Qj, m_inf)[0]


# Jackknife Estimators

def jackknife1_abundance(S_obs, f1):
    return S_obs + f1


def jackknife1_incidence(S_obs, Q1, m):
    if m == 0:
        return S_obs
    return S_obs + Q1 * (m - 1) / m


def jackknife2_abundance(S_obs, f1, f2):
    return S_obs + 2 * f1 - f2


def jackknife2_incidence(S_obs, Q1, Q2, m):
    if m <= 1:
        return S_obs
    term1 = Q1 * (2 * m - 3) / m
    term2 = Q2 * ((m - 2) ** 2) / (m * (m - 1))
    return S_obs + term1 - term2


def estimate_species_richness_jackknife(obs_species_counts: dict, order: int = 1, sample_size: int = None) -> float:
    """
    computes the first or second order jackknife richness estimate. Passing the number of sampling units as
    sample_size selects the incidence-based form, otherwise the abundance-based form is used
    :param obs_species_counts: the species with corresponding counts
    :param order: 1 or 2
    :param sample_size: number of sampling units for incidence data
    :return: the estimated species richness
    """
    S_obs = get_number_observed_species(obs_species_counts)
    f1 = get_singletons(obs_species_counts)
    f2 = get_doubletons(obs_species_counts)
    if order == 1:
        return jackknife1_abundance(S_obs, f1) if sample_size is None else jackknife1_incidence(S_obs, f1,
                                                                                                sample_size)
    if order == 2:
        return jackknife2_abundance(S_obs, f1, f2) if sample_size is None else jackknife2_incidence(S_obs, f1, f2,
                                                                                                    sample_size)
    raise ValueError("Jackknife estimators are available for orders 1 and 2, got " + str(order))


# Chao1 / Chao2

def chao1(S_obs, f1, f2):
    """
    Args:
        S_obs (int): Number of observed species
        f1 (int): Number of species observed only once --> singletons
        f2 (int): Number of species observed exactly twice --> doubletons
    """
    if f2 == 0:
        return S_obs + (f1 * (f1 - 1)) / 2
    return S_obs + (f1 ** 2) / (2 * f2)


def chao2(S_obs, Q1, Q2):
    """
    Args:
        S_obs (int): Number of observed species
        Q1 (int): Number of species occurring in exactly one sample --> uniques
        Q2 (int): Number of species occurring in exactly two samples --> duplicates
    """
    if Q2 == 0:
        return S_obs + (Q1 * (Q1 - 1)) / 2
    return S_obs + (Q1 * Q1) / (2 * Q2)


def iChao1(S_chao1, f1, f2, f3, f4):
    # without quadrupletons, f4 is replaced by 1
    if f3 == 0:
        return S_chao1
    f4 = max(f4, 1)
    return S_chao1 + (f3 / (4 * f4)) * max(f1 - (f2 * f3) / (2 * f4), 0)


def iChao2(S_chao2, Q1, Q2, Q3, Q4, T):
    if Q3 == 0 or T <= 3:
        return S_chao2
    Q4 = max(Q4, 1)
    factor1 = (T - 3) / (4 * T)
    nested_term = ((T - 3) / (2 * (T - 1))) * (Q2 * Q3 / Q4)
    return S_chao2 + factor1 * (Q3 / Q4) * max(Q1 - nested_term, 0)


def estimate_species_richness_ichao(obs_species_counts: dict, sample_size: int = None) -> float:
    """
    computes the improved Chao estimator, iChao1 for abundance data or iChao2 if the number of sampling units
    is passed as sample_size
    """
    S_obs = get_number_observed_species(obs_species_counts)
    f1, f2, f3, f4 = [get_incidence_count(obs_species_counts, k) for k in range(1, 5)]
    if sample_size is None:
        return iChao1(chao1(S_obs, f1, f2), f1, f2, f3, f4)
    return iChao2(chao2(S_obs, f1, f2), f1, f2, f3, f4, sample_size)


# Shannon entropy estimation

def estimate_exp_shannon_entropy_abundance(obs_species_counts: dict, sample_size: int) -> float:
    """
    computes the asymptotic(=estimated) exponential of Shannon entropy for abundance-based data
    :param obs_species_counts: the species with corresponding incidence counts
    :param sample_size: the sample size associated with the species incidence counts
    :return: the estimated exponential of Shannon entropy
    """
    if sum(obs_species_counts.values()) == 0 or sample_size == 0:
        return 0.0
    return math.exp(estimate_entropy(obs_species_counts, sample_size))


def estimate_exp_shannon_entropy_incidence(obs_species_counts: dict, sample_size: int) -> float:
    """
    computes the asymptotic(=estimated) exponential of Shannon entropy for incidence-based data
    :param obs_species_counts: the species with corresponding incidence counts
    :param sample_size: the sample size associated with the species incidence counts
    :return: the estimated exponential of Shannon entropy
    """
    # h_o is structurally equivalent to abundance based entropy estimation, see eq H7 in appendix H of the
    # Hill number paper (Chao et al. 2014)
    u = sum(obs_species_counts.values())
    if u == 0 or sample_size == 0:
        return 0.0
    h_o = estimate_entropy(obs_species_counts, sample_size)
    return math.exp((sample_size / u) * h_o + math.log(u / sample_size))


def estimate_entropy(obs_species_counts: dict, sample_size: int) -> float:
    """
    computes the estimated Shannon entropy (Chao, Wang & Jost 2013)
    :param obs_species_counts: the species with corresponding incidence counts
    :param sample_size: the sample size associated with the species incidence counts
    :return: the estimated Shannon entropy
    """
    if sample_size <= 1:
        return 0

    f_1 = get_singletons(obs_species_counts)
    f_2 = get_doubletons(obs_species_counts)

    entropy_known_species = 0
    for x_i in obs_species_counts.values():
        if 1 <= x_i <= sample_size - 1:
            # sum(1/x_i,...,1/(n-1)) decomposed to harmonic(n-1) - harmonic(x_i-1)
            entropy_known_species += x_i / sample_size * (harmonic(sample_size - 1) - harmonic(x_i - 1))

    if f_2 > 0:
        a = (2 * f_2) / ((sample_size - 1) * f_1 + 2 * f_2)
    elif f_1 > 0:
        a = 2 / ((sample_size - 1) * (f_1 - 1) + 2)
    else:
        a = 1

    if a == 1:
        return entropy_known_species

    # (1-a)^(1-n) * (-log(a) - sum_{r<n} (1-a)^r / r) equals the tail sum_{k>=0} (1-a)^(k+1) / (n+k),
    # the Lerch transcendent form avoids overflow for large n
    tail = (1 - a) * mpmath.lerchphi(1 - a, 1, sample_size)
    return entropy_known_species + (f_1 / sample_size) * float(tail)


@cached(cache=LRUCache(maxsize=4096))
def harmonic(n):
    """Returns an (approximate) value of n-th harmonic number.
    If n>100, use an efficient approximation using the digamma function instead
    http://en.wikipedia.org/wiki/Harmonic_number
    """
    if n <= 100:
        return sum(1 / k for k in range(1, n + 1))
    else:
        return float(digamma(n + 1) + euler_gamma)


# Simpson estimation

def estimate_simpson_diversity_abundance(obs_species_counts: dict, sample_size: int) -> float:
    """
    computes the asymptotic(=estimated) Simpson diversity for abundance-based data, i.e. the inverse of the
    unbiased estimate of sum(p_i^2). Falls back to the sample Simpson diversity if no species has been observed
    twice or more
    :param obs_species_counts: the species with corresponding incidence counts
    :param sample_size: the sample size associated with the species incidence counts
    :return: the estimated Simpson diversity
    """
    denom = sum(x_i * (x_i - 1) for x_i in obs_species_counts.values() if x_i >= 2)
    if denom == 0:
        return simpson_diversity(obs_species_counts)
    return (sample_size * (sample_size - 1)) / denom


def estimate_simpson_diversity_incidence(obs_species_counts: dict, sample_size: int) -> float:
    """
    computes the asymptotic(=estimated) Simpson diversity for incidence-based data
    :param obs_species_counts: the species with corresponding incidence counts
    :param sample_size: the sample size associated with the species incidence counts
    :return: the estimated Simpson diversity
    """
    u = get_total_species_count(obs_species_counts)
    if u == 0 or sample_size == 0:
        return 0.0
    nom = ((1 - (1 / sample_size)) * u) ** 2
    s = sum(y_i * (y_i - 1) for y_i in obs_species_counts.values() if y_i > 1)
    if s == 0:
        return simpson_diversity(obs_species_counts)
    return nom / s


# Completeness profile

def completeness(obs_species_counts: dict) -> float:
    """
    computes the completeness of the sample data. A value of '1' indicates full completeness,
    whereas as value of '0' indicates total incompleteness
    :param obs_species_counts: the species with corresponding incidence counts
    :return: the estimated completeness
    """
    obs_species_count = get_number_observed_species(obs_species_counts)
    s_P = estimate_species_richness_chao(obs_species_counts)
    if s_P == 0:
        return 0

    return obs_species_count / s_P


def coverage(obs_species_counts: dict, sample_size: int) -> float:
    """
    computes the coverage of the sample data. A value of '1' indicates full coverage,
    whereas as value of '0' indicates no coverage
    :param obs_species_counts: the species with corresponding incidence counts
    :param sample_size: the sample size associated with the species incidence counts
    :return: the estimated coverage
    """
    f_1 = get_singletons(obs_species_counts)
    f_2 = get_doubletons(obs_species_counts)
    Y = get_total_species_count(obs_species_counts)

    if sample_size == 0 or Y == 0:
        return 0
    if f_2 == 0 and sample_size == 1:
        return 0
    if f_1 == 0:
        return 1

    if f_2 > 0:
        ratio = ((sample_size - 1) * f_1) / ((sample_size - 1) * f_1 + 2 * f_2)
    else:
        ratio = ((sample_size - 1) * (f_1 - 1)) / ((sample_size - 1) * (f_1 - 1) + 2)
    return 1 - f_1 / Y * ratio


def sampling_effort_abundance(n: float, obs_species_counts: dict, sample_size: int) -> float:
    """
    computes the expected additional sampling effort needed to reach target completeness n for abundance data.
    If n does not exceed the current completeness, this function returns 0
    :param n: desired target completeness
    :param obs_species_counts: the species with corresponding incidence counts
    :param sample_size: the sample size associated with the species incidence counts
    :return: the expected additional sampling effort
    """
    comp = completeness(obs_species_counts)
    f_1 = get_singletons(obs_species_counts)

    if n <= comp:
        return 0
    if n >= 1:
        return math.inf

    s_chao = estimate_species_richness_chao(obs_species_counts)
    # f_0 = f_1^2 / (2 f_2), or its bias-corrected form without doubletons
    f_0 = s_chao - get_number_observed_species(obs_species_counts)

    return ((sample_size * f_0) / f_1) * math.log(f_0 / ((1 - n) * s_chao))


def sampling_effort_incidence(n: float, obs_species_counts: dict, sample_size: int) -> float:
    """
    computes the expected additional sampling effort needed to reach target completeness n for incidence data.
    If n does not exceed the current completeness, this function returns 0
    :param n: desired target completeness
    :param obs_species_counts: the species with corresponding incidence counts
    :param sample_size: the sample size associated with the species incidence counts
    :return: the expected additional sampling effort
    """
    comp = completeness(obs_species_counts)
    f_1 = get_singletons(obs_species_counts)
    f_2 = get_doubletons(obs_species_counts)
    if n <= comp:
        return 0
    if n >= 1:
        return math.inf
    if sample_size <= 1:
        return 0
    if f_1 == 0:
        return 0

    obs_species_count = get_number_observed_species(obs_species_counts)

    # without duplicates the assessment is approximated by assuming a single one remained
    f_2 = max(f_2, 1)
    s_P = obs_species_count + (1 - 1 / sample_size) * f_1 ** 2 / (2 * f_2)

    nom1 = sample_size / (sample_size - 1)
    nom2 = (2 * f_2) / (f_1 ** 2)
    nom3 = n * s_P - obs_species_count
    nom = math.log(1 - nom1 * nom2 * nom3)
    denominator = math.log(1 - ((2 * f_2) / ((sample_size - 1) * f_1 + 2 * f_2)))
    return max(0, nom / denominator)
