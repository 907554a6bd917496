"""
Rarefaction and extrapolation of Hill numbers (Chao et al. 2014, Ecological Monographs 84:45-67).

Abundance-based curves are available for the orders 0, 1 and 2, incidence-based (sample-based) curves for
species richness. Sample sizes below the reference sample are interpolated, sample sizes above it are extrapolated
with the asymptotic estimators of :mod:`special4eco.estimation.metrics`.
"""
import math

import numpy as np
import pandas as pd
from scipy.special import gammaln
from scipy.stats import hypergeom

from special4eco.estimation.metrics import get_singletons, get_doubletons, get_number_observed_species, \
    get_total_species_count, coverage, estimate_entropy, shannon_entropy, hill_number


def _log_binom(n, k):
    return gammaln(n + 1) - gammaln(k + 1) - gammaln(n - k + 1)


def _counts(obs_species_counts: dict) -> np.ndarray:
    counts = np.array([x for x in obs_species_counts.values() if x > 0], dtype=float)
    if np.any(counts != np.round(counts)):
        raise ValueError("Rarefaction requires integer counts, use cover units or occurrences instead of cover")
    return counts


def _undetected_species(f_1: int, f_2: int, n: int) -> float:
    if n == 0:
        return 0
    if f_2 > 0:
        return (n - 1) / n * f_1 ** 2 / (2 * f_2)
    return (n - 1) / n * f_1 * (f_1 - 1) / 2


def _sum_squared_unbiased(counts: np.ndarray, n: int) -> float:
    return float(np.sum(counts * (counts - 1)) / (n * (n - 1)))


def rarefy_richness(obs_species_counts: dict, m: int) -> float:
    """
    expected number of species in a random subsample of m individuals, extrapolated beyond the sample size
    """
    return rarefy_hill_number(0, obs_species_counts, m)


def rarefy_hill_number(q: int, obs_species_counts: dict, m: int) -> float:
    """
    computes the expected Hill number of order q for a sample of m individuals. For m smaller than the reference
    sample size n the value is interpolated, for m larger than n it is extrapolated
    :param q: the order of the Hill number, one of 0, 1 and 2
    :param obs_species_counts: the species with corresponding abundance counts
    :param m: the sample size for which the Hill number is estimated
    :return: the rarefied or extrapolated Hill number
    """
    if m < 0:
        raise ValueError("Sample size must be non-negative, got " + str(m))
    if q not in (0, 1, 2):
        raise ValueError("Rarefaction is available for orders 0, 1 and 2, got " + str(q))
    counts = _counts(obs_species_counts)
    n = int(counts.sum())
    if n == 0 or m == 0:
        return 0.0
    if m == n:
        return float(hill_number(q, obs_species_counts))
    if m < n:
        return _interpolate(q, counts, n, m)
    return _extrapolate(q, obs_species_counts, counts, n, m - n)


def _interpolate(q: int, counts: np.ndarray, n: int, m: int) -> float:
    if q == 0:
        # species are missed with probability C(n - X_i, m) / C(n, m)
        missed = np.zeros(len(counts))
        possible = n - counts >= m
        missed[possible] = np.exp(_log_binom(n - counts[possible], m) - _log_binom(n, m))
        return float(np.sum(1 - missed))
    if q == 1:
        k = np.arange(1, m + 1)
        # f_k(m): expected number of species with k individuals in the subsample
        f_k = hypergeom.pmf(k[None, :], n, counts.astype(int)[:, None], m).sum(axis=0)
        return float(math.exp(np.sum(-(k / m) * np.log(k / m) * f_k)))
    return float(1 / (1 / m + (1 - 1 / m) * _sum_squared_unbiased(counts, n)))


def _extrapolate(q: int, obs_species_counts: dict, counts: np.ndarray, n: int, m_star: int) -> float:
    f_1 = get_singletons(obs_species_counts)
    f_2 = get_doubletons(obs_species_counts)
    s_obs = get_number_observed_species(obs_species_counts)
    if q == 0:
        f_0 = _undetected_species(f_1, f_2, n)
        if f_0 == 0:
            return float(s_obs)
        return float(s_obs + f_0 * (1 - (1 - f_1 / (n * f_0 + f_1)) ** m_star))
    if q == 1:
        h_obs = shannon_entropy(obs_species_counts)
        h_est = estimate_entropy(obs_species_counts, n)
        return float(math.exp(n / (n + m_star) * h_obs + m_star / (n + m_star) * h_est))
    if n < 2:
        return float(s_obs)
    size = n + m_star
    return float(1 / (1 / size + (1 - 1 / size) * _sum_squared_unbiased(counts, n)))


def sample_coverage_at(obs_species_counts: dict, m: int) -> float:
    """
    computes the expected sample coverage of a sample of m individuals
    :param obs_species_counts: the species with corresponding abundance counts
    :param m: the sample size
    :return: the expected coverage
    """
    if m < 0:
        raise ValueError("Sample size must be non-negative, got " + str(m))
    counts = _counts(obs_species_counts)
    n = int(counts.sum())
    if n == 0 or m == 0:
        return 0.0
    if m == n:
        return float(coverage(obs_species_counts, n))
    if m < n:
        missed = np.zeros(len(counts))
        possible = n - counts >= m
        missed[possible] = np.exp(_log_binom(n - counts[possible], m) - _log_binom(n - 1, m))
        return float(1 - np.sum(counts / n * missed))

    f_1 = get_singletons(obs_species_counts)
    f_2 = get_doubletons(obs_species_counts)
    if f_1 == 0:
        return 1.0
    if f_2 > 0:
        ratio = (n - 1) * f_1 / ((n - 1) * f_1 + 2 * f_2)
    else:
        ratio = 1.0 if n == 1 else (n - 1) * (f_1 - 1) / ((n - 1) * (f_1 - 1) + 2)
    return float(1 - f_1 / n * ratio ** (m - n + 1))


def _sample_sizes(n: int, endpoint: int, knots: int) -> np.ndarray:
    if knots < 2:
        raise ValueError("At least two knots are needed for a curve, got " + str(knots))
    sizes = np.unique(np.round(np.linspace(1, endpoint, knots)).astype(int))
    if n <= endpoint:
        sizes = np.unique(np.append(sizes, n))
    return sizes


def _method(m: int, n: int) -> str:
    if m < n:
        return "interpolated"
    if m == n:
        return "observed"
    return "extrapolated"


def rarefaction_curve(obs_species_counts: dict, q_values=(0, 1, 2), endpoint: int = None,
                      knots: int = 40) -> pd.DataFrame:
    """
    computes the sample-size-based rarefaction and extrapolation curve of Hill numbers for abundance data
    :param obs_species_counts: the species with corresponding abundance counts
    :param q_values: the orders to compute, a subset of (0, 1, 2)
    :param endpoint: the largest sample size, by default twice the reference sample size
    :param knots: the approximate number of sample sizes along the curve
    :return: a data frame with columns m, method, order, qD and SC
    """
    n = int(get_total_species_count(obs_species_counts))
    if n == 0:
        raise ValueError("Cannot rarefy an empty sample")
    endpoint = 2 * n if endpoint is None else endpoint
    rows = []
    for m in _sample_sizes(n, endpoint, knots):
        sc = sample_coverage_at(obs_species_counts, int(m))
        for q in q_values:
            rows.append([int(m), _method(m, n), q, rarefy_hill_number(q, obs_species_counts, int(m)), sc])
    return pd.DataFrame(rows, columns=["m", "method", "order", "qD", "SC"])


def rarefy_richness_incidence(obs_species_counts: dict, sample_size: int, t: int) -> float:
    """
    computes the expected number of species in t sampling units (sample-based rarefaction, Colwell et al. 2012),
    extrapolated with the Chao2 estimator for t beyond the number of sampling units
    :param obs_species_counts: the species with corresponding incidence counts
    :param sample_size: the number of sampling units of the reference sample
    :param t: the number of sampling units
    :return: the expected species richness
    """
    if t < 0:
        raise ValueError("Number of sampling units must be non-negative, got " + str(t))
    counts = _counts(obs_species_counts)
    s_obs = len(counts)
    if sample_size == 0 or t == 0 or s_obs == 0:
        return 0.0
    if t == sample_size:
        return float(s_obs)
    if t < sample_size:
        missed = np.zeros(s_obs)
        possible = sample_size - counts >= t
        missed[possible] = np.exp(_log_binom(sample_size - counts[possible], t) - _log_binom(sample_size, t))
        return float(np.sum(1 - missed))

    q_1 = get_singletons(obs_species_counts)
    q_2 = get_doubletons(obs_species_counts)
    q_0 = _undetected_species(q_1, q_2, sample_size)
    if q_0 == 0:
        return float(s_obs)
    return float(s_obs + q_0 * (1 - (1 - q_1 / (sample_size * q_0 + q_1)) ** (t - sample_size)))


def accumulation_curve(obs_species_counts: dict, sample_size: int, endpoint: int = None,
                       knots: int = 40) -> pd.DataFrame:
    """
    computes the sample-based species accumulation curve for incidence data
    :param obs_species_counts: the species with corresponding incidence counts
    :param sample_size: the number of sampling units
    :param endpoint: the largest number of sampling units, by default twice the reference
    :param knots: the approximate number of points along the curve
    :return: a data frame with columns t, method, order and qD
    """
    if sample_size == 0:
        raise ValueError("Cannot rarefy an empty sample")
    endpoint = 2 * sample_size if endpoint is None else endpoint
    return pd.DataFrame([[int(t), _method(t, sample_size), 0,
                          rarefy_richness_incidence(obs_species_counts, sample_size, int(t))]
                         for t in _sample_sizes(sample_size, endpoint, knots)],
                        columns=["t", "method", "order", "qD"])


def expected_richness(matrix: pd.DataFrame, depth: int) -> pd.Series:
    """
    computes the rarefied species richness of every plot of a count community matrix at a common depth
    :param matrix: plot-by-species matrix of integer counts
    :param depth: the number of individuals per plot
    :return: the expected richness per plot, NaN for plots with fewer individuals than depth
    """
    result = {}
    for plot_code, row in matrix.iterrows():
        counts = row[row > 0].to_dict()
        if get_total_species_count(counts) < depth:
            result[plot_code] = np.nan
        else:
            result[plot_code] = rarefy_hill_number(0, counts, depth)
    return pd.Series(result, name="rarefied_richness")


def rarefy(matrix: pd.DataFrame, depth: int, seed: int = None, verbose: bool = True) -> pd.DataFrame:
    """
    randomly subsamples every plot of a count community matrix to the same number of individuals, drawing without
    replacement. Plots with fewer individuals than depth are left out
    :param matrix: plot-by-species matrix of integer counts
    :param depth: the number of individuals kept per plot
    :param seed: seed for the random number generator
    :param verbose: report plots that were left out
    :return: the rarefied community matrix
    """
    if depth <= 0:
        raise ValueError("Rarefaction depth must be positive, got " + str(depth))
    values = matrix.to_numpy()
    if np.any(values != np.round(values)):
        raise ValueError("Rarefaction requires integer counts")
    rng = np.random.default_rng(seed)
    totals = values.sum(axis=1)
    keep = totals >= depth
    if verbose and not keep.all():
        print("Dropping " + str(int((~keep).sum())) + " plot(s) with fewer than " + str(depth) + " individuals: "
              + ", ".join(str(p) for p in matrix.index[~keep]))
    rarefied = [rng.multivariate_hypergeometric(row.astype(np.int64), depth) for row in values[keep]]
    return pd.DataFrame(np.array(rarefied).reshape(-1, values.shape[1]), index=matrix.index[keep],
                        columns=matrix.columns)
