"""
Bootstrap confidence intervals for the diversity and completeness estimates (Chao et al. 2014, appendix S2).

From the reference sample, a bootstrap assemblage is constructed: detected species get their relative frequency
adjusted by the estimated sample coverage, and the estimated number of undetected species shares the remaining
coverage deficit evenly. Replicate samples of the reference sample size are drawn from this assemblage and the
estimators are recomputed on each replicate.
"""
import math

import numpy as np

from special4eco.estimation.metrics import get_singletons, get_doubletons, get_total_species_count, \
    hill_number_asymptotic, completeness, coverage

# two-sided 95% normal quantile
Z_95 = 1.96


def _undetected(f_1: int, f_2: int, sample_size: int) -> int:
    if f_2 > 0:
        f_0 = (sample_size - 1) / sample_size * f_1 ** 2 / (2 * f_2)
    else:
        f_0 = (sample_size - 1) / sample_size * f_1 * (f_1 - 1) / 2
    return int(math.ceil(f_0))


def _profile(obs_species_counts: dict, sample_size: int, abundance: bool) -> list:
    return [hill_number_asymptotic(0, obs_species_counts, sample_size, abundance=abundance),
            hill_number_asymptotic(1, obs_species_counts, sample_size, abundance=abundance),
            hill_number_asymptotic(2, obs_species_counts, sample_size, abundance=abundance),
            completeness(obs_species_counts),
            coverage(obs_species_counts, sample_size)]


def _half_widths(profiles: list) -> tuple:
    return tuple(float(Z_95 * x) for x in np.std(np.array(profiles, dtype=float), axis=0, ddof=1))


def bootstrap_assemblage_abundance(obs_species_counts: dict, sample_size: int) -> np.ndarray:
    """
    constructs the estimated species detection probabilities for abundance data
    :param obs_species_counts: the species with corresponding abundance counts
    :param sample_size: the number of individuals
    :return: probabilities of the detected species followed by those of the undetected species, summing to 1
    """
    x = np.array([v for v in obs_species_counts.values() if v > 0], dtype=float)
    n = sample_size
    f_1 = get_singletons(obs_species_counts)
    f_2 = get_doubletons(obs_species_counts)
    c_hat = coverage(obs_species_counts, n)

    weights = (x / n) * (1 - x / n) ** n
    lam = (1 - c_hat) / weights.sum() if weights.sum() > 0 else 0
    p = (x / n) * (1 - lam * (1 - x / n) ** n)

    f_0 = _undetected(f_1, f_2, n)
    if f_0 > 0 and c_hat < 1:
        p = np.concatenate([p, np.full(f_0, (1 - c_hat) / f_0)])
    p = np.clip(p, 0, None)
    return p / p.sum()


def bootstrap_assemblage_incidence(obs_species_counts: dict, sample_size: int) -> np.ndarray:
    """
    constructs the estimated species detection probabilities per sampling unit for incidence data
    :param obs_species_counts: the species with corresponding incidence counts
    :param sample_size: the number of sampling units
    :return: detection probabilities of the detected species followed by those of the undetected species
    """
    y = np.array([v for v in obs_species_counts.values() if v > 0], dtype=float)
    t = sample_size
    u = get_total_species_count(obs_species_counts)
    q_1 = get_singletons(obs_species_counts)
    q_2 = get_doubletons(obs_species_counts)
    c_hat = coverage(obs_species_counts, t)

    weights = (y / t) * (1 - y / t) ** t
    lam = (u / t) * (1 - c_hat) / weights.sum() if weights.sum() > 0 else 0
    p = (y / t) * (1 - lam * (1 - y / t) ** t)

    q_0 = _undetected(q_1, q_2, t)
    if q_0 > 0 and c_hat < 1:
        p = np.concatenate([p, np.full(q_0, (u / t) * (1 - c_hat) / q_0)])
    return np.clip(p, 0, 1)


def get_bootstrap_ci_abundance(obs_species_counts: dict, sample_size: int, no_bootstrap_samples: int = 200,
                               seed: int | None = None) -> tuple:
    """
    computes the half-widths of the 95% bootstrap confidence intervals of the abundance-based estimates
    :param obs_species_counts: the species with corresponding abundance counts
    :param sample_size: the number of individuals
    :param no_bootstrap_samples: the number of bootstrap replicates
    :param seed: seed of the random number generator
    :return: half-widths for D0, D1, D2, C0 and C1
    """
    if sample_size <= 1 or get_total_species_count(obs_species_counts) == 0 or no_bootstrap_samples < 2:
        return 0, 0, 0, 0, 0
    rng = np.random.default_rng(seed)
    p = bootstrap_assemblage_abundance(obs_species_counts, sample_size)

    profiles = []
    for _ in range(no_bootstrap_samples):
        replicate = rng.multinomial(sample_size, p)
        counts = {i: int(x) for i, x in enumerate(replicate) if x > 0}
        profiles.append(_profile(counts, sample_size, abundance=True))
    return _half_widths(profiles)


def get_bootstrap_ci_incidence(obs_species_counts: dict, sample_size: int, no_bootstrap_samples: int = 200,
                               seed: int | None = None) -> tuple:
    """
    computes the half-widths of the 95% bootstrap confidence intervals of the incidence-based estimates
    :param obs_species_counts: the species with corresponding incidence counts
    :param sample_size: the number of non-empty sampling units
    :param no_bootstrap_samples: the number of bootstrap replicates
    :param seed: seed of the random number generator
    :return: half-widths for D0, D1, D2, C0 and C1
    """
    if sample_size <= 1 or get_total_species_count(obs_species_counts) == 0 or no_bootstrap_samples < 2:
        return 0, 0, 0, 0, 0
    rng = np.random.default_rng(seed)
    p = bootstrap_assemblage_incidence(obs_species_counts, sample_size)

    profiles = []
    for _ in range(no_bootstrap_samples):
        replicate = rng.binomial(sample_size, p)
        counts = {i: int(y) for i, y in enumerate(replicate) if y > 0}
        profiles.append(_profile(counts, sample_size, abundance=False))
    return _half_widths(profiles)
