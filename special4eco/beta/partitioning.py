"""
Multiplicative partitioning of gamma diversity into alpha and beta components (Jost 2007) together with the
normalized overlap measures derived from beta (Chao, Chiu & Jost 2012).
"""
import math
from typing import Iterable

import numpy as np
import pandas as pd

from special4eco.estimation.metrics import hill_number


def _relative_abundances(matrix: pd.DataFrame) -> tuple:
    values = matrix.to_numpy(dtype=float)
    totals = values.sum(axis=1)
    values = values[totals > 0]
    totals = totals[totals > 0]
    if len(totals) < 2:
        raise ValueError("Beta diversity requires at least two plots with non-zero totals, got " + str(len(totals)))
    return values / totals[:, None], totals


def _plot_weights(totals: np.ndarray, weights: str) -> np.ndarray:
    if weights == "equal":
        return np.full(len(totals), 1 / len(totals))
    if weights == "size":
        return totals / totals.sum()
    raise ValueError("Unknown plot weighting '" + str(weights) + "', use 'equal' or 'size'")


def _alpha(q: float, p: np.ndarray, w: np.ndarray) -> float:
    if q == 1:
        terms = np.where(p > 0, p * np.log(np.where(p > 0, p, 1)), 0)
        return math.exp(-float((w[:, None] * terms).sum()))
    wq = w ** q
    sums = np.where(p > 0, np.where(p > 0, p, 1) ** q, 0).sum(axis=1)
    return float(((wq * sums).sum() / wq.sum()) ** (1 / (1 - q)))


def overlap_sorensen(q: float, beta: float, no_plots: int) -> float:
    """
    computes the Sorensen-type overlap C_qN, 1 for identical and 0 for completely distinct plots
    """
    if q == 1:
        return 1 - math.log(beta) / math.log(no_plots)
    return ((1 / beta) ** (q - 1) - (1 / no_plots) ** (q - 1)) / (1 - (1 / no_plots) ** (q - 1))


def overlap_jaccard(q: float, beta: float, no_plots: int) -> float:
    """
    computes the Jaccard-type overlap U_qN, 1 for identical and 0 for completely distinct plots
    """
    if q == 1:
        return 1 - math.log(beta) / math.log(no_plots)
    return ((1 / beta) ** (1 - q) - (1 / no_plots) ** (1 - q)) / (1 - (1 / no_plots) ** (1 - q))


def hill_partition(matrix: pd.DataFrame, q: float, weights: str = "equal") -> dict:
    """
    partitions the gamma diversity of order q of a community matrix into alpha and beta, gamma = alpha * beta.
    Plots with zero totals are ignored
    :param matrix: plot-by-species community matrix of counts or cover
    :param q: the order of the Hill numbers
    :param weights: 'equal' weights for all plots or 'size' for weights proportional to the plot totals
    :return: dictionary with order, number of plots, gamma, alpha, beta, the Sorensen- and Jaccard-type
    dissimilarities 1-C_qN and 1-U_qN and, for q=1, the additive Shannon beta
    """
    if q < 0:
        raise ValueError("Hill numbers are defined for non-negative orders only, got " + str(q))
    p, totals = _relative_abundances(matrix)
    w = _plot_weights(totals, weights)
    no_plots = len(totals)

    pooled = (w[:, None] * p).sum(axis=0)
    gamma = hill_number(q, dict(enumerate(pooled)))
    alpha = _alpha(q, p, w)
    beta = gamma / alpha

    return {"order": q,
            "no_plots": no_plots,
            "gamma": gamma,
            "alpha": alpha,
            "beta": beta,
            "sorensen_dissimilarity": 1 - overlap_sorensen(q, beta, no_plots),
            "jaccard_dissimilarity": 1 - overlap_jaccard(q, beta, no_plots),
            "shannon_beta": math.log(gamma) - math.log(alpha) if q == 1 else np.nan}


def partition_profile(matrix: pd.DataFrame, q_values: Iterable[float] = (0, 1, 2),
                      weights: str = "equal") -> pd.DataFrame:
    """
    computes the multiplicative partition for several orders
    :return: a data frame with one row per order
    """
    return pd.DataFrame([hill_partition(matrix, q, weights) for q in q_values]).set_index("order")


def whittaker_beta(matrix: pd.DataFrame) -> float:
    """
    computes Whittaker's beta diversity, the total number of species divided by the mean plot richness
    """
    incidence = matrix.to_numpy(dtype=float) > 0
    mean_richness = incidence.sum(axis=1).mean() if len(incidence) > 0 else 0
    if mean_richness == 0:
        raise ValueError("Whittaker's beta is undefined for a community matrix without species")
    return float(incidence.any(axis=0).sum() / mean_richness)
