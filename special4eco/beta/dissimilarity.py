from itertools import combinations

import numpy as np
import pandas as pd
from scipy.spatial.distance import pdist, squareform

from special4eco.beta.partitioning import hill_partition

METRICS = ["braycurtis", "jaccard", "sorensen"]


def pairwise_dissimilarity(matrix: pd.DataFrame, metric: str = "braycurtis") -> pd.DataFrame:
    """
    computes the dissimilarity between all pairs of plots. Bray-Curtis uses the abundances, Jaccard and Sorensen
    the presence/absence of species
    :param matrix: plot-by-species community matrix
    :param metric: one of 'braycurtis', 'jaccard' or 'sorensen'
    :return: square data frame labelled by plot code
    """
    if metric not in METRICS:
        raise ValueError("Unknown dissimilarity '" + str(metric) + "', use one of " + ", ".join(METRICS))
    if metric == "braycurtis":
        dists = pdist(matrix.to_numpy(dtype=float), metric="braycurtis")
    else:
        # Sorensen dissimilarity equals the Dice distance on presence/absence
        dists = pdist(matrix.to_numpy() > 0, metric="jaccard" if metric == "jaccard" else "dice")
    return pd.DataFrame(squareform(dists), index=matrix.index, columns=matrix.index)


def pairwise_hill_beta(matrix: pd.DataFrame, q: float = 0) -> pd.DataFrame:
    """
    computes the Sorensen-type dissimilarity 1-C_q2 of order q for all pairs of plots, NaN for pairs involving a
    plot without species
    """
    result = pd.DataFrame(0.0, index=matrix.index, columns=matrix.index)
    empty = matrix.sum(axis=1) <= 0
    for a, b in combinations(matrix.index, 2):
        if empty[a] or empty[b]:
            value = np.nan
        else:
            value = hill_partition(matrix.loc[[a, b]], q)["sorensen_dissimilarity"]
        result.loc[a, b] = value
        result.loc[b, a] = value
    return result


def baselga_partition(matrix: pd.DataFrame) -> dict:
    """
    partitions the multiple-site Sorensen dissimilarity into turnover (Simpson dissimilarity) and
    nestedness-resultant components (Baselga 2010)
    :param matrix: plot-by-species community matrix
    :return: dictionary with sorensen, turnover and nestedness
    """
    incidence = matrix.to_numpy() > 0
    if len(incidence) < 2:
        raise ValueError("Baselga partitioning requires at least two plots")
    s_total = incidence.any(axis=0).sum()
    a = incidence.sum(axis=1).sum() - s_total

    sum_min, sum_max = 0, 0
    for i, j in combinations(range(len(incidence)), 2):
        b_ij = int((incidence[i] & ~incidence[j]).sum())
        b_ji = int((incidence[j] & ~incidence[i]).sum())
        sum_min += min(b_ij, b_ji)
        sum_max += max(b_ij, b_ji)

    if sum_min + sum_max + a == 0:
        raise ValueError("Baselga partitioning is undefined for a community matrix without species")
    sorensen = (sum_min + sum_max) / (2 * a + sum_min + sum_max)
    turnover = sum_min / (sum_min + a) if sum_min + a > 0 else 0.0
    return {"sorensen": sorensen, "turnover": turnover, "nestedness": sorensen - turnover}
