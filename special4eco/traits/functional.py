"""
Functional diversity of plots from species traits: dendrogram-based FD (Petchey & Gaston 2002), Rao's quadratic
entropy, community weighted means and functional dispersion (Laliberte & Legendre 2010).
"""
import numpy as np
import pandas as pd

from special4eco.phylogeny.dendrogram import Dendrogram
from special4eco.traits.ordination import principal_coordinates


def _check_species(species, distance: pd.DataFrame) -> None:
    missing = [s for s in species if s not in distance.index]
    if missing:
        raise ValueError("No trait distances for species: " + ", ".join(map(str, missing)))


def _relative(row: pd.Series) -> pd.Series:
    row = row[row > 0]
    return row / row.sum() if len(row) > 0 else row


def functional_dendrogram(distance: pd.DataFrame, method: str = "average") -> Dendrogram:
    """
    clusters species by their trait distances, UPGMA by default
    """
    return Dendrogram.from_distance(distance, method=method)


def functional_diversity(dendrogram: Dendrogram, species, include_root: bool = True) -> float:
    """
    computes the FD of a set of species, the total branch length of the functional dendrogram connecting them
    """
    return dendrogram.total_branch_length(species, include_root=include_root)


def community_functional_diversity(matrix: pd.DataFrame, dendrogram: Dendrogram,
                                   include_root: bool = True) -> pd.Series:
    """
    computes FD for every plot of a community matrix
    """
    return pd.Series([functional_diversity(dendrogram, row[row > 0].index, include_root=include_root)
                      for _, row in matrix.iterrows()], index=matrix.index, name="FD")


def rao_quadratic_entropy(abundances: pd.Series | dict, distance: pd.DataFrame) -> float:
    """
    computes Rao's quadratic entropy Q = sum_ij d_ij p_i p_j, the expected trait distance of two individuals drawn
    at random
    :param abundances: mapping of species to abundance or cover
    :param distance: square species distance data frame
    :return: Rao's Q, 0 for an empty plot
    """
    p = _relative(pd.Series(abundances, dtype=float))
    if len(p) == 0:
        return 0.0
    _check_species(p.index, distance)
    d = distance.loc[p.index, p.index].to_numpy(dtype=float)
    return float(p.to_numpy() @ d @ p.to_numpy())


def community_rao(matrix: pd.DataFrame, distance: pd.DataFrame) -> pd.Series:
    return pd.Series([rao_quadratic_entropy(row, distance) for _, row in matrix.iterrows()], index=matrix.index,
                     name="rao_q")


def community_weighted_means(matrix: pd.DataFrame, traits: pd.DataFrame) -> pd.DataFrame:
    """
    computes the abundance-weighted mean of every numeric trait per plot. Species without a value for a trait are
    left out and the weights of the remaining species are renormalized
    :param matrix: plot-by-species community matrix
    :param traits: species-by-trait data frame
    :return: plot-by-trait data frame, NaN where no present species has a value
    """
    numeric = traits.select_dtypes(include="number")
    rows = []
    for _, row in matrix.iterrows():
        p = _relative(row)
        values = numeric.reindex(p.index)
        means = {}
        for column in numeric.columns:
            known = values[column].notna()
            weights = p[known]
            means[column] = float((weights * values[column][known]).sum() / weights.sum()) \
                if weights.sum() > 0 else np.nan
        rows.append(means)
    return pd.DataFrame(rows, index=matrix.index, columns=numeric.columns)


def functional_dispersion(matrix: pd.DataFrame, distance: pd.DataFrame) -> pd.Series:
    """
    computes FDis, the abundance-weighted mean distance of the species of a plot to their weighted centroid in the
    principal coordinate space of the trait distances
    :param matrix: plot-by-species community matrix
    :param distance: square species distance data frame
    :return: FDis per plot, 0 for plots with less than two species
    """
    _check_species([s for s in matrix.columns if (matrix[s] > 0).any()], distance)
    coordinates = principal_coordinates(distance).scores
    result = []
    for _, row in matrix.iterrows():
        p = _relative(row)
        if len(p) < 2:
            result.append(0.0)
            continue
        x = coordinates.loc[p.index].to_numpy()
        centroid = p.to_numpy() @ x
        result.append(float(p.to_numpy() @ np.sqrt(((x - centroid) ** 2).sum(axis=1))))
    return pd.Series(result, index=matrix.index, name="FDis")
