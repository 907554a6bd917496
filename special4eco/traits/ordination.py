from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.decomposition import PCA
from sklearn.preprocessing import StandardScaler


@dataclass
class OrdinationResult:
    """Coordinates of an ordination with the share of variation explained by each axis."""

    scores: pd.DataFrame
    explained_variance_ratio: np.ndarray
    loadings: pd.DataFrame | None = None

    @property
    def axes(self) -> list:
        return list(self.scores.columns)


def _axis_names(prefix: str, n: int) -> list:
    return [prefix + str(i + 1) for i in range(n)]


def trait_pca(traits: pd.DataFrame, n_components: int = None) -> OrdinationResult:
    """
    principal component analysis of the numeric traits, scaled to zero mean and unit variance. Species with missing
    values are dropped
    :param traits: species-by-trait data frame
    :param n_components: number of axes to keep, all by default
    :return: species scores, trait loadings and explained variance
    """
    numeric = traits.select_dtypes(include="number").dropna()
    if numeric.shape[1] == 0:
        raise ValueError("Trait PCA requires at least one numeric trait")
    if numeric.shape[0] < 2:
        raise ValueError("Trait PCA requires at least two species with complete numeric traits")

    scaled = StandardScaler().fit_transform(numeric.to_numpy(dtype=float))
    pca = PCA(n_components=n_components)
    scores = pca.fit_transform(scaled)
    axes = _axis_names("PC", scores.shape[1])
    return OrdinationResult(scores=pd.DataFrame(scores, index=numeric.index, columns=axes),
                            explained_variance_ratio=pca.explained_variance_ratio_,
                            loadings=pd.DataFrame(pca.components_.T, index=numeric.columns, columns=axes))


def hellinger(matrix: pd.DataFrame) -> pd.DataFrame:
    """
    Hellinger transformation of a community matrix, the square root of the relative abundances per plot. Plots
    without species are dropped
    """
    totals = matrix.sum(axis=1)
    matrix = matrix[totals > 0]
    return np.sqrt(matrix.div(totals[totals > 0], axis=0))


def community_pca(matrix: pd.DataFrame, transform: str | None = "hellinger",
                  n_components: int = None) -> OrdinationResult:
    """
    principal component analysis of a community matrix, by default on Hellinger-transformed abundances
    :param matrix: plot-by-species community matrix
    :param transform: 'hellinger' or None for the raw values
    :param n_components: number of axes to keep, all by default
    :return: plot scores, species loadings and explained variance
    """
    if transform == "hellinger":
        data = hellinger(matrix)
    elif transform is None:
        data = matrix
    else:
        raise ValueError("Unknown transformation '" + str(transform) + "', use 'hellinger' or None")
    if data.shape[0] < 2:
        raise ValueError("Community PCA requires at least two plots")

    pca = PCA(n_components=n_components)
    scores = pca.fit_transform(data.to_numpy(dtype=float))
    axes = _axis_names("PC", scores.shape[1])
    return OrdinationResult(scores=pd.DataFrame(scores, index=data.index, columns=axes),
                            explained_variance_ratio=pca.explained_variance_ratio_,
                            loadings=pd.DataFrame(pca.components_.T, index=data.columns, columns=axes))


def principal_coordinates(distance: pd.DataFrame, n_components: int = None) -> OrdinationResult:
    """
    principal coordinate analysis (classical metric scaling) of a distance matrix. Only axes with positive
    eigenvalues are kept
    :param distance: square distance data frame
    :param n_components: number of axes to keep, all positive axes by default
    :return: coordinates and the share of the positive eigenvalues of each axis
    """
    d = distance.to_numpy(dtype=float)
    if not np.isfinite(d).all():
        raise ValueError("Distance matrix contains missing or infinite values")
    n = len(d)
    centering = np.eye(n) - np.full((n, n), 1 / n)
    b = -0.5 * centering @ (d ** 2) @ centering

    eigenvalues, eigenvectors = np.linalg.eigh(b)
    order = np.argsort(eigenvalues)[::-1]
    eigenvalues, eigenvectors = eigenvalues[order], eigenvectors[:, order]
    positive = eigenvalues > 1e-10 * max(1.0, abs(eigenvalues).max())
    eigenvalues, eigenvectors = eigenvalues[positive], eigenvectors[:, positive]
    explained = eigenvalues / eigenvalues.sum() if len(eigenvalues) > 0 else eigenvalues

    if n_components is not None:
        eigenvalues, eigenvectors, explained = eigenvalues[:n_components], eigenvectors[:, :n_components], \
            explained[:n_components]
    coordinates = eigenvectors * np.sqrt(eigenvalues)
    return OrdinationResult(scores=pd.DataFrame(coordinates, index=distance.index,
                                                columns=_axis_names("PCo", coordinates.shape[1])),
                            explained_variance_ratio=explained)
