import numpy as np
import pandas as pd


def _trait_dissimilarity(values: pd.Series) -> np.ndarray:
    """
    computes the per-trait dissimilarity of all species pairs in [0, 1], NaN where a value is missing
    """
    if isinstance(values.dtype, pd.CategoricalDtype) and values.cat.ordered:
        ranks = values.cat.codes.to_numpy(dtype=float)
        ranks[ranks < 0] = np.nan
        return _range_normalized(ranks)
    if pd.api.types.is_bool_dtype(values) or not pd.api.types.is_numeric_dtype(values):
        x = values.to_numpy(dtype=object)
        missing = pd.isna(values).to_numpy()
        d = (x[:, None] != x[None, :]).astype(float)
        d[missing, :] = np.nan
        d[:, missing] = np.nan
        return d
    return _range_normalized(values.to_numpy(dtype=float))


def _range_normalized(x: np.ndarray) -> np.ndarray:
    spread = np.nanmax(x) - np.nanmin(x) if np.isfinite(x).any() else 0
    d = np.abs(x[:, None] - x[None, :])
    if spread == 0:
        return np.where(np.isnan(d), np.nan, 0.0)
    return d / spread


def gower_distance(traits: pd.DataFrame, weights: dict = None) -> pd.DataFrame:
    """
    computes the Gower dissimilarity between species with mixed trait types (Gower 1971, Podani 1999 for ordinal
    traits). Numeric traits are normalized by their range, ordered categorical traits are compared by their ranks and
    all other traits score 0 for equal and 1 for different values. Traits missing for either species of a pair are
    left out of the average for that pair
    :param traits: species-by-trait data frame
    :param weights: optional mapping of trait to weight, 1 for unlisted traits
    :return: square distance data frame labelled by species, NaN for pairs without any shared trait
    """
    if traits.shape[1] == 0:
        raise ValueError("Gower distance requires at least one trait")
    weights = weights or {}
    n = len(traits)
    numerator = np.zeros((n, n))
    denominator = np.zeros((n, n))
    for column in traits.columns:
        w = weights.get(column, 1.0)
        if w < 0:
            raise ValueError("Trait weights must be non-negative, got " + str(w) + " for " + str(column))
        d = _trait_dissimilarity(traits[column])
        known = ~np.isnan(d)
        numerator += np.where(known, w * np.nan_to_num(d), 0)
        denominator += np.where(known, w, 0)

    distance = np.full((n, n), np.nan)
    shared = denominator > 0
    distance[shared] = numerator[shared] / denominator[shared]
    np.fill_diagonal(distance, 0)
    return pd.DataFrame(distance, index=traits.index, columns=traits.index)
