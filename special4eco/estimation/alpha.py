from typing import Iterable

import pandas as pd

from special4eco.estimation.metrics import get_number_observed_species, shannon_entropy, simpson_index, \
    simpson_diversity, pielou_evenness, hill_number


def _plot_counts(row: pd.Series) -> dict:
    return row[row > 0].to_dict()


def alpha_diversity(matrix: pd.DataFrame) -> pd.DataFrame:
    """
    computes per-plot alpha diversity of a community matrix. Works on cover as well as on count data, as all
    indices depend on relative abundances only
    :param matrix: plot-by-species community matrix
    :return: a data frame indexed by plot with richness, shannon, gini_simpson, inverse_simpson, evenness and the
    Hill numbers D0, D1 and D2
    """
    rows = []
    for plot_code, row in matrix.iterrows():
        counts = _plot_counts(row)
        rows.append([plot_code,
                     get_number_observed_species(counts),
                     shannon_entropy(counts),
                     simpson_index(counts),
                     simpson_diversity(counts),
                     pielou_evenness(counts),
                     hill_number(0, counts),
                     hill_number(1, counts),
                     hill_number(2, counts)])
    return pd.DataFrame(rows, columns=["plot_code", "richness", "shannon", "gini_simpson", "inverse_simpson",
                                       "evenness", "D0", "D1", "D2"]).set_index("plot_code")


def hill_numbers(matrix: pd.DataFrame, q_values: Iterable[float] = (0, 0.5, 1, 1.5, 2, 3)) -> pd.DataFrame:
    """
    computes the diversity profile of every plot
    :param matrix: plot-by-species community matrix
    :param q_values: the orders of the Hill numbers
    :return: a plot-by-order data frame
    """
    q_values = list(q_values)
    return pd.DataFrame([[hill_number(q, _plot_counts(row)) for q in q_values] for _, row in matrix.iterrows()],
                        index=matrix.index, columns=q_values)
