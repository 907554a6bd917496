"""
Reading of vegetation survey files and construction of the plot-by-species community matrix.

A survey consists of three delimiter-separated files with a header row:

* plot metadata, one row per plot, keyed by ``plot_code``
* species observations, one row per species and plot (``plot_code``, ``genus_species`` and a value column, by
  default ``cover`` as fraction of the plot area)
* species trait observations, keyed by ``genus_species``, possibly several rows per species
"""
from dataclasses import dataclass

import numpy as np
import pandas as pd

PLOT_CODE = "plot_code"
SPECIES = "genus_species"


@dataclass
class Survey:
    plots: pd.DataFrame
    observations: pd.DataFrame
    matrix: pd.DataFrame
    traits: pd.DataFrame | None = None

    @property
    def no_plots(self) -> int:
        return self.matrix.shape[0]

    @property
    def no_species(self) -> int:
        return self.matrix.shape[1]


def normalize_species_name(name) -> str | None:
    """
    normalizes a species name to the Genus_species form, e.g. 'festuca  Rubra' becomes 'Festuca_rubra'
    """
    if pd.isna(name):
        return None
    parts = str(name).replace("_", " ").split()
    if len(parts) == 0:
        return None
    return "_".join([parts[0].capitalize()] + [p.lower() for p in parts[1:]])


def read_plots(path, sep: str = ",") -> pd.DataFrame:
    """
    reads the plot metadata
    :param path: path to the delimiter-separated file
    :param sep: the delimiter
    :return: the metadata, indexed by plot code
    """
    plots = pd.read_csv(path, sep=sep)
    if PLOT_CODE not in plots.columns:
        raise ValueError("Plot metadata lacks the '" + PLOT_CODE + "' column")
    plots[PLOT_CODE] = plots[PLOT_CODE].astype(str).str.strip()
    duplicated = plots[PLOT_CODE][plots[PLOT_CODE].duplicated()].unique()
    if len(duplicated) > 0:
        raise ValueError("Duplicate plot codes in plot metadata: " + ", ".join(duplicated))
    return plots.set_index(PLOT_CODE)


def read_observations(path, sep: str = ",", value_column: str = "cover") -> pd.DataFrame:
    """
    reads the per-plot species observations and normalizes species names
    :param path: path to the delimiter-separated file
    :param sep: the delimiter
    :param value_column: the column holding cover fractions or counts
    :return: long table with columns plot_code, genus_species and the value column
    """
    observations = pd.read_csv(path, sep=sep)
    missing = [c for c in (PLOT_CODE, SPECIES, value_column) if c not in observations.columns]
    if missing:
        raise ValueError("Species observations lack the column(s): " + ", ".join(missing))
    observations = observations[[PLOT_CODE, SPECIES, value_column]].copy()
    observations[PLOT_CODE] = observations[PLOT_CODE].where(observations[PLOT_CODE].isna(),
                                                            observations[PLOT_CODE].astype(str).str.strip())
    observations[SPECIES] = observations[SPECIES].map(normalize_species_name)
    observations[value_column] = pd.to_numeric(observations[value_column], errors="coerce")
    return observations


def _mode(values: pd.Series):
    modes = values.dropna().mode()
    return modes.iloc[0] if len(modes) > 0 else np.nan


def aggregate_traits(trait_observations: pd.DataFrame) -> pd.DataFrame:
    """
    aggregates trait observations to one row per species, numeric traits by mean, all others by mode
    """
    grouped = trait_observations.groupby(SPECIES)
    aggregated = {}
    for column in trait_observations.columns:
        if column == SPECIES:
            continue
        if pd.api.types.is_numeric_dtype(trait_observations[column]):
            aggregated[column] = grouped[column].mean()
        else:
            aggregated[column] = grouped[column].agg(_mode)
    return pd.DataFrame(aggregated).sort_index()


def read_traits(path, sep: str = ",") -> pd.DataFrame:
    """
    reads species trait observations and aggregates them per species
    :param path: path to the delimiter-separated file
    :param sep: the delimiter
    :return: the traits, indexed by species
    """
    traits = pd.read_csv(path, sep=sep)
    if SPECIES not in traits.columns:
        raise ValueError("Trait observations lack the '" + SPECIES + "' column")
    traits[SPECIES] = traits[SPECIES].map(normalize_species_name)
    traits = traits[traits[SPECIES].notna()]
    return aggregate_traits(traits)


def filter_observations(observations: pd.DataFrame, plots: pd.DataFrame = None, value_column: str = "cover",
                        cover: bool = True, verbose: bool = True) -> pd.DataFrame:
    """
    removes malformed observations: rows with missing values, unknown plot codes, negative values and, for cover
    data, values above 1
    :param observations: the long observation table
    :param plots: the plot metadata used to check plot codes, skipped if None
    :param value_column: the column holding cover fractions or counts
    :param cover: whether values are cover fractions
    :param verbose: report the number of removed rows per reason
    :return: the filtered observations
    """
    checks = [("missing values", observations[[PLOT_CODE, SPECIES, value_column]].isna().any(axis=1))]
    if plots is not None:
        checks.append(("unknown plot code", ~observations[PLOT_CODE].isin(plots.index)))
    checks.append(("negative value", observations[value_column] < 0))
    if cover:
        checks.append(("cover above 1", observations[value_column] > 1))

    dropped = pd.Series(False, index=observations.index)
    for reason, mask in checks:
        mask = mask.fillna(False) & ~dropped
        if verbose and mask.any():
            print("Dropping %d observation(s): %s" % (int(mask.sum()), reason))
        dropped |= mask
    return observations[~dropped].copy()


def community_matrix(observations: pd.DataFrame, value_column: str = "cover", aggfunc: str = "max") -> pd.DataFrame:
    """
    reshapes the long observation table into a plot-by-species matrix with zeros for absent species
    :param observations: the long observation table
    :param value_column: the column holding cover fractions or counts
    :param aggfunc: how repeated records of a species within a plot are combined, 'max' for cover and 'sum' for
    counts
    :return: the community matrix, rows and columns sorted
    """
    matrix = observations.pivot_table(index=PLOT_CODE, columns=SPECIES, values=value_column, aggfunc=aggfunc,
                                      fill_value=0)
    matrix.columns.name = None
    return matrix.sort_index().sort_index(axis=1)


def validate_community_matrix(matrix: pd.DataFrame, cover: bool = False) -> pd.DataFrame:
    """
    checks the invariants of a community matrix: unique plot and species identifiers, finite non-negative entries
    and, for cover data, entries of at most 1
    :raises ValueError: if an invariant is violated
    :return: the unchanged matrix
    """
    if matrix.index.has_duplicates:
        raise ValueError("Duplicate plot codes: " + ", ".join(map(str, matrix.index[matrix.index.duplicated()])))
    if matrix.columns.has_duplicates:
        raise ValueError("Duplicate species: " + ", ".join(map(str, matrix.columns[matrix.columns.duplicated()])))
    values = matrix.to_numpy(dtype=float)
    if not np.isfinite(values).all():
        raise ValueError("Community matrix contains missing or infinite values")
    if (values < 0).any():
        raise ValueError("Community matrix contains negative values")
    if cover and (values > 1).any():
        raise ValueError("Cover fractions must lie in [0, 1]")
    return matrix


def to_incidence(matrix: pd.DataFrame) -> pd.DataFrame:
    return (matrix > 0).astype(int)


def load_survey(plots_path, observations_path, traits_path=None, sep: str = ",", value_column: str = "cover",
                cover: bool = True, verbose: bool = True) -> Survey:
    """
    reads, filters and reshapes a survey
    :param plots_path: path to the plot metadata
    :param observations_path: path to the species observations
    :param traits_path: path to the trait observations, optional
    :param sep: the delimiter of all files
    :param value_column: the column of the observations holding cover fractions or counts
    :param cover: whether values are cover fractions, counts otherwise
    :param verbose: report removed observations
    :return: the survey
    """
    plots = read_plots(plots_path, sep=sep)
    observations = filter_observations(read_observations(observations_path, sep=sep, value_column=value_column),
                                       plots, value_column=value_column, cover=cover, verbose=verbose)
    matrix = community_matrix(observations, value_column=value_column, aggfunc="max" if cover else "sum")
    validate_community_matrix(matrix, cover=cover)
    traits = read_traits(traits_path, sep=sep) if traits_path is not None else None
    if verbose:
        print("Loaded %d plots with %d species from %d observations" % (matrix.shape[0], matrix.shape[1],
                                                                          len(observations)))
    return Survey(plots=plots, observations=observations, matrix=matrix, traits=traits)


def group_matrix(survey: Survey, by: str) -> dict:
    """
    splits the community matrix of a survey by a plot metadata column. Species absent from a group are dropped
    :param survey: the survey
    :param by: the metadata column
    :return: mapping of group to community matrix
    """
    if by not in survey.plots.columns:
        raise ValueError("Unknown plot metadata column: " + by)
    groups = survey.plots.loc[survey.matrix.index, by]
    result = {}
    for group in sorted(groups.dropna().unique()):
        sub = survey.matrix.loc[groups[groups == group].index]
        result[group] = sub.loc[:, (sub > 0).any(axis=0)]
    return result
