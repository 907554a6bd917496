from typing import Callable

import pandas as pd


def _present(plot: pd.Series | dict) -> list:
    items = plot.items() if isinstance(plot, (pd.Series, dict)) else plot
    return [(species, value) for species, value in items if pd.notna(value) and value > 0]


def retrieve_species_abundance(plot: pd.Series | dict) -> list:
    """
    retrieves the species of a plot as individual occurrences, each species repeated according to its count
    :param plot: mapping of species to counts
    :return: list of observed species, one entry per individual
    """
    return [species for species, value in _present(plot) for _ in range(int(round(value)))]


def retrieve_species_occurrence(plot: pd.Series | dict) -> list:
    """
    retrieves the species present in a plot, each species once
    :param plot: mapping of species to counts or cover values
    :return: list of present species
    """
    return [species for species, _ in _present(plot)]


def retrieve_species_cover_units(plot: pd.Series | dict, unit: float = 0.01) -> list:
    """
    retrieves the species of a plot repeated according to their cover, measured in multiples of unit. A species
    that is present is retrieved at least once
    :param plot: mapping of species to cover fractions
    :param unit: the cover that corresponds to one occurrence, one percent by default
    :return: list of observed species, one entry per cover unit
    """
    if unit <= 0:
        raise ValueError("Cover unit must be positive, got " + str(unit))
    return [species for species, value in _present(plot) for _ in range(max(1, int(round(value / unit))))]


def genus_of(species: str) -> str:
    return species.split("_")[0]


def retrieve_genus(plot: pd.Series | dict, retrieval: Callable = retrieve_species_abundance) -> list:
    """
    retrieves the genera of a plot by mapping the occurrences of a species retrieval function to their genus
    :param plot: mapping of species to counts or cover values
    :param retrieval: the species retrieval function
    :return: list of observed genera
    """
    return [genus_of(species) for species in retrieval(plot)]
