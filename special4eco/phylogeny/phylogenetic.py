import math
from itertools import combinations
from typing import Iterable

import numpy as np
import pandas as pd

from special4eco.phylogeny.dendrogram import Dendrogram
from special4eco.species.species_retrieval import genus_of


def _taxonomic_levels(species, taxonomy: pd.DataFrame | None) -> list:
    levels = [genus_of(species)]
    if taxonomy is not None:
        if species not in taxonomy.index:
            raise ValueError("Species '" + str(species) + "' is missing from the taxonomy")
        levels += list(taxonomy.loc[species])
    return levels


def taxonomic_distance(species: Iterable, taxonomy: pd.DataFrame = None) -> pd.DataFrame:
    """
    computes the taxonomic distance between species, i.e. the number of taxonomic levels one has to climb to reach
    a common taxon: 1 for species of the same genus, 2 for genera sharing the first taxon of the taxonomy and so
    on. Species without a common taxon are 1 + the number of levels apart
    :param species: species names in Genus_species form
    :param taxonomy: optional data frame indexed by species holding higher taxa, ordered from low to high rank
    (e.g. family, order)
    :return: square distance data frame labelled by species
    """
    species = list(species)
    levels = {s: _taxonomic_levels(s, taxonomy) for s in species}
    no_levels = 1 + (taxonomy.shape[1] if taxonomy is not None else 0)

    distance = pd.DataFrame(0.0, index=species, columns=species)
    for a, b in combinations(species, 2):
        d = 1 + no_levels
        for level, (taxon_a, taxon_b) in enumerate(zip(levels[a], levels[b])):
            if pd.notna(taxon_a) and taxon_a == taxon_b:
                d = 1 + level
                break
        distance.loc[a, b] = d
        distance.loc[b, a] = d
    return distance


def taxonomic_tree(species: Iterable, taxonomy: pd.DataFrame = None) -> Dendrogram:
    """
    builds an ultrametric tree from the taxonomic classification of species, used as a proxy phylogeny
    """
    return Dendrogram.from_distance(taxonomic_distance(species, taxonomy), method="average")


def faith_pd(tree: Dendrogram, species: Iterable, include_root: bool = True) -> float:
    """
    computes Faith's phylogenetic diversity, the total branch length connecting the species
    :param tree: the phylogeny
    :param species: the present species
    :param include_root: whether branches are counted up to the root of the tree
    :return: the phylogenetic diversity
    """
    return tree.total_branch_length(species, include_root=include_root)


def phylogenetic_hill_number(q: float, tree: Dendrogram, abundances: dict) -> float:
    """
    computes the phylogenetic Hill number of order q (Chao, Chiu & Jost 2010), the effective number of equally
    abundant and equally distinct lineages over the time span T, the abundance-weighted mean distance from the
    root to the tips. Multiplying by T gives the phylogenetic diversity in branch length units
    :param q: the order, any non-negative value
    :param tree: the phylogeny
    :param abundances: mapping of species to abundance
    :return: the phylogenetic Hill number, 0 if there is no abundance
    """
    if q < 0:
        raise ValueError("Hill numbers are defined for non-negative orders only, got " + str(q))
    total = sum(v for v in abundances.values() if v > 0)
    if total <= 0:
        return 0.0
    branches = [(length, a / total) for length, a in tree.branch_abundances(abundances) if length > 0]
    t = sum(length * a for length, a in branches)
    if t == 0:
        # tree without branch length, e.g. a single leaf
        return 1.0
    if q == 1:
        return math.exp(-sum(length / t * a * math.log(a) for length, a in branches))
    return sum(length / t * a ** q for length, a in branches) ** (1 / (1 - q))


def community_phylogenetic_diversity(matrix: pd.DataFrame, tree: Dendrogram, q_values: Iterable[float] = (0, 1, 2),
                                     include_root: bool = True) -> pd.DataFrame:
    """
    computes Faith's PD and phylogenetic Hill numbers for every plot of a community matrix
    :return: a data frame indexed by plot with columns faith_pd and phylo_d<q> per order
    """
    q_values = list(q_values)
    rows = []
    for _, row in matrix.iterrows():
        abundances = row[row > 0].to_dict()
        rows.append([faith_pd(tree, abundances.keys(), include_root=include_root)] +
                    [phylogenetic_hill_number(q, tree, abundances) for q in q_values])
    return pd.DataFrame(rows, index=matrix.index, columns=["faith_pd"] + ["phylo_d" + str(q) for q in q_values])


def mean_pairwise_distance(distance: pd.DataFrame, species: Iterable) -> float:
    """
    computes the mean distance between all pairs of the given species, 0 for fewer than two species
    """
    species = list(set(species))
    if len(species) < 2:
        return 0.0
    sub = distance.loc[species, species].to_numpy(dtype=float)
    return float(sub[np.triu_indices(len(species), k=1)].mean())
