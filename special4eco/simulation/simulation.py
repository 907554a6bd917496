import numpy as np
import pandas as pd


def lognormal_abundances(no_species: int, sigma: float = 1.0, seed: int | None = None) -> pd.Series:
    """
    draws relative species abundances from a lognormal distribution, a common model of species abundance
    distributions in plant communities
    :param no_species: the number of species in the assemblage
    :param sigma: the standard deviation of the log abundances, larger values give less even assemblages
    :param seed: seed of the random number generator
    :return: relative abundances indexed by species names 'Species_1',...
    """
    if no_species < 1:
        raise ValueError("An assemblage requires at least one species, got " + str(no_species))
    rng = np.random.default_rng(seed)
    weights = rng.lognormal(mean=0.0, sigma=sigma, size=no_species)
    weights = np.sort(weights)[::-1]
    return pd.Series(weights / weights.sum(), index=["Species_" + str(i + 1) for i in range(no_species)])


def simulate_survey(species_weights: pd.Series, no_plots: int, individuals_per_plot: int,
                    seed: int | None = None) -> pd.DataFrame:
    """
    simulates a survey by drawing the individuals of every plot independently from the assemblage
    :param species_weights: relative abundances of the species
    :param no_plots: the number of plots
    :param individuals_per_plot: the number of individuals recorded per plot
    :param seed: seed of the random number generator
    :return: plot-by-species count matrix, species never drawn included as zero columns
    """
    if no_plots < 0 or individuals_per_plot < 0:
        raise ValueError("Number of plots and individuals must be non-negative")
    rng = np.random.default_rng(seed)
    p = species_weights.to_numpy(dtype=float)
    counts = rng.multinomial(individuals_per_plot, p / p.sum(), size=no_plots)
    return pd.DataFrame(counts, index=pd.Index(["P" + str(i + 1).zfill(3) for i in range(no_plots)],
                                               name="plot_code"), columns=species_weights.index)
