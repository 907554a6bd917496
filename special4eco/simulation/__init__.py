from special4eco.simulation.simulation import lognormal_abundances, simulate_survey
