from special4eco.estimation.species_estimator import SpeciesEstimator
