from functools import partial

from special4eco.estimation import SpeciesEstimator
from special4eco.species import retrieve_species_cover_units, retrieve_species_occurrence, retrieve_genus
from special4eco.survey import load_survey, group_matrix
from special4eco.beta import partition_profile
from special4eco.visualization import plot_rank_abundance, plot_completeness_profile, plot_diversity_profile, \
    plot_partition_profile

#Estimates diversity and completeness profiles of a vegetation survey for different species definitions, updating
#the profiles after every plot, and partitions the diversity of each habitat into alpha and beta components

PATH_TO_PLOTS = "./data/plots.csv"
PATH_TO_COVER = "./data/cover.csv"
PATH_TO_TRAITS = "./data/traits.csv"
survey = load_survey(PATH_TO_PLOTS, PATH_TO_COVER, PATH_TO_TRAITS)

estimator = SpeciesEstimator(step_size=1, no_bootstrap_samples=100, seed=0)
estimator.register("species", partial(retrieve_species_cover_units, unit=0.01))
estimator.register("presence", retrieve_species_occurrence)
estimator.register("genus", partial(retrieve_genus, retrieval=retrieve_species_occurrence))

estimator.apply(survey.matrix)
estimator.to_dataFrame().to_csv("survey_profile.csv", index=False)
estimator.summarize()

for habitat, matrix in group_matrix(survey, "habitat").items():
    print("### " + habitat + " ###")
    print(partition_profile(matrix).to_string(float_format="%.3f"))
    plot_partition_profile(partition_profile(matrix), save_to="partition_" + habitat + ".pdf")

plot_rank_abundance(estimator, "species", save_to="rank_abundance_curve.pdf")
plot_diversity_profile(estimator, "species", save_to="diversity.pdf")
plot_completeness_profile(estimator, "presence", save_to="completeness.pdf")
