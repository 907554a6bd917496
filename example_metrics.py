from special4eco.estimation.metrics import estimate_species_richness_chao, estimate_simpson_diversity_incidence, \
    completeness, coverage, sampling_effort_incidence, estimate_exp_shannon_entropy_incidence, \
    estimate_species_richness_jackknife, estimate_species_richness_ichao
from special4eco.estimation.rarefaction import rarefy_richness_incidence

'''
Example script explaining how to directly calculate diversity and completeness profiles on observed species counts
'''
#We assume this to be Incidence Data, i.e. the number of plots each species was recorded in
observed_species = {"Festuca_rubra": 10, "Poa_pratensis": 5, "Carex_sylvatica": 2, "Oxalis_acetosella": 2,
                    "Ranunculus_acris": 1, "Achillea_millefolium": 1}
number_plots = 10

print("(D0) Asymptotic Species Richness:              " + str(estimate_species_richness_chao(observed_species)))
print("(D1) Asymptotic Exponential Shannon Entropy:   " +
      str(estimate_exp_shannon_entropy_incidence(observed_species, number_plots)))
print("(D2) Asymptotic Simpson Diversity:             " +
      str(estimate_simpson_diversity_incidence(observed_species, number_plots)))
print()
print("(C0) Completeness:                             " + str(completeness(observed_species)))
print("(C1) Coverage:                                 " + str(coverage(observed_species, number_plots)))
print("Additional Sampling Effort (l=.99):            " +
      str(sampling_effort_incidence(.99, observed_species, number_plots)))
print()
print("Jackknife-2:                                   " +
      str(estimate_species_richness_jackknife(observed_species, order=2, sample_size=number_plots)))
print("iChao2:                                        " +
      str(estimate_species_richness_ichao(observed_species, sample_size=number_plots)))
print("Expected Richness of 20 Plots:                 " +
      str(rarefy_richness_incidence(observed_species, number_plots, 20)))
