from special4eco.traits.gower import gower_distance
from special4eco.traits.functional import functional_dendrogram, functional_diversity, \
    community_functional_diversity, rao_quadratic_entropy, community_rao, community_weighted_means, \
    functional_dispersion
from special4eco.traits.ordination import OrdinationResult, trait_pca, community_pca, principal_coordinates, \
    hellinger
