from special4eco.phylogeny.dendrogram import Dendrogram
from special4eco.phylogeny.phylogenetic import taxonomic_distance, taxonomic_tree, faith_pd, \
    phylogenetic_hill_number, community_phylogenetic_diversity, mean_pairwise_distance
