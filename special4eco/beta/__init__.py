from special4eco.beta.partitioning import hill_partition, partition_profile, whittaker_beta
from special4eco.beta.dissimilarity import pairwise_dissimilarity, pairwise_hill_beta, baselga_partition
