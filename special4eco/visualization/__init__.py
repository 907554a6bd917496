from special4eco.visualization.visualization import plot_rank_abundance, plot_diversity_profile, \
    plot_completeness_profile, plot_expected_sampling_effort, plot_rarefaction, plot_hill_profile, plot_dendrogram, \
    plot_ordination, plot_partition_profile
