from special4eco.survey.survey import Survey, load_survey, read_plots, read_observations, read_traits, \
    aggregate_traits, filter_observations, community_matrix, validate_community_matrix, to_incidence, \
    group_matrix, normalize_species_name, PLOT_CODE, SPECIES
