from special4eco.species.species_retrieval import retrieve_species_abundance, retrieve_species_occurrence, \
    retrieve_species_cover_units, retrieve_genus, genus_of
