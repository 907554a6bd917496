"""
Complete biodiversity profile of a vegetation survey: data summary, alpha diversity, accumulated diversity and
completeness profiles, rarefaction, beta partitioning, functional and taxonomic diversity. Tables are written to
<out_dir>, figures to <fig_dir>.

usage: python -m special4eco.eval.survey_report data/plots.csv data/cover.csv --traits data/traits.csv
"""
import argparse
import os
from functools import partial

import pandas as pd

from special4eco.beta import partition_profile, whittaker_beta, baselga_partition, pairwise_dissimilarity
from special4eco.estimation import SpeciesEstimator
from special4eco.estimation.alpha import alpha_diversity, hill_numbers
from special4eco.estimation.rarefaction import rarefaction_curve, accumulation_curve
from special4eco.phylogeny import taxonomic_tree, community_phylogenetic_diversity
from special4eco.species import retrieve_species_abundance, retrieve_species_cover_units, retrieve_genus
from special4eco.survey import Survey, load_survey
from special4eco.traits import gower_distance, functional_dendrogram, community_functional_diversity, \
    community_rao, community_weighted_means, functional_dispersion, trait_pca
from special4eco import visualization

TAXONOMY_COLUMNS = ["family", "order"]


def _section(title: str) -> None:
    print()
    print("### " + title + " ###")


def summarize_survey(survey: Survey) -> pd.DataFrame:
    matrix = survey.matrix
    richness = (matrix > 0).sum(axis=1)
    summary = pd.DataFrame([["plots", survey.no_plots],
                            ["species", survey.no_species],
                            ["genera", len({s.split("_")[0] for s in matrix.columns})],
                            ["observations", len(survey.observations)],
                            ["mean richness per plot", float(richness.mean()) if len(richness) > 0 else 0],
                            ["mean total value per plot", float(matrix.sum(axis=1).mean()) if len(matrix) > 0 else 0],
                            ["species with traits", 0 if survey.traits is None else
                             int(matrix.columns.isin(survey.traits.index).sum())]],
                           columns=["statistic", "value"])
    return summary


def _estimator(cover: bool, cover_unit: float, no_bootstrap_samples: int, seed: int | None) -> SpeciesEstimator:
    retrieval = partial(retrieve_species_cover_units, unit=cover_unit) if cover else retrieve_species_abundance
    estimator = SpeciesEstimator(no_bootstrap_samples=no_bootstrap_samples, step_size=1, seed=seed)
    estimator.register("species", retrieval)
    estimator.register("genus", partial(retrieve_genus, retrieval=retrieval))
    return estimator


def _functional(survey: Survey, name: str, out_dir: str, fig_dir: str | None, verbose: bool) -> dict:
    results = {}
    traits = survey.traits.reindex(survey.matrix.columns)
    trait_columns = [c for c in traits.columns if c not in TAXONOMY_COLUMNS]
    traits = traits[trait_columns]
    known = traits.notna().any(axis=1)
    if verbose and not known.all():
        print("No traits for %d species, leaving them out: %s" % (int((~known).sum()),
                                                                  ", ".join(traits.index[~known])))
    traits = traits[known]
    matrix = survey.matrix[traits.index]
    if len(traits) < 2 or len(trait_columns) == 0:
        print("Too few species with traits for functional diversity")
        return results

    distance = gower_distance(traits)
    dendrogram = functional_dendrogram(distance)
    functional = pd.concat([community_functional_diversity(matrix, dendrogram),
                            community_rao(matrix, distance),
                            functional_dispersion(matrix, distance)], axis=1)
    results["functional"] = functional
    results["cwm"] = community_weighted_means(matrix, traits)
    print(functional.to_string(float_format="%.3f"))
    functional.to_csv(os.path.join(out_dir, name + "_functional.csv"))
    results["cwm"].to_csv(os.path.join(out_dir, name + "_cwm.csv"))

    if fig_dir is not None:
        visualization.plot_dendrogram(dendrogram, title="Functional dendrogram",
                                      save_to=os.path.join(fig_dir, name + "_functional_dendrogram.pdf"))
        numeric = traits.select_dtypes(include="number").dropna()
        if numeric.shape[0] > 2 and numeric.shape[1] >= 2:
            visualization.plot_ordination(trait_pca(numeric), loadings=True,
                                          save_to=os.path.join(fig_dir, name + "_trait_pca.pdf"))
    return results


def profile_survey(survey: Survey, name: str, out_dir: str = "out", fig_dir: str | None = "fig",
                   group_by: str | None = "habitat", cover: bool = True, cover_unit: float = 0.01,
                   q_values=(0, 1, 2), no_bootstrap_samples: int = 0, seed: int | None = None,
                   verbose: bool = True) -> dict:
    """
    runs the complete analysis of a survey, printing every result and writing tables and figures
    :param survey: the survey
    :param name: prefix of all written files
    :param out_dir: directory of the csv tables
    :param fig_dir: directory of the figures, no figures are drawn if None
    :param group_by: plot metadata column for the per-group beta partitioning, skipped if absent
    :param cover: whether the matrix holds cover fractions, counts otherwise
    :param cover_unit: the cover corresponding to one occurrence for abundance-based estimation
    :param q_values: the orders of the Hill numbers for the partitioning
    :param no_bootstrap_samples: number of bootstrap replicates for confidence intervals, 0 disables them
    :param seed: seed for bootstrapping
    :param verbose: show progress bars and notices
    :return: dictionary of the result tables
    """
    os.makedirs(out_dir, exist_ok=True)
    if fig_dir is not None:
        os.makedirs(fig_dir, exist_ok=True)
    matrix = survey.matrix
    results = {}

    _section("Survey")
    results["summary"] = summarize_survey(survey)
    print(results["summary"].to_string(index=False))

    _section("Alpha Diversity")
    results["alpha"] = alpha_diversity(matrix)
    print(results["alpha"].to_string(float_format="%.3f"))
    results["alpha"].to_csv(os.path.join(out_dir, name + "_alpha.csv"))
    if fig_dir is not None:
        visualization.plot_hill_profile(hill_numbers(matrix), save_to=os.path.join(fig_dir, name + "_hill.pdf"))

    _section("Diversity and Completeness Profiles")
    estimator = _estimator(cover, cover_unit, no_bootstrap_samples, seed)
    estimator.apply(matrix, verbose=verbose)
    estimator.summarize()
    results["profile"] = estimator.to_dataFrame()
    results["profile"].to_csv(os.path.join(out_dir, name + "_profile.csv"), index=False)
    if fig_dir is not None:
        for species_id in estimator.metrics.keys():
            prefix = os.path.join(fig_dir, name + "_" + species_id)
            visualization.plot_rank_abundance(estimator, species_id, save_to=prefix + "_rank_abundance.pdf")
            visualization.plot_diversity_profile(estimator, species_id, save_to=prefix + "_diversity_profile.pdf")
            visualization.plot_completeness_profile(estimator, species_id,
                                                    save_to=prefix + "_completeness_profile.pdf")

    _section("Rarefaction")
    metrics = estimator.metrics["species"]
    if metrics.abundance_sample_size > 0:
        results["rarefaction"] = rarefaction_curve(metrics.reference_sample_abundance)
        results["accumulation"] = accumulation_curve(metrics.reference_sample_incidence,
                                                     metrics.incidence_sample_size)
        observed = results["rarefaction"][results["rarefaction"]["method"] == "observed"]
        print(observed.to_string(index=False, float_format="%.3f"))
        results["rarefaction"].to_csv(os.path.join(out_dir, name + "_rarefaction.csv"), index=False)
        results["accumulation"].to_csv(os.path.join(out_dir, name + "_accumulation.csv"), index=False)
        if fig_dir is not None:
            visualization.plot_rarefaction(results["rarefaction"], title="Individual-based",
                                           save_to=os.path.join(fig_dir, name + "_rarefaction.pdf"))
            visualization.plot_rarefaction(results["accumulation"], title="Sample-based",
                                           save_to=os.path.join(fig_dir, name + "_accumulation.pdf"))
    else:
        print("No occurrences, skipping rarefaction")

    _section("Beta Diversity")
    if (matrix.sum(axis=1) > 0).sum() >= 2:
        results["partition"] = partition_profile(matrix, q_values)
        results["baselga"] = baselga_partition(matrix)
        results["bray_curtis"] = pairwise_dissimilarity(matrix, "braycurtis")
        print(results["partition"].to_string(float_format="%.3f"))
        print("%-25s %.3f" % ("Whittaker beta", whittaker_beta(matrix)))
        for component, value in results["baselga"].items():
            print("%-25s %.3f" % ("Baselga " + component, value))
        results["partition"].to_csv(os.path.join(out_dir, name + "_partition.csv"))
        results["bray_curtis"].to_csv(os.path.join(out_dir, name + "_bray_curtis.csv"))
        if fig_dir is not None:
            visualization.plot_partition_profile(results["partition"],
                                                 save_to=os.path.join(fig_dir, name + "_partition.pdf"))

        if group_by is not None and group_by in survey.plots.columns:
            groups = survey.plots.loc[matrix.index, group_by]
            partitions = []
            for group in sorted(groups.dropna().unique()):
                sub = matrix.loc[groups[groups == group].index]
                if (sub.sum(axis=1) > 0).sum() < 2:
                    print("Group " + str(group) + " has less than two plots, skipping")
                    continue
                partitions.append(partition_profile(sub, q_values).assign(**{group_by: group}))
            if partitions:
                results["partition_by_group"] = pd.concat(partitions).reset_index()
                print(results["partition_by_group"].to_string(index=False, float_format="%.3f"))
                results["partition_by_group"].to_csv(os.path.join(out_dir, name + "_partition_by_" + group_by +
                                                                  ".csv"), index=False)
    else:
        print("Less than two non-empty plots, skipping beta diversity")

    if survey.traits is not None:
        _section("Functional Diversity")
        results.update(_functional(survey, name, out_dir, fig_dir, verbose))

    _section("Taxonomic Diversity")
    taxonomy = None
    if survey.traits is not None:
        columns = [c for c in TAXONOMY_COLUMNS if c in survey.traits.columns]
        if columns and matrix.columns.isin(survey.traits.index).all():
            taxonomy = survey.traits.loc[matrix.columns, columns]
    tree = taxonomic_tree(matrix.columns, taxonomy)
    results["phylogenetic"] = community_phylogenetic_diversity(matrix, tree)
    print(results["phylogenetic"].to_string(float_format="%.3f"))
    results["phylogenetic"].to_csv(os.path.join(out_dir, name + "_phylogenetic.csv"))
    with open(os.path.join(out_dir, name + "_taxonomic_tree.nwk"), "w") as f:
        f.write(tree.to_newick() + "\n")
    if fig_dir is not None:
        visualization.plot_dendrogram(tree, title="Taxonomic tree",
                                      save_to=os.path.join(fig_dir, name + "_taxonomic_tree.pdf"))
    return results


def main(args=None):
    parser = argparse.ArgumentParser(description="Biodiversity profile of a vegetation survey")
    parser.add_argument("plots", help="plot metadata file")
    parser.add_argument("observations", help="species observation file")
    parser.add_argument("--traits", default=None, help="species trait file")
    parser.add_argument("--sep", default=",", help="field delimiter of all files")
    parser.add_argument("--value-column", default="cover", help="column holding cover or counts")
    parser.add_argument("--counts", action="store_true", help="values are counts instead of cover fractions")
    parser.add_argument("--cover-unit", type=float, default=0.01, help="cover corresponding to one occurrence")
    parser.add_argument("--group-by", default="habitat", help="plot metadata column for beta partitioning")
    parser.add_argument("--name", default="survey", help="prefix of the written files")
    parser.add_argument("--out-dir", default="out")
    parser.add_argument("--fig-dir", default="fig")
    parser.add_argument("--no-figures", action="store_true")
    parser.add_argument("--bootstrap", type=int, default=0, help="number of bootstrap replicates")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--quiet", action="store_true")
    args = parser.parse_args(args)

    survey = load_survey(args.plots, args.observations, args.traits, sep=args.sep, value_column=args.value_column,
                         cover=not args.counts, verbose=not args.quiet)
    profile_survey(survey, args.name, out_dir=args.out_dir, fig_dir=None if args.no_figures else args.fig_dir,
                   group_by=args.group_by, cover=not args.counts, cover_unit=args.cover_unit,
                   no_bootstrap_samples=args.bootstrap, seed=args.seed, verbose=not args.quiet)


if __name__ == "__main__":
    main()
