import numpy as np
import pandas as pd
from matplotlib import pyplot as plt
from scipy.cluster.hierarchy import dendrogram as scipy_dendrogram

from special4eco.estimation.species_estimator import SpeciesEstimator
from special4eco.phylogeny.dendrogram import Dendrogram
from special4eco.traits.ordination import OrdinationResult


def _finish(save_to: str | None) -> None:
    plt.tight_layout()
    if save_to is not None:
        plt.savefig(save_to, format=save_to.rsplit(".", 1)[-1] if "." in save_to else "pdf")
        plt.close()
    else:
        plt.show()


def _check_registered(estimator: SpeciesEstimator, species_id: str) -> None:
    if species_id not in estimator.metrics:
        raise ValueError("Unknown species definition '" + str(species_id) + "'")


def plot_rank_abundance(estimator: SpeciesEstimator, species_id: str, abundance: bool = True,
                        save_to: str = None) -> None:
    """
    plots the rank abundance curve of the reference sample of a species definition
    :param estimator: the estimator holding the reference sample
    :param species_id: the species definition
    :param abundance: plot abundance counts if True, incidence counts otherwise
    :param save_to: path of the figure, shown instead if None
    """
    _check_registered(estimator, species_id)
    metrics = estimator.metrics[species_id]
    reference_sample = metrics.reference_sample_abundance if abundance else metrics.reference_sample_incidence
    no_observations = metrics.abundance_sample_size if abundance else metrics.incidence_sample_size
    counts = sorted(reference_sample.values(), reverse=True)
    relative = [c / no_observations for c in counts] if no_observations > 0 else counts

    plt.rcParams['figure.figsize'] = [9, 5]
    plt.plot(range(1, len(relative) + 1), relative, marker="o", markersize=3)
    plt.yscale("log")
    plt.title(species_id)
    plt.xlabel("Species Rank")
    plt.ylabel("Relative Abundance" if abundance else "Relative Incidence")
    _finish(save_to)


def _profile(ax, estimator: SpeciesEstimator, species_id: str, observed: str | None, estimated: str, title: str):
    metrics = estimator.metrics[species_id]
    no_observations = metrics["incidence_no_observations"]
    if observed is not None:
        ax.plot(no_observations, metrics[observed], label="Observed")
    ax.plot(no_observations, metrics[estimated], label="Estimated")
    ci = metrics.get(estimated + "_ci", [])
    if estimator.no_bootstrap_samples > 0 and len(ci) > 0 and ci[-1] >= 0:
        ax.errorbar(no_observations[-1], metrics[estimated][-1], yerr=ci[-1], fmt="o", color="grey", capsize=4)
    ax.set_title(title)
    ax.set_xlabel("Number of Plots")
    ax.legend()


def plot_diversity_profile(estimator: SpeciesEstimator, species_id: str, abundance: bool = False,
                           save_to: str = None) -> None:
    """
    plots the observed and estimated Hill numbers of order 0, 1 and 2 over the number of added plots
    """
    _check_registered(estimator, species_id)
    data_type = "abundance" if abundance else "incidence"
    plt.rcParams['figure.figsize'] = [3 * 6, 5]
    f, axes = plt.subplots(nrows=1, ncols=3)
    for d, ax in enumerate(axes):
        key = data_type + "_estimate_d" + str(d)
        if key not in estimator.metrics[species_id]:
            ax.set_axis_off()
            continue
        _profile(ax, estimator, species_id, data_type + "_sample_d" + str(d), key, "q=" + str(d))
    axes[0].set_ylabel("Hill number")
    _finish(save_to)


def plot_completeness_profile(estimator: SpeciesEstimator, species_id: str, abundance: bool = False,
                              save_to: str = None) -> None:
    """
    plots completeness (C0) and coverage (C1) over the number of added plots
    """
    _check_registered(estimator, species_id)
    data_type = "abundance" if abundance else "incidence"
    plt.rcParams['figure.figsize'] = [2 * 6, 5]
    f, axes = plt.subplots(nrows=1, ncols=2, sharey='all')
    for c, (ax, title) in enumerate(zip(axes, ["Completeness", "Coverage"])):
        key = data_type + "_c" + str(c)
        if key not in estimator.metrics[species_id]:
            ax.set_axis_off()
            continue
        _profile(ax, estimator, species_id, None, key, title)
    axes[0].set_ylim(0, 1.05)
    _finish(save_to)


def plot_expected_sampling_effort(estimator: SpeciesEstimator, species_id: str, abundance: bool = False,
                                  save_to: str = None) -> None:
    """
    plots the expected number of additional plots needed to reach each target completeness of l_n
    """
    _check_registered(estimator, species_id)
    data_type = "abundance" if abundance else "incidence"
    metrics = estimator.metrics[species_id]
    plt.rcParams['figure.figsize'] = [9, 5]
    for l in estimator.l_n:
        plt.plot(metrics["incidence_no_observations"], metrics[data_type + "_l_" + str(l)], label="l=" + str(l))
    plt.title(species_id)
    plt.xlabel("Number of Plots")
    plt.ylabel("Expected Additional Effort")
    plt.legend()
    _finish(save_to)


def plot_rarefaction(curve: pd.DataFrame, title: str = None, save_to: str = None) -> None:
    """
    plots rarefaction and extrapolation curves as computed by rarefaction_curve or accumulation_curve, solid for
    interpolation and dashed for extrapolation with the reference sample marked
    """
    size_column = "m" if "m" in curve.columns else "t"
    plt.rcParams['figure.figsize'] = [9, 5]
    for i, (order, group) in enumerate(curve.groupby("order")):
        color = "C" + str(i)
        interpolated = group[group["method"] != "extrapolated"]
        extrapolated = group[group["method"] != "interpolated"]
        plt.plot(interpolated[size_column], interpolated["qD"], color=color, label="q=" + str(order))
        plt.plot(extrapolated[size_column], extrapolated["qD"], color=color, ls="--")
        observed = group[group["method"] == "observed"]
        plt.scatter(observed[size_column], observed["qD"], color=color)
    plt.xlabel("Number of Individuals" if size_column == "m" else "Number of Plots")
    plt.ylabel("Hill number")
    plt.ylim(bottom=0)
    if title is not None:
        plt.title(title)
    plt.legend()
    _finish(save_to)


def plot_hill_profile(profiles: pd.DataFrame, save_to: str = None) -> None:
    """
    plots diversity profiles, one line per row of a row-by-order data frame as computed by hill_numbers
    """
    plt.rcParams['figure.figsize'] = [9, 5]
    q_values = [float(q) for q in profiles.columns]
    for label, row in profiles.iterrows():
        plt.plot(q_values, row.to_numpy(dtype=float), marker="o", markersize=3, label=str(label))
    plt.xlabel("Order q")
    plt.ylabel("Hill number")
    plt.ylim(bottom=0)
    if len(profiles) <= 12:
        plt.legend(fontsize=8)
    _finish(save_to)


def plot_dendrogram(tree: Dendrogram, title: str = None, save_to: str = None) -> None:
    """
    plots a functional or taxonomic dendrogram with species labels
    """
    plt.rcParams['figure.figsize'] = [9, max(4, 0.3 * len(tree.labels))]
    if len(tree.labels) > 1:
        scipy_dendrogram(tree.linkage, labels=tree.labels, orientation="left")
    if title is not None:
        plt.title(title)
    plt.xlabel("Distance")
    _finish(save_to)


def plot_ordination(ordination: OrdinationResult, groups: pd.Series = None, loadings: bool = False,
                    save_to: str = None) -> None:
    """
    plots the first two axes of an ordination, optionally coloured by group and with loading arrows
    :param ordination: the ordination result
    :param groups: optional group per row of the scores, e.g. a plot metadata column
    :param loadings: draw the loadings of the variables as arrows
    :param save_to: path of the figure, shown instead if None
    """
    if ordination.scores.shape[1] < 2:
        raise ValueError("Ordination plots require at least two axes")
    x_axis, y_axis = ordination.axes[:2]
    plt.rcParams['figure.figsize'] = [7, 6]
    if groups is None:
        plt.scatter(ordination.scores[x_axis], ordination.scores[y_axis])
    else:
        groups = groups.reindex(ordination.scores.index)
        for group in sorted(groups.dropna().unique()):
            members = ordination.scores[groups == group]
            plt.scatter(members[x_axis], members[y_axis], label=str(group))
        plt.legend()
    if loadings and ordination.loadings is not None:
        scale = np.abs(ordination.scores[[x_axis, y_axis]].to_numpy()).max()
        for variable, row in ordination.loadings.iterrows():
            plt.arrow(0, 0, row[x_axis] * scale, row[y_axis] * scale, color="grey", alpha=0.6)
            plt.annotate(str(variable), (row[x_axis] * scale, row[y_axis] * scale), fontsize=8)
    ratio = ordination.explained_variance_ratio
    plt.xlabel("%s (%.1f%%)" % (x_axis, 100 * ratio[0]))
    plt.ylabel("%s (%.1f%%)" % (y_axis, 100 * ratio[1]))
    _finish(save_to)


def plot_partition_profile(profile: pd.DataFrame, save_to: str = None) -> None:
    """
    plots gamma, alpha and beta of a partition profile over the order q
    """
    plt.rcParams['figure.figsize'] = [2 * 6, 5]
    f, (ax1, ax2) = plt.subplots(nrows=1, ncols=2)
    for component in ["gamma", "alpha"]:
        ax1.plot(profile.index, profile[component], marker="o", label=component)
    ax1.set_xlabel("Order q")
    ax1.set_ylabel("Hill number")
    ax1.set_ylim(bottom=0)
    ax1.legend()
    ax2.plot(profile.index, profile["beta"], marker="o", color="C2", label="beta")
    ax2.axhline(1, color="grey", ls="--")
    ax2.set_xlabel("Order q")
    ax2.set_ylabel("Beta diversity")
    ax2.legend()
    _finish(save_to)
