import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import linkage
from scipy.spatial.distance import squareform
from skbio import TreeNode


class Dendrogram:
    """
    A rooted tree over labelled species, built from a scipy linkage matrix. The tree itself is a scikit-bio
    TreeNode; every node except the root carries the length of the branch leading to it from its parent
    """

    def __init__(self, linkage_matrix: np.ndarray, labels: list):
        self.labels = list(labels)
        if len(self.labels) == 0:
            raise ValueError("A dendrogram requires at least one species")
        if len(set(self.labels)) != len(self.labels):
            raise ValueError("Dendrogram labels must be unique")
        self.linkage = np.asarray(linkage_matrix, dtype=float).reshape(-1, 4)
        if len(self.linkage) != len(self.labels) - 1:
            raise ValueError("Linkage matrix of " + str(len(self.linkage)) + " rows does not match " +
                             str(len(self.labels)) + " labels")

        # node i of the linkage is the i-th leaf, the cluster formed in row j is node n+j
        nodes = [TreeNode(name=str(label)) for label in self.labels]
        heights = [0.0] * len(self.labels)
        for left, right, dist, _ in self.linkage:
            children = []
            for child in (int(left), int(right)):
                nodes[child].length = dist - heights[child]
                children.append(nodes[child])
            nodes.append(TreeNode(children=children))
            heights.append(dist)
        self.tree = nodes[-1]
        self._leaves = {label: nodes[i] for i, label in enumerate(self.labels)}

    @classmethod
    def from_distance(cls, distance: pd.DataFrame, method: str = "average") -> "Dendrogram":
        """
        builds a dendrogram by hierarchical clustering of a square distance matrix
        :param distance: square, symmetric data frame labelled by species
        :param method: the scipy linkage method, e.g. 'average' (UPGMA), 'complete' or 'single'
        :return: the dendrogram
        """
        values = distance.to_numpy(dtype=float)
        if values.shape[0] != values.shape[1]:
            raise ValueError("Distance matrix must be square")
        if not np.isfinite(values).all():
            raise ValueError("Distance matrix contains missing or infinite values")
        if len(values) == 1:
            return cls(np.empty((0, 4)), list(distance.index))
        return cls(linkage(squareform(values, checks=False), method=method), list(distance.index))

    @property
    def height(self) -> float:
        if len(self.linkage) == 0:
            return 0.0
        return float(self.linkage[-1, 2])

    def leaf(self, species) -> TreeNode:
        if species not in self._leaves:
            raise ValueError("Unknown species '" + str(species) + "'")
        return self._leaves[species]

    def total_branch_length(self, species, include_root: bool = True) -> float:
        """
        computes the total length of the branches connecting a set of species
        :param species: the species
        :param include_root: if True, the branches from the species up to the root are included, otherwise only
        the minimal subtree spanning the species
        :return: the total branch length, 0 for no species
        """
        leaves = [self.leaf(s) for s in set(species)]
        if len(leaves) == 0:
            return 0.0
        mrca = self.tree if include_root else self.tree.lca([leaf.name for leaf in leaves])

        visited = set()
        total = 0.0
        for leaf in leaves:
            current = leaf
            while current is not mrca:
                if id(current) not in visited:
                    total += current.length
                    visited.add(id(current))
                current = current.parent
        return total

    def branch_abundances(self, abundances: dict) -> list:
        """
        computes for every branch the summed abundance of the species below it
        :param abundances: mapping of species to abundance
        :return: list of (branch length, abundance) tuples for all branches with positive abundance
        """
        branches = {}
        for species, value in abundances.items():
            if value <= 0:
                continue
            current = self.leaf(species)
            while not current.is_root():
                length, abundance = branches.get(id(current), (current.length, 0.0))
                branches[id(current)] = (length, abundance + value)
                current = current.parent
        return [(float(length), float(abundance)) for length, abundance in branches.values()]

    def to_newick(self) -> str:
        """
        exports the dendrogram in Newick format with branch lengths
        """
        return str(self.tree).strip()
