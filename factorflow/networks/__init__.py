"""Bayesian network model and builders."""

from factorflow.networks.dag import BayesianNetwork, FiniteNode, Node
from factorflow.networks.graph import build_chain, build_layered, build_tree

__all__ = [
    "BayesianNetwork",
    "FiniteNode",
    "Node",
    "build_chain",
    "build_layered",
    "build_tree",
]
