"""Network construction utilities for factorflow."""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from factorflow.core.types import FiniteDomain, RandomVariable
from factorflow.networks.dag import BayesianNetwork


def _variables(num_nodes: int, num_states: int) -> List[RandomVariable]:
    states = [f"s{i}" for i in range(num_states)]
    return [
        RandomVariable(f"X{i}", FiniteDomain(states)) for i in range(num_nodes)
    ]


def _random_cpt(
    rng: np.random.Generator,
    num_parents: int,
    num_states: int,
) -> np.ndarray:
    """CPT of shape ``(num_states,) * num_parents + (num_states,)``."""
    rows = rng.dirichlet(np.ones(num_states), size=num_states ** num_parents)
    return rows.reshape((num_states,) * (num_parents + 1))


def build_tree(
    num_nodes: int,
    num_states: int = 2,
    seed: Optional[int] = None,
) -> BayesianNetwork:
    """Build a tree-structured Bayesian network.

    Node ``X{i}`` has children ``X{2i+1}`` and ``X{2i+2}``.  Every CPT is
    drawn from a flat Dirichlet.
    """
    rng = np.random.default_rng(seed)
    variables = _variables(num_nodes, num_states)
    bn = BayesianNetwork()

    for i, var in enumerate(variables):
        if i == 0:
            bn.add_node(var, _random_cpt(rng, 0, num_states))
        else:
            parent = variables[(i - 1) // 2]
            bn.add_node(var, _random_cpt(rng, 1, num_states), parents=[parent])

    return bn


def build_chain(
    num_nodes: int,
    num_states: int = 2,
    seed: Optional[int] = None,
) -> BayesianNetwork:
    """Build a chain-structured Bayesian network (Markov chain)."""
    rng = np.random.default_rng(seed)
    variables = _variables(num_nodes, num_states)
    bn = BayesianNetwork()

    for i, var in enumerate(variables):
        parents = [variables[i - 1]] if i > 0 else []
        bn.add_node(var, _random_cpt(rng, len(parents), num_states), parents=parents)

    return bn


def build_layered(
    num_layers: int,
    width: int,
    num_states: int = 2,
    seed: Optional[int] = None,
) -> BayesianNetwork:
    """Build a network where every node depends on the whole previous layer.

    Unlike :func:`build_tree` and :func:`build_chain` the result has
    undirected loops, which makes it a useful stress case for exact
    inference.
    """
    rng = np.random.default_rng(seed)
    variables = _variables(num_layers * width, num_states)
    bn = BayesianNetwork()

    for layer in range(num_layers):
        parents = variables[(layer - 1) * width:layer * width] if layer else []
        for var in variables[layer * width:(layer + 1) * width]:
            bn.add_node(
                var,
                _random_cpt(rng, len(parents), num_states),
                parents=parents,
            )

    return bn
