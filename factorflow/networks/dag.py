"""Directed acyclic graph (DAG) based Bayesian network.

Provides :class:`BayesianNetwork`, a container of :class:`Node` objects
whose structure is stored in a :class:`networkx.DiGraph`.  Each
:class:`FiniteNode` owns a conditional probability table (CPT): a
:class:`~factorflow.core.table.ProbabilityTable` over its parents'
variables followed by its own variable.

Nodes must be added parents first, which keeps the graph acyclic by
construction.  The network is read-only for the inference algorithms in
:mod:`factorflow.inference.exact`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import networkx as nx
import numpy as np

from factorflow.core.table import ProbabilityTable
from factorflow.core.types import AssignmentProposition, RandomVariable

logger = logging.getLogger(__name__)

# Tolerance for CPT row sums
_PROB_TOL = 1e-6


# ------------------------------------------------------------------ #
#  Nodes
# ------------------------------------------------------------------ #

class Node:
    """A variable in a Bayesian network together with its parents."""

    def __init__(
        self,
        variable: RandomVariable,
        parents: Sequence["Node"] = (),
    ) -> None:
        self._variable = variable
        self._parents: Tuple[Node, ...] = tuple(parents)

    @property
    def variable(self) -> RandomVariable:
        return self._variable

    @property
    def name(self) -> str:
        return self._variable.name

    @property
    def parents(self) -> Tuple["Node", ...]:
        return self._parents

    def is_root(self) -> bool:
        return not self._parents

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.name!r}, "
            f"parents={[p.name for p in self._parents]})"
        )


class FiniteNode(Node):
    """A node over a finite variable with a conditional probability table.

    Parameters
    ----------
    variable : RandomVariable
        The variable of this node.
    distribution : array_like
        For root nodes: the prior, one value per domain value.  For child
        nodes: a CPT of shape ``(p1_size, ..., pk_size, own_size)`` (or the
        same values flattened in that order).
    parents : sequence of Node, optional
        Parent nodes, in the order of the CPT axes.

    Raises
    ------
    ValueError
        If the CPT has the wrong size or a row does not sum to 1.
    """

    def __init__(
        self,
        variable: RandomVariable,
        distribution: Any,
        parents: Sequence[Node] = (),
    ) -> None:
        super().__init__(variable, parents)
        scope = [p.variable for p in self._parents] + [variable]
        self._cpt = ProbabilityTable(scope, distribution)

        rows = self._cpt.values.reshape(-1, variable.domain.size).sum(axis=1)
        if not np.allclose(rows, 1.0, rtol=0.0, atol=_PROB_TOL):
            raise ValueError(
                f"CPT of '{variable.name}' is not normalized for every parent "
                f"assignment (row sums {rows.tolist()})"
            )

    @property
    def cpt(self) -> ProbabilityTable:
        """A copy of the CPT; the node's own table is never mutated."""
        return self._cpt.copy()

    def probability_for(self, *assignments: AssignmentProposition) -> float:
        """Return ``P(variable = x | parents = u)``.

        *assignments* must cover the node's variable and every parent.
        """
        return self._cpt.get_value(*assignments)


# ------------------------------------------------------------------ #
#  Network
# ------------------------------------------------------------------ #

class BayesianNetwork:
    """Bayesian network backed by a :class:`networkx.DiGraph`.

    Examples
    --------
    >>> rain = RandomVariable("Rain")
    >>> sprinkler = RandomVariable("Sprinkler")
    >>> bn = BayesianNetwork()
    >>> bn.add_node(rain, [0.2, 0.8])
    FiniteNode('Rain', parents=[])
    >>> bn.add_node(sprinkler, [[0.01, 0.99], [0.4, 0.6]], parents=[rain])
    FiniteNode('Sprinkler', parents=['Rain'])
    """

    def __init__(self) -> None:
        self._graph: nx.DiGraph = nx.DiGraph()
        self._nodes: Dict[RandomVariable, Node] = {}
        self._by_name: Dict[str, RandomVariable] = {}
        self._topological: Optional[List[Node]] = None

    # ------------------------------------------------------------------ #
    #  Graph construction
    # ------------------------------------------------------------------ #

    def add(self, node: Node) -> Node:
        """Add an already built node.

        Raises
        ------
        ValueError
            If a node with the same variable exists or a parent has not
            been added to this network.
        """
        if node.variable in self._nodes:
            raise ValueError(f"Node '{node.name}' already exists")
        for parent in node.parents:
            if self._nodes.get(parent.variable) is not parent:
                raise ValueError(
                    f"Parent '{parent.name}' must be added before child "
                    f"'{node.name}'"
                )

        self._graph.add_node(node.variable)
        for parent in node.parents:
            self._graph.add_edge(parent.variable, node.variable)
        self._nodes[node.variable] = node
        self._by_name[node.name] = node.variable
        self._topological = None

        logger.debug(
            "Added node %s with parents %s", node.name,
            [p.name for p in node.parents],
        )
        return node

    def add_node(
        self,
        variable: RandomVariable,
        distribution: Any,
        parents: Optional[Sequence[RandomVariable]] = None,
    ) -> FiniteNode:
        """Build a :class:`FiniteNode` from parent variables and add it.

        See :class:`FiniteNode` for the layout of *distribution*.
        """
        if variable in self._nodes:
            raise ValueError(f"Node '{variable.name}' already exists")
        parent_nodes = []
        for p in parents or []:
            if p not in self._nodes:
                raise ValueError(
                    f"Parent '{p.name}' must be added before child "
                    f"'{variable.name}'"
                )
            parent_nodes.append(self._nodes[p])

        node = FiniteNode(variable, distribution, parent_nodes)
        self.add(node)
        return node

    # ------------------------------------------------------------------ #
    #  Queries
    # ------------------------------------------------------------------ #

    def topological_order(self) -> List[Node]:
        """Return the nodes with every parent before its children."""
        if self._topological is None:
            self._topological = [
                self._nodes[v] for v in nx.topological_sort(self._graph)
            ]
        return list(self._topological)

    def variables_in_topological_order(self) -> List[RandomVariable]:
        return [n.variable for n in self.topological_order()]

    def get_node(self, variable: RandomVariable) -> Node:
        """Return the node of *variable*."""
        try:
            return self._nodes[variable]
        except KeyError:
            raise ValueError(
                f"Variable '{variable.name}' not in network"
            ) from None

    def variable(self, name: str) -> RandomVariable:
        """Return the variable called *name*."""
        try:
            return self._by_name[name]
        except KeyError:
            raise ValueError(f"Variable '{name}' not in network") from None

    def parents_of(self, variable: RandomVariable) -> List[RandomVariable]:
        return [p.variable for p in self.get_node(variable).parents]

    def children_of(self, variable: RandomVariable) -> List[RandomVariable]:
        self.get_node(variable)
        return list(self._graph.successors(variable))

    @property
    def nodes(self) -> List[str]:
        """Return node names in topological order."""
        return [n.name for n in self.topological_order()]

    @property
    def edges(self) -> List[Tuple[str, str]]:
        """Return directed edges as (parent, child) name tuples."""
        return [(u.name, v.name) for u, v in self._graph.edges()]

    def __contains__(self, variable: object) -> bool:
        if isinstance(variable, str):
            return variable in self._by_name
        return variable in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"BayesianNetwork(nodes={self.nodes}, edges={self.edges})"
