"""Exact inference for discrete Bayesian networks.

Provides:

* :func:`enumeration_ask` – the ENUMERATION-ASK algorithm: depth-first
  enumeration of every hidden variable, evaluated once per combination of
  query values.
* :func:`elimination_ask` – variable elimination built on the
  :class:`~factorflow.core.table.ProbabilityTable` algebra.

Both take an ordered sequence of query variables, a sequence of
:class:`~factorflow.core.types.AssignmentProposition` evidence, and a
:class:`~factorflow.networks.dag.BayesianNetwork`, and return a
normalized :class:`ProbabilityTable` over the query variables (in the
order given).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from factorflow.core.table import ProbabilityTable
from factorflow.core.types import AssignmentProposition, RandomVariable
from factorflow.networks.dag import BayesianNetwork, FiniteNode

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------ #
#  Shared helpers
# ------------------------------------------------------------------ #

def _validate_query(
    query: Sequence[RandomVariable],
    evidence: Sequence[AssignmentProposition],
    network: BayesianNetwork,
) -> Tuple[Tuple[RandomVariable, ...], Tuple[AssignmentProposition, ...]]:
    query = tuple(query)
    evidence = tuple(evidence)
    if not query:
        raise ValueError("At least one query variable is required")
    if len(set(query)) != len(query):
        raise ValueError("Query variables must be distinct")

    evidence_vars = [ap.variable for ap in evidence]
    if len(set(evidence_vars)) != len(evidence_vars):
        raise ValueError("Evidence variables must be distinct")
    mentioned = set(query) | set(evidence_vars)
    if len(mentioned) > len(network):
        raise ValueError(
            f"{len(mentioned)} query and evidence variables exceed the "
            f"{len(network)} variables of the network"
        )
    for var in query + tuple(evidence_vars):
        network.get_node(var)
    return query, evidence


def _finite_node(network: BayesianNetwork, variable: RandomVariable) -> FiniteNode:
    node = network.get_node(variable)
    if not isinstance(node, FiniteNode):
        raise TypeError(
            f"Exact inference only works with finite nodes, "
            f"'{variable.name}' is a {type(node).__name__}"
        )
    return node


# ------------------------------------------------------------------ #
#  Enumeration
# ------------------------------------------------------------------ #

class _ObservedEvidence:
    """Extended assignment buffer for :func:`enumeration_ask`.

    Slots hold the query variables first, then the evidence, then the
    hidden variables in topological order.  Empty slots are ``None``.
    Evidence on a query variable does not get a slot of its own; it is
    applied by the caller when choosing the query values.
    """

    def __init__(
        self,
        query: Sequence[RandomVariable],
        evidence: Sequence[AssignmentProposition],
        network: BayesianNetwork,
    ) -> None:
        self._network = network
        variables: List[RandomVariable] = list(query)
        observed = [ap for ap in evidence if ap.variable not in variables]
        variables.extend(ap.variable for ap in observed)
        seen = set(variables)
        variables.extend(
            v for v in network.variables_in_topological_order() if v not in seen
        )

        self._positions: Dict[RandomVariable, int] = {
            v: i for i, v in enumerate(variables)
        }
        self._values: List[Optional[AssignmentProposition]] = [None] * len(variables)
        for ap in observed:
            self._values[self._positions[ap.variable]] = ap

    def set_extended_value(self, variable: RandomVariable, value: Any) -> None:
        self._values[self._positions[variable]] = AssignmentProposition(
            variable, value
        )

    def clear(self, variable: RandomVariable) -> None:
        self._values[self._positions[variable]] = None

    def contains_value(self, variable: RandomVariable) -> bool:
        return self._values[self._positions[variable]] is not None

    def posterior_for_parents(self, variable: RandomVariable) -> float:
        """``P(variable = buffered value | parents = buffered values)``."""
        node = _finite_node(self._network, variable)
        aps = [self._values[self._positions[p.variable]] for p in node.parents]
        aps.append(self._values[self._positions[variable]])
        return node.probability_for(*aps)


def _enumerate_all(
    variables: Sequence[RandomVariable],
    start: int,
    e: _ObservedEvidence,
) -> float:
    """ENUMERATE-ALL over ``variables[start:]``."""
    if start == len(variables):
        return 1.0

    y = variables[start]
    if e.contains_value(y):
        return e.posterior_for_parents(y) * _enumerate_all(variables, start + 1, e)

    total = 0.0
    for value in y.domain.possible_values:
        e.set_extended_value(y, value)
        total += e.posterior_for_parents(y) * _enumerate_all(variables, start + 1, e)
    e.clear(y)
    return total


def enumeration_ask(
    query: Sequence[RandomVariable],
    evidence: Sequence[AssignmentProposition],
    network: BayesianNetwork,
) -> ProbabilityTable:
    """Compute ``P(query | evidence)`` by enumeration.

    Parameters
    ----------
    query : sequence of RandomVariable
        Distinct query variables; they fix the variable order of the
        result.
    evidence : sequence of AssignmentProposition
        Observed values, one per variable.  Evidence on a query variable
        restricts the result to the observed value.
    network : BayesianNetwork
        The network to query.

    Returns
    -------
    ProbabilityTable
        Normalized distribution over *query*.

    Raises
    ------
    ValueError
        If the query or evidence is malformed or names unknown variables.
    TypeError
        If the network holds a node that is not a :class:`FiniteNode`.
    """
    query, evidence = _validate_query(query, evidence, network)
    constraints = {ap.variable: ap.value for ap in evidence if ap.variable in query}

    distribution = ProbabilityTable(query)
    e = _ObservedEvidence(query, evidence, network)
    variables = network.variables_in_topological_order()

    for offset, (world, _) in enumerate(distribution.iterate()):
        if any(world[v] != value for v, value in constraints.items()):
            continue
        for var in query:
            e.set_extended_value(var, world[var])
        distribution.set_value(offset, _enumerate_all(variables, 0, e))

    distribution.normalize()
    logger.debug(
        "enumeration_ask over %s given %s: %s",
        [v.name for v in query], [str(ap) for ap in evidence], distribution,
    )
    return distribution


# ------------------------------------------------------------------ #
#  Variable elimination
# ------------------------------------------------------------------ #

def elimination_ask(
    query: Sequence[RandomVariable],
    evidence: Sequence[AssignmentProposition],
    network: BayesianNetwork,
) -> ProbabilityTable:
    """Compute ``P(query | evidence)`` by variable elimination.

    Nodes are visited in reverse topological order.  Each CPT is reduced
    by the evidence it mentions; once a hidden variable's CPT has been
    added, every factor mentioning it is multiplied together and the
    variable summed out.  Takes the same arguments and returns the same
    kind of result as :func:`enumeration_ask`.
    """
    query, evidence = _validate_query(query, evidence, network)
    query_set = set(query)
    observed = {ap.variable: ap for ap in evidence if ap.variable not in query_set}

    factors: List[ProbabilityTable] = []
    # evidence on a query variable becomes an indicator factor
    for ap in evidence:
        if ap.variable in query_set:
            indicator = ProbabilityTable([ap.variable])
            indicator.set_value(indicator.get_index(ap.value), 1.0)
            factors.append(indicator)

    for var in reversed(network.variables_in_topological_order()):
        cpt = _finite_node(network, var).cpt
        factors.append(
            cpt.reduce(*[ap for v, ap in observed.items() if v in cpt])
        )
        if var in query_set or var in observed:
            continue

        involved = [f for f in factors if var in f]
        factors = [f for f in factors if var not in f]
        product = involved[0]
        for f in involved[1:]:
            product = product.pointwise_product(f)
        factors.append(product.sum_out(var))
        logger.debug("Eliminated %s, %d factors remain", var.name, len(factors))

    unit = ProbabilityTable((), [1.0])
    result = unit
    for f in factors:
        result = result.pointwise_product(f)
    # reorder the product to the caller's query order
    result = result.pointwise_product(unit, order=query)
    return result.normalize()
