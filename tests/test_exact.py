"""Tests for factorflow/inference/exact.py.

Covers:
- enumeration_ask on hand-checked networks (sprinkler, burglary)
- Multi-variable queries and result variable order
- Evidence on a query variable collapsing to a point mass
- elimination_ask agreeing with enumeration_ask and brute force
- Input validation and non-finite nodes
"""

from __future__ import annotations

import itertools
import logging

import numpy as np
import pytest

from factorflow.core.types import AssignmentProposition, RandomVariable
from factorflow.inference.exact import elimination_ask, enumeration_ask
from factorflow.networks.dag import BayesianNetwork, Node
from factorflow.networks.graph import build_chain, build_layered, build_tree

ALGORITHMS = [enumeration_ask, elimination_ask]


# ------------------------------------------------------------------ #
#  Helpers
# ------------------------------------------------------------------ #

def _sprinkler_network():
    """Rain → Sprinkler.

    P(Rain=true) = 0.2
    P(Sprinkler=true | Rain=true) = 0.01
    P(Sprinkler=true | Rain=false) = 0.4
    """
    rain = RandomVariable("Rain")
    sprinkler = RandomVariable("Sprinkler")
    bn = BayesianNetwork()
    bn.add_node(rain, [0.2, 0.8])
    bn.add_node(sprinkler, [[0.01, 0.99], [0.4, 0.6]], parents=[rain])
    return bn, rain, sprinkler


def _burglary_network() -> BayesianNetwork:
    """The burglary / earthquake alarm network."""
    burglary = RandomVariable("Burglary")
    earthquake = RandomVariable("Earthquake")
    alarm = RandomVariable("Alarm")
    john = RandomVariable("JohnCalls")
    mary = RandomVariable("MaryCalls")

    bn = BayesianNetwork()
    bn.add_node(burglary, [0.001, 0.999])
    bn.add_node(earthquake, [0.002, 0.998])
    bn.add_node(
        alarm,
        [[[0.95, 0.05], [0.94, 0.06]],
         [[0.29, 0.71], [0.001, 0.999]]],
        parents=[burglary, earthquake],
    )
    bn.add_node(john, [[0.90, 0.10], [0.05, 0.95]], parents=[alarm])
    bn.add_node(mary, [[0.70, 0.30], [0.01, 0.99]], parents=[alarm])
    return bn


def _brute_force(query, evidence, bn: BayesianNetwork) -> np.ndarray:
    """P(query | evidence) by summing the full joint distribution."""
    variables = bn.variables_in_topological_order()
    observed = {ap.variable: ap.value for ap in evidence}
    result = np.zeros([v.domain.size for v in query])

    for values in itertools.product(
        *(v.domain.possible_values for v in variables)
    ):
        world = dict(zip(variables, values))
        if any(world[v] != x for v, x in observed.items()):
            continue
        p = 1.0
        for var in variables:
            cpt = bn.get_node(var).cpt
            p *= cpt.get_value_at(*(world[v] for v in cpt.variables))
        idx = tuple(v.domain.index_of(world[v]) for v in query)
        result[idx] += p

    return result / result.sum()


# ------------------------------------------------------------------ #
#  Scenarios
# ------------------------------------------------------------------ #

@pytest.mark.parametrize("ask", ALGORITHMS)
class TestScenarios:
    """Hand-checked queries, run against both algorithms."""

    def test_two_node_chain_marginal(self, ask) -> None:
        bn, rain, sprinkler = _sprinkler_network()
        dist = ask([sprinkler], [], bn)
        assert dist.variables == (sprinkler,)
        assert dist.get_value_at(True) == pytest.approx(0.322, abs=1e-9)
        assert dist.get_value_at(False) == pytest.approx(0.678, abs=1e-9)

    def test_posterior_given_child(self, ask) -> None:
        bn, rain, sprinkler = _sprinkler_network()
        dist = ask([rain], [AssignmentProposition(sprinkler, True)], bn)
        np.testing.assert_allclose(
            dist.values, [0.002 / 0.322, 0.32 / 0.322], atol=1e-9
        )

    def test_joint_query_keeps_caller_order(self, ask) -> None:
        bn, rain, sprinkler = _sprinkler_network()
        dist = ask([sprinkler, rain], [], bn)
        assert dist.variables == (sprinkler, rain)
        np.testing.assert_allclose(
            dist.as_array(), [[0.002, 0.32], [0.198, 0.48]], atol=1e-9
        )

    def test_evidence_on_query_is_point_mass(self, ask) -> None:
        bn, rain, sprinkler = _sprinkler_network()
        dist = ask([rain], [AssignmentProposition(rain, True)], bn)
        np.testing.assert_allclose(dist.values, [1.0, 0.0])

    def test_evidence_on_query_point_mass_burglary(self, ask) -> None:
        bn = _burglary_network()
        burglary = bn.variable("Burglary")
        evidence = [
            AssignmentProposition(burglary, True),
            AssignmentProposition(bn.variable("JohnCalls"), False),
        ]
        dist = ask([burglary], evidence, bn)
        np.testing.assert_allclose(dist.values, [1.0, 0.0])

    def test_burglary_given_both_calls(self, ask) -> None:
        bn = _burglary_network()
        evidence = [
            AssignmentProposition(bn.variable("JohnCalls"), True),
            AssignmentProposition(bn.variable("MaryCalls"), True),
        ]
        dist = ask([bn.variable("Burglary")], evidence, bn)
        assert dist.get_value_at(True) == pytest.approx(0.284172, abs=1e-5)
        assert dist.get_value_at(False) == pytest.approx(0.715828, abs=1e-5)

    def test_alarm_and_earthquake_joint(self, ask) -> None:
        bn = _burglary_network()
        query = [bn.variable("Alarm"), bn.variable("Earthquake")]
        evidence = [AssignmentProposition(bn.variable("JohnCalls"), True)]
        dist = ask(query, evidence, bn)
        np.testing.assert_allclose(
            dist.as_array(), _brute_force(query, evidence, bn), atol=1e-9
        )

    def test_impossible_evidence_gives_zeros(self, ask) -> None:
        rain = RandomVariable("Rain")
        wet = RandomVariable("Wet")
        bn = BayesianNetwork()
        bn.add_node(rain, [0.0, 1.0])
        bn.add_node(wet, [[1.0, 0.0], [0.0, 1.0]], parents=[rain])
        dist = ask([rain], [AssignmentProposition(wet, True)], bn)
        np.testing.assert_array_equal(dist.values, [0.0, 0.0])


# ------------------------------------------------------------------ #
#  Properties on random networks
# ------------------------------------------------------------------ #

class TestRandomNetworks:
    """Agreement with brute force on generated networks."""

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_distribution_mass(self, seed: int) -> None:
        bn = build_layered(3, 2, num_states=3, seed=seed)
        query = [bn.variable("X4"), bn.variable("X1")]
        evidence = [AssignmentProposition(bn.variable("X0"), "s2")]
        dist = enumeration_ask(query, evidence, bn)
        assert dist.sum() == pytest.approx(1.0, abs=1e-9)

    @pytest.mark.parametrize("seed", [3, 4])
    def test_enumeration_matches_brute_force(self, seed: int) -> None:
        bn = build_layered(3, 3, seed=seed)
        query = [bn.variable("X7"), bn.variable("X3")]
        evidence = [
            AssignmentProposition(bn.variable("X0"), "s1"),
            AssignmentProposition(bn.variable("X5"), "s0"),
        ]
        dist = enumeration_ask(query, evidence, bn)
        np.testing.assert_allclose(
            dist.as_array(), _brute_force(query, evidence, bn), atol=1e-9
        )

    @pytest.mark.parametrize(
        "bn",
        [build_chain(6, num_states=3, seed=5), build_tree(7, seed=6),
         build_layered(3, 3, seed=7)],
        ids=["chain", "tree", "layered"],
    )
    def test_elimination_matches_enumeration(self, bn: BayesianNetwork) -> None:
        order = bn.variables_in_topological_order()
        query = [order[-1], order[1]]
        evidence = [AssignmentProposition(order[2], order[2].domain.value_at(0))]
        np.testing.assert_allclose(
            elimination_ask(query, evidence, bn).values,
            enumeration_ask(query, evidence, bn).values,
            atol=1e-9,
        )

    def test_network_not_mutated_by_queries(self) -> None:
        bn = build_tree(5, seed=8)
        before = [n.cpt.values.copy() for n in bn.topological_order()]
        enumeration_ask([bn.variable("X4")], [], bn)
        elimination_ask([bn.variable("X4")], [], bn)
        for node, values in zip(bn.topological_order(), before):
            np.testing.assert_array_equal(node.cpt.values, values)


# ------------------------------------------------------------------ #
#  Validation
# ------------------------------------------------------------------ #

@pytest.mark.parametrize("ask", ALGORITHMS)
class TestValidation:
    """Input errors are rejected before any work is done."""

    def test_empty_query(self, ask) -> None:
        bn, _, _ = _sprinkler_network()
        with pytest.raises(ValueError, match="At least one query"):
            ask([], [], bn)

    def test_duplicate_query(self, ask) -> None:
        bn, rain, _ = _sprinkler_network()
        with pytest.raises(ValueError, match="distinct"):
            ask([rain, rain], [], bn)

    def test_duplicate_evidence(self, ask) -> None:
        bn, rain, sprinkler = _sprinkler_network()
        evidence = [
            AssignmentProposition(rain, True),
            AssignmentProposition(rain, False),
        ]
        with pytest.raises(ValueError, match="distinct"):
            ask([sprinkler], evidence, bn)

    def test_unknown_variable(self, ask) -> None:
        bn, rain, _ = _sprinkler_network()
        with pytest.raises(ValueError, match="not in network"):
            ask([RandomVariable("Cloudy")], [], bn)

    def test_too_many_variables(self, ask) -> None:
        bn, rain, sprinkler = _sprinkler_network()
        query = [rain, sprinkler, RandomVariable("Cloudy")]
        with pytest.raises(ValueError, match="exceed"):
            ask(query, [], bn)

    def test_non_finite_node(self, ask) -> None:
        a = RandomVariable("A")
        bn = BayesianNetwork()
        bn.add(Node(a))
        with pytest.raises(TypeError, match="finite nodes"):
            ask([a], [], bn)


class TestLogging:
    """Query evaluation is traced at DEBUG level."""

    def test_enumeration_logs_result(self, caplog) -> None:
        bn, rain, sprinkler = _sprinkler_network()
        with caplog.at_level(logging.DEBUG, logger="factorflow.inference.exact"):
            enumeration_ask([sprinkler], [], bn)
        assert "enumeration_ask over ['Sprinkler']" in caplog.text

    def test_logged_distribution_is_normalized(self, caplog) -> None:
        bn, rain, sprinkler = _sprinkler_network()
        with caplog.at_level(logging.DEBUG, logger="factorflow.inference.exact"):
            dist = enumeration_ask([rain], [AssignmentProposition(sprinkler, True)], bn)
        assert str(dist) in caplog.text
