"""Example usage of the factorflow package.

This example demonstrates the core features of the factorflow package including:
- Finite random variables and probability tables
- The factor algebra: products, marginals, division, normalization
- Building a Bayesian network from conditional probability tables
- Exact queries with enumeration and variable elimination
"""

from factorflow import (
    AssignmentProposition, BayesianNetwork, FiniteDomain,
    ProbabilityTable, RandomVariable,
    elimination_ask, enumeration_ask,
)


def probability_table_example():
    """Demonstrate the probability table algebra."""
    print("=" * 60)
    print("Probability Table Example")
    print("=" * 60)

    coin = RandomVariable("Coin")
    die = RandomVariable("Die", FiniteDomain([1, 2, 3, 4, 5, 6]))

    print("\n1. Independent product")
    p_coin = ProbabilityTable([coin], [0.5, 0.5])
    p_die = ProbabilityTable([die], [1 / 6] * 6)
    joint = p_coin * p_die
    print(f"   Joint over {[v.name for v in joint.variables]}: {len(joint)} cells")
    print(f"   P(Coin=True, Die=3) = {joint.get_value_at(True, 3):.4f}")

    print("\n2. Marginalization")
    marginal = joint.sum_out(coin)
    print(f"   P(Die) = {marginal}")

    print("\n3. Division undoes the product")
    restored = (joint / p_die).sum_out(die).normalize()
    print(f"   P(Coin) = {restored}")

    print("\n4. Iterating possible worlds")
    for world, p in p_coin:
        print(f"   {world[coin]!s:<5} -> {p}")


def network_example():
    """Demonstrate queries on the burglary alarm network."""
    print("\n" + "=" * 60)
    print("Bayesian Network Example")
    print("=" * 60)

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
    print(f"\n   {bn}")

    evidence = [
        AssignmentProposition(john, True),
        AssignmentProposition(mary, True),
    ]

    print("\n1. Enumeration")
    dist = enumeration_ask([burglary], evidence, bn)
    print(f"   P(Burglary | JohnCalls, MaryCalls) = {dist}")

    print("\n2. Variable elimination")
    dist = elimination_ask([burglary], evidence, bn)
    print(f"   P(Burglary | JohnCalls, MaryCalls) = {dist}")

    print("\n3. Joint query")
    dist = enumeration_ask([alarm, earthquake], evidence[:1], bn)
    for world, p in dist:
        print(f"   Alarm={world[alarm]!s:<5} Earthquake={world[earthquake]!s:<5} {p:.4f}")


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("factorflow Package Examples")
    print("=" * 60)

    probability_table_example()
    network_example()

    print("\n" + "=" * 60)
    print("Examples completed successfully!")
    print("=" * 60 + "\n")
