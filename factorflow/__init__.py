"""factorflow: exact inference for discrete Bayesian networks.

This package provides finite random variables, dense probability tables
with their factor algebra (marginalization, pointwise product, division,
normalization), Bayesian networks built from conditional probability
tables, and exact query evaluation by enumeration and by variable
elimination.
"""

try:
    from factorflow._version import version as __version__
except ImportError:
    __version__ = "0.1.0"

from .core.types import (
    AssignmentProposition,
    BooleanDomain,
    FiniteDomain,
    RandomVariable,
)
from .core.radix import MixedRadix
from .core.table import ProbabilityTable
from .networks.dag import BayesianNetwork, FiniteNode, Node
from .inference.exact import elimination_ask, enumeration_ask

__all__ = [
    "AssignmentProposition",
    "BooleanDomain",
    "FiniteDomain",
    "RandomVariable",
    "MixedRadix",
    "ProbabilityTable",
    "BayesianNetwork",
    "FiniteNode",
    "Node",
    "elimination_ask",
    "enumeration_ask",
]
