"""Core module for factorflow.

This module contains finite domains, random variables, the mixed-radix
codec and the probability table with its factor algebra.
"""

from .types import AssignmentProposition, BooleanDomain, FiniteDomain, RandomVariable
from .radix import MixedRadix
from .table import ProbabilityTable

__all__ = [
    "AssignmentProposition",
    "BooleanDomain",
    "FiniteDomain",
    "RandomVariable",
    "MixedRadix",
    "ProbabilityTable",
]
