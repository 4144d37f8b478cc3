"""Inference algorithms for factorflow."""

from factorflow.inference.exact import (
    elimination_ask,
    enumeration_ask,
)

__all__ = [
    "elimination_ask",
    "enumeration_ask",
]
