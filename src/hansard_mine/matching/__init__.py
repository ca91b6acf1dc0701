"""Matching of transcript fragments against the member registry."""
from __future__ import annotations

from .constituency import ConstituencyIndex, normalize_constituency
from .names import (
    ConstituencyStrategy,
    ExactNameStrategy,
    NameResolver,
    Resolution,
    ResolutionStrategy,
    SubstringStrategy,
    default_strategies,
    normalize_name,
)

__all__ = [
    "ConstituencyIndex",
    "ConstituencyStrategy",
    "ExactNameStrategy",
    "NameResolver",
    "Resolution",
    "ResolutionStrategy",
    "SubstringStrategy",
    "default_strategies",
    "normalize_constituency",
    "normalize_name",
]
