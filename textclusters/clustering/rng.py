"""Seedable random source shared by the randomized stages."""

from __future__ import annotations

from typing import Union

import numpy as np

RandomLike = Union[None, int, np.random.Generator]


def make_rng(seed: RandomLike = None) -> np.random.Generator:
    """Return a Generator: pass-through for a Generator, seeded for an int, fresh for None."""
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)
