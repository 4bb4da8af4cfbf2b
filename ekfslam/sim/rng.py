"""
Process-wide random generator for the simulator.

The generator is created lazily on first use and then shared by every
simulator that is not given its own numpy Generator. The estimator never
draws random numbers.
"""

from typing import Optional

import numpy as np

_RNG: Optional[np.random.Generator] = None


def get_random(seed: Optional[int] = None) -> np.random.Generator:
    """
    Return the shared random generator, creating it on first use.

    Args:
        seed: Seed used only when the generator does not exist yet.

    Returns:
        The process-wide numpy Generator.
    """
    global _RNG
    if _RNG is None:
        _RNG = np.random.default_rng(seed)
    return _RNG


def seed_random(seed: Optional[int]) -> np.random.Generator:
    """Replace the shared generator with a freshly seeded one."""
    global _RNG
    _RNG = np.random.default_rng(seed)
    return _RNG
