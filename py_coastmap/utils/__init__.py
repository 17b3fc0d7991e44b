"""
Utility helpers.
"""

from .random import make_prng, new_seed, derive_int_seed

__all__ = ["make_prng", "new_seed", "derive_int_seed"]
