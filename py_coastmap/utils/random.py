"""
Random number generation utilities.

All randomness in the generator flows through an explicitly passed
``AleaPRNG``. Seeded runs are reproducible; unseeded runs draw a fresh seed
from the operating system.
"""

import secrets
from typing import Optional

from ..core.alea_prng import AleaPRNG


def new_seed() -> str:
    """Return a fresh random seed string."""
    return str(secrets.randbelow(10**9))


def make_prng(seed: Optional[str] = None) -> AleaPRNG:
    """
    Create a generator for one generation pass.

    Args:
        seed: Seed string; a random one is drawn when omitted

    Returns:
        AleaPRNG instance
    """
    if seed is None:
        seed = new_seed()
    return AleaPRNG(str(seed))


def derive_int_seed(prng: AleaPRNG) -> int:
    """Draw a 31-bit integer seed, e.g. for a noise generator."""
    return int(prng.random() * 2**31)
