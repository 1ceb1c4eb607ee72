"""A well-seeded pseudo-random number generator."""

from __future__ import annotations

import random
import secrets

_SEED_WORDS = 1024


def get_random_engine() -> random.Random:
    """A new generator seeded from 1024 words of operating-system randomness."""
    return random.Random(secrets.randbits(32 * _SEED_WORDS))