"""Seeded randomness so every balancing run can be replayed."""

import random
import secrets
from typing import Optional, Tuple

SEED_LENGTH = 8


def generate_seed() -> str:
    """Return a fresh seed token of SEED_LENGTH hex characters."""
    return secrets.token_hex(SEED_LENGTH // 2)


def new_generator(seed: Optional[str] = None) -> Tuple[random.Random, str]:
    """Return a deterministic random generator and the seed it was built from.

    String seeds are hashed with SHA-512 by ``random.Random``, so the same
    seed gives the same draws on every platform. A blank seed is replaced by
    a generated one, which is returned so the run can be reproduced.

    Args:
        seed: Seed supplied by the caller, if any

    Returns:
        Tuple of (generator, seed actually used)
    """
    seed_used = str(seed).strip() if seed is not None else ""
    if not seed_used:
        seed_used = generate_seed()
    return random.Random(seed_used), seed_used
