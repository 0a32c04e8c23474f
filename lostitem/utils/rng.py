"""Card draws from a loaded mapping, with optional deterministic RNG."""

import hashlib
import random
from typing import List, Optional, Sequence

from ..errors import EmptyMappingError
from ..models import CardMappingEntry

DRAW_COUNT = 3


def seeded_random(seed: str, salt: str = "") -> random.Random:
    """Create a deterministic random.Random instance from seed and optional salt.

    Args:
        seed: Base seed string
        salt: Optional salt to modify the seed

    Returns:
        random.Random instance that will produce deterministic sequences
    """
    combined = f"{seed}{salt}"
    int_seed = int(hashlib.sha256(combined.encode("utf-8")).hexdigest(), 16)
    return random.Random(int_seed & ((1 << 31) - 1))


def draw_indices(n: int, count: int, rng: Optional[random.Random] = None) -> List[int]:
    """Pick `count` distinct indices in [0, n), in the order they were drawn.

    Rejection sampling: cheap because count is a small constant.
    """
    if count > n:
        raise ValueError(f"cannot draw {count} distinct indices from {n}")
    source = rng or random
    chosen: List[int] = []
    seen = set()
    while len(chosen) < count:
        idx = source.randrange(n)
        if idx not in seen:
            seen.add(idx)
            chosen.append(idx)
    return chosen


def draw_three(mapping: Sequence[CardMappingEntry], rng: Optional[random.Random] = None) -> List[CardMappingEntry]:
    """Draw min(3, N) distinct entries uniformly at random.

    Raises:
        EmptyMappingError: the mapping has no entries
    """
    n = len(mapping)
    if n == 0:
        raise EmptyMappingError("Mapping is empty; nothing to draw")
    return [mapping[i] for i in draw_indices(n, min(DRAW_COUNT, n), rng)]
