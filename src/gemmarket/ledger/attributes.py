from __future__ import annotations

import math
import random
from typing import Optional, Tuple

from gemmarket.ledger.types import RARITY_TIERS, GemAttributes, rarity_rank

# Relative weights, same order as RARITY_TIERS (sum = 100).
RARITY_WEIGHTS: Tuple[float, ...] = (50.0, 30.0, 15.0, 4.0, 0.9, 0.1)

COLORS: Tuple[str, ...] = ("Red", "Blue", "Green", "Yellow", "Purple", "Orange", "Pink", "White", "Black")


def pick_rarity(draw: float) -> str:
    """Map a draw in [0, sum(weights)) to a tier via cumulative weights."""
    cumulative = 0.0
    for tier, weight in zip(RARITY_TIERS, RARITY_WEIGHTS):
        cumulative += weight
        if draw <= cumulative:
            return tier
    # float rounding at the top edge
    return RARITY_TIERS[0]


def generate_attributes(rng: Optional[random.Random] = None) -> GemAttributes:
    """Random attribute set for a gem minted without explicit attributes.

    Stats scale with rarity: one base in [30, 50) is drawn per gem and each
    stat is floor(base * rank + U(0, 20)).
    """
    r = rng or random
    rarity = pick_rarity(r.random() * sum(RARITY_WEIGHTS))
    multiplier = rarity_rank(rarity)
    base = 30 + r.random() * 20

    def _stat() -> int:
        return int(math.floor(base * multiplier + r.random() * 20))

    return GemAttributes(
        color=COLORS[int(r.random() * len(COLORS))],
        rarity=rarity,
        power=_stat(),
        shine=_stat(),
        durability=_stat(),
    )
