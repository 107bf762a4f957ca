"""Calorie-spread selection of meals for one meal type."""

import math
import random
from typing import List, Optional, Sequence

from fitbody.data_layer.models import Meal

SMALL_POOL_SIZE = 3
MAX_PICKS = 4


def calorie_terciles(meals: Sequence[Meal]) -> List[List[Meal]]:
    """Split *meals* into low, mid and high calorie buckets.

    Meals are sorted by calories ascending (stable, so ties keep their
    arrival order) and cut at ``ceil(n/3)`` and ``ceil(2n/3)``.
    """
    ordered = sorted(meals, key=lambda meal: meal.cal)
    n = len(ordered)
    first = math.ceil(n / 3)
    second = math.ceil(2 * n / 3)
    return [ordered[:first], ordered[first:second], ordered[second:]]


def select_meals_for_type(
    candidates: Sequence[Meal], rng: Optional[random.Random] = None
) -> List[Meal]:
    """Pick a varied handful of meals from *candidates*.

    Three or fewer candidates are all selected. Otherwise one meal is drawn
    at random from each non-empty calorie tercile, then one more from the
    meals not yet picked while fewer than four are selected.

    Args:
        candidates: Meals of a single type, as returned by the backend
        rng: Random source; an unseeded generator when omitted

    Returns:
        Selected meals, without duplicates
    """
    rng = rng or random.Random()
    if len(candidates) <= SMALL_POOL_SIZE:
        return list(candidates)

    picks: List[Meal] = []
    for bucket in calorie_terciles(candidates):
        if bucket:
            picks.append(rng.choice(bucket))

    remaining = [meal for meal in candidates if not any(meal is p for p in picks)]
    if remaining and len(picks) < MAX_PICKS:
        picks.append(rng.choice(remaining))
    return picks
