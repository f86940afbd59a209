"""N-point mass-weighted crossover of two Days.

Both parents' portions are laid end to end by mass. Each cut point is a mass
offset into that sequence; children take turns receiving the mass between
consecutive cuts, and a portion straddling a cut is split at the exact gram.
"""

from __future__ import annotations

from itertools import chain
from typing import Optional

import numpy as np

from dietsearch.optimizer.day import Day, Portion
from dietsearch.optimizer.fitness import FitnessContext


def draw_cutoffs(total_mass: int, num_points: int, rng: np.random.Generator) -> list[int]:
    """Random cut points as mass offsets in ``[1, total_mass - 1]``.

    Returns:
        Sorted, distinct offsets. Fewer than ``num_points`` when draws collide,
        and none at all when the total mass is below 2g.
    """
    if total_mass < 2:
        return []

    cutoffs = set()
    for _ in range(num_points):
        cutoff = int(total_mass * rng.random())
        cutoffs.add(min(max(cutoff, 1), total_mass - 1))
    return sorted(cutoffs)


def crossover(
    parent_a: Day,
    parent_b: Day,
    cutoffs: list[int],
    context: FitnessContext,
) -> tuple[Day, Day]:
    """Produce two children by cutting the parents' combined portions.

    Args:
        parent_a: First parent; left unchanged
        parent_b: Second parent; left unchanged
        cutoffs: Sorted mass offsets into the combined portion sequence
        context: Fitness context for the children

    Returns:
        Two children whose masses sum to the parents' combined mass. A child
        may be empty only when ``cutoffs`` is empty.
    """
    children = (Day(context), Day(context))
    pending = list(cutoffs)
    current = 0
    mass_sum = 0

    for portion in chain(parent_a.portions, parent_b.portions):
        remaining: Optional[Portion] = portion
        while remaining is not None:
            if pending and mass_sum + remaining.mass > pending[0]:
                offset = pending.pop(0) - mass_sum
                if offset > 0:
                    head, remaining = remaining.split(offset)
                    children[current].add_portion(head)
                    mass_sum += offset
                current = 1 - current
            else:
                children[current].add_portion(remaining)
                mass_sum += remaining.mass
                remaining = None

    return children
