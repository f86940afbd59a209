"""The population of Days an algorithm works on, with cached fitness values."""

from __future__ import annotations

import functools
import math
from typing import Iterator, Optional

from dietsearch.optimizer.day import Day
from dietsearch.optimizer.fitness import FitnessContext
from dietsearch.optimizer.models import FitnessApproach


class Population:
    """Days plus cached fitness values, average and sort order.

    Each Day's value is cached against its version, so a change to one Day
    only recomputes that Day, the average and the sort order. Under Pareto
    fitness the members are also kept in the context's ParetoHierarchy, and
    since one Day's rank can move when another is added or removed, every
    membership change drops all cached values.
    """

    def __init__(self, context: FitnessContext):
        self.context = context
        self._days: list[Day] = []
        # Day -> (version, value)
        self._values: dict[Day, tuple[int, float]] = {}
        self._average: Optional[float] = None
        self._sorted: Optional[list[Day]] = None

    @property
    def is_pareto(self) -> bool:
        return self.context.approach == FitnessApproach.PARETO

    def __len__(self) -> int:
        return len(self._days)

    def __iter__(self) -> Iterator[Day]:
        return iter(list(self._days))

    def __contains__(self, day: object) -> bool:
        return any(d is day for d in self._days)

    def add(self, day: Day) -> None:
        if day in self:
            return
        self._days.append(day)
        if self.is_pareto:
            self.context.hierarchy.insert(day.fitness)
            self._values.clear()
        self._invalidate()

    def remove(self, day: Day) -> bool:
        """Remove ``day``; returns False if it was not a member."""
        for i, member in enumerate(self._days):
            if member is day:
                del self._days[i]
                break
        else:
            return False

        self._values.pop(day, None)
        if self.is_pareto:
            self.context.hierarchy.remove(day.fitness)
            self._values.clear()
        self._invalidate()
        return True

    def mark_outdated(self, day: Day) -> None:
        """Force ``day``'s value to be recomputed on the next read.

        Under Pareto fitness the Day is re-inserted into the hierarchy, since
        its penalties may have changed since it was ranked.
        """
        self._values.pop(day, None)
        if self.is_pareto and day in self:
            self.context.hierarchy.remove(day.fitness)
            self.context.hierarchy.insert(day.fitness)
            self._values.clear()
        self._invalidate()

    def _invalidate(self) -> None:
        self._average = None
        self._sorted = None

    def _refresh(self) -> None:
        """Drop the average and order if any member changed since it was cached."""
        for day in self._days:
            cached = self._values.get(day)
            if cached is None or cached[0] != day.version:
                self._values[day] = (day.version, day.fitness.value)
                self._invalidate()

    def get_fitness(self, day: Day) -> float:
        cached = self._values.get(day)
        if cached is not None and cached[0] == day.version:
            return cached[1]

        value = day.fitness.value
        if day in self:
            self._values[day] = (day.version, value)
            self._invalidate()
        return value

    def get_average_fitness(self) -> float:
        """Mean fitness value over the population; infinite if any Day is."""
        self._refresh()
        if self._average is None:
            if not self._days:
                return math.nan
            self._average = math.fsum(self._values[d][1] for d in self._days) / len(self._days)
        return self._average

    def get_sorted_population(self, reverse: bool = False) -> list[Day]:
        """Days from best to worst (worst first when ``reverse``)."""
        self._refresh()
        if self._sorted is None:
            self._sorted = sorted(self._days, key=functools.cmp_to_key(Day.compare))
        if reverse:
            return list(reversed(self._sorted))
        return list(self._sorted)

    def best(self) -> Optional[Day]:
        if not self._days:
            return None
        return self.get_sorted_population()[0]
