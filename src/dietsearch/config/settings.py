"""Run configuration: algorithm parameters and constraints for one search."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from dietsearch.optimizer.constraints import (
    ConstraintData,
    default_constraints,
    parse_constraints,
)
from dietsearch.optimizer.models import (
    AlgorithmType,
    ConfigurationError,
    FitnessApproach,
    SelectionMethod,
)


@dataclass
class GAConfig:
    """Genetic algorithm parameters."""

    selection_method: SelectionMethod = SelectionMethod.TOURNAMENT
    tournament_size: int = 2
    selection_pressure: float = 1.5  # Rank selection only, in [1, 2]
    num_crossover_points: int = 1
    proportion_parents: float = 0.5
    mutation_mass_change_min: int = 1
    mutation_mass_change_max: int = 10
    change_portion_mass_mutation_prob: float = 1.0
    add_or_remove_portion_mutation_prob: float = 0.1

    def num_parents(self, population_size: int) -> int:
        """Parents per generation; always even, one child per parent."""
        return int(population_size * self.proportion_parents / 2) * 2


@dataclass
class ACOConfig:
    """Ant colony parameters."""

    colony_portions: int = 10
    colony_stagnation_iters: int = 50
    phero_importance: float = 1.0
    phero_evap_rate: float = 0.1
    alpha: float = 1.0
    beta: float = 1.0
    elitist: bool = False


@dataclass
class PSOConfig:
    """Particle swarm parameters."""

    # Number of foods a particle moves over; None uses the whole catalog
    pso_dimensions: Optional[int] = None


@dataclass
class RunConfig:
    """Everything one search run needs apart from the food catalog."""

    algorithm: AlgorithmType = AlgorithmType.GA
    seed: Optional[int] = None
    population_size: int = 10
    min_portion_mass: int = 1
    max_portion_mass: int = 500
    num_starting_portions_per_day: int = 1
    add_fitness_for_mass: bool = True
    fitness_approach: FitnessApproach = FitnessApproach.SUMMED
    constraints: list[ConstraintData] = field(default_factory=list)
    ga: GAConfig = field(default_factory=GAConfig)
    aco: ACOConfig = field(default_factory=ACOConfig)
    pso: PSOConfig = field(default_factory=PSOConfig)

    def validate(self) -> None:
        """Check every parameter; constraint data is checked too.

        Raises:
            ConfigurationError: Describing the first invalid parameter found
        """
        if self.population_size < 1:
            _fail("population_size", f"must be at least 1, got {self.population_size}")
        if self.min_portion_mass < 1:
            _fail("min_portion_mass", f"must be at least 1, got {self.min_portion_mass}")
        if self.max_portion_mass < self.min_portion_mass:
            _fail(
                "max_portion_mass",
                f"({self.max_portion_mass}) is less than min_portion_mass "
                f"({self.min_portion_mass})",
            )
        if self.num_starting_portions_per_day < 1:
            _fail(
                "num_starting_portions_per_day",
                f"must be at least 1, got {self.num_starting_portions_per_day}",
            )
        if (
            self.fitness_approach == FitnessApproach.PARETO
            and self.algorithm != AlgorithmType.GA
        ):
            _fail(
                "fitness_approach",
                f"pareto fitness is only supported by the GA, not {self.algorithm.value}",
            )

        for data in self.constraints:
            data.validate()

        if self.algorithm == AlgorithmType.GA:
            self._validate_ga()
        elif self.algorithm == AlgorithmType.ACO:
            self._validate_aco()
        elif self.algorithm == AlgorithmType.PSO:
            self._validate_pso()

    def _validate_ga(self) -> None:
        ga = self.ga
        if ga.tournament_size < 1:
            _fail("tournament_size", f"must be at least 1, got {ga.tournament_size}")
        if not 1.0 <= ga.selection_pressure <= 2.0:
            _fail("selection_pressure", f"must be in [1, 2], got {ga.selection_pressure}")
        if ga.num_crossover_points < 1:
            _fail(
                "num_crossover_points", f"must be at least 1, got {ga.num_crossover_points}"
            )
        if ga.mutation_mass_change_min < 1:
            _fail(
                "mutation_mass_change_min",
                f"must be at least 1, got {ga.mutation_mass_change_min}",
            )
        if ga.mutation_mass_change_max < ga.mutation_mass_change_min:
            _fail(
                "mutation_mass_change_max",
                f"({ga.mutation_mass_change_max}) is less than mutation_mass_change_min "
                f"({ga.mutation_mass_change_min})",
            )
        for name in ("change_portion_mass_mutation_prob", "add_or_remove_portion_mutation_prob"):
            value = getattr(ga, name)
            if value < 0:
                _fail(name, f"must be non-negative, got {value}")
        if not 0 < ga.proportion_parents <= 1:
            _fail("proportion_parents", f"must be in (0, 1], got {ga.proportion_parents}")
        if ga.num_parents(self.population_size) == 0:
            _fail(
                "proportion_parents",
                f"population of {self.population_size} with proportion "
                f"{ga.proportion_parents} gives no parents",
            )

    def _validate_aco(self) -> None:
        aco = self.aco
        if aco.colony_portions < 1:
            _fail("colony_portions", f"must be at least 1, got {aco.colony_portions}")
        if aco.colony_stagnation_iters < 1:
            _fail(
                "colony_stagnation_iters",
                f"must be at least 1, got {aco.colony_stagnation_iters}",
            )
        if aco.alpha <= 0:
            _fail("alpha", f"must be positive, got {aco.alpha}")
        if aco.beta <= 0:
            _fail("beta", f"must be positive, got {aco.beta}")
        if aco.phero_importance < 0:
            _fail("phero_importance", f"must be non-negative, got {aco.phero_importance}")
        if not 0.0 <= aco.phero_evap_rate <= 1.0:
            _fail("phero_evap_rate", f"must be in [0, 1], got {aco.phero_evap_rate}")

    def _validate_pso(self) -> None:
        dims = self.pso.pso_dimensions
        if dims is not None and dims < 1:
            _fail("pso_dimensions", f"must be at least 1, got {dims}")


def _fail(field_name: str, message: str) -> None:
    raise ConfigurationError(f"{field_name} {message}", field=field_name)


def _apply(target: Any, data: dict[str, Any], converters: dict[str, Any]) -> None:
    """Copy the keys present in ``data`` onto ``target``, converting each value."""
    for key, convert in converters.items():
        if key in data:
            value = data[key]
            setattr(target, key, None if value is None else convert(value))


def _enum(enum_type):
    return lambda value: enum_type(str(value).lower())


def load_run_config(config_path: Path) -> RunConfig:
    """Load a run configuration from YAML.

    Missing keys keep their defaults. Constraints come from a ``constraints``
    mapping (as in a constraint profile), or from ``kcal_goal`` via
    ``default_constraints`` when no mapping is given.

    Args:
        config_path: Path to the YAML file

    Returns:
        RunConfig instance (not yet validated)

    Raises:
        FileNotFoundError: If the file doesn't exist
        KeyError: If a nutrient name is unknown
        ValueError: If an enum value is unknown
    """
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    config = RunConfig()

    _apply(
        config,
        data,
        {
            "algorithm": _enum(AlgorithmType),
            "seed": int,
            "population_size": int,
            "min_portion_mass": int,
            "max_portion_mass": int,
            "num_starting_portions_per_day": int,
            "add_fitness_for_mass": bool,
            "fitness_approach": _enum(FitnessApproach),
        },
    )

    if "constraints" in data:
        config.constraints = parse_constraints(data["constraints"] or {})
    elif "kcal_goal" in data:
        config.constraints = default_constraints(float(data["kcal_goal"]))

    # Parse algorithm sections
    if "ga" in data:
        _apply(
            config.ga,
            data["ga"] or {},
            {
                "selection_method": _enum(SelectionMethod),
                "tournament_size": int,
                "selection_pressure": float,
                "num_crossover_points": int,
                "proportion_parents": float,
                "mutation_mass_change_min": int,
                "mutation_mass_change_max": int,
                "change_portion_mass_mutation_prob": float,
                "add_or_remove_portion_mutation_prob": float,
            },
        )

    if "aco" in data:
        _apply(
            config.aco,
            data["aco"] or {},
            {
                "colony_portions": int,
                "colony_stagnation_iters": int,
                "phero_importance": float,
                "phero_evap_rate": float,
                "alpha": float,
                "beta": float,
                "elitist": bool,
            },
        )

    if "pso" in data:
        _apply(config.pso, data["pso"] or {}, {"pso_dimensions": int})

    return config
