"""Output formatters for search results."""

from __future__ import annotations

import json
import math
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dietsearch.data.nutrients import NUTRIENTS, get_nutrient_display_name, get_nutrient_unit
from dietsearch.optimizer.algorithm import Algorithm
from dietsearch.optimizer.constraints import NullConstraint
from dietsearch.optimizer.day import Day


def _format_value(value: float) -> str:
    if math.isinf(value):
        return "inf"
    return f"{value:.2f}"


class TableFormatter:
    """Format results as Rich tables for terminal display."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize the formatter.

        Args:
            console: Rich console for output. If None, creates a new one.
        """
        self.console = console or Console()

    def format(self, algorithm: Algorithm, show_population: bool = False) -> None:
        """Print the best Day of a run, and optionally the whole population.

        Args:
            algorithm: An initialised algorithm
            show_population: Also print one row per population member
        """
        best = algorithm.best_day()

        header_lines = [
            f"[bold]SEARCH RESULT[/bold] - {type(algorithm).__name__}",
            f"Iterations: {algorithm.iteration}",
            f"Active constraints: {algorithm.num_constraints()}",
            f"Average fitness: {_format_value(algorithm.average_fitness())}",
        ]
        if best is not None:
            header_lines.append(
                f"Best fitness: [green]{_format_value(best.fitness.value)}[/green] "
                f"(iteration {algorithm.best_iteration})"
            )
        self.console.print(Panel("\n".join(header_lines), title="Meal Plan"))

        if best is None:
            self.console.print("[red]No Day found[/red]")
            return

        self.format_day(best, algorithm)

        if show_population:
            self.format_population(algorithm)

    def format_day(self, day: Day, algorithm: Algorithm) -> None:
        """Print a Day's portions and its per-nutrient penalties."""
        food_table = Table(title="Daily Food Allocation")
        food_table.add_column("Food", style="cyan", max_width=50)
        food_table.add_column("Grams", justify="right")

        for portion in day.portions:
            food_table.add_row(portion.food.name[:50], str(portion.mass))
        food_table.add_row("[bold]TOTAL[/bold]", f"[bold]{day.mass}[/bold]", style="bold")
        self.console.print(food_table)

        nutrient_table = Table(title="Nutrient Summary")
        nutrient_table.add_column("Nutrient")
        nutrient_table.add_column("Amount", justify="right")
        nutrient_table.add_column("Constraint")
        nutrient_table.add_column("Penalty", justify="right")

        for i, nutrient in enumerate(NUTRIENTS):
            constraint = algorithm.constraints[nutrient]
            if isinstance(constraint, NullConstraint):
                continue
            penalty = day.fitness.nutrient_value(i)
            style = "red" if math.isinf(penalty) else "green"
            nutrient_table.add_row(
                get_nutrient_display_name(nutrient),
                f"{day.amount(nutrient):.1f} {get_nutrient_unit(nutrient)}",
                constraint.verbose(),
                f"[{style}]{_format_value(penalty)}[/{style}]",
            )
        self.console.print(nutrient_table)

    def format_population(self, algorithm: Algorithm) -> None:
        table = Table(title="Population")
        table.add_column("#", justify="right")
        table.add_column("Fitness", justify="right")
        table.add_column("Mass", justify="right")
        table.add_column("Portions")

        for i, day in enumerate(algorithm.population, start=1):
            table.add_row(
                str(i),
                _format_value(day.fitness.value),
                f"{day.mass}g",
                ", ".join(f"{p.food.name} {p.mass}g" for p in day.portions),
            )
        self.console.print(table)


class JSONFormatter:
    """Format results as JSON for programmatic use."""

    def format(self, algorithm: Algorithm) -> str:
        """Return JSON string.

        Infinite fitness values are written as null.
        """

        def value(x: float) -> Optional[float]:
            return None if math.isinf(x) else round(x, 4)

        best = algorithm.best_day()
        data = {
            "algorithm": type(algorithm).__name__,
            "iterations": algorithm.iteration,
            "average_fitness": value(algorithm.average_fitness()),
            "best": None,
        }
        if best is not None:
            data["best"] = {
                "fitness": value(best.fitness.value),
                "iteration": algorithm.best_iteration,
                "mass": best.mass,
                "portions": [
                    {"food": p.food.name, "group": p.food.group, "grams": p.mass}
                    for p in best.portions
                ],
                "nutrients": {
                    n.value: round(best.amount(n), 4) for n in NUTRIENTS
                },
            }
        return json.dumps(data, indent=2)


def format_result(
    algorithm: Algorithm,
    output_format: str = "table",
    console: Optional[Console] = None,
    show_population: bool = False,
) -> Optional[str]:
    """Format a run's result in the specified format.

    Args:
        algorithm: An initialised algorithm
        output_format: One of 'table', 'json'
        console: Rich console (for table format)
        show_population: Table format only; also list the population

    Returns:
        Formatted string for json, None for table (prints directly)
    """
    if output_format == "table":
        TableFormatter(console).format(algorithm, show_population)
        return None
    elif output_format == "json":
        return JSONFormatter().format(algorithm)
    else:
        raise ValueError(f"Unknown output format: {output_format}")
