"""CLI interface using Typer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from dietsearch.config.settings import RunConfig, load_run_config
from dietsearch.data.catalog import FoodCatalog, load_catalog_from_yaml
from dietsearch.export.formatters import format_result
from dietsearch.optimizer.algorithm import build_algorithm
from dietsearch.optimizer.constraints import ConstraintSet
from dietsearch.optimizer.models import DietSearchError

app = typer.Typer(
    help="Meal plan search with genetic, ant colony and particle swarm algorithms",
    no_args_is_help=True,
)
console = Console()

logger = logging.getLogger("dietsearch")


def setup_logging(verbose: bool) -> None:
    """Send dietsearch log records to a RichHandler on stderr."""
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False


def load_config_or_exit(config_path: Path) -> RunConfig:
    """Load and validate a run configuration.

    Raises typer.Exit(1) with a friendly message if it is missing or invalid.
    """
    if not config_path.exists():
        console.print(f"[red]Config file not found: {config_path}[/red]")
        raise typer.Exit(1)

    try:
        config = load_run_config(config_path)
        config.validate()
        # Builds every constraint curve, catching duplicate nutrients too
        ConstraintSet(config.constraints)
    except (DietSearchError, KeyError, ValueError) as e:
        console.print(f"[red]Invalid config: {e}[/red]")
        raise typer.Exit(1)

    return config


def load_catalog_or_exit(catalog_path: Path) -> FoodCatalog:
    if not catalog_path.exists():
        console.print(f"[red]Catalog file not found: {catalog_path}[/red]")
        raise typer.Exit(1)

    try:
        return load_catalog_from_yaml(catalog_path)
    except (KeyError, ValueError) as e:
        console.print(f"[red]Invalid catalog: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def run(
    config_path: Path = typer.Argument(..., help="Path to run configuration YAML"),
    catalog_path: Path = typer.Argument(..., help="Path to food catalog YAML"),
    iterations: int = typer.Option(
        100, "--iterations", "-n", min=0, help="Number of iterations to run"
    ),
    seed: Optional[int] = typer.Option(
        None, "--seed", help="Random seed (overrides the config)"
    ),
    output_format: str = typer.Option(
        "table", "--format", "-f", help="Output format: table or json"
    ),
    show_population: bool = typer.Option(
        False, "--population", help="Also list the final population"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Search for the best Day and print it."""
    setup_logging(verbose)

    config = load_config_or_exit(config_path)
    if seed is not None:
        config.seed = seed
    catalog = load_catalog_or_exit(catalog_path)

    try:
        algorithm = build_algorithm(list(catalog), config)
        algorithm.init()
    except DietSearchError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    logger.info(
        "Running %s on %d foods for %d iterations",
        config.algorithm.value,
        len(catalog),
        iterations,
    )
    for _ in range(iterations):
        algorithm.next_iteration()
        logger.debug(
            "Iteration %d: average fitness %s",
            algorithm.iteration,
            algorithm.average_fitness(),
        )

    try:
        output = format_result(
            algorithm, output_format, console=console, show_population=show_population
        )
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if output is not None:
        print(output)


@app.command()
def check(
    config_path: Path = typer.Argument(..., help="Path to run configuration YAML"),
) -> None:
    """Validate a run configuration and list its constraints."""
    config = load_config_or_exit(config_path)
    constraints = ConstraintSet(config.constraints)

    console.print(
        f"[green]Config OK[/green]: {config.algorithm.value}, "
        f"population {config.population_size}, "
        f"{config.fitness_approach.value} fitness"
    )

    if not constraints.data:
        console.print("[yellow]No constraints defined[/yellow]")
        return

    table = Table(title="Constraints")
    table.add_column("Nutrient", style="cyan")
    table.add_column("Constraint")
    table.add_column("Weight", justify="right")

    for nutrient, data in constraints.data.items():
        constraint = constraints[nutrient]
        table.add_row(nutrient.value, constraint.verbose(), f"{data.weight:g}")

    console.print(table)


if __name__ == "__main__":
    app()
