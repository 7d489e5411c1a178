"""Command-line interface for applyorder."""

import json
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import OrderConfig, load_config
from .dependency.ordering import sorted_layers
from .dependency.planner import ApplyPlan, DependencyPlanner
from .models.resource_set import ResourceSet, load_resource_set
from .observability import configure_logging
from .utils.exceptions import (
    MULTI_ERROR_PREFIX,
    CyclicDependencyError,
    ResourceSetError,
    UnknownResourceError,
)

app = typer.Typer(
    name="applyorder",
    help="applyorder - Compute safe apply and prune order for cluster resources",
    add_completion=False,
)

console = Console()
logger = structlog.get_logger(__name__)

# Exit codes
EXIT_CYCLE = 1
EXIT_INVALID_INPUT = 2


def _setup(config_file: Path | None, log_level: str | None) -> OrderConfig:
    """Load configuration and configure logging for a command."""
    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]ERROR: Invalid configuration:[/red] {escape(str(e))}")
        raise typer.Exit(code=EXIT_INVALID_INPUT) from e

    configure_logging(
        level=log_level or config.logging.level,
        json_logs=config.logging.json_logs,
        log_file=config.logging.file,
    )
    return config


def _load(resource_file: Path) -> ResourceSet:
    try:
        return load_resource_set(resource_file)
    except ResourceSetError as e:
        console.print(f"[red]ERROR:[/red] {escape(str(e))}")
        raise typer.Exit(code=EXIT_INVALID_INPUT) from e


def _plan(planner: DependencyPlanner, resource_set: ResourceSet) -> ApplyPlan:
    try:
        return planner.plan_resource_set(resource_set)
    except UnknownResourceError as e:
        console.print(f"[red]ERROR:[/red] {escape(str(e))}")
        raise typer.Exit(code=EXIT_INVALID_INPUT) from e
    except CyclicDependencyError as e:
        _print_cycle(e)
        raise typer.Exit(code=EXIT_CYCLE) from e


def _print_cycle(error: CyclicDependencyError) -> None:
    """Print every edge implicated in a cycle, plus the layers resolved before it."""
    console.print("\n[bold red]Cyclic dependency detected - nothing will be applied[/bold red]\n")
    for edge in error.edges:
        console.print(f"  {MULTI_ERROR_PREFIX}{escape(str(edge))}")

    console.print(f"\n[red]Blocked resources ({len(error.vertices)}):[/red]")
    for vertex in error.vertices:
        console.print(f"  {escape(str(vertex))}")

    if error.layers:
        console.print(
            f"\n[yellow]{len(error.layers)} layer(s) resolved before the cycle "
            f"(for diagnosis only, not applied):[/yellow]"
        )
        for index, layer in enumerate(sorted_layers(error.layers)):
            members = ", ".join(escape(str(v)) for v in layer)
            console.print(f"  {index}: {members}")


def _plan_document(plan: ApplyPlan, prune: bool) -> dict:
    layers = plan.prune_order() if prune else plan.apply_order()
    return {
        "action": "prune" if prune else "apply",
        "summary": plan.summary(),
        "layers": [[str(v) for v in layer] for layer in layers],
    }


@app.command()
def plan(
    resource_file: Path = typer.Argument(..., help="Resource-set YAML file", exists=True),
    prune: bool = typer.Option(False, "--prune", help="Show prune (deletion) order"),
    json_output: bool = typer.Option(False, "--json", help="Print the plan as JSON"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log verbosity: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    ),
) -> None:
    """
    Compute the layered apply (or prune) order of a resource set.

    Resources in the same layer do not depend on each other. Every layer must
    finish before the next one starts. Prune order is apply order reversed.

    Examples:
        applyorder plan resources.yaml
        applyorder plan resources.yaml --prune
        applyorder plan resources.yaml --json
    """
    config = _setup(config_file, log_level)
    resource_set = _load(resource_file)
    result = _plan(DependencyPlanner(strict=config.policy.strict_references), resource_set)

    if json_output:
        typer.echo(json.dumps(_plan_document(result, prune), indent=2))
        return

    action = "Prune" if prune else "Apply"
    summary = result.summary()
    console.print(
        Panel.fit(
            f"[bold blue]{action} order[/bold blue]\n\n"
            f"Resources: {summary['resources']}\n"
            f"Dependencies: {summary['edges']}\n"
            f"Layers: {summary['layers']}",
            border_style="blue",
        )
    )

    table = Table(title=f"{action} layers")
    table.add_column("Step", justify="right", style="cyan")
    table.add_column("Resources")
    layers = result.prune_order() if prune else result.apply_order()
    for step, layer in enumerate(layers):
        table.add_row(str(step), "\n".join(escape(str(v)) for v in layer))
    console.print(table)


@app.command()
def check(
    resource_file: Path = typer.Argument(..., help="Resource-set YAML file", exists=True),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    log_level: str | None = typer.Option(None, "--log-level", help="Log verbosity"),
) -> None:
    """
    Check that a resource set can be ordered.

    Exits 0 when the dependencies are acyclic, 1 on a cycle and 2 on invalid input.

    Examples:
        applyorder check resources.yaml
    """
    config = _setup(config_file, log_level)
    resource_set = _load(resource_file)
    result = _plan(DependencyPlanner(strict=config.policy.strict_references), resource_set)

    summary = result.summary()
    console.print(
        f"[green]OK:[/green] {summary['resources']} resources in {summary['layers']} layers"
    )


@app.command()
def dot(
    resource_file: Path = typer.Argument(..., help="Resource-set YAML file", exists=True),
    output_file: Path | None = typer.Option(
        None, "--output", "-o", help="Output DOT file (default: stdout)"
    ),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    log_level: str | None = typer.Option(None, "--log-level", help="Log verbosity"),
) -> None:
    """
    Export the dependency graph in Graphviz DOT format.

    Cycles are exported too; self-dependencies are drawn in red.

    Examples:
        applyorder dot resources.yaml -o deps.dot
    """
    config = _setup(config_file, log_level)
    resource_set = _load(resource_file)
    planner = DependencyPlanner(strict=config.policy.strict_references)
    try:
        graph = planner.build_graph(resource_set.identities(), resource_set.edges())
    except UnknownResourceError as e:
        console.print(f"[red]ERROR:[/red] {escape(str(e))}")
        raise typer.Exit(code=EXIT_INVALID_INPUT) from e

    rendered = graph.to_dot()
    if output_file:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(rendered + "\n", encoding="utf-8")
        console.print(f"[green]Wrote dependency graph to {escape(str(output_file))}[/green]")
    else:
        typer.echo(rendered)


if __name__ == "__main__":
    app()
