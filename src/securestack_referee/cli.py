"""CLI for the SecureStack Referee.

Provides a command-line interface for comparing the architecture
variants against an organization's constraints.
"""

import json
import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .app_logging import setup_logging
from .config import RefereeConfig, find_config_file, get_config, load_config, save_default_config
from .engine import ENGINE_VERSION, RefereeEngine
from .exceptions import DataIntegrityError, IntakeValidationError
from .reference_data import ReferenceData, default_reference_data, load_reference_data
from .schema import AnalysisResult, ConstraintField

console = Console()

CONFIDENCE_COLORS = {
    "High": "green",
    "Medium": "yellow",
    "Low": "red",
}


@click.group()
@click.version_option(version=ENGINE_VERSION, prog_name="securestack-referee")
def main():
    """SecureStack Referee.

    Compares IRM-Heavy, URM-Heavy and Hybrid security architectures
    against organizational constraints. Produces comparative scores,
    conflict warnings and tie classification; it does not recommend.
    """
    pass


@main.command("analyze")
@click.option("--risk-tolerance", type=int, help="Risk tolerance (1 = high tolerance, 10 = very low)")
@click.option("--compliance-strictness", type=int, help="Compliance strictness (1-10)")
@click.option("--cost-sensitivity", type=int, help="Cost sensitivity (1-10)")
@click.option("--user-experience-priority", type=int, help="User experience priority (1-10)")
@click.option("--operational-maturity", type=int, help="Operational maturity (1-10)")
@click.option("--business-agility", type=int, help="Business agility (1-10)")
@click.option(
    "--input", "-i", "input_file",
    type=click.Path(exists=True),
    help="JSON file with constraint values (options override file values)"
)
@click.option(
    "--config", "-c", "config_file",
    type=click.Path(exists=True),
    help="YAML configuration file (default: searched automatically)"
)
@click.option(
    "--tables", "-t", "tables_file",
    type=click.Path(exists=True),
    help="YAML reference tables replacing the shipped ones"
)
@click.option(
    "--out", "-o",
    type=click.Path(),
    help="Output file for JSON results"
)
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output raw JSON instead of formatted text"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show detailed output and debug logging"
)
def analyze_cmd(
    input_file: Optional[str],
    config_file: Optional[str],
    tables_file: Optional[str],
    out: Optional[str],
    json_output: bool,
    verbose: bool,
    **constraints: Optional[int],
):
    """Analyze the architecture variants for a set of constraints.

    Any constraint left out is defaulted to 5 and reported as an assumption.

    Examples:
        securestack-referee analyze --compliance-strictness 9 --cost-sensitivity 9
        securestack-referee analyze -i constraints.json -j
    """
    setup_logging("DEBUG" if verbose else "WARNING")

    try:
        partial_input = build_partial_input(input_file, constraints)
        engine = RefereeEngine(
            reference_data=resolve_reference_data(tables_file),
            config=resolve_config(config_file),
        )
        result = engine.analyze(partial_input)

    except IntakeValidationError as e:
        console.print("[red]Invalid constraint input:[/red]")
        for error in e.errors:
            console.print(f"  [red]✗[/red] {error.message}")
        sys.exit(1)
    except DataIntegrityError as e:
        console.print(f"[red]Reference data error: {e}[/red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if json_output:
        output_json(result, out)
    else:
        display_result(result, verbose)
        if out:
            output_json(result, out)
            console.print(f"\n[green]Results saved to {out}[/green]")


@main.command("rules")
@click.option(
    "--tables", "-t", "tables_file",
    type=click.Path(exists=True),
    help="YAML reference tables replacing the shipped ones"
)
def rules_cmd(tables_file: Optional[str]):
    """List the conflict rules in evaluation order."""
    try:
        reference = resolve_reference_data(tables_file)
    except DataIntegrityError as e:
        console.print(f"[red]Reference data error: {e}[/red]")
        sys.exit(1)

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Condition")
    table.add_column("Severity")

    for rule in reference.conflict_rules:
        condition = (
            f"{rule.first.field.value} {rule.first.direction.value} {rule.first.threshold} and "
            f"{rule.second.field.value} {rule.second.direction.value} {rule.second.threshold}"
        )
        table.add_row(rule.rule_id, condition, rule.severity.value)

    console.print(table)


@main.command("init-config")
@click.option(
    "--out", "-o",
    type=click.Path(),
    default="referee-config.yaml",
    help="Output path for the configuration file"
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Overwrite existing config file"
)
def init_config_cmd(out: str, force: bool):
    """Generate a default referee configuration file.

    Creates a YAML configuration file with all tie thresholds and
    confidence settings.
    """
    out_path = Path(out)

    if out_path.exists() and not force:
        console.print(f"[yellow]Config file already exists: {out}[/yellow]")
        console.print("Use --force to overwrite")
        sys.exit(1)

    save_default_config(out_path)
    console.print(f"[green]✓[/green] Configuration saved to: {out}")


def build_partial_input(input_file: Optional[str], constraints: dict[str, Optional[int]]) -> dict[str, Any]:
    """Merge constraint values from a JSON file and command-line options."""
    partial_input: dict[str, Any] = {}

    if input_file:
        with open(input_file, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise click.BadParameter("Input file must contain a JSON object", param_hint="--input")
        partial_input.update(data)

    # An option replaces whichever spelling the file used for that field
    for name, value in constraints.items():
        if value is None:
            continue
        field = ConstraintField(name)
        partial_input.pop(field.alias, None)
        partial_input[field.value] = value

    return partial_input


def resolve_config(config_file: Optional[str]) -> RefereeConfig:
    if config_file:
        return load_config(Path(config_file))
    found = find_config_file()
    if found:
        return load_config(found)
    return get_config()


def resolve_reference_data(tables_file: Optional[str]) -> ReferenceData:
    if tables_file:
        return load_reference_data(Path(tables_file))
    return default_reference_data()


def display_result(result: AnalysisResult, verbose: bool):
    """Display analysis result in formatted text."""
    profile = result.profile
    tie = result.tie

    # Profile
    profile_table = Table(show_header=True, header_style="bold", title="Constraint Profile")
    profile_table.add_column("Constraint")
    profile_table.add_column("Value", justify="right")
    profile_table.add_column("Source")
    defaulted = {a.field for a in result.assumptions}
    for field, value in profile.constraint_values().items():
        source = "[dim]default[/dim]" if field in defaulted else "provided"
        profile_table.add_row(field.value, str(value), source)
    console.print(profile_table)

    # Scores
    score_table = Table(show_header=True, header_style="bold", title="Architecture Scores")
    score_table.add_column("Architecture", style="cyan")
    score_table.add_column("Weighted Score", justify="right")
    score_table.add_column("Confidence")
    for score in result.architecture_scores:
        color = CONFIDENCE_COLORS.get(score.confidence_level.value, "white")
        score_table.add_row(
            score.architecture.value,
            f"{score.weighted_score:.2f}",
            f"[{color}]{score.confidence_level.value}[/{color}]",
        )
    console.print(score_table)

    if verbose:
        for score in result.architecture_scores:
            console.print(f"\n[bold]{score.architecture.value}[/bold] dimension breakdown:")
            for part in score.dimension_breakdown:
                console.print(
                    f"  {part.dimension.value}: base {part.base_score} × weight {part.weight:.2f}"
                    f" = {part.weighted_contribution:.2f}"
                )

    # Tie classification
    tie_color = CONFIDENCE_COLORS.get(tie.detection_confidence.value, "white")
    if tie.insufficient_data:
        tie_line = "Insufficient data for comparison"
    elif tie.is_tie:
        tie_line = f"Tied: {', '.join(a.value for a in tie.tied_architectures)}"
    else:
        tie_line = f"Highest score: {tie.clear_leader.value}"
    console.print(Panel(
        f"State: [bold]{tie.state.value}[/bold]\n"
        f"{tie_line}\n"
        f"Top gap: {tie.top_gap:.2f} (near-tie threshold {tie.threshold_used})\n"
        f"Detection confidence: [{tie_color}]{tie.detection_confidence.value}[/{tie_color}]",
        title="Tie Classification",
    ))

    # Conflicts
    conflicts = result.conflicts
    if conflicts.has_conflicts:
        console.print(f"\n[bold]Constraint Conflicts[/bold] (reliability impact: {conflicts.reliability_impact.value})")
        for warning in conflicts.warnings:
            values = ", ".join(f"{f.value}={v}" for f, v in warning.triggering_values.items())
            console.print(f"  [yellow]•[/yellow] {warning.rule_id}: {warning.title} ({values})")
    else:
        console.print("\n[green]No constraint conflicts detected[/green]")

    # Assumptions
    if result.assumptions:
        console.print("\n[bold]Assumptions:[/bold]")
        for assumption in result.assumptions:
            console.print(f"  [dim]• {assumption.description}[/dim]")


def output_json(result: AnalysisResult, out_path: Optional[str]):
    """Output result as JSON."""
    json_str = result.model_dump_json(indent=2)

    if out_path:
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(json_str)
    else:
        print(json_str)


if __name__ == "__main__":
    main()
