"""CLI entry point for the rule graph decision engine."""

from __future__ import annotations

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from config import configure_logging, get_settings
from decision_engine import DecisionEngine, GraphMalformed
from models.schemas import BatchRow, EvaluationResult, Graph, RuleDefinition


console = Console()


def _load_json_argument(value: str) -> Any:
    """Read a JSON argument given either as a file path or as inline JSON."""
    path = Path(value)
    try:
        is_file = path.is_file()
    except OSError:
        is_file = False
    if is_file:
        return json.loads(path.read_text(encoding="utf-8"))
    return json.loads(value)


def _load_graph(value: str) -> tuple[Graph, RuleDefinition | None]:
    """Load a bare {nodes, edges} graph or a rule document carrying one."""
    data = _load_json_argument(value)
    if isinstance(data, dict) and "condition" in data:
        rule = RuleDefinition.model_validate(data)
        return rule.condition, rule
    return Graph.model_validate(data), None


def _fail(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]")
    sys.exit(1)


def _print_result(result: EvaluationResult) -> None:
    if result.matched:
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Field")
        table.add_column("Value")
        for output in result.output_fields:
            table.add_row(output.field, json.dumps(output.value, default=str))
        console.print(table)
    else:
        console.print("[yellow]No matching branch: no output produced.[/yellow]")

    console.print(f"[dim]Path: {' -> '.join(result.visited_nodes) or '(none)'}[/dim]")


def _print_batch(rows: list[BatchRow]) -> None:
    columns: list[str] = []
    for row in rows:
        for key in row.values:
            if key not in columns:
                columns.append(key)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    for column in columns:
        table.add_column(column)
    table.add_column("Matched", justify="center")

    for row in rows:
        status = "[green]✓[/green]" if row.matched else "[red]✗[/red]"
        table.add_row(
            str(row.row_index),
            *[str(row.values.get(column, "")) for column in columns],
            status,
        )
    console.print(table)


def save_batch_results(rows: list[BatchRow], filename: str | None = None) -> Path:
    """Save batch rows to a JSON file in the results directory."""
    results_dir = Path(get_settings().results_dir)
    results_dir.mkdir(parents=True, exist_ok=True)

    if filename is None:
        filename = f"batch_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"

    filepath = results_dir / filename
    data = {
        "timestamp": datetime.now().isoformat(),
        "total_rows": len(rows),
        "matched_rows": sum(1 for r in rows if r.matched),
        "rows": [r.model_dump(mode="json") for r in rows],
    }
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)

    return filepath


@click.group()
@click.version_option(version="1.0.0")
def cli() -> None:
    """Rule Graph Engine - Evaluate authored decision graphs against records."""
    configure_logging(get_settings().log_level)


@cli.command()
@click.argument("graph")
@click.argument("record")
@click.option("--root", "root_id", default=None, help="Id of the entry edge's source node")
@click.option(
    "--annotated-out",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the annotated graph to this file",
)
def evaluate(graph: str, record: str, root_id: str | None, annotated_out: Path | None) -> None:
    """Evaluate GRAPH against one RECORD (file paths or inline JSON)."""
    try:
        rule_graph, rule = _load_graph(graph)
        input_record = _load_json_argument(record)
    except (json.JSONDecodeError, ValidationError) as e:
        _fail(f"Invalid input: {e}")
        return

    if not isinstance(input_record, dict):
        _fail("RECORD must be a JSON object")
        return

    title = rule.title if rule else "Rule Graph"
    console.print(Panel(f"[bold]Evaluating:[/bold] {escape(title)}", title="Decision Engine"))

    try:
        result = DecisionEngine.evaluate(rule_graph, input_record, root_id=root_id)
    except GraphMalformed as e:
        _fail(f"Malformed graph: {e}")
        return

    _print_result(result)

    if annotated_out is not None:
        annotated_out.write_text(result.annotated_graph.to_json(indent=2), encoding="utf-8")
        console.print(f"\n[dim]Annotated graph saved to: {annotated_out}[/dim]")


@cli.command()
@click.argument("graph")
@click.argument("records")
@click.option("--root", "root_id", default=None, help="Id of the entry edge's source node")
@click.option("--save/--no-save", default=True, help="Save results to the results directory")
def batch(graph: str, records: str, root_id: str | None, save: bool) -> None:
    """Evaluate GRAPH against every record in the RECORDS JSON array."""
    try:
        rule_graph, _ = _load_graph(graph)
        record_list = _load_json_argument(records)
    except (json.JSONDecodeError, ValidationError) as e:
        _fail(f"Invalid input: {e}")
        return

    if not isinstance(record_list, list) or not all(isinstance(r, dict) for r in record_list):
        _fail("RECORDS must be a JSON array of objects")
        return

    try:
        rows = DecisionEngine.evaluate_batch(rule_graph, record_list, root_id=root_id)
    except GraphMalformed as e:
        _fail(f"Malformed graph: {e}")
        return

    _print_batch(rows)
    matched = sum(1 for r in rows if r.matched)
    console.print(f"\n[bold]{matched}/{len(rows)}[/bold] records reached an output node")

    if save:
        filepath = save_batch_results(rows)
        console.print(f"[dim]Results saved to: {filepath}[/dim]")


@cli.command()
@click.argument("graph")
def inspect(graph: str) -> None:
    """Show the nodes and edges of GRAPH."""
    try:
        rule_graph, rule = _load_graph(graph)
    except (json.JSONDecodeError, ValidationError) as e:
        _fail(f"Invalid input: {e}")
        return

    if rule is not None:
        console.print(Panel(escape(rule.description or ""), title=escape(rule.title)))

    nodes = Table(title="Nodes", show_header=True, header_style="bold cyan")
    nodes.add_column("Id")
    nodes.add_column("Type")
    nodes.add_column("Detail")
    for node in rule_graph.nodes:
        if node.type == "outputNode":
            detail = ", ".join(f"{f.field}={f.value}" for f in node.data.output_fields)
        elif node.type == "attributeNode":
            detail = ""
        else:
            count = len(node.data.conditions or [])
            detail = f"{count} condition(s), rule={node.data.rule or '-'}"
        nodes.add_row(node.id, node.type, detail)
    console.print(nodes)

    edges = Table(title="Edges", show_header=True, header_style="bold cyan")
    edges.add_column("Id")
    edges.add_column("Source")
    edges.add_column("Target")
    edges.add_column("Handle")
    for edge in rule_graph.edges:
        edges.add_row(edge.id, edge.source, edge.target, edge.source_handle or "")
    console.print(edges)


if __name__ == "__main__":
    cli()
