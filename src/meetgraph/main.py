import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich import print
from rich.table import Table

from meetgraph.config import Settings, create_meetgraph_toml, find_meetgraph_toml, load_layout_config
from meetgraph.core.errors import MeetgraphError
from meetgraph.core.graph import build_graph, connected_meetings, filter_by_objective
from meetgraph.core.models import Direction
from meetgraph.core.pipeline import build_layout, graph_payload
from meetgraph.core.schemas import MeetingRecord, load_meetings

logger = logging.getLogger(__name__)

APP_HELP = """
meetgraph: Meeting relationship graphs for the coaching dashboard.

Reads a JSON list of meetings (the dashboard's serialized shape: id, name,
startTime, status, coachScore, people, actionItems, nextConnectedMeetings...)
and turns the successor references into a directed, positioned graph.

CORE WORKFLOW:
1. INSPECT: Run `meetgraph graph meetings.json` to see connections and their
   time gaps, score changes and urgency.
2. LAYOUT:  Run `meetgraph layout meetings.json --direction LR` to see where
   each meeting is drawn.
3. EXPORT:  Add `--json` to hand the result to a renderer.
"""

app = typer.Typer(name="meetgraph", help=APP_HELP, no_args_is_help=True)
config_app = typer.Typer(name="config", help="Inspect and create layout configuration.")
app.add_typer(config_app, name="config")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """
    Meeting graph CLI.
    """
    try:
        settings = Settings()
    except ValidationError as e:
        print(f"[red]Error: invalid MEETGRAPH_* setting: {e.errors()[0]['msg']}[/red]")
        raise typer.Exit(code=1)
    level = "DEBUG" if verbose else settings.log_level
    logging.basicConfig(level=getattr(logging, level.upper(), logging.WARNING))


def _load(path: Path, objective: Optional[str]) -> List[MeetingRecord]:
    try:
        meetings = load_meetings(path)
    except FileNotFoundError:
        print(f"[red]Error: file not found: {path}[/red]")
        raise typer.Exit(code=1)
    except OSError as e:
        print(f"[red]Error: cannot read {path}: {e.strerror or e}[/red]")
        raise typer.Exit(code=1)
    except MeetgraphError as e:
        print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if objective:
        meetings = filter_by_objective(meetings, objective)
        logger.info(f"Filtered to {len(meetings)} meetings for objective {objective}")
    return meetings


def _parse_now(now: Optional[str]) -> datetime:
    if not now:
        return datetime.now(timezone.utc)
    try:
        return datetime.fromisoformat(now)
    except ValueError:
        print(f"[red]Error: --now must be an ISO timestamp, got {now!r}[/red]")
        raise typer.Exit(code=1)


@app.command("graph")
def graph_command(
    path: Path = typer.Argument(..., help="JSON file of meetings"),
    objective: str = typer.Option(None, "--objective", "-o", help="Only meetings of this objective"),
    now: str = typer.Option(None, "--now", help="Reference time (ISO 8601), defaults to the current time"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show the connections between meetings.

    Each connection reports the time gap, the coach score change, the number
    of action items carried over and whether it is urgent (animated).

    Examples:
        meetgraph graph meetings.json
        meetgraph graph meetings.json --objective 7f3c... --json
    """
    meetings = _load(path, objective)
    try:
        graph = build_graph(meetings, _parse_now(now))
    except MeetgraphError as e:
        print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(graph_payload(graph).model_dump_json(by_alias=True, indent=2))
        return

    names = {n.id: n.label or n.id for n in graph.nodes}
    table = Table(title=f"Meeting Connections ({graph.summary()})")
    table.add_column("From", style="cyan")
    table.add_column("To", style="cyan")
    table.add_column("Gap")
    table.add_column("Score", justify="right")
    table.add_column("Actions", justify="right")
    table.add_column("Status", style="magenta")
    table.add_column("Urgent")

    for e in graph.edges:
        if e.score_delta is None:
            score = "-"
        else:
            color = {"improving": "green", "declining": "red"}.get(e.color_class.value, "white")
            score = f"[{color}]{e.score_delta:+d}[/{color}]"
        table.add_row(
            names[e.source_id],
            names[e.target_id],
            e.time_gap,
            score,
            str(e.action_item_count),
            e.status_transition,
            "yes" if e.animated else "",
        )
    print(table)


@app.command("layout")
def layout_command(
    path: Path = typer.Argument(..., help="JSON file of meetings"),
    direction: str = typer.Option(None, "--direction", "-d", help="TB (top to bottom) or LR (left to right)"),
    objective: str = typer.Option(None, "--objective", "-o", help="Only meetings of this objective"),
    now: str = typer.Option(None, "--now", help="Reference time (ISO 8601), defaults to the current time"),
    json_output: bool = typer.Option(False, "--json", help="Output the renderer payload as JSON"),
):
    """
    Lay out the meeting graph.

    Assigns every meeting a rank (column for LR, row for TB) and the top-left
    corner of its box. Layout defaults come from MEETGRAPH_* environment
    variables and the nearest meetgraph.toml.

    Examples:
        meetgraph layout meetings.json
        meetgraph layout meetings.json --direction TB --json
    """
    meetings = _load(path, objective)
    try:
        config = load_layout_config(direction=direction.upper() if direction else None)
    except ValidationError as e:
        print(f"[red]Error: invalid layout configuration: {e.errors()[0]['msg']}[/red]")
        raise typer.Exit(code=1)

    try:
        result = build_layout(meetings, _parse_now(now), config)
    except MeetgraphError as e:
        print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(result.to_payload().model_dump_json(by_alias=True, indent=2))
        return

    table = Table(title=f"Meeting Layout {result.direction.value} ({result.graph.summary()})")
    table.add_column("Meeting", style="cyan")
    table.add_column("Rank", justify="right")
    table.add_column("Order", justify="right")
    table.add_column("X", justify="right")
    table.add_column("Y", justify="right")
    for p in result.nodes:
        table.add_row(p.node.label or p.id, str(p.rank), str(p.order), f"{p.x:.0f}", f"{p.y:.0f}")
    print(table)

    if result.back_edges:
        print(f"[yellow]Cycle detected: {len(result.back_edges)} connection(s) drawn against the flow[/yellow]")


@app.command("connected")
def connected_command(
    path: Path = typer.Argument(..., help="JSON file of meetings"),
    meeting_id: str = typer.Argument(..., help="Meeting to inspect"),
):
    """
    List the previous and next meetings of one meeting.
    """
    meetings = _load(path, None)
    try:
        connected = connected_meetings(meetings, meeting_id)
    except KeyError:
        print(f"[red]Error: meeting {meeting_id} not found[/red]")
        raise typer.Exit(code=1)

    print(f"[bold]{connected.meeting.name}[/bold]")
    for title, group in (("Previous Meetings", connected.previous), ("Next Meetings", connected.next)):
        if not group:
            continue
        print(f"[dim]{title}[/dim]")
        for m in group:
            print(f"  - {m.name} ({m.start_time:%b %d, %Y at %H:%M})")


@config_app.command("show")
def config_show():
    """
    Show the effective layout configuration.
    """
    config = load_layout_config()
    toml_path = find_meetgraph_toml()

    table = Table(title="Layout Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("direction", config.direction.value)
    table.add_row("node_width", f"{config.node_width:g}")
    table.add_row("node_height", f"{config.node_height:g}")
    table.add_row("node_sep", f"{config.node_sep:g}")
    table.add_row("rank_sep", f"{config.rank_sep:g}")
    print(table)
    print(f"[dim]Config file: {toml_path or 'none'}[/dim]")


@config_app.command("init")
def config_init(
    direction: Direction = typer.Option(Direction.LR, "--direction", "-d", help="Default flow direction"),
):
    """
    Write a meetgraph.toml in the current directory.
    """
    if (Path(".") / "meetgraph.toml").exists():
        print("[yellow]meetgraph.toml already exists[/yellow]")
        raise typer.Exit(code=1)
    config = load_layout_config(direction=direction)
    toml_path = create_meetgraph_toml(Path("."), config)
    print(f"[green]Created {toml_path}[/green]")


if __name__ == "__main__":
    app()
