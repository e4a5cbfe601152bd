"""Beacon CLI entrypoint."""

import asyncio
import dataclasses
import json
import sys
from pathlib import Path

import click

from .agents.openai_agent import OpenAIAssignmentAgent
from .agents.prompts import PromptCache
from .assignment.reasoning import explain_assignment
from .config.loader import ConfigError, create_default_config, load_config
from .config.models import BeaconConfig, LoggingConfig
from .executor.assign import run_assignments
from .scheduler.views import build_board_view, build_timeline_view
from .state.machine import PlanningError, PlanningMachine, PlanningStatus, StateTransitionError
from .tasks.snapshot import ProjectSnapshot, SnapshotError, load_snapshot, save_snapshot
from .utils.logging import configure_logging

CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
}


def _json_default(value):
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _echo_json(view) -> None:
    click.echo(json.dumps(dataclasses.asdict(view), indent=2, default=_json_default))


def _load_config_or_default(config_path: Path) -> BeaconConfig:
    """Load the config file; a missing file means defaults."""
    if not config_path.exists():
        return BeaconConfig()
    try:
        return load_config(config_path)
    except ConfigError as e:
        click.echo(f"✗ Configuration error: {e}", err=True)
        sys.exit(1)


def _load_snapshot_or_exit(path: Path) -> ProjectSnapshot:
    try:
        return load_snapshot(path)
    except SnapshotError as e:
        click.echo(f"✗ Snapshot error: {e}", err=True)
        sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--config",
    "-c",
    default=".beacon/config.yml",
    help="Path to configuration file",
    type=click.Path(exists=False, path_type=Path),
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.pass_context
def cli(ctx: click.Context, config: Path, verbose: bool) -> None:
    """Beacon - Dependency-aware planning and task assignment for team projects."""
    configure_logging(LoggingConfig(), verbose=verbose)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite existing configuration",
)
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Initialize Beacon configuration."""
    config_path: Path = ctx.obj["config_path"]

    if config_path.exists() and not force:
        click.echo(f"Configuration already exists: {config_path}")
        click.echo("Use --force to overwrite")
        sys.exit(1)

    try:
        create_default_config(config_path)
        click.echo(f"✓ Created configuration: {config_path}")
        click.echo("\nNext steps:")
        click.echo(f"  1. Review and customize {config_path}")
        click.echo("  2. Write a project snapshot (YAML or JSON)")
        click.echo("  3. Run: beacon lock <snapshot> --save && beacon assign <snapshot>")
    except OSError as e:
        click.echo(f"✗ Failed to create configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--save",
    is_flag=True,
    help="Write the locked status back to the snapshot",
)
@click.pass_context
def lock(ctx: click.Context, snapshot: Path, save: bool) -> None:
    """Validate dependencies and lock the plan."""
    data = _load_snapshot_or_exit(snapshot)
    machine = PlanningMachine(data.project.planning_status)

    try:
        result = machine.lock(data.task_ids(), data.dependency_edges())
    except (StateTransitionError, PlanningError) as e:
        click.echo(f"✗ Cannot lock: {e}", err=True)
        sys.exit(1)

    if not result.ok:
        detail = f" ({result.edge})" if result.edge is not None else ""
        click.echo(f"✗ Dependency graph rejected: {result.reason.value}{detail}", err=True)
        sys.exit(1)

    click.echo(f"✓ Plan locked: {len(result.topological_order)} tasks")
    click.echo(f"Order: {' -> '.join(result.topological_order)}")

    if save:
        data.project.planning_status = machine.status
        save_snapshot(data, snapshot)
        click.echo(f"✓ Saved: {snapshot}")


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, path_type=Path))
def timeline(snapshot: Path) -> None:
    """Print the dependency-ordered timeline as JSON."""
    data = _load_snapshot_or_exit(snapshot)
    view = build_timeline_view(data.project_window(), data.view_tasks(), data.dependency_edges())
    _echo_json(view)


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, path_type=Path))
def board(snapshot: Path) -> None:
    """Print the member board as JSON."""
    data = _load_snapshot_or_exit(snapshot)
    view = build_board_view(data.view_members(), data.view_tasks(), data.dependency_edges())
    _echo_json(view)


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--ai/--no-ai",
    default=None,
    help="Try AI-generated assignments first (overrides config)",
)
@click.option(
    "--save",
    is_flag=True,
    help="Write assignments and the assigned status back to the snapshot",
)
@click.pass_context
def assign(ctx: click.Context, snapshot: Path, ai: bool | None, save: bool) -> None:
    """Assign unassigned todo tasks on a locked plan."""
    config_path: Path = ctx.obj["config_path"]
    verbose: bool = ctx.obj["verbose"]

    config = _load_config_or_default(config_path)
    configure_logging(config.logging, verbose=verbose)

    data = _load_snapshot_or_exit(snapshot)
    machine = PlanningMachine(data.project.planning_status)
    if machine.status != PlanningStatus.LOCKED:
        click.echo(
            f"✗ Plan must be locked before assignment (status: {machine.status.value})",
            err=True,
        )
        sys.exit(1)

    use_ai = config.ai.enabled if ai is None else ai
    agent = None
    if use_ai:
        agent = OpenAIAssignmentAgent(
            config.ai.model_dump(), prompts=PromptCache(config.ai.prompt_dir)
        )

    tasks = data.assignment_tasks()
    members = data.effective_members()
    requirements = data.skill_requirements()

    run = asyncio.run(
        run_assignments(
            tasks,
            members,
            requirements,
            agent=agent,
            timeout_sec=config.ai.timeout_sec,
            require_balance=config.ai.require_balanced_output,
            project_id=data.project.id,
            project_name=data.project.name,
            project_description=data.project.description,
        )
    )

    click.echo(f"Mode: {run.mode.value}" + (f" (model={run.model})" if run.model else ""))

    members_by_id = {member.user_id: member for member in members}
    difficulty_by_id = {task.id: task.difficulty_points for task in tasks}
    labels = data.member_labels()
    edges = data.dependency_edges()

    for assignment in run.result.assignments:
        reasoning = explain_assignment(
            assignment.task_id,
            members_by_id.get(assignment.assignee_user_id),
            requirements,
            edges,
            difficulty_points=difficulty_by_id.get(assignment.task_id),
            assignee_label=labels.get(assignment.assignee_user_id),
        )
        click.echo(f"  {assignment.task_id} -> {assignment.assignee_user_id}: {reasoning}")

    click.echo(f"✓ Assigned {run.result.assigned_count} tasks")

    if save:
        machine.mark_assigned()
        assignee_by_task = {a.task_id: a.assignee_user_id for a in run.result.assignments}
        for task in data.tasks:
            if task.id in assignee_by_task:
                task.assignee_user_id = assignee_by_task[task.id]
        data.project.planning_status = machine.status
        save_snapshot(data, snapshot)
        click.echo(f"✓ Saved: {snapshot}")


if __name__ == "__main__":
    cli()
