"""Watcher resource commands."""

import json

import typer

from watcherclient.cli import utils
from watcherclient.domain.models import Audit, AuditTemplate, ListOptions

audit_app = typer.Typer(help="Audit management", no_args_is_help=True)
audit_template_app = typer.Typer(help="Audit template management", no_args_is_help=True)
action_plan_app = typer.Typer(help="Action plan management", no_args_is_help=True)
action_app = typer.Typer(help="Action inspection", no_args_is_help=True)
goal_app = typer.Typer(help="Optimization goals", no_args_is_help=True)
strategy_app = typer.Typer(help="Optimization strategies", no_args_is_help=True)
data_model_app = typer.Typer(help="Infrastructure data model", no_args_is_help=True)


def _list_options(
    limit: int | None, marker: str | None, sort_key: str | None, sort_dir: str | None
) -> ListOptions:
    if sort_dir not in (None, "asc", "desc"):
        utils.console.print("[red]Error:[/red] --sort-dir must be 'asc' or 'desc'")
        raise typer.Exit(1)
    return ListOptions(limit=limit, marker=marker, sort_key=sort_key, sort_dir=sort_dir)


def _parse_json_option(value: str | None, option: str) -> object:
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        utils.console.print(f"[red]Error:[/red] {option} is not valid JSON: {e}")
        raise typer.Exit(1) from e


# ===== Audits =====
@audit_app.command("list")
def audit_list(
    limit: int | None = typer.Option(None, "--limit", help="Maximum number of audits"),
    marker: str | None = typer.Option(None, "--marker", help="UUID of the last audit seen"),
    sort_key: str | None = typer.Option(None, "--sort-key"),
    sort_dir: str | None = typer.Option(None, "--sort-dir", help="asc or desc"),
) -> None:
    """List audits."""
    options = _list_options(limit, marker, sort_key, sort_dir)
    with utils.client_session() as client:
        audits = client.audits.list(options)
    utils.print_table("Audits", ["uuid", "name", "audit_type", "state", "goal", "strategy"], audits)


@audit_app.command("show")
def audit_show(uuid: str = typer.Argument(..., help="Audit UUID")) -> None:
    """Show an audit."""
    with utils.client_session() as client:
        audit = client.audits.get(uuid)
    utils.print_resource(audit)


@audit_app.command("create")
def audit_create(
    goal: str = typer.Option(..., "--goal", "-g", help="Goal UUID or name"),
    strategy: str | None = typer.Option(None, "--strategy", "-s", help="Strategy UUID or name"),
    audit_type: str = typer.Option("ONESHOT", "--audit-type", "-t", help="ONESHOT or CONTINUOUS"),
    name: str | None = typer.Option(None, "--name"),
    interval: int | None = typer.Option(None, "--interval", help="Seconds between runs"),
    auto_trigger: bool = typer.Option(
        False, "--auto-trigger", help="Start the action plan automatically"
    ),
    parameters: str | None = typer.Option(None, "--parameters", help="Strategy parameters as JSON"),
) -> None:
    """Create an audit."""
    audit = Audit(
        name=name,
        goal=goal,
        strategy=strategy,
        audit_type=audit_type.upper(),
        interval=interval,
        auto_trigger=auto_trigger,
        parameters=_parse_json_option(parameters, "--parameters"),
    )
    with utils.client_session() as client:
        created = client.audits.create(audit)
    utils.print_resource(created)


@audit_app.command("start")
def audit_start(uuid: str = typer.Argument(..., help="Audit UUID")) -> None:
    """Set an audit to ONGOING."""
    with utils.client_session() as client:
        audit = client.audits.start(uuid)
    utils.console.print(f"[green]✓[/green] Audit {uuid} is {audit.state or 'ONGOING'}")


@audit_app.command("delete")
def audit_delete(uuid: str = typer.Argument(..., help="Audit UUID")) -> None:
    """Delete an audit."""
    with utils.client_session() as client:
        client.audits.delete(uuid)
    utils.console.print(f"[green]✓[/green] Deleted audit {uuid}")


# ===== Audit templates =====
@audit_template_app.command("list")
def audit_template_list(
    limit: int | None = typer.Option(None, "--limit"),
    marker: str | None = typer.Option(None, "--marker"),
    sort_key: str | None = typer.Option(None, "--sort-key"),
    sort_dir: str | None = typer.Option(None, "--sort-dir"),
) -> None:
    """List audit templates."""
    options = _list_options(limit, marker, sort_key, sort_dir)
    with utils.client_session() as client:
        templates = client.audit_templates.list(options)
    utils.print_table("Audit Templates", ["uuid", "name", "goal", "strategy"], templates)


@audit_template_app.command("show")
def audit_template_show(uuid: str = typer.Argument(..., help="Audit template UUID")) -> None:
    """Show an audit template."""
    with utils.client_session() as client:
        template = client.audit_templates.get(uuid)
    utils.print_resource(template)


@audit_template_app.command("create")
def audit_template_create(
    name: str = typer.Argument(..., help="Template name"),
    goal: str = typer.Option(..., "--goal", "-g", help="Goal UUID or name"),
    strategy: str | None = typer.Option(None, "--strategy", "-s"),
    description: str | None = typer.Option(None, "--description", "-d"),
) -> None:
    """Create an audit template."""
    template = AuditTemplate(name=name, goal=goal, strategy=strategy, description=description)
    with utils.client_session() as client:
        created = client.audit_templates.create(template)
    utils.print_resource(created)


@audit_template_app.command("delete")
def audit_template_delete(uuid: str = typer.Argument(..., help="Audit template UUID")) -> None:
    """Delete an audit template."""
    with utils.client_session() as client:
        client.audit_templates.delete(uuid)
    utils.console.print(f"[green]✓[/green] Deleted audit template {uuid}")


# ===== Action plans =====
@action_plan_app.command("list")
def action_plan_list(
    limit: int | None = typer.Option(None, "--limit"),
    marker: str | None = typer.Option(None, "--marker"),
    sort_key: str | None = typer.Option(None, "--sort-key"),
    sort_dir: str | None = typer.Option(None, "--sort-dir"),
) -> None:
    """List action plans."""
    options = _list_options(limit, marker, sort_key, sort_dir)
    with utils.client_session() as client:
        plans = client.action_plans.list(options)
    utils.print_table("Action Plans", ["uuid", "audit_uuid", "state", "strategy"], plans)


@action_plan_app.command("show")
def action_plan_show(uuid: str = typer.Argument(..., help="Action plan UUID")) -> None:
    """Show an action plan."""
    with utils.client_session() as client:
        plan = client.action_plans.get(uuid)
    utils.print_resource(plan)


@action_plan_app.command("start")
def action_plan_start(uuid: str = typer.Argument(..., help="Action plan UUID")) -> None:
    """Trigger an action plan."""
    with utils.client_session() as client:
        plan = client.action_plans.start(uuid)
    utils.console.print(f"[green]✓[/green] Action plan {uuid} is {plan.state or 'TRIGGERED'}")


@action_plan_app.command("cancel")
def action_plan_cancel(uuid: str = typer.Argument(..., help="Action plan UUID")) -> None:
    """Cancel an action plan."""
    with utils.client_session() as client:
        plan = client.action_plans.cancel(uuid)
    utils.console.print(f"[yellow]Action plan {uuid} is {plan.state or 'CANCELLED'}[/yellow]")


@action_plan_app.command("delete")
def action_plan_delete(uuid: str = typer.Argument(..., help="Action plan UUID")) -> None:
    """Delete an action plan."""
    with utils.client_session() as client:
        client.action_plans.delete(uuid)
    utils.console.print(f"[green]✓[/green] Deleted action plan {uuid}")


# ===== Actions =====
@action_app.command("list")
def action_list(
    action_plan: str | None = typer.Option(
        None, "--action-plan", "-p", help="Only actions of this action plan"
    ),
    limit: int | None = typer.Option(None, "--limit"),
) -> None:
    """List actions."""
    with utils.client_session() as client:
        if action_plan:
            actions = client.actions.list_by_action_plan(action_plan)
        else:
            actions = client.actions.list(ListOptions(limit=limit))
    utils.print_table("Actions", ["uuid", "action_type", "state", "action_plan_uuid"], actions)


@action_app.command("show")
def action_show(uuid: str = typer.Argument(..., help="Action UUID")) -> None:
    """Show an action."""
    with utils.client_session() as client:
        action = client.actions.get(uuid)
    utils.print_resource(action)


# ===== Goals =====
@goal_app.command("list")
def goal_list() -> None:
    """List goals."""
    with utils.client_session() as client:
        goals = client.goals.list()
    utils.print_table("Goals", ["uuid", "name", "display_name"], goals)


@goal_app.command("show")
def goal_show(goal: str = typer.Argument(..., help="Goal UUID or name")) -> None:
    """Show a goal."""
    with utils.client_session() as client:
        result = client.goals.get(goal)
    utils.print_resource(result)


# ===== Strategies =====
@strategy_app.command("list")
def strategy_list(
    goal: str | None = typer.Option(None, "--goal", "-g", help="Only strategies for this goal"),
) -> None:
    """List strategies."""
    with utils.client_session() as client:
        strategies = client.strategies.list_by_goal(goal) if goal else client.strategies.list()
    utils.print_table("Strategies", ["uuid", "name", "display_name", "goal_uuid"], strategies)


@strategy_app.command("show")
def strategy_show(strategy: str = typer.Argument(..., help="Strategy UUID or name")) -> None:
    """Show a strategy."""
    with utils.client_session() as client:
        result = client.strategies.get(strategy)
    utils.print_resource(result)


# ===== Data model =====
@data_model_app.command("show")
def data_model_show(
    data_model_type: str | None = typer.Option(None, "--type", "-t", help="e.g. compute"),
) -> None:
    """Dump the infrastructure data model as JSON."""
    with utils.client_session() as client:
        data_model = client.data_model.get(data_model_type)
    utils.console.print_json(data=data_model.model_dump(mode="json", exclude_none=True))
