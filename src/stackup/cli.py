#!/usr/bin/env python3
"""
Stack lifecycle CLI commands.
"""

import json
import logging
import sys
from typing import Any, Callable, Optional

import click

from .config import load_config
from .diagnostics import StackDiagnostics
from .parameters import load_parameters, load_template
from .provider import StackEvent, StackStatusProvider
from .stack import Stack


def _echo_event(event: StackEvent) -> None:
    stamp = event.timestamp.strftime("%H:%M:%S") if event.timestamp else "--:--:--"
    click.echo(f"[{stamp}] {event}")


def _provider(ctx: click.Context) -> StackStatusProvider:
    config = ctx.obj["config"]
    return StackStatusProvider(region=config.region, profile=config.profile)


def _stack(ctx: click.Context, stack_name: str) -> Stack:
    return Stack(
        stack_name,
        provider=_provider(ctx),
        config=ctx.obj["config"],
        on_event=_echo_event,
    )


def _run(action: Callable[[], Any]) -> Any:
    """Run an action, reporting errors the way every command does."""
    try:
        return action()
    except Exception as e:
        logging.getLogger(__name__).debug("Command failed", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _finish(stack: Stack, success: bool, action: str) -> None:
    if success:
        click.echo(f"✅ Stack {stack.name} {action}")
        return

    click.echo(f"❌ Stack {stack.name} was not {action}", err=True)
    if _run(stack.status):
        click.echo(StackDiagnostics(stack.provider).generate_report(stack.name), err=True)
    sys.exit(1)


@click.group()
@click.option("--region", help="AWS region")
@click.option("--profile", help="AWS profile to use")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help="Path to stackup.yaml",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(
    ctx: click.Context,
    region: Optional[str],
    profile: Optional[str],
    config_path: Optional[str],
    verbose: bool,
) -> None:
    """Manage the lifecycle of CloudFormation stacks."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)

    config = _run(lambda: load_config(config_path))
    ctx.ensure_object(dict)
    ctx.obj["config"] = config.with_overrides(region=region, profile=profile)


stack_name_option = click.option(
    "--stack-name", "-s", required=True, help="CloudFormation stack name"
)
template_option = click.option(
    "--template",
    "-t",
    "template_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Template file (JSON or YAML)",
)
parameters_option = click.option(
    "--parameters",
    "-p",
    "parameters_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Parameter file (JSON or YAML)",
)


@main.command()
@stack_name_option
@template_option
@parameters_option
@click.pass_context
def deploy(ctx, stack_name, template_path, parameters_path) -> None:
    """Create the stack, or update it if it already exists."""
    stack = _stack(ctx, stack_name)
    template = _run(lambda: load_template(template_path))
    parameters = _run(lambda: load_parameters(parameters_path))

    success = _run(lambda: stack.deploy(template, parameters))
    _finish(stack, success, "deployed")


@main.command()
@stack_name_option
@template_option
@parameters_option
@click.pass_context
def create(ctx, stack_name, template_path, parameters_path) -> None:
    """Create a new stack."""
    stack = _stack(ctx, stack_name)
    template = _run(lambda: load_template(template_path))
    parameters = _run(lambda: load_parameters(parameters_path))

    success = _run(lambda: stack.create(template, parameters))
    _finish(stack, success, "created")


@main.command()
@stack_name_option
@template_option
@parameters_option
@click.pass_context
def update(ctx, stack_name, template_path, parameters_path) -> None:
    """Update an existing stack."""
    stack = _stack(ctx, stack_name)
    template = _run(lambda: load_template(template_path))
    parameters = _run(lambda: load_parameters(parameters_path))

    success = _run(lambda: stack.update(template, parameters))
    _finish(stack, success, "updated")


@main.command()
@stack_name_option
@click.pass_context
def delete(ctx, stack_name) -> None:
    """Delete a stack."""
    stack = _stack(ctx, stack_name)

    if not _run(stack.delete):
        click.echo(f"Stack {stack_name} does not exist", err=True)
        sys.exit(1)

    click.echo(f"✅ Stack {stack_name} deleted")


@main.command()
@template_option
@click.pass_context
def validate(ctx, template_path) -> None:
    """Validate a template with CloudFormation."""
    template = _run(lambda: load_template(template_path))
    result = _run(lambda: _provider(ctx).validate_template(template))

    if not result.valid:
        click.echo(f"❌ Template is invalid: {result.error_code} {result.message or ''}", err=True)
        sys.exit(1)

    click.echo("✅ Template is valid")
    if result.description:
        click.echo(f"Description: {result.description}")


@main.command()
@stack_name_option
@click.pass_context
def status(ctx, stack_name) -> None:
    """Show stack status."""
    current = _run(_stack(ctx, stack_name).status)

    if current is None:
        click.echo(f"Stack {stack_name} does not exist")
        sys.exit(1)

    click.echo(f"Stack: {stack_name}")
    click.echo(f"Status: {current}")


@main.command()
@stack_name_option
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def outputs(ctx, stack_name, output_json) -> None:
    """Show stack outputs."""
    values = _run(_stack(ctx, stack_name).outputs)

    if output_json:
        click.echo(json.dumps(values, indent=2))
        return

    if not values:
        click.echo(f"No outputs found for stack {stack_name}")
        return

    for key, value in values.items():
        click.echo(f"{key}: {value}")


@main.command()
@stack_name_option
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def diagnose(ctx, stack_name, output_json) -> None:
    """Diagnose stack failures."""
    diagnostics = StackDiagnostics(_provider(ctx))

    if output_json:
        diagnosis = _run(lambda: diagnostics.diagnose(stack_name))
        click.echo(json.dumps(diagnosis, indent=2, default=str))
    else:
        click.echo(_run(lambda: diagnostics.generate_report(stack_name)))


if __name__ == "__main__":
    main()
