"""Typer CLI for the flow platform."""

from __future__ import annotations

import asyncio
from enum import StrEnum
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from flow_platform.config.loader import load_group_bundle, load_platform_config
from flow_platform.config.models import PlatformConfig
from flow_platform.listeners.sort_config import DATA_FLOW_KEY, get_group_request
from flow_platform.observability.logging import configure_logging
from flow_platform.resources.memory import services_from_bundle
from flow_platform.sort.formats import supported_field_types
from flow_platform.sort.protocol import parse_data_flows
from flow_platform.workflow.definitions import (
    CREATE_GROUP_RESOURCE,
    UPDATE_GROUP_RESOURCE,
)
from flow_platform.workflow.factory import build_engine
from flow_platform.workflow.forms import (
    GroupResourceForm,
    ProcessForm,
    UpdateGroupForm,
)

logger = structlog.get_logger()
console = Console()
app = typer.Typer(name="flow", help="Flow platform CLI")


class FormKind(StrEnum):
    CREATE = "create"
    UPDATE = "update"


def _load_platform(platform_config: str | None) -> PlatformConfig:
    try:
        platform = load_platform_config(
            Path(platform_config) if platform_config else None
        )
    except (FileNotFoundError, ValueError, TypeError) as exc:
        console.print(f"[red]Platform config error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc
    configure_logging(json=platform.log_json, level=platform.log_level)
    return platform


@app.command()
def validate(
    platform_config: str | None = typer.Option(
        None, "--platform-config", help="Platform YAML"
    ),
) -> None:
    """Validate the platform configuration and print the effective values."""
    platform = _load_platform(platform_config)
    cluster = platform.cluster
    console.print(f"[green]Valid[/green] — app_name={cluster.app_name}")
    console.print(
        f"  pulsar: {cluster.pulsar_service_url} (admin {cluster.pulsar_admin_url})"
    )
    console.print(f"  tube:   {cluster.tube_master or '[dim](not configured)[/dim]'}")
    wf = platform.workflow
    console.print(
        f"  workflow: timeout={wf.listener_timeout_seconds}s "
        f"async_workers={wf.async_workers} "
        f"compensate_async_failures={wf.compensate_async_failures}"
    )
    console.print(f"  platform config: {platform_config or '(defaults)'}")


@app.command()
def formats() -> None:
    """List the field types the sort compiler understands."""
    for name in supported_field_types():
        console.print(name)


@app.command("compile")
def compile_group(
    bundle_path: str = typer.Argument(..., help="Path to group bundle YAML"),
    platform_config: str | None = typer.Option(
        None, "--platform-config", help="Platform YAML"
    ),
    form: FormKind = typer.Option(FormKind.CREATE, "--form", help="Process form"),
) -> None:
    """Run the group resource process for a bundle and print its data flows."""
    platform = _load_platform(platform_config)
    try:
        bundle = load_group_bundle(bundle_path)
    except (FileNotFoundError, ValueError, TypeError) as exc:
        console.print(f"[red]Bundle error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    logger.info("cli.compile", bundle=bundle_path, group_id=bundle.group.group_id)
    stream_service, sink_service = services_from_bundle(bundle)
    engine = build_engine(platform, stream_service, sink_service)

    process_form: ProcessForm
    if form == FormKind.UPDATE:
        process_name = UPDATE_GROUP_RESOURCE
        process_form = UpdateGroupForm(group_info=bundle.group)
    else:
        process_name = CREATE_GROUP_RESOURCE
        process_form = GroupResourceForm(group_info=bundle.group)

    async def _run() -> None:
        outcome = await engine.start(process_name, process_form)
        await engine.drain()
        if not outcome.succeeded:
            console.print(f"[red]Transition failed:[/red] {escape(outcome.reason or '')}")
            raise typer.Exit(1)

        group = get_group_request(engine.get(outcome.process_id).form)
        ext = group.get_ext(DATA_FLOW_KEY)
        if ext is None:
            console.print("[yellow]No data flows compiled[/yellow]")
            return

        table = Table(title=f"Data flows — {group.group_id}")
        table.add_column("Stream", style="cyan")
        table.add_column("Sink ID")
        table.add_column("Source")
        table.add_column("Sink")
        table.add_column("Fields")
        for stream_id, flow in parse_data_flows(ext.key_value).items():
            table.add_row(
                stream_id,
                str(flow.id),
                flow.source_info.type,
                flow.sink_info.type,
                str(len(flow.source_info.fields)),
            )
        console.print(table)
        console.print_json(ext.key_value)

    asyncio.run(_run())
