"""Snapshot commands - write a capture to JSON, or apply one from JSON."""

import asyncio
import json
import sys
from pathlib import Path

import cyclopts

from projdup.cli.console import get_console
from projdup.cli.util.runtime import open_app, reports_errors
from projdup.domain.shared.error import ProjdupError
from projdup.domain.transfer.model.snapshot import TransferSelection, parse_snapshot
from projdup.domain.transfer.service.capture import SnapshotAssembler
from projdup.domain.transfer.store import TransferStore
from projdup.infrastructure.host.local import LocalWorkspace
from projdup.util.di.scope import Scope

app = cyclopts.App(name="snapshot", help="Export or apply transfer snapshots")


@app.command
def export(path: Path, *, workspace: Path | None = None) -> None:
    """Capture the current project into a JSON file.

    Args:
        path: Output file.
        workspace: Workspace directory.
    """
    sys.exit(asyncio.run(_export(path, workspace)))


@reports_errors
async def _export(path: Path, workspace: Path | None) -> int:
    console = get_console()
    async with open_app(workspace) as container:
        host = await container.get(LocalWorkspace)
        project = await host.get_current_project()
        if project is None:
            console.error("No project is currently selected")
            return 1

        async with container(scope=Scope.UOW) as uow:
            assembler = await uow.get(SnapshotAssembler)
            capture = await assembler.capture(TransferSelection(), project=project)

        for warning in capture.warnings:
            console.warning(str(warning))
        path.write_text(json.dumps(capture.snapshot.to_payload(), indent=2))
        console.success(f"Wrote snapshot of {project.name!r} to {path}")
        return 0


@app.command
def apply(path: Path, target: str, *, workspace: Path | None = None) -> None:
    """Apply a snapshot file to TARGET.

    Args:
        path: Snapshot JSON file (any supported schema version).
        target: Name or id of the project to fill.
        workspace: Workspace directory.
    """
    sys.exit(asyncio.run(_apply(path, target, workspace)))


@reports_errors
async def _apply(path: Path, target: str, workspace: Path | None) -> int:
    console = get_console()
    try:
        payload = json.loads(path.read_text())
        snapshot, warnings = parse_snapshot(payload)
    except (OSError, ValueError) as e:
        console.error(f"Could not read snapshot {path}: {e}")
        return 1
    except ProjdupError as e:
        console.error(e.message)
        return 1

    for warning in warnings:
        console.warning(str(warning))

    async with open_app(workspace) as container:
        host = await container.get(LocalWorkspace)
        if host.find_project(target) is None:
            console.error(f"Project {target!r} not found")
            return 1

        store = await container.get(TransferStore)
        store.save(snapshot)
        store.arm()
        try:
            await host.select_project(target)
            host.save()
        except ProjdupError as e:
            console.error(e.message)
            return 1
        return 0
