"""Duplicate command - copy the current project's configuration into another project."""

import asyncio
import sys
from pathlib import Path

import cyclopts

from projdup.cli.console import get_console
from projdup.cli.util.runtime import open_app, reports_errors
from projdup.config import Config
from projdup.domain.shared.error import ProjdupError
from projdup.domain.transfer.command.prepare import PrepareTransfer, PrepareTransferHandler
from projdup.domain.transfer.model.snapshot import TransferSelection
from projdup.infrastructure.host.local import LocalWorkspace
from projdup.util.di.scope import Scope

app = cyclopts.App(name="duplicate", help="Duplicate the current project into another one")


@app.default
def duplicate(
    target: str,
    *,
    create: bool = True,
    scopes: bool = True,
    filters: bool = True,
    match_replace: bool = True,
    replay: bool = True,
    workspace: Path | None = None,
) -> None:
    """Capture the current project, switch to TARGET and apply the capture there.

    Args:
        target: Name or id of the project to fill.
        create: Create the target project if it does not exist.
        scopes: Carry scopes.
        filters: Carry filters.
        match_replace: Carry match/replace collections and rules.
        replay: Carry replay collections and sessions.
        workspace: Workspace directory.
    """
    requested = TransferSelection(
        scopes=scopes, filters=filters, match_replace=match_replace, replay=replay
    )
    sys.exit(asyncio.run(_duplicate(target, requested, create, workspace)))


@reports_errors
async def _duplicate(
    target: str,
    requested: TransferSelection,
    create: bool,
    workspace: Path | None,
) -> int:
    console = get_console()
    async with open_app(workspace) as container:
        config = await container.get(Config)
        host = await container.get(LocalWorkspace)

        include = config.transfer.include
        selection = TransferSelection(
            scopes=requested.scopes and include.scopes,
            filters=requested.filters and include.filters,
            match_replace=requested.match_replace and include.match_replace,
            replay=requested.replay and include.replay,
        )

        current = await host.get_current_project()
        existing = host.find_project(target)
        if current is not None and existing is not None and existing.id == current.id:
            console.error("Target is the current project", hint="Pick another target project")
            return 1
        if existing is None and not create:
            console.error(f"Project {target!r} not found", hint="Drop --no-create to create it")
            return 1

        async with container(scope=Scope.UOW) as uow:
            handler = await uow.get(PrepareTransferHandler)
            prepared = await handler.run(PrepareTransfer(selection=selection))
        if not prepared.armed:
            return 1

        try:
            if existing is None:
                host.create_project(target)
            # ProjectChanged fires here and the transfer is applied
            await host.select_project(target)
            host.save()
        except ProjdupError as e:
            console.error(e.message)
            return 1

        console.success(f"Duplicated {prepared.source_project.name!r} into {target!r}")
        return 0
