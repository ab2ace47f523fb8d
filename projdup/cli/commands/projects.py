"""Project commands - list, create and switch workspace projects."""

import asyncio
import sys
from pathlib import Path

import cyclopts

from projdup.cli.console import get_console
from projdup.cli.util.runtime import open_app, reports_errors
from projdup.domain.shared.error import ProjdupError
from projdup.infrastructure.host.local import LocalWorkspace

app = cyclopts.App(name="projects", help="Manage workspace projects")


@app.default
def list_projects(*, workspace: Path | None = None) -> None:
    """List projects, marking the current one.

    Args:
        workspace: Workspace directory. Defaults to PROJDUP_WORKSPACE__PATH.
    """
    sys.exit(asyncio.run(_list(workspace)))


@reports_errors
async def _list(workspace: Path | None) -> int:
    console = get_console()
    async with open_app(workspace) as container:
        host = await container.get(LocalWorkspace)
        projects = host.list_projects()
        if not projects:
            console.info("No projects yet. Create one with: projdup projects new NAME")
            return 0
        current = host.workspace.current
        console.table(
            [{"current": "*" if p.id == current else "", "name": p.name, "id": p.id} for p in projects],
            [("current", ""), ("name", "Name"), ("id", "ID")],
        )
        return 0


@app.command
def new(name: str, *, workspace: Path | None = None) -> None:
    """Create an empty project.

    Args:
        name: Project name (must be unique).
        workspace: Workspace directory.
    """
    sys.exit(asyncio.run(_new(name, workspace)))


@reports_errors
async def _new(name: str, workspace: Path | None) -> int:
    console = get_console()
    async with open_app(workspace) as container:
        host = await container.get(LocalWorkspace)
        try:
            project = host.create_project(name)
            host.save()
        except ProjdupError as e:
            console.error(e.message)
            return 1
        console.success(f"Created project {project.name!r}")
        return 0


@app.command
def use(name: str, *, workspace: Path | None = None) -> None:
    """Switch the current project.

    Args:
        name: Project name or id.
        workspace: Workspace directory.
    """
    sys.exit(asyncio.run(_use(name, workspace)))


@reports_errors
async def _use(name: str, workspace: Path | None) -> int:
    console = get_console()
    async with open_app(workspace) as container:
        host = await container.get(LocalWorkspace)
        try:
            project = await host.select_project(name)
            host.save()
        except ProjdupError as e:
            console.error(e.message)
            return 1
        console.success(f"Current project is now {project.name!r}")
        return 0
