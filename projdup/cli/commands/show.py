"""Show command - entity counts for a project."""

import asyncio
import sys
from pathlib import Path

import cyclopts

from projdup.cli.console import get_console
from projdup.cli.util.runtime import open_app, reports_errors
from projdup.infrastructure.host.local import LocalWorkspace

app = cyclopts.App(name="show", help="Show what a project contains")


@app.default
def show(project: str | None = None, *, workspace: Path | None = None) -> None:
    """Print entity counts per kind.

    Args:
        project: Project name or id. Defaults to the current project.
        workspace: Workspace directory.
    """
    sys.exit(asyncio.run(_show(project, workspace)))


@reports_errors
async def _show(name: str | None, workspace: Path | None) -> int:
    console = get_console()
    async with open_app(workspace) as container:
        host = await container.get(LocalWorkspace)
        key = name or host.workspace.current
        data = host.find_project(key) if key else None
        if data is None:
            console.error(
                f"Project {name!r} not found" if name else "No project is currently selected",
                hint="List projects with: projdup projects",
            )
            return 1

        console.table(
            [
                {"kind": "Scopes", "count": len(data.scopes)},
                {"kind": "Filters", "count": len(data.filters)},
                {"kind": "Match/replace collections", "count": len(data.match_replace_collections)},
                {"kind": "Match/replace rules", "count": len(data.match_replace_rules)},
                {"kind": "Replay collections", "count": len(data.replay_collections)},
                {"kind": "Replay sessions", "count": len(data.replay_sessions)},
            ],
            [("kind", "Kind"), ("count", "Count")],
            title=data.name,
        )
        return 0
