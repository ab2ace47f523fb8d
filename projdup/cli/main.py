"""Main CLI application using Cyclopts."""

import cyclopts

from projdup.cli.commands import duplicate, projects, show, snapshot

app = cyclopts.App(
    name="projdup",
    help="Duplicate project configuration between workspace projects",
)

app.command(projects.app, name="projects")
app.command(show.app, name="show")
app.command(duplicate.app, name="duplicate")
app.command(snapshot.app, name="snapshot")


def main() -> None:
    app()
