"""ProjectChanged event - the host switched its active project."""

from projdup.domain.shared.event import Event, EventId


class ProjectChanged(Event):
    """Delivered by the host after the active project changes.

    project_name is None when the host could not name the new project.
    """

    id: EventId
    project_name: str | None = None
