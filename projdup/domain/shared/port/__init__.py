from typing import Protocol


class Port(Protocol):
    """Marker base for interfaces the domain consumes from the outside world."""
