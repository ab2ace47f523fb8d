"""Project duplication for workspace-based HTTP tooling hosts."""

__version__ = "0.1.0"
