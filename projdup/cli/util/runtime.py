"""Process wiring shared by CLI commands."""

import functools
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import ParamSpec

from dishka import AsyncContainer
from pydantic import ValidationError as PydanticValidationError

from projdup.application.di import create_container
from projdup.application.event import subscribe_transfer_listener
from projdup.cli.console import get_console
from projdup.config import Config, WorkspaceConfig, configure_logging
from projdup.domain.shared.error import ConfigurationError, ProjdupError

P = ParamSpec("P")


def load_config(workspace: Path | None = None) -> Config:
    try:
        if workspace is not None:
            return Config(workspace=WorkspaceConfig(path=str(workspace)))  # type: ignore[call-arg]
        return Config()  # type: ignore[call-arg]
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


@asynccontextmanager
async def open_app(workspace: Path | None = None) -> AsyncIterator[AsyncContainer]:
    """Build the container, subscribe the transfer listener, close on exit."""
    config = load_config(workspace)
    configure_logging(config.logging)

    container = create_container(config)
    try:
        await subscribe_transfer_listener(container)
        yield container
    finally:
        await container.close()


def reports_errors(fn: Callable[P, Awaitable[int]]) -> Callable[P, Awaitable[int]]:
    """Print a ProjdupError raised by a command and turn it into exit code 1."""

    @functools.wraps(fn)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> int:
        try:
            return await fn(*args, **kwargs)
        except ProjdupError as e:
            get_console().error(e.message)
            return 1

    return wrapper
