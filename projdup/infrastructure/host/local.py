"""YAML-file-backed workspace host."""

import logging
import tempfile
from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from projdup.domain.shared.error import StorageUnavailableError
from projdup.domain.shared.port.event_bus import EventBus
from projdup.infrastructure.host.memory import InMemoryHost, Workspace

logger = logging.getLogger(__name__)


class LocalWorkspace(InMemoryHost):
    """InMemoryHost persisted as a single YAML document.

    Request bytes are stored base64-encoded. Nothing is written until
    save() is called.
    """

    def __init__(self, path: Path, workspace: Workspace | None = None, bus: EventBus | None = None) -> None:
        super().__init__(workspace=workspace, bus=bus)
        self.path = path

    @classmethod
    def load(cls, path: Path, bus: EventBus | None = None) -> "LocalWorkspace":
        """Read the workspace at path; a missing file yields an empty workspace."""
        if not path.exists():
            logger.info("No workspace at %s, starting empty", path)
            return cls(path, bus=bus)

        try:
            data = yaml.safe_load(path.read_text()) or {}
            workspace = Workspace.model_validate(data)
        except (OSError, yaml.YAMLError, PydanticValidationError) as e:
            raise StorageUnavailableError(f"Could not read workspace {path}: {e}") from e

        logger.debug("Loaded workspace %s with %d projects", path, len(workspace.projects))
        return cls(path, workspace=workspace, bus=bus)

    def save(self) -> None:
        """Write the workspace atomically: temp file, then rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        document = yaml.safe_dump(
            self.workspace.model_dump(mode="json", by_alias=True),
            sort_keys=False,
            allow_unicode=True,
        )

        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".yaml")
        try:
            with open(fd, "w", encoding="utf-8") as f:
                f.write(document)
            Path(tmp_path).replace(self.path)
        except OSError as e:
            Path(tmp_path).unlink(missing_ok=True)
            raise StorageUnavailableError(f"Could not write workspace {self.path}: {e}") from e

        logger.debug("Saved workspace %s", self.path)
