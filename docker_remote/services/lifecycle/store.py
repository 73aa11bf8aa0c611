"""JSON snapshot of the managed service index."""

import json
import os
import tempfile
from pathlib import Path
from typing import Iterable, List

import structlog
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from ...models.errors import PersistenceError
from ...models.service import ManagedService

logger = structlog.get_logger(__name__)

_services_adapter = TypeAdapter(List[ManagedService])


class ServiceStore:
    """Loads and saves the service index as a JSON list.

    Writes go to a temporary file in the same directory which then replaces
    the snapshot, so a crash mid-write leaves the previous snapshot intact.
    """

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def load(self) -> List[ManagedService]:
        """Read the snapshot. A missing or unreadable snapshot yields an empty index."""
        if not self.path.exists():
            logger.info("No service snapshot found, starting empty", path=str(self.path))
            return []

        try:
            raw = self.path.read_bytes()
            services = _services_adapter.validate_json(raw)
        except (OSError, PydanticValidationError, ValueError) as e:
            logger.error("Failed to load service snapshot", path=str(self.path), error=str(e))
            return []

        logger.info("Loaded service snapshot", path=str(self.path), count=len(services))
        return services

    def save(self, services: Iterable[ManagedService]) -> None:
        data = _services_adapter.dump_python(list(services), mode="json")
        payload = json.dumps(data, indent=2)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
                raise
        except OSError as e:
            raise PersistenceError(str(self.path), str(e)) from e
