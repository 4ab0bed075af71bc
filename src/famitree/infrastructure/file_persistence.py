"""File-backed PersistenceBackend: one snapshot file on disk."""

import logging
import os
import tempfile
from pathlib import Path

from famitree.application.ports import PersistenceError

logger = logging.getLogger(__name__)


class FilePersistence:
    """Reads and writes the snapshot file at path. The parent directory is created on first save."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load_initial(self) -> bytes | None:
        if not self._path.exists():
            return None
        try:
            return self._path.read_bytes()
        except OSError as e:
            raise PersistenceError(f"Cannot read {self._path}: {e}") from e

    def save(self, raw: bytes) -> None:
        """Write to a temp file in the same directory, then rename over the target."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=self._path.name, suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(raw)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write {self._path}: {e}") from e
        logger.debug("Saved %d bytes to %s", len(raw), self._path)
