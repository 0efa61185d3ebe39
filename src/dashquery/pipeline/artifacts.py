"""
Per-dashboard artifact persistence.

One ``{id}.json`` file per dashboard in the destination directory. The file's
existence is the resume checkpoint, so artifacts are always written
atomically.
"""

from pathlib import Path
from typing import Union

from ..data.schemas import Dashboard
from ..util.errors import FileSystemError, RecoveryStrategy, create_error_context
from ..util.fs import atomic_write_json, ensure_directory
from ..util.log import get_logger, log_extra

logger = get_logger(__name__)

ARTIFACT_SUFFIX = ".json"
UNSAFE_ID_CHARS = ("/", "\\", "\x00")


class ArtifactStore:
    """Reads and writes dashboard artifacts under ``dest_dir``."""

    def __init__(self, dest_dir: Union[str, Path]):
        self.dest_dir = Path(dest_dir)

    def prepare(self) -> Path:
        """Create the destination directory. Called once per run."""
        try:
            path = ensure_directory(self.dest_dir)
        except OSError as e:
            raise FileSystemError(
                self.dest_dir,
                "create_directory",
                f"failed to create destination dir: {e}",
                recovery_strategy=RecoveryStrategy.ABORT,
                context=create_error_context("artifacts", "prepare"),
                cause=e,
            ) from e
        logger.debug("Destination directory ready: %s", path)
        return path

    def path_for(self, dashboard_id: str) -> Path:
        if (
            not dashboard_id
            or dashboard_id in (".", "..")
            or any(c in dashboard_id for c in UNSAFE_ID_CHARS)
        ):
            raise FileSystemError(
                self.dest_dir / f"{dashboard_id}{ARTIFACT_SUFFIX}",
                "resolve",
                "dashboard id is not usable as a file name",
                context=create_error_context("artifacts", "path_for", dashboard_id=dashboard_id),
            )
        return self.dest_dir / f"{dashboard_id}{ARTIFACT_SUFFIX}"

    def exists(self, dashboard_id: str) -> bool:
        """Whether an artifact for ``dashboard_id`` was already written."""
        path = self.path_for(dashboard_id)
        try:
            return path.is_file()
        except (OSError, ValueError) as e:
            raise FileSystemError(
                path,
                "stat",
                f"failed to check for existing artifact: {e}",
                context=create_error_context("artifacts", "exists", dashboard_id=dashboard_id),
                cause=e,
            ) from e

    def write(self, dashboard: Dashboard) -> Path:
        """Serialize ``dashboard`` to its artifact file, replacing any old one."""
        path = self.path_for(dashboard.id)
        try:
            atomic_write_json(path, dashboard.to_artifact())
        except (OSError, ValueError) as e:
            raise FileSystemError(
                path,
                "write",
                f"failed to write dashboard {dashboard.id!r} to file: {e}",
                context=create_error_context("artifacts", "write", dashboard_id=dashboard.id),
                cause=e,
            ) from e

        logger.debug("Wrote %s", path, extra=log_extra(dashboard_id=dashboard.id))
        return path
