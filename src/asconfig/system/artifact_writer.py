import contextlib
import logging
from collections.abc import Callable, Generator
from enum import Enum
from pathlib import Path
from typing import TextIO

from asconfig.exceptions import ArtifactWriteError

logger = logging.getLogger(__name__)


class WriteOutcome(str, Enum):
    """Result of a write attempt that did not fail."""

    WRITTEN = "written"
    DECLINED = "declined"  # Existing file kept at the user's request


class ArtifactWriter:
    """Writes a generated text artifact to a fixed destination.

    An existing destination is only replaced after ``confirm_overwrite``
    returns True. The text is complete before the file is opened, and the
    handle is closed on every exit path.
    """

    def __init__(self, path: Path, confirm_overwrite: Callable[[Path], bool] | None = None):
        """Initialize the writer.

        Args:
            path: Destination file
            confirm_overwrite: Called with the path when it already exists.
                None means existing files are never overwritten.
        """
        self.path = path
        self.confirm_overwrite = confirm_overwrite

    def exists(self) -> bool:
        """Check whether a previous artifact is present."""
        return self.path.exists()

    @contextlib.contextmanager
    def open(self) -> Generator[TextIO, None, None]:
        """Open the destination for truncating write and close it on exit.

        Raises:
            ArtifactWriteError: If the destination cannot be opened
        """
        try:
            handle = self.path.open("w", encoding="utf-8")
        except OSError as e:
            raise ArtifactWriteError(self.path, e.strerror or str(e)) from e
        try:
            yield handle
        finally:
            handle.close()

    def write(self, text: str) -> WriteOutcome:
        """Write the artifact, asking before replacing an existing one.

        Returns:
            WRITTEN, or DECLINED if the user chose to keep the existing file

        Raises:
            ArtifactWriteError: If the destination cannot be opened or written
        """
        if self.exists():
            if self.confirm_overwrite is None or not self.confirm_overwrite(self.path):
                logger.info("Keeping existing %s", self.path)
                return WriteOutcome.DECLINED

        with self.open() as handle:
            try:
                handle.write(text)
            except OSError as e:
                raise ArtifactWriteError(self.path, e.strerror or str(e)) from e

        logger.info("Wrote %s", self.path)
        return WriteOutcome.WRITTEN
