"""Temporary-file infrastructure helpers."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StagingHandle:
    """One staging file on disk. Its descriptor is already closed."""

    path: Path
    extension: str
    released: bool = False


class StagingScope:
    """Owns the staging files of one job execution.

    Every acquired handle is released exactly once: either explicitly through
    :meth:`release` or when the scope is closed, whichever comes first.
    """

    def __init__(self, directory: Path | None = None, prefix: str = "audioconv-") -> None:
        self._directory = directory
        self._prefix = prefix
        self._handles: list[StagingHandle] = []

    def acquire(self, extension: str) -> StagingHandle:
        suffix = f".{extension.lstrip('.')}" if extension else ""
        fd, name = tempfile.mkstemp(
            suffix=suffix,
            prefix=self._prefix,
            dir=str(self._directory) if self._directory is not None else None,
        )
        os.close(fd)
        handle = StagingHandle(path=Path(name), extension=extension)
        self._handles.append(handle)
        return handle

    def release(self, handle: StagingHandle) -> None:
        if handle.released:
            return
        handle.released = True
        try:
            handle.path.unlink(missing_ok=True)
        except OSError as error:
            logger.warning("Failed to remove staging file %s", handle.path, exc_info=error)

    def close(self) -> None:
        for handle in self._handles:
            self.release(handle)

    @property
    def handles(self) -> tuple[StagingHandle, ...]:
        return tuple(self._handles)

    def __enter__(self) -> StagingScope:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
