from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def materialize(data: bytes, directory: Optional[Path] = None, prefix: str = "magickcmd") -> Path:
    """
    Write `data` to a new uniquely-named file and return its path.

    The file is left in place so the engine can read it; the caller owns it.
    """
    fd, name = tempfile.mkstemp(prefix=prefix, dir=directory)
    with os.fdopen(fd, "wb") as fh:
        fh.write(data)
    return Path(name)


@dataclass
class TempBlobs:
    """
    Temp files created for blob arguments, deleted together on cleanup.

    Usable as a context manager so the files go away on every exit path.
    """
    base_dir: Optional[Path] = None
    paths: list[Path] = field(default_factory=list)

    @staticmethod
    def default(app_name: str = "magickcmd") -> "TempBlobs":
        base = Path(tempfile.gettempdir()) / app_name
        base.mkdir(parents=True, exist_ok=True)
        return TempBlobs(base_dir=base)

    def add(self, data: bytes) -> Path:
        path = materialize(data, directory=self.base_dir)
        self.paths.append(path)
        return path

    def cleanup(self) -> None:
        """
        Best-effort cleanup. Safe to call multiple times.
        """
        remaining: list[Path] = []
        for path in self.paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("could not remove temp blob %s: %s", path, e)
                remaining.append(path)
        self.paths = remaining

    def __enter__(self) -> "TempBlobs":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cleanup()
