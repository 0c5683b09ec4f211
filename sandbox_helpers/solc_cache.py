"""
On-disk cache of downloaded compiler binaries, one file per version.

Entries are written once and never invalidated.
"""

import logging
import os
import stat
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class CompilerCache(ABC):
    """Get/put interface for compiler artifacts keyed by version string."""

    @abstractmethod
    def get(self, version: str) -> Optional[Path]:
        """Return the cached artifact for ``version``, or None."""

    @abstractmethod
    def put(self, version: str, content: bytes) -> Path:
        """Store ``content`` for ``version`` and return its path."""


class FileCompilerCache(CompilerCache):
    """Stores each compiler artifact as ``<cache_dir>/<version>``."""

    def __init__(self, cache_dir: Union[str, Path] = ".solc_cache") -> None:
        self.cache_dir = Path(cache_dir)
        if not self.cache_dir.exists():
            self.cache_dir.mkdir(parents=True)

    def path_for(self, version: str) -> Path:
        return self.cache_dir / version

    def get(self, version: str) -> Optional[Path]:
        path = self.path_for(version)
        if path.exists():
            logger.debug(f"Compiler cache hit for {version}")
            return path
        return None

    def put(self, version: str, content: bytes) -> Path:
        # Written to a temp file and renamed, so a partial download never
        # appears under the version name. Concurrent writers: last one wins.
        path = self.path_for(version)
        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix=f".{version}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            mode = os.stat(tmp_name).st_mode
            os.chmod(tmp_name, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise
        logger.info(f"Cached solc {version} at {path}")
        return path
