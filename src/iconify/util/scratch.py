from __future__ import annotations

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from iconify.config import settings

logger = logging.getLogger(__name__)


@contextmanager
def scratch_dir(prefix: str | None = None, root: Path | None = None) -> Iterator[Path]:
    """Yield a fresh uniquely-named directory and remove it on every exit path."""
    base = root if root is not None else settings.scratch_root
    if base is not None:
        Path(base).mkdir(parents=True, exist_ok=True)
    path = Path(tempfile.mkdtemp(prefix=prefix or settings.scratch_prefix, dir=base))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("removed scratch dir %s", path)
