"""Filesystem helpers for the per-pass working directories"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO


def atomic_copy_stream(source: BinaryIO, output_file: Path) -> int:
    """
    Copy a binary stream into `output_file` through a temporary file.

    The temporary file is renamed over the target only once the whole stream
    was written, so the target never holds a partial copy. Returns the number
    of bytes copied. I/O errors propagate.
    """
    output_dir = output_file.parent
    with tempfile.NamedTemporaryFile(suffix=".part", dir=output_dir, delete=False) as f:
        filename = f.name
        try:
            shutil.copyfileobj(source, f)
            f.flush()
            size = f.tell()
        except BaseException:
            f.close()
            Path(filename).unlink(missing_ok=True)
            raise
    os.replace(filename, output_file)
    logging.getLogger("Files").debug("Copied %d bytes to %s", size, output_file)
    return size


def remove_tree(path: Path) -> bool:
    """
    Recursively delete `path`, never raising.

    Returns True when nothing is left on disk. Failures are logged.
    """
    if not path.exists():
        return True
    try:
        shutil.rmtree(path)
    except OSError as e:
        logging.getLogger("Files").warning("Cannot remove %s: %s", path, e)
        return False
    return True
