"""Filesystem helpers: directory sizing, cancellable tree copies, atomic writes."""

import logging
import os
import shutil
import tempfile
import threading
from pathlib import Path

from hyprism_content.errors import IOFailure, OperationCancelled
from hyprism_content.utils.timestamps import unique_child

logger = logging.getLogger(__name__)


def dir_size(path: Path) -> int:
    """Sum the sizes of all files under *path*; entries that vanish mid-walk are skipped."""
    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            try:
                total += os.lstat(os.path.join(root, name)).st_size
            except OSError:
                continue
    return total


def _raise(error: OSError) -> None:
    raise error


def claim_unique_dir(parent: Path, base: str) -> Path:
    """Create and return a new directory ``parent / base`` or a suffixed variant of it.

    A name taken by someone else between choosing and creating it is skipped.
    """
    while True:
        candidate = unique_child(parent, base)
        try:
            candidate.mkdir(parents=True, exist_ok=False)
        except FileExistsError:
            continue
        except OSError as e:
            raise IOFailure("Cannot create copy destination", candidate) from e
        return candidate


def copy_tree(
    src: Path,
    parent: Path,
    base: str,
    cancel_event: threading.Event | None = None,
) -> Path:
    """Copy the directory tree *src* into a new directory under *parent*.

    The destination is named *base*, with a ``-NN`` suffix if that is taken.
    Cancellation is checked between files. On failure or cancellation the
    partially copied destination is removed before the error propagates.

    Raises:
        IOFailure: If any directory or file could not be read or copied.
        OperationCancelled: If *cancel_event* was set during the copy.
    """
    dst = claim_unique_dir(parent, base)
    try:
        for root, dirs, files in os.walk(src, onerror=_raise):
            rel = Path(root).relative_to(src)
            target_root = dst / rel
            for d in dirs:
                (target_root / d).mkdir(exist_ok=True)
            for name in files:
                if cancel_event is not None and cancel_event.is_set():
                    raise OperationCancelled(f"Copy of {src} cancelled")
                shutil.copy2(Path(root) / name, target_root / name)
    except OperationCancelled:
        remove_tree(dst)
        raise
    except OSError as e:
        remove_tree(dst)
        raise IOFailure(f"Failed to copy {src}", dst) from e
    return dst


def remove_tree(path: Path) -> None:
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError:
        logger.warning("Could not fully remove %s", path, exc_info=True)


def atomic_write_text(path: Path, content: str) -> None:
    """Replace *path* with *content* so readers never see a half-written file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as handle:
        temp_path = Path(handle.name)
        try:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        except OSError:
            handle.close()
            temp_path.unlink(missing_ok=True)
            raise
    try:
        temp_path.replace(path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise
