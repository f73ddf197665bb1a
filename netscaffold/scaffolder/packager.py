"""Zip packaging of scaffolded projects and delayed workspace cleanup."""

from __future__ import annotations

import asyncio
import shutil
import zipfile
from pathlib import Path

from ..utils import print_warning


# Handles of pending cleanup timers, kept until each task finishes.
_pending_cleanups: dict[asyncio.Task[None], Path] = {}


def _write_archive(source_dir: Path, zip_path: Path) -> None:
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    root = source_dir.parent
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.write(source_dir, source_dir.name)
        for path in sorted(source_dir.rglob("*")):
            if path == zip_path:
                continue
            archive.write(path, path.relative_to(root).as_posix())


async def create_zip_archive(source_dir: str | Path, zip_path: str | Path) -> Path:
    """Compress *source_dir* into *zip_path*.

    Entries are rooted at ``<source_dir.name>/`` and directories get their
    own entries, so empty layer folders survive extraction.

    Raises:
        FileNotFoundError: If *source_dir* is not a directory.
    """
    source = Path(source_dir)
    if not source.is_dir():
        raise FileNotFoundError(f"Nothing to archive: '{source}' is not a directory")
    out = Path(zip_path)
    await asyncio.to_thread(_write_archive, source, out)
    return out


async def _remove_later(path: Path, delay: float) -> None:
    await asyncio.sleep(delay)
    await asyncio.to_thread(shutil.rmtree, path, ignore_errors=True)


def schedule_cleanup(path: str | Path, delay: float) -> asyncio.Task[None]:
    """Delete *path* after *delay* seconds without blocking the caller.

    Must be called from a running event loop. Timers still pending at
    shutdown are handled by :func:`flush_cleanups`; after a hard exit the
    directory is left behind.
    """
    target = Path(path)
    task = asyncio.create_task(_remove_later(target, delay))
    _pending_cleanups[task] = target
    task.add_done_callback(_forget)
    return task


def _forget(task: asyncio.Task[None]) -> None:
    _pending_cleanups.pop(task, None)
    if not task.cancelled() and task.exception() is not None:
        print_warning(f"Scaffold cleanup failed: {task.exception()}")


def pending_cleanups() -> list[Path]:
    return list(_pending_cleanups.values())


async def flush_cleanups() -> int:
    """Cancel pending timers and delete their directories now.

    Returns:
        The number of directories removed.
    """
    pending = list(_pending_cleanups.items())
    for task, _ in pending:
        task.cancel()
    for _, path in pending:
        await asyncio.to_thread(shutil.rmtree, path, ignore_errors=True)
    _pending_cleanups.clear()
    return len(pending)
