"""Marker-region patching of generated C# files.

Shared files such as ``ApplicationDbContext.cs`` and
``NativeInjectorBootStrapper.cs`` carry ``#region X`` ... ``#endregion``
comment pairs. Later generation steps add registration lines inside these
regions. Every function here works on the full file text and is idempotent:
a line that is already present anywhere in the file is never inserted twice.

Files are read and rewritten whole. Concurrent patches of the same file race
(last writer wins); callers serialise patches of one project.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TypeVar

T = TypeVar("T")


class MarkerNotFoundError(Exception):
    """Raised when a marker comment is missing from the file being patched."""

    def __init__(self, marker: str, path: str | Path | None = None) -> None:
        self.marker = marker
        self.path = str(path) if path else ""
        where = f" in {self.path}" if self.path else ""
        super().__init__(f"Marker '{marker}' not found{where}")


def _leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def contains_line(content: str, line: str) -> bool:
    """Return ``True`` if a line equal to *line* (ignoring indentation) exists."""
    wanted = line.strip()
    return any(existing.strip() == wanted for existing in content.splitlines())


def insert_after_marker(
    content: str,
    marker: str,
    line: str,
    indent: str | None = None,
) -> tuple[str, bool]:
    """Insert *line* directly after the first line containing *marker*.

    Args:
        content: Full file text.
        marker: Marker comment, e.g. ``"#region Repositories"``.
        line: Line to insert, without indentation.
        indent: Indentation to use; defaults to the marker line's own.

    Returns:
        ``(new_content, inserted)``. ``inserted`` is ``False`` when an
        equivalent line already exists and *content* is returned unchanged.

    Raises:
        MarkerNotFoundError: If no line contains *marker*.
    """
    if contains_line(content, line):
        return content, False

    lines = content.splitlines(keepends=True)
    for index, existing in enumerate(lines):
        if marker in existing:
            newline = "\r\n" if existing.endswith("\r\n") else "\n"
            prefix = indent if indent is not None else _leading_whitespace(existing)
            if not existing.endswith(("\n", "\r")):
                lines[index] = existing + newline
            lines.insert(index + 1, f"{prefix}{line.strip()}{newline}")
            return "".join(lines), True

    raise MarkerNotFoundError(marker)


def insert_region_after(
    content: str,
    anchor: str | re.Pattern[str],
    region_lines: Iterable[str],
) -> str:
    """Insert *region_lines* after the first ``}`` line that follows *anchor*.

    Used to create a missing marker region after a constructor body, e.g.
    the ``: base(options)`` constructor of a DbContext.

    Raises:
        MarkerNotFoundError: If the anchor (or a closing brace after it) is
            missing.
    """
    pattern = re.compile(re.escape(anchor)) if isinstance(anchor, str) else anchor
    lines = content.splitlines(keepends=True)
    anchor_index = next((i for i, ln in enumerate(lines) if pattern.search(ln)), None)
    if anchor_index is None:
        raise MarkerNotFoundError(pattern.pattern)

    for index in range(anchor_index + 1, len(lines)):
        if lines[index].strip() == "}":
            newline = "\r\n" if lines[index].endswith("\r\n") else "\n"
            block = [newline] + [f"{ln}{newline}" for ln in region_lines]
            lines[index + 1 : index + 1] = block
            return "".join(lines)

    raise MarkerNotFoundError(f"closing brace after {pattern.pattern}")


def remove_lines(content: str, lines_to_remove: Iterable[str]) -> tuple[str, list[str]]:
    """Drop every line whose stripped text equals one of *lines_to_remove*.

    Returns:
        ``(new_content, removed)`` where ``removed`` lists the stripped lines
        that were actually found.
    """
    targets = {ln.strip() for ln in lines_to_remove}
    kept: list[str] = []
    removed: list[str] = []
    for line in content.splitlines(keepends=True):
        if line.strip() in targets:
            removed.append(line.strip())
        else:
            kept.append(line)
    return "".join(kept), removed


def clear_region_lines(
    content: str,
    region_markers: Iterable[str],
    predicate: Callable[[str], bool],
) -> tuple[str, list[str]]:
    """Drop lines matching *predicate* inside the named marker regions.

    A region runs from the line containing its marker to the next
    ``#endregion``. Lines outside every region are left alone.
    """
    markers = tuple(region_markers)
    kept: list[str] = []
    removed: list[str] = []
    inside = False
    for line in content.splitlines(keepends=True):
        stripped = line.strip()
        if any(marker in line for marker in markers):
            inside = True
        elif stripped.startswith("#endregion"):
            inside = False
        elif inside and predicate(stripped):
            removed.append(stripped)
            continue
        kept.append(line)
    return "".join(kept), removed


def patch_file(path: str | Path, transform: Callable[[str], tuple[str, T]]) -> T:
    """Apply *transform* to the text of *path* and rewrite it if it changed.

    *transform* receives the full text and returns ``(new_text, extra)``;
    ``extra`` is passed back to the caller. Blocking; run it with
    ``asyncio.to_thread`` from async code.
    """
    file_path = Path(path)
    original = file_path.read_text(encoding="utf-8")
    try:
        updated, extra = transform(original)
    except MarkerNotFoundError as exc:
        raise MarkerNotFoundError(exc.marker, file_path) from None
    if updated != original:
        file_path.write_text(updated, encoding="utf-8")
    return extra
