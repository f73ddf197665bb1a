"""Dependency-injection registrar.

Maintains ``IoC/NativeInjectorBootStrapper.cs``. Registration lines are
inserted under the ``#region Repositories`` and ``#region Handlers`` markers,
at most once each, and can be removed again per entity or all at once.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from jinja2 import TemplateError

from ..models import BatchResult, GenerationResult
from ..utils import is_identifier
from .patching import (
    MarkerNotFoundError,
    clear_region_lines,
    contains_line,
    insert_after_marker,
    patch_file,
    remove_lines,
)
from .templates import TemplateRenderer


BOOTSTRAPPER_TEMPLATE = "ioc/NativeInjectorBootStrapper.cs.j2"
BOOTSTRAPPER_FILE = "NativeInjectorBootStrapper.cs"

REPOSITORY_MARKER = "#region Repositories"
HANDLER_MARKER = "#region Handlers"
REGISTRATION_INDENT = " " * 12

_REGISTERED_RE = re.compile(r"services\.AddScoped<I(\w+)Repository")


def repository_registration(entity_name: str) -> str:
    return f"services.AddScoped<I{entity_name}Repository, {entity_name}Repository>();"


def handler_registration(entity_name: str) -> str:
    return f"services.AddTransient<{entity_name}Handler>();"


def add_registrations(content: str, entity_names: list[str]) -> tuple[str, tuple[list[str], list[str]]]:
    """Insert repository and handler registrations for each entity.

    A missing region is tolerated as long as the other one exists.

    Returns:
        The new text and ``(added, skipped)``; an entity counts as added
        when at least one of its lines was inserted.

    Raises:
        MarkerNotFoundError: If neither region exists.
    """
    if REPOSITORY_MARKER not in content and HANDLER_MARKER not in content:
        raise MarkerNotFoundError(f"{REPOSITORY_MARKER} / {HANDLER_MARKER}")

    added: list[str] = []
    skipped: list[str] = []
    for name in reversed(entity_names):
        inserted_any = False
        for marker, line in (
            (REPOSITORY_MARKER, repository_registration(name)),
            (HANDLER_MARKER, handler_registration(name)),
        ):
            if marker not in content:
                continue
            content, inserted = insert_after_marker(
                content, marker, line, indent=REGISTRATION_INDENT
            )
            inserted_any = inserted_any or inserted
        (added if inserted_any else skipped).append(name)
    added.reverse()
    skipped.reverse()
    return content, (added, skipped)


def _is_entity_registration(line: str) -> bool:
    return line.startswith("services.Add") and ("Repository" in line or "Handler" in line)


class IoCGenerator:
    """Creates and patches the IoC bootstrapper."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    @staticmethod
    def bootstrapper_path(project_path: str | Path) -> Path:
        return Path(project_path) / "IoC" / BOOTSTRAPPER_FILE

    async def create_bootstrapper(self, project_path: str | Path) -> GenerationResult:
        """Write the bootstrapper unless it exists."""
        out = self.bootstrapper_path(project_path)
        if not out.parent.is_dir():
            return GenerationResult.fail(
                f"IoC project not found at '{out.parent}'", error="IoC folder missing"
            )
        try:
            created = await self.renderer.render_if_missing(BOOTSTRAPPER_TEMPLATE, out, {})
        except (OSError, TemplateError) as exc:
            return GenerationResult.fail("Failed to create the IoC bootstrapper", error=str(exc))
        if not created:
            return GenerationResult.ok("IoC bootstrapper already exists")
        return GenerationResult.ok("IoC bootstrapper created successfully", [str(out)])

    async def add_entity_registrations(
        self, project_path: str | Path, entity_name: str
    ) -> GenerationResult:
        """Register the repository and handler of one entity."""
        batch = await self.add_many(project_path, [entity_name])
        if not batch.success:
            return GenerationResult.fail(batch.message, error=batch.error)
        if batch.added:
            return GenerationResult.ok(
                f"Registrations for '{entity_name}' added to the IoC bootstrapper", batch.files
            )
        return GenerationResult.ok(f"Entity '{entity_name}' is already registered")

    async def add_many(self, project_path: str | Path, entity_names: list[str]) -> BatchResult:
        """Register several entities in one rewrite of the bootstrapper."""
        invalid = [name for name in entity_names if not is_identifier(name)]
        if invalid:
            return BatchResult(
                success=False, message="Invalid entity names", error=", ".join(invalid), failed=invalid
            )
        path = self.bootstrapper_path(project_path)
        if not path.is_file():
            return BatchResult(
                success=False,
                message=f"IoC bootstrapper not found at '{path}'",
                error="Bootstrapper file missing",
                failed=list(entity_names),
            )
        try:
            added, skipped = await asyncio.to_thread(
                patch_file, path, lambda text: add_registrations(text, entity_names)
            )
        except (OSError, MarkerNotFoundError) as exc:
            return BatchResult(
                success=False,
                message="Failed to update the IoC bootstrapper",
                error=str(exc),
                failed=list(entity_names),
            )
        return BatchResult(
            success=True,
            message=f"{len(added)} entities registered, {len(skipped)} already present",
            files=[str(path)] if added else [],
            added=added,
            skipped=skipped,
        )

    def is_registered(self, project_path: str | Path, entity_name: str) -> bool:
        path = self.bootstrapper_path(project_path)
        if not path.is_file():
            return False
        return contains_line(path.read_text(encoding="utf-8"), repository_registration(entity_name))

    def registered_entities(self, project_path: str | Path) -> list[str]:
        """Entity names with a repository registration, in file order."""
        path = self.bootstrapper_path(project_path)
        if not path.is_file():
            return []
        return _REGISTERED_RE.findall(path.read_text(encoding="utf-8"))

    async def remove_entity_registrations(
        self, project_path: str | Path, entity_name: str
    ) -> GenerationResult:
        batch = await self.remove_many(project_path, [entity_name])
        if not batch.success:
            return GenerationResult.fail(batch.message, error=batch.error)
        if batch.added:
            return GenerationResult.ok(f"Registrations for '{entity_name}' removed", batch.files)
        return GenerationResult.ok(f"Entity '{entity_name}' was not registered")

    async def remove_many(self, project_path: str | Path, entity_names: list[str]) -> BatchResult:
        """Remove registrations; ``added`` lists the entities actually removed."""
        path = self.bootstrapper_path(project_path)
        if not path.is_file():
            return BatchResult(
                success=False,
                message=f"IoC bootstrapper not found at '{path}'",
                error="Bootstrapper file missing",
                failed=list(entity_names),
            )

        def _remove(text: str) -> tuple[str, list[str]]:
            lines = [
                line
                for name in entity_names
                for line in (repository_registration(name), handler_registration(name))
            ]
            return remove_lines(text, lines)

        try:
            removed_lines = await asyncio.to_thread(patch_file, path, _remove)
        except OSError as exc:
            return BatchResult(
                success=False, message="Failed to update the IoC bootstrapper", error=str(exc)
            )
        removed = [
            name
            for name in entity_names
            if repository_registration(name) in removed_lines
            or handler_registration(name) in removed_lines
        ]
        return BatchResult(
            success=True,
            message=f"{len(removed)} entities unregistered",
            files=[str(path)] if removed else [],
            added=removed,
            skipped=[name for name in entity_names if name not in removed],
        )

    async def clear_all(self, project_path: str | Path) -> GenerationResult:
        """Remove every repository and handler registration from both regions."""
        path = self.bootstrapper_path(project_path)
        if not path.is_file():
            return GenerationResult.fail(
                f"IoC bootstrapper not found at '{path}'", error="Bootstrapper file missing"
            )
        try:
            removed = await asyncio.to_thread(
                patch_file,
                path,
                lambda text: clear_region_lines(
                    text, (REPOSITORY_MARKER, HANDLER_MARKER), _is_entity_registration
                ),
            )
        except OSError as exc:
            return GenerationResult.fail("Failed to update the IoC bootstrapper", error=str(exc))
        return GenerationResult.ok(f"{len(removed)} registrations removed", [str(path)] if removed else [])
