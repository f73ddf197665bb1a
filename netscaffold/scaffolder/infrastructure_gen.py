"""Infrastructure layer generation.

Writes the EF Core plumbing (``DatabaseConfig``, ``ApplicationDbContext``,
``RepositoryBase<T>``) and one repository implementation per entity, and
registers entities on the DbContext by patching its ``#region DbSet`` block.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from jinja2 import TemplateError

from ..models import BatchResult, GenerationResult
from ..utils import is_identifier, list_source_files
from .csharp import DEFAULT_ENTITY_NAMESPACE
from .patching import (
    MarkerNotFoundError,
    contains_line,
    insert_after_marker,
    insert_region_after,
    patch_file,
)
from .templates import TemplateRenderer


DBSET_MARKER = "#region DbSet"
DBSET_INDENT = " " * 8
_CONSTRUCTOR_ANCHOR = re.compile(r":\s*base\(options\)")
_USING_RE = re.compile(r"^using \S+;", re.MULTILINE)

DB_CONTEXT_FILE = "Data/ApplicationDbContext.cs"

LAYER_FILES: dict[str, str] = {
    "infrastructure/configuration/DatabaseConfig.cs.j2": "Configuration/DatabaseConfig.cs",
    "infrastructure/data/ApplicationDbContext.cs.j2": DB_CONTEXT_FILE,
    "infrastructure/repositories/contracts/RepositoryBase.cs.j2": "Repositories/Contracts/RepositoryBase.cs",
}
REPOSITORY_TEMPLATE = "infrastructure/repositories/EntityRepository.cs.j2"


def dbset_line(entity_name: str) -> str:
    return f"public DbSet<{entity_name}Entity> {entity_name} {{ get; set; }}"


def add_usings(content: str, namespaces: list[str]) -> str:
    """Add a ``using`` directive per namespace after the first one in *content*."""
    for namespace in dict.fromkeys(namespaces):
        line = f"using {namespace};"
        if contains_line(content, line):
            continue
        first = _USING_RE.search(content)
        if first is None:
            content = f"{line}\n{content}"
        else:
            content, _ = insert_after_marker(content, first.group(0), line)
    return content


def add_dbsets(
    content: str,
    entity_names: list[str],
    namespaces: list[str] | None = None,
) -> tuple[str, tuple[list[str], list[str]]]:
    """Insert a DbSet per entity; creates the region after the constructor if absent.

    *namespaces* are the entity namespaces the DbSets need in scope.
    Returns the new text and ``(added, skipped)`` in input order.
    """
    content = add_usings(content, namespaces or [DEFAULT_ENTITY_NAMESPACE])
    if DBSET_MARKER not in content:
        content = insert_region_after(
            content,
            _CONSTRUCTOR_ANCHOR,
            [f"{DBSET_INDENT}{DBSET_MARKER}", f"{DBSET_INDENT}#endregion"],
        )
    added: list[str] = []
    skipped: list[str] = []
    # Each insert lands directly under the marker, so go backwards to keep input order.
    for name in reversed(entity_names):
        content, inserted = insert_after_marker(
            content, DBSET_MARKER, dbset_line(name), indent=DBSET_INDENT
        )
        (added if inserted else skipped).append(name)
    added.reverse()
    skipped.reverse()
    return content, (added, skipped)


class InfrastructureGenerator:
    """Generates the Infrastructure project contents."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    @staticmethod
    def layer_path(project_path: str | Path) -> Path:
        return Path(project_path) / "Infrastructure"

    def has_layer(self, project_path: str | Path) -> bool:
        return self.layer_path(project_path).is_dir()

    async def create_layer(
        self,
        project_path: str | Path,
        entity_names: list[str],
        entity_namespaces: dict[str, str] | None = None,
    ) -> GenerationResult:
        """Write the layer files and one repository per entity.

        *entity_namespaces* maps entity names to their namespace when it is
        not ``Domain.Entities``.

        Existing files are kept, so re-running after manual edits is safe.
        """
        layer = self.layer_path(project_path)
        if not layer.is_dir():
            return GenerationResult.fail(
                f"Infrastructure project not found at '{layer}'",
                error="Infrastructure folder missing",
            )

        namespaces = entity_namespaces or {}
        written: list[str] = []
        try:
            for template, relative in LAYER_FILES.items():
                out = layer / relative
                if await self.renderer.render_if_missing(template, out, {"entities": []}):
                    written.append(str(out))
            for name in entity_names:
                out = layer / "Repositories" / f"{name}Repository.cs"
                context = {
                    "name": name,
                    "entity_namespace": namespaces.get(name, DEFAULT_ENTITY_NAMESPACE),
                }
                if await self.renderer.render_if_missing(REPOSITORY_TEMPLATE, out, context):
                    written.append(str(out))
        except (OSError, TemplateError) as exc:
            return GenerationResult.fail(
                "Failed to create the Infrastructure layer", error=str(exc)
            )
        return GenerationResult.ok(
            f"Infrastructure layer ready ({len(written)} files created)", written
        )

    async def add_entity_to_db_context(
        self,
        project_path: str | Path,
        entity_name: str,
        entity_namespace: str = DEFAULT_ENTITY_NAMESPACE,
    ) -> GenerationResult:
        """Register ``DbSet<<Name>Entity>`` on the DbContext (idempotent)."""
        batch = await self.add_entities_to_db_context(
            project_path, [entity_name], {entity_name: entity_namespace}
        )
        if not batch.success:
            return GenerationResult.fail(batch.message, error=batch.error)
        if batch.added:
            return GenerationResult.ok(f"Entity '{entity_name}' added to DbContext", batch.files)
        return GenerationResult.ok(f"Entity '{entity_name}' is already registered in DbContext")

    async def add_entities_to_db_context(
        self,
        project_path: str | Path,
        entity_names: list[str],
        entity_namespaces: dict[str, str] | None = None,
    ) -> BatchResult:
        """Register several entities in one rewrite of the DbContext file.

        Also adds the ``using`` directive of each entity's namespace.
        """
        invalid = [name for name in entity_names if not is_identifier(name)]
        if invalid:
            return BatchResult(
                success=False,
                message="Invalid entity names",
                error=", ".join(invalid),
                failed=invalid,
            )

        path = self.layer_path(project_path) / DB_CONTEXT_FILE
        if not path.is_file():
            return BatchResult(
                success=False,
                message=f"ApplicationDbContext not found at '{path}'",
                error="DbContext file missing",
                failed=list(entity_names),
            )

        namespaces = [
            (entity_namespaces or {}).get(name, DEFAULT_ENTITY_NAMESPACE) for name in entity_names
        ]
        try:
            added, skipped = await asyncio.to_thread(
                patch_file, path, lambda text: add_dbsets(text, entity_names, namespaces)
            )
        except (OSError, MarkerNotFoundError) as exc:
            return BatchResult(
                success=False,
                message="Failed to update ApplicationDbContext",
                error=str(exc),
                failed=list(entity_names),
            )
        return BatchResult(
            success=True,
            message=f"{len(added)} entities added to DbContext, {len(skipped)} already present",
            files=[str(path)] if added else [],
            added=added,
            skipped=skipped,
        )

    def list_files(self, project_path: str | Path) -> list[str]:
        """``.cs`` files of the layer, relative to it."""
        return list_source_files(self.layer_path(project_path))
