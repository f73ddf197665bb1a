"""Domain entity generation.

Renders ``Domain/Entities/<Name>Entity.cs`` from an entity definition, plus
the Domain base files every entity depends on (``BaseEntity`` and the
``Validation`` helpers).
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import TemplateError

from ..models import EntityDefinition, GenerationResult
from .csharp import entity_context
from .templates import TemplateRenderer


ENTITY_TEMPLATE = "domain/entities/Entity.cs.j2"

# Template -> path relative to the Domain project.
BASE_FILES: dict[str, str] = {
    "domain/validation/Validatable.cs.j2": "Validation/Validatable.cs",
    "domain/validation/ValidatableTypes.cs.j2": "Validation/ValidatableTypes.cs",
    "domain/entities/BaseEntity.cs.j2": "Entities/BaseEntity.cs",
}


class EntityGenerator:
    """Generates Domain entity classes."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate_base_files(self, domain_path: str | Path) -> GenerationResult:
        """Write the Domain base files that do not exist yet."""
        domain = Path(domain_path)
        written: list[str] = []
        try:
            for template, relative in BASE_FILES.items():
                out = domain / relative
                if await self.renderer.render_if_missing(template, out, {}):
                    written.append(str(out))
        except (OSError, TemplateError) as exc:
            return GenerationResult.fail("Failed to create Domain base files", error=str(exc))
        return GenerationResult.ok(
            f"Domain base files ready ({len(written)} created)", written
        )

    async def generate(
        self, project_path: str | Path, definition: EntityDefinition
    ) -> GenerationResult:
        """Write ``Domain/Entities/<Name>Entity.cs``.

        Never overwrites: an existing entity file is reported as a failure.
        """
        domain = Path(project_path) / "Domain"
        if not domain.is_dir():
            return GenerationResult.fail(
                f"Domain project not found at '{domain}'", error="Domain folder missing"
            )

        out = domain / "Entities" / f"{definition.name}Entity.cs"
        if out.exists():
            return GenerationResult.fail(
                f"Entity '{definition.name}' already exists at '{out}'",
                error="File already exists",
            )

        try:
            await self.renderer.render_to_file(ENTITY_TEMPLATE, out, entity_context(definition))
        except (OSError, TemplateError) as exc:
            return GenerationResult.fail(
                f"Failed to generate entity '{definition.name}'", error=str(exc)
            )
        return GenerationResult.ok(
            f"Entity '{definition.name}' generated successfully", [str(out)]
        )

    @staticmethod
    def list_entities(project_path: str | Path) -> list[str]:
        """Class names of the entity files under ``Domain/Entities``."""
        entities_dir = Path(project_path) / "Domain" / "Entities"
        if not entities_dir.is_dir():
            return []
        return sorted(p.stem for p in entities_dir.glob("*.cs"))
