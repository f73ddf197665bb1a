"""Domain repository contracts.

The generic contracts (``IRepository``, ``IRepositoryBase<T>``) are written
once per project; each entity then gets ``I<Name>Repository``. The
Infrastructure implementations live in :mod:`infrastructure_gen`.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import TemplateError

from ..models import BatchResult, GenerationResult
from ..utils import is_identifier
from .csharp import DEFAULT_ENTITY_NAMESPACE
from .templates import TemplateRenderer


ENTITY_TEMPLATE = "domain/repositories/IEntityRepository.cs.j2"

BASE_FILES: dict[str, str] = {
    "domain/repositories/contracts/IRepository.cs.j2": "Repositories/Contracts/IRepository.cs",
    "domain/repositories/contracts/IRepositoryBase.cs.j2": "Repositories/Contracts/IRepositoryBase.cs",
}


class RepositoryGenerator:
    """Generates repository interfaces inside a Domain project."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate_base(self, domain_path: str | Path) -> GenerationResult:
        """Write the generic repository contracts that do not exist yet."""
        domain = Path(domain_path)
        if not domain.is_dir():
            return GenerationResult.fail(
                f"Domain project not found at '{domain}'", error="Domain folder missing"
            )
        written: list[str] = []
        try:
            for template, relative in BASE_FILES.items():
                out = domain / relative
                if await self.renderer.render_if_missing(template, out, {}):
                    written.append(str(out))
        except (OSError, TemplateError) as exc:
            return GenerationResult.fail(
                "Failed to create base repository contracts", error=str(exc)
            )
        return GenerationResult.ok(
            f"Base repository contracts ready ({len(written)} created)", written
        )

    async def generate_entity(
        self,
        entity_name: str,
        domain_path: str | Path,
        entity_namespace: str = DEFAULT_ENTITY_NAMESPACE,
    ) -> GenerationResult:
        """Write ``Repositories/I<Name>Repository.cs``."""
        if not is_identifier(entity_name):
            return GenerationResult.fail(
                f"Invalid entity name '{entity_name}'", error="Entity name must be an identifier"
            )
        out = Path(domain_path) / "Repositories" / f"I{entity_name}Repository.cs"
        try:
            await self.renderer.render_to_file(
                ENTITY_TEMPLATE,
                out,
                {"name": entity_name, "entity_namespace": entity_namespace},
            )
        except (OSError, TemplateError) as exc:
            return GenerationResult.fail(
                f"Failed to generate repository for '{entity_name}'", error=str(exc)
            )
        return GenerationResult.ok(
            f"Repository 'I{entity_name}Repository' generated successfully", [str(out)]
        )

    async def generate_many(
        self, entity_names: list[str], domain_path: str | Path
    ) -> BatchResult:
        """Generate one repository interface per name; failures do not stop the batch."""
        result = BatchResult(success=True, message="")
        for name in entity_names:
            outcome = await self.generate_entity(name, domain_path)
            if outcome.success:
                result.added.append(name)
                result.files.extend(outcome.files)
            else:
                result.failed.append(name)
        result.success = not result.failed
        result.message = (
            f"{len(result.added)} repositories generated, {len(result.failed)} failed"
        )
        if result.failed:
            result.error = f"Failed: {', '.join(result.failed)}"
        return result

    @staticmethod
    def exists(entity_name: str, domain_path: str | Path) -> bool:
        return (Path(domain_path) / "Repositories" / f"I{entity_name}Repository.cs").is_file()

    @staticmethod
    def list_generated(domain_path: str | Path) -> list[str]:
        """Entity names that have a repository interface."""
        repositories_dir = Path(domain_path) / "Repositories"
        if not repositories_dir.is_dir():
            return []
        return sorted(
            p.name[1 : -len("Repository.cs")]
            for p in repositories_dir.glob("I*Repository.cs")
        )
