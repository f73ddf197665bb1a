"""Command handler generation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import TemplateError

from ..models import EntityDefinition, GenerationResult
from ..utils import to_camel_case
from .csharp import DEFAULT_ENTITY_NAMESPACE
from .templates import TemplateRenderer


HANDLER_TEMPLATE = "domain/handlers/Handler.cs.j2"
IHANDLER_TEMPLATE = "domain/handlers/contracts/IHandler.cs.j2"


def handler_context(definition: EntityDefinition) -> dict[str, Any]:
    """Context for ``<Name>Handler``: one ``Handle`` per command, one repository."""
    name = definition.name
    title = to_camel_case(name)
    return {
        "name": name,
        "title": title,
        "entity_namespace": definition.namespace or DEFAULT_ENTITY_NAMESPACE,
        "has_collections": any(p.is_collection for p in definition.properties),
        "commands": [
            {"name": f"Create{name}Command", "is_update": False, "is_first": True},
            {"name": f"Update{name}Command", "is_update": True, "is_first": False},
        ],
        "repositories": [
            {
                "name": f"I{name}Repository",
                "title": f"{title}Repository",
                "parameter": f"I{name}Repository {title}Repository",
            }
        ],
    }


class HandlerGenerator:
    """Generates ``Domain/Handlers/<Name>Handler.cs`` and the ``IHandler`` contract."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate(
        self, project_path: str | Path, definition: EntityDefinition
    ) -> GenerationResult:
        """Write the handler of *definition*, overwriting an older one."""
        domain = Path(project_path) / "Domain"
        if not domain.is_dir():
            return GenerationResult.fail(
                f"Domain project not found at '{domain}'", error="Domain folder missing"
            )

        handlers_dir = domain / "Handlers"
        out = handlers_dir / f"{definition.name}Handler.cs"
        files: list[str] = []
        try:
            contract = handlers_dir / "Contracts" / "IHandler.cs"
            if await self.renderer.render_if_missing(IHANDLER_TEMPLATE, contract, {}):
                files.append(str(contract))
            await self.renderer.render_to_file(HANDLER_TEMPLATE, out, handler_context(definition))
        except (OSError, TemplateError) as exc:
            return GenerationResult.fail(
                f"Failed to generate handler for '{definition.name}'", error=str(exc)
            )
        files.append(str(out))
        return GenerationResult.ok(
            f"Handler '{definition.name}Handler' generated successfully", files
        )

    @staticmethod
    def list_handlers(project_path: str | Path) -> list[str]:
        handlers_dir = Path(project_path) / "Domain" / "Handlers"
        if not handlers_dir.is_dir():
            return []
        return sorted(p.stem for p in handlers_dir.glob("*Handler.cs"))
