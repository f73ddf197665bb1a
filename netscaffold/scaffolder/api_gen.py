"""API layer generation.

Writes the ASP.NET Core host pieces of the ``API`` project: configuration
extension classes, middlewares, ``Program.cs`` wiring them together, the
shared ``BaseController`` and one controller per entity.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import TemplateError

from ..models import GenerationResult
from ..utils import is_identifier
from .csharp import DEFAULT_ENTITY_NAMESPACE
from .templates import TemplateRenderer


CONFIGURATION_FILES: dict[str, str] = {
    "api/configurations/DependencyInjectionConfig.cs.j2": "Configurations/DependencyInjectionConfig.cs",
    "api/configurations/EnvironmentConfig.cs.j2": "Configurations/EnvironmentConfig.cs",
    "api/configurations/SwaggerConfig.cs.j2": "Configurations/SwaggerConfig.cs",
    "api/middleware/CancellationTokenMiddleware.cs.j2": "Middleware/CancellationTokenMiddleware.cs",
    "api/middleware/ErrorHandlingMiddleware.cs.j2": "Middleware/ErrorHandlingMiddleware.cs",
}
PROGRAM_TEMPLATE = "api/Program.cs.j2"
BASE_CONTROLLER_TEMPLATE = "api/controllers/contract/BaseController.cs.j2"
CONTROLLER_TEMPLATE = "api/controllers/EntityController.cs.j2"

# Present in a Program.cs that is already wired to the generated configuration.
_PROGRAM_WIRED = "AddDependencyInjectionConfiguration"


def swagger_context(project_name: str, description: str | None = None) -> dict[str, Any]:
    return {
        "title": f"{project_name} API",
        "api_version": "v1",
        "description": description or f"{project_name} Web API",
    }


class ApiGenerator:
    """Generates the ``API`` project contents."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    @staticmethod
    def layer_path(project_path: str | Path) -> Path:
        return Path(project_path) / "API"

    async def create_configurations(
        self,
        project_path: str | Path,
        project_name: str,
        description: str | None = None,
    ) -> GenerationResult:
        """Write configuration classes and middlewares, and rewire ``Program.cs``.

        Existing configuration files are kept. ``Program.cs`` produced by
        ``dotnet new`` is replaced unless it already uses the generated
        configuration.
        """
        api = self.layer_path(project_path)
        if not api.is_dir():
            return GenerationResult.fail(
                f"API project not found at '{api}'", error="API folder missing"
            )

        context = swagger_context(project_name, description)
        written: list[str] = []
        try:
            for template, relative in CONFIGURATION_FILES.items():
                out = api / relative
                if await self.renderer.render_if_missing(template, out, context):
                    written.append(str(out))

            program = api / "Program.cs"
            if not program.exists() or _PROGRAM_WIRED not in program.read_text(encoding="utf-8"):
                await self.renderer.render_to_file(PROGRAM_TEMPLATE, program, context)
                written.append(str(program))
        except (OSError, TemplateError) as exc:
            return GenerationResult.fail("Failed to create API configurations", error=str(exc))
        return GenerationResult.ok(
            f"API configurations ready ({len(written)} files written)", written
        )

    async def create_entity_controller(
        self,
        project_path: str | Path,
        entity_name: str,
        entity_namespace: str = DEFAULT_ENTITY_NAMESPACE,
    ) -> GenerationResult:
        """Write ``Controllers/<Name>Controller.cs`` (and ``BaseController`` once)."""
        if not is_identifier(entity_name):
            return GenerationResult.fail(
                f"Invalid entity name '{entity_name}'", error="Entity name must be an identifier"
            )
        api = self.layer_path(project_path)
        if not api.is_dir():
            return GenerationResult.fail(
                f"API project not found at '{api}'", error="API folder missing"
            )

        controllers = api / "Controllers"
        out = controllers / f"{entity_name}Controller.cs"
        files: list[str] = []
        try:
            base = controllers / "Contract" / "BaseController.cs"
            if await self.renderer.render_if_missing(BASE_CONTROLLER_TEMPLATE, base, {}):
                files.append(str(base))
            await self.renderer.render_to_file(
                CONTROLLER_TEMPLATE,
                out,
                {
                    "name": entity_name,
                    "route": entity_name.lower(),
                    "entity_namespace": entity_namespace,
                },
            )
        except (OSError, TemplateError) as exc:
            return GenerationResult.fail(
                f"Failed to generate controller for '{entity_name}'", error=str(exc)
            )
        files.append(str(out))
        return GenerationResult.ok(
            f"Controller '{entity_name}Controller' generated successfully", files
        )
