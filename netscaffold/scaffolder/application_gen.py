"""Application layer generation (dictionary, response DTOs, HTTP client service)."""

from __future__ import annotations

from pathlib import Path

from jinja2 import TemplateError

from ..models import GenerationResult
from ..utils import list_source_files
from .templates import TemplateRenderer


LAYER_FILES: dict[str, str] = {
    "application/dictionary/DefaultDictionary.cs.j2": "Dictionary/DefaultDictionary.cs",
    "application/dtos/response/ApiResponseModel.cs.j2": "DTOs/Response/ApiResponseModel.cs",
    "application/dtos/response/HttpClientResponse.cs.j2": "DTOs/Response/HttpClientResponse.cs",
    "application/interfaces/IHttpClientService.cs.j2": "Interfaces/IHttpClientService.cs",
    "application/services/HttpClientService.cs.j2": "Services/HttpClientService.cs",
}


class ApplicationGenerator:
    """Generates the Application layer scaffolding."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    @staticmethod
    def layer_path(project_path: str | Path) -> Path:
        return Path(project_path) / "Application"

    def has_layer(self, project_path: str | Path) -> bool:
        return self.layer_path(project_path).is_dir()

    async def create_layer(self, project_path: str | Path) -> GenerationResult:
        """Write the Application files that do not exist yet."""
        layer = self.layer_path(project_path)
        if not layer.is_dir():
            return GenerationResult.fail(
                f"Application project not found at '{layer}'",
                error="Application folder missing",
            )
        written: list[str] = []
        try:
            for template, relative in LAYER_FILES.items():
                out = layer / relative
                if await self.renderer.render_if_missing(template, out, {}):
                    written.append(str(out))
        except (OSError, TemplateError) as exc:
            return GenerationResult.fail("Failed to create the Application layer", error=str(exc))
        return GenerationResult.ok(
            f"Application layer ready ({len(written)} files created)", written
        )

    def list_files(self, project_path: str | Path) -> list[str]:
        return list_source_files(self.layer_path(project_path))
