"""Domain helper classes (the reflection-based ``Mapper``)."""

from __future__ import annotations

from pathlib import Path

from jinja2 import TemplateError

from ..models import GenerationResult
from .templates import TemplateRenderer


MAPPER_TEMPLATE = "domain/helpers/Mapper.cs.j2"


class HelperGenerator:
    """Generates the Domain helper classes."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate(self, domain_path: str | Path) -> GenerationResult:
        """Write ``Helpers/Mapper.cs`` (always regenerated)."""
        out = Path(domain_path) / "Helpers" / "Mapper.cs"
        try:
            await self.renderer.render_to_file(MAPPER_TEMPLATE, out, {})
        except (OSError, TemplateError) as exc:
            return GenerationResult.fail("Failed to generate helpers", error=str(exc))
        return GenerationResult.ok("Helpers generated successfully", [str(out)])
