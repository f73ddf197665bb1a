"""Jinja2 template rendering for the C# layer generators.

Provides the TemplateRenderer class which loads ``.cs.j2`` templates from the
``netscaffold/scaffolder/templates/`` directory and renders them with
entity-specific context data.

Compiled templates are cached per renderer, keyed by their path relative to
the template root. A template is loaded and compiled on first use and is
never evicted; the package's templates are fixed, so the cache is bounded by
their count. ``get_renderer()`` returns the process-wide renderer that every
generator shares.
"""

from __future__ import annotations

import asyncio
import functools
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, Template, select_autoescape

from ..utils import to_camel_case, to_pascal_case, write_text


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for C# source generation.

    Autoescaping is disabled: the output is C#, where ``<`` and ``>`` are
    generic brackets rather than markup.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            auto_reload=False,
        )
        self.env.filters["camel_case"] = to_camel_case
        self.env.filters["pascal_case"] = to_pascal_case
        self._cache: dict[str, Template] = {}
        self._loads = 0
        self._hits = 0

    # -- Cache -------------------------------------------------------------

    def get_template(self, template_path: str) -> Template:
        """Return the compiled template at *template_path*.

        Raises:
            jinja2.TemplateNotFound: If no such template exists.
        """
        template = self._cache.get(template_path)
        if template is not None:
            self._hits += 1
            return template
        template = self.env.get_template(template_path)
        self._cache[template_path] = template
        self._loads += 1
        return template

    def cache_stats(self) -> dict[str, Any]:
        """Return the number of cached templates and load/hit counters."""
        return {
            "size": len(self._cache),
            "loads": self._loads,
            "hits": self._hits,
            "templates": sorted(self._cache),
        }

    def clear_cache(self) -> None:
        """Drop every compiled template (used by tests)."""
        self._cache.clear()
        if self.env.cache is not None:
            self.env.cache.clear()
        self._loads = 0
        self._hits = 0

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"domain/entities/Entity.cs.j2"``).
            context: Dictionary of variables available inside the template.
        """
        return self.get_template(template_path).render(**context)

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the provided context."""
        template = self.env.from_string(template_string)
        return template.render(**context)

    # -- File-based rendering (async) --------------------------------------

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically. Returns the output path.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(write_text, out, content)
        return out

    async def render_if_missing(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> bool:
        """Like :meth:`render_to_file` but leaves an existing file untouched.

        Returns ``True`` if the file was written.
        """
        if Path(output_path).exists():
            return False
        await self.render_to_file(template_path, output_path, context)
        return True

    # -- Utility -----------------------------------------------------------

    def exists(self, template_path: str) -> bool:
        """Return ``True`` if *template_path* names a template file."""
        return template_path in self._cache or (self.template_dir / template_path).is_file()

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` template paths under *prefix*.

        Paths are relative to the template root directory and use forward
        slashes.
        """
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*.j2")
        )


@functools.lru_cache(maxsize=None)
def get_renderer() -> TemplateRenderer:
    """Return the process-wide renderer over the package templates."""
    return TemplateRenderer()
