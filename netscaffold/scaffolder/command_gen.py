"""Create/Update command generation.

Each entity gets ``Domain/Commands/<Name>Commands/Create<Name>Command.cs``
and ``Update<Name>Command.cs``. Command files are always regenerated so they
follow the latest definition.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import TemplateError

from ..models import EntityDefinition, GenerationResult
from .csharp import enrich_property, is_id_property
from .templates import TemplateRenderer


CREATE_TEMPLATE = "domain/commands/CreateCommand.cs.j2"
UPDATE_TEMPLATE = "domain/commands/UpdateCommand.cs.j2"

CONTRACT_FILES: dict[str, str] = {
    "domain/commands/contracts/ICommand.cs.j2": "Commands/Contracts/ICommand.cs",
    "domain/commands/contracts/ICommandResult.cs.j2": "Commands/Contracts/ICommandResult.cs",
    "domain/commands/CommandResult.cs.j2": "Commands/CommandResult.cs",
}


def create_command_context(definition: EntityDefinition, include_id: bool = True) -> dict[str, Any]:
    """Context for the Create command.

    The constructor takes every property that is required or is not an
    identifier; all properties are public. A Guid ``Id`` is declared unless
    the entity already has a property named ``id``.
    """
    properties = [enrich_property(p) for p in definition.properties]
    has_own_id = any(p["name"].lower() == "id" for p in properties)
    return {
        "name": definition.name,
        "include_id": include_id and not has_own_id,
        "properties": properties,
        "constructor_properties": [
            p for p in properties if p["is_required"] or not p["is_id"]
        ],
        "required_properties": [p for p in properties if p["is_required"]],
    }


def update_command_context(definition: EntityDefinition) -> dict[str, Any]:
    """Context for the Update command.

    Identifier-like properties are left out (``Id`` is declared by the
    template); collections are settable but not constructor parameters.
    """
    properties = [enrich_property(p) for p in definition.properties if not is_id_property(p)]
    constructor = [p for p in properties if not p["is_collection"]]
    return {
        "name": definition.name,
        "properties": properties,
        "constructor_properties": constructor,
        "has_constructor_params": bool(constructor),
        "required_properties": [p for p in properties if p["is_required"]],
    }


class CommandGenerator:
    """Generates command classes and the command contracts."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate_contracts(self, domain_path: str | Path) -> GenerationResult:
        """Write ``ICommand``, ``ICommandResult`` and ``CommandResult`` if missing."""
        domain = Path(domain_path)
        written: list[str] = []
        try:
            for template, relative in CONTRACT_FILES.items():
                out = domain / relative
                if await self.renderer.render_if_missing(template, out, {}):
                    written.append(str(out))
        except (OSError, TemplateError) as exc:
            return GenerationResult.fail("Failed to create command contracts", error=str(exc))
        return GenerationResult.ok(
            f"Command contracts ready ({len(written)} created)", written
        )

    async def generate(
        self,
        project_path: str | Path,
        definition: EntityDefinition,
        include_id: bool = True,
    ) -> GenerationResult:
        """Write the Create and Update commands of *definition*."""
        domain = Path(project_path) / "Domain"
        if not domain.is_dir():
            return GenerationResult.fail(
                f"Domain project not found at '{domain}'", error="Domain folder missing"
            )

        folder = domain / "Commands" / f"{definition.name}Commands"
        create_out = folder / f"Create{definition.name}Command.cs"
        update_out = folder / f"Update{definition.name}Command.cs"
        existed = create_out.exists() or update_out.exists()

        try:
            await self.renderer.render_to_file(
                CREATE_TEMPLATE, create_out, create_command_context(definition, include_id)
            )
            await self.renderer.render_to_file(
                UPDATE_TEMPLATE, update_out, update_command_context(definition)
            )
        except (OSError, TemplateError) as exc:
            return GenerationResult.fail(
                f"Failed to generate commands for '{definition.name}'", error=str(exc)
            )

        verb = "updated" if existed else "created"
        return GenerationResult.ok(
            f"Commands for '{definition.name}' {verb} successfully",
            [str(create_out), str(update_out)],
        )

    @staticmethod
    def list_commands(project_path: str | Path) -> list[str]:
        """Command files, as ``<Folder>/<Command>`` for those in sub-folders."""
        commands_dir = Path(project_path) / "Domain" / "Commands"
        if not commands_dir.is_dir():
            return []
        found: list[str] = []
        for entry in sorted(commands_dir.iterdir()):
            if entry.is_file() and entry.name.endswith("Command.cs"):
                found.append(entry.stem)
            elif entry.is_dir() and entry.name != "Contracts":
                found.extend(
                    f"{entry.name}/{f.stem}"
                    for f in sorted(entry.glob("*Command.cs"))
                )
        return found
