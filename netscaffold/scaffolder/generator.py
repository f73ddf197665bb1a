"""Scaffold orchestrator.

Drives a full scaffold run for one request:

1. PROJECT      -- ``dotnet new`` the solution and its Domain base files.
2. DOMAIN       -- repository contracts, helpers, then per entity the entity
                   class, Create/Update commands, handler and repository.
3. INFRASTRUCTURE -- DbContext, repositories and the ``DbSet`` registrations.
4. APPLICATION  -- dictionary, DTOs and the HTTP client service.
5. API          -- configurations, middlewares, ``Program.cs``, controllers.
6. IOC          -- bootstrapper and the per-entity DI registrations.

Only a failed project creation stops the run. Every later step reports into
its own slot of :class:`ScaffoldResult`, and a failing entity does not stop
the others.
"""

from __future__ import annotations

import os
import re
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from ..config import NetScaffoldConfig
from ..models import (
    EntityDefinition,
    EntityScaffoldResult,
    EntityValidation,
    GenerationResult,
    ProjectCreationResult,
    ProjectOptions,
    ProjectValidation,
    ScaffoldRequest,
    ScaffoldResult,
    ScaffoldSummary,
    ScaffoldValidation,
    TemplateValidation,
    ValidationSummary,
)
from ..utils import (
    console,
    format_duration,
    print_error,
    print_header,
    print_step,
    print_success,
    print_summary_table,
    print_warning,
)
from . import (
    api_gen,
    application_gen,
    command_gen,
    entity_gen,
    handler_gen,
    helper_gen,
    infrastructure_gen,
    ioc_gen,
    repository_gen,
)
from .api_gen import ApiGenerator
from .application_gen import ApplicationGenerator
from .command_gen import CommandGenerator
from .csharp import DEFAULT_ENTITY_NAMESPACE
from .dotnet import DotNetCli
from .entity_gen import EntityGenerator
from .handler_gen import HandlerGenerator
from .helper_gen import HelperGenerator
from .infrastructure_gen import InfrastructureGenerator
from .ioc_gen import IoCGenerator
from .packager import create_zip_archive
from .repository_gen import RepositoryGenerator
from .templates import TemplateRenderer, get_renderer


# Every template a clean-architecture scaffold renders.
REQUIRED_TEMPLATES: tuple[str, ...] = (
    entity_gen.ENTITY_TEMPLATE,
    *entity_gen.BASE_FILES,
    *command_gen.CONTRACT_FILES,
    command_gen.CREATE_TEMPLATE,
    command_gen.UPDATE_TEMPLATE,
    handler_gen.HANDLER_TEMPLATE,
    handler_gen.IHANDLER_TEMPLATE,
    repository_gen.ENTITY_TEMPLATE,
    *repository_gen.BASE_FILES,
    helper_gen.MAPPER_TEMPLATE,
    *infrastructure_gen.LAYER_FILES,
    infrastructure_gen.REPOSITORY_TEMPLATE,
    *application_gen.LAYER_FILES,
    *api_gen.CONFIGURATION_FILES,
    api_gen.PROGRAM_TEMPLATE,
    api_gen.BASE_CONTROLLER_TEMPLATE,
    api_gen.CONTROLLER_TEMPLATE,
    ioc_gen.BOOTSTRAPPER_TEMPLATE,
)

# Files written once per project regardless of the entities.
BASE_FILE_ESTIMATE = 1 + 10
_PASCAL_CASE_RE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")


@dataclass
class ArchiveResult:
    """A scaffold run packaged as a zip inside its own workspace."""

    result: ScaffoldResult
    workspace: Path
    zip_path: Path | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.result.success and self.zip_path is not None


def estimate_entity_files(definition: EntityDefinition) -> int:
    """Files one entity adds: the entity, plus commands, handler, repositories and controller."""
    return 7 if definition.generate_commands else 1


def success_message(project_name: str, summary: ScaffoldSummary) -> str:
    """One-line human summary of a finished run."""
    parts = [f"Project '{project_name}' scaffolded successfully"]
    counts = [
        (summary.entities_generated, "entities"),
        (summary.commands_generated, "commands"),
        (summary.handlers_generated, "handlers"),
        (summary.repositories_generated, "repositories"),
        (summary.controllers_generated, "controllers"),
    ]
    generated = [f"{count} {label}" for count, label in counts if count]
    if generated:
        parts.append(f"with {', '.join(generated)}")
    message = " ".join(parts)
    if summary.failed_steps:
        message += f" ({summary.failed_steps} steps failed)"
    return message


def _nearest_existing(path: Path) -> Path:
    current = path
    while not current.exists() and current != current.parent:
        current = current.parent
    return current


class ProjectScaffolder:
    """Builds a complete project from a :class:`ScaffoldRequest`.

    Attributes:
        config: Service configuration (work directories, .NET settings).
        cli: Wrapper around the ``dotnet`` executable.
        renderer: Shared template renderer.
    """

    def __init__(
        self,
        config: NetScaffoldConfig,
        cli: DotNetCli | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.cli = cli or DotNetCli(config)
        self.renderer = renderer or get_renderer()

        self.entities = EntityGenerator(self.renderer)
        self.commands = CommandGenerator(self.renderer)
        self.handlers = HandlerGenerator(self.renderer)
        self.repositories = RepositoryGenerator(self.renderer)
        self.helpers = HelperGenerator(self.renderer)
        self.infrastructure = InfrastructureGenerator(self.renderer)
        self.application = ApplicationGenerator(self.renderer)
        self.api = ApiGenerator(self.renderer)
        self.ioc = IoCGenerator(self.renderer)

    # ------------------------------------------------------------------
    # Project creation
    # ------------------------------------------------------------------

    async def create_project(self, options: ProjectOptions) -> ProjectCreationResult:
        """Create the base project and, for layered solutions, the Domain base files."""
        created = await self.cli.create_project(options)
        if not created.success or not options.is_clean_architecture:
            return created

        domain = Path(created.project_path) / "Domain"
        for outcome in (
            await self.entities.generate_base_files(domain),
            await self.commands.generate_contracts(domain),
        ):
            if not outcome.success:
                print_warning(f"{outcome.message}: {outcome.error}")
        return created

    # ------------------------------------------------------------------
    # Scaffold
    # ------------------------------------------------------------------

    async def scaffold(
        self, request: ScaffoldRequest, output_dir: str | Path | None = None
    ) -> ScaffoldResult:
        """Run every generation step for *request*.

        Args:
            request: Project options and entity definitions.
            output_dir: Overrides ``project_options.output_path`` when given.

        Returns:
            The aggregated result. ``success`` mirrors project creation.
        """
        start = time.monotonic()
        options = request.project_options
        if output_dir is not None:
            options = options.model_copy(update={"output_path": str(output_dir)})

        print_header(f"Scaffolding {options.name}")

        print_step(1, "Creating project")
        project = await self.create_project(options)
        if not project.success:
            print_error(project.message)
            return ScaffoldResult(project=project, summary=ScaffoldSummary(failed_steps=1))
        print_success(project.message)

        result = ScaffoldResult(project=project)
        project_path = Path(project.project_path)
        if options.is_clean_architecture:
            await self._scaffold_layers(result, project_path, options, request.entities)
        else:
            print_warning(
                f"Template '{options.template}' is not a layered solution; skipping code generation"
            )

        result.summary = self._summarise(result)
        print_summary_table(
            {
                "Project": str(project_path),
                "Entities": result.summary.entities_generated,
                "Commands": result.summary.commands_generated,
                "Handlers": result.summary.handlers_generated,
                "Repositories": result.summary.repositories_generated,
                "Controllers": result.summary.controllers_generated,
                "Files written": result.summary.total_files,
                "Failed steps": result.summary.failed_steps,
                "Duration": format_duration(time.monotonic() - start),
            },
            title="Scaffold Summary",
        )
        return result

    async def _scaffold_layers(
        self,
        result: ScaffoldResult,
        project_path: Path,
        options: ProjectOptions,
        definitions: list[EntityDefinition],
    ) -> None:
        domain = project_path / "Domain"

        print_step(2, "Generating domain")
        result.base_repositories = await self.repositories.generate_base(domain)
        result.helpers = await self.helpers.generate(domain)
        for definition in definitions:
            entity_result = await self._scaffold_entity(project_path, definition)
            result.entities.append(entity_result)
            if entity_result.success:
                console.print(f"  [green]+[/green] {definition.name}")
            else:
                console.print(f"  [red]x[/red] {definition.name}: {entity_result.error}")

        generated = [entity.name for entity in result.entities if entity.success]
        # Repositories, controllers and registrations need the handler and repository contract.
        with_handlers = [
            d.name for d in definitions if d.name in generated and d.generate_commands
        ]
        namespaces = {d.name: d.namespace or DEFAULT_ENTITY_NAMESPACE for d in definitions}

        print_step(3, "Generating infrastructure")
        result.infrastructure = await self.infrastructure.create_layer(
            project_path, with_handlers, namespaces
        )
        if generated:
            result.db_context = await self.infrastructure.add_entities_to_db_context(
                project_path, generated, namespaces
            )

        print_step(4, "Generating application")
        result.application = await self.application.create_layer(project_path)

        print_step(5, "Generating API")
        result.api = await self.api.create_configurations(project_path, options.name)
        controllers = 0
        for name in with_handlers:
            controller = await self.api.create_entity_controller(
                project_path, name, namespaces[name]
            )
            if controller.success:
                controllers += 1
                if result.api.success:
                    result.api.files.extend(controller.files)
            else:
                print_warning(f"{controller.message}: {controller.error}")
        result.summary.controllers_generated = controllers

        print_step(6, "Wiring dependency injection")
        bootstrapper = await self.ioc.create_bootstrapper(project_path)
        if not bootstrapper.success:
            print_warning(f"{bootstrapper.message}: {bootstrapper.error}")
        if with_handlers:
            result.ioc = await self.ioc.add_many(project_path, with_handlers)
            if bootstrapper.files:
                result.ioc.files = sorted({*result.ioc.files, *bootstrapper.files})

    async def _scaffold_entity(
        self, project_path: Path, definition: EntityDefinition
    ) -> EntityScaffoldResult:
        outcome = EntityScaffoldResult(name=definition.name, success=False)
        try:
            outcome.entity = await self.entities.generate(project_path, definition)
            if not outcome.entity.success:
                outcome.error = outcome.entity.error or outcome.entity.message
                return outcome

            if definition.generate_commands:
                outcome.commands = await self.commands.generate(project_path, definition)
                outcome.handler = await self.handlers.generate(project_path, definition)
                outcome.repository = await self.repositories.generate_entity(
                    definition.name,
                    project_path / "Domain",
                    definition.namespace or DEFAULT_ENTITY_NAMESPACE,
                )
            failures = [
                step
                for step in (outcome.commands, outcome.handler, outcome.repository)
                if step is not None and not step.success
            ]
            outcome.success = not failures
            if failures:
                outcome.error = "; ".join(f.error or f.message for f in failures)
        except Exception as exc:
            console.print(f"[red]Entity {definition.name} failed: {exc}[/red]")
            outcome.error = str(exc)
        return outcome

    @staticmethod
    def _summarise(result: ScaffoldResult) -> ScaffoldSummary:
        summary = ScaffoldSummary(
            project_created=result.project.success,
            controllers_generated=result.summary.controllers_generated,
        )
        shared: list[GenerationResult] = [
            step
            for step in (
                result.base_repositories,
                result.helpers,
                result.infrastructure,
                result.db_context,
                result.application,
                result.api,
                result.ioc,
            )
            if step is not None
        ]
        steps = list(shared)
        for entity in result.entities:
            if entity.entity is not None and entity.entity.success:
                summary.entities_generated += 1
            if entity.commands is not None and entity.commands.success:
                summary.commands_generated += 2
            if entity.handler is not None and entity.handler.success:
                summary.handlers_generated += 1
            if entity.repository is not None and entity.repository.success:
                summary.repositories_generated += 1
            if not entity.success:
                summary.failed_steps += 1
            steps.extend(
                s
                for s in (entity.entity, entity.commands, entity.handler, entity.repository)
                if s is not None and s.success
            )
        summary.failed_steps += sum(1 for step in shared if not step.success)
        summary.total_files = len({path for step in steps for path in step.files})
        return summary

    # ------------------------------------------------------------------
    # Archive
    # ------------------------------------------------------------------

    async def scaffold_archive(self, request: ScaffoldRequest) -> ArchiveResult:
        """Scaffold into a fresh workspace and zip the project.

        The workspace is ``<archives_dir>/<random>/``; the project lands in
        ``<workspace>/<name>`` and the archive in ``<workspace>/<name>.zip``.
        The caller owns the workspace and is expected to schedule its removal.
        """
        workspace = self.config.archives_dir / uuid.uuid4().hex
        workspace.mkdir(parents=True, exist_ok=True)
        result = await self.scaffold(request, output_dir=workspace)
        archive = ArchiveResult(result=result, workspace=workspace)
        if not result.success:
            return archive

        name = request.project_options.name
        try:
            archive.zip_path = await create_zip_archive(
                result.project.project_path, workspace / f"{name}.zip"
            )
        except OSError as exc:
            print_error(f"Archiving {name} failed: {exc}")
            archive.error = str(exc)
            return archive
        console.print(f"[dim]Archive written to {archive.zip_path}[/dim]")
        return archive

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    async def validate(self, request: ScaffoldRequest) -> ScaffoldValidation:
        """Dry-run checks of *request*; nothing is written."""
        options = request.project_options
        project = await self._validate_project(options)
        templates = self._validate_templates()
        entities = [self._validate_entity(d) for d in request.entities]

        total_properties = sum(len(d.properties) for d in request.entities)
        estimated_files = BASE_FILE_ESTIMATE + sum(e.estimated_files for e in entities)
        summary = ValidationSummary(
            total_entities=len(entities),
            total_commands=sum(2 for d in request.entities if d.generate_commands),
            total_properties=total_properties,
            estimated_files=estimated_files,
            estimated_size=f"~{50 + 2 * total_properties}KB",
        )
        return ScaffoldValidation(
            project=project,
            templates=templates,
            entities=entities,
            summary=summary,
            ready_to_scaffold=project.valid
            and templates.valid
            and all(e.valid for e in entities),
        )

    async def _validate_project(self, options: ProjectOptions) -> ProjectValidation:
        output_dir = (
            Path(options.output_path) if options.output_path else self.cli.default_output_dir()
        )
        target = output_dir / options.name
        check = ProjectValidation(
            valid=True,
            name=options.name,
            template=options.template,
            framework=options.framework or self.config.dotnet.default_framework,
            output_path=str(target),
        )

        available = await self.cli.list_templates()
        if options.template not in available:
            check.valid = False
            check.warnings.append(
                f"Template '{options.template}' is not installed "
                f"(available: {', '.join(available)})"
            )

        if not os.access(_nearest_existing(output_dir), os.W_OK):
            check.valid = False
            check.warnings.append(f"Output directory '{output_dir}' is not writable")

        if target.exists():
            check.conflicts.append(f"Directory '{target}' already exists")
            if not options.force:
                check.warnings.append("Use force: true to overwrite")
        return check

    def _validate_templates(self) -> TemplateValidation:
        missing = [t for t in REQUIRED_TEMPLATES if not self.renderer.exists(t)]
        return TemplateValidation(
            valid=not missing, tested=list(REQUIRED_TEMPLATES), missing=missing
        )

    @staticmethod
    def _validate_entity(definition: EntityDefinition) -> EntityValidation:
        props = definition.properties
        check = EntityValidation(
            name=definition.name,
            valid=True,
            property_count=len(props),
            required_count=sum(1 for p in props if p.is_required),
            collection_count=sum(1 for p in props if p.is_collection),
            navigation_count=sum(1 for p in props if p.is_navigation_property),
            will_generate_commands=definition.generate_commands,
            estimated_files=estimate_entity_files(definition),
        )
        if not _PASCAL_CASE_RE.match(definition.name):
            check.warnings.append(f"Entity name '{definition.name}' should be PascalCase")
        if not props:
            check.warnings.append("Entity has no properties")
        elif definition.generate_commands and not check.required_count:
            check.warnings.append(
                "No required properties; the Create command will not validate any input"
            )
        return check
