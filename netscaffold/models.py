"""Request and result models.

Everything here is request-scoped: definitions arrive as JSON, are validated
by Pydantic and flow through the generators; results flow back out as JSON.
JSON keys are camelCase on the wire (``isRequired``, ``projectOptions``),
snake_case in Python. Both spellings are accepted on input.
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .utils import is_identifier


CollectionKind = Literal["List", "ICollection", "IEnumerable", "HashSet", "Array"]
TemplateKind = Literal[
    "console", "web", "webapi", "mvc", "blazor", "classlib", "wpf", "winforms"
]
Language = Literal["C#", "F#", "VB"]

PROJECT_NAME_PATTERN = r"^[A-Za-z][A-Za-z0-9_]*$"
FRAMEWORK_PATTERN = r"^net(coreapp|standard)?\d+\.\d+$"

# Generic/array/nullable type expressions, no statement terminators.
_TYPE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.<>,\[\]? ]*$")
NAMESPACE_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$"
_NAMESPACE_RE = re.compile(NAMESPACE_PATTERN)


class CamelModel(BaseModel):
    """Base model serialising to camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Return a JSON-ready dict using the camelCase wire names."""
        return self.model_dump(by_alias=True, mode="json")


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


class EntityProperty(CamelModel):
    """A single property of an entity."""

    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(..., min_length=1, max_length=100, description="Primitive type tag")
    is_required: bool = False
    is_collection: CollectionKind | None = None
    is_navigation_property: bool = False

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        value = value.strip()
        if not is_identifier(value):
            raise ValueError(f"property name '{value}' is not a valid identifier")
        return value

    @field_validator("type")
    @classmethod
    def _check_type(cls, value: str) -> str:
        value = value.strip()
        if not _TYPE_RE.match(value):
            raise ValueError(f"property type '{value}' is not a valid type expression")
        return value

    @field_validator("is_collection", mode="before")
    @classmethod
    def _coerce_collection(cls, value: object) -> object:
        # Older clients send a plain boolean.
        if value is True:
            return "List"
        if value is False or value == "":
            return None
        return value


class EntityDefinition(CamelModel):
    """An entity to generate, with its ordered properties."""

    name: str = Field(..., min_length=1, max_length=100)
    inherits_from_base: bool = True
    namespace: str | None = None
    generate_commands: bool = True
    properties: list[EntityProperty] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        value = value.strip()
        if not is_identifier(value):
            raise ValueError(f"entity name '{value}' is not a valid identifier")
        return value

    @field_validator("namespace")
    @classmethod
    def _check_namespace(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        value = value.strip()
        if not _NAMESPACE_RE.match(value):
            raise ValueError(f"namespace '{value}' is not a valid dotted name")
        return value

    @model_validator(mode="after")
    def _unique_properties(self) -> "EntityDefinition":
        seen: set[str] = set()
        for prop in self.properties:
            key = prop.name.lower()
            if key in seen:
                raise ValueError(
                    f"entity '{self.name}' declares property '{prop.name}' more than once"
                )
            seen.add(key)
        return self


class ProjectOptions(CamelModel):
    """Options of the base project created through the ``dotnet`` CLI."""

    name: str = Field(..., min_length=1, max_length=50, pattern=PROJECT_NAME_PATTERN)
    template: TemplateKind = "webapi"
    framework: str | None = Field(default=None, pattern=FRAMEWORK_PATTERN)
    language: Language = "C#"
    output_path: str | None = None
    force: bool = False
    use_clean_architecture: bool = True

    @property
    def is_clean_architecture(self) -> bool:
        """Whether this project gets the layered API/Domain/... solution."""
        return self.template == "webapi" and self.use_clean_architecture


class ScaffoldRequest(CamelModel):
    """Body of the scaffold endpoints."""

    project_options: ProjectOptions
    entities: list[EntityDefinition] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _unique_entities(self) -> "ScaffoldRequest":
        seen: set[str] = set()
        for entity in self.entities:
            key = entity.name.lower()
            if key in seen:
                raise ValueError(f"entity '{entity.name}' is defined more than once")
            seen.add(key)
        return self


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class GenerationResult(CamelModel):
    """Outcome of one generation operation."""

    success: bool
    message: str
    files: list[str] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def ok(cls, message: str, files: list[str] | None = None) -> "GenerationResult":
        return cls(success=True, message=message, files=files or [])

    @classmethod
    def fail(cls, message: str, error: str | None = None) -> "GenerationResult":
        return cls(success=False, message=message, error=error)


class BatchResult(GenerationResult):
    """Outcome of an operation applied to several entities."""

    added: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class ProjectCreationResult(CamelModel):
    success: bool
    message: str
    project_path: str | None = None
    output: str | None = None
    error: str | None = None


class EntityScaffoldResult(CamelModel):
    """Per-entity slice of a scaffold run."""

    name: str
    success: bool
    entity: GenerationResult | None = None
    commands: GenerationResult | None = None
    handler: GenerationResult | None = None
    repository: GenerationResult | None = None
    error: str | None = None


class ScaffoldSummary(CamelModel):
    project_created: bool = False
    entities_generated: int = 0
    commands_generated: int = 0
    handlers_generated: int = 0
    repositories_generated: int = 0
    controllers_generated: int = 0
    total_files: int = 0
    failed_steps: int = 0


class ScaffoldResult(CamelModel):
    """Aggregate outcome of a scaffold run; each sub-resource reports on its own."""

    project: ProjectCreationResult
    base_repositories: GenerationResult | None = None
    helpers: GenerationResult | None = None
    entities: list[EntityScaffoldResult] = Field(default_factory=list)
    infrastructure: GenerationResult | None = None
    db_context: BatchResult | None = None
    application: GenerationResult | None = None
    api: GenerationResult | None = None
    ioc: BatchResult | None = None
    summary: ScaffoldSummary = Field(default_factory=ScaffoldSummary)

    @computed_field
    @property
    def success(self) -> bool:
        return self.project.success


# -- Validation report ------------------------------------------------------


class ProjectValidation(CamelModel):
    valid: bool
    name: str
    template: str
    framework: str
    output_path: str
    conflicts: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class TemplateValidation(CamelModel):
    valid: bool
    tested: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)


class EntityValidation(CamelModel):
    name: str
    valid: bool
    property_count: int
    required_count: int = 0
    collection_count: int = 0
    navigation_count: int = 0
    will_generate_commands: bool = True
    estimated_files: int
    warnings: list[str] = Field(default_factory=list)


class ValidationSummary(CamelModel):
    total_entities: int
    total_commands: int
    total_properties: int
    estimated_files: int
    estimated_size: str


class ScaffoldValidation(CamelModel):
    project: ProjectValidation
    templates: TemplateValidation
    entities: list[EntityValidation]
    summary: ValidationSummary
    ready_to_scaffold: bool


# -- .NET SDK ---------------------------------------------------------------


class DotNetInfo(CamelModel):
    is_installed: bool
    version: str | None = None
    platform: str
    architecture: str
    sdk_versions: list[str] = Field(default_factory=list)
    runtime_versions: list[str] = Field(default_factory=list)
    error: str | None = None


class DotNetInstallOptions(CamelModel):
    version: str | None = Field(default=None, pattern=r"^\d+\.\d+(\.\d+)?$")
    channel: Literal["LTS", "STS", "Current", "Preview"] = "LTS"
    architecture: Literal["x64", "x86", "arm64"] | None = None
    install_dir: str | None = None


class DotNetInstallResult(CamelModel):
    success: bool
    message: str
    version: str | None = None
    install_path: str | None = None
    error: str | None = None
