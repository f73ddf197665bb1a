"""Tests for the Infrastructure, Application, API and helper generators.

Covers:
- Infrastructure layer files, per-entity repositories, DbSet registration
- DbSet region creation on a hand-written DbContext
- Application layer files
- API configurations, Program.cs wiring and controllers
- The Mapper helper
"""

from __future__ import annotations

from pathlib import Path

import pytest

from netscaffold.scaffolder.api_gen import ApiGenerator, swagger_context
from netscaffold.scaffolder.application_gen import ApplicationGenerator
from netscaffold.scaffolder.helper_gen import HelperGenerator
from netscaffold.scaffolder.infrastructure_gen import (
    InfrastructureGenerator,
    add_dbsets,
    add_usings,
    dbset_line,
)
from netscaffold.scaffolder.templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


HAND_WRITTEN_CONTEXT = """\
public class ApplicationDbContext : DbContext
{
    public ApplicationDbContext(DbContextOptions<ApplicationDbContext> options) : base(options)
    {
    }
}
"""


class TestAddDbSets:
    def test_creates_region_when_missing(self):
        out, (added, skipped) = add_dbsets(HAND_WRITTEN_CONTEXT, ["Product", "Customer"])

        assert added == ["Product", "Customer"]
        assert skipped == []
        assert "        #region DbSet\n" in out
        product = out.index(dbset_line("Product"))
        customer = out.index(dbset_line("Customer"))
        assert product < customer < out.index("#endregion")

    def test_idempotent(self):
        once, _ = add_dbsets(HAND_WRITTEN_CONTEXT, ["Product"])
        twice, (added, skipped) = add_dbsets(once, ["Product", "Order"])

        assert added == ["Order"]
        assert skipped == ["Product"]
        assert twice.count(dbset_line("Product")) == 1
        assert twice.count("#region DbSet") == 1

    def test_adds_entity_namespaces(self):
        out, _ = add_dbsets(HAND_WRITTEN_CONTEXT, ["Order", "Invoice"], ["Sales.Models", "Sales.Models"])

        assert out.startswith("using Sales.Models;\n")
        assert out.count("using Sales.Models;") == 1

    def test_using_lands_after_first_directive(self):
        content = "using Domain.Entities;\nusing Microsoft.EntityFrameworkCore;\n\nnamespace Infrastructure.Data\n{\n}\n"

        out = add_usings(content, ["Domain.Entities", "Sales.Models"])

        assert out.splitlines()[:3] == [
            "using Domain.Entities;",
            "using Sales.Models;",
            "using Microsoft.EntityFrameworkCore;",
        ]
        assert add_usings(out, ["Sales.Models"]) == out


class TestInfrastructureGenerator:
    @pytest.fixture
    def infra(self, renderer: TemplateRenderer) -> InfrastructureGenerator:
        return InfrastructureGenerator(renderer)

    @pytest.mark.asyncio
    async def test_create_layer(self, infra: InfrastructureGenerator, layered_project: Path):
        result = await infra.create_layer(layered_project, ["Product", "Customer"])

        assert result.success
        assert len(result.files) == 5
        layer = layered_project / "Infrastructure"
        repository = (layer / "Repositories" / "ProductRepository.cs").read_text(encoding="utf-8")
        assert "ProductRepository" in repository
        assert "IProductRepository" in repository
        assert infra.list_files(layered_project) == [
            "Configuration/DatabaseConfig.cs",
            "Data/ApplicationDbContext.cs",
            "Repositories/Contracts/RepositoryBase.cs",
            "Repositories/CustomerRepository.cs",
            "Repositories/ProductRepository.cs",
        ]

    @pytest.mark.asyncio
    async def test_create_layer_keeps_existing_files(
        self, infra: InfrastructureGenerator, layered_project: Path
    ):
        await infra.create_layer(layered_project, ["Product"])
        config = layered_project / "Infrastructure" / "Configuration" / "DatabaseConfig.cs"
        config.write_text("// customised\n", encoding="utf-8")

        result = await infra.create_layer(layered_project, ["Product"])

        assert result.success and result.files == []
        assert config.read_text(encoding="utf-8") == "// customised\n"

    @pytest.mark.asyncio
    async def test_missing_layer(self, infra: InfrastructureGenerator, tmp_path: Path):
        result = await infra.create_layer(tmp_path, ["Product"])
        assert not result.success
        assert result.error == "Infrastructure folder missing"
        assert not infra.has_layer(tmp_path)

    @pytest.mark.asyncio
    async def test_db_context_registration(self, infra: InfrastructureGenerator, layered_project: Path):
        await infra.create_layer(layered_project, [])

        batch = await infra.add_entities_to_db_context(layered_project, ["Product", "Customer"])
        single = await infra.add_entity_to_db_context(layered_project, "Product")

        assert batch.success and batch.added == ["Product", "Customer"]
        assert single.success and "already registered" in single.message
        text = (layered_project / "Infrastructure" / "Data" / "ApplicationDbContext.cs").read_text(
            encoding="utf-8"
        )
        assert f"        {dbset_line('Product')}\n" in text
        assert text.count(dbset_line("Customer")) == 1

    @pytest.mark.asyncio
    async def test_custom_entity_namespace(self, infra: InfrastructureGenerator, layered_project: Path):
        namespaces = {"Order": "Sales.Models"}
        await infra.create_layer(layered_project, ["Order"], namespaces)

        batch = await infra.add_entities_to_db_context(layered_project, ["Order", "Product"], namespaces)

        layer = layered_project / "Infrastructure"
        repository = (layer / "Repositories" / "OrderRepository.cs").read_text(encoding="utf-8")
        context = (layer / "Data" / "ApplicationDbContext.cs").read_text(encoding="utf-8")
        assert batch.success and batch.added == ["Order", "Product"]
        assert repository.startswith("using Sales.Models;\n")
        assert "using Domain.Entities;" not in repository
        assert context.count("using Sales.Models;") == 1
        assert context.count("using Domain.Entities;") == 1

    @pytest.mark.asyncio
    async def test_db_context_missing(self, infra: InfrastructureGenerator, layered_project: Path):
        batch = await infra.add_entities_to_db_context(layered_project, ["Product"])
        assert not batch.success
        assert batch.failed == ["Product"]
        assert batch.error == "DbContext file missing"

    @pytest.mark.asyncio
    async def test_db_context_invalid_names(self, infra: InfrastructureGenerator, layered_project: Path):
        batch = await infra.add_entities_to_db_context(layered_project, ["Product", "Not Valid"])
        assert not batch.success
        assert batch.failed == ["Not Valid"]


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


class TestApplicationGenerator:
    @pytest.mark.asyncio
    async def test_create_layer(self, renderer: TemplateRenderer, layered_project: Path):
        app = ApplicationGenerator(renderer)

        first = await app.create_layer(layered_project)
        second = await app.create_layer(layered_project)

        assert first.success and len(first.files) == 5
        assert second.success and second.files == []
        assert "Services/HttpClientService.cs" in app.list_files(layered_project)
        assert app.has_layer(layered_project)

    @pytest.mark.asyncio
    async def test_missing_layer(self, renderer: TemplateRenderer, tmp_path: Path):
        result = await ApplicationGenerator(renderer).create_layer(tmp_path)
        assert result.error == "Application folder missing"


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


class TestApiGenerator:
    @pytest.fixture
    def api(self, renderer: TemplateRenderer) -> ApiGenerator:
        return ApiGenerator(renderer)

    def test_swagger_context(self):
        assert swagger_context("Shop") == {
            "title": "Shop API",
            "api_version": "v1",
            "description": "Shop Web API",
        }

    @pytest.mark.asyncio
    async def test_configurations_replace_default_program(self, api: ApiGenerator, layered_project: Path):
        program = layered_project / "API" / "Program.cs"
        program.write_text("var app = WebApplication.Create();\n", encoding="utf-8")

        result = await api.create_configurations(layered_project, "Shop")

        assert result.success
        assert len(result.files) == 6
        assert "AddDependencyInjectionConfiguration" in program.read_text(encoding="utf-8")
        assert (layered_project / "API" / "Middleware" / "ErrorHandlingMiddleware.cs").is_file()

    @pytest.mark.asyncio
    async def test_wired_program_is_kept(self, api: ApiGenerator, layered_project: Path):
        await api.create_configurations(layered_project, "Shop")
        program = layered_project / "API" / "Program.cs"
        program.write_text(program.read_text(encoding="utf-8") + "// mine\n", encoding="utf-8")

        result = await api.create_configurations(layered_project, "Shop")

        assert result.files == []
        assert program.read_text(encoding="utf-8").endswith("// mine\n")

    @pytest.mark.asyncio
    async def test_controller(self, api: ApiGenerator, layered_project: Path):
        first = await api.create_entity_controller(layered_project, "Product")
        second = await api.create_entity_controller(layered_project, "Customer")

        controllers = layered_project / "API" / "Controllers"
        assert first.files == [
            str(controllers / "Contract" / "BaseController.cs"),
            str(controllers / "ProductController.cs"),
        ]
        assert second.files == [str(controllers / "CustomerController.cs")]
        code = (controllers / "ProductController.cs").read_text(encoding="utf-8")
        assert '[Route("api/product")]' in code
        assert "public class ProductController : BaseController" in code

    @pytest.mark.asyncio
    async def test_controller_errors(self, api: ApiGenerator, layered_project: Path, tmp_path: Path):
        invalid = await api.create_entity_controller(layered_project, "Bad Name")
        missing = await api.create_entity_controller(tmp_path / "Nowhere", "Product")
        assert not invalid.success
        assert missing.error == "API folder missing"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelperGenerator:
    @pytest.mark.asyncio
    async def test_mapper_always_regenerated(self, renderer: TemplateRenderer, layered_project: Path):
        domain = layered_project / "Domain"
        mapper = domain / "Helpers" / "Mapper.cs"
        mapper.parent.mkdir(parents=True)
        mapper.write_text("// old\n", encoding="utf-8")

        result = await HelperGenerator(renderer).generate(domain)

        assert result.success and result.files == [str(mapper)]
        assert "class Mapper" in mapper.read_text(encoding="utf-8")
