"""Tests for the Domain repository contracts.

Covers:
- Generic base contracts (written once)
- Per-entity interfaces, including custom entity namespaces
- Batch generation with partial failures
- exists / list_generated
"""

from __future__ import annotations

from pathlib import Path

import pytest

from netscaffold.scaffolder.repository_gen import RepositoryGenerator
from netscaffold.scaffolder.templates import TemplateRenderer


pytestmark = pytest.mark.unit


@pytest.fixture
def repo_gen(renderer: TemplateRenderer) -> RepositoryGenerator:
    return RepositoryGenerator(renderer)


@pytest.fixture
def domain(layered_project: Path) -> Path:
    return layered_project / "Domain"


# ---------------------------------------------------------------------------
# Base contracts
# ---------------------------------------------------------------------------


class TestBase:
    @pytest.mark.asyncio
    async def test_base_contracts(self, repo_gen: RepositoryGenerator, domain: Path):
        first = await repo_gen.generate_base(domain)
        second = await repo_gen.generate_base(domain)

        assert first.success and len(first.files) == 2
        assert second.success and second.files == []
        assert (domain / "Repositories" / "Contracts" / "IRepositoryBase.cs").is_file()

    @pytest.mark.asyncio
    async def test_base_requires_domain(self, repo_gen: RepositoryGenerator, tmp_path: Path):
        result = await repo_gen.generate_base(tmp_path / "Nope")
        assert not result.success
        assert result.error == "Domain folder missing"


# ---------------------------------------------------------------------------
# Entity interfaces
# ---------------------------------------------------------------------------


class TestEntity:
    @pytest.mark.asyncio
    async def test_entity_interface(self, repo_gen: RepositoryGenerator, domain: Path):
        result = await repo_gen.generate_entity("Product", domain)

        out = domain / "Repositories" / "IProductRepository.cs"
        assert result.success and result.files == [str(out)]
        code = out.read_text(encoding="utf-8")
        assert "using Domain.Entities;" in code
        assert "public interface IProductRepository : IRepositoryBase<ProductEntity>" in code

    @pytest.mark.asyncio
    async def test_custom_namespace(self, repo_gen: RepositoryGenerator, domain: Path):
        await repo_gen.generate_entity("Invoice", domain, "Domain.Billing")
        code = (domain / "Repositories" / "IInvoiceRepository.cs").read_text(encoding="utf-8")
        assert "using Domain.Billing;" in code

    @pytest.mark.asyncio
    async def test_invalid_name(self, repo_gen: RepositoryGenerator, domain: Path):
        result = await repo_gen.generate_entity("Bad Name", domain)
        assert not result.success
        assert not (domain / "Repositories").exists()

    @pytest.mark.asyncio
    async def test_generate_many(self, repo_gen: RepositoryGenerator, domain: Path):
        result = await repo_gen.generate_many(["Product", "9Bad", "Customer"], domain)

        assert not result.success
        assert result.added == ["Product", "Customer"]
        assert result.failed == ["9Bad"]
        assert result.message == "2 repositories generated, 1 failed"
        assert result.error == "Failed: 9Bad"
        assert len(result.files) == 2

    @pytest.mark.asyncio
    async def test_exists_and_list(self, repo_gen: RepositoryGenerator, domain: Path):
        await repo_gen.generate_base(domain)
        await repo_gen.generate_many(["Product", "Customer"], domain)

        assert RepositoryGenerator.exists("Product", domain)
        assert not RepositoryGenerator.exists("Order", domain)
        assert RepositoryGenerator.list_generated(domain) == ["Customer", "Product"]
        assert RepositoryGenerator.list_generated(domain / "Missing") == []
