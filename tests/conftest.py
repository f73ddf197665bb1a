"""Shared pytest fixtures for the netscaffold test suite.

Provides reusable fixtures for:
- Service configuration rooted in a temporary directory
- The real template renderer
- A fake ``dotnet`` CLI that lays out projects on disk without the SDK
- Sample entity definitions and scaffold requests
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from netscaffold.config import NetScaffoldConfig
from netscaffold.models import EntityDefinition, ScaffoldRequest
from netscaffold.scaffolder.templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Configuration & renderer
# ---------------------------------------------------------------------------


@pytest.fixture
def config(tmp_path: Path) -> NetScaffoldConfig:
    """Configuration whose working directory lives under ``tmp_path``."""
    return NetScaffoldConfig(work_dir=tmp_path / "work", cleanup_delay=60)


@pytest.fixture
def renderer() -> TemplateRenderer:
    """A fresh renderer over the packaged templates (own cache per test)."""
    return TemplateRenderer()


# ---------------------------------------------------------------------------
# Fake dotnet CLI
# ---------------------------------------------------------------------------

TEMPLATE_LIST_OUTPUT = """\
These templates matched your input:

Template Name                 Short Name     Language    Tags
----------------------------  -------------  ----------  ----------------
ASP.NET Core Web API          webapi         [C#],F#     Web/WebAPI
Class Library                 classlib       [C#],F#,VB  Common/Library
Console App                   console        [C#],F#,VB  Common/Console
Solution File                 sln,solution               Solution
"""

INFO_OUTPUT = """\
.NET SDK:
 Version:           8.0.100
 Commit:            57efcf1350

Runtime Environment:
 OS Name:     ubuntu
 Base Path:   /usr/share/dotnet/sdk/8.0.100/
"""


def _arg_after(args: list[str], flag: str) -> str | None:
    if flag in args:
        index = args.index(flag)
        if index + 1 < len(args):
            return args[index + 1]
    return None


class FakeDotNet:
    """Imitates the ``dotnet`` commands the service runs.

    ``dotnet new`` creates the project folder with a ``.csproj`` (plus
    ``Class1.cs`` for class libraries and ``Program.cs`` for web APIs) so
    the generators have something to work on.
    """

    def __init__(self, version: str | None = "8.0.100") -> None:
        self.version = version
        self.calls: list[list[str]] = []
        self.fail_on: str | None = None

    async def __call__(self, cmd: list[str], cwd: Any = None, timeout: int = 120, **kwargs: Any):
        self.calls.append(list(cmd))
        args = list(cmd[1:])
        if self.version is None:
            raise FileNotFoundError(f"No such file or directory: '{cmd[0]}'")
        if self.fail_on and self.fail_on in args:
            return 1, "", f"simulated failure for {self.fail_on}"

        if args == ["--version"]:
            return 0, self.version, ""
        if args == ["--list-sdks"]:
            return 0, f"{self.version} [/usr/share/dotnet/sdk]", ""
        if args == ["--list-runtimes"]:
            return 0, "Microsoft.NETCore.App 8.0.0 [/usr/share/dotnet/shared/Microsoft.NETCore.App]", ""
        if args == ["--info"]:
            return 0, INFO_OUTPUT, ""
        if args[:2] == ["new", "list"]:
            return 0, TEMPLATE_LIST_OUTPUT, ""
        if args[:1] == ["new"]:
            return self._new(args, Path(cwd))
        return 0, "", ""

    def _new(self, args: list[str], cwd: Path) -> tuple[int, str, str]:
        template = args[1]
        name = _arg_after(args, "--name")
        if template == "sln":
            cwd.mkdir(parents=True, exist_ok=True)
            (cwd / f"{name}.sln").write_text("Microsoft Visual Studio Solution File\n", encoding="utf-8")
            return 0, "The template \"Solution File\" was created successfully.", ""

        project = cwd / name
        project.mkdir(parents=True, exist_ok=True)
        (project / f"{name}.csproj").write_text("<Project Sdk=\"Microsoft.NET.Sdk\" />\n", encoding="utf-8")
        if template == "classlib":
            (project / "Class1.cs").write_text("public class Class1 {}\n", encoding="utf-8")
        if template == "webapi":
            (project / "Program.cs").write_text("var app = WebApplication.Create();\n", encoding="utf-8")
        return 0, f"The template \"{template}\" was created successfully.", ""


@pytest.fixture
def fake_dotnet():
    """Patch the CLI's ``run_command`` with a :class:`FakeDotNet`.

    Yields the fake so tests can inspect ``calls`` or set ``fail_on``.
    """
    fake = FakeDotNet()
    with patch("netscaffold.scaffolder.dotnet.run_command", new=fake):
        yield fake


@pytest.fixture
def missing_dotnet():
    """Patch ``run_command`` so every ``dotnet`` call fails to start."""
    fake = FakeDotNet(version=None)
    with patch("netscaffold.scaffolder.dotnet.run_command", new=fake):
        yield fake


# ---------------------------------------------------------------------------
# Sample definitions
# ---------------------------------------------------------------------------


@pytest.fixture
def product_entity() -> EntityDefinition:
    return EntityDefinition.model_validate(
        {
            "name": "Product",
            "properties": [
                {"name": "Name", "type": "string", "isRequired": True},
                {"name": "Price", "type": "decimal", "isRequired": True},
                {"name": "Description", "type": "string"},
                {"name": "Tags", "type": "string", "isCollection": "List"},
            ],
        }
    )


@pytest.fixture
def customer_entity() -> EntityDefinition:
    return EntityDefinition.model_validate(
        {
            "name": "Customer",
            "properties": [
                {"name": "Email", "type": "string", "isRequired": True},
                {"name": "BirthDate", "type": "datetime"},
            ],
        }
    )


@pytest.fixture
def scaffold_payload() -> dict[str, Any]:
    """Raw JSON body of a scaffold request, camelCase as clients send it."""
    return {
        "projectOptions": {"name": "Shop", "framework": "net8.0"},
        "entities": [
            {
                "name": "Product",
                "properties": [
                    {"name": "Name", "type": "string", "isRequired": True},
                    {"name": "Price", "type": "decimal", "isRequired": True},
                ],
            },
            {
                "name": "Customer",
                "properties": [{"name": "Email", "type": "string", "isRequired": True}],
            },
        ],
    }


@pytest.fixture
def scaffold_request(scaffold_payload: dict[str, Any]) -> ScaffoldRequest:
    return ScaffoldRequest.model_validate(scaffold_payload)


# ---------------------------------------------------------------------------
# Project layouts
# ---------------------------------------------------------------------------


@pytest.fixture
def layered_project(tmp_path: Path) -> Path:
    """Empty layer folders as ``dotnet new`` leaves them for a layered solution."""
    root = tmp_path / "Shop"
    for layer in ("API", "Domain", "Application", "Infrastructure", "IoC"):
        (root / layer).mkdir(parents=True)
    return root
