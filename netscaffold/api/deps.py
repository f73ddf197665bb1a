"""Request dependencies resolving the objects created by the app factory."""

from __future__ import annotations

from fastapi import Request

from ..config import NetScaffoldConfig
from ..scaffolder.dotnet import DotNetCli
from ..scaffolder.generator import ProjectScaffolder


def get_config(request: Request) -> NetScaffoldConfig:
    return request.app.state.config


def get_scaffolder(request: Request) -> ProjectScaffolder:
    return request.app.state.scaffolder


def get_cli(request: Request) -> DotNetCli:
    return request.app.state.scaffolder.cli
