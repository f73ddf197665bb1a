"""Development routes running a single generator against an existing project.

All paths are paths on the server's filesystem, so these routes are only
mounted when development routes are enabled.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..scaffolder.csharp import DEFAULT_ENTITY_NAMESPACE
from ..scaffolder.generator import ProjectScaffolder
from . import responses
from .deps import get_scaffolder
from .models import (
    CommandRequest,
    DomainRequest,
    EntityRepositoryRequest,
    EntityRequest,
    RepositoryBatchRequest,
)

entity_router = APIRouter(prefix="/api/entity", tags=["entity"])
command_router = APIRouter(prefix="/api/command", tags=["command"])
handler_router = APIRouter(prefix="/api/handler", tags=["handler"])
repository_router = APIRouter(prefix="/api/repository", tags=["repository"])

routers = (entity_router, command_router, handler_router, repository_router)


def _respond(result, created: int = 201):
    if not result.success:
        message = f"{result.message}: {result.error}" if result.error else result.message
        return responses.error(message, 400)
    return responses.success(result, result.message, created)


# -- Entities -----------------------------------------------------------------


@entity_router.post("/generate")
async def generate_entity(
    body: EntityRequest, scaffolder: ProjectScaffolder = Depends(get_scaffolder)
):
    return _respond(await scaffolder.entities.generate(body.project_path, body.entity))


@entity_router.get("/list")
async def list_entities(
    project_path: str = Query(..., alias="projectPath", min_length=1),
    scaffolder: ProjectScaffolder = Depends(get_scaffolder),
):
    entities = scaffolder.entities.list_entities(project_path)
    return responses.success(
        {"entities": entities, "count": len(entities)}, "Entities listed successfully"
    )


# -- Commands -----------------------------------------------------------------


@command_router.post("/generate")
async def generate_commands(
    body: CommandRequest, scaffolder: ProjectScaffolder = Depends(get_scaffolder)
):
    result = await scaffolder.commands.generate(body.project_path, body.entity, body.include_id)
    return _respond(result, created=200)


@command_router.get("/list")
async def list_commands(
    project_path: str = Query(..., alias="projectPath", min_length=1),
    scaffolder: ProjectScaffolder = Depends(get_scaffolder),
):
    commands = scaffolder.commands.list_commands(project_path)
    return responses.success(
        {"commands": commands, "count": len(commands)}, "Commands listed successfully"
    )


# -- Handlers -----------------------------------------------------------------


@handler_router.post("/generate")
async def generate_handler(
    body: EntityRequest, scaffolder: ProjectScaffolder = Depends(get_scaffolder)
):
    return _respond(await scaffolder.handlers.generate(body.project_path, body.entity))


@handler_router.get("/list")
async def list_handlers(
    project_path: str = Query(..., alias="projectPath", min_length=1),
    scaffolder: ProjectScaffolder = Depends(get_scaffolder),
):
    handlers = scaffolder.handlers.list_handlers(project_path)
    return responses.success(
        {"handlers": handlers, "count": len(handlers)}, "Handlers listed successfully"
    )


# -- Repositories -------------------------------------------------------------


@repository_router.post("/generate-base")
async def generate_base_repositories(
    body: DomainRequest, scaffolder: ProjectScaffolder = Depends(get_scaffolder)
):
    return _respond(await scaffolder.repositories.generate_base(body.domain_path))


@repository_router.post("/generate-entity")
async def generate_entity_repository(
    body: EntityRepositoryRequest, scaffolder: ProjectScaffolder = Depends(get_scaffolder)
):
    result = await scaffolder.repositories.generate_entity(
        body.entity_name, body.domain_path, body.namespace or DEFAULT_ENTITY_NAMESPACE
    )
    return _respond(result)


@repository_router.post("/generate-multiple")
async def generate_multiple_repositories(
    body: RepositoryBatchRequest, scaffolder: ProjectScaffolder = Depends(get_scaffolder)
):
    return _respond(
        await scaffolder.repositories.generate_many(body.entity_names, body.domain_path)
    )


@repository_router.get("/list")
async def list_repositories(
    domain_path: str = Query(..., alias="domainPath", min_length=1),
    scaffolder: ProjectScaffolder = Depends(get_scaffolder),
):
    repositories = scaffolder.repositories.list_generated(domain_path)
    return responses.success(
        {"repositories": repositories, "count": len(repositories)},
        "Repositories listed successfully",
    )


@repository_router.get("/validate/{entity_name}")
async def validate_repository(
    entity_name: str,
    domain_path: str = Query(..., alias="domainPath", min_length=1),
    scaffolder: ProjectScaffolder = Depends(get_scaffolder),
):
    exists = scaffolder.repositories.exists(entity_name, domain_path)
    message = (
        f"Repository 'I{entity_name}Repository' exists"
        if exists
        else f"Repository 'I{entity_name}Repository' not found"
    )
    return responses.success({"entityName": entity_name, "exists": exists}, message)
