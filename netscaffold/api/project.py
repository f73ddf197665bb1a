"""``/api/project`` routes.

``scaffold-download`` is the public endpoint; :data:`dev_router` holds the
routes mounted only when development routes are enabled.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from ..config import NetScaffoldConfig
from ..models import ProjectOptions, ScaffoldRequest
from ..scaffolder.generator import ProjectScaffolder, success_message
from ..scaffolder.packager import schedule_cleanup
from . import responses
from .deps import get_config, get_scaffolder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/project", tags=["project"])
dev_router = APIRouter(prefix="/api/project", tags=["project"])


def _check_entity_limit(body: ScaffoldRequest, config: NetScaffoldConfig) -> None:
    if len(body.entities) > config.max_entities:
        raise HTTPException(
            status_code=400,
            detail=f"Too many entities: {len(body.entities)} (maximum {config.max_entities})",
        )


@router.post("/scaffold-download")
async def scaffold_download(
    body: ScaffoldRequest,
    config: NetScaffoldConfig = Depends(get_config),
    scaffolder: ProjectScaffolder = Depends(get_scaffolder),
):
    """Scaffold the project and stream it back as ``<name>.zip``.

    The workspace holding the project and archive is removed
    ``cleanup_delay`` seconds later, whatever the outcome.
    """
    _check_entity_limit(body, config)
    archive = await scaffolder.scaffold_archive(body)
    schedule_cleanup(archive.workspace, config.cleanup_delay)

    if not archive.result.success:
        raise HTTPException(
            status_code=400,
            detail=f"Failed to create project: {archive.result.project.message}",
        )
    if archive.zip_path is None:
        raise HTTPException(status_code=500, detail=f"Failed to create archive: {archive.error}")

    name = body.project_options.name
    logger.info("Serving %s (%s)", archive.zip_path, success_message(name, archive.result.summary))
    return FileResponse(archive.zip_path, media_type="application/zip", filename=f"{name}.zip")


# ---------------------------------------------------------------------------
# Development routes
# ---------------------------------------------------------------------------


@dev_router.post("/create")
async def create_project(
    body: ProjectOptions, scaffolder: ProjectScaffolder = Depends(get_scaffolder)
):
    result = await scaffolder.create_project(body)
    if not result.success:
        return responses.error(result.message, 400)
    return responses.success(result, result.message, 201)


@dev_router.get("/templates")
async def list_templates(scaffolder: ProjectScaffolder = Depends(get_scaffolder)):
    templates = await scaffolder.cli.list_templates()
    return responses.success(
        {"templates": templates, "count": len(templates)},
        "Available templates listed successfully",
    )


@dev_router.post("/validate-scaffold")
async def validate_scaffold(
    body: ScaffoldRequest,
    config: NetScaffoldConfig = Depends(get_config),
    scaffolder: ProjectScaffolder = Depends(get_scaffolder),
):
    _check_entity_limit(body, config)
    validation = await scaffolder.validate(body)
    message = (
        "Scaffold request is valid and ready"
        if validation.ready_to_scaffold
        else "Scaffold request has problems"
    )
    return responses.success(validation, message)


@dev_router.post("/scaffold")
async def scaffold(
    body: ScaffoldRequest,
    config: NetScaffoldConfig = Depends(get_config),
    scaffolder: ProjectScaffolder = Depends(get_scaffolder),
):
    """Scaffold into ``outputPath`` (or the default directory) and report as JSON."""
    _check_entity_limit(body, config)
    result = await scaffolder.scaffold(body)
    if not result.success:
        return responses.error(f"Failed to create project: {result.project.message}", 400)
    return responses.success(
        result, success_message(body.project_options.name, result.summary), 201
    )
