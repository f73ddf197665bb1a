"""Request bodies of the development endpoints.

The scaffold endpoints take :class:`~netscaffold.models.ScaffoldRequest`
directly; the bodies here target a single generator against an existing
project on the server's disk.
"""

from __future__ import annotations

from pydantic import Field

from ..models import NAMESPACE_PATTERN, CamelModel, EntityDefinition


class EntityRequest(CamelModel):
    """Body of ``/api/entity``, ``/api/command`` and ``/api/handler`` generate calls."""

    project_path: str = Field(..., min_length=1)
    entity: EntityDefinition


class CommandRequest(EntityRequest):
    include_id: bool = True


class DomainRequest(CamelModel):
    domain_path: str = Field(..., min_length=1)


class EntityRepositoryRequest(DomainRequest):
    entity_name: str = Field(..., min_length=1)
    namespace: str | None = Field(default=None, pattern=NAMESPACE_PATTERN)


class RepositoryBatchRequest(DomainRequest):
    entity_names: list[str] = Field(..., min_length=1)
