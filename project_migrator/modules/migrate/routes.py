"""API routes for migration previews."""
from fastapi import APIRouter, Depends, HTTPException, Request

from project_migrator.core.logging import get_logger
from project_migrator.core.session import get_session_id, require_access_token
from .categories import selected_categories
from .client import ManagementAPIClient, get_management_client
from .schemas import (
    PreviewResponse,
    ProjectResponse,
    ProjectListResponse,
    SnapshotListResponse,
    SnapshotResponse,
)
from .services import PreviewService, snapshot_cache

logger = get_logger(__name__)

router = APIRouter(prefix="/migrate", tags=["migrate"])


@router.get("/preview", response_model=PreviewResponse)
async def preview_migration(
    request: Request,
    source_id: str,
    dest_id: str,
    auth: bool = False,
    postgrest: bool = False,
    edge_functions: bool = False,
    secrets: bool = False,
    postgres: bool = False,
    client: ManagementAPIClient = Depends(get_management_client),
):
    """
    Compare the selected configuration categories of two projects.

    Only categories with at least one difference appear in ``configs``.
    """
    categories = selected_categories({
        "auth": auth,
        "postgrest": postgrest,
        "edge_functions": edge_functions,
        "secrets": secrets,
        "postgres": postgres,
    })

    service = PreviewService(client, cache=snapshot_cache, session_id=get_session_id(request))
    configs = await service.preview(source_id, dest_id, categories)
    return PreviewResponse(configs=configs)


@router.get("/projects", response_model=ProjectListResponse)
async def list_projects(client: ManagementAPIClient = Depends(get_management_client)):
    """List the projects the signed-in user can migrate between."""
    projects = await client.list_projects()
    return build_project_list(projects)


@router.get("/snapshots", response_model=SnapshotListResponse)
async def list_snapshots(request: Request, _: str = Depends(require_access_token)):
    """List categories whose source snapshot was cached by a previous preview."""
    return SnapshotListResponse(categories=snapshot_cache.categories(get_session_id(request)))


@router.get("/snapshots/{category}", response_model=SnapshotResponse)
async def get_snapshot(
    category: str,
    request: Request,
    _: str = Depends(require_access_token),
):
    """Get the cached source snapshot of one category."""
    snapshot = snapshot_cache.get(get_session_id(request), category)
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"No cached snapshot for {category}")
    return SnapshotResponse(category=category, snapshot=snapshot)


def _optional_str(value) -> str | None:
    return None if value is None else str(value)


def build_project_list(projects: list[dict]) -> ProjectListResponse:
    return ProjectListResponse(
        projects=[
            ProjectResponse(
                id=_optional_str(p.get("id")) or "",
                name=_optional_str(p.get("name")) or "",
                organization_id=_optional_str(p.get("organization_id")),
                region=_optional_str(p.get("region")),
                status=_optional_str(p.get("status")),
                created_at=_optional_str(p.get("created_at")),
            )
            for p in projects
        ],
        total=len(projects),
    )
