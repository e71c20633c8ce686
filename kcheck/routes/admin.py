"""Statistics and administrative maintenance endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session as DbSession

from kcheck.database import get_db
from kcheck.dependencies import get_optional_actor_id
from kcheck.models import ArchiveStatistics, MigrationResult, Statistics
from kcheck.services import archive_service, maintenance_service, stats_service

router = APIRouter(prefix="/api/kc", tags=["admin"])


@router.get("/statistics", response_model=Statistics)
def get_statistics(
    actor_id: Annotated[str | None, Depends(get_optional_actor_id)],
    db: Annotated[DbSession, Depends(get_db)],
) -> Statistics:
    return stats_service.get_statistics(db, actor_id)


@router.get("/archive/statistics", response_model=ArchiveStatistics)
def get_archive_statistics(db: Annotated[DbSession, Depends(get_db)]) -> ArchiveStatistics:
    return archive_service.get_archive_statistics(db)


@router.get("/admin/orphaned-assignments")
def orphaned_assignments_count(db: Annotated[DbSession, Depends(get_db)]) -> dict[str, int]:
    return {"count": maintenance_service.get_orphaned_assignments_count(db)}


@router.post("/admin/migrate-orphaned-assignments", response_model=MigrationResult)
def migrate_orphaned_assignments(
    db: Annotated[DbSession, Depends(get_db)],
) -> MigrationResult:
    """Move assignments without a run into the unassigned run."""
    return maintenance_service.migrate_orphaned_assignments(db)
