"""Event deletion audit endpoints (root only)."""

from fastapi import APIRouter, HTTPException, Query, status

from photoshare.core.deps import DBSession, RootUser, parse_id
from photoshare.schemas.event import EventAuditDTO
from photoshare.services.analytics_service import AuditService

router = APIRouter()


@router.get("", response_model=list[EventAuditDTO])
async def list_audit(
    db: DBSession,
    current_user: RootUser,
    owner_id: int | None = Query(None, alias="ownerId"),
) -> list[EventAuditDTO]:
    """Deleted events, most recent first."""
    records = await AuditService(db).list_records(owner_id)
    return [EventAuditDTO.model_validate(r) for r in records]


@router.delete("/{audit_id}")
async def delete_audit(audit_id: str, db: DBSession, current_user: RootUser) -> dict:
    """Remove one audit record."""
    audit_service = AuditService(db)
    record = await audit_service.get_by_id(parse_id(audit_id, "audit id"))
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Audit record not found",
        )
    await audit_service.delete(record)
    return {"deleted": True}
