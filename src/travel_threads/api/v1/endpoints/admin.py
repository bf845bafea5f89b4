# src/travel_threads/api/v1/endpoints/admin.py
"""Moderation endpoints. Everything except filing a report requires an admin."""

from fastapi import APIRouter, Query, status

from travel_threads.api.v1.dependencies import AdminUserDep, ContextDep, CurrentUserDep
from travel_threads.schemas.admin import (
    AdminLog,
    AdminStats,
    BlockRequest,
    ContentRemoval,
    Report,
    ReportCreate,
    ReportReview,
    ReportStatus,
)
from travel_threads.schemas.user import UserProfile
from travel_threads.services import admin

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[UserProfile])
async def list_users(
    _: AdminUserDep,
    ctx: ContextDep,
    limit: int | None = Query(None, ge=1, le=500),
) -> list[UserProfile]:
    """List user accounts."""
    return await admin.get_users(ctx, limit)


@router.post("/users/{user_id}/block", status_code=status.HTTP_204_NO_CONTENT)
async def block_user(
    user_id: str,
    payload: BlockRequest,
    current_admin: AdminUserDep,
    ctx: ContextDep,
) -> None:
    """Block an account."""
    await admin.block_user(ctx, user_id, current_admin.id, payload.reason)


@router.delete("/users/{user_id}/block", status_code=status.HTTP_204_NO_CONTENT)
async def unblock_user(user_id: str, current_admin: AdminUserDep, ctx: ContextDep) -> None:
    """Lift a block."""
    await admin.unblock_user(ctx, user_id, current_admin.id)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, current_admin: AdminUserDep, ctx: ContextDep) -> None:
    """Delete an account and everything it authored."""
    await admin.delete_user_account(ctx, user_id, current_admin.id)


@router.post("/users/{user_id}/admin", status_code=status.HTTP_204_NO_CONTENT)
async def grant_admin(user_id: str, current_admin: AdminUserDep, ctx: ContextDep) -> None:
    """Grant admin privileges."""
    await admin.grant_admin_privileges(ctx, user_id, current_admin.id)


@router.delete("/users/{user_id}/admin", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_admin(user_id: str, current_admin: AdminUserDep, ctx: ContextDep) -> None:
    """Revoke admin privileges."""
    await admin.revoke_admin_privileges(ctx, user_id, current_admin.id)


@router.post("/reports", status_code=status.HTTP_201_CREATED)
async def create_report(
    payload: ReportCreate,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> dict[str, str]:
    """File a report. Any signed-in user may do this."""
    data = payload.model_copy(update={"reporter_id": current_user.id})
    report_id = await admin.create_report(ctx, data)
    return {"id": report_id}


@router.get("/reports", response_model=list[Report])
async def list_reports(
    _: AdminUserDep,
    ctx: ContextDep,
    report_status: ReportStatus | None = Query(None, alias="status"),
) -> list[Report]:
    """List reports newest first."""
    return await admin.get_reports(ctx, report_status)


@router.post("/reports/{report_id}/review", response_model=Report)
async def review_report(
    report_id: str,
    payload: ReportReview,
    current_admin: AdminUserDep,
    ctx: ContextDep,
) -> Report:
    """Move a report forward."""
    return await admin.review_report(
        ctx, report_id, current_admin.id, payload.status, payload.action
    )


@router.post("/content/remove", status_code=status.HTTP_204_NO_CONTENT)
async def remove_content(
    payload: ContentRemoval,
    current_admin: AdminUserDep,
    ctx: ContextDep,
) -> None:
    """Remove a post, comment or event."""
    await admin.delete_content(
        ctx, payload.entity_id, payload.entity_type, current_admin.id, payload.reason
    )


@router.get("/logs", response_model=list[AdminLog])
async def list_logs(
    _: AdminUserDep,
    ctx: ContextDep,
    limit: int | None = Query(None, ge=1, le=1000),
) -> list[AdminLog]:
    """Return the newest audit log entries."""
    return await admin.get_admin_logs(ctx, limit)


@router.get("/stats", response_model=AdminStats)
async def stats(_: AdminUserDep, ctx: ContextDep) -> AdminStats:
    """Return dashboard counts."""
    return await admin.get_admin_stats(ctx)
