# contentops/api/v1/assignments.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from contentops.core.access import AccessContext
from contentops.core.auth import get_access_context, get_db, require_admin, require_super_admin
from contentops.schemas.admin import AccessOut, AdminOut, ClientOut, RegistrySummaryOut
from contentops.schemas.assignment import AssignmentCreate, AssignmentOut
from contentops.schemas.bulk import OperationType
from contentops.services.audit import (
    ASSIGNMENT_CREATED,
    ASSIGNMENT_DELETED,
    audit_log,
    ip_from_request,
)
from contentops.services.registry import AssignmentRegistry

router = APIRouter()


async def _load_registry(db: AsyncSession, ctx: AccessContext) -> AssignmentRegistry:
    registry = await AssignmentRegistry.load(db, ctx)
    if registry.error is not None:
        raise registry.error
    return registry


# ----------------------------
# Access
# ----------------------------
@router.get("/me/access", response_model=AccessOut)
async def get_my_access(ctx: AccessContext = Depends(get_access_context)):
    if ctx.error is not None:
        raise ctx.error
    visible = None if ctx.visible_client_ids is None else sorted(ctx.visible_client_ids)
    return AccessOut(
        email=ctx.email,
        is_admin=ctx.is_admin,
        role=ctx.role,
        admin_id=ctx.admin_id,
        visible_client_ids=visible if ctx.is_admin else [],
    )


# ----------------------------
# LIST
# ----------------------------
@router.get("/admins", response_model=List[AdminOut])
async def list_admins(
    db: AsyncSession = Depends(get_db),
    ctx: AccessContext = Depends(require_super_admin),
):
    registry = await _load_registry(db, ctx)
    return registry.admins


@router.get("/admins/summary", response_model=RegistrySummaryOut)
async def assignment_summary(
    db: AsyncSession = Depends(get_db),
    ctx: AccessContext = Depends(require_super_admin),
):
    registry = await _load_registry(db, ctx)
    return RegistrySummaryOut(**registry.summary())


@router.get("/assignments", response_model=List[AssignmentOut])
async def list_assignments(
    admin_id: Optional[str] = Query(None, description="Only this admin's clients."),
    db: AsyncSession = Depends(get_db),
    ctx: AccessContext = Depends(require_admin),
):
    # sub-admins only ever load their own rows
    registry = await _load_registry(db, ctx)
    rows = registry.assignments
    if admin_id:
        rows = [r for r in rows if r.admin_id == admin_id]
    return rows


@router.get("/clients/unassigned", response_model=List[ClientOut])
async def list_unassigned_clients(
    db: AsyncSession = Depends(get_db),
    ctx: AccessContext = Depends(require_super_admin),
):
    registry = await _load_registry(db, ctx)
    return registry.unassigned_clients


@router.get("/clients/available", response_model=List[ClientOut])
async def list_available_clients(
    operation: OperationType = Query(...),
    from_admin: Optional[str] = Query(None),
    search: str = Query("", description="Matches client e-mail or company."),
    db: AsyncSession = Depends(get_db),
    ctx: AccessContext = Depends(require_super_admin),
):
    registry = await _load_registry(db, ctx)
    return registry.available_clients(operation, from_admin=from_admin, search=search)


# ----------------------------
# CREATE
# ----------------------------
@router.post(
    "/assignments",
    response_model=AssignmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_assignment(
    payload: AssignmentCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AccessContext = Depends(require_super_admin),
):
    registry = AssignmentRegistry(db, ctx)
    result = await registry.assign(payload.admin_id, payload.client_user_id)
    if not result.success:
        raise result.error

    audit_log(
        actor_id=ctx.admin_id,
        actor_email=ctx.email,
        action=ASSIGNMENT_CREATED,
        entity_type="client_assignment",
        entity_id=result.data.id,
        meta={"admin_id": payload.admin_id, "client_user_id": payload.client_user_id},
        ip=ip_from_request(request),
    )
    return result.data


# ----------------------------
# DELETE
# ----------------------------
@router.delete("/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment(
    assignment_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AccessContext = Depends(require_super_admin),
) -> Response:
    registry = AssignmentRegistry(db, ctx)
    result = await registry.unassign(assignment_id)
    if not result.success:
        raise result.error

    audit_log(
        actor_id=ctx.admin_id,
        actor_email=ctx.email,
        action=ASSIGNMENT_DELETED,
        entity_type="client_assignment",
        entity_id=assignment_id,
        ip=ip_from_request(request),
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
