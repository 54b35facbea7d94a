# contentops/api/v1/bulk.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from contentops.core.access import AccessContext
from contentops.core.auth import get_db, require_super_admin
from contentops.core.errors import ValidationError
from contentops.schemas.bulk import BulkIntentIn, BulkPreviewOut, BulkResultOut, ItemErrorOut
from contentops.services.audit import BULK_OPERATION, audit_log, ip_from_request
from contentops.services.bulk_executor import BulkExecutor
from contentops.services.bulk_planner import Plan, plan
from contentops.services.registry import AssignmentRegistry

router = APIRouter(prefix="/bulk-operations")


async def _plan(db: AsyncSession, ctx: AccessContext, payload: BulkIntentIn):
    registry = await AssignmentRegistry.load(db, ctx)
    if registry.error is not None:
        raise registry.error
    outcome = plan(payload.root, registry.admins)
    if isinstance(outcome, ValidationError):
        raise outcome
    return registry, outcome


def _preview(p: Plan) -> BulkPreviewOut:
    return BulkPreviewOut(
        operation=p.operation,
        client_ids=list(p.client_ids),
        client_count=len(p.client_ids),
        description=p.description,
    )


@router.post("/preview", response_model=BulkPreviewOut)
async def preview_bulk_operation(
    payload: BulkIntentIn,
    db: AsyncSession = Depends(get_db),
    ctx: AccessContext = Depends(require_super_admin),
):
    _, p = await _plan(db, ctx, payload)
    return _preview(p)


@router.post("/execute", response_model=BulkResultOut)
async def execute_bulk_operation(
    payload: BulkIntentIn,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: AccessContext = Depends(require_super_admin),
):
    """
    Run a bulk assign/unassign/transfer. Always 200 with a tally once the
    plan is valid, even when every item failed.
    """
    registry, p = await _plan(db, ctx, payload)
    result = await BulkExecutor(registry).execute(p)

    audit_log(
        actor_id=ctx.admin_id,
        actor_email=ctx.email,
        action=BULK_OPERATION,
        entity_type="client_assignment",
        meta={
            "operation": p.operation,
            "description": p.description,
            "success_count": result.success_count,
            "failure_count": result.failure_count,
        },
        ip=ip_from_request(request),
    )

    return BulkResultOut(
        operation=result.operation,
        description=result.description,
        success_count=result.success_count,
        failure_count=result.failure_count,
        succeeded=result.succeeded,
        errors=[
            ItemErrorOut(client_id=e.client_id, type=e.error.code, message=e.error.message)
            for e in result.item_errors
        ],
        summary=result.summary,
    )
