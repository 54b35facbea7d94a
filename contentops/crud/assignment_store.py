# contentops/crud/assignment_store.py
"""
I/O boundary for admins, clients and client assignments.

Every function returns a StoreResult instead of raising. The only rules
applied here are the store's own constraints: a unique-constraint hit on
create becomes DuplicateAssignmentError, a delete that matches nothing
becomes AssignmentNotFoundError, and any other database failure becomes
TransportError.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from contentops.core.errors import (
    AssignmentNotFoundError,
    DuplicateAssignmentError,
    NotFoundError,
    TransportError,
)
from contentops.core.results import StoreResult
from contentops.models.admin import Admin, normalize_email
from contentops.models.assignment import ClientAssignment
from contentops.models.client import Client
from contentops.schemas.admin import AdminOut, ClientOut
from contentops.schemas.assignment import AssignmentOut

log = logging.getLogger("contentops.store")

# Postgres unique_violation; SQLite only reports it in the message
UNIQUE_VIOLATION = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == UNIQUE_VIOLATION or getattr(orig, "sqlstate", None) == UNIQUE_VIOLATION:
        return True
    return "unique" in str(orig or exc).lower()


async def _transport_failure(db: AsyncSession, op: str, exc: Exception) -> StoreResult:
    log.error("store %s failed: %s", op, exc)
    await db.rollback()
    return StoreResult(error=TransportError(f"Failed to {op}", details=str(exc)))


def _assignment_columns():
    return (
        select(
            ClientAssignment.id,
            ClientAssignment.admin_id,
            ClientAssignment.client_user_id,
            Client.email,
            Client.company,
            ClientAssignment.assigned_at,
            ClientAssignment.assigned_by,
        )
        .join(Client, Client.id == ClientAssignment.client_user_id)
    )


def _assignment_out(row) -> AssignmentOut:
    return AssignmentOut(
        id=row[0],
        admin_id=row[1],
        client_user_id=row[2],
        client_email=row[3],
        client_company=row[4] or "",
        assigned_at=row[5],
        assigned_by=row[6],
    )


# ---- Lookups -----------------------------------------------------------------

async def get_admin(db: AsyncSession, admin_id: str) -> StoreResult[Optional[AdminOut]]:
    try:
        admin = (
            await db.execute(select(Admin).where(Admin.id == admin_id))
        ).scalar_one_or_none()
    except SQLAlchemyError as exc:
        return await _transport_failure(db, "fetch admin", exc)
    return StoreResult(data=AdminOut.model_validate(admin) if admin else None)


async def get_admin_by_email(db: AsyncSession, email: str) -> StoreResult[Optional[AdminOut]]:
    try:
        admin = (
            await db.execute(select(Admin).where(func.lower(Admin.email) == normalize_email(email)))
        ).scalar_one_or_none()
    except SQLAlchemyError as exc:
        return await _transport_failure(db, "fetch admin", exc)
    return StoreResult(data=AdminOut.model_validate(admin) if admin else None)


async def get_client(db: AsyncSession, client_id: str) -> StoreResult[Optional[ClientOut]]:
    try:
        client = (
            await db.execute(select(Client).where(Client.id == client_id))
        ).scalar_one_or_none()
    except SQLAlchemyError as exc:
        return await _transport_failure(db, "fetch client", exc)
    return StoreResult(data=ClientOut.model_validate(client) if client else None)


async def find_assignment_for_client(
    db: AsyncSession, client_id: str
) -> StoreResult[Optional[AssignmentOut]]:
    try:
        row = (
            await db.execute(
                _assignment_columns().where(ClientAssignment.client_user_id == client_id)
            )
        ).first()
    except SQLAlchemyError as exc:
        return await _transport_failure(db, "fetch assignment", exc)
    return StoreResult(data=_assignment_out(row) if row else None)


# ---- Primitives --------------------------------------------------------------

async def list_admins(db: AsyncSession) -> StoreResult[List[AdminOut]]:
    """All admins ordered by e-mail, each with its assigned-client count."""
    counts = (
        select(
            ClientAssignment.admin_id.label("admin_id"),
            func.count(ClientAssignment.id).label("n"),
        )
        .group_by(ClientAssignment.admin_id)
        .subquery()
    )
    stmt = (
        select(Admin, func.coalesce(counts.c.n, 0))
        .outerjoin(counts, counts.c.admin_id == Admin.id)
        .order_by(Admin.email.asc())
    )
    try:
        rows = (await db.execute(stmt)).all()
    except SQLAlchemyError as exc:
        return await _transport_failure(db, "fetch admins", exc)

    return StoreResult(
        data=[
            AdminOut(
                id=admin.id,
                email=admin.email,
                name=admin.name,
                role=admin.role,
                assigned_clients_count=int(n or 0),
            )
            for admin, n in rows
        ]
    )


async def list_assignments(
    db: AsyncSession, admin_id: Optional[str] = None
) -> StoreResult[List[AssignmentOut]]:
    """Assignments joined with client e-mail/company, newest first."""
    stmt = _assignment_columns()
    if admin_id is not None:
        stmt = stmt.where(ClientAssignment.admin_id == admin_id)
    stmt = stmt.order_by(ClientAssignment.assigned_at.desc(), Client.email.asc())
    try:
        rows = (await db.execute(stmt)).all()
    except SQLAlchemyError as exc:
        return await _transport_failure(db, "fetch client assignments", exc)
    return StoreResult(data=[_assignment_out(r) for r in rows])


async def list_unassigned_clients(db: AsyncSession) -> StoreResult[List[ClientOut]]:
    assigned = select(ClientAssignment.client_user_id)
    stmt = select(Client).where(Client.id.not_in(assigned)).order_by(Client.email.asc())
    try:
        clients = (await db.execute(stmt)).scalars().all()
    except SQLAlchemyError as exc:
        return await _transport_failure(db, "fetch unassigned clients", exc)
    return StoreResult(data=[ClientOut.model_validate(c) for c in clients])


async def create_assignment(
    db: AsyncSession,
    admin_id: str,
    client_id: str,
    assigned_by: Optional[str],
) -> StoreResult[AssignmentOut]:
    obj = ClientAssignment(
        admin_id=admin_id, client_user_id=client_id, assigned_by=assigned_by
    )
    db.add(obj)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if _is_unique_violation(exc):
            log.warning("duplicate assignment rejected client=%s admin=%s", client_id, admin_id)
            return StoreResult(error=DuplicateAssignmentError())
        # foreign key: admin or client vanished
        return StoreResult(error=NotFoundError("Admin or client not found", details=str(exc.orig)))
    except SQLAlchemyError as exc:
        return await _transport_failure(db, "assign client", exc)

    try:
        row = (
            await db.execute(_assignment_columns().where(ClientAssignment.id == obj.id))
        ).first()
    except SQLAlchemyError as exc:
        return await _transport_failure(db, "reload assignment", exc)
    if row is None:
        return StoreResult(error=AssignmentNotFoundError("Assignment created, but could not be reloaded"))
    return StoreResult(data=_assignment_out(row))


async def delete_assignment(db: AsyncSession, assignment_id: str) -> StoreResult[str]:
    try:
        res = await db.execute(
            delete(ClientAssignment).where(ClientAssignment.id == assignment_id)
        )
        if not res.rowcount:
            await db.rollback()
            return StoreResult(error=AssignmentNotFoundError())
        await db.commit()
    except SQLAlchemyError as exc:
        return await _transport_failure(db, "unassign client", exc)
    return StoreResult(data=assignment_id)
