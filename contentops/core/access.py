# contentops/core/access.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from contentops.core.errors import (
    AccessResolutionFailed,
    AssignmentError,
    UnauthorizedError,
)
from contentops.crud import assignment_store as store
from contentops.models.admin import ADMIN_ROLES, SUB_ADMIN, SUPER_ADMIN

log = logging.getLogger("contentops.access")


# ---- Access context ----------------------------------------------------------

@dataclass(frozen=True)
class AccessContext:
    """
    Role and visibility of one admin identity, passed explicitly to every
    registry and executor call.

    visible_client_ids:
      - None          → unbounded (super_admin)
      - frozenset(..) → exactly these clients (sub_admin, may be empty)

    A context carrying `error` denies everything.
    """

    email: Optional[str] = None
    role: Optional[str] = None
    admin_id: Optional[str] = None
    visible_client_ids: Optional[FrozenSet[str]] = frozenset()
    error: Optional[AssignmentError] = None

    @property
    def is_admin(self) -> bool:
        return self.error is None and self.role in ADMIN_ROLES

    @property
    def is_super_admin(self) -> bool:
        return self.is_admin and self.role == SUPER_ADMIN

    @property
    def is_sub_admin(self) -> bool:
        return self.is_admin and self.role == SUB_ADMIN

    def can_see(self, client_id: str) -> bool:
        if not self.is_admin:
            return False
        if self.visible_client_ids is None:
            return True
        return client_id in self.visible_client_ids

    def authorize_mutation(self) -> Optional[AssignmentError]:
        """None when this identity may assign/unassign, else the rejection."""
        if self.error is not None:
            return self.error
        if not self.is_super_admin:
            return UnauthorizedError()
        return None


def denied(email: Optional[str], error: Optional[AssignmentError] = None) -> AccessContext:
    return AccessContext(email=email, error=error)


# ---- Resolver ----------------------------------------------------------------

async def resolve_access(db: AsyncSession, email: str) -> AccessContext:
    """
    Resolve an authenticated identity (e-mail) into an AccessContext.

    - no admin row      → non-admin context (every core operation rejects it)
    - super_admin       → unbounded visibility
    - sub_admin         → client ids of its own assignment rows
    Store failures come back as AccessResolutionFailed on ctx.error, never
    as an allow.
    """
    try:
        return await _resolve(db, email)
    except Exception as exc:
        log.exception("access resolution for %s crashed", email)
        return denied(email, AccessResolutionFailed(details=str(exc)))


async def _resolve(db: AsyncSession, email: str) -> AccessContext:
    found = await store.get_admin_by_email(db, email)
    if not found.ok:
        log.error("access resolution failed for %s: %s", email, found.error)
        return denied(email, AccessResolutionFailed(details=found.error.message))

    admin = found.data
    if admin is None:
        log.info("identity %s has no admin record", email)
        return denied(email)

    if admin.role == SUPER_ADMIN:
        return AccessContext(
            email=admin.email,
            role=SUPER_ADMIN,
            admin_id=admin.id,
            visible_client_ids=None,
        )

    if admin.role != SUB_ADMIN:
        log.warning("admin %s has unknown role %r; treating as non-admin", email, admin.role)
        return denied(email)

    rows = await store.list_assignments(db, admin.id)
    if not rows.ok:
        log.error("access resolution failed for %s: %s", email, rows.error)
        return denied(email, AccessResolutionFailed(details=rows.error.message))

    return AccessContext(
        email=admin.email,
        role=SUB_ADMIN,
        admin_id=admin.id,
        visible_client_ids=frozenset(r.client_user_id for r in rows.data),
    )
