# contentops/services/registry.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from contentops.core.access import AccessContext
from contentops.core.errors import (
    AssignmentError,
    DuplicateAssignmentError,
    InvalidRoleError,
    NotFoundError,
    TransportError,
    UnauthorizedError,
)
from contentops.core.results import OperationResult
from contentops.crud import assignment_store as store
from contentops.models.admin import SUB_ADMIN
from contentops.schemas.admin import AdminOut, ClientOut
from contentops.schemas.assignment import AssignmentOut
from contentops.schemas.bulk import OperationType

log = logging.getLogger("contentops.registry")


class AssignmentRegistry:
    """
    In-memory reflection of assignments, admins and unassigned clients for
    one AccessContext.

    The three collections are only ever replaced wholesale by refresh().
    assign()/unassign() are super-admin only, return OperationResult and
    never raise. There is no client-side locking: two racing assigns for the
    same client are settled by the store's unique constraint.
    """

    def __init__(self, db: AsyncSession, ctx: AccessContext):
        self.db = db
        self.ctx = ctx
        self.assignments: List[AssignmentOut] = []
        self.admins: List[AdminOut] = []
        self.unassigned_clients: List[ClientOut] = []
        self.error: Optional[AssignmentError] = None
        self.loaded = False

    @classmethod
    async def load(cls, db: AsyncSession, ctx: AccessContext) -> "AssignmentRegistry":
        registry = cls(db, ctx)
        await registry.refresh()
        return registry

    # ---- Refresh ---------------------------------------------------------------

    async def refresh(self) -> OperationResult:
        try:
            return await self._reload()
        except Exception as exc:
            log.exception("refresh for %s crashed", self.ctx.email)
            return self._refresh_failed(TransportError("Failed to load assignments", details=str(exc)))

    async def _reload(self) -> OperationResult:
        if not self.ctx.is_admin:
            self._replace([], [], [])
            self.error = self.ctx.error or UnauthorizedError("Unauthorized - Admin access required.")
            return OperationResult.fail(self.error)

        if self.ctx.is_super_admin:
            admins = await store.list_admins(self.db)
            if not admins.ok:
                return self._refresh_failed(admins.error)
            assignments = await store.list_assignments(self.db)
            if not assignments.ok:
                return self._refresh_failed(assignments.error)
            unassigned = await store.list_unassigned_clients(self.db)
            if not unassigned.ok:
                return self._refresh_failed(unassigned.error)
            self._replace(assignments.data, admins.data, unassigned.data)
        else:
            assignments = await store.list_assignments(self.db, self.ctx.admin_id)
            if not assignments.ok:
                return self._refresh_failed(assignments.error)
            self._replace(assignments.data, [], [])

        self.error = None
        self.loaded = True
        log.debug(
            "refreshed for %s: %d assignments, %d admins, %d unassigned",
            self.ctx.email,
            len(self.assignments),
            len(self.admins),
            len(self.unassigned_clients),
        )
        return OperationResult.ok()

    def _replace(self, assignments, admins, unassigned) -> None:
        self.assignments = list(assignments)
        self.admins = list(admins)
        self.unassigned_clients = list(unassigned)

    def _refresh_failed(self, error: AssignmentError) -> OperationResult:
        # previous collections stay in place
        log.error("refresh failed for %s: %s", self.ctx.email, error)
        self.error = error
        return OperationResult.fail(error)

    # ---- Mutations -------------------------------------------------------------

    async def assign(self, admin_id: str, client_id: str) -> OperationResult:
        denied = self.ctx.authorize_mutation()
        if denied is not None:
            log.warning("assign rejected for %s: %s", self.ctx.email, denied.message)
            return OperationResult.fail(denied)

        try:
            error = await self._check_assignable(admin_id, client_id)
            if error is not None:
                return OperationResult.fail(error)

            created = await store.create_assignment(
                self.db, admin_id, client_id, assigned_by=self.ctx.admin_id
            )
            if not created.ok:
                return OperationResult.fail(created.error)

            log.info("client %s assigned to admin %s by %s", client_id, admin_id, self.ctx.email)
            await self.refresh()
            return OperationResult.ok(created.data)
        except Exception as exc:
            log.exception("assign client=%s admin=%s crashed", client_id, admin_id)
            return OperationResult.fail(TransportError("Assignment failed", details=str(exc)))

    async def _check_assignable(self, admin_id: str, client_id: str) -> Optional[AssignmentError]:
        target = await store.get_admin(self.db, admin_id)
        if not target.ok:
            return target.error
        if target.data is None:
            return NotFoundError("Target admin not found")
        if target.data.role != SUB_ADMIN:
            return InvalidRoleError()

        client = await store.get_client(self.db, client_id)
        if not client.ok:
            return client.error
        if client.data is None:
            return NotFoundError("Client not found")

        # the unique constraint on client_user_id is the backstop
        existing = await store.find_assignment_for_client(self.db, client_id)
        if not existing.ok:
            return existing.error
        if existing.data is not None:
            holder = existing.data.admin_id
            message = (
                "Client is already assigned to this admin"
                if holder == admin_id
                else "Client is already assigned to another sub-admin"
            )
            return DuplicateAssignmentError(message, details={"assignment_id": existing.data.id})
        return None

    async def unassign(self, assignment_id: str) -> OperationResult:
        denied = self.ctx.authorize_mutation()
        if denied is not None:
            log.warning("unassign rejected for %s: %s", self.ctx.email, denied.message)
            return OperationResult.fail(denied)

        try:
            removed = await store.delete_assignment(self.db, assignment_id)
            if not removed.ok:
                return OperationResult.fail(removed.error)

            log.info("assignment %s removed by %s", assignment_id, self.ctx.email)
            await self.refresh()
            return OperationResult.ok(assignment_id)
        except Exception as exc:
            log.exception("unassign assignment=%s crashed", assignment_id)
            return OperationResult.fail(TransportError("Unassignment failed", details=str(exc)))

    # ---- Views -----------------------------------------------------------------

    @property
    def sub_admins(self) -> List[AdminOut]:
        return [a for a in self.admins if a.role == SUB_ADMIN]

    def assignment_for(self, admin_id: Optional[str], client_id: str) -> Optional[AssignmentOut]:
        for row in self.assignments:
            if row.admin_id == admin_id and row.client_user_id == client_id:
                return row
        return None

    def available_clients(
        self,
        operation: OperationType,
        from_admin: Optional[str] = None,
        search: str = "",
    ) -> List[ClientOut]:
        """
        Candidate clients for a bulk operation:
          - assign            → unassigned clients
          - unassign/transfer → clients currently assigned to `from_admin`
        `search` matches e-mail or company, case-insensitive.
        """
        if operation == "assign":
            candidates = list(self.unassigned_clients)
        elif operation in ("unassign", "transfer"):
            if not from_admin:
                return []
            candidates = [
                ClientOut(id=a.client_user_id, email=a.client_email or "", company=a.client_company)
                for a in self.assignments
                if a.admin_id == from_admin
            ]
        else:
            raise ValueError(f"Unknown bulk operation: {operation!r}")

        term = (search or "").strip().lower()
        if not term:
            return candidates
        return [
            c
            for c in candidates
            if term in (c.email or "").lower() or term in (c.company or "").lower()
        ]

    def summary(self) -> Dict[str, int]:
        return {
            "admins": len(self.admins),
            "sub_admins": len(self.sub_admins),
            "assignments": len(self.assignments),
            "unassigned_clients": len(self.unassigned_clients),
        }
