# contentops/services/bulk_executor.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, assert_never

from contentops.core.errors import AssignmentError, AssignmentNotFoundError, TransportError
from contentops.core.results import OperationResult
from contentops.schemas.bulk import AssignIntent, BulkIntent, TransferIntent, UnassignIntent
from contentops.services.bulk_planner import Plan
from contentops.services.registry import AssignmentRegistry

log = logging.getLogger("contentops.bulk")

ItemHandler = Callable[[BulkIntent, str], Awaitable[OperationResult]]


@dataclass(frozen=True)
class ItemError:
    client_id: str
    error: AssignmentError


@dataclass
class BulkResult:
    operation: str
    description: str = ""
    success_count: int = 0
    failure_count: int = 0
    succeeded: List[str] = field(default_factory=list)
    item_errors: List[ItemError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count

    @property
    def summary(self) -> str:
        noun = "client" if self.total == 1 else "clients"
        return (
            f"Processed {self.total} {noun}: "
            f"{self.success_count} succeeded, {self.failure_count} failed"
        )

    def record(self, client_id: str, outcome: OperationResult) -> None:
        if outcome.success:
            self.success_count += 1
            self.succeeded.append(client_id)
        else:
            self.failure_count += 1
            self.item_errors.append(ItemError(client_id, outcome.error))


class BulkExecutor:
    """
    Runs a Plan against an AssignmentRegistry, one client at a time.

    Items are processed sequentially in plan order with exactly one attempt
    each. A failing or crashing item is tallied and the loop moves on; the
    registry is refreshed once when the run ends, and once up front if it
    was never loaded.

    Transfer is unassign-then-assign with no compensation: if the assign
    step fails the client is left unassigned.
    """

    def __init__(self, registry: AssignmentRegistry):
        self.registry = registry

    async def execute(self, plan: Plan) -> BulkResult:
        result = BulkResult(operation=plan.operation, description=plan.description)
        ctx = self.registry.ctx

        denied = ctx.authorize_mutation()
        if denied is not None:
            log.warning("bulk %s rejected for %s: %s", plan.operation, ctx.email, denied.message)
            for client_id in plan.client_ids:
                result.record(client_id, OperationResult.fail(denied))
            return result

        # rows for unassign/transfer are looked up in the registry
        if not self.registry.loaded:
            loaded = await self.registry.refresh()
            if not loaded.success:
                for client_id in plan.client_ids:
                    result.record(client_id, loaded)
                return result

        handler = self._handler_for(plan.intent)
        log.info("bulk start: %s (by %s)", plan.description, ctx.email)

        for client_id in plan.client_ids:
            try:
                outcome = await handler(plan.intent, client_id)
            except Exception as exc:
                log.exception("bulk %s crashed on client %s", plan.operation, client_id)
                outcome = OperationResult.fail(TransportError(details=str(exc)))
            if not outcome.success:
                log.warning(
                    "bulk %s failed for client %s: %s",
                    plan.operation,
                    client_id,
                    outcome.error.message if outcome.error else "unknown error",
                )
            result.record(client_id, outcome)

        refreshed = await self.registry.refresh()
        if not refreshed.success:
            log.warning("bulk %s: final refresh failed, tally is still returned", plan.operation)

        level = logging.WARNING if result.failure_count else logging.INFO
        log.log(level, "bulk done: %s | %s", plan.description, result.summary)
        return result

    def _handler_for(self, intent: BulkIntent) -> ItemHandler:
        if isinstance(intent, AssignIntent):
            return self._assign
        elif isinstance(intent, UnassignIntent):
            return self._unassign
        elif isinstance(intent, TransferIntent):
            return self._transfer
        else:
            assert_never(intent)

    # ---- One handler per variant -----------------------------------------------

    async def _assign(self, intent: AssignIntent, client_id: str) -> OperationResult:
        return await self.registry.assign(intent.to_admin, client_id)

    async def _unassign(self, intent: UnassignIntent, client_id: str) -> OperationResult:
        row = self.registry.assignment_for(intent.from_admin, client_id)
        if row is None:
            return OperationResult.fail(_not_assigned(intent.from_admin, client_id))
        return await self.registry.unassign(row.id)

    async def _transfer(self, intent: TransferIntent, client_id: str) -> OperationResult:
        row = self.registry.assignment_for(intent.from_admin, client_id)
        if row is None:
            return OperationResult.fail(_not_assigned(intent.from_admin, client_id))

        removed = await self.registry.unassign(row.id)
        if not removed.success:
            return removed

        added = await self.registry.assign(intent.to_admin, client_id)
        if not added.success:
            log.warning(
                "transfer of client %s: removed from %s but assign to %s failed; client is now unassigned",
                client_id,
                intent.from_admin,
                intent.to_admin,
            )
        return added


def _not_assigned(admin_id: str, client_id: str) -> AssignmentNotFoundError:
    return AssignmentNotFoundError(
        f"Client {client_id} is not assigned to admin {admin_id}"
    )
