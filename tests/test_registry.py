"""
AssignmentRegistry: refresh behaviour, single assign/unassign and the
one-admin-per-client invariant.
"""
from collections import Counter

import pytest

from contentops.core.access import resolve_access
from contentops.core.errors import (
    AssignmentNotFoundError,
    DuplicateAssignmentError,
    InvalidRoleError,
    NotFoundError,
    TransportError,
    UnauthorizedError,
)
from contentops.core.results import StoreResult
from contentops.crud import assignment_store as store
from contentops.services.registry import AssignmentRegistry

pytestmark = pytest.mark.integration


async def assert_one_admin_per_client(db):
    rows = (await store.list_assignments(db)).data
    per_client = Counter(r.client_user_id for r in rows)
    assert all(n == 1 for n in per_client.values()), per_client


class TestRefresh:
    async def test_super_admin_loads_everything(self, registry, seed):
        assert registry.error is None
        assert [a.email for a in registry.admins] == ["sub1@x", "sub2@x", "super@x"]
        assert [a.id for a in registry.sub_admins] == [seed.sub1_id, seed.sub2_id]
        assert registry.assignments == []
        assert len(registry.unassigned_clients) == 4

    async def test_refresh_twice_is_identical(self, registry, seed):
        await registry.assign(seed.sub1_id, seed.client_a)
        await registry.assign(seed.sub2_id, seed.client_b)

        await registry.refresh()
        first = ([a.model_dump() for a in registry.assignments], [c.model_dump() for c in registry.unassigned_clients])
        await registry.refresh()
        second = ([a.model_dump() for a in registry.assignments], [c.model_dump() for c in registry.unassigned_clients])

        assert first == second

    async def test_sub_admin_loads_only_own_rows(self, db, registry, seed):
        await registry.assign(seed.sub1_id, seed.client_a)
        await registry.assign(seed.sub2_id, seed.client_b)

        sub = await AssignmentRegistry.load(db, await resolve_access(db, "sub1@x"))

        assert [r.client_user_id for r in sub.assignments] == [seed.client_a]
        assert sub.admins == []
        assert sub.unassigned_clients == []

    async def test_non_admin_gets_empty_collections_and_error(self, db, seed):
        reg = await AssignmentRegistry.load(db, await resolve_access(db, "stranger@x"))

        assert isinstance(reg.error, UnauthorizedError)
        assert reg.assignments == reg.admins == reg.unassigned_clients == []

    async def test_failed_refresh_keeps_previous_state(self, registry, seed, monkeypatch):
        before = list(registry.unassigned_clients)

        async def failing(db):
            return StoreResult(error=TransportError("network down"))

        monkeypatch.setattr(store, "list_admins", failing)
        result = await registry.refresh()

        assert not result.success
        assert isinstance(registry.error, TransportError)
        assert registry.unassigned_clients == before

    async def test_crashing_store_is_reported_not_raised(self, registry, seed, monkeypatch):
        before = list(registry.assignments)

        async def decode_failure(db):
            raise RuntimeError("row decode failed")

        monkeypatch.setattr(store, "list_unassigned_clients", decode_failure)
        result = await registry.refresh()

        assert not result.success
        assert isinstance(result.error, TransportError)
        assert "row decode failed" in result.error.details
        assert registry.error is result.error
        assert registry.assignments == before


class TestAssign:
    async def test_assign_updates_collections(self, registry, seed):
        result = await registry.assign(seed.sub1_id, seed.client_a)

        assert result.success
        assert result.data.client_user_id == seed.client_a
        assert result.data.assigned_by == seed.super_id
        assert seed.client_a not in [c.id for c in registry.unassigned_clients]
        assert registry.assignment_for(seed.sub1_id, seed.client_a) is not None

    async def test_sub_admin_cannot_assign(self, db, sub1_ctx, seed):
        reg = AssignmentRegistry(db, sub1_ctx)

        result = await reg.assign(seed.sub1_id, seed.client_a)

        assert isinstance(result.error, UnauthorizedError)
        assert (await store.list_assignments(db)).data == []

    async def test_target_must_be_sub_admin(self, registry, seed):
        result = await registry.assign(seed.super_id, seed.client_a)
        assert isinstance(result.error, InvalidRoleError)

    async def test_unknown_target_admin(self, registry, seed):
        result = await registry.assign("ghost-admin", seed.client_a)
        assert isinstance(result.error, NotFoundError)

    async def test_unknown_client(self, registry, seed):
        result = await registry.assign(seed.sub1_id, "ghost-client")
        assert isinstance(result.error, NotFoundError)

    async def test_same_admin_twice_is_duplicate(self, registry, seed):
        await registry.assign(seed.sub1_id, seed.client_a)

        result = await registry.assign(seed.sub1_id, seed.client_a)

        assert isinstance(result.error, DuplicateAssignmentError)
        assert "this admin" in result.error.message

    async def test_unexpected_exception_is_reported_not_raised(self, registry, seed, monkeypatch):
        async def explode(*args, **kwargs):
            raise RuntimeError("driver bug")

        monkeypatch.setattr(store, "create_assignment", explode)

        result = await registry.assign(seed.sub1_id, seed.client_a)

        assert isinstance(result.error, TransportError)


class TestUnassign:
    async def test_unassign(self, registry, seed):
        created = await registry.assign(seed.sub1_id, seed.client_a)

        result = await registry.unassign(created.data.id)

        assert result.success
        assert registry.assignments == []
        assert seed.client_a in [c.id for c in registry.unassigned_clients]

    async def test_unassign_missing_row(self, registry, seed):
        result = await registry.unassign("nope")
        assert isinstance(result.error, AssignmentNotFoundError)


class TestAvailableClients:
    async def test_assign_offers_unassigned(self, registry, seed):
        await registry.assign(seed.sub1_id, seed.client_a)

        ids = [c.id for c in registry.available_clients("assign")]

        assert ids == [seed.client_b, seed.client_c, seed.client_d]

    async def test_transfer_offers_source_clients(self, registry, seed):
        await registry.assign(seed.sub1_id, seed.client_a)
        await registry.assign(seed.sub2_id, seed.client_b)

        ids = [c.id for c in registry.available_clients("transfer", from_admin=seed.sub1_id)]

        assert ids == [seed.client_a]
        assert registry.available_clients("unassign") == []

    async def test_search_matches_email_or_company(self, registry, seed):
        assert [c.id for c in registry.available_clients("assign", search="DELTA")] == [seed.client_d]
        assert [c.id for c in registry.available_clients("assign", search="b@")] == [seed.client_b]

    async def test_unknown_operation(self, registry):
        with pytest.raises(ValueError):
            registry.available_clients("merge")


class TestEndToEnd:
    async def test_assign_then_duplicate_to_other_sub_admin(self, db, registry, seed):
        result = await registry.assign(seed.sub1_id, seed.client_a)
        assert result.success

        assert seed.client_a not in [c.id for c in registry.unassigned_clients]
        sub1 = await resolve_access(db, "sub1@x")
        assert seed.client_a in sub1.visible_client_ids

        dup = await registry.assign(seed.sub2_id, seed.client_a)

        assert isinstance(dup.error, DuplicateAssignmentError)
        assert "another sub-admin" in dup.error.message
        rows = (await store.list_assignments(db)).data
        assert [(r.admin_id, r.client_user_id) for r in rows] == [(seed.sub1_id, seed.client_a)]
        await assert_one_admin_per_client(db)
