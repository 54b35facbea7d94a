"""
Store adapter tests: every primitive returns a StoreResult, and the store's
own constraints come back as typed errors.
"""
import pytest
from sqlalchemy.exc import OperationalError

from contentops.core.errors import (
    AssignmentNotFoundError,
    DuplicateAssignmentError,
    NotFoundError,
    TransportError,
)
from contentops.crud import assignment_store as store

pytestmark = pytest.mark.integration


class TestLookups:
    async def test_get_admin_by_email_is_case_insensitive(self, db, seed):
        result = await store.get_admin_by_email(db, "  SUB1@X ")
        assert result.ok
        assert result.data.id == seed.sub1_id
        assert result.data.role == "sub_admin"

    async def test_unknown_admin_is_none_not_error(self, db, seed):
        result = await store.get_admin(db, "nope")
        assert result.ok
        assert result.data is None

    async def test_get_client(self, db, seed):
        result = await store.get_client(db, seed.client_b)
        assert result.data.email == "b@client.com"
        assert result.data.company == "Beta Ltd"


class TestListing:
    async def test_admins_ordered_by_email_with_counts(self, db, seed):
        await store.create_assignment(db, seed.sub1_id, seed.client_a, assigned_by=seed.super_id)
        await store.create_assignment(db, seed.sub1_id, seed.client_b, assigned_by=seed.super_id)

        result = await store.list_admins(db)

        assert result.ok
        assert [a.email for a in result.data] == ["sub1@x", "sub2@x", "super@x"]
        counts = {a.id: a.assigned_clients_count for a in result.data}
        assert counts == {seed.sub1_id: 2, seed.sub2_id: 0, seed.super_id: 0}

    async def test_assignments_are_joined_with_client_details(self, db, seed):
        await store.create_assignment(db, seed.sub2_id, seed.client_a, assigned_by=seed.super_id)

        result = await store.list_assignments(db)

        assert len(result.data) == 1
        row = result.data[0]
        assert row.admin_id == seed.sub2_id
        assert row.client_email == "a@client.com"
        assert row.client_company == "Acme"
        assert row.assigned_by == seed.super_id
        assert row.assigned_at is not None

    async def test_assignments_filtered_by_admin(self, db, seed):
        await store.create_assignment(db, seed.sub1_id, seed.client_a, assigned_by=None)
        await store.create_assignment(db, seed.sub2_id, seed.client_b, assigned_by=None)

        result = await store.list_assignments(db, seed.sub2_id)

        assert [r.client_user_id for r in result.data] == [seed.client_b]

    async def test_unassigned_clients(self, db, seed):
        await store.create_assignment(db, seed.sub1_id, seed.client_c, assigned_by=None)

        result = await store.list_unassigned_clients(db)

        assert [c.id for c in result.data] == [seed.client_a, seed.client_b, seed.client_d]


class TestCreate:
    async def test_second_row_for_same_client_is_duplicate(self, db, seed):
        first = await store.create_assignment(db, seed.sub1_id, seed.client_a, assigned_by=None)
        assert first.ok

        second = await store.create_assignment(db, seed.sub2_id, seed.client_a, assigned_by=None)

        assert isinstance(second.error, DuplicateAssignmentError)
        rows = (await store.list_assignments(db)).data
        assert [(r.admin_id, r.client_user_id) for r in rows] == [(seed.sub1_id, seed.client_a)]

    async def test_missing_client_is_not_found(self, db, seed):
        result = await store.create_assignment(db, seed.sub1_id, "ghost", assigned_by=None)

        assert isinstance(result.error, NotFoundError)
        assert not isinstance(result.error, DuplicateAssignmentError)

    async def test_deleting_an_admin_cascades_to_its_assignments(self, db, seed):
        from sqlalchemy import delete

        from contentops.models.admin import Admin

        await store.create_assignment(db, seed.sub1_id, seed.client_a, assigned_by=None)
        await db.execute(delete(Admin).where(Admin.id == seed.sub1_id))
        await db.commit()

        assert (await store.list_assignments(db)).data == []


class TestDelete:
    async def test_delete_existing(self, db, seed):
        created = await store.create_assignment(db, seed.sub1_id, seed.client_a, assigned_by=None)

        result = await store.delete_assignment(db, created.data.id)

        assert result.ok
        assert (await store.find_assignment_for_client(db, seed.client_a)).data is None

    async def test_delete_missing_row(self, db, seed):
        result = await store.delete_assignment(db, "does-not-exist")
        assert isinstance(result.error, AssignmentNotFoundError)


class TestTransportFailure:
    async def test_database_error_becomes_transport_error(self, db, seed, monkeypatch):
        async def boom(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(db, "execute", boom)

        result = await store.list_admins(db)

        assert not result.ok
        assert isinstance(result.error, TransportError)
        assert "database is locked" in result.error.details


class TestAdminEmails:
    async def test_orm_writes_store_lowercase(self, db):
        from contentops.models.admin import Admin

        admin = Admin(email="  MiXed@Example.COM ", role="sub_admin")
        db.add(admin)
        await db.commit()

        assert admin.email == "mixed@example.com"
        assert (await store.get_admin_by_email(db, "MIXED@example.com")).data.id == admin.id

    async def test_case_variant_of_existing_email_is_rejected(self, db, seed):
        from sqlalchemy import insert
        from sqlalchemy.exc import IntegrityError

        from contentops.models.admin import Admin

        # bypasses the ORM normalisation, like a row written by another service
        with pytest.raises(IntegrityError):
            await db.execute(
                insert(Admin.__table__).values(id="admin-dup", email="SUB1@X", role="sub_admin")
            )
        await db.rollback()

        result = await store.get_admin_by_email(db, "sub1@x")
        assert result.ok
        assert result.data.id == seed.sub1_id
