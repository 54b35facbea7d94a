# contentops/services/bulk_planner.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Tuple, Union, assert_never

from contentops.core.errors import (
    MissingSourceError,
    MissingTargetError,
    NoSelectionError,
    SameAdminError,
    ValidationError,
)
from contentops.schemas.admin import AdminOut
from contentops.schemas.bulk import (
    AssignIntent,
    BulkIntent,
    TransferIntent,
    UnassignIntent,
)

UNKNOWN_ADMIN = "unknown admin"


@dataclass(frozen=True)
class Plan:
    intent: BulkIntent
    client_ids: Tuple[str, ...]
    description: str

    @property
    def operation(self) -> str:
        return self.intent.type


def _unique(ids: Iterable[str]) -> Tuple[str, ...]:
    seen = set()
    out = []
    for cid in ids:
        if cid and cid not in seen:
            seen.add(cid)
            out.append(cid)
    return tuple(out)


def _clients(n: int) -> str:
    return f"{n} client{'s' if n != 1 else ''}"


def _email(emails: Mapping[str, str], admin_id: Optional[str]) -> str:
    if admin_id and admin_id in emails:
        return emails[admin_id]
    return f"{UNKNOWN_ADMIN} ({admin_id})" if admin_id else UNKNOWN_ADMIN


def validate(intent: BulkIntent, client_ids: Tuple[str, ...]) -> Optional[ValidationError]:
    if not client_ids:
        return NoSelectionError()

    if isinstance(intent, AssignIntent):
        if not intent.to_admin:
            return MissingTargetError("Please select a sub-admin to assign clients to.")
    elif isinstance(intent, UnassignIntent):
        if not intent.from_admin:
            return MissingSourceError()
    elif isinstance(intent, TransferIntent):
        if not intent.from_admin:
            return MissingSourceError()
        if not intent.to_admin:
            return MissingTargetError()
        if intent.to_admin == intent.from_admin:
            return SameAdminError()
    else:
        assert_never(intent)
    return None


def describe(intent: BulkIntent, client_count: int, emails: Mapping[str, str]) -> str:
    count = _clients(client_count)
    if isinstance(intent, AssignIntent):
        return f"Assign {count} to {_email(emails, intent.to_admin)}"
    elif isinstance(intent, UnassignIntent):
        return f"Unassign {count} from {_email(emails, intent.from_admin)}"
    elif isinstance(intent, TransferIntent):
        return (
            f"Transfer {count} from {_email(emails, intent.from_admin)}"
            f" to {_email(emails, intent.to_admin)}"
        )
    else:
        assert_never(intent)


def plan(intent: BulkIntent, admins: Iterable[AdminOut] = ()) -> Union[Plan, ValidationError]:
    """
    Validate a bulk intent and build its preview.

    Checks run in a fixed order (selection, target/source, same admin) and
    the first failure is returned, not raised. Repeated client ids collapse
    to their first occurrence. Pure: safe to call on every preview render.
    """
    client_ids = _unique(intent.client_ids)
    error = validate(intent, client_ids)
    if error is not None:
        return error

    emails = {a.id: a.email for a in admins}
    return Plan(
        intent=intent,
        client_ids=client_ids,
        description=describe(intent, len(client_ids), emails),
    )
