#!/usr/bin/env python3
"""
Ensure an admin row exists for an e-mail with the given role.

- Safe to run multiple times (idempotent); an existing row keeps its id.
- Prints a short-lived bearer token for local testing with --token.

    python -m contentops.scripts.create_admin admin@example.com --role super_admin --token
"""
import argparse
import asyncio
import logging
import sys
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from contentops.core.config import ENABLE_CREATE_ALL
from contentops.core.security import create_access_token
from contentops.db.session import SessionLocal, create_all, engine
from contentops.models.admin import ADMIN_ROLES, SUPER_ADMIN, Admin, normalize_email

log = logging.getLogger("contentops.scripts.create_admin")


async def ensure_admin(
    db: AsyncSession, email: str, role: str, name: Optional[str] = None
) -> Admin:
    email = normalize_email(email)
    admin = (
        await db.execute(select(Admin).where(func.lower(Admin.email) == email))
    ).scalar_one_or_none()

    if admin:
        if admin.role != role:
            # roles are fixed at creation
            log.warning("admin %s already exists with role %s (requested %s)", email, admin.role, role)
        return admin

    admin = Admin(email=email, name=name or "Admin User", role=role)
    db.add(admin)
    await db.commit()
    await db.refresh(admin)
    return admin


async def _run(args: argparse.Namespace) -> int:
    if ENABLE_CREATE_ALL:
        await create_all()
    try:
        async with SessionLocal() as db:
            admin = await ensure_admin(db, args.email, args.role, args.name)
    finally:
        await engine.dispose()

    print(f"OK: admin ensured -> {admin.email} role={admin.role} (id={admin.id})")
    if args.token:
        print(create_access_token(admin.email))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create or look up an admin account.")
    parser.add_argument("email")
    parser.add_argument("--role", choices=sorted(ADMIN_ROLES), default=SUPER_ADMIN)
    parser.add_argument("--name", default=None)
    parser.add_argument("--token", action="store_true", help="print a bearer token for this admin")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    try:
        return asyncio.run(_run(args))
    except Exception as exc:
        print(f"Failed to create admin account: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
