# contentops/models/admin.py
import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Index, String, func
from sqlalchemy.orm import validates

from contentops.db.base import Base

SUPER_ADMIN = "super_admin"
SUB_ADMIN = "sub_admin"
ADMIN_ROLES = {SUPER_ADMIN, SUB_ADMIN}


def new_id() -> str:
    return str(uuid.uuid4())


def normalize_email(email: str) -> str:
    return email.strip().lower()


class Admin(Base):
    __tablename__ = "admins"

    id = Column(String(36), primary_key=True, default=new_id)

    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)

    # Exactly one role per admin; role changes are not supported
    role = Column(String(20), nullable=False, default=SUB_ADMIN, index=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "role IN ('super_admin', 'sub_admin')", name="ck_admins_role"
        ),
        # one admin per e-mail regardless of case, also for rows written outside the ORM
        Index("uq_admins_email_lower", func.lower(email), unique=True),
    )

    @validates("email")
    def _normalize_email(self, key, value):
        return normalize_email(value) if value else value
