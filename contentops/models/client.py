# contentops/models/client.py
from sqlalchemy import Column, DateTime, String, func

from contentops.db.base import Base
from contentops.models.admin import new_id


class Client(Base):
    """End-user/company identity. Rows are created by the identity service."""

    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=new_id)

    email = Column(String(255), unique=True, index=True, nullable=False)
    company = Column(String(255), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
