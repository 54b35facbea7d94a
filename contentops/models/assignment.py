# contentops/models/assignment.py
from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import relationship

from contentops.db.base import Base
from contentops.models.admin import new_id


class ClientAssignment(Base):
    __tablename__ = "admin_client_assignments"

    id = Column(String(36), primary_key=True, default=new_id)

    # Sub-admin responsible for the client
    admin_id = Column(
        String(36), ForeignKey("admins.id", ondelete="CASCADE"), nullable=False, index=True
    )

    client_user_id = Column(
        String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )

    assigned_at = Column(DateTime, server_default=func.now(), nullable=False)

    # Super-admin who created the row
    assigned_by = Column(
        String(36), ForeignKey("admins.id", ondelete="SET NULL"), nullable=True
    )

    admin = relationship("Admin", foreign_keys=[admin_id], lazy="raise")
    client = relationship("Client", foreign_keys=[client_user_id], lazy="raise")

    # One admin per client
    __table_args__ = (
        UniqueConstraint("client_user_id", name="uq_assignment_client"),
    )
