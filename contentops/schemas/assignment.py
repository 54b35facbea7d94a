# contentops/schemas/assignment.py

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

# ---------- Create payload ----------


class AssignmentCreate(BaseModel):
    """Payload to assign a client to a sub-admin."""

    admin_id: str = Field(
        ..., min_length=1, description="ID of the sub-admin (must have role 'sub_admin')"
    )
    client_user_id: str = Field(
        ..., min_length=1, description="ID of the client to assign"
    )


# ---------- Read model ----------


class AssignmentOut(BaseModel):
    id: str
    admin_id: str
    client_user_id: str
    client_email: Optional[str] = None
    client_company: Optional[str] = None
    assigned_at: Optional[datetime] = None
    assigned_by: Optional[str] = None
