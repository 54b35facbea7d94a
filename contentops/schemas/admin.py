# contentops/schemas/admin.py

from pydantic import BaseModel
from typing import List, Optional

# ---------- Read models ----------


class AdminOut(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str
    assigned_clients_count: int = 0

    class Config:
        from_attributes = True


class ClientOut(BaseModel):
    id: str
    email: str
    company: Optional[str] = None

    class Config:
        from_attributes = True


# ---------- Access ----------


class AccessOut(BaseModel):
    """What the current identity may see. `visible_client_ids` is null for super-admins (no bound)."""

    email: Optional[str] = None
    is_admin: bool
    role: Optional[str] = None
    admin_id: Optional[str] = None
    visible_client_ids: Optional[List[str]] = None


class RegistrySummaryOut(BaseModel):
    admins: int
    sub_admins: int
    assignments: int
    unassigned_clients: int
