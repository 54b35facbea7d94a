# contentops/schemas/bulk.py
"""
Bulk operation intents and their HTTP read models.

An intent is one of three closed variants discriminated on ``type``. Admin
fields are optional here; a missing source or target is reported by the
planner with its own error type.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, RootModel

OperationType = Literal["assign", "unassign", "transfer"]

# ---------- Intents ----------


class AssignIntent(BaseModel):
    type: Literal["assign"] = "assign"
    client_ids: List[str] = Field(default_factory=list)
    to_admin: Optional[str] = None


class UnassignIntent(BaseModel):
    type: Literal["unassign"] = "unassign"
    client_ids: List[str] = Field(default_factory=list)
    from_admin: Optional[str] = None


class TransferIntent(BaseModel):
    type: Literal["transfer"] = "transfer"
    client_ids: List[str] = Field(default_factory=list)
    from_admin: Optional[str] = None
    to_admin: Optional[str] = None


BulkIntent = Annotated[
    Union[AssignIntent, UnassignIntent, TransferIntent],
    Field(discriminator="type"),
]


class BulkIntentIn(RootModel[BulkIntent]):
    """Request body wrapper so FastAPI validates the discriminated union."""


# ---------- Read models ----------


class BulkPreviewOut(BaseModel):
    operation: OperationType
    client_ids: List[str]
    client_count: int
    description: str


class ItemErrorOut(BaseModel):
    client_id: str
    type: str
    message: str


class BulkResultOut(BaseModel):
    operation: OperationType
    description: str
    success_count: int
    failure_count: int
    succeeded: List[str] = Field(default_factory=list)
    errors: List[ItemErrorOut] = Field(default_factory=list)
    summary: str
