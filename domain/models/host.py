"""Host model - staff who receive visitors (Host, Admin, SuperAdmin)"""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from uuid import UUID, uuid4

from domain.clock import utcnow
from domain.models.types import UTCDateTime


class HostBase(SQLModel):
    email: str = Field(index=True, unique=True)
    full_name: str
    role: str = Field(default="Host")  # Host, Admin, SuperAdmin
    department_id: Optional[UUID] = Field(foreign_key="departments.id", index=True, default=None)


class Host(HostBase, table=True):
    __tablename__ = "hosts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
