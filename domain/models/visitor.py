"""Visitor model"""
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from uuid import UUID, uuid4

from domain.clock import utcnow
from domain.models.types import UTCDateTime


class VisitorBase(SQLModel):
    full_name: str
    id_number: str = Field(index=True, unique=True)  # national ID / Aadhaar
    image_base64: Optional[str] = None  # reference face image for biometric registration
    first_visit: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    last_visit: Optional[datetime] = Field(default=None, sa_type=UTCDateTime, index=True)


class Visitor(VisitorBase, table=True):
    __tablename__ = "visitors"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class VisitorSummary(SQLModel):
    """Visitor block returned by the facematch endpoint"""
    id: UUID
    full_name: str
    image_base64: Optional[str] = None
