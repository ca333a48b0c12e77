"""Visit model - one visitor's request to see one host"""
from enum import Enum
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field
from uuid import UUID, uuid4

from domain.clock import utcnow
from domain.models.types import UTCDateTime


class VisitStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CHECKED_IN = "CheckedIn"
    CHECKED_OUT = "CheckedOut"


class VisitBase(SQLModel):
    visitor_id: UUID = Field(foreign_key="visitors.id", index=True)
    host_id: UUID = Field(foreign_key="hosts.id", index=True)
    department_id: UUID = Field(foreign_key="departments.id", index=True)
    purpose_of_visit: str


class Visit(VisitBase, table=True):
    __tablename__ = "visits"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    status: str = Field(default=VisitStatus.PENDING.value, index=True)
    submission_timestamp: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)

    # Who approved or rejected, and when. Written once at the decision step.
    approved_by: Optional[UUID] = Field(foreign_key="hosts.id", default=None)
    approval_timestamp: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    check_in_timestamp: Optional[datetime] = Field(default=None, sa_type=UTCDateTime, index=True)
    check_out_timestamp: Optional[datetime] = Field(default=None, sa_type=UTCDateTime, index=True)

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    @property
    def current_status(self) -> VisitStatus:
        return VisitStatus(self.status)


class ApprovalRead(SQLModel):
    approved_by: UUID
    timestamp: datetime


class VisitRead(VisitBase):
    id: UUID
    status: VisitStatus
    submission_timestamp: datetime
    approval: Optional[ApprovalRead] = None
    check_in_timestamp: Optional[datetime] = None
    check_out_timestamp: Optional[datetime] = None

    @classmethod
    def from_visit(cls, visit: Visit) -> "VisitRead":
        approval = None
        if visit.approved_by is not None:
            approval = ApprovalRead(
                approved_by=visit.approved_by,
                timestamp=visit.approval_timestamp,
            )
        return cls(
            id=visit.id,
            status=visit.current_status,
            visitor_id=visit.visitor_id,
            host_id=visit.host_id,
            department_id=visit.department_id,
            purpose_of_visit=visit.purpose_of_visit,
            submission_timestamp=visit.submission_timestamp,
            approval=approval,
            check_in_timestamp=visit.check_in_timestamp,
            check_out_timestamp=visit.check_out_timestamp,
        )


class VisitStatusUpdate(SQLModel):
    status: VisitStatus
