"""
Shared fixtures: a throwaway SQLite database, a seeded facility and a fake
face recognition registry.
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import pytest
import pytest_asyncio
from sqlmodel import SQLModel

import domain.models  # noqa: F401  registers tables
from domain.models import Department, Host, Visit, Visitor, VisitStatus
from domain.roles import Actor, Role
from domain.visit_orchestrator import VisitOrchestrator
from infrastructure.biometrics.client import BiometricUnavailable, MatchResult
from infrastructure.biometrics.registration import RegistrationWorker
from infrastructure.database import (
    VisitStore,
    VisitorStore,
    build_engine,
    build_session_maker,
)

BASE_TIME = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)
FACE_IMAGE = "data:image/jpeg;base64,/9j/4AAQSkZJRgABAQ"


class FakeGateway:
    """In-memory stand-in for the recognition registry"""

    def __init__(self):
        self.match = MatchResult(matched=False)
        self.unavailable = False
        self.fail_register = False
        self.delay = 0.0
        self.recognize_calls = 0
        self.registered: List[Tuple[str, str]] = []

    def will_match(self, visitor_id, similarity: float):
        self.match = MatchResult(matched=True, subject_id=str(visitor_id), similarity=similarity)

    async def recognize(self, image_base64: str) -> MatchResult:
        self.recognize_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.unavailable:
            raise BiometricUnavailable("registry down")
        return self.match

    async def register(self, subject_id: str, image_base64: str) -> None:
        if self.fail_register:
            raise BiometricUnavailable("registry down")
        self.registered.append((subject_id, image_base64))

    async def check_connection(self) -> bool:
        return not self.unavailable


@dataclass
class Facility:
    engineering: Department
    operations: Department
    host: Host              # assigned host of `visit`, engineering
    colleague: Host         # another engineering host
    eng_admin: Host
    ops_admin: Host
    ops_host: Host
    super_admin: Host
    visitor: Visitor
    visit: Visit            # Pending, engineering, hosted by `host`


def as_actor(host: Host) -> Actor:
    return Actor(id=host.id, role=Role(host.role), department_id=host.department_id)


async def add_all(session_maker, *objects):
    async with session_maker() as session:
        session.add_all(objects)
        await session.commit()
        for obj in objects:
            await session.refresh(obj)


async def load_visit(session_maker, visit_id) -> Optional[Visit]:
    async with session_maker() as session:
        return await session.get(Visit, visit_id)


def make_visit(
    facility: Facility,
    status: VisitStatus = VisitStatus.PENDING,
    submitted: datetime = BASE_TIME,
    visitor: Optional[Visitor] = None,
) -> Visit:
    """Build a visit whose optional fields agree with `status`"""
    visit = Visit(
        visitor_id=(visitor or facility.visitor).id,
        host_id=facility.host.id,
        department_id=facility.engineering.id,
        purpose_of_visit="Quarterly vendor review",
        status=status.value,
        submission_timestamp=submitted,
    )
    if status is not VisitStatus.PENDING:
        visit.approved_by = facility.host.id
        visit.approval_timestamp = submitted + timedelta(minutes=5)
    if status in (VisitStatus.CHECKED_IN, VisitStatus.CHECKED_OUT):
        visit.check_in_timestamp = submitted + timedelta(hours=1)
    if status is VisitStatus.CHECKED_OUT:
        visit.check_out_timestamp = submitted + timedelta(hours=2)
    return visit


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'visits.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield build_session_maker(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def facility(session_maker) -> Facility:
    engineering = Department(name="Engineering")
    operations = Department(name="Operations")
    await add_all(session_maker, engineering, operations)

    def host(email, role, department):
        return Host(
            email=email,
            full_name=email.split("@")[0].title(),
            role=role.value,
            department_id=department.id if department else None,
        )

    hosts = dict(
        host=host("priya@example.com", Role.HOST, engineering),
        colleague=host("marco@example.com", Role.HOST, engineering),
        eng_admin=host("eng.admin@example.com", Role.ADMIN, engineering),
        ops_admin=host("ops.admin@example.com", Role.ADMIN, operations),
        ops_host=host("lena@example.com", Role.HOST, operations),
        super_admin=host("root@example.com", Role.SUPER_ADMIN, None),
    )
    visitor = Visitor(full_name="Dana Whitfield", id_number="4821-7730-1290", image_base64=FACE_IMAGE)
    await add_all(session_maker, *hosts.values(), visitor)

    facility = Facility(
        engineering=engineering,
        operations=operations,
        visitor=visitor,
        visit=None,
        **hosts,
    )
    facility.visit = make_visit(facility)
    await add_all(session_maker, facility.visit)
    return facility


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def registrar(session_maker, gateway) -> RegistrationWorker:
    return RegistrationWorker(gateway=gateway, visitors=VisitorStore(session_maker), timeout=1.0)


@pytest.fixture
def orchestrator(session_maker, gateway, registrar) -> VisitOrchestrator:
    return VisitOrchestrator(
        visits=VisitStore(session_maker),
        visitors=VisitorStore(session_maker),
        gateway=gateway,
        registrar=registrar,
        match_timeout=0.5,
    )
