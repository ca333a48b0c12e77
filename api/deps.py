"""Shared request dependencies: caller identity, id parsing, orchestrator lookup"""
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from domain.errors import Forbidden, InvalidInput, Unauthenticated
from domain.models import Host
from domain.roles import Actor, Role
from domain.visit_orchestrator import VisitOrchestrator
from infrastructure.database import get_session


def parse_id(value: str, label: str = "visit") -> UUID:
    """Path ids arrive as strings so malformed ones map to 400, not 422"""
    try:
        return UUID(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid {label} ID")


async def get_current_actor(
    x_host_id: Optional[str] = Header(None, description="Authenticated host ID (set by the session layer)"),
    session: AsyncSession = Depends(get_session),
) -> Actor:
    """Resolve the calling host; any doubt about identity is a 401"""
    if not x_host_id:
        raise Unauthenticated()

    try:
        host_id = UUID(x_host_id)
    except ValueError:
        raise Unauthenticated()

    host = await session.get(Host, host_id)
    if host is None:
        raise Unauthenticated()

    role = Role.parse(host.role)
    if role is None:
        raise Forbidden(f"Unknown role: {host.role}")

    return Actor(id=host.id, role=role, department_id=host.department_id)


def get_orchestrator(request: Request) -> VisitOrchestrator:
    return request.app.state.orchestrator
