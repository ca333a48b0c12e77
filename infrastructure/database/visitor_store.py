"""Visitor lookups needed by check-in and biometric registration"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from domain.clock import utcnow
from domain.models.visitor import Visitor


class VisitorStore:
    def __init__(self, session_maker: sessionmaker):
        self._session_maker = session_maker

    async def get(self, visitor_id: UUID) -> Optional[Visitor]:
        async with self._session_maker() as session:
            return await session.get(Visitor, visitor_id)

    async def refresh_last_visit(self, visitor_id: UUID, when: Optional[datetime] = None) -> bool:
        """Stamp the visitor's last visit. Returns False if the visitor is gone."""
        when = when or utcnow()
        stmt = (
            update(Visitor)
            .where(Visitor.id == visitor_id)
            .values(last_visit=when, updated_at=when)
        )
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount == 1

    async def get_reference_image(self, visitor_id: UUID) -> Optional[str]:
        query = select(Visitor.image_base64).where(Visitor.id == visitor_id)
        async with self._session_maker() as session:
            result = await session.execute(query)
            return result.scalar_one_or_none()
