"""Visit persistence with status-conditioned writes"""
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from domain.errors import StaleVisitStatus
from domain.models.visit import Visit, VisitStatus


class VisitStore:
    """Reads visits and applies compare-and-set status updates.

    Every write is `UPDATE ... WHERE id = :id AND status = :expected`, so two
    racing transitions on the same visit cannot both land.
    """

    def __init__(self, session_maker: sessionmaker):
        self._session_maker = session_maker

    async def load(self, visit_id: UUID) -> Optional[Visit]:
        async with self._session_maker() as session:
            return await session.get(Visit, visit_id)

    async def latest_for_visitor(self, visitor_id: UUID, status: VisitStatus) -> Optional[Visit]:
        """Most recently submitted visit of `visitor_id` currently in `status`"""
        query = (
            select(Visit)
            .where(Visit.visitor_id == visitor_id, Visit.status == status.value)
            .order_by(Visit.submission_timestamp.desc())
            .limit(1)
        )
        async with self._session_maker() as session:
            result = await session.execute(query)
            return result.scalars().first()

    async def conditional_update(
        self,
        visit_id: UUID,
        expected_status: VisitStatus,
        patch: Dict[str, Any],
    ) -> Visit:
        """Apply `patch` only if the visit is still in `expected_status`.

        Raises StaleVisitStatus when the row is missing or its status moved.
        Returns the visit as stored after the write.
        """
        stmt = (
            update(Visit)
            .where(Visit.id == visit_id, Visit.status == expected_status.value)
            .values(**patch)
        )
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            if result.rowcount != 1:
                await session.rollback()
                raise StaleVisitStatus(visit_id, expected_status.value)
            await session.commit()

            visit = await session.get(Visit, visit_id, populate_existing=True)
            return visit
