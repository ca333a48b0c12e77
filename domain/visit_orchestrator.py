"""
Visit Orchestrator
The only component that changes a visit's status
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union
from uuid import UUID

import structlog

from domain.clock import utcnow
from domain.errors import (
    Conflict,
    Forbidden,
    InvalidInput,
    NoMatch,
    NotFound,
    ServiceUnavailable,
    StaleVisitStatus,
)
from domain.models.visit import Visit, VisitStatus
from domain.models.visitor import Visitor
from domain.roles import Actor
from domain.visit_state import (
    DECISION_STATES,
    INTENT_EDGES,
    Intent,
    can_decide,
    can_override_presence,
    ensure_transition,
    transition_patch,
)
from infrastructure.biometrics.client import BiometricGatewayClient, BiometricUnavailable
from infrastructure.biometrics.registration import RegistrationWorker
from infrastructure.database.visit_store import VisitStore
from infrastructure.database.visitor_store import VisitorStore

logger = structlog.get_logger(__name__)

# Minimum registry similarity (0-1) for a face match to move a visit.
MATCH_ACCEPTANCE_THRESHOLD = 0.9

_TRANSITION_EVENTS = {
    VisitStatus.APPROVED: "visit_approved",
    VisitStatus.REJECTED: "visit_rejected",
    VisitStatus.CHECKED_IN: "visit_checked_in",
    VisitStatus.CHECKED_OUT: "visit_checked_out",
}

_NO_ELIGIBLE_VISIT = {
    Intent.CHECK_IN: "No approved visit found for this visitor",
    Intent.CHECK_OUT: "No checked-in visit found for this visitor",
}


@dataclass(frozen=True)
class MatchOutcome:
    visitor: Visitor
    visit: Visit
    similarity: float


class VisitOrchestrator:
    """Approve, reject and check visitors in/out.

    Every status change goes through `_apply`, which writes conditioned on the
    status observed when the request was validated; a concurrent request that
    got there first turns this one into a Conflict.
    """

    def __init__(
        self,
        visits: VisitStore,
        visitors: VisitorStore,
        gateway: BiometricGatewayClient,
        registrar: Optional[RegistrationWorker] = None,
        match_timeout: float = 5.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.visits = visits
        self.visitors = visitors
        self.gateway = gateway
        self.registrar = registrar
        self.match_timeout = match_timeout
        self.clock = clock

    # === Human decisions ===

    async def approve(self, visit_id: UUID, actor: Actor) -> Visit:
        visit = await self._decide(visit_id, actor, VisitStatus.APPROVED, verb="approve")
        self._queue_registration(visit)
        return visit

    async def reject(self, visit_id: UUID, actor: Actor) -> Visit:
        return await self._decide(visit_id, actor, VisitStatus.REJECTED, verb="reject")

    async def _decide(self, visit_id: UUID, actor: Actor, target: VisitStatus, verb: str) -> Visit:
        visit = await self._load(visit_id)

        if not can_decide(actor, visit):
            logger.warning(
                "visit_decision_forbidden",
                visit_id=str(visit_id),
                actor_id=str(actor.id),
                role=actor.role.value,
                action=verb,
            )
            raise Forbidden(f"You do not have permission to {verb} this visit")

        updated = await self._apply(visit, target, actor_id=actor.id)
        logger.info(
            _TRANSITION_EVENTS[target],
            visit_id=str(visit_id),
            actor_id=str(actor.id),
            role=actor.role.value,
        )
        return updated

    def _queue_registration(self, visit: Visit) -> None:
        if self.registrar is None:
            return
        self.registrar.submit(visit.visitor_id)

    # === Manual override from the dashboard ===

    async def change_status(
        self,
        visit_id: UUID,
        actor: Actor,
        target: Union[VisitStatus, str],
    ) -> Visit:
        """Set a visit's status by hand.

        Approved/Rejected behave exactly like approve/reject. CheckedIn and
        CheckedOut need department access at Host level (or being the assigned
        host) and follow the same edges as the biometric path.
        """
        try:
            target = VisitStatus(target)
        except ValueError:
            raise InvalidInput(f"Unknown visit status: {target}")

        if target is VisitStatus.APPROVED:
            return await self.approve(visit_id, actor)
        if target is VisitStatus.REJECTED:
            return await self.reject(visit_id, actor)
        if target is VisitStatus.PENDING:
            raise InvalidInput("Cannot manually set status to Pending")

        visit = await self._load(visit_id)
        if not can_override_presence(actor, visit):
            raise Forbidden("You do not have access to modify this visit")

        updated = await self._apply(visit, target)
        if target is VisitStatus.CHECKED_IN:
            await self._refresh_last_visit(updated)

        logger.info(
            "visit_status_overridden",
            visit_id=str(visit_id),
            actor_id=str(actor.id),
            status=target.value,
        )
        return updated

    async def get_visit(self, visit_id: UUID, actor: Actor) -> Visit:
        visit = await self._load(visit_id)
        if not can_override_presence(actor, visit):
            raise Forbidden("You do not have access to this visit")
        return visit

    # === Biometric path ===

    async def process_match(self, image_base64: str, intent: Union[Intent, str]) -> MatchOutcome:
        """Check a visitor in or out from a kiosk photo.

        No human role is involved; an accepted registry match is the
        authorization. The registry call is bounded by `match_timeout` and is
        never retried, so a physical event is counted at most once.
        """
        try:
            intent = Intent(intent)
        except ValueError:
            raise InvalidInput("Invalid operation type")

        if not image_base64 or not image_base64.strip():
            raise InvalidInput("Image data is required")

        try:
            match = await asyncio.wait_for(self.gateway.recognize(image_base64), timeout=self.match_timeout)
        except asyncio.TimeoutError:
            logger.error("facematch_gateway_timeout", timeout=self.match_timeout, intent=intent.value)
            raise ServiceUnavailable()
        except BiometricUnavailable as e:
            logger.error("facematch_gateway_unavailable", error=str(e), intent=intent.value)
            raise ServiceUnavailable()

        if (
            not match.matched
            or not match.subject_id
            or match.similarity is None
            or match.similarity < MATCH_ACCEPTANCE_THRESHOLD
        ):
            logger.info(
                "facematch_no_match",
                matched=match.matched,
                similarity=match.similarity,
                intent=intent.value,
            )
            raise NoMatch()

        visitor = await self._resolve_visitor(match.subject_id)

        required, target = INTENT_EDGES[intent]
        visit = await self.visits.latest_for_visitor(visitor.id, required)
        if visit is None:
            raise NotFound(_NO_ELIGIBLE_VISIT[intent])

        updated = await self._apply(visit, target)
        if target is VisitStatus.CHECKED_IN:
            await self._refresh_last_visit(updated)

        logger.info(
            _TRANSITION_EVENTS[target],
            visit_id=str(updated.id),
            visitor_id=str(visitor.id),
            similarity=match.similarity,
        )
        return MatchOutcome(visitor=visitor, visit=updated, similarity=match.similarity)

    async def _resolve_visitor(self, subject_id: str) -> Visitor:
        try:
            visitor_id = UUID(str(subject_id))
        except ValueError:
            logger.warning("facematch_unknown_subject", subject_id=subject_id)
            raise NotFound("Visitor not found")

        visitor = await self.visitors.get(visitor_id)
        if visitor is None:
            raise NotFound("Visitor not found")
        return visitor

    # === Shared ===

    async def _load(self, visit_id: UUID) -> Visit:
        visit = await self.visits.load(visit_id)
        if visit is None:
            raise NotFound("Visit not found")
        return visit

    async def _apply(self, visit: Visit, target: VisitStatus, actor_id: Optional[UUID] = None) -> Visit:
        current = visit.current_status
        ensure_transition(current, target)

        patch = transition_patch(target, self.clock(), actor_id=actor_id)
        try:
            return await self.visits.conditional_update(visit.id, current, patch)
        except StaleVisitStatus:
            logger.info(
                "visit_transition_conflict",
                visit_id=str(visit.id),
                observed=current.value,
                target=target.value,
            )
            raise Conflict(
                "Visit is already processed"
                if target in DECISION_STATES
                else f"Visit is no longer {current.value}"
            )

    async def _refresh_last_visit(self, visit: Visit) -> None:
        """The check-in already happened; a failed refresh is only logged."""
        try:
            refreshed = await self.visitors.refresh_last_visit(visit.visitor_id, visit.check_in_timestamp)
        except Exception as e:
            logger.error("visitor_last_visit_refresh_failed", visitor_id=str(visit.visitor_id), error=str(e))
            return
        if not refreshed:
            logger.warning("visitor_last_visit_refresh_missed", visitor_id=str(visit.visitor_id))
