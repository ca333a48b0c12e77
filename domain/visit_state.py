"""Visit lifecycle: allowed edges, guards and the fields each edge writes.

    Pending -> Approved -> CheckedIn -> CheckedOut
    Pending -> Rejected

Rejected and CheckedOut are terminal. Nothing here touches storage; the
orchestrator applies the patch with a write conditioned on the pre-state.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple
from uuid import UUID

from domain.errors import Conflict
from domain.models.visit import Visit, VisitStatus
from domain.roles import Actor, Role, can_access

TRANSITIONS: Dict[VisitStatus, FrozenSet[VisitStatus]] = {
    VisitStatus.PENDING: frozenset({VisitStatus.APPROVED, VisitStatus.REJECTED}),
    VisitStatus.APPROVED: frozenset({VisitStatus.CHECKED_IN}),
    VisitStatus.CHECKED_IN: frozenset({VisitStatus.CHECKED_OUT}),
    VisitStatus.REJECTED: frozenset(),
    VisitStatus.CHECKED_OUT: frozenset(),
}

DECISION_STATES = frozenset({VisitStatus.APPROVED, VisitStatus.REJECTED})


class Intent(str, Enum):
    """What a kiosk photo asks for"""
    CHECK_IN = "CHECKIN"
    CHECK_OUT = "CHECKOUT"


# intent -> (required current status, resulting status)
INTENT_EDGES: Dict[Intent, Tuple[VisitStatus, VisitStatus]] = {
    Intent.CHECK_IN: (VisitStatus.APPROVED, VisitStatus.CHECKED_IN),
    Intent.CHECK_OUT: (VisitStatus.CHECKED_IN, VisitStatus.CHECKED_OUT),
}


def can_transition(current: VisitStatus, target: VisitStatus) -> bool:
    return target in TRANSITIONS[current]


def conflict_message(current: VisitStatus, target: VisitStatus) -> str:
    if target in DECISION_STATES:
        return "Visit is already processed"
    if target is VisitStatus.CHECKED_IN:
        return "Visit must be approved before check-in"
    if target is VisitStatus.CHECKED_OUT:
        return "Visit must be checked in before check-out"
    return f"Invalid transition from {current.value} to {target.value}"


def ensure_transition(current: VisitStatus, target: VisitStatus) -> None:
    """Raise Conflict unless current -> target is an edge of the graph."""
    if not can_transition(current, target):
        raise Conflict(conflict_message(current, target))


def can_decide(actor: Actor, visit: Visit) -> bool:
    """Approve/reject guard.

    The assigned host may always decide on their own visit. Anyone else needs
    Admin or above, scoped to the visit's department.
    """
    if actor.id == visit.host_id:
        return True
    return can_access(actor.role, actor.department_id, visit.department_id, Role.ADMIN)


def can_override_presence(actor: Actor, visit: Visit) -> bool:
    """Guard for manual check-in/check-out from the dashboard."""
    if actor.id == visit.host_id:
        return True
    return can_access(actor.role, actor.department_id, visit.department_id, Role.HOST)


def transition_patch(
    target: VisitStatus,
    now: datetime,
    actor_id: Optional[UUID] = None,
) -> Dict[str, Any]:
    """Column values written together with the new status."""
    patch: Dict[str, Any] = {"status": target.value, "updated_at": now}

    if target in DECISION_STATES:
        if actor_id is None:
            raise ValueError(f"{target.value} requires the deciding actor")
        patch["approved_by"] = actor_id
        patch["approval_timestamp"] = now
    elif target is VisitStatus.CHECKED_IN:
        patch["check_in_timestamp"] = now
    elif target is VisitStatus.CHECKED_OUT:
        patch["check_out_timestamp"] = now

    return patch
