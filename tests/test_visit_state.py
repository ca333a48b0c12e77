"""
Tests for the visit transition graph and its guards.
"""
from datetime import datetime, timezone
from itertools import product
from uuid import uuid4

import pytest

from domain.errors import Conflict
from domain.models.visit import Visit, VisitStatus
from domain.roles import Actor, Role
from domain.visit_state import (
    INTENT_EDGES,
    Intent,
    can_decide,
    can_override_presence,
    can_transition,
    ensure_transition,
    transition_patch,
)

ALLOWED = {
    (VisitStatus.PENDING, VisitStatus.APPROVED),
    (VisitStatus.PENDING, VisitStatus.REJECTED),
    (VisitStatus.APPROVED, VisitStatus.CHECKED_IN),
    (VisitStatus.CHECKED_IN, VisitStatus.CHECKED_OUT),
}

ENG = uuid4()
OPS = uuid4()
NOW = datetime(2026, 3, 2, 10, 30, tzinfo=timezone.utc)


def _visit(host_id):
    return Visit(
        visitor_id=uuid4(),
        host_id=host_id,
        department_id=ENG,
        purpose_of_visit="Interview",
    )


class TestGraph:

    def test_only_four_edges_exist(self):
        for current, target in product(VisitStatus, VisitStatus):
            assert can_transition(current, target) is ((current, target) in ALLOWED)

    @pytest.mark.parametrize("terminal", [VisitStatus.REJECTED, VisitStatus.CHECKED_OUT])
    def test_terminal_states_have_no_exit(self, terminal):
        assert not any(can_transition(terminal, target) for target in VisitStatus)

    def test_reapplying_a_decision_conflicts(self):
        with pytest.raises(Conflict) as exc:
            ensure_transition(VisitStatus.APPROVED, VisitStatus.APPROVED)
        assert exc.value.message == "Visit is already processed"

    def test_skipping_approval_conflicts(self):
        with pytest.raises(Conflict) as exc:
            ensure_transition(VisitStatus.PENDING, VisitStatus.CHECKED_IN)
        assert exc.value.message == "Visit must be approved before check-in"

    def test_checkout_requires_checkin(self):
        with pytest.raises(Conflict) as exc:
            ensure_transition(VisitStatus.APPROVED, VisitStatus.CHECKED_OUT)
        assert exc.value.message == "Visit must be checked in before check-out"

    def test_nothing_returns_to_pending(self):
        with pytest.raises(Conflict) as exc:
            ensure_transition(VisitStatus.REJECTED, VisitStatus.PENDING)
        assert "Invalid transition" in exc.value.message

    def test_intent_contract(self):
        assert INTENT_EDGES[Intent.CHECK_IN] == (VisitStatus.APPROVED, VisitStatus.CHECKED_IN)
        assert INTENT_EDGES[Intent.CHECK_OUT] == (VisitStatus.CHECKED_IN, VisitStatus.CHECKED_OUT)
        assert Intent("CHECKIN") is Intent.CHECK_IN


class TestGuards:

    def test_assigned_host_decides_regardless_of_department(self):
        host = Actor(id=uuid4(), role=Role.HOST, department_id=OPS)
        assert can_decide(host, _visit(host.id))

    def test_other_host_cannot_decide(self):
        host = Actor(id=uuid4(), role=Role.HOST, department_id=ENG)
        assert not can_decide(host, _visit(uuid4()))

    def test_admin_scoped_to_department(self):
        visit = _visit(uuid4())
        assert can_decide(Actor(id=uuid4(), role=Role.ADMIN, department_id=ENG), visit)
        assert not can_decide(Actor(id=uuid4(), role=Role.ADMIN, department_id=OPS), visit)

    def test_super_admin_decides_anywhere(self):
        assert can_decide(Actor(id=uuid4(), role=Role.SUPER_ADMIN), _visit(uuid4()))

    def test_presence_override_needs_department_host(self):
        visit = _visit(uuid4())
        assert can_override_presence(Actor(id=uuid4(), role=Role.HOST, department_id=ENG), visit)
        assert not can_override_presence(Actor(id=uuid4(), role=Role.HOST, department_id=OPS), visit)


class TestPatch:

    def test_decision_records_actor(self):
        actor_id = uuid4()
        patch = transition_patch(VisitStatus.REJECTED, NOW, actor_id=actor_id)
        assert patch == {
            "status": "Rejected",
            "updated_at": NOW,
            "approved_by": actor_id,
            "approval_timestamp": NOW,
        }

    def test_decision_without_actor_is_a_bug(self):
        with pytest.raises(ValueError):
            transition_patch(VisitStatus.APPROVED, NOW)

    def test_check_in_and_out_stamp_their_own_field(self):
        assert transition_patch(VisitStatus.CHECKED_IN, NOW)["check_in_timestamp"] == NOW
        patch = transition_patch(VisitStatus.CHECKED_OUT, NOW)
        assert patch["check_out_timestamp"] == NOW
        assert "check_in_timestamp" not in patch
