from datetime import datetime, timedelta

import pytest

from club_attendance.core.enums import NotificationType, RequestStatus, RequestType, Role
from club_attendance.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from club_attendance.requests.model import RequestFilter

REASON = "Family event out of town"


def _submit(world, user, day, *, now, reason=REASON, request_type=RequestType.LEAVE):
    return world.request_service.submit(
        actor=world.actor(user), request_type=request_type, request_date=day, reason=reason, now=now
    )


def test_submit_before_cutoff(world, fixed_now):
    core = world.users.add("Core Member", Role.CORE_TEAM)
    req = _submit(world, world.student, fixed_now.date(), now=fixed_now)

    assert req.status == RequestStatus.PENDING
    assert req.submitted_at == fixed_now
    assert [n.title for n in world.notifications.for_user(core.user_id)] == ["New Leave Request"]


def test_submit_after_cutoff_for_today_is_rejected(world, fixed_now):
    late = fixed_now.replace(hour=9, minute=30)
    with pytest.raises(ValidationError):
        _submit(world, world.student, fixed_now.date(), now=late)

    tomorrow = _submit(world, world.student, fixed_now.date() + timedelta(days=1), now=late)
    assert tomorrow.request_date == fixed_now.date() + timedelta(days=1)


def test_submit_validation(world, fixed_now):
    with pytest.raises(ValidationError):
        _submit(world, world.student, fixed_now.date(), now=fixed_now, reason="too short")
    with pytest.raises(ValidationError):
        _submit(world, world.student, fixed_now.date() - timedelta(days=1), now=fixed_now)


def test_one_request_per_date(world, fixed_now):
    _submit(world, world.student, fixed_now.date(), now=fixed_now)
    with pytest.raises(ConflictError):
        _submit(world, world.student, fixed_now.date(), now=fixed_now, request_type=RequestType.CLUB_DUTY)


def test_deadline_warning(world, fixed_now):
    assert world.request_service.deadline_warning(fixed_now.date(), now=fixed_now) == "60 minutes until 09:00 deadline"
    assert world.request_service.deadline_warning(fixed_now.date(), now=datetime(2026, 3, 2, 10, 0)) == "Deadline passed"


def test_approve_flow(world, fixed_now):
    req = _submit(world, world.student, fixed_now.date(), now=fixed_now)

    with pytest.raises(AuthorizationError):
        world.request_service.approve(actor=world.actor(world.student), request_id=req.request_id)

    approved = world.request_service.approve(actor=world.actor(world.teacher), request_id=req.request_id, now=fixed_now)
    assert approved.status == RequestStatus.APPROVED
    assert approved.decided_by == world.teacher.user_id
    assert any(n.type == NotificationType.REQUEST_APPROVED for n in world.notifications.for_user(world.student.user_id))

    with pytest.raises(ConflictError):
        world.request_service.approve(actor=world.actor(world.teacher), request_id=req.request_id)
    with pytest.raises(NotFoundError):
        world.request_service.approve(actor=world.actor(world.teacher), request_id=999)


def test_reject_needs_reason(world, fixed_now):
    req = _submit(world, world.student, fixed_now.date(), now=fixed_now)
    teacher = world.actor(world.teacher)

    with pytest.raises(ValidationError):
        world.request_service.reject(actor=teacher, request_id=req.request_id, reason="no")

    rejected = world.request_service.reject(actor=teacher, request_id=req.request_id, reason="Event is mandatory")
    assert rejected.status == RequestStatus.REJECTED
    assert rejected.rejection_reason == "Event is mandatory"


def test_bulk_approve_skips_decided(world, fixed_now):
    teacher = world.actor(world.teacher)
    first = _submit(world, world.student, fixed_now.date(), now=fixed_now)
    second = _submit(world, world.student, fixed_now.date() + timedelta(days=1), now=fixed_now)
    world.request_service.reject(actor=teacher, request_id=second.request_id, reason="Event is mandatory")

    updated = world.request_service.bulk_approve(
        actor=teacher, request_ids=[first.request_id, second.request_id], now=fixed_now
    )
    assert [r.request_id for r in updated] == [first.request_id]


def test_owner_can_edit_and_withdraw_pending(world, fixed_now):
    req = _submit(world, world.student, fixed_now.date() + timedelta(days=2), now=fixed_now)
    other = world.users.add("Student Two", Role.STUDENT)

    with pytest.raises(AuthorizationError):
        world.request_service.update(actor=world.actor(other), request_id=req.request_id, reason="Someone else's leave")

    updated = world.request_service.update(
        actor=world.actor(world.student),
        request_id=req.request_id,
        request_date=fixed_now.date() + timedelta(days=3),
        reason="Changed travel dates",
    )
    assert updated.request_date == fixed_now.date() + timedelta(days=3)
    assert updated.reason == "Changed travel dates"

    world.request_service.delete(actor=world.actor(world.student), request_id=req.request_id)
    assert world.requests.get_by_id(req.request_id) is None


def test_listing_and_stats(world, fixed_now):
    teacher = world.actor(world.teacher)
    a = _submit(world, world.student, fixed_now.date(), now=fixed_now)
    _submit(world, world.student, fixed_now.date() + timedelta(days=1), now=fixed_now)
    world.request_service.approve(actor=teacher, request_id=a.request_id, now=fixed_now)

    assert len(world.request_service.list_mine(actor=world.actor(world.student))) == 2
    assert len(world.request_service.list_pending(actor=teacher)) == 1
    page = world.request_service.list_all(actor=teacher, filters=RequestFilter(status=RequestStatus.APPROVED))
    assert page["total"] == 1
    assert world.request_service.stats(actor=teacher) == {"pending": 1, "approved": 1, "rejected": 0, "total": 2}
