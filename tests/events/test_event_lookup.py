from datetime import date, time, timedelta

import pytest

from club_attendance.core.enums import EventType
from club_attendance.core.exceptions import AuthorizationError, NotFoundError, ValidationError


@pytest.fixture
def events(world):
    teacher = world.teacher.user_id
    return {
        "fair": world.events.add("Robotics Fair", created_by=teacher, event_date=date(2026, 2, 10)),
        "workshop": world.events.add("Robotics Workshop", created_by=teacher, event_date=date(2026, 3, 5)),
        "old": world.events.add("Robotics Expo 2024", created_by=teacher, is_active=False),
    }


def test_short_queries_return_nothing(world, events):
    assert world.event_service.search("") == []
    assert world.event_service.search("R") == []


def test_search_matches_active_events_newest_first(world, events):
    found = world.event_service.search("robotics")

    assert [e.name for e in found] == ["Robotics Workshop", "Robotics Fair"]
    assert found[0].to_dict()["creator"] == "Teacher One"
    assert len(world.event_service.search("robotics", limit=1)) == 1


def test_only_staff_create_events(world):
    with pytest.raises(AuthorizationError):
        world.event_service.create(actor=world.actor(world.student), name="Hack night", event_date=date(2026, 4, 1))

    event = world.event_service.create(
        actor=world.actor(world.teacher),
        name=" Hack night ",
        event_date=date(2026, 4, 1),
        event_type=EventType.WORKSHOP,
        start_time=time(18, 0),
        end_time=time(21, 0),
    )
    assert event.name == "Hack night"
    assert event.to_dict()["start_time"] == "18:00"


def test_event_times_must_be_ordered(world):
    with pytest.raises(ValidationError):
        world.event_service.create(
            actor=world.actor(world.teacher),
            name="Backwards",
            event_date=date(2026, 4, 1),
            start_time=time(21, 0),
            end_time=time(18, 0),
        )


def test_duty_session_links_to_an_active_event(world, events, fixed_now):
    actor = world.actor(world.student)

    session = world.duty_service.start_session(actor=actor, event_id=events["workshop"].event_id, now=fixed_now)

    assert session.event_id == events["workshop"].event_id


@pytest.mark.parametrize("key", ["old", None])
def test_unknown_or_archived_event_is_rejected_at_start(world, events, fixed_now, key):
    event_id = events[key].event_id if key else 999
    with pytest.raises(NotFoundError):
        world.duty_service.start_session(actor=world.actor(world.student), event_id=event_id, now=fixed_now)

    assert world.sessions.get_active_for_user(world.student.user_id) is None


def test_update_session_validates_event(world, events, fixed_now):
    actor = world.actor(world.student)
    session = world.duty_service.start_session(actor=actor, now=fixed_now)

    with pytest.raises(NotFoundError):
        world.duty_service.update_session(actor=actor, session_id=session.session_id, notes="x", event_id=999)

    updated = world.duty_service.update_session(
        actor=actor, session_id=session.session_id, notes="stand", event_id=events["fair"].event_id
    )
    assert updated.event_id == events["fair"].event_id


def test_archived_event_drops_out_of_search(world, events):
    world.event_service.deactivate(actor=world.actor(world.teacher), event_id=events["fair"].event_id)

    assert [e.name for e in world.event_service.search("fair")] == []
