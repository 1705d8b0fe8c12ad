from datetime import timedelta

import pytest

from club_attendance.core.enums import NotificationType, Role, StrikeReason
from club_attendance.core.exceptions import NotFoundError
from club_attendance.notifications.alerts import StrikeAlerts
from club_attendance.notifications.mailer import Mailer, MailSettings


class RecordingMailer:
    enabled = True
    staff_recipients = ("teacher@club.local",)

    def __init__(self):
        self.sent = []

    def send(self, *, to, subject, text, html=None):
        self.sent.append((tuple(to), subject))
        return True


class ExplodingMailer(RecordingMailer):
    def send(self, *, to, subject, text, html=None):
        raise RuntimeError("smtp down")


def _alerts(world, mailer, **kwargs):
    return StrikeAlerts(world.notification_service, world.users, policy=world.policy, mailer=mailer, **kwargs)


def test_suspension_notifies_member_and_staff(world, fixed_now):
    mailer = RecordingMailer()
    core = world.users.add("Core Member", Role.CORE_TEAM)
    world.state.set_listener(_alerts(world, mailer))

    world.seed_strikes(world.student, 5, now=fixed_now)

    student_types = [n.type for n in world.notifications.for_user(world.student.user_id)]
    assert NotificationType.SUSPENSION in student_types
    assert [n.type for n in world.notifications.for_user(core.user_id)] == [NotificationType.SUSPENSION]
    assert [n.type for n in world.notifications.for_user(world.teacher.user_id)] == [NotificationType.SUSPENSION]
    assert ((world.student.email,), "Account Suspended - Club Attendance System") in mailer.sent
    assert any(to == ("teacher@club.local",) for to, _ in mailer.sent)


def test_email_can_be_switched_off(world, fixed_now):
    mailer = RecordingMailer()
    world.state.set_listener(_alerts(world, mailer, email_enabled=False))

    world.seed_strikes(world.student, 3, now=fixed_now)

    assert mailer.sent == []
    assert [n.type for n in world.notifications.for_user(world.student.user_id)] == [NotificationType.STRIKE_WARNING]


def test_mail_failure_never_reaches_the_caller(world, fixed_now):
    world.state.set_listener(_alerts(world, ExplodingMailer()))

    level = world.seed_strikes(world.student, 3, now=fixed_now)

    assert level.value == "warning"
    assert world.users.get_by_id(world.student.user_id).strike_count == 3


def test_resolution_notice(world, fixed_now):
    world.state.set_listener(_alerts(world, None))
    strike = world.state.record_strike(user_id=world.student.user_id, reason=StrikeReason.OTHER, now=fixed_now)

    world.strike_service.resolve(actor=world.actor(world.teacher), strike_id=strike.strike_id, now=fixed_now)

    notices = world.notifications.for_user(world.student.user_id)
    assert [n.type for n in notices] == [NotificationType.STRIKE_RESOLVED]
    assert notices[0].data["active_strikes"] == 0


def test_disabled_mailer_skips_smtp():
    mailer = Mailer(MailSettings(host=""))
    assert mailer.enabled is False
    assert mailer.send(to=["a@club.local"], subject="s", text="t") is False


def test_mark_read_and_counts(world, fixed_now):
    actor = world.actor(world.student)
    nid = world.notification_service.send(
        world.student.user_id, NotificationType.GENERIC, "Hello", "Welcome to the club", now=fixed_now
    )
    world.notification_service.send(world.student.user_id, NotificationType.GENERIC, "Again", "Second", now=fixed_now)

    assert world.notification_service.unread_count(actor=actor) == 2
    world.notification_service.mark_read(actor=actor, notification_id=nid, now=fixed_now + timedelta(minutes=1))
    assert world.notification_service.unread_count(actor=actor) == 1

    page = world.notification_service.list_for_user(actor=actor, unread_only=True)
    assert [n.title for n in page["items"]] == ["Again"]

    with pytest.raises(NotFoundError):
        world.notification_service.mark_read(actor=world.actor(world.teacher), notification_id=nid)

    assert world.notification_service.mark_all_read(actor=actor) == 1
