from dataclasses import replace

import pytest
from werkzeug.security import check_password_hash

from club_attendance.core.enums import Role
from club_attendance.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ValidationError,
)
from club_attendance.users.service import AuthService, UserService


def test_auth_wrong_password_raises(world):
    auth = AuthService(world.users)

    with pytest.raises(AuthenticationError):
        auth.authenticate(world.student.email, "wrong")


def test_auth_is_case_insensitive_on_email(world):
    actor = AuthService(world.users).authenticate("  USER1@club.local ", "secret123")

    assert actor.user_id == world.student.user_id
    assert actor.role == Role.STUDENT


def test_inactive_user_cannot_log_in(world):
    ghost = world.users.add("Gone", Role.STUDENT, is_active=False)

    with pytest.raises(AuthenticationError):
        AuthService(world.users).authenticate(ghost.email, "secret123")


def test_placeholder_hash_is_rejected_not_crashing(world):
    legacy = world.users.add("Legacy", Role.STUDENT, email="legacy@club.local")
    world.users._users[legacy.user_id] = replace(legacy, password_hash="CHANGE_ME")

    with pytest.raises(AuthenticationError):
        AuthService(world.users).authenticate("legacy@club.local", "CHANGE_ME")


def test_teacher_creates_student_account(world):
    svc = UserService(world.users)

    user_id = svc.create_account(
        actor=world.actor(world.teacher),
        full_name="New Member",
        email="New@Club.local",
        password="hunter22",
        role=Role.STUDENT,
        student_code=" STU-9 ",
    )

    user = svc.get_profile(user_id)
    assert user.email == "new@club.local"
    assert user.student_code == "STU-9"
    assert check_password_hash(user.password_hash, "hunter22")


def test_student_cannot_create_accounts(world):
    with pytest.raises(AuthorizationError):
        UserService(world.users).create_account(
            actor=world.actor(world.student),
            full_name="X",
            email="x@club.local",
            password="hunter22",
            role=Role.STUDENT,
        )


@pytest.mark.parametrize(
    "email,password",
    [("not-an-email", "hunter22"), ("ok@club.local", "short")],
)
def test_create_account_validates_input(world, email, password):
    with pytest.raises(ValidationError):
        UserService(world.users).create_account(
            actor=world.actor(world.teacher),
            full_name="X",
            email=email,
            password=password,
            role=Role.STUDENT,
        )


def test_duplicate_email_conflicts(world):
    with pytest.raises(ConflictError):
        UserService(world.users).create_account(
            actor=world.actor(world.teacher),
            full_name="Copy",
            email=world.student.email,
            password="hunter22",
            role=Role.STUDENT,
        )


def test_students_only_see_their_own_profile(world):
    svc = UserService(world.users)

    assert svc.get_visible_profile(actor=world.actor(world.student), user_id=world.student.user_id)
    with pytest.raises(AuthorizationError):
        svc.get_visible_profile(actor=world.actor(world.student), user_id=world.teacher.user_id)


def test_list_users_filters_by_role(world):
    users = UserService(world.users).list_users(actor=world.actor(world.teacher), role=Role.TEACHER)

    assert [u.user_id for u in users] == [world.teacher.user_id]
