from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.policy import DutyPolicy
from .database.connection import DBConfig, DatabaseConnection
from .duty.calculator.standard_calculator import StandardDutyCalculator
from .duty.factory import DutyRuleFactory
from .duty.mysql_duty_repository import MySQLDutySessionRepository
from .duty.mysql_hourly_log_repository import MySQLHourlyLogRepository
from .duty.service import DutySessionService, HourlyLogService
from .duty.state_machine import DutyStateMachine
from .events.mysql_event_repository import MySQLEventRepository
from .events.service import EventService
from .notifications.alerts import StrikeAlerts
from .notifications.mailer import Mailer, MailSettings
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.service import NotificationService
from .reports.service import ReportService
from .requests.mysql_request_repository import MySQLLeaveRequestRepository
from .requests.service import LeaveRequestService
from .strikes.mysql_strike_repository import MySQLStrikeRepository
from .strikes.service import StrikeService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    policy: DutyPolicy

    users_repo: MySQLUserRepository
    attendance_repo: MySQLAttendanceRepository
    sessions_repo: MySQLDutySessionRepository
    logs_repo: MySQLHourlyLogRepository
    strikes_repo: MySQLStrikeRepository
    requests_repo: MySQLLeaveRequestRepository
    notifications_repo: MySQLNotificationRepository
    events_repo: MySQLEventRepository

    duty_state: DutyStateMachine

    auth_service: AuthService
    user_service: UserService
    notification_service: NotificationService
    attendance_service: AttendanceService
    duty_session_service: DutySessionService
    hourly_log_service: HourlyLogService
    strike_service: StrikeService
    request_service: LeaveRequestService
    report_service: ReportService
    event_service: EventService


def build_container(*, db_config: dict, settings=None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    policy = DutyPolicy.from_settings(settings) if settings is not None else DutyPolicy()

    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    sessions_repo = MySQLDutySessionRepository(conn)
    logs_repo = MySQLHourlyLogRepository(conn)
    strikes_repo = MySQLStrikeRepository(conn)
    requests_repo = MySQLLeaveRequestRepository(conn)
    notifications_repo = MySQLNotificationRepository(conn)
    events_repo = MySQLEventRepository(conn)

    notification_service = NotificationService(notifications_repo, users_repo)

    mailer = Mailer(MailSettings.from_settings(settings)) if settings is not None else None
    alerts = StrikeAlerts(
        notification_service,
        users_repo,
        policy=policy,
        mailer=mailer,
        email_enabled=bool(getattr(settings, "STRIKE_EMAIL_ENABLED", True)),
    )

    calculator = StandardDutyCalculator()
    duty_state = DutyStateMachine(
        tx=conn,
        users=users_repo,
        sessions=sessions_repo,
        logs=logs_repo,
        attendance=attendance_repo,
        strikes=strikes_repo,
        events=events_repo,
        policy=policy,
        calculator=calculator,
        rule_factory=DutyRuleFactory(),
        listener=alerts,
    )

    auth_service = AuthService(users_repo)
    user_service = UserService(users_repo)
    attendance_service = AttendanceService(
        duty_state,
        attendance_repo,
        users_repo,
        sessions_repo,
        logs_repo,
        notifications=notification_service,
    )
    duty_session_service = DutySessionService(
        duty_state, sessions_repo, logs_repo, events_repo, notifications=notification_service
    )
    hourly_log_service = HourlyLogService(duty_state, sessions_repo, logs_repo)
    strike_service = StrikeService(duty_state, strikes_repo, users_repo)
    request_service = LeaveRequestService(
        requests_repo, conn, policy=policy, notifications=notification_service
    )
    report_service = ReportService(
        attendance_repo, sessions_repo, strikes_repo, policy=policy, calculator=calculator
    )
    event_service = EventService(events_repo)

    return Container(
        conn=conn,
        policy=policy,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        sessions_repo=sessions_repo,
        logs_repo=logs_repo,
        strikes_repo=strikes_repo,
        requests_repo=requests_repo,
        notifications_repo=notifications_repo,
        events_repo=events_repo,
        duty_state=duty_state,
        auth_service=auth_service,
        user_service=user_service,
        notification_service=notification_service,
        attendance_service=attendance_service,
        duty_session_service=duty_session_service,
        hourly_log_service=hourly_log_service,
        strike_service=strike_service,
        request_service=request_service,
        report_service=report_service,
        event_service=event_service,
    )
