from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .activity.dispatcher import ActivityDispatcher
from .activity.memory_activity_repository import MemoryActivityLogRepository
from .activity.mysql_activity_repository import MySQLActivityLogRepository
from .activity.repository import ActivityLogRepository
from .attendance.memory_attendance_repository import MemoryAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceLedger
from .checkin.factory import CheckinStrategyFactory
from .checkin.service import CheckinService
from .common.datetime_utils import now_local
from .core.constants import DEFAULT_LATE_AFTER_MINUTES
from .core.exceptions import ValidationError
from .database.connection import DBConfig, DatabaseConnection
from .database.memory_base import MemoryDatabase
from .directory.memory_directory_repository import MemoryEnrollmentDirectory, MemoryUserDirectory
from .directory.mysql_directory_repository import MySQLEnrollmentDirectory, MySQLUserDirectory
from .directory.repository import EnrollmentDirectory, UserDirectory
from .sessions.memory_session_repository import MemorySessionRepository
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.service import SessionService
from .stats.service import StatsService
from .tokens.minter import TokenMinter


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    memory_db: Optional[MemoryDatabase]

    sessions_repo: SessionRepository
    attendance_repo: AttendanceLedger
    enrollment_repo: EnrollmentDirectory
    users_repo: UserDirectory
    activity_repo: ActivityLogRepository

    token_minter: TokenMinter
    checkin_service: CheckinService
    session_service: SessionService
    stats_service: StatsService
    activity: ActivityDispatcher


def build_container(
    *,
    db_config: Optional[dict] = None,
    backend: str = "mysql",
    memory_db: Optional[MemoryDatabase] = None,
    default_late_after_minutes: int = DEFAULT_LATE_AFTER_MINUTES,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    backend = (backend or "mysql").lower()
    conn: Optional[DatabaseConnection] = None

    if backend == "memory":
        memory_db = memory_db or MemoryDatabase()
        sessions_repo = MemorySessionRepository(memory_db)
        attendance_repo = MemoryAttendanceRepository(memory_db)
        enrollment_repo = MemoryEnrollmentDirectory(memory_db)
        users_repo = MemoryUserDirectory(memory_db)
        activity_repo = MemoryActivityLogRepository(memory_db)
    elif backend == "mysql":
        if not db_config:
            raise ValidationError("DB_CONFIG is required for the mysql backend")
        memory_db = None
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
        sessions_repo = MySQLSessionRepository(conn)
        attendance_repo = MySQLAttendanceRepository(conn)
        enrollment_repo = MySQLEnrollmentDirectory(conn)
        users_repo = MySQLUserDirectory(conn)
        activity_repo = MySQLActivityLogRepository(conn)
    else:
        raise ValidationError(f"Unknown STORAGE_BACKEND: {backend!r}")

    token_minter = TokenMinter(sessions_repo, clock=clock)
    checkin_service = CheckinService(
        sessions_repo,
        attendance_repo,
        enrollment_repo,
        factory=CheckinStrategyFactory(),
        clock=clock,
    )
    session_service = SessionService(
        sessions_repo,
        attendance_repo,
        enrollment_repo,
        users_repo,
        default_late_after_minutes=default_late_after_minutes,
    )
    stats_service = StatsService(sessions_repo, attendance_repo, enrollment_repo)

    return Container(
        conn=conn,
        memory_db=memory_db,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        enrollment_repo=enrollment_repo,
        users_repo=users_repo,
        activity_repo=activity_repo,
        token_minter=token_minter,
        checkin_service=checkin_service,
        session_service=session_service,
        stats_service=stats_service,
        activity=ActivityDispatcher(activity_repo),
    )
