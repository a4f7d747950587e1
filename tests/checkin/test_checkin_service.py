from __future__ import annotations

import threading
from datetime import datetime, timedelta

import pytest

from classroom_attendance.attendance.model import UpsertOutcome
from classroom_attendance.checkin.service import CheckinService
from classroom_attendance.core.enums import ActivityAction, AttendanceStatus
from classroom_attendance.core.exceptions import (
    NotEnrolled,
    TokenExpired,
    TokenInvalid,
    TransientStorageError,
    ValidationError,
)
from classroom_attendance.sessions.model import RosterEntry


def test_validate_previews_without_writing(container, open_session, fixed_now):
    session_id, token = open_session(roster=[])

    p = container.checkin_service.validate(token, now=fixed_now)

    assert p.session_id == session_id
    assert p.status == AttendanceStatus.PRESENT
    assert p.late_threshold == datetime(2025, 9, 1, 8, 15)
    assert p.expires_at == fixed_now + timedelta(minutes=60)
    assert container.attendance_repo.list_by_session(session_id) == []


def test_validate_previews_late_after_threshold(container, open_session):
    _, token = open_session()

    p = container.checkin_service.validate(token, now=datetime(2025, 9, 1, 8, 15, 1))

    assert p.status == AttendanceStatus.LATE


def test_checkin_marks_present_and_emits_event(container, open_session, fixed_now):
    session_id, token = open_session(roster=[])

    result = container.checkin_service.checkin(token, 2, now=fixed_now)

    assert result.status == AttendanceStatus.PRESENT
    assert result.already_marked is False
    assert [e.action for e in result.events] == [ActivityAction.CHECKIN]
    assert container.attendance_repo.get(session_id=session_id, student_id=2).status == AttendanceStatus.PRESENT


def test_repeated_checkin_is_idempotent(container, open_session, fixed_now):
    session_id, token = open_session(roster=[])

    first = container.checkin_service.checkin(token, 2, now=fixed_now)
    second = container.checkin_service.checkin(token, 2, now=fixed_now + timedelta(minutes=1))

    assert first.already_marked is False
    assert second.already_marked is True
    assert second.status == AttendanceStatus.PRESENT
    assert second.events == []
    assert len(container.attendance_repo.list_by_session(session_id)) == 1


def test_late_row_is_not_overwritten(container, open_session):
    session_id, token = open_session(roster=[])

    container.checkin_service.checkin(token, 2, now=datetime(2025, 9, 1, 8, 30))
    again = container.checkin_service.checkin(token, 2, now=datetime(2025, 9, 1, 8, 0))

    assert again.already_marked is True
    assert again.status == AttendanceStatus.LATE
    assert container.attendance_repo.get(session_id=session_id, student_id=2).status == AttendanceStatus.LATE


def test_absent_row_is_upgraded(container, open_session):
    # default roster seeds every enrolled student as absent
    session_id, token = open_session()
    assert container.attendance_repo.get(session_id=session_id, student_id=3).status == AttendanceStatus.ABSENT

    result = container.checkin_service.checkin(token, 3, now=datetime(2025, 9, 1, 8, 20))

    assert result.already_marked is False
    assert result.status == AttendanceStatus.LATE
    assert container.attendance_repo.get(session_id=session_id, student_id=3).status == AttendanceStatus.LATE


def test_excused_row_is_untouched(container, open_session, fixed_now):
    session_id, token = open_session(roster=[RosterEntry(student_id=4, status=AttendanceStatus.EXCUSED)])

    result = container.checkin_service.checkin(token, 4, now=fixed_now)

    assert result.already_marked is True
    assert result.status == AttendanceStatus.EXCUSED
    assert container.attendance_repo.get(session_id=session_id, student_id=4).status == AttendanceStatus.EXCUSED


def test_not_enrolled_is_rejected(container, open_session, fixed_now):
    session_id, token = open_session(roster=[])

    with pytest.raises(NotEnrolled):
        container.checkin_service.checkin(token, 99, now=fixed_now)
    assert container.attendance_repo.list_by_session(session_id) == []


def test_unknown_token_is_invalid(container, fixed_now):
    with pytest.raises(TokenInvalid):
        container.checkin_service.validate("nope", now=fixed_now)
    with pytest.raises(TokenInvalid):
        container.checkin_service.checkin("nope", 2, now=fixed_now)


def test_empty_token_is_a_validation_error(container, fixed_now):
    with pytest.raises(ValidationError):
        container.checkin_service.checkin("  ", 2, now=fixed_now)


def test_expired_token(container, open_session, fixed_now):
    _, token = open_session()
    expires_at = fixed_now + timedelta(minutes=60)

    # expiry instant itself is still valid
    container.checkin_service.validate(token, now=expires_at)
    with pytest.raises(TokenExpired):
        container.checkin_service.validate(token, now=expires_at + timedelta(seconds=1))
    with pytest.raises(TokenExpired):
        container.checkin_service.checkin(token, 2, now=expires_at + timedelta(seconds=1))


def test_remint_revokes_previous_token(container, open_session, fixed_now):
    session_id, old = open_session(roster=[])

    new = container.token_minter.mint(
        session_id=session_id, validity_minutes=60, late_after_minutes=15, now=fixed_now
    ).token

    with pytest.raises(TokenInvalid):
        container.checkin_service.checkin(old, 2, now=fixed_now)
    assert container.checkin_service.checkin(new, 2, now=fixed_now).status == AttendanceStatus.PRESENT


def test_late_policy_is_read_at_checkin_time(container, open_session):
    session_id, _ = open_session(roster=[])
    token = container.token_minter.mint(
        session_id=session_id, validity_minutes=120, late_after_minutes=45, now=datetime(2025, 9, 1, 7, 55)
    ).token

    result = container.checkin_service.checkin(token, 2, now=datetime(2025, 9, 1, 8, 40))

    assert result.status == AttendanceStatus.PRESENT


def test_replaced_start_time_applies_to_next_checkin(container, open_session):
    session_id, token = open_session()
    container.session_service.replace_session(
        subject_id=1, session_id=session_id, session_date="2025-09-01", session_time="09:00", is_visible=True
    )

    # token survives the override; classification uses the session as read by this request
    result = container.checkin_service.checkin(token, 2, now=datetime(2025, 9, 1, 8, 40))

    assert result.status == AttendanceStatus.PRESENT


def test_concurrent_checkins_write_once(container, open_session, fixed_now):
    session_id, token = open_session(roster=[])
    barrier = threading.Barrier(8)
    results = []
    errors = []

    def worker():
        barrier.wait()
        try:
            results.append(container.checkin_service.checkin(token, 2, now=fixed_now))
        except Exception as e:  # pragma: no cover - surfaced by the assert below
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert sum(1 for r in results if not r.already_marked) == 1
    assert {r.status for r in results} == {AttendanceStatus.PRESENT}
    assert len(container.attendance_repo.list_by_session(session_id)) == 1


def test_concurrent_checkins_straddling_threshold_agree_with_ledger(container, open_session):
    # default roster: student 3 starts absent
    session_id, token = open_session()
    moments = [datetime(2025, 9, 1, 8, 15, 0), datetime(2025, 9, 1, 8, 15, 1)]
    barrier = threading.Barrier(16)
    results = []
    errors = []

    def worker(now):
        barrier.wait()
        try:
            results.append(container.checkin_service.checkin(token, 3, now=now))
        except Exception as e:  # pragma: no cover - surfaced by the assert below
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(moments[i % 2],)) for i in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    final = container.attendance_repo.get(session_id=session_id, student_id=3).status
    assert errors == []
    assert len(results) == 16
    assert sum(1 for r in results if not r.already_marked) == 1
    assert final in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)
    assert {r.status for r in results} == {final}


class _RevokingLedger:
    """Token replaced between the service's read and the ledger write."""

    def upsert_checkin(self, **kwargs):
        return None


class _FlakyLedger:
    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0

    def upsert_checkin(self, **kwargs):
        self.calls += 1
        if self.calls <= self.failures:
            raise TransientStorageError("Deadlock found when trying to get lock")
        return UpsertOutcome(written=True, effective_status=kwargs["status"])


def test_token_revoked_mid_flight_is_invalid(container, open_session, fixed_now):
    _, token = open_session(roster=[])
    svc = CheckinService(container.sessions_repo, _RevokingLedger(), container.enrollment_repo)

    with pytest.raises(TokenInvalid):
        svc.checkin(token, 2, now=fixed_now)


def test_transient_errors_are_retried(container, open_session, fixed_now, monkeypatch):
    monkeypatch.setattr("classroom_attendance.common.retry.time.sleep", lambda s: None)
    _, token = open_session(roster=[])
    ledger = _FlakyLedger(failures=2)
    svc = CheckinService(container.sessions_repo, ledger, container.enrollment_repo)

    result = svc.checkin(token, 2, now=fixed_now)

    assert ledger.calls == 3
    assert result.status == AttendanceStatus.PRESENT


def test_transient_errors_give_up_after_attempts(container, open_session, fixed_now, monkeypatch):
    monkeypatch.setattr("classroom_attendance.common.retry.time.sleep", lambda s: None)
    _, token = open_session(roster=[])
    ledger = _FlakyLedger(failures=10)
    svc = CheckinService(container.sessions_repo, ledger, container.enrollment_repo, retry_attempts=2)

    with pytest.raises(TransientStorageError):
        svc.checkin(token, 2, now=fixed_now)
    assert ledger.calls == 2
