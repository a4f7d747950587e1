from __future__ import annotations

import pytest

from classroom_attendance.core.exceptions import NotEnrolled


def _seed(container):
    svc = container.session_service
    s1 = svc.create_session(
        subject_id=1,
        session_date="2025-09-01",
        session_time="08:00",
        roster=[
            {"studentId": 2, "status": "present"},
            {"studentId": 3, "status": "late"},
            {"studentId": 4, "status": "excused"},
        ],
    ).session_id
    # student 2 has no ledger row here
    s2 = svc.create_session(
        subject_id=1,
        session_date="2025-09-08",
        session_time="08:00",
        roster=[{"studentId": 3, "status": "absent"}],
    ).session_id
    s3 = svc.create_session(
        subject_id=2, session_date="2025-09-02", roster=[{"studentId": 2, "status": "present"}]
    ).session_id
    return s1, s2, s3


def test_subject_stats(container):
    _seed(container)

    stats = container.stats_service.subject_stats(1)

    assert stats["totalSessions"] == 2
    assert stats["totalStudents"] == 3
    assert (stats["present"], stats["late"], stats["absent"], stats["excused"]) == (1, 1, 1, 1)
    assert stats["averageAttendance"] == 50


def test_subject_stats_empty_subject(container):
    stats = container.stats_service.subject_stats(77)

    assert stats["totalSessions"] == 0
    assert stats["averageAttendance"] == 0


def test_student_overview_counts_missing_rows_as_absent(container):
    _seed(container)

    overview = container.stats_service.student_overview(2)

    by_subject = {s["subjectId"]: s for s in overview["subjects"]}
    assert set(by_subject) == {1, 2}
    assert (by_subject[1]["present"], by_subject[1]["absent"], by_subject[1]["total"]) == (1, 1, 2)
    assert by_subject[1]["attendanceRate"] == 50
    assert by_subject[2]["attendanceRate"] == 100
    assert overview["overall"]["total"] == 3
    assert overview["overall"]["attendanceRate"] == 67


def test_student_subject_detail(container):
    s1, s2, _ = _seed(container)

    detail = container.stats_service.student_subject_detail(2, 1)

    assert [(s["sessionId"], s["status"]) for s in detail["sessions"]] == [(s2, "absent"), (s1, "present")]
    assert detail["sessions"][0]["markedAt"] is None
    assert detail["stats"]["attendanceRate"] == 50


def test_student_subject_detail_requires_enrollment(container):
    _seed(container)

    with pytest.raises(NotEnrolled):
        container.stats_service.student_subject_detail(3, 2)
