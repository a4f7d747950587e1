from classroom_attendance.core.enums import AttendanceStatus
from classroom_attendance.stats.aggregator import AttendanceSummary, attendance_rate, summarize, summarize_counts


def test_rate_counts_present_and_late():
    summary = AttendanceSummary(present=10, late=3, absent=7, excused=0)

    assert summary.total == 20
    assert summary.attended == 13
    assert summary.attendance_rate == 65


def test_rate_empty_is_zero():
    assert AttendanceSummary().attendance_rate == 0
    assert attendance_rate(0, 0) == 0


def test_rate_rounds_half_up():
    assert attendance_rate(1, 8) == 13  # 12.5
    assert attendance_rate(1, 3) == 33
    assert attendance_rate(2, 3) == 67
    assert attendance_rate(5, 5) == 100


def test_excused_counts_in_total_only():
    summary = summarize_counts({AttendanceStatus.PRESENT: 1, AttendanceStatus.EXCUSED: 1})

    assert summary.total == 2
    assert summary.attendance_rate == 50


def test_missing_status_counts_as_absent():
    summary = summarize([AttendanceStatus.PRESENT, None, AttendanceStatus.LATE, None])

    assert summary.absent == 2
    assert summary.to_dict() == {
        "present": 1,
        "late": 1,
        "absent": 2,
        "excused": 0,
        "total": 4,
        "attended": 2,
        "attendanceRate": 50,
    }


def test_summaries_add_up():
    total = AttendanceSummary(present=1) + AttendanceSummary(late=2, absent=1)

    assert (total.present, total.late, total.absent, total.excused) == (1, 2, 1, 0)
