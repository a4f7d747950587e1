from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, List

from ..attendance.repository import AttendanceLedger
from ..common.datetime_utils import format_clock_time
from ..common.validators import require_positive_int
from ..core.enums import AttendanceStatus
from ..core.exceptions import NotEnrolled
from ..directory.repository import EnrollmentDirectory
from ..sessions.repository import SessionRepository
from .aggregator import AttendanceSummary, summarize, summarize_counts


class StatsService:
    """Read-only reporting over the ledger. No caching; every call reads fresh."""

    def __init__(self, sessions: SessionRepository, ledger: AttendanceLedger, enrollment: EnrollmentDirectory):
        self._sessions = sessions
        self._ledger = ledger
        self._enrollment = enrollment

    def subject_stats(self, subject_id: Any) -> dict:
        subject_id = require_positive_int(subject_id, "subjectId")
        summary = summarize_counts(self._ledger.count_for_subject(subject_id))
        data = summary.to_dict()
        data.update(
            {
                "subjectId": subject_id,
                "totalSessions": len(self._sessions.list_for_subject(subject_id)),
                "totalStudents": self._enrollment.count_students(subject_id),
                "averageAttendance": summary.attendance_rate,
            }
        )
        return data

    def student_overview(self, student_id: Any) -> dict:
        student_id = require_positive_int(student_id, "studentId")
        by_subject: Dict[int, List] = defaultdict(list)
        for row in self._ledger.list_by_student(student_id):
            by_subject[row.subject_id].append(row.status)

        subjects = []
        overall = AttendanceSummary()
        for subject_id in self._enrollment.subjects_for_student(student_id):
            summary = summarize(by_subject.get(subject_id, []))
            overall = overall + summary
            item = {"subjectId": subject_id, "totalSessions": summary.total}
            item.update(summary.to_dict())
            subjects.append(item)

        return {"studentId": student_id, "subjects": subjects, "overall": overall.to_dict()}

    def student_subject_detail(self, student_id: Any, subject_id: Any) -> dict:
        student_id = require_positive_int(student_id, "studentId")
        subject_id = require_positive_int(subject_id, "subjectId")
        if not self._enrollment.is_enrolled(subject_id, student_id):
            raise NotEnrolled("You are not enrolled in this subject")

        rows = self._ledger.list_by_student(student_id, subject_id=subject_id)
        return {
            "studentId": student_id,
            "subjectId": subject_id,
            "sessions": [
                {
                    "sessionId": r.session_id,
                    "date": r.session_date.isoformat(),
                    "time": format_clock_time(r.session_time),
                    "isVisible": r.is_visible,
                    # no ledger row reads as absent
                    "status": (r.status or AttendanceStatus.ABSENT).value,
                    "markedAt": r.marked_at.isoformat() if r.marked_at else None,
                }
                for r in rows
            ],
            "stats": summarize(r.status for r in rows).to_dict(),
        }
