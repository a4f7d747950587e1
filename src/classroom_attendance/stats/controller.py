from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_errors
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/teacher/subjects/<int:subject_id>/attendance/stats", methods=["GET"], endpoint="teacher_subject_stats")
    @json_errors
    def teacher_subject_stats(subject_id: int):
        return jsonify({"success": True, "stats": container.stats_service.subject_stats(subject_id)}), 200

    @app.route("/api/student/attendance", methods=["GET"], endpoint="student_attendance_overview")
    @json_errors
    def student_attendance_overview():
        data = container.stats_service.student_overview(request.args.get("studentId"))
        return jsonify({"success": True, **data}), 200

    @app.route("/api/student/attendance/<int:subject_id>", methods=["GET"], endpoint="student_attendance_subject")
    @json_errors
    def student_attendance_subject(subject_id: int):
        data = container.stats_service.student_subject_detail(request.args.get("studentId"), subject_id)
        return jsonify({"success": True, **data}), 200
