from __future__ import annotations

from flask import Flask, Response, current_app, jsonify

from ..common.http import json_body, json_errors
from ..common.validators import optional_positive_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    base = "/api/teacher/subjects/<int:subject_id>/attendance"

    @app.route(base, methods=["GET"], endpoint="teacher_sessions_list")
    @json_errors
    def teacher_sessions_list(subject_id: int):
        return jsonify({"success": True, "sessions": container.session_service.list_sessions(subject_id)}), 200

    @app.route(base, methods=["POST"], endpoint="teacher_sessions_create")
    @json_errors
    def teacher_sessions_create(subject_id: int):
        data = json_body()
        result = container.session_service.create_session(
            subject_id=subject_id,
            session_date=data.get("date"),
            session_time=data.get("time"),
            is_visible=bool(data.get("isVisible")),
            roster=data.get("records"),
            late_after_minutes=data.get("allowLateAfterMinutes", current_app.config["DEFAULT_LATE_AFTER_MINUTES"]),
            actor_id=optional_positive_int(data.get("userId"), "userId"),
        )
        container.activity.dispatch(result.events)
        return jsonify({"success": True, "sessionId": result.session_id}), 201

    @app.route(f"{base}/<int:session_id>", methods=["GET"], endpoint="teacher_session_detail")
    @json_errors
    def teacher_session_detail(subject_id: int, session_id: int):
        detail = container.session_service.get_session_detail(subject_id, session_id)
        return jsonify({"success": True, "session": detail}), 200

    @app.route(f"{base}/<int:session_id>", methods=["PUT"], endpoint="teacher_session_replace")
    @json_errors
    def teacher_session_replace(subject_id: int, session_id: int):
        """Manual override: metadata plus (optionally) the full roster of statuses."""
        data = json_body()
        result = container.session_service.replace_session(
            subject_id=subject_id,
            session_id=session_id,
            session_date=data.get("date"),
            session_time=data.get("time"),
            is_visible=bool(data.get("isVisible")),
            roster=data.get("records"),
            actor_id=optional_positive_int(data.get("userId"), "userId"),
        )
        container.activity.dispatch(result.events)
        return jsonify({"success": True, "sessionId": result.session_id}), 200

    @app.route(f"{base}/<int:session_id>", methods=["DELETE"], endpoint="teacher_session_delete")
    @json_errors
    def teacher_session_delete(subject_id: int, session_id: int):
        result = container.session_service.delete_session(
            subject_id=subject_id,
            session_id=session_id,
            actor_id=optional_positive_int(json_body().get("userId"), "userId"),
        )
        container.activity.dispatch(result.events)
        return jsonify({"success": True}), 200

    @app.route(f"{base}/<int:session_id>/export.csv", methods=["GET"], endpoint="teacher_session_export")
    @json_errors
    def teacher_session_export(subject_id: int, session_id: int):
        body = container.session_service.export_roster_csv(subject_id, session_id)
        return Response(
            body,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename=attendance_{subject_id}_{session_id}.csv"},
        )
