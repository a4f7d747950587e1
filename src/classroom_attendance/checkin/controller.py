from __future__ import annotations

import io

from flask import Flask, current_app, jsonify, request, send_file

from ..common.datetime_utils import format_clock_time
from ..common.http import json_body, json_errors
from ..common.validators import optional_positive_int
from ..container import Container
from ..core.exceptions import ValidationError
from ..tokens.minter import checkin_url
from ..tokens.qr_image import extract_token, render_qr_png


def _checkin_response(container: Container, token: str, student_id) -> tuple:
    result = container.checkin_service.checkin(token, student_id)
    container.activity.dispatch(result.events)
    return jsonify(
        {
            "success": True,
            "sessionId": result.session_id,
            "status": result.status.value,
            "alreadyMarked": result.already_marked,
        }
    ), 200


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/qr", methods=["POST"], endpoint="attendance_qr_mint")
    @json_errors
    def attendance_qr_mint():
        """Mint (or re-mint) the session's QR token."""
        data = json_body()
        minted = container.token_minter.mint(
            session_id=data.get("sessionId"),
            subject_id=optional_positive_int(data.get("subjectId"), "subjectId"),
            validity_minutes=data.get("expiresInMinutes", current_app.config["DEFAULT_TOKEN_MINUTES"]),
            late_after_minutes=data.get("allowLateAfterMinutes", current_app.config["DEFAULT_LATE_AFTER_MINUTES"]),
            actor_id=optional_positive_int(data.get("userId"), "userId"),
        )
        container.activity.dispatch(minted.events)
        return jsonify(
            {
                "success": True,
                "sessionId": minted.session_id,
                "token": minted.token,
                "qrUrl": checkin_url(current_app.config["APP_BASE_URL"], minted.token),
                "expiresAt": minted.expires_at.isoformat(),
                "allowLateAfterMinutes": minted.late_after_minutes,
            }
        ), 200

    @app.route("/api/attendance/qr", methods=["GET"], endpoint="attendance_qr_validate")
    @json_errors
    def attendance_qr_validate():
        """Preview what a check-in with this token would record. No writes."""
        p = container.checkin_service.validate(request.args.get("token", ""))
        return jsonify(
            {
                "success": True,
                "session": {
                    "id": p.session_id,
                    "subjectId": p.subject_id,
                    "date": p.session_date.isoformat(),
                    "time": format_clock_time(p.session_time),
                },
                "expiresAt": p.expires_at.isoformat(),
                "lateThreshold": p.late_threshold.isoformat(),
                "status": p.status.value,
            }
        ), 200

    @app.route("/api/attendance/qr", methods=["PUT"], endpoint="attendance_qr_checkin")
    @json_errors
    def attendance_qr_checkin():
        data = json_body()
        return _checkin_response(container, str(data.get("token") or ""), data.get("studentId"))

    @app.route("/api/attendance/qr/image", methods=["POST"], endpoint="attendance_qr_checkin_image")
    @json_errors
    def attendance_qr_checkin_image():
        """Accept a photo of the QR code, decode it server-side, then check in."""
        if "image" not in request.files:
            raise ValidationError("Missing image file")

        # needs the zbar shared library; only loaded when this route is used
        from PIL import Image, UnidentifiedImageError
        from pyzbar.pyzbar import decode as pyzbar_decode

        try:
            img = Image.open(request.files["image"].stream).convert("RGB")
        except UnidentifiedImageError:
            raise ValidationError("Uploaded file is not an image")

        decoded = pyzbar_decode(img)
        if not decoded:
            raise ValidationError("No QR code found in image")

        token = extract_token(decoded[0].data.decode("utf-8"))
        return _checkin_response(container, token, request.form.get("studentId"))

    @app.route("/api/attendance/qr/image", methods=["GET"], endpoint="attendance_qr_image")
    @json_errors
    def attendance_qr_image():
        """PNG of the check-in URL for a currently valid token."""
        token = request.args.get("token", "")
        container.checkin_service.validate(token)
        png = render_qr_png(checkin_url(current_app.config["APP_BASE_URL"], token))
        return send_file(io.BytesIO(png), mimetype="image/png")
