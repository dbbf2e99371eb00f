from __future__ import annotations

from typing import Optional

from flask import Flask, Response, jsonify, request, session, stream_with_context

from ..biometrics.controller import decode_template
from ..common.datetime_utils import iso_or_none, parse_iso_datetime
from ..common.http import (
    admin_required,
    current_role,
    error_response,
    kiosk_required,
    login_required,
    status_for,
    unexpected_error_response,
)
from ..common.validators import require_int_in_range, require_non_empty
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import PunchAction
from ..core.exceptions import DomainError, ValidationError
from ..qr.imaging import decode_image
from ..realtime.notifier import sse_stream
from .model import BiometricEvidence, QrEvidence
from .resolver import to_kiosk_payload


def kiosk_device_id(source) -> Optional[str]:
    """Kiosk identifier from a request body; kiosk clients send either spelling."""

    value = source.get("kiosk_device_id") or source.get("kioskDeviceId")
    return str(value) if value else None


def register(app: Flask, container: Container) -> None:
    def decide(build_evidence):
        """Run one kiosk scan through the resolver and shape the kiosk reply."""

        try:
            decision = container.resolver.resolve(build_evidence())
        except DomainError as e:
            return jsonify(to_kiosk_payload(e)), status_for(e)
        except Exception:
            return unexpected_error_response("recording attendance")
        return jsonify(to_kiosk_payload(decision)), 200

    @app.route("/api/attendance/kiosk/scan-qr", methods=["POST"], endpoint="kiosk_scan_qr")
    @kiosk_required
    def kiosk_scan_qr():
        data = request.get_json(silent=True) or {}

        def evidence():
            return QrEvidence(
                payload=require_non_empty(data.get("qr") or "", "qr"),
                kiosk_device_id=kiosk_device_id(data),
            )

        return decide(evidence)

    @app.route("/api/attendance/kiosk/scan-qr/image", methods=["POST"], endpoint="kiosk_scan_qr_image")
    @kiosk_required
    def kiosk_scan_qr_image():
        def evidence():
            upload = request.files.get("image")
            if upload is None:
                raise ValidationError("image file is required")
            return QrEvidence(payload=decode_image(upload.stream), kiosk_device_id=kiosk_device_id(request.form))

        return decide(evidence)

    @app.route("/api/attendance/kiosk/scan-fingerprint", methods=["POST"], endpoint="kiosk_scan_fingerprint")
    @kiosk_required
    def kiosk_scan_fingerprint():
        data = request.get_json(silent=True) or {}

        def evidence():
            sample = container.biometric_service.sample_from_upload(
                decode_template(data.get("template")),
                require_int_in_range(data.get("quality"), "quality", low=0, high=100),
            )
            return BiometricEvidence(
                match_result=container.biometric_service.match(sample),
                kiosk_device_id=kiosk_device_id(data),
            )

        return decide(evidence)

    @app.route("/api/attendance/kiosk/capture-fingerprint", methods=["POST"], endpoint="kiosk_capture_fingerprint")
    @kiosk_required
    def kiosk_capture_fingerprint():
        """Capture from the reader attached to this server, then decide."""

        data = request.get_json(silent=True) or {}

        def evidence():
            return BiometricEvidence(
                match_result=container.biometric_service.capture_and_match(),
                kiosk_device_id=kiosk_device_id(data),
            )

        return decide(evidence)

    @app.route(
        "/api/attendance/kiosk/capture-fingerprint/cancel", methods=["POST"], endpoint="kiosk_cancel_capture"
    )
    @kiosk_required
    def kiosk_cancel_capture():
        try:
            container.biometric_service.cancel_capture()
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error_response("cancelling fingerprint capture")
        return jsonify({"success": True, "message": "Capture cancelled"})

    @app.route("/api/attendance/today/live", methods=["GET"], endpoint="today_live")
    @login_required
    def today_live():
        try:
            return jsonify({"success": True, **container.query_service.today_live()})
        except Exception:
            return unexpected_error_response("loading today's attendance")

    @app.route("/api/attendance/my-attendance", methods=["GET"], endpoint="my_attendance")
    @login_required
    def my_attendance():
        try:
            limit = require_int_in_range(request.args.get("limit", DEFAULT_HISTORY_LIMIT), "limit", low=1, high=365)
            records = container.query_service.history_for(int(session["member_id"]), limit)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error_response("loading attendance history")
        return jsonify({"success": True, "records": records})

    @app.route("/api/attendance/stream", methods=["GET"], endpoint="attendance_stream")
    @login_required
    def attendance_stream():
        sub = container.broadcaster.subscribe()
        return Response(
            stream_with_context(sse_stream(sub, heartbeat_seconds=app.config.get("SSE_HEARTBEAT_SECONDS", 15.0))),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    @app.route("/api/admin/attendance/override", methods=["POST"], endpoint="admin_override")
    @admin_required
    def admin_override():
        data = request.get_json(silent=True) or {}
        try:
            try:
                action = PunchAction(data.get("action"))
            except ValueError:
                raise ValidationError("action must be punch_in or punch_out")
            decision = container.admin_service.override_punch(
                require_int_in_range(data.get("member_id"), "member_id", low=1, high=2**31 - 1),
                action,
                current_role=current_role(),
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error_response("overriding punch")
        return jsonify(to_kiosk_payload(decision))

    @app.route("/api/admin/attendance/sessions/<int:session_id>", methods=["PUT"], endpoint="admin_correct_session")
    @admin_required
    def admin_correct_session(session_id: int):
        data = request.get_json(silent=True) or {}
        try:
            corrected = container.admin_service.correct_session(
                session_id,
                parse_iso_datetime(data.get("punch_in")),
                parse_iso_datetime(data.get("punch_out")),
                data.get("note"),
                current_role=current_role(),
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error_response("correcting punch session")

        return jsonify(
            {
                "success": True,
                "session": {
                    "id": corrected.session_id,
                    "member_id": corrected.identity_id,
                    "punch_in": iso_or_none(corrected.punch_in),
                    "punch_out": iso_or_none(corrected.punch_out),
                    "duration_minutes": corrected.duration_minutes,
                    "note": corrected.note,
                },
            }
        )
