from __future__ import annotations

import base64
import binascii

from flask import Flask, jsonify, request

from ..common.http import admin_required, current_role, error_response, unexpected_error_response
from ..common.validators import require_int_in_range
from ..container import Container
from ..core.exceptions import DomainError, ValidationError


def decode_template(value) -> bytes:
    """Fingerprint templates travel as base64 in JSON bodies."""

    if not value or not isinstance(value, str):
        raise ValidationError("template is required (base64)")
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("template is not valid base64")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/biometrics/enroll", methods=["POST"], endpoint="biometric_enroll")
    @admin_required
    def biometric_enroll():
        data = request.get_json(silent=True) or {}
        try:
            template = container.biometric_service.enroll(
                current_role=current_role(),
                member_id=require_int_in_range(data.get("member_id"), "member_id", low=1, high=2**31 - 1),
                template_bytes=decode_template(data.get("template")),
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error_response("enrolling fingerprint")

        return jsonify(
            {"success": True, "member_id": template.identity_id, "enrolled_at": template.enrolled_at.isoformat()}
        )

    @app.route("/api/biometrics/enrolled", methods=["GET"], endpoint="biometric_enrolled")
    @admin_required
    def biometric_enrolled():
        try:
            return jsonify({"success": True, "enrolled": container.biometric_service.list_enrolled()})
        except Exception:
            return unexpected_error_response("listing enrolled fingerprints")

    @app.route("/api/biometrics/<int:member_id>", methods=["DELETE"], endpoint="biometric_remove")
    @admin_required
    def biometric_remove(member_id: int):
        try:
            container.biometric_service.remove(current_role=current_role(), member_id=member_id)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error_response("removing fingerprint")
        return jsonify({"success": True})
