from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.http import admin_required, current_role, error_response, login_required, unexpected_error_response
from ..common.validators import require_bool
from ..container import Container
from ..core.exceptions import DomainError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = request.get_json(silent=True) or {}
        try:
            s_user = container.auth_service.authenticate(data.get("council_id", ""), data.get("password", ""))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error_response("logging in")

        session.permanent = bool(data.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=7)

        session["member_id"] = s_user.member_id
        session["council_id"] = s_user.council_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value
        session["committee"] = s_user.committee

        return jsonify(
            {
                "success": True,
                "user": {
                    "member_id": s_user.member_id,
                    "council_id": s_user.council_id,
                    "name": s_user.name,
                    "role": s_user.role.value,
                    "committee_name": s_user.committee,
                },
            }
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        try:
            member = container.member_service.get_identity(int(session["member_id"]))
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "user": {**member.summary(), "role": member.role.value}})

    @app.route("/api/admin/users/qr-status", methods=["GET"], endpoint="admin_qr_status")
    @admin_required
    def admin_qr_status():
        try:
            return jsonify({"success": True, "users": container.member_service.list_qr_status()})
        except Exception:
            return unexpected_error_response("loading QR status")

    @app.route("/api/admin/users/<int:member_id>/qr-block", methods=["PUT"], endpoint="admin_qr_block")
    @admin_required
    def admin_qr_block(member_id: int):
        data = request.get_json(silent=True) or {}
        try:
            member = container.member_service.set_qr_block(
                current_role=current_role(),
                member_id=member_id,
                blocked=require_bool(data.get("blocked"), "blocked"),
                reason=data.get("reason"),
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error_response("updating QR block")

        return jsonify(
            {
                "success": True,
                "user_id": member.member_id,
                "qr_blocked": member.qr_blocked,
                "qr_block_reason": member.qr_block_reason,
            }
        )
