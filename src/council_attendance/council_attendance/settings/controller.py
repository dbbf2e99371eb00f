from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import admin_required, current_role, error_response, unexpected_error_response
from ..container import Container
from ..core.exceptions import DomainError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/attendance/settings", methods=["GET"], endpoint="admin_settings_get")
    @admin_required
    def admin_settings_get():
        try:
            return jsonify({"success": True, "settings": container.settings_service.snapshot().to_dict()})
        except Exception:
            return unexpected_error_response("loading attendance settings")

    @app.route("/api/admin/attendance/settings", methods=["PUT"], endpoint="admin_settings_put")
    @admin_required
    def admin_settings_put():
        data = request.get_json(silent=True) or {}
        try:
            saved = container.settings_service.update(current_role=current_role(), changes=data)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error_response("saving attendance settings")
        return jsonify({"success": True, "settings": saved.to_dict()})
