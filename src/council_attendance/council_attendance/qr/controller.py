from __future__ import annotations

import io

from flask import Flask, jsonify, send_file, session

from ..common.http import error_response, login_required, unexpected_error_response
from ..container import Container
from ..core.exceptions import DomainError
from .imaging import render_png
from .service import TokenIssuer


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/qr", methods=["GET"], endpoint="member_qr")
    @login_required
    def member_qr():
        try:
            token = container.token_issuer.issue(int(session["member_id"]))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error_response("generating QR code")

        return jsonify(
            {
                "success": True,
                "qr": TokenIssuer.payload_for(token),
                "expires_at": token.expires_at.isoformat(),
                **TokenIssuer.display_timing(token),
            }
        )

    @app.route("/api/attendance/qr/image", methods=["GET"], endpoint="member_qr_image")
    @login_required
    def member_qr_image():
        try:
            token = container.token_issuer.issue(int(session["member_id"]))
            png = render_png(TokenIssuer.payload_for(token))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return unexpected_error_response("generating QR code")

        resp = send_file(io.BytesIO(png), mimetype="image/png", max_age=0)
        resp.headers["X-QR-Expires-In"] = str(TokenIssuer.display_timing(token)["expires_in"])
        return resp
