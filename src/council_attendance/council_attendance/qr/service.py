from __future__ import annotations

import logging
import re
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.constants import QR_NONCE_BYTES, QR_PAYLOAD_PREFIX, QR_REFRESH_LEAD_SECONDS
from ..core.exceptions import (
    IdentityBlocked,
    IdentityNotFound,
    QrDisabled,
    TokenAlreadyUsed,
    TokenExpired,
    TokenInvalid,
)
from ..members.repository import MemberRepository
from ..settings.repository import SettingsRepository
from .model import QrToken
from .repository import QrTokenRepository

logger = logging.getLogger(__name__)

_PAYLOAD_RE = re.compile(r"^" + re.escape(QR_PAYLOAD_PREFIX) + r"([0-9a-f]{%d})$" % (QR_NONCE_BYTES * 2))


class TokenIssuer:
    """Mints short-lived, single-use QR tokens and owns their consumption.

    Issuance is stateless per call: nothing counts down on the server. Expiry
    is checked lazily when a token is redeemed, and an expired token that was
    never scanned is simply inert data.
    """

    def __init__(
        self,
        tokens: QrTokenRepository,
        members: MemberRepository,
        settings: SettingsRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._tokens = tokens
        self._members = members
        self._settings = settings
        self._clock = clock

    def issue(self, identity_id: int, *, now: Optional[datetime] = None) -> QrToken:
        now = now or self._clock()
        snapshot = self._settings.load()

        if not snapshot.qr_enabled:
            raise QrDisabled()

        member = self._members.get_by_id(int(identity_id))
        if not member or not member.is_active:
            raise IdentityNotFound(identity_id)
        if member.qr_blocked:
            raise IdentityBlocked(member.qr_block_reason)

        token = QrToken(
            nonce=secrets.token_hex(QR_NONCE_BYTES),
            identity_id=member.member_id,
            issued_at=now,
            expires_at=now + timedelta(seconds=snapshot.qr_expiry_seconds),
        )
        self._tokens.save(token)
        logger.debug("Issued QR token for member %s (expires %s)", member.council_id, token.expires_at)
        return token

    def redeem(self, nonce: str, *, now: datetime) -> QrToken:
        token = self._tokens.get_by_nonce(nonce)
        if token is None:
            raise TokenInvalid()
        if token.is_expired(now):
            raise TokenExpired()
        if token.consumed:
            raise TokenAlreadyUsed()

        # Two kiosks may read the same unconsumed row; only one flips the flag.
        if not self._tokens.mark_consumed(nonce, at=now):
            raise TokenAlreadyUsed()

        return QrToken(
            nonce=token.nonce,
            identity_id=token.identity_id,
            issued_at=token.issued_at,
            expires_at=token.expires_at,
            consumed=True,
            consumed_at=now,
        )

    def purge_expired(self, *, before: Optional[datetime] = None) -> int:
        """Retention cleanup. Decisions never depend on this having run."""

        removed = self._tokens.delete_expired(before=before or self._clock())
        logger.info("Purged %s expired QR token(s)", removed)
        return removed

    @staticmethod
    def payload_for(token: QrToken) -> str:
        return f"{QR_PAYLOAD_PREFIX}{token.nonce}"

    @staticmethod
    def parse_payload(raw: str) -> str:
        m = _PAYLOAD_RE.match((raw or "").strip())
        if not m:
            raise TokenInvalid()
        return m.group(1)

    @staticmethod
    def display_timing(token: QrToken) -> dict:
        """expires_in / refresh_in for the member's QR screen."""

        expires_in = int((token.expires_at - token.issued_at).total_seconds())
        return {
            "expires_in": expires_in,
            "refresh_in": max(1, expires_in - QR_REFRESH_LEAD_SECONDS),
        }
