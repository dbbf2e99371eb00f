from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Union

from ..common.datetime_utils import iso_or_none, now_local
from ..core.constants import MAX_RESOLVE_ATTEMPTS
from ..core.enums import BlockScope, EvidenceKind, PunchAction
from ..core.exceptions import (
    AlreadyOpen,
    DomainError,
    IdentityBlocked,
    IdentityNotFound,
    NoMatch,
    NotOpen,
    OutsideWindow,
    QrDisabled,
    TooSoon,
)
from ..members.model import Member
from ..members.repository import MemberRepository
from ..qr.service import TokenIssuer
from ..realtime.notifier import RealtimeNotifier
from ..settings.model import AttendanceSettings
from ..settings.repository import SettingsRepository
from .events import publish_decision
from .model import BiometricEvidence, Decision, QrEvidence, ScanEvidence
from .policies.factory import PunchPolicyFactory
from .repository import PunchLedger

logger = logging.getLogger(__name__)


class KioskScanResolver:
    """Turns one piece of kiosk evidence into a punch-in, punch-out or rejection.

    Both QR and fingerprint scans go through the same path:

    1. take ``now`` from the server clock and one settings snapshot
    2. resolve the identity (QR token redemption or biometric match)
    3. load the member and apply the block flag
    4. read the member's open session, if any
    5. choose the action and check it against the guard policy
    6. commit through the ledger
    7. broadcast the result
    """

    def __init__(
        self,
        ledger: PunchLedger,
        members: MemberRepository,
        settings: SettingsRepository,
        issuer: TokenIssuer,
        notifier: RealtimeNotifier,
        *,
        policies: Optional[PunchPolicyFactory] = None,
        block_scope: BlockScope = BlockScope.QR,
        clock: Callable[[], datetime] = now_local,
        max_attempts: int = MAX_RESOLVE_ATTEMPTS,
    ):
        self._ledger = ledger
        self._members = members
        self._settings = settings
        self._issuer = issuer
        self._notifier = notifier
        self._policies = policies or PunchPolicyFactory()
        self._block_scope = block_scope
        self._clock = clock
        self._max_attempts = max(1, int(max_attempts))

    def resolve(self, evidence: ScanEvidence, *, now: Optional[datetime] = None) -> Decision:
        now = now or self._clock()
        snapshot = self._settings.load()

        identity_id = self._identify(evidence, snapshot, now)

        member = self._members.get_by_id(identity_id)
        if not member or not member.is_active:
            raise IdentityNotFound(identity_id)

        try:
            self._check_block(member, evidence.kind)
            decision = self._decide_and_commit(member, snapshot, now, evidence.kind)
        except DomainError as e:
            e.member = member
            logger.info(
                "Scan rejected for %s at kiosk %s: %s", member.council_id, evidence.kiosk_device_id or "-", e.code
            )
            raise

        logger.info(
            "%s for %s via %s at kiosk %s (session %s)",
            decision.action.value,
            member.council_id,
            evidence.kind.value,
            evidence.kiosk_device_id or "-",
            decision.session.session_id,
        )
        publish_decision(self._notifier, decision)
        return decision

    def _identify(self, evidence: ScanEvidence, snapshot: AttendanceSettings, now: datetime) -> int:
        if isinstance(evidence, QrEvidence):
            if not snapshot.qr_enabled:
                raise QrDisabled()
            nonce = TokenIssuer.parse_payload(evidence.payload)
            return self._issuer.redeem(nonce, now=now).identity_id

        if isinstance(evidence, BiometricEvidence):
            result = evidence.match_result
            if not result.matched:
                raise NoMatch(result.score)
            return int(result.candidate_identity_id)

        raise TypeError(f"Unsupported evidence {type(evidence).__name__}")

    def _check_block(self, member: Member, kind: EvidenceKind) -> None:
        if not member.qr_blocked:
            return
        if kind == EvidenceKind.QR or self._block_scope == BlockScope.ALL:
            raise IdentityBlocked(member.qr_block_reason)

    def _decide_and_commit(
        self,
        member: Member,
        snapshot: AttendanceSettings,
        now: datetime,
        kind: EvidenceKind,
    ) -> Decision:
        attempt = 1
        while True:
            open_session = self._ledger.open_session_for(member.member_id)
            try:
                if open_session is None:
                    self._policies.for_punch_in(snapshot).check(now=now, settings=snapshot, open_session=None)
                    session = self._ledger.commit_punch_in(member.member_id, now, source=kind)
                    return Decision(PunchAction.PUNCH_IN, member, session, now)

                self._policies.for_punch_out(snapshot).check(now=now, settings=snapshot, open_session=open_session)
                session = self._ledger.commit_punch_out(open_session.session_id, now)
                return Decision(PunchAction.PUNCH_OUT, member, session, now)
            except (AlreadyOpen, NotOpen) as race:
                if attempt >= self._max_attempts:
                    raise
                attempt += 1
                logger.info("Lost commit race for %s (%s), re-reading state", member.council_id, race.code)


_MESSAGES = {
    PunchAction.PUNCH_IN: "Punched in successfully",
    PunchAction.PUNCH_OUT: "Punched out successfully",
}


def to_kiosk_payload(result: Union[Decision, DomainError]) -> dict:
    """Kiosk-facing JSON for a decision or a domain error."""

    if isinstance(result, Decision):
        payload = {
            "success": True,
            "action": result.action.value,
            "message": _MESSAGES[result.action],
            "member": {
                **result.member.summary(),
                "punch_in": iso_or_none(result.session.punch_in),
                "punch_out": iso_or_none(result.session.punch_out),
            },
        }
        if result.action == PunchAction.PUNCH_OUT:
            payload["duration_minutes"] = result.duration_minutes
        return payload

    payload = {
        "success": False,
        "message": str(result),
        "code": result.code,
    }
    if isinstance(result, IdentityBlocked):
        payload["action"] = PunchAction.BLOCKED.value
    if isinstance(result, TooSoon):
        payload["remaining_minutes"] = result.remaining_minutes
    if isinstance(result, OutsideWindow):
        payload["start"] = result.start.strftime("%H:%M")
        payload["end"] = result.end.strftime("%H:%M")
    if isinstance(result, NoMatch):
        payload["score"] = result.score
    if result.member is not None:
        payload["member"] = result.member.summary()
    return payload
