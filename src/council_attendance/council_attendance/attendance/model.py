from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from ..biometrics.model import MatchResult
from ..common.datetime_utils import whole_minutes
from ..core.enums import EvidenceKind, PunchAction
from ..members.model import Member
from ..realtime.notifier import PunchEvent


@dataclass(frozen=True)
class PunchSession:
    """Domain entity: one punch-in, optionally closed by a punch-out."""

    session_id: int
    identity_id: int
    work_date: date
    punch_in: datetime
    punch_out: Optional[datetime]
    source: EvidenceKind = EvidenceKind.QR
    note: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.punch_out is None

    @property
    def duration_minutes(self) -> Optional[int]:
        if self.punch_out is None:
            return None
        return whole_minutes(self.punch_in, self.punch_out)


@dataclass(frozen=True)
class QrEvidence:
    payload: str
    kiosk_device_id: Optional[str] = None

    kind = EvidenceKind.QR


@dataclass(frozen=True)
class BiometricEvidence:
    match_result: MatchResult
    kiosk_device_id: Optional[str] = None

    kind = EvidenceKind.BIOMETRIC


ScanEvidence = Union[QrEvidence, BiometricEvidence]


@dataclass(frozen=True)
class Decision:
    """Outcome of a successful scan or admin override."""

    action: PunchAction
    member: Member
    session: PunchSession
    timestamp: datetime

    @property
    def duration_minutes(self) -> Optional[int]:
        return self.session.duration_minutes

    def to_event(self) -> PunchEvent:
        return PunchEvent(
            type=self.action.value,
            member_id=self.member.member_id,
            council_id=self.member.council_id,
            name=self.member.name,
            committee=self.member.committee,
            session_id=self.session.session_id,
            timestamp=self.timestamp.isoformat(),
            source=self.session.source.value,
        )
