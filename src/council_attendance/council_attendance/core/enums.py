from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used for access control."""

    ADMIN = "admin"
    GS = "gs"
    HEAD = "head"
    MEMBER = "member"


class PunchAction(str, Enum):
    """What a kiosk decision did (or refused to do)."""

    PUNCH_IN = "punch_in"
    PUNCH_OUT = "punch_out"
    BLOCKED = "blocked"


class EvidenceKind(str, Enum):
    """Channel through which presence was proven. Stored as session source."""

    QR = "qr"
    BIOMETRIC = "biometric"
    ADMIN = "admin"


class BlockScope(str, Enum):
    """Which channels the per-member qr_blocked flag covers."""

    QR = "qr"
    ALL = "all"
