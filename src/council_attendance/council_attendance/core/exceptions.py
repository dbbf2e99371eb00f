from __future__ import annotations

from datetime import time
from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is a stable machine-readable identifier sent to kiosk clients;
    ``str(err)`` is the human-readable reason. ``member`` is attached by the
    kiosk resolver once the scanning member is known.
    """

    code = "domain_error"
    member = None


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation_error"


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    code = "authentication_error"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "authorization_error"


class IdentityNotFound(DomainError):
    code = "identity_not_found"

    def __init__(self, identity_id: object):
        super().__init__(f"Member {identity_id} not found")
        self.identity_id = identity_id


# ----- policy rejections: expected, user facing, not retriable without a state change


class PolicyRejection(DomainError):
    code = "policy_rejection"


class QrDisabled(PolicyRejection):
    code = "qr_disabled"

    def __init__(self):
        super().__init__("QR attendance is currently disabled")


class IdentityBlocked(PolicyRejection):
    code = "identity_blocked"

    def __init__(self, reason: Optional[str]):
        self.reason = reason or "Blocked by admin"
        super().__init__(self.reason)


class OutsideWindow(PolicyRejection):
    code = "outside_window"

    def __init__(self, start: time, end: time):
        self.start = start
        self.end = end
        super().__init__(
            f"Punch-in is only allowed between {start.strftime('%H:%M')} and {end.strftime('%H:%M')}"
        )


class TooSoon(PolicyRejection):
    code = "too_soon"

    def __init__(self, remaining_minutes: int):
        self.remaining_minutes = int(remaining_minutes)
        super().__init__(f"You need to work {self.remaining_minutes} more minute(s) before punching out")


class NoMatch(PolicyRejection):
    code = "no_match"

    def __init__(self, score: float):
        self.score = score
        super().__init__(f"Fingerprint not recognized (score {self.score})")


# ----- integrity races: resolved by re-reading state, never by blind retry


class IntegrityRace(DomainError):
    code = "integrity_race"


class TokenAlreadyUsed(IntegrityRace):
    code = "token_already_used"

    def __init__(self):
        super().__init__("This QR code has already been used")


class AlreadyOpen(IntegrityRace):
    code = "already_open"

    def __init__(self, identity_id: int):
        self.identity_id = identity_id
        super().__init__("Already punched in")


class NotOpen(IntegrityRace):
    code = "not_open"

    def __init__(self, session_id: int):
        self.session_id = session_id
        super().__init__("No active punch-in found")


# ----- hardware faults: surfaced to the operator with a retry affordance


class HardwareFault(DomainError):
    code = "hardware_fault"


class DeviceNotConnected(HardwareFault):
    code = "device_not_connected"

    def __init__(self, detail: str = ""):
        super().__init__(f"Fingerprint device not connected{': ' + detail if detail else ''}")


class DeviceBusy(HardwareFault):
    code = "device_busy"

    def __init__(self):
        super().__init__("Fingerprint device is busy with another capture")


class CaptureTimeout(HardwareFault):
    code = "capture_timeout"

    def __init__(self, seconds: float):
        self.seconds = seconds
        super().__init__(f"No fingerprint captured within {seconds:g} seconds")


class CaptureCancelled(HardwareFault):
    code = "capture_cancelled"

    def __init__(self):
        super().__init__("Capture cancelled by operator")


class CaptureRejected(HardwareFault):
    code = "capture_rejected"

    def __init__(self, quality: int, floor: int):
        self.quality = int(quality)
        self.floor = int(floor)
        super().__init__(f"Capture quality {self.quality} is below the minimum of {self.floor}, please retry")


class NoCandidates(HardwareFault):
    code = "no_candidates"

    def __init__(self):
        super().__init__("No enrolled fingerprints to match against")


class MatcherError(HardwareFault):
    code = "matcher_error"


# ----- input faults: malformed or stale evidence


class InputFault(DomainError):
    code = "input_fault"


class TokenInvalid(InputFault):
    code = "token_invalid"

    def __init__(self):
        super().__init__("Invalid QR code")


class TokenExpired(InputFault):
    code = "token_expired"

    def __init__(self):
        super().__init__("QR code expired, please refresh and scan again")
