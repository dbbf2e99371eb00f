from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DeviceNotConnected, IdentityNotFound, ValidationError
from ..members.repository import MemberRepository
from .capture import FileCaptureDevice
from .matcher import BiometricMatcher
from .model import CapturedSample, EnrolledTemplate, MatchResult
from .repository import TemplateRepository

logger = logging.getLogger(__name__)


class BiometricService:
    """Use case: enroll fingerprints and match captures against the roster."""

    def __init__(
        self,
        templates: TemplateRepository,
        members: MemberRepository,
        matcher: BiometricMatcher,
        *,
        device: Optional[FileCaptureDevice] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._templates = templates
        self._members = members
        self._matcher = matcher
        self._device = device
        self._clock = clock
        self._cancel = threading.Event()

    def enroll(self, *, current_role: Role, member_id: int, template_bytes: bytes) -> EnrolledTemplate:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can enroll fingerprints")
        if not template_bytes:
            raise ValidationError("Fingerprint template is empty")

        member = self._members.get_by_id(int(member_id))
        if not member:
            raise IdentityNotFound(member_id)

        template = EnrolledTemplate(identity_id=member.member_id, template_bytes=bytes(template_bytes), enrolled_at=self._clock())
        self._templates.upsert(template)
        logger.info("Enrolled fingerprint for member %s", member.council_id)
        return template

    def remove(self, *, current_role: Role, member_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can remove fingerprints")
        if not self._templates.delete(int(member_id)):
            raise ValidationError("No fingerprint enrolled for this member")

    def list_enrolled(self) -> list[dict]:
        out: list[dict] = []
        for t in self._templates.list_active():
            member = self._members.get_by_id(t.identity_id)
            out.append(
                {
                    "member_id": t.identity_id,
                    "council_id": member.council_id if member else None,
                    "name": member.name if member else None,
                    "committee_name": member.committee if member else None,
                    "enrolled_at": t.enrolled_at.isoformat(),
                }
            )
        return out

    def match(self, sample: CapturedSample) -> MatchResult:
        return self._matcher.match(sample, self._templates.list_active())

    def sample_from_upload(self, template_bytes: bytes, quality: int) -> CapturedSample:
        if not template_bytes:
            raise ValidationError("Fingerprint template is empty")
        return CapturedSample(template_bytes=template_bytes, capture_quality=int(quality), captured_at=self._clock())

    def capture_and_match(self, *, cancel: Optional[threading.Event] = None) -> MatchResult:
        """Capture from the attached reader, then match. Hardware faults propagate.

        Without an explicit ``cancel`` event the capture listens to the
        service's own event, which ``cancel_capture`` sets.
        """

        if self._device is None:
            raise DeviceNotConnected("no capture device configured")
        if cancel is None:
            cancel = self._cancel
            cancel.clear()
        sample = self._device.capture(cancel=cancel)
        return self.match(sample)

    def cancel_capture(self) -> None:
        """Abort the in-flight capture on the attached reader, if any."""

        if self._device is None:
            raise DeviceNotConnected("no capture device configured")
        self._cancel.set()
        logger.info("Fingerprint capture cancel requested")
