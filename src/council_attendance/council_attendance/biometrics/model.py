from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class EnrolledTemplate:
    """The single active fingerprint template of a member."""

    identity_id: int
    template_bytes: bytes = field(repr=False)
    enrolled_at: datetime


@dataclass(frozen=True)
class CapturedSample:
    """Transient capture from the reader. Never persisted."""

    template_bytes: bytes = field(repr=False)
    capture_quality: int
    captured_at: datetime


@dataclass(frozen=True)
class MatchResult:
    candidate_identity_id: Optional[int]
    score: float
    threshold: float

    @property
    def matched(self) -> bool:
        return self.candidate_identity_id is not None and self.score >= self.threshold

    def to_dict(self) -> dict:
        return {
            "matched": self.matched,
            "candidate_identity_id": self.candidate_identity_id if self.matched else None,
            "score": self.score,
            "threshold": self.threshold,
        }
