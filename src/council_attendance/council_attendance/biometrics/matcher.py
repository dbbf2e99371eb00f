from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..core.constants import BIOMETRIC_MATCH_THRESHOLD, BIOMETRIC_QUALITY_FLOOR
from ..core.exceptions import CaptureRejected, NoCandidates
from .model import CapturedSample, EnrolledTemplate, MatchResult
from .scorer import TemplateScorer

logger = logging.getLogger(__name__)


class BiometricMatcher:
    """Best-score search of one capture against the enrolled roster.

    Linear in the number of enrolled templates, which is fine at the size of
    one organization. The threshold is fixed at construction (a deployment
    decision) and never tuned at runtime.
    """

    def __init__(
        self,
        scorer: TemplateScorer,
        *,
        threshold: float = BIOMETRIC_MATCH_THRESHOLD,
        quality_floor: int = BIOMETRIC_QUALITY_FLOOR,
    ):
        self._scorer = scorer
        self._threshold = threshold
        self._quality_floor = int(quality_floor)

    @property
    def threshold(self) -> float:
        return self._threshold

    def match(self, sample: CapturedSample, candidates: Sequence[EnrolledTemplate]) -> MatchResult:
        if sample.capture_quality < self._quality_floor:
            raise CaptureRejected(sample.capture_quality, self._quality_floor)
        if not candidates:
            raise NoCandidates()

        best_id: Optional[int] = None
        best_score: Optional[float] = None
        for candidate in candidates:
            score = self._scorer.score(sample.template_bytes, candidate.template_bytes)
            if best_score is None or score > best_score:
                best_id = candidate.identity_id
                best_score = score

        result = MatchResult(candidate_identity_id=best_id, score=best_score, threshold=self._threshold)
        if result.matched:
            logger.info("Fingerprint matched member %s (score=%s)", best_id, best_score)
        else:
            logger.info("Fingerprint not matched (best score=%s, threshold=%s)", best_score, self._threshold)
        return result
