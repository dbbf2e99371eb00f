from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import QrToken


class QrTokenRepository(Protocol):
    def save(self, token: QrToken) -> None:
        raise NotImplementedError

    def get_by_nonce(self, nonce: str) -> Optional[QrToken]:
        raise NotImplementedError

    def mark_consumed(self, nonce: str, *, at: datetime) -> bool:
        """Atomic compare-and-set consumed False -> True.

        Returns True only for the single caller that flipped the flag.
        """

        raise NotImplementedError

    def delete_expired(self, *, before: datetime) -> int:
        raise NotImplementedError
