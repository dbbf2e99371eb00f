from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Member


class MemberRepository(Protocol):
    """Identity directory.

    Note (DIP): services depend on this interface, not on a concrete DB.
    Attendance decisions only read from it.
    """

    def get_by_id(self, member_id: int) -> Optional[Member]:
        raise NotImplementedError

    def get_by_council_id(self, council_id: str) -> Optional[Member]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Member]:
        raise NotImplementedError

    def set_qr_block(
        self,
        member_id: int,
        *,
        blocked: bool,
        reason: Optional[str],
        at: Optional[datetime],
    ) -> bool:
        raise NotImplementedError
