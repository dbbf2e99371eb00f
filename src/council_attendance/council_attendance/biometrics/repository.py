from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import EnrolledTemplate


class TemplateRepository(Protocol):
    def upsert(self, template: EnrolledTemplate) -> None:
        """Store the member's template, replacing any previous one."""

        raise NotImplementedError

    def get_for_identity(self, identity_id: int) -> Optional[EnrolledTemplate]:
        raise NotImplementedError

    def list_active(self) -> Sequence[EnrolledTemplate]:
        raise NotImplementedError

    def delete(self, identity_id: int) -> bool:
        raise NotImplementedError
