from __future__ import annotations

import logging

from ..realtime.notifier import RealtimeNotifier
from .model import Decision

logger = logging.getLogger(__name__)


def publish_decision(notifier: RealtimeNotifier, decision: Decision) -> None:
    """Broadcast a committed punch. The punch stays committed if this fails."""

    try:
        notifier.publish(decision.to_event())
    except Exception:
        logger.warning(
            "Failed to broadcast %s for session %s",
            decision.action.value,
            decision.session.session_id,
            exc_info=True,
        )
