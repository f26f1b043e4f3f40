"""Core webhook event processing.

This module is integration-agnostic. It decodes nothing and sends nothing
itself: the HTTP layer hands in decoded events, the engine decides, and the
dispatch gate delivers off the request path.
"""

from __future__ import annotations

import logging
from typing import Optional

from lablink.core.decisions import NotificationEngine
from lablink.core.events import GitLabEvent
from lablink.core.models import NotificationDecision
from lablink.core.ports import NotificationSinkPort

LOGGER = logging.getLogger(__name__)


class EventProcessor:
    """Orchestrates decisions and hands them to the dispatch gate."""

    def __init__(self, engine: NotificationEngine, gate: NotificationSinkPort) -> None:
        self._engine = engine
        self._gate = gate

    def handle_comment(self, event: GitLabEvent) -> Optional[NotificationDecision]:
        """Process one comment event; errors propagate to the caller."""

        return self._dispatch(self._engine.decide_comment(event))

    def handle_pipeline(self, event: GitLabEvent) -> Optional[NotificationDecision]:
        """Process one pipeline event; errors propagate to the caller."""

        return self._dispatch(self._engine.decide_pipeline(event))

    def _dispatch(self, decision: Optional[NotificationDecision]) -> Optional[NotificationDecision]:
        if decision is None:
            return None
        # Delivery is fire-and-forget: the caller responds before Slack is hit.
        if not self._gate.submit(decision):
            LOGGER.warning("Notification for %s was not queued", decision.recipient.gitlab_username)
        return decision
