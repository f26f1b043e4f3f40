"""Notification decision engine (core domain).

Given a decoded event, the engine resolves the people involved against the
identity directory and decides whether a notification is sent, to whom, and
with what content. It never performs I/O.

Outcomes:
- InvalidEventError: the event is not valid for the endpoint (HTTP 400)
- UserDiscoveryError: an actor is missing from the directory (HTTP 500)
- None: deliberate suppression (HTTP 200, no message)
- NotificationDecision: a message to hand to the dispatch gate
"""

from __future__ import annotations

import logging
from typing import Optional

from lablink.core.directory import IdentityDirectory
from lablink.core.errors import InvalidEventError, UserDiscoveryError
from lablink.core.events import GitLabEvent
from lablink.core.messages import comment_message, pipeline_failed_message
from lablink.core.models import Identity, NotificationDecision
from lablink.core.recipients import ActiveRecipients

LOGGER = logging.getLogger(__name__)


class NotificationEngine:
    """Decides notifications for comment and pipeline events."""

    def __init__(self, directory: IdentityDirectory, recipients: ActiveRecipients) -> None:
        self._directory = directory
        self._recipients = recipients

    def decide_comment(self, event: GitLabEvent) -> Optional[NotificationDecision]:
        """Decide the notification for a comment on a merge request or commit."""

        if not event.is_comment_event() or not event.is_structurally_valid():
            raise InvalidEventError("Not valid or not a comment request")

        code_owner = self._resolve_code_owner(event)
        commenter = self._directory.lookup_by_comment_author(event.object_attributes.author_id)
        if code_owner is None or commenter is None:
            LOGGER.warning(
                "User discovery failed (code owner found: %s, commenter found: %s)",
                code_owner is not None,
                commenter is not None,
            )
            raise UserDiscoveryError("User discovery error")

        LOGGER.info("%s made a comment on %s MR", commenter.gitlab_username, code_owner.gitlab_username)

        # Don't notify inactive users, and don't notify people about their own
        # comments (that got annoying).
        active = self._recipients.is_active(code_owner)
        same_person = code_owner.same_person(commenter)
        if not active or same_person:
            LOGGER.info(
                "Ignoring the comment (code owner active: %s, code owner is commenter: %s)",
                active,
                same_person,
            )
            return None

        return NotificationDecision(
            recipient=code_owner,
            text=comment_message(commenter.gitlab_username, event.object_attributes.url),
            attachment=event.object_attributes.note,
        )

    def decide_pipeline(self, event: GitLabEvent) -> Optional[NotificationDecision]:
        """Decide the notification for a pipeline status change."""

        if not event.is_pipeline_event() or not event.is_structurally_valid() or event.commit is None:
            raise InvalidEventError("Not valid or not a pipeline request")

        # Anything but a failed pipeline is acknowledged without touching the
        # directory.
        if not event.is_terminal_failure():
            return None

        code_owner = self._directory.lookup_by_commit_author(event.commit_author_email)
        if code_owner is None:
            LOGGER.warning("User discovery failed for pipeline commit author")
            raise UserDiscoveryError("User discovery error")

        if not self._recipients.is_active(code_owner):
            LOGGER.info("Ignoring failed pipeline for inactive user %s", code_owner.gitlab_username)
            return None

        project_name = event.project.name if event.project is not None else None
        return NotificationDecision(
            recipient=code_owner,
            text=pipeline_failed_message(event.commit.url, project_name, event.object_attributes.ref),
        )

    def _resolve_code_owner(self, event: GitLabEvent) -> Optional[Identity]:
        # Merge request authorship takes precedence over commit authorship.
        if event.merge_request is not None:
            return self._directory.lookup_by_review_author(event.merge_request.author_id)
        return self._directory.lookup_by_commit_author(event.commit_author_email)
