"""Linked identities, raw directory accounts, and notification decisions.

GitLab and Slack adapters translate their API payloads into these types, so
nothing outside adapters/ knows either service's JSON shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SourceAccount:
    """One active GitLab account as returned by the user directory."""

    email: str
    user_id: int
    username: str


@dataclass(frozen=True)
class ChatAccount:
    """One Slack account as returned by the user directory."""

    email: str
    user_id: str
    username: str


@dataclass(frozen=True)
class Identity:
    """A person linked across GitLab and Slack through a shared email."""

    email: str
    chat_id: str
    chat_username: str
    gitlab_id: int
    gitlab_username: str

    def same_person(self, other: "Identity") -> bool:
        """Return True when the two identities share any single attribute.

        This is intentionally weaker than equality: one matching email, Slack
        id, Slack name, GitLab id, or GitLab username is enough. Used to stop
        people from being notified about their own comments.
        """

        return (
            self.email == other.email
            or self.chat_id == other.chat_id
            or self.chat_username == other.chat_username
            or self.gitlab_id == other.gitlab_id
            or self.gitlab_username == other.gitlab_username
        )


@dataclass(frozen=True)
class NotificationDecision:
    """A message the relay decided to send. Never persisted."""

    recipient: Identity
    text: str
    attachment: Optional[str] = None
