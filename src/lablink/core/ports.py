"""Ports (interfaces) used by the core.

Ports define the minimal contracts for the GitLab and Slack adapters so that
the core can be tested with fakes and reused with other backends.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from lablink.core.models import ChatAccount, NotificationDecision, SourceAccount


class SourceDirectoryPort(Protocol):
    """User directory of the source-hosting service."""

    async def list_users(self) -> Sequence[SourceAccount]:
        ...


class ChatDirectoryPort(Protocol):
    """User directory of the chat platform."""

    async def list_users(self) -> Sequence[ChatAccount]:
        ...


class ChatSenderPort(Protocol):
    """Message delivery on the chat platform."""

    async def post_message(self, channel: str, text: str, attachment: Optional[str] = None) -> None:
        ...


class NotificationSinkPort(Protocol):
    """Hand-off point for decided notifications; must not block."""

    def submit(self, decision: NotificationDecision) -> bool:
        ...
