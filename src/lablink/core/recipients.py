"""Active-recipient allow-list (core domain)."""

from __future__ import annotations

from typing import Iterable

from lablink.core.models import Identity


class ActiveRecipients:
    """GitLab usernames that are allowed to receive notifications.

    Loaded once at startup and never refreshed. Matching is exact and
    case-sensitive.
    """

    def __init__(self, usernames: Iterable[str]) -> None:
        self._usernames = frozenset(name for name in usernames if name)
        if not self._usernames:
            raise ValueError("Active recipient list must not be empty")

    @classmethod
    def from_csv(cls, raw: str) -> "ActiveRecipients":
        """Build from a comma-separated list, skipping empty entries."""

        return cls(part for part in raw.split(","))

    @property
    def usernames(self) -> frozenset[str]:
        return self._usernames

    def __len__(self) -> int:
        return len(self._usernames)

    def is_active(self, identity: Identity) -> bool:
        return identity.gitlab_username in self._usernames
