"""Identity directory (core domain).

The directory is an immutable tuple of identities that is replaced wholesale on
every refresh. Readers grab the current tuple once and scan it, so they always
see either the previous complete snapshot or the next one, never a partial
build. No lock is needed because the swap is a single attribute assignment and
nothing ever mutates a published snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Tuple

from lablink.core.models import ChatAccount, Identity, SourceAccount
from lablink.core.ports import ChatDirectoryPort, SourceDirectoryPort

LOGGER = logging.getLogger(__name__)


def correlate(
    source_accounts: Iterable[SourceAccount],
    chat_accounts: Iterable[ChatAccount],
) -> List[Identity]:
    """Pair GitLab and Slack accounts that share the exact same email.

    Matching is case-sensitive. Accounts with a blank email never pair. When an
    email appears more than once on either side, the first account in input
    order wins and later duplicates are ignored.
    """

    chat_by_email: dict[str, ChatAccount] = {}
    for chat in chat_accounts:
        if chat.email:
            chat_by_email.setdefault(chat.email, chat)

    identities: List[Identity] = []
    seen_emails: set[str] = set()
    for source in source_accounts:
        if not source.email or source.email in seen_emails:
            continue
        chat = chat_by_email.get(source.email)
        if chat is None:
            continue
        seen_emails.add(source.email)
        identities.append(
            Identity(
                email=source.email,
                chat_id=chat.user_id,
                chat_username=chat.username,
                gitlab_id=source.user_id,
                gitlab_username=source.username,
            )
        )
    return identities


class IdentityDirectory:
    """Process-wide snapshot of linked identities."""

    def __init__(
        self,
        source_directory: SourceDirectoryPort,
        chat_directory: ChatDirectoryPort,
        identities: Iterable[Identity] = (),
    ) -> None:
        self._source_directory = source_directory
        self._chat_directory = chat_directory
        self._identities: Tuple[Identity, ...] = tuple(identities)

    @property
    def identities(self) -> Tuple[Identity, ...]:
        return self._identities

    def __len__(self) -> int:
        return len(self._identities)

    async def refresh(self) -> bool:
        """Rebuild the directory from both user lists.

        Returns True when a new snapshot was published. Any fetch error, empty
        user list, or empty pairing leaves the current snapshot untouched; the
        failure is logged and never raised.
        """

        LOGGER.info("Refreshing identity directory")
        try:
            source_accounts, chat_accounts = await asyncio.gather(
                self._source_directory.list_users(),
                self._chat_directory.list_users(),
            )
        except Exception:
            LOGGER.exception("Failed to fetch user directories, keeping %s identities", len(self))
            return False

        if not source_accounts or not chat_accounts:
            LOGGER.warning(
                "Empty user directory (gitlab=%s, slack=%s), keeping %s identities",
                len(source_accounts or ()),
                len(chat_accounts or ()),
                len(self),
            )
            return False

        identities = correlate(source_accounts, chat_accounts)
        if not identities:
            LOGGER.warning("No GitLab and Slack accounts share an email, keeping %s identities", len(self))
            return False

        self._identities = tuple(identities)
        LOGGER.info(
            "Identity directory refreshed: %s identities (%s)",
            len(identities),
            ", ".join(identity.gitlab_username for identity in identities),
        )
        return True

    def lookup_by_review_author(self, gitlab_id: Optional[int]) -> Optional[Identity]:
        """Find the author of a merge request by GitLab user id."""

        return self._find_by_gitlab_id(gitlab_id)

    def lookup_by_comment_author(self, gitlab_id: Optional[int]) -> Optional[Identity]:
        """Find the author of a comment by GitLab user id."""

        return self._find_by_gitlab_id(gitlab_id)

    def lookup_by_commit_author(self, email: Optional[str]) -> Optional[Identity]:
        """Find the author of a commit by email."""

        if not email:
            return None
        for identity in self._identities:
            if identity.email == email:
                return identity
        return None

    def _find_by_gitlab_id(self, gitlab_id: Optional[int]) -> Optional[Identity]:
        if gitlab_id is None:
            return None
        for identity in self._identities:
            if identity.gitlab_id == gitlab_id:
                return identity
        return None
