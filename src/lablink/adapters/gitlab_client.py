"""GitLab REST API adapter.

Implements the core SourceDirectoryPort by listing active users through the
GitLab users API.
"""

from __future__ import annotations

import logging
from typing import List

import httpx

from lablink.core.models import SourceAccount

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://gitlab.com/api/v4"
PAGE_SIZE = 100


class GitLabApiError(RuntimeError):
    """GitLab API call failed."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(f"GitLab API error {status_code}: {message}")


class GitLabClient:
    """Async GitLab client that satisfies the SourceDirectoryPort contract."""

    def __init__(self, token: str, base_url: str = DEFAULT_BASE_URL, timeout: float = 30.0) -> None:
        if not token:
            raise ValueError("GitLab token must not be empty")
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"PRIVATE-TOKEN": token},
            timeout=timeout,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_users(self) -> List[SourceAccount]:
        """Return every active user, following X-Next-Page pagination.

        The email is only visible to admin tokens; public_email is used as a
        fallback so non-admin tokens still correlate users who published one.
        """

        accounts: List[SourceAccount] = []
        page = "1"
        while page:
            try:
                resp = await self._client.get(
                    "/users",
                    params={"active": "true", "per_page": PAGE_SIZE, "page": page},
                )
                resp.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise GitLabApiError(e.response.status_code, e.response.text) from e
            except httpx.HTTPError as e:
                raise GitLabApiError(0, str(e)) from e

            users = resp.json()
            if not users:
                break
            for user in users:
                accounts.append(
                    SourceAccount(
                        email=user.get("email") or user.get("public_email") or "",
                        user_id=int(user["id"]),
                        username=user.get("username", ""),
                    )
                )
            page = resp.headers.get("X-Next-Page", "")

        LOGGER.debug("Fetched %s GitLab users", len(accounts))
        return accounts
