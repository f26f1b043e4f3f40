"""Slack Web API adapter.

Implements the core ChatDirectoryPort and ChatSenderPort. Slack reports most
failures with HTTP 200 and "ok": false, so every response body is checked.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx

from lablink.core.models import ChatAccount

LOGGER = logging.getLogger(__name__)

SLACK_API_URL = "https://slack.com/api"
PAGE_SIZE = 200


class SlackApiError(RuntimeError):
    """Slack API call failed."""

    def __init__(self, method: str, error: str) -> None:
        self.method = method
        self.error = error
        super().__init__(f"Slack API error in {method}: {error}")


class SlackClient:
    """Async Slack client for listing users and posting direct messages."""

    def __init__(
        self,
        token: str,
        bot_name: str,
        base_url: str = SLACK_API_URL,
        timeout: float = 30.0,
    ) -> None:
        if not token:
            raise ValueError("Slack token must not be empty")
        self._bot_name = bot_name
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(self, method: str, **kwargs: Any) -> dict:
        try:
            resp = await self._client.post(f"/{method}", **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SlackApiError(method, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise SlackApiError(method, str(e)) from e

        body = resp.json()
        if not body.get("ok", False):
            raise SlackApiError(method, body.get("error", "unknown_error"))
        return body

    async def list_users(self) -> List[ChatAccount]:
        """Return all workspace members, skipping deleted users and bots."""

        accounts: List[ChatAccount] = []
        cursor = ""
        while True:
            data: dict[str, Any] = {"limit": PAGE_SIZE}
            if cursor:
                data["cursor"] = cursor
            body = await self._call("users.list", data=data)

            for member in body.get("members", []):
                if member.get("deleted") or member.get("is_bot"):
                    continue
                profile = member.get("profile") or {}
                accounts.append(
                    ChatAccount(
                        email=profile.get("email") or "",
                        user_id=member["id"],
                        username=member.get("name", ""),
                    )
                )

            cursor = (body.get("response_metadata") or {}).get("next_cursor", "")
            if not cursor:
                break

        LOGGER.debug("Fetched %s Slack users", len(accounts))
        return accounts

    async def post_message(self, channel: str, text: str, attachment: Optional[str] = None) -> None:
        """Post a message as the bot, with the attachment only when non-empty."""

        payload: dict[str, Any] = {
            "channel": channel,
            "text": text,
            "username": self._bot_name,
            "as_user": True,
        }
        if attachment:
            payload["attachments"] = [{"text": attachment}]
        await self._call("chat.postMessage", json=payload)
