"""Slack client tests (httpx mock)."""

from __future__ import annotations

import asyncio
import json

import pytest

from lablink.adapters.slack_client import SlackApiError, SlackClient
from lablink.core.models import ChatAccount


def _member(user_id: str, name: str, email: str, **extra) -> dict:
    return {"id": user_id, "name": name, "profile": {"email": email}, **extra}


async def _close_after(client: SlackClient, coro):
    try:
        return await coro
    finally:
        await client.aclose()


def test_list_users_follows_cursor_and_skips_bots(httpx_mock) -> None:
    httpx_mock.add_response(
        json={
            "ok": True,
            "members": [
                _member("C1", "alice.s", "a@x"),
                _member("B1", "relaybot", "", is_bot=True),
            ],
            "response_metadata": {"next_cursor": "dXNlcjpDMg=="},
        }
    )
    httpx_mock.add_response(
        json={
            "ok": True,
            "members": [
                _member("C2", "bob.s", "b@x"),
                _member("C3", "gone", "g@x", deleted=True),
            ],
            "response_metadata": {"next_cursor": ""},
        }
    )
    client = SlackClient("xoxb-token", bot_name="lablink")

    users = asyncio.run(_close_after(client, client.list_users()))

    assert users == [
        ChatAccount(email="a@x", user_id="C1", username="alice.s"),
        ChatAccount(email="b@x", user_id="C2", username="bob.s"),
    ]
    first, second = httpx_mock.get_requests()
    assert first.headers["Authorization"] == "Bearer xoxb-token"
    assert first.url.path == "/api/users.list"
    assert b"cursor=dXNlcjpDMg" in second.content


def test_list_users_not_ok_raises(httpx_mock) -> None:
    httpx_mock.add_response(json={"ok": False, "error": "invalid_auth"})
    client = SlackClient("xoxb-token", bot_name="lablink")

    with pytest.raises(SlackApiError, match="invalid_auth"):
        asyncio.run(_close_after(client, client.list_users()))


def test_post_message_with_attachment(httpx_mock) -> None:
    httpx_mock.add_response(json={"ok": True})
    client = SlackClient("xoxb-token", bot_name="lablink")

    asyncio.run(_close_after(client, client.post_message("C1", "hello", "the note")))

    request = httpx_mock.get_request()
    assert request.url.path == "/api/chat.postMessage"
    assert json.loads(request.content) == {
        "channel": "C1",
        "text": "hello",
        "username": "lablink",
        "as_user": True,
        "attachments": [{"text": "the note"}],
    }


def test_post_message_without_attachment(httpx_mock) -> None:
    httpx_mock.add_response(json={"ok": True})
    client = SlackClient("xoxb-token", bot_name="lablink")

    asyncio.run(_close_after(client, client.post_message("C1", "Pipeline failed")))

    assert "attachments" not in json.loads(httpx_mock.get_request().content)


def test_post_message_http_error_raises(httpx_mock) -> None:
    httpx_mock.add_response(status_code=500)
    client = SlackClient("xoxb-token", bot_name="lablink")

    with pytest.raises(SlackApiError):
        asyncio.run(_close_after(client, client.post_message("C1", "hello")))
