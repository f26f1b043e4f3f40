"""Shared fixtures: webhook payloads shaped like the ones GitLab sends."""

from __future__ import annotations

from typing import Any

import pytest


@pytest.fixture()
def mr_note_payload() -> dict[str, Any]:
    """Bob comments on a merge request authored by Alice."""
    return {
        "object_kind": "note",
        "user": {"name": "Bob", "username": "bob", "avatar_url": ""},
        "project_id": 5,
        "project": {"name": "relay", "web_url": "https://gitlab.example.com/team/relay"},
        "object_attributes": {
            "id": 1244,
            "note": "Could this use a set instead?",
            "noteable_type": "MergeRequest",
            "author_id": 2,
            "url": "https://gitlab.example.com/team/relay/merge_requests/1#note_1244",
            "system": False,
        },
        "merge_request": {"id": 7, "iid": 1, "author_id": 1, "title": "Add relay"},
    }


@pytest.fixture()
def commit_note_payload() -> dict[str, Any]:
    """Bob comments on a commit authored by Alice."""
    return {
        "object_kind": "note",
        "project": {"name": "relay"},
        "object_attributes": {
            "id": 1243,
            "note": "This is a commit comment",
            "noteable_type": "Commit",
            "author_id": 2,
            "url": "https://gitlab.example.com/team/relay/commit/cfe32cf#note_1243",
        },
        "commit": {
            "id": "cfe32cf61b73a0d5e9f13e774abde7ff789b1660",
            "message": "Add submodule",
            "url": "https://gitlab.example.com/team/relay/commit/cfe32cf",
            "author": {"name": "Alice", "email": "a@x"},
        },
    }


@pytest.fixture()
def pipeline_payload() -> dict[str, Any]:
    """A failed pipeline on a commit authored by Alice."""
    return {
        "object_kind": "pipeline",
        "project": {"name": "relay"},
        "object_attributes": {
            "id": 31,
            "ref": "main",
            "status": "failed",
            "stages": ["build", "test"],
        },
        "commit": {
            "id": "bcbb5ec396a2c0f828686f14fac9b80b780504f2",
            "message": "test",
            "url": "https://gitlab.example.com/team/relay/commit/bcbb5ec",
            "author": {"name": "Alice", "email": "a@x"},
        },
        "builds": [],
    }
