"""Slack message text for relay notifications.

Keeping formatting here prevents drift between the comment and pipeline
paths and keeps the wording in one place.
"""

from __future__ import annotations

from typing import Optional


def escape(value: str) -> str:
    """Escape the three characters Slack treats as control sequences."""

    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def link(url: str, label: str) -> str:
    """Return a Slack link, or just the label when there is no url."""

    if not url:
        return escape(label)
    return f"<{escape(url)}|{escape(label)}>"


def comment_message(commenter_username: str, comment_url: str) -> str:
    return f"{escape(commenter_username)} made a comment on your {link(comment_url, 'Merge Request')}"


def pipeline_failed_message(commit_url: str, project_name: Optional[str], ref: Optional[str]) -> str:
    message = f"Pipeline failed for your {link(commit_url, 'Commit')}"
    # The location suffix only makes sense with both halves present.
    if project_name is not None and ref is not None:
        message += f" ({escape(project_name)}/{escape(ref)})"
    return message
