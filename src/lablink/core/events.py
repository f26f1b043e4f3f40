"""GitLab webhook payload models and event classification.

Only the fields needed to classify and route an event are modelled; everything
else in the payload is ignored. The classification helpers live on the model
so callers never poke at optional sub-objects directly.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from lablink.core.errors import EventDecodeError

COMMENT_KIND = "note"
PIPELINE_KIND = "pipeline"
FAILED_STATUS = "failed"


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ProjectInfo(_Payload):
    name: str = ""
    web_url: str = ""


class ObjectAttributes(_Payload):
    # Shared by note and pipeline events; each kind fills a different subset.
    id: Optional[int] = None
    note: str = ""
    noteable_type: str = ""
    author_id: Optional[int] = None
    url: str = ""
    status: Optional[str] = None
    ref: Optional[str] = None


class MergeRequestInfo(_Payload):
    id: Optional[int] = None
    iid: Optional[int] = None
    author_id: Optional[int] = None
    title: str = ""


class CommitAuthor(_Payload):
    name: str = ""
    email: str = ""


class CommitInfo(_Payload):
    id: str = ""
    message: str = ""
    url: str = ""
    author: Optional[CommitAuthor] = None


class GitLabEvent(_Payload):
    """A decoded GitLab webhook payload."""

    object_kind: str = ""
    project: Optional[ProjectInfo] = None
    object_attributes: Optional[ObjectAttributes] = None
    merge_request: Optional[MergeRequestInfo] = None
    commit: Optional[CommitInfo] = None

    def is_comment_event(self) -> bool:
        return self.object_kind == COMMENT_KIND

    def is_pipeline_event(self) -> bool:
        return self.object_kind == PIPELINE_KIND

    def is_structurally_valid(self) -> bool:
        """Attribution block plus a merge request or commit reference."""

        return self.object_attributes is not None and (
            self.merge_request is not None or self.commit is not None
        )

    def is_terminal_failure(self) -> bool:
        """True only for status exactly "failed"; running/success/pending never match."""

        if self.object_attributes is None:
            return False
        return self.object_attributes.status == FAILED_STATUS

    @property
    def commit_author_email(self) -> Optional[str]:
        if self.commit is None or self.commit.author is None:
            return None
        return self.commit.author.email


def decode_event(body: bytes) -> GitLabEvent:
    """Decode a raw request body into a GitLabEvent.

    A JSON `null` decodes to an empty event, which the classifier rejects.

    Raises:
        EventDecodeError: the body is not JSON or does not fit the schema.
    """

    if body.strip() == b"null":
        return GitLabEvent()
    try:
        return GitLabEvent.model_validate_json(body)
    except ValidationError as exc:
        raise EventDecodeError(str(exc)) from exc
