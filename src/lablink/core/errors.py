"""Exceptions raised by the core and mapped to responses by the HTTP layer."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for request-level relay failures."""


class InvalidEventError(RelayError):
    """The payload is malformed or not the kind of event the endpoint expects."""


class UserDiscoveryError(RelayError):
    """An event actor could not be found in the identity directory.

    This signals a correlation gap (stale or incomplete directory data), not a
    bad request.
    """


class EventDecodeError(RelayError):
    """The request body is not JSON matching the webhook payload schema."""
