"""
Vitalis - Error Taxonomy
=========================
Three failure classes, each with a fixed resolution:

``ClientInputError``
    The caller's message is missing, empty, or too long.  Surfaced to
    the caller and never retried.

``UpstreamUnavailableError``
    An embedding / generation / retrieval provider misbehaved (bad
    status, bad payload shape).  Raised *inside* live providers only and
    always resolved locally by the provider's fallback path.

``VectorStoreAdminError``
    ``upsert`` / ``delete_all`` against the live vector index failed.
    Propagated to the caller of the administrative operation.
"""

from __future__ import annotations


class VitalisError(Exception):
    """Base class for every error raised by Vitalis."""

    status_code: int = 500


class ClientInputError(VitalisError):
    """Invalid caller input (maps to HTTP 400)."""

    status_code = 400


class UpstreamUnavailableError(VitalisError):
    """A remote provider failed or returned an unusable payload."""

    status_code = 503


class VectorStoreAdminError(VitalisError):
    """An administrative vector-store operation failed against the live index."""

    status_code = 503
