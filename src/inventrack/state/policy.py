"""Load gating policy.

Pure predicates shared by the stores and the session-gated loader.
"""

from __future__ import annotations


def should_load(*, is_authenticated: bool, collection_length: int, loading: bool) -> bool:
    """Whether a session-gated loader should trigger a load.

    An empty collection cannot be told apart from one that was never
    loaded; callers that need the distinction must track it themselves.
    """
    return is_authenticated and collection_length == 0 and not loading


def is_current_load(request_seq: int, latest_seq: int) -> bool:
    """A load response is applied only if no newer load (or reset) started since."""
    return request_seq == latest_seq
