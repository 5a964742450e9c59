"""Client configuration for inventrack."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from inventrack._constants import USER_AGENT
from inventrack.exceptions import InventrackConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class InventrackConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Base URL of the InvenTrack REST API (fixed per deployment).
        A trailing slash is stripped.
    storage_dir : str or None
        Directory holding the persisted store snapshots.  ``None`` keeps
        snapshots in memory only.
    request_timeout : float or None
        Total timeout in seconds for a single request.  ``None`` leaves
        the transport's own default in place.
    persist_version : int
        Version stamped into every persisted snapshot.  Snapshots written
        with a different version are discarded on startup.
    user_agent : str
        User-Agent header sent with every request.
    api_trace_enabled : bool
        Log redacted request and response bodies at DEBUG level.
    """

    base_url: str
    storage_dir: str | None = None
    request_timeout: float | None = None
    persist_version: int = 0
    user_agent: str = USER_AGENT
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        base_url = self.base_url.strip() if isinstance(self.base_url, str) else ""
        if not base_url:
            raise InventrackConfigError("base_url must be non-empty")
        object.__setattr__(self, "base_url", base_url.rstrip("/"))
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise InventrackConfigError("request_timeout must be positive when set")

    @classmethod
    def from_env(cls, **overrides: Any) -> InventrackConfig:
        """Create configuration from environment variables.

        Reads ``INVENTRACK_BASE_URL`` plus the optional
        ``INVENTRACK_STORAGE_DIR``, ``INVENTRACK_REQUEST_TIMEOUT``,
        ``INVENTRACK_PERSIST_VERSION`` and ``INVENTRACK_API_TRACE_ENABLED``.
        Explicit keyword arguments override environment values.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}
        base_url = env.get("INVENTRACK_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url

        storage_dir = env.get("INVENTRACK_STORAGE_DIR")
        if storage_dir:
            config_kwargs["storage_dir"] = storage_dir

        timeout_env = env.get("INVENTRACK_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            try:
                config_kwargs["request_timeout"] = float(timeout_env)
            except ValueError as exc:
                raise InventrackConfigError(f"INVENTRACK_REQUEST_TIMEOUT is not a number: {timeout_env!r}") from exc

        version_env = env.get("INVENTRACK_PERSIST_VERSION")
        if version_env is not None and "persist_version" not in overrides:
            try:
                config_kwargs["persist_version"] = int(version_env)
            except ValueError as exc:
                raise InventrackConfigError(f"INVENTRACK_PERSIST_VERSION is not an integer: {version_env!r}") from exc

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(env.get("INVENTRACK_API_TRACE_ENABLED"), False)

        config_kwargs.update(overrides)

        if "base_url" not in config_kwargs:
            raise InventrackConfigError("INVENTRACK_BASE_URL is not set")

        return cls(**config_kwargs)
