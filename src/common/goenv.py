"""Memoized access to Go environment settings (GOPROXY, GOPRIVATE, ...).

A GoEnv is built once by the entrypoint and handed to the components that
need it. Values are looked up at most once per key for the life of the
object; concurrent callers asking for the same key share a single lookup.
"""
from __future__ import annotations

import logging
import os
import subprocess
import threading
import urllib.parse
from typing import Callable, Dict, List, Mapping, Optional

from constants import Constants
from common.errors import ConfigurationError
from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

_DEFAULTS = {
    Constants.ENV_GOPROXY: Constants.DEFAULT_GOPROXY,
}
_PROXY_SCHEMES = ("http", "https", "file")


def go_env_lookup(key: str) -> str:
    """Read a setting through ``go env``, falling back to the process environment."""
    try:
        result = subprocess.run(
            [Constants.GO_BINARY, "env", key],
            capture_output=True,
            text=True,
            timeout=Constants.GO_ENV_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("go env %s unavailable: %s", key, exc)
        return os.environ.get(key, "").strip()
    if result.returncode != 0:
        return os.environ.get(key, "").strip()
    return result.stdout.strip()


class GoEnv:
    """Single-flight memoizing cache over a Go environment lookup."""

    def __init__(
        self,
        lookup: Optional[Callable[[str], str]] = None,
        overrides: Optional[Mapping[str, str]] = None,
    ):
        """Initialize the cache.

        Args:
            lookup: Function resolving a key; defaults to :func:`go_env_lookup`.
            overrides: Values that win over the lookup (config file ``env:``).
        """
        self._lookup = lookup or go_env_lookup
        self._overrides = dict(overrides or {})
        self._values: Dict[str, str] = {}
        self._inflight: Dict[str, threading.Event] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str:
        """Return the value for ``key``, computing it at most once.

        A failed lookup is not cached; callers that were waiting on it retry.
        """
        while True:
            with self._lock:
                if key in self._values:
                    return self._values[key]
                pending = self._inflight.get(key)
                leader = pending is None
                if leader:
                    pending = threading.Event()
                    self._inflight[key] = pending
            if leader:
                break
            pending.wait()
        try:
            value = self._resolve(key)
            with self._lock:
                self._values[key] = value
        finally:
            with self._lock:
                self._inflight.pop(key, None)
            pending.set()
        return value

    def _resolve(self, key: str) -> str:
        if key in self._overrides:
            value = str(self._overrides[key]).strip()
        else:
            value = (self._lookup(key) or "").strip()
        if not value:
            value = _DEFAULTS.get(key, "")
        if is_debug_enabled(logger):
            logger.debug(
                "Go environment lookup",
                extra=extra_context(event="env_lookup", component="goenv", target=key),
            )
        return value

    def proxy_urls(self) -> List[str]:
        """Return the usable GOPROXY entries in declared order.

        Keywords such as ``direct`` and ``off`` are dropped.

        Raises:
            ConfigurationError: No http(s) or file proxy is configured.
        """
        value = self.get(Constants.ENV_GOPROXY)
        urls = []
        for entry in value.replace("|", ",").split(","):
            entry = entry.strip()
            if not entry:
                continue
            scheme = urllib.parse.urlsplit(entry).scheme.lower()
            if scheme in _PROXY_SCHEMES:
                urls.append(entry.rstrip("/"))
        if not urls:
            raise ConfigurationError(f"no usable module proxy in GOPROXY={value!r}")
        return urls

    def private_patterns(self) -> List[str]:
        """Return GOPRIVATE (or GONOPROXY) glob patterns."""
        value = self.get(Constants.ENV_GOPRIVATE) or self.get(Constants.ENV_GONOPROXY)
        return [p.strip() for p in value.split(",") if p.strip()]
