"""Go module proxy client: version lists and go.mod manifests.

Bases come from GOPROXY and are tried strictly in order. A clean not-found
moves on to the next base; any other failure stops the lookup.
"""
from __future__ import annotations

import logging
import os
import urllib.parse
import urllib.request
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from constants import Constants
from common.errors import ConfigurationError, InvalidPathError, ProtocolError, TransportError
from common.http_client import safe_get
from common.logging_utils import extra_context, is_debug_enabled, safe_url

logger = logging.getLogger(__name__)


class Scheme(Enum):
    """Transport backends a proxy base can use."""
    HTTP = "http"
    FILE = "file"


@dataclass(frozen=True)
class ProxyBase:
    """One configured proxy base URL tagged with its backend."""
    scheme: Scheme
    url: str

    @classmethod
    def parse(cls, url: str) -> "ProxyBase":
        """Build a ProxyBase from an http(s):// or file:// URL."""
        scheme = urllib.parse.urlsplit(url).scheme.lower()
        if scheme in ("http", "https"):
            return cls(Scheme.HTTP, url.rstrip("/"))
        if scheme == "file":
            return cls(Scheme.FILE, url)
        raise InvalidPathError(f"unsupported proxy URL: {url}")

    @property
    def root(self) -> str:
        """Filesystem root of a file:// base."""
        parts = urllib.parse.urlsplit(self.url)
        path = urllib.request.url2pathname(parts.path)
        if parts.netloc and parts.netloc != "localhost":
            path = "//" + parts.netloc + path
        return path


def escape_path(path: str) -> str:
    """Escape a module path for proxy URLs (``A`` becomes ``!a``).

    Raises:
        InvalidPathError: Empty path or one already containing ``!``.
    """
    if not path or "!" in path:
        raise InvalidPathError(f"invalid module path: {path!r}")
    return "".join(f"!{c.lower()}" if "A" <= c <= "Z" else c for c in path)


def escape_version(version: str) -> str:
    """Escape a version for proxy URLs."""
    if not version or "!" in version or "/" in version:
        raise InvalidPathError(f"invalid version: {version!r}")
    return "".join(f"!{c.lower()}" if "A" <= c <= "Z" else c for c in version)


def _fetch_http(base: ProxyBase, relpath: str, cached: bool) -> Optional[bytes]:
    url = f"{base.url}/{relpath}"
    headers = {"User-Agent": Constants.USER_AGENT}
    if cached:
        headers[Constants.CACHED_HEADER] = "true"
    res = safe_get(url, context="goproxy", headers=headers)
    if res.status_code == 200:
        return res.content
    if res.status_code in Constants.NOT_FOUND_STATUSES:
        return None
    msg = (res.text or "").strip() or f"{res.status_code} {res.reason or ''}".strip()
    raise ProtocolError(f"proxy: {msg}")


def _fetch_file(base: ProxyBase, relpath: str, cached: bool) -> Optional[bytes]:  # pylint: disable=unused-argument
    name = os.path.join(base.root, *relpath.split("/"))
    try:
        with open(name, "rb") as fh:
            return fh.read()
    except (FileNotFoundError, NotADirectoryError):
        return None
    except OSError as exc:
        raise TransportError(f"proxy: {exc}") from exc


_HANDLERS: Dict[Scheme, Callable[[ProxyBase, str, bool], Optional[bytes]]] = {
    Scheme.HTTP: _fetch_http,
    Scheme.FILE: _fetch_file,
}


class ProxyClient:
    """Read-only client over one or more module proxy bases."""

    def __init__(self, bases: Sequence[str], cached: bool = True):
        """Initialize the client.

        Args:
            bases: Proxy URLs in the order they are tried.
            cached: Ask http proxies to serve only cached content.
        """
        if not bases:
            raise ConfigurationError("no module proxy configured")
        self.bases: List[ProxyBase] = [ProxyBase.parse(b) for b in bases]
        self.cached = cached

    def _fetch(self, relpath: str) -> Optional[bytes]:
        for base in self.bases:
            data = _HANDLERS[base.scheme](base, relpath, self.cached)
            if data is not None:
                return data
            if is_debug_enabled(logger):
                logger.debug(
                    "Proxy reported not found",
                    extra=extra_context(
                        event="proxy_not_found",
                        component="goproxy",
                        target=safe_url(base.url) + "/" + relpath,
                    ),
                )
        return None

    def fetch_list(self, modpath: str) -> Optional[List[str]]:
        """Return the published versions of ``modpath``, or None if unknown."""
        data = self._fetch(f"{escape_path(modpath)}/{Constants.LIST_SUFFIX}")
        if data is None:
            return None
        text = data.decode("utf-8", errors="replace")
        return [line.strip() for line in text.splitlines() if line.strip()]

    def fetch_mod(self, modpath: str, version: str) -> Optional[bytes]:
        """Return the raw go.mod of ``modpath@version``, or None if unknown."""
        relpath = f"{escape_path(modpath)}/@v/{escape_version(version)}{Constants.MOD_SUFFIX}"
        return self._fetch(relpath)
