"""Module resolution against a Go module proxy.

The resolver walks the chain of major versions of a module (``m``,
``m/v2``, ``m/v3`` ...), finds the module owning an arbitrary package path,
and turns a ``path[@query]`` string into a concrete :class:`Spec`.
"""

from __future__ import annotations

import logging
import posixpath
from typing import List, Optional

from constants import Constants
from common.errors import (
    IncompatibleImportError,
    InvalidVersionError,
    LimitExceededError,
    NoVersionsError,
    NotFoundError,
)
from common.logging_utils import extra_context, is_debug_enabled
from registry.goproxy import ProxyClient
from registry.modfile import parse_modfile
from versioning import paths, semver
from versioning.models import Module, Retractions, Spec

logger = logging.getLogger(__name__)


class ModuleResolver:
    """Resolve modules, major version chains and specs through a proxy."""

    def __init__(self, client: ProxyClient, limit: int = Constants.MAX_MAJOR_CHAIN):
        """Initialize the resolver.

        Args:
            client: Proxy client used for every lookup.
            limit: Maximum number of major versions followed by :meth:`list`.
        """
        self.client = client
        self.limit = limit

    def query(self, modpath: str) -> Optional[Module]:
        """Return the module at ``modpath`` with its versions, or None."""
        versions = self.client.fetch_list(modpath)
        if versions is None:
            return None
        return Module(modpath, tuple(versions))

    def query_package(self, pkgpath: str) -> Module:
        """Find the module providing the package ``pkgpath``.

        Trailing path elements are removed until a module is found.

        Raises:
            NotFoundError: No prefix of the path is a known module.
            IncompatibleImportError: The path encodes a major that only exists
                as ``+incompatible`` releases of the found module.
        """
        prefix = pkgpath
        while prefix:
            if paths.check_path(prefix):
                mod = self.query(prefix)
                if mod is not None:
                    self._check_import_versioning(mod, pkgpath)
                    if is_debug_enabled(logger):
                        logger.debug(
                            "Resolved package module",
                            extra=extra_context(
                                event="decision",
                                component="resolver",
                                action="query_package",
                                target=pkgpath,
                                outcome=mod.path,
                            ),
                        )
                    return mod
            remaining, last = posixpath.split(prefix)
            if not last:
                break
            prefix = remaining.rstrip("/")
        raise NotFoundError(f"failed to find module for package: {pkgpath}")

    @staticmethod
    def _check_import_versioning(mod: Module, pkgpath: str) -> None:
        modprefix = paths.mod_prefix(mod.path)
        modpath, pkgdir, ok = paths.split_path(modprefix, pkgpath)
        if not ok or modpath == mod.path:
            return
        major, ok = paths.mod_major(modpath)
        if not ok or not major:
            return
        version = mod.max_version(major, False)
        if version:
            suggestion = paths.join_path(modprefix, "", pkgdir) + "@" + version
            raise IncompatibleImportError(major, suggestion)
        raise NotFoundError(f"failed to find module for package: {pkgpath}")

    def list(self, modpath: str) -> List[Module]:
        """Return ``modpath`` followed by every later major version module.

        Raises:
            NotFoundError: ``modpath`` itself is unknown.
            LimitExceededError: The chain is longer than ``self.limit``.
        """
        latest = self.query(modpath)
        if latest is None:
            raise NotFoundError(f"module not found: {modpath}")
        history = [latest]
        for _ in range(self.limit):
            nextpath = latest.next_major_path()
            if nextpath is None:
                return history
            nxt = self.query(nextpath)
            if nxt is None:
                # the project may have adopted modules without bumping the major
                version = latest.max_version("", True)
                if semver.is_incompatible(version):
                    nextpath = latest.with_major_path(semver.major(version))
                    if nextpath != latest.path:
                        nxt = self.query(nextpath)
            if nxt is None:
                return history
            latest = nxt
            history.append(latest)
        raise LimitExceededError(f"request limit exceeded while listing {modpath}")

    def retractions(self, mod: Module, version: str) -> Retractions:
        """Return the retractions declared by ``mod@version``'s go.mod."""
        data = self.client.fetch_mod(mod.path, version)
        if data is None:
            logger.debug("No go.mod for %s@%s; assuming no retractions", mod.path, version)
            return Retractions()
        return parse_modfile(data, f"{mod.path}@{version}/{Constants.MOD_FILE}").retractions

    def latest(self, modpath: str, pre: bool = False) -> Optional[Module]:
        """Return the newest major version module with a qualifying version.

        Retractions are read from the go.mod of the highest version across
        the whole chain and removed from every module before selecting.
        Returns None when no version qualifies.
        """
        mods = self.list(modpath)
        owner, highest = None, ""
        for mod in mods:
            version = mod.max_version("", True)
            if version and semver.max_version(version, highest) == version:
                owner, highest = mod, version
        if owner is None:
            return None
        retractions = self.retractions(owner, highest)
        for mod in reversed(mods):
            mod = mod.retract(retractions)
            if mod.max_version("", pre):
                return mod
        return None

    def resolve(self, spec: str, pre: bool = False) -> Spec:
        """Resolve ``path[@query]`` to a concrete target.

        An empty query selects the owning module's newest version; ``latest``,
        ``master`` and ``default`` select the newest major; anything else must
        be a valid version.

        Raises:
            InvalidVersionError: The query is not a valid version.
            NoVersionsError: No version qualifies.
        """
        pkgpath, query = paths.split_spec(spec)
        mod = self.query_package(pkgpath)
        modprefix = paths.mod_prefix(mod.path)
        _, pkgdir, _ = paths.split_path(modprefix, pkgpath)
        if not query:
            version = mod.max_version("", pre)
        elif query in Constants.LATEST_QUERIES:
            latest = self.latest(mod.path, pre)
            version = latest.max_version("", pre) if latest is not None else ""
        else:
            if not semver.is_valid(query):
                raise InvalidVersionError(f"invalid version: {query}")
            version = query
            incompatible = f"{query}+{Constants.INCOMPATIBLE}"
            if query not in mod.versions and not semver.build(query) and incompatible in mod.versions:
                version = incompatible
        if not version:
            raise NoVersionsError(f"no versions found for {pkgpath}")
        return Spec(mod_prefix=modprefix, version=version, package_dir=pkgdir, query=query)
