"""Data models for module version resolution and updates."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from versioning import paths, semver


@dataclass(frozen=True)
class VersionRange:
    """Inclusive range of versions under the total order."""
    low: str
    high: str

    def includes(self, version: str) -> bool:
        """Report whether ``version`` lies within [low, high]."""
        return semver.compare(self.low, version) <= 0 and semver.compare(version, self.high) <= 0


@dataclass(frozen=True)
class Retractions:
    """Set of retracted version ranges."""
    ranges: Tuple[VersionRange, ...] = ()

    def includes(self, version: str) -> bool:
        """Report whether any range covers ``version``."""
        return any(r.includes(version) for r in self.ranges)

    def __bool__(self) -> bool:
        return bool(self.ranges)

    def __len__(self) -> int:
        return len(self.ranges)


@dataclass(frozen=True)
class Module:
    """A module path and its published version strings (unvalidated)."""
    path: str
    versions: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "versions", tuple(self.versions))

    def max_version(self, prefix: str = "", pre: bool = False) -> str:
        """Return the latest qualifying version, or "" if none qualifies.

        Args:
            prefix: Only versions starting with this string are considered.
            pre: Allow non-v0 prereleases.
        """
        return semver.max_of(self.versions, prefix, pre)

    def retract(self, retractions: Retractions) -> "Module":
        """Return a copy without the retracted versions."""
        if not retractions:
            return self
        return replace(self, versions=tuple(v for v in self.versions if not retractions.includes(v)))

    def with_major_path(self, version: str) -> str:
        """Return the module path encoding ``version``'s major."""
        return paths.join_path(paths.mod_prefix(self.path), version)

    def next_major_path(self) -> Optional[str]:
        """Return the module path of the next major version.

        v0 and v1 share an unsuffixed path under the slash convention, so
        both advance to v2 there. Returns None without valid versions.
        """
        latest = self.max_version("", True)
        if not latest:
            return None
        candidate = semver.next_major(latest)
        nextpath = self.with_major_path(candidate)
        while nextpath == self.path:
            candidate = semver.next_major(candidate)
            nextpath = self.with_major_path(candidate)
        return nextpath


@dataclass(frozen=True)
class ModuleVersion:
    """A (module path, version) pair."""
    path: str
    version: str

    def __str__(self) -> str:
        return f"{self.path}@{self.version}"


@dataclass(frozen=True)
class Spec:
    """Fully resolved rewrite target."""
    mod_prefix: str
    version: str
    package_dir: str = ""
    query: str = ""

    @property
    def module_path(self) -> str:
        """Module path for the resolved version."""
        return paths.join_path(self.mod_prefix, self.version)

    def __str__(self) -> str:
        return paths.join_path(self.mod_prefix, self.version, self.package_dir) + "@" + self.version


@dataclass
class Update:
    """One update scan result; ``err`` is set when resolution failed."""
    module: ModuleVersion
    latest: Optional[ModuleVersion] = None
    err: Optional[BaseException] = None

    def to_dict(self) -> dict:
        """Serializable view for JSON output."""
        out = {"module": {"path": self.module.path, "version": self.module.version}}
        if self.latest is not None:
            out["latest"] = {"path": self.latest.path, "version": self.latest.version}
        if self.err is not None:
            out["error"] = str(self.err)
        return out
