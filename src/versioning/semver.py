"""Go-flavoured semantic versions and the total order used for selection.

Version strings carry a mandatory ``v`` prefix and may use the shorthand
forms ``vMAJOR`` and ``vMAJOR.MINOR``. Invalid strings never raise from the
comparison helpers; they sort below every valid version.
"""

import functools
import re
from typing import Iterable, Optional, Tuple

import semantic_version

from constants import Constants
from common.errors import InvalidVersionError

_NUM = r"0|[1-9][0-9]*"
_IDENT = r"[0-9A-Za-z-]+"
_VERSION_RE = re.compile(
    rf"^v(?P<major>{_NUM})"
    rf"(?:\.(?P<minor>{_NUM})"
    rf"(?:\.(?P<patch>{_NUM})"
    rf"(?:-(?P<pre>{_IDENT}(?:\.{_IDENT})*))?"
    rf"(?:\+(?P<build>{_IDENT}(?:\.{_IDENT})*))?"
    r")?)?$"
)


@functools.lru_cache(maxsize=4096)
def _parse(v: str) -> Optional[Tuple[semantic_version.Version, str, str, str]]:
    """Return (precedence version, major, prerelease, build) or None."""
    if not isinstance(v, str):
        return None
    m = _VERSION_RE.match(v)
    if not m:
        return None
    pre = m.group("pre") or ""
    if any(p.isdigit() and len(p) > 1 and p[0] == "0" for p in pre.split(".") if pre):
        return None
    core = f"{m.group('major')}.{m.group('minor') or 0}.{m.group('patch') or 0}"
    try:
        parsed = semantic_version.Version(core + (f"-{pre}" if pre else ""))
    except ValueError:
        return None
    return parsed, "v" + m.group("major"), pre, m.group("build") or ""


def is_valid(v: str) -> bool:
    """Report whether ``v`` is a valid semantic version."""
    return _parse(v) is not None


def major(v: str) -> str:
    """Return the major prefix (``v2``), or "" when invalid."""
    p = _parse(v)
    return p[1] if p else ""


def major_minor(v: str) -> str:
    """Return ``vMAJOR.MINOR``, or "" when invalid."""
    p = _parse(v)
    if not p:
        return ""
    return f"{p[1]}.{p[0].minor}"


def prerelease(v: str) -> str:
    """Return the prerelease suffix including the leading ``-``."""
    p = _parse(v)
    return f"-{p[2]}" if p and p[2] else ""


def build(v: str) -> str:
    """Return the build suffix including the leading ``+``."""
    p = _parse(v)
    return f"+{p[3]}" if p and p[3] else ""


def canonical(v: str) -> str:
    """Return the canonical ``vX.Y.Z[-pre]`` form, keeping ``+incompatible``."""
    p = _parse(v)
    if not p:
        return ""
    parsed, _, pre, build_meta = p
    out = f"v{parsed.major}.{parsed.minor}.{parsed.patch}"
    if pre:
        out += f"-{pre}"
    if build_meta == Constants.INCOMPATIBLE:
        out += "+" + Constants.INCOMPATIBLE
    return out


def is_incompatible(v: str) -> bool:
    """Report whether ``v`` is a legacy release tagged ``+incompatible``."""
    p = _parse(v)
    return bool(p) and p[3] == Constants.INCOMPATIBLE


def compare(v: str, w: str) -> int:
    """Total order over version strings.

    Invalid < ``+incompatible`` < ordinary; within a class, semantic version
    precedence (build metadata ignored). Returns -1, 0 or 1.
    """
    pv, pw = _parse(v), _parse(w)
    if pv is None or pw is None:
        return (pv is not None) - (pw is not None)
    iv = pv[3] == Constants.INCOMPATIBLE
    iw = pw[3] == Constants.INCOMPATIBLE
    if iv != iw:
        return -1 if iv else 1
    if pv[0] < pw[0]:
        return -1
    if pv[0] > pw[0]:
        return 1
    return 0


sort_key = functools.cmp_to_key(compare)


def max_version(v: str, w: str) -> str:
    """Return the larger of two versions; "" if both are invalid."""
    v_valid, w_valid = is_valid(v), is_valid(w)
    if not v_valid and not w_valid:
        return ""
    return v if compare(v, w) > 0 else w


def max_of(versions: Iterable[str], prefix: str = "", pre: bool = False) -> str:
    """Return the maximum qualifying version, or "" when none qualify.

    Args:
        versions: Candidate strings, possibly invalid.
        prefix: Only versions starting with this string are considered.
        pre: Allow prereleases; v0 prereleases are always allowed.
    """
    best = ""
    for v in versions:
        if not is_valid(v) or not v.startswith(prefix):
            continue
        if not pre and prerelease(v) and major(v) != "v0":
            continue
        best = max_version(v, best)
    return best


def next_major(version: str) -> str:
    """Return the major after ``version`` (``v6.14.1+incompatible`` -> ``v7``)."""
    current = major(version)
    try:
        number = int(current[1:])
    except ValueError as exc:
        raise InvalidVersionError(f"invalid version: {version!r}") from exc
    return f"v{number + 1}"


def is_newer_version(old: str, new: str, major_only: bool = False) -> bool:
    """Report whether ``new`` is newer than ``old``.

    With ``major_only`` the major version must be strictly greater.
    """
    if major_only:
        return compare(major(old), major(new)) < 0
    return compare(old, new) < 0
