"""Import path conventions for major versions.

Two encodings exist. Paths under ``gopkg.in/`` always carry an explicit
dotted major (``gopkg.in/yaml.v3``). Every other path omits the major for
v0, v1 and ``+incompatible`` releases and appends ``/vN`` otherwise.
"""

import fnmatch
import re
from typing import Iterable, Tuple

from constants import Constants
from versioning import semver

_ELEM_RE = re.compile(r"^[A-Za-z0-9.\-_~+]+$")
_DOMAIN_RE = re.compile(r"^[a-z0-9.\-]+$")
_UNSTABLE = "-unstable"


def is_dotted(path: str) -> bool:
    """Report whether ``path`` uses the dotted major convention."""
    return path.startswith(Constants.DOTTED_PREFIX)


def split_path_version(path: str) -> Tuple[str, str, bool]:
    """Split ``path`` into (prefix, path_major, ok).

    ``path_major`` keeps its separator (``/v2`` or ``.v2``) and is empty
    when the path carries no major. ``ok`` is False for disallowed suffixes
    such as ``/v1`` or a dotted path without a major.
    """
    if is_dotted(path):
        return _split_dotted(path)
    i = len(path)
    dot = False
    while i > 0 and (path[i - 1].isdigit() or path[i - 1] == "."):
        if path[i - 1] == ".":
            dot = True
        i -= 1
    if i <= 1 or i == len(path) or path[i - 1] != "v" or path[i - 2] != "/":
        return path, "", True
    prefix, path_major = path[: i - 2], path[i - 2:]
    if dot or len(path_major) <= 2 or path_major[2] == "0" or path_major == "/v1":
        return path, "", False
    return prefix, path_major, True


def _split_dotted(path: str) -> Tuple[str, str, bool]:
    i = len(path)
    if path.endswith(_UNSTABLE):
        i -= len(_UNSTABLE)
    while i > 0 and path[i - 1].isdigit():
        i -= 1
    if i <= 1 or path[i - 1] != "v" or path[i - 2] != ".":
        return path, "", False
    prefix, path_major = path[: i - 2], path[i - 2:]
    if len(path_major) <= 2 or (path_major[2] == "0" and path_major != ".v0"):
        return path, "", False
    return prefix, path_major, True


def mod_prefix(modpath: str) -> str:
    """Return the module path with any encoded major removed."""
    prefix, _, ok = split_path_version(modpath)
    return prefix if ok else modpath


def mod_major(modpath: str) -> Tuple[str, bool]:
    """Return the bare major encoded in ``modpath`` (``v2``) and validity."""
    _, path_major, ok = split_path_version(modpath)
    if ok:
        path_major = path_major.lstrip("/.")
        if path_major.endswith(_UNSTABLE):
            path_major = path_major[: -len(_UNSTABLE)]
    return path_major, ok


def join_path(prefix: str, version: str, subdir: str = "") -> str:
    """Combine a module prefix, a version's major and a package subdirectory."""
    version = version.lstrip("./")
    major = semver.major(version)
    path = prefix
    if is_dotted(prefix):
        if major:
            path += "." + major
    elif major and major not in ("v0", "v1") and not semver.is_incompatible(version):
        if not path.endswith("/"):
            path += "/"
        path += major
    if subdir:
        path += "/" + subdir
    return path


def split_path(prefix: str, path: str) -> Tuple[str, str, bool]:
    """Split ``path`` into (module path, package subdirectory, ok).

    The segment right after ``prefix`` is inspected for an encoded major.
    ``ok`` is False when ``path`` does not start with ``prefix`` on a
    segment boundary.
    """
    if not path.startswith(prefix):
        return "", "", False
    rest = path[len(prefix):]
    if rest and rest[0] != "/" and not (rest[0] == "." and is_dotted(prefix)):
        return "", "", False
    modpath_len = len(prefix)
    if path[modpath_len:].startswith("/"):
        modpath_len += 1
    idx = path.find("/", modpath_len)
    modpath_len = idx if idx >= 0 else len(path)
    modpath = prefix
    major, ok = mod_major(path[:modpath_len])
    if ok and major:
        modpath = join_path(prefix, major)
    elif rest.startswith("."):
        return "", "", False
    if not path.startswith(modpath):
        return "", "", False
    subdir = path[len(modpath):].lstrip("/")
    return modpath, subdir, True


def split_spec(spec: str) -> Tuple[str, str]:
    """Split ``path@query`` into its path and (possibly empty) query."""
    path, _, query = spec.partition("@")
    return path, query


def check_path(path: str) -> bool:
    """Report whether ``path`` is syntactically usable as a module path."""
    if not path or path.startswith("/") or path.endswith("/"):
        return False
    elems = path.split("/")
    domain = elems[0]
    if "." not in domain or domain.startswith("-") or not _DOMAIN_RE.match(domain):
        return False
    for elem in elems:
        if not elem or not _ELEM_RE.match(elem):
            return False
        if elem.startswith(".") or elem.endswith("."):
            return False
    _, _, ok = split_path_version(path)
    return ok


def match_prefix_patterns(patterns: Iterable[str], path: str) -> bool:
    """Report whether any glob pattern matches a leading prefix of ``path``.

    Patterns follow GOPRIVATE semantics: each pattern element is matched
    against the corresponding path element, so ``*`` never crosses ``/``.
    """
    elems = path.split("/")
    for pattern in patterns:
        pattern = pattern.strip().rstrip("/")
        if not pattern:
            continue
        pattern_elems = pattern.split("/")
        if len(pattern_elems) > len(elems):
            continue
        if all(fnmatch.fnmatchcase(e, p) for e, p in zip(elems, pattern_elems)):
            return True
    return False
