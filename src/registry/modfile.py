"""go.mod reader for the directives the tool needs.

Only ``module``, ``require`` and ``retract`` are interpreted; every other
directive is skipped. Both single-line and parenthesized block forms are
accepted.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from constants import Constants
from common.errors import NotFoundError, ParseError
from versioning import semver
from versioning.models import ModuleVersion, Retractions, VersionRange

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r'"(?:[^"\\]|\\.)*"|`[^`]*`|[()\[\],]|[^\s()\[\],"`]+')
_MODULE_LINE_RE = re.compile(r'^(?P<lead>[ \t]*module[ \t]+)(?P<path>"(?:[^"\\]|\\.)*"|`[^`]*`|[^\s/]\S*)', re.MULTILINE)


@dataclass(frozen=True)
class Requirement:
    """One ``require`` entry."""
    path: str
    version: str
    indirect: bool = False


@dataclass
class ModFile:
    """Parsed subset of a go.mod file."""
    module: str = ""
    requires: List[Requirement] = field(default_factory=list)
    retractions: Retractions = field(default_factory=Retractions)

    def direct(self) -> List[ModuleVersion]:
        """Return the requirements not marked ``// indirect``."""
        return [ModuleVersion(r.path, r.version) for r in self.requires if not r.indirect]


def _split_comment(line: str) -> Tuple[str, str]:
    """Split a line into code and the text of a trailing ``//`` comment."""
    quote = ""
    i = 0
    while i < len(line):
        c = line[i]
        if quote:
            if c == "\\" and quote == '"':
                i += 1
            elif c == quote:
                quote = ""
        elif c in ('"', "`"):
            quote = c
        elif line.startswith("//", i):
            return line[:i], line[i + 2:].strip()
        i += 1
    return line, ""


def _unquote(token: str) -> str:
    if token.startswith("`"):
        return token[1:-1]
    if token.startswith('"'):
        return token[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return token


def _is_indirect(comment: str) -> bool:
    return comment == "indirect" or comment.startswith("indirect;")


def _check_version(version: str, filename: str, lineno: int) -> str:
    if not semver.is_valid(version):
        raise ParseError(f"invalid version {version!r}", filename, lineno)
    return version


def _parse_retract(args: List[str], filename: str, lineno: int) -> VersionRange:
    if len(args) == 1:
        version = _check_version(_unquote(args[0]), filename, lineno)
        return VersionRange(version, version)
    if len(args) == 5 and args[0] == "[" and args[2] == "," and args[4] == "]":
        low = _check_version(_unquote(args[1]), filename, lineno)
        high = _check_version(_unquote(args[3]), filename, lineno)
        if semver.compare(low, high) > 0:
            raise ParseError(f"version interval [{low}, {high}] is empty", filename, lineno)
        return VersionRange(low, high)
    raise ParseError("usage: retract version or retract [low, high]", filename, lineno)


def parse_modfile(data: Union[bytes, str], filename: str = Constants.MOD_FILE) -> ModFile:
    """Parse go.mod content.

    Args:
        data: Raw file bytes or text.
        filename: Name used in error messages.

    Returns:
        ModFile with module path, requirements and retractions.

    Raises:
        ParseError: Malformed require/retract entries or an unclosed block.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError("invalid UTF-8", filename) from exc

    mod = ModFile()
    ranges: List[VersionRange] = []
    block: Optional[str] = None
    block_line = 0
    for lineno, raw in enumerate(data.splitlines(), 1):
        code, comment = _split_comment(raw)
        tokens = _TOKEN_RE.findall(code)
        if not tokens:
            continue
        if block is not None:
            if tokens == [")"]:
                block = None
                continue
            verb, args = block, tokens
        else:
            verb, args = tokens[0], tokens[1:]
            if args == ["("]:
                block, block_line = verb, lineno
                continue
        if verb == "module":
            if len(args) != 1:
                raise ParseError("usage: module module/path", filename, lineno)
            mod.module = _unquote(args[0])
        elif verb == "require":
            if len(args) != 2:
                raise ParseError("usage: require module/path v1.2.3", filename, lineno)
            version = _check_version(_unquote(args[1]), filename, lineno)
            mod.requires.append(Requirement(_unquote(args[0]), version, _is_indirect(comment)))
        elif verb == "retract":
            ranges.append(_parse_retract(args, filename, lineno))
    if block is not None:
        raise ParseError(f"unterminated {block} block", filename, block_line)
    mod.retractions = Retractions(tuple(ranges))
    return mod


def find_modfile(directory: str) -> str:
    """Return the nearest go.mod at or above ``directory``.

    Raises:
        NotFoundError: No go.mod exists up to the filesystem root.
    """
    current = os.path.abspath(directory)
    while True:
        candidate = os.path.join(current, Constants.MOD_FILE)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(current)
        if parent == current:
            raise NotFoundError(f"{Constants.MOD_FILE} not found in {directory} or any parent")
        current = parent


def load_modfile(name: str) -> ModFile:
    """Read and parse a go.mod file from disk."""
    with open(name, "rb") as fh:
        return parse_modfile(fh.read(), name)


def set_module_path(data: str, new_path: str, filename: str = Constants.MOD_FILE) -> str:
    """Return ``data`` with the ``module`` directive pointing at ``new_path``.

    Raises:
        ParseError: The file has no module directive.
    """
    m = _MODULE_LINE_RE.search(data)
    if not m:
        raise ParseError("no module directive", filename)
    path = m.group("path")
    replacement = f'"{new_path}"' if path[0] in ('"', "`") else new_path
    return data[: m.start("path")] + replacement + data[m.end("path"):]
