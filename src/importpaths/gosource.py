"""Minimal Go source scanner for import declarations.

Only the package clause and the import declarations that follow it are
parsed; the rest of the file is tokenized just far enough to find line
comments. Every token keeps its exact offsets so edits can be applied to the
original text without reformatting anything else.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, List, NamedTuple, Optional, Tuple

from constants import Constants
from common.errors import ParseError

_TOKEN_RE = re.compile(
    r"""
    (?P<line_comment>//[^\r\n]*)
  | (?P<block_comment>/\*.*?\*/)
  | (?P<raw_string>`[^`]*`)
  | (?P<string>"(?:[^"\\\n]|\\.)*")
  | (?P<rune>'(?:[^'\\\n]|\\.)*')
  | (?P<ident>[^\W\d]\w*)
  | (?P<number>\.?\d(?:[eEpP][+-]|[\w.])*)
  | (?P<newline>\n)
  | (?P<space>[ \t\r\f\v﻿]+)
  | (?P<bad>/\*|`|"|')
  | (?P<op>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_SIMPLE_ESCAPES = {
    "a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r",
    "t": "\t", "v": "\v", "\\": "\\", '"': '"', "'": "'",
}
_ESCAPE_RE = re.compile(r"\\(?:x[0-9A-Fa-f]{2}|u[0-9A-Fa-f]{4}|U[0-9A-Fa-f]{8}|[0-7]{3}|.)", re.DOTALL)


class NoPackageClause(ParseError):
    """The file ends before a package clause (empty or truncated file)."""


class Position(NamedTuple):
    """A source position rendered as ``file:line:column``."""
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


class Token(NamedTuple):
    kind: str
    text: str
    start: int
    end: int


@dataclass
class ImportSpec:
    """One import spec: optional name plus the path literal."""
    name: Optional[str]
    path: str
    literal: Token
    start: int


@dataclass
class ImportDecl:
    """An ``import`` declaration, grouped when it uses parentheses."""
    start: int
    specs: List[ImportSpec] = field(default_factory=list)
    lparen: Optional[int] = None
    rparen: Optional[int] = None

    @property
    def grouped(self) -> bool:
        return self.lparen is not None


@dataclass
class SourceFile:
    """Scanned view of a Go source file."""
    filename: str
    text: str
    package: str
    imports: List[ImportDecl]
    comments: List[Token]

    def position(self, offset: int) -> Position:
        """Return the 1-based line and column of ``offset``."""
        line = self.text.count("\n", 0, offset) + 1
        column = offset - (self.text.rfind("\n", 0, offset) + 1) + 1
        return Position(self.filename, line, column)

    def specs(self) -> Iterator[ImportSpec]:
        for decl in self.imports:
            yield from decl.specs

    def compat_comments(self) -> Iterator[Token]:
        """Line comments of the form ``// import "path"``."""
        for tok in self.comments:
            if tok.kind == "line_comment" and tok.text.startswith(Constants.COMPAT_COMMENT):
                yield tok


def tokenize(text: str, filename: str = "") -> List[Token]:
    """Split Go source into tokens, comments and whitespace included."""
    tokens = []
    for m in _TOKEN_RE.finditer(text):
        kind = m.lastgroup
        if kind == "bad":
            line = text.count("\n", 0, m.start()) + 1
            raise ParseError("unterminated literal or comment", filename, line)
        tokens.append(Token(kind, m.group(), m.start(), m.end()))
    return tokens


def unquote(literal: str) -> str:
    """Decode a Go string literal (interpreted or raw)."""
    if len(literal) >= 2 and literal[0] == literal[-1] == "`":
        return literal[1:-1].replace("\r", "")
    if len(literal) < 2 or literal[0] != '"' or literal[-1] != '"':
        raise ValueError(f"invalid string literal: {literal}")
    body = literal[1:-1]
    if '"' in _ESCAPE_RE.sub("", body):
        raise ValueError(f"invalid string literal: {literal}")

    def _decode(m: "re.Match[str]") -> str:
        esc = m.group()[1:]
        if esc in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[esc]
        if esc[0] in "xuU":
            return chr(int(esc[1:], 16))
        if len(esc) == 3 and esc.isdigit():
            return chr(int(esc, 8))
        raise ValueError(f"unknown escape sequence: \\{esc}")

    return _ESCAPE_RE.sub(_decode, body)


def quote(path: str) -> str:
    """Encode ``path`` as an interpreted Go string literal."""
    out = []
    for c in path:
        if c in ('"', "\\"):
            out.append("\\" + c)
        elif c.isprintable():
            out.append(c)
        elif ord(c) < 0x10000:
            out.append(f"\\u{ord(c):04x}")
        else:
            out.append(f"\\U{ord(c):08x}")
    return '"' + "".join(out) + '"'


class _Parser:
    def __init__(self, filename: str, tokens: List[Token], text: str):
        self.filename = filename
        self.tokens = [t for t in tokens if t.kind not in ("space", "block_comment", "line_comment")]
        self.text = text
        self.i = 0

    def _line(self, tok: Optional[Token]) -> int:
        offset = tok.start if tok else len(self.text)
        return self.text.count("\n", 0, offset) + 1

    def peek(self, skip_newlines: bool = True) -> Optional[Token]:
        while self.i < len(self.tokens):
            tok = self.tokens[self.i]
            if skip_newlines and (tok.kind == "newline" or tok.text == ";"):
                self.i += 1
                continue
            return tok
        return None

    def next(self, skip_newlines: bool = True) -> Optional[Token]:
        tok = self.peek(skip_newlines)
        if tok is not None:
            self.i += 1
        return tok

    def error(self, message: str, tok: Optional[Token]) -> ParseError:
        return ParseError(message, self.filename, self._line(tok))

    def parse(self) -> Tuple[str, List[ImportDecl]]:
        tok = self.next()
        if tok is None:
            raise NoPackageClause("expected 'package', found 'EOF'", self.filename)
        if tok.text != "package":
            raise self.error(f"expected 'package', found {tok.text!r}", tok)
        name = self.next(skip_newlines=False)
        if name is None or name.kind != "ident":
            raise self.error("expected package name", name)
        decls = []
        while True:
            tok = self.peek()
            if tok is None or tok.text != "import":
                break
            self.i += 1
            decls.append(self._import_decl(tok))
        return name.text, decls

    def _import_decl(self, keyword: Token) -> ImportDecl:
        decl = ImportDecl(start=keyword.start)
        tok = self.peek()
        if tok is not None and tok.text == "(":
            self.i += 1
            decl.lparen = tok.start
            while True:
                tok = self.peek()
                if tok is None:
                    raise self.error("expected ')', found 'EOF'", tok)
                if tok.text == ")":
                    self.i += 1
                    decl.rparen = tok.start
                    return decl
                decl.specs.append(self._import_spec())
        decl.specs.append(self._import_spec())
        return decl

    def _import_spec(self) -> ImportSpec:
        tok = self.next()
        name = None
        start = tok.start if tok else len(self.text)
        if tok is not None and (tok.kind == "ident" or tok.text == "."):
            name = tok.text
            tok = self.next(skip_newlines=False)
        if tok is None or tok.kind not in ("string", "raw_string"):
            raise self.error("missing import path", tok)
        try:
            path = unquote(tok.text)
        except ValueError as exc:
            raise self.error(str(exc), tok) from exc
        return ImportSpec(name=name, path=path, literal=tok, start=start)


def parse_source(text: str, filename: str = "") -> SourceFile:
    """Scan ``text`` and parse its package clause and import declarations.

    Raises:
        NoPackageClause: The file holds no package clause at all.
        ParseError: Any other malformation in the scanned region.
    """
    tokens = tokenize(text, filename)
    package, decls = _Parser(filename, tokens, text).parse()
    comments = [t for t in tokens if t.kind in ("line_comment", "block_comment")]
    return SourceFile(filename=filename, text=text, package=package, imports=decls, comments=comments)


def _spec_key(line: str) -> Tuple[str, str]:
    tokens = [t for t in tokenize(line) if t.kind not in ("space", "line_comment", "block_comment")]
    name = ""
    if len(tokens) == 2:
        name = tokens[0].text
    try:
        return unquote(tokens[-1].text), name
    except ValueError:
        return tokens[-1].text, name


def _sort_run(lines: List[str]) -> List[str]:
    """Sort one blank-line-delimited run of import lines."""
    entries: List[Tuple[Tuple[str, str], List[str]]] = []
    pending: List[str] = []
    for line in lines:
        if line.lstrip().startswith("//"):
            pending.append(line)
            continue
        entries.append((_spec_key(line), pending + [line]))
        pending = []
    entries.sort(key=lambda e: e[0])
    out: List[str] = []
    for _, block in entries:
        # identical uncommented specs collapse into one
        if len(block) == 1 and "//" not in block[0] and out and out[-1] == block[0]:
            continue
        out.extend(block)
    return out + pending


def sort_imports(source: SourceFile) -> str:
    """Return the text with grouped import blocks sorted and tab-indented.

    Blocks whose layout cannot be sorted line by line (a spec on the same
    line as a parenthesis, several specs per line, block comments) are left
    unchanged.
    """
    text = source.text
    for decl in reversed(source.imports):
        if not decl.grouped or len(decl.specs) < 2:
            continue
        body = text[decl.lparen + 1: decl.rparen]
        newline = "\r\n" if "\r\n" in body else "\n"
        head, sep, rest = body.partition("\n")
        if not sep or head.strip():
            continue
        inner, _, tail = rest.rpartition("\n")
        if tail.strip():
            continue
        lines = [line.strip() for line in inner.split("\n")]
        spec_lines = [line for line in lines if line and not line.startswith("//")]
        if len(spec_lines) != len(decl.specs) or "/*" in inner:
            continue
        runs: List[List[str]] = [[]]
        for line in lines:
            if not line:
                runs.append([])
            else:
                runs[-1].append(line)
        sorted_lines: List[str] = []
        for idx, run in enumerate(runs):
            if idx:
                sorted_lines.append("")
            sorted_lines.extend(_sort_run(run))
        new_body = newline + newline.join("\t" + line if line else "" for line in sorted_lines) + newline
        text = text[: decl.lparen + 1] + new_body + text[decl.rparen:]
    return text
