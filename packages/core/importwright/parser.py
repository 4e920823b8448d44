"""Parser for the HCL subset used by import requests and generated blocks.

Supports blocks with labels, attributes, strings, numbers, bools, null,
lists, objects, bare references (returned as Expression) and the three
comment styles. Template interpolation and function calls are not
supported; references are kept as opaque expressions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from importwright.errors import InvalidAddress, ParseError
from importwright.spec import AttributeSchema, AttributeSet, AttributeSpec, Expression, ImportRequest

_TOKEN_RE = re.compile(
    r"""
    (?P<COMMENT>\#[^\n]*|//[^\n]*|/\*.*?\*/)
  | (?P<NEWLINE>\n)
  | (?P<WS>[ \t\r]+)
  | (?P<STRING>"(?:[^"\\\n]|\\.)*")
  | (?P<NUMBER>-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)
  | (?P<IDENT>[A-Za-z_][A-Za-z0-9_-]*(?:\.[A-Za-z_][A-Za-z0-9_-]*|\[\d+\])*)
  | (?P<PUNCT>[{}\[\]=,:])
    """,
    re.VERBOSE | re.DOTALL,
)

_SIMPLE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\"}
_KEYWORDS = {"true": True, "false": False, "null": None}


@dataclass
class ParsedBlock:
    block_type: str
    labels: list[str] = field(default_factory=list)
    attributes: dict[str, Any] = field(default_factory=dict)
    blocks: list[ParsedBlock] = field(default_factory=list)
    line: int = 0


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    line: int
    column: int


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    line = 1
    line_start = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if not m:
            raise ParseError(f"Unexpected character {text[pos]!r}", line, pos - line_start + 1)
        kind = m.lastgroup or ""
        value = m.group()
        if kind == "NEWLINE":
            tokens.append(_Token(kind, value, line, pos - line_start + 1))
        elif kind not in ("WS", "COMMENT"):
            tokens.append(_Token(kind, value, line, pos - line_start + 1))
        newlines = value.count("\n")
        if newlines:
            line += newlines
            line_start = pos + value.rfind("\n") + 1
        pos = m.end()
    return tokens


def _unescape(raw: str, tok: _Token) -> str:
    body = raw[1:-1]
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\":
            nxt = body[i + 1] if i + 1 < len(body) else ""
            if nxt in _SIMPLE_ESCAPES:
                out.append(_SIMPLE_ESCAPES[nxt])
                i += 2
                continue
            if nxt == "u" and i + 6 <= len(body):
                out.append(chr(int(body[i + 2 : i + 6], 16)))
                i += 6
                continue
            raise ParseError(f"Invalid escape sequence \\{nxt}", tok.line, tok.column + i + 1)
        if body.startswith("$${", i) or body.startswith("%%{", i):
            out.append(body[i + 1 : i + 3])
            i += 3
            continue
        out.append(ch)
        i += 1
    return "".join(out)


class _Parser:
    def __init__(self, tokens: list[_Token]):
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> _Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> _Token:
        tok = self._peek()
        if tok is None:
            last = self._tokens[-1] if self._tokens else None
            raise ParseError("Unexpected end of input", last.line if last else 0, last.column if last else 0)
        self._pos += 1
        return tok

    def _skip_newlines(self) -> None:
        while (tok := self._peek()) is not None and tok.kind == "NEWLINE":
            self._pos += 1

    def _expect(self, text: str) -> _Token:
        tok = self._next()
        if tok.text != text:
            raise ParseError(f"Expected {text!r}, found {tok.text!r}", tok.line, tok.column)
        return tok

    def parse_body(self, closing: bool) -> tuple[dict[str, Any], list[ParsedBlock]]:
        attributes: dict[str, Any] = {}
        blocks: list[ParsedBlock] = []
        while True:
            self._skip_newlines()
            tok = self._peek()
            if tok is None:
                if closing:
                    self._next()
                return attributes, blocks
            if tok.text == "}":
                if not closing:
                    raise ParseError("Unexpected '}'", tok.line, tok.column)
                self._pos += 1
                return attributes, blocks
            if tok.kind != "IDENT" or "." in tok.text:
                raise ParseError(f"Expected an attribute or block name, found {tok.text!r}", tok.line, tok.column)
            self._pos += 1

            nxt = self._next()
            if nxt.text == "=":
                if tok.text in attributes:
                    raise ParseError(f"Duplicate attribute {tok.text!r}", tok.line, tok.column)
                attributes[tok.text] = self.parse_expr()
                self._end_of_item()
                continue

            labels: list[str] = []
            while nxt.kind in ("STRING", "IDENT"):
                labels.append(_unescape(nxt.text, nxt) if nxt.kind == "STRING" else nxt.text)
                nxt = self._next()
            if nxt.text != "{":
                raise ParseError(f"Expected '=' or '{{' after {tok.text!r}", nxt.line, nxt.column)
            attrs, children = self.parse_body(closing=True)
            blocks.append(ParsedBlock(tok.text, labels, attrs, children, tok.line))
            self._end_of_item()

    def _end_of_item(self) -> None:
        tok = self._peek()
        if tok is None or tok.kind == "NEWLINE" or tok.text == "}":
            return
        raise ParseError(f"Expected a newline, found {tok.text!r}", tok.line, tok.column)

    def parse_expr(self) -> Any:
        tok = self._next()
        if tok.kind == "STRING":
            return _unescape(tok.text, tok)
        if tok.kind == "NUMBER":
            if "." in tok.text or "e" in tok.text.lower():
                return float(tok.text)
            return int(tok.text)
        if tok.kind == "IDENT":
            if tok.text in _KEYWORDS:
                return _KEYWORDS[tok.text]
            return Expression(tok.text)
        if tok.text == "[":
            return self._parse_list()
        if tok.text == "{":
            return self._parse_object()
        raise ParseError(f"Unexpected {tok.text!r} in expression", tok.line, tok.column)

    def _parse_list(self) -> list[Any]:
        items: list[Any] = []
        while True:
            self._skip_newlines()
            tok = self._peek()
            if tok is not None and tok.text == "]":
                self._pos += 1
                return items
            items.append(self.parse_expr())
            self._skip_newlines()
            sep = self._next()
            if sep.text == "]":
                return items
            if sep.text != ",":
                raise ParseError(f"Expected ',' or ']', found {sep.text!r}", sep.line, sep.column)

    def _parse_object(self) -> dict[str, Any]:
        obj: dict[str, Any] = {}
        while True:
            self._skip_newlines()
            tok = self._next()
            if tok.text == "}":
                return obj
            if tok.kind == "STRING":
                key = _unescape(tok.text, tok)
            elif tok.kind == "IDENT":
                key = tok.text
            else:
                raise ParseError(f"Expected an object key, found {tok.text!r}", tok.line, tok.column)
            sep = self._next()
            if sep.text not in ("=", ":"):
                raise ParseError(f"Expected '=' after key {key!r}", sep.line, sep.column)
            obj[key] = self.parse_expr()
            tok = self._peek()
            if tok is not None and tok.text == ",":
                self._pos += 1


def parse(text: str) -> list[ParsedBlock]:
    """Parse an HCL document into its top-level blocks.

    Top-level attributes (as found in .tfvars files) are not expected here and
    raise ParseError.
    """
    parser = _Parser(_tokenize(text))
    attributes, blocks = parser.parse_body(closing=False)
    if attributes:
        raise ParseError(f"Unexpected top-level attribute(s): {', '.join(attributes)}")
    return blocks


def parse_import_requests(text: str) -> list[ImportRequest]:
    """Read every top-level ``import { to = ..., id = "..." }`` block."""
    requests = []
    for block in parse(text):
        if block.block_type != "import":
            continue
        to = block.attributes.get("to")
        external_id = block.attributes.get("id")
        if to is None or external_id is None:
            raise ParseError("import block needs both 'to' and 'id'", block.line, 1)
        if not isinstance(external_id, str):
            raise ParseError("import block 'id' must be a string", block.line, 1)
        try:
            requests.append(ImportRequest(address=str(to), external_id=external_id))
        except (InvalidAddress, ValidationError) as exc:
            raise ParseError(f"Invalid import block: {exc}", block.line, 1) from exc
    return requests


def parse_import_file(path: str | Path) -> list[ImportRequest]:
    return parse_import_requests(Path(path).read_text())


def block_attributes(block: ParsedBlock, schema: AttributeSchema) -> AttributeSet:
    """Turn a parsed resource block back into an attribute set for reconciliation."""
    return _body_attributes(block, schema.attributes)


def _body_attributes(block: ParsedBlock, specs: list[AttributeSpec]) -> AttributeSet:
    attrs: AttributeSet = dict(block.attributes)
    for spec in specs:
        if not spec.is_block:
            continue
        children = [_body_attributes(b, spec.attributes) for b in block.blocks if b.block_type == spec.name]
        if not children:
            continue
        attrs[spec.name] = children[0] if spec.nesting == "single" and len(children) == 1 else children
    return attrs
