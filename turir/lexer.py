from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Tuple, Union

from .errors import SourceError


class TokenKind(Enum):
    SYMBOL = "Symbol"
    LEFT_ARROW = "<-"
    RIGHT_ARROW = "->"
    CMD = "Cmd"
    BRA = "["
    KET = "]"
    NEW_LINE = "new line"
    # Se devuelven en lugar de un token.
    EOF = "EOF"
    UNKNOWN = "unknown token"
    UNCLOSED_STR = "unclosed string"

    @property
    def label(self) -> str:
        return self.value

    @property
    def is_marker(self) -> bool:
        return self in _MARKERS


_MARKERS = frozenset({TokenKind.EOF, TokenKind.UNKNOWN, TokenKind.UNCLOSED_STR})


@dataclass(frozen=True)
class Location:
    """Posición (desde cero) dentro de un archivo fuente."""

    file: str
    row: int
    col: int

    def __str__(self) -> str:
        return f"{self.file}:{self.row + 1}:{self.col + 1}"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    location: Location

    def describe(self) -> str:
        """Forma legible usada en los mensajes de error de análisis."""

        if self.kind is TokenKind.EOF:
            return "EOF"
        if self.kind is TokenKind.UNCLOSED_STR:
            return "unclosed string"
        if self.kind is TokenKind.NEW_LINE:
            return "new line"
        if self.kind is TokenKind.UNKNOWN:
            return f"unknown token {self.text!r}"
        return f"{self.kind.label} {self.text!r}"


LITERALS: Tuple[Tuple[str, TokenKind], ...] = (
    ("->", TokenKind.RIGHT_ARROW),
    ("<-", TokenKind.LEFT_ARROW),
    ("[", TokenKind.BRA),
    ("]", TokenKind.KET),
    ("\n", TokenKind.NEW_LINE),
)

_HORIZONTAL_SPACE = "\t\f\r "
_ASCII_WHITESPACE = " \t\n\f\r"
_LITERAL_STARTS = frozenset(literal[0] for literal, _ in LITERALS)


def is_symbol_char(ch: str) -> bool:
    return ch not in _ASCII_WHITESPACE and ch != "'" and ch not in _LITERAL_STARTS


def decode_source(data: bytes, filename: str) -> str:
    """Decodifica el fuente como UTF-8 indicando la posición del primer byte inválido."""

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        prefix = data[:exc.start]
        row = prefix.count(b"\n")
        col = len(prefix) - (prefix.rfind(b"\n") + 1)
        location = Location(filename, row, col)
        raise SourceError(f"{location}: invalid UTF-8 byte 0x{data[exc.start]:02x}") from exc


class Lexer:
    """Convierte el código fuente de turir en tokens, uno a uno."""

    def __init__(self, source: Union[str, bytes], filename: str = "<string>") -> None:
        if isinstance(source, (bytes, bytearray)):
            source = decode_source(bytes(source), filename)
        self.text = source
        self.filename = filename
        self.cursor = 0
        self.bol = 0
        self.row = 0

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            if token.kind is TokenKind.EOF:
                return
            yield token

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.text)

    def location(self) -> Location:
        return Location(self.filename, self.row, self.cursor - self.bol)

    def peek_token(self) -> Token:
        saved = (self.cursor, self.bol, self.row)
        token = self.next_token()
        self.cursor, self.bol, self.row = saved
        return token

    def next_token(self) -> Token:
        self._trim_left()
        location = self.location()

        if self.exhausted:
            return Token(TokenKind.EOF, "", location)

        if self.text.startswith("//", self.cursor):
            self._skip_until("\n")
            location = self.location()
            if self.exhausted:
                return Token(TokenKind.EOF, "", location)

        ch = self.text[self.cursor]
        if ch == "'":
            return self._extract_string(location)
        if ch == "#":
            return self._extract_symbol(TokenKind.CMD, location)
        if is_symbol_char(ch):
            return self._extract_symbol(TokenKind.SYMBOL, location)

        for literal, kind in LITERALS:
            if self.text.startswith(literal, self.cursor):
                self._advance(len(literal))
                return Token(kind, literal, location)

        self._advance(1)
        return Token(TokenKind.UNKNOWN, ch, location)

    def _advance(self, count: int) -> None:
        for _ in range(count):
            ch = self.text[self.cursor]
            self.cursor += 1
            if ch == "\n":
                self.bol = self.cursor
                self.row += 1

    def _trim_left(self) -> None:
        while not self.exhausted and self.text[self.cursor] in _HORIZONTAL_SPACE:
            self._advance(1)

    def _skip_until(self, stop: str) -> None:
        while not self.exhausted and self.text[self.cursor] != stop:
            self._advance(1)

    def _extract_symbol(self, kind: TokenKind, location: Location) -> Token:
        start = self.cursor
        # El primer carácter puede ser "#", que también es carácter de símbolo.
        self._advance(1)
        while not self.exhausted and is_symbol_char(self.text[self.cursor]):
            self._advance(1)
        return Token(kind, self.text[start:self.cursor], location)

    def _extract_string(self, location: Location) -> Token:
        self._advance(1)
        start = self.cursor
        while not self.exhausted and self.text[self.cursor] not in "'\n":
            self._advance(1)
        body = self.text[start:self.cursor]
        if self.exhausted or self.text[self.cursor] == "\n":
            return Token(TokenKind.UNCLOSED_STR, body, location)
        self._advance(1)
        return Token(TokenKind.SYMBOL, body, location)
