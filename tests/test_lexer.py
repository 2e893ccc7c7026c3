import pytest

from turir.errors import SourceError
from turir.lexer import Lexer, Location, TokenKind, decode_source


def kinds(source):
    return [token.kind for token in Lexer(source)]


def test_instruction_line_tokens():
    assert kinds("A 0 1 -> B\n") == [
        TokenKind.SYMBOL,
        TokenKind.SYMBOL,
        TokenKind.SYMBOL,
        TokenKind.RIGHT_ARROW,
        TokenKind.SYMBOL,
        TokenKind.NEW_LINE,
    ]


def test_token_locations_are_recorded_before_consumption():
    lexer = Lexer("A 0 1 -> B\n", "m.tur")
    columns = [(token.text, token.location.col) for token in lexer]
    assert columns == [("A", 0), ("0", 2), ("1", 4), ("->", 6), ("B", 9), ("\n", 10)]


def test_newline_advances_row_and_resets_column():
    lexer = Lexer("A\n  B", "m.tur")
    tokens = list(lexer)
    assert tokens[2].text == "B"
    assert tokens[2].location == Location("m.tur", 1, 2)
    assert str(tokens[2].location) == "m.tur:2:3"


def test_whitespace_and_comments_only_is_eof():
    lexer = Lexer("   \t\r// just a comment")
    assert lexer.next_token().kind is TokenKind.EOF


def test_comment_yields_following_newline():
    tokens = list(Lexer("A // comment <- ]\nB"))
    assert [t.kind for t in tokens] == [TokenKind.SYMBOL, TokenKind.NEW_LINE, TokenKind.SYMBOL]
    assert tokens[1].location.row == 0
    assert tokens[2].location.row == 1


def test_quoted_symbol_may_contain_spaces_and_literals():
    tokens = list(Lexer("'a b' '[' '->' ''"))
    assert [t.kind for t in tokens] == [TokenKind.SYMBOL] * 4
    assert [t.text for t in tokens] == ["a b", "[", "->", ""]


def test_unclosed_string_before_newline():
    lexer = Lexer("  'abc\nB")
    token = lexer.next_token()
    assert token.kind is TokenKind.UNCLOSED_STR
    assert token.location.col == 2
    assert lexer.next_token().kind is TokenKind.NEW_LINE


def test_unclosed_string_at_end_of_input():
    assert Lexer("'abc").next_token().kind is TokenKind.UNCLOSED_STR


def test_command_token():
    token = Lexer("#run [").next_token()
    assert token.kind is TokenKind.CMD
    assert token.text == "#run"


def test_symbol_characters():
    tokens = list(Lexer("a#b a>b a[b"))
    assert [t.text for t in tokens] == ["a#b", "a>b", "a", "[", "b"]
    assert tokens[3].kind is TokenKind.BRA


def test_arrows_and_brackets():
    assert kinds("<- -> [ ]") == [
        TokenKind.LEFT_ARROW,
        TokenKind.RIGHT_ARROW,
        TokenKind.BRA,
        TokenKind.KET,
    ]


def test_unknown_character_still_advances():
    lexer = Lexer("-x")
    first = lexer.next_token()
    assert first.kind is TokenKind.UNKNOWN
    assert first.text == "-"
    second = lexer.next_token()
    assert second.kind is TokenKind.SYMBOL
    assert second.text == "x"
    assert second.location.col == 1


def test_peek_does_not_advance():
    lexer = Lexer("A\nB -> C")
    lexer.next_token()
    before = (lexer.cursor, lexer.bol, lexer.row)
    first = lexer.peek_token()
    second = lexer.peek_token()
    assert first == second
    assert (lexer.cursor, lexer.bol, lexer.row) == before
    assert lexer.next_token() == first


def test_eof_repeats():
    lexer = Lexer("")
    assert lexer.next_token().kind is TokenKind.EOF
    assert lexer.next_token().kind is TokenKind.EOF


def test_bytes_source_is_decoded():
    tokens = list(Lexer(b"A 0 1 -> B\n"))
    assert tokens[0].text == "A"
    assert len(tokens) == 6


def test_invalid_utf8_bytes_raise_source_error():
    with pytest.raises(SourceError) as excinfo:
        Lexer(b"A 0\n\xff", "m.tur")
    assert str(excinfo.value) == "m.tur:2:1: invalid UTF-8 byte 0xff"
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)


def test_decode_source_reports_column_of_bad_byte():
    assert decode_source("ñ 0\n".encode("utf-8"), "m.tur") == "ñ 0\n"
    with pytest.raises(SourceError, match=r"^m.tur:1:5: invalid UTF-8 byte 0x80$"):
        decode_source(b"A 0 \x80", "m.tur")


def test_marker_kinds():
    assert TokenKind.EOF.is_marker
    assert TokenKind.UNCLOSED_STR.is_marker
    assert not TokenKind.SYMBOL.is_marker
