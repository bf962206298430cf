"""
Adapter: lexer kości
Zamienia surowy tekst notacji na płaską listę Tokenów (ostatni to END).

Dla słów wieloznakowych wygrywa najdłuższe dopasowanie:
  kh kl k   — zachowaj najwyższe / zachowaj najniższe / zachowaj (najwyższe)
  dh dl d   — odrzuć najwyższe / odrzuć najniższe / znacznik kości (w pozycji
              modyfikatora odrzuca najniższe, decyduje parser)
  ro r      — przerzuć raz / przerzucaj zawsze
  !! !      — eksplozja kumulowana / zwykła
  <= >= < > =  — porównania dla predykatów przerzutu, eksplozji i filtra
  f %       — kości fudge / procentowe

'+' lub '-' bezpośrednio przed cyfrą staje się częścią INTEGER ze znakiem,
gdy stoi w pozycji prefiksowej (początek tekstu, po operatorze, '(' albo
porównaniu); w każdym innym miejscu jest operatorem.
"""
from __future__ import annotations

import re

from contracts import Token, TokenKind
from errors import LexError

_MAX_DIGITS = 100

_TOKEN_RE = re.compile(
    r"(?P<ws>\s+)"
    r"|(?P<int>[0-9]+)"
    r"|(?P<sym><=|>=|!!|[kd][hl]|ro|[+\-*/×÷()<>=!%kdrf])",
    re.IGNORECASE,
)

_SIGNED_INT_RE = re.compile(r"[+-][0-9]+")

_SYMBOLS: dict[str, TokenKind] = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "×": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "÷": TokenKind.SLASH,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "d": TokenKind.DICE,
    "f": TokenKind.FUDGE,
    "%": TokenKind.PERCENT,
    "k": TokenKind.KEEP_HIGH,
    "kh": TokenKind.KEEP_HIGH,
    "kl": TokenKind.KEEP_LOW,
    "dh": TokenKind.DROP_HIGH,
    "dl": TokenKind.DROP_LOW,
    "r": TokenKind.REROLL,
    "ro": TokenKind.REROLL_ONCE,
    "!": TokenKind.EXPLODE,
    "!!": TokenKind.COMPOUND,
    "=": TokenKind.EQ,
    "<": TokenKind.LT,
    ">": TokenKind.GT,
    "<=": TokenKind.LE,
    ">=": TokenKind.GE,
}

# Po tych tokenach (lub na początku) znak należy do następującej liczby.
_PREFIX_KINDS = frozenset({
    TokenKind.PLUS, TokenKind.MINUS, TokenKind.STAR, TokenKind.SLASH,
    TokenKind.LPAREN,
    TokenKind.EQ, TokenKind.LT, TokenKind.GT, TokenKind.LE, TokenKind.GE,
})


def tokenize(text: str) -> list[Token]:
    """Lexes `text`. Raises LexError on the first character it cannot place."""
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        prev = tokens[-1].kind if tokens else None
        if prev is None or prev in _PREFIX_KINDS:
            signed = _SIGNED_INT_RE.match(text, pos)
            if signed:
                tokens.append(_integer(signed.group(), pos))
                pos = signed.end()
                continue

        m = _TOKEN_RE.match(text, pos)
        if m is None:
            raise LexError(pos, text[pos])

        if m.group("int"):
            tokens.append(_integer(m.group("int"), pos))
        elif m.group("sym"):
            sym = m.group("sym")
            tokens.append(Token(kind=_SYMBOLS[sym.lower()], text=sym, position=pos))
        pos = m.end()

    tokens.append(Token(kind=TokenKind.END, text="", position=len(text)))
    return tokens


def _integer(literal: str, pos: int) -> Token:
    digits = literal.lstrip("+-")
    if len(digits) > _MAX_DIGITS:
        raise LexError(pos, literal[0], reason="Integer literal too long")
    return Token(kind=TokenKind.INTEGER, text=literal, value=int(literal), position=pos)
