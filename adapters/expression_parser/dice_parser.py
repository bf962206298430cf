"""
Adapter: DiceNotationParser
Implementuje port ExpressionParser.

Parser precedence climbing na tokenach z dice_lexer:
  expr     = term (('+'|'-') term)*
  term     = unary (('*'|'/') unary)*
  unary    = ('-'|'+') unary | dice
  dice     = INTEGER? 'd' sides modifier* | primary
  sides    = INTEGER | 'F' | '%'
  primary  = INTEGER | '(' expr ')'

  modifier = ('kh'|'k'|'kl'|'dh'|'dl') INTEGER?    domyślnie 1 kość
           | 'd' INTEGER                            odrzuć najniższe
           | ('r'|'ro') predicate
           | ('!'|'!!') ('='? INTEGER)?              domyślnie najwyższa ścianka
           | compare INTEGER                        filtr
  predicate = compare INTEGER | INTEGER             samo INTEGER oznacza '='

Po '!' tylko '=' lub liczba należy do eksplozji; '<' '>' '<=' '>=' zaczynają
filtr, więc "10d20!!>20" to eksplozja kumulowana i filtr >20.

Modyfikatory wiążą się z poprzedzającym rzutem i zachowują kolejność zapisu.
Limity puli (count, sides) NIE są tu sprawdzane; to zadanie evaluatora.
"""
from __future__ import annotations

from contracts import (
    FUDGE_FACES,
    BinaryOpNode,
    CompareOp,
    DiceModifier,
    DiceRollNode,
    DropModifier,
    ExplodeModifier,
    Expression,
    FilterModifier,
    GroupingNode,
    KeepModifier,
    LiteralNode,
    Predicate,
    RerollModifier,
    Token,
    TokenKind,
    UnaryOpNode,
)
from adapters.lexer.dice_lexer import tokenize
from errors import LexError, ParseError

DEFAULT_MAX_LENGTH = 1000
DEFAULT_MAX_DEPTH = 100

# Siła wiązania operatorów binarnych (z lewej)
_LEFT_BP: dict[TokenKind, int] = {
    TokenKind.PLUS: 10,
    TokenKind.MINUS: 10,
    TokenKind.STAR: 20,
    TokenKind.SLASH: 20,
}

_OP_TEXT: dict[TokenKind, str] = {
    TokenKind.PLUS: "+",
    TokenKind.MINUS: "-",
    TokenKind.STAR: "*",
    TokenKind.SLASH: "/",
}

_COMPARISONS: dict[TokenKind, CompareOp] = {
    TokenKind.EQ: CompareOp.EQ,
    TokenKind.LT: CompareOp.LT,
    TokenKind.GT: CompareOp.GT,
    TokenKind.LE: CompareOp.LE,
    TokenKind.GE: CompareOp.GE,
}

_MODIFIER_KINDS = frozenset({
    TokenKind.KEEP_HIGH, TokenKind.KEEP_LOW,
    TokenKind.DROP_HIGH, TokenKind.DROP_LOW, TokenKind.DICE,
    TokenKind.REROLL, TokenKind.REROLL_ONCE,
    TokenKind.EXPLODE, TokenKind.COMPOUND,
}) | frozenset(_COMPARISONS)


def _describe(tok: Token) -> str:
    if tok.kind is TokenKind.END:
        return "end of input"
    return repr(tok.text)


class _Parser:
    def __init__(self, tokens: list[Token], max_depth: int) -> None:
        if not tokens or tokens[-1].kind is not TokenKind.END:
            end = tokens[-1].position + len(tokens[-1].text) if tokens else 0
            tokens = list(tokens) + [Token(kind=TokenKind.END, text="", position=end)]
        self._tokens = tokens
        self._pos = 0
        self._max_depth = max_depth
        self._nesting = 0

    def _peek(self, offset: int = 0) -> Token:
        idx = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[idx]

    def _consume(self) -> Token:
        tok = self._peek()
        if tok.kind is not TokenKind.END:
            self._pos += 1
        return tok

    def _expect(self, kind: TokenKind, label: str) -> Token:
        tok = self._peek()
        if tok.kind is not kind:
            raise ParseError(tok.position, (label,), _describe(tok))
        return self._consume()

    def parse(self) -> Expression:
        if self._peek().kind is TokenKind.END:
            raise ParseError(self._peek().position, ("expression",), "end of input")
        node = self._expr(0)
        tok = self._peek()
        if tok.kind is TokenKind.RPAREN:
            raise ParseError(tok.position, ("operator", "end of input"), "')'",
                             reason="Unmatched ')'")
        if tok.kind is not TokenKind.END:
            raise ParseError(tok.position, ("operator", "end of input"), _describe(tok))
        return node

    def _enter(self, tok: Token) -> None:
        self._nesting += 1
        if self._nesting > self._max_depth:
            raise ParseError(tok.position, ("shallower expression",), _describe(tok),
                             reason=f"Expression nested deeper than {self._max_depth} levels")

    def _leave(self) -> None:
        self._nesting -= 1

    def _expr(self, min_bp: int) -> Expression:
        left = self._unary()
        while True:
            tok = self._peek()
            bp = _LEFT_BP.get(tok.kind)
            if bp is None or bp <= min_bp:
                break
            self._consume()
            # Łączność lewostronna: prawa strona wiąże z bp, nie bp+1
            right = self._expr(bp)
            left = BinaryOpNode(op=_OP_TEXT[tok.kind], left=left, right=right)  # type: ignore[arg-type]
        return left

    def _unary(self) -> Expression:
        tok = self._peek()
        if tok.kind in (TokenKind.MINUS, TokenKind.PLUS):
            self._consume()
            self._enter(tok)
            operand = self._unary()
            self._leave()
            return UnaryOpNode(op=_OP_TEXT[tok.kind], operand=operand)  # type: ignore[arg-type]
        return self._dice_or_primary()

    def _dice_or_primary(self) -> Expression:
        tok = self._peek()
        if tok.kind is TokenKind.INTEGER and self._peek(1).kind is TokenKind.DICE:
            self._consume()
            self._consume()
            return self._dice_rest(count=tok.value)  # type: ignore[arg-type]
        if tok.kind is TokenKind.DICE:
            self._consume()
            return self._dice_rest(count=1)

        node = self._primary()
        nxt = self._peek()
        if nxt.kind in _MODIFIER_KINDS:
            raise ParseError(nxt.position, ("operator", "end of input"), _describe(nxt),
                             reason=f"Modifier {nxt.text!r} must follow a dice roll")
        return node

    def _primary(self) -> Expression:
        tok = self._peek()
        if tok.kind is TokenKind.INTEGER:
            self._consume()
            return LiteralNode(value=tok.value)  # type: ignore[arg-type]
        if tok.kind is TokenKind.LPAREN:
            self._consume()
            self._enter(tok)
            inner = self._expr(0)
            self._expect(TokenKind.RPAREN, "')'")
            self._leave()
            return GroupingNode(inner=inner)
        raise ParseError(tok.position, ("number", "dice", "'('"), _describe(tok))

    def _dice_rest(self, count: int) -> DiceRollNode:
        tok = self._peek()
        fudge = False
        if tok.kind is TokenKind.INTEGER:
            sides = tok.value
        elif tok.kind is TokenKind.PERCENT:
            sides = 100
        elif tok.kind is TokenKind.FUDGE:
            sides = len(FUDGE_FACES)
            fudge = True
        else:
            raise ParseError(tok.position, ("number of sides", "'F'", "'%'"), _describe(tok))
        self._consume()

        modifiers: list[DiceModifier] = []
        while True:
            modifier = self._modifier()
            if modifier is None:
                break
            modifiers.append(modifier)
        return DiceRollNode(count=count, sides=sides, fudge=fudge,  # type: ignore[arg-type]
                            modifiers=tuple(modifiers))

    def _modifier(self) -> DiceModifier | None:
        tok = self._peek()
        kind = tok.kind
        if kind in (TokenKind.KEEP_HIGH, TokenKind.KEEP_LOW):
            self._consume()
            which = "highest" if kind is TokenKind.KEEP_HIGH else "lowest"
            return KeepModifier(which=which, count=self._optional_int(1))
        if kind in (TokenKind.DROP_HIGH, TokenKind.DROP_LOW):
            self._consume()
            which = "highest" if kind is TokenKind.DROP_HIGH else "lowest"
            return DropModifier(which=which, count=self._optional_int(1))
        if kind is TokenKind.DICE:
            self._consume()
            return DropModifier(which="lowest", count=self._expect_int("number of dice to drop"))
        if kind in (TokenKind.REROLL, TokenKind.REROLL_ONCE):
            self._consume()
            predicate = self._predicate()
            return RerollModifier(predicate=predicate, once=kind is TokenKind.REROLL_ONCE)  # type: ignore[arg-type]
        if kind in (TokenKind.EXPLODE, TokenKind.COMPOUND):
            self._consume()
            predicate = self._explode_predicate()
            return ExplodeModifier(predicate=predicate, compound=kind is TokenKind.COMPOUND)
        if kind in _COMPARISONS:
            return FilterModifier(predicate=self._predicate())  # type: ignore[arg-type]
        return None

    def _optional_int(self, default: int) -> int:
        if self._peek().kind is TokenKind.INTEGER:
            return self._consume().value  # type: ignore[return-value]
        return default

    def _expect_int(self, label: str) -> int:
        return self._expect(TokenKind.INTEGER, label).value  # type: ignore[return-value]

    def _explode_predicate(self) -> Predicate | None:
        # tylko "=" należy do eksplozji, "<" ">" po "!" zaczynają filtr
        tok = self._peek()
        if tok.kind is TokenKind.EQ:
            self._consume()
            return Predicate(op=CompareOp.EQ, value=self._expect_int("comparison value"))
        if tok.kind is TokenKind.INTEGER:
            self._consume()
            return Predicate(op=CompareOp.EQ, value=tok.value)  # type: ignore[arg-type]
        return None

    def _predicate(self) -> Predicate:
        tok = self._peek()
        if tok.kind in _COMPARISONS:
            self._consume()
            return Predicate(op=_COMPARISONS[tok.kind], value=self._expect_int("comparison value"))
        if tok.kind is TokenKind.INTEGER:
            self._consume()
            return Predicate(op=CompareOp.EQ, value=tok.value)  # type: ignore[arg-type]
        raise ParseError(tok.position, ("comparison", "number"), _describe(tok))


def _children(node: Expression) -> tuple[Expression, ...]:
    if isinstance(node, BinaryOpNode):
        return (node.left, node.right)
    if isinstance(node, UnaryOpNode):
        return (node.operand,)
    if isinstance(node, GroupingNode):
        return (node.inner,)
    return ()


def tree_depth(root: Expression) -> int:
    """Depth of the AST, computed without recursion."""
    deepest = 0
    stack = [(root, 1)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        stack.extend((child, depth + 1) for child in _children(node))
    return deepest


def parse_tokens(tokens: list[Token], max_depth: int = DEFAULT_MAX_DEPTH) -> Expression:
    """Parses a token list (as returned by tokenize) into an Expression."""
    expr = _Parser(tokens, max_depth).parse()
    if tree_depth(expr) > max_depth:
        raise ParseError(0, ("shorter expression",), "too many operators",
                         reason=f"Expression nested deeper than {max_depth} levels")
    return expr


class DiceNotationParser:
    """Parses dice notation text into an Expression; never draws dice."""

    def __init__(
        self,
        max_length: int = DEFAULT_MAX_LENGTH,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._max_length = max_length
        self._max_depth = max_depth

    # -- ExpressionParser protocol -------------------------------------------

    def parse(self, text: str) -> Expression:
        if len(text) > self._max_length:
            raise LexError(self._max_length, text[self._max_length],
                           reason=f"Expression longer than {self._max_length} characters")
        return parse_tokens(tokenize(text), max_depth=self._max_depth)
