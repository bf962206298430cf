import pytest

from adapters.expression_parser.dice_parser import DiceNotationParser, parse_tokens, tree_depth
from adapters.lexer.dice_lexer import tokenize
from contracts import (
    BinaryOpNode,
    CompareOp,
    DiceRollNode,
    DropModifier,
    ExplodeModifier,
    FilterModifier,
    GroupingNode,
    KeepModifier,
    LiteralNode,
    Predicate,
    RerollModifier,
    UnaryOpNode,
)
from errors import LexError, ParseError


def _parse(text):
    return DiceNotationParser().parse(text)


def test_parser_builds_dice_plus_literal():
    assert _parse("2d6+3") == BinaryOpNode(
        op="+",
        left=DiceRollNode(count=2, sides=6),
        right=LiteralNode(value=3),
    )


def test_parser_attaches_keep_highest_to_dice():
    assert _parse("4d6kh3") == DiceRollNode(
        count=4,
        sides=6,
        modifiers=(KeepModifier(which="highest", count=3),),
    )


def test_parser_respects_precedence_and_left_associativity():
    assert _parse("1+2*3") == BinaryOpNode(
        op="+",
        left=LiteralNode(value=1),
        right=BinaryOpNode(op="*", left=LiteralNode(value=2), right=LiteralNode(value=3)),
    )
    assert _parse("8-4-2") == BinaryOpNode(
        op="-",
        left=BinaryOpNode(op="-", left=LiteralNode(value=8), right=LiteralNode(value=4)),
        right=LiteralNode(value=2),
    )


def test_parser_keeps_grouping_node():
    assert _parse("(1+2)*3") == BinaryOpNode(
        op="*",
        left=GroupingNode(
            inner=BinaryOpNode(op="+", left=LiteralNode(value=1), right=LiteralNode(value=2)),
        ),
        right=LiteralNode(value=3),
    )


def test_parser_defaults_count_to_one():
    assert _parse("d20") == DiceRollNode(count=1, sides=20)


def test_parser_reads_modifier_shorthands():
    assert _parse("2d20kh").modifiers == (KeepModifier(which="highest", count=1),)
    assert _parse("2d20kl").modifiers == (KeepModifier(which="lowest", count=1),)
    assert _parse("4d6d1").modifiers == (DropModifier(which="lowest", count=1),)
    assert _parse("4d6dh2").modifiers == (DropModifier(which="highest", count=2),)


def test_parser_reads_reroll_predicates():
    assert _parse("1d6r1").modifiers == (
        RerollModifier(predicate=Predicate(op=CompareOp.EQ, value=1)),
    )
    assert _parse("1d6ro<3").modifiers == (
        RerollModifier(predicate=Predicate(op=CompareOp.LT, value=3), once=True),
    )


def test_parser_reads_explosions():
    six = Predicate(op=CompareOp.EQ, value=6)
    assert _parse("3d6!").modifiers == (ExplodeModifier(),)
    assert _parse("3d6!6").modifiers == (ExplodeModifier(predicate=six),)
    assert _parse("3d6!=6").modifiers == (ExplodeModifier(predicate=six),)
    assert _parse("3d6!!").modifiers == (ExplodeModifier(compound=True),)
    assert _parse("3d6! !").modifiers == (ExplodeModifier(), ExplodeModifier())


def test_parser_reads_comparison_after_explosion_as_filter():
    assert _parse("3d6!>4").modifiers == (
        ExplodeModifier(),
        FilterModifier(predicate=Predicate(op=CompareOp.GT, value=4)),
    )
    assert _parse("10d20!!>20").modifiers == (
        ExplodeModifier(compound=True),
        FilterModifier(predicate=Predicate(op=CompareOp.GT, value=20)),
    )


def test_parser_reads_bare_comparison_as_filter():
    assert _parse("10d20<15").modifiers == (
        FilterModifier(predicate=Predicate(op=CompareOp.LT, value=15)),
    )


def test_parser_applies_modifiers_in_written_order():
    mods = _parse("4d6r1kh3").modifiers

    assert isinstance(mods[0], RerollModifier)
    assert isinstance(mods[1], KeepModifier)


def test_parser_reads_fudge_and_percentile():
    assert _parse("4dF") == DiceRollNode(count=4, sides=3, fudge=True)
    assert _parse("d%") == DiceRollNode(count=1, sides=100)


def test_parser_accepts_negative_count_for_evaluator_to_reject():
    assert _parse("-2d6") == DiceRollNode(count=-2, sides=6)
    assert _parse("- 2d6") == UnaryOpNode(op="-", operand=DiceRollNode(count=2, sides=6))


def test_parser_does_not_validate_pool_limits():
    assert _parse("1d0") == DiceRollNode(count=1, sides=0)
    assert _parse("100000d6").count == 100000


def test_parser_rejects_empty_input():
    with pytest.raises(ParseError) as exc:
        _parse("   ")

    assert exc.value.found == "end of input"


def test_parser_rejects_dangling_operator():
    with pytest.raises(ParseError) as exc:
        _parse("2d6+")

    assert exc.value.position == 4
    assert exc.value.found == "end of input"


def test_parser_rejects_unmatched_parentheses():
    with pytest.raises(ParseError) as exc:
        _parse("(1+2")
    assert exc.value.expected == ("')'",)

    with pytest.raises(ParseError, match="Unmatched"):
        _parse("1+2)")


def test_parser_rejects_modifier_after_non_dice_term():
    with pytest.raises(ParseError, match="must follow a dice roll"):
        _parse("3kh1")
    with pytest.raises(ParseError):
        _parse("(2d6)<3")


def test_parser_rejects_missing_sides_and_predicates():
    with pytest.raises(ParseError):
        _parse("2d")
    with pytest.raises(ParseError):
        _parse("1d6r")
    with pytest.raises(ParseError):
        _parse("4d6d")


def test_parser_rejects_trailing_tokens():
    with pytest.raises(ParseError):
        _parse("2d6 3")


def test_parser_limits_nesting_depth():
    with pytest.raises(ParseError, match="nested deeper"):
        _parse("(" * 101 + "1" + ")" * 101)
    with pytest.raises(ParseError, match="nested deeper"):
        _parse("-" * 150 + " 1")


def test_parser_limits_tree_depth_of_long_chains():
    text = "+".join(["1"] * 200)

    with pytest.raises(ParseError):
        _parse(text)
    assert tree_depth(DiceNotationParser(max_depth=1000).parse(text)) == 200


def test_parser_rejects_overlong_text_as_lex_error():
    with pytest.raises(LexError) as exc:
        DiceNotationParser(max_length=10).parse("1+1+1+1+1+1")

    assert exc.value.position == 10


def test_parse_tokens_accepts_lexer_output():
    assert parse_tokens(tokenize("d20")) == DiceRollNode(count=1, sides=20)
