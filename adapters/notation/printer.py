"""
printer.py — Expression → kanoniczny zapis kości.

Sparsowanie wydrukowanego tekstu daje strukturalnie równe AST:
  - nawiasy pochodzą tylko z GroupingNode, nigdy nie są dodawane ani usuwane
  - keep/drop zawsze drukują liczbę ("kh1", "dl2")
  - znak unarny jest oddzielony spacją od operandu zaczynającego się cyfrą,
    więc "- 3" nie wraca z lexera jako literał "-3"
  - dwie eksplozje bez predykatu są rozdzielone spacją ("! !" to nie "!!")
"""
from __future__ import annotations

from contracts import (
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
    UnaryOpNode,
)

_KEEP = {"highest": "kh", "lowest": "kl"}
_DROP = {"highest": "dh", "lowest": "dl"}


def to_notation(expr: Expression) -> str:
    if isinstance(expr, LiteralNode):
        return str(expr.value)
    if isinstance(expr, DiceRollNode):
        return dice_notation(expr)
    if isinstance(expr, BinaryOpNode):
        return f"{to_notation(expr.left)} {expr.op} {to_notation(expr.right)}"
    if isinstance(expr, UnaryOpNode):
        operand = to_notation(expr.operand)
        sep = " " if operand[:1].isdigit() else ""
        return f"{expr.op}{sep}{operand}"
    if isinstance(expr, GroupingNode):
        return f"({to_notation(expr.inner)})"
    raise TypeError(f"Unknown AST node type: {type(expr)}")


def dice_notation(node: DiceRollNode) -> str:
    sides = "F" if node.fudge else str(node.sides)
    mods = ""
    prev: DiceModifier | None = None
    for modifier in node.modifiers:
        text = modifier_notation(modifier)
        # "!" "!" bez spacji to "!!", czyli inny modyfikator
        if _bare_explode(prev) and text.startswith("!"):
            mods += " "
        mods += text
        prev = modifier
    return f"{node.count}d{sides}{mods}"


def modifier_notation(modifier: DiceModifier) -> str:
    if isinstance(modifier, KeepModifier):
        return f"{_KEEP[modifier.which]}{modifier.count}"
    if isinstance(modifier, DropModifier):
        return f"{_DROP[modifier.which]}{modifier.count}"
    if isinstance(modifier, RerollModifier):
        return ("ro" if modifier.once else "r") + _predicate(modifier.predicate, bare_eq=True)
    if isinstance(modifier, ExplodeModifier):
        mark = "!!" if modifier.compound else "!"
        if modifier.predicate is None:
            return mark
        return mark + _predicate(modifier.predicate, bare_eq=True)
    if isinstance(modifier, FilterModifier):
        return _predicate(modifier.predicate, bare_eq=False)
    raise TypeError(f"Unknown dice modifier: {type(modifier)}")


def _predicate(predicate: Predicate, bare_eq: bool) -> str:
    if bare_eq and predicate.op is CompareOp.EQ and predicate.value >= 0:
        return str(predicate.value)
    return f"{predicate.op.value}{predicate.value}"


def _bare_explode(modifier: DiceModifier | None) -> bool:
    return isinstance(modifier, ExplodeModifier) and modifier.predicate is None
