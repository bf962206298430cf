"""
markdown_renderer.py — EvaluationResult → markdown na czat.

    1d20            → **14**
    4d6kh3 + 2      → [~~1~~, 4, 2, 6] + 2 => **14**
    3d6!            → [6!, 6!, 2, 3, 1] => **18**

Odrzucone i zastąpione kości są przekreślone, kości, które wywołały
eksplozję, mają "!", a kości kumulowane pokazują bieżącą sumę. Ostrzeżenia
idą w osobnych liniach kursywą.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping

from contracts import (
    BinaryTrace,
    DiceTrace,
    DieStatus,
    EvaluationResult,
    GroupingTrace,
    LiteralTrace,
    NodeTrace,
    RolledDie,
    RollResult,
    UnaryTrace,
)


def render_result(result: EvaluationResult) -> str:
    if _single_simple_roll(result.trace):
        text = f"**{result.total}**"
    else:
        text = f"{render_trace(result.trace)} => **{result.total}**"
    for warning in result.warnings:
        text += f"\n*{warning.notation}: {warning.message}*"
    return text


def render_trace(trace: NodeTrace) -> str:
    if isinstance(trace, LiteralTrace):
        return str(trace.value)
    if isinstance(trace, DiceTrace):
        return render_dice(trace.roll)
    if isinstance(trace, BinaryTrace):
        return f"{render_trace(trace.left)} {trace.op} {render_trace(trace.right)}"
    if isinstance(trace, UnaryTrace):
        return f"{trace.op}{render_trace(trace.operand)}"
    if isinstance(trace, GroupingTrace):
        return f"({render_trace(trace.inner)})"
    raise TypeError(f"Unknown trace node type: {type(trace)}")


def render_dice(roll: RollResult) -> str:
    return "[" + ", ".join(render_die(d) for d in roll.dice) + "]"


def render_die(die: RolledDie) -> str:
    text = str(die.total)
    if die.exploded:
        text += "!"
    if die.status is not DieStatus.KEPT:
        text = f"~~{text}~~"
    return text


def render_bincount(counts: Mapping[int, int]) -> list[str]:
    return [f"{value}: {hits}" for value, hits in sorted(counts.items())]


def split_messages(lines: Iterable[str], limit: int = 2000) -> list[str]:
    """Packs lines into as few messages as possible, each under `limit` chars."""
    messages: list[str] = []
    current = ""
    for line in lines:
        next_line = line + "\n"
        if current and len(current) + len(next_line) >= limit:
            messages.append(current.strip())
            current = ""
        current += next_line
    if current:
        messages.append(current.strip())
    return messages


def _single_simple_roll(trace: NodeTrace) -> bool:
    if not isinstance(trace, DiceTrace):
        return False
    dice = trace.roll.dice
    return len(dice) == 1 and dice[0].status is DieStatus.KEPT and not dice[0].exploded
