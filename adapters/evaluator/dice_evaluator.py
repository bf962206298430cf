"""
Adapter: DiceEvaluator
Implementuje port Evaluator: rekurencyjne przejście po AST wyrażenia.

Dzieci są liczone w głąb, lewe przed prawym, więc kości losowane są w kolejności
zapisu, a zapisana sekwencja losowań (EvaluationResult.draws) odtwarza
identyczny wynik.

Każdy literał, suma kości i wartość pośrednia musi mieścić się w 32-bitowym
zakresie ze znakiem (contracts.INT_MIN..INT_MAX); inaczej jest to przepełnienie.
Dzielenie zaokrąglane jest jawnie według EvaluatorConfig.division_rounding.

Budżet max_total_draws jest twardy tylko dla początkowych kości puli.
Przerzuty i eksplozje zatrzymują się na nim z ostrzeżeniem.
"""
from __future__ import annotations

import logging
import math
from fractions import Fraction

from adapters.evaluator.pool_modifiers import PoolContext, apply_modifier, initial_pool
from adapters.notation.printer import dice_notation, to_notation
from contracts import (
    FUDGE_FACES,
    INT_MAX,
    INT_MIN,
    BinaryOpNode,
    BinaryTrace,
    DiceRollNode,
    DiceTrace,
    EvaluationResult,
    EvalWarning,
    Expression,
    GroupingNode,
    GroupingTrace,
    LiteralNode,
    LiteralTrace,
    NodeTrace,
    RollResult,
    UnaryOpNode,
    UnaryTrace,
)
from errors import EvalError, EvalErrorKind
from ports.evaluator import DivisionRounding, EvaluatorConfig
from ports.randomness import RandomnessSource

logger = logging.getLogger("rollwright.evaluator")


class _Run:
    """State of one evaluate() call; never outlives it."""

    def __init__(self, config: EvaluatorConfig, source: RandomnessSource) -> None:
        self._config = config
        self._source = source
        self.draws: list[int] = []
        self.warnings: list[EvalWarning] = []

    def draw(self, low: int, high: int) -> int:
        if len(self.draws) >= self._config.max_total_draws:
            raise EvalError(
                EvalErrorKind.POOL_TOO_LARGE,
                f"Expression needs more than {self._config.max_total_draws} dice draws",
            )
        value = self._source.next_in_range(low, high)
        self.draws.append(value)
        return value

    def can_draw(self) -> bool:
        return len(self.draws) < self._config.max_total_draws


class DiceEvaluator:
    """Evaluates dice expressions; holds only immutable configuration."""

    def __init__(self, config: EvaluatorConfig | None = None) -> None:
        self._config = config or EvaluatorConfig()

    @property
    def config(self) -> EvaluatorConfig:
        return self._config

    # -- Evaluator protocol --------------------------------------------------

    def evaluate(
        self,
        expr: Expression,
        source: RandomnessSource,
    ) -> EvaluationResult:
        run = _Run(self._config, source)
        trace = self._eval(expr, run)
        result = EvaluationResult(
            expression=to_notation(expr),
            total=trace.value,
            trace=trace,
            warnings=tuple(run.warnings),
            draws=tuple(run.draws),
        )
        logger.debug(
            "Evaluated %s = %d (%d draws, %d warnings)",
            result.expression, result.total, len(result.draws), len(result.warnings),
        )
        return result

    # -- Prywatne ------------------------------------------------------------

    def _eval(self, node: Expression, run: _Run) -> NodeTrace:
        if isinstance(node, LiteralNode):
            _check_range(node.value, f"Literal {node.value}")
            return LiteralTrace(value=node.value)

        if isinstance(node, DiceRollNode):
            roll = self._roll(node, run)
            return DiceTrace(roll=roll, value=roll.subtotal)

        if isinstance(node, UnaryOpNode):
            operand = self._eval(node.operand, run)
            value = -operand.value if node.op == "-" else operand.value
            _check_range(value, f"{node.op}({operand.value})")
            return UnaryTrace(op=node.op, operand=operand, value=value)

        if isinstance(node, GroupingNode):
            inner = self._eval(node.inner, run)
            return GroupingTrace(inner=inner, value=inner.value)

        if isinstance(node, BinaryOpNode):
            left = self._eval(node.left, run)
            right = self._eval(node.right, run)
            value = self._apply(node.op, left.value, right.value)
            _check_range(value, f"{left.value} {node.op} {right.value}")
            return BinaryTrace(op=node.op, left=left, right=right, value=value)

        raise TypeError(f"Unknown AST node type: {type(node)}")

    def _apply(self, op: str, a: int, b: int) -> int:
        if op == "+":
            return a + b
        if op == "-":
            return a - b
        if op == "*":
            return a * b
        if op == "/":
            return self._divide(a, b)
        raise ValueError(f"Unknown operator: {op!r}")

    def _divide(self, a: int, b: int) -> int:
        if b == 0:
            raise EvalError(EvalErrorKind.DIVISION_BY_ZERO, f"Division by zero in {a} / {b}")
        if self._config.division_rounding is DivisionRounding.HALF_UP:
            return math.floor(Fraction(a, b) + Fraction(1, 2))
        return a // b

    def _roll(self, node: DiceRollNode, run: _Run) -> RollResult:
        cfg = self._config
        notation = dice_notation(node)
        if node.count < 1:
            raise EvalError(EvalErrorKind.INVALID_COUNT,
                            f"{notation}: must roll at least 1 die, got {node.count}")
        if node.sides < 1:
            raise EvalError(EvalErrorKind.INVALID_SIDES,
                            f"{notation}: dice need at least 1 side, got {node.sides}")
        if node.count > cfg.max_dice_count:
            raise EvalError(EvalErrorKind.POOL_TOO_LARGE,
                            f"{notation}: at most {cfg.max_dice_count} dice per roll")
        if node.sides > cfg.max_dice_sides:
            raise EvalError(EvalErrorKind.POOL_TOO_LARGE,
                            f"{notation}: at most {cfg.max_dice_sides} sides per die")

        if node.fudge:
            def draw() -> int:
                return FUDGE_FACES[run.draw(0, len(FUDGE_FACES) - 1)]
            max_face = max(FUDGE_FACES)
        else:
            def draw() -> int:
                return run.draw(1, node.sides)
            max_face = node.sides

        pool = initial_pool([draw() for _ in range(node.count)], node.sides)
        ctx = PoolContext(
            notation=notation,
            sides=node.sides,
            max_face=max_face,
            draw=draw,
            max_explosions=cfg.max_explosion_iterations,
            max_rerolls=cfg.max_reroll_iterations,
            can_draw=run.can_draw,
        )
        for modifier in node.modifiers:
            pool, warnings = apply_modifier(pool, modifier, ctx)
            for warning in warnings:
                logger.warning("%s: %s", warning.notation, warning.message)
            run.warnings.extend(warnings)

        subtotal = pool.subtotal
        _check_range(subtotal, notation)
        return RollResult(
            notation=notation,
            count=node.count,
            sides=node.sides,
            fudge=node.fudge,
            dice=pool.dice(),
            subtotal=subtotal,
        )


def _check_range(value: int, context: str) -> None:
    if not INT_MIN <= value <= INT_MAX:
        raise EvalError(
            EvalErrorKind.OVERFLOW,
            f"{context}: result is outside the range {INT_MIN}..{INT_MAX}",
        )
