"""
Port: Evaluator
Odpowiedzialność: deterministyczne liczenie AST wyrażenia względem
RandomnessSource, dające EvaluationResult z pełnym śladem kości.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from contracts import EvaluationResult, Expression
from ports.randomness import RandomnessSource


class DivisionRounding(str, Enum):
    FLOOR = "floor"        # 7/2 = 3, -7/2 = -4
    HALF_UP = "half_up"    # 7/2 = 4, -7/2 = -3


@dataclass(frozen=True)
class EvaluatorConfig:
    max_dice_count: int = 500
    max_dice_sides: int = 10_000
    max_explosion_iterations: int = 100
    max_reroll_iterations: int = 100
    max_total_draws: int = 10_000
    division_rounding: DivisionRounding = DivisionRounding.FLOOR


@runtime_checkable
class Evaluator(Protocol):
    def evaluate(
        self,
        expr: Expression,
        source: RandomnessSource,
    ) -> EvaluationResult:
        """
        Walks the AST depth-first, left before right, drawing dice from
        `source` in written order, so a recorded draw sequence reproduces
        the identical result.

        Returns EvaluationResult with:
          - total: final integer value
          - trace: NodeTrace tree mirroring the AST
          - warnings: non-fatal issues (clamped keep/drop, explosion cap)
          - draws: every value obtained from `source`
        Raises EvalError (pool too large, invalid count/sides, division by
        zero, modifier conflict, overflow).
        """
        ...
