"""
errors.py — Taksonomia wyjątków Rollwright.

Każda ścieżka błędu rzuca podklasę DiceError; nic w rdzeniu nie jest fatalne.
  LexError     — niepoprawny tekst (pozycja + błędny znak)
  ParseError   — niepoprawna gramatyka (pozycja + oczekiwane vs znalezione)
  EvalError    — poprawne wyrażenie, niepoprawna wartość w czasie liczenia (EvalErrorKind)
  RangeError   — źródło losowości poproszone o pusty zakres
"""
from __future__ import annotations

from enum import Enum


class DiceError(ValueError):
    """Base class for user-facing dice errors."""


class LexError(DiceError):
    def __init__(self, position: int, unexpected_char: str, reason: str | None = None) -> None:
        self.position = position
        self.unexpected_char = unexpected_char
        detail = reason or f"Unexpected character {unexpected_char!r}"
        super().__init__(f"{detail} at position {position}")


class ParseError(DiceError):
    def __init__(
        self,
        position: int,
        expected: tuple[str, ...] | list[str],
        found: str,
        reason: str | None = None,
    ) -> None:
        self.position = position
        self.expected = tuple(expected)
        self.found = found
        if reason:
            message = f"{reason} at position {position}"
        else:
            message = (
                f"Expected {' or '.join(self.expected)} at position {position}, "
                f"found {found}"
            )
        super().__init__(message)


class EvalErrorKind(str, Enum):
    POOL_TOO_LARGE = "pool_too_large"
    INVALID_COUNT = "invalid_count"
    INVALID_SIDES = "invalid_sides"
    DIVISION_BY_ZERO = "division_by_zero"
    MODIFIER_CONFLICT = "modifier_conflict"
    OVERFLOW = "overflow"


class EvalError(DiceError):
    def __init__(self, kind: EvalErrorKind, context: str) -> None:
        self.kind = kind
        self.context = context
        super().__init__(context)


class RangeError(DiceError):
    """Raised by a RandomnessSource for an empty or unsatisfiable range."""


class SourceExhaustedError(DiceError):
    """Raised by ReplayRandomSource when no recorded draws remain."""


class MacroError(DiceError):
    """Unknown, cyclic or too deeply nested macro reference."""


class CommandError(DiceError):
    """Command-level limit violated (e.g. roll_many count)."""
