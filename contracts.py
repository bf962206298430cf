"""
contracts.py — Jedyne źródło prawdy dla wszystkich typów danych w Rollwright.
Wszystkie moduły importują typy WYŁĄCZNIE stąd. Nie modyfikować bez versioning.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

CONTRACTS_VERSION = "1.0.0"

# Zakres 32-bit ze znakiem; wyniki spoza niego to przepełnienie.
INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

FUDGE_FACES: tuple[int, ...] = (-3, 0, 3)


# ─────────────────────────── Helpers ─────────────────────────────────────

def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ─────────────────────────── Lexer ───────────────────────────────────────

class TokenKind(str, Enum):
    INTEGER = "INTEGER"
    DICE = "DICE"              # d
    FUDGE = "FUDGE"            # F  (ścianki)
    PERCENT = "PERCENT"        # %  (ścianki = 100)
    PLUS = "PLUS"
    MINUS = "MINUS"
    STAR = "STAR"
    SLASH = "SLASH"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    KEEP_HIGH = "KEEP_HIGH"    # kh, k
    KEEP_LOW = "KEEP_LOW"      # kl
    DROP_HIGH = "DROP_HIGH"    # dh
    DROP_LOW = "DROP_LOW"      # dl
    REROLL = "REROLL"          # r
    REROLL_ONCE = "REROLL_ONCE"  # ro
    EXPLODE = "EXPLODE"        # !
    COMPOUND = "COMPOUND"      # !!
    EQ = "EQ"
    LT = "LT"
    GT = "GT"
    LE = "LE"
    GE = "GE"
    END = "END"


class Token(_Frozen):
    kind: TokenKind
    text: str
    value: Optional[int] = None   # tylko INTEGER
    position: int


# ─────────────────────────── Dice modifiers ──────────────────────────────

class CompareOp(str, Enum):
    EQ = "="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="


class Predicate(_Frozen):
    op: CompareOp
    value: int

    def matches(self, n: int) -> bool:
        if self.op is CompareOp.EQ:
            return n == self.value
        if self.op is CompareOp.LT:
            return n < self.value
        if self.op is CompareOp.GT:
            return n > self.value
        if self.op is CompareOp.LE:
            return n <= self.value
        return n >= self.value


class KeepModifier(_Frozen):
    kind: Literal["keep"] = "keep"
    which: Literal["highest", "lowest"]
    count: int


class DropModifier(_Frozen):
    kind: Literal["drop"] = "drop"
    which: Literal["highest", "lowest"]
    count: int


class RerollModifier(_Frozen):
    kind: Literal["reroll"] = "reroll"
    predicate: Predicate
    once: bool = False


class ExplodeModifier(_Frozen):
    kind: Literal["explode"] = "explode"
    predicate: Optional[Predicate] = None   # None = najwyższa ścianka kości
    compound: bool = False

    @field_validator("predicate")
    @classmethod
    def _equality_only(cls, v: Optional[Predicate]) -> Optional[Predicate]:
        # porównanie po "!" to filtr, nie warunek eksplozji
        if v is not None and v.op is not CompareOp.EQ:
            raise ValueError("explode predicate must be an equality")
        return v


class FilterModifier(_Frozen):
    kind: Literal["filter"] = "filter"
    predicate: Predicate


DiceModifier = Union[
    KeepModifier, DropModifier, RerollModifier, ExplodeModifier, FilterModifier,
]


# ─────────────────────────── Expression AST ──────────────────────────────

class LiteralNode(_Frozen):
    node_type: Literal["literal"] = "literal"
    value: int


class DiceRollNode(_Frozen):
    node_type: Literal["dice"] = "dice"
    count: int
    sides: int
    fudge: bool = False
    modifiers: tuple[DiceModifier, ...] = ()


class BinaryOpNode(_Frozen):
    node_type: Literal["binop"] = "binop"
    op: Literal["+", "-", "*", "/"]
    left: "Expression"
    right: "Expression"


class UnaryOpNode(_Frozen):
    node_type: Literal["unary"] = "unary"
    op: Literal["-", "+"]
    operand: "Expression"


class GroupingNode(_Frozen):
    node_type: Literal["group"] = "group"
    inner: "Expression"


Expression = Union[LiteralNode, DiceRollNode, BinaryOpNode, UnaryOpNode, GroupingNode]
BinaryOpNode.model_rebuild()
UnaryOpNode.model_rebuild()
GroupingNode.model_rebuild()


# ─────────────────────────── Dice pool ───────────────────────────────────

class DieStatus(str, Enum):
    KEPT = "kept"
    DROPPED = "dropped"
    SUPERSEDED = "superseded"   # zastąpiona przerzutem


class DieSource(str, Enum):
    ROLLED = "rolled"
    REROLL = "reroll"
    EXPLOSION = "explosion"


class RolledDie(_Frozen):
    index: int
    sides: int
    value: int
    status: DieStatus = DieStatus.KEPT
    source: DieSource = DieSource.ROLLED
    parent: Optional[int] = None
    exploded: bool = False
    compounded: tuple[int, ...] = ()

    @property
    def total(self) -> int:
        return self.value + sum(self.compounded)


class RollResult(_Frozen):
    notation: str
    count: int
    sides: int
    fudge: bool = False
    dice: tuple[RolledDie, ...]
    subtotal: int


# ─────────────────────────── Evaluation trace ────────────────────────────

class LiteralTrace(_Frozen):
    node_type: Literal["literal"] = "literal"
    value: int


class DiceTrace(_Frozen):
    node_type: Literal["dice"] = "dice"
    roll: RollResult
    value: int


class BinaryTrace(_Frozen):
    node_type: Literal["binop"] = "binop"
    op: Literal["+", "-", "*", "/"]
    left: "NodeTrace"
    right: "NodeTrace"
    value: int


class UnaryTrace(_Frozen):
    node_type: Literal["unary"] = "unary"
    op: Literal["-", "+"]
    operand: "NodeTrace"
    value: int


class GroupingTrace(_Frozen):
    node_type: Literal["group"] = "group"
    inner: "NodeTrace"
    value: int


NodeTrace = Union[LiteralTrace, DiceTrace, BinaryTrace, UnaryTrace, GroupingTrace]
BinaryTrace.model_rebuild()
UnaryTrace.model_rebuild()
GroupingTrace.model_rebuild()


class WarningKind(str, Enum):
    CLAMPED_KEEP = "clamped_keep"
    CLAMPED_DROP = "clamped_drop"
    EXPLOSION_LIMIT = "explosion_limit"
    REROLL_LIMIT = "reroll_limit"


class EvalWarning(_Frozen):
    kind: WarningKind
    message: str
    notation: str


class EvaluationResult(_Frozen):
    expression: str                 # zapis kanoniczny
    total: int
    trace: NodeTrace
    warnings: tuple[EvalWarning, ...] = ()
    draws: tuple[int, ...] = ()     # surowe wartości ze źródła, do odtworzenia


# ─────────────────────────── Store / commands ────────────────────────────

class RollRecord(BaseModel):
    record_id: str = Field(default_factory=_new_id)
    scope: str
    user: Optional[str] = None
    expression: str
    total: int
    created_at: datetime = Field(default_factory=_now)


class RollOutcome(BaseModel):
    result: EvaluationResult
    text: str
