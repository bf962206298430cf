"""
schemas.py — Request/Response modele FastAPI.
Oddzielone od contracts.py żeby API mogło ewoluować niezależnie.
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from contracts import EvaluationResult, RollRecord


class _RollInput(BaseModel):
    text: str = Field("", max_length=10_000)
    user_id: Optional[str] = None
    channel_id: Optional[str] = None
    seed: Optional[int] = None   # powtarzalny rzut, gdy ustawione


# ─────────────────────────── /roll ───────────────────────────────

class RollRequest(_RollInput):
    pass


class RollResponse(BaseModel):
    expression: str
    total: int
    text: str
    result: EvaluationResult


# ─────────────────────────── /roll/many ──────────────────────────

class RollManyRequest(_RollInput):
    count: int = Field(..., ge=1)


class RollManyResponse(BaseModel):
    messages: list[str]


# ─────────────────────────── /roll/bincount ──────────────────────

class BincountRequest(_RollInput):
    count: int = Field(..., ge=1)


class BincountResponse(BaseModel):
    counts: dict[int, int]
    messages: list[str]


# ─────────────────────────── /roll/inline ────────────────────────

class InlineRequest(BaseModel):
    nick: str
    message: str = Field(..., max_length=10_000)
    user_id: Optional[str] = None
    channel_id: Optional[str] = None
    seed: Optional[int] = None


class InlineResponse(BaseModel):
    text: str


# ─────────────────────────── /parse ──────────────────────────────

class ParseRequest(BaseModel):
    text: str


class ParseResponse(BaseModel):
    notation: str
    ast: dict[str, Any]


# ─────────────────────────── /macros ─────────────────────────────

class MacroBody(BaseModel):
    notation: str = Field(..., min_length=1, max_length=1000)


class MacroResponse(BaseModel):
    scope: str
    name: str
    notation: str


# ─────────────────────────── /history ────────────────────────────

class HistoryResponse(BaseModel):
    scope: str
    records: list[RollRecord]


# ─────────────────────────── /health ─────────────────────────────

class HealthResponse(BaseModel):
    status: str
    store: str
    version: str
