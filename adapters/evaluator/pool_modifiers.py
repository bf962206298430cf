"""
pool_modifiers.py — transformacje puli kości używane przez DiceEvaluator.

Każdy modyfikator to czysta funkcja Pool -> (Pool, warnings). Pool to jawna
para (kept, dropped); modyfikatory patrzą tylko na `kept`, a kości, które z niej
wypadają, trafiają do `dropped` ze zmienionym statusem, więc pełny ślad
zostaje. Kości z przerzutów i eksplozji dostają kolejny wolny indeks.

Przerzuty i eksplozje kończą się ostrzeżeniem (nie błędem), gdy dojdą do
limitu na kość albo gdy ctx.can_draw() zgłosi wyczerpany budżet losowań.

Modyfikatory selekcji (keep / drop / filter) wymagają co najmniej jednej kości.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from contracts import (
    CompareOp,
    DiceModifier,
    DieSource,
    DieStatus,
    DropModifier,
    EvalWarning,
    ExplodeModifier,
    FilterModifier,
    KeepModifier,
    Predicate,
    RerollModifier,
    RolledDie,
    WarningKind,
)
from errors import EvalError, EvalErrorKind


@dataclass(frozen=True)
class Pool:
    kept: tuple[RolledDie, ...]
    dropped: tuple[RolledDie, ...] = ()

    @property
    def size(self) -> int:
        return len(self.kept) + len(self.dropped)

    @property
    def subtotal(self) -> int:
        return sum(d.total for d in self.kept)

    def dice(self) -> tuple[RolledDie, ...]:
        """Every die in draw order, kept or not."""
        return tuple(sorted(self.kept + self.dropped, key=lambda d: d.index))


@dataclass(frozen=True)
class PoolContext:
    """What a modifier may know about the roll it is applied to."""
    notation: str
    sides: int
    max_face: int
    draw: Callable[[], int]
    max_explosions: int = 100
    max_rerolls: int = 100
    can_draw: Callable[[], bool] = lambda: True


def initial_pool(faces: Iterable[int], sides: int) -> Pool:
    return Pool(kept=tuple(
        RolledDie(index=i, sides=sides, value=face) for i, face in enumerate(faces)
    ))


def apply_modifier(
    pool: Pool,
    modifier: DiceModifier,
    ctx: PoolContext,
) -> tuple[Pool, list[EvalWarning]]:
    if isinstance(modifier, KeepModifier):
        return keep(pool, modifier.which, modifier.count, ctx.notation)
    if isinstance(modifier, DropModifier):
        return drop(pool, modifier.which, modifier.count, ctx.notation)
    if isinstance(modifier, FilterModifier):
        return filter_pool(pool, modifier.predicate, ctx.notation)
    if isinstance(modifier, RerollModifier):
        return reroll(pool, modifier.predicate, modifier.once, ctx)
    if isinstance(modifier, ExplodeModifier):
        return explode(pool, modifier.predicate, modifier.compound, ctx)
    raise TypeError(f"Unknown dice modifier: {type(modifier)}")


# -- selekcja ----------------------------------------------------------------

def keep(pool: Pool, which: str, count: int, notation: str) -> tuple[Pool, list[EvalWarning]]:
    _require_dice(pool, "keep", notation)
    if count < 1:
        raise EvalError(
            EvalErrorKind.MODIFIER_CONFLICT,
            f"{notation}: keeping {count} dice leaves nothing to total",
        )
    warnings: list[EvalWarning] = []
    available = len(pool.kept)
    if count > available:
        warnings.append(EvalWarning(
            kind=WarningKind.CLAMPED_KEEP,
            message=f"Asked to keep {count} dice but only {available} were left; kept {available}",
            notation=notation,
        ))
        count = available
    ranked = _ranked(pool.kept, which)
    return _split(pool, keep=ranked[:count], drop=ranked[count:]), warnings


def drop(pool: Pool, which: str, count: int, notation: str) -> tuple[Pool, list[EvalWarning]]:
    _require_dice(pool, "drop", notation)
    warnings: list[EvalWarning] = []
    available = len(pool.kept)
    if count > available:
        warnings.append(EvalWarning(
            kind=WarningKind.CLAMPED_DROP,
            message=f"Asked to drop {count} dice but only {available} were left; dropped {available}",
            notation=notation,
        ))
        count = available
    ranked = _ranked(pool.kept, which)
    return _split(pool, keep=ranked[count:], drop=ranked[:count]), warnings


def filter_pool(pool: Pool, predicate: Predicate, notation: str) -> tuple[Pool, list[EvalWarning]]:
    _require_dice(pool, "filter", notation)
    passing = [d for d in pool.kept if predicate.matches(d.total)]
    failing = [d for d in pool.kept if not predicate.matches(d.total)]
    return _split(pool, keep=passing, drop=failing), []


# -- losowanie ---------------------------------------------------------------

def reroll(
    pool: Pool,
    predicate: Predicate,
    once: bool,
    ctx: PoolContext,
) -> tuple[Pool, list[EvalWarning]]:
    kept: list[RolledDie] = []
    superseded: list[RolledDie] = []
    next_index = pool.size
    capped = 0
    for die in pool.kept:
        current = die
        attempts = 0
        while predicate.matches(current.total):
            if attempts >= ctx.max_rerolls or not ctx.can_draw():
                capped += 1
                break
            superseded.append(current.model_copy(update={"status": DieStatus.SUPERSEDED}))
            current = RolledDie(
                index=next_index,
                sides=ctx.sides,
                value=ctx.draw(),
                source=DieSource.REROLL,
                parent=current.index,
            )
            next_index += 1
            attempts += 1
            if once:
                break
        kept.append(current)

    warnings: list[EvalWarning] = []
    if capped:
        warnings.append(EvalWarning(
            kind=WarningKind.REROLL_LIMIT,
            message=(
                f"Stopped rerolling {capped} dice at the limit of "
                f"{ctx.max_rerolls} rerolls per die or the draw budget"
            ),
            notation=ctx.notation,
        ))
    return Pool(kept=_by_index(kept), dropped=pool.dropped + tuple(superseded)), warnings


def explode(
    pool: Pool,
    predicate: Predicate | None,
    compound: bool,
    ctx: PoolContext,
) -> tuple[Pool, list[EvalWarning]]:
    pred = predicate or Predicate(op=CompareOp.EQ, value=ctx.max_face)
    kept: list[RolledDie] = []
    next_index = pool.size
    capped = 0
    for die in pool.kept:
        if die.exploded:
            kept.append(die)
            continue

        if compound:
            faces: list[int] = []
            latest = _latest_face(die)
            while pred.matches(latest):
                if len(faces) >= ctx.max_explosions or not ctx.can_draw():
                    capped += 1
                    break
                latest = ctx.draw()
                faces.append(latest)
            if faces:
                die = die.model_copy(update={
                    "compounded": die.compounded + tuple(faces),
                    "exploded": True,
                })
            kept.append(die)
            continue

        chain = [die]
        while pred.matches(_latest_face(chain[-1])):
            if len(chain) - 1 >= ctx.max_explosions or not ctx.can_draw():
                capped += 1
                break
            chain[-1] = chain[-1].model_copy(update={"exploded": True})
            chain.append(RolledDie(
                index=next_index,
                sides=ctx.sides,
                value=ctx.draw(),
                source=DieSource.EXPLOSION,
                parent=chain[-1].index,
            ))
            next_index += 1
        kept.extend(chain)

    warnings: list[EvalWarning] = []
    if capped:
        warnings.append(EvalWarning(
            kind=WarningKind.EXPLOSION_LIMIT,
            message=(
                f"Stopped exploding {capped} dice at the limit of "
                f"{ctx.max_explosions} extra dice per die or the draw budget"
            ),
            notation=ctx.notation,
        ))
    return Pool(kept=_by_index(kept), dropped=pool.dropped), warnings


# -- pomocnicze --------------------------------------------------------------

def _require_dice(pool: Pool, action: str, notation: str) -> None:
    if not pool.kept:
        raise EvalError(
            EvalErrorKind.MODIFIER_CONFLICT,
            f"{notation}: nothing left to {action}, earlier modifiers removed every die",
        )


def _ranked(dice: Iterable[RolledDie], which: str) -> list[RolledDie]:
    # sorted() jest stabilne też z reverse=True: remisy w kolejności losowania
    return sorted(dice, key=lambda d: d.total, reverse=(which == "highest"))


def _by_index(dice: Iterable[RolledDie]) -> tuple[RolledDie, ...]:
    return tuple(sorted(dice, key=lambda d: d.index))


def _split(pool: Pool, keep: Iterable[RolledDie], drop: Iterable[RolledDie]) -> Pool:
    dropped = tuple(d.model_copy(update={"status": DieStatus.DROPPED}) for d in drop)
    return Pool(kept=_by_index(keep), dropped=pool.dropped + dropped)


def _latest_face(die: RolledDie) -> int:
    return die.compounded[-1] if die.compounded else die.value
