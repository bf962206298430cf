import pytest

from adapters.evaluator.pool_modifiers import (
    PoolContext,
    drop,
    explode,
    filter_pool,
    initial_pool,
    keep,
    reroll,
)
from contracts import CompareOp, DieSource, DieStatus, Predicate, WarningKind
from errors import EvalError, EvalErrorKind


def _ctx(draws, sides=6, **kwargs):
    it = iter(draws)
    return PoolContext(notation="test", sides=sides, max_face=sides, draw=lambda: next(it), **kwargs)


def test_keep_highest_marks_rest_dropped():
    pool, warnings = keep(initial_pool([1, 4, 2, 6], 6), "highest", 3, "4d6kh3")

    assert [d.value for d in pool.kept] == [4, 2, 6]
    assert [(d.index, d.status) for d in pool.dropped] == [(0, DieStatus.DROPPED)]
    assert pool.subtotal == 12
    assert warnings == []


def test_keep_ties_are_broken_by_draw_order():
    pool, _ = keep(initial_pool([3, 3, 1], 6), "highest", 1, "3d6kh1")

    assert [d.index for d in pool.kept] == [0]


def test_drop_lowest_ties_drop_earliest_die():
    pool, _ = drop(initial_pool([2, 2, 5], 6), "lowest", 1, "3d6dl1")

    assert [d.index for d in pool.dropped] == [0]
    assert pool.subtotal == 7


def test_keep_more_than_pool_is_clamped_with_warning():
    pool, warnings = keep(initial_pool([3, 4], 6), "highest", 5, "2d6kh5")

    assert pool.subtotal == 7
    assert [w.kind for w in warnings] == [WarningKind.CLAMPED_KEEP]


def test_keep_zero_is_a_conflict():
    with pytest.raises(EvalError) as exc:
        keep(initial_pool([3, 4], 6), "highest", 0, "2d6kh0")

    assert exc.value.kind is EvalErrorKind.MODIFIER_CONFLICT


def test_drop_everything_leaves_empty_pool_then_keep_conflicts():
    pool, warnings = drop(initial_pool([3, 4], 6), "lowest", 3, "2d6dl3")

    assert pool.kept == ()
    assert pool.subtotal == 0
    assert [w.kind for w in warnings] == [WarningKind.CLAMPED_DROP]
    with pytest.raises(EvalError):
        keep(pool, "highest", 1, "2d6dl3kh1")


def test_filter_keeps_matching_dice():
    pool, _ = filter_pool(initial_pool([1, 4, 2, 6], 6), Predicate(op=CompareOp.GT, value=3), "4d6>3")

    assert [d.value for d in pool.kept] == [4, 6]
    assert len(pool.dice()) == 4


def test_reroll_supersedes_matching_die_and_links_parent():
    pool, warnings = reroll(initial_pool([1, 5], 6), Predicate(op=CompareOp.EQ, value=1), False, _ctx([1, 3]))

    dice = pool.dice()
    assert [(d.index, d.value, d.status) for d in dice] == [
        (0, 1, DieStatus.SUPERSEDED),
        (1, 5, DieStatus.KEPT),
        (2, 1, DieStatus.SUPERSEDED),
        (3, 3, DieStatus.KEPT),
    ]
    assert dice[2].parent == 0
    assert dice[3].parent == 2
    assert dice[3].source is DieSource.REROLL
    assert pool.subtotal == 8
    assert warnings == []


def test_reroll_once_stops_after_one_reroll():
    pool, _ = reroll(initial_pool([1], 6), Predicate(op=CompareOp.EQ, value=1), True, _ctx([1, 6]))

    assert pool.subtotal == 1
    assert len(pool.dice()) == 2


def test_reroll_is_capped_per_die():
    pool, warnings = reroll(
        initial_pool([1], 1), Predicate(op=CompareOp.EQ, value=1), False,
        _ctx([1] * 10, sides=1, max_rerolls=3),
    )

    assert len(pool.dropped) == 3
    assert [w.kind for w in warnings] == [WarningKind.REROLL_LIMIT]


def test_explode_appends_chained_dice():
    pool, _ = explode(initial_pool([6, 2], 6), None, False, _ctx([6, 1]))

    dice = pool.dice()
    assert [(d.index, d.value, d.exploded, d.parent) for d in dice] == [
        (0, 6, True, None),
        (1, 2, False, None),
        (2, 6, True, 0),
        (3, 1, False, 2),
    ]
    assert all(d.source is DieSource.EXPLOSION for d in dice[2:])
    assert pool.subtotal == 15


def test_explode_is_capped_per_die():
    pool, warnings = explode(initial_pool([1], 1), None, False, _ctx([1] * 10, sides=1, max_explosions=4))

    assert len(pool.kept) == 5
    assert [w.kind for w in warnings] == [WarningKind.EXPLOSION_LIMIT]


def test_exhausted_draw_budget_stops_explosions_with_warning():
    pool, warnings = explode(
        initial_pool([6, 6], 6), None, True, _ctx([], can_draw=lambda: False),
    )

    assert [d.total for d in pool.kept] == [6, 6]
    assert len(warnings) == 1
    assert warnings[0].kind is WarningKind.EXPLOSION_LIMIT
    assert "2 dice" in warnings[0].message


def test_compound_explosion_merges_into_one_die():
    pool, _ = explode(initial_pool([6], 6), None, True, _ctx([6, 2]))

    (die,) = pool.dice()
    assert die.compounded == (6, 2)
    assert die.total == 14
    assert die.exploded
