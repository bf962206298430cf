import pytest

from adapters.evaluator.dice_evaluator import DiceEvaluator
from adapters.expression_parser.dice_parser import DiceNotationParser
from adapters.randomness.replay_source import ReplayRandomSource
from adapters.randomness.seeded_source import SeededRandomSource
from contracts import (
    BinaryTrace,
    DiceTrace,
    DieSource,
    DieStatus,
    LiteralNode,
    WarningKind,
)
from errors import EvalError, EvalErrorKind, SourceExhaustedError
from ports.evaluator import DivisionRounding, Evaluator, EvaluatorConfig

_parser = DiceNotationParser()


def _roll(text, draws, config=None):
    return DiceEvaluator(config).evaluate(_parser.parse(text), ReplayRandomSource(draws))


def _seeded(text, seed, config=None):
    return DiceEvaluator(config).evaluate(_parser.parse(text), SeededRandomSource(seed))


def _dice(result):
    def walk(trace):
        if isinstance(trace, DiceTrace):
            return [trace.roll]
        return [r for child in _child_traces(trace) for r in walk(child)]
    return walk(result.trace)


def _child_traces(trace):
    for attr in ("left", "right", "operand", "inner"):
        child = getattr(trace, attr, None)
        if child is not None:
            yield child


def test_evaluator_implements_port():
    assert isinstance(DiceEvaluator(), Evaluator)


def test_dice_plus_literal():
    result = _roll("2d6+3", [4, 5])

    assert result.total == 12
    assert isinstance(result.trace, BinaryTrace)
    assert [d.value for d in result.trace.left.roll.dice] == [4, 5]
    assert result.draws == (4, 5)
    assert result.expression == "2d6 + 3"


def test_keep_highest_three_of_four():
    result = _roll("4d6kh3", [1, 4, 2, 6])

    assert result.total == 12
    dice = result.trace.roll.dice
    assert dice[0].value == 1
    assert dice[0].status is DieStatus.DROPPED
    assert all(d.status is DieStatus.KEPT for d in dice[1:])


def test_zero_sided_dice_fail_at_evaluation():
    expr = _parser.parse("1d0")

    with pytest.raises(EvalError) as exc:
        DiceEvaluator().evaluate(expr, ReplayRandomSource([]))

    assert exc.value.kind is EvalErrorKind.INVALID_SIDES


def test_arithmetic_only_expression_draws_nothing():
    result = _roll("(1+2)*3", [])

    assert result.total == 9
    assert result.draws == ()


def test_omitted_count_rolls_one_die():
    result = _roll("d20", [20])

    assert result.total == 20
    assert result.draws == (20,)
    assert result.trace.roll.count == 1


def test_reroll_supersedes_ones():
    result = _roll("1d6r1", [1, 4])

    assert result.total == 4
    first, second = result.trace.roll.dice
    assert first.value == 1
    assert first.status is DieStatus.SUPERSEDED
    assert second.source is DieSource.REROLL
    assert second.parent == first.index


def test_negative_count_is_invalid():
    with pytest.raises(EvalError) as exc:
        _roll("-2d6", [])

    assert exc.value.kind is EvalErrorKind.INVALID_COUNT


def test_unary_minus_on_dice():
    assert _roll("-d6", [4]).total == -4
    assert _roll("- 2d6", [1, 2]).total == -3


def test_pool_ceilings():
    for text in ("501d6", "1d10001"):
        with pytest.raises(EvalError) as exc:
            _roll(text, [])
        assert exc.value.kind is EvalErrorKind.POOL_TOO_LARGE

    config = EvaluatorConfig(max_dice_count=2)
    with pytest.raises(EvalError):
        _roll("3d6", [1, 2, 3], config)


def test_total_draw_budget():
    with pytest.raises(EvalError) as exc:
        _seeded("6d6", 1, EvaluatorConfig(max_total_draws=5))

    assert exc.value.kind is EvalErrorKind.POOL_TOO_LARGE


def test_draw_budget_caps_explosions_with_warning():
    result = _seeded("100d1!", 3)

    assert result.total == 10_000
    assert len(result.draws) == 10_000
    assert [w.kind for w in result.warnings] == [WarningKind.EXPLOSION_LIMIT]


def test_draw_budget_caps_rerolls_with_warning():
    result = _seeded("3d1r1", 3, EvaluatorConfig(max_total_draws=5))

    assert result.total == 3
    assert len(result.draws) == 5
    assert [w.kind for w in result.warnings] == [WarningKind.REROLL_LIMIT]


def test_comparison_after_explode_filters_the_pool():
    result = _roll("2d20!>15", [20, 3, 5])

    assert result.total == 20
    assert result.draws == (20, 3, 5)


def test_dice_are_drawn_left_to_right():
    result = _roll("1d6 + 1d8", [2, 7])

    assert result.total == 9
    assert [roll.dice[0].value for roll in _dice(result)] == [2, 7]


def test_advantage_and_drop_lowest():
    assert _roll("2d20kh", [5, 17]).total == 17
    assert _roll("2d20kl", [5, 17]).total == 5
    assert _roll("4d6d1", [3, 1, 5, 2]).total == 10


def test_exploding_dice():
    result = _roll("3d6!", [6, 2, 3, 4])

    assert result.total == 15
    dice = result.trace.roll.dice
    assert dice[0].exploded
    assert dice[3].source is DieSource.EXPLOSION
    assert dice[3].parent == 0


def test_compounding_dice():
    result = _roll("1d6!!", [6, 6, 2])

    assert result.total == 14
    assert len(result.trace.roll.dice) == 1


def test_filter_drops_failing_dice():
    assert _roll("4d6>3", [1, 4, 2, 6]).total == 10


def test_fudge_and_percentile_dice():
    assert _roll("4dF", [2, 2, 1, 0]).total == 3
    assert _roll("d%", [57]).total == 57


def test_division_rounding_modes():
    assert _roll("7/2", []).total == 3
    assert _roll("-7/2", []).total == -4

    half_up = EvaluatorConfig(division_rounding=DivisionRounding.HALF_UP)
    assert _roll("7/2", [], half_up).total == 4
    assert _roll("-7/2", [], half_up).total == -3
    assert _roll("5/3", [], half_up).total == 2


def test_division_by_zero():
    with pytest.raises(EvalError) as exc:
        _roll("1/(1-1)", [])

    assert exc.value.kind is EvalErrorKind.DIVISION_BY_ZERO


def test_overflow_is_reported():
    assert _roll("2147483647", []).total == 2147483647
    for text in ("2147483647 + 1", "-2147483648 - 1", "65536 * 65536"):
        with pytest.raises(EvalError) as exc:
            _roll(text, [])
        assert exc.value.kind is EvalErrorKind.OVERFLOW


def test_literal_outside_range_overflows():
    with pytest.raises(EvalError):
        DiceEvaluator().evaluate(LiteralNode(value=2**40), ReplayRandomSource([]))


def test_clamped_keep_warns_but_succeeds():
    result = _roll("2d6kh5", [3, 4])

    assert result.total == 7
    assert [w.kind for w in result.warnings] == [WarningKind.CLAMPED_KEEP]
    assert result.warnings[0].notation == "2d6kh5"


def test_keep_zero_and_keep_after_drop_all_conflict():
    for text, draws in (("2d6kh0", [3, 4]), ("2d6dl2kh1", [3, 4])):
        with pytest.raises(EvalError) as exc:
            _roll(text, draws)
        assert exc.value.kind is EvalErrorKind.MODIFIER_CONFLICT


def test_always_exploding_one_sided_die_terminates():
    result = _seeded("1d1!", 7)

    assert result.total == 101
    assert len(result.draws) == 101
    assert [w.kind for w in result.warnings] == [WarningKind.EXPLOSION_LIMIT]


def test_always_rerolling_one_sided_die_terminates():
    result = _seeded("1d1r1", 7)

    assert result.total == 1
    assert len(result.draws) == 101
    assert [w.kind for w in result.warnings] == [WarningKind.REROLL_LIMIT]


def test_short_replay_raises_source_exhausted():
    with pytest.raises(SourceExhaustedError):
        _roll("3d6", [1, 2])


def test_same_seed_gives_same_result():
    text = "4d6kh3 + 2d8! - 1d4r1 + 3dF"

    assert _seeded(text, 1234) == _seeded(text, 1234)


def test_recorded_draws_replay_to_identical_result():
    expr = _parser.parse("10d6!r1kh5 + 2d20kl")
    original = DiceEvaluator().evaluate(expr, SeededRandomSource(99))

    replayed = DiceEvaluator().evaluate(expr, ReplayRandomSource(original.draws))

    assert replayed == original


@pytest.mark.parametrize("seed", range(30))
def test_totals_stay_within_bounds(seed):
    assert 3 <= _seeded("3d6", seed).total <= 18
    assert 3 <= _seeded("4d6kh3", seed).total <= 18
    assert -12 <= _seeded("4dF", seed).total <= 12


@pytest.mark.parametrize("seed", range(30))
def test_dice_are_conserved(seed):
    roll = _seeded("8d6kh3", seed).trace.roll
    assert len(roll.dice) == 8
    assert sum(d.status is DieStatus.KEPT for d in roll.dice) == 3

    roll = _seeded("10d6!", seed).trace.roll
    explosions = sum(d.source is DieSource.EXPLOSION for d in roll.dice)
    assert len(roll.dice) == 10 + explosions
    assert roll.subtotal == sum(d.value for d in roll.dice)
