import pytest

from adapters.randomness.replay_source import ReplayRandomSource
from adapters.randomness.seeded_source import SeededRandomSource
from adapters.randomness.system_source import SystemRandomSource
from errors import RangeError, SourceExhaustedError
from ports.randomness import RandomnessSource


def test_sources_implement_port():
    assert isinstance(SystemRandomSource(), RandomnessSource)
    assert isinstance(SeededRandomSource(1), RandomnessSource)
    assert isinstance(ReplayRandomSource([]), RandomnessSource)


def test_system_source_stays_in_inclusive_range():
    source = SystemRandomSource()

    values = {source.next_in_range(1, 3) for _ in range(200)}

    assert values <= {1, 2, 3}
    assert source.next_in_range(5, 5) == 5


def test_seeded_source_is_reproducible():
    a = SeededRandomSource(42)
    b = SeededRandomSource(42)

    assert [a.next_in_range(1, 20) for _ in range(10)] == [b.next_in_range(1, 20) for _ in range(10)]
    assert a.seed == 42


@pytest.mark.parametrize("source", [SystemRandomSource(), SeededRandomSource(1), ReplayRandomSource([1])])
def test_sources_reject_empty_range(source):
    with pytest.raises(RangeError):
        source.next_in_range(6, 1)


def test_replay_source_returns_recorded_values_then_exhausts():
    source = ReplayRandomSource([4, 5])

    assert source.next_in_range(1, 6) == 4
    assert source.remaining == 1
    assert source.next_in_range(1, 6) == 5
    with pytest.raises(SourceExhaustedError):
        source.next_in_range(1, 6)


def test_replay_source_rejects_value_outside_requested_range():
    source = ReplayRandomSource([7])

    with pytest.raises(RangeError):
        source.next_in_range(1, 6)
    assert source.remaining == 1
