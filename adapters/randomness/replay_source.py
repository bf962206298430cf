"""
Adapter: ReplayRandomSource
Odtwarza zapisaną sekwencję losowań, np. EvaluationResult.draws, żeby
wcześniejszy rzut dało się dokładnie przeliczyć i wyjaśnić. To także
skryptowane źródło używane w testach ("draws [4, 5]").
"""
from __future__ import annotations

from collections.abc import Iterable

from errors import RangeError, SourceExhaustedError


class ReplayRandomSource:
    def __init__(self, draws: Iterable[int]) -> None:
        self._draws = list(draws)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._draws) - self._pos

    # -- RandomnessSource protocol -------------------------------------------

    def next_in_range(self, low: int, high: int) -> int:
        if low > high:
            raise RangeError(f"Empty range: low={low} > high={high}")
        if self._pos >= len(self._draws):
            raise SourceExhaustedError(
                f"Replay exhausted after {len(self._draws)} draws"
            )
        value = self._draws[self._pos]
        if not low <= value <= high:
            raise RangeError(
                f"Recorded draw #{self._pos + 1} ({value}) is outside [{low}, {high}]"
            )
        self._pos += 1
        return value
