"""
Adapter: SystemRandomSource
Produkcyjne RandomnessSource oparte na puli entropii systemu operacyjnego
(random.SystemRandom). Nie trzyma stanu między wywołaniami, więc jedna
instancja może obsłużyć każde równoległe liczenie w procesie.
"""
from __future__ import annotations

import random

from errors import RangeError


class SystemRandomSource:
    def __init__(self) -> None:
        self._rng = random.SystemRandom()

    # -- RandomnessSource protocol -------------------------------------------

    def next_in_range(self, low: int, high: int) -> int:
        if low > high:
            raise RangeError(f"Empty range: low={low} > high={high}")
        return self._rng.randint(low, high)
