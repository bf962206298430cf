"""
Adapter: SeededRandomSource
Powtarzalne RandomnessSource: to samo ziarno i ta sama sekwencja wywołań
zawsze dają te same wartości. Chronione blokadą, więc współdzielenie instancji
między wątkami nie psuje stanu generatora (kolejność losowań zależy wtedy
od wołającego).
"""
from __future__ import annotations

import random
import threading

from errors import RangeError


class SeededRandomSource:
    def __init__(self, seed: int | str) -> None:
        self._seed = seed
        self._rng = random.Random(seed)
        self._lock = threading.Lock()

    @property
    def seed(self) -> int | str:
        return self._seed

    # -- RandomnessSource protocol -------------------------------------------

    def next_in_range(self, low: int, high: int) -> int:
        if low > high:
            raise RangeError(f"Empty range: low={low} > high={high}")
        with self._lock:
            return self._rng.randint(low, high)
