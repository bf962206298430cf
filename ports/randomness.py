"""
Port: RandomnessSource
Odpowiedzialność: liczby całkowite z rozkładu jednostajnego w domkniętym zakresie.
"""
from typing import Protocol, runtime_checkable


@runtime_checkable
class RandomnessSource(Protocol):
    def next_in_range(self, low: int, high: int) -> int:
        """
        Returns an integer n with low <= n <= high, uniformly distributed.
        Raises RangeError when low > high.

        A source shared between concurrent evaluations must be safe to call
        from several threads; the Evaluator never locks around it.
        """
        ...
