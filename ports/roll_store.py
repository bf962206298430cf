"""
Port: RollStore
Odpowiedzialność: trwałe przechowywanie makr i historii rzutów per zakres.
Zakres to nieprzezroczysty identyfikator, np. "user:1234" albo "channel:5678".
"""
from typing import Protocol, runtime_checkable

from contracts import RollRecord


@runtime_checkable
class RollStore(Protocol):
    def get_macros(self, scope: str) -> dict[str, str]:
        """Returns {name: notation}; empty dict for an unknown scope."""
        ...

    def get_macro(self, scope: str, name: str) -> str | None:
        ...

    def set_macro(self, scope: str, name: str, notation: str) -> None:
        """Creates or replaces a macro. Notation is stored verbatim."""
        ...

    def delete_macro(self, scope: str, name: str) -> bool:
        """Returns True if the macro existed."""
        ...

    def append_history(self, record: RollRecord, limit: int) -> None:
        """Appends a record to record.scope, keeping only the newest `limit`."""
        ...

    def get_history(self, scope: str, limit: int | None = None) -> list[RollRecord]:
        """Newest last. `limit` returns only the newest N records."""
        ...
