"""
expander.py — referencje do makr → zwykły zapis kości.

Makro to nazwany fragment zapisu zapisany przez użytkownika lub kanał,
wywoływany jako @nazwa wewnątrz rzutu: "@attack + 2". Każda referencja
zamieniana jest na treść makra w nawiasach, więc "@attack * 2" zachowuje
priorytet. Treść makra może odwoływać się do innych makr, maksymalnie
MAX_MACRO_DEPTH poziomów.

Rozwinięcie dłuższe niż max_length znaków jest błędem; każdy poziom
sprawdza swój wynik, więc wachlarz referencji nie rośnie wykładniczo.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Optional

from errors import MacroError

MAX_MACRO_DEPTH = 8

_REFERENCE_RE = re.compile(r"@([A-Za-z_][A-Za-z0-9_-]*)")
_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]{0,31}$")


def normalize_macro_name(name: str) -> str:
    """Lower-cases and validates a macro name; raises MacroError."""
    clean = name.strip().lstrip("@")
    if not _NAME_RE.match(clean):
        raise MacroError(
            f"Invalid macro name {name!r}: use up to 32 letters, digits, '_' or '-'"
        )
    return clean.lower()


def references(text: str) -> list[str]:
    return [m.group(1).lower() for m in _REFERENCE_RE.finditer(text)]


def expand_macros(
    text: str,
    macros: Mapping[str, str],
    max_depth: int = MAX_MACRO_DEPTH,
    max_length: Optional[int] = None,
) -> str:
    """
    Replaces every @name in `text`.

    Raises MacroError on unknown or cyclic names, nesting deeper than
    `max_depth`, or an expansion longer than `max_length` characters.
    """

    def _check(expanded: str) -> str:
        if max_length is not None and len(expanded) > max_length:
            raise MacroError(f"Macro expansion longer than {max_length} characters")
        return expanded

    def _expand(body: str, stack: tuple[str, ...]) -> str:
        def _replace(m: re.Match[str]) -> str:
            name = m.group(1).lower()
            if name in stack:
                chain = " -> ".join(f"@{n}" for n in stack + (name,))
                raise MacroError(f"Macro cycle: {chain}")
            if len(stack) >= max_depth:
                raise MacroError(f"Macros nested deeper than {max_depth} levels")
            if name not in macros:
                raise MacroError(f"Unknown macro @{name}")
            return _check(f"({_expand(macros[name], stack + (name,))})")

        return _check(_REFERENCE_RE.sub(_replace, body))

    return _expand(text, ())
