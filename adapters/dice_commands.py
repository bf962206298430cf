"""
dice_commands.py — to, co woła handler komend czatu.

Dispatcher obcina prefiks platformy i przekazuje surowy tekst oraz id autora
i kanału. Ta warstwa rozwija @makra, deleguje do DiceEngine, zapisuje historię
i renderuje wynik; nigdy nie dotyka platformy czatu.

Limity (z Settings): roll_many <= 100 rzutów i najwyżej 3 wiadomości po
2000 znaków, roll_bincount <= 500 rzutów. Rozwinięcie makr nie może być
dłuższe niż max_expression_length. Puste wyrażenie rzuca
Settings.default_expression.
"""
from __future__ import annotations

import logging
import re
from collections import Counter

from adapters.macros.expander import expand_macros, normalize_macro_name, references
from adapters.randomness.system_source import SystemRandomSource
from adapters.renderer.markdown_renderer import render_result, split_messages
from config import Settings
from contracts import EvaluationResult, RollOutcome, RollRecord
from dice_engine import DiceEngine
from errors import CommandError
from ports.randomness import RandomnessSource
from ports.roll_store import RollStore

logger = logging.getLogger("rollwright.commands")

_INLINE_RE = re.compile(r"\[\[([^\]]+)\]\]")


def user_scope(user_id: str) -> str:
    return f"user:{user_id}"


def channel_scope(channel_id: str) -> str:
    return f"channel:{channel_id}"


def display_name(nick: str) -> str:
    """'Aria | she/her' → 'Aria' — drops everything after the last '|'."""
    if "|" in nick:
        return nick[: nick.rfind("|")].strip()
    return nick


class DiceCommands:
    def __init__(
        self,
        engine: DiceEngine,
        settings: Settings | None = None,
        store: RollStore | None = None,
        source: RandomnessSource | None = None,
    ) -> None:
        self._engine = engine
        self._settings = settings or Settings()
        self._store = store
        self._source = source or SystemRandomSource()

    @property
    def engine(self) -> DiceEngine:
        return self._engine

    # -- rzuty ---------------------------------------------------------------

    def roll(
        self,
        text: str,
        user: str | None = None,
        channel: str | None = None,
        source: RandomnessSource | None = None,
    ) -> RollOutcome:
        expression = self.resolve(text, user, channel)
        result = self._engine.roll(expression, source or self._source)
        self._record(result, user, channel)
        return RollOutcome(result=result, text=render_result(result))

    def roll_many(
        self,
        count: int,
        text: str,
        user: str | None = None,
        channel: str | None = None,
        source: RandomnessSource | None = None,
    ) -> list[str]:
        limit = self._settings.roll_many_limit
        if not 1 <= count <= limit:
            raise CommandError(f"Roll many is limited to between 1 and {limit} rolls, got {count}")
        expr = self._engine.parse(self.resolve(text, user, channel))
        src = source or self._source
        lines = [
            f"{i}: {render_result(self._engine.evaluate(expr, src))}"
            for i in range(1, count + 1)
        ]
        messages = split_messages(lines, self._settings.message_limit)
        if len(messages) > self._settings.max_messages:
            raise CommandError(
                f"Roll many is limited to results which fit into "
                f"{self._settings.max_messages} messages"
            )
        return messages

    def roll_bincount(
        self,
        count: int,
        text: str,
        user: str | None = None,
        channel: str | None = None,
        source: RandomnessSource | None = None,
    ) -> dict[int, int]:
        """Rolls `count` times and returns {total: occurrences}, sorted by total."""
        limit = self._settings.bincount_limit
        if not 1 <= count <= limit:
            raise CommandError(f"Roll bincount is limited to between 1 and {limit} rolls, got {count}")
        expr = self._engine.parse(self.resolve(text, user, channel))
        src = source or self._source
        counts = Counter(self._engine.evaluate(expr, src).total for _ in range(count))
        return dict(sorted(counts.items()))

    def inline(
        self,
        nick: str,
        message: str,
        user: str | None = None,
        channel: str | None = None,
        source: RandomnessSource | None = None,
    ) -> str:
        """Replaces every [[expr]] in `message` with its rendered roll."""

        def _replace(m: re.Match[str]) -> str:
            return self.roll(m.group(1), user, channel, source).text

        return f"{display_name(nick)}: {_INLINE_RE.sub(_replace, message)}"

    def resolve(self, text: str, user: str | None = None, channel: str | None = None) -> str:
        """Default expression for empty input, @macros expanded."""
        expression = text.strip() or self._settings.default_expression
        if references(expression):
            expression = expand_macros(
                expression,
                self._macros_for(user, channel),
                max_length=self._settings.max_expression_length,
            )
        return expression

    # -- makra ---------------------------------------------------------------

    def set_macro(self, scope: str, name: str, notation: str) -> str:
        """Validates the notation by parsing it, then saves. Returns the stored name."""
        store = self._require_store()
        key = normalize_macro_name(name)
        body = notation.strip()
        macros = store.get_macros(scope)
        macros[key] = body
        self._engine.parse(
            expand_macros(body, macros, max_length=self._settings.max_expression_length)
        )
        store.set_macro(scope, key, body)
        logger.info("Macro @%s set for %s", key, scope)
        return key

    def get_macro(self, scope: str, name: str) -> str | None:
        return self._require_store().get_macro(scope, normalize_macro_name(name))

    def delete_macro(self, scope: str, name: str) -> bool:
        return self._require_store().delete_macro(scope, normalize_macro_name(name))

    def list_macros(self, scope: str) -> dict[str, str]:
        return dict(sorted(self._require_store().get_macros(scope).items()))

    # -- historia ------------------------------------------------------------

    def history(self, scope: str, limit: int | None = None) -> list[RollRecord]:
        return self._require_store().get_history(scope, limit)

    # -- Prywatne ------------------------------------------------------------

    def _macros_for(self, user: str | None, channel: str | None) -> dict[str, str]:
        if self._store is None:
            return {}
        macros: dict[str, str] = {}
        if channel:
            macros.update(self._store.get_macros(channel_scope(channel)))
        if user:
            macros.update(self._store.get_macros(user_scope(user)))
        return macros

    def _record(self, result: EvaluationResult, user: str | None, channel: str | None) -> None:
        if self._store is None:
            return
        scopes = []
        if user:
            scopes.append(user_scope(user))
        if channel:
            scopes.append(channel_scope(channel))
        for scope in scopes:
            self._store.append_history(
                RollRecord(scope=scope, user=user, expression=result.expression, total=result.total),
                limit=self._settings.history_limit,
            )

    def _require_store(self) -> RollStore:
        if self._store is None:
            raise CommandError("No storage configured for macros and history")
        return self._store
