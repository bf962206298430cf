"""
dice_engine.py — trzy punkty wejścia dla współpracowników.

    engine = DiceEngine.from_settings(Settings())
    expr = engine.parse("4d6kh3 + 2")          # tania kontrola składni, bez kości
    result = engine.evaluate(expr, source)     # właściwy rzut
    result = engine.roll("2d20kh")             # oba naraz, ze źródłem systemowym

Konfiguracja jest ustalana przy konstrukcji. Silnik nie trzyma stanu między
wywołaniami, więc jedna instancja może obsłużyć dowolną liczbę wątków; źródło
losowości przekazane do evaluate() służy tylko temu wywołaniu.
"""
from __future__ import annotations

from adapters.evaluator.dice_evaluator import DiceEvaluator
from adapters.expression_parser.dice_parser import DiceNotationParser
from adapters.randomness.system_source import SystemRandomSource
from config import Settings
from contracts import EvaluationResult, Expression
from ports.evaluator import Evaluator, EvaluatorConfig
from ports.expression_parser import ExpressionParser
from ports.randomness import RandomnessSource


class DiceEngine:
    def __init__(
        self,
        config: EvaluatorConfig | None = None,
        parser: ExpressionParser | None = None,
        evaluator: Evaluator | None = None,
        default_source: RandomnessSource | None = None,
    ) -> None:
        self._config = config or EvaluatorConfig()
        self._parser = parser or DiceNotationParser()
        self._evaluator = evaluator or DiceEvaluator(self._config)
        self._default_source = default_source or SystemRandomSource()

    @classmethod
    def from_settings(cls, settings: Settings) -> "DiceEngine":
        config = settings.evaluator_config()
        return cls(
            config=config,
            parser=DiceNotationParser(
                max_length=settings.max_expression_length,
                max_depth=settings.max_nesting_depth,
            ),
            evaluator=DiceEvaluator(config),
        )

    @property
    def config(self) -> EvaluatorConfig:
        return self._config

    def parse(self, text: str) -> Expression:
        """Raises LexError / ParseError; never consumes randomness."""
        return self._parser.parse(text)

    def evaluate(self, expr: Expression, source: RandomnessSource) -> EvaluationResult:
        """Raises EvalError; `source` is not retained after the call."""
        return self._evaluator.evaluate(expr, source)

    def roll(self, text: str, source: RandomnessSource | None = None) -> EvaluationResult:
        return self.evaluate(self.parse(text), source or self._default_source)
