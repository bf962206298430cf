"""
config.py — Konfiguracja aplikacji przez zmienne środowiskowe.
Wszystkie zmienne mają prefiks ROLLWRIGHT_ (np. ROLLWRIGHT_MAX_DICE_COUNT).
"""
from pydantic_settings import BaseSettings, SettingsConfigDict

from ports.evaluator import DivisionRounding, EvaluatorConfig


class Settings(BaseSettings):
    # Magazyn (zamontowany wolumen w kontenerze)
    store_dir: str = "store"
    history_limit: int = 50

    # Limity silnika, stałe przez całe życie instancji
    max_dice_count: int = 500
    max_dice_sides: int = 10_000
    max_explosion_iterations: int = 100
    max_reroll_iterations: int = 100
    max_total_draws: int = 10_000
    division_rounding: DivisionRounding = DivisionRounding.FLOOR

    # Parser
    max_expression_length: int = 1000
    max_nesting_depth: int = 100

    # Komendy
    default_expression: str = "1d20"
    roll_many_limit: int = 100
    bincount_limit: int = 500
    message_limit: int = 2000
    max_messages: int = 3

    # Logging
    log_level: str = "INFO"

    # App
    app_title: str = "Rollwright"
    app_version: str = "0.1.0"

    model_config = SettingsConfigDict(env_prefix="ROLLWRIGHT_", env_file=".env", extra="ignore")

    def evaluator_config(self) -> EvaluatorConfig:
        return EvaluatorConfig(
            max_dice_count=self.max_dice_count,
            max_dice_sides=self.max_dice_sides,
            max_explosion_iterations=self.max_explosion_iterations,
            max_reroll_iterations=self.max_reroll_iterations,
            max_total_draws=self.max_total_draws,
            division_rounding=self.division_rounding,
        )
