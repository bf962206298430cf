"""
dependencies.py — FastAPI Dependency Injection.
Każda zależność zwraca współdzielony obiekt przez Request.app.state.
"""
from __future__ import annotations

from fastapi import Request

from adapters.dice_commands import DiceCommands
from config import Settings
from dice_engine import DiceEngine


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_engine(request: Request) -> DiceEngine:
    return request.app.state.engine


def get_commands(request: Request) -> DiceCommands:
    return request.app.state.commands
