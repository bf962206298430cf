#!/usr/bin/env python3
"""
rollwright.py — CLI narzędzie Rollwright.

Działa całkowicie lokalnie: buduje silnik z Settings, a makra i historię
trzyma w magazynie JSON pod ROLLWRIGHT_STORE_DIR (domyślnie ./store).

Podkomendy:
    roll      — rzuć jedno wyrażenie
    many      — rzuć to samo wyrażenie N razy
    bincount  — rzuć N razy i policz, ile razy wypadła każda suma
    inline    — zamień każde [[expr]] w wiadomości na jego rzut
    parse     — sprawdź składnię i wypisz zapis kanoniczny
    macro     — set / get / rm / list zapisanych makr
    history   — pokaż ostatnie rzuty

Użycie:
    python rollwright.py roll "4d6kh3 + 2"
    python rollwright.py --seed 42 roll --trace "3d6!"
    python rollwright.py many 6 4d6kh3
    python rollwright.py bincount 500 2d6
    python rollwright.py inline --nick "Aria | GM" "I hit for [[1d8+3]]"
    python rollwright.py parse "2D20KH + -3"
    python rollwright.py macro set attack "1d20 + 5"
    python rollwright.py roll "@attack"
    python rollwright.py history --limit 10
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from rich import box
from rich.console import Console
from rich.table import Table

from adapters.dice_commands import DiceCommands, channel_scope, user_scope
from adapters.notation.printer import to_notation
from adapters.randomness.seeded_source import SeededRandomSource
from adapters.renderer.markdown_renderer import render_bincount, split_messages
from adapters.store.json_file_store import JsonFileStore
from config import Settings
from contracts import (
    BinaryTrace,
    DiceTrace,
    EvaluationResult,
    GroupingTrace,
    NodeTrace,
    UnaryTrace,
)
from dice_engine import DiceEngine
from errors import DiceError


# -- helpers -----------------------------------------------------------------

_CONSOLE: Console | None = None


def _console() -> Console:
    global _CONSOLE
    if _CONSOLE is None:
        _CONSOLE = Console(highlight=False)
    return _CONSOLE


def _safe_terminal_text(value: Any) -> str:
    s = str(value).replace("×", "x").replace("÷", "/")
    encoding = sys.stdout.encoding or "utf-8"
    try:
        s.encode(encoding)
        return s
    except UnicodeEncodeError:
        return s.encode(encoding, errors="replace").decode(encoding, errors="replace")


def _dice_traces(trace: NodeTrace) -> list[DiceTrace]:
    """Dice terms in written order."""
    if isinstance(trace, DiceTrace):
        return [trace]
    if isinstance(trace, BinaryTrace):
        return _dice_traces(trace.left) + _dice_traces(trace.right)
    if isinstance(trace, UnaryTrace):
        return _dice_traces(trace.operand)
    if isinstance(trace, GroupingTrace):
        return _dice_traces(trace.inner)
    return []


def _print_dice_table(result: EvaluationResult) -> None:
    table = Table(
        title=f"{result.expression} = {result.total}",
        box=box.ASCII,
        show_lines=False,
    )
    table.add_column("Term", no_wrap=True, style="cyan")
    table.add_column("#", justify="right", no_wrap=True)
    table.add_column("Face", justify="right", no_wrap=True)
    table.add_column("Total", justify="right", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Source", no_wrap=True)
    table.add_column("From", justify="right", no_wrap=True)
    for trace in _dice_traces(result.trace):
        for die in trace.roll.dice:
            status = die.status.value + (" !" if die.exploded else "")
            table.add_row(
                _safe_terminal_text(trace.roll.notation),
                str(die.index),
                str(die.value),
                str(die.total),
                status,
                die.source.value,
                "" if die.parent is None else str(die.parent),
            )
    _console().print(table)


def _print_messages(messages: list[str]) -> None:
    for i, message in enumerate(messages):
        if i:
            print("---")
        print(_safe_terminal_text(message))


def _commands(args: argparse.Namespace, settings: Settings) -> DiceCommands:
    source = SeededRandomSource(args.seed) if args.seed is not None else None
    return DiceCommands(
        engine=DiceEngine.from_settings(settings),
        settings=settings,
        store=JsonFileStore(settings.store_dir),
        source=source,
    )


def _scope(args: argparse.Namespace) -> str:
    if args.channel:
        return channel_scope(args.channel)
    return user_scope(args.user)


# -- podkomendy --------------------------------------------------------------

def _roll(args: argparse.Namespace, commands: DiceCommands) -> None:
    outcome = commands.roll(" ".join(args.expression), args.user, args.channel)
    print(_safe_terminal_text(outcome.text))
    if args.trace:
        _print_dice_table(outcome.result)


def _many(args: argparse.Namespace, commands: DiceCommands) -> None:
    _print_messages(
        commands.roll_many(args.count, " ".join(args.expression), args.user, args.channel)
    )


def _bincount(args: argparse.Namespace, commands: DiceCommands, settings: Settings) -> None:
    counts = commands.roll_bincount(args.count, " ".join(args.expression), args.user, args.channel)
    _print_messages(split_messages(render_bincount(counts), settings.message_limit))


def _inline(args: argparse.Namespace, commands: DiceCommands) -> None:
    message = " ".join(args.message) or sys.stdin.read().strip()
    print(_safe_terminal_text(commands.inline(args.nick, message, args.user, args.channel)))


def _parse(args: argparse.Namespace, commands: DiceCommands) -> None:
    text = commands.resolve(" ".join(args.expression), args.user, args.channel)
    expr = commands.engine.parse(text)
    print(_safe_terminal_text(to_notation(expr)))
    if args.json:
        print(expr.model_dump_json(indent=2))


def _macro(args: argparse.Namespace, commands: DiceCommands) -> None:
    scope = _scope(args)
    if args.macro_command == "set":
        name = commands.set_macro(scope, args.name, " ".join(args.notation))
        print(f"@{name} saved for {scope}")
    elif args.macro_command == "get":
        notation = commands.get_macro(scope, args.name)
        if notation is None:
            print(f"No macro @{args.name} for {scope}", file=sys.stderr)
            sys.exit(1)
        print(_safe_terminal_text(notation))
    elif args.macro_command == "rm":
        if not commands.delete_macro(scope, args.name):
            print(f"No macro @{args.name} for {scope}", file=sys.stderr)
            sys.exit(1)
        print(f"@{args.name} removed from {scope}")
    else:
        macros = commands.list_macros(scope)
        table = Table(title=f"Macros ({scope}) [{len(macros)}]", box=box.ASCII)
        table.add_column("Name", no_wrap=True, style="cyan")
        table.add_column("Notation")
        for name, notation in macros.items():
            table.add_row(f"@{name}", _safe_terminal_text(notation))
        _console().print(table)


def _history(args: argparse.Namespace, commands: DiceCommands) -> None:
    scope = _scope(args)
    records = commands.history(scope, args.limit)
    table = Table(title=f"History ({scope}) [{len(records)}]", box=box.ASCII)
    table.add_column("When", no_wrap=True, style="cyan")
    table.add_column("Expression")
    table.add_column("Total", justify="right", no_wrap=True)
    for record in records:
        table.add_row(
            record.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            _safe_terminal_text(record.expression),
            str(record.total),
        )
    _console().print(table)


# -- main --------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rollwright",
        description="Rollwright — dice expression roller (local, no API server)",
    )
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed the dice for a reproducible roll")
    parser.add_argument("--user", default="local", help="User id for macros and history")
    parser.add_argument("--channel", default=None, help="Channel id for macros and history")
    sub = parser.add_subparsers(dest="command", required=True)

    # roll
    p = sub.add_parser("roll", help="Roll one expression")
    p.add_argument("expression", nargs="*", help="Dice notation (default: 1d20)")
    p.add_argument("--trace", action="store_true", help="Print every die in a table")

    # many
    p = sub.add_parser("many", help="Roll the same expression N times")
    p.add_argument("count", type=int)
    p.add_argument("expression", nargs="*")

    # bincount
    p = sub.add_parser("bincount", help="Count totals over N rolls")
    p.add_argument("count", type=int)
    p.add_argument("expression", nargs="*")

    # inline
    p = sub.add_parser("inline", help="Roll every [[expr]] inside a message")
    p.add_argument("message", nargs="*", help="Message text (or stdin)")
    p.add_argument("--nick", default="local", help="Display name, text after the last '|' is dropped")

    # parse
    p = sub.add_parser("parse", help="Check syntax and print canonical notation")
    p.add_argument("expression", nargs="+")
    p.add_argument("--json", action="store_true", help="Also print the syntax tree")

    # macro
    p = sub.add_parser("macro", help="Manage saved macros")
    msub = p.add_subparsers(dest="macro_command", required=True)
    mp = msub.add_parser("set", help="Save a macro (validated by parsing)")
    mp.add_argument("name")
    mp.add_argument("notation", nargs="+")
    mp = msub.add_parser("get", help="Show a macro")
    mp.add_argument("name")
    mp = msub.add_parser("rm", help="Delete a macro")
    mp.add_argument("name")
    msub.add_parser("list", help="List macros")

    # history
    p = sub.add_parser("history", help="Show recent rolls")
    p.add_argument("--limit", type=int, default=20, metavar="N")

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = Settings()
    logging.basicConfig(level=settings.log_level.upper())
    commands = _commands(args, settings)

    try:
        if args.command == "roll":
            _roll(args, commands)
        elif args.command == "many":
            _many(args, commands)
        elif args.command == "bincount":
            _bincount(args, commands, settings)
        elif args.command == "inline":
            _inline(args, commands)
        elif args.command == "parse":
            _parse(args, commands)
        elif args.command == "macro":
            _macro(args, commands)
        elif args.command == "history":
            _history(args, commands)
    except DiceError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
