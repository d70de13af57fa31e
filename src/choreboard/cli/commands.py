# src/choreboard/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from ..chores.chore_api import complete, list_occurrences, sweep
from ..chores.chore_models import OccurrenceView, from_epoch
from ..chores.errors import Conflict, NotFound, StoreUnavailable
from ..core.state import AppState

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /chores, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(state, args)
        except StoreUnavailable as e:
            logger.warning("Command /%s failed, store unavailable: %s", name, e)
            return f"Store unavailable: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def parse_when(raw: str) -> datetime:
    """Epoch seconds or ISO-8601 ("2024-01-07T18:00Z"). Naive values are UTC."""
    text = raw.strip()
    if text.isdigit():
        try:
            return from_epoch(int(text))
        except (OverflowError, OSError) as e:
            raise ValueError(f"epoch out of range: {text}") from e
    ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def _fmt_ts(ts: datetime) -> str:
    return ts.astimezone(UTC).strftime("%Y-%m-%d %H:%M UTC")


def _fmt_view(view: OccurrenceView) -> str:
    label = "upcoming" if view.upcoming else view.status.value
    return (
        f"{view.title} @ {_fmt_ts(view.expected_completion_time)} [{label}]: {view.description}"
        f"  (key: {int(view.expected_completion_time.timestamp())})"
    )


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    return (
        "Status:\n"
        f"  Chores defined: {len(state.chores)}\n"
        f"  Occurrences stored: {state.chore_store.count_occurrences()}\n"
        f"  Active flashes: {len(state.flash_store.list_active())}\n"
        f"  Recurrence tick: every {getattr(settings, 'recurrence_interval_seconds', '?')}s\n"
        f"  Sweep tick: every {getattr(settings, 'sweep_interval_seconds', '?')}s"
    )


def cmd_chores(state: AppState, args: list[str]) -> str:
    """
    /chores        -> current and open occurrences
    /chores N      -> also those expected in the last N days
    """
    lookback = int(getattr(state.settings, "list_lookback_days", 0) or 0)
    if args:
        try:
            lookback = max(0, int(args[0]))
        except ValueError:
            return "Usage: /chores [lookback_days]"

    views = list_occurrences(state.chore_store, state.chores, state.clock(), lookback_days=lookback)
    if not views:
        return "No chores scheduled."
    return "\n".join(_fmt_view(v) for v in views)


def cmd_done(state: AppState, args: list[str]) -> str:
    """
    /done <title> <expected>   expected: epoch seconds (see /chores) or ISO-8601
    """
    if len(args) < 2:
        return "Usage: /done <title> <expected_completion_time>"

    title = " ".join(args[:-1])
    try:
        expected = parse_when(args[-1])
    except ValueError:
        return f"Cannot parse time {args[-1]!r}. Use epoch seconds or ISO-8601."

    try:
        occ = complete(state.chore_store, title, expected)
    except NotFound:
        return f"No occurrence of {title!r} at {_fmt_ts(expected)}."
    except Conflict as e:
        return f"{title!r} at {_fmt_ts(expected)} is already {e.status}."

    return f"Done: {occ.title} @ {_fmt_ts(occ.expected_completion_time)}."


def cmd_flash(state: AppState, args: list[str]) -> str:
    text = " ".join(args).strip()
    if not text:
        return "Usage: /flash <text>"
    flash = state.flash_store.create(text)
    return f"Flash #{flash.id} added."


def cmd_flashes(state: AppState, args: list[str]) -> str:
    flashes = state.flash_store.list_active()
    if not flashes:
        return "No active flashes."
    return "\n".join(f"#{f.id} [{_fmt_ts(f.created_at)}] {f.contents}" for f in flashes)


def cmd_dismiss(state: AppState, args: list[str]) -> str:
    if len(args) != 1 or not args[0].isdigit():
        return "Usage: /dismiss <id>"
    try:
        state.flash_store.acknowledge(int(args[0]))
    except NotFound:
        return f"No flash #{args[0]}."
    return f"Flash #{args[0]} dismissed."


def cmd_tick(state: AppState, args: list[str]) -> str:
    created = state.engine.tick(state.clock())
    return f"Recurrence tick: {created} occurrence(s) created."


def cmd_sweep(state: AppState, args: list[str]) -> str:
    missed = sweep(state.chore_store, state.clock())
    return f"Sweep: {missed} occurrence(s) marked missed."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show store and scheduler status.")
registry.register("chores", cmd_chores, help_text="List occurrences: /chores [lookback_days].")
registry.register(
    "done", cmd_done, help_text="Complete an occurrence: /done <title> <expected>.", aliases=["complete"]
)
registry.register("flash", cmd_flash, help_text="Add a flash: /flash <text>.")
registry.register("flashes", cmd_flashes, help_text="List active flashes.")
registry.register("dismiss", cmd_dismiss, help_text="Acknowledge a flash: /dismiss <id>.", aliases=["ack"])
registry.register("tick", cmd_tick, help_text="Run a recurrence tick now.")
registry.register("sweep", cmd_sweep, help_text="Run a sweep now.")
