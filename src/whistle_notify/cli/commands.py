# src/whistle_notify/cli/commands.py

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..connectors.console_messenger import ConsoleMessenger
from ..core.errors import SubscriptionError
from ..core.models import Whistle
from ..core.reconciler import reconcile_sync
from ..core.state import AppState
from ..notify.dispatcher import DispatchReport, dispatch_whistle
from ..prefs.genres import GENRES, find_genre
from ..prefs.interest_prefs import select_genre

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /save, ...)."""

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

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
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
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    try:
        total = str(state.store.count_subscriptions())
    except SubscriptionError as e:
        total = f"unavailable ({e.message})"
    settings = state.settings
    return (
        "Status:\n"
        f"  Selected genres: {len(state.my_genres)}\n"
        f"  Subscriptions: {total}\n"
        f"  Template: {state.reconciler.notification_template}\n"
        f"  Store: {state.store.db_path}\n"
        f"  Prefs: {state.prefs.path}\n"
        f"  Matrix: {'ON' if getattr(settings, 'matrix_enabled', False) else 'OFF'}"
    )


def cmd_genres(state: AppState, args: list[str]) -> str:
    lines = ["Notify me about..."]
    for genre in GENRES:
        mark = "x" if genre in state.my_genres else " "
        lines.append(f"  [{mark}] {genre}")
    return "\n".join(lines)


def cmd_select(state: AppState, args: list[str]) -> str:
    """
    /select <genre>  -> add a genre to the selection (use /save to apply)
    """
    if not args:
        return "Usage: /select <genre>. Use /genres to list genres."

    genre, added = select_genre(state.my_genres, " ".join(args))
    if genre is None:
        return f"Unknown genre: {' '.join(args)}. Use /genres to list genres."
    if not added:
        return f"{genre} is already selected."
    return f"Selected {genre}. Use /save to update notifications."


def cmd_save(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /save -> persist the selection, then rebuild remote subscriptions from it
    """
    try:
        state.prefs.save(state.my_genres)
    except Exception:
        logger.exception("Failed to save genre selection.")
        return "Failed to save genre selection."

    if emit:
        emit("[SAVE] Updating notification subscriptions...")

    timeout = float(getattr(state.settings, "reconcile_timeout_seconds", 0) or 0) or None
    result = reconcile_sync(state.my_genres, state.store, timeout=timeout, reconciler=state.reconciler)

    lines = [f"Saved {len(state.my_genres)} genres. Subscriptions: deleted={result.deleted} created={result.created}."]
    if result.failures:
        lines.append(f"Failures ({len(result.failures)}):")
        for failure in result.failures:
            lines.append(f"  - {failure.describe()}")
    return "\n".join(lines)


def cmd_subs(state: AppState, args: list[str]) -> str:
    try:
        subs = state.store.list_subscriptions_sync()
    except SubscriptionError as e:
        return f"Subscriptions unavailable: {e.message}"
    if not subs:
        return "No subscriptions."
    lines = [f"Subscriptions ({len(subs)}):"]
    for sub in subs:
        lines.append(f"  {sub.subscription_id[:8]}  {sub.interest}  \"{sub.render_alert()}\"")
    return "\n".join(lines)


async def _deliver(state: AppState, whistle: Whistle, emit: CommandEmitter | None) -> DispatchReport:
    if getattr(state.settings, "matrix_enabled", False):
        from ..connectors.matrix_messenger import open_matrix_messenger

        async with open_matrix_messenger(state.settings) as messenger:
            if messenger is not None:
                return await dispatch_whistle(whistle, state.store, messenger)
        logger.warning("Matrix unavailable; printing alerts to console instead.")

    return await dispatch_whistle(whistle, state.store, ConsoleMessenger(emit))


def cmd_whistle(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /whistle <genre> [comments] -> record a new whistle and fire matching subscriptions
    """
    if not args:
        return "Usage: /whistle <genre> [comments]."

    genre = find_genre(args[0]) or args[0]
    whistle = Whistle(genre=genre, comments=" ".join(args[1:]))
    report = asyncio.run(_deliver(state, whistle, emit))

    if report.matched == 0:
        return f"New {genre} whistle: nobody is subscribed."
    return f"New {genre} whistle: {report.sent} alert(s) sent, {report.failed} failed."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show selection, subscription count and paths.")
registry.register("genres", cmd_genres, help_text="List genres; [x] marks selected ones.")
registry.register("select", cmd_select, help_text="Select a genre: /select <genre>.")
registry.register("save", cmd_save, help_text="Save selection and update notification subscriptions.")
registry.register("subs", cmd_subs, help_text="List current notification subscriptions.")
registry.register("whistle", cmd_whistle, help_text="Post a whistle: /whistle <genre> [comments].")
