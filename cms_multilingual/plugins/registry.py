"""
Hook Registry

HookRegistry: per-engine store of action and filter callbacks.

Actions are fire-and-forget: each subscriber is awaited in priority order;
exceptions are caught, logged, and execution continues. Filters thread a value
through synchronous callbacks in priority order and let exceptions propagate.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from itertools import count
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 10


@dataclass(order=True)
class HookCallback:
    priority: int
    sequence: int
    callback: Callable[..., Any] = field(compare=False)
    name: str = field(compare=False, default="")


class HookRegistry:
    """
    In-process registry of save-path actions and query-pipeline filters.

    Callbacks with equal priority run in registration order.
    """

    def __init__(self) -> None:
        self._actions: dict[str, list[HookCallback]] = defaultdict(list)
        self._filters: dict[str, list[HookCallback]] = defaultdict(list)
        self._sequence = count()

    # ── Registration ──────────────────────────────────────────────────────────

    def add_action(
        self,
        hook_name: str,
        callback: Callable[..., Any],
        priority: int = DEFAULT_PRIORITY,
        name: str | None = None,
    ) -> None:
        """Subscribe an async callback to an action hook."""
        self._add(self._actions, hook_name, callback, priority, name)

    def add_filter(
        self,
        hook_name: str,
        callback: Callable[..., Any],
        priority: int = DEFAULT_PRIORITY,
        name: str | None = None,
    ) -> None:
        """Subscribe a synchronous callback to a filter hook."""
        self._add(self._filters, hook_name, callback, priority, name)

    def _add(self, table, hook_name, callback, priority, name) -> None:
        entry = HookCallback(
            priority=priority,
            sequence=next(self._sequence),
            callback=callback,
            name=name or getattr(callback, "__qualname__", repr(callback)),
        )
        table[hook_name].append(entry)
        table[hook_name].sort()
        logger.debug("Hook %s: registered %s (priority %d)", hook_name, entry.name, priority)

    def remove(self, hook_name: str, name: str) -> int:
        """Remove every callback registered under `name`. Returns the count removed."""
        removed = 0
        for table in (self._actions, self._filters):
            before = len(table.get(hook_name, []))
            if before:
                table[hook_name] = [cb for cb in table[hook_name] if cb.name != name]
                removed += before - len(table[hook_name])
        return removed

    # ── Introspection ─────────────────────────────────────────────────────────

    def count_callbacks(self, hook_name: str, name: str | None = None) -> int:
        """Count registered callbacks for a hook, optionally only those named `name`."""
        entries = self._actions.get(hook_name, []) + self._filters.get(hook_name, [])
        if name is None:
            return len(entries)
        return sum(1 for cb in entries if cb.name == name)

    def callback_names(self, hook_name: str) -> list[str]:
        entries = sorted(self._actions.get(hook_name, []) + self._filters.get(hook_name, []))
        return [cb.name for cb in entries]

    # ── Dispatch ──────────────────────────────────────────────────────────────

    async def do_action(self, hook_name: str, payload: dict[str, Any]) -> list[Any]:
        """
        Fire an action hook to all subscribers.

        Exceptions are caught and logged - a failing side effect never blocks
        the triggering write or the remaining subscribers.

        Returns:
            List of return values from each subscriber (None for failures).
        """
        results: list[Any] = []
        for entry in list(self._actions.get(hook_name, [])):
            try:
                results.append(await entry.callback(payload))
            except Exception as exc:
                logger.warning("Hook %s subscriber %s raised: %s", hook_name, entry.name, exc)
                results.append(None)
        return results

    def apply_filters(self, hook_name: str, value: Any, *args: Any) -> Any:
        """Thread `value` through every filter registered for the hook."""
        for entry in list(self._filters.get(hook_name, [])):
            value = entry.callback(value, *args)
        return value
