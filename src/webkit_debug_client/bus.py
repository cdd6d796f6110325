"""Event Bus - named pub/sub for unsolicited debugger events.

Handlers are registered per event name and run in registration order.
Each registration returns a Subscription handle so owners can tear
down exactly what they added.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Handlers receive the event's params (None when the event carried none).
# A handler returning an awaitable is scheduled on the running loop.
EventHandler = Callable[[Any], Any]

# Wildcard handlers also receive the event name.
WildcardHandler = Callable[[str, Any], Any]

WILDCARD = "*"


@dataclass(eq=False)
class Subscription:
    """Handle returned by EventBus.subscribe()."""

    name: str
    handler: Callable[..., Any]
    _bus: EventBus | None = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return self._bus is not None

    def unsubscribe(self) -> None:
        """Remove this handler. Safe to call more than once."""
        if self._bus is not None:
            self._bus.unsubscribe(self)


class EventBus:
    """Ordered, name-keyed event dispatch.

    Usage:
        bus = EventBus()
        sub = bus.subscribe("Debugger.paused", on_paused)
        bus.emit("Debugger.paused", {"callFrames": []})
        sub.unsubscribe()
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = {}
        self._tasks: set[asyncio.Future[Any]] = set()

    def subscribe(self, name: str, handler: EventHandler) -> Subscription:
        """Register handler for events named `name`.

        The same handler may be registered more than once; it then runs
        once per registration.
        """
        subscription = Subscription(name=name, handler=handler, _bus=self)
        self._subscriptions.setdefault(name, []).append(subscription)
        return subscription

    def subscribe_all(self, handler: WildcardHandler) -> Subscription:
        """Register handler for every event. Called as handler(name, params)."""
        return self.subscribe(WILDCARD, handler)

    def unsubscribe(self, subscription: Subscription) -> None:
        subs = self._subscriptions.get(subscription.name)
        if subs and subscription in subs:
            subs.remove(subscription)
            if not subs:
                del self._subscriptions[subscription.name]
        subscription._bus = None

    def handlers(self, name: str) -> list[Callable[..., Any]]:
        """Handlers registered for `name`, in invocation order."""
        return [s.handler for s in self._subscriptions.get(name, [])]

    def has_subscribers(self, name: str) -> bool:
        return bool(self._subscriptions.get(name) or self._subscriptions.get(WILDCARD))

    def emit(self, name: str, params: Any = None) -> int:
        """Dispatch an event to its handlers, then to wildcard handlers.

        Returns the number of handlers invoked. A failing handler is logged
        and does not prevent the remaining handlers from running.
        """
        # Copy so handlers may unsubscribe while we iterate
        specific_subs = list(self._subscriptions.get(name, []))
        wildcard_subs = list(self._subscriptions.get(WILDCARD, [])) if name != WILDCARD else []

        for sub in specific_subs:
            self._invoke(name, sub.handler, params)
        for sub in wildcard_subs:
            self._invoke(name, sub.handler, name, params)

        return len(specific_subs) + len(wildcard_subs)

    def clear(self) -> None:
        """Drop every subscription."""
        for subs in self._subscriptions.values():
            for sub in subs:
                sub._bus = None
        self._subscriptions = {}

    def _invoke(self, name: str, handler: Callable[..., Any], *args: Any) -> None:
        try:
            result = handler(*args)
        except Exception:
            logger.exception(f"Error in subscriber for {name}")
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(lambda t: self._task_done(name, t))

    def _task_done(self, name: str, task: asyncio.Future[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Error in async subscriber for {name}", exc_info=exc)

    @property
    def pending_tasks(self) -> int:
        """Number of coroutine handlers still running."""
        return len(self._tasks)

    async def cancel_pending(self) -> None:
        """Cancel coroutine handlers that are still running and wait for them."""
        tasks = list(self._tasks)
        if not tasks:
            return
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug(f"Cancelled {len(tasks)} running event handler(s)")
