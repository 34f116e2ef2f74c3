"""Callback bus: host event queues shared by every environment."""

import logging
from typing import Any, Callable, Dict, Hashable, Optional

from envswitch.interceptors.base import (
    CapabilityInterceptor,
    HostProxy,
    ensure_handler,
    ensure_handler_name,
)
from envswitch.models.config import Capability
from envswitch.models.environment import Environment
from envswitch.models.snapshot import CallbackSnapshot, HandlerEntry

logger = logging.getLogger(__name__)


class CallbackInterceptor(CapabilityInterceptor):
    """
    Records handler registrations per queue in insertion order.

    Queues are host singletons, so capture clears every queue the
    environment tracks and restore re-registers the handlers in order.
    """

    capability = Capability.EVENTS

    def new_snapshot(self) -> CallbackSnapshot:
        return CallbackSnapshot()

    def register(self, queue: Any, func: Callable, name: Optional[str] = None) -> Any:
        ensure_handler(func)
        ensure_handler_name(name)
        result = self.record(queue.register, (func, name), key="register", target=queue)
        logger.debug(f"Registered new event on {queue.name}", extra={"env": self.registry.active_id})
        return result

    def remove(self, queue: Any, name: str) -> int:
        return self.record(queue.remove, (name,), key="remove", target=queue)

    def clear(self, queue: Any) -> None:
        return self.record(queue.clear, (), key="clear", target=queue)

    def store(self, snapshot: CallbackSnapshot, target: Any, key: Optional[Hashable], args: tuple) -> None:
        handlers = snapshot.queues.setdefault(target, [])
        if key == "register":
            func, name = args
            handlers.append(HandlerEntry(handler=func, name=name))
        elif key == "remove":
            (name,) = args
            snapshot.queues[target] = [h for h in handlers if h.name != name]
        elif key == "clear":
            snapshot.queues[target] = []

    def capture(self, env: Environment) -> None:
        snapshot = self.snapshot(env)
        for queue in list(snapshot.queues):
            snapshot.queues[queue] = [
                HandlerEntry(handler=func, name=name) for func, name in queue.handlers()
            ]
            queue.clear()

    def restore(self, env: Environment) -> None:
        snapshot = self.snapshot(env)
        for queue, handlers in snapshot.queues.items():
            for entry in handlers:
                queue.register(entry.handler, entry.name)

    def wrap(self, events: Any) -> "EventsProxy":
        return EventsProxy(events, self)


class EventQueueProxy(HostProxy):
    def register(self, func: Callable, name: Optional[str] = None) -> "EventQueueProxy":
        self._interceptor.register(self._host, func, name)
        return self

    def remove(self, name: str) -> int:
        return self._interceptor.remove(self._host, name)

    def clear(self) -> None:
        self._interceptor.clear(self._host)


class EventsProxy(HostProxy):
    """`events.tick.register(f)` and `events.tick = f` both go through the bus."""

    def __init__(self, events: Any, interceptor: CallbackInterceptor):
        super().__init__(events, interceptor)
        object.__setattr__(self, "_queues", {})

    def _queue(self, name: str) -> EventQueueProxy:
        queue = getattr(self._host, name)
        proxy = self._queues.get(queue.name)
        if proxy is None:
            proxy = EventQueueProxy(queue, self._interceptor)
            self._queues[queue.name] = proxy
        return proxy

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._queue(name)

    def __setattr__(self, name: str, func: Any) -> None:
        ensure_handler(func)
        self._queue(name).register(func)

    def get_events(self) -> Dict[str, EventQueueProxy]:
        return {name: self._queue(name) for name in self._host.get_events()}
