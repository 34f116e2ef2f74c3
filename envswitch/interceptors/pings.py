"""Single-handler map: one handler per ping name."""

from functools import partial
from typing import Any, Callable, Hashable, Optional

from envswitch.interceptors.base import CapabilityInterceptor, HostProxy, ensure_handler
from envswitch.models.config import Capability
from envswitch.models.environment import Environment
from envswitch.models.snapshot import HandlerMapSnapshot


class HandlerMapInterceptor(CapabilityInterceptor):
    capability = Capability.PINGS

    def __init__(self, registry, pings: Any):
        super().__init__(registry)
        self.pings = pings

    def new_snapshot(self) -> HandlerMapSnapshot:
        return HandlerMapSnapshot()

    def register(self, name: str, func: Optional[Callable]) -> Any:
        ensure_handler(func, allow_none=True)
        return self.record(self.pings.register, (name, func), key=name)

    def store(self, snapshot: HandlerMapSnapshot, target: Any, key: Optional[Hashable], args: tuple) -> None:
        func = args[1] if len(args) > 1 else None
        if func is None:
            snapshot.handlers.pop(key, None)
        else:
            snapshot.handlers[key] = func

    def capture(self, env: Environment) -> None:
        snapshot = self.snapshot(env)
        for name in list(snapshot.handlers):
            func = self.pings.get(name)
            if func is None:
                del snapshot.handlers[name]
            else:
                snapshot.handlers[name] = func
            self.pings.unregister(name)

    def restore(self, env: Environment) -> None:
        for name, func in self.snapshot(env).handlers.items():
            self.pings.register(name, func)

    def wrap(self, pings: Any) -> "PingsProxy":
        return PingsProxy(pings, self)


class PingsProxy(HostProxy):
    """`pings.name = f` registers, `pings.name(...)` sends."""

    def register(self, name: str, func: Optional[Callable]) -> None:
        self._interceptor.register(name, func)

    def unregister(self, name: str) -> None:
        self._interceptor.register(name, None)

    def __setattr__(self, name: str, func: Any) -> None:
        self.register(name, func)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or hasattr(self._host, name):
            return getattr(self._host, name)
        return partial(self._host.send, name)
