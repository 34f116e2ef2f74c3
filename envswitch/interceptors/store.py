"""
Flat global namespace (avatar store).

The host map carries no owner tag, so capture takes the entire live
namespace and clears it; restore writes the saved entries back. Exactly
one environment's entries are in the host at any time.
"""

from typing import Any, Hashable, Optional

from envswitch.interceptors.base import CapabilityInterceptor, HostProxy
from envswitch.models.config import Capability
from envswitch.models.environment import Environment
from envswitch.models.snapshot import NamespaceSnapshot


class NamespaceInterceptor(CapabilityInterceptor):
    capability = Capability.STORE

    def __init__(self, registry, store: Any):
        super().__init__(registry)
        self.host_store = store

    def new_snapshot(self) -> NamespaceSnapshot:
        return NamespaceSnapshot()

    def store(self, snapshot: NamespaceSnapshot, target: Any, key: Optional[Hashable], args: tuple) -> None:
        value = args[1] if len(args) > 1 else None
        if value is None:
            snapshot.entries.pop(key, None)
        else:
            snapshot.entries[key] = value

    def capture(self, env: Environment) -> None:
        self.snapshot(env).entries = dict(self.host_store.items())
        self.host_store.clear()

    def restore(self, env: Environment) -> None:
        for key, value in self.snapshot(env).entries.items():
            self.host_store.put(key, value)

    def wrap(self, store: Any) -> "StoreProxy":
        return StoreProxy(store, self)


class StoreProxy(HostProxy):
    def put(self, key: str, value: Any = None) -> None:
        self._interceptor.record(self._host.put, (key, value), key=key)
