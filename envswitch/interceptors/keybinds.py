"""
Toggle controls.

A keybind belongs to the environment that was active when it was created,
for good. Its display name carries the owner's id so the shared host
listing stays unambiguous; root-owned keybinds are unprefixed.
"""

from typing import Any, Callable, Dict, Hashable, Optional, Sequence

from envswitch.interceptors.base import CapabilityInterceptor, HostProxy
from envswitch.models.config import Capability
from envswitch.models.environment import Environment
from envswitch.models.snapshot import ToggleEntry, ToggleSnapshot


def display_name(env: Environment, name: str) -> str:
    if env.is_root:
        return name
    return f"[{env.id}] {name}"


class ToggleInterceptor(CapabilityInterceptor):
    capability = Capability.KEYBINDS

    def __init__(self, registry, keybinds: Any):
        super().__init__(registry)
        self.keybinds = keybinds
        self._owners: Dict[Any, str] = {}

    def new_snapshot(self) -> ToggleSnapshot:
        return ToggleSnapshot()

    def new_keybind(self, name: str, key: str) -> "KeybindProxy":
        env = self.registry.active
        keybind = self.keybinds.new_keybind(display_name(env, name), key)
        self._owners[keybind] = env.id
        self.snapshot(env).controls.append(
            ToggleEntry(control=keybind, enabled=keybind.is_enabled())
        )
        return KeybindProxy(keybind, self)

    def owner_of(self, keybind: Any) -> Optional[str]:
        return self._owners.get(keybind)

    def record(
        self,
        setter: Callable[..., Any],
        args: Sequence[Any],
        key: Optional[Hashable] = None,
        target: Any = None,
    ) -> Any:
        result = setter(*args)
        # Written into the owner's snapshot, whoever is active.
        owner_id = self._owners.get(target)
        owner = self.registry.lookup(owner_id) if owner_id is not None else None
        if owner is not None:
            self.store(self.snapshot(owner), target, key, tuple(args))
        return result

    def store(self, snapshot: ToggleSnapshot, target: Any, key: Optional[Hashable], args: tuple) -> None:
        entry = snapshot.entry_for(target)
        if entry is not None:
            entry.enabled = bool(args[0]) if args else True

    def capture(self, env: Environment) -> None:
        for entry in self.snapshot(env).controls:
            entry.enabled = entry.control.is_enabled()
            entry.control.set_enabled(False)

    def restore(self, env: Environment) -> None:
        for entry in self.snapshot(env).controls:
            entry.control.set_enabled(entry.enabled)

    def wrap(self, keybinds: Any) -> "KeybindsProxy":
        return KeybindsProxy(keybinds, self)


class KeybindProxy(HostProxy):
    def set_enabled(self, enabled: bool = True) -> "KeybindProxy":
        self._interceptor.record(self._host.set_enabled, (enabled,), key="enabled", target=self._host)
        return self


class KeybindsProxy(HostProxy):
    def new_keybind(self, name: str, key: str) -> KeybindProxy:
        return self._interceptor.new_keybind(name, key)
