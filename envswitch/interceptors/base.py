"""
Capability Interceptor base.

Every interceptor guards one capability category:

- record:  delegate to the real host setter, return its result unchanged,
           then write the arguments into the active environment's snapshot
           (last write wins; empty arguments clear the key).
- capture: read host ground truth into the outgoing environment's snapshot
           and reset the host-visible state to its baseline.
- restore: replay a snapshot through the real setters, bypassing record.
"""

from typing import Any, Callable, Hashable, Optional, Sequence

from envswitch.models.config import Capability
from envswitch.models.environment import Environment
from envswitch.registry.store import EnvironmentRegistry


class HandlerTypeError(TypeError):
    """A value that is not a handler was passed where one is required."""
    pass


def ensure_handler(func: Any, allow_none: bool = False) -> None:
    if func is None and allow_none:
        return
    if not callable(func):
        raise HandlerTypeError(
            f"Expected a function as a handler, not {type(func).__name__}"
        )


def ensure_handler_name(name: Any) -> None:
    if name is not None and not isinstance(name, str):
        raise HandlerTypeError(
            f"Expected a string as handler name, not {type(name).__name__}"
        )


class CapabilityInterceptor:
    """Common record/capture/restore plumbing."""

    capability: Capability

    def __init__(self, registry: EnvironmentRegistry):
        self.registry = registry

    def new_snapshot(self) -> Any:
        raise NotImplementedError

    def snapshot(self, env: Environment) -> Any:
        return env.snapshot(self.capability)

    def record(
        self,
        setter: Callable[..., Any],
        args: Sequence[Any],
        key: Optional[Hashable] = None,
        target: Any = None,
    ) -> Any:
        result = setter(*args)
        self.store(self.snapshot(self.registry.active), target, key, tuple(args))
        return result

    def store(self, snapshot: Any, target: Any, key: Optional[Hashable], args: tuple) -> None:
        raise NotImplementedError

    def capture(self, env: Environment) -> None:
        raise NotImplementedError

    def restore(self, env: Environment) -> None:
        raise NotImplementedError


class HostProxy:
    """
    Script-facing stand-in for a host object. Intercepted operations are
    defined on subclasses; everything else passes through untouched.
    """

    def __init__(self, host_object: Any, interceptor: Any):
        object.__setattr__(self, "_host", host_object)
        object.__setattr__(self, "_interceptor", interceptor)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._host, name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} of {self._host!r}>"
