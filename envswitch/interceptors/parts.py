"""
Per-object field overrides on model parts, and the visibility flag of each
environment's model root.

The recency-ordered backend moves an (part, field) pair to the end on
every record and every restore, so a capture/restore cycle reproduces the
relative order in which fields were last touched. Sibling parts can have
order-dependent rendered state; the unordered backend is cheaper but does
not give that guarantee.
"""

from functools import partial
from typing import Any, Dict, Hashable, Optional

from envswitch.interceptors.base import CapabilityInterceptor, HostProxy
from envswitch.models.config import Capability
from envswitch.models.environment import Environment
from envswitch.models.snapshot import PartOverrideSnapshot, VisibilitySnapshot


class PartFieldInterceptor(CapabilityInterceptor):
    capability = Capability.PARTS

    def __init__(self, registry, ordered: bool = True):
        super().__init__(registry)
        self.ordered = ordered

    def new_snapshot(self) -> PartOverrideSnapshot:
        return PartOverrideSnapshot.create(self.ordered)

    def set_field(self, part: Any, field: str, values: tuple) -> Any:
        return self.record(partial(part.set_field, field), values, key=field, target=part)

    def store(self, snapshot: PartOverrideSnapshot, target: Any, key: Optional[Hashable], args: tuple) -> None:
        if args:
            snapshot.overrides.touch((target, key), args)
        else:
            snapshot.overrides.discard((target, key))

    def capture(self, env: Environment) -> None:
        overrides = self.snapshot(env).overrides
        for part, field in overrides:
            value = part.get_field(field)
            if value is None:
                overrides.discard((part, field))
            else:
                overrides.replace((part, field), value)
            part.reset_field(field)

    def restore(self, env: Environment) -> None:
        overrides = self.snapshot(env).overrides
        for (part, field), values in overrides.items():
            part.set_field(field, *values)
            overrides.touch((part, field), values)


class VisibilityInterceptor(CapabilityInterceptor):
    """
    Visibility of the environment's model root. Root owns no model.

    Only the owner's activation puts the flag on the host; a write from
    any other environment lands in the owner's snapshot.
    """

    capability = Capability.VISIBILITY

    def new_snapshot(self) -> VisibilitySnapshot:
        return VisibilitySnapshot()

    def set_visible(self, values: tuple, owner: Optional[Environment] = None) -> Any:
        active = self.registry.active
        if owner is None:
            owner = active
        model_root = owner.model_root
        if owner is active:
            return self.record(model_root.set_visible, values, target=model_root)

        arity = model_root.arity("visible")
        if values and len(values) != arity:
            raise TypeError(f"visible expects {arity} value(s), got {len(values)}")
        self.store(self.snapshot(owner), model_root, None, tuple(values))
        return None

    def store(self, snapshot: VisibilitySnapshot, target: Any, key: Optional[Hashable], args: tuple) -> None:
        snapshot.visible = bool(args[0]) if args else True

    def capture(self, env: Environment) -> None:
        if env.model_root is None:
            return
        self.snapshot(env).visible = env.model_root.get_visible()
        env.model_root.set_visible(False)

    def restore(self, env: Environment) -> None:
        if env.model_root is None:
            return
        env.model_root.set_visible(self.snapshot(env).visible)

    def reset_baseline(self, env: Environment) -> None:
        """First activation: the model shows unless its flag was cleared beforehand."""
        if env.model_root is not None:
            env.model_root.set_visible(self.snapshot(env).visible)


class ModelWrapper:
    """Hands out one PartProxy per host part."""

    def __init__(
        self,
        registry,
        parts: Optional[PartFieldInterceptor] = None,
        visibility: Optional[VisibilityInterceptor] = None,
    ):
        self.registry = registry
        self.parts = parts
        self.visibility = visibility
        self._proxies: Dict[Any, "PartProxy"] = {}

    def wrap(self, part: Any) -> Any:
        if part is None:
            return None
        proxy = self._proxies.get(part)
        if proxy is None:
            proxy = PartProxy(part, self)
            self._proxies[part] = proxy
        return proxy

    def owning_environment(self, part: Any) -> Optional[Environment]:
        for env in self.registry.environments():
            if env.model_root is part:
                return env
        return None

    def set_field(self, part: Any, field: str, values: tuple) -> Any:
        if field == "visible":
            owner = self.owning_environment(part)
            if owner is not None:
                # Model roots are governed by the visibility flag only.
                if self.visibility is not None:
                    return self.visibility.set_visible(values, owner)
                return part.set_field(field, *values)
        if self.parts is not None:
            return self.parts.set_field(part, field, values)
        return part.set_field(field, *values)


class PartProxy(HostProxy):
    """Script-facing model part. Navigation returns wrapped parts."""

    def set_field(self, field: str, *values: Any) -> "PartProxy":
        self._host.arity(field)
        self._interceptor.set_field(self._host, field, values)
        return self

    def set_visible(self, *values: Any) -> "PartProxy":
        return self.set_field("visible", *values)

    def child(self, name: str) -> Optional["PartProxy"]:
        return self._interceptor.wrap(self._host.child(name))

    def get_children(self):
        return [self._interceptor.wrap(c) for c in self._host.get_children()]

    def get_parent(self) -> Optional["PartProxy"]:
        return self._interceptor.wrap(self._host.get_parent())

    def new_part(self, name: str) -> "PartProxy":
        return self._interceptor.wrap(self._host.new_part(name))

    def add_child(self, part: Any) -> "PartProxy":
        self._host.add_child(getattr(part, "_host", part))
        return self

    def remove_child(self, part: Any) -> "PartProxy":
        self._host.remove_child(getattr(part, "_host", part))
        return self

    def __getattr__(self, name: str) -> Any:
        if name.startswith("set_") and name[4:] in self._host.FIELDS:
            return partial(self.set_field, name[4:])
        return getattr(self._host, name)
