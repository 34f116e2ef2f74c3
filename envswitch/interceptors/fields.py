"""
Field overrides on singleton host objects: nameplate slots, renderer
settings and the vanilla model. Values are fixed-arity tuples keyed by
field name.
"""

from functools import partial
from typing import Any, Hashable, Optional, Type

from envswitch.interceptors.base import CapabilityInterceptor, HostProxy
from envswitch.models.config import Capability
from envswitch.models.environment import Environment
from envswitch.models.snapshot import FieldOverrideSnapshot


class FieldOverrideInterceptor(CapabilityInterceptor):
    """
    Tracks `set_<field>` calls on one host object.

    With ``ordered=True`` restore replays fields from least to most
    recently touched; otherwise in first-write order, which is fine when
    fields are independent.
    """

    def __init__(
        self,
        registry,
        capability: Capability,
        host_object: Any,
        snapshot_class: Type[FieldOverrideSnapshot],
        ordered: bool = False,
    ):
        super().__init__(registry)
        self.capability = capability
        self.host_object = host_object
        self.snapshot_class = snapshot_class
        self.ordered = ordered

    def new_snapshot(self) -> FieldOverrideSnapshot:
        return self.snapshot_class.create(self.ordered)

    def set_field(self, field: str, values: tuple) -> Any:
        return self.record(partial(self.host_object.set_field, field), values, key=field)

    def store(self, snapshot: FieldOverrideSnapshot, target: Any, key: Optional[Hashable], args: tuple) -> None:
        if args:
            snapshot.overrides.touch(key, args)
        else:
            snapshot.overrides.discard(key)

    def capture(self, env: Environment) -> None:
        overrides = self.snapshot(env).overrides
        for field in overrides:
            value = self.host_object.get_field(field)
            if value is None:
                overrides.discard(field)
            else:
                overrides.replace(field, value)
            self.host_object.reset_field(field)

    def restore(self, env: Environment) -> None:
        overrides = self.snapshot(env).overrides
        for field, values in overrides.items():
            self.host_object.set_field(field, *values)
            overrides.touch(field, values)

    def wrap(self, host_object: Any) -> "FieldSetterProxy":
        return FieldSetterProxy(host_object, self)


class FieldSetterProxy(HostProxy):
    """Routes `set_<field>(...)` and `set_field(field, ...)` through the interceptor."""

    def set_field(self, field: str, *values: Any) -> "FieldSetterProxy":
        self._host.arity(field)
        self._interceptor.set_field(field, values)
        return self

    def __getattr__(self, name: str) -> Any:
        if name.startswith("set_") and name[4:] in self._host.FIELDS:
            return partial(self.set_field, name[4:])
        return getattr(self._host, name)
