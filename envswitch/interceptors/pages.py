"""Current action-wheel page."""

from typing import Any, Hashable, Optional

from envswitch.interceptors.base import CapabilityInterceptor, HostProxy
from envswitch.models.config import Capability
from envswitch.models.environment import Environment
from envswitch.models.snapshot import PageSnapshot


class PageInterceptor(CapabilityInterceptor):
    capability = Capability.ACTION_WHEEL

    def __init__(self, registry, action_wheel: Any):
        super().__init__(registry)
        self.action_wheel = action_wheel

    def new_snapshot(self) -> PageSnapshot:
        return PageSnapshot()

    def store(self, snapshot: PageSnapshot, target: Any, key: Optional[Hashable], args: tuple) -> None:
        snapshot.page = args[0] if args else None

    def capture(self, env: Environment) -> None:
        self.snapshot(env).page = self.action_wheel.get_current_page()
        self.action_wheel.set_page(None)

    def restore(self, env: Environment) -> None:
        page = self.snapshot(env).page
        if page is not None:
            self.action_wheel.set_page(page)

    def wrap(self, action_wheel: Any) -> "ActionWheelProxy":
        return ActionWheelProxy(action_wheel, self)


class ActionWheelProxy(HostProxy):
    def set_page(self, page: Any = None) -> None:
        self._interceptor.record(self._host.set_page, (page,))
