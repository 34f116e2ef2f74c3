"""
Switch Controller — moves host ownership from one environment to another.

States per environment:
  UNINITIALIZED → INITIALIZED (one-way)

switch_to(target):
  unknown target  → UnknownEnvironmentError, nothing changes
  same as active  → no-op
  otherwise       → unload(current) → activate(target) → load(target)

Behavioral Contract:
- Unload captures every enabled capability of the outgoing environment.
- First activation runs the auto-run modules in order. Any failure removes
  the environment permanently and lands on root. Side effects of modules
  that already ran are not undone.
- Auto-run modules always load into the environment being initialized,
  even after one of them switches to another environment.
- Later activations restore every enabled capability.
"""

import logging
from typing import Dict, Optional, Set

from envswitch.interceptors.base import CapabilityInterceptor
from envswitch.loader.modules import ModuleLoader
from envswitch.models.config import Capability
from envswitch.models.environment import ROOT_ID, Environment, Lifecycle
from envswitch.registry.store import EnvironmentRegistry

logger = logging.getLogger(__name__)


INIT_ERROR = (
    'Error occurred during initialization of environment "{env_id}".\n'
    "{error}\n"
    "This environment has been removed from your runtime."
)


class SwitchController:
    """Orchestrates unload, activation, lazy initialization and rollback."""

    def __init__(
        self,
        registry: EnvironmentRegistry,
        interceptors: Dict[Capability, CapabilityInterceptor],
        loader: ModuleLoader,
    ):
        self.registry = registry
        self.interceptors = interceptors
        self.loader = loader
        self._initializing: Set[str] = set()

    def switch_to(self, target_id: Optional[str]) -> Environment:
        """
        Make `target_id` (root when None) the active environment.

        Returns the environment active afterwards: root when the target
        failed to initialize, or wherever an auto-run module switched to.
        """
        target = self.registry.get(target_id)
        current = self.registry.active
        if target is current:
            return current

        self.unload(current)
        self.registry.set_active(target.id)

        if not target.initialized and target.id not in self._initializing:
            return self._initialize(target)

        self.load(target)
        logger.debug("Switched environment", extra={"env": target.id})
        return target

    def unload(self, env: Environment) -> None:
        for interceptor in self.interceptors.values():
            interceptor.capture(env)

    def load(self, env: Environment) -> None:
        for interceptor in self.interceptors.values():
            interceptor.restore(env)

    def _initialize(self, env: Environment) -> Environment:
        logger.debug(f"Initializing {env.id}", extra={"env": env.id})
        visibility = self.interceptors.get(Capability.VISIBILITY)
        if visibility is not None:
            visibility.reset_baseline(env)

        # Auto-run modules may switch away; they still load into `env`.
        self._initializing.add(env.id)
        try:
            for script_name in env.auto_scripts:
                try:
                    self.loader.load(script_name, env)
                except Exception as e:
                    logger.error(
                        INIT_ERROR.format(env_id=env.id, error=f"{type(e).__name__}: {e}"),
                        extra={"env": env.id},
                    )
                    return self._discard(env)
        finally:
            self._initializing.discard(env.id)

        env.lifecycle = Lifecycle.INITIALIZED
        logger.debug("Switched environment", extra={"env": env.id})
        return self.registry.active

    def _discard(self, env: Environment) -> Environment:
        """Land on root, then drop the failed environment for good."""
        root = self.switch_to(ROOT_ID)
        self.registry.remove(env.id)
        return root

