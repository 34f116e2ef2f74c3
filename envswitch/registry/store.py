"""
Environment Registry — owns every environment and the active pointer.

Behavioral Contract:
- The root environment always exists, is always initialized and is never removed.
- Exactly one environment is active at any time; the active id always resolves.
- Non-root ids are listed in registration order.
"""

from typing import Callable, Dict, List, Optional

from envswitch.models.config import Capability, EnvironmentDescriptor, SwitcherConfig
from envswitch.models.environment import ROOT_ID, Environment


class RegistrationError(Exception):
    """An environment descriptor was rejected. Only that entry is skipped."""
    pass


class MissingIdError(RegistrationError):
    pass


class ReservedIdError(RegistrationError):
    pass


class DuplicateIdError(RegistrationError):
    pass


class UnknownEnvironmentError(LookupError):
    """Raised when an id does not resolve to a registered environment."""
    pass


SnapshotFactory = Callable[[], Dict[Capability, object]]


class EnvironmentRegistry:
    """In-memory registry for the lifetime of the session."""

    def __init__(self, snapshot_factory: Optional[SnapshotFactory] = None):
        self._snapshot_factory = snapshot_factory or dict
        root = Environment.root()
        root.snapshots = self._snapshot_factory()
        self._environments: Dict[str, Environment] = {ROOT_ID: root}
        self._order: List[str] = []
        self._active_id = ROOT_ID

    def set_snapshot_factory(self, snapshot_factory: SnapshotFactory) -> None:
        """Replace the factory and give every existing environment fresh snapshots."""
        self._snapshot_factory = snapshot_factory
        for env in self.environments():
            env.snapshots = snapshot_factory()

    @property
    def root(self) -> Environment:
        return self._environments[ROOT_ID]

    @property
    def active_id(self) -> str:
        return self._active_id

    @property
    def active(self) -> Environment:
        return self._environments[self._active_id]

    def set_active(self, env_id: str) -> Environment:
        """Point the active pointer at a registered environment."""
        env = self.get(env_id)
        self._active_id = env.id
        return env

    def register(
        self,
        descriptor: EnvironmentDescriptor,
        config: Optional[SwitcherConfig] = None,
    ) -> Environment:
        """
        Create an environment from its descriptor.

        Raises MissingIdError, ReservedIdError or DuplicateIdError; the
        registry is left untouched in every failure case.
        """
        env_id = descriptor.id
        if not env_id:
            raise MissingIdError("Id is not specified")
        if env_id == ROOT_ID:
            raise ReservedIdError(f"{ROOT_ID} is internal environment ID, that is reserved")
        if env_id in self._environments:
            raise DuplicateIdError(f"Environment {env_id} is already registered")

        mode = descriptor.addressing_mode
        if mode is None and config is not None:
            mode = config.addressing_mode

        env = Environment(
            id=env_id,
            script_dirs=descriptor.search_dirs(),
            auto_scripts=list(descriptor.auto_scripts),
            addressing_mode=mode,
        )
        env.snapshots = self._snapshot_factory()
        self._environments[env_id] = env
        self._order.append(env_id)
        return env

    def lookup(self, env_id: Optional[str]) -> Optional[Environment]:
        """Get an environment by id. None resolves to root."""
        if env_id is None:
            return self.root
        return self._environments.get(env_id)

    def get(self, env_id: Optional[str]) -> Environment:
        env = self.lookup(env_id)
        if env is None:
            raise UnknownEnvironmentError(f"Unknown environment: {env_id}")
        return env

    def remove(self, env_id: str) -> bool:
        """
        Remove an environment permanently. The active pointer is not
        touched; callers redirect it first.
        """
        if env_id == ROOT_ID:
            raise ReservedIdError("The root environment cannot be removed")
        if env_id not in self._environments:
            return False
        del self._environments[env_id]
        self._order.remove(env_id)
        return True

    def list(self) -> List[str]:
        """Registered non-root ids in insertion order."""
        return list(self._order)

    def environments(self) -> List[Environment]:
        """Every environment including root, root first."""
        return [self.root] + [self._environments[i] for i in self._order]

    def __contains__(self, env_id: str) -> bool:
        return env_id in self._environments

    def __len__(self) -> int:
        return len(self._order)
