"""Environment — one isolated logical context over the shared host."""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from envswitch.models.config import AddressingMode, Capability


ROOT_ID = "___ROOT___"


class Lifecycle(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"  # terminal


class Environment(BaseModel):
    """
    An environment and everything it exclusively owns: its snapshots,
    its script namespace and its module cache.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, protected_namespaces=())

    id: str
    lifecycle: Lifecycle = Lifecycle.UNINITIALIZED
    script_dirs: List[str] = []
    auto_scripts: List[str] = []
    addressing_mode: Optional[AddressingMode] = None
    model_root: Optional[Any] = None
    namespace: Dict[str, Any] = {}
    modules: Dict[str, Tuple[Any, ...]] = {}
    snapshots: Dict[Capability, Any] = {}

    @classmethod
    def root(cls) -> "Environment":
        return cls(id=ROOT_ID, lifecycle=Lifecycle.INITIALIZED, script_dirs=[""])

    @property
    def is_root(self) -> bool:
        return self.id == ROOT_ID

    @property
    def initialized(self) -> bool:
        return self.lifecycle == Lifecycle.INITIALIZED

    def snapshot(self, capability: Capability) -> Any:
        """The snapshot for an enabled capability."""
        return self.snapshots[capability]
